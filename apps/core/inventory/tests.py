from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from .models import DeadStockItem


class DeadStockItemTests(TestCase):
    def test_total_price(self):
        item = DeadStockItem(item_name='Bench', quantity=12, price=Decimal('1500.50'), purchase_date=date(2024, 6, 1))
        self.assertEqual(item.total_price, Decimal('18006.00'))

    def test_quantity_must_be_at_least_one(self):
        item = DeadStockItem(item_name='Projector', quantity=0, price=Decimal('30000'), purchase_date=date(2024, 6, 1))
        with self.assertRaises(ValidationError) as ctx:
            item.full_clean()
        self.assertIn('quantity', ctx.exception.message_dict)

    def test_negative_price_is_rejected(self):
        item = DeadStockItem(item_name='Desk', quantity=2, price=Decimal('-1'), purchase_date=date(2024, 6, 1))
        with self.assertRaises(ValidationError):
            item.full_clean()
