from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from .models import Expense


class ExpenseModelTests(TestCase):
    def test_amount_must_be_positive(self):
        expense = Expense(date=date(2026, 4, 1), category='Electricity', description='April bill', amount=Decimal('0'))
        with self.assertRaises(ValidationError) as ctx:
            expense.full_clean()
        self.assertIn('amount', ctx.exception.message_dict)

    def test_category_is_stripped_and_required(self):
        expense = Expense(date=date(2026, 4, 1), category='  ', description='Chalk', amount=Decimal('120'))
        with self.assertRaises(ValidationError):
            expense.full_clean()

        expense.category = ' Stationery '
        expense.full_clean()
        self.assertEqual(expense.category, 'Stationery')

    def test_latest_first_ordering(self):
        older = Expense.objects.create(date=date(2026, 3, 1), category='Events', description='Sports day', amount=Decimal('5000'))
        newer = Expense.objects.create(date=date(2026, 4, 1), category='Events', description='Annual day', amount=Decimal('8000'))
        self.assertEqual(list(Expense.objects.all()), [newer, older])
