from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class DeadStockItem(models.Model):
    STATUS_IN_STOCK = 'In Stock'
    STATUS_DISPOSED = 'Disposed'
    STATUS_SOLD = 'Sold'
    STATUS_WRITTEN_OFF = 'Written Off'
    STATUS_CHOICES = (
        (STATUS_IN_STOCK, 'In Stock'),
        (STATUS_DISPOSED, 'Disposed'),
        (STATUS_SOLD, 'Sold'),
        (STATUS_WRITTEN_OFF, 'Written Off'),
    )

    item_name = models.CharField(max_length=150)
    quantity = models.PositiveIntegerField(default=1)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    purchase_date = models.DateField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_IN_STOCK)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['purchase_date', 'id']
        verbose_name = 'dead stock item'

    @property
    def total_price(self):
        return (self.price or Decimal('0')) * self.quantity

    def clean(self):
        super().clean()
        if not self.quantity or self.quantity < 1:
            raise ValidationError({'quantity': 'Quantity must be at least 1.'})
        if self.price is None or self.price < 0:
            raise ValidationError({'price': 'Price must be zero or greater.'})

    def __str__(self):
        return f"{self.item_name} x{self.quantity}"
