from django.core.exceptions import ValidationError
from django.db import models


class Expense(models.Model):
    date = models.DateField()
    category = models.CharField(max_length=100)
    description = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-date', '-id']
        indexes = [
            models.Index(fields=['date'], name='expenses_date_idx'),
        ]

    def clean(self):
        super().clean()
        self.category = (self.category or '').strip()
        if not self.category:
            raise ValidationError({'category': 'Category is required.'})
        if self.amount is None or self.amount <= 0:
            raise ValidationError({'amount': 'Amount must be greater than zero.'})

    def __str__(self):
        return f"{self.date} {self.category} - {self.amount}"
