from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from apps.core.students.models import Student


class FinancialRecordModel(models.Model):
    class Meta:
        abstract = True

    def delete(self, *args, **kwargs):
        raise ValidationError('Financial records cannot be deleted. Record a correction instead.')


class FeePayment(FinancialRecordModel):
    student = models.ForeignKey(
        Student,
        on_delete=models.PROTECT,
        related_name='fee_payments',
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    date = models.DateField()
    receipt_number = models.CharField(max_length=40, unique=True)
    received_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='collected_fee_payments',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-date', '-id']
        indexes = [
            models.Index(fields=['date'], name='fees_payment_date_idx'),
            models.Index(fields=['student', 'date'], name='fees_payment_student_date_idx'),
        ]

    def clean(self):
        super().clean()
        if self.amount is None or self.amount <= 0:
            raise ValidationError({'amount': 'Payment amount must be greater than zero.'})

    def save(self, *args, **kwargs):
        if self.pk and FeePayment.objects.filter(pk=self.pk).exists():
            raise ValidationError('Fee payments are immutable once recorded.')
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.receipt_number} - {self.amount}"
