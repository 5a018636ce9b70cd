from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class Student(models.Model):
    STATUS_ACTIVE = 'Active'
    STATUS_LC_ISSUED = 'LC Issued'
    STATUS_CHOICES = (
        (STATUS_ACTIVE, 'Active'),
        (STATUS_LC_ISSUED, 'LC Issued'),
    )
    GENDER_CHOICES = (
        ('Male', 'Male'),
        ('Female', 'Female'),
        ('Other', 'Other'),
    )

    admission_number = models.CharField(max_length=50, unique=True)  # GR No.
    name = models.CharField(max_length=150)
    father_name = models.CharField(max_length=150, blank=True)
    mother_name = models.CharField(max_length=150, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    admission_date = models.DateField(null=True, blank=True)
    leaving_date = models.DateField(null=True, blank=True)
    leaving_reason = models.CharField(max_length=200, blank=True)
    class_name = models.CharField(max_length=50, blank=True)
    section = models.CharField(max_length=10, blank=True)
    roll_number = models.CharField(max_length=20, blank=True, default='')
    mobile = models.CharField(max_length=20, blank=True)
    address = models.TextField(blank=True)

    total_fees = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    fees_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    # Blank status is treated as active; older records were saved without one.
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, blank=True, default=STATUS_ACTIVE)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['admission_number', 'id']
        indexes = [
            models.Index(fields=['class_name', 'section'], name='students_class_section_idx'),
            models.Index(fields=['status'], name='students_status_idx'),
        ]

    @property
    def is_active(self):
        return self.status in ('', None, self.STATUS_ACTIVE)

    @property
    def pending_fees(self):
        return (self.total_fees or Decimal('0')) - (self.fees_paid or Decimal('0'))

    @property
    def class_label(self):
        return f"{self.class_name} '{self.section}'"

    def clean(self):
        super().clean()
        self.section = (self.section or '').strip().upper()

        if self.total_fees is not None and self.total_fees < 0:
            raise ValidationError({'total_fees': 'Total fees must be zero or greater.'})
        if self.fees_paid is not None and self.fees_paid < 0:
            raise ValidationError({'fees_paid': 'Fees paid must be zero or greater.'})

    def __str__(self):
        return f"{self.name} ({self.admission_number})"
