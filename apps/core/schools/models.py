from django.core.exceptions import ValidationError
from django.db import models


class SchoolProfile(models.Model):
    """Single-row record describing the school; printed on every report header."""

    name = models.CharField(max_length=255, blank=True)
    address = models.TextField(blank=True)
    principal_name = models.CharField(max_length=150, blank=True)
    logo = models.ImageField(upload_to='school/logo/', null=True, blank=True)
    affiliation_number = models.CharField(max_length=60, blank=True)
    school_code = models.CharField(max_length=40, blank=True)
    udise_code = models.CharField(max_length=40, blank=True)
    academic_year = models.CharField(max_length=20, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'School profile'

    def save(self, *args, **kwargs):
        if not self.pk and SchoolProfile.objects.exists():
            raise ValidationError('School profile already exists. Update the existing record.')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError('School profile cannot be deleted.')

    @property
    def logo_url(self):
        if self.logo:
            try:
                return self.logo.url
            except ValueError:
                return ''
        return ''

    def __str__(self):
        return self.name or 'School profile'
