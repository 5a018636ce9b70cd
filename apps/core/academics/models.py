from django.core.exceptions import ValidationError
from django.db import models


def normalize_sections(raw):
    """
    Accepts "a, b ,A" or ["a", "b"] and returns ["A", "B"].
    Order of first occurrence is kept.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        parts = raw.split(',')
    else:
        parts = list(raw)

    normalized = []
    for part in parts:
        value = str(part or '').strip().upper()
        if value and value not in normalized:
            normalized.append(value)
    return normalized


class SchoolClass(models.Model):
    name = models.CharField(max_length=50, unique=True)  # e.g. 5, 10, Nursery
    sections = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name', 'id']
        verbose_name_plural = 'school classes'

    def clean(self):
        super().clean()
        if self.name:
            self.name = self.name.strip()
        if not self.name:
            raise ValidationError({'name': 'Class name is required.'})

        self.sections = normalize_sections(self.sections)
        if not self.sections:
            raise ValidationError({'sections': 'At least one section is required.'})

    def section_labels(self):
        return [f"{self.name} '{section}'" for section in self.sections]

    def __str__(self):
        return f"Class {self.name}"
