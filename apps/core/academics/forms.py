from django import forms
from django.core.exceptions import ValidationError

from .models import SchoolClass, normalize_sections


class SchoolClassForm(forms.Form):
    name = forms.CharField(max_length=50)
    sections = forms.CharField(
        max_length=200,
        help_text='Comma separated, e.g. A, B, C',
    )

    def __init__(self, *args, **kwargs):
        self.instance = kwargs.pop('instance', None)
        super().__init__(*args, **kwargs)
        if self.instance and not self.is_bound:
            self.initial.setdefault('name', self.instance.name)
            self.initial.setdefault('sections', ', '.join(self.instance.sections))

    def clean_name(self):
        name = self.cleaned_data['name'].strip()
        duplicates = SchoolClass.objects.filter(name=name)
        if self.instance and self.instance.pk:
            duplicates = duplicates.exclude(pk=self.instance.pk)
        if duplicates.exists():
            raise ValidationError('A class with this name already exists.')
        return name

    def clean_sections(self):
        sections = normalize_sections(self.cleaned_data['sections'])
        if not sections:
            raise ValidationError('Please provide at least one valid section.')
        return sections
