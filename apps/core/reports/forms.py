import calendar

from django import forms
from django.conf import settings
from django.utils import timezone

from .balance_sheet import MODE_MONTHLY, MODE_YEARLY
from .tables import LANDSCAPE, PORTRAIT

ORIENTATION_CHOICES = ((PORTRAIT, 'Portrait'), (LANDSCAPE, 'Landscape'))
MONTH_CHOICES = [(number, calendar.month_name[number]) for number in range(1, 13)]


def _year_choices():
    current = timezone.localdate().year
    span = int(getattr(settings, 'REPORT_YEAR_CHOICES_SPAN', 10))
    return [(year, year) for year in range(current, current - span, -1)]


class ClassFilterForm(forms.Form):
    class_name = forms.ChoiceField(required=False, label='Class')
    orientation = forms.ChoiceField(choices=ORIENTATION_CHOICES, required=False)

    def __init__(self, *args, class_names=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['class_name'].choices = [('all', 'All Classes')] + [
            (name, name) for name in (class_names or [])
        ]

    def clean_orientation(self):
        return self.cleaned_data.get('orientation') or PORTRAIT


class MonthYearForm(forms.Form):
    month = forms.TypedChoiceField(choices=MONTH_CHOICES, coerce=int)
    year = forms.TypedChoiceField(coerce=int)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['year'].choices = _year_choices()
        today = timezone.localdate()
        self.initial.setdefault('month', today.month)
        self.initial.setdefault('year', today.year)


class ClassMonthForm(MonthYearForm):
    selected_class = forms.ChoiceField(label='Class')

    def __init__(self, *args, class_labels=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['selected_class'].choices = [(label, label) for label in (class_labels or [])]


class BalanceSheetForm(forms.Form):
    mode = forms.ChoiceField(
        choices=((MODE_YEARLY, 'Yearly'), (MODE_MONTHLY, 'Monthly')),
        label='Report Type',
    )
    year = forms.TypedChoiceField(coerce=int)
    month = forms.TypedChoiceField(choices=MONTH_CHOICES, coerce=int, required=False, empty_value=None)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['year'].choices = _year_choices()
        self.initial.setdefault('year', timezone.localdate().year)

    def clean(self):
        cleaned = super().clean()
        if cleaned.get('mode') == MODE_MONTHLY and not cleaned.get('month'):
            self.add_error('month', 'Select a month for a monthly balance sheet.')
        return cleaned


class ClassRegisterForm(forms.Form):
    selected_class = forms.ChoiceField(label='Class')

    def __init__(self, *args, class_labels=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['selected_class'].choices = [(label, label) for label in (class_labels or [])]
