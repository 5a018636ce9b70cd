from django import forms
from django.core.exceptions import ValidationError

from apps.core.academics.models import SchoolClass

from .models import Student


def _class_name_choices():
    names = set(SchoolClass.objects.values_list('name', flat=True))
    names.update(
        name for name in Student.objects.values_list('class_name', flat=True).distinct() if name
    )
    return [(name, f'Class {name}') for name in sorted(names)]


class StudentFilterForm(forms.Form):
    STATUS_ALL = 'All'
    STATUS_CHOICES = (
        (Student.STATUS_ACTIVE, 'Active'),
        (Student.STATUS_LC_ISSUED, 'LC Issued'),
        (STATUS_ALL, 'All'),
    )

    q = forms.CharField(required=False, label='Search')
    status = forms.ChoiceField(choices=STATUS_CHOICES, required=False, initial=Student.STATUS_ACTIVE)


class PromoteStudentsForm(forms.Form):
    from_class = forms.ChoiceField(choices=())
    to_class = forms.ChoiceField(choices=())

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        choices = _class_name_choices()
        self.fields['from_class'].choices = choices
        self.fields['to_class'].choices = choices

    def clean(self):
        cleaned = super().clean()
        if cleaned.get('from_class') and cleaned.get('from_class') == cleaned.get('to_class'):
            raise ValidationError('Source and destination classes must be different.')
        return cleaned


class LeavingCertificateForm(forms.Form):
    leaving_date = forms.DateField(required=False, widget=forms.DateInput(attrs={'type': 'date'}))
    reason = forms.CharField(required=False, max_length=200)


class BonafideForm(forms.Form):
    purpose = forms.CharField(required=False, max_length=200)


class MarksheetForm(forms.Form):
    exam_name = forms.CharField(max_length=120, initial='Annual Examination')


class SubjectMarksForm(forms.Form):
    subject = forms.CharField(required=False, max_length=80)
    theory_obtained = forms.DecimalField(required=False, min_value=0, max_digits=6, decimal_places=2)
    theory_max = forms.DecimalField(required=False, min_value=0, max_digits=6, decimal_places=2, initial=100)
    practical_obtained = forms.DecimalField(required=False, min_value=0, max_digits=6, decimal_places=2)
    practical_max = forms.DecimalField(required=False, min_value=0, max_digits=6, decimal_places=2, initial=0)


SubjectMarksFormSet = forms.formset_factory(SubjectMarksForm, extra=3)

DEFAULT_SUBJECTS = (
    {'subject': 'English', 'theory_max': 100, 'practical_max': 0},
    {'subject': 'Hindi', 'theory_max': 100, 'practical_max': 0},
    {'subject': 'Mathematics', 'theory_max': 100, 'practical_max': 0},
    {'subject': 'Science', 'theory_max': 70, 'practical_max': 30},
    {'subject': 'Social Science', 'theory_max': 100, 'practical_max': 0},
)
