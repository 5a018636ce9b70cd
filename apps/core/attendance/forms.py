from django import forms
from django.utils import timezone


class StudentAttendanceSelectionForm(forms.Form):
    class_label = forms.ChoiceField(label='Class')
    target_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))

    def __init__(self, *args, class_choices=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['class_label'].choices = [(label, label) for label in (class_choices or [])]
        self.initial.setdefault('target_date', timezone.localdate())

    def clean_target_date(self):
        target_date = self.cleaned_data['target_date']
        if target_date > timezone.localdate():
            raise forms.ValidationError('Cannot mark attendance for a future date.')
        return target_date


class TeacherAttendanceDateForm(forms.Form):
    target_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.initial.setdefault('target_date', timezone.localdate())

    def clean_target_date(self):
        target_date = self.cleaned_data['target_date']
        if target_date > timezone.localdate():
            raise forms.ValidationError('Cannot mark attendance for a future date.')
        return target_date
