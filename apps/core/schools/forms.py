from django import forms

from .models import SchoolProfile


class SchoolProfileForm(forms.ModelForm):
    class Meta:
        model = SchoolProfile
        fields = [
            'name',
            'affiliation_number',
            'school_code',
            'udise_code',
            'address',
            'logo',
            'principal_name',
            'academic_year',
        ]
        widgets = {
            'address': forms.Textarea(attrs={'rows': 3}),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for name in ['name', 'affiliation_number', 'school_code', 'udise_code', 'address', 'principal_name', 'academic_year']:
            self.fields[name].required = True
