from decimal import Decimal

from django import forms


class FeeCollectionForm(forms.Form):
    amount = forms.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    payment_date = forms.DateField(required=False, widget=forms.DateInput(attrs={'type': 'date'}))
    receipt_number = forms.CharField(max_length=40, required=False)
    expected_fees_paid = forms.DecimalField(max_digits=12, decimal_places=2, widget=forms.HiddenInput)


class FeeSearchForm(forms.Form):
    q = forms.CharField(required=False, label='Search')
    class_name = forms.ChoiceField(required=False, label='Class')

    def __init__(self, *args, class_choices=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['class_name'].choices = [('all', 'All Classes')] + [
            (label, label) for label in (class_choices or [])
        ]
