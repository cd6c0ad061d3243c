from decimal import Decimal

from django import forms

from .models import LEGAL_CASE_TYPE_CHOICES


class CreditCaseForm(forms.Form):
    title = forms.CharField(max_length=200)
    debtor_name = forms.CharField(max_length=128)
    debt_amount = forms.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0"))
    department_id = forms.IntegerField(required=False, min_value=1)
    description = forms.CharField(required=False)


class LegalCaseForm(forms.Form):
    title = forms.CharField(max_length=200)
    case_type = forms.ChoiceField(choices=LEGAL_CASE_TYPE_CHOICES)
    department_id = forms.IntegerField(required=False, min_value=1)
    filing_fee_amount = forms.DecimalField(
        max_digits=14,
        decimal_places=2,
        min_value=Decimal("0"),
        required=False,
    )
    description = forms.CharField(required=False)


class EscalationForm(forms.Form):
    department_id = forms.IntegerField(required=False, min_value=1)
    filing_fee_amount = forms.DecimalField(
        max_digits=14,
        decimal_places=2,
        min_value=Decimal("0"),
        required=False,
    )
