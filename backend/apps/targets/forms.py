from decimal import Decimal

from django import forms
from django.utils import timezone

from .models import MAX_TARGET_YEAR, MIN_TARGET_YEAR


class RevenueTargetForm(forms.Form):
    year = forms.IntegerField(min_value=MIN_TARGET_YEAR, max_value=MAX_TARGET_YEAR)
    yearly_target = forms.DecimalField(max_digits=16, decimal_places=2)
    department_id = forms.IntegerField(required=False, min_value=1)

    def clean_year(self):
        year = self.cleaned_data["year"]
        if year < timezone.localdate().year:
            raise forms.ValidationError("Cannot set targets for past years")
        return year

    def clean_yearly_target(self):
        yearly_target = self.cleaned_data["yearly_target"]
        if yearly_target <= Decimal("0"):
            raise forms.ValidationError("Yearly target must be greater than 0")
        return yearly_target


class PerformanceQueryForm(forms.Form):
    year = forms.IntegerField(required=False, min_value=MIN_TARGET_YEAR, max_value=MAX_TARGET_YEAR)
    month = forms.IntegerField(required=False, min_value=1, max_value=12)
    week = forms.IntegerField(required=False, min_value=1, max_value=5)
    day = forms.IntegerField(required=False, min_value=1, max_value=31)
    department_id = forms.IntegerField(required=False, min_value=1)

    def clean(self):
        cleaned_data = super().clean()
        if (cleaned_data.get("week") or cleaned_data.get("day")) and not cleaned_data.get("month"):
            raise forms.ValidationError("A week or day needs a month")
        return cleaned_data
