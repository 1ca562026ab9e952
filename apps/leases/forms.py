from decimal import Decimal

from django import forms
from django.conf import settings

from apps.core.money import CURRENCY_CHOICES


class TenancyForm(forms.Form):
    monthly_rent = forms.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.00"))
    security_deposit = forms.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.00"), required=False
    )
    lease_start = forms.DateField()
    lease_end = forms.DateField(required=False)
    currency = forms.ChoiceField(choices=CURRENCY_CHOICES, required=False)

    def clean_security_deposit(self):
        return self.cleaned_data.get("security_deposit") or Decimal("0.00")

    def clean_currency(self):
        return self.cleaned_data.get("currency") or settings.DEFAULT_CURRENCY

    def clean(self):
        cleaned = super().clean()
        start = cleaned.get("lease_start")
        end = cleaned.get("lease_end")
        if start and end and end < start:
            self.add_error("lease_end", "Lease end cannot be before lease start.")
        return cleaned
