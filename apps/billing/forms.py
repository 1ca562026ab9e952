from decimal import Decimal

from django import forms

from .models import PAYMENT_METHOD_CHOICES

OPTIONAL_METHOD_CHOICES = [("", "---------")] + PAYMENT_METHOD_CHOICES


def _money_field(**kwargs):
    kwargs.setdefault("required", False)
    return forms.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.00"), **kwargs)


class LedgerEntryForm(forms.Form):
    """
    Validates the user-supplied fields of a ledger entry.

    Derived fields (previous reading, units, totals, debit) are never accepted
    from the caller; the ledger service computes them.
    """

    description = forms.CharField(max_length=255)
    electricity_current_reading = forms.IntegerField(min_value=0, required=False)
    electricity_rate = forms.DecimalField(
        max_digits=12, decimal_places=4, min_value=Decimal("0"), required=False
    )
    water_bill = _money_field()
    rent_amount = _money_field()
    credit_amount = _money_field()
    payment_method = forms.ChoiceField(choices=OPTIONAL_METHOD_CHOICES, required=False)
    payment_proof = forms.CharField(max_length=1024, required=False)

    def clean(self):
        cleaned = super().clean()
        amounts = [
            cleaned.get("electricity_current_reading"),
            cleaned.get("water_bill"),
            cleaned.get("rent_amount"),
            cleaned.get("credit_amount"),
        ]
        if not self.errors and all(a is None for a in amounts):
            raise forms.ValidationError("Enter a charge, a meter reading or a payment amount.")
        if cleaned.get("payment_method") and cleaned.get("credit_amount") is None:
            self.add_error("credit_amount", "Enter the amount received for this payment method.")
        return cleaned


class PaymentForm(forms.Form):
    amount = forms.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))
    paid_at = forms.DateTimeField(required=False)
    payment_method = forms.ChoiceField(choices=PAYMENT_METHOD_CHOICES)
    payment_proof = forms.CharField(max_length=1024, required=False)
    note = forms.CharField(required=False)
