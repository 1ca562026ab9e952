from datetime import timedelta
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError

from apps.billing.models import Payment
from apps.core.validators import validate_non_negative

pytestmark = pytest.mark.django_db


def test_edit_window_helpers(add_entry, tenant, now):
    from apps.billing.services import LedgerService

    entry = add_entry(at=now, description="Rent", rent_amount="1000")
    assert entry.edit_deadline == now + timedelta(hours=24)
    assert entry.is_editable(now + timedelta(hours=24))
    assert not entry.is_editable(now + timedelta(hours=24, seconds=1))

    entry = LedgerService.verify_entry(entry.pk, tenant, now=now)
    assert not entry.is_editable(now)


def test_net_amount(add_entry):
    assert add_entry(description="Rent", rent_amount="1000").net_amount == Decimal("1000.00")
    assert add_entry(description="Paid", credit_amount="250").net_amount == Decimal("-250.00")


def test_bill_labels(add_entry):
    bill = add_entry(description="Rent", rent_amount="1000").bill
    assert bill.period_label == "March 2024"
    assert str(bill).startswith("Bill March 2024")


def test_payment_amount_cannot_be_negative(add_entry, now):
    bill = add_entry(description="Rent", rent_amount="1000").bill
    payment = Payment(bill=bill, amount=Decimal("-1"), paid_at=now, payment_method="cash")
    with pytest.raises(ValidationError):
        payment.full_clean()


def test_validate_non_negative_allows_zero_and_blank():
    validate_non_negative(Decimal("0"))
    validate_non_negative(None)


def test_tenancy_is_active(tenancy):
    from apps.leases.models import Tenancy

    assert Tenancy._meta.get_field("property").related_model.__name__ == "Property"
    assert tenancy.is_active
    tenancy.status = "ended"
    assert not tenancy.is_active
