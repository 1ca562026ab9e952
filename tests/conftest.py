from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone


@pytest.fixture
def now():
    return timezone.make_aware(datetime(2024, 3, 10, 9, 0))


@pytest.fixture
def landlord(django_user_model):
    return django_user_model.objects.create_user(
        username="landlord", email="landlord@example.com", password="x", role="landlord",
        first_name="Lena", last_name="Lord",
    )


@pytest.fixture
def other_landlord(django_user_model):
    return django_user_model.objects.create_user(
        username="other", email="other@example.com", password="x", role="landlord"
    )


@pytest.fixture
def tenant(django_user_model):
    return django_user_model.objects.create_user(
        username="tenant", email="tenant@example.com", password="x", role="tenant",
        phone_number="+15550100",
    )


@pytest.fixture
def other_tenant(django_user_model):
    return django_user_model.objects.create_user(
        username="other_tenant", email="other_tenant@example.com", password="x", role="tenant"
    )


@pytest.fixture
def property(landlord):
    from apps.properties.models import Property

    return Property.objects.create(landlord=landlord, name="Flat 4B", address="12 Mill Road")


@pytest.fixture
def tenancy(landlord, tenant, property):
    from apps.leases.models import Tenancy

    property.status = "occupied"
    property.save()
    return Tenancy.objects.create(
        landlord=landlord,
        tenant=tenant,
        property=property,
        monthly_rent=Decimal("1000.00"),
        lease_start=date(2024, 1, 1),
        currency="INR",
    )


@pytest.fixture
def add_entry(tenancy, landlord, now):
    """Append an entry as the landlord, one minute after the previous call by default."""
    from apps.billing.services import LedgerService

    calls = {"n": 0}

    def _add(at=None, **fields):
        fields.setdefault("description", "Charge")
        at = at or now + timedelta(minutes=calls["n"])
        calls["n"] += 1
        return LedgerService.add_entry(tenancy.pk, fields, landlord, now=at)

    return _add
