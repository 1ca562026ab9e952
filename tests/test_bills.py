import uuid
from datetime import date, timedelta
from decimal import Decimal
from unittest import mock

import pytest
from django.utils import timezone

from apps.billing.models import Bill, LedgerEntry
from apps.billing.services import BillService, derive_status, due_date_for, month_start, previous_month
from apps.core.exceptions import Forbidden, InvalidInput, NotFound
from apps.core.models import ActivityLog

pytestmark = pytest.mark.django_db


@pytest.mark.parametrize(
    "paid, remaining, expected",
    [
        (Decimal("0"), Decimal("1000"), "pending"),
        (Decimal("0"), Decimal("0"), "pending"),
        (Decimal("400"), Decimal("600"), "partial"),
        (Decimal("1000"), Decimal("0"), "paid"),
        (Decimal("1100"), Decimal("-100"), "paid"),
    ],
)
def test_derive_status(paid, remaining, expected):
    assert derive_status(paid, remaining) == expected


def test_period_helpers():
    assert month_start(date(2024, 3, 17)) == date(2024, 3, 1)
    assert previous_month(date(2024, 1, 1)) == date(2023, 12, 1)
    assert due_date_for(date(2024, 12, 1)) == date(2025, 1, 5)


def _bill(tenancy, month, **kwargs):
    kwargs.setdefault("due_date", due_date_for(month))
    return Bill.objects.create(tenancy=tenancy, month=month, **kwargs)


class TestRecalculate:
    def test_is_idempotent(self, add_entry):
        add_entry(description="Rent", rent_amount="1000")
        entry = add_entry(description="Paid", credit_amount="250")
        first = BillService.recalculate(entry.bill_id)
        values = (first.total_bill, first.paid_amount, first.remaining_amount, first.status)
        second = BillService.recalculate(entry.bill_id)
        assert (second.total_bill, second.paid_amount, second.remaining_amount, second.status) == values
        assert values == (Decimal("1000.00"), Decimal("250.00"), Decimal("750.00"), "partial")

    def test_repairs_drifted_totals(self, add_entry):
        entry = add_entry(description="Rent", rent_amount="1000")
        Bill.objects.filter(pk=entry.bill_id).update(total_bill=Decimal("5"), status="paid")
        bill = BillService.recalculate(entry.bill_id)
        assert bill.total_bill == Decimal("1000.00")
        assert bill.status == "pending"

    def test_bill_without_entries(self, tenancy):
        bill = _bill(tenancy, date(2024, 3, 1))
        bill = BillService.recalculate(bill.pk)
        assert bill.total_bill == Decimal("0.00")
        assert bill.remaining_amount == Decimal("0.00")
        assert bill.status == "pending"

    def test_clears_overdue_overlay(self, add_entry):
        entry = add_entry(description="Rent", rent_amount="1000")
        Bill.objects.filter(pk=entry.bill_id).update(status="overdue")
        assert BillService.recalculate(entry.bill_id).status == "pending"

    def test_unknown_bill(self):
        with pytest.raises(NotFound):
            BillService.recalculate(uuid.uuid4())


class TestCarryForward:
    def test_no_prior_bill(self, tenancy):
        assert BillService.resolve_carry_forward(tenancy, date(2024, 3, 1)) == Decimal("0.00")

    def test_debt_is_carried(self, tenancy):
        _bill(tenancy, date(2024, 2, 1), remaining_amount=Decimal("150.00"))
        assert BillService.resolve_carry_forward(tenancy, date(2024, 3, 1)) == Decimal("150.00")

    def test_credit_is_carried_negative(self, tenancy):
        _bill(tenancy, date(2024, 2, 1), remaining_amount=Decimal("-40.00"))
        assert BillService.resolve_carry_forward(tenancy, date(2024, 3, 1)) == Decimal("-40.00")

    def test_only_the_immediately_preceding_month(self, tenancy):
        _bill(tenancy, date(2024, 1, 1), remaining_amount=Decimal("500.00"))
        assert BillService.resolve_carry_forward(tenancy, date(2024, 3, 1)) == Decimal("0.00")

    def test_previous_carry_chains_forward(self, tenancy):
        _bill(tenancy, date(2024, 2, 1), remaining_amount=Decimal("1000.00"), carry_forward=Decimal("150.00"))
        assert BillService.resolve_carry_forward(tenancy, date(2024, 3, 1)) == Decimal("1150.00")

    def test_paying_amount_due_clears_the_chain(self, add_entry, now):
        march = add_entry(at=now, description="Rent", rent_amount="1000")
        add_entry(at=now + timedelta(minutes=1), description="Paid", credit_amount="850")

        april_at = now + timedelta(days=31)
        april = add_entry(at=april_at, description="Rent", rent_amount="1000").bill
        assert april.carry_forward == Decimal("150.00")
        assert april.amount_due == Decimal("1150.00")
        april = add_entry(at=april_at + timedelta(minutes=1), description="Paid", credit_amount="1150").bill
        assert april.amount_due == Decimal("0.00")

        may = add_entry(at=now + timedelta(days=61), description="Rent", rent_amount="1000").bill
        assert may.month == date(2024, 5, 1)
        assert may.carry_forward == Decimal("0.00")
        assert march.bill_id != april.pk != may.pk

    def test_unpaid_months_accumulate(self, add_entry, now):
        add_entry(at=now, description="Rent", rent_amount="1000")
        add_entry(at=now + timedelta(days=31), description="Rent", rent_amount="1000")
        may = add_entry(at=now + timedelta(days=61), description="Rent", rent_amount="1000").bill
        assert may.carry_forward == Decimal("2000.00")
        assert may.amount_due == Decimal("3000.00")

    def test_other_tenancy_ignored(self, tenancy, landlord, other_tenant):
        from apps.leases.models import Tenancy
        from apps.properties.models import Property

        flat = Property.objects.create(landlord=landlord, name="Flat 2", address="x")
        other = Tenancy.objects.create(
            landlord=landlord, tenant=other_tenant, property=flat,
            monthly_rent=Decimal("500"), lease_start=date(2024, 1, 1),
        )
        _bill(other, date(2024, 2, 1), remaining_amount=Decimal("75.00"))
        assert BillService.resolve_carry_forward(tenancy, date(2024, 3, 1)) == Decimal("0.00")


class TestResolveActiveBill:
    def test_creates_bill_with_carry_forward(self, tenancy, now):
        _bill(tenancy, date(2024, 2, 1), remaining_amount=Decimal("150.00"))
        bill, created = BillService.resolve_active_bill(tenancy, as_of=now)
        assert created
        assert bill.month == date(2024, 3, 1)
        assert bill.due_date == date(2024, 4, 5)
        assert bill.carry_forward == Decimal("150.00")
        assert bill.status == "pending"
        assert bill.currency == tenancy.currency
        assert bill.amount_due == Decimal("150.00")

    def test_credit_reduces_amount_due(self, tenancy, now):
        _bill(tenancy, date(2024, 2, 1), remaining_amount=Decimal("-40.00"))
        bill, _ = BillService.resolve_active_bill(tenancy, as_of=now)
        bill.remaining_amount = Decimal("1000.00")
        assert bill.amount_due == Decimal("960.00")

    def test_returns_existing(self, tenancy, now):
        existing = _bill(tenancy, date(2024, 3, 1))
        bill, created = BillService.resolve_active_bill(tenancy, as_of=now + timedelta(days=5))
        assert not created
        assert bill == existing

    def test_concurrent_insert_returns_winner(self, tenancy, now):
        winner = _bill(tenancy, date(2024, 3, 1))
        stale = mock.MagicMock()
        stale.first.return_value = None
        # Both the existence check and the carry-forward lookup miss, as they
        # would for a caller that read before the winner committed.
        with mock.patch.object(Bill.objects, "filter", return_value=stale):
            bill, created = BillService.resolve_active_bill(tenancy, as_of=now)
        assert not created
        assert bill == winner
        assert Bill.objects.filter(tenancy=tenancy).count() == 1

    def test_lost_insert_race_refetches_winner(self, tenancy, now):
        real_filter = Bill.objects.filter
        calls = []

        def stale_then_commit(*args, **kwargs):
            queryset = real_filter(*args, **kwargs)
            if not calls:
                # Evaluate the lookup first, then let another caller commit
                # the row before the insert runs.
                len(queryset)
                Bill.objects.create(tenancy=tenancy, month=date(2024, 3, 1), due_date=date(2024, 4, 5))
            calls.append(kwargs)
            return queryset

        with mock.patch.object(Bill.objects, "filter", side_effect=stale_then_commit):
            bill, created = BillService.resolve_active_bill(tenancy, as_of=now)

        assert not created
        assert bill.month == date(2024, 3, 1)
        assert Bill.objects.filter(tenancy=tenancy).count() == 1

    def test_defaults_to_current_month(self, tenancy):
        bill, _ = BillService.resolve_active_bill(tenancy)
        assert bill.month == timezone.localdate().replace(day=1)


class TestCreateBill:
    def test_seeds_components_and_total(self, tenancy, landlord, property):
        _bill(tenancy, date(2024, 2, 1), remaining_amount=Decimal("150.00"))
        bill = BillService.create_bill(
            tenancy.pk, date(2024, 3, 14), landlord,
            electricity_units=100, electricity_rate="8.5", water_bill="200", note="March",
        )
        assert bill.month == date(2024, 3, 1)
        assert bill.rent == Decimal("1000.00")
        assert bill.electricity_total == Decimal("850.00")
        assert bill.carry_forward == Decimal("150.00")
        assert bill.total_bill == Decimal("2200.00")
        assert bill.remaining_amount == Decimal("2050.00")
        assert bill.amount_due == Decimal("2200.00")
        assert bill.status == "pending"
        assert ActivityLog.objects.filter(type="BILL", property=property, related_id=bill.pk).exists()

    def test_first_entry_replaces_seed_total(self, tenancy, landlord, add_entry):
        BillService.create_bill(tenancy.pk, date(2024, 3, 1), landlord, water_bill="200")
        entry = add_entry(description="Rent", rent_amount="1000")
        bill = Bill.objects.get(pk=entry.bill_id)
        assert bill.total_bill == Decimal("1000.00")
        assert LedgerEntry.objects.filter(bill=bill).count() == 1

    def test_duplicate_month_rejected(self, tenancy, landlord):
        BillService.create_bill(tenancy.pk, date(2024, 3, 1), landlord)
        with pytest.raises(InvalidInput):
            BillService.create_bill(tenancy.pk, date(2024, 3, 20), landlord)
        assert Bill.objects.count() == 1

    @pytest.mark.parametrize(
        "kwargs",
        [{"electricity_units": -1}, {"electricity_rate": "-2"}, {"water_bill": "abc"}, {"electricity_units": 1.5}],
    )
    def test_invalid_components(self, tenancy, landlord, kwargs):
        with pytest.raises(InvalidInput):
            BillService.create_bill(tenancy.pk, date(2024, 3, 1), landlord, **kwargs)

    def test_missing_tenancy(self, landlord):
        with pytest.raises(NotFound, match="Create tenancy first"):
            BillService.create_bill(uuid.uuid4(), date(2024, 3, 1), landlord)

    def test_other_landlord(self, tenancy, other_landlord):
        with pytest.raises(Forbidden):
            BillService.create_bill(tenancy.pk, date(2024, 3, 1), other_landlord)


class TestGetBill:
    def test_visible_to_both_parties(self, tenancy, landlord, tenant):
        bill = _bill(tenancy, date(2024, 3, 1))
        assert BillService.get_bill(bill.pk, landlord) == bill
        assert BillService.get_bill(bill.pk, tenant) == bill

    def test_hidden_from_strangers(self, tenancy, other_landlord, other_tenant):
        bill = _bill(tenancy, date(2024, 3, 1))
        for actor in (other_landlord, other_tenant, None):
            with pytest.raises(Forbidden):
                BillService.get_bill(bill.pk, actor)
