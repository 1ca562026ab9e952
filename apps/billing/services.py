import logging
from datetime import datetime, timedelta

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Max
from django.utils import timezone

from apps.core.exceptions import (
    AlreadyVerified,
    Forbidden,
    InvalidInput,
    Locked,
    NotFound,
    WindowExpired,
)
from apps.core.money import ZERO, format_money, quantize_money, sum_money, to_decimal
from apps.core.services.activity import log_activity

from . import meter

logger = logging.getLogger(__name__)


# ==================== PERIOD HELPERS ====================

def month_start(value):
    """First day of the calendar month containing ``value`` (date or datetime)."""
    if isinstance(value, datetime):
        value = timezone.localdate(value) if timezone.is_aware(value) else value.date()
    return value.replace(day=1)


def previous_month(month):
    return (month_start(month) - timedelta(days=1)).replace(day=1)


def next_month(month):
    return (month_start(month) + timedelta(days=32)).replace(day=1)


def due_date_for(month):
    """Bills fall due on BILL_DUE_DAY of the following month."""
    return next_month(month).replace(day=min(settings.BILL_DUE_DAY, 28))


def derive_status(paid_amount, remaining_amount):
    """
    Payment status from the aggregates, evaluated in order:
    nothing paid -> pending, something still owed -> partial, else paid.
    """
    if paid_amount == 0:
        return "pending"
    if remaining_amount > 0:
        return "partial"
    return "paid"


# ==================== SCOPE CHECKS ====================

def _ensure_landlord(actor, tenancy):
    if actor is None or actor.role != "landlord" or tenancy.landlord_id != actor.pk:
        raise Forbidden("Unauthorized.")


def _ensure_tenant(actor, tenancy):
    if actor is None or actor.role != "tenant" or tenancy.tenant_id != actor.pk:
        raise Forbidden("Unauthorized.")


def _ensure_party(actor, tenancy):
    if actor is not None and actor.role == "tenant":
        _ensure_tenant(actor, tenancy)
    else:
        _ensure_landlord(actor, tenancy)


def _next_sequence(bill):
    current = bill.entries.aggregate(m=Max("sequence"))["m"]
    return (current or 0) + 1


class BillService:
    """Bill aggregation, carry-forward and find-or-create of the period bill."""

    @staticmethod
    def get_bill(bill_id, actor):
        """Fetch a bill visible to ``actor`` (its landlord or its tenant)."""
        from .models import Bill

        try:
            bill = Bill.objects.select_related(
                "tenancy", "tenancy__property", "tenancy__landlord", "tenancy__tenant"
            ).get(pk=bill_id)
        except Bill.DoesNotExist:
            raise NotFound("Bill not found.")
        _ensure_party(actor, bill.tenancy)
        return bill

    @staticmethod
    def recalculate(bill_id):
        """
        Recompute a bill's totals and status from its ledger entries.

        Idempotent. Runs under a row lock on the bill so concurrent entry
        mutations cannot interleave with the read-recompute-write cycle.
        """
        from .models import Bill

        with transaction.atomic():
            try:
                bill = Bill.objects.select_for_update().get(pk=bill_id)
            except Bill.DoesNotExist:
                raise NotFound("Bill not found.")
            return BillService._apply_totals(bill)

    @staticmethod
    def _apply_totals(bill):
        """Write aggregates onto an already-locked bill."""
        rows = list(bill.entries.values_list("debit_amount", "credit_amount"))
        total_debit = sum_money(debit for debit, _ in rows)
        total_credit = sum_money(credit for _, credit in rows)

        bill.total_bill = total_debit
        bill.paid_amount = total_credit
        bill.remaining_amount = total_debit - total_credit
        bill.status = derive_status(bill.paid_amount, bill.remaining_amount)
        bill.save(update_fields=["total_bill", "paid_amount", "remaining_amount", "status", "updated_at"])
        return bill

    @staticmethod
    def resolve_carry_forward(tenancy, month):
        """
        Signed balance the tenant still owed on the preceding month's bill, or
        zero. That bill's own carry-forward is included, so balances chain
        from month to month.
        """
        from .models import Bill

        prior = Bill.objects.filter(tenancy=tenancy, month=previous_month(month)).first()
        if prior is None:
            return ZERO
        return prior.amount_due

    @staticmethod
    def resolve_active_bill(tenancy, as_of=None):
        """
        Find or create the bill for the month containing ``as_of``.

        Returns ``(bill, created)``. Safe under concurrent callers: the
        (tenancy, month) unique constraint rejects the losing insert, which
        then re-reads the winner's row.
        """
        from .models import Bill

        month = month_start(as_of or timezone.now())
        bill = Bill.objects.filter(tenancy=tenancy, month=month).first()
        if bill is not None:
            return bill, False

        carry_forward = BillService.resolve_carry_forward(tenancy, month)
        try:
            with transaction.atomic():
                bill = Bill.objects.create(
                    tenancy=tenancy,
                    month=month,
                    due_date=due_date_for(month),
                    carry_forward=carry_forward,
                    currency=tenancy.currency,
                    status="pending",
                )
        except IntegrityError:
            logger.info("Bill for tenancy %s month %s created concurrently; re-fetching", tenancy.pk, month)
            return Bill.objects.get(tenancy=tenancy, month=month), False

        logger.info("Created bill %s for tenancy %s (%s)", bill.pk, tenancy.pk, month)
        return bill, True

    @staticmethod
    def create_bill(tenancy_id, month, landlord, electricity_units=0, electricity_rate=0,
                    water_bill=0, note=""):
        """
        Open a period bill up front with component snapshots.

        The seed total (rent + electricity + water + carry-forward) stands until
        the first ledger entry triggers a recalculation. The seed remaining
        amount holds this period's charges only, so ``amount_due`` counts the
        carried balance once.
        """
        from apps.leases.models import Tenancy

        from .models import Bill

        try:
            tenancy = Tenancy.objects.select_related("property").get(pk=tenancy_id)
        except Tenancy.DoesNotExist:
            raise NotFound("Create tenancy first.")
        _ensure_landlord(landlord, tenancy)

        electricity_rate = to_decimal(electricity_rate, "electricity_rate")
        water_bill = to_decimal(water_bill, "water_bill")
        if not isinstance(electricity_units, int) or electricity_units < 0:
            raise InvalidInput(
                "Electricity units must be a whole number of at least 0.",
                errors={"electricity_units": ["Enter a whole number of at least 0."]},
            )
        for field, value in (("electricity_rate", electricity_rate), ("water_bill", water_bill)):
            if value is None or value < 0:
                raise InvalidInput(f"{field} cannot be negative.", errors={field: ["Ensure this value is at least 0."]})

        month = month_start(month)
        carry_forward = BillService.resolve_carry_forward(tenancy, month)
        electricity_total = quantize_money(electricity_units * electricity_rate)
        charges = quantize_money(tenancy.monthly_rent + electricity_total + water_bill)
        total = charges + carry_forward

        try:
            with transaction.atomic():
                bill = Bill.objects.create(
                    tenancy=tenancy,
                    month=month,
                    due_date=due_date_for(month),
                    rent=tenancy.monthly_rent,
                    electricity_units=electricity_units,
                    electricity_rate=electricity_rate,
                    electricity_total=electricity_total,
                    water_bill=quantize_money(water_bill),
                    carry_forward=carry_forward,
                    total_bill=total,
                    paid_amount=ZERO,
                    remaining_amount=charges,
                    status="pending",
                    currency=tenancy.currency,
                    note=note,
                )
        except IntegrityError:
            raise InvalidInput(f"A bill already exists for {month.strftime('%B %Y')}.")

        log_activity(
            tenancy.property,
            "BILL",
            f"Bill created for {bill.period_label} - {format_money(total, tenancy.currency)}",
            related_id=bill.pk,
        )
        logger.info("Bill %s created for tenancy %s (%s)", bill.pk, tenancy.pk, month)
        return bill


class LedgerService:
    """Append, amend, remove and verify ledger entries, keeping bills in step."""

    @staticmethod
    def _clean(fields):
        from .forms import LedgerEntryForm

        form = LedgerEntryForm(data=fields)
        if not form.is_valid():
            raise InvalidInput.from_form(form)
        return form.cleaned_data

    @staticmethod
    def _apply_fields(entry, data, previous_reading):
        reading = meter.calculate(
            data["electricity_current_reading"], data["electricity_rate"], previous_reading
        )
        entry.description = data["description"]
        entry.electricity_previous_reading = reading.previous_reading
        entry.electricity_current_reading = reading.current_reading
        entry.electricity_units_consumed = reading.units_consumed
        entry.electricity_rate = reading.rate
        entry.electricity_total = reading.total
        entry.water_bill = data["water_bill"]
        entry.rent_amount = data["rent_amount"]
        entry.debit_amount = meter.debit_for(reading.total, data["water_bill"], data["rent_amount"])
        entry.credit_amount = data["credit_amount"]
        entry.payment_method = data["payment_method"] or ""
        entry.payment_proof = data["payment_proof"] or ""

    @staticmethod
    def _load_entry(entry_id):
        from .models import LedgerEntry

        try:
            return LedgerEntry.objects.select_related(
                "bill", "bill__tenancy", "bill__tenancy__property"
            ).get(pk=entry_id)
        except LedgerEntry.DoesNotExist:
            raise NotFound("Entry not found.")

    @staticmethod
    def _lock(entry):
        """Lock the entry's bill, then re-read the entry under that lock."""
        from .models import Bill, LedgerEntry

        bill = Bill.objects.select_for_update().get(pk=entry.bill_id)
        locked = LedgerEntry.objects.select_for_update().get(pk=entry.pk)
        locked.bill = bill
        return bill, locked

    @staticmethod
    def _ensure_mutable(entry, now, action):
        if entry.verified_by_tenant:
            logger.warning("Refused to %s verified entry %s", action, entry.pk)
            raise Locked(f"Cannot {action} verified entry - tenant already approved.")
        if not entry.is_within_edit_window(now):
            logger.warning("Refused to %s entry %s outside edit window", action, entry.pk)
            raise WindowExpired(
                f"Edit window expired ({settings.LEDGER_EDIT_WINDOW_HOURS} hours). Cannot {action} entry."
            )

    @staticmethod
    def add_entry(tenancy_id, fields, actor, now=None):
        """
        Append an entry to the tenancy's bill for the month of ``now``.

        Creates the bill first if the month has none. Not idempotent: every
        call appends a new entry.
        """
        from apps.leases.models import Tenancy

        from .models import Bill, LedgerEntry

        now = now or timezone.now()
        try:
            tenancy = Tenancy.objects.select_related("property").get(pk=tenancy_id)
        except Tenancy.DoesNotExist:
            raise NotFound("Tenancy not found.")
        _ensure_landlord(actor, tenancy)
        data = LedgerService._clean(fields)

        with transaction.atomic():
            bill, _ = BillService.resolve_active_bill(tenancy, as_of=now)
            bill = Bill.objects.select_for_update().get(pk=bill.pk)

            entry = LedgerEntry(
                bill=bill,
                sequence=_next_sequence(bill),
                entry_date=now,
                created_at=now,
                created_by=actor.role,
            )
            LedgerService._apply_fields(entry, data, meter.find_previous_reading(bill))
            entry.save()
            BillService._apply_totals(bill)

        log_activity(
            tenancy.property, "LEDGER_ENTRY", f'Ledger entry added "{entry.description}"', related_id=entry.pk
        )
        logger.info("Ledger entry %s added to bill %s", entry.pk, bill.pk)
        return entry

    @staticmethod
    def update_entry(entry_id, fields, actor, now=None):
        """
        Overwrite an entry in place while it is unverified and inside the edit
        window. Derived electricity fields are recomputed as on creation.
        """
        now = now or timezone.now()
        entry = LedgerService._load_entry(entry_id)
        _ensure_landlord(actor, entry.bill.tenancy)

        with transaction.atomic():
            bill, entry = LedgerService._lock(entry)
            LedgerService._ensure_mutable(entry, now, "edit")
            data = LedgerService._clean(fields)
            if entry.payment_id and (data["credit_amount"] is None or data["credit_amount"] <= 0):
                raise InvalidInput(
                    "A recorded payment must keep an amount above zero.",
                    errors={"credit_amount": ["Ensure this value is greater than or equal to 0.01."]},
                )

            previous = meter.find_previous_reading(bill, exclude_entry=entry)
            LedgerService._apply_fields(entry, data, previous)
            entry.is_edited = True
            entry.edited_at = now
            entry.save()

            if entry.payment_id:
                payment = entry.payment
                payment.amount = entry.credit_amount
                payment.payment_method = entry.payment_method or payment.payment_method
                payment.payment_proof = entry.payment_proof
                payment.save(update_fields=["amount", "payment_method", "payment_proof", "updated_at"])

            BillService._apply_totals(bill)

        logger.info("Ledger entry %s updated on bill %s", entry.pk, bill.pk)
        return entry

    @staticmethod
    def delete_entry(entry_id, actor, now=None):
        """Remove an unverified entry inside its edit window. Returns the recalculated bill."""
        now = now or timezone.now()
        entry = LedgerService._load_entry(entry_id)
        _ensure_landlord(actor, entry.bill.tenancy)

        with transaction.atomic():
            bill, entry = LedgerService._lock(entry)
            LedgerService._ensure_mutable(entry, now, "delete")
            payment = entry.payment
            entry_pk = entry.pk
            entry.delete()
            if payment is not None:
                payment.delete()
            BillService._apply_totals(bill)

        logger.info("Ledger entry %s deleted from bill %s", entry_pk, bill.pk)
        return bill

    @staticmethod
    def verify_entry(entry_id, tenant, now=None):
        """Tenant confirms an entry. One-way: the entry is immutable afterwards."""
        now = now or timezone.now()
        entry = LedgerService._load_entry(entry_id)
        _ensure_tenant(tenant, entry.bill.tenancy)

        with transaction.atomic():
            _, entry = LedgerService._lock(entry)
            if entry.verified_by_tenant:
                raise AlreadyVerified()
            entry.verified_by_tenant = True
            entry.verified_at = now
            entry.save(update_fields=["verified_by_tenant", "verified_at", "updated_at"])

            if entry.payment_id and not entry.payment.verified_by_tenant:
                payment = entry.payment
                payment.verified_by_tenant = True
                payment.verified_at = now
                payment.save(update_fields=["verified_by_tenant", "verified_at", "updated_at"])

        log_activity(
            entry.bill.tenancy.property,
            "LEDGER_VERIFIED",
            f'Tenant verified ledger entry "{entry.description}"',
            related_id=entry.pk,
        )
        logger.info("Ledger entry %s verified by tenant %s", entry.pk, tenant.pk)
        return entry

    @staticmethod
    def list_entries(bill_id, actor):
        """Entries of a bill in ledger (creation) order."""
        bill = BillService.get_bill(bill_id, actor)
        return list(bill.entries.order_by("entry_date", "sequence"))


class PaymentService:
    """Payments recorded against a bill. Each one is mirrored by a credit ledger entry."""

    @staticmethod
    def record_payment(bill_id, fields, landlord, now=None):
        from .forms import PaymentForm
        from .models import Bill, LedgerEntry, Payment

        now = now or timezone.now()
        try:
            bill = Bill.objects.select_related("tenancy", "tenancy__property").get(pk=bill_id)
        except Bill.DoesNotExist:
            raise NotFound("Bill not found.")
        _ensure_landlord(landlord, bill.tenancy)

        form = PaymentForm(data=fields)
        if not form.is_valid():
            raise InvalidInput.from_form(form)
        data = form.cleaned_data
        paid_at = data["paid_at"] or now

        with transaction.atomic():
            bill = Bill.objects.select_for_update().get(pk=bill.pk)
            payment = Payment.objects.create(
                bill=bill,
                amount=data["amount"],
                paid_at=paid_at,
                payment_method=data["payment_method"],
                payment_proof=data["payment_proof"],
                note=data["note"],
                recorded_by=landlord,
                created_at=now,
            )
            LedgerEntry.objects.create(
                bill=bill,
                sequence=_next_sequence(bill),
                entry_date=now,
                created_at=now,
                description=f"Payment received ({payment.get_payment_method_display()})",
                credit_amount=payment.amount,
                payment_method=payment.payment_method,
                payment_proof=payment.payment_proof,
                payment=payment,
                created_by="landlord",
            )
            BillService._apply_totals(bill)

        log_activity(
            bill.tenancy.property,
            "PAYMENT",
            f"Payment added - {format_money(payment.amount, bill.currency)}",
            related_id=payment.pk,
        )
        logger.info("Payment %s of %s recorded on bill %s", payment.pk, payment.amount, bill.pk)
        return payment

    @staticmethod
    def verify_payment(payment_id, tenant, now=None):
        """Tenant confirms a payment; its ledger entry is locked along with it."""
        from .models import Bill, LedgerEntry, Payment

        now = now or timezone.now()
        try:
            payment = Payment.objects.select_related("bill", "bill__tenancy", "bill__tenancy__property").get(
                pk=payment_id
            )
        except Payment.DoesNotExist:
            raise NotFound("Payment not found.")
        _ensure_tenant(tenant, payment.bill.tenancy)

        with transaction.atomic():
            Bill.objects.select_for_update().get(pk=payment.bill_id)
            payment = Payment.objects.select_for_update().select_related("bill__tenancy__property").get(
                pk=payment.pk
            )
            if payment.verified_by_tenant:
                raise AlreadyVerified("Payment already verified.")
            payment.verified_by_tenant = True
            payment.verified_at = now
            payment.save(update_fields=["verified_by_tenant", "verified_at", "updated_at"])
            LedgerEntry.objects.filter(payment=payment).update(
                verified_by_tenant=True, verified_at=now
            )

        log_activity(
            payment.bill.tenancy.property,
            "PAYMENT_VERIFIED",
            f"Tenant verified payment of {format_money(payment.amount, payment.bill.currency)}",
            related_id=payment.pk,
        )
        logger.info("Payment %s verified by tenant %s", payment.pk, tenant.pk)
        return payment
