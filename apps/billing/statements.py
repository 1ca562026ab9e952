"""
Read-only views of a bill: the statement shown on a bill preview and the
ledger CSV export.
"""

import csv

from django.utils import timezone

from apps.core.money import ZERO, sum_money

from .services import BillService

LEDGER_CSV_HEADER = [
    "Date",
    "Description",
    "Meter Reading",
    "Rate",
    "Units",
    "Electricity",
    "Water",
    "Rent",
    "Debit",
    "Credit",
    "Payment Method",
    "Verified",
]


def build_statement(bill_id, actor, now=None):
    """
    Everything needed to render a bill: parties, per-category charges and
    totals. The carried-forward balance is added on top of this period's
    charges, so a prior credit reduces what is owed.
    """
    bill = BillService.get_bill(bill_id, actor)
    tenancy = bill.tenancy
    entries = list(bill.entries.all())

    rent = sum_money(e.rent_amount for e in entries)
    electricity = sum_money(e.electricity_total for e in entries)
    water = sum_money(e.water_bill for e in entries)
    other = sum_money(
        e.debit_amount
        for e in entries
        if e.debit_amount is not None
        and e.rent_amount is None
        and e.electricity_total is None
        and e.water_bill is None
    )
    paid = sum_money(e.credit_amount for e in entries)

    subtotal = rent + electricity + water + other
    carry_forward = bill.carry_forward or ZERO
    total = subtotal + carry_forward

    return {
        "bill": {
            "id": str(bill.pk),
            "period": bill.period_label,
            "receipt_number": f"#{bill.pk.hex[:8].upper()}",
            "date": timezone.localdate(now or timezone.now()).strftime("%B %d, %Y"),
            "due_date": bill.due_date,
            "status": bill.status,
            "currency": bill.currency,
        },
        "property": {
            "name": tenancy.property.name,
            "address": tenancy.property.address,
            "description": tenancy.property.description,
        },
        "landlord": {
            "name": str(tenancy.landlord),
            "email": tenancy.landlord.email,
        },
        "tenant": {
            "name": str(tenancy.tenant),
            "email": tenancy.tenant.email,
            "phone": tenancy.tenant.phone_number,
        },
        "charges": {
            "rent": rent,
            "electricity": electricity,
            "water": water,
            "other": other,
        },
        "totals": {
            "subtotal": subtotal,
            "carry_forward": carry_forward,
            "total": total,
            "paid": paid,
            "remaining": total - paid,
        },
    }


def export_ledger_csv(bill_id, actor, stream):
    """Write the bill's ledger to ``stream`` as CSV. Returns the number of rows."""
    bill = BillService.get_bill(bill_id, actor)
    writer = csv.writer(stream)
    writer.writerow(LEDGER_CSV_HEADER)

    count = 0
    for entry in bill.entries.order_by("entry_date", "sequence"):
        writer.writerow([
            timezone.localdate(entry.entry_date).isoformat(),
            entry.description,
            _cell(entry.electricity_current_reading),
            _cell(entry.electricity_rate),
            _cell(entry.electricity_units_consumed),
            _cell(entry.electricity_total),
            _cell(entry.water_bill),
            _cell(entry.rent_amount),
            _cell(entry.debit_amount),
            _cell(entry.credit_amount),
            entry.get_payment_method_display() if entry.payment_method else "",
            "Yes" if entry.verified_by_tenant else "No",
        ])
        count += 1
    return count


def _cell(value):
    return "" if value is None else str(value)
