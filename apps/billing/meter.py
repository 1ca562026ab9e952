"""
Electricity meter arithmetic.

A ledger entry carries the meter's current reading and the per-unit rate; the
previous reading comes from the latest earlier reading in the same bill.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from apps.core.money import quantize_money


@dataclass(frozen=True)
class MeterReading:
    previous_reading: Optional[int] = None
    current_reading: Optional[int] = None
    rate: Optional[Decimal] = None
    units_consumed: Optional[int] = None
    total: Optional[Decimal] = None

    @property
    def is_empty(self):
        return self.total is None


def calculate(current_reading, rate, previous_reading=0) -> MeterReading:
    """
    Derive units and cost from a reading.

    Partial data is not partially computed: without both a current reading and
    a rate, every derived field is None (the inputs are kept as given). A
    reading below the previous one counts as zero consumption.
    """
    if current_reading is None or rate is None:
        return MeterReading(current_reading=current_reading, rate=rate)

    previous_reading = previous_reading or 0
    units = max(current_reading - previous_reading, 0)
    return MeterReading(
        previous_reading=previous_reading,
        current_reading=current_reading,
        rate=rate,
        units_consumed=units,
        total=quantize_money(units * rate),
    )


def find_previous_reading(bill, exclude_entry=None) -> int:
    """
    Latest meter reading recorded in ``bill`` before the entry being written.

    Ordered by entry date, then creation sequence as the tie-break. When an
    existing entry is being edited, only entries created before it count, so
    an edit reproduces the reading its creation saw.
    """
    entries = bill.entries.filter(electricity_current_reading__isnull=False)
    if exclude_entry is not None:
        entries = entries.exclude(pk=exclude_entry.pk).filter(sequence__lt=exclude_entry.sequence)
    latest = entries.order_by("-entry_date", "-sequence").first()
    return latest.electricity_current_reading if latest else 0


def debit_for(electricity_total, water_bill, rent_amount) -> Optional[Decimal]:
    """Sum of the charge fields present on an entry, or None if there are none."""
    charges = [c for c in (electricity_total, water_bill, rent_amount) if c is not None]
    if not charges:
        return None
    return quantize_money(sum(charges, Decimal("0")))
