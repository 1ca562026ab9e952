from decimal import Decimal

import pytest

from apps.billing import meter


def test_units_and_total_from_previous_reading():
    reading = meter.calculate(1250, Decimal("8.5"), previous_reading=1000)
    assert reading.units_consumed == 250
    assert reading.total == Decimal("2125.00")
    assert reading.previous_reading == 1000


def test_first_reading_counts_from_zero():
    reading = meter.calculate(120, Decimal("2"))
    assert reading.previous_reading == 0
    assert reading.units_consumed == 120
    assert reading.total == Decimal("240.00")


def test_rollover_clamps_to_zero():
    reading = meter.calculate(900, Decimal("8"), previous_reading=1000)
    assert reading.units_consumed == 0
    assert reading.total == Decimal("0.00")


@pytest.mark.parametrize("current, rate", [(1200, None), (None, Decimal("8"))])
def test_partial_data_derives_nothing(current, rate):
    reading = meter.calculate(current, rate, previous_reading=1000)
    assert reading.is_empty
    assert reading.units_consumed is None
    assert reading.previous_reading is None
    assert reading.current_reading == current


def test_debit_is_sum_of_present_charges():
    assert meter.debit_for(Decimal("200"), None, Decimal("1000")) == Decimal("1200.00")
    assert meter.debit_for(None, None, None) is None


@pytest.mark.django_db
def test_previous_reading_uses_latest_by_date_then_sequence(add_entry, now):
    from datetime import timedelta

    first = add_entry(at=now, electricity_current_reading=100, electricity_rate="1")
    add_entry(at=now, electricity_current_reading=150, electricity_rate="1")
    assert meter.find_previous_reading(first.bill) == 150
    assert meter.find_previous_reading(first.bill, exclude_entry=first) == 0

    later = add_entry(at=now + timedelta(hours=1), electricity_current_reading=170, electricity_rate="1")
    assert later.electricity_previous_reading == 150
    assert later.electricity_units_consumed == 20


def test_twenty_units_at_eight():
    reading = meter.calculate(120, Decimal("8"), previous_reading=100)
    assert reading.units_consumed == 20
    assert reading.total == Decimal("160.00")
