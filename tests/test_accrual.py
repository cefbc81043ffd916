from datetime import date

import pytest

from hrms.services.accrual import (
    accrued_balance,
    annual_entitlement,
    has_joined,
    months_since_joining,
    round_days,
)
from hrms.services.leave_types import normalize_leave_type
from hrms.services.policy import resolve_balance

JOINED = date(2026, 8, 7)

def test_month_counts_only_from_joining_day():
    """Joined 7 Aug: the first month completes on 7 Sep, not the day before."""
    assert months_since_joining(JOINED, date(2026, 9, 6)) == 0
    assert months_since_joining(JOINED, date(2026, 9, 7)) == 1
    assert months_since_joining(JOINED, date(2027, 8, 7)) == 12

def test_months_never_negative_before_joining():
    assert months_since_joining(JOINED, date(2026, 1, 1)) == 0

def test_resolved_balance_after_first_month():
    assert resolve_balance(None, JOINED, date(2026, 9, 6)) == {
        "casual_leave": 0.0,
        "sick_leave": 0.0,
        "earned_leave": 0.0,
        "paid_leave": 0.0,
        "unpaid_leave": 0.0,
    }
    balance = resolve_balance(None, JOINED, date(2026, 9, 7))
    assert balance["casual_leave"] == 0.5
    assert balance["sick_leave"] == 0.5
    assert balance["earned_leave"] == 1

def test_accrual_is_monotonic_and_capped():
    previous = 0.0
    reference = JOINED
    for month in range(120):
        year, index = divmod(JOINED.month - 1 + month, 12)
        reference = date(JOINED.year + year, index + 1, JOINED.day)
        value = accrued_balance(JOINED, 0.5, 6, reference)
        assert value >= previous
        assert value <= 6
        previous = value
    assert previous == 6

def test_round_days_is_half_up():
    assert round_days(0.25) == 0.3
    assert round_days(2.25) == 2.3
    assert round_days(2.24) == 2.2
    assert round_days(None) == 0.0

def test_annual_entitlement_requires_joining():
    assert annual_entitlement(date(2027, 1, 1), 6, date(2026, 9, 1)) == 0.0
    assert annual_entitlement(date(2026, 1, 1), 6, date(2026, 9, 1)) == 6
    assert annual_entitlement(None, 6, date(2026, 9, 1)) == 6

def test_missing_joining_date_counts_as_joined():
    assert has_joined(None, date(2026, 9, 1))
    assert not has_joined(date(2026, 9, 2), date(2026, 9, 1))

@pytest.mark.parametrize("label,key", [
    ("Casual Leave", "casual_leave"),
    ("casual_leave", "casual_leave"),
    ("  SICK leave ", "sick_leave"),
    ("Comp-Off", "comp_off"),
    ("!!!", ""),
    (None, ""),
])
def test_normalize_leave_type(label, key):
    assert normalize_leave_type(label) == key
