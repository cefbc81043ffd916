"""
Accrual calculator.

Pure functions turning a joining date and a credit rate into an entitlement as
of a reference date. No I/O: the policy resolver and the credit job call in here.
"""
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

_ONE_DECIMAL = Decimal("0.1")


def round_days(value: Optional[float]) -> float:
    """Round a day count half-up to one decimal (2.25 -> 2.3, never banker's rounding)."""
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def has_joined(joining_date: Optional[date], reference: date) -> bool:
    # Employees without a joining date on file are treated as long-standing
    return joining_date is None or joining_date <= reference


def months_since_joining(joining_date: date, reference: date) -> int:
    """
    Whole months completed between joining and reference.

    A month only counts once its day-of-month has been reached:
    joined 2026-08-07 -> 0 on 2026-09-06, 1 on 2026-09-07.
    """
    months = (reference.year - joining_date.year) * 12 + (reference.month - joining_date.month)
    if reference.day < joining_date.day:
        months -= 1
    return max(months, 0)


def accrued_balance(joining_date: date, monthly_credit: float, cap: float, reference: date) -> float:
    months = months_since_joining(joining_date, reference)
    return min(round_days(months * monthly_credit), cap)


def annual_entitlement(joining_date: Optional[date], annual_quota: float, reference: date) -> float:
    """Annual types are granted in full once the employee has joined."""
    if not has_joined(joining_date, reference):
        return 0.0
    return round_days(annual_quota)
