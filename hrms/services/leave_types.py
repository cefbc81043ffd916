import re
from typing import Any

UNPAID_LEAVE = "unpaid_leave"
COMP_OFF = "comp_off"

CASUAL_LEAVE = "casual_leave"
SICK_LEAVE = "sick_leave"
EARNED_LEAVE = "earned_leave"
PAID_LEAVE = "paid_leave"

KNOWN_LEAVE_TYPES = frozenset({
    CASUAL_LEAVE, SICK_LEAVE, EARNED_LEAVE, PAID_LEAVE, UNPAID_LEAVE, COMP_OFF,
})

_SEPARATORS = re.compile(r"[^a-z0-9]+")


def normalize_leave_type(label: Any) -> str:
    """
    Single normalization for leave type labels and keys.

    "Casual Leave" -> "casual_leave", "Comp-Off" -> "comp_off", "sick_leave" -> "sick_leave".
    Returns "" for anything without letters or digits.
    """
    if label is None:
        return ""
    return _SEPARATORS.sub("_", str(label).strip().lower()).strip("_")


def is_unpaid(key: str) -> bool:
    return key == UNPAID_LEAVE
