"""
Leave policy model and resolver.

The resolver is the canonical entitlement: given a joining date it recomputes
what an employee is owed from scratch, so re-running it is always safe.
"""
import enum
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from hrms.core.exceptions import AppException
from hrms.models.employee import Employee
from hrms.services.accrual import accrued_balance, annual_entitlement, has_joined, round_days
from hrms.services.base import BaseService
from hrms.services.leave_types import COMP_OFF, KNOWN_LEAVE_TYPES, normalize_leave_type


class CreditType(str, enum.Enum):
    MONTHLY = "monthly"
    ANNUALLY = "annually"


class PolicyItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    leave_type: str
    annual_quota: float = Field(default=0, ge=0)
    credit_type: CreditType = CreditType.ANNUALLY
    monthly_credit: Optional[float] = Field(default=None, ge=0)
    advance_days_required: int = Field(default=0, ge=0)
    clubbing_not_allowed_with: List[str] = Field(default_factory=list)
    year_start_credit: Optional[float] = Field(default=None, ge=0)
    order: int = 0

    @field_validator("leave_type")
    @classmethod
    def leave_type_has_key(cls, v: str) -> str:
        if not normalize_leave_type(v):
            raise ValueError("leave_type must contain letters or digits")
        return v.strip()

    @field_validator("clubbing_not_allowed_with", mode="before")
    @classmethod
    def none_means_empty(cls, v: Any) -> Any:
        return v or []

    @computed_field
    @property
    def key(self) -> str:
        return normalize_leave_type(self.leave_type)

    @property
    def is_monthly(self) -> bool:
        return self.credit_type == CreditType.MONTHLY or (self.monthly_credit or 0) > 0

    @property
    def monthly_rate(self) -> float:
        if self.monthly_credit:
            return self.monthly_credit
        return round_days(self.annual_quota / 12)

    @property
    def cap(self) -> float:
        return self.annual_quota or round_days(self.monthly_rate * 12)

    @property
    def clubbing_keys(self) -> List[str]:
        return [normalize_leave_type(t) for t in self.clubbing_not_allowed_with if normalize_leave_type(t)]

    def to_row(self) -> Dict[str, Any]:
        return {
            "leave_type": self.leave_type,
            "key": self.key,
            "annual_quota": self.annual_quota,
            "credit_type": self.credit_type.value,
            "monthly_credit": self.monthly_credit,
            "advance_days_required": self.advance_days_required,
            "clubbing_not_allowed_with": list(self.clubbing_not_allowed_with),
            "year_start_credit": self.year_start_credit,
            "order": self.order,
        }


DEFAULT_POLICY: List[PolicyItem] = [
    PolicyItem(leave_type="Casual Leave", annual_quota=6, credit_type=CreditType.MONTHLY, monthly_credit=0.5,
               year_start_credit=6, order=1),
    PolicyItem(leave_type="Sick Leave", annual_quota=6, credit_type=CreditType.MONTHLY, monthly_credit=0.5,
               year_start_credit=0.5, order=2),
    PolicyItem(leave_type="Earned Leave", annual_quota=12, credit_type=CreditType.MONTHLY, monthly_credit=1,
               year_start_credit=0, order=3),
    PolicyItem(leave_type="Paid Leave", annual_quota=0, order=4),
    PolicyItem(leave_type="Unpaid Leave", annual_quota=0, order=5),
]


def resolve_balance(
    policy: Optional[List[PolicyItem]],
    joining_date: Optional[date],
    reference: date,
) -> Dict[str, float]:
    """Entitlement per leave type key as of `reference`. comp_off is never produced."""
    items = policy or DEFAULT_POLICY
    balance: Dict[str, float] = {}
    for item in items:
        if item.key == COMP_OFF:
            continue
        if item.is_monthly:
            if joining_date is None:
                # No joining date on file: treat as a full year of service
                balance[item.key] = round_days(item.cap)
            elif has_joined(joining_date, reference):
                balance[item.key] = accrued_balance(joining_date, item.monthly_rate, item.cap, reference)
            else:
                balance[item.key] = 0.0
        else:
            balance[item.key] = annual_entitlement(joining_date, item.annual_quota, reference)
    return balance


class PolicyResolver(BaseService):
    """Loads the active policy, falling back to DEFAULT_POLICY when none is configured."""

    def active_policy(self) -> Tuple[List[PolicyItem], bool]:
        rows = self.stores.policies.load()
        if not rows:
            return list(DEFAULT_POLICY), True
        return [PolicyItem.model_validate(row) for row in rows], False

    def items(self) -> List[PolicyItem]:
        return self.active_policy()[0]

    def item_for(self, key: str) -> Optional[PolicyItem]:
        key = normalize_leave_type(key)
        for item in self.items():
            if item.key == key:
                return item
        return None

    def is_valid_key(self, key: str, employee_balance: Optional[Dict[str, float]] = None) -> bool:
        if not key:
            return False
        if key in KNOWN_LEAVE_TYPES or (employee_balance and key in employee_balance):
            return True
        return any(item.key == key for item in self.items())

    def resolve(self, employee: Employee, reference: date) -> Dict[str, float]:
        items, is_default = self.active_policy()
        return resolve_balance(None if is_default else items, employee.joining_date, reference)

    def replace(self, items: List[PolicyItem], updated_by: str) -> List[PolicyItem]:
        keys = [item.key for item in items]
        if len(keys) != len(set(keys)):
            raise AppException("Duplicate leave types in policy", error_code="DUPLICATE_LEAVE_TYPE")
        self.stores.policies.replace([item.to_row() for item in items], updated_by)
        self._commit()
        self.log_info(f"Leave policy replaced by {updated_by} ({len(items)} items)")
        return self.items()
