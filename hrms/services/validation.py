"""
Validation gate run before an application is created.

Hard errors (unknown type, balance, clubbing) always block. Advance notice is a
soft rule: with force=True it is downgraded to a warning.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from hrms.core.exceptions import (
    AdvanceNoticeViolation,
    AppException,
    ClubbingConflict,
    InsufficientBalance,
    InvalidLeaveType,
)
from hrms.models.employee import Employee
from hrms.models.leave_application import LeaveStatus
from hrms.services.accrual import round_days
from hrms.services.base import BaseService
from hrms.services.leave_types import is_unpaid, normalize_leave_type
from hrms.services.ledger import BalanceLedger
from hrms.services.policy import PolicyItem, PolicyResolver
from hrms.stores.base import LeaveStores

ACTIVE_STATUSES = (
    LeaveStatus.PENDING.value,
    LeaveStatus.MANAGER_APPROVED.value,
    LeaveStatus.APPROVED.value,
)


def compute_days_count(dates: Sequence[date], is_half_day: bool) -> float:
    if is_half_day and len(dates) == 1:
        return 0.5
    return float(len(dates))


@dataclass
class ValidationResult:
    leave_type_key: str
    days_count: float
    policy_item: Optional[PolicyItem] = None
    warnings: List[str] = field(default_factory=list)
    errors: List[AppException] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def can_override(self) -> bool:
        return bool(self.errors) and all((e.details or {}).get("can_override") for e in self.errors)

    def raise_for_errors(self):
        if self.errors:
            raise self.errors[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "leave_type_key": self.leave_type_key,
            "days_count": self.days_count,
            "warnings": list(self.warnings),
            "errors": [e.to_dict() for e in self.errors],
            "can_override": self.can_override,
        }


class ValidationGate(BaseService):
    def __init__(self, stores: LeaveStores, resolver: PolicyResolver, ledger: BalanceLedger):
        super().__init__(stores)
        self.resolver = resolver
        self.ledger = ledger

    def validate(
        self,
        employee: Employee,
        leave_type: str,
        dates: Sequence[date],
        is_half_day: bool,
        today: date,
        force: bool = False,
        exclude_application_id: Optional[str] = None,
    ) -> ValidationResult:
        key = normalize_leave_type(leave_type)
        result = ValidationResult(leave_type_key=key, days_count=compute_days_count(dates, is_half_day))

        if not dates:
            result.errors.append(AppException("At least one date is required", error_code="NO_DATES"))
            return result

        balance = self.ledger.balances(employee.id)
        if not self.resolver.is_valid_key(key, balance):
            result.errors.append(InvalidLeaveType(leave_type))
            return result

        if not is_unpaid(key):
            available = balance.get(key, 0.0)
            if available < round_days(result.days_count):
                result.errors.append(InsufficientBalance(key, available, result.days_count))

        item = self.resolver.item_for(key)
        result.policy_item = item
        if item is None:
            return result

        self._check_advance_notice(result, item, dates, today, force)
        self._check_clubbing(result, item, employee, dates, exclude_application_id)

        if result.errors:
            self.log_warning(
                f"Leave validation failed for {employee.email}: "
                f"{', '.join(e.error_code for e in result.errors)}"
            )
        return result

    def _check_advance_notice(self, result, item: PolicyItem, dates, today: date, force: bool):
        required = item.advance_days_required
        if required <= 0:
            return
        notice = (min(dates) - today).days
        if notice >= required:
            return
        violation = AdvanceNoticeViolation(item.leave_type, required, notice)
        if force:
            result.warnings.append(violation.message)
        else:
            result.errors.append(violation)

    def _check_clubbing(self, result, item: PolicyItem, employee: Employee, dates, exclude_application_id):
        blocked = set(item.clubbing_keys)
        if not blocked:
            return
        existing = self.stores.leaves.find(employee_id=employee.id, statuses=ACTIVE_STATUSES)
        for application in existing:
            if application.id == exclude_application_id or application.leave_type_key not in blocked:
                continue
            taken = [date.fromisoformat(d) for d in application.dates]
            # Adjacent days count as clubbing, not only overlaps
            conflicts = sorted({
                d.isoformat() for d in dates
                if any(abs((d - t).days) <= 1 for t in taken)
            })
            if conflicts:
                result.errors.append(ClubbingConflict(item.leave_type, application.leave_type, conflicts))
