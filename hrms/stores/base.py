"""
Store interfaces consumed by the leave engine.

The engine never touches a session directly; it is handed a LeaveStores bundle
built for the current request (or job run). hrms.stores.sql provides the
SQLAlchemy implementation.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Protocol

from hrms.models.employee import Employee
from hrms.models.leave_application import LeaveApplication
from hrms.models.leave_policy import LeavePolicy
from hrms.models.ledger_log import LeaveCreditLog, LeaveAdjustmentLog


class EmployeeStore(Protocol):
    def get_by_code(self, code: str) -> Optional[Employee]: ...

    def list_active(self) -> List[Employee]: ...

    def balances(self, employee_id: int) -> Dict[str, float]: ...

    def increment(self, employee_id: int, leave_type: str, delta: float) -> float:
        """Atomically add a signed delta, creating the account if missing."""
        ...

    def decrement_if_available(self, employee_id: int, leave_type: str, days: float) -> bool:
        """Atomically subtract `days` only when the balance covers them."""
        ...

    def increment_capped(self, employee_id: int, leave_type: str, credit: float, cap: float) -> float: ...

    def set_balance(self, employee_id: int, leave_type: str, value: float) -> float: ...

    def mark_credited(self, employee_id: int, year: int, month: int) -> None: ...


class LeaveStore(Protocol):
    def add(self, application: LeaveApplication) -> LeaveApplication: ...

    def get(self, application_id: str) -> Optional[LeaveApplication]: ...

    def delete(self, application: LeaveApplication) -> None: ...

    def find(
        self,
        employee_id: Optional[int] = None,
        manager_email: Optional[str] = None,
        statuses: Optional[Iterable[str]] = None,
        leave_type_key: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[LeaveApplication]: ...


class PolicyStore(Protocol):
    def load(self) -> List[LeavePolicy]: ...

    def replace(self, items: List[Dict[str, Any]], updated_by: str) -> List[LeavePolicy]: ...


class LogStore(Protocol):
    def add_credit_log(self, **fields: Any) -> LeaveCreditLog: ...

    def add_adjustment_log(self, **fields: Any) -> LeaveAdjustmentLog: ...

    def add_audit(self, **fields: Any) -> Any: ...

    def add_notification(self, **fields: Any) -> Any: ...

    def credit_logs(
        self,
        employee_id: Optional[int] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
        limit: int = 100,
    ) -> List[LeaveCreditLog]: ...

    def adjustment_logs(
        self,
        employee_id: Optional[int] = None,
        scope: Optional[str] = None,
        limit: int = 100,
    ) -> List[LeaveAdjustmentLog]: ...


class UnitOfWork(Protocol):
    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass
class LeaveStores:
    employees: EmployeeStore
    leaves: LeaveStore
    policies: PolicyStore
    logs: LogStore
    uow: UnitOfWork
