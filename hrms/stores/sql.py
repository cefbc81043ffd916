"""
SQLAlchemy implementation of the leave engine stores.

Balance mutations are issued as single UPDATE statements computing the new value
inside the database, so two concurrent requests can never overwrite each other.
"""
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import case
from sqlalchemy.orm import Session

from hrms.models.audit_log import AuditLog
from hrms.models.employee import Employee
from hrms.models.leave_application import LeaveApplication
from hrms.models.leave_balance import LeaveBalance
from hrms.models.leave_policy import LeavePolicy
from hrms.models.ledger_log import LeaveCreditLog, LeaveAdjustmentLog
from hrms.models.notification import Notification
from hrms.services.accrual import round_days
from hrms.stores.base import LeaveStores

# Balances carry one decimal; comparisons tolerate float storage noise below that.
HALF_STEP = 0.05


class SqlEmployeeStore:
    def __init__(self, db: Session):
        self.db = db

    def get_by_code(self, code: str) -> Optional[Employee]:
        return self.db.query(Employee).filter(Employee.employee_id == code).first()

    def list_active(self) -> List[Employee]:
        return self.db.query(Employee).filter(Employee.is_active.is_(True)).order_by(Employee.id).all()

    def balances(self, employee_id: int) -> Dict[str, float]:
        rows = self.db.query(LeaveBalance.leave_type, LeaveBalance.balance).filter(
            LeaveBalance.employee_id == employee_id
        ).all()
        return {leave_type: round_days(value) for leave_type, value in rows}

    def _account(self, employee_id: int, leave_type: str):
        return self.db.query(LeaveBalance).filter(
            LeaveBalance.employee_id == employee_id,
            LeaveBalance.leave_type == leave_type,
        )

    def _read(self, employee_id: int, leave_type: str) -> float:
        value = self.db.query(LeaveBalance.balance).filter(
            LeaveBalance.employee_id == employee_id,
            LeaveBalance.leave_type == leave_type,
        ).scalar()
        return round_days(value)

    def _open(self, employee_id: int, leave_type: str, value: float) -> float:
        self.db.add(LeaveBalance(employee_id=employee_id, leave_type=leave_type, balance=round_days(value)))
        self.db.flush()
        return round_days(value)

    def increment(self, employee_id: int, leave_type: str, delta: float) -> float:
        delta = round_days(delta)
        updated = self._account(employee_id, leave_type).update(
            {LeaveBalance.balance: LeaveBalance.balance + delta},
            synchronize_session=False,
        )
        if not updated:
            return self._open(employee_id, leave_type, delta)
        return self._read(employee_id, leave_type)

    def decrement_if_available(self, employee_id: int, leave_type: str, days: float) -> bool:
        updated = self._account(employee_id, leave_type).filter(
            LeaveBalance.balance >= days - HALF_STEP
        ).update(
            {LeaveBalance.balance: LeaveBalance.balance - days},
            synchronize_session=False,
        )
        return updated > 0

    def increment_capped(self, employee_id: int, leave_type: str, credit: float, cap: float) -> float:
        credit, cap = round_days(credit), round_days(cap)
        credited = LeaveBalance.balance + credit
        updated = self._account(employee_id, leave_type).update(
            {
                LeaveBalance.balance: case(
                    (LeaveBalance.balance >= cap, LeaveBalance.balance),
                    (credited > cap, cap),
                    else_=credited,
                )
            },
            synchronize_session=False,
        )
        if not updated:
            return self._open(employee_id, leave_type, min(credit, cap))
        return self._read(employee_id, leave_type)

    def set_balance(self, employee_id: int, leave_type: str, value: float) -> float:
        updated = self._account(employee_id, leave_type).update(
            {LeaveBalance.balance: round_days(value)},
            synchronize_session=False,
        )
        if not updated:
            return self._open(employee_id, leave_type, value)
        return round_days(value)

    def mark_credited(self, employee_id: int, year: int, month: int) -> None:
        self.db.query(Employee).filter(Employee.id == employee_id).update(
            {Employee.last_credit_year: year, Employee.last_credit_month: month},
            synchronize_session=False,
        )


class SqlLeaveStore:
    def __init__(self, db: Session):
        self.db = db

    def add(self, application: LeaveApplication) -> LeaveApplication:
        self.db.add(application)
        self.db.flush()
        return application

    def get(self, application_id: str) -> Optional[LeaveApplication]:
        return self.db.query(LeaveApplication).filter(LeaveApplication.id == application_id).first()

    def delete(self, application: LeaveApplication) -> None:
        self.db.delete(application)
        self.db.flush()

    def find(
        self,
        employee_id: Optional[int] = None,
        manager_email: Optional[str] = None,
        statuses: Optional[Iterable[str]] = None,
        leave_type_key: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[LeaveApplication]:
        query = self.db.query(LeaveApplication)
        if employee_id is not None:
            query = query.filter(LeaveApplication.employee_id == employee_id)
        if manager_email:
            query = query.filter(LeaveApplication.manager_email == manager_email)
        if statuses is not None:
            query = query.filter(LeaveApplication.status.in_(list(statuses)))
        if leave_type_key:
            query = query.filter(LeaveApplication.leave_type_key == leave_type_key)
        query = query.order_by(LeaveApplication.created_at.desc())
        if limit:
            query = query.limit(limit)
        return query.all()


class SqlPolicyStore:
    def __init__(self, db: Session):
        self.db = db

    def load(self) -> List[LeavePolicy]:
        return self.db.query(LeavePolicy).order_by(LeavePolicy.order, LeavePolicy.id).all()

    def replace(self, items: List[Dict[str, Any]], updated_by: str) -> List[LeavePolicy]:
        self.db.query(LeavePolicy).delete(synchronize_session=False)
        rows = [LeavePolicy(updated_by=updated_by, **item) for item in items]
        self.db.add_all(rows)
        self.db.flush()
        return rows


class SqlLogStore:
    def __init__(self, db: Session):
        self.db = db

    def _add(self, row):
        self.db.add(row)
        self.db.flush()
        return row

    def add_credit_log(self, **fields: Any) -> LeaveCreditLog:
        return self._add(LeaveCreditLog(**fields))

    def add_adjustment_log(self, **fields: Any) -> LeaveAdjustmentLog:
        return self._add(LeaveAdjustmentLog(**fields))

    def add_audit(self, **fields: Any) -> AuditLog:
        return self._add(AuditLog(**fields))

    def add_notification(self, **fields: Any) -> Notification:
        return self._add(Notification(**fields))

    def credit_logs(
        self,
        employee_id: Optional[int] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
        limit: int = 100,
    ) -> List[LeaveCreditLog]:
        query = self.db.query(LeaveCreditLog)
        if employee_id is not None:
            query = query.filter(LeaveCreditLog.employee_id == employee_id)
        if month is not None:
            query = query.filter(LeaveCreditLog.credit_month == month)
        if year is not None:
            query = query.filter(LeaveCreditLog.credit_year == year)
        return query.order_by(LeaveCreditLog.id.desc()).limit(limit).all()

    def adjustment_logs(
        self,
        employee_id: Optional[int] = None,
        scope: Optional[str] = None,
        limit: int = 100,
    ) -> List[LeaveAdjustmentLog]:
        query = self.db.query(LeaveAdjustmentLog)
        if employee_id is not None:
            query = query.filter(LeaveAdjustmentLog.employee_id == employee_id)
        if scope:
            query = query.filter(LeaveAdjustmentLog.scope == scope)
        return query.order_by(LeaveAdjustmentLog.id.desc()).limit(limit).all()


class SqlUnitOfWork:
    def __init__(self, db: Session):
        self.db = db

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()


def sql_stores(db: Session) -> LeaveStores:
    """Bundle the SQLAlchemy stores around one session."""
    return LeaveStores(
        employees=SqlEmployeeStore(db),
        leaves=SqlLeaveStore(db),
        policies=SqlPolicyStore(db),
        logs=SqlLogStore(db),
        uow=SqlUnitOfWork(db),
    )
