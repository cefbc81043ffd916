"""
Balance ledger.

Every balance change goes through this module as a signed increment issued by
the store. The only blind writes are the explicit admin operations: "set" and
recalculation from policy.
"""
import enum
from datetime import date
from typing import Any, Dict, List, Optional

from hrms.core.exceptions import InsufficientBalance, InvalidAdjustment, InvalidLeaveType
from hrms.models.employee import Employee
from hrms.services.accrual import has_joined, round_days
from hrms.services.base import BaseService
from hrms.services.leave_types import COMP_OFF, is_unpaid, normalize_leave_type
from hrms.services.policy import PolicyResolver
from hrms.stores.base import LeaveStores


class AdjustmentAction(str, enum.Enum):
    SET = "set"
    ADD = "add"
    DEDUCT = "deduct"


class AdjustmentScope(str, enum.Enum):
    INDIVIDUAL = "individual"
    BULK = "bulk"
    RECALCULATE = "recalculate"


class BalanceLedger(BaseService):
    def __init__(self, stores: LeaveStores, resolver: PolicyResolver):
        super().__init__(stores)
        self.resolver = resolver

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def balances(self, employee_id: int) -> Dict[str, float]:
        return self.stores.employees.balances(employee_id)

    def available(self, employee_id: int, leave_type: str) -> float:
        return self.balances(employee_id).get(normalize_leave_type(leave_type), 0.0)

    def ensure_available(self, employee_id: int, leave_type: str, days: float):
        """Raise InsufficientBalance unless `days` can be debited. Unpaid leave always passes."""
        key = normalize_leave_type(leave_type)
        if is_unpaid(key):
            return
        available = self.available(employee_id, key)
        if available < round_days(days):
            raise InsufficientBalance(key, available, round_days(days))

    # ------------------------------------------------------------------
    # Increments
    # ------------------------------------------------------------------
    def apply_delta(self, employee_id: int, leave_type: str, delta: float) -> float:
        key = normalize_leave_type(leave_type)
        new_balance = self.stores.employees.increment(employee_id, key, round_days(delta))
        self.log_info(f"Ledger {key} {delta:+} for employee {employee_id} -> {new_balance}")
        return new_balance

    def debit(self, employee_id: int, leave_type: str, days: float) -> Optional[float]:
        key = normalize_leave_type(leave_type)
        if is_unpaid(key):
            return None
        days = round_days(days)
        if not self.stores.employees.decrement_if_available(employee_id, key, days):
            available = self.available(employee_id, key)
            self.log_warning(
                f"Debit refused for employee {employee_id}: {key} available {available}, requested {days}"
            )
            raise InsufficientBalance(key, available, days)
        new_balance = self.available(employee_id, key)
        self.log_info(f"Ledger {key} -{days} for employee {employee_id} -> {new_balance}")
        return new_balance

    def credit(self, employee_id: int, leave_type: str, days: float) -> Optional[float]:
        key = normalize_leave_type(leave_type)
        if is_unpaid(key):
            return None
        return self.apply_delta(employee_id, key, days)

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------
    def _validated_adjustment(self, leave_type: str, action: str, days: float, balance=None):
        key = normalize_leave_type(leave_type)
        if not self.resolver.is_valid_key(key, balance):
            raise InvalidLeaveType(leave_type)
        try:
            action = AdjustmentAction(action)
        except ValueError:
            raise InvalidAdjustment(f"Unknown adjustment action: {action}")
        if days is None or days < 0:
            raise InvalidAdjustment("Days must be zero or a positive number")
        return key, action, round_days(days)

    def adjust(
        self,
        employee: Employee,
        leave_type: str,
        action: str,
        days: float,
        reason: str,
        performed_by: str,
    ) -> Dict[str, Any]:
        previous = self.balances(employee.id)
        key, action, days = self._validated_adjustment(leave_type, action, days, previous)
        try:
            if action == AdjustmentAction.SET:
                self.stores.employees.set_balance(employee.id, key, days)
            elif action == AdjustmentAction.ADD:
                self.apply_delta(employee.id, key, days)
            else:
                if not self.stores.employees.decrement_if_available(employee.id, key, days):
                    raise InsufficientBalance(key, previous.get(key, 0.0), days)
            self._commit()
        except Exception:
            self.stores.uow.rollback()
            raise

        new = self.balances(employee.id)
        self.log_info(
            f"Balance adjusted: {employee.employee_id} {key} {action.value} {days} "
            f"({previous.get(key, 0.0)} -> {new.get(key, 0.0)}) by {performed_by}"
        )
        warning = self._best_effort("Adjustment log", lambda: self.stores.logs.add_adjustment_log(
            employee_id=employee.id,
            scope=AdjustmentScope.INDIVIDUAL.value,
            action_type=action.value,
            leave_type=key,
            days=days,
            reason=reason,
            performed_by=performed_by,
            previous_balance=previous,
            new_balance=new,
        ))
        return {
            "employee_id": employee.employee_id,
            "employee_name": employee.full_name,
            "leave_type": key,
            "action": action.value,
            "days": days,
            "previous_balance": previous.get(key, 0.0),
            "new_balance": new.get(key, 0.0),
            "warnings": [warning] if warning else [],
        }

    def bulk_adjust(
        self,
        leave_type: str,
        action: str,
        days: float,
        reason: str,
        performed_by: str,
    ) -> Dict[str, Any]:
        """Apply one adjustment to every active employee. Deductions clamp at zero."""
        key, action, days = self._validated_adjustment(leave_type, action, days)
        updated: List[Dict[str, Any]] = []
        errors: List[Dict[str, Any]] = []

        for employee in self.stores.employees.list_active():
            try:
                previous = self.available(employee.id, key)
                if action == AdjustmentAction.SET:
                    self.stores.employees.set_balance(employee.id, key, days)
                elif action == AdjustmentAction.ADD:
                    self.stores.employees.increment(employee.id, key, days)
                elif not self.stores.employees.decrement_if_available(employee.id, key, days):
                    self.stores.employees.set_balance(employee.id, key, 0)
                self._commit()
                updated.append({
                    "employee_id": employee.employee_id,
                    "name": employee.full_name,
                    "previous_balance": previous,
                    "new_balance": self.available(employee.id, key),
                })
            except Exception as e:
                self.stores.uow.rollback()
                self._logger.error(f"Bulk adjustment failed for {employee.employee_id}: {e}", exc_info=True)
                errors.append({"employee_id": employee.employee_id, "error": str(e)})

        self.log_info(
            f"Bulk adjustment {action.value} {days} {key} by {performed_by}: "
            f"{len(updated)} updated, {len(errors)} failed"
        )
        warning = self._best_effort("Adjustment log", lambda: self.stores.logs.add_adjustment_log(
            employee_id=None,
            scope=AdjustmentScope.BULK.value,
            action_type=action.value,
            leave_type=key,
            days=days,
            reason=reason,
            performed_by=performed_by,
            details={"updated": len(updated), "errors": errors},
        ))
        return {
            "leave_type": key,
            "action": action.value,
            "days": days,
            "processed": len(updated) + len(errors),
            "updated": updated,
            "errors": errors,
            "warnings": [warning] if warning else [],
        }

    def _reset_to_policy(self, employee: Employee, reference: date) -> Dict[str, float]:
        previous = self.balances(employee.id)
        resolved = self.resolver.resolve(employee, reference)
        for key, value in resolved.items():
            self.stores.employees.set_balance(employee.id, key, value)
        for key in previous:
            if key not in resolved and key != COMP_OFF:
                self.stores.employees.set_balance(employee.id, key, 0)
        if COMP_OFF not in previous:
            self.stores.employees.set_balance(employee.id, COMP_OFF, 0)
        return previous

    def recalculate(self, employee: Employee, reference: date, performed_by: str) -> Dict[str, Any]:
        """Reset an employee's balance to the policy entitlement as of `reference`, keeping comp_off."""
        try:
            previous = self._reset_to_policy(employee, reference)
            self._commit()
        except Exception:
            self.stores.uow.rollback()
            raise

        new = self.balances(employee.id)
        self.log_info(f"Balance recalculated for {employee.employee_id} as of {reference}: {new}")
        warning = self._best_effort("Adjustment log", lambda: self.stores.logs.add_adjustment_log(
            employee_id=employee.id,
            scope=AdjustmentScope.RECALCULATE.value,
            action_type="recalculate",
            reason=f"Recalculated from policy as of {reference.isoformat()}",
            performed_by=performed_by,
            previous_balance=previous,
            new_balance=new,
        ))
        return {
            "employee_id": employee.employee_id,
            "employee_name": employee.full_name,
            "as_of": reference.isoformat(),
            "previous_balance": previous,
            "new_balance": new,
            "warnings": [warning] if warning else [],
        }

    def recalculate_all(self, reference: date, performed_by: str) -> Dict[str, Any]:
        initialized: List[Dict[str, Any]] = []
        skipped: List[Dict[str, Any]] = []
        errors: List[Dict[str, Any]] = []

        for employee in self.stores.employees.list_active():
            if not has_joined(employee.joining_date, reference):
                skipped.append({
                    "employee_id": employee.employee_id,
                    "name": employee.full_name,
                    "reason": f"Joining date {employee.joining_date} is after {reference}",
                })
                continue
            try:
                self._reset_to_policy(employee, reference)
                self._commit()
                initialized.append({
                    "employee_id": employee.employee_id,
                    "name": employee.full_name,
                    "balance": self.balances(employee.id),
                })
            except Exception as e:
                self.stores.uow.rollback()
                self._logger.error(f"Recalculation failed for {employee.employee_id}: {e}", exc_info=True)
                errors.append({"employee_id": employee.employee_id, "error": str(e)})

        self.log_info(
            f"Recalculated {len(initialized)} employees as of {reference} "
            f"({len(skipped)} skipped, {len(errors)} failed)"
        )
        warning = self._best_effort("Adjustment log", lambda: self.stores.logs.add_adjustment_log(
            employee_id=None,
            scope=AdjustmentScope.RECALCULATE.value,
            action_type="recalculate",
            reason=f"Initialize all balances as of {reference.isoformat()}",
            performed_by=performed_by,
            details={"initialized": len(initialized), "skipped": len(skipped), "errors": errors},
        ))
        return {
            "as_of": reference.isoformat(),
            "processed": len(initialized) + len(skipped) + len(errors),
            "initialized": initialized,
            "skipped": skipped,
            "errors": errors,
            "warnings": [warning] if warning else [],
        }

    def summary(self) -> Dict[str, Any]:
        """Per leave type totals across active employees."""
        employees = self.stores.employees.list_active()
        per_type: Dict[str, List[float]] = {}
        for employee in employees:
            for key, value in self.balances(employee.id).items():
                per_type.setdefault(key, []).append(value)

        leave_types = {}
        for key, values in sorted(per_type.items()):
            leave_types[key] = {
                "total": round_days(sum(values)),
                "average": round_days(sum(values) / len(values)),
                "min": min(values),
                "max": max(values),
                "zero_balance_count": sum(1 for v in values if v <= 0),
                "employees": len(values),
            }
        return {"total_employees": len(employees), "leave_types": leave_types}
