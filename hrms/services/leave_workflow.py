"""
Leave application state machine.

    pending --manager approve--> manager_approved --admin approve--> approved
    pending --admin approve----------------------------------------> approved
    pending | manager_approved --reject--> rejected

This is the only place that decides when the ledger is debited or refunded.
An application is "charged" while its status is manager_approved or approved
and its type is not unpaid leave; every transition, edit and delete keeps the
ledger consistent with that rule.
"""
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from hrms.core.exceptions import (
    AlreadyProcessed,
    InvalidLeaveType,
    NotAuthorized,
    NotFoundError,
    NotPending,
)
from hrms.models.employee import Employee, UserRole
from hrms.models.leave_application import (
    DEDUCTED_STATUSES,
    LeaveAction,
    LeaveApplication,
    LeaveStatus,
)
from hrms.services.audit import AuditService
from hrms.services.base import BaseService
from hrms.services.leave_types import is_unpaid, normalize_leave_type
from hrms.services.ledger import BalanceLedger
from hrms.services.notification import NotificationService
from hrms.services.policy import PolicyResolver
from hrms.services.validation import ValidationGate, compute_days_count
from hrms.stores.base import LeaveStores

EDITABLE_FIELDS = ("leave_type", "dates", "is_half_day", "half_day_period", "reason", "status")


def is_charged(status: str, leave_type_key: str) -> bool:
    return status in DEDUCTED_STATUSES and not is_unpaid(leave_type_key)


def snapshot(application: LeaveApplication) -> Dict[str, Any]:
    return {
        "leave_type": application.leave_type,
        "leave_type_key": application.leave_type_key,
        "dates": list(application.dates or []),
        "days_count": application.days_count,
        "is_half_day": application.is_half_day,
        "half_day_period": application.half_day_period,
        "reason": application.reason,
        "status": application.status,
    }


def _role(actor: Employee) -> str:
    return actor.role.value if hasattr(actor.role, "value") else str(actor.role)


class LeaveWorkflow(BaseService):
    def __init__(
        self,
        stores: LeaveStores,
        resolver: PolicyResolver,
        ledger: BalanceLedger,
        gate: ValidationGate,
        audit: AuditService,
        notifier: NotificationService,
    ):
        super().__init__(stores)
        self.resolver = resolver
        self.ledger = ledger
        self.gate = gate
        self.audit = audit
        self.notifier = notifier

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _get(self, application_id: str) -> LeaveApplication:
        application = self.stores.leaves.get(application_id)
        if not application:
            raise NotFoundError("Leave not found")
        return application

    def _approval_record(
        self,
        actor: Employee,
        action: LeaveAction,
        from_status: str,
        to_status: str,
        comments: Optional[str] = None,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        record = {
            "actor_email": actor.email,
            "actor_name": actor.full_name,
            "actor_role": _role(actor),
            "action": action.value,
            "comments": comments,
            "from_status": from_status,
            "to_status": to_status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if before is not None:
            record["before"] = before
            record["after"] = after
        return record

    def _label_for(self, key: str, fallback: str) -> str:
        item = self.resolver.item_for(key)
        return item.leave_type if item else fallback.strip()

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------
    def submit(
        self,
        employee: Employee,
        leave_type: str,
        dates: Sequence[date],
        today: date,
        is_half_day: bool = False,
        half_day_period: Optional[str] = None,
        reason: Optional[str] = None,
        force: bool = False,
    ) -> Tuple[LeaveApplication, List[str]]:
        dates = sorted(set(dates))
        result = self.gate.validate(employee, leave_type, dates, is_half_day, today, force=force)
        result.raise_for_errors()

        item = result.policy_item
        application = LeaveApplication(
            employee_id=employee.id,
            employee_email=employee.email,
            employee_name=employee.full_name,
            manager_email=employee.manager_email,
            leave_type=item.leave_type if item else leave_type.strip(),
            leave_type_key=result.leave_type_key,
            dates=[d.isoformat() for d in dates],
            days_count=result.days_count,
            is_half_day=is_half_day,
            half_day_period=half_day_period if is_half_day else None,
            reason=reason,
            status=LeaveStatus.PENDING.value,
            approvals=[],
            policy_snapshot=item.model_dump(mode="json") if item else None,
            warnings=list(result.warnings),
        )
        try:
            self.stores.leaves.add(application)
            self._commit()
        except Exception:
            self.stores.uow.rollback()
            raise

        self.log_info(
            f"Leave {application.id} submitted by {employee.email}: "
            f"{application.days_count} day(s) of {application.leave_type_key}"
        )
        self.notifier.notify_user(
            employee.manager_email,
            "New Leave Application",
            f"{employee.full_name} applied for {application.days_count} day(s) of {application.leave_type}.",
            "info",
        )
        return application, list(result.warnings)

    # ------------------------------------------------------------------
    # Approve / reject
    # ------------------------------------------------------------------
    def act(
        self,
        application_id: str,
        actor: Employee,
        action: str,
        comments: Optional[str] = None,
    ) -> LeaveApplication:
        action = LeaveAction(action)
        if action == LeaveAction.EDITED:
            raise NotAuthorized("Use the edit operation to change an application")
        approve = action == LeaveAction.APPROVE
        application = self._get(application_id)
        old_status = application.status

        if actor.role == UserRole.MANAGER:
            if old_status != LeaveStatus.PENDING.value:
                raise NotPending(old_status)
            if application.manager_email != actor.email:
                raise NotAuthorized("Not your team member")
            new_status = LeaveStatus.MANAGER_APPROVED.value if approve else LeaveStatus.REJECTED.value
        elif actor.role == UserRole.ADMIN:
            if old_status not in (LeaveStatus.PENDING.value, LeaveStatus.MANAGER_APPROVED.value):
                raise AlreadyProcessed(old_status)
            new_status = LeaveStatus.APPROVED.value if approve else LeaveStatus.REJECTED.value
        else:
            raise NotAuthorized()

        key, days = application.leave_type_key, application.days_count
        try:
            if old_status == LeaveStatus.PENDING.value and is_charged(new_status, key):
                # Only the first approval debits; manager_approved -> approved does not
                self.ledger.debit(application.employee_id, key, days)
            elif is_charged(old_status, key) and not is_charged(new_status, key):
                self.ledger.credit(application.employee_id, key, days)

            application.approvals = list(application.approvals or []) + [
                self._approval_record(actor, action, old_status, new_status, comments)
            ]
            application.status = new_status
            self._commit()
        except Exception:
            self.stores.uow.rollback()
            raise

        self.log_info(f"Leave {application_id} {old_status} -> {new_status} by {actor.email}")
        self._notify_decision(application, new_status, comments)
        return application

    def _notify_decision(self, application: LeaveApplication, status: str, comments: Optional[str]):
        if status == LeaveStatus.MANAGER_APPROVED.value:
            title, message, kind = (
                "Leave Approved by Manager",
                f"Your {application.leave_type} request for {application.days_count} day(s) was approved "
                f"by your manager and is awaiting final approval.",
                "info",
            )
        elif status == LeaveStatus.APPROVED.value:
            title, message, kind = (
                "Leave Approved",
                f"Your {application.leave_type} request for {application.days_count} day(s) has been APPROVED.",
                "success",
            )
        else:
            title, message, kind = (
                "Leave Rejected",
                f"Your {application.leave_type} request has been REJECTED. Reason: {comments or 'not given'}",
                "error",
            )
        self.notifier.notify_user(application.employee_email, title, message, kind)

    # ------------------------------------------------------------------
    # Admin edit
    # ------------------------------------------------------------------
    def edit(self, application_id: str, actor: Employee, changes: Dict[str, Any]) -> Tuple[LeaveApplication, List[str]]:
        if actor.role != UserRole.ADMIN:
            raise NotAuthorized("Only admins can edit leave applications")
        application = self._get(application_id)
        before = snapshot(application)

        after = dict(before)
        for field_name in EDITABLE_FIELDS:
            if field_name not in changes:
                continue
            value = changes[field_name]
            if value is None and field_name != "half_day_period":
                continue
            if field_name == "dates":
                value = [d.isoformat() if hasattr(d, "isoformat") else d for d in sorted(set(value))]
            elif field_name == "status":
                value = LeaveStatus(value).value
            after[field_name] = value

        if after["leave_type"] != before["leave_type"]:
            key = normalize_leave_type(after["leave_type"])
            if not self.resolver.is_valid_key(key, self.ledger.balances(application.employee_id)):
                raise InvalidLeaveType(after["leave_type"])
            after["leave_type_key"] = key
            after["leave_type"] = self._label_for(key, after["leave_type"])
        if not after["is_half_day"]:
            after["half_day_period"] = None
        after["days_count"] = compute_days_count(after["dates"], after["is_half_day"])

        changed = [k for k in after if after[k] != before[k]]
        if not changed:
            return application, []

        old_key, new_key = before["leave_type_key"], after["leave_type_key"]
        old_days, new_days = before["days_count"], after["days_count"]
        was = is_charged(before["status"], old_key)
        will = is_charged(after["status"], new_key)
        employee_id = application.employee_id

        try:
            if was and not will:
                self.ledger.credit(employee_id, old_key, old_days)
            elif was and will and new_key != old_key:
                self.ledger.ensure_available(employee_id, new_key, new_days)
                self.ledger.credit(employee_id, old_key, old_days)
                self.ledger.debit(employee_id, new_key, new_days)
            elif was and will and new_days != old_days:
                delta = old_days - new_days
                if delta < 0:
                    self.ledger.debit(employee_id, new_key, -delta)
                else:
                    self.ledger.credit(employee_id, new_key, delta)
            elif will and not was:
                self.ledger.debit(employee_id, new_key, new_days)

            for field_name in ("leave_type", "leave_type_key", "dates", "days_count",
                               "is_half_day", "half_day_period", "reason", "status"):
                setattr(application, field_name, after[field_name])
            application.approvals = list(application.approvals or []) + [
                self._approval_record(
                    actor, LeaveAction.EDITED, before["status"], after["status"],
                    changes.get("comments"),
                    before={k: before[k] for k in changed},
                    after={k: after[k] for k in changed},
                )
            ]
            self._commit()
        except Exception:
            self.stores.uow.rollback()
            raise

        self.log_info(f"Leave {application_id} edited by {actor.email}: {', '.join(changed)}")
        warnings = []
        warning = self.audit.log_action(
            action="edit_leave",
            entity_type="leave_application",
            entity_id=application_id,
            actor_email=actor.email,
            actor_role=_role(actor),
            details={"changed_fields": changed, "employee_email": application.employee_email},
            before_state=before,
            after_state=after,
        )
        if warning:
            warnings.append(warning)
        self.notifier.notify_user(
            application.employee_email,
            "Leave Updated",
            f"Your {application.leave_type} application was updated by an administrator.",
            "info",
        )
        return application, warnings

    # ------------------------------------------------------------------
    # Admin delete
    # ------------------------------------------------------------------
    def delete(self, application_id: str, actor: Employee) -> Dict[str, Any]:
        if actor.role != UserRole.ADMIN:
            raise NotAuthorized("Only admins can delete leave applications")
        application = self._get(application_id)
        before = snapshot(application)
        employee_email = application.employee_email
        refunded = 0.0

        try:
            if is_charged(application.status, application.leave_type_key):
                self.ledger.credit(application.employee_id, application.leave_type_key, application.days_count)
                refunded = application.days_count
            self.stores.leaves.delete(application)
            self._commit()
        except Exception:
            self.stores.uow.rollback()
            raise

        self.log_info(f"Leave {application_id} deleted by {actor.email} (refunded {refunded})")
        warnings = []
        warning = self.audit.log_action(
            action="delete_leave",
            entity_type="leave_application",
            entity_id=application_id,
            actor_email=actor.email,
            actor_role=_role(actor),
            details={"employee_email": employee_email, "refunded_days": refunded},
            before_state=before,
        )
        if warning:
            warnings.append(warning)
        return {
            "id": application_id,
            "deleted": True,
            "leave_type": before["leave_type_key"],
            "refunded_days": refunded,
            "warnings": warnings,
        }

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get(self, application_id: str, actor: Employee) -> LeaveApplication:
        application = self._get(application_id)
        if actor.role == UserRole.ADMIN:
            return application
        if application.employee_id == actor.id or application.manager_email == actor.email:
            return application
        raise NotAuthorized("Not authorized to view this leave")

    def my_applications(self, actor: Employee) -> List[LeaveApplication]:
        return self.stores.leaves.find(employee_id=actor.id)

    def pending_for(self, actor: Employee) -> List[LeaveApplication]:
        if actor.role == UserRole.ADMIN:
            return self.stores.leaves.find(
                statuses=(LeaveStatus.PENDING.value, LeaveStatus.MANAGER_APPROVED.value)
            )
        if actor.role == UserRole.MANAGER:
            return self.stores.leaves.find(manager_email=actor.email, statuses=(LeaveStatus.PENDING.value,))
        raise NotAuthorized()

    def all_applications(
        self,
        actor: Employee,
        status: Optional[str] = None,
        employee_code: Optional[str] = None,
        leave_type: Optional[str] = None,
    ) -> List[LeaveApplication]:
        if actor.role != UserRole.ADMIN:
            raise NotAuthorized()
        employee_id = None
        if employee_code:
            employee = self.stores.employees.get_by_code(employee_code)
            if not employee:
                return []
            employee_id = employee.id
        return self.stores.leaves.find(
            employee_id=employee_id,
            statuses=(status,) if status else None,
            leave_type_key=normalize_leave_type(leave_type) if leave_type else None,
        )
