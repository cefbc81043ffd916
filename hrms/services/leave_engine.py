"""
LeaveEngine: the single entry point used by routers and the scheduler.

It wires the services around one LeaveStores bundle and an injectable clock,
so tests can pin "today" without patching datetime.
"""
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from hrms.core.exceptions import NotFoundError
from hrms.models.employee import Employee
from hrms.models.leave_application import LeaveApplication
from hrms.services.audit import AuditService
from hrms.services.credit_job import CreditRule, MonthlyCreditJob
from hrms.services.leave_workflow import LeaveWorkflow
from hrms.services.ledger import BalanceLedger
from hrms.services.notification import NotificationService
from hrms.services.policy import PolicyItem, PolicyResolver
from hrms.services.validation import ValidationGate, ValidationResult
from hrms.stores.base import LeaveStores


class LeaveEngine:
    def __init__(self, stores: LeaveStores, clock: Callable[[], date] = date.today):
        self.stores = stores
        self.clock = clock
        self.policies = PolicyResolver(stores)
        self.ledger = BalanceLedger(stores, self.policies)
        self.gate = ValidationGate(stores, self.policies, self.ledger)
        self.audit = AuditService(stores)
        self.notifications = NotificationService(stores)
        self.workflow = LeaveWorkflow(
            stores, self.policies, self.ledger, self.gate, self.audit, self.notifications
        )
        self.credit_job = MonthlyCreditJob(stores, self.policies)

    def today(self) -> date:
        return self.clock()

    # --- employees -------------------------------------------------------
    def employee_by_code(self, code: str) -> Employee:
        employee = self.stores.employees.get_by_code(code)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    # --- applications ----------------------------------------------------
    def validate_application(
        self,
        employee: Employee,
        leave_type: str,
        dates: Sequence[date],
        is_half_day: bool = False,
        force: bool = False,
    ) -> ValidationResult:
        return self.gate.validate(employee, leave_type, sorted(set(dates)), is_half_day, self.today(), force=force)

    def submit_application(
        self,
        employee: Employee,
        leave_type: str,
        dates: Sequence[date],
        is_half_day: bool = False,
        half_day_period: Optional[str] = None,
        reason: Optional[str] = None,
        force: bool = False,
    ) -> Tuple[LeaveApplication, List[str]]:
        return self.workflow.submit(
            employee, leave_type, dates, self.today(),
            is_half_day=is_half_day, half_day_period=half_day_period, reason=reason, force=force,
        )

    def act_on_application(
        self, application_id: str, actor: Employee, action: str, comments: Optional[str] = None
    ) -> LeaveApplication:
        return self.workflow.act(application_id, actor, action, comments)

    def edit_application(
        self, application_id: str, actor: Employee, changes: Dict[str, Any]
    ) -> Tuple[LeaveApplication, List[str]]:
        return self.workflow.edit(application_id, actor, changes)

    def delete_application(self, application_id: str, actor: Employee) -> Dict[str, Any]:
        return self.workflow.delete(application_id, actor)

    def get_application(self, application_id: str, actor: Employee) -> LeaveApplication:
        return self.workflow.get(application_id, actor)

    def my_applications(self, actor: Employee) -> List[LeaveApplication]:
        return self.workflow.my_applications(actor)

    def pending_applications(self, actor: Employee) -> List[LeaveApplication]:
        return self.workflow.pending_for(actor)

    def all_applications(self, actor: Employee, **filters: Any) -> List[LeaveApplication]:
        return self.workflow.all_applications(actor, **filters)

    # --- balances --------------------------------------------------------
    def balance_for(self, employee: Employee) -> Dict[str, float]:
        return self.ledger.balances(employee.id)

    def recalculate_balance(
        self, employee: Employee, performed_by: str, as_of: Optional[date] = None
    ) -> Dict[str, Any]:
        return self.ledger.recalculate(employee, as_of or self.today(), performed_by)

    def recalculate_all(self, performed_by: str, as_of: Optional[date] = None) -> Dict[str, Any]:
        return self.ledger.recalculate_all(as_of or self.today(), performed_by)

    def adjust_balance(
        self, employee: Employee, leave_type: str, action: str, days: float, reason: str, performed_by: str
    ) -> Dict[str, Any]:
        return self.ledger.adjust(employee, leave_type, action, days, reason, performed_by)

    def bulk_adjust(
        self, leave_type: str, action: str, days: float, reason: str, performed_by: str
    ) -> Dict[str, Any]:
        return self.ledger.bulk_adjust(leave_type, action, days, reason, performed_by)

    def balance_summary(self) -> Dict[str, Any]:
        return self.ledger.summary()

    # --- policy ----------------------------------------------------------
    def get_policy(self) -> Tuple[List[PolicyItem], bool]:
        return self.policies.active_policy()

    def replace_policy(self, items: List[PolicyItem], performed_by: str) -> List[PolicyItem]:
        return self.policies.replace(items, performed_by)

    # --- monthly credit --------------------------------------------------
    def credit_rules(self) -> List[CreditRule]:
        return self.credit_job.rules()

    def run_monthly_credit(self, credit_date: Optional[date] = None, force: bool = False) -> Dict[str, Any]:
        return self.credit_job.run(credit_date or self.today(), force=force)

    def simulate_credit(self, employee: Employee, target_date: date) -> Dict[str, Any]:
        return self.credit_job.simulate(employee, target_date, self.today())

    def credit_logs(self, **filters: Any):
        return self.stores.logs.credit_logs(**filters)

    def adjustment_logs(self, **filters: Any):
        return self.stores.logs.adjustment_logs(**filters)

