"""
Monthly leave credit job.

Runs on the 1st of every month:
  - January: annual types reset to their quota, monthly types reset to their
    year-start credit (sick leave 0.5, earned leave 0)
  - Other months: monthly types gain their credit, capped at the maximum
  - comp_off is never touched

Each employee carries the year/month it was last credited for, so re-running
the job for the same month skips everyone already credited unless forced.
"""
from datetime import date
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel

from hrms.models.employee import Employee
from hrms.services.accrual import has_joined, round_days
from hrms.services.base import BaseService
from hrms.services.leave_types import CASUAL_LEAVE, COMP_OFF, EARNED_LEAVE, SICK_LEAVE, is_unpaid
from hrms.services.policy import CreditType, PolicyItem, PolicyResolver
from hrms.stores.base import LeaveStores


class CreditRule(BaseModel):
    leave_type: str
    credit_type: CreditType
    credit: float
    max_balance: float
    year_start_credit: float = 0

    def describe(self) -> str:
        if self.credit_type == CreditType.ANNUALLY:
            return f"{self.credit} days on January 1st (no carry forward)"
        return (
            f"+{self.credit} days monthly, max {self.max_balance}, "
            f"resets to {self.year_start_credit} on January 1st"
        )


CREDIT_RULES: List[CreditRule] = [
    CreditRule(leave_type=CASUAL_LEAVE, credit_type=CreditType.ANNUALLY, credit=6, max_balance=6),
    CreditRule(leave_type=SICK_LEAVE, credit_type=CreditType.MONTHLY, credit=0.5, max_balance=6,
               year_start_credit=0.5),
    CreditRule(leave_type=EARNED_LEAVE, credit_type=CreditType.MONTHLY, credit=1, max_balance=12,
               year_start_credit=0),
]


def year_start_value(item: PolicyItem) -> float:
    """January reset for a policy item; an explicit year_start_credit wins."""
    if item.year_start_credit is not None:
        return item.year_start_credit
    if item.key == CASUAL_LEAVE:
        return item.cap
    if item.key == EARNED_LEAVE:
        return 0
    return item.monthly_rate


def rules_from_policy(items: List[PolicyItem]) -> List[CreditRule]:
    rules = []
    for item in items:
        if item.key == COMP_OFF or is_unpaid(item.key):
            continue
        if item.is_monthly:
            cap = round_days(item.cap)
            if cap <= 0:
                continue
            reset = round_days(year_start_value(item))
            # Resetting to the full quota leaves nothing to accrue during the year
            if reset >= cap:
                rules.append(CreditRule(
                    leave_type=item.key,
                    credit_type=CreditType.ANNUALLY,
                    credit=cap,
                    max_balance=cap,
                ))
                continue
            rules.append(CreditRule(
                leave_type=item.key,
                credit_type=CreditType.MONTHLY,
                credit=round_days(item.monthly_rate),
                max_balance=cap,
                year_start_credit=reset,
            ))
        elif item.annual_quota > 0:
            rules.append(CreditRule(
                leave_type=item.key,
                credit_type=CreditType.ANNUALLY,
                credit=round_days(item.annual_quota),
                max_balance=round_days(item.annual_quota),
            ))
    return rules


def apply_rules(balance: Dict[str, float], rules: List[CreditRule], is_january: bool) -> Tuple[Dict[str, float], List[str]]:
    """Pure version of one credit run over a balance map; used for simulation."""
    balance = dict(balance)
    applied = []
    for rule in rules:
        if is_january:
            value = rule.credit if rule.credit_type == CreditType.ANNUALLY else rule.year_start_credit
            balance[rule.leave_type] = round_days(value)
            applied.append(f"{rule.leave_type}: reset to {round_days(value)}")
        elif rule.credit_type == CreditType.MONTHLY:
            current = balance.get(rule.leave_type, 0.0)
            if current < rule.max_balance:
                balance[rule.leave_type] = round_days(min(current + rule.credit, rule.max_balance))
            applied.append(f"{rule.leave_type}: +{rule.credit} (max {rule.max_balance})")
    return balance, applied


def _first_of_next_month(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


class MonthlyCreditJob(BaseService):
    def __init__(self, stores: LeaveStores, resolver: PolicyResolver):
        super().__init__(stores)
        self.resolver = resolver

    def rules(self) -> List[CreditRule]:
        items, is_default = self.resolver.active_policy()
        return list(CREDIT_RULES) if is_default else rules_from_policy(items)

    def _credit_employee(self, employee: Employee, rules: List[CreditRule], is_january: bool) -> List[str]:
        store = self.stores.employees
        applied = []
        for rule in rules:
            if is_january:
                value = rule.credit if rule.credit_type == CreditType.ANNUALLY else rule.year_start_credit
                store.set_balance(employee.id, rule.leave_type, value)
                applied.append(f"{rule.leave_type}: reset to {round_days(value)}")
            elif rule.credit_type == CreditType.MONTHLY:
                store.increment_capped(employee.id, rule.leave_type, rule.credit, rule.max_balance)
                applied.append(f"{rule.leave_type}: +{rule.credit} (max {rule.max_balance})")
        return applied

    def run(self, credit_date: date, force: bool = False) -> Dict[str, Any]:
        rules = self.rules()
        is_january = credit_date.month == 1
        results: Dict[str, Any] = {
            "credit_date": credit_date.isoformat(),
            "is_year_start_reset": is_january,
            "processed": 0,
            "credited": [],
            "skipped": [],
            "errors": [],
            "warnings": [],
        }
        self.log_info(
            f"Monthly leave credit for {credit_date.isoformat()}"
            + (" (January year-start reset)" if is_january else "")
        )

        for employee in self.stores.employees.list_active():
            results["processed"] += 1
            if not has_joined(employee.joining_date, credit_date):
                results["skipped"].append({
                    "employee_id": employee.employee_id,
                    "name": employee.full_name,
                    "reason": "Not yet joined",
                })
                continue
            if not force and (employee.last_credit_year, employee.last_credit_month) == (credit_date.year, credit_date.month):
                results["skipped"].append({
                    "employee_id": employee.employee_id,
                    "name": employee.full_name,
                    "reason": f"Already credited for {credit_date.year}-{credit_date.month:02d}",
                })
                continue

            try:
                previous = self.stores.employees.balances(employee.id)
                applied = self._credit_employee(employee, rules, is_january)
                self.stores.employees.mark_credited(employee.id, credit_date.year, credit_date.month)
                self._commit()
            except Exception as e:
                self.stores.uow.rollback()
                self._logger.error(f"Leave credit failed for {employee.employee_id}: {e}", exc_info=True)
                results["errors"].append({"employee_id": employee.employee_id, "error": str(e)})
                continue

            new = self.stores.employees.balances(employee.id)
            results["credited"].append({
                "employee_id": employee.employee_id,
                "name": employee.full_name,
                "previous": previous,
                "new": new,
            })
            warning = self._best_effort("Credit log", lambda: self.stores.logs.add_credit_log(
                employee_id=employee.id,
                credit_date=credit_date,
                credit_month=credit_date.month,
                credit_year=credit_date.year,
                is_year_start_reset=is_january,
                previous_balance=previous,
                credits_applied=applied,
                new_balance=new,
            ))
            if warning:
                results["warnings"].append(warning)

        self.log_info(
            f"Monthly leave credit done: {len(results['credited'])} credited, "
            f"{len(results['skipped'])} skipped, {len(results['errors'])} errors"
        )
        return results

    def simulate(self, employee: Employee, target_date: date, today: date) -> Dict[str, Any]:
        """Project the balance month by month up to `target_date` without persisting anything."""
        rules = self.rules()
        current = self.stores.employees.balances(employee.id)
        simulated = dict(current)
        details: List[str] = []

        month_start = _first_of_next_month(today)
        months = 0
        while month_start <= target_date:
            if has_joined(employee.joining_date, month_start):
                simulated, applied = apply_rules(simulated, rules, month_start.month == 1)
                details.append(f"{month_start.isoformat()}: {'; '.join(applied) or 'no change'}")
                months += 1
            month_start = _first_of_next_month(month_start)

        return {
            "employee": {
                "employee_id": employee.employee_id,
                "name": employee.full_name,
                "joining_date": employee.joining_date.isoformat() if employee.joining_date else None,
            },
            "simulation": {
                "from_date": today.isoformat(),
                "to_date": target_date.isoformat(),
                "months_simulated": months,
            },
            "current_balance": current,
            "simulated_balance": simulated,
            "credit_details": details,
            "rules": {rule.leave_type: rule.describe() for rule in rules},
        }
