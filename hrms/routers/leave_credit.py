"""
Admin endpoints around the monthly leave credit job.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request

from hrms.core.schemas import ApiResponse
from hrms.dependencies import get_leave_engine, require_admin
from hrms.models.employee import Employee
from hrms.schemas.leave import CreditLogResponse, RecalculateRequest, RunCreditRequest, SimulateCreditRequest
from hrms.services.leave_engine import LeaveEngine
from hrms.services.scheduler import get_scheduler_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/leave-credit", tags=["Leave Credit"])


@router.get("/rules")
def credit_rules(
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(require_admin()),
):
    rules = engine.credit_rules()
    return ApiResponse.ok({
        "rules": [rule.model_dump(mode="json") for rule in rules],
        "summary": {rule.leave_type: rule.describe() for rule in rules},
    }).to_dict()


@router.post("/run-monthly")
def run_monthly_credit(
    payload: Optional[RunCreditRequest] = None,
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(require_admin()),
):
    """Manual trigger. Employees already credited for that month are skipped unless forced."""
    payload = payload or RunCreditRequest()
    logger.info(f"🔄 Manual monthly credit triggered by {current_actor.email}")
    results = engine.run_monthly_credit(payload.credit_date, force=payload.force)
    return ApiResponse.ok(results, metadata={"credit_date": results["credit_date"]}).to_dict()


@router.post("/initialize-all")
def initialize_all(
    payload: Optional[RecalculateRequest] = None,
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(require_admin()),
):
    """Recalculate every active employee's balance from policy as of a date."""
    as_of = payload.as_of_date if payload else None
    return ApiResponse.ok(engine.recalculate_all(current_actor.email, as_of)).to_dict()


@router.get("/logs", response_model=List[CreditLogResponse])
def credit_logs(
    employee_id: Optional[str] = None,
    month: Optional[int] = None,
    year: Optional[int] = None,
    limit: int = 100,
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(require_admin()),
):
    internal_id = engine.employee_by_code(employee_id).id if employee_id else None
    return engine.credit_logs(employee_id=internal_id, month=month, year=year, limit=min(limit, 500))


@router.post("/simulate")
def simulate_credit(
    payload: SimulateCreditRequest,
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(require_admin()),
):
    employee = engine.employee_by_code(payload.employee_id)
    return ApiResponse.ok(engine.simulate_credit(employee, payload.simulate_date)).to_dict()


@router.get("/scheduler")
def scheduler_status(
    request: Request,
    current_actor: Employee = Depends(require_admin()),
):
    return ApiResponse.ok(get_scheduler_status(getattr(request.app.state, "scheduler", None))).to_dict()
