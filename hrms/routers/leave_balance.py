from typing import List, Optional

from fastapi import APIRouter, Depends

from hrms.core.exceptions import NotAuthorized
from hrms.core.schemas import ApiResponse
from hrms.dependencies import get_current_actor, get_leave_engine, require_admin
from hrms.models.employee import Employee, UserRole
from hrms.schemas.leave import AdjustmentLogResponse, BalanceAdjustRequest, RecalculateRequest
from hrms.services.leave_engine import LeaveEngine

router = APIRouter(prefix="/leave-balance", tags=["Leave Balance"])


@router.get("/me")
def my_balance(
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(get_current_actor),
):
    return ApiResponse.ok({
        "employee_id": current_actor.employee_id,
        "leave_balance": engine.balance_for(current_actor),
    }).to_dict()


@router.get("/summary")
def balance_summary(
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(require_admin()),
):
    return ApiResponse.ok(engine.balance_summary()).to_dict()


@router.post("/bulk-adjust")
def bulk_adjust(
    payload: BalanceAdjustRequest,
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(require_admin()),
):
    """Apply one adjustment to every active employee. Deductions never go below zero."""
    result = engine.bulk_adjust(
        payload.leave_type, payload.action, payload.days, payload.reason, current_actor.email
    )
    return ApiResponse.ok(result, metadata={"updated": len(result["updated"]), "failed": len(result["errors"])}).to_dict()


@router.get("/adjustment-logs", response_model=List[AdjustmentLogResponse])
def adjustment_logs(
    employee_id: Optional[str] = None,
    scope: Optional[str] = None,
    limit: int = 100,
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(require_admin()),
):
    internal_id = engine.employee_by_code(employee_id).id if employee_id else None
    return engine.adjustment_logs(employee_id=internal_id, scope=scope, limit=min(limit, 500))


@router.get("/{employee_code}")
def employee_balance(
    employee_code: str,
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(get_current_actor),
):
    employee = engine.employee_by_code(employee_code)
    allowed = (
        current_actor.role == UserRole.ADMIN
        or employee.id == current_actor.id
        or (current_actor.role == UserRole.MANAGER and employee.manager_email == current_actor.email)
    )
    if not allowed:
        raise NotAuthorized("Not authorized to view this employee's balance")
    return ApiResponse.ok({
        "employee_id": employee.employee_id,
        "name": employee.full_name,
        "joining_date": employee.joining_date.isoformat() if employee.joining_date else None,
        "leave_balance": engine.balance_for(employee),
    }).to_dict()


@router.post("/{employee_code}/adjust")
def adjust_balance(
    employee_code: str,
    payload: BalanceAdjustRequest,
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(require_admin()),
):
    employee = engine.employee_by_code(employee_code)
    result = engine.adjust_balance(
        employee, payload.leave_type, payload.action, payload.days, payload.reason, current_actor.email
    )
    return ApiResponse.ok(result).to_dict()


@router.post("/{employee_code}/recalculate")
def recalculate_balance(
    employee_code: str,
    payload: Optional[RecalculateRequest] = None,
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(require_admin()),
):
    """Reset the balance to the policy entitlement as of a date. comp_off is preserved."""
    employee = engine.employee_by_code(employee_code)
    as_of = payload.as_of_date if payload else None
    return ApiResponse.ok(engine.recalculate_balance(employee, current_actor.email, as_of)).to_dict()
