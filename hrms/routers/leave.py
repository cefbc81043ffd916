from typing import List, Optional

from fastapi import APIRouter, Depends, status

from hrms.dependencies import get_current_actor, get_leave_engine, require_admin, require_approver
from hrms.models.employee import Employee
from hrms.schemas.leave import (
    LeaveActionRequest,
    LeaveApplicationCreate,
    LeaveApplicationResponse,
    LeaveDeleteResponse,
    LeaveEditRequest,
    LeaveSubmitResponse,
    LeaveValidateRequest,
)
from hrms.services.leave_engine import LeaveEngine

router = APIRouter(prefix="/leaves", tags=["Leave"])


@router.post("/validate")
def validate_leave(
    payload: LeaveValidateRequest,
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(get_current_actor),
):
    """Dry run of the submission checks: balance, advance notice and clubbing."""
    result = engine.validate_application(
        current_actor, payload.leave_type, payload.dates, payload.is_half_day, payload.force
    )
    return result.to_dict()


@router.post("", response_model=LeaveSubmitResponse, status_code=status.HTTP_201_CREATED)
def submit_leave(
    payload: LeaveApplicationCreate,
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(get_current_actor),
):
    application, warnings = engine.submit_application(
        current_actor,
        payload.leave_type,
        payload.dates,
        is_half_day=payload.is_half_day,
        half_day_period=payload.half_day_period,
        reason=payload.reason,
        force=payload.force,
    )
    return {"application": application, "warnings": warnings}


@router.get("/my-leaves", response_model=List[LeaveApplicationResponse])
def my_leaves(
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(get_current_actor),
):
    return engine.my_applications(current_actor)


@router.get("/pending", response_model=List[LeaveApplicationResponse])
def pending_leaves(
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(require_approver()),
):
    """Managers see their team's pending requests; admins also see manager-approved ones."""
    return engine.pending_applications(current_actor)


@router.get("/all", response_model=List[LeaveApplicationResponse])
def all_leaves(
    status: Optional[str] = None,
    employee_id: Optional[str] = None,
    leave_type: Optional[str] = None,
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(require_admin()),
):
    return engine.all_applications(
        current_actor, status=status, employee_code=employee_id, leave_type=leave_type
    )


@router.get("/{leave_id}", response_model=LeaveApplicationResponse)
def get_leave(
    leave_id: str,
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(get_current_actor),
):
    return engine.get_application(leave_id, current_actor)


@router.put("/{leave_id}/action", response_model=LeaveApplicationResponse)
def act_on_leave(
    leave_id: str,
    payload: LeaveActionRequest,
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(get_current_actor),
):
    return engine.act_on_application(leave_id, current_actor, payload.action, payload.comments)


@router.put("/{leave_id}", response_model=LeaveSubmitResponse)
def edit_leave(
    leave_id: str,
    payload: LeaveEditRequest,
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(require_admin()),
):
    application, warnings = engine.edit_application(
        leave_id, current_actor, payload.model_dump(exclude_unset=True)
    )
    return {"application": application, "warnings": warnings}


@router.delete("/{leave_id}", response_model=LeaveDeleteResponse)
def delete_leave(
    leave_id: str,
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(require_admin()),
):
    return engine.delete_application(leave_id, current_actor)
