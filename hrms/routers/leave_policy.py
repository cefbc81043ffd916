from fastapi import APIRouter, Depends

from hrms.dependencies import get_current_actor, get_leave_engine, require_admin
from hrms.models.employee import Employee
from hrms.schemas.leave import LeavePolicyResponse, LeavePolicyUpdate
from hrms.services.leave_engine import LeaveEngine

router = APIRouter(prefix="/leave-policy", tags=["Leave Policy"])


@router.get("", response_model=LeavePolicyResponse)
def get_leave_policy(
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(get_current_actor),
):
    """Active policy, or the built-in defaults when none has been saved."""
    items, is_default = engine.get_policy()
    return {"policies": items, "is_default": is_default}


@router.put("", response_model=LeavePolicyResponse)
def replace_leave_policy(
    payload: LeavePolicyUpdate,
    engine: LeaveEngine = Depends(get_leave_engine),
    current_actor: Employee = Depends(require_admin()),
):
    items = engine.replace_policy(payload.policies, current_actor.email)
    return {"policies": items, "is_default": False}
