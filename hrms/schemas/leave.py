from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Annotated, Any, Dict, List, Literal, Optional

from hrms.models.leave_application import LeaveStatus
from hrms.services.policy import PolicyItem

HalfDayPeriod = Literal["morning", "afternoon"]


def _no_duplicate_dates(v: List[date]) -> List[date]:
    if len(set(v)) != len(v):
        raise ValueError("Duplicate dates are not allowed")
    return v


UniqueDates = Annotated[List[date], AfterValidator(_no_duplicate_dates)]


# --- Applications -----------------------------------------------------------
class LeaveValidateRequest(BaseModel):
    leave_type: str = Field(..., min_length=1)
    dates: UniqueDates = Field(..., min_length=1)
    is_half_day: bool = False
    force: bool = False


class LeaveApplicationCreate(LeaveValidateRequest):
    half_day_period: Optional[HalfDayPeriod] = None
    reason: Optional[str] = None


class LeaveActionRequest(BaseModel):
    action: Literal["approve", "reject"]
    comments: Optional[str] = None


class LeaveEditRequest(BaseModel):
    leave_type: Optional[str] = Field(default=None, min_length=1)
    dates: Optional[UniqueDates] = Field(default=None, min_length=1)
    is_half_day: Optional[bool] = None
    half_day_period: Optional[HalfDayPeriod] = None
    reason: Optional[str] = None
    status: Optional[LeaveStatus] = None
    comments: Optional[str] = None


class LeaveApplicationResponse(BaseModel):
    id: str
    employee_id: int
    employee_email: str
    employee_name: Optional[str] = None
    manager_email: Optional[str] = None
    leave_type: str
    leave_type_key: str
    dates: List[date]
    days_count: float
    is_half_day: bool
    half_day_period: Optional[str] = None
    reason: Optional[str] = None
    status: str
    approvals: List[Dict[str, Any]] = []
    policy_snapshot: Optional[Dict[str, Any]] = None
    warnings: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LeaveSubmitResponse(BaseModel):
    application: LeaveApplicationResponse
    warnings: List[str] = []


class LeaveDeleteResponse(BaseModel):
    id: str
    deleted: bool
    leave_type: str
    refunded_days: float
    warnings: List[str] = []


# --- Balances ---------------------------------------------------------------
class BalanceAdjustRequest(BaseModel):
    leave_type: str = Field(..., min_length=1)
    action: Literal["set", "add", "deduct"]
    days: float = Field(..., ge=0)
    reason: str = Field(..., min_length=1)


class RecalculateRequest(BaseModel):
    as_of_date: Optional[date] = None


class AdjustmentLogResponse(BaseModel):
    id: int
    employee_id: Optional[int] = None
    scope: str
    action_type: str
    leave_type: Optional[str] = None
    days: Optional[float] = None
    reason: Optional[str] = None
    performed_by: str
    previous_balance: Optional[Dict[str, Any]] = None
    new_balance: Optional[Dict[str, Any]] = None
    details: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# --- Monthly credit ---------------------------------------------------------
class RunCreditRequest(BaseModel):
    credit_date: Optional[date] = None
    force: bool = False


class SimulateCreditRequest(BaseModel):
    employee_id: str = Field(..., min_length=1)
    simulate_date: date


class CreditLogResponse(BaseModel):
    id: int
    employee_id: int
    credit_date: date
    credit_month: int
    credit_year: int
    is_year_start_reset: bool
    previous_balance: Dict[str, Any]
    credits_applied: List[str] = []
    new_balance: Dict[str, Any]
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# --- Policy -----------------------------------------------------------------
class LeavePolicyUpdate(BaseModel):
    policies: List[PolicyItem] = Field(..., min_length=1)


class LeavePolicyResponse(BaseModel):
    policies: List[PolicyItem]
    is_default: bool


# Resolve forward references for Pydantic V2
LeaveApplicationResponse.model_rebuild()
LeaveSubmitResponse.model_rebuild()
CreditLogResponse.model_rebuild()
