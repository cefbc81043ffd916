from typing import Any, Dict, List, Optional

class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.error_code, "msg": self.message, "details": self.details or {}}

class NotFoundError(AppException):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(message=message, status_code=404, error_code="NOT_FOUND")

class InsufficientBalance(AppException):
    def __init__(self, leave_type: str, available: float, requested: float):
        self.leave_type = leave_type
        self.available = available
        self.requested = requested
        super().__init__(
            message=f"Insufficient {leave_type} balance. Available: {available} days, Requested: {requested} days",
            status_code=400,
            error_code="INSUFFICIENT_BALANCE",
            details={"leave_type": leave_type, "available": available, "requested": requested}
        )

class InvalidLeaveType(AppException):
    def __init__(self, leave_type: Any):
        super().__init__(
            message=f"Invalid leave type: {leave_type}",
            status_code=400,
            error_code="INVALID_LEAVE_TYPE",
            details={"leave_type": leave_type}
        )

class AdvanceNoticeViolation(AppException):
    """Soft rule: the caller may resubmit with an explicit override."""
    def __init__(self, leave_type: str, required_days: int, notice_days: int):
        super().__init__(
            message=(
                f"{leave_type} must be applied at least {required_days} days in advance "
                f"(requested with {notice_days} days notice)"
            ),
            status_code=400,
            error_code="ADVANCE_NOTICE_VIOLATION",
            details={
                "leave_type": leave_type,
                "required_days": required_days,
                "notice_days": notice_days,
                "can_override": True,
            }
        )

class ClubbingConflict(AppException):
    def __init__(self, leave_type: str, conflicting_type: str, dates: List[str]):
        super().__init__(
            message=f"{leave_type} cannot be clubbed with {conflicting_type} on or next to {', '.join(dates)}",
            status_code=400,
            error_code="CLUBBING_CONFLICT",
            details={
                "leave_type": leave_type,
                "conflicting_type": conflicting_type,
                "dates": dates,
                "can_override": False,
            }
        )

class AlreadyProcessed(AppException):
    def __init__(self, status: str):
        super().__init__(
            message="Leave already processed",
            status_code=400,
            error_code="ALREADY_PROCESSED",
            details={"status": status}
        )

class NotPending(AppException):
    def __init__(self, status: str):
        super().__init__(
            message="Leave is not pending",
            status_code=400,
            error_code="NOT_PENDING",
            details={"status": status}
        )

class NotAuthorized(AppException):
    """Actor role or assignment does not match the target application."""
    def __init__(self, message: str = "Not enough permissions"):
        super().__init__(
            message=message,
            status_code=403,
            error_code="NOT_AUTHORIZED"
        )

class InvalidAdjustment(AppException):
    def __init__(self, message: str):
        super().__init__(message=message, status_code=400, error_code="INVALID_ADJUSTMENT")
