# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    employee, leave_balance, leave_policy, leave_application,
    ledger_log, audit_log, notification
)

# Explicit class exports for cleaner imports
from .employee import Employee, UserRole
from .leave_balance import LeaveBalance
from .leave_policy import LeavePolicy
from .leave_application import LeaveApplication, LeaveStatus
from .ledger_log import LeaveCreditLog, LeaveAdjustmentLog
from .audit_log import AuditLog
from .notification import Notification

__all__ = [
    "Employee",
    "UserRole",
    "LeaveBalance",
    "LeavePolicy",
    "LeaveApplication",
    "LeaveStatus",
    "LeaveCreditLog",
    "LeaveAdjustmentLog",
    "AuditLog",
    "Notification",
]
