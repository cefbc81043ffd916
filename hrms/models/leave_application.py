from sqlalchemy import Column, Integer, String, Float, Boolean, JSON, ForeignKey, DateTime, Text
from sqlalchemy.sql import func
from hrms.database import Base
import enum
import uuid

class LeaveStatus(str, enum.Enum):
    PENDING = "pending"
    MANAGER_APPROVED = "manager_approved"
    APPROVED = "approved"
    REJECTED = "rejected"

class LeaveAction(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"
    EDITED = "edited"

# Statuses under which the ledger carries a debit for the application
DEDUCTED_STATUSES = frozenset({LeaveStatus.MANAGER_APPROVED.value, LeaveStatus.APPROVED.value})

class LeaveApplication(Base):
    __tablename__ = "leave_applications"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    employee_email = Column(String, nullable=False, index=True)
    employee_name = Column(String, nullable=True)
    manager_email = Column(String, nullable=True, index=True)

    leave_type = Column(String, nullable=False)  # label as submitted
    leave_type_key = Column(String(50), nullable=False, index=True)
    dates = Column(JSON, nullable=False)  # sorted ISO dates, non-contiguous allowed
    days_count = Column(Float, nullable=False)
    is_half_day = Column(Boolean, default=False, nullable=False)
    half_day_period = Column(String(20), nullable=True)
    reason = Column(Text, nullable=True)

    status = Column(String(20), default=LeaveStatus.PENDING.value, nullable=False, index=True)
    approvals = Column(JSON, default=list)  # append-only approval trail
    policy_snapshot = Column(JSON, nullable=True)
    warnings = Column(JSON, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
