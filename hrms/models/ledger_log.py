from sqlalchemy import Column, Integer, String, Float, Boolean, JSON, Date, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from hrms.database import Base

class LeaveCreditLog(Base):
    """One row per employee per monthly credit run."""
    __tablename__ = "leave_credit_logs"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    credit_date = Column(Date, nullable=False)
    credit_month = Column(Integer, nullable=False, index=True)
    credit_year = Column(Integer, nullable=False, index=True)
    is_year_start_reset = Column(Boolean, default=False, nullable=False)
    previous_balance = Column(JSON, nullable=False)
    credits_applied = Column(JSON, default=list)
    new_balance = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

class LeaveAdjustmentLog(Base):
    """Manual, bulk and recalculation changes to balances."""
    __tablename__ = "leave_adjustment_logs"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"), nullable=True, index=True)
    scope = Column(String(20), nullable=False, index=True)  # individual | bulk | recalculate
    action_type = Column(String(20), nullable=False)  # set | add | deduct | recalculate
    leave_type = Column(String(50), nullable=True)
    days = Column(Float, nullable=True)
    reason = Column(Text, nullable=True)
    performed_by = Column(String, nullable=False)
    previous_balance = Column(JSON, nullable=True)
    new_balance = Column(JSON, nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
