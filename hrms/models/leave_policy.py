from sqlalchemy import Column, Integer, String, Float, JSON, DateTime
from sqlalchemy.sql import func
from hrms.database import Base

class LeavePolicy(Base):
    """A single item of the active leave policy. The table holds one row per leave type."""
    __tablename__ = "leave_policies"

    id = Column(Integer, primary_key=True, index=True)
    leave_type = Column(String, nullable=False)  # display label, e.g. "Casual Leave"
    key = Column(String(50), unique=True, index=True, nullable=False)
    annual_quota = Column(Float, default=0.0, nullable=False)
    credit_type = Column(String(20), default="annually", nullable=False)  # monthly | annually
    monthly_credit = Column(Float, nullable=True)
    advance_days_required = Column(Integer, default=0, nullable=False)
    clubbing_not_allowed_with = Column(JSON, default=list)  # labels or keys of other leave types
    year_start_credit = Column(Float, nullable=True)
    order = Column(Integer, default=0, nullable=False)
    updated_by = Column(String, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
