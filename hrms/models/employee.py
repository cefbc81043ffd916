"""
Employee Model.
Identity, reporting line and the leave ledger owner.
"""
from sqlalchemy import Column, Integer, String, Enum, Date, DateTime, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from hrms.database import Base


class UserRole(str, enum.Enum):
    """
    Roles that matter to the leave workflow.

    - ADMIN: final approver, edits/deletes applications, adjusts balances
    - MANAGER: first-level approver for their direct reports
    - EMPLOYEE: self-service access
    """
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(String(50), unique=True, index=True, nullable=False)  # HR code, e.g. EMP1001
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=False)
    role = Column(Enum(UserRole), default=UserRole.EMPLOYEE, nullable=False)
    department = Column(String, nullable=True)
    manager_email = Column(String, nullable=True, index=True)

    joining_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Last month credited by the monthly job (idempotency marker)
    last_credit_year = Column(Integer, nullable=True)
    last_credit_month = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    balances = relationship("LeaveBalance", back_populates="employee", cascade="all, delete-orphan")
