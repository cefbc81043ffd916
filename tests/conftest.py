import pytest
import os
from datetime import date
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ENABLE_SCHEDULER"] = "false"

from hrms.database import Base, get_db
from hrms.dependencies import get_clock
from hrms.main import app
from hrms.models.employee import Employee, UserRole
from hrms.models.leave_balance import LeaveBalance
from hrms.services.leave_engine import LeaveEngine
from hrms.stores.sql import sql_stores
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Every test runs "today" on this date unless it builds its own engine
TODAY = date(2026, 9, 1)

@pytest.fixture(scope="function")
def db_session():
    """Fresh schema per test: the services commit, so there is no outer transaction to roll back."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def leave_engine(db_session):
    return LeaveEngine(sql_stores(db_session), clock=lambda: TODAY)

def _create_employee(db_session, code, email, name, role, manager_email=None, joining_date=date(2025, 1, 15)):
    employee = Employee(
        employee_id=code,
        email=email,
        full_name=name,
        role=role,
        manager_email=manager_email,
        department="Engineering",
        joining_date=joining_date,
        is_active=True,
    )
    db_session.add(employee)
    db_session.commit()
    return employee

@pytest.fixture(scope="function")
def admin_user(db_session):
    return _create_employee(db_session, "EMP1000", "admin@acme.test", "System Admin", UserRole.ADMIN)

@pytest.fixture(scope="function")
def manager_user(db_session):
    return _create_employee(db_session, "EMP1001", "manager@acme.test", "Maya Manager", UserRole.MANAGER)

@pytest.fixture(scope="function")
def employee_user(db_session, manager_user):
    return _create_employee(
        db_session, "EMP1002", "dev@acme.test", "Dev Employee", UserRole.EMPLOYEE,
        manager_email=manager_user.email,
    )

@pytest.fixture(scope="function")
def make_employee(db_session):
    """Factory for extra employees."""
    def _make(code, email, joining_date=date(2025, 1, 15), role=UserRole.EMPLOYEE, manager_email=None):
        return _create_employee(db_session, code, email, f"Employee {code}", role, manager_email, joining_date)
    return _make

@pytest.fixture(scope="function")
def set_balance(db_session):
    """Seed ledger rows directly, bypassing the services."""
    def _set(employee, **balances):
        for leave_type, value in balances.items():
            row = db_session.query(LeaveBalance).filter(
                LeaveBalance.employee_id == employee.id,
                LeaveBalance.leave_type == leave_type,
            ).first()
            if row:
                row.balance = value
            else:
                db_session.add(LeaveBalance(employee_id=employee.id, leave_type=leave_type, balance=value))
        db_session.commit()
    return _set

@pytest.fixture(scope="function")
def as_user():
    """Helper fixture building the actor header for a user."""
    def _headers(user):
        return {"X-User-Email": user.email}
    return _headers

@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: (lambda: TODAY)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

@pytest.fixture(scope="function")
def session_factory(db_session):
    """Session factory bound to the test database, for code that opens its own sessions."""
    return TestingSessionLocal
