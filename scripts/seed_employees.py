from datetime import date

from hrms.database import SessionLocal, init_db
from hrms.models.employee import Employee, UserRole
from hrms.services.leave_engine import LeaveEngine
from hrms.stores.sql import sql_stores

init_db()
db = SessionLocal()
engine = LeaveEngine(sql_stores(db))

def create_employee(code, email, name, role, joining_date, manager_email=None):
    # Check if employee already exists to avoid unique constraint errors
    existing = db.query(Employee).filter(Employee.email == email).first()
    if existing:
        print(f"Employee {email} already exists. Skipping.")
        return existing

    employee = Employee(
        employee_id=code,
        email=email,
        full_name=name,
        role=role,
        joining_date=joining_date,
        manager_email=manager_email,
        is_active=True
    )
    db.add(employee)
    db.commit()
    db.refresh(employee)

    # Opening balance straight from the leave policy
    result = engine.recalculate_balance(employee, performed_by="seed")
    print(f"Created {role.value} -> {email} {result['new_balance']}")
    return employee

create_employee("EMP0001", "admin@example.com", "HR Admin", UserRole.ADMIN, date(2023, 4, 1))
create_employee("EMP0002", "manager@example.com", "Team Manager", UserRole.MANAGER, date(2024, 1, 15))
create_employee(
    "EMP0003", "employee@example.com", "New Employee", UserRole.EMPLOYEE, date(2026, 8, 7),
    manager_email="manager@example.com"
)

db.close()
