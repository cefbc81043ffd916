"""
Shared FastAPI dependencies.

The leave engine is built per request around the request's session. The clock
is its own dependency so tests can pin "today".
"""
from datetime import date
from typing import Callable

from fastapi import Depends
from sqlalchemy.orm import Session

from hrms.database import get_db
from hrms.routers.auth_deps import get_current_actor, require_role, require_admin, require_approver
from hrms.services.leave_engine import LeaveEngine
from hrms.stores.sql import sql_stores


def get_clock() -> Callable[[], date]:
    return date.today


def get_leave_engine(
    db: Session = Depends(get_db),
    clock: Callable[[], date] = Depends(get_clock),
) -> LeaveEngine:
    return LeaveEngine(sql_stores(db), clock=clock)


__all__ = [
    "get_clock",
    "get_leave_engine",
    "get_current_actor",
    "require_role",
    "require_admin",
    "require_approver",
]
