"""
Actor resolution and RBAC dependencies.

Authentication happens in front of this service; requests carry the
authenticated user's email in the configured actor header, which is resolved
to an Employee record here. The role used for every check comes from that
record, never from the request.
"""
import logging
from typing import Callable, List

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from hrms.core.config import settings
from hrms.database import get_db
from hrms.models.employee import Employee, UserRole

logger = logging.getLogger(__name__)


def get_current_actor(request: Request, db: Session = Depends(get_db)) -> Employee:
    """
    Resolves the acting employee from the actor header.
    """
    email = (request.headers.get(settings.actor_header) or "").strip()
    if not email:
        logger.warning("Actor resolution failed: missing actor header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {settings.actor_header} header",
        )

    actor = db.query(Employee).filter(Employee.email == email).first()
    if actor is None:
        logger.warning(f"Actor resolution failed: employee {email} not found")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Employee not found",
        )
    if not actor.is_active:
        logger.warning(f"Actor resolution failed: employee {email} is inactive")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Employee is inactive"
        )
    return actor


def require_role(allowed_roles: List[UserRole]) -> Callable:
    """
    Dependency factory that checks if the actor has one of the allowed roles.

    Usage:
        @router.post("/admin-only")
        def admin_endpoint(actor: Employee = Depends(require_role([UserRole.ADMIN]))):
            ...
    """
    def role_checker(current_actor: Employee = Depends(get_current_actor)):
        if current_actor.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {[r.value for r in allowed_roles]}"
            )
        return current_actor
    return role_checker


def require_admin():
    """Shorthand for requiring the admin role."""
    return require_role([UserRole.ADMIN])


def require_approver():
    """Shorthand for roles that can act on leave applications."""
    return require_role([UserRole.ADMIN, UserRole.MANAGER])
