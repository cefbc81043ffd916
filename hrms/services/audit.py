from typing import Any, Optional

from hrms.services.base import BaseService


def sanitize(obj: Any) -> Any:
    """Make nested pydantic models, dates and enums JSON-column safe."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if isinstance(obj, dict):
        return {k: sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [sanitize(i) for i in obj]
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    if hasattr(obj, "value"):
        return obj.value
    return obj


class AuditService(BaseService):
    def log_action(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[str],
        actor_email: Optional[str],
        actor_role: Optional[str],
        details: dict,
        before_state: Optional[dict] = None,
        after_state: Optional[dict] = None
    ) -> Optional[str]:
        """
        Create a centralized audit log entry.
        Strictly append-only.

        Called after the main change has been committed, so a failing audit
        write can never roll back a ledger mutation. Returns a warning string
        on failure, None on success.
        """
        return self._best_effort("Audit log", lambda: self.stores.logs.add_audit(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_email=actor_email,
            actor_role=actor_role,
            details=sanitize(details),
            before_state=sanitize(before_state),
            after_state=sanitize(after_state),
        ))
