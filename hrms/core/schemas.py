from typing import Any, Dict, Generic, List, Optional, TypeVar
from pydantic import BaseModel, Field
from datetime import datetime, timezone

T = TypeVar("T")

class ApiResponse(BaseModel, Generic[T]):
    """
    Success envelope for the balance and credit endpoints.
    Errors never pass through here: the exception handlers in main.py render them.
    """
    success: bool = True
    data: Optional[T] = None
    # Side-write failures (audit, credit and adjustment logs) surfaced to the caller
    warnings: List[str] = []
    metadata: Dict[str, Any] = {}
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary with JSON-serializable values."""
        return self.model_dump(mode="json")

    @classmethod
    def ok(cls, data: T, metadata: Optional[Dict[str, Any]] = None) -> "ApiResponse[T]":
        warnings = data.get("warnings", []) if isinstance(data, dict) else []
        return cls(data=data, warnings=list(warnings), metadata=metadata or {})
