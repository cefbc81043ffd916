from sqlalchemy import Column, Integer, String, JSON, DateTime
from sqlalchemy.sql import func
from hrms.database import Base

class AuditLog(Base):
    """Append-only trail of administrative changes to leave applications."""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String(50), nullable=False, index=True)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(36), nullable=True, index=True)
    actor_email = Column(String, nullable=True)
    actor_role = Column(String(20), nullable=True)
    details = Column(JSON, nullable=True)
    before_state = Column(JSON, nullable=True)
    after_state = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
