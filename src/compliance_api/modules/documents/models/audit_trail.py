from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, event
from datetime import datetime
from compliance_api.database import Base
from compliance_api.exceptions import AuditTrailImmutableError

class AuditAction:
    DOCUMENT_CREATED = "DOCUMENT_CREATED"
    DOCUMENT_UPDATED = "DOCUMENT_UPDATED"
    STATUS_CHANGED = "STATUS_CHANGED"
    DOCUMENT_DUPLICATED = "DOCUMENT_DUPLICATED"
    DOCUMENT_SIGNED = "DOCUMENT_SIGNED"
    DOCUMENT_DOWNLOADED = "DOCUMENT_DOWNLOADED"
    DOCUMENT_EXPIRED = "DOCUMENT_EXPIRED"
    COMPLIANCE_DEADLINE_CREATED = "COMPLIANCE_DEADLINE_CREATED"
    COMPLIANCE_DEADLINE_UPDATED = "COMPLIANCE_DEADLINE_UPDATED"

class AuditActor:
    USER = "user"
    SYSTEM = "system"

class AuditTrail(Base):
    __tablename__ = "audit_trail"

    id = Column(Integer, primary_key=True)
    document_id = Column(Integer, ForeignKey("documents.id"), nullable=True)
    # null only for rows written by the system (scheduled jobs)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    actor_type = Column(String(20), nullable=False, default=AuditActor.USER)
    action = Column(String, nullable=False)
    details = Column(Text, nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)
    ip_address = Column(String, nullable=True)


@event.listens_for(AuditTrail, "before_update")
def _reject_update(mapper, connection, target):
    raise AuditTrailImmutableError(f"Audit record {target.id} cannot be modified")


@event.listens_for(AuditTrail, "before_delete")
def _reject_delete(mapper, connection, target):
    raise AuditTrailImmutableError(f"Audit record {target.id} cannot be deleted")
