from typing import List, Optional
from sqlalchemy.orm import Session

from compliance_api.modules.documents.models.audit_trail import AuditActor, AuditTrail

class AuditService:
    """Append-only writer/reader for the audit trail."""

    @staticmethod
    def record(
        session: Session,
        action: str,
        user_id: int,
        document_id: Optional[int] = None,
        details: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> AuditTrail:
        """
        Adds an audit row to the caller's transaction. The caller commits,
        so the entry lands together with the mutation it describes.
        """
        if not action or user_id is None:
            raise ValueError("Audit records need an action and a user")
        entry = AuditTrail(
            document_id=document_id,
            user_id=user_id,
            actor_type=AuditActor.USER,
            action=action,
            details=details,
            ip_address=ip_address,
        )
        session.add(entry)
        session.flush()
        return entry

    @staticmethod
    def record_system(
        session: Session,
        action: str,
        document_id: Optional[int] = None,
        details: Optional[str] = None,
    ) -> AuditTrail:
        """Same as ``record`` for changes no user asked for, such as the expiry sweep."""
        entry = AuditTrail(
            document_id=document_id,
            user_id=None,
            actor_type=AuditActor.SYSTEM,
            action=action,
            details=details,
        )
        session.add(entry)
        session.flush()
        return entry

    @staticmethod
    def list_for_document(session: Session, document_id: int) -> List[AuditTrail]:
        return (
            session.query(AuditTrail)
            .filter(AuditTrail.document_id == document_id)
            .order_by(AuditTrail.timestamp.asc(), AuditTrail.id.asc())
            .all()
        )
