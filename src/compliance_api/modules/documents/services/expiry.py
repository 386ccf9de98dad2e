import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from compliance_api.database import atomic
from compliance_api.modules.documents.models.audit_trail import AuditAction
from compliance_api.modules.documents.models.document import Document, DocumentStatus
from compliance_api.modules.documents.services.audit_service import AuditService

logger = logging.getLogger(__name__)

def expire_documents(session: Session, now: Optional[datetime] = None) -> List[int]:
    """Moves active documents past their expiry date to expired."""
    now = now or datetime.utcnow()

    documents = session.query(Document).filter(
        Document.status == DocumentStatus.ACTIVE,
        Document.expires_at.isnot(None),
        Document.expires_at <= now,
    ).all()

    expired_ids = []
    with atomic(session):
        for doc in documents:
            doc.status = DocumentStatus.EXPIRED
            doc.updated_at = now
            AuditService.record_system(
                session,
                AuditAction.DOCUMENT_EXPIRED,
                document_id=doc.id,
                details=f"status: active -> expired (expired at {doc.expires_at.isoformat()})",
            )
            expired_ids.append(doc.id)

    if expired_ids:
        logger.info("Expired %d document(s): %s", len(expired_ids), expired_ids)
    return expired_ids
