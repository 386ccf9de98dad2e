import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from compliance_api.database import atomic
from compliance_api.exceptions import (
    AlreadySignedError, DocumentNotSignableError, NotFoundError, ValidationFailedError,
)
from compliance_api.modules.documents.models.audit_trail import AuditAction
from compliance_api.modules.documents.models.document import Document, DocumentStatus
from compliance_api.modules.documents.models.signature import Signature
from compliance_api.modules.documents.services.audit_service import AuditService
from compliance_api.modules.documents.services.document_service import content_hash

logger = logging.getLogger(__name__)

SIGNABLE_STATUSES = (DocumentStatus.PENDING_APPROVAL, DocumentStatus.ACTIVE)

class SignatureService:

    @staticmethod
    def sign_document(
        session: Session,
        document_id: int,
        user_id: int,
        signature: str,
        metadata: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
    ) -> Signature:
        """Records one signature per (document, user). Never changes document status."""
        # 1) Load entity
        doc = session.get(Document, document_id)
        if not doc:
            raise NotFoundError("Document not found")

        # 2) Validate payload and status
        if not signature or not signature.strip():
            raise ValidationFailedError("Signature payload is required")
        if doc.status not in SIGNABLE_STATUSES:
            raise DocumentNotSignableError(f"Documents in status {doc.status.value} cannot be signed")

        # 3) One signature per user
        existing = (
            session.query(Signature.id)
            .filter(Signature.document_id == document_id, Signature.user_id == user_id)
            .first()
        )
        if existing:
            raise AlreadySignedError("You have already signed this document")

        # 4) Insert signature and audit row together
        try:
            with atomic(session):
                sig = Signature(
                    document_id=document_id,
                    user_id=user_id,
                    signature=signature,
                    ip_address=ip_address,
                    signature_metadata=metadata,
                    document_version=doc.version,
                    content_hash=content_hash(doc.content),
                )
                session.add(sig)
                session.flush()
                AuditService.record(
                    session,
                    AuditAction.DOCUMENT_SIGNED,
                    user_id,
                    document_id=document_id,
                    details=f"Signed version {doc.version}",
                    ip_address=ip_address,
                )
        except IntegrityError as e:
            # a concurrent request won the race
            raise AlreadySignedError("You have already signed this document") from e

        session.refresh(sig)
        logger.info("Document %s signed by user %s (v%s)", document_id, user_id, sig.document_version)
        return sig

    @staticmethod
    def list_signatures(session: Session, document_id: int) -> List[Signature]:
        return (
            session.query(Signature)
            .filter(Signature.document_id == document_id)
            .order_by(Signature.created_at.asc(), Signature.id.asc())
            .all()
        )
