from .audit_service import AuditService
from .document_service import DocumentService
from .document_state_service import DocumentStateService
from .expiry import expire_documents
from .signature_service import SignatureService

__all__ = [
    'AuditService', 'DocumentService', 'DocumentStateService', 'SignatureService',
    'expire_documents',
]
