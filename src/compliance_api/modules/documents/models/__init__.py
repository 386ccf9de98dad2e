from .user import User, UserRole
from .document import Document, DocumentStatus
from .document_version import DocumentVersion
from .signature import Signature
from .audit_trail import AuditActor, AuditTrail, AuditAction

__all__ = [
    'User', 'UserRole', 'Document', 'DocumentStatus', 'DocumentVersion',
    'Signature', 'AuditTrail', 'AuditAction', 'AuditActor',
]
