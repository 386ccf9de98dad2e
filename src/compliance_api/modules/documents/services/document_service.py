import hashlib
import logging
import math
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from compliance_api.database import atomic
from compliance_api.exceptions import (
    ForbiddenError, InvalidStateError, NotFoundError, ValidationFailedError,
)
from compliance_api.modules.documents.models.audit_trail import AuditAction
from compliance_api.modules.documents.models.document import Document, DocumentStatus
from compliance_api.modules.documents.models.document_version import DocumentVersion
from compliance_api.modules.documents.models.user import User, UserRole
from compliance_api.modules.documents.services.audit_service import AuditService
from compliance_api.modules.documents.services.document_state_service import REVIEWERS, DocumentStateService
from compliance_api.modules.notifications.repositories.notification_repository import NotificationRepository
from compliance_api.modules.notifications.services.notification_service import (
    ApprovalRequestNotification, DocumentCreatedNotification,
    DocumentStatusNotification, NotificationService,
)
from compliance_api.modules.templates.models.template import Template

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
RECENT_LIMIT = 10
MIN_SEARCH_LENGTH = 2
METADATA_FIELDS = ("title", "category", "expires_at")

def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()

class DocumentService:

    # ---- helpers ----

    @staticmethod
    def _notifications(session: Session) -> NotificationService:
        return NotificationService(NotificationRepository(session))

    @staticmethod
    def reviewer_ids(session: Session, exclude_id: Optional[int] = None) -> List[int]:
        query = session.query(User.id).filter(User.role.in_(list(REVIEWERS)), User.is_active.is_(True))
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        return [row[0] for row in query.all()]

    @staticmethod
    def _get_user(session: Session, user_id: int) -> User:
        user = session.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    def can_access(user: User, document: Document) -> bool:
        if user.role == UserRole.EMPLOYEE:
            return document.created_by_id == user.id
        return True

    @staticmethod
    def _scoped_query(session: Session, user: User):
        query = session.query(Document)
        if user.role == UserRole.EMPLOYEE:
            query = query.filter(Document.created_by_id == user.id)
        return query

    @staticmethod
    def get_document(session: Session, document_id: int, user: User) -> Document:
        document = session.get(Document, document_id)
        if not document:
            raise NotFoundError("Document not found")
        if not DocumentService.can_access(user, document):
            raise ForbiddenError("You do not have access to this document")
        return document

    # ---- lifecycle ----

    @staticmethod
    def create_document(
        session: Session,
        title: str,
        content: str,
        created_by_id: int,
        template_id: Optional[int] = None,
        category: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        ip_address: Optional[str] = None,
    ) -> Document:
        """
        Creates a document in draft at version 1 and records DOCUMENT_CREATED.
        """
        # 1) Validate references
        author = DocumentService._get_user(session, created_by_id)
        if template_id is not None and not session.get(Template, template_id):
            raise NotFoundError("Template not found")

        with atomic(session):
            # 2) Insert document
            document = Document(
                title=title,
                content=content,
                status=DocumentStatus.DRAFT,
                version=1,
                category=category or "Compliance",
                template_id=template_id,
                expires_at=expires_at,
                created_by_id=author.id,
            )
            session.add(document)
            session.flush()

            # 3) Audit
            AuditService.record(
                session,
                AuditAction.DOCUMENT_CREATED,
                author.id,
                document_id=document.id,
                details=f"Created document \"{title}\"",
                ip_address=ip_address,
            )

            # 4) Employees' documents need a reviewer's eye
            if author.role == UserRole.EMPLOYEE:
                DocumentService._notifications(session).stage_for_users(
                    DocumentService.reviewer_ids(session),
                    lambda uid: DocumentCreatedNotification(uid, document.id, title, author.name),
                )

        session.refresh(document)
        logger.info("Document %s created by user %s", document.id, author.id)
        return document

    @staticmethod
    def update_document(
        session: Session,
        document_id: int,
        changes: Dict[str, Any],
        actor: User,
        ip_address: Optional[str] = None,
        action: str = AuditAction.DOCUMENT_UPDATED,
    ) -> Document:
        """
        Applies content, status and metadata changes as one unit.

        Content goes first, so an edit followed by a submission works in a
        single call. Every accepted call writes exactly one audit row; any
        rejection leaves the document, its versions and its trail untouched.
        """
        document = DocumentService.get_document(session, document_id, actor)
        current_status = document.status

        new_content = changes.get("content")
        if new_content is not None and new_content == document.content:
            new_content = None

        new_status = changes.get("status")
        if new_status is not None:
            new_status = DocumentStatus(new_status)
            if new_status == current_status:
                new_status = None

        metadata = {
            field: changes[field]
            for field in METADATA_FIELDS
            if field in changes and changes[field] is not None and getattr(document, field) != changes[field]
        }

        # 1) Validate everything before touching rows
        if new_content is not None and current_status != DocumentStatus.DRAFT:
            raise InvalidStateError(
                f"Content can only be edited in draft; document is {current_status.value}"
            )
        if metadata and current_status == DocumentStatus.ARCHIVED:
            raise InvalidStateError("Archived documents cannot be modified")
        if new_status is not None:
            DocumentStateService.validate_transition(actor, document, new_status)

        summary = []
        try:
            with atomic(session):
                # 2) Content: snapshot previous text, bump version
                if new_content is not None:
                    session.add(DocumentVersion(
                        document_id=document.id,
                        version=document.version,
                        content=document.content,
                        created_by_id=actor.id,
                    ))
                    previous_version = document.version
                    document.content = new_content
                    document.version = previous_version + 1
                    summary.append(f"content updated (v{previous_version} -> v{document.version})")

                # 3) Metadata
                for field, value in metadata.items():
                    old = getattr(document, field)
                    setattr(document, field, value)
                    summary.append(f"{field}: {old!s} -> {value!s}")

                # 4) Status
                if new_status is not None:
                    document.status = new_status
                    summary.append(f"status: {current_status.value} -> {new_status.value}")
                    DocumentService._notify_status_change(session, document, actor, new_status)

                if summary:
                    document.updated_at = datetime.utcnow()

                AuditService.record(
                    session,
                    action,
                    actor.id,
                    document_id=document.id,
                    details="; ".join(summary) if summary else "No changes",
                    ip_address=ip_address,
                )
        except IntegrityError as e:
            # another edit took this version number first
            raise InvalidStateError("Document changed concurrently; reload and retry") from e

        session.refresh(document)
        logger.info("Document %s updated by user %s: %s", document.id, actor.id, "; ".join(summary) or "no changes")
        return document

    @staticmethod
    def _notify_status_change(session: Session, document: Document, actor: User, new_status: DocumentStatus):
        notifications = DocumentService._notifications(session)
        if new_status == DocumentStatus.PENDING_APPROVAL:
            notifications.stage_for_users(
                DocumentService.reviewer_ids(session, exclude_id=actor.id),
                lambda uid: ApprovalRequestNotification(uid, document.id, document.title),
            )
        elif new_status == DocumentStatus.ACTIVE:
            notifications.stage(
                DocumentStatusNotification(document.created_by_id, document.id, document.title, new_status.value)
            )

    @staticmethod
    def change_status(
        session: Session,
        document_id: int,
        new_status: DocumentStatus,
        actor: User,
        ip_address: Optional[str] = None,
    ) -> Document:
        return DocumentService.update_document(
            session, document_id, {"status": new_status}, actor,
            ip_address=ip_address, action=AuditAction.STATUS_CHANGED,
        )

    @staticmethod
    def duplicate_document(
        session: Session,
        document_id: int,
        actor: User,
        ip_address: Optional[str] = None,
    ) -> Document:
        original = DocumentService.get_document(session, document_id, actor)

        with atomic(session):
            copy = Document(
                title=f"{original.title} (Copy)",
                content=original.content,
                status=DocumentStatus.DRAFT,
                version=1,
                category=original.category,
                template_id=original.template_id,
                expires_at=original.expires_at,
                created_by_id=actor.id,
            )
            session.add(copy)
            session.flush()

            AuditService.record(
                session, AuditAction.DOCUMENT_DUPLICATED, actor.id,
                document_id=original.id,
                details=f"Duplicated as document {copy.id}",
                ip_address=ip_address,
            )
            AuditService.record(
                session, AuditAction.DOCUMENT_CREATED, actor.id,
                document_id=copy.id,
                details=f"Created as a copy of document {original.id}",
                ip_address=ip_address,
            )

        session.refresh(copy)
        logger.info("Document %s duplicated as %s by user %s", original.id, copy.id, actor.id)
        return copy

    # ---- reads ----

    @staticmethod
    def list_documents(
        session: Session,
        user: User,
        status: Optional[DocumentStatus] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Document], Dict[str, int]]:
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)

        query = DocumentService._scoped_query(session, user)
        if status is not None:
            query = query.filter(Document.status == status)

        total = query.count()
        items = (
            query.order_by(Document.updated_at.desc(), Document.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        pagination = {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit) if total else 0,
        }
        return items, pagination

    @staticmethod
    def recent_documents(session: Session, user: User, limit: int = RECENT_LIMIT) -> List[Document]:
        return (
            DocumentService._scoped_query(session, user)
            .order_by(Document.updated_at.desc(), Document.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def search_documents(session: Session, user: User, query: str) -> List[Document]:
        term = (query or "").strip()
        if len(term) < MIN_SEARCH_LENGTH:
            raise ValidationFailedError(f"Search query must be at least {MIN_SEARCH_LENGTH} characters")
        pattern = f"%{term}%"
        return (
            DocumentService._scoped_query(session, user)
            .filter(or_(Document.title.ilike(pattern), Document.content.ilike(pattern)))
            .order_by(Document.updated_at.desc(), Document.id.desc())
            .all()
        )

    @staticmethod
    def list_versions(session: Session, document_id: int, user: User) -> List[DocumentVersion]:
        DocumentService.get_document(session, document_id, user)
        return (
            session.query(DocumentVersion)
            .filter(DocumentVersion.document_id == document_id)
            .order_by(DocumentVersion.version.desc())
            .all()
        )

    @staticmethod
    def export_document(
        session: Session,
        document_id: int,
        user: User,
        ip_address: Optional[str] = None,
    ) -> Tuple[str, str]:
        """Returns (filename, body) for a plain-text download."""
        document = DocumentService.get_document(session, document_id, user)
        safe_title = re.sub(r"[^A-Za-z0-9_-]+", "_", document.title).strip("_") or "document"
        filename = f"{safe_title}_v{document.version}.txt"
        body = f"{document.title}\n\n{document.content}"

        with atomic(session):
            AuditService.record(
                session, AuditAction.DOCUMENT_DOWNLOADED, user.id,
                document_id=document.id,
                details=f"Exported {filename}",
                ip_address=ip_address,
            )
        return filename, body
