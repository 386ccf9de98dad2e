import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from compliance_api.database import atomic
from compliance_api.exceptions import ForbiddenError, NotFoundError
from compliance_api.modules.compliance.models.deadline import ComplianceDeadline, DeadlineStatus
from compliance_api.modules.documents.models.audit_trail import AuditAction
from compliance_api.modules.documents.models.document import Document
from compliance_api.modules.documents.models.user import User, UserRole
from compliance_api.modules.documents.services.audit_service import AuditService
from compliance_api.modules.notifications.repositories.notification_repository import NotificationRepository
from compliance_api.modules.notifications.services.notification_service import (
    DeadlineAssignedNotification, NotificationService,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "deadline", "type", "status")

class DeadlineService:
    """
    Deadlines are records whose status only changes on explicit user action.
    Whether one is overdue by date is computed at read time
    (``ComplianceDeadline.is_overdue``) and reported next to the stored status.
    """

    @staticmethod
    def _check_references(session: Session, document_id: Optional[int], assignee_id: Optional[int]):
        if document_id is not None and not session.get(Document, document_id):
            raise NotFoundError("Document not found")
        if assignee_id is not None and not session.get(User, assignee_id):
            raise NotFoundError("Assignee not found")

    @staticmethod
    def _notify_assignee(session: Session, deadline: ComplianceDeadline):
        NotificationService(NotificationRepository(session)).stage(
            DeadlineAssignedNotification(
                deadline.assignee_id, deadline.id, deadline.title, deadline.deadline.strftime("%Y-%m-%d"),
            )
        )

    @staticmethod
    def list_deadlines(
        session: Session,
        user: User,
        upcoming: bool = False,
        status: Optional[DeadlineStatus] = None,
        assignee_id: Optional[int] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        now: Optional[datetime] = None,
    ) -> List[ComplianceDeadline]:
        query = session.query(ComplianceDeadline)
        if user.role == UserRole.EMPLOYEE:
            query = query.filter(ComplianceDeadline.assignee_id == user.id)
        elif assignee_id is not None:
            query = query.filter(ComplianceDeadline.assignee_id == assignee_id)
        if status is not None:
            query = query.filter(ComplianceDeadline.status == status)
        if upcoming:
            query = query.filter(
                ComplianceDeadline.deadline >= (now or datetime.utcnow()),
                ComplianceDeadline.status != DeadlineStatus.COMPLETED,
            )
        query = query.order_by(ComplianceDeadline.deadline.asc(), ComplianceDeadline.id.asc())
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def get_deadline(session: Session, deadline_id: int, user: User) -> ComplianceDeadline:
        deadline = session.get(ComplianceDeadline, deadline_id)
        if not deadline:
            raise NotFoundError("Compliance deadline not found")
        if user.role == UserRole.EMPLOYEE and deadline.assignee_id != user.id:
            raise ForbiddenError("You are not assigned to this deadline")
        return deadline

    @staticmethod
    def create_deadline(
        session: Session,
        data: Dict[str, Any],
        actor: User,
        ip_address: Optional[str] = None,
    ) -> ComplianceDeadline:
        DeadlineService._check_references(session, data.get("document_id"), data.get("assignee_id"))

        with atomic(session):
            deadline = ComplianceDeadline(
                title=data["title"],
                description=data.get("description"),
                deadline=data["deadline"],
                type=data["type"],
                status=data.get("status") or DeadlineStatus.NOT_STARTED,
                document_id=data.get("document_id"),
                assignee_id=data.get("assignee_id"),
                created_by_id=actor.id,
            )
            session.add(deadline)
            session.flush()

            if deadline.document_id is not None:
                AuditService.record(
                    session,
                    AuditAction.COMPLIANCE_DEADLINE_CREATED,
                    actor.id,
                    document_id=deadline.document_id,
                    details=f"Deadline \"{deadline.title}\" due {deadline.deadline.isoformat()}",
                    ip_address=ip_address,
                )
            if deadline.assignee_id is not None:
                DeadlineService._notify_assignee(session, deadline)

        session.refresh(deadline)
        logger.info("Compliance deadline %s created by user %s", deadline.id, actor.id)
        return deadline

    @staticmethod
    def update_deadline(
        session: Session,
        deadline_id: int,
        changes: Dict[str, Any],
        actor: User,
        ip_address: Optional[str] = None,
    ) -> ComplianceDeadline:
        deadline = session.get(ComplianceDeadline, deadline_id)
        if not deadline:
            raise NotFoundError("Compliance deadline not found")
        DeadlineService._check_references(session, changes.get("document_id"), changes.get("assignee_id"))

        previous_assignee = deadline.assignee_id
        with atomic(session):
            changed = []
            for field, value in changes.items():
                if value is None and field in REQUIRED_FIELDS:
                    continue
                if getattr(deadline, field) != value:
                    setattr(deadline, field, value)
                    changed.append(field)

            if "status" in changed:
                deadline.completed_at = (
                    datetime.utcnow() if deadline.status == DeadlineStatus.COMPLETED else None
                )

            if deadline.document_id is not None:
                AuditService.record(
                    session,
                    AuditAction.COMPLIANCE_DEADLINE_UPDATED,
                    actor.id,
                    document_id=deadline.document_id,
                    details=f"Deadline \"{deadline.title}\" updated: {', '.join(changed) or 'no changes'}",
                    ip_address=ip_address,
                )
            if deadline.assignee_id is not None and deadline.assignee_id != previous_assignee:
                DeadlineService._notify_assignee(session, deadline)

        session.refresh(deadline)
        return deadline

    @staticmethod
    def complete_deadline(
        session: Session,
        deadline_id: int,
        actor: User,
        ip_address: Optional[str] = None,
    ) -> ComplianceDeadline:
        deadline = session.get(ComplianceDeadline, deadline_id)
        if not deadline:
            raise NotFoundError("Compliance deadline not found")
        if not actor.is_reviewer and deadline.assignee_id != actor.id:
            raise ForbiddenError("Only the assignee or a reviewer can complete this deadline")

        return DeadlineService.update_deadline(
            session, deadline_id, {"status": DeadlineStatus.COMPLETED}, actor, ip_address=ip_address,
        )
