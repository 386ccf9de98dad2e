from typing import Iterable, List, Optional

from compliance_api.exceptions import ForbiddenError, NotFoundError
from compliance_api.modules.notifications.models.notification import (
    Notification, NotificationPriority, NotificationType,
)
from compliance_api.modules.notifications.repositories.notification_repository import NotificationRepository

class NotificationTemplate:
    type = NotificationType.SYSTEM_NOTIFICATION
    priority = NotificationPriority.MEDIUM
    related_type: Optional[str] = None

    def __init__(self, user_id: int, title: str, message: str, related_id: Optional[int] = None):
        self.user_id = user_id
        self.title = title
        self.message = message
        self.related_id = related_id

    def to_notification(self) -> Notification:
        return Notification(
            user_id=self.user_id,
            title=self.title,
            message=self.message,
            type=self.type,
            priority=self.priority,
            related_id=self.related_id,
            related_type=self.related_type,
        )

class DocumentCreatedNotification(NotificationTemplate):
    type = NotificationType.DOCUMENT_UPDATE
    related_type = "document"

    def __init__(self, user_id: int, document_id: int, document_title: str, author_name: str):
        message = f"Document \"{document_title}\" has been created by {author_name}"
        super().__init__(user_id, "New Document Created", message, document_id)

class ApprovalRequestNotification(NotificationTemplate):
    type = NotificationType.APPROVAL_REQUEST
    priority = NotificationPriority.HIGH
    related_type = "document"

    def __init__(self, user_id: int, document_id: int, document_title: str):
        message = f"Document \"{document_title}\" is waiting for approval"
        super().__init__(user_id, "Approval Requested", message, document_id)

class DocumentStatusNotification(NotificationTemplate):
    type = NotificationType.DOCUMENT_UPDATE
    related_type = "document"

    def __init__(self, user_id: int, document_id: int, document_title: str, new_status: str):
        readable_statuses = {
            'draft': 'Draft',
            'pending_approval': 'Pending approval',
            'active': 'Active',
            'expired': 'Expired',
            'archived': 'Archived',
        }
        status_human = readable_statuses.get(new_status, new_status)
        message = f"Document \"{document_title}\" is now '{status_human}'."
        super().__init__(user_id, "Document status changed", message, document_id)

class DeadlineAssignedNotification(NotificationTemplate):
    type = NotificationType.DEADLINE_REMINDER
    related_type = "compliance_deadline"

    def __init__(self, user_id: int, deadline_id: int, deadline_title: str, due: str):
        message = f"You have been assigned \"{deadline_title}\", due {due}"
        super().__init__(user_id, "Compliance deadline assigned", message, deadline_id)

class UserDocumentUploadNotification(NotificationTemplate):
    type = NotificationType.USER_DOCUMENT_UPLOAD
    priority = NotificationPriority.LOW
    related_type = "user_document"

    def __init__(self, user_id: int, user_document_id: int, title: str, uploader_name: str):
        message = f"Document \"{title}\" has been uploaded by {uploader_name}"
        super().__init__(user_id, "New User Document Uploaded", message, user_document_id)

class NotificationService:
    def __init__(self, repository: NotificationRepository):
        self.notification_repository = repository

    def stage(self, template: NotificationTemplate) -> Notification:
        """Adds the notification to the current transaction without committing."""
        return self.notification_repository.add(template.to_notification())

    def stage_for_users(self, user_ids: Iterable[int], build) -> List[Notification]:
        return [self.stage(build(user_id)) for user_id in user_ids]

    def get_notifications(
        self,
        user_id: int,
        is_read: Optional[bool] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Notification]:
        return self.notification_repository.find_by_user_id(user_id, is_read, limit, offset)

    def get_counts(self, user_id: int) -> dict:
        return {
            "total": self.notification_repository.count_by_user_id(user_id),
            "unread": self.notification_repository.count_by_user_id(user_id, is_read=False),
        }

    def _owned(self, notification_id: int, user_id: int) -> Notification:
        notif = self.notification_repository.get(notification_id)
        if not notif:
            raise NotFoundError("Notification not found")
        if notif.user_id != user_id:
            raise ForbiddenError("Forbidden")
        return notif

    def mark_as_read(self, notification_id: int, user_id: int) -> Notification:
        self._owned(notification_id, user_id)
        return self.notification_repository.update(notification_id, {'is_read': True})

    def mark_all_as_read(self, user_id: int) -> int:
        return self.notification_repository.mark_all_read(user_id)

    def delete(self, notification_id: int, user_id: int) -> None:
        notif = self._owned(notification_id, user_id)
        self.notification_repository.delete(notif)
