from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from compliance_api.database import get_db
from compliance_api.modules.auth.dependencies import get_current_user
from compliance_api.modules.documents.models.user import User
from compliance_api.modules.notifications.repositories.notification_repository import NotificationRepository
from compliance_api.modules.notifications.services.notification_service import NotificationService
from compliance_api.modules.notifications.models.schemas import NotificationCounts, NotificationResponse

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    repo = NotificationRepository(db)
    return NotificationService(repo)


@router.get(
    "",
    response_model=List[NotificationResponse],
    summary="List the current user's notifications"
)
def list_notifications(
    is_read: Optional[bool] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    return service.get_notifications(current_user.id, is_read, limit, offset)


@router.get("/counts", response_model=NotificationCounts)
def notification_counts(
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    return service.get_counts(current_user.id)


@router.put(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark a notification as read"
)
def mark_notification_as_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    return service.mark_as_read(notification_id, current_user.id)


@router.post("/mark-all-read")
def mark_all_as_read(
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    updated = service.mark_all_as_read(current_user.id)
    return {"updated": updated}


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    service.delete(notification_id, current_user.id)
