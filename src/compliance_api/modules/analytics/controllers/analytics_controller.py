from datetime import datetime
from typing import Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from compliance_api.database import get_db
from compliance_api.modules.analytics.services import analytics_service
from compliance_api.modules.auth.dependencies import get_current_user
from compliance_api.modules.compliance.services.deadline_service import DeadlineService
from compliance_api.modules.documents.models.document import Document
from compliance_api.modules.documents.models.user import User, UserRole
from compliance_api.modules.user_documents.services.user_document_service import UserDocumentService

router = APIRouter(tags=["analytics"])

def _load(db: Session, user: User):
    documents = db.query(Document)
    if user.role == UserRole.EMPLOYEE:
        documents = documents.filter(Document.created_by_id == user.id)
    return (
        documents.all(),
        UserDocumentService.list_documents(db, user),
        DeadlineService.list_deadlines(db, user),
    )

@router.get("/dashboard/stats")
def dashboard_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Dict[str, int]:
    documents, user_documents, deadlines = _load(db, current_user)
    return analytics_service.dashboard_stats(documents, user_documents, deadlines, datetime.utcnow())

@router.get("/analytics/overview")
def analytics_overview(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    documents, user_documents, deadlines = _load(db, current_user)
    return analytics_service.analytics_overview(documents, user_documents, deadlines, datetime.utcnow())

@router.get("/analytics/categories")
def category_breakdown(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Dict[str, int]:
    documents, _, _ = _load(db, current_user)
    return analytics_service.category_breakdown(documents)
