from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from compliance_api.database import get_db
from compliance_api.modules.auth.dependencies import get_client_ip, get_current_user
from compliance_api.modules.documents.models.document import DocumentStatus
from compliance_api.modules.documents.models.schemas import (
    DocumentCreate, DocumentPage, DocumentResponse, DocumentUpdate,
    DocumentVersionResponse, StatusChangeRequest,
)
from compliance_api.modules.documents.models.user import User
from compliance_api.modules.documents.services.document_service import MAX_PAGE_SIZE, DocumentService
from compliance_api.modules.documents.services.document_state_service import DocumentStateService

router = APIRouter(
    prefix="/documents",
    tags=["documents"]
)

@router.get("", response_model=DocumentPage)
def list_documents(
    status_filter: Optional[DocumentStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    items, pagination = DocumentService.list_documents(db, current_user, status_filter, page, limit)
    return {"data": items, "pagination": pagination}

@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
def create_document(
    payload: DocumentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    return DocumentService.create_document(
        db,
        title=payload.title,
        content=payload.content,
        created_by_id=current_user.id,
        template_id=payload.template_id,
        category=payload.category,
        expires_at=payload.expires_at,
        ip_address=ip_address,
    )

# declared before /{document_id} so the literal paths win
@router.get("/recent", response_model=List[DocumentResponse])
def recent_documents(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return DocumentService.recent_documents(db, current_user)

@router.get("/search", response_model=List[DocumentResponse])
def search_documents(
    q: str = Query(..., description="Matches title or content"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return DocumentService.search_documents(db, current_user, q)

@router.get("/{document_id}", response_model=DocumentResponse)
def get_document(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return DocumentService.get_document(db, document_id, current_user)

@router.put("/{document_id}", response_model=DocumentResponse)
def update_document(
    document_id: int,
    payload: DocumentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    """Update content and/or status; content is applied first."""
    changes = payload.model_dump(exclude_unset=True)
    return DocumentService.update_document(db, document_id, changes, current_user, ip_address=ip_address)

@router.patch("/{document_id}/status", response_model=DocumentResponse)
def change_status(
    document_id: int,
    payload: StatusChangeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    return DocumentService.change_status(db, document_id, payload.status, current_user, ip_address=ip_address)

@router.get("/{document_id}/transitions", response_model=List[DocumentStatus])
def allowed_transitions(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Statuses the current user may move this document to."""
    document = DocumentService.get_document(db, document_id, current_user)
    return DocumentStateService.get_allowed_transitions(current_user, document)

@router.post("/{document_id}/duplicate", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
def duplicate_document(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    return DocumentService.duplicate_document(db, document_id, current_user, ip_address=ip_address)

@router.get("/{document_id}/versions", response_model=List[DocumentVersionResponse])
def list_versions(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return DocumentService.list_versions(db, document_id, current_user)

@router.get("/{document_id}/download")
def download_document(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    filename, body = DocumentService.export_document(db, document_id, current_user, ip_address=ip_address)
    return Response(
        content=body,
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
