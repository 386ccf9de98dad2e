from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from compliance_api.database import get_db
from compliance_api.modules.auth.dependencies import get_client_ip, get_current_user
from compliance_api.modules.documents.models.schemas import (
    AuditTrailResponse, SignatureCreate, SignatureResponse,
)
from compliance_api.modules.documents.models.user import User
from compliance_api.modules.documents.services.audit_service import AuditService
from compliance_api.modules.documents.services.document_service import DocumentService
from compliance_api.modules.documents.services.signature_service import SignatureService

router = APIRouter(
    prefix="/documents",
    tags=["documents"]
)

@router.get("/{document_id}/signatures", response_model=List[SignatureResponse])
def list_signatures(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    DocumentService.get_document(db, document_id, current_user)
    return SignatureService.list_signatures(db, document_id)

@router.post("/{document_id}/signatures", response_model=SignatureResponse, status_code=status.HTTP_201_CREATED)
def sign_document(
    document_id: int,
    payload: SignatureCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    """
    Sign a document once. Only pending_approval and active documents accept signatures.
    """
    DocumentService.get_document(db, document_id, current_user)
    return SignatureService.sign_document(
        db,
        document_id,
        current_user.id,
        payload.signature,
        payload.metadata,
        ip_address=ip_address,
    )

@router.get("/{document_id}/audit", response_model=List[AuditTrailResponse])
def get_audit_trail(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    DocumentService.get_document(db, document_id, current_user)
    return AuditService.list_for_document(db, document_id)
