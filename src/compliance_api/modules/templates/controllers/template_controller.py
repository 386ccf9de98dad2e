from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from compliance_api.database import get_db
from compliance_api.modules.auth.dependencies import get_client_ip, get_current_user, require_permission
from compliance_api.modules.documents.models.schemas import DocumentResponse
from compliance_api.modules.documents.models.user import User
from compliance_api.modules.templates.models.schemas import (
    TemplateCreate, TemplateDocumentCreate, TemplateResponse, TemplateUpdate,
)
from compliance_api.modules.templates.services.template_service import TemplateService

router = APIRouter(prefix="/templates", tags=["templates"])

@router.get("", response_model=List[TemplateResponse])
def list_templates(
    category: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return TemplateService.list_templates(db, category, include_inactive)

@router.post("", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
def create_template(
    payload: TemplateCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("manage_templates")),
):
    return TemplateService.create_template(db, payload.model_dump(), current_user)

@router.get("/{template_id}", response_model=TemplateResponse)
def get_template(
    template_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return TemplateService.get_template(db, template_id)

@router.put("/{template_id}", response_model=TemplateResponse)
def update_template(
    template_id: int,
    payload: TemplateUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return TemplateService.update_template(db, template_id, payload.model_dump(exclude_unset=True), current_user)

@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_template(
    template_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    TemplateService.delete_template(db, template_id, current_user)

@router.post("/{template_id}/documents", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
def create_document_from_template(
    template_id: int,
    payload: TemplateDocumentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    ip_address: Optional[str] = Depends(get_client_ip),
):
    """Render the template with the given values and open a draft document."""
    return TemplateService.create_document_from_template(
        db,
        template_id,
        payload.title,
        payload.values,
        current_user,
        category=payload.category,
        ip_address=ip_address,
    )
