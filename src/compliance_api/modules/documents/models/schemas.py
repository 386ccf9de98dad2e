from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field

from compliance_api.modules.documents.models.document import DocumentStatus


class DocumentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    content: str
    template_id: Optional[int] = None
    category: Optional[str] = None
    expires_at: Optional[datetime] = None


class DocumentUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = None
    status: Optional[DocumentStatus] = None
    category: Optional[str] = None
    expires_at: Optional[datetime] = None


class StatusChangeRequest(BaseModel):
    status: DocumentStatus


class DocumentResponse(BaseModel):
    id: int
    title: str
    content: str
    status: DocumentStatus
    version: int
    category: Optional[str] = None
    template_id: Optional[int] = None
    created_by_id: int
    created_at: datetime
    updated_at: datetime
    expires_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class DocumentPage(BaseModel):
    data: List[DocumentResponse]
    pagination: Pagination


class DocumentVersionResponse(BaseModel):
    id: int
    document_id: int
    version: int
    content: str
    created_by_id: int
    created_at: datetime

    model_config = {"from_attributes": True}


class SignatureCreate(BaseModel):
    signature: str
    metadata: Optional[Dict[str, Any]] = None


class SignatureResponse(BaseModel):
    id: int
    document_id: int
    user_id: int
    signature: str
    ip_address: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        validation_alias=AliasChoices("signature_metadata", "metadata"),
    )
    document_version: int
    content_hash: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AuditTrailResponse(BaseModel):
    id: int
    document_id: Optional[int] = None
    user_id: Optional[int] = None
    actor_type: str
    action: str
    details: Optional[str] = None
    timestamp: datetime
    ip_address: Optional[str] = None

    model_config = {"from_attributes": True}
