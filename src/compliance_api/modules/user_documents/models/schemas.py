from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from compliance_api.modules.user_documents.models.user_document import UserDocumentStatus


class UploadMetadata(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = []
    category: Optional[str] = None


class UserDocumentUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    starred: Optional[bool] = None
    status: Optional[UserDocumentStatus] = None


class UserDocumentResponse(BaseModel):
    id: int
    user_id: int
    title: str
    description: Optional[str] = None
    file_name: str
    file_type: str
    file_size: int
    file_url: str
    tags: List[str] = []
    category: Optional[str] = None
    starred: bool = False
    status: UserDocumentStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BulkUploadResult(BaseModel):
    file_name: str
    index: int
    status: str  # success | error
    document: Optional[UserDocumentResponse] = None
    error: Optional[str] = None


class BulkUploadSummary(BaseModel):
    total: int
    successful: int
    failed: int
    success_rate: int


class BulkUploadResponse(BaseModel):
    results: List[BulkUploadResult]
    summary: BulkUploadSummary


class FolderName(BaseModel):
    name: str


class FolderResponse(BaseModel):
    id: Optional[int] = None  # None for a category with no folder row yet
    name: str
    document_count: int
    created_at: Optional[datetime] = None
    is_default: bool
    managed: bool


class FolderStats(BaseModel):
    folder_name: str
    document_count: int
    total_size: int
    starred_count: int
    last_modified: Optional[datetime] = None
    is_empty: bool


class FolderDeleteResult(BaseModel):
    folder_name: str
    deleted_documents: int


class FolderCleanupResult(BaseModel):
    managed_folders: int
    moved_documents: int
