import json
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from compliance_api.config import settings
from compliance_api.database import get_db
from compliance_api.exceptions import ValidationFailedError
from compliance_api.modules.auth.dependencies import get_current_user
from compliance_api.modules.documents.models.user import User
from compliance_api.modules.storage.client import ObjectStorageClient, get_storage
from compliance_api.modules.user_documents.models.schemas import (
    BulkUploadResponse, FolderCleanupResult, FolderDeleteResult, FolderName, FolderResponse, FolderStats,
    UploadMetadata, UserDocumentResponse, UserDocumentUpdate,
)
from compliance_api.modules.user_documents.services.user_document_service import UserDocumentService

router = APIRouter(prefix="/user-documents", tags=["user-documents"])

def _parse_metadata(raw: Optional[str]) -> dict:
    if not raw:
        return {}
    try:
        return UploadMetadata.model_validate(json.loads(raw)).model_dump()
    except (json.JSONDecodeError, ValidationError) as e:
        raise ValidationFailedError("metadata must be a JSON object with title, description, tags, category") from e

@router.get("", response_model=List[UserDocumentResponse])
def list_user_documents(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return UserDocumentService.list_documents(db, current_user)

@router.post("/upload", response_model=UserDocumentResponse, status_code=status.HTTP_201_CREATED)
async def upload_user_document(
    file: UploadFile = File(...),
    metadata: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    storage: ObjectStorageClient = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    contents = await file.read()
    return UserDocumentService.upload_document(
        db,
        storage,
        current_user,
        contents,
        file.filename,
        file.content_type,
        metadata=_parse_metadata(metadata),
        max_file_size=settings.MAX_UPLOAD_SIZE,
    )

@router.post("/bulk-upload", response_model=BulkUploadResponse, status_code=status.HTTP_201_CREATED)
async def bulk_upload_user_documents(
    files: List[UploadFile] = File(...),
    metadata: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    storage: ObjectStorageClient = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    """Each file succeeds or fails on its own; see the per-file results."""
    payload = []
    for upload in files:
        payload.append((upload.filename, upload.content_type, await upload.read()))
    return UserDocumentService.bulk_upload(
        db,
        storage,
        current_user,
        payload,
        metadata=_parse_metadata(metadata),
        max_file_size=settings.MAX_UPLOAD_SIZE,
    )

# folder routes must stay above /{document_id}

@router.get("/folders", response_model=List[FolderResponse])
def list_folders(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return UserDocumentService.list_folders(db, current_user)

@router.post("/folders", response_model=FolderResponse, status_code=status.HTTP_201_CREATED)
def create_folder(
    payload: FolderName,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return UserDocumentService.create_folder(db, current_user, payload.name)

@router.post("/folders/cleanup", response_model=FolderCleanupResult)
def cleanup_folders(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return UserDocumentService.cleanup_folders(db, current_user)

@router.put("/folders/{folder_id}", response_model=FolderResponse)
def rename_folder(
    folder_id: int,
    payload: FolderName,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return UserDocumentService.rename_folder(db, current_user, folder_id, payload.name)

@router.get("/folders/{folder_id}/stats", response_model=FolderStats)
def folder_stats(
    folder_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return UserDocumentService.folder_stats(db, current_user, folder_id)

@router.delete("/folders/{folder_id}", response_model=FolderDeleteResult)
def delete_folder(
    folder_id: int,
    force: bool = Query(False),
    db: Session = Depends(get_db),
    storage: ObjectStorageClient = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    """Refuses a folder that still holds documents unless ``force`` is set."""
    return UserDocumentService.delete_folder(db, storage, current_user, folder_id, force=force)

@router.get("/{document_id}", response_model=UserDocumentResponse)
def get_user_document(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return UserDocumentService.get_document(db, document_id, current_user)

@router.patch("/{document_id}", response_model=UserDocumentResponse)
def update_user_document(
    document_id: int,
    payload: UserDocumentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return UserDocumentService.update_document(db, document_id, payload.model_dump(exclude_unset=True), current_user)

@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user_document(
    document_id: int,
    db: Session = Depends(get_db),
    storage: ObjectStorageClient = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    UserDocumentService.delete_document(db, storage, document_id, current_user)

@router.get("/{document_id}/download")
def download_user_document(
    document_id: int,
    db: Session = Depends(get_db),
    storage: ObjectStorageClient = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    document, data = UserDocumentService.download(db, storage, document_id, current_user)
    return Response(
        content=data,
        media_type=document.file_type or "application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{document.file_name}"'},
    )
