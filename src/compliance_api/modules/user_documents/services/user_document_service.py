import io
import logging
import re
import time
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from PyPDF2 import PdfReader
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from compliance_api.database import atomic
from compliance_api.exceptions import (
    ComplianceError, ConflictError, FileTooLargeError, ForbiddenError, NotFoundError, StorageError,
    ValidationFailedError,
)
from compliance_api.modules.documents.models.user import User, UserRole
from compliance_api.modules.documents.services.document_service import DocumentService
from compliance_api.modules.notifications.repositories.notification_repository import NotificationRepository
from compliance_api.modules.notifications.services.notification_service import (
    NotificationService, UserDocumentUploadNotification,
)
from compliance_api.modules.storage.client import ObjectStorageClient
from compliance_api.modules.user_documents.models.user_document import UserDocument
from compliance_api.modules.user_documents.models.user_folder import DEFAULT_FOLDER, UserFolder

logger = logging.getLogger(__name__)

KEY_PREFIX = "user-documents"
REQUIRED_FIELDS = ("title", "tags", "category", "starred", "status")
FOLDER_NAME_INVALID = re.compile(r"[<>:\"/\\|?*]")
RESERVED_FOLDER_NAMES = {"CON", "PRN", "AUX", "NUL"} | {f"COM{i}" for i in range(1, 10)} | {f"LPT{i}" for i in range(1, 10)}

def _format_size(size: int) -> str:
    if size >= 1024 * 1024:
        return f"{size // (1024 * 1024)} MB"
    return f"{size} bytes"

class UserDocumentService:

    @staticmethod
    def _validate_file(file_contents: bytes, filename: str, content_type: str, max_file_size: int):
        """Rejects empty, oversized and unreadable PDF uploads."""
        if not filename:
            raise ValidationFailedError("File name is required")

        if len(file_contents) > max_file_size:
            raise FileTooLargeError(f"File \"{filename}\" exceeds the {_format_size(max_file_size)} limit")

        if not file_contents:
            raise ValidationFailedError(f"File \"{filename}\" is empty")

        if content_type == "application/pdf":
            try:
                reader = PdfReader(io.BytesIO(file_contents))
                _ = reader.pages[0]
            except Exception as e:
                raise ValidationFailedError(f"File \"{filename}\" is not a valid PDF") from e

    @staticmethod
    def _object_key(user_id: int, filename: str, index: Optional[int] = None) -> str:
        sanitized = re.sub(r"[^a-zA-Z0-9.-]", "_", filename)
        stamp = int(time.time() * 1000)
        suffix = uuid.uuid4().hex[:8]
        if index is not None:
            return f"{KEY_PREFIX}/{user_id}/{stamp}-{suffix}-{index}-{sanitized}"
        return f"{KEY_PREFIX}/{user_id}/{stamp}-{suffix}-{sanitized}"

    @staticmethod
    def upload_document(
        session: Session,
        storage: ObjectStorageClient,
        user: User,
        file_contents: bytes,
        filename: str,
        content_type: str,
        metadata: Optional[Dict[str, Any]] = None,
        max_file_size: int = 50 * 1024 * 1024,
        index: Optional[int] = None,
    ) -> UserDocument:
        """
        Stores the bytes, then writes the row. If the row cannot be written
        the stored object is removed again.
        """
        metadata = metadata or {}
        content_type = content_type or "application/octet-stream"

        # 1) Validate
        UserDocumentService._validate_file(file_contents, filename, content_type, max_file_size)

        # 2) Store bytes and confirm they landed
        key = UserDocumentService._object_key(user.id, filename, index)
        storage.put(key, file_contents, content_type)
        if not storage.exists(key):
            raise StorageError(f"Upload verification failed for {key}")

        # 3) Create record and notify reviewers
        try:
            with atomic(session):
                document = UserDocument(
                    user_id=user.id,
                    title=metadata.get("title") or filename,
                    description=metadata.get("description"),
                    file_name=filename,
                    file_type=content_type,
                    file_size=len(file_contents),
                    file_url=key,
                    tags=list(metadata.get("tags") or []),
                    category=metadata.get("category") or DEFAULT_FOLDER,
                )
                session.add(document)
                session.flush()

                NotificationService(NotificationRepository(session)).stage_for_users(
                    DocumentService.reviewer_ids(session, exclude_id=user.id),
                    lambda uid: UserDocumentUploadNotification(uid, document.id, document.title, user.name),
                )
        except Exception:
            storage.delete(key)
            raise

        session.refresh(document)
        logger.info("User %s uploaded %s as %s (%d bytes)", user.id, filename, key, len(file_contents))
        return document

    @staticmethod
    def bulk_upload(
        session: Session,
        storage: ObjectStorageClient,
        user: User,
        files: Sequence[Tuple[str, str, bytes]],
        metadata: Optional[Dict[str, Any]] = None,
        max_file_size: int = 50 * 1024 * 1024,
    ) -> Dict[str, Any]:
        """
        Uploads ``(filename, content_type, bytes)`` tuples one after another.
        A failing file is reported in its result entry and the rest carry on.
        """
        shared = dict(metadata or {})
        shared.pop("title", None)

        results = []
        for index, (filename, content_type, data) in enumerate(files):
            result = {
                "file_name": filename or f"file_{index}",
                "index": index,
                "status": "success",
                "document": None,
                "error": None,
            }
            try:
                result["document"] = UserDocumentService.upload_document(
                    session, storage, user, data, filename, content_type,
                    metadata=shared, max_file_size=max_file_size, index=index,
                )
            except ComplianceError as e:
                logger.warning("Bulk upload: file %d (%s) rejected: %s", index, filename, e.message)
                result["status"] = "error"
                result["error"] = e.message
            except Exception as e:
                logger.warning("Bulk upload: file %d (%s) failed", index, filename, exc_info=True)
                result["status"] = "error"
                result["error"] = str(e) or "Failed to process file"
            results.append(result)

        total = len(results)
        successful = sum(1 for r in results if r["status"] == "success")
        logger.info("Bulk upload by user %s: %d/%d files stored", user.id, successful, total)
        return {
            "results": results,
            "summary": {
                "total": total,
                "successful": successful,
                "failed": total - successful,
                "success_rate": round(successful / total * 100) if total else 0,
            },
        }

    @staticmethod
    def list_documents(session: Session, user: User) -> List[UserDocument]:
        return (
            session.query(UserDocument)
            .filter(UserDocument.user_id == user.id)
            .order_by(UserDocument.updated_at.desc(), UserDocument.id.desc())
            .all()
        )

    @staticmethod
    def get_document(session: Session, document_id: int, user: User, for_write: bool = False) -> UserDocument:
        document = session.get(UserDocument, document_id)
        if not document:
            raise NotFoundError("Document not found")
        is_owner = document.user_id == user.id
        if not is_owner and (for_write or user.role != UserRole.ADMIN):
            raise ForbiddenError("You do not have access to this document")
        return document

    @staticmethod
    def update_document(session: Session, document_id: int, changes: Dict[str, Any], user: User) -> UserDocument:
        document = UserDocumentService.get_document(session, document_id, user, for_write=True)
        with atomic(session):
            for field, value in changes.items():
                if value is None and field in REQUIRED_FIELDS:
                    continue
                setattr(document, field, value)
            document.updated_at = datetime.utcnow()
        session.refresh(document)
        return document

    @staticmethod
    def delete_document(session: Session, storage: ObjectStorageClient, document_id: int, user: User) -> None:
        """Deletes the row, then the stored object."""
        document = UserDocumentService.get_document(session, document_id, user, for_write=True)
        key = document.file_url
        with atomic(session):
            session.delete(document)
        UserDocumentService._delete_objects(storage, [key])
        logger.info("User %s deleted user document %s (%s)", user.id, document_id, key)

    @staticmethod
    def _delete_objects(storage: ObjectStorageClient, keys: Sequence[str]) -> None:
        for key in keys:
            try:
                storage.delete(key)
            except StorageError as e:
                logger.warning("Object %s left in storage after its row was deleted: %s", key, e.message)

    @staticmethod
    def download(
        session: Session,
        storage: ObjectStorageClient,
        document_id: int,
        user: User,
    ) -> Tuple[UserDocument, bytes]:
        document = UserDocumentService.get_document(session, document_id, user)
        data = storage.get(document.file_url)
        return document, data

    # ---- folders ----

    @staticmethod
    def _validate_folder_name(name: Optional[str]) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationFailedError("Folder name is required")
        if len(name) < 2:
            raise ValidationFailedError("Folder name must be at least 2 characters")
        if len(name) > 50:
            raise ValidationFailedError("Folder name must be at most 50 characters")
        if FOLDER_NAME_INVALID.search(name):
            raise ValidationFailedError("Folder name contains invalid characters")
        if name.upper() in RESERVED_FOLDER_NAMES:
            raise ValidationFailedError("Folder name is reserved and cannot be used")
        return name

    @staticmethod
    def _ensure_default_folder(session: Session, user: User) -> None:
        exists = (
            session.query(UserFolder.id)
            .filter(UserFolder.user_id == user.id, UserFolder.name == DEFAULT_FOLDER)
            .first()
        )
        if not exists:
            with atomic(session):
                session.add(UserFolder(user_id=user.id, name=DEFAULT_FOLDER))

    @staticmethod
    def _folder_documents(session: Session, user: User, name: str):
        return session.query(UserDocument).filter(
            UserDocument.user_id == user.id,
            func.coalesce(UserDocument.category, DEFAULT_FOLDER) == name,
        )

    @staticmethod
    def _folder_entry(folder: Optional[UserFolder], name: str, count: int) -> Dict[str, Any]:
        return {
            "id": folder.id if folder else None,
            "name": name,
            "document_count": count,
            "created_at": folder.created_at if folder else None,
            "is_default": name == DEFAULT_FOLDER,
            "managed": folder is not None,
        }

    @staticmethod
    def get_folder(session: Session, user: User, folder_id: int) -> UserFolder:
        folder = session.get(UserFolder, folder_id)
        if not folder or folder.user_id != user.id:
            raise NotFoundError("Folder not found")
        return folder

    @staticmethod
    def list_folders(session: Session, user: User) -> List[Dict[str, Any]]:
        """
        Folders the user created plus the always-present default folder.
        Categories used by documents without a folder row are listed as
        unmanaged (``id`` is None) until ``cleanup_folders`` folds them in.
        """
        UserDocumentService._ensure_default_folder(session, user)

        category = func.coalesce(UserDocument.category, DEFAULT_FOLDER)
        counts = dict(
            session.query(category, func.count(UserDocument.id))
            .filter(UserDocument.user_id == user.id)
            .group_by(category)
            .all()
        )
        folders = {
            f.name: f for f in session.query(UserFolder).filter(UserFolder.user_id == user.id).all()
        }
        return [
            UserDocumentService._folder_entry(folders.get(name), name, counts.get(name, 0))
            for name in sorted(set(folders) | set(counts))
        ]

    @staticmethod
    def create_folder(session: Session, user: User, name: str) -> Dict[str, Any]:
        name = UserDocumentService._validate_folder_name(name)
        UserDocumentService._ensure_default_folder(session, user)

        taken = (
            session.query(UserFolder.id)
            .filter(UserFolder.user_id == user.id, UserFolder.name == name)
            .first()
        )
        if taken:
            raise ConflictError("A folder with this name already exists")

        with atomic(session):
            folder = UserFolder(user_id=user.id, name=name)
            session.add(folder)
        session.refresh(folder)

        count = UserDocumentService._folder_documents(session, user, name).count()
        logger.info("User %s created folder %r", user.id, name)
        return UserDocumentService._folder_entry(folder, name, count)

    @staticmethod
    def rename_folder(session: Session, user: User, folder_id: int, name: str) -> Dict[str, Any]:
        """Renames the folder and moves its documents' category along with it."""
        folder = UserDocumentService.get_folder(session, user, folder_id)
        if folder.is_default:
            raise ValidationFailedError(f"Cannot rename the default {DEFAULT_FOLDER} folder")
        new_name = UserDocumentService._validate_folder_name(name)
        if new_name == folder.name:
            raise ValidationFailedError("New folder name is the same as the current name")
        taken = (
            session.query(UserFolder.id)
            .filter(UserFolder.user_id == user.id, UserFolder.name == new_name)
            .first()
        )
        if taken:
            raise ConflictError("A folder with this name already exists")

        old_name = folder.name
        with atomic(session):
            UserDocumentService._folder_documents(session, user, old_name).update(
                {UserDocument.category: new_name, UserDocument.updated_at: datetime.utcnow()},
                synchronize_session=False,
            )
            folder.name = new_name
        session.refresh(folder)

        count = UserDocumentService._folder_documents(session, user, new_name).count()
        logger.info("User %s renamed folder %r to %r", user.id, old_name, new_name)
        return UserDocumentService._folder_entry(folder, new_name, count)

    @staticmethod
    def folder_stats(session: Session, user: User, folder_id: int) -> Dict[str, Any]:
        folder = UserDocumentService.get_folder(session, user, folder_id)
        docs = UserDocumentService._folder_documents(session, user, folder.name).all()
        return {
            "folder_name": folder.name,
            "document_count": len(docs),
            "total_size": sum(d.file_size for d in docs),
            "starred_count": sum(1 for d in docs if d.starred),
            "last_modified": max((d.updated_at for d in docs), default=None),
            "is_empty": not docs,
        }

    @staticmethod
    def delete_folder(
        session: Session,
        storage: ObjectStorageClient,
        user: User,
        folder_id: int,
        force: bool = False,
    ) -> Dict[str, Any]:
        """
        Deletes the folder. A folder that still holds documents is only
        deleted with ``force``, and its documents and their objects go too.
        """
        folder = UserDocumentService.get_folder(session, user, folder_id)
        if folder.is_default:
            raise ValidationFailedError(f"Cannot delete the default {DEFAULT_FOLDER} folder")

        name = folder.name
        docs = UserDocumentService._folder_documents(session, user, name).all()
        if docs and not force:
            raise ConflictError(
                f"Folder \"{name}\" contains {len(docs)} document(s); delete with force to remove them"
            )

        keys = [d.file_url for d in docs]
        with atomic(session):
            for doc in docs:
                session.delete(doc)
            session.delete(folder)
        UserDocumentService._delete_objects(storage, keys)

        logger.info("User %s deleted folder %r with %d document(s)", user.id, name, len(docs))
        return {"folder_name": name, "deleted_documents": len(docs)}

    @staticmethod
    def cleanup_folders(session: Session, user: User) -> Dict[str, int]:
        """Moves documents whose category has no folder into the default folder."""
        UserDocumentService._ensure_default_folder(session, user)
        managed = [
            row[0] for row in session.query(UserFolder.name).filter(UserFolder.user_id == user.id).all()
        ]

        with atomic(session):
            moved = (
                session.query(UserDocument)
                .filter(
                    UserDocument.user_id == user.id,
                    or_(UserDocument.category.is_(None), UserDocument.category.notin_(managed)),
                )
                .update(
                    {UserDocument.category: DEFAULT_FOLDER, UserDocument.updated_at: datetime.utcnow()},
                    synchronize_session=False,
                )
            )

        logger.info("Folder cleanup for user %s: %d document(s) moved to %s", user.id, moved, DEFAULT_FOLDER)
        return {"managed_folders": len(managed), "moved_documents": moved}
