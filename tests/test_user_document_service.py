import time

import pytest

from compliance_api.exceptions import (
    ConflictError, FileTooLargeError, ForbiddenError, NotFoundError, StorageError, ValidationFailedError,
)
from compliance_api.modules.notifications.models.notification import Notification, NotificationType
from compliance_api.modules.notifications.services.notification_service import NotificationService
from compliance_api.modules.user_documents.models.user_document import UserDocument
from compliance_api.modules.user_documents.models.user_folder import UserFolder
from compliance_api.modules.user_documents.services.user_document_service import UserDocumentService

from conftest import create_dummy_pdf_bytes


def upload(session, storage, user, data=b"hello", name="notes.txt", content_type="text/plain", **kwargs):
    return UserDocumentService.upload_document(session, storage, user, data, name, content_type, **kwargs)


def test_upload_stores_object_and_row(session, storage, employee, officer):
    doc = upload(session, storage, employee, metadata={"title": "My notes", "tags": ["q1"]})

    assert doc.title == "My notes"
    assert doc.file_size == 5
    assert doc.category == "General"
    assert doc.file_url.startswith(f"user-documents/{employee.id}/")
    assert doc.file_url.endswith("-notes.txt")
    assert storage.get(doc.file_url) == b"hello"
    note = session.query(Notification).filter_by(user_id=officer.id).one()
    assert note.type == NotificationType.USER_DOCUMENT_UPLOAD


def test_upload_sanitizes_object_key(session, storage, employee):
    doc = upload(session, storage, employee, name="my report (final).txt")

    assert doc.file_url.endswith("-my_report__final_.txt")
    assert doc.file_name == "my report (final).txt"


def test_valid_pdf_accepted(session, storage, employee):
    doc = upload(session, storage, employee, data=create_dummy_pdf_bytes(), name="policy.pdf",
                 content_type="application/pdf")

    assert doc.file_type == "application/pdf"


def test_corrupt_pdf_rejected(session, storage, employee):
    with pytest.raises(ValidationFailedError):
        upload(session, storage, employee, data=b"not really a pdf", name="broken.pdf",
               content_type="application/pdf")

    assert storage.list() == []


def test_oversized_file_rejected(session, storage, employee):
    with pytest.raises(FileTooLargeError):
        upload(session, storage, employee, data=b"x" * 11, max_file_size=10)


def test_empty_file_rejected(session, storage, employee):
    with pytest.raises(ValidationFailedError):
        upload(session, storage, employee, data=b"")


def test_failed_row_removes_stored_object(session, storage, employee, monkeypatch):
    def boom(self, user_ids, build):
        raise RuntimeError("database went away")

    monkeypatch.setattr(NotificationService, "stage_for_users", boom)

    with pytest.raises(RuntimeError):
        upload(session, storage, employee)

    assert storage.list() == []
    assert session.query(UserDocument).count() == 0


def test_bulk_upload_isolates_failures(session, storage, employee):
    files = [
        ("a.txt", "text/plain", b"a" * 5),
        ("big.txt", "text/plain", b"b" * 50),
        ("c.txt", "text/plain", b"c" * 5),
    ]

    result = UserDocumentService.bulk_upload(session, storage, employee, files, max_file_size=10)

    assert result["summary"] == {"total": 3, "successful": 2, "failed": 1, "success_rate": 67}
    assert [r["status"] for r in result["results"]] == ["success", "error", "success"]
    assert result["results"][1]["file_name"] == "big.txt"
    assert "exceeds" in result["results"][1]["error"]
    assert session.query(UserDocument).count() == 2
    assert len(storage.list("user-documents/")) == 2


def test_bulk_upload_uses_file_names_as_titles(session, storage, employee):
    files = [("one.txt", "text/plain", b"1"), ("two.txt", "text/plain", b"2")]

    result = UserDocumentService.bulk_upload(
        session, storage, employee, files, metadata={"title": "ignored", "category": "Finance"},
    )

    titles = [r["document"].title for r in result["results"]]
    assert titles == ["one.txt", "two.txt"]
    assert all(r["document"].category == "Finance" for r in result["results"])


def test_empty_bulk_upload(session, storage, employee):
    result = UserDocumentService.bulk_upload(session, storage, employee, [])

    assert result["summary"] == {"total": 0, "successful": 0, "failed": 0, "success_rate": 0}


def test_file_url_must_not_be_api_path():
    with pytest.raises(ValueError):
        UserDocument(user_id=1, title="t", file_name="t", file_type="text/plain", file_size=1,
                     file_url="/api/user-documents/1/download")


def test_owner_admin_and_stranger_access(session, storage, employee, admin, make_user):
    stranger = make_user("stranger")
    doc = upload(session, storage, employee)

    with pytest.raises(ForbiddenError):
        UserDocumentService.download(session, storage, doc.id, stranger)
    _, data = UserDocumentService.download(session, storage, doc.id, admin)
    assert data == b"hello"
    with pytest.raises(ForbiddenError):
        UserDocumentService.delete_document(session, storage, doc.id, admin)


def test_delete_removes_row_and_object(session, storage, employee):
    doc = upload(session, storage, employee)
    key = doc.file_url

    UserDocumentService.delete_document(session, storage, doc.id, employee)

    assert not storage.exists(key)
    assert session.query(UserDocument).count() == 0


def test_failed_delete_commit_keeps_object(session, storage, employee, monkeypatch):
    doc = upload(session, storage, employee)
    key = doc.file_url

    def fail_commit():
        raise RuntimeError("commit failed")

    monkeypatch.setattr(session, "commit", fail_commit)
    with pytest.raises(RuntimeError):
        UserDocumentService.delete_document(session, storage, doc.id, employee)
    monkeypatch.undo()

    assert storage.exists(key)
    assert session.query(UserDocument).count() == 1
    _, data = UserDocumentService.download(session, storage, doc.id, employee)
    assert data == b"hello"


def test_storage_failure_after_row_delete_is_logged(session, storage, employee, monkeypatch, caplog):
    doc = upload(session, storage, employee)

    def fail_delete(key):
        raise StorageError("bucket unavailable")

    monkeypatch.setattr(storage, "delete", fail_delete)
    UserDocumentService.delete_document(session, storage, doc.id, employee)

    assert session.query(UserDocument).count() == 0
    assert "left in storage" in caplog.text


def test_same_name_uploads_get_distinct_keys(session, storage, employee, monkeypatch):
    monkeypatch.setattr(time, "time", lambda: 1700000000.0)
    first = upload(session, storage, employee, data=b"first")
    second = upload(session, storage, employee, data=b"second")

    assert first.file_url != second.file_url
    UserDocumentService.delete_document(session, storage, first.id, employee)
    assert storage.get(second.file_url) == b"second"


def test_download_missing_object(session, storage, employee):
    doc = upload(session, storage, employee)
    storage.delete(doc.file_url)

    with pytest.raises(NotFoundError):
        UserDocumentService.download(session, storage, doc.id, employee)


def test_update_and_list(session, storage, employee):
    first = upload(session, storage, employee, name="first.txt")
    upload(session, storage, employee, name="second.txt")

    UserDocumentService.update_document(session, first.id, {"starred": True, "tags": ["audit"]}, employee)

    docs = UserDocumentService.list_documents(session, employee)
    assert docs[0].id == first.id
    assert docs[0].starred is True
    assert docs[0].tags == ["audit"]


def folder_named(session, user, name):
    return session.query(UserFolder).filter_by(user_id=user.id, name=name).one()


def test_list_folders_includes_default_and_unmanaged_categories(session, storage, employee):
    upload(session, storage, employee, name="a.txt")
    upload(session, storage, employee, name="b.txt", metadata={"category": "Contracts"})

    folders = {f["name"]: f for f in UserDocumentService.list_folders(session, employee)}

    assert list(folders) == ["Contracts", "General"]
    assert folders["General"]["is_default"] is True
    assert folders["General"]["managed"] is True
    assert folders["General"]["document_count"] == 1
    assert folders["Contracts"]["id"] is None
    assert folders["Contracts"]["managed"] is False
    assert folders["Contracts"]["document_count"] == 1


def test_create_folder_adopts_existing_category(session, storage, employee):
    upload(session, storage, employee, metadata={"category": "Contracts"})

    folder = UserDocumentService.create_folder(session, employee, "  Contracts ")

    assert folder["name"] == "Contracts"
    assert folder["managed"] is True
    assert folder["document_count"] == 1
    with pytest.raises(ConflictError):
        UserDocumentService.create_folder(session, employee, "Contracts")


@pytest.mark.parametrize("name", ["", "x", "a" * 51, "bad/name", "what?", "con", "LPT1"])
def test_create_folder_rejects_invalid_names(session, employee, name):
    with pytest.raises(ValidationFailedError):
        UserDocumentService.create_folder(session, employee, name)


def test_folders_are_private_to_their_owner(session, employee, make_user):
    other = make_user("other")
    folder = UserDocumentService.create_folder(session, employee, "Private")

    with pytest.raises(NotFoundError):
        UserDocumentService.folder_stats(session, other, folder["id"])
    with pytest.raises(NotFoundError):
        UserDocumentService.rename_folder(session, other, folder["id"], "Taken")
    assert [f["name"] for f in UserDocumentService.list_folders(session, other)] == ["General"]


def test_rename_folder_moves_documents(session, storage, employee):
    folder = UserDocumentService.create_folder(session, employee, "Contracts")
    doc = upload(session, storage, employee, metadata={"category": "Contracts"})
    UserDocumentService.create_folder(session, employee, "Archive")

    renamed = UserDocumentService.rename_folder(session, employee, folder["id"], "Vendor contracts")

    assert renamed["name"] == "Vendor contracts"
    assert renamed["document_count"] == 1
    assert session.get(UserDocument, doc.id).category == "Vendor contracts"
    with pytest.raises(ConflictError):
        UserDocumentService.rename_folder(session, employee, folder["id"], "Archive")
    with pytest.raises(ValidationFailedError):
        UserDocumentService.rename_folder(session, employee, folder["id"], "Vendor contracts")


def test_default_folder_cannot_be_renamed_or_deleted(session, storage, employee):
    UserDocumentService.list_folders(session, employee)
    general = folder_named(session, employee, "General")

    with pytest.raises(ValidationFailedError):
        UserDocumentService.rename_folder(session, employee, general.id, "Misc")
    with pytest.raises(ValidationFailedError):
        UserDocumentService.delete_folder(session, storage, employee, general.id, force=True)


def test_folder_stats(session, storage, employee):
    folder = UserDocumentService.create_folder(session, employee, "Contracts")
    empty = UserDocumentService.folder_stats(session, employee, folder["id"])
    assert empty["is_empty"] is True
    assert empty["last_modified"] is None

    first = upload(session, storage, employee, data=b"abc", metadata={"category": "Contracts"})
    upload(session, storage, employee, data=b"defgh", metadata={"category": "Contracts"})
    UserDocumentService.update_document(session, first.id, {"starred": True}, employee)

    stats = UserDocumentService.folder_stats(session, employee, folder["id"])
    assert stats["folder_name"] == "Contracts"
    assert stats["document_count"] == 2
    assert stats["total_size"] == 8
    assert stats["starred_count"] == 1
    assert stats["is_empty"] is False
    assert stats["last_modified"] is not None


def test_delete_folder_with_documents_needs_force(session, storage, employee):
    folder = UserDocumentService.create_folder(session, employee, "Contracts")
    doc = upload(session, storage, employee, metadata={"category": "Contracts"})
    kept = upload(session, storage, employee)
    key = doc.file_url

    with pytest.raises(ConflictError, match="1 document"):
        UserDocumentService.delete_folder(session, storage, employee, folder["id"])
    assert storage.exists(key)

    result = UserDocumentService.delete_folder(session, storage, employee, folder["id"], force=True)

    assert result == {"folder_name": "Contracts", "deleted_documents": 1}
    assert not storage.exists(key)
    assert storage.exists(kept.file_url)
    assert [d.id for d in session.query(UserDocument).all()] == [kept.id]
    assert session.query(UserFolder).filter_by(name="Contracts").count() == 0


def test_delete_empty_folder(session, storage, employee):
    folder = UserDocumentService.create_folder(session, employee, "Scratch")

    result = UserDocumentService.delete_folder(session, storage, employee, folder["id"])

    assert result["deleted_documents"] == 0
    with pytest.raises(NotFoundError):
        UserDocumentService.folder_stats(session, employee, folder["id"])


def test_cleanup_moves_unmanaged_documents_to_default(session, storage, employee):
    UserDocumentService.create_folder(session, employee, "Contracts")
    managed = upload(session, storage, employee, metadata={"category": "Contracts"})
    stray = upload(session, storage, employee, metadata={"category": "Old stuff"})

    result = UserDocumentService.cleanup_folders(session, employee)

    assert result == {"managed_folders": 2, "moved_documents": 1}
    assert session.get(UserDocument, managed.id).category == "Contracts"
    assert session.get(UserDocument, stray.id).category == "General"
    assert "Old stuff" not in [f["name"] for f in UserDocumentService.list_folders(session, employee)]
