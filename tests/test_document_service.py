from datetime import datetime, timedelta

import pytest

from compliance_api.exceptions import (
    AuditTrailImmutableError, ForbiddenError, InvalidStateError,
    InvalidTransitionError, NotFoundError, ValidationFailedError,
)
from compliance_api.modules.documents.models import AuditAction, AuditActor, AuditTrail, DocumentStatus, DocumentVersion
from compliance_api.modules.documents.services import (
    AuditService, DocumentService, DocumentStateService, expire_documents,
)
from compliance_api.modules.notifications.models.notification import Notification, NotificationType


def make_active(session, doc, owner, reviewer):
    DocumentService.change_status(session, doc.id, DocumentStatus.PENDING_APPROVAL, owner)
    return DocumentService.change_status(session, doc.id, DocumentStatus.ACTIVE, reviewer)


def test_create_document_starts_in_draft(session, employee):
    doc = DocumentService.create_document(session, "Privacy Policy", "A", employee.id)

    assert doc.status == DocumentStatus.DRAFT
    assert doc.version == 1
    assert doc.category == "Compliance"
    trail = AuditService.list_for_document(session, doc.id)
    assert [a.action for a in trail] == [AuditAction.DOCUMENT_CREATED]
    assert trail[0].user_id == employee.id
    assert trail[0].actor_type == AuditActor.USER


def test_create_document_unknown_template(session, employee):
    with pytest.raises(NotFoundError):
        DocumentService.create_document(session, "T", "A", employee.id, template_id=999)


def test_content_edit_snapshots_previous_version(session, employee):
    doc = DocumentService.create_document(session, "Policy", "A", employee.id)

    doc = DocumentService.update_document(session, doc.id, {"content": "B"}, employee)

    assert doc.version == 2
    assert doc.content == "B"
    versions = DocumentService.list_versions(session, doc.id, employee)
    assert [(v.version, v.content) for v in versions] == [(1, "A")]
    trail = AuditService.list_for_document(session, doc.id)
    assert [a.action for a in trail] == [AuditAction.DOCUMENT_CREATED, AuditAction.DOCUMENT_UPDATED]
    assert "v1 -> v2" in trail[1].details


def test_each_edit_bumps_version_by_one(session, employee):
    doc = DocumentService.create_document(session, "Policy", "v1", employee.id)
    for text in ("v2", "v3", "v4"):
        doc = DocumentService.update_document(session, doc.id, {"content": text}, employee)

    assert doc.version == 4
    versions = DocumentService.list_versions(session, doc.id, employee)
    assert [v.version for v in versions] == [3, 2, 1]
    assert [v.content for v in versions] == ["v3", "v2", "v1"]


def test_unchanged_content_does_not_create_version(session, employee):
    doc = DocumentService.create_document(session, "Policy", "A", employee.id)

    doc = DocumentService.update_document(session, doc.id, {"content": "A"}, employee)

    assert doc.version == 1
    assert session.query(DocumentVersion).count() == 0
    assert len(AuditService.list_for_document(session, doc.id)) == 2


def test_edit_and_submit_in_one_call(session, employee):
    doc = DocumentService.create_document(session, "Policy", "A", employee.id)

    doc = DocumentService.update_document(
        session, doc.id, {"content": "B", "status": "pending_approval"}, employee,
    )

    assert doc.version == 2
    assert doc.status == DocumentStatus.PENDING_APPROVAL
    trail = AuditService.list_for_document(session, doc.id)
    assert len(trail) == 2
    assert "status: draft -> pending_approval" in trail[1].details


def test_concurrent_content_edit_is_rejected_cleanly(session, employee):
    doc = DocumentService.create_document(session, "Policy", "A", employee.id)
    # a parallel edit already stored the v1 snapshot
    session.add(DocumentVersion(document_id=doc.id, version=1, content="A", created_by_id=employee.id))
    session.commit()
    before = len(AuditService.list_for_document(session, doc.id))

    with pytest.raises(InvalidStateError):
        DocumentService.update_document(session, doc.id, {"content": "B"}, employee)

    session.expire_all()
    stored = DocumentService.get_document(session, doc.id, employee)
    assert (stored.content, stored.version) == ("A", 1)
    assert len(AuditService.list_for_document(session, doc.id)) == before


def test_content_edit_outside_draft_leaves_no_trace(session, employee, officer):
    doc = DocumentService.create_document(session, "Policy", "A", employee.id)
    make_active(session, doc, employee, officer)
    before = len(AuditService.list_for_document(session, doc.id))

    with pytest.raises(InvalidStateError):
        DocumentService.update_document(session, doc.id, {"content": "B"}, officer)

    session.expire_all()
    assert session.query(DocumentVersion).count() == 0
    assert len(AuditService.list_for_document(session, doc.id)) == before
    assert DocumentService.get_document(session, doc.id, officer).content == "A"


def test_illegal_transition_rejected(session, employee, admin):
    doc = DocumentService.create_document(session, "Policy", "A", employee.id)

    with pytest.raises(InvalidTransitionError):
        DocumentService.change_status(session, doc.id, DocumentStatus.ACTIVE, admin)

    session.expire_all()
    assert DocumentService.get_document(session, doc.id, admin).status == DocumentStatus.DRAFT
    assert len(AuditService.list_for_document(session, doc.id)) == 1


def test_owner_cannot_approve_own_document(session, employee):
    doc = DocumentService.create_document(session, "Policy", "A", employee.id)
    DocumentService.change_status(session, doc.id, DocumentStatus.PENDING_APPROVAL, employee)

    with pytest.raises(ForbiddenError):
        DocumentService.change_status(session, doc.id, DocumentStatus.ACTIVE, employee)


def test_pending_document_can_return_to_draft(session, employee):
    doc = DocumentService.create_document(session, "Policy", "A", employee.id)
    DocumentService.change_status(session, doc.id, DocumentStatus.PENDING_APPROVAL, employee)

    doc = DocumentService.change_status(session, doc.id, DocumentStatus.DRAFT, employee)

    assert doc.status == DocumentStatus.DRAFT
    actions = [a.action for a in AuditService.list_for_document(session, doc.id)]
    assert actions == [AuditAction.DOCUMENT_CREATED, AuditAction.STATUS_CHANGED, AuditAction.STATUS_CHANGED]


def test_status_never_moves_backward_from_active(session, employee, officer):
    doc = DocumentService.create_document(session, "Policy", "A", employee.id)
    make_active(session, doc, employee, officer)

    for target in (DocumentStatus.DRAFT, DocumentStatus.PENDING_APPROVAL):
        with pytest.raises(InvalidTransitionError):
            DocumentService.change_status(session, doc.id, target, officer)


def test_allowed_transitions_by_role(session, employee, officer):
    doc = DocumentService.create_document(session, "Policy", "A", employee.id)
    DocumentService.change_status(session, doc.id, DocumentStatus.PENDING_APPROVAL, employee)

    assert DocumentStateService.get_allowed_transitions(employee, doc) == [DocumentStatus.DRAFT]
    assert DocumentStateService.get_allowed_transitions(officer, doc) == [
        DocumentStatus.DRAFT, DocumentStatus.ACTIVE,
    ]


def test_archived_document_metadata_is_frozen(session, employee, officer):
    doc = DocumentService.create_document(session, "Policy", "A", employee.id)
    make_active(session, doc, employee, officer)
    DocumentService.change_status(session, doc.id, DocumentStatus.ARCHIVED, officer)

    with pytest.raises(InvalidStateError):
        DocumentService.update_document(session, doc.id, {"title": "Renamed"}, officer)


def test_title_can_change_while_active(session, employee, officer):
    doc = DocumentService.create_document(session, "Policy", "A", employee.id)
    make_active(session, doc, employee, officer)

    doc = DocumentService.update_document(session, doc.id, {"title": "Renamed"}, officer)

    assert doc.title == "Renamed"
    assert doc.version == 1


def test_employee_cannot_read_other_documents(session, make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    doc = DocumentService.create_document(session, "Alice's", "A", alice.id)

    with pytest.raises(ForbiddenError):
        DocumentService.get_document(session, doc.id, bob)
    with pytest.raises(ForbiddenError):
        DocumentService.update_document(session, doc.id, {"content": "B"}, bob)


def test_approval_request_and_activation_notifications(session, employee, officer, admin):
    doc = DocumentService.create_document(session, "Policy", "A", employee.id)
    make_active(session, doc, employee, officer)

    officer_types = [n.type for n in session.query(Notification).filter_by(user_id=officer.id)]
    assert NotificationType.APPROVAL_REQUEST in officer_types
    owner_notes = session.query(Notification).filter_by(user_id=employee.id).all()
    assert [n.type for n in owner_notes] == [NotificationType.DOCUMENT_UPDATE]
    assert "Active" in owner_notes[0].message


def test_duplicate_creates_fresh_draft(session, employee, officer):
    doc = DocumentService.create_document(session, "Policy", "A", employee.id, category="HR")
    make_active(session, doc, employee, officer)

    copy = DocumentService.duplicate_document(session, doc.id, officer)

    assert copy.title == "Policy (Copy)"
    assert copy.status == DocumentStatus.DRAFT
    assert copy.version == 1
    assert copy.category == "HR"
    assert copy.created_by_id == officer.id
    assert AuditService.list_for_document(session, doc.id)[-1].action == AuditAction.DOCUMENT_DUPLICATED
    assert [a.action for a in AuditService.list_for_document(session, copy.id)] == [AuditAction.DOCUMENT_CREATED]


def test_list_documents_paginates_and_scopes(session, make_user, officer):
    alice = make_user("alice")
    bob = make_user("bob")
    for i in range(3):
        DocumentService.create_document(session, f"Alice {i}", "x", alice.id)
    DocumentService.create_document(session, "Bob", "x", bob.id)

    items, pagination = DocumentService.list_documents(session, alice, page=1, limit=2)
    assert len(items) == 2
    assert pagination == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}

    _, all_pages = DocumentService.list_documents(session, officer)
    assert all_pages["total"] == 4

    active, _ = DocumentService.list_documents(session, officer, status=DocumentStatus.ACTIVE)
    assert active == []


def test_search_matches_title_and_content(session, employee):
    DocumentService.create_document(session, "Retention schedule", "keep records", employee.id)
    DocumentService.create_document(session, "Travel", "mentions retention too", employee.id)
    DocumentService.create_document(session, "Other", "nothing", employee.id)

    results = DocumentService.search_documents(session, employee, "retention")

    assert sorted(d.title for d in results) == ["Retention schedule", "Travel"]


def test_search_requires_two_characters(session, employee):
    with pytest.raises(ValidationFailedError):
        DocumentService.search_documents(session, employee, "a")


def test_export_document_records_download(session, employee):
    doc = DocumentService.create_document(session, "Data Policy: 2024", "Body", employee.id)

    filename, body = DocumentService.export_document(session, doc.id, employee)

    assert filename == "Data_Policy_2024_v1.txt"
    assert body == "Data Policy: 2024\n\nBody"
    assert AuditService.list_for_document(session, doc.id)[-1].action == AuditAction.DOCUMENT_DOWNLOADED


def test_audit_rows_cannot_be_updated(session, employee):
    doc = DocumentService.create_document(session, "Policy", "A", employee.id)
    entry = AuditService.list_for_document(session, doc.id)[0]

    entry.details = "tampered"
    with pytest.raises(AuditTrailImmutableError):
        session.commit()
    session.rollback()

    assert AuditService.list_for_document(session, doc.id)[0].details != "tampered"


def test_audit_rows_cannot_be_deleted(session, employee):
    doc = DocumentService.create_document(session, "Policy", "A", employee.id)
    entry = AuditService.list_for_document(session, doc.id)[0]

    session.delete(entry)
    with pytest.raises(AuditTrailImmutableError):
        session.flush()
    session.rollback()

    assert session.query(AuditTrail).count() == 1


def test_audit_trail_is_append_only_prefix(session, employee):
    doc = DocumentService.create_document(session, "Policy", "A", employee.id)
    first = [(a.id, a.action) for a in AuditService.list_for_document(session, doc.id)]

    DocumentService.update_document(session, doc.id, {"content": "B"}, employee)
    DocumentService.create_document(session, "Unrelated", "x", employee.id)

    second = [(a.id, a.action) for a in AuditService.list_for_document(session, doc.id)]
    assert second[:len(first)] == first
    assert len(second) == len(first) + 1


def test_expiry_sweep_only_touches_active_past_due(session, employee, officer):
    past = datetime.utcnow() - timedelta(days=1)
    expiring = DocumentService.create_document(session, "Old", "A", employee.id, expires_at=past)
    make_active(session, expiring, employee, officer)
    draft = DocumentService.create_document(session, "Draft", "A", employee.id, expires_at=past)
    future = DocumentService.create_document(
        session, "Future", "A", employee.id, expires_at=datetime.utcnow() + timedelta(days=30),
    )
    make_active(session, future, employee, officer)

    expired_ids = expire_documents(session)

    assert expired_ids == [expiring.id]
    session.expire_all()
    assert DocumentService.get_document(session, expiring.id, officer).status == DocumentStatus.EXPIRED
    assert DocumentService.get_document(session, draft.id, officer).status == DocumentStatus.DRAFT
    assert DocumentService.get_document(session, future.id, officer).status == DocumentStatus.ACTIVE
    last = AuditService.list_for_document(session, expiring.id)[-1]
    assert last.action == AuditAction.DOCUMENT_EXPIRED
    assert last.user_id is None
    assert last.actor_type == AuditActor.SYSTEM
