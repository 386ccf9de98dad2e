from typing import Dict, FrozenSet, List, Tuple

from compliance_api.exceptions import ForbiddenError, InvalidTransitionError
from compliance_api.modules.documents.models.document import Document, DocumentStatus
from compliance_api.modules.documents.models.user import User, UserRole

OWNER = "owner"

REVIEWERS = frozenset({UserRole.ADMIN, UserRole.COMPLIANCE_OFFICER})

# (from, to) -> who may perform it. OWNER means the document's creator.
TRANSITIONS: Dict[Tuple[DocumentStatus, DocumentStatus], FrozenSet] = {
    (DocumentStatus.DRAFT, DocumentStatus.PENDING_APPROVAL): REVIEWERS | {OWNER},
    (DocumentStatus.PENDING_APPROVAL, DocumentStatus.DRAFT): REVIEWERS | {OWNER},
    (DocumentStatus.PENDING_APPROVAL, DocumentStatus.ACTIVE): REVIEWERS,
    (DocumentStatus.ACTIVE, DocumentStatus.EXPIRED): REVIEWERS,
    (DocumentStatus.ACTIVE, DocumentStatus.ARCHIVED): REVIEWERS,
    (DocumentStatus.EXPIRED, DocumentStatus.ARCHIVED): REVIEWERS,
}

class DocumentStateService:

    @staticmethod
    def is_legal(current: DocumentStatus, new_state: DocumentStatus) -> bool:
        return (current, new_state) in TRANSITIONS

    @staticmethod
    def can_change_state(user: User, document: Document, new_state: DocumentStatus) -> bool:
        """
        Defines transition rules based on user role
        """
        allowed = TRANSITIONS.get((document.status, new_state))
        if allowed is None:
            return False
        if user.role in allowed:
            return True
        return OWNER in allowed and document.created_by_id == user.id

    @staticmethod
    def validate_transition(user: User, document: Document, new_state: DocumentStatus) -> None:
        """
        Raises InvalidTransitionError for a pair outside the table and
        ForbiddenError when the pair is legal but not for this user.
        """
        current = document.status
        if not DocumentStateService.is_legal(current, new_state):
            raise InvalidTransitionError(
                f"Cannot change document status from {current.value} to {new_state.value}"
            )
        if not DocumentStateService.can_change_state(user, document, new_state):
            raise ForbiddenError(
                f"User with role {user.role.value} cannot change document "
                f"from {current.value} to {new_state.value}"
            )

    @staticmethod
    def get_allowed_transitions(user: User, document: Document) -> List[DocumentStatus]:
        """
        Returns list of states the document can transition to
        """
        transitions = []

        for state in DocumentStatus:
            if DocumentStateService.can_change_state(user, document, state):
                transitions.append(state)

        return transitions
