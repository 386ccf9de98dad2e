class ComplianceError(Exception):
    """Base class for business-rule errors; carries the HTTP status it maps to."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ComplianceError):
    status_code = 404


class ForbiddenError(ComplianceError):
    status_code = 403


class InvalidStateError(ComplianceError):
    """The document is not in a status that allows the operation"""


class InvalidTransitionError(ComplianceError):
    """The requested status change is not in the transition table"""


class AlreadySignedError(ComplianceError):
    pass


class DocumentNotSignableError(ComplianceError):
    pass


class ValidationFailedError(ComplianceError):
    pass


class ConflictError(ComplianceError):
    status_code = 409


class FileTooLargeError(ComplianceError):
    status_code = 413


class StorageError(ComplianceError):
    status_code = 502


class AuditTrailImmutableError(ComplianceError):
    status_code = 500
