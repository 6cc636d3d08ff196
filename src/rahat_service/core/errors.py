"""Domain errors raised by the case workflow.

Every error is operational: it is expected, carries an HTTP-equivalent status
code, and propagates unchanged to the API boundary where it is rendered.
"""

from typing import Any, Dict, List, Optional


class CaseServiceError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    title: str = "INTERNAL_SERVER_ERROR"
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
        meta: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.errors = errors or []
        self.meta = meta or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.status_code} - {self.title} - {self.message}"


# ============================================================
# Categories
# ============================================================

class ValidationError(CaseServiceError):
    status_code = 400
    title = "VALIDATION_ERROR"
    default_message = "Invalid input data"


class AuthorizationError(CaseServiceError):
    status_code = 401
    title = "AUTHORIZATION_ERROR"
    default_message = "The user is not authorized to perform this action."


class NotFoundError(CaseServiceError):
    status_code = 404
    title = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(CaseServiceError):
    status_code = 409
    title = "CONFLICT"
    default_message = "Conflicting state"


class InternalError(CaseServiceError):
    pass


# ============================================================
# Not found
# ============================================================

class CaseNotFound(NotFoundError):
    title = "CASE_NOT_FOUND"
    default_message = "Case not found"


# ============================================================
# Validation
# ============================================================

class MissingRequiredFields(ValidationError):
    title = "MISSING_REQUIRED_FIELDS"
    default_message = "All fields are required: name, dob, dod, address, contact, description"


class InvalidDateFormat(ValidationError):
    title = "INVALID_DATE_FORMAT"
    default_message = "Invalid date format. Use YYYY-MM-DD format"


class InvalidDateRange(ValidationError):
    title = "INVALID_DATE_RANGE"
    default_message = "Date of death must be after date of birth"


class InvalidContactFormat(ValidationError):
    title = "INVALID_CONTACT_FORMAT"
    default_message = "Contact must be a valid Indian phone number or email address"


class MissingSdmAssignment(ValidationError):
    title = "MISSING_SDM_ASSIGNMENT"
    default_message = "Tehsildar must be assigned to an SDM to create cases"


class NoDocumentsProvided(ValidationError):
    title = "NO_DOCUMENTS_PROVIDED"
    default_message = "At least one document array (patwari or ti) must be provided with valid URLs"


class InvalidUrlFormat(ValidationError):
    title = "INVALID_URL_FORMAT"
    default_message = "Document URLs must be from the file service"


class InvalidCaseStage(ValidationError):
    title = "INVALID_CASE_STAGE"
    default_message = "Case is not in a stage that allows this action"


class InvalidWorkflowAction(ValidationError):
    title = "INVALID_STATUS"
    default_message = 'Status must be either "approved" or "rejected"'


class MissingRejectionRemark(ValidationError):
    title = "MISSING_REJECTION_REMARK"
    default_message = "Remark is required for rejection"


class MissingPaymentRemark(ValidationError):
    title = "MISSING_PAYMENT_REMARK"
    default_message = "Payment remark is required for case closure"


class InvalidPagination(ValidationError):
    title = "INVALID_PAGINATION"
    default_message = "Invalid pagination parameters"


class InvalidRole(ValidationError):
    title = "INVALID_ROLE"
    default_message = "Invalid user role for case management"


# ============================================================
# Authorization
# ============================================================

class Unauthorized(AuthorizationError):
    title = "UNAUTHORIZED"
    default_message = "User role not found"


class UnauthorizedForStage(AuthorizationError):
    title = "UNAUTHORIZED_FOR_STAGE"
    default_message = "User cannot update case in its current stage"


class UnauthorizedForClosure(AuthorizationError):
    title = "UNAUTHORIZED_FOR_CLOSURE"
    default_message = "Only Tehsildar can close cases and mark funds distributed"


# ============================================================
# Conflict
# ============================================================

class DuplicateCaseId(ConflictError):
    title = "DUPLICATE_CASE_ID"
    default_message = "Case ID already exists. Please try again."


class CaseAlreadyClosed(ConflictError):
    title = "CASE_ALREADY_CLOSED"
    default_message = "Case is already closed and cannot be closed again"


class PaymentAlreadyExists(ConflictError):
    title = "PAYMENT_ALREADY_EXISTS"
    default_message = "Payment details already exist for this case"


class ConcurrentModification(ConflictError):
    title = "CONCURRENT_MODIFICATION"
    default_message = "Case was modified by another request. Reload and retry."


# ============================================================
# Internal
# ============================================================

class CaseIdGenerationFailed(InternalError):
    title = "CASE_ID_GENERATION_FAILED"
    default_message = "Failed to generate unique case ID after multiple attempts"


class InconsistentCaseState(InternalError):
    title = "INCONSISTENT_CASE_STATE"
    default_message = "Case status and stage do not form a valid workflow state"


class PersistenceFailed(InternalError):
    title = "PERSISTENCE_FAILED"
    default_message = "Unexpected persistence failure"
