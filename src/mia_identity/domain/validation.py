"""Models for identity validation outcomes."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from mia_identity.domain.models import DocumentType


class ValidationErrorCode(str, Enum):
    """Reasons a validation attempt can fail."""

    INVALID_FORMAT = "INVALID_FORMAT"
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    SYSTEM_ERROR = "SYSTEM_ERROR"


class RiskLevel(str, Enum):
    """Coarse risk classification of an attempt."""

    LOW = "low"
    MEDIUM = "medium"


@dataclass(frozen=True)
class SuggestedProduct:
    """Product offered after a successful validation."""

    id: str
    name: str
    type: str
    pre_approved: bool
    limit: int


@dataclass(frozen=True)
class ValidationSuccess:
    """The document was accepted."""

    validation_id: str
    document_type: DocumentType
    masked_document: str
    suggested_products: tuple[SuggestedProduct, ...] = ()
    risk_level: RiskLevel = RiskLevel.LOW
    account_status: str = "active"
    success: bool = field(default=True, init=False)


@dataclass(frozen=True)
class ValidationFailure:
    """The document was rejected or could not be checked."""

    validation_id: str
    document_type: DocumentType
    error_code: ValidationErrorCode
    user_message: str
    risk_level: RiskLevel = RiskLevel.MEDIUM
    success: bool = field(default=False, init=False)


ValidationOutcome = ValidationSuccess | ValidationFailure


@dataclass(frozen=True)
class ValidationLogEntry:
    """Audit row for one validation attempt."""

    session_id: str
    document_hash: str
    document_type: DocumentType
    is_valid: bool
    created_at: datetime
