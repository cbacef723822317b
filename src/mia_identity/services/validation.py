"""Identity validation for CPF/CNPJ documents."""

import hashlib
import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import uuid4

from mia_identity.domain.models import DocumentType
from mia_identity.domain.validation import (
    SuggestedProduct,
    ValidationErrorCode,
    ValidationFailure,
    ValidationLogEntry,
    ValidationOutcome,
    ValidationSuccess,
)

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"[^0-9]")
_DIGITS_ONLY = re.compile(r"[0-9]+")
_ALL_SAME_DIGIT = re.compile(r"^([0-9])\1+$")

HASH_ITERATIONS = 210_000

DEFAULT_SUGGESTED_PRODUCTS: tuple[SuggestedProduct, ...] = (
    SuggestedProduct(
        id="credit_card_gold",
        name="Cartão Gold",
        type="credit_card",
        pre_approved=True,
        limit=15000,
    ),
)

_ERROR_MESSAGES = {
    ValidationErrorCode.DOCUMENT_NOT_FOUND: (
        "Não consegui validar o documento informado. "
        "Por favor, verifique se digitou corretamente."
    ),
    ValidationErrorCode.SYSTEM_ERROR: (
        "Estou com uma instabilidade técnica momentânea. "
        "Tente novamente em alguns minutos."
    ),
}


class IdentityValidator(Protocol):
    """Interface for checking a customer's document."""

    async def validate(
        self,
        document: str,
        document_type: DocumentType,
        session_context: str,
        expected_name: str,
    ) -> ValidationOutcome:
        """Return the outcome of one validation attempt."""


class ValidationLogRepository(Protocol):
    """Persistence interface for the validation audit log."""

    def create_entry(self, entry: ValidationLogEntry) -> None:
        """Append an audit entry."""


@dataclass
class DocumentValidationService(IdentityValidator):
    """Reference validator that accepts any well-formed, non-repeated document.

    Only a keyed PBKDF2 digest of the sanitized document is recorded, so the
    audit log cannot be reversed without the deployment secret.
    """

    log_repository: ValidationLogRepository
    hash_secret: str
    hash_iterations: int = HASH_ITERATIONS
    suggested_products: tuple[SuggestedProduct, ...] = DEFAULT_SUGGESTED_PRODUCTS

    async def validate(
        self,
        document: str,
        document_type: DocumentType,
        session_context: str,
        expected_name: str,
    ) -> ValidationOutcome:
        """Validate a document; never raises."""
        validation_id = f"val_{uuid4().hex[:12]}"
        try:
            sanitized = sanitize_document(document)
            if not is_valid_format(sanitized, document_type):
                return _failure(
                    validation_id, document_type, ValidationErrorCode.INVALID_FORMAT
                )

            document_hash = hash_document(
                sanitized, self.hash_secret, self.hash_iterations
            )
            is_valid = _matches_known_customer(sanitized)
            self.log_repository.create_entry(
                ValidationLogEntry(
                    session_id=session_context,
                    document_hash=document_hash,
                    document_type=document_type,
                    is_valid=is_valid,
                    created_at=datetime.now(tz=UTC),
                )
            )
            logger.info(
                "Validation attempt recorded: session_id=%s is_valid=%s",
                session_context,
                is_valid,
            )
            if not is_valid:
                return _failure(
                    validation_id,
                    document_type,
                    ValidationErrorCode.DOCUMENT_NOT_FOUND,
                )
            return ValidationSuccess(
                validation_id=validation_id,
                document_type=document_type,
                masked_document=mask_document(sanitized, document_type),
                suggested_products=self.suggested_products,
            )
        except Exception:
            logger.exception("Validation error: session_id=%s", session_context)
            return _failure(
                validation_id, document_type, ValidationErrorCode.SYSTEM_ERROR
            )


def sanitize_document(raw: str) -> str:
    """Strip everything except the ASCII digits 0-9."""
    return _NON_DIGITS.sub("", raw)


def is_valid_format(sanitized: str, document_type: DocumentType) -> bool:
    """Return true when the digit count matches the document type."""
    return (
        _DIGITS_ONLY.fullmatch(sanitized) is not None
        and len(sanitized) == document_type.digits
    )


def hash_document(
    sanitized: str, secret: str, iterations: int = HASH_ITERATIONS
) -> str:
    """Return a keyed, deliberately slow one-way hash for audit logs."""
    digest = hashlib.pbkdf2_hmac(
        "sha256", sanitized.encode("utf-8"), secret.encode("utf-8"), iterations
    )
    return digest.hex()


def mask_document(sanitized: str, document_type: DocumentType) -> str:
    """Mask all but the last two digits."""
    suffix = sanitized[-2:]
    if document_type is DocumentType.CPF:
        return f"***.***.***.{suffix}"
    return f"**.***.***/****-{suffix}"


def _matches_known_customer(sanitized: str) -> bool:
    # Stand-in check: repeated-digit documents are never issued.
    return _ALL_SAME_DIGIT.match(sanitized) is None


def _failure(
    validation_id: str,
    document_type: DocumentType,
    error_code: ValidationErrorCode,
) -> ValidationFailure:
    if error_code is ValidationErrorCode.INVALID_FORMAT:
        label = document_type.value
        message = f"{label} inválido. {label} deve ter {document_type.digits} dígitos."
    else:
        message = _ERROR_MESSAGES[error_code]
    return ValidationFailure(
        validation_id=validation_id,
        document_type=document_type,
        error_code=error_code,
        user_message=message,
    )
