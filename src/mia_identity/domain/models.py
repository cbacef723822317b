"""Domain models for bank customers."""

from dataclasses import dataclass
from enum import Enum


class DocumentType(str, Enum):
    """Taxpayer document kinds accepted for identification."""

    CPF = "CPF"
    CNPJ = "CNPJ"

    @property
    def digits(self) -> int:
        """Return the exact digit count for the document."""
        return 11 if self is DocumentType.CPF else 14


@dataclass(frozen=True)
class CustomerRecord:
    """Represents a customer stored in the database."""

    id: str
    client_name: str
    first_name: str
    document_type: DocumentType
