"""Domain models for identification sessions."""

from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum

from mia_identity.domain.models import DocumentType


class ConversationState(str, Enum):
    """States of the identification dialog."""

    GREETING = "GREETING"
    CONFIRM_NAME = "CONFIRM_NAME"
    REQUEST_DOCUMENT = "REQUEST_DOCUMENT"
    VALIDATED = "VALIDATED"
    CLOSED = "CLOSED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def _missing_(cls, value: object) -> "ConversationState":
        return cls.UNKNOWN


@dataclass(frozen=True)
class TemplateData:
    """Presentation data used only for rendering responses."""

    company_name: str
    client_name: str
    first_name: str
    is_cpf: bool

    @property
    def document_type(self) -> DocumentType:
        return DocumentType.CPF if self.is_cpf else DocumentType.CNPJ

    def as_bag(self) -> dict[str, object]:
        """Return the data bag handed to the renderer."""
        bag: dict[str, object] = asdict(self)
        bag["document_label"] = self.document_type.value
        return bag


@dataclass(frozen=True)
class SessionRecord:
    """Represents one customer's identification dialog."""

    session_id: str
    conversation_id: str
    customer_id: str
    state: ConversationState
    validation_attempts: int
    is_validated: bool
    last_message_at: datetime
    template_data: TemplateData

    def to_cache(self) -> dict[str, object]:
        """Serialize the session into a JSON-friendly snapshot."""
        return {
            "session_id": self.session_id,
            "conversation_id": self.conversation_id,
            "customer_id": self.customer_id,
            "state": self.state.value,
            "validation_attempts": self.validation_attempts,
            "is_validated": self.is_validated,
            "last_message_at": self.last_message_at.isoformat(),
            "template_data": asdict(self.template_data),
        }

    @classmethod
    def from_cache(cls, payload: dict[str, object]) -> "SessionRecord":
        """Rebuild a session from a cached snapshot."""
        template_data = payload["template_data"]
        if not isinstance(template_data, dict):
            raise ValueError("Cached session is missing template data")
        return cls(
            session_id=str(payload["session_id"]),
            conversation_id=str(payload["conversation_id"]),
            customer_id=str(payload["customer_id"]),
            state=ConversationState(payload["state"]),
            validation_attempts=int(payload["validation_attempts"]),
            is_validated=bool(payload["is_validated"]),
            last_message_at=datetime.fromisoformat(str(payload["last_message_at"])),
            template_data=TemplateData(
                company_name=str(template_data["company_name"]),
                client_name=str(template_data["client_name"]),
                first_name=str(template_data["first_name"]),
                is_cpf=bool(template_data["is_cpf"]),
            ),
        )


@dataclass(frozen=True)
class SessionUpdate:
    """Partial set of session fields to persist."""

    state: ConversationState | None = None
    validation_attempts: int | None = None
    is_validated: bool | None = None

    def as_fields(self) -> dict[str, object]:
        """Return only the fields that were provided."""
        fields: dict[str, object] = {}
        if self.state is not None:
            fields["state"] = self.state.value
        if self.validation_attempts is not None:
            fields["validation_attempts"] = self.validation_attempts
        if self.is_validated is not None:
            fields["is_validated"] = self.is_validated
        return fields


@dataclass(frozen=True)
class ConversationRecord:
    """Represents a persisted conversation row."""

    id: str
    session_id: str
    customer_id: str
    channel: str
    state: ConversationState
    validation_attempts: int
    is_validated: bool
    last_message_at: datetime
