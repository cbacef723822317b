"""Session store with a cache in front of durable storage."""

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import uuid4

from mia_identity.domain.models import CustomerRecord, DocumentType
from mia_identity.domain.sessions import (
    ConversationRecord,
    ConversationState,
    SessionRecord,
    SessionUpdate,
    TemplateData,
)
from mia_identity.services.cache import Cache

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL_SECONDS = 3600


class CustomerNotFoundError(LookupError):
    """Raised when a session is requested for an unknown customer."""

    def __init__(self, customer_id: str) -> None:
        super().__init__(f"Customer not found: {customer_id!r}")
        self.customer_id = customer_id


class CustomerRepository(Protocol):
    """Persistence interface for customers."""

    def get_customer(self, customer_id: str) -> CustomerRecord | None:
        """Return a customer by id, if present."""

    def upsert_customer(self, customer: CustomerRecord) -> None:
        """Insert a customer or leave an existing row untouched."""


class ConversationRepository(Protocol):
    """Persistence interface for conversations."""

    def create_conversation(  # noqa: PLR0913
        self,
        customer_id: str,
        session_id: str,
        channel: str,
        state: ConversationState,
        last_message_at: datetime,
    ) -> ConversationRecord:
        """Create a conversation row and return it."""

    def get_by_session_id(self, session_id: str) -> ConversationRecord | None:
        """Return the conversation for a session id, if present."""

    def update_conversation(self, session_id: str, fields: dict[str, object]) -> None:
        """Update the given columns of a conversation."""


@dataclass
class SessionStore:
    """Owns persistence of identification sessions.

    Reads go through the cache and fall back to durable storage on a miss,
    repopulating the cache. Writes go to durable storage and then drop the
    cache entry so the next read rebuilds it.
    """

    customer_repository: CustomerRepository
    conversation_repository: ConversationRepository
    cache: Cache
    company_name: str
    ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS

    async def get(self, session_id: str | None) -> SessionRecord | None:
        """Return the session for an id, if present."""
        if not session_id:
            return None

        cached = await self._read_cache(session_id)
        if cached is not None:
            return cached

        conversation = self.conversation_repository.get_by_session_id(session_id)
        if conversation is None:
            return None
        customer = self.customer_repository.get_customer(conversation.customer_id)
        if customer is None:
            raise CustomerNotFoundError(conversation.customer_id)

        session = self._build_session(conversation, customer)
        await self._write_cache(session)
        return session

    async def create(
        self,
        customer_id: str | None,
        session_id: str | None = None,
        channel: str = "chat",
    ) -> SessionRecord:
        """Create a session in GREETING state for a known customer."""
        if not customer_id:
            raise CustomerNotFoundError("")
        customer = self.customer_repository.get_customer(customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)

        final_session_id = session_id or str(uuid4())
        conversation = self.conversation_repository.create_conversation(
            customer_id=customer.id,
            session_id=final_session_id,
            channel=channel,
            state=ConversationState.GREETING,
            last_message_at=datetime.now(tz=UTC),
        )
        session = self._build_session(conversation, customer)
        await self._write_cache(session)
        logger.info(
            "Session created: session_id=%s customer_id=%s",
            session.session_id,
            customer.id,
        )
        return session

    async def update(self, session_id: str | None, update: SessionUpdate) -> None:
        """Persist a partial update; an empty session id is a no-op."""
        if not session_id:
            return
        fields = update.as_fields()
        fields["last_message_at"] = datetime.now(tz=UTC).isoformat()
        self.conversation_repository.update_conversation(session_id, fields)
        await self.cache.delete(_cache_key(session_id))

    def _build_session(
        self, conversation: ConversationRecord, customer: CustomerRecord
    ) -> SessionRecord:
        return SessionRecord(
            session_id=conversation.session_id,
            conversation_id=conversation.id,
            customer_id=conversation.customer_id,
            state=conversation.state,
            validation_attempts=conversation.validation_attempts,
            is_validated=conversation.is_validated,
            last_message_at=conversation.last_message_at,
            template_data=TemplateData(
                company_name=self.company_name,
                client_name=customer.client_name,
                first_name=customer.first_name,
                is_cpf=customer.document_type is DocumentType.CPF,
            ),
        )

    async def _read_cache(self, session_id: str) -> SessionRecord | None:
        try:
            raw = await self.cache.get(_cache_key(session_id))
            if raw is None:
                return None
            return SessionRecord.from_cache(json.loads(raw))
        except Exception:
            logger.warning(
                "Session cache read failed, falling back to storage: session_id=%s",
                session_id,
                exc_info=True,
            )
            return None

    async def _write_cache(self, session: SessionRecord) -> None:
        try:
            await self.cache.set(
                _cache_key(session.session_id),
                json.dumps(session.to_cache()),
                self.ttl_seconds,
            )
        except Exception:
            logger.warning(
                "Session cache write failed: session_id=%s",
                session.session_id,
                exc_info=True,
            )


def _cache_key(session_id: str) -> str:
    return f"session:{session_id}"
