"""Tests for the cached session store."""

import asyncio
import json

import pytest

from mia_identity.domain.sessions import ConversationState, SessionUpdate
from mia_identity.services.cache import InMemoryCache
from mia_identity.services.sessions import CustomerNotFoundError, SessionStore
from tests.conftest import (
    InMemoryConversationRepository,
    InMemoryCustomerRepository,
)


def test_create_session_starts_in_greeting(session_store: SessionStore) -> None:
    session = asyncio.run(session_store.create("cust-ale", "abc-123"))

    assert session.session_id == "abc-123"
    assert session.state is ConversationState.GREETING
    assert session.validation_attempts == 0
    assert session.is_validated is False
    assert session.template_data.first_name == "Alessandra"
    assert session.template_data.company_name == "Banco Nova Era"
    assert session.template_data.is_cpf is True


def test_create_session_generates_id(session_store: SessionStore) -> None:
    session = asyncio.run(session_store.create("cust-empresa1"))

    assert session.session_id
    assert session.template_data.is_cpf is False


@pytest.mark.parametrize("customer_id", ["cust-missing", "", None])
def test_create_session_requires_known_customer(
    session_store: SessionStore, customer_id: str | None
) -> None:
    with pytest.raises(CustomerNotFoundError):
        asyncio.run(session_store.create(customer_id))


def test_get_serves_from_cache_after_create(
    session_store: SessionStore,
    conversation_repository: InMemoryConversationRepository,
) -> None:
    created = asyncio.run(session_store.create("cust-ale"))

    fetched = asyncio.run(session_store.get(created.session_id))

    assert fetched == created
    assert conversation_repository.reads == 0


def test_get_returns_none_for_empty_or_unknown_id(
    session_store: SessionStore,
) -> None:
    assert asyncio.run(session_store.get(None)) is None
    assert asyncio.run(session_store.get("")) is None
    assert asyncio.run(session_store.get("missing")) is None


def test_update_invalidates_cache_and_next_read_rebuilds(
    session_store: SessionStore,
    conversation_repository: InMemoryConversationRepository,
) -> None:
    created = asyncio.run(session_store.create("cust-ale"))

    asyncio.run(
        session_store.update(
            created.session_id,
            SessionUpdate(
                state=ConversationState.REQUEST_DOCUMENT, validation_attempts=1
            ),
        )
    )
    fetched = asyncio.run(session_store.get(created.session_id))
    again = asyncio.run(session_store.get(created.session_id))

    assert fetched is not None
    assert fetched.state is ConversationState.REQUEST_DOCUMENT
    assert fetched.validation_attempts == 1
    assert again == fetched
    assert conversation_repository.reads == 1
    _, fields = conversation_repository.updates[0]
    assert fields["state"] == "REQUEST_DOCUMENT"
    assert "is_validated" not in fields
    assert "last_message_at" in fields


def test_update_with_empty_session_id_is_noop(
    session_store: SessionStore,
    conversation_repository: InMemoryConversationRepository,
) -> None:
    asyncio.run(session_store.update("", SessionUpdate(state=ConversationState.CLOSED)))

    assert conversation_repository.updates == []


def test_cache_entry_uses_session_key_and_ttl(
    customer_repository: InMemoryCustomerRepository,
    conversation_repository: InMemoryConversationRepository,
) -> None:
    cache = InMemoryCache()
    store = SessionStore(
        customer_repository=customer_repository,
        conversation_repository=conversation_repository,
        cache=cache,
        company_name="Banco Nova Era",
        ttl_seconds=60,
    )

    created = asyncio.run(store.create("cust-ale", "sess-9"))

    raw = asyncio.run(cache.get("session:sess-9"))
    assert raw is not None
    assert json.loads(raw)["session_id"] == created.session_id


class _BrokenCache(InMemoryCache):
    async def get(self, key: str) -> str | None:
        raise ConnectionError("redis down")

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        raise ConnectionError("redis down")


def test_cache_failures_fall_back_to_storage(
    customer_repository: InMemoryCustomerRepository,
    conversation_repository: InMemoryConversationRepository,
) -> None:
    store = SessionStore(
        customer_repository=customer_repository,
        conversation_repository=conversation_repository,
        cache=_BrokenCache(),
        company_name="Banco Nova Era",
    )

    created = asyncio.run(store.create("cust-ale"))
    fetched = asyncio.run(store.get(created.session_id))

    assert fetched is not None
    assert fetched.session_id == created.session_id
    assert conversation_repository.reads == 1
