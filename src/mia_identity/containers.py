"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from mia_identity.adapters.redis_cache import RedisCache
from mia_identity.adapters.supabase_conversation_repository import (
    SupabaseConversationRepository,
)
from mia_identity.adapters.supabase_customer_repository import (
    SupabaseCustomerRepository,
)
from mia_identity.adapters.supabase_validation_log_repository import (
    SupabaseValidationLogRepository,
)
from mia_identity.config import Settings
from mia_identity.services.cache import Cache, InMemoryCache
from mia_identity.services.conversation import ConversationEngine
from mia_identity.services.sessions import SessionStore
from mia_identity.services.templates import TemplateRenderer
from mia_identity.services.validation import (
    DocumentValidationService,
    IdentityValidator,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session_store: SessionStore
    renderer: TemplateRenderer
    validator: IdentityValidator
    conversation_engine: ConversationEngine
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    redis_cache = (
        RedisCache.create(resolved_settings.redis_url)
        if resolved_settings.redis_url
        else None
    )
    cache: Cache = redis_cache or InMemoryCache()
    session_store = SessionStore(
        customer_repository=SupabaseCustomerRepository(supabase_client),
        conversation_repository=SupabaseConversationRepository(supabase_client),
        cache=cache,
        company_name=resolved_settings.company_name,
        ttl_seconds=resolved_settings.session_ttl_seconds,
    )
    renderer = TemplateRenderer.from_directory(resolved_settings.templates_dir)
    validator = DocumentValidationService(
        log_repository=SupabaseValidationLogRepository(supabase_client),
        hash_secret=resolved_settings.document_hash_secret,
    )
    conversation_engine = ConversationEngine(
        session_store=session_store,
        renderer=renderer,
        validator=validator,
        max_attempts=resolved_settings.max_validation_attempts,
    )

    async def close_resources() -> None:
        if redis_cache is not None:
            await redis_cache.close()

    return AppContainer(
        settings=resolved_settings,
        session_store=session_store,
        renderer=renderer,
        validator=validator,
        conversation_engine=conversation_engine,
        close_resources=close_resources,
    )
