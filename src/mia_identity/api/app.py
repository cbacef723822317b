"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mia_identity.api.models import ErrorResponse, MessageRequest, MessageResponse
from mia_identity.app_logging import configure_logging
from mia_identity.containers import AppContainer
from mia_identity.services.conversation import ConversationError

MISSING_CUSTOMER_ERROR = "customerId é obrigatório na primeira mensagem"
MISSING_SESSION_ID_ERROR = "Session id not found"
INTERNAL_ERROR = "Internal server error"
INVALID_BODY_ERROR = "Invalid request body"


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(RequestValidationError)
    async def invalid_body(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning(
            "Rejected request body: path=%s errors=%d",
            request.url.path,
            len(exc.errors()),
        )
        return _error(status.HTTP_400_BAD_REQUEST, INVALID_BODY_ERROR)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok", "timestamp": datetime.now(tz=UTC).isoformat()}

    @app.post("/api/v1/conversation/message")
    async def conversation_message(
        body: MessageRequest, request: Request
    ) -> JSONResponse:
        """Run one inbound message through the identification flow."""
        state_container: AppContainer = request.app.state.container
        if not body.session_id and not body.customer_id:
            return _error(status.HTTP_400_BAD_REQUEST, MISSING_CUSTOMER_ERROR)

        try:
            session_store = state_container.session_store
            session = await session_store.get(body.session_id)
            if session is None:
                session = await session_store.create(
                    body.customer_id, body.session_id, "chat"
                )
            if not session.session_id:
                logger.error(
                    "Session without session id: conversation_id=%s",
                    session.conversation_id,
                )
                return _error(
                    status.HTTP_500_INTERNAL_SERVER_ERROR, MISSING_SESSION_ID_ERROR
                )
            reply = await state_container.conversation_engine.handle_message(
                session, body.message
            )
        except ConversationError:
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR)
        except Exception:
            logger.exception(
                "Failed to resolve conversation session: "
                "session_id=%s customer_id=%s",
                body.session_id,
                body.customer_id,
            )
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR)

        payload = MessageResponse(
            response=reply.response,
            state=reply.state,
            session_id=reply.session.session_id,
        )
        return JSONResponse(content=payload.model_dump(mode="json", by_alias=True))

    return app


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )
