"""Conversation state machine for customer identification."""

import logging
from dataclasses import dataclass, replace

from mia_identity.domain.models import DocumentType
from mia_identity.domain.sessions import ConversationState, SessionRecord, SessionUpdate
from mia_identity.domain.validation import (
    ValidationFailure,
    ValidationOutcome,
    ValidationSuccess,
)
from mia_identity.services.sessions import SessionStore
from mia_identity.services.templates import TemplateRenderer
from mia_identity.services.validation import (
    IdentityValidator,
    is_valid_format,
    sanitize_document,
)

logger = logging.getLogger(__name__)

MAX_VALIDATION_ATTEMPTS = 3

AFFIRMATIVE_ANSWERS = frozenset(
    {"sim", "s", "yes", "y", "isso", "correto", "sou eu", "sou"}
)
NEGATIVE_ANSWERS = frozenset({"não", "nao", "n", "no", "não sou", "nao sou"})

# Checked in order; the first topic with a matching keyword wins.
OFFER_TOPICS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("offer-card", ("cartao", "cartão")),
    ("offer-loan", ("emprestimo", "empréstimo", "financiamento")),
    ("offer-investment", ("invest",)),
    ("offer-insurance", ("seguro",)),
)
GENERIC_OFFER_TEMPLATE = "offer-generic"


class ConversationError(RuntimeError):
    """Raised when a message could not be processed."""


@dataclass(frozen=True)
class Transition:
    """Outcome of one decision: next state, response template, persisted fields."""

    next_state: ConversationState
    template: str
    update: SessionUpdate | None = None


@dataclass(frozen=True)
class DocumentCheck:
    """A well-formed document that still has to go through the validator."""

    document: str
    document_type: DocumentType


@dataclass(frozen=True)
class ConversationReply:
    """Response for the caller plus the session as it stands afterwards."""

    response: str
    state: ConversationState
    session: SessionRecord


def classify_confirmation(message: str) -> bool | None:
    """Return True for yes, False for no, None when the answer is ambiguous."""
    normalized = message.strip().lower()
    if normalized in AFFIRMATIVE_ANSWERS:
        return True
    if normalized in NEGATIVE_ANSWERS:
        return False
    return None


def select_offer_template(message: str) -> str:
    """Pick the offer template for a follow-up message."""
    lowered = message.lower()
    for template, keywords in OFFER_TOPICS:
        if any(keyword in lowered for keyword in keywords):
            return template
    return GENERIC_OFFER_TEMPLATE


def decide(  # noqa: PLR0911
    session: SessionRecord,
    message: str | None,
    max_attempts: int = MAX_VALIDATION_ATTEMPTS,
) -> Transition | DocumentCheck:
    """Decide the transition for a message, short of calling the validator."""
    state = session.state
    has_text = bool(message and message.strip())

    if state is ConversationState.GREETING:
        return _move(ConversationState.CONFIRM_NAME, "greeting")

    if state is ConversationState.CONFIRM_NAME:
        if not has_text:
            return Transition(state, "greeting")
        confirmed = classify_confirmation(message or "")
        if confirmed is True:
            return _move(ConversationState.REQUEST_DOCUMENT, "request-document")
        if confirmed is False:
            return _move(ConversationState.CLOSED, "not-client")
        return Transition(state, "greeting")

    if state is ConversationState.REQUEST_DOCUMENT:
        if not has_text:
            return Transition(state, "request-document")
        document_type = session.template_data.document_type
        document = sanitize_document(message or "")
        if not is_valid_format(document, document_type):
            return failed_attempt(session, max_attempts)
        return DocumentCheck(document=document, document_type=document_type)

    if state is ConversationState.VALIDATED:
        if not has_text:
            return Transition(state, "validation-success")
        return _move(ConversationState.CLOSED, select_offer_template(message or ""))

    if state is ConversationState.CLOSED:
        return Transition(state, "timeout-end")

    return _move(ConversationState.CONFIRM_NAME, "greeting")


def decide_after_validation(
    session: SessionRecord,
    outcome: ValidationOutcome,
    max_attempts: int = MAX_VALIDATION_ATTEMPTS,
) -> Transition:
    """Decide the transition once the validator has answered."""
    if isinstance(outcome, ValidationSuccess):
        return Transition(
            ConversationState.VALIDATED,
            "validation-success",
            SessionUpdate(state=ConversationState.VALIDATED, is_validated=True),
        )
    return failed_attempt(session, max_attempts)


def failed_attempt(session: SessionRecord, max_attempts: int) -> Transition:
    """Count a wrong document and close the session at the limit."""
    attempts = min(session.validation_attempts + 1, max_attempts)
    if attempts >= max_attempts:
        return Transition(
            ConversationState.CLOSED,
            "validation-exceeded",
            SessionUpdate(
                state=ConversationState.CLOSED, validation_attempts=attempts
            ),
        )
    return Transition(
        ConversationState.REQUEST_DOCUMENT,
        "validation-failure",
        SessionUpdate(validation_attempts=attempts),
    )


def apply_update(session: SessionRecord, update: SessionUpdate | None) -> SessionRecord:
    """Return a copy of the session with the update applied."""
    if update is None:
        return session
    changes: dict[str, object] = {}
    if update.state is not None:
        changes["state"] = update.state
    if update.validation_attempts is not None:
        changes["validation_attempts"] = update.validation_attempts
    if update.is_validated is not None:
        changes["is_validated"] = update.is_validated
    return replace(session, **changes)


def _move(state: ConversationState, template: str) -> Transition:
    return Transition(state, template, SessionUpdate(state=state))


@dataclass
class ConversationEngine:
    """Runs one message through the state machine and its collaborators."""

    session_store: SessionStore
    renderer: TemplateRenderer
    validator: IdentityValidator
    max_attempts: int = MAX_VALIDATION_ATTEMPTS

    async def handle_message(
        self, session: SessionRecord, message: str | None
    ) -> ConversationReply:
        """Process a message and persist the resulting transition."""
        try:
            return await self._process(session, message)
        except Exception as exc:
            logger.exception(
                "Conversation transition failed: "
                "session_id=%s prior_state=%s error=%r",
                session.session_id,
                session.state.value,
                exc,
            )
            raise ConversationError("Failed to process message") from exc

    async def _process(
        self, session: SessionRecord, message: str | None
    ) -> ConversationReply:
        if session.state is ConversationState.UNKNOWN:
            logger.warning(
                "Unknown conversation state, resetting: session_id=%s",
                session.session_id,
            )

        decision = decide(session, message, self.max_attempts)
        if isinstance(decision, DocumentCheck):
            outcome = await self.validator.validate(
                decision.document,
                decision.document_type,
                session.conversation_id,
                session.template_data.client_name,
            )
            if isinstance(outcome, ValidationFailure):
                logger.info(
                    "Document rejected: session_id=%s error_code=%s",
                    session.session_id,
                    outcome.error_code.value,
                )
            decision = decide_after_validation(session, outcome, self.max_attempts)

        response = self.renderer.render(
            decision.template, session.template_data.as_bag()
        )
        if decision.update is not None:
            await self.session_store.update(session.session_id, decision.update)

        return ConversationReply(
            response=response,
            state=decision.next_state,
            session=apply_update(session, decision.update),
        )
