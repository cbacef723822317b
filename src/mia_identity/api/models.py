"""Request and response bodies for the conversation API."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mia_identity.domain.sessions import ConversationState


class MessageRequest(BaseModel):
    """Inbound chat message."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str | None = Field(default=None, alias="sessionId")
    message: str | None = None
    customer_id: str | None = Field(default=None, alias="customerId")

    @field_validator("message", mode="before")
    @classmethod
    def _drop_non_text(cls, value: object) -> object:
        return value if isinstance(value, str) else None


class MessageResponse(BaseModel):
    """Successful reply to a chat message."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    response: str
    state: ConversationState
    session_id: str = Field(alias="sessionId")


class ErrorResponse(BaseModel):
    """Error body returned for failed requests."""

    success: bool = False
    error: str
