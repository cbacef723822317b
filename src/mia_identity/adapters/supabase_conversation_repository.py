"""Supabase-backed conversation repository."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from mia_identity.domain.sessions import ConversationRecord, ConversationState
from mia_identity.services.sessions import ConversationRepository

_COLUMNS = (
    "id, session_id, customer_id, channel, state, "
    "validation_attempts, is_validated, last_message_at"
)


@dataclass
class SupabaseConversationRepository(ConversationRepository):
    """Supabase implementation for conversations."""

    client: Client

    def create_conversation(  # noqa: PLR0913
        self,
        customer_id: str,
        session_id: str,
        channel: str,
        state: ConversationState,
        last_message_at: datetime,
    ) -> ConversationRecord:
        """Create a conversation row and return it."""
        response = (
            self.client.table("conversations")
            .insert(
                {
                    "customer_id": customer_id,
                    "session_id": session_id,
                    "channel": channel,
                    "state": state.value,
                    "validation_attempts": 0,
                    "is_validated": False,
                    "last_message_at": last_message_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create conversation")
        return _to_record(response.data[0])

    def get_by_session_id(self, session_id: str) -> ConversationRecord | None:
        """Return a conversation by session id, if present."""
        response = (
            self.client.table("conversations")
            .select(_COLUMNS)
            .eq("session_id", session_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_record(response.data[0])

    def update_conversation(self, session_id: str, fields: dict[str, object]) -> None:
        """Update the given columns of a conversation."""
        self.client.table("conversations").update(fields).eq(
            "session_id", session_id
        ).execute()


def _to_record(row: dict[str, object]) -> ConversationRecord:
    return ConversationRecord(
        id=str(row["id"]),
        session_id=str(row["session_id"]),
        customer_id=str(row["customer_id"]),
        channel=str(row.get("channel") or "chat"),
        state=ConversationState(row["state"]),
        validation_attempts=int(row.get("validation_attempts") or 0),
        is_validated=bool(row.get("is_validated")),
        last_message_at=datetime.fromisoformat(str(row["last_message_at"])),
    )
