"""Supabase repository for the validation audit log."""

from dataclasses import dataclass

from supabase import Client

from mia_identity.domain.validation import ValidationLogEntry
from mia_identity.services.validation import ValidationLogRepository


@dataclass
class SupabaseValidationLogRepository(ValidationLogRepository):
    """Supabase-backed validation log."""

    client: Client

    def create_entry(self, entry: ValidationLogEntry) -> None:
        """Append a validation attempt row."""
        self.client.table("validation_logs").insert(
            {
                "session_id": entry.session_id,
                "document_hash": entry.document_hash,
                "document_type": entry.document_type.value,
                "is_valid": entry.is_valid,
                "created_at": entry.created_at.isoformat(),
            }
        ).execute()
