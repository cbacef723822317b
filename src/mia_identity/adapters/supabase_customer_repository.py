"""Supabase-backed customer repository."""

from dataclasses import dataclass

from supabase import Client

from mia_identity.domain.models import CustomerRecord, DocumentType
from mia_identity.services.sessions import CustomerRepository


@dataclass
class SupabaseCustomerRepository(CustomerRepository):
    """Supabase implementation for customer lookups."""

    client: Client

    def get_customer(self, customer_id: str) -> CustomerRecord | None:
        """Return the customer for an id, if present."""
        response = (
            self.client.table("customers")
            .select("id, client_name, first_name, document_type")
            .eq("id", customer_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return CustomerRecord(
            id=row["id"],
            client_name=row["client_name"],
            first_name=row["first_name"],
            document_type=DocumentType(row["document_type"]),
        )

    def upsert_customer(self, customer: CustomerRecord) -> None:
        """Insert a customer, leaving an existing row as it is."""
        self.client.table("customers").upsert(
            {
                "id": customer.id,
                "client_name": customer.client_name,
                "first_name": customer.first_name,
                "document_type": customer.document_type.value,
            },
            on_conflict="id",
            ignore_duplicates=True,
        ).execute()
