"""Seed the demo customers used by the identification flow."""

import logging

from supabase import create_client

from mia_identity.adapters.supabase_customer_repository import (
    SupabaseCustomerRepository,
)
from mia_identity.app_logging import configure_logging
from mia_identity.config import Settings
from mia_identity.domain.models import CustomerRecord, DocumentType
from mia_identity.services.sessions import CustomerRepository

logger = logging.getLogger(__name__)

DEMO_CUSTOMERS: tuple[CustomerRecord, ...] = (
    CustomerRecord(
        id="cust-ale",
        client_name="Alessandra Sanches",
        first_name="Alessandra",
        document_type=DocumentType.CPF,
    ),
    CustomerRecord(
        id="cust-jose",
        client_name="José da Silva",
        first_name="José",
        document_type=DocumentType.CPF,
    ),
    CustomerRecord(
        id="cust-empresa1",
        client_name="Empresa Primavera LTDA",
        first_name="Representante",
        document_type=DocumentType.CNPJ,
    ),
)


def seed_customers(
    repository: CustomerRepository,
    customers: tuple[CustomerRecord, ...] = DEMO_CUSTOMERS,
) -> int:
    """Upsert the given customers and return how many were written."""
    for customer in customers:
        repository.upsert_customer(customer)
    return len(customers)


def main() -> None:
    """Seed demo customers into the configured Supabase project."""
    settings = Settings()
    configure_logging(settings.log_level)
    client = create_client(settings.supabase_url, settings.supabase_service_key)
    count = seed_customers(SupabaseCustomerRepository(client))
    logger.info("Seeded %d customers", count)


if __name__ == "__main__":
    main()
