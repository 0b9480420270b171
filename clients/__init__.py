# Infrastructure clients
from clients.vault_client import (
    VaultClient,
    VaultError,
    get_database_url,
    get_pricing_overrides,
)
from clients.postgres_client import PostgresClient, Transaction
