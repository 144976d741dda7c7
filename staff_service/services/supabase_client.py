"""Supabase client wrapper with async context manager support and conditional updates."""

import asyncio
from typing import Any, Callable, Optional
from supabase import create_client, Client
from supabase.client import ClientOptions

from staff_service.utils.config import StoreConfig
from staff_service.utils.errors import ConcurrentUpdateError, NotFoundError, SupabaseError
from staff_service.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

# Returns the changed columns, or None to leave the row as it is
Mutation = Callable[[dict], Optional[dict]]


def build_supabase_client(store: StoreConfig) -> Client:
    """Create a Supabase client from the store section of the service config."""
    url, key = store.require_credentials()

    options = ClientOptions(
        auto_refresh_token=False,
        persist_session=False,
    )

    client = create_client(url, key, options)
    logger.info("Supabase client initialized", url=url)
    return client


class SupabaseClient:
    """Async context manager around an already-built client."""

    def __init__(self, client: Client):
        self.client = client

    async def __aenter__(self) -> Client:
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                error=str(exc_val),
                error_type=exc_type.__name__
            )
        return False


async def fetch_one(client: Client, table: str, column: str, value: Any) -> Optional[dict]:
    """Get a single row by column value."""
    async with SupabaseClient(client) as db:
        try:
            result = db.table(table).select("*").eq(column, value).limit(1).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to read {table}: {e}") from e
    return result.data[0] if result.data else None


async def insert_row(client: Client, table: str, row: dict) -> dict:
    """Insert a row and return what the store wrote."""
    async with SupabaseClient(client) as db:
        try:
            result = db.table(table).insert(row).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to insert into {table}: {e}") from e
    if not result.data:
        raise SupabaseError(f"Failed to insert into {table}: no data returned")
    return result.data[0]


async def update_with_retry(
    client: Client,
    table: str,
    key_column: str,
    key: Any,
    mutate: Mutation,
    *,
    max_attempts: int = 5,
    backoff_seconds: float = 0.05,
) -> Optional[dict]:
    """
    Read-modify-write a row guarded by its row_version.

    Each attempt reads the row, asks ``mutate`` for the changed columns and
    writes them only if row_version is still the one that was read. A write
    that matches no rows means another writer got there first, so the row is
    read again and the mutation re-applied to the fresh copy.

    Args:
        client: Supabase client
        table: Table name
        key_column: Primary key column
        key: Primary key value
        mutate: Called with the current row; returns changed columns or None to skip
        max_attempts: Conditional writes to try before giving up
        backoff_seconds: Base delay between attempts (linear)

    Returns:
        The updated row, or None if ``mutate`` declined to change anything

    Raises:
        NotFoundError: Row does not exist
        ConcurrentUpdateError: Every attempt lost the race
        SupabaseError: Store failure
    """
    for attempt in range(1, max_attempts + 1):
        current = await fetch_one(client, table, key_column, key)
        if current is None:
            raise NotFoundError(f"{table} row not found: {key}")

        changes = mutate(current)
        if changes is None:
            return None

        version = current.get("row_version", 1)
        async with SupabaseClient(client) as db:
            try:
                result = (
                    db.table(table)
                    .update({**changes, "row_version": version + 1})
                    .eq(key_column, key)
                    .eq("row_version", version)
                    .execute()
                )
            except Exception as e:
                raise SupabaseError(f"Failed to update {table} row {key}: {e}") from e

        if result.data:
            return result.data[0]

        logger.warning(
            "Conditional update lost race, retrying",
            table=table,
            key=key,
            attempt=attempt,
            row_version=version
        )
        if attempt < max_attempts and backoff_seconds:
            await asyncio.sleep(backoff_seconds * attempt)

    raise ConcurrentUpdateError(
        f"Gave up updating {table} row {key} after {max_attempts} attempts"
    )


async def delete_if_unchanged(client: Client, table: str, key_column: str, key: Any, row_version: int) -> bool:
    """Delete a row only if row_version still matches. False means it changed or is gone."""
    async with SupabaseClient(client) as db:
        try:
            result = (
                db.table(table)
                .delete()
                .eq(key_column, key)
                .eq("row_version", row_version)
                .execute()
            )
        except Exception as e:
            raise SupabaseError(f"Failed to delete {table} row {key}: {e}") from e
    return bool(result.data)
