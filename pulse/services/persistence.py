"""
Persistence gateway for aggregated search batches.

The engine only needs two operations: store a batch, and read back batches
for a term. Storage is best effort: one insert per aggregation, no
transactions, and failures surface as ``PersistenceError``.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Dict, List, Optional, Protocol

from supabase import Client, create_client

from pulse.config import Settings, get_settings
from pulse.errors import PersistenceError
from pulse.schemas import PersistedBatch, SearchBatch
from pulse.utils import now_utc

logger = logging.getLogger(__name__)


class PersistenceGateway(Protocol):
    async def save(self, batch: SearchBatch) -> str:
        """Store a batch and return its id."""
        ...

    async def query_by_term(self, term: str) -> List[PersistedBatch]:
        """Batches whose term contains ``term`` (case-insensitive), newest first."""
        ...


class InMemoryPersistenceGateway:
    """Process-local store, used for development and tests."""

    def __init__(self):
        self._batches: List[PersistedBatch] = []

    async def save(self, batch: SearchBatch) -> str:
        batch_id = uuid.uuid4().hex
        self._batches.append(
            PersistedBatch.model_validate(
                {**batch.model_dump(), "id": batch_id, "created_at": now_utc()}
            )
        )
        return batch_id

    async def query_by_term(self, term: str) -> List[PersistedBatch]:
        needle = term.strip().casefold()
        matches = [batch for batch in self._batches if needle in batch.term.casefold()]
        return sorted(matches, key=lambda batch: batch.created_at, reverse=True)


class SupabasePersistenceGateway:
    """
    Stores each batch as one row of a Supabase table.

    Expected table (run once in the Supabase SQL editor)::

        CREATE TABLE IF NOT EXISTS search_batches (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            search_term TEXT NOT NULL,
            sources JSONB NOT NULL,
            records JSONB NOT NULL,
            metrics JSONB NOT NULL,
            created_at TIMESTAMPTZ DEFAULT NOW()
        );
        CREATE INDEX IF NOT EXISTS idx_search_term ON search_batches(search_term);

    The supabase client is synchronous, so calls run in the default executor.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        table: Optional[str] = None,
        client: Optional[Client] = None,
    ):
        settings = get_settings()
        self.table = table or settings.SUPABASE_TABLE
        if client is None:
            url = url or settings.SUPABASE_URL
            key = key or settings.SUPABASE_KEY
            if not url or not key:
                raise PersistenceError("Missing Supabase credentials")
            client = create_client(url, key)
        self.client = client

    async def save(self, batch: SearchBatch) -> str:
        row = {
            "search_term": batch.term,
            "sources": [source.value for source in batch.sources],
            "records": [record.model_dump(mode="json") for record in batch.records],
            "metrics": batch.metrics.model_dump(mode="json"),
        }
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self._insert, row)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Error saving batch for '{batch.term}': {e}") from e

    async def query_by_term(self, term: str) -> List[PersistedBatch]:
        loop = asyncio.get_running_loop()
        try:
            rows = await loop.run_in_executor(None, self._select, term.strip())
            # A row missing columns or with drifted payloads is a storage fault
            return [self._to_batch(row) for row in rows]
        except Exception as e:
            raise PersistenceError(f"Error fetching batches for '{term}': {e}") from e

    def _insert(self, row: Dict[str, Any]) -> str:
        result = self.client.table(self.table).insert(row).execute()
        if not result.data:
            raise PersistenceError("Insert returned no row")
        return str(result.data[0]["id"])

    def _select(self, term: str) -> List[Dict[str, Any]]:
        result = (
            self.client.table(self.table)
            .select("*")
            .ilike("search_term", f"%{term}%")
            .order("created_at", desc=True)
            .execute()
        )
        return result.data or []

    @staticmethod
    def _to_batch(row: Dict[str, Any]) -> PersistedBatch:
        return PersistedBatch.model_validate(
            {
                "id": str(row["id"]),
                "created_at": row["created_at"],
                "term": row["search_term"],
                "sources": row["sources"],
                "records": row["records"],
                "metrics": row["metrics"],
            }
        )


def build_gateway(settings: Optional[Settings] = None) -> PersistenceGateway:
    """Supabase when credentials are configured, otherwise in-memory."""
    settings = settings or get_settings()
    if settings.SUPABASE_URL and settings.SUPABASE_KEY:
        return SupabasePersistenceGateway(
            url=settings.SUPABASE_URL,
            key=settings.SUPABASE_KEY,
            table=settings.SUPABASE_TABLE,
        )
    logger.info("Supabase not configured; persisting batches in memory")
    return InMemoryPersistenceGateway()
