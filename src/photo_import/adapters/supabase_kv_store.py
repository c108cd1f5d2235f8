"""Supabase-backed key-value store."""

from dataclasses import dataclass
from datetime import UTC, datetime

import httpx
from supabase import Client, PostgrestAPIError

from photo_import.errors import TransientError
from photo_import.services.state_store import KeyValueStore


@dataclass
class SupabaseKeyValueStore(KeyValueStore):
    """Supabase implementation of the keyed store, one row per key."""

    client: Client
    table: str = "kv_store"
    page_size: int = 1000

    def put(self, key: str, value: dict[str, object]) -> None:
        """Upsert the row for a key."""
        self._execute(
            "put",
            key,
            lambda: self.client.table(self.table)
            .upsert(
                {
                    "key": key,
                    "value": value,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                },
                on_conflict="key",
            )
            .execute(),
        )

    def get(self, key: str) -> dict[str, object] | None:
        """Return the stored value for a key, if present."""
        response = self._execute(
            "get",
            key,
            lambda: self.client.table(self.table)
            .select("key, value")
            .eq("key", key)
            .limit(1)
            .execute(),
        )
        if not response.data:
            return None
        return response.data[0]["value"]

    def delete(self, key: str) -> None:
        """Delete the row for a key."""
        self._execute(
            "delete",
            key,
            lambda: self.client.table(self.table).delete().eq("key", key).execute(),
        )

    def list_keys(self, prefix: str) -> list[str]:
        """Return keys that start with a prefix, reading every page."""
        keys: list[str] = []
        start = 0
        while True:
            end = start + self.page_size - 1
            response = self._execute(
                "list",
                prefix,
                lambda: self.client.table(self.table)
                .select("key")
                .like("key", f"{prefix}%")
                .order("key")
                .range(start, end)
                .execute(),
            )
            rows = response.data or []
            keys.extend(row["key"] for row in rows)
            if len(rows) < self.page_size:
                return keys
            start += self.page_size

    def _execute(self, action: str, key: str, query):  # type: ignore[no-untyped-def]
        try:
            return query()
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise TransientError(f"State store {action} failed for {key}") from exc
