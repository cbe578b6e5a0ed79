"""File record lookups against the host's REST API."""

import json

import aiohttp
from yarl import URL

from ...errors import RecordStoreError
from ...logging import get_logger
from ...models import CallerContext, FileAttribute, RecordQueryResult, SchemaSnapshot
from ..base_store import FileRecordStore, SchemaProvider

logger = get_logger(__name__)

FILES_COLLECTION = "directus_files"
SYSTEM_PREFIX = "directus_"


class StaticSchemaProvider(SchemaProvider):
    """Schema snapshot of the built-in file collection."""

    def __init__(self, snapshot: SchemaSnapshot | None = None):
        self._snapshot = snapshot or SchemaSnapshot(
            collection=FILES_COLLECTION,
            primary_key="id",
            field_names=frozenset({"id", *(attribute.value for attribute in FileAttribute)}),
        )

    async def get_schema(self) -> SchemaSnapshot:
        return self._snapshot


class DirectusFileRecordStore(FileRecordStore):
    """Queries ``/files`` with the caller's own credentials.

    The host evaluates its permission rules against those credentials, so
    rows the caller may not read are simply absent from the result and a
    caller with no read access to the collection at all gets a 403.
    """

    def __init__(self, session: aiohttp.ClientSession, base_url: str):
        """
        Initialize the store.

        Args:
            session: Shared client session used for all lookups
            base_url: Base URL of the host REST API
        """
        self._session = session
        self._base_url = URL(base_url.rstrip("/"))

    def _collection_url(self, schema: SchemaSnapshot) -> URL:
        if schema.collection.startswith(SYSTEM_PREFIX):
            return self._base_url / schema.collection[len(SYSTEM_PREFIX):]
        return self._base_url / "items" / schema.collection

    @staticmethod
    def _credentials(context: CallerContext) -> tuple[dict[str, str], dict[str, str]]:
        headers: dict[str, str] = {}
        params: dict[str, str] = {}
        if context.authorization:
            headers["Authorization"] = context.authorization
        if context.cookie:
            headers["Cookie"] = context.cookie
        if context.access_token:
            params["access_token"] = context.access_token
        return headers, params

    async def read_by_field(
        self,
        schema: SchemaSnapshot,
        context: CallerContext,
        attribute: FileAttribute,
        value: str,
        limit: int = 1,
    ) -> RecordQueryResult:
        if attribute.value not in schema.field_names:
            raise RecordStoreError(f"Field {attribute.value!r} is not part of {schema.collection}")

        headers, params = self._credentials(context)
        params.update(
            {
                "filter": json.dumps({attribute.value: {"_eq": value}}),
                "limit": str(limit),
                "fields": schema.primary_key,
            }
        )
        url = self._collection_url(schema)

        logger.debug(f"Querying file records by {attribute.value} at {url}")

        try:
            async with self._session.get(url, params=params, headers=headers) as response:
                if response.status == 403:
                    return RecordQueryResult.access_denied()
                if response.status != 200:
                    raise RecordStoreError(f"File query failed with HTTP {response.status}")
                payload = await response.json()
        except aiohttp.ClientError as exc:
            raise RecordStoreError(f"File query could not be completed: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise RecordStoreError("File query returned malformed JSON") from exc

        rows = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(rows, list):
            raise RecordStoreError("File query returned no data array")

        return RecordQueryResult.found([row for row in rows if isinstance(row, dict)][:limit])
