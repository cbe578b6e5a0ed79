"""Attribute-based file resolution."""

from .errors import FileForbidden, FileNotFound
from .logging import get_logger
from .models import LookupRequest, LookupStatus, ResolvedFile
from .records.base_store import FileRecordStore, SchemaProvider

logger = get_logger(__name__)


class FileResolver:
    """Turns a human-readable file attribute into the file's internal id.

    The caller context is passed to the record store untouched on every
    call; the store is the only place permissions are evaluated.
    """

    def __init__(self, store: FileRecordStore, schema_provider: SchemaProvider):
        self._store = store
        self._schema_provider = schema_provider

    async def resolve(self, lookup: LookupRequest) -> ResolvedFile:
        """
        Resolve a lookup to a single file.

        Args:
            lookup: Attribute, value and caller context

        Returns:
            The first visible matching file, in store order

        Raises:
            FileNotFound: Blank value, no visible match, or any lookup failure
            FileForbidden: The store denied the caller access
        """
        if not lookup.normalized_value:
            raise FileNotFound("Empty lookup value")

        attribute = lookup.attribute.value
        route = lookup.route or "unknown route"

        try:
            schema = await self._schema_provider.get_schema()
            result = await self._store.read_by_field(
                schema,
                lookup.caller_context,
                lookup.attribute,
                lookup.value,
                limit=1,
            )
        except Exception as exc:
            # Fail closed: unclassified lookup failures never surface as 5xx.
            logger.error(f"File lookup by {attribute} on {route} failed: {exc}")
            raise FileNotFound(f"Lookup by {attribute} failed") from exc

        if result.status is LookupStatus.ACCESS_DENIED:
            raise FileForbidden(f"Access to files denied for lookup by {attribute}")

        if result.status is LookupStatus.NOT_VISIBLE or not result.rows:
            raise FileNotFound(f"No visible file for lookup by {attribute}")

        internal_id = result.rows[0].get(schema.primary_key)
        if internal_id is None or str(internal_id) == "":
            logger.error(f"File row for lookup by {attribute} on {route} has no primary key")
            raise FileNotFound(f"Lookup by {attribute} returned a row without a primary key")

        return ResolvedFile(internal_id=str(internal_id))
