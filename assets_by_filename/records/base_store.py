"""Abstract collaborator interfaces for file record lookups."""

from abc import ABC, abstractmethod

from ..models import CallerContext, FileAttribute, RecordQueryResult, SchemaSnapshot


class SchemaProvider(ABC):
    """Supplies the schema snapshot a record query runs against."""

    @abstractmethod
    async def get_schema(self) -> SchemaSnapshot:
        """Return the current snapshot of the file collection."""


class FileRecordStore(ABC):
    """Permission-aware, single-field equality query over file records."""

    @abstractmethod
    async def read_by_field(
        self,
        schema: SchemaSnapshot,
        context: CallerContext,
        attribute: FileAttribute,
        value: str,
        limit: int = 1,
    ) -> RecordQueryResult:
        """
        Query file records where ``attribute == value``.

        Args:
            schema: Schema snapshot for this request
            context: Caller permission context, applied as a query-time filter
            attribute: Field to filter on
            value: Exact value to match
            limit: Maximum number of rows to return

        Returns:
            FOUND with rows in store order, NOT_VISIBLE when no row is
            visible to the caller, or ACCESS_DENIED when the store refuses
            the caller outright

        Raises:
            RecordStoreError: For any other store failure
        """
