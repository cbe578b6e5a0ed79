"""Data models for the assets-by-filename service."""

from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field


class FileAttribute(str, Enum):
    """File record fields that can be used to look up an asset."""

    FILENAME_DISK = "filename_disk"
    TITLE = "title"
    FILENAME_DOWNLOAD = "filename_download"


class CallerContext(BaseModel):
    """Credentials of the caller, handed untouched to the record store."""

    model_config = ConfigDict(frozen=True)

    authorization: Annotated[str | None, Field(description="Authorization header")] = None
    access_token: Annotated[str | None, Field(description="access_token query parameter")] = None
    cookie: Annotated[str | None, Field(description="Cookie header")] = None

    @property
    def is_anonymous(self) -> bool:
        return not (self.authorization or self.access_token or self.cookie)


class LookupRequest(BaseModel):
    """A single attribute-based lookup."""

    model_config = ConfigDict(frozen=True)

    attribute: Annotated[FileAttribute, Field(description="Field to filter on")]
    value: Annotated[str, Field(description="Raw value taken from the path")]
    caller_context: Annotated[CallerContext, Field(description="Permission context of the caller")]
    route: Annotated[str, Field(description="Name of the route that received the request")] = ""

    @property
    def normalized_value(self) -> str:
        return self.value.strip()


class ResolvedFile(BaseModel):
    """Outcome of a successful lookup."""

    model_config = ConfigDict(frozen=True)

    internal_id: Annotated[str, Field(min_length=1, description="Primary key of the file record")]


class SchemaSnapshot(BaseModel):
    """The part of the host schema the record store needs."""

    model_config = ConfigDict(frozen=True)

    collection: Annotated[str, Field(description="Collection holding file records")]
    primary_key: Annotated[str, Field(description="Primary key field")] = "id"
    field_names: Annotated[frozenset[str], Field(description="Queryable fields")]


class LookupStatus(str, Enum):
    """Typed answer of the record store."""

    FOUND = "found"
    NOT_VISIBLE = "not_visible"
    ACCESS_DENIED = "access_denied"


class RecordQueryResult(BaseModel):
    """Rows returned by the record store, in store order."""

    model_config = ConfigDict(frozen=True)

    status: LookupStatus
    rows: tuple[dict[str, Any], ...] = ()

    @classmethod
    def found(cls, rows: list[dict[str, Any]]) -> "RecordQueryResult":
        if not rows:
            return cls(status=LookupStatus.NOT_VISIBLE)
        return cls(status=LookupStatus.FOUND, rows=tuple(rows))

    @classmethod
    def not_visible(cls) -> "RecordQueryResult":
        return cls(status=LookupStatus.NOT_VISIBLE)

    @classmethod
    def access_denied(cls) -> "RecordQueryResult":
        return cls(status=LookupStatus.ACCESS_DENIED)


class InboundRequest(BaseModel):
    """The parts of the caller's request that travel upstream."""

    model_config = ConfigDict(frozen=True)

    method: Annotated[str, Field(description="HTTP method")] = "GET"
    query: Annotated[
        str | None, Field(description="Raw query string without '?'; None when the target had no '?'")
    ] = None
    headers: Annotated[tuple[tuple[str, str], ...], Field(description="Inbound headers in arrival order")] = ()

    def header(self, name: str) -> str | None:
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None


class ProxyRequestSpec(BaseModel):
    """Everything needed to issue the outbound request."""

    model_config = ConfigDict(frozen=True)

    target_scheme: Annotated[str, Field(description="http or https")] = "http"
    target_host: Annotated[str, Field(description="Upstream host name or IP literal")]
    target_port: Annotated[int, Field(ge=1, le=65535, description="Upstream port")]
    target_path: Annotated[str, Field(description="Path plus the untouched original query string")]
    method: Annotated[str, Field(description="HTTP method")] = "GET"
    forwarded_headers: Annotated[
        tuple[tuple[str, str], ...], Field(description="Inbound headers minus Host, repeats kept")
    ] = ()

    @property
    def url(self) -> str:
        host = f"[{self.target_host}]" if ":" in self.target_host else self.target_host
        return f"{self.target_scheme}://{host}:{self.target_port}{self.target_path}"


class ProxyResponse(BaseModel):
    """Status line and headers of the upstream response. The body is streamed separately."""

    model_config = ConfigDict(frozen=True)

    status: Annotated[int, Field(ge=100, le=599, description="HTTP status code")]
    reason: Annotated[str | None, Field(description="Reason phrase")] = None
    headers: Annotated[tuple[tuple[str, str], ...], Field(description="Relayed response headers")] = ()


class ErrorExtensions(BaseModel):
    code: str


class ErrorDetail(BaseModel):
    message: str
    extensions: ErrorExtensions


class ErrorResponse(BaseModel):
    """Structured error body, shaped like the host's own API errors."""

    errors: list[ErrorDetail]

    @classmethod
    def single(cls, message: str, code: str) -> "ErrorResponse":
        return cls(errors=[ErrorDetail(message=message, extensions=ErrorExtensions(code=code))])
