"""In-memory collaborators and a fake asset endpoint for the test suite."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from aiohttp import web

from assets_by_filename.models import CallerContext, FileAttribute, RecordQueryResult, SchemaSnapshot
from assets_by_filename.records.base_store import FileRecordStore


class InMemoryRecordStore(FileRecordStore):
    """Record store over a fixed list of rows, with per-token visibility."""

    def __init__(self, rows: list[dict] | None = None) -> None:
        self.rows: list[dict] = rows or []
        self.denied_tokens: set[str] = set()
        self.fail_with: Exception | None = None
        self.calls: list[tuple[CallerContext, FileAttribute, str, int]] = []

    async def read_by_field(
        self,
        schema: SchemaSnapshot,
        context: CallerContext,
        attribute: FileAttribute,
        value: str,
        limit: int = 1,
    ) -> RecordQueryResult:
        self.calls.append((context, attribute, value, limit))
        if self.fail_with is not None:
            raise self.fail_with
        if context.authorization in self.denied_tokens:
            return RecordQueryResult.access_denied()

        visible = [
            row
            for row in self.rows
            if row.get(attribute.value) == value
            and ("_readers" not in row or context.authorization in row["_readers"])
        ]
        return RecordQueryResult.found([{"id": row["id"]} for row in visible][:limit])


@dataclass
class UpstreamRecorder:
    """What the fake asset endpoint saw, and how it should answer."""

    requests: list[web.Request] = field(default_factory=list)
    raw_paths: list[str] = field(default_factory=list)
    body: bytes = b"\x89PNG fake image bytes"
    status: int = 200
    reason: str | None = None
    extra_headers: list[tuple[str, str]] = field(default_factory=list)
    disconnected: asyncio.Event = field(default_factory=asyncio.Event)


def make_upstream_app(recorder: UpstreamRecorder) -> web.Application:
    async def asset(request: web.Request) -> web.StreamResponse:
        recorder.requests.append(request)
        recorder.raw_paths.append(request.raw_path)

        response = web.Response(body=recorder.body, status=recorder.status, reason=recorder.reason)
        response.content_type = "image/png"
        response.headers["Cache-Control"] = "public, max-age=3600"
        response.headers["ETag"] = '"abc123"'
        for key, value in recorder.extra_headers:
            response.headers.add(key, value)
        return response

    async def endless(request: web.Request) -> web.StreamResponse:
        recorder.requests.append(request)
        response = web.StreamResponse(status=200)
        response.content_type = "application/octet-stream"
        await response.prepare(request)
        try:
            for _ in range(2000):
                await response.write(b"x" * 1024)
                await asyncio.sleep(0.01)
        except (ConnectionResetError, asyncio.CancelledError):
            recorder.disconnected.set()
            raise
        return response

    async def truncated(request: web.Request) -> web.StreamResponse:
        recorder.requests.append(request)
        response = web.StreamResponse(status=200)
        response.content_type = "application/octet-stream"
        response.content_length = 100000
        await response.prepare(request)
        await response.write(b"x" * 1000)
        request.transport.close()
        return response

    app = web.Application()
    app.router.add_get("/assets/stream-id", endless)
    app.router.add_get("/assets/truncated-id", truncated)
    app.router.add_get("/assets/{id}", asset)
    return app
