from __future__ import annotations

import pytest

from assets_by_filename.config import Settings
from assets_by_filename.errors import RecordStoreError
from assets_by_filename.records.directus import StaticSchemaProvider
from assets_by_filename.server import AssetsByFilenameServer

from ._fakes import InMemoryRecordStore, UpstreamRecorder, make_upstream_app


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore(
        [
            {"id": "X", "title": "my-image", "filename_disk": "x.png", "filename_download": "my image.png"},
            {"id": "X2", "title": "my-image", "filename_disk": "x2.png", "filename_download": "copy.png"},
            {"id": "stream-id", "title": "endless", "filename_disk": "endless.bin", "filename_download": "e.bin"},
            {"id": "truncated-id", "title": "truncated", "filename_disk": "cut.bin", "filename_download": "cut.bin"},
            {"id": "P", "title": "private", "filename_disk": "p.png", "filename_download": "p.png", "_readers": {"Bearer admin"}},
        ]
    )


@pytest.fixture
def recorder() -> UpstreamRecorder:
    return UpstreamRecorder()


@pytest.fixture
async def upstream(aiohttp_server, recorder):
    return await aiohttp_server(make_upstream_app(recorder))


@pytest.fixture
def settings() -> Settings:
    return Settings(endpoint_path=None, default_host=None, default_port=8055)


@pytest.fixture
async def client(aiohttp_client, settings, store):
    server = AssetsByFilenameServer(settings, store=store, schema_provider=StaticSchemaProvider())
    return await aiohttp_client(server.create_app())


@pytest.fixture
def failing_store(store) -> InMemoryRecordStore:
    store.fail_with = RecordStoreError("database is on fire")
    return store
