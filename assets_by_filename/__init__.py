"""Serve host assets by disk filename, title or download filename."""

from .config import EndpointConfiguration, Settings, get_settings
from .errors import (
    AssetsByFilenameError,
    ConfigurationError,
    FileForbidden,
    FileNotFound,
    RecordStoreError,
    UpstreamDispatchError,
)
from .server import AssetsByFilenameServer, main

__version__ = "0.1.0"

__all__ = [
    "AssetsByFilenameError",
    "AssetsByFilenameServer",
    "ConfigurationError",
    "EndpointConfiguration",
    "FileForbidden",
    "FileNotFound",
    "RecordStoreError",
    "Settings",
    "UpstreamDispatchError",
    "get_settings",
    "main",
]
