"""Exception hierarchy for the assets-by-filename service."""


class AssetsByFilenameError(Exception):
    """Base class for all service errors."""


class ConfigurationError(AssetsByFilenameError):
    """Invalid startup configuration. The service must not start."""


class FileNotFound(AssetsByFilenameError):
    """No visible file matches the requested attribute."""


class FileForbidden(AssetsByFilenameError):
    """The record store denied the caller access to the file."""


class RecordStoreError(AssetsByFilenameError):
    """The record store failed for a reason other than access denial."""


class UpstreamDispatchError(AssetsByFilenameError):
    """The outbound request to the canonical asset endpoint could not be completed."""
