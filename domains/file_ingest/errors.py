"""
File ingestion error hierarchy.

All errors are non-fatal to the watcher. They terminate the pipeline of the
file that raised them (or, for configuration errors, are logged and the scan
proceeds best-effort) but the service keeps running.
"""

from typing import Optional


class FileIngestError(Exception):
    """Base exception for deposit ingestion failures."""

    pass


class ConfigurationError(FileIngestError):
    """Invalid watch configuration or required directory cannot be created."""

    pass


class NormalizationError(FileIngestError):
    """Input file cannot be turned into a request-ready representation."""

    pass


class UnsupportedFormatError(NormalizationError):
    """No viable document or image representation exists for the file."""

    pass


class ExtractionError(FileIngestError):
    """Extraction service call failed (transport, auth, status or payload)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"HTTP {self.status_code}: {self.message}"
        return self.message


class WriteError(FileIngestError):
    """Extracted text or history snapshot could not be written."""

    pass


class RelocationError(FileIngestError):
    """Original file could not be moved out of the deposit tree."""

    pass


class AliasError(FileIngestError):
    """Recovery alias could not be created in the export tree."""

    pass
