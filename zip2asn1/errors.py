"""
Exception types raised by the pipeline.

Callers tell a missing entry apart from a broken archive by catching
EntryNotFoundError before ArchiveIOError.
"""
from typing import Optional


class Zip2Asn1Error(Exception):
    pass


class EntryNotFoundError(Zip2Asn1Error, LookupError):
    """The requested entry is not in the archive."""

    def __init__(self, name: str):
        super().__init__(f"not found: {name}")
        self.name = name


class ArchiveIOError(Zip2Asn1Error):
    """Opening or reading the archive failed."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.cause = cause


class RecordEncodingError(Zip2Asn1Error, ValueError):
    """A record field could not be represented in the output schema."""
