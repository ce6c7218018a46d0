"""
Base abstract classes for the zip-entry-to-ASN.1 converter.
Defines the record types and interfaces for all pipeline components.
"""
import zipfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from zip2asn1.archive import ArchiveHandle


class FileType(IntEnum):
    """Coarse file-type classification of an archive entry."""
    UNKNOWN = 0
    REGULAR = 1
    DIRECTORY = 2
    SYMLINK = 3


class CompressionMethod(IntEnum):
    """Stable wire enumeration for the entry's compression method."""
    UNSPECIFIED = 0
    STORE = 1
    DEFLATE = 2


@dataclass(frozen=True)
class EntryHeader:
    """Header metadata of a single archive entry, as read from the archive."""
    name: str
    comment: str
    extra: bytes
    compressed_size: int
    uncompressed_size: int
    modified: int
    crc32: int
    method: int


@dataclass(frozen=True)
class RawItem:
    """An entry header paired with its payload exactly as stored."""
    header: EntryHeader
    raw_content: bytes


@dataclass(frozen=True)
class CanonicalRecord:
    """The fixed-schema record that gets serialized."""
    name: str
    comment: str
    extra_header: bytes
    raw_content: bytes
    compressed_size: int
    uncompressed_size: int
    modified: int
    crc32: int
    method: CompressionMethod
    file_type: FileType


class AbstractLocator(ABC):
    """Abstract base class for finding an entry in an archive by name."""

    @abstractmethod
    def locate(self, archive: "ArchiveHandle", name: str) -> zipfile.ZipInfo:
        """
        Find the entry called *name*.

        Args:
            archive: Open archive to search
            name: Entry name as stored in the central directory

        Returns:
            The matching entry

        Raises:
            EntryNotFoundError: If no entry matches
        """
        pass


class AbstractExtractor(ABC):
    """Abstract base class for raw entry extraction."""

    @abstractmethod
    def extract(self, archive: "ArchiveHandle", info: zipfile.ZipInfo) -> RawItem:
        """
        Read an entry's stored bytes without decompressing them.

        Args:
            archive: Open archive the entry belongs to
            info: Entry returned by a locator

        Returns:
            Header metadata and raw payload

        Raises:
            ArchiveIOError: If the payload cannot be read
        """
        pass


class AbstractClassifier(ABC):
    """Abstract base class for entry classification."""

    @abstractmethod
    def classify(self, name: str, payload_length: int) -> FileType:
        """
        Classify an entry.

        Args:
            name: Entry name
            payload_length: Length of the raw payload in bytes

        Returns:
            Detected file type
        """
        pass


class AbstractEncoder(ABC):
    """Abstract base class for record serialization."""

    @abstractmethod
    def encode(self, record: CanonicalRecord) -> bytes:
        """
        Serialize a record.

        Args:
            record: Record to serialize

        Returns:
            Encoded bytes

        Raises:
            RecordEncodingError: If a field value cannot be encoded
        """
        pass

    @abstractmethod
    def decode(self, data: bytes) -> CanonicalRecord:
        """
        Parse a record previously produced by encode().

        Args:
            data: Encoded bytes

        Returns:
            The decoded record

        Raises:
            RecordEncodingError: If the bytes are not a valid record
        """
        pass
