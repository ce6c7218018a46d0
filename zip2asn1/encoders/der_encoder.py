"""
DER encoder for CanonicalRecord.

The record is serialized with asn1crypto against this fixed schema.
Field order and tagging are part of the output format; changing either
is a breaking change:

    ZipEntryRecord ::= SEQUENCE {
        name              UTF8String,
        comment           UTF8String,
        extraHeader       OCTET STRING,
        rawContent        OCTET STRING,
        compressedSize    INTEGER,
        uncompressedSize  INTEGER,
        modified          INTEGER,  -- seconds since the Unix epoch
        crc32             INTEGER,  -- signed 32-bit
        method            CompressionMethod,
        fileType          FileType
    }

    CompressionMethod ::= ENUMERATED { unspecified(0), store(1), deflate(2) }
    FileType ::= ENUMERATED { unknown(0), regular(1), directory(2), symlink(3) }
"""
import logging

from asn1crypto import core

from zip2asn1.base import AbstractEncoder, CanonicalRecord, CompressionMethod, FileType
from zip2asn1.errors import RecordEncodingError

logger = logging.getLogger(__name__)


class Asn1CompressionMethod(core.Enumerated):
    _map = {member.value: member.name.lower() for member in CompressionMethod}


class Asn1FileType(core.Enumerated):
    _map = {member.value: member.name.lower() for member in FileType}


class ZipEntryRecord(core.Sequence):
    _fields = [
        ('name', core.UTF8String),
        ('comment', core.UTF8String),
        ('extra_header', core.OctetString),
        ('raw_content', core.OctetString),
        ('compressed_size', core.Integer),
        ('uncompressed_size', core.Integer),
        ('modified', core.Integer),
        ('crc32', core.Integer),
        ('method', Asn1CompressionMethod),
        ('file_type', Asn1FileType),
    ]


class DerEncoder(AbstractEncoder):
    """Encodes records as DER and parses them back."""

    def encode(self, record: CanonicalRecord) -> bytes:
        try:
            asn1 = ZipEntryRecord({
                'name': record.name,
                'comment': record.comment,
                'extra_header': bytes(record.extra_header),
                'raw_content': bytes(record.raw_content),
                'compressed_size': record.compressed_size,
                'uncompressed_size': record.uncompressed_size,
                'modified': record.modified,
                'crc32': record.crc32,
                'method': int(record.method),
                'file_type': int(record.file_type),
            })
            der = asn1.dump(force=True)
        except (TypeError, ValueError) as e:
            raise RecordEncodingError(f"cannot encode {record.name!r}: {e}") from e

        logger.debug("Encoded %s as %d DER bytes", record.name, len(der))
        return der

    def decode(self, data: bytes) -> CanonicalRecord:
        try:
            native = ZipEntryRecord.load(data, strict=True).native
            return CanonicalRecord(
                name=native['name'],
                comment=native['comment'],
                extra_header=native['extra_header'],
                raw_content=native['raw_content'],
                compressed_size=native['compressed_size'],
                uncompressed_size=native['uncompressed_size'],
                modified=native['modified'],
                crc32=native['crc32'],
                method=CompressionMethod[native['method'].upper()],
                file_type=FileType[native['file_type'].upper()],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise RecordEncodingError(f"not a valid record: {e}") from e
