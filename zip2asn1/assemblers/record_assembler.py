"""
Builds the CanonicalRecord from an extracted entry.
"""
from zip2asn1.base import CanonicalRecord, CompressionMethod, FileType, RawItem
from zip2asn1.errors import RecordEncodingError

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


def _int64(field: str, value: int) -> int:
    if not INT64_MIN <= value <= INT64_MAX:
        raise RecordEncodingError(f"{field} out of signed 64-bit range: {value}")
    return value


def to_signed32(value: int) -> int:
    """Reinterpret an unsigned 32-bit value as two's-complement."""
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value >= (1 << 31) else value


def assemble(item: RawItem, file_type: FileType, method: CompressionMethod) -> CanonicalRecord:
    """
    Combine an extracted entry with its derived fields.

    Args:
        item: Header and raw payload
        file_type: Result of the classifier
        method: Result of the compression mapper

    Returns:
        The assembled record

    Raises:
        RecordEncodingError: If a size or the timestamp does not fit in a
            signed 64-bit integer
    """
    header = item.header
    return CanonicalRecord(
        name=header.name,
        comment=header.comment,
        extra_header=bytes(header.extra),
        raw_content=bytes(item.raw_content),
        compressed_size=_int64('compressed size', header.compressed_size),
        uncompressed_size=_int64('uncompressed size', header.uncompressed_size),
        modified=_int64('modified', header.modified),
        crc32=to_signed32(header.crc32),
        method=CompressionMethod(method),
        file_type=FileType(file_type),
    )
