"""
Raw zip entry extractor.
Copies an entry's payload exactly as it is stored in the archive,
skipping decompression and CRC verification, so a deflated entry comes
out as its deflate stream.
"""
import calendar
import logging
import struct
import zipfile
from typing import Optional

from zip2asn1.archive import UTF8_FLAG, ArchiveHandle
from zip2asn1.base import AbstractExtractor, EntryHeader, RawItem
from zip2asn1.errors import ArchiveIOError

logger = logging.getLogger(__name__)

# Local file header: signature, versions, flags, method, time, date,
# crc, sizes, name length, extra length
LOCAL_HEADER_FORMAT = '<4s2B4HL2L2H'
LOCAL_HEADER_SIZE = struct.calcsize(LOCAL_HEADER_FORMAT)
LOCAL_HEADER_SIGNATURE = b'PK\x03\x04'

NTFS_EXTRA_ID = 0x000a
UNIX_EXTRA_ID = 0x000d
EXT_TIME_EXTRA_ID = 0x5455
INFOZIP_UNIX_EXTRA_ID = 0x5855

NTFS_EPOCH = -11644473600  # 1601-01-01T00:00:00Z
NTFS_TICKS_PER_SECOND = 10_000_000


def dos_time_to_unix(date_time) -> int:
    """
    Interpret an MS-DOS date_time tuple as UTC.

    Out-of-range months and days (e.g. the all-zero DOS date) are
    normalized by carrying into the neighbouring month/year.
    """
    year, month, day, hour, minute, second = date_time
    month -= 1
    year += month // 12
    month = month % 12 + 1
    start_of_month = calendar.timegm((year, month, 1, 0, 0, 0))
    return start_of_month + (day - 1) * 86400 + hour * 3600 + minute * 60 + second


def ntfs_seconds(ticks: int) -> int:
    """Whole seconds in an NTFS tick count, truncated toward zero."""
    seconds = abs(ticks) // NTFS_TICKS_PER_SECOND
    return -seconds if ticks < 0 else seconds


def extra_field_mtime(extra: bytes) -> Optional[int]:
    """
    Find a modification time in a zip extra block.

    Understands the NTFS, Unix and extended-timestamp fields. When more
    than one is present the last one wins.

    Returns:
        Seconds since the epoch, or None if no timestamp field is present
    """
    modified = None
    pos = 0
    while len(extra) - pos >= 4:
        tag, size = struct.unpack_from('<HH', extra, pos)
        pos += 4
        if len(extra) - pos < size:
            break
        body = extra[pos:pos + size]
        pos += size

        if tag == NTFS_EXTRA_ID:
            p = 4  # reserved
            while len(body) - p >= 4:
                attr_tag, attr_size = struct.unpack_from('<HH', body, p)
                p += 4
                if len(body) - p < attr_size:
                    break
                if attr_tag == 1 and attr_size == 24:
                    ticks = struct.unpack_from('<q', body, p)[0]
                    modified = NTFS_EPOCH + ntfs_seconds(ticks)
                p += attr_size
        elif tag in (UNIX_EXTRA_ID, INFOZIP_UNIX_EXTRA_ID):
            if len(body) < 8:
                continue
            modified = struct.unpack_from('<L', body, 4)[0]
        elif tag == EXT_TIME_EXTRA_ID:
            if len(body) < 5 or not body[0] & 1:
                continue
            modified = struct.unpack_from('<L', body, 1)[0]

    return modified


def decode_header_text(raw: bytes, flag_bits: int) -> str:
    """Decode a header text field the way zipfile decodes names."""
    if flag_bits & UTF8_FLAG:
        # Invalid UTF-8 survives as surrogates and is rejected at encode time
        return raw.decode('utf-8', 'surrogateescape')
    return raw.decode('cp437')


def header_from_info(info: zipfile.ZipInfo) -> EntryHeader:
    """Copy the header fields of *info* into an EntryHeader."""
    modified = extra_field_mtime(info.extra)
    if modified is None:
        modified = dos_time_to_unix(info.date_time)

    return EntryHeader(
        name=info.orig_filename,
        comment=decode_header_text(info.comment, info.flag_bits),
        extra=bytes(info.extra),
        compressed_size=info.compress_size,
        uncompressed_size=info.file_size,
        modified=modified,
        crc32=info.CRC,
        method=info.compress_type,
    )


class RawZipExtractor(AbstractExtractor):
    """Reads entry payloads verbatim from the archive file."""

    # Read chunk size when copying the payload
    CHUNK_SIZE = 65536  # 64 KB

    def __init__(self, chunk_size: Optional[int] = None):
        if chunk_size is not None:
            if chunk_size <= 0:
                raise ValueError("chunk_size must be positive")
            self.CHUNK_SIZE = chunk_size

    def extract(self, archive: ArchiveHandle, info: zipfile.ZipInfo) -> RawItem:
        """
        Read the stored bytes of *info*.

        The local file header is parsed only to find where the payload
        starts; the payload length comes from the central directory.

        Args:
            archive: Open archive containing the entry
            info: Entry to read

        Returns:
            RawItem with the entry header and its raw payload

        Raises:
            ArchiveIOError: On a bad local header or a short/failed read
        """
        header = header_from_info(info)
        try:
            raw = self._read_payload(archive.fileobj, info)
        except (OSError, struct.error) as e:
            raise ArchiveIOError(f"cannot read {info.orig_filename}", e) from e

        logger.debug("Read %d raw bytes of %s", len(raw), info.orig_filename)
        return RawItem(header=header, raw_content=raw)

    def _read_payload(self, fileobj, info: zipfile.ZipInfo) -> bytes:
        fileobj.seek(info.header_offset)
        local = fileobj.read(LOCAL_HEADER_SIZE)
        if len(local) != LOCAL_HEADER_SIZE:
            raise ArchiveIOError(f"truncated local header for {info.orig_filename}")

        fields = struct.unpack(LOCAL_HEADER_FORMAT, local)
        if fields[0] != LOCAL_HEADER_SIGNATURE:
            raise ArchiveIOError(f"bad local header signature for {info.orig_filename}")

        name_length, extra_length = fields[10], fields[11]
        fileobj.seek(name_length + extra_length, 1)

        # Copy in fixed-size chunks
        buf = bytearray()
        remaining = info.compress_size
        while remaining > 0:
            chunk = fileobj.read(min(self.CHUNK_SIZE, remaining))
            if not chunk:
                raise ArchiveIOError(
                    f"unexpected end of archive reading {info.orig_filename} "
                    f"({remaining} bytes missing)"
                )
            buf += chunk
            remaining -= len(chunk)

        return bytes(buf)
