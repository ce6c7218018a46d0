"""
Tests for RawZipExtractor and the header helpers.

Fixtures are real zip files written with the zipfile module.
"""
import calendar
import struct
import zipfile
import zlib

import pytest

from zip2asn1.archive import ArchiveHandle
from zip2asn1.errors import ArchiveIOError
from zip2asn1.extractors.raw_extractor import (
    NTFS_EPOCH,
    RawZipExtractor,
    decode_header_text,
    dos_time_to_unix,
    extra_field_mtime,
    ntfs_seconds,
)
from zip2asn1.locators.name_locator import ExactNameLocator

from conftest import make_zip


def extract(path, name, extractor=None):
    extractor = extractor or RawZipExtractor()
    with ArchiveHandle.open(path) as archive:
        info = ExactNameLocator().locate(archive, name)
        return extractor.extract(archive, info)


# ------------------------------------------------------------ payloads

def test_stored_payload_is_verbatim(hello_zip):
    item = extract(hello_zip, "hello.txt")
    assert item.raw_content == b"hello"
    assert len(item.raw_content) == item.header.uncompressed_size == 5


def test_deflated_payload_is_not_inflated(temp_dir):
    data = b"abcdefgh" * 500
    path = make_zip(temp_dir / "d.zip", [("big.txt", data, zipfile.ZIP_DEFLATED)])

    item = extract(path, "big.txt")

    assert item.header.method == zipfile.ZIP_DEFLATED
    assert len(item.raw_content) == item.header.compressed_size
    assert len(item.raw_content) < len(data)
    assert zlib.decompress(item.raw_content, -15) == data


def test_small_chunks_give_same_payload(temp_dir):
    data = bytes(range(256)) * 7
    path = make_zip(temp_dir / "c.zip", [("bin", data)])
    assert extract(path, "bin", RawZipExtractor(chunk_size=3)).raw_content == data


def test_chunk_size_must_be_positive():
    with pytest.raises(ValueError):
        RawZipExtractor(chunk_size=0)


def test_directory_entry_has_empty_payload(hello_zip):
    item = extract(hello_zip, "emptydir/")
    assert item.raw_content == b""
    assert item.header.compressed_size == 0


def test_entry_after_others_is_read_from_its_own_offset(temp_dir):
    path = make_zip(temp_dir / "m.zip", [("one", b"1111"), ("two", b"22"), ("three", b"333")])
    assert extract(path, "two").raw_content == b"22"
    assert extract(path, "three").raw_content == b"333"


# ------------------------------------------------------------ header fields

def test_header_fields_are_copied(temp_dir):
    info = zipfile.ZipInfo("note.txt", date_time=(2020, 2, 29, 23, 59, 58))
    info.comment = b"a comment"
    info.extra = b"\xfe\xca\x03\x00xyz"
    path = make_zip(temp_dir / "h.zip", [(info, b"payload")])

    header = extract(path, "note.txt").header

    assert header.name == "note.txt"
    assert header.comment == "a comment"
    assert header.extra == b"\xfe\xca\x03\x00xyz"
    assert header.uncompressed_size == 7
    assert header.crc32 == zlib.crc32(b"payload")
    assert header.modified == calendar.timegm((2020, 2, 29, 23, 59, 58))


def test_extended_timestamp_overrides_dos_time(temp_dir):
    info = zipfile.ZipInfo("ts.txt", date_time=(2000, 1, 1, 0, 0, 0))
    info.extra = struct.pack("<HHBL", 0x5455, 5, 1, 1700000000)
    path = make_zip(temp_dir / "t.zip", [(info, b"x")])

    assert extract(path, "ts.txt").header.modified == 1700000000


# ------------------------------------------------------------ failures

def test_bad_local_header_is_io_error(temp_dir):
    path = make_zip(temp_dir / "bad.zip", [("x.txt", b"data")])
    raw = bytearray(path.read_bytes())
    raw[0:4] = b"XXXX"
    path.write_bytes(bytes(raw))

    with pytest.raises(ArchiveIOError):
        extract(path, "x.txt")


def test_short_read_is_io_error(temp_dir):
    path = make_zip(temp_dir / "short.zip", [("x.txt", b"data")])
    with ArchiveHandle.open(path) as archive:
        info = archive.entries()[0]
        info.compress_size = 10 ** 7
        with pytest.raises(ArchiveIOError):
            RawZipExtractor().extract(archive, info)


# ------------------------------------------------------------ helpers

def test_dos_time_is_utc():
    assert dos_time_to_unix((1980, 1, 1, 0, 0, 0)) == 315532800


def test_dos_time_zero_date_is_normalized():
    assert dos_time_to_unix((1980, 0, 0, 0, 0, 0)) == calendar.timegm((1979, 11, 30, 0, 0, 0))


def test_extra_mtime_absent():
    assert extra_field_mtime(b"") is None
    assert extra_field_mtime(b"\xfe\xca\x02\x00ab") is None


def test_extra_mtime_flag_not_set():
    assert extra_field_mtime(struct.pack("<HHBL", 0x5455, 5, 0, 123)) is None


def test_extra_mtime_unix_field():
    field = struct.pack("<HHLL", 0x000d, 8, 1, 1234567890)
    assert extra_field_mtime(field) == 1234567890


def test_extra_mtime_ntfs_field():
    ticks = (1234567890 + 11644473600) * 10_000_000
    body = struct.pack("<LHHQQQ", 0, 1, 24, ticks, 0, 0)
    field = struct.pack("<HH", 0x000a, len(body)) + body
    assert extra_field_mtime(field) == 1234567890


def ntfs_field(ticks_bytes: bytes) -> bytes:
    body = struct.pack("<LHH", 0, 1, 24) + ticks_bytes + bytes(16)
    return struct.pack("<HH", 0x000a, len(body)) + body


def test_extra_mtime_ntfs_before_1601_is_signed():
    field = ntfs_field(struct.pack("<q", -15_000_000))
    assert extra_field_mtime(field) == NTFS_EPOCH - 1


def test_extra_mtime_ntfs_top_bit_is_sign():
    field = ntfs_field(b"\xff" * 8)
    assert extra_field_mtime(field) == NTFS_EPOCH


def test_ntfs_seconds_truncates_toward_zero():
    assert ntfs_seconds(15_000_000) == 1
    assert ntfs_seconds(-15_000_000) == -1
    assert ntfs_seconds(-1) == 0


def test_extra_mtime_last_field_wins():
    first = struct.pack("<HHBL", 0x5455, 5, 1, 100)
    second = struct.pack("<HHLL", 0x5855, 8, 0, 200)
    assert extra_field_mtime(first + second) == 200


def test_extra_mtime_truncated_field_is_ignored():
    assert extra_field_mtime(struct.pack("<HH", 0x5455, 9) + b"\x01\x00") is None


def test_decode_header_text():
    assert decode_header_text("é".encode("utf-8"), 0x800) == "é"
    assert decode_header_text(b"\x82", 0) == "é"
    assert decode_header_text(b"\xff", 0x800) == "\udcff"
