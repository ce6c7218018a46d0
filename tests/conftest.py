"""
Shared fixtures: temporary directories and small on-disk zip archives.
"""
import shutil
import tempfile
import warnings
import zipfile
from pathlib import Path

import pytest

from zip2asn1.config import reset_config


@pytest.fixture
def temp_dir():
    """Provide a fresh temporary directory; cleaned up after the test."""
    path = Path(tempfile.mkdtemp())
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, temp_dir):
    """Keep every test away from the caller's environment and .env file."""
    for key in ('ENV_ZIP_NAME', 'ENV_ZIP_ITEM_NAME', 'ZIP_ITEM_MATCH', 'CHUNK_SIZE', 'LOG_LEVEL'):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(temp_dir)
    reset_config()
    yield
    reset_config()


def make_zip(path: Path, entries) -> Path:
    """
    Write a zip archive.

    Args:
        path: Archive path
        entries: Iterable of (ZipInfo or name, data) pairs, or
            (ZipInfo or name, data, compress_type) triples

    Returns:
        The archive path
    """
    with warnings.catch_warnings():
        # Duplicate names are written on purpose by some tests
        warnings.simplefilter('ignore', UserWarning)
        with zipfile.ZipFile(path, 'w') as zf:
            for entry in entries:
                if len(entry) == 3:
                    info, data, compress_type = entry
                    zf.writestr(info, data, compress_type=compress_type)
                else:
                    info, data = entry
                    zf.writestr(info, data)
    return path


@pytest.fixture
def hello_zip(temp_dir):
    """Archive with one stored 'hello.txt' entry and a directory."""
    info = zipfile.ZipInfo('hello.txt', date_time=(2021, 6, 15, 12, 30, 10))
    return make_zip(temp_dir / 'hello.zip', [
        (info, b'hello'),
        (zipfile.ZipInfo('emptydir/', date_time=(2021, 6, 15, 12, 30, 10)), b''),
    ])


def make_bad_name_zip(path: Path) -> Path:
    """
    Archive with 'good.txt' and a UTF-8 flagged entry whose name bytes
    are not valid UTF-8 ('b\\xff\\xfed.txt').
    """
    make_zip(path, [("good.txt", b"good"), ("béd.txt", b"bad")])
    raw = path.read_bytes().replace("béd".encode("utf-8"), b"b\xff\xfed")
    path.write_bytes(raw)
    return path


BAD_NAME = "b\udcff\udcfed.txt"
