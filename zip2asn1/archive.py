"""
Scoped access to a zip archive on disk.

ArchiveHandle owns both the binary file object and the zipfile.ZipFile
parsed from it, so the raw extractor can seek into the same file the
central directory was read from.

zipfile refuses a whole archive when any entry flagged as UTF-8 has a
name that is not valid UTF-8. Such archives are reopened with the flag
hidden from zipfile for those entries, and their names are decoded with
surrogateescape afterwards, so other entries stay reachable and the bad
name fails only when it is encoded.
"""
import logging
import struct
import zipfile
from pathlib import Path
from typing import BinaryIO, Dict, List, Set, Tuple, Union

from zip2asn1.errors import ArchiveIOError, RecordEncodingError

logger = logging.getLogger(__name__)

UTF8_FLAG = 0x800

# End of central directory: signature, disk numbers, entry counts,
# directory size, directory offset, comment length
EOCD_FORMAT = '<4s4H2LH'
EOCD_SIZE = struct.calcsize(EOCD_FORMAT)
EOCD_SIGNATURE = b'PK\x05\x06'

ZIP64_LOCATOR_SIZE = 20
ZIP64_EOCD_FORMAT = '<4sQ2H2L4Q'
ZIP64_EOCD_SIZE = struct.calcsize(ZIP64_EOCD_FORMAT)

# Central directory file header; flags are at byte offset 8
CD_FORMAT = '<4s4B4HL2L5H2L'
CD_SIZE = struct.calcsize(CD_FORMAT)
CD_SIGNATURE = b'PK\x01\x02'
CD_FLAGS_OFFSET = 8


def find_bad_utf8_names(fileobj: BinaryIO) -> Tuple[Dict[int, bytes], Set[int]]:
    """
    Scan the central directory for UTF-8 flagged names that do not decode.

    Returns:
        (patches, indices): file offset -> replacement flag bytes with the
        UTF-8 flag cleared, and the directory positions of those entries
    """
    fileobj.seek(0, 2)
    size = fileobj.tell()
    tail_start = max(0, size - EOCD_SIZE - 0xFFFF)
    fileobj.seek(tail_start)
    tail = fileobj.read()

    at = tail.rfind(EOCD_SIGNATURE)
    if at < 0:
        raise zipfile.BadZipFile("end of central directory not found")
    eocd = struct.unpack_from(EOCD_FORMAT, tail, at)
    cd_size = eocd[5]
    cd_end = tail_start + at

    if eocd[5] == 0xFFFFFFFF or eocd[6] == 0xFFFFFFFF:
        zip64_at = cd_end - ZIP64_LOCATOR_SIZE - ZIP64_EOCD_SIZE
        fileobj.seek(zip64_at)
        cd_size = struct.unpack(ZIP64_EOCD_FORMAT, fileobj.read(ZIP64_EOCD_SIZE))[8]
        cd_end = zip64_at

    # Measured back from the end record, which also covers prepended data
    cd_start = cd_end - cd_size
    fileobj.seek(cd_start)
    cd = fileobj.read(cd_size)

    patches = {}
    indices = set()
    pos = index = 0
    while len(cd) - pos >= CD_SIZE:
        fields = struct.unpack_from(CD_FORMAT, cd, pos)
        if fields[0] != CD_SIGNATURE:
            break
        flags, name_length = fields[5], fields[12]
        if flags & UTF8_FLAG:
            name = cd[pos + CD_SIZE:pos + CD_SIZE + name_length]
            try:
                name.decode('utf-8')
            except UnicodeDecodeError:
                patches[cd_start + pos + CD_FLAGS_OFFSET] = struct.pack('<H', flags & ~UTF8_FLAG)
                indices.add(index)
        pos += CD_SIZE + name_length + fields[13] + fields[14]
        index += 1

    return patches, indices


class PatchedReader:
    """Read-only view of a file with a few byte ranges replaced."""

    def __init__(self, fileobj: BinaryIO, patches: Dict[int, bytes]):
        self.fileobj = fileobj
        self.patches = patches

    def seek(self, offset: int, whence: int = 0) -> int:
        return self.fileobj.seek(offset, whence)

    def tell(self) -> int:
        return self.fileobj.tell()

    def seekable(self) -> bool:
        return True

    def read(self, n: int = -1) -> bytes:
        start = self.fileobj.tell()
        data = self.fileobj.read(n)
        end = start + len(data)

        patched = None
        for at, replacement in self.patches.items():
            lo, hi = max(at, start), min(at + len(replacement), end)
            if lo < hi:
                if patched is None:
                    patched = bytearray(data)
                patched[lo - start:hi - start] = replacement[lo - at:hi - at]

        return data if patched is None else bytes(patched)


class ArchiveHandle:
    """An open, seekable zip archive. Use as a context manager."""

    def __init__(self, fileobj: BinaryIO, zf: zipfile.ZipFile):
        self.fileobj = fileobj
        self.zipfile = zf

    @classmethod
    def open(cls, path: Union[str, Path]) -> "ArchiveHandle":
        """
        Open *path* and read its central directory.

        Raises:
            ArchiveIOError: If the file cannot be opened or is not a zip
            RecordEncodingError: If an entry name cannot be decoded at all
        """
        try:
            fileobj = open(path, 'rb')
        except OSError as e:
            raise ArchiveIOError(f"cannot open {path}", e) from e

        try:
            try:
                zf = zipfile.ZipFile(fileobj, 'r')
            except UnicodeDecodeError as e:
                logger.warning("%s has entry names that are not valid UTF-8", path)
                zf = cls._open_lenient(fileobj, e)
        except RecordEncodingError:
            fileobj.close()
            raise
        except (OSError, ValueError, struct.error, zipfile.BadZipFile) as e:
            fileobj.close()
            raise ArchiveIOError(f"cannot read archive {path}", e) from e

        logger.debug("Opened %s (%d entries)", path, len(zf.infolist()))
        return cls(fileobj, zf)

    @staticmethod
    def _open_lenient(fileobj: BinaryIO, cause: UnicodeDecodeError) -> zipfile.ZipFile:
        patches, indices = find_bad_utf8_names(fileobj)
        if not indices:
            raise RecordEncodingError(f"undecodable entry name: {cause}") from cause

        fileobj.seek(0)
        zf = zipfile.ZipFile(PatchedReader(fileobj, patches), 'r')

        # zipfile read these names as cp437, which maps every byte; undo that
        infos = zf.infolist()
        for index in indices:
            if index >= len(infos):
                continue
            info = infos[index]
            name = info.orig_filename.encode('cp437').decode('utf-8', 'surrogateescape')
            info.orig_filename = info.filename = name
            info.flag_bits |= UTF8_FLAG
        return zf

    def entries(self) -> List[zipfile.ZipInfo]:
        """Entries in central-directory order."""
        return self.zipfile.infolist()

    def close(self):
        try:
            self.zipfile.close()
        finally:
            self.fileobj.close()

    def __enter__(self) -> "ArchiveHandle":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
