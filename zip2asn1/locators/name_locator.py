"""
Entry locators.
Both strategies scan the central directory in order and return the
first match, so duplicate names resolve to the earliest entry.
"""
import zipfile

from zip2asn1.archive import ArchiveHandle
from zip2asn1.base import AbstractLocator
from zip2asn1.errors import EntryNotFoundError


class ExactNameLocator(AbstractLocator):
    """Matches the stored entry name exactly, with no normalization."""

    def locate(self, archive: ArchiveHandle, name: str) -> zipfile.ZipInfo:
        for info in archive.entries():
            # orig_filename is the name as stored; filename may have been
            # truncated at a NUL or had os.sep rewritten
            if info.orig_filename == name:
                return info
        raise EntryNotFoundError(name)


class CaseFoldLocator(AbstractLocator):
    """Matches entry names case-insensitively."""

    def locate(self, archive: ArchiveHandle, name: str) -> zipfile.ZipInfo:
        wanted = name.casefold()
        for info in archive.entries():
            if info.orig_filename.casefold() == wanted:
                return info
        raise EntryNotFoundError(name)


def get_locator(match: str) -> AbstractLocator:
    """
    Return the locator for a ZIP_ITEM_MATCH setting.

    Args:
        match: 'exact' or 'casefold'

    Returns:
        Locator instance

    Raises:
        ValueError: For any other setting
    """
    if match == 'exact':
        return ExactNameLocator()
    if match == 'casefold':
        return CaseFoldLocator()
    raise ValueError(f"unknown match mode: {match!r}")
