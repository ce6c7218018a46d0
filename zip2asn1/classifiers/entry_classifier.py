"""
Entry classifier.
Guesses an entry's file type from its payload length and name only.

    | size | suffix | type      |
    |------|--------|-----------|
    | >0   |        | regular   |
    | 0    | /      | directory |
    | 0    |        | symlink   |

An empty regular file is indistinguishable from a symlink placeholder
under this rule and is reported as SYMLINK.
"""
from zip2asn1.base import AbstractClassifier, FileType


class SizeSuffixClassifier(AbstractClassifier):
    """Classifies entries by payload length, then by trailing separator."""

    SEPARATOR = '/'

    def classify(self, name: str, payload_length: int) -> FileType:
        if payload_length > 0:
            return FileType.REGULAR
        if name.endswith(self.SEPARATOR):
            return FileType.DIRECTORY
        return FileType.SYMLINK
