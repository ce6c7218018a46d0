"""
Maps zip compression-method codes onto the output enumeration.
"""
import zipfile

from zip2asn1.base import CompressionMethod

_KNOWN_METHODS = {
    zipfile.ZIP_STORED: CompressionMethod.STORE,
    zipfile.ZIP_DEFLATED: CompressionMethod.DEFLATE,
}


def map_compression(code: int) -> CompressionMethod:
    """
    Translate a native compression code.

    Every code other than stored (0) and deflated (8), including
    vendor-specific ones, becomes UNSPECIFIED.
    """
    return _KNOWN_METHODS.get(code, CompressionMethod.UNSPECIFIED)
