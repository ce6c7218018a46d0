"""
Pipeline: the single coordinator for one zip-entry conversion.

For one (archive, entry name) pair:
  open archive → locate → extract raw → classify + map method
  → assemble → encode.
Errors propagate unchanged; the archive is closed on every path.
"""
import logging
from pathlib import Path
from typing import BinaryIO, Optional, Union

from zip2asn1.archive import ArchiveHandle
from zip2asn1.assemblers.record_assembler import assemble
from zip2asn1.base import (
    AbstractClassifier,
    AbstractEncoder,
    AbstractExtractor,
    AbstractLocator,
    CanonicalRecord,
)
from zip2asn1.classifiers.entry_classifier import SizeSuffixClassifier
from zip2asn1.config import Config, get_config
from zip2asn1.encoders.der_encoder import DerEncoder
from zip2asn1.extractors.raw_extractor import RawZipExtractor
from zip2asn1.locators.name_locator import get_locator
from zip2asn1.mappers.compression_mapper import map_compression

logger = logging.getLogger(__name__)


class Pipeline:
    """Wires together every component and drives one conversion."""

    def __init__(
        self,
        locator: Optional[AbstractLocator] = None,
        extractor: Optional[AbstractExtractor] = None,
        classifier: Optional[AbstractClassifier] = None,
        encoder: Optional[AbstractEncoder] = None,
        config: Optional[Config] = None,
    ):
        self.config = config or get_config()

        self.locator = locator or get_locator(self.config.item_match)
        self.extractor = extractor or RawZipExtractor(chunk_size=self.config.chunk_size)
        self.classifier = classifier or SizeSuffixClassifier()
        self.encoder = encoder or DerEncoder()

    # ---------------------------------------------------------- public API

    def build_record(self, zip_name: Union[str, Path], item_name: str) -> CanonicalRecord:
        """
        Read *item_name* from *zip_name* and assemble its record.

        The record owns copies of all its data, so it stays valid after
        the archive is closed.

        Raises:
            ArchiveIOError: If the archive cannot be opened or read
            EntryNotFoundError: If the entry is absent
            RecordEncodingError: If a numeric field is out of range
        """
        with ArchiveHandle.open(zip_name) as archive:
            info = self.locator.locate(archive, item_name)
            item = self.extractor.extract(archive, info)

        file_type = self.classifier.classify(item.header.name, len(item.raw_content))
        method = map_compression(item.header.method)
        logger.info("%s: %s, %s, %d raw bytes",
                    item.header.name, file_type.name, method.name, len(item.raw_content))

        return assemble(item, file_type, method)

    def convert(self, zip_name: Union[str, Path], item_name: str) -> bytes:
        """Run the whole pipeline and return the DER-encoded record."""
        return self.encoder.encode(self.build_record(zip_name, item_name))

    def write(self, zip_name: Union[str, Path], item_name: str, sink: BinaryIO) -> int:
        """
        Convert and write the result to *sink*.

        Nothing is written unless the full record was encoded.

        Returns:
            Number of bytes written
        """
        der = self.convert(zip_name, item_name)
        sink.write(der)
        sink.flush()
        return len(der)
