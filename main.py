#!/usr/bin/env python3
"""
zip2asn1 - Main CLI Application

Writes one zip entry, still compressed, as a DER-encoded record.
"""
import argparse
import logging
import sys
from pathlib import Path

from zip2asn1.config import get_config
from zip2asn1.errors import ArchiveIOError, EntryNotFoundError, RecordEncodingError
from zip2asn1.locators.name_locator import CaseFoldLocator, get_locator
from zip2asn1.pipeline import Pipeline

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_NOT_FOUND = 3
EXIT_ENCODING = 4


def error(message: str):
    print(f"Error: {message}", file=sys.stderr)


def convert_command(args) -> int:
    """Handle a conversion request."""
    config = get_config()

    zip_name = args.archive or config.zip_name
    item_name = args.item or config.item_name
    if not zip_name:
        error("an archive path or ENV_ZIP_NAME must be provided")
        return EXIT_FAILURE
    if not item_name:
        error("an entry name or ENV_ZIP_ITEM_NAME must be provided")
        return EXIT_FAILURE

    try:
        locator = CaseFoldLocator() if args.ignore_case else get_locator(config.item_match)
        pipeline = Pipeline(locator=locator, config=config)
    except ValueError as e:
        error(str(e))
        return EXIT_FAILURE

    try:
        der = pipeline.convert(zip_name, item_name)
    except EntryNotFoundError as e:
        error(f"{e} (in {zip_name})")
        return EXIT_NOT_FOUND
    except ArchiveIOError as e:
        error(str(e))
        return EXIT_FAILURE
    except RecordEncodingError as e:
        error(str(e))
        return EXIT_ENCODING

    try:
        if args.output:
            Path(args.output).write_bytes(der)
        else:
            sys.stdout.buffer.write(der)
            sys.stdout.buffer.flush()
    except OSError as e:
        error(f"cannot write output: {e}")
        return EXIT_FAILURE

    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="zip2asn1 - Emit a zip entry (raw, undecompressed) as an ASN.1 DER record"
    )
    parser.add_argument('archive', nargs='?', help='Zip archive path (default: $ENV_ZIP_NAME)')
    parser.add_argument('item', nargs='?', help='Entry name inside the archive (default: $ENV_ZIP_ITEM_NAME)')
    parser.add_argument('--output', '-o', help='Write the record to this file instead of stdout')
    parser.add_argument('--ignore-case', '-i', action='store_true',
                        help='Match the entry name case-insensitively')
    return parser


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = get_config()
    except ValueError as e:
        error(f"invalid configuration: {e}")
        return EXIT_FAILURE

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        stream=sys.stderr,
        format='%(levelname)s %(name)s: %(message)s',
    )

    return convert_command(args)


if __name__ == '__main__':
    sys.exit(main())
