#!/usr/bin/env python3
"""
Command line entry point for streamcsv.

Usage:
    python -m streamcsv data.csv
    python -m streamcsv data.tsv --delimiter "\t" --no-header
    python -m streamcsv data.csv --metadata-only --verbose
"""

import argparse
import json
import logging
import sys

from streamcsv._errors import CsvError
from streamcsv.inference import InferenceStrictness
from streamcsv.processor import CsvProcessor

logger = logging.getLogger("streamcsv")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m streamcsv",
        description="Parse a CSV file and print its inferred metadata and rows as JSON",
    )
    parser.add_argument("path", help="CSV file to parse")
    parser.add_argument(
        "--delimiter",
        type=str,
        default=None,
        help="Field delimiter (default: auto-detect). Pass \\t for tab.",
    )
    header = parser.add_mutually_exclusive_group()
    header.add_argument(
        "--header",
        dest="has_header",
        action="store_true",
        default=None,
        help="Treat the first row as a header",
    )
    header.add_argument(
        "--no-header",
        dest="has_header",
        action="store_false",
        help="Treat the first row as data",
    )
    parser.add_argument(
        "--buffer-size",
        type=int,
        default=64 * 1024,
        help="Refill buffer size in bytes",
    )
    parser.add_argument("--encoding", default="utf-8", help="Input encoding")
    parser.add_argument(
        "--strict-quoted",
        action="store_true",
        help="Infer quoted values as strings",
    )
    parser.add_argument(
        "--n-rows",
        type=int,
        default=None,
        help="Print at most this many rows",
    )
    parser.add_argument(
        "--metadata-only",
        action="store_true",
        help="Print metadata without rows",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    delimiter = args.delimiter
    if delimiter == "\\t":
        delimiter = "\t"

    strictness = InferenceStrictness.STRICT if args.strict_quoted else InferenceStrictness.LENIENT
    try:
        processor = CsvProcessor.from_path(
            args.path,
            buffer_size=args.buffer_size,
            delimiter=delimiter,
            has_header=args.has_header,
            encoding=args.encoding,
            strictness=strictness,
        )
    except (CsvError, OSError, ValueError) as e:
        logger.error("Failed to parse %s: %s", args.path, e)
        return 1

    document = {"metadata": processor.metadata.to_dict()}
    if not args.metadata_only:
        rows = processor.read_all()
        if args.n_rows is not None:
            rows = rows[: args.n_rows]
        document["rows"] = rows
    logger.info("Parsed %d rows from %s", processor.num_rows, args.path)

    json.dump(document, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
