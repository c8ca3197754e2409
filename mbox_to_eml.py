#!/usr/bin/env python3
"""
Split an .mbox archive into individual .eml files.

Usage:
    python mbox_to_eml.py my_emails.mbox extracted/
    python mbox_to_eml.py my_emails.mbox extracted/ --remove-extracted
"""

import argparse
import sys

from mboxsplit.config import NAMING_STYLES, ConverterConfig
from mboxsplit.converter import MboxToEmlConverter
from mboxsplit.errors import MboxSplitError

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_REWRITE_ERROR = 3


def build_parser():
    parser = argparse.ArgumentParser(description="Convert .mbox emails to individual .eml files.")
    parser.add_argument("input_file", help="Path to the input .mbox file")
    parser.add_argument("output_dir", help="Directory to save the eml files (created if missing)")
    parser.add_argument(
        "--remove-extracted",
        action="store_true",
        help="Rewrite the mbox file so it only keeps emails that could not be saved"
    )
    parser.add_argument(
        "--naming",
        choices=NAMING_STYLES,
        default="metadata",
        help="'metadata' names files <date>_<subject>_<n>.eml, 'index' names them email_<n>.eml"
    )
    parser.add_argument(
        "--sentinel-on-bad-date",
        action="store_true",
        help="Treat unparseable Date headers as missing instead of using their raw text"
    )
    parser.add_argument("--encoding", default="utf-8", help="Text encoding of the mbox file (default: utf-8)")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the emails found without writing any files"
    )
    return parser


def print_segments(result):
    print(f"Identified {result.boundary_count} email segments.")
    for i, segment in enumerate(result.segments, 1):
        print(f"{i:04d}  {segment.sent_date}  {segment.subject}  ({len(segment.body_lines)} lines)")


def main(argv=None):
    args = build_parser().parse_args(argv)

    print("MBOX to EML Converter")
    print("---------------------")

    config = ConverterConfig(
        remove_extracted=args.remove_extracted,
        naming=args.naming,
        raw_date_fallback=not args.sentinel_on_bad_date,
        encoding=args.encoding
    )
    converter = MboxToEmlConverter(config)

    try:
        if args.dry_run:
            print_segments(converter.inspect(args.input_file))
            return EXIT_OK
        summary = converter.convert(args.input_file, args.output_dir)
    except MboxSplitError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    if summary.rewrite_error:
        return EXIT_REWRITE_ERROR
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
