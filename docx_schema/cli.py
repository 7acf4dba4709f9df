"""Command line entry point.

Usage::

    docx-schema schema template.docx                 # print the schema
    docx-schema schema template.docx -o out.json --warnings
    docx-schema headings report.docx -o headings.json
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Sequence

from . import config
from .errors import DocxSchemaError
from .template_parser import TemplateParser


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docx-schema",
        description="Extract template schemas and heading trees from docx files.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    schema_cmd = subparsers.add_parser("schema", help="Build the JSON schema of template placeholders.")
    schema_cmd.add_argument("docx", help="Path to the .docx template.")
    schema_cmd.add_argument("-o", "--output", help="Write JSON to this file instead of stdout.")
    schema_cmd.add_argument(
        "--warnings",
        action="store_true",
        help="Include diagnostics for dropped template tags.",
    )

    headings_cmd = subparsers.add_parser("headings", help="Build the heading tree of a document.")
    headings_cmd.add_argument("docx", help="Path to the .docx document.")
    headings_cmd.add_argument("-o", "--output", help="Write JSON to this file instead of stdout.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config.cleanup_logs()
    parser = TemplateParser()
    try:
        if args.command == "schema":
            result = parser.parse_schema(args.docx)
            if args.warnings:
                payload = {"schema": result.schema, "warnings": result.warnings_to_dicts()}
            else:
                payload = result.schema
        else:
            result = parser.parse_headings(args.docx)
            payload = result.to_dict()
    except DocxSchemaError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.output:
        path = parser.export_json(payload, output_path=args.output)
        print(f"wrote {path}")
    else:
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0
