#!/usr/bin/env python
"""Diff and patch YAML/JSON documents from the command line."""

import argparse
import logging
import sys
from pathlib import Path

from deepdelta import EngineConfig, LogLevel
from deepdelta.exceptions import DeepDeltaError
from deepdelta.runner import DeltaRunner, patch_document, to_json


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Structural diff and patch for YAML/JSON documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_deepdelta.py diff before.yaml after.yaml -o changes.json
  python run_deepdelta.py diff before.json after.json --order-independent --ignore '$..etag'
  python run_deepdelta.py patch before.yaml changes.json -o after.json
  python run_deepdelta.py patch after.json changes.json --revert
        """
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    commands = parser.add_subparsers(dest="command", required=True)

    diff_cmd = commands.add_parser("diff", help="Compare two documents")
    diff_cmd.add_argument("left", help="Path to the original document")
    diff_cmd.add_argument("right", help="Path to the updated document")
    diff_cmd.add_argument("-o", "--output", help="Write the JSON report to this file")
    diff_cmd.add_argument("--order-independent", action="store_true",
                          help="Ignore the order of list elements (the report cannot be patched)")
    diff_cmd.add_argument("--ignore", action="append", default=[], metavar="PATTERN",
                          help="JSONPath pattern of keys to skip (repeatable)")
    diff_cmd.add_argument("--select", metavar="EXPR",
                          help="JSONPath expression selecting the sub-document to compare")
    diff_cmd.add_argument("-q", "--quiet", action="store_true", help="Suppress console output")

    patch_cmd = commands.add_parser("patch", help="Apply a stored change list to a document")
    patch_cmd.add_argument("target", help="Path to the document to patch")
    patch_cmd.add_argument("changes", help="Path to a change list or diff report")
    patch_cmd.add_argument("-o", "--output", help="Write the patched document to this file")
    patch_cmd.add_argument("--revert", action="store_true", help="Undo the changes instead")

    return parser


def _write(text: str, output: str = None):
    if output:
        Path(output).write_text(text + "\n")
    else:
        print(text)


def _run_diff(args) -> int:
    config = EngineConfig(
        order_independent=args.order_independent,
        log_level=LogLevel.DEBUG if args.verbose else None
    )
    runner = DeltaRunner(args.left, args.right, config, ignore=args.ignore, select=args.select)
    report = runner.report()

    if args.output:
        _write(to_json(report.to_dict()), args.output)
        if not args.quiet:
            report.print_summary()
            print(f"\nReport saved to: {args.output}")
    elif not args.quiet:
        _write(to_json(report.to_dict()))

    return 0 if report.is_match else 1


def _run_patch(args) -> int:
    document = patch_document(args.target, args.changes, revert=args.revert)
    _write(to_json(document), args.output)
    return 0


def main(argv=None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )

    try:
        if args.command == "diff":
            return _run_diff(args)
        return _run_patch(args)
    except DeepDeltaError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
