#!/usr/bin/env python3
"""Resolve legacy node references in a JSON-encoded rig document.

Reads a parsed document (see ``rigdef.document_io``), runs the sequential
importer over it and writes the rewritten document plus a diagnostics report.

Usage::

    python3 scripts/resolve_rig_nodes.py truck.json --out truck.resolved.json
    python3 scripts/resolve_rig_nodes.py truck.json --report-out report.json --strict -v
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from rigdef.document_io import DocumentFormatError, load_document, save_document
from rigdef.io_utils import dumps_text, save_json
from rigdef.sequential import SequentialImporter
from rigdef.settings import ImporterSettings

log = logging.getLogger("resolve_rig_nodes")


def build_report(importer: SequentialImporter, source: Path) -> dict[str, object]:
    return {
        "source": str(source),
        "statistics": importer.node_statistics(),
        "messages": importer.messages_as_dicts(),
    }


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Rewrite legacy node references to canonical indices")
    parser.add_argument("document", type=Path, help="JSON-encoded parsed rig document")
    parser.add_argument("--out", type=Path, default=None, help="Resolved document path (default: <doc>.resolved.json)")
    parser.add_argument("--report-out", type=Path, default=None, help="Write JSON diagnostics report here")
    parser.add_argument("--settings", type=Path, default=None, help="JSON importer settings file")
    parser.add_argument(
        "--no-remap", action="store_true",
        help="Document already uses final indices; skip legacy remapping",
    )
    parser.add_argument("--strict", action="store_true", help="Exit with 1 when any error was recorded")
    parser.add_argument("--dump-nodes", action="store_true", help="Log every canonical node (DEBUG)")
    parser.add_argument("--json", action="store_true", help="Print the report to stdout")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = ImporterSettings.from_file(args.settings) if args.settings else ImporterSettings.from_env()
    except ValueError as exc:
        log.error("Invalid settings: %s", exc)
        return 2
    if args.no_remap or args.dump_nodes:
        settings = ImporterSettings(
            enabled=settings.enabled and not args.no_remap,
            log_statistics=settings.log_statistics,
            dump_nodes=settings.dump_nodes or args.dump_nodes,
        )

    try:
        document = load_document(args.document)
    except (OSError, DocumentFormatError) as exc:
        log.error("Cannot load %s: %s", args.document, exc)
        return 2

    importer = SequentialImporter.from_settings(settings)
    importer.process(document)
    log.info(
        "Processed %s: %d module(s), %d nodes, %d error(s), %d warning(s), %d info",
        args.document,
        len(document.modules),
        len(importer.table),
        importer.error_count(),
        importer.warning_count(),
        importer.other_count(),
    )
    for line in importer.messages_as_text().splitlines():
        log.warning("%s", line)

    out_path = args.out or args.document.with_suffix(".resolved.json")
    save_document(document, out_path)
    log.info("Wrote %s", out_path)

    report = build_report(importer, args.document)
    if args.report_out is not None:
        save_json(report, args.report_out)
        log.info("Wrote report %s", args.report_out)
    if args.json:
        print(dumps_text(report))

    if args.strict and importer.error_count() > 0:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
