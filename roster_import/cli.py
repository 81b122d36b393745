"""Command line interface for running a roster import."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Optional, TextIO

from .config import ConfigurationError, load_configuration
from .duplicates import DuplicateReport
from .factory import build_session
from .ingestion import (
    ParseError,
    UnreadableFileError,
    UnsupportedFileTypeError,
    check_export_path,
    credentials_to_dataframe,
    export_credentials,
    export_outcome_report,
    read_import_text,
    resolve_credentials_path,
    sample_csv,
)
from .models import ImportKind, ImportProgress
from .orchestrator import ImportCancelled, Resolution

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_CANCELLED = 3

_KIND_CHOICES = [kind.value for kind in ImportKind]
_ANSWERS = {
    "s": Resolution.SKIP,
    "skip": Resolution.SKIP,
    "u": Resolution.UPDATE,
    "update": Resolution.UPDATE,
    "c": Resolution.CANCEL,
    "cancel": Resolution.CANCEL,
}


def build_parser(prog: Optional[str] = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog, description="Bulk import students or teachers from a CSV roster")
    parser.add_argument("input", nargs="?", help="Path to the roster file (CSV or XLSX)")
    parser.add_argument(
        "--kind",
        choices=_KIND_CHOICES,
        default=ImportKind.STUDENTS.value,
        help="Which column layout the roster uses",
    )
    parser.add_argument(
        "--config",
        help="Path to a configuration file (YAML or JSON)",
    )
    parser.add_argument(
        "--on-duplicates",
        choices=["prompt", "skip", "update", "cancel"],
        default="prompt",
        help="How to resolve emails that already have accounts",
    )
    parser.add_argument(
        "--credentials-out",
        default=".",
        help="File or directory where generated credentials are written",
    )
    parser.add_argument(
        "--report",
        help="Optional path for a CSV/XLSX report of failed and skipped records",
    )
    parser.add_argument(
        "--sample",
        choices=_KIND_CHOICES,
        help="Print a sample roster for the given kind and exit",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING)",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def prompt_for_resolution(
    report: DuplicateReport,
    *,
    input_func: Callable[[str], str] = input,
    stream: Optional[TextIO] = None,
) -> Resolution:
    """Show the duplicates to the operator and ask how to proceed."""

    out = stream or sys.stdout
    print(
        f"Found {len(report.duplicates)} existing and {len(report.in_file_duplicates)} repeated emails; "
        f"{len(report.new_records)} new records.",
        file=out,
    )
    for candidate in report.duplicates[:5]:
        print(f"  exists: {candidate.name} <{candidate.email}> (line {candidate.line_number})", file=out)
    for repeated in report.in_file_duplicates[:5]:
        print(
            f"  repeated: {repeated.candidate.email} on line {repeated.candidate.line_number} "
            f"(first seen on line {repeated.first_line})",
            file=out,
        )

    while True:
        try:
            answer = input_func("[s]kip duplicates, [u]pdate existing and add new, or [c]ancel? ")
        except EOFError:
            return Resolution.CANCEL
        resolution = _ANSWERS.get(answer.strip().lower())
        if resolution is not None:
            return resolution
        print("Please answer s, u, or c.", file=out)


def _print_progress(snapshot: ImportProgress) -> None:
    if snapshot.current:
        print(f"[{snapshot.processed}/{snapshot.total}] {snapshot.current}")


def main(argv: list[str] | None = None, *, input_func: Callable[[str], str] = input) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    if args.sample:
        sys.stdout.write(sample_csv(args.sample))
        return EXIT_OK
    if not args.input:
        parser.print_usage()
        return EXIT_USAGE

    # Output paths must be valid before any account is written.
    try:
        credentials_path = resolve_credentials_path(args.credentials_out, args.kind)
        if args.report:
            check_export_path(args.report)
    except ValueError as exc:
        print(f"Invalid output path: {exc}", file=sys.stderr)
        return EXIT_ERROR

    try:
        config = load_configuration(args.config) if args.config else {}
        session = build_session(args.kind, config)
        text = read_import_text(args.input)
    except (ConfigurationError, UnsupportedFileTypeError, FileNotFoundError) as exc:
        logging.error("%s", exc)
        return EXIT_ERROR
    except UnreadableFileError as exc:
        print(f"Import rejected: {exc}", file=sys.stderr)
        return EXIT_ERROR

    try:
        report = session.prepare(text)
    except ParseError as exc:
        print(f"Import rejected: {exc}", file=sys.stderr)
        return EXIT_ERROR

    if session.awaiting_decision:
        if args.on_duplicates == "prompt":
            resolution = prompt_for_resolution(report, input_func=input_func)
        else:
            resolution = Resolution(args.on_duplicates)
        try:
            session.resolve(resolution)
        except ImportCancelled:
            print("Import cancelled; no records were processed.")
            return EXIT_CANCELLED

    outcome = session.run(progress_callback=_print_progress)
    exit_code = EXIT_CANCELLED if outcome.cancelled else EXIT_OK

    if outcome.credentials:
        try:
            written = export_credentials(outcome.credentials, credentials_path, kind=args.kind)
        except (OSError, ValueError) as exc:
            LOGGER.error("Could not write credentials to %s: %s", credentials_path, exc)
            print("Credentials could not be saved. Copy them now, they cannot be recovered later:")
            sys.stdout.write(credentials_to_dataframe(outcome.credentials).to_csv(index=False))
            exit_code = EXIT_ERROR
        else:
            logging.info("Credentials for %s new accounts written to %s", len(outcome.credentials), written.resolve())
    if args.report:
        try:
            report_path = export_outcome_report(outcome, args.report)
        except (OSError, ValueError) as exc:
            LOGGER.error("Could not write import report to %s: %s", args.report, exc)
            exit_code = EXIT_ERROR
        else:
            logging.info("Import report written to %s", Path(report_path).resolve())

    for failed in outcome.failed_records:
        print(f"  failed: {failed.candidate.name} <{failed.candidate.email}>: {failed.error_message}")
    print(f"Import finished: {outcome.summary()}")
    return exit_code


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
