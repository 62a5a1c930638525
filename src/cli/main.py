"""member-clean CLI entry points.
This module exposes commands for cleaning sources and reading versions.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from datetime import date
import json
from pathlib import Path
from typing import Any, Sequence

from core.config import MemberCleanConfig
from core.errors import MemberCleanConstraintError, MemberCleanError
from core.types import CleanOptions, MemberFilter
from store.member_sdk import MemberCleanClient
from store.record_payload import member_record_to_payload


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="member-clean", description="Club membership data-cleaning pipeline"
    )
    parser.add_argument("--data-root", help="Override MEMBER_CLEAN_DATA_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_clean_command(subparsers)
    _add_versions_command(subparsers)
    _add_issues_command(subparsers)
    _add_query_command(subparsers)
    _add_export_command(subparsers)
    _add_staging_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the member-clean CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args.data_root)
        if args.command == "clean":
            return _run_clean_command(client, args)
        if args.command == "versions":
            return _run_versions_command(client, args)
        if args.command == "issues":
            return _run_issues_command(client, args)
        if args.command == "query":
            return _run_query_command(client, args)
        if args.command == "export":
            return _run_export_command(client, args)
        if args.command == "staging":
            return _run_staging_command(client, args)
    except MemberCleanConstraintError as error:
        print(f"error={error}")
        print(f"violating_member_ids={','.join(str(item) for item in error.member_ids)}")
        return 1
    except MemberCleanError as error:
        print(f"error={error}")
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(data_root: str | None) -> MemberCleanClient:
    """Build SDK client with optional data-root override.

    Args:
        data_root: Optional override path.

    Returns:
        Configured SDK client.
    """
    config = MemberCleanConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    return MemberCleanClient(config)


def _run_clean_command(client: MemberCleanClient, args: argparse.Namespace) -> int:
    """Handle clean command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    options = CleanOptions(
        dataset_name=args.dataset,
        source_uri=args.source,
        settings_path=args.settings,
        strict=args.strict,
        keep_staging=args.keep_staging,
    )
    summary = client.clean(options)
    print(summary.version_id)
    print(f"input={summary.input_count}")
    print(f"cleaned={summary.cleaned_count}")
    print(f"excluded={summary.excluded_count}")
    print(f"flagged={summary.flagged_count}")
    return 0


def _run_versions_command(client: MemberCleanClient, args: argparse.Namespace) -> int:
    """Handle versions command."""
    dataset = client.dataset(args.dataset)
    for manifest in dataset.list_versions():
        print(
            f"{manifest.version_id}\t"
            f"{manifest.record_count}\t"
            f"{manifest.excluded_count}\t"
            f"{manifest.flagged_count}\t"
            f"{manifest.created_at.isoformat()}"
        )
    return 0


def _run_issues_command(client: MemberCleanClient, args: argparse.Namespace) -> int:
    """Handle issues command."""
    dataset = client.dataset(args.dataset)
    issues = dataset.issues(version_id=args.version_id, severity=args.severity)
    for issue in issues:
        print(
            f"{issue.member_id}\t{issue.severity}\t{issue.stage}\t"
            f"{issue.reason}\t{issue.detail or '-'}"
        )
    return 0


def _run_query_command(client: MemberCleanClient, args: argparse.Namespace) -> int:
    """Handle query command."""
    filter_spec = MemberFilter(
        state=args.state,
        city=args.city,
        job_title=args.job_title,
        since=args.since,
        until=args.until,
    )
    dataset = client.dataset(args.dataset)
    for record in dataset.query(filter_spec, version_id=args.version_id):
        payload = member_record_to_payload(record)
        payload.pop("source")
        print(json.dumps(payload, sort_keys=True))
    return 0


def _run_export_command(client: MemberCleanClient, args: argparse.Namespace) -> int:
    """Handle export command."""
    dataset = client.dataset(args.dataset)
    csv_path = dataset.export_csv(args.output, version_id=args.version_id)
    print(csv_path)
    return 0


def _run_staging_command(client: MemberCleanClient, args: argparse.Namespace) -> int:
    """Handle staging command."""
    dataset = client.dataset(args.dataset)
    if args.stage is None:
        state = dataset.staging_state()
        print(f"source={state.source_uri}")
        for position, stage in enumerate(state.stages, start=1):
            print(f"{position}\t{stage}")
        return 0
    for record in dataset.staged_records(args.stage):
        payload = member_record_to_payload(record)
        payload.pop("source")
        print(json.dumps(payload, sort_keys=True))
    for issue in dataset.staged_issues(args.stage):
        print(f"issue={issue.member_id}\t{issue.severity}\t{issue.reason}")
    return 0


def _parse_cli_date(raw_value: str) -> date:
    try:
        return date.fromisoformat(raw_value)
    except ValueError as error:
        raise argparse.ArgumentTypeError(
            f"invalid date '{raw_value}', expected YYYY-MM-DD"
        ) from error


def _add_clean_command(subparsers: Any) -> None:
    """Register clean subcommand."""
    parser = subparsers.add_parser("clean", help="Clean a CSV/JSONL source into a new version")
    parser.add_argument("source", help="Source CSV/JSONL file or directory")
    parser.add_argument("--dataset", required=True, help="Dataset name")
    parser.add_argument("--settings", help="YAML pipeline settings file")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail instead of excluding records with invalid membership dates",
    )
    parser.add_argument(
        "--keep-staging",
        action="store_true",
        help="Persist every stage output under the dataset staging directory",
    )


def _add_versions_command(subparsers: Any) -> None:
    """Register versions subcommand."""
    parser = subparsers.add_parser("versions", help="List dataset versions")
    parser.add_argument("--dataset", required=True, help="Dataset name")


def _add_issues_command(subparsers: Any) -> None:
    """Register issues subcommand."""
    parser = subparsers.add_parser("issues", help="Show excluded and flagged records")
    parser.add_argument("--dataset", required=True, help="Dataset name")
    parser.add_argument("--version-id", help="Optional specific version id")
    parser.add_argument(
        "--severity",
        choices=("excluded", "flagged"),
        help="Only show issues of this severity",
    )


def _add_query_command(subparsers: Any) -> None:
    """Register query subcommand."""
    parser = subparsers.add_parser("query", help="Print cleaned records as JSON lines")
    parser.add_argument("--dataset", required=True, help="Dataset name")
    parser.add_argument("--version-id", help="Optional specific version id")
    parser.add_argument("--state", help="State filter, e.g. Texas")
    parser.add_argument("--city", help="City filter")
    parser.add_argument("--job-title", help="Job title substring filter")
    parser.add_argument("--since", type=_parse_cli_date, help="Earliest membership date")
    parser.add_argument("--until", type=_parse_cli_date, help="Latest membership date")


def _add_export_command(subparsers: Any) -> None:
    """Register export subcommand."""
    parser = subparsers.add_parser("export", help="Export a version to CSV")
    parser.add_argument("--dataset", required=True, help="Dataset name")
    parser.add_argument("--output", required=True, help="Destination CSV file")
    parser.add_argument("--version-id", help="Optional specific version id")


def _add_staging_command(subparsers: Any) -> None:
    """Register staging subcommand."""
    parser = subparsers.add_parser("staging", help="Inspect per-stage output of the last staged run")
    parser.add_argument("--dataset", required=True, help="Dataset name")
    parser.add_argument("--stage", help="Stage to print records and issues for")
