"""Command-line entry point for Payslip Mailer."""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from payslip_mailer.core import (
    AppSettings,
    EmailServerConfig,
    configure_logging,
    load_app_settings,
)
from payslip_mailer.core.config import DISPATCH_PROFILES
from payslip_mailer.core.interfaces import EmptyInputError
from payslip_mailer.core.models import Failed, ProgressEvent, Record, RunCompleted
from payslip_mailer.dispatch import DispatchPipeline, PayslipEmailComposer
from payslip_mailer.ingestion import CsvRecordParser
from payslip_mailer.rendering import PdfPayslipRenderer
from payslip_mailer.transport import SmtpMailSender


def build_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Render and email payslips from a payroll CSV"
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file containing configuration overrides.",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="info",
        choices=["info", "profiles", "send"],
        help="Operation to execute.",
    )
    parser.add_argument(
        "--csv",
        dest="csv_path",
        type=Path,
        default=None,
        help="Payroll CSV to process (required for send).",
    )
    parser.add_argument(
        "--server-config",
        dest="server_config",
        type=Path,
        default=None,
        help="JSON file with host, port, user, password and from.",
    )
    parser.add_argument(
        "--profile",
        default=None,
        help="Dispatch profile name (default: from settings).",
    )
    return parser


def execute(args: argparse.Namespace, settings: AppSettings) -> int:
    """Execute the requested CLI command and return an exit code."""
    command = args.command
    if command == "info":
        profile = settings.dispatch.resolve()
        print("Payslip Mailer is ready. Provide a CSV and SMTP settings to send.")
        print(f"Dispatch profile: {settings.dispatch.profile}")
        print(
            f"Batch size: {profile.batch_size}, timeout: {profile.per_item_timeout:g}s"
        )
        server = settings.server
        print(f"Default SMTP server: {server.host if server else 'not configured'}")
        return 0
    if command == "profiles":
        _print_profiles()
        return 0
    return _run_send(
        settings,
        csv_path=args.csv_path,
        server_config=args.server_config,
        profile_name=args.profile,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_app_settings(env_file=args.env_file)
    configure_logging(settings.logging)
    sys.exit(execute(args, settings))


def _print_profiles() -> None:
    header = f"{'Profile':<12}  {'Batch':>5}  {'Batch gap':>9}  {'Stagger':>7}  {'Timeout':>7}"
    print(header)
    print("-" * len(header))
    for name, profile in DISPATCH_PROFILES.items():
        print(
            f"{name:<12}  {profile.batch_size:>5}  {profile.inter_batch_delay:>8g}s"
            f"  {profile.inter_item_stagger:>6g}s  {profile.per_item_timeout:>6g}s"
        )


def _load_server(
    settings: AppSettings, server_config: Path | None
) -> EmailServerConfig | None:
    if server_config is None:
        return settings.server
    return EmailServerConfig.model_validate_json(
        server_config.read_text(encoding="utf-8")
    )


def _run_send(
    settings: AppSettings,
    *,
    csv_path: Path | None,
    server_config: Path | None,
    profile_name: str | None,
) -> int:
    """Send payslips for every row of ``csv_path`` and report progress."""
    if csv_path is None:
        print("Send failed: --csv is required.")
        return 1
    try:
        server = _load_server(settings, server_config)
    except (OSError, ValidationError) as exc:
        print(f"Send failed: invalid SMTP server config: {exc}")
        return 1
    if server is None:
        print("Send failed: provide --server-config or PAYSLIP_MAILER_SERVER__* settings.")
        return 1

    try:
        payload = csv_path.read_bytes()
    except OSError as exc:
        print(f"Send failed: cannot read {csv_path}: {exc}")
        return 1

    parser = CsvRecordParser(settings.parser.numeric_markers)
    try:
        records = parser.parse_bytes(payload)
    except EmptyInputError as exc:
        print(f"Send failed: {exc}")
        return 1

    pipeline = DispatchPipeline(
        PdfPayslipRenderer(settings.payslip),
        SmtpMailSender(settings.smtp),
        settings.dispatch.resolve(profile_name),
        composer=PayslipEmailComposer(settings.payslip),
    )
    completed = asyncio.run(_drive(pipeline, records, server))

    summary = completed.summary
    print(
        f"Sent {summary.sent} of {summary.total} payslip(s), "
        f"{summary.failed} failed ({summary.success_rate}). {summary.processing_time}."
    )
    failures = [outcome for outcome in completed.outcomes if isinstance(outcome, Failed)]
    for failure in failures:
        print(f"  failed: {failure.address} ({failure.reason})")
    return 0


async def _drive(
    pipeline: DispatchPipeline,
    records: Sequence[Record],
    server: EmailServerConfig,
) -> RunCompleted:
    completed: RunCompleted | None = None
    async for event in pipeline.run(records, server):
        if isinstance(event, RunCompleted):
            completed = event
        elif isinstance(event, ProgressEvent):
            print(
                f"[{event.sent + event.failed}/{event.total}] {event.current} "
                f"(sent {event.sent}, failed {event.failed})"
            )
    if completed is None:
        raise RuntimeError("Dispatch ended without a summary")
    return completed


if __name__ == "__main__":
    main()
