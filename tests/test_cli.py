"""Tests for the command-line entry point."""

from __future__ import annotations

from pathlib import Path

import pytest

from payslip_mailer.cli import build_parser, execute
from payslip_mailer.core.config import AppSettings


def test_parser_defaults_to_info() -> None:
    args = build_parser().parse_args([])

    assert args.command == "info"
    assert args.csv_path is None
    assert args.profile is None


def test_info_reports_profile(capsys: pytest.CaptureFixture[str]) -> None:
    args = build_parser().parse_args(["info"])

    assert execute(args, AppSettings()) == 0
    output = capsys.readouterr().out
    assert "Dispatch profile: default" in output
    assert "not configured" in output


def test_profiles_lists_each_profile(capsys: pytest.CaptureFixture[str]) -> None:
    args = build_parser().parse_args(["profiles"])

    assert execute(args, AppSettings()) == 0
    output = capsys.readouterr().out
    for name in ("default", "aggressive", "dedicated"):
        assert name in output


def test_send_requires_csv(capsys: pytest.CaptureFixture[str]) -> None:
    args = build_parser().parse_args(["send"])

    assert execute(args, AppSettings()) == 1
    assert "--csv is required" in capsys.readouterr().out


def test_send_rejects_header_only_csv(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    csv_path = tmp_path / "payroll.csv"
    csv_path.write_text("Name,Email\n", encoding="utf-8")
    server_path = tmp_path / "server.json"
    server_path.write_text('{"host": "smtp.test", "from": "hr@test"}', encoding="utf-8")
    args = build_parser().parse_args(
        ["send", "--csv", str(csv_path), "--server-config", str(server_path)]
    )

    assert execute(args, AppSettings()) == 1
    assert "CSV file is empty or invalid" in capsys.readouterr().out


def test_send_without_server_settings_fails(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    csv_path = tmp_path / "payroll.csv"
    csv_path.write_text("Name,Email\nA,a@x.com\n", encoding="utf-8")
    args = build_parser().parse_args(["send", "--csv", str(csv_path)])

    assert execute(args, AppSettings()) == 1
    assert "--server-config" in capsys.readouterr().out
