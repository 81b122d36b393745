"""Smoke tests for the CLI entry point."""
from __future__ import annotations

import json
from datetime import date

import pytest

from roster_import import __main__
from roster_import.cli import main

ROSTER = (
    "Name,Email,Age,Grade,Gender,Address,Phone,Parent Name\n"
    "Ali,ali@example.com,12,6th,Male,,,\n"
    "Sara,sara@example.com,11,5th,Female,\"4 Oak Ave, Apt 2\",,\n"
)


def _write_inputs(tmp_path, existing=()):
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps(
            {
                "import": {"delay_seconds": 0},
                "directory": {"options": {"existing_emails": list(existing)}},
            }
        ),
        encoding="utf-8",
    )
    input_path = tmp_path / "students.csv"
    input_path.write_text(ROSTER, encoding="utf-8")
    return config_path, input_path


def test_cli_imports_roster_and_writes_credentials(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    config_path, input_path = _write_inputs(tmp_path)
    out_dir = tmp_path / "out"
    out_dir.mkdir()

    exit_code = main([str(input_path), "--config", str(config_path), "--credentials-out", str(out_dir)])

    assert exit_code == 0
    credentials_path = out_dir / f"students_credentials_{date.today().isoformat()}.csv"
    lines = credentials_path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "Name,Email,Password"
    assert [line.split(",")[1] for line in lines[1:]] == ["ali@example.com", "sara@example.com"]
    assert "2 succeeded, 0 failed, 0 skipped" in capsys.readouterr().out


def test_cli_prompts_for_duplicates_and_writes_report(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    config_path, input_path = _write_inputs(tmp_path, existing=["ali@example.com"])
    report_path = tmp_path / "report.csv"
    answers = iter(["maybe", "s"])

    exit_code = main(
        [
            str(input_path),
            "--config",
            str(config_path),
            "--credentials-out",
            str(tmp_path / "creds.csv"),
            "--report",
            str(report_path),
        ],
        input_func=lambda _prompt: next(answers),
    )

    output = capsys.readouterr().out
    assert exit_code == 0
    assert "Please answer s, u, or c." in output
    assert "1 succeeded, 0 failed, 1 skipped" in output
    assert "skipped,2,Ali,ali@example.com,Duplicate email" in report_path.read_text(encoding="utf-8")


def test_cli_cancel_on_duplicates(tmp_path) -> None:
    config_path, input_path = _write_inputs(tmp_path, existing=["ali@example.com"])

    exit_code = main(
        [str(input_path), "--config", str(config_path), "--on-duplicates", "cancel", "--credentials-out", str(tmp_path)]
    )

    assert exit_code == 3
    assert not list(tmp_path.glob("students_credentials_*.csv"))


def test_cli_rejects_invalid_email(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    config_path, input_path = _write_inputs(tmp_path)
    input_path.write_text(ROSTER + "Omar,BAD_EMAIL,10,4th,Male,,,\n", encoding="utf-8")

    exit_code = main([str(input_path), "--config", str(config_path), "--credentials-out", str(tmp_path)])

    assert exit_code == 1
    assert "BAD_EMAIL" in capsys.readouterr().err


def test_cli_prints_sample(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main(["--sample", "teachers"])

    assert exit_code == 0
    assert capsys.readouterr().out.startswith("Name,Email,Subject,Phone,Qualification,Experience")


def test_module_entry_point_delegates_to_cli(tmp_path) -> None:
    config_path, input_path = _write_inputs(tmp_path)

    exit_code = __main__.main([str(input_path), "--config", str(config_path), "--credentials-out", str(tmp_path)])

    assert exit_code == 0
    assert list(tmp_path.glob("students_credentials_*.csv"))


def test_module_entry_point_without_arguments_shows_help(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = __main__.main([])

    captured = capsys.readouterr()
    assert "python -m roster_import" in captured.out
    assert exit_code == 2


def _write_store_config(tmp_path):
    store = tmp_path / "accounts.json"
    config_path = tmp_path / "store-config.json"
    config_path.write_text(
        json.dumps(
            {
                "import": {"delay_seconds": 0},
                "directory": {
                    "class": "roster_import.accounts.memory.JsonAccountDirectory",
                    "options": {"path": str(store)},
                },
            }
        ),
        encoding="utf-8",
    )
    return config_path, store


@pytest.mark.parametrize("flag, target", [("--credentials-out", "creds.json"), ("--report", "report.txt")])
def test_cli_rejects_bad_output_paths_before_creating_accounts(
    tmp_path, capsys: pytest.CaptureFixture[str], flag: str, target: str
) -> None:
    _, input_path = _write_inputs(tmp_path)
    config_path, store = _write_store_config(tmp_path)
    args = [str(input_path), "--config", str(config_path), "--credentials-out", str(tmp_path)]
    args += [flag, str(tmp_path / target)]

    exit_code = main(args)

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "Invalid output path" in captured.err
    assert "Processing" not in captured.out
    assert not store.exists()


def test_cli_creates_missing_credentials_directory(tmp_path) -> None:
    config_path, input_path = _write_inputs(tmp_path)
    out_dir = tmp_path / "exports" / "today"

    exit_code = main([str(input_path), "--config", str(config_path), "--credentials-out", str(out_dir)])

    assert exit_code == 0
    assert (out_dir / f"students_credentials_{date.today().isoformat()}.csv").exists()


def test_cli_prints_credentials_when_export_fails(
    tmp_path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    config_path, input_path = _write_inputs(tmp_path)

    def failing_export(*_args, **_kwargs):
        raise OSError("disk full")

    monkeypatch.setattr("roster_import.cli.export_credentials", failing_export)

    exit_code = main([str(input_path), "--config", str(config_path), "--credentials-out", str(tmp_path)])

    output = capsys.readouterr().out
    assert exit_code == 1
    assert "Name,Email,Password" in output
    assert "ali@example.com" in output
    assert "sara@example.com" in output
    assert "2 succeeded, 0 failed, 0 skipped" in output


def test_cli_rejects_non_utf8_roster(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    config_path, input_path = _write_inputs(tmp_path)
    input_path.write_bytes(ROSTER.replace("Ali,", "Alé,").encode("latin-1"))

    exit_code = main([str(input_path), "--config", str(config_path), "--credentials-out", str(tmp_path)])

    assert exit_code == 1
    assert "UTF-8" in capsys.readouterr().err
