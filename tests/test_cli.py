"""Tests for the bondcalc CLI.

Tests cover:
1. Rate commands print the calculation result
2. formula validate / evaluate exit codes and error codes
3. config show / preview / commit / reset against a SQLite store
4. calculator symbol sequences
5. Deterministic (sorted-key) output
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from bondcalc.cli import main
from bondcalc.settings import BONDCALC_STORE_PATH_ENV


def _run(capsys: pytest.CaptureFixture[str], argv: list[str]) -> tuple[int, Any]:
    exit_code = main(argv)
    captured = capsys.readouterr()
    return exit_code, json.loads(captured.out)


@pytest.fixture
def sqlite_store_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the CLI at a fresh SQLite file so state survives between invocations."""
    db_path = tmp_path / "store" / "bondcalc.sqlite3"
    monkeypatch.setenv(BONDCALC_STORE_PATH_ENV, str(db_path))
    return db_path


def _write_json(path: Path, data: Any) -> str:
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


class TestCliRates:
    def test_standard(self, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code, output = _run(
            capsys, ["standard", "--invoice-value", "20000", "--duties", "500"]
        )

        assert exit_code == 0
        assert output["regime"] == "standard"
        assert output["buy"] == "20.295000"
        assert output["sell"] == "82.000000"
        assert output["warning"] is None

    def test_standard_below_minimum(self, capsys: pytest.CaptureFixture[str]) -> None:
        _, output = _run(capsys, ["standard", "--invoice-value", "1000"])

        assert output["is_below_min"] is True
        assert output["warning"] == "Note: A minimum billing of $65.00 usually applies."

    def test_standard_unparseable_input(self, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code, output = _run(capsys, ["standard", "--invoice-value", "lots"])

        assert exit_code == 0
        assert output["buy"] == "0.000000"

    def test_pga(self, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code, output = _run(capsys, ["pga", "--with-pga", "1000", "--without-pga", "500"])

        assert exit_code == 0
        assert output["regime"] == "pga"
        assert output["bond_value"] == "3500"
        assert output["buy"] == "3.465000"


class TestCliFormula:
    def test_validate_pass(self, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code, output = _run(
            capsys,
            [
                "formula",
                "validate",
                "--slot",
                "standard_sell_formula",
                "--formula",
                "(invoice_value + duties) / 50",
            ],
        )

        assert exit_code == 0
        assert output == {"errors": [], "pass": True, "slot": "standard_sell_formula"}

    def test_validate_missing_variable(self, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code, output = _run(
            capsys,
            ["formula", "validate", "--slot", "standard_buy_formula", "--formula", "duties * 2"],
        )

        assert exit_code == 2
        assert output["pass"] is False
        assert output["errors"][0]["code"] == "MISSING_VARIABLE"

    def test_validate_not_evaluable(self, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code, output = _run(
            capsys,
            [
                "formula",
                "validate",
                "--slot",
                "standard_buy_formula",
                "--formula",
                "(invoice_value + duties",
            ],
        )

        assert exit_code == 2
        assert output["errors"][0]["code"] == "NOT_EVALUABLE"

    def test_validate_unknown_slot(self, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code, output = _run(
            capsys, ["formula", "validate", "--slot", "bogus", "--formula", "1"]
        )

        assert exit_code == 2
        assert output["pass"] is False
        assert output["error"]["code"] == "INVALID_SLOT"

    def test_evaluate(self, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code, output = _run(
            capsys,
            [
                "formula",
                "evaluate",
                "--formula",
                "((invoice_value + duties) * 0.99) / 1000",
                "--var",
                "invoice_value=1,000",
                "--var",
                "duties=0",
            ],
        )

        assert exit_code == 0
        assert output["result"] == "0.990000"

    def test_evaluate_failure_is_zero(self, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code, output = _run(
            capsys, ["formula", "evaluate", "--formula", "import os", "--var", "x=1"]
        )

        assert exit_code == 0
        assert output["result"] == "0.000000"

    def test_evaluate_bad_binding(self, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code, output = _run(
            capsys, ["formula", "evaluate", "--formula", "1", "--var", "novalue"]
        )

        assert exit_code == 2
        assert output["error"]["code"] == "INVALID_VARIABLE"


class TestCliConfig:
    def test_show_defaults(self, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code, output = _run(capsys, ["config", "show"])

        assert exit_code == 0
        assert output["minBilling"] == "65.00"
        assert output["pgaMultiplier"] == "3"

    def test_commit_then_show(
        self, capsys: pytest.CaptureFixture[str], sqlite_store_env: Path, tmp_path: Path
    ) -> None:
        draft = _write_json(tmp_path / "draft.json", {"minBilling": "75", "pgaMultiplier": "2"})

        exit_code, output = _run(capsys, ["config", "commit", "--input", draft])
        assert exit_code == 0
        assert output["minBilling"] == "75"
        assert sqlite_store_env.exists()

        _, shown = _run(capsys, ["config", "show"])
        assert shown["minBilling"] == "75"

        _, pga = _run(capsys, ["pga", "--with-pga", "1000"])
        assert pga["bond_value"] == "2000"

    def test_commit_rejects_invalid_formula(
        self, capsys: pytest.CaptureFixture[str], sqlite_store_env: Path, tmp_path: Path
    ) -> None:
        draft = _write_json(
            tmp_path / "draft.json",
            {"minBilling": "1", "pgaBuyFormula": "invoice_value_without_pga * 2"},
        )

        exit_code, output = _run(capsys, ["config", "commit", "--input", draft])

        assert exit_code == 2
        assert output["pass"] is False
        assert output["error"]["code"] == "FORMULA_VALIDATION_FAILED"
        assert output["error"]["slot"] == "pga_buy_formula"
        assert output["error"]["message"].startswith("Invalid PGA Buy Formula.")

        _, shown = _run(capsys, ["config", "show"])
        assert shown["minBilling"] == "65.00"

    def test_commit_invalid_json(
        self, capsys: pytest.CaptureFixture[str], tmp_path: Path
    ) -> None:
        path = tmp_path / "draft.json"
        path.write_text("{ not json", encoding="utf-8")

        exit_code, output = _run(capsys, ["config", "commit", "--input", str(path)])

        assert exit_code == 2
        assert output["error"]["code"] == "INVALID_JSON"

    def test_commit_missing_file(self, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code, output = _run(
            capsys, ["config", "commit", "--input", "/nonexistent/draft.json"]
        )

        assert exit_code == 2
        assert "File not found" in output["error"]["message"]

    def test_commit_non_object(self, capsys: pytest.CaptureFixture[str], tmp_path: Path) -> None:
        draft = _write_json(tmp_path / "draft.json", [1, 2, 3])

        exit_code, output = _run(capsys, ["config", "commit", "--input", draft])

        assert exit_code == 2
        assert output["error"]["code"] == "INVALID_JSON"

    def test_preview(self, capsys: pytest.CaptureFixture[str], tmp_path: Path) -> None:
        draft = _write_json(tmp_path / "draft.json", {"sellRatePercent": "1"})

        exit_code, output = _run(capsys, ["config", "preview", "--input", draft])

        assert exit_code == 0
        assert output == {"buy": "9.900000", "probe_amount": "10000", "sell": "100.000000"}

    def test_reset_requires_confirmation(self, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code, output = _run(capsys, ["config", "reset"])

        assert exit_code == 2
        assert output["error"]["code"] == "CONFIRMATION_REQUIRED"

    def test_reset_with_yes(
        self, capsys: pytest.CaptureFixture[str], sqlite_store_env: Path, tmp_path: Path
    ) -> None:
        draft = _write_json(tmp_path / "draft.json", {"minBilling": "5"})
        _run(capsys, ["config", "commit", "--input", draft])

        exit_code, output = _run(capsys, ["config", "reset", "--yes"])
        assert exit_code == 0
        assert output["minBilling"] == "65.00"

        _, shown = _run(capsys, ["config", "show"])
        assert shown["minBilling"] == "65.00"


class TestCliCalculator:
    def test_sequence(self, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code, output = _run(capsys, ["calculator", "7", "+", "3", "=", "MS"])

        assert exit_code == 0
        assert output["display"] == "10"
        assert output["memory"] == "10"
        assert output["history"] == ["7+3 = 10"]

    def test_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        _, output = _run(capsys, ["calculator", "5", "÷", "0", "="])

        assert output["display"] == "Error"
        assert output["state"] == "error"


class TestCliOutputDeterminism:
    def test_output_has_sorted_keys(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["standard", "--invoice-value", "1000"])
        captured = capsys.readouterr()

        output = json.loads(captured.out)
        assert captured.out.strip() == json.dumps(output, sort_keys=True, indent=2)
