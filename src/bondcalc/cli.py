"""bondcalc CLI - deterministic command-line interface to the fee calculator.

Usage:
    bondcalc standard --invoice-value V [--duties D]
    bondcalc pga --with-pga V [--without-pga V]
    bondcalc formula validate --slot SLOT --formula TEXT
    bondcalc formula evaluate --formula TEXT [--var NAME=VALUE ...]
    bondcalc config show
    bondcalc config preview [--input PATH]
    bondcalc config commit [--input PATH]
    bondcalc config reset [--yes]
    bondcalc calculator SYMBOL [SYMBOL ...]

All output is JSON on stdout with sorted keys.

Exit codes:
    0: Success
    1: Internal error
    2: Validation failed / rejected input / reset not confirmed
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from decimal import Decimal
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from bondcalc.calc.engine import calculate_pga, calculate_standard, format_amount
from bondcalc.calc.formulas.evaluator import evaluate_formula
from bondcalc.calc.formulas.registry import get_formula_spec, list_slots
from bondcalc.calc.numeric import parse_numeric_input
from bondcalc.calculator.session import CalculatorSession, format_result
from bondcalc.models.rate_configuration import RateConfiguration
from bondcalc.services.rate_config import FormulaValidationFailure, RateConfigService
from bondcalc.settings import load_settings
from bondcalc.storage import create_store
from bondcalc.validators.formula import validate_formula_spec


def _output_json(data: Any) -> None:
    """Output JSON to stdout with deterministic ordering."""
    print(json.dumps(data, sort_keys=True, indent=2))


def _make_error_result(code: str, message: str, **details: Any) -> dict[str, Any]:
    return {"error": {"code": code, "message": message, **details}, "pass": False}


def _load_json_input(input_path: str | None) -> tuple[Any, str | None]:
    """Load JSON from file or stdin.

    Returns:
        Tuple of (parsed_data, error_message). If error_message is not None,
        parsed_data should be ignored.
    """
    try:
        if input_path:
            with open(input_path, encoding="utf-8") as f:
                content = f.read()
        else:
            content = sys.stdin.read()

        if not content.strip():
            return None, "Empty input"

        return json.loads(content), None
    except FileNotFoundError:
        return None, f"File not found: {input_path}"
    except json.JSONDecodeError as e:
        return None, f"Invalid JSON: {e}"
    except OSError as e:
        return None, f"Cannot read input: {e}"


def _open_service() -> RateConfigService:
    settings = load_settings()
    return RateConfigService(create_store(settings), record_key=settings.config_key)


def _load_draft(input_path: str | None) -> tuple[RateConfiguration | None, dict[str, Any] | None]:
    data, error_msg = _load_json_input(input_path)
    if error_msg is not None:
        return None, _make_error_result("INVALID_JSON", error_msg)
    if not isinstance(data, dict):
        return None, _make_error_result("INVALID_JSON", "Configuration must be a JSON object")
    try:
        return RateConfiguration.from_record(data), None
    except PydanticValidationError as e:
        return None, _make_error_result("INVALID_CONFIGURATION", str(e))


def cmd_standard(args: argparse.Namespace) -> int:
    service = _open_service()
    result = calculate_standard(service.active, args.invoice_value, args.duties)
    _output_json(result.model_dump(mode="json"))
    return 0


def cmd_pga(args: argparse.Namespace) -> int:
    service = _open_service()
    result = calculate_pga(service.active, args.with_pga, args.without_pga)
    _output_json(result.model_dump(mode="json"))
    return 0


def cmd_formula_validate(args: argparse.Namespace) -> int:
    """Exit 0 when the formula is valid for the slot, 2 otherwise."""
    try:
        spec = get_formula_spec(args.slot)
    except KeyError:
        _output_json(
            _make_error_result(
                "INVALID_SLOT",
                f"Unknown formula slot: '{args.slot}'. Valid options: {list_slots()}",
            )
        )
        return 2

    result = validate_formula_spec(args.formula, spec)
    _output_json(
        {
            "errors": [{"code": e.code, "message": e.message} for e in result.errors],
            "pass": result.passed,
            "slot": spec.slot,
        }
    )
    return 0 if result.passed else 2


def cmd_formula_evaluate(args: argparse.Namespace) -> int:
    variables: dict[str, Decimal] = {}
    for binding in args.var or []:
        name, sep, value = binding.partition("=")
        if not sep or not name.strip():
            _output_json(_make_error_result("INVALID_VARIABLE", f"Expected NAME=VALUE: {binding}"))
            return 2
        variables[name.strip()] = parse_numeric_input(value)

    value = evaluate_formula(args.formula, variables)
    _output_json({"formula": args.formula, "result": format_amount(value)})
    return 0


def cmd_config_show(args: argparse.Namespace) -> int:
    _output_json(_open_service().active.to_record())
    return 0


def cmd_config_preview(args: argparse.Namespace) -> int:
    draft, error = _load_draft(args.input)
    if error is not None:
        _output_json(error)
        return 2
    assert draft is not None
    _output_json(_open_service().preview(draft).model_dump(mode="json"))
    return 0


def cmd_config_commit(args: argparse.Namespace) -> int:
    """Exit 0 when committed, 2 when the draft is rejected."""
    draft, error = _load_draft(args.input)
    if error is not None:
        _output_json(error)
        return 2
    assert draft is not None

    service = _open_service()
    try:
        committed = service.commit(draft)
    except FormulaValidationFailure as e:
        _output_json(_make_error_result("FORMULA_VALIDATION_FAILED", str(e), slot=e.slot))
        return 2
    _output_json(committed.to_record())
    return 0


def cmd_config_reset(args: argparse.Namespace) -> int:
    """Commit the built-in defaults, only with --yes."""
    service = _open_service()
    draft = service.reset_draft(args.yes)
    if draft is None:
        _output_json(
            _make_error_result(
                "CONFIRMATION_REQUIRED",
                "Reset all formulas and parameters to factory defaults? Re-run with --yes.",
            )
        )
        return 2
    _output_json(service.commit(draft).to_record())
    return 0


def cmd_calculator(args: argparse.Namespace) -> int:
    session = CalculatorSession()
    session.press_sequence(args.symbols)
    _output_json(
        {
            "display": session.display,
            "expression": session.expression,
            "history": session.history,
            "memory": None if session.memory is None else format_result(session.memory),
            "state": session.state.value,
        }
    )
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="bondcalc",
        description="bondcalc - customs bond buy/sell fee calculator",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    standard_parser = subparsers.add_parser("standard", help="Fees for a standard entry")
    standard_parser.add_argument("--invoice-value", default="", metavar="VALUE")
    standard_parser.add_argument("--duties", default="", metavar="VALUE")

    pga_parser = subparsers.add_parser("pga", help="Fees for a PGA-regulated entry")
    pga_parser.add_argument("--with-pga", default="", metavar="VALUE")
    pga_parser.add_argument("--without-pga", default="", metavar="VALUE")

    formula_parser = subparsers.add_parser("formula", help="Formula operations")
    formula_subparsers = formula_parser.add_subparsers(dest="formula_command")
    validate_parser = formula_subparsers.add_parser(
        "validate", help="Check a formula against a slot's required variables"
    )
    validate_parser.add_argument("--slot", required=True, help=f"One of {list_slots()}")
    validate_parser.add_argument("--formula", required=True)
    evaluate_parser = formula_subparsers.add_parser("evaluate", help="Evaluate a formula")
    evaluate_parser.add_argument("--formula", required=True)
    evaluate_parser.add_argument(
        "--var", action="append", metavar="NAME=VALUE", help="Variable binding (repeatable)"
    )

    config_parser = subparsers.add_parser("config", help="Rate configuration operations")
    config_subparsers = config_parser.add_subparsers(dest="config_command")
    config_subparsers.add_parser("show", help="Print the active configuration")
    for name, help_text in [
        ("preview", "Sandbox results for a draft configuration"),
        ("commit", "Validate and commit a draft configuration"),
    ]:
        sub = config_subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "--input",
            default=None,
            metavar="PATH",
            help="Path to JSON draft (reads from stdin if omitted)",
        )
    reset_parser = config_subparsers.add_parser("reset", help="Commit the built-in defaults")
    reset_parser.add_argument("--yes", action="store_true", default=False)

    calculator_parser = subparsers.add_parser("calculator", help="Run calculator symbols")
    calculator_parser.add_argument("symbols", nargs="+", metavar="SYMBOL")

    return parser


_FORMULA_COMMANDS = {"validate": cmd_formula_validate, "evaluate": cmd_formula_evaluate}
_CONFIG_COMMANDS = {
    "show": cmd_config_show,
    "preview": cmd_config_preview,
    "commit": cmd_config_commit,
    "reset": cmd_config_reset,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Exit codes:
        0: Success
        1: Internal error (unexpected)
        2: Validation failed / rejected input
    """
    try:
        settings = load_settings()
        logging.basicConfig(
            level=getattr(logging, settings.log_level, logging.WARNING),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        parser = create_parser()
        args = parser.parse_args(argv)

        if args.command is None:
            parser.print_help()
            return 0
        if args.command == "standard":
            return cmd_standard(args)
        if args.command == "pga":
            return cmd_pga(args)
        if args.command == "calculator":
            return cmd_calculator(args)
        if args.command == "formula":
            handler = _FORMULA_COMMANDS.get(getattr(args, "formula_command", None) or "")
            if handler is None:
                parser.parse_args(["formula", "--help"])
                return 0
            return handler(args)
        if args.command == "config":
            handler = _CONFIG_COMMANDS.get(getattr(args, "config_command", None) or "")
            if handler is None:
                parser.parse_args(["config", "--help"])
                return 0
            return handler(args)
        return 0

    except Exception as e:
        _output_json(_make_error_result("INTERNAL_ERROR", str(e)))
        return 1


if __name__ == "__main__":
    sys.exit(main())
