"""Interactive calculator session.

A small state machine over an expression buffer, a display string, a memory
register and an append-only history. It is driven by discrete symbols from a
fixed vocabulary; unknown symbols are ignored. The expression buffer holds the
same glyphs as the display (× and ÷); they are translated to * and / only when
evaluating.
"""

from __future__ import annotations

import logging
import re
import threading
from decimal import ROUND_HALF_UP, Decimal, DecimalException, InvalidOperation, localcontext
from enum import Enum

from bondcalc.calc.arithmetic import ArithmeticSyntaxError, evaluate_arithmetic

logger = logging.getLogger(__name__)

ERROR_DISPLAY = "Error"
INITIAL_DISPLAY = "0"

DIGITS = frozenset("0123456789")
OPERATORS = frozenset({"+", "-", "×", "÷"})
PARENTHESES = frozenset({"(", ")"})

CLEAR = "C"
BACKSPACE = "Backspace"
EQUALS = "="
DECIMAL_POINT = "."
MEMORY_STORE = "MS"
MEMORY_RECALL = "MR"
MEMORY_CLEAR = "MC"
MEMORY_ADD = "M+"

VOCABULARY = (
    DIGITS
    | OPERATORS
    | PARENTHESES
    | {CLEAR, BACKSPACE, EQUALS, DECIMAL_POINT}
    | {MEMORY_STORE, MEMORY_RECALL, MEMORY_CLEAR, MEMORY_ADD}
)

# Macro-expansions injected into the buffer; they are evaluated at "=".
QUICK_FUNCTIONS: dict[str, str] = {
    "percent_of": "÷100×",
    "square": "**2",
    "sqrt": "**0.5",
}

KEY_MAP: dict[str, str] = {
    "+": "+",
    "-": "-",
    "*": "×",
    "/": "÷",
    "Enter": EQUALS,
    "=": EQUALS,
    "c": CLEAR,
    "C": CLEAR,
    "Escape": CLEAR,
    "Backspace": BACKSPACE,
}

_GLYPH_TRANSLATION = str.maketrans({"×": "*", "÷": "/"})
_EVALUABLE = re.compile(r"^[0-9+\-*/.]*$")
_TOKEN_BOUNDARY = re.compile(r"[+\-×÷*/()]")
_RESULT_PLACES = Decimal("0.00000001")


class CalculatorState(str, Enum):
    ENTERING = "entering"
    ERROR = "error"


def format_result(value: Decimal) -> str:
    """Integers bare; everything else rounded to 8 places without trailing zeros."""
    if value == value.to_integral_value():
        return str(int(value))
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 10)
        rounded = value.quantize(_RESULT_PLACES, rounding=ROUND_HALF_UP).normalize()
    return format(rounded, "f")


def _parse_display(display: str) -> Decimal | None:
    try:
        value = Decimal(display)
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


class CalculatorSession:
    """Expression buffer, display, memory register and history for one session.

    Transitions hold an internal lock, so one session may be shared across
    threads; callers that read several attributes after a transition should
    hold `lock` themselves.
    """

    def __init__(self) -> None:
        self.expression = ""
        self.display = INITIAL_DISPLAY
        self.memory: Decimal | None = None
        self.history: list[str] = []
        self.lock = threading.RLock()

    @property
    def state(self) -> CalculatorState:
        if self.display == ERROR_DISPLAY:
            return CalculatorState.ERROR
        return CalculatorState.ENTERING

    def press(self, symbol: str) -> None:
        """Apply one symbol from the calculator vocabulary. Unknown symbols are no-ops."""
        if symbol not in VOCABULARY:
            return
        with self.lock:
            if symbol == CLEAR:
                self.clear()
            elif symbol == BACKSPACE:
                self._backspace()
            elif symbol == EQUALS:
                self.evaluate()
            elif symbol == DECIMAL_POINT:
                self._decimal_point()
            elif symbol == MEMORY_STORE:
                self._memory_store()
            elif symbol == MEMORY_RECALL:
                self._memory_recall()
            elif symbol == MEMORY_CLEAR:
                self.memory = None
            elif symbol == MEMORY_ADD:
                self._memory_add()
            else:
                self._enter(symbol, is_operator=symbol in OPERATORS)

    def press_key(self, key: str) -> None:
        """Apply a keyboard key (digits, + - * /, Enter, Escape, c, Backspace)."""
        if key in DIGITS:
            self.press(key)
        elif key in KEY_MAP:
            self.press(KEY_MAP[key])

    def press_sequence(self, symbols: list[str]) -> None:
        with self.lock:
            for symbol in symbols:
                self.press(symbol)

    def quick(self, name: str) -> None:
        """Inject a quick-function fragment into the buffer.

        Raises:
            KeyError: If name is not a known quick function.
        """
        fragment = QUICK_FUNCTIONS[name]
        with self.lock:
            self._enter(fragment, is_operator=False)

    def clear(self) -> None:
        """Reset the buffer and display; memory and history are kept."""
        with self.lock:
            self.expression = ""
            self.display = INITIAL_DISPLAY

    def evaluate(self) -> None:
        """Evaluate the buffer; the result replaces both display and buffer.

        Any failure shows Error and empties the buffer.
        """
        with self.lock:
            self._evaluate()

    def _evaluate(self) -> None:
        source = self.expression
        clean = source.translate(_GLYPH_TRANSLATION)
        try:
            if not _EVALUABLE.match(clean):
                raise ArithmeticSyntaxError("Expression contains disallowed characters")
            result = format_result(evaluate_arithmetic(clean))
        except (ArithmeticSyntaxError, DecimalException) as e:
            logger.debug("Calculator expression %r rejected: %r", source, e)
            self.display = ERROR_DISPLAY
            self.expression = ""
            return
        self.display = result
        self.expression = result
        self.history.append(f"{source} = {result}")

    def recent_history(self, limit: int = 3) -> list[str]:
        """Most recent history entries, newest first."""
        if limit <= 0:
            return []
        return list(reversed(self.history[-limit:]))

    def _enter(self, text: str, *, is_operator: bool) -> None:
        if self.state is CalculatorState.ERROR:
            self.display = text
            self.expression += text
        elif self.display == INITIAL_DISPLAY and not is_operator:
            self.display = text
            self.expression = text
        else:
            self.display += text
            self.expression += text

    def _backspace(self) -> None:
        if self.state is CalculatorState.ERROR:
            self.clear()
            return
        self.display = self.display[:-1] or INITIAL_DISPLAY
        self.expression = self.expression[:-1]

    def _decimal_point(self) -> None:
        current_token = _TOKEN_BOUNDARY.split(self.expression)[-1]
        if DECIMAL_POINT in current_token:
            return
        if self.display in (INITIAL_DISPLAY, ERROR_DISPLAY):
            self.display = "0."
        else:
            self.display += DECIMAL_POINT
        self.expression = self.expression + DECIMAL_POINT if self.expression else "0."

    def _memory_store(self) -> None:
        value = _parse_display(self.display)
        if value is not None:
            self.memory = value

    def _memory_recall(self) -> None:
        if self.memory is not None:
            text = format_result(self.memory)
            self.display = text
            self.expression = text

    def _memory_add(self) -> None:
        value = _parse_display(self.display)
        if value is None:
            return
        if self.memory is None:
            self.memory = value
            return
        try:
            self.memory += value
        except DecimalException as e:
            logger.debug("Memory add rejected: %r", e)
