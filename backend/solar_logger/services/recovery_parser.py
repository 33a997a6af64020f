"""Parsing of recovery inputs typed by the user.

A recovery input is either a plain percentage (``"75"``) or a single
correction written as ``<number> <+|-> <number>`` (``"60-12"``). Nothing
else is accepted: no leading sign, no second operator, no parentheses.
"""
from typing import List, Optional, Tuple

from solar_logger.constants import MAX_RECOVERY_INPUT

NUMBER = "number"
OPERATOR = "operator"

_OPERATORS = "+-"


class InvalidRecoveryInput(ValueError):
    """Raised when a recovery input does not follow the accepted grammar or range."""


def _read_number(text: str, start: int) -> Tuple[float, int]:
    # unsigned decimal: "12", "12.5", "12." or ".5"
    pos = start
    seen_dot = False
    digits = 0
    while pos < len(text):
        ch = text[pos]
        if ch.isdigit() and ch.isascii():
            digits += 1
        elif ch == "." and not seen_dot:
            seen_dot = True
        else:
            break
        pos += 1
    if digits == 0:
        raise InvalidRecoveryInput(f"Malformed number at position {start}: {text!r}")
    return float(text[start:pos]), pos


def tokenize(text: str) -> List[Tuple[str, object]]:
    tokens = []
    pos = 0
    while pos < len(text):
        ch = text[pos]
        if ch.isspace():
            pos += 1
        elif ch in _OPERATORS:
            tokens.append((OPERATOR, ch))
            pos += 1
        elif (ch.isdigit() and ch.isascii()) or ch == ".":
            value, pos = _read_number(text, pos)
            tokens.append((NUMBER, value))
        else:
            raise InvalidRecoveryInput(f"Unexpected character {ch!r} in {text!r}")
    return tokens


def _evaluate(tokens: List[Tuple[str, object]], text: str) -> float:
    kinds = [kind for kind, _ in tokens]
    if kinds == [NUMBER]:
        return tokens[0][1]
    if kinds == [NUMBER, OPERATOR, NUMBER]:
        left, operator, right = tokens[0][1], tokens[1][1], tokens[2][1]
        return left + right if operator == "+" else left - right
    raise InvalidRecoveryInput(
        f"Expected a number or '<number> +/- <number>', got {text!r}"
    )


def parse_recovery_input(text: Optional[str]) -> float:
    """Return the recovery percentage described by ``text``.

    Empty or blank input means no recovery and yields ``0``. The result may
    exceed 100 (up to 1000) so that corrections summing past a full charge
    still parse; callers cap it.

    Raises:
        InvalidRecoveryInput: the input is malformed or out of range.
    """
    if text is None or not text.strip():
        return 0.0
    value = _evaluate(tokenize(text), text)
    if not 0 <= value <= MAX_RECOVERY_INPUT:
        raise InvalidRecoveryInput(
            f"Recovery {value:g} out of range [0, {MAX_RECOVERY_INPUT:g}]: {text!r}"
        )
    return value


def is_valid_recovery_input(text: Optional[str]) -> bool:
    try:
        parse_recovery_input(text)
    except InvalidRecoveryInput:
        return False
    return True
