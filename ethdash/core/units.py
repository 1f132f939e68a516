from __future__ import annotations

import re
from decimal import Decimal, localcontext
from typing import Any

from ethdash.core.errors import InvalidAmount

NATIVE_DECIMALS = 18
# ERC-20 `decimals()` is a uint8.
MAX_DECIMALS = 255

_UINT_RE = re.compile(r"[0-9]+")


def parse_raw_amount(raw_amount: Any) -> int:
    """Parse a smallest-unit amount (``"2500000000000000000"``) into an int."""
    text = raw_amount.strip() if isinstance(raw_amount, str) else ""
    if isinstance(raw_amount, int) and not isinstance(raw_amount, bool) and raw_amount >= 0:
        text = str(raw_amount)
    if not _UINT_RE.fullmatch(text):
        raise InvalidAmount("Invalid amount", details=repr(raw_amount))
    return int(text)


def normalize(raw_amount: Any, decimals: int = NATIVE_DECIMALS) -> float:
    """Convert a smallest-unit integer string (e.g. wei) into a display amount.

    ``normalize("2500000000000000000") == 2.5``. Precision beyond what a float
    carries is dropped; this is a display conversion only.
    """
    if not 0 <= decimals <= MAX_DECIMALS:
        raise InvalidAmount("Invalid token decimals", details=repr(decimals))
    amount = parse_raw_amount(raw_amount)

    with localcontext() as ctx:
        ctx.prec = max(28, len(str(amount)))
        try:
            return float(Decimal(amount).scaleb(-decimals))
        except ArithmeticError as e:
            raise InvalidAmount("Invalid amount", details=repr(raw_amount)) from e


def parse_decimals(value: Any) -> int:
    """Parse a token's decimal exponent as the explorer reports it (``"6"``, ``"18"``)."""
    try:
        decimals = int(str(value).strip())
    except (TypeError, ValueError) as e:
        raise InvalidAmount("Invalid token decimals", details=repr(value)) from e
    if not 0 <= decimals <= MAX_DECIMALS:
        raise InvalidAmount("Invalid token decimals", details=repr(value))
    return decimals
