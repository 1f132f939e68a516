from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from ethdash.core.errors import InvalidDate
from ethdash.core.models import LedgerEntry, TokenHolding
from ethdash.core.units import NATIVE_DECIMALS, normalize, parse_decimals, parse_raw_amount


def to_iso(dt: datetime) -> str:
    """``2024-01-15T00:00:00.000Z`` style, the format browsers produce."""
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def date_to_timestamp(date: str) -> int:
    """``"2024-01-15"`` -> epoch seconds of 2024-01-15T00:00:00Z."""
    try:
        dt = datetime.strptime(date, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except (TypeError, ValueError) as e:
        raise InvalidDate("Invalid date, expected YYYY-MM-DD", details=repr(date)) from e
    return int(dt.timestamp())


def date_to_iso(date: str) -> str:
    return epoch_to_iso(date_to_timestamp(date))


def epoch_to_iso(seconds: str | int) -> str:
    return to_iso(datetime.fromtimestamp(int(seconds), tz=timezone.utc))


def now_iso() -> str:
    return to_iso(datetime.now(timezone.utc))


def normalize_native_entry(entry: LedgerEntry, tx_type: str) -> dict[str, Any]:
    return {
        **entry.to_wire(),
        "valueInEth": normalize(entry.value, NATIVE_DECIMALS),
        "timestamp": epoch_to_iso(entry.time_stamp),
        "type": tx_type,
    }


def normalize_token_entry(entry: LedgerEntry) -> dict[str, Any]:
    return {
        **entry.to_wire(),
        "valueInTokens": normalize(entry.value, parse_decimals(entry.token_decimal)),
        "timestamp": epoch_to_iso(entry.time_stamp),
        "type": "token",
    }


def summarize_token_holdings(address: str, transfers: Iterable[LedgerEntry]) -> list[TokenHolding]:
    """Net token position per contract, from the account's transfer history.

    Inflows minus outflows, floored at zero: a history that starts after the
    account first acquired a token (``startBlock``) can otherwise go negative.
    Tokens keep the order in which they first appear in ``transfers``.
    """
    me = address.lower()
    nets: dict[str, int] = {}
    meta: dict[str, LedgerEntry] = {}

    for tx in transfers:
        contract = (tx.contract_address or "").lower()
        if not contract:
            continue
        amount = parse_raw_amount(tx.value)
        delta = 0
        if tx.to.lower() == me:
            delta += amount
        if tx.from_address.lower() == me:
            delta -= amount
        nets[contract] = nets.get(contract, 0) + delta
        meta.setdefault(contract, tx)

    holdings: list[TokenHolding] = []
    for contract, net in nets.items():
        first = meta[contract]
        decimals = parse_decimals(first.token_decimal)
        raw = str(max(net, 0))
        holdings.append(
            TokenHolding(
                contract_address=first.contract_address or contract,
                token_name=first.token_name,
                token_symbol=first.token_symbol,
                token_decimal=str(decimals),
                balance=raw,
                balance_in_tokens=normalize(raw, decimals),
            )
        )
    return holdings
