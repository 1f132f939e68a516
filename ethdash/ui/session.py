"""Client-side composition of the dashboard's endpoint calls.

The browser page and the `ethdash-session` command both run the same
sequence: `DashboardSession` over any `httpx.Client`, FastAPI's `TestClient`
included.
"""
from __future__ import annotations

import argparse
import json
import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from typing import Any

import httpx

logger = logging.getLogger(__name__)

TABS = ("normal", "internal", "token", "tokens")
PAGE_SIZE = 20
DEFAULT_BASE_URL = "http://127.0.0.1:8000"


class StepFailed(Exception):
    pass


@dataclass
class DashboardState:
    address: str = ""
    start_block: str = ""
    active_tab: str = "normal"
    balance: dict[str, Any] | None = None
    token_balance: dict[str, Any] | None = None
    transactions: dict[str, Any] | None = None
    holdings: dict[str, Any] | None = None
    error: str | None = None
    failed_steps: list[str] = field(default_factory=list)


class DashboardSession:
    """Drives the proxy endpoints the way the dashboard page does.

    Each user action is a fixed sequence of endpoint calls. A failing step
    records its error and the sequence moves on; the first error of the action
    is the one shown. The token-balance lookup never reports an error.
    """

    def __init__(self, http: httpx.Client) -> None:
        self.http = http
        self.state = DashboardState()

    # --- user actions -----------------------------------------------------------

    def submit(self, address: str, start_block: str | int | None = None) -> DashboardState:
        self.state = DashboardState(
            address=address,
            start_block="" if start_block is None else str(start_block),
        )
        self._step("balance", self._load_balance, fallback="Failed to fetch balance")
        self._step("token-balance", self._load_token_balance, fallback="Failed to fetch token balance", silent=True)
        self._step("transactions", lambda: self._load_transactions("normal", 1), fallback="Failed to fetch transactions")
        return self.state

    def change_tab(self, tab: str) -> DashboardState:
        if tab not in TABS:
            raise ValueError(f"unknown tab {tab!r}")
        self.state.active_tab = tab
        if not self.state.address:
            return self.state
        self.state.error = None
        if tab == "tokens":
            self._step("holdings", self._load_holdings, fallback="Failed to fetch token balances")
        else:
            self._step("transactions", lambda: self._load_transactions(tab, 1), fallback="Failed to fetch transactions")
        return self.state

    def change_page(self, page: int) -> DashboardState:
        if not self.state.address or self.state.active_tab == "tokens":
            return self.state
        self.state.error = None
        tab = self.state.active_tab
        self._step("transactions", lambda: self._load_transactions(tab, page), fallback="Failed to fetch transactions")
        return self.state

    # --- steps ------------------------------------------------------------------

    def _step(self, name: str, load: Callable[[], None], *, fallback: str, silent: bool = False) -> None:
        try:
            load()
        except (StepFailed, httpx.HTTPError, ValueError) as e:
            self.state.failed_steps.append(name)
            if silent:
                logger.warning("Dashboard step %s failed: %s", name, e)
                return
            if self.state.error is None:
                self.state.error = str(e) or fallback

    def _get(self, path: str, params: dict[str, Any], fallback: str) -> dict[str, Any]:
        resp = self.http.get(path, params={k: v for k, v in params.items() if v not in (None, "")})
        body = resp.json()
        if not resp.is_success:
            message = body.get("error") if isinstance(body, dict) else None
            raise StepFailed(message or fallback)
        return body

    def _list_params(self, page: int) -> dict[str, Any]:
        return {
            "address": self.state.address,
            "page": str(page),
            "pageSize": str(PAGE_SIZE),
            "startBlock": self.state.start_block,
        }

    def _load_balance(self) -> None:
        self.state.balance = self._get("/balance", {"address": self.state.address}, "Failed to fetch balance")

    def _load_token_balance(self) -> None:
        # the account queried as its own token contract
        params = {"address": self.state.address, "contractAddress": self.state.address}
        self.state.token_balance = self._get("/token-balance", params, "Failed to fetch token balance")

    def _load_transactions(self, tab: str, page: int) -> None:
        params = self._list_params(page)
        if tab == "token":
            self.state.transactions = self._get("/tokens", params, "Failed to fetch token transactions")
        else:
            self.state.transactions = self._get(
                "/transactions", {**params, "type": tab}, "Failed to fetch transactions"
            )

    def _load_holdings(self) -> None:
        params = {"address": self.state.address, "action": "balances", "startBlock": self.state.start_block}
        self.state.holdings = self._get("/tokens", params, "Failed to fetch token balances")


def main(argv: list[str] | None = None, http: httpx.Client | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Look up an account through a running ethdash proxy, as the dashboard page does",
    )
    parser.add_argument("address", help="Account to look up")
    parser.add_argument("--start-block", default=None, help="Only list entries from this block on")
    parser.add_argument("--tab", choices=TABS, default="normal", help="Tab to open after the lookup (default: normal)")
    parser.add_argument("--page", type=int, default=1, help="Page of the open tab (default: 1)")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help=f"Proxy base URL (default: {DEFAULT_BASE_URL})")
    args = parser.parse_args(argv)

    client = http or httpx.Client(base_url=args.base_url, timeout=30.0)
    try:
        session = DashboardSession(client)
        session.submit(args.address, args.start_block)
        if args.tab != session.state.active_tab:
            session.change_tab(args.tab)
        if args.page != 1:
            session.change_page(args.page)
    finally:
        if http is None:
            client.close()

    print(json.dumps(asdict(session.state), indent=2))
    return 1 if session.state.error else 0
