from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from ethdash.adapters.etherscan_client import EtherscanClient
from ethdash.api.app import app, get_explorer
from ethdash.core.settings import get_settings

ADDRESS = "0xabc0000000000000000000000000000000000001"


class FakeExplorer:
    """Canned explorer responses keyed by the ``action`` query parameter."""

    def __init__(self) -> None:
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def reply(self, action: str, result: Any, status: str = "1", message: str = "OK") -> None:
        payload = {"status": status, "message": message, "result": result}
        self.routes[action] = lambda request: httpx.Response(200, json=payload)

    def route(self, action: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[action] = handler

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        action = request.url.params.get("action", "")
        if action not in self.routes:
            return httpx.Response(404, text=f"no canned response for {action!r}")
        return self.routes[action](request)

    @property
    def last_params(self) -> dict[str, str]:
        return dict(self.requests[-1].url.params)


def make_tx(i: int, **overrides: Any) -> dict[str, Any]:
    tx = {
        "blockNumber": str(19_000_000 - i),
        "timeStamp": str(1_700_000_000 - i * 60),
        "hash": f"0x{i:064x}",
        "nonce": str(i),
        "from": ADDRESS,
        "to": "0xdef0000000000000000000000000000000000002",
        "value": "1000000000000000000",
        "gas": "21000",
        "gasPrice": "30000000000",
        "gasUsed": "21000",
        "contractAddress": "",
        "confirmations": "12",
    }
    tx.update(overrides)
    return tx


def make_token_tx(i: int, **overrides: Any) -> dict[str, Any]:
    tx = make_tx(
        i,
        contractAddress="0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48",
        tokenName="USD Coin",
        tokenSymbol="USDC",
        tokenDecimal="6",
        value="1500000",
    )
    tx.update(overrides)
    return tx


@pytest.fixture
def upstream() -> FakeExplorer:
    return FakeExplorer()


@pytest.fixture
def explorer(upstream: FakeExplorer) -> Iterator[EtherscanClient]:
    client = EtherscanClient(
        base_url="https://explorer.test/api",
        api_key="test-key",
        transport=httpx.MockTransport(upstream.handler),
    )
    yield client
    client.close()


@pytest.fixture
def client(explorer: EtherscanClient) -> Iterator[TestClient]:
    app.dependency_overrides[get_explorer] = lambda: explorer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
