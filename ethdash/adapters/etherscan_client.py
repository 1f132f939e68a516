# ethdash/adapters/etherscan_client.py
from __future__ import annotations

import logging
import os
from enum import Enum
from typing import Any

import httpx

from ethdash.core.errors import MissingCredential, TransportFailure, UpstreamFailure
from ethdash.core.ledger import date_to_timestamp
from ethdash.core.models import LedgerEntry

logger = logging.getLogger(__name__)

# httpx logs each request URL at INFO, and the query string carries the api key.
logging.getLogger("httpx").setLevel(logging.WARNING)

# --- Config (env-tunable) ----------------------------------------------------

ETHERSCAN_USER_AGENT = os.getenv("ETHERSCAN_USER_AGENT", "ethdash/0.1")
END_BLOCK = 99999999

# --- Helpers -----------------------------------------------------------------

class LedgerCategory(str, Enum):
    NATIVE_BALANCE = "balance"
    NATIVE_TRANSFERS = "normal"
    INTERNAL_TRANSFERS = "internal"
    TOKEN_TRANSFERS = "token"
    TOKEN_BALANCE = "tokenbalance"

def _redact(params: dict[str, Any]) -> dict[str, Any]:
    return {k: ("***" if k == "apikey" else v) for k, v in params.items()}

class EtherscanClient:
    """
    Etherscan-style explorer client. Every call is one GET returning the
    envelope {status, message, result}; status "1" means success.
    No caching, no retries.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None,
        chain_id: str = "1",
        timeout_seconds: float = 20.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.api_key = api_key
        self.chain_id = chain_id

        self._http = httpx.Client(
            timeout=timeout_seconds,
            transport=transport,
            headers={
                "Accept": "application/json",
                "User-Agent": ETHERSCAN_USER_AGENT,
            },
        )

    # --- housekeeping ---------------------------------------------------------

    def close(self) -> None:
        self._http.close()

    @property
    def is_closed(self) -> bool:
        return self._http.is_closed

    def __enter__(self) -> EtherscanClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()

    def require_credentials(self) -> None:
        if not self.api_key:
            raise MissingCredential("Etherscan API key is not configured")

    # --- HTTP request + envelope ----------------------------------------------

    def _request(self, action: str, **params: Any) -> Any:
        self.require_credentials()
        query: dict[str, Any] = {
            "chainid": self.chain_id,
            "module": "account",
            "action": action,
            **{k: v for k, v in params.items() if v is not None},
            "apikey": self.api_key,
        }
        logger.info("GET %s %s", self.base_url, _redact(query))

        try:
            resp = self._http.get(self.base_url, params=query)
            resp.raise_for_status()
            envelope = resp.json()
        except httpx.HTTPStatusError as e:
            raise TransportFailure(f"Explorer HTTP {e.response.status_code}", details=e.response.text) from e
        except httpx.HTTPError as e:
            raise TransportFailure(f"Explorer network error: {e}") from e
        except ValueError as e:
            raise TransportFailure("Explorer returned malformed JSON") from e

        if not isinstance(envelope, dict):
            raise TransportFailure("Explorer returned an unexpected payload", details=type(envelope).__name__)

        if str(envelope.get("status")) != "1":
            message = str(envelope.get("message") or "NOTOK")
            logger.warning("Explorer %s failed: %s (%s)", action, message, envelope.get("result"))
            raise UpstreamFailure(message, details=envelope.get("result"), result=envelope.get("result"))
        return envelope.get("result")

    def _list(self, action: str, address: str, start_block: int | None) -> list[LedgerEntry]:
        raw = self._request(
            action,
            address=address,
            startblock=start_block or 0,
            endblock=END_BLOCK,
            sort="desc",
        )
        if not isinstance(raw, list):
            raise TransportFailure("Explorer returned a non-list result", details=type(raw).__name__)
        return [LedgerEntry.model_validate(x) for x in raw if isinstance(x, dict)]

    # --- API surface ----------------------------------------------------------

    def get_balance(self, address: str, date: str | None = None) -> str:
        """Raw wei balance, current or as of midnight UTC on ``date``."""
        if date:
            timestamp = date_to_timestamp(date)
            return str(self._request("balancehistory", address=address, blockno=timestamp))
        return str(self._request("balance", address=address, tag="latest"))

    def get_token_balance(self, address: str, contract_address: str) -> str:
        return str(
            self._request("tokenbalance", contractaddress=contract_address, address=address, tag="latest")
        )

    def list_transactions(self, address: str, start_block: int | None = None) -> list[LedgerEntry]:
        return self._list("txlist", address, start_block)

    def list_internal_transactions(self, address: str, start_block: int | None = None) -> list[LedgerEntry]:
        return self._list("txlistinternal", address, start_block)

    def list_token_transfers(self, address: str, start_block: int | None = None) -> list[LedgerEntry]:
        return self._list("tokentx", address, start_block)

    def fetch(self, category: LedgerCategory, address: str, **filters: Any) -> str | list[LedgerEntry]:
        """Dispatch by category; filters are ``date``, ``start_block`` or ``contract_address``."""
        if category is LedgerCategory.NATIVE_BALANCE:
            return self.get_balance(address, date=filters.get("date"))
        if category is LedgerCategory.TOKEN_BALANCE:
            return self.get_token_balance(address, filters["contract_address"])
        if category is LedgerCategory.NATIVE_TRANSFERS:
            return self.list_transactions(address, filters.get("start_block"))
        if category is LedgerCategory.INTERNAL_TRANSFERS:
            return self.list_internal_transactions(address, filters.get("start_block"))
        return self.list_token_transfers(address, filters.get("start_block"))
