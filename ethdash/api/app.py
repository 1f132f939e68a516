from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path
from typing import cast

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from ethdash.adapters.etherscan_client import EtherscanClient, LedgerCategory
from ethdash.core.errors import (
    REPORTED_ERRORS,
    DashboardError,
    InvalidParameter,
    MissingParameter,
    UpstreamFailure,
)
from ethdash.core.ledger import (
    date_to_iso,
    normalize_native_entry,
    normalize_token_entry,
    now_iso,
    summarize_token_holdings,
)
from ethdash.core.models import (
    BalanceResponse,
    ErrorResponse,
    HealthResponse,
    LedgerEntry,
    TokenBalanceResponse,
    TokenBalancesResponse,
    TransactionsResponse,
)
from ethdash.core.pager import paginate
from ethdash.core.settings import Settings, get_settings
from ethdash.core.units import MAX_DECIMALS, NATIVE_DECIMALS, normalize

logger = logging.getLogger(__name__)

settings: Settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

_INDEX_HTML = Path(__file__).resolve().parent.parent / "ui" / "index.html"


# --- Dependencies -------------------------------------------------------------

# One client (and connection pool) per configuration, closed at shutdown.
_explorers: dict[Settings, EtherscanClient] = {}

def _explorer_for(cfg: Settings) -> EtherscanClient:
    explorer = _explorers.get(cfg)
    if explorer is None:
        explorer = _explorers[cfg] = EtherscanClient(
            base_url=cfg.etherscan_base_url,
            api_key=cfg.etherscan_api_key,
            chain_id=cfg.etherscan_chain_id,
            timeout_seconds=cfg.http_timeout_seconds,
        )
    return explorer

def get_explorer(cfg: Settings = Depends(get_settings)) -> EtherscanClient:
    return _explorer_for(cfg)

def close_explorers() -> None:
    while _explorers:
        _, explorer = _explorers.popitem()
        explorer.close()


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    close_explorers()


app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_allow_origin.split(",")],
    allow_methods=["GET"],
    allow_headers=["*"],
)


# --- Error handling -----------------------------------------------------------

@app.exception_handler(DashboardError)
def _dashboard_error(_: Request, exc: DashboardError) -> JSONResponse:
    body = ErrorResponse(error=exc.message, details=exc.details).model_dump(exclude_none=True)
    return JSONResponse(body, status_code=exc.status_code)

@contextmanager
def _boundary(failure_message: str, upstream_message: str) -> Iterator[None]:
    """All-or-nothing: reported errors pass through, anything else is a generic 500."""
    try:
        yield
    except UpstreamFailure as e:
        raise UpstreamFailure(upstream_message, details=e.message, result=e.result) from e
    except REPORTED_ERRORS:
        raise
    except Exception as e:
        logger.exception(failure_message)
        details = str(e) if isinstance(e, DashboardError) else None
        raise DashboardError(failure_message, details=details) from e


# --- Query parsing ------------------------------------------------------------

def _require(value: str | None, message: str) -> str:
    if not value:
        raise MissingParameter(message)
    return value

def _parse_int(value: str | None, name: str, default: int, minimum: int, maximum: int | None = None) -> int:
    if value is None or value == "":
        return default
    try:
        parsed = int(value)
    except ValueError as e:
        raise InvalidParameter(f"{name} must be an integer") from e
    if parsed < minimum:
        raise InvalidParameter(f"{name} must be >= {minimum}")
    if maximum is not None and parsed > maximum:
        raise InvalidParameter(f"{name} must be <= {maximum}")
    return parsed


def _now_epoch() -> int:
    return int(time.time())


# --- Routes -------------------------------------------------------------------

@app.get("/", include_in_schema=False)
def index() -> FileResponse:
    return FileResponse(_INDEX_HTML, media_type="text/html")

@app.get("/health", response_model=HealthResponse)
def health(cfg: Settings = Depends(get_settings)) -> HealthResponse:
    return HealthResponse(name=cfg.app_name, version=cfg.app_version, time=_now_epoch())

@app.get("/balance", response_model=BalanceResponse)
def balance(
    address: str | None = Query(None),
    date: str | None = Query(None, description="YYYY-MM-DD; omit for the current balance"),
    explorer: EtherscanClient = Depends(get_explorer),
) -> BalanceResponse:
    address = _require(address, "Address is required")
    explorer.require_credentials()

    upstream_message = "Failed to fetch historical balance" if date else "Failed to fetch balance"
    with _boundary("Failed to fetch balance data", upstream_message):
        raw = explorer.get_balance(address, date=date)
        return BalanceResponse(
            address=address,
            balance=normalize(raw, NATIVE_DECIMALS),
            date=date or "current",
            timestamp=date_to_iso(date) if date else now_iso(),
        )

@app.get("/token-balance", response_model=TokenBalanceResponse)
def token_balance(
    address: str | None = Query(None),
    contract_address: str | None = Query(None, alias="contractAddress"),
    decimals: str | None = Query(None, description="Token decimals; defaults to 18"),
    explorer: EtherscanClient = Depends(get_explorer),
) -> TokenBalanceResponse:
    address = _require(address, "Address is required")
    contract_address = _require(contract_address, "Contract address is required")
    token_decimals = _parse_int(decimals, "decimals", NATIVE_DECIMALS, 0, maximum=MAX_DECIMALS)
    explorer.require_credentials()

    with _boundary("Failed to fetch token balance", "Failed to fetch token balance"):
        raw = explorer.get_token_balance(address, contract_address)
        return TokenBalanceResponse(
            address=address,
            contract_address=contract_address,
            balance=normalize(raw, token_decimals),
            raw_balance=str(raw),
            timestamp=now_iso(),
        )

@app.get("/tokens", response_model=TokenBalancesResponse | TransactionsResponse)
def tokens(
    address: str | None = Query(None),
    action: str = Query("transactions", description="transactions or balances"),
    start_block: str | None = Query(None, alias="startBlock"),
    page: str | None = Query(None),
    page_size: str | None = Query(None, alias="pageSize"),
    cfg: Settings = Depends(get_settings),
    explorer: EtherscanClient = Depends(get_explorer),
) -> TokenBalancesResponse | TransactionsResponse:
    address = _require(address, "Address is required")
    start = _parse_int(start_block, "startBlock", 0, 0)

    if action == "balances":
        # holdings are not paged; page and pageSize are ignored
        explorer.require_credentials()
        with _boundary("Failed to fetch token data", "Failed to fetch token balances"):
            transfers = explorer.list_token_transfers(address, start)
            holdings = summarize_token_holdings(address, transfers)
            return TokenBalancesResponse(address=address, token_balances=holdings, total_tokens=len(holdings))

    page_no = _parse_int(page, "page", 1, 1)
    size = _parse_int(page_size, "pageSize", cfg.default_page_size, 1)
    explorer.require_credentials()

    with _boundary("Failed to fetch token data", "Failed to fetch token transactions"):
        transfers = explorer.list_token_transfers(address, start)
        processed = [normalize_token_entry(tx) for tx in transfers]
        window, pagination = paginate(processed, page_no, size)
        return TransactionsResponse(
            address=address,
            transactions=window,
            pagination=pagination,
            transaction_type=LedgerCategory.TOKEN_TRANSFERS.value,
        )

@app.get("/transactions", response_model=TransactionsResponse)
def transactions(
    address: str | None = Query(None),
    tx_type: str = Query("normal", alias="type", description="normal or internal"),
    start_block: str | None = Query(None, alias="startBlock"),
    page: str | None = Query(None),
    page_size: str | None = Query(None, alias="pageSize"),
    cfg: Settings = Depends(get_settings),
    explorer: EtherscanClient = Depends(get_explorer),
) -> TransactionsResponse:
    address = _require(address, "Address is required")
    start = _parse_int(start_block, "startBlock", 0, 0)
    page_no = _parse_int(page, "page", 1, 1)
    size = _parse_int(page_size, "pageSize", cfg.default_page_size, 1)
    explorer.require_credentials()

    tx_type = tx_type or LedgerCategory.NATIVE_TRANSFERS.value
    category = (
        LedgerCategory.INTERNAL_TRANSFERS
        if tx_type == LedgerCategory.INTERNAL_TRANSFERS.value
        else LedgerCategory.NATIVE_TRANSFERS
    )
    with _boundary("Failed to fetch transaction data", "Failed to fetch transactions"):
        entries = cast(list[LedgerEntry], explorer.fetch(category, address, start_block=start))
        processed = [normalize_native_entry(tx, tx_type) for tx in entries]
        window, pagination = paginate(processed, page_no, size)
        return TransactionsResponse(
            address=address,
            transactions=window,
            pagination=pagination,
            transaction_type=tx_type,
        )


def serve() -> None:
    import uvicorn

    uvicorn.run("ethdash.api.app:app", host="0.0.0.0", port=8000)  # noqa: S104
