from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from ethdash.adapters.secrets import load_api_key


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    etherscan_api_key: str | None
    etherscan_base_url: str
    etherscan_chain_id: str
    http_timeout_seconds: float
    default_page_size: int
    cors_allow_origin: str
    log_level: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    api_key = os.getenv("ETHERSCAN_API_KEY") or None
    secret_name = os.getenv("ETHERSCAN_SECRET_NAME")
    if api_key is None and secret_name:
        api_key = load_api_key(secret_name)
    page_size = int(os.getenv("DEFAULT_PAGE_SIZE", "20"))
    if page_size < 1:
        raise RuntimeError("DEFAULT_PAGE_SIZE must be >= 1")  # noqa: TRY003
    return Settings(
        app_name=os.getenv("APP_NAME", "ethdash"),
        app_version=os.getenv("APP_VERSION", "0.1.0"),
        etherscan_api_key=api_key,
        etherscan_base_url=os.getenv("ETHERSCAN_BASE_URL", "https://api.etherscan.io/v2/api"),
        etherscan_chain_id=os.getenv("ETHERSCAN_CHAIN_ID", "1"),
        http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", "20")),
        default_page_size=page_size,
        cors_allow_origin=os.getenv("CORS_ALLOW_ORIGIN", "*"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
