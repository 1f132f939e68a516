from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LedgerEntry(BaseModel):
    """One explorer record (transaction, internal call or token transfer).

    The explorer sends every field as a string; unknown fields are kept so the
    API can pass them through unchanged.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        frozen=True,
        coerce_numbers_to_str=True,
    )

    block_number: str = ""
    time_stamp: str = "0"
    hash: str = ""
    from_address: str = Field("", alias="from")
    to: str = ""
    value: str = "0"
    gas: str | None = None
    gas_price: str | None = None
    gas_used: str | None = None
    contract_address: str | None = None
    token_name: str | None = None
    token_symbol: str | None = None
    token_decimal: str | None = None

    @field_validator("block_number", "hash", "from_address", "to", mode="before")
    @classmethod
    def _none_as_empty(cls, v: object) -> object:
        # contract creations come back with an empty or null "to"
        return "" if v is None else v

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_transactions: int
    page_size: int
    has_next_page: bool
    has_previous_page: bool


class BalanceResponse(CamelModel):
    address: str
    balance: float
    date: str = Field("current", examples=["current", "2024-01-15"])
    timestamp: str


class TokenBalanceResponse(CamelModel):
    address: str
    contract_address: str
    balance: float
    raw_balance: str
    timestamp: str


class TokenHolding(CamelModel):
    contract_address: str
    token_name: str | None = None
    token_symbol: str | None = None
    token_decimal: str
    balance: str
    balance_in_tokens: float = Field(..., ge=0)


class TokenBalancesResponse(CamelModel):
    address: str
    token_balances: list[TokenHolding]
    total_tokens: int


class TransactionsResponse(CamelModel):
    address: str
    transactions: list[dict[str, Any]]
    pagination: Pagination
    transaction_type: str


class ErrorResponse(BaseModel):
    error: str
    details: Any = None


class HealthResponse(BaseModel):
    ok: bool = True
    name: str
    version: str
    time: int
