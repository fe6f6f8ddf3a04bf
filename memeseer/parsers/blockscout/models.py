"""Pydantic models for Blockscout explorer API responses.

Blockscout is schema-inconsistent across versions: address fields arrive either
as nested objects or bare strings, amounts as ``total.value`` or ``value``.
Every field is optional and the ``*_hash`` / ``*_raw`` properties normalise.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field


def parse_timestamp(value: str | int | float | None) -> int | None:
    """Parse an ISO-8601 (or unix) timestamp into unix seconds."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return int(value)
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp())


def parse_int(value: str | int | float | None, default: int = 0) -> int:
    """Parse an unsigned big integer delivered as string; junk becomes ``default``."""
    if value is None:
        return default
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        try:
            return int(float(value))
        except (ValueError, OverflowError):
            return default


class BlockscoutAddressRef(BaseModel):
    """Nested address object embedded in holders/transfers."""

    hash: str = ""
    is_contract: bool | None = None
    name: str | None = None

    model_config = {"extra": "ignore"}


def _ref_hash(ref: BlockscoutAddressRef | str | None) -> str:
    if isinstance(ref, BlockscoutAddressRef):
        return ref.hash
    return ref or ""


class BlockscoutToken(BaseModel):
    """Response from /v2/tokens/{address}."""

    address: str | None = Field(None, alias="address_hash")
    name: str | None = None
    symbol: str | None = None
    decimals: str | int | None = None
    total_supply: str | int | None = None
    holders: str | int | None = Field(None, alias="holders_count")
    created_at: str | None = None

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @property
    def decimals_int(self) -> int:
        return parse_int(self.decimals, default=18)

    @property
    def total_supply_raw(self) -> int:
        return parse_int(self.total_supply)

    @property
    def holders_count(self) -> int:
        return parse_int(self.holders)


class BlockscoutHolder(BaseModel):
    """Item of /v2/tokens/{address}/holders."""

    address: BlockscoutAddressRef | str | None = None
    value: str | int | None = None

    model_config = {"extra": "ignore"}

    @property
    def address_hash(self) -> str:
        return _ref_hash(self.address)

    @property
    def is_contract(self) -> bool:
        if isinstance(self.address, BlockscoutAddressRef):
            return bool(self.address.is_contract)
        return False

    @property
    def balance_raw(self) -> int:
        return parse_int(self.value)


class BlockscoutTotal(BaseModel):
    value: str | int | None = None
    decimals: str | None = None

    model_config = {"extra": "ignore"}


class BlockscoutTransfer(BaseModel):
    """Item of /v2/tokens/{address}/transfers."""

    tx_hash: str | None = Field(None, alias="transaction_hash")
    from_: BlockscoutAddressRef | str | None = Field(None, alias="from")
    to: BlockscoutAddressRef | str | None = None
    total: BlockscoutTotal | None = None
    value: str | int | None = None
    timestamp: str | int | None = None

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @property
    def from_hash(self) -> str:
        return _ref_hash(self.from_)

    @property
    def to_hash(self) -> str:
        return _ref_hash(self.to)

    @property
    def amount_raw(self) -> str:
        if self.total is not None and self.total.value not in (None, ""):
            return str(self.total.value)
        if self.value in (None, ""):
            return "0"
        return str(self.value)

    @property
    def unix_time(self) -> int | None:
        return parse_timestamp(self.timestamp)


class BlockscoutTransaction(BaseModel):
    """Item of /v2/addresses/{address}/transactions."""

    hash: str = ""
    from_: BlockscoutAddressRef | str | None = Field(None, alias="from")
    to: BlockscoutAddressRef | str | None = None
    timestamp: str | int | None = None

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @property
    def from_hash(self) -> str:
        return _ref_hash(self.from_)

    @property
    def unix_time(self) -> int | None:
        return parse_timestamp(self.timestamp)


class BlockscoutAddressInfo(BaseModel):
    """Response from /v2/addresses/{address}."""

    hash: str = ""
    name: str | None = None
    is_contract: bool | None = None
    created_at: str | None = None
    creator_address_hash: str | None = None

    model_config = {"extra": "ignore"}


class BlockscoutSmartContract(BaseModel):
    """Response from /v2/smart-contracts/{address}."""

    name: str | None = None
    source_code: str | None = None
    is_verified: bool | None = None

    model_config = {"extra": "ignore"}
