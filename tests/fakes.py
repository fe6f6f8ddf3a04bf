"""Stub gateway and Blockscout payload builders shared by tests."""

from datetime import UTC, datetime

from memeseer.exceptions import GatewayNotFound
from memeseer.parsers.blockscout.models import (
    BlockscoutAddressInfo,
    BlockscoutHolder,
    BlockscoutSmartContract,
    BlockscoutToken,
    BlockscoutTransaction,
    BlockscoutTransfer,
)

NOW = 1_700_000_000.0
TOKEN = "0x" + "ab" * 20


def iso(ts: float) -> str:
    """Unix seconds -> Blockscout-style ISO timestamp."""
    return datetime.fromtimestamp(ts, UTC).isoformat().replace("+00:00", "Z")


def holder(address: str, value: int, *, is_contract: bool = False, name: str | None = None) -> BlockscoutHolder:
    return BlockscoutHolder.model_validate({
        "address": {"hash": address, "is_contract": is_contract, "name": name},
        "value": str(value),
    })


def transfer(ts: float, *, amount: int = 1, frm: str = "0xfrom", to: str = "0xto", tx: str = "0xtx") -> BlockscoutTransfer:
    return BlockscoutTransfer.model_validate({
        "transaction_hash": tx,
        "from": {"hash": frm},
        "to": {"hash": to},
        "total": {"value": str(amount)},
        "timestamp": iso(ts),
    })


def address_tx(ts: float) -> BlockscoutTransaction:
    return BlockscoutTransaction.model_validate({"hash": f"0x{int(ts)}", "timestamp": iso(ts)})


class FakeBlockscout:
    """Blockscout client stub.

    Each attribute is returned as-is; an Exception instance is raised instead,
    and None on single-object lookups means 404.
    """

    def __init__(self) -> None:
        self.token: BlockscoutToken | Exception | None = None
        self.legacy_token: BlockscoutToken | Exception | None = None
        self.holders: list[BlockscoutHolder] | Exception = []
        self.transfers: list[BlockscoutTransfer] | Exception = []
        self.address_txs: dict[str, list[BlockscoutTransaction]] = {}
        self.addresses: dict[str, BlockscoutAddressInfo] = {}
        self.contract: BlockscoutSmartContract | Exception | None = None
        self.legacy_source: str | Exception | None = None
        self.calls: list[str] = []

    @staticmethod
    def _resolve(value, what: str):
        if isinstance(value, Exception):
            raise value
        if value is None:
            raise GatewayNotFound(f"Not found (404): {what}")
        return value

    async def get_token(self, address: str, *, timeout: float | None = None) -> BlockscoutToken:
        self.calls.append("get_token")
        return self._resolve(self.token, address)

    async def get_token_info_legacy(self, address: str, *, timeout: float | None = None) -> BlockscoutToken | None:
        self.calls.append("get_token_info_legacy")
        if isinstance(self.legacy_token, Exception):
            raise self.legacy_token
        return self.legacy_token

    async def get_token_holders(self, address: str, *, limit: int = 50) -> list[BlockscoutHolder]:
        self.calls.append("get_token_holders")
        return self._resolve(self.holders, address)[:limit]

    async def get_token_transfers(self, address: str, *, token_type: str | None = "ERC-20") -> list[BlockscoutTransfer]:
        self.calls.append("get_token_transfers")
        return self._resolve(self.transfers, address)

    async def get_address_transactions(
        self, address: str, *, direction: str | None = None, timeout: float | None = None
    ) -> list[BlockscoutTransaction]:
        self.calls.append("get_address_transactions")
        return self.address_txs.get(address, [])

    async def get_address(self, address: str, *, timeout: float | None = None) -> BlockscoutAddressInfo:
        self.calls.append("get_address")
        return self._resolve(self.addresses.get(address), address)

    async def get_smart_contract(self, address: str) -> BlockscoutSmartContract:
        self.calls.append("get_smart_contract")
        return self._resolve(self.contract, address)

    async def get_source_code_legacy(self, address: str) -> str | None:
        self.calls.append("get_source_code_legacy")
        if isinstance(self.legacy_source, Exception):
            raise self.legacy_source
        return self.legacy_source
