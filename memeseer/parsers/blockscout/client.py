"""Blockscout explorer API client — read-only chain data gateway.

Covers both the REST ``/v2`` endpoints and the legacy Etherscan-style
``?module=&action=`` endpoints used as fallbacks.
Retry with backoff for transient errors (timeout, connect, 429, 5xx).
Every failure surfaces as GatewayUnavailable; callers recover locally.
"""

import asyncio
from typing import Any

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from config.settings import settings
from memeseer.exceptions import GatewayNotFound, GatewayUnavailable
from memeseer.parsers.blockscout.models import (
    BlockscoutAddressInfo,
    BlockscoutHolder,
    BlockscoutSmartContract,
    BlockscoutToken,
    BlockscoutTransaction,
    BlockscoutTransfer,
)
from memeseer.parsers.rate_limiter import RateLimiter

MAX_RETRIES = 2
RETRY_DELAYS = [1.0, 3.0]


class BlockscoutClient:
    """Async HTTP client for a Blockscout instance (default: Celo Sepolia)."""

    def __init__(
        self,
        base_url: str | None = None,
        rate_limiter: RateLimiter | None = None,
        max_rps: float | None = None,
        timeout: float | None = None,
    ) -> None:
        self._base_url = (base_url or settings.blockscout_api_url).rstrip("/")
        self._rate_limiter = rate_limiter or RateLimiter(
            max_rps if max_rps is not None else settings.blockscout_max_rps
        )
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout if timeout is not None else settings.gateway_timeout_sec,
            headers={"Accept": "application/json"},
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "BlockscoutClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _get(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Rate-limited GET with retry for transient errors. Returns parsed JSON."""
        kwargs: dict[str, Any] = {"params": params}
        if timeout is not None:
            kwargs["timeout"] = timeout

        last_exc: Exception | None = None
        for attempt in range(MAX_RETRIES + 1):
            await self._rate_limiter.acquire()
            try:
                resp = await self._client.get(path, **kwargs)

                if resp.status_code == 404:
                    raise GatewayNotFound(f"Not found (404): {path}")

                if resp.status_code == 429 or resp.status_code >= 500:
                    if attempt < MAX_RETRIES:
                        delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                        logger.debug(
                            f"[BLOCKSCOUT] HTTP {resp.status_code}, retry {attempt + 1} in {delay}s: {path}"
                        )
                        await asyncio.sleep(delay)
                        continue
                    raise GatewayUnavailable(f"HTTP {resp.status_code} after retries: {path}")

                if resp.status_code != 200:
                    raise GatewayUnavailable(f"HTTP {resp.status_code}: {path}")

                try:
                    return resp.json()
                except ValueError as e:
                    raise GatewayUnavailable(f"Invalid JSON body: {path}") from e

            except (httpx.TimeoutException, httpx.ConnectError) as e:
                last_exc = e
                if attempt < MAX_RETRIES:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[BLOCKSCOUT] {type(e).__name__}, retry {attempt + 1} in {delay}s: {path}")
                    await asyncio.sleep(delay)
                    continue
                raise GatewayUnavailable(
                    f"Request failed after {MAX_RETRIES + 1} attempts: {path}: {e}"
                ) from e
            except httpx.RequestError as e:
                raise GatewayUnavailable(f"Request failed: {path}: {e}") from e

        raise GatewayUnavailable(f"Request failed after retries: {path}") from last_exc

    async def _legacy(
        self, module: str, action: str, *, timeout: float | None = None, **params: Any
    ) -> Any:
        """Call an Etherscan-style endpoint and return its ``result`` field."""
        data = await self._get(
            "", params={"module": module, "action": action, **params}, timeout=timeout
        )
        if not isinstance(data, dict):
            raise GatewayUnavailable(f"Unexpected legacy body for {module}.{action}")
        return data.get("result")

    # --- token endpoints ---

    async def get_token(self, address: str, *, timeout: float | None = None) -> BlockscoutToken:
        """Token metadata: name, symbol, decimals, total supply."""
        data = await self._get(f"/v2/tokens/{address}", timeout=timeout)
        if not isinstance(data, dict) or not data:
            raise GatewayUnavailable(f"Empty token body for {address}")
        return _validate(BlockscoutToken, data)

    async def get_token_info_legacy(
        self, address: str, *, timeout: float | None = None
    ) -> BlockscoutToken | None:
        """Legacy tokeninfo lookup. ``result`` may be a list or an object."""
        result = await self._legacy("token", "tokeninfo", timeout=timeout, contractaddress=address)
        if isinstance(result, list):
            result = result[0] if result else None
        if not isinstance(result, dict):
            return None
        return _validate(BlockscoutToken, {
            "name": result.get("name") or result.get("tokenName"),
            "symbol": result.get("symbol") or result.get("tokenSymbol"),
            "decimals": result.get("decimals") or result.get("divisor"),
            "total_supply": result.get("totalSupply"),
        })

    async def get_token_holders(self, address: str, *, limit: int = 50) -> list[BlockscoutHolder]:
        data = await self._get(f"/v2/tokens/{address}/holders", params={"page": 1, "limit": limit})
        return _parse_items(BlockscoutHolder, data)

    async def get_token_transfers(
        self, address: str, *, token_type: str | None = "ERC-20"
    ) -> list[BlockscoutTransfer]:
        params = {"type": token_type} if token_type else None
        data = await self._get(f"/v2/tokens/{address}/transfers", params=params)
        return _parse_items(BlockscoutTransfer, data)

    # --- address endpoints ---

    async def get_address_transactions(
        self,
        address: str,
        *,
        direction: str | None = None,
        timeout: float | None = None,
    ) -> list[BlockscoutTransaction]:
        """Transactions touching an address. ``direction``: "to", "from" or None."""
        params = {"filter": direction} if direction else None
        data = await self._get(
            f"/v2/addresses/{address}/transactions", params=params, timeout=timeout
        )
        return _parse_items(BlockscoutTransaction, data)

    async def get_address(self, address: str, *, timeout: float | None = None) -> BlockscoutAddressInfo:
        data = await self._get(f"/v2/addresses/{address}", timeout=timeout)
        if not isinstance(data, dict):
            raise GatewayUnavailable(f"Unexpected address body for {address}")
        return _validate(BlockscoutAddressInfo, data)

    # --- verified source ---

    async def get_smart_contract(self, address: str) -> BlockscoutSmartContract:
        data = await self._get(f"/v2/smart-contracts/{address}")
        if not isinstance(data, dict):
            raise GatewayUnavailable(f"Unexpected smart-contract body for {address}")
        return _validate(BlockscoutSmartContract, data)

    async def get_source_code_legacy(self, address: str) -> str | None:
        result = await self._legacy("contract", "getsourcecode", address=address)
        if isinstance(result, list) and result and isinstance(result[0], dict):
            return result[0].get("SourceCode") or None
        return None


def _validate(model: type[BaseModel], data: dict) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise GatewayUnavailable(f"Schema mismatch for {model.__name__}: {e}") from e


def _parse_items(model: type[BaseModel], data: Any) -> list:
    """Parse ``items`` of a paginated /v2 response, skipping malformed entries."""
    items = data.get("items") if isinstance(data, dict) else None
    if not isinstance(items, list):
        return []
    parsed = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            parsed.append(model.model_validate(item))
        except ValidationError as e:
            logger.debug(f"[BLOCKSCOUT] Skipping malformed {model.__name__}: {e}")
    return parsed
