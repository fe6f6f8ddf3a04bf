"""Token scanner — validate, resolve identity, fan out analyzers, aggregate.

The four analyzers and the activity lookup run concurrently behind one
gather barrier, each within the same per-task budget. Each task
catches its own failure (or budget overrun) and is replaced by a pinned
default sub-result, so a scan always completes once the address is valid.

Weighted total:
    round_half_up(contract*0.40 + whale*0.25 + social*0.20 + liquidity*0.15)
"""

import asyncio
import random
import re
import time
from collections.abc import Awaitable, Callable
from decimal import ROUND_HALF_UP, Decimal
from typing import TypeVar

from loguru import logger

from config.settings import settings
from memeseer.exceptions import GatewayError, InvalidAddressError
from memeseer.models.analysis import (
    ActivitySnapshot,
    ContractFlag,
    ContractRiskResult,
    LiquidityHealthResult,
    OwnershipStatus,
    Severity,
    SocialSentimentResult,
    TokenAnalysis,
    TokenIdentity,
    WhaleActivityResult,
    clamp_score,
)
from memeseer.parsers.blockscout.client import BlockscoutClient
from memeseer.parsers.contract_risk import analyse_contract
from memeseer.parsers.liquidity_health import analyse_liquidity
from memeseer.parsers.social_signals import analyse_social
from memeseer.parsers.whale_activity import analyse_whale_activity

ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")

WEIGHT_CONTRACT = Decimal("0.40")
WEIGHT_WHALE = Decimal("0.25")
WEIGHT_SOCIAL = Decimal("0.20")
WEIGHT_LIQUIDITY = Decimal("0.15")

T = TypeVar("T")


def validate_address(address: str) -> str:
    """Return the address unchanged if it is 0x + 40 hex chars, else raise."""
    if not isinstance(address, str) or not ADDRESS_RE.match(address):
        raise InvalidAddressError(
            "Invalid token address format. Must be a valid Ethereum address (0x...)"
        )
    return address


def calculate_total_score(contract: int, social: int, whale: int, liquidity: int) -> int:
    total = (
        Decimal(contract) * WEIGHT_CONTRACT
        + Decimal(whale) * WEIGHT_WHALE
        + Decimal(social) * WEIGHT_SOCIAL
        + Decimal(liquidity) * WEIGHT_LIQUIDITY
    )
    return clamp_score(int(total.quantize(Decimal("1"), rounding=ROUND_HALF_UP)))


# --- pinned defaults for degraded analyzers ---

def default_contract_risk() -> ContractRiskResult:
    return ContractRiskResult(
        score=50,
        flags=[ContractFlag(
            Severity.MEDIUM, "Analysis Incomplete", "Unable to fully analyze contract", 50,
        )],
        ownership_status=OwnershipStatus.UNKNOWN,
    )


def default_social_sentiment() -> SocialSentimentResult:
    return SocialSentimentResult(score=30, bot_detection_score=20)


def default_whale_activity() -> WhaleActivityResult:
    return WhaleActivityResult(score=40)


def default_liquidity_health() -> LiquidityHealthResult:
    return LiquidityHealthResult(score=40, volatility_risk=50)


class TokenScanner:
    """Composite risk scan for EVM tokens against one explorer gateway.

    Holds no per-scan state: results are created fresh and handed to the caller.
    """

    def __init__(
        self,
        gateway: BlockscoutClient,
        *,
        rng: random.Random | None = None,
        analyzer_timeout: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._gateway = gateway
        self._rng = rng
        self._analyzer_timeout = (
            analyzer_timeout if analyzer_timeout is not None else settings.scan_timeout_sec
        )
        self._clock = clock

    async def scan(self, address: str) -> TokenAnalysis:
        """Run a full scan. Raises InvalidAddressError before any network call."""
        validate_address(address)
        logger.info(f"[SCAN] Starting scan for {address}")

        identity = await self.resolve_identity(address)
        now = self._clock()

        async def _social() -> SocialSentimentResult:
            return analyse_social(identity.name, identity.symbol, rng=self._rng)

        contract, social, whale, liquidity, activity = await asyncio.gather(
            self._run("contract", analyse_contract(self._gateway, address, now=now), default_contract_risk),
            self._run("social", _social(), default_social_sentiment),
            self._run("whale", analyse_whale_activity(self._gateway, address, now=now), default_whale_activity),
            self._run("liquidity", analyse_liquidity(self._gateway, address, now=now), default_liquidity_health),
            self._run("activity", self.fetch_activity(address), ActivitySnapshot),
        )

        total = calculate_total_score(contract.score, social.score, whale.score, liquidity.score)

        analysis = TokenAnalysis(
            identity=identity,
            total_score=total,
            contract_risk=contract,
            social_sentiment=social,
            whale_activity=whale,
            liquidity_health=liquidity,
            scanned_at_ms=int(self._clock() * 1000),
            activity=activity,
        )
        logger.info(
            f"[SCAN] {identity.symbol} ({address[:10]}): "
            f"contract={contract.score} social={social.score} "
            f"whale={whale.score} liquidity={liquidity.score} "
            f"-> total={total} {analysis.risk_level.value}"
        )
        return analysis

    async def _run(
        self,
        name: str,
        coro: Awaitable[T],
        default: Callable[[], T],
    ) -> T:
        """Await one analyzer within budget; any failure yields its default."""
        try:
            return await asyncio.wait_for(coro, timeout=self._analyzer_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"[SCAN] {name} analyzer exceeded {self._analyzer_timeout}s, using default"
            )
        except Exception as e:
            logger.warning(f"[SCAN] {name} analyzer failed, using default: {type(e).__name__}: {e}")
        return default()

    async def resolve_identity(self, address: str) -> TokenIdentity:
        """Token name/symbol/decimals. Never raises; degrades to Unknown Token."""
        timeout = settings.identity_timeout_sec
        try:
            token = await self._gateway.get_token(address, timeout=timeout)
            return TokenIdentity(
                address=address,
                name=token.name or "Unknown Token",
                symbol=token.symbol or "UNKNOWN",
                decimals=token.decimals_int,
            )
        except GatewayError as e:
            logger.debug(f"[SCAN] token lookup failed for {address[:10]}: {e}")

        try:
            token = await self._gateway.get_token_info_legacy(address, timeout=timeout)
            if token is not None:
                return TokenIdentity(
                    address=address,
                    name=token.name or "Unknown Token",
                    symbol=token.symbol or "UNKNOWN",
                    decimals=token.decimals_int,
                )
        except GatewayError as e:
            logger.debug(f"[SCAN] legacy tokeninfo failed for {address[:10]}: {e}")

        logger.info(f"[SCAN] Identity unresolved for {address[:10]}, using Unknown Token")
        return TokenIdentity(address=address)

    async def fetch_activity(self, address: str) -> ActivitySnapshot:
        """Recent transfer count as 24h volume; zeros when unavailable."""
        try:
            transfers = await self._gateway.get_token_transfers(address, token_type=None)
        except GatewayError as e:
            logger.debug(f"[SCAN] activity lookup failed for {address[:10]}: {e}")
            return ActivitySnapshot()
        return ActivitySnapshot(volume_24h=len(transfers))
