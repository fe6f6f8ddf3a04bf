"""Liquidity health — pair discovery, lock ratio, volatility risk.

Liquidity pairs are inferred from the top contract holders (DEX pairs hold
the token). Without on-chain locker introspection, a pair counts as locked
only when its address is on the known-locker allow-list.
"""

import asyncio
import time
from decimal import ROUND_HALF_UP, Decimal

from loguru import logger

from memeseer.exceptions import GatewayError
from memeseer.models.analysis import LiquidityHealthResult, LiquidityPair, clamp_score
from memeseer.parsers.blockscout.client import BlockscoutClient
from memeseer.parsers.blockscout.models import BlockscoutHolder, parse_int

ONE_TOKEN = 10**18  # raw units, assuming 18 decimals
PAIR_CANDIDATES = 10
PAIR_NAME_HINTS = ("pair", "lp", "pool")
RECENT_WINDOW_SEC = 86400

KNOWN_LOCKERS: frozenset[str] = frozenset({
    "0x0000000000000000000000000000000000000001",
})


async def is_dex_pair(gateway: BlockscoutClient, address: str) -> bool:
    """Name-based DEX pair heuristic via the explorer's address metadata."""
    try:
        info = await gateway.get_address(address)
    except GatewayError as e:
        logger.debug(f"[LIQUIDITY] pair check failed for {address[:10]}: {e}")
        return False
    name = (info.name or "").lower()
    return any(hint in name for hint in PAIR_NAME_HINTS)


async def find_liquidity_pairs(
    gateway: BlockscoutClient, holders: list[BlockscoutHolder]
) -> list[LiquidityPair]:
    contracts = [h for h in holders[:PAIR_CANDIDATES] if h.is_contract]
    pair_flags = await asyncio.gather(*[is_dex_pair(gateway, h.address_hash) for h in contracts])

    pairs: list[LiquidityPair] = []
    for holder, named_pair in zip(contracts, pair_flags):
        if named_pair or holder.balance_raw > 0:
            address = holder.address_hash
            pairs.append(LiquidityPair(
                pair_address=address,
                liquidity_raw=str(holder.balance_raw),
                locked=address.lower() in KNOWN_LOCKERS,
            ))
    return pairs


async def count_recent_changes(gateway: BlockscoutClient, address: str, now: float) -> int:
    """5 points per >1-token transfer in the last 24h, capped at 50."""
    try:
        transfers = await gateway.get_token_transfers(address, token_type="ERC-20")
    except GatewayError as e:
        logger.debug(f"[LIQUIDITY] transfers lookup failed for {address[:10]}: {e}")
        return 0

    cutoff = now - RECENT_WINDOW_SEC
    large = sum(
        1 for t in transfers
        if t.unix_time is not None
        and t.unix_time > cutoff
        and parse_int(t.amount_raw) > ONE_TOKEN
    )
    return min(large * 5, 50)


def total_liquidity(pairs: list[LiquidityPair]) -> int:
    return sum(parse_int(p.liquidity_raw) for p in pairs)


def locked_percentage(pairs: list[LiquidityPair]) -> float:
    total = total_liquidity(pairs)
    if not pairs or total <= 0:
        return 0.0
    locked = sum(parse_int(p.liquidity_raw) for p in pairs if p.locked)
    return locked / total * 100


def liquidity_tier_points(total: int) -> int:
    if total < ONE_TOKEN:
        return 40
    if total < 10 * ONE_TOKEN:
        return 30
    if total < 100 * ONE_TOKEN:
        return 20
    return 0


def calculate_volatility_risk(pairs: list[LiquidityPair], total: int) -> int:
    risk = liquidity_tier_points(total)
    if not pairs:
        risk += 30
    elif len(pairs) == 1:
        risk += 20
    if not any(p.locked for p in pairs):
        risk += 20
    return clamp_score(risk)


def calculate_liquidity_score(
    total: int,
    locked_pct: float,
    recent_changes: int,
    volatility_risk: int,
    pair_count: int,
) -> int:
    score = liquidity_tier_points(total)

    if locked_pct < 20:
        score += 25
    elif locked_pct < 50:
        score += 15

    score += min(recent_changes, 20)

    if pair_count == 0:
        score += 30
    elif pair_count == 1:
        score += 15

    score += int((Decimal(volatility_risk) * Decimal("0.15")).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return clamp_score(score)


async def analyse_liquidity(
    gateway: BlockscoutClient,
    address: str,
    *,
    now: float | None = None,
) -> LiquidityHealthResult:
    """Full liquidity analysis for one token address."""
    current = time.time() if now is None else now

    try:
        holders = await gateway.get_token_holders(address, limit=50)
    except GatewayError as e:
        logger.debug(f"[LIQUIDITY] holders lookup failed for {address[:10]}: {e}")
        holders = []

    pairs, recent_changes = await asyncio.gather(
        find_liquidity_pairs(gateway, holders),
        count_recent_changes(gateway, address, current),
    )

    total = total_liquidity(pairs)
    locked_pct = locked_percentage(pairs)
    volatility = calculate_volatility_risk(pairs, total)
    score = calculate_liquidity_score(total, locked_pct, recent_changes, volatility, len(pairs))

    logger.debug(
        f"[LIQUIDITY] {address[:10]}: pairs={len(pairs)}, locked={locked_pct:.1f}%, "
        f"volatility={volatility}, score={score}"
    )

    return LiquidityHealthResult(
        score=score,
        total_liquidity_raw=str(total),
        pairs=pairs,
        locked_percentage=locked_pct,
        recent_change_score=recent_changes,
        volatility_risk=volatility,
    )
