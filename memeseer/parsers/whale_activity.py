"""Whale activity — holder concentration, suspicious wallets, coordinated transfers.

Percentages are relative to the observed holder-set supply (sum of fetched
holder balances), not the true circulating supply. Large-transfer detection
uses the declared total supply, falling back to a placeholder when the
explorer has none.
"""

import asyncio
import time
from collections import Counter

from loguru import logger

from config.settings import settings
from memeseer.exceptions import GatewayError
from memeseer.models.analysis import (
    SuspiciousWallet,
    TokenHolder,
    Transaction,
    WalletRisk,
    WhaleActivityResult,
    clamp_score,
)
from memeseer.parsers.blockscout.client import BlockscoutClient
from memeseer.parsers.blockscout.models import BlockscoutHolder, parse_int

SECONDS_PER_DAY = 86400
HOLDER_FETCH_LIMIT = 50
ANALYSED_HOLDERS = 20
TOP_HOLDERS = 10
MAX_TRANSFERS = 100
MAX_LARGE_TRANSACTIONS = 20
LARGE_TX_SUPPLY_PCT = 0.5
PLACEHOLDER_TOTAL_SUPPLY = 10**24

CLUSTER_WINDOW_SEC = 300
CLUSTER_MIN_TXS = 5
RECENT_ACTIVITY_WINDOW_SEC = 3600
RECENT_ACTIVITY_MAX_TXS = 10

NEW_WALLET_DAYS = 7
NEW_WHALE_PCT = 5.0


async def fetch_wallet_age(gateway: BlockscoutClient, address: str, now: float) -> int:
    """Days since the wallet's oldest inbound transaction; 0 when unknown."""
    if not address:
        return 0
    try:
        txs = await gateway.get_address_transactions(address, direction="to")
    except GatewayError as e:
        logger.debug(f"[WHALE] wallet age lookup failed for {address[:10]}: {e}")
        return 0
    if not txs:
        return 0
    # Explorer returns newest first
    oldest_ts = txs[-1].unix_time
    if oldest_ts is None:
        return 0
    return max(int((now - oldest_ts) // SECONDS_PER_DAY), 0)


async def fetch_top_holders(
    gateway: BlockscoutClient, address: str, now: float
) -> list[TokenHolder]:
    """Top holders with percentage of holder-set supply and wallet age."""
    try:
        raw = await gateway.get_token_holders(address, limit=HOLDER_FETCH_LIMIT)
    except GatewayError as e:
        logger.debug(f"[WHALE] holders lookup failed for {address[:10]}: {e}")
        return []

    holder_set_supply = sum(h.balance_raw for h in raw)
    semaphore = asyncio.Semaphore(max(settings.wallet_age_concurrency, 1))

    async def _build(holder: BlockscoutHolder) -> TokenHolder:
        async with semaphore:
            age = await fetch_wallet_age(gateway, holder.address_hash, now)
        return TokenHolder(
            address=holder.address_hash,
            balance_raw=str(holder.balance_raw),
            percentage=holder_percentage(holder.balance_raw, holder_set_supply),
            age_days=age,
            is_contract=holder.is_contract,
        )

    return list(await asyncio.gather(*[_build(h) for h in raw[:ANALYSED_HOLDERS]]))


async def fetch_recent_transactions(gateway: BlockscoutClient, address: str, now: float) -> list[Transaction]:
    try:
        transfers = await gateway.get_token_transfers(address, token_type="ERC-20")
    except GatewayError as e:
        logger.debug(f"[WHALE] transfers lookup failed for {address[:10]}: {e}")
        return []

    return [
        Transaction(
            hash=t.tx_hash or "",
            from_address=t.from_hash,
            to_address=t.to_hash,
            amount_raw=t.amount_raw,
            timestamp=t.unix_time if t.unix_time is not None else int(now),
        )
        for t in transfers[:MAX_TRANSFERS]
    ]


async def fetch_total_supply(gateway: BlockscoutClient, address: str) -> int:
    """Declared total supply, or the placeholder when unavailable."""
    try:
        token = await gateway.get_token(address)
    except GatewayError as e:
        logger.debug(f"[WHALE] total supply lookup failed for {address[:10]}: {e}")
        return PLACEHOLDER_TOTAL_SUPPLY
    supply = token.total_supply_raw
    return supply if supply > 0 else PLACEHOLDER_TOTAL_SUPPLY


def holder_percentage(balance: int, holder_set_supply: int) -> float:
    if holder_set_supply <= 0:
        return 0.0
    return balance / holder_set_supply * 100


def calculate_concentration(holders: list[TokenHolder]) -> float:
    """Sum of top-10 percentages, rounded to 2 decimals."""
    if not holders:
        return 0.0
    return round(sum(h.percentage for h in holders[:TOP_HOLDERS]), 2)


def is_new_whale(holder: TokenHolder) -> bool:
    return holder.age_days < NEW_WALLET_DAYS and holder.percentage > NEW_WHALE_PCT


def detect_suspicious_wallets(
    holders: list[TokenHolder],
    transactions: list[Transaction],
    now: float,
) -> list[SuspiciousWallet]:
    """Independent per-holder rules. Reasons accumulate; risk is the max triggered."""
    suspicious: list[SuspiciousWallet] = []

    for holder in holders:
        reasons: list[str] = []
        risk = WalletRisk.LOW

        def _raise(level: WalletRisk) -> None:
            nonlocal risk
            if level.rank > risk.rank:
                risk = level

        if is_new_whale(holder):
            reasons.append(
                f"New wallet (<7 days) holding {holder.percentage:.2f}% of supply"
            )
            _raise(WalletRisk.HIGH)

        if holder.percentage > 20:
            reasons.append(f"Controls {holder.percentage:.2f}% of total supply")
            _raise(WalletRisk.HIGH if holder.percentage > 30 else WalletRisk.MEDIUM)

        if holder.is_contract and holder.percentage > 10:
            reasons.append("Contract address holding significant supply")
            _raise(WalletRisk.MEDIUM)

        addr = holder.address.lower()
        recent = [
            tx for tx in transactions
            if addr in (tx.from_address.lower(), tx.to_address.lower())
            and now - tx.timestamp < RECENT_ACTIVITY_WINDOW_SEC
        ]
        if len(recent) > RECENT_ACTIVITY_MAX_TXS:
            reasons.append("High transaction frequency in last hour")
            _raise(WalletRisk.HIGH)

        if reasons:
            suspicious.append(SuspiciousWallet(
                address=holder.address,
                reasons=reasons,
                risk_level=risk,
            ))

    return suspicious


def detect_clustering(transactions: list[Transaction]) -> bool:
    """True if any fixed 5-minute window holds 5+ transfers."""
    windows = Counter(tx.timestamp // CLUSTER_WINDOW_SEC for tx in transactions)
    return any(count >= CLUSTER_MIN_TXS for count in windows.values())


def filter_large_transactions(
    transactions: list[Transaction], total_supply: int
) -> list[Transaction]:
    """Transfers moving more than 0.5% of declared supply, first 20."""
    if total_supply <= 0:
        return []
    large = [
        tx for tx in transactions
        if parse_int(tx.amount_raw) / total_supply * 100 > LARGE_TX_SUPPLY_PCT
    ]
    return large[:MAX_LARGE_TRANSACTIONS]


def concentration_points(concentration: float) -> int:
    if concentration > 80:
        return 40
    if concentration > 60:
        return 30
    if concentration > 40:
        return 20
    if concentration > 20:
        return 10
    return 0


def calculate_whale_score(
    concentration: float,
    suspicious_count: int,
    clustering: bool,
    holders: list[TokenHolder],
) -> int:
    score = concentration_points(concentration)
    score += min(suspicious_count * 8, 30)
    if clustering:
        score += 15
    new_whales = sum(1 for h in holders if is_new_whale(h))
    score += min(new_whales * 10, 20)
    return clamp_score(score)


async def analyse_whale_activity(
    gateway: BlockscoutClient,
    address: str,
    *,
    now: float | None = None,
) -> WhaleActivityResult:
    """Full whale analysis for one token address."""
    current = time.time() if now is None else now

    holders, transactions, total_supply = await asyncio.gather(
        fetch_top_holders(gateway, address, current),
        fetch_recent_transactions(gateway, address, current),
        fetch_total_supply(gateway, address),
    )

    concentration = calculate_concentration(holders)
    suspicious = detect_suspicious_wallets(holders, transactions, current)
    clustering = detect_clustering(transactions)
    score = calculate_whale_score(concentration, len(suspicious), clustering, holders)

    if suspicious or clustering:
        logger.info(
            f"[WHALE] {address[:10]}: top10={concentration:.1f}%, "
            f"suspicious={len(suspicious)}, clustering={clustering}, score={score}"
        )

    return WhaleActivityResult(
        score=score,
        top_holders=holders[:TOP_HOLDERS],
        concentration_pct=concentration,
        suspicious_wallets=suspicious,
        recent_large_transactions=filter_large_transactions(transactions, total_supply),
        clustering_detected=clustering,
    )
