"""Contract risk — static pattern inspection of verified Solidity source.

Fetches verified source, creation time and token info in parallel, then runs
an ordered set of independent regex checks. Each matching check appends its
own flag; the sub-score is the capped sum of flag points.

No bytecode analysis and no simulation: an unverified contract gets a single
"Unverified Contract" flag and is not inspected further.
"""

import asyncio
import re
import time
from dataclasses import dataclass

from loguru import logger

from config.settings import settings
from memeseer.exceptions import GatewayError
from memeseer.models.analysis import (
    ContractFlag,
    ContractRiskResult,
    OwnershipStatus,
    Severity,
    TaxRate,
    clamp_score,
)
from memeseer.parsers.blockscout.client import BlockscoutClient
from memeseer.parsers.blockscout.models import BlockscoutToken, parse_timestamp

SECONDS_PER_DAY = 86400

MINT_RE = re.compile(r"function\s+mint\s*\(", re.IGNORECASE)
OWNER_CONTROLS_RE = re.compile(r"onlyOwner|Ownable", re.IGNORECASE)
BLACKLIST_RE = re.compile(r"blacklist|blacklisted", re.IGNORECASE)
PAUSE_RE = re.compile(r"pause|whenNotPaused", re.IGNORECASE)
PROXY_RE = re.compile(r"proxy|upgradeable|UUPS|delegatecall", re.IGNORECASE)
TAX_RE = re.compile(r"tax\D+(\d+)", re.IGNORECASE)
SELFDESTRUCT_RE = re.compile(r"selfdestruct|suicide", re.IGNORECASE)

RENOUNCED_RE = re.compile(r"renounceOwnership|owner.*=.*address\(0\)", re.IGNORECASE)
OWNER_GETTER_RE = re.compile(r"owner\s*\(\)", re.IGNORECASE)
BUY_TAX_RE = re.compile(r"buyTax\D+(\d+)", re.IGNORECASE)
SELL_TAX_RE = re.compile(r"sellTax\D+(\d+)", re.IGNORECASE)
HIDDEN_FUNCTION_RES = (
    re.compile(r"assembly\s*\{", re.IGNORECASE),
    re.compile(r"delegatecall", re.IGNORECASE),
    re.compile(r"callcode", re.IGNORECASE),
    re.compile(r"\.call\(", re.IGNORECASE),
)

MAX_TAX_PCT = 10


@dataclass(frozen=True)
class PatternCheck:
    """A source pattern that raises one flag when it matches."""

    pattern: re.Pattern[str]
    flag: ContractFlag


# Order is the order flags appear in the result
PATTERN_CHECKS: tuple[PatternCheck, ...] = (
    PatternCheck(MINT_RE, ContractFlag(
        Severity.CRITICAL, "Mint Function Detected",
        "Contract contains mint function that could inflate supply", 30,
    )),
    PatternCheck(OWNER_CONTROLS_RE, ContractFlag(
        Severity.MEDIUM, "Owner Controls",
        "Contract has owner-controlled functions", 15,
    )),
    PatternCheck(BLACKLIST_RE, ContractFlag(
        Severity.CRITICAL, "Blacklist Function",
        "Contract can blacklist addresses from trading", 30,
    )),
    PatternCheck(PAUSE_RE, ContractFlag(
        Severity.HIGH, "Pausable Contract",
        "Trading can be paused by owner", 25,
    )),
    PatternCheck(PROXY_RE, ContractFlag(
        Severity.HIGH, "Proxy/Upgradeable Pattern",
        "Contract logic can be changed after deployment", 20,
    )),
)

UNVERIFIED_FLAG = ContractFlag(
    Severity.HIGH, "Unverified Contract",
    "Source code is not verified on blockchain explorer", 25,
)
HIGH_TAX_FLAG = ContractFlag(
    Severity.HIGH, "High Transaction Tax", "Transaction tax may exceed 10%", 20,
)
SELFDESTRUCT_FLAG = ContractFlag(
    Severity.CRITICAL, "Self-Destruct Function",
    "Contract can be destroyed, potentially locking funds", 30,
)


def detect_red_flags(source: str | None, age_days: int | None) -> list[ContractFlag]:
    """Run every source check in order; ``age_days`` None means creation time unknown."""
    if not source:
        return [UNVERIFIED_FLAG]

    flags = [check.flag for check in PATTERN_CHECKS if check.pattern.search(source)]

    tax_match = TAX_RE.search(source)
    if tax_match and int(tax_match.group(1)) > MAX_TAX_PCT:
        flags.append(HIGH_TAX_FLAG)

    if SELFDESTRUCT_RE.search(source):
        flags.append(SELFDESTRUCT_FLAG)

    age_flag = deployment_age_flag(age_days)
    if age_flag is not None:
        flags.append(age_flag)

    return flags


def deployment_age_flag(age_days: int | None) -> ContractFlag | None:
    if age_days is None:
        return None
    if age_days == 0:
        return ContractFlag(
            Severity.HIGH, "Brand New Contract",
            "Contract deployed today (less than 24 hours old)", 20,
        )
    if age_days < 7:
        plural = "s" if age_days != 1 else ""
        return ContractFlag(
            Severity.MEDIUM, "Very New Contract",
            f"Contract deployed {age_days} day{plural} ago", 15,
        )
    if age_days < 30:
        return ContractFlag(
            Severity.LOW, "Recently Deployed", f"Contract is {age_days} days old", 5,
        )
    return None


def score_flags(flags: list[ContractFlag]) -> int:
    return clamp_score(sum(f.points for f in flags))


def check_ownership(source: str | None) -> OwnershipStatus:
    if not source:
        return OwnershipStatus.UNKNOWN
    if RENOUNCED_RE.search(source):
        return OwnershipStatus.RENOUNCED
    if OWNER_GETTER_RE.search(source):
        return OwnershipStatus.ACTIVE_OWNER
    return OwnershipStatus.NO_OWNER_FUNCTION


def has_hidden_functions(source: str | None) -> bool:
    if not source:
        return False
    return any(p.search(source) for p in HIDDEN_FUNCTION_RES)


def parse_tax_rates(source: str | None) -> TaxRate:
    if not source:
        return TaxRate()
    buy = BUY_TAX_RE.search(source)
    sell = SELL_TAX_RE.search(source)
    return TaxRate(
        buy=int(buy.group(1)) if buy else 0,
        sell=int(sell.group(1)) if sell else 0,
    )


def age_in_days(created_ts: int | None, now: float) -> int | None:
    if created_ts is None:
        return None
    return max(int((now - created_ts) // SECONDS_PER_DAY), 0)


async def fetch_source_code(gateway: BlockscoutClient, address: str) -> str | None:
    """Verified source via /v2/smart-contracts, falling back to legacy getsourcecode."""
    try:
        contract = await gateway.get_smart_contract(address)
        if contract.source_code:
            return contract.source_code
    except GatewayError as e:
        logger.debug(f"[CONTRACT] smart-contracts lookup failed for {address[:10]}: {e}")

    try:
        return await gateway.get_source_code_legacy(address)
    except GatewayError as e:
        logger.debug(f"[CONTRACT] legacy getsourcecode failed for {address[:10]}: {e}")
        return None


async def fetch_oldest_transaction_time(gateway: BlockscoutClient, address: str) -> int | None:
    """Oldest timestamp among transactions touching the contract address."""
    try:
        txs = await gateway.get_address_transactions(address, timeout=settings.identity_timeout_sec)
    except GatewayError as e:
        logger.debug(f"[CONTRACT] transactions lookup failed for {address[:10]}: {e}")
        return None
    return _oldest([tx.unix_time for tx in txs])


async def resolve_creation_time(
    gateway: BlockscoutClient,
    address: str,
    oldest_tx_ts: int | None,
    token: BlockscoutToken | None,
) -> int | None:
    """Best-effort contract creation unix time.

    Falls through: oldest address transaction, token created_at,
    address created_at, oldest token transfer.
    """
    if oldest_tx_ts is not None:
        return oldest_tx_ts

    token_ts = parse_timestamp(token.created_at) if token is not None else None
    if token_ts is not None:
        return token_ts

    try:
        info = await gateway.get_address(address, timeout=settings.identity_timeout_sec)
        address_ts = parse_timestamp(info.created_at)
        if address_ts is not None:
            return address_ts
    except GatewayError as e:
        logger.debug(f"[CONTRACT] address lookup failed for {address[:10]}: {e}")

    try:
        transfers = await gateway.get_token_transfers(address, token_type=None)
        transfer_ts = _oldest([t.unix_time for t in transfers])
        if transfer_ts is not None:
            return transfer_ts
    except GatewayError as e:
        logger.debug(f"[CONTRACT] transfers lookup failed for {address[:10]}: {e}")

    logger.debug(f"[CONTRACT] could not determine creation time for {address[:10]}")
    return None


async def fetch_token_info(gateway: BlockscoutClient, address: str) -> BlockscoutToken | None:
    try:
        return await gateway.get_token(address)
    except GatewayError as e:
        logger.debug(f"[CONTRACT] token info failed for {address[:10]}: {e}")
        return None


async def analyse_contract(
    gateway: BlockscoutClient,
    address: str,
    *,
    now: float | None = None,
) -> ContractRiskResult:
    """Full contract inspection for one token address."""
    source, token, oldest_tx_ts = await asyncio.gather(
        fetch_source_code(gateway, address),
        fetch_token_info(gateway, address),
        fetch_oldest_transaction_time(gateway, address),
    )
    created_ts = await resolve_creation_time(gateway, address, oldest_tx_ts, token)

    current = time.time() if now is None else now
    age_days = age_in_days(created_ts, current)

    flags = detect_red_flags(source, age_days)
    score = score_flags(flags)

    logger.info(
        f"[CONTRACT] {address[:10]}: score={score}, "
        f"flags=[{', '.join(f.title for f in flags)}]"
    )

    return ContractRiskResult(
        score=score,
        flags=flags,
        ownership_status=check_ownership(source),
        mintable=bool(source and MINT_RE.search(source)),
        pausable=bool(source and PAUSE_RE.search(source)),
        has_hidden_functions=has_hidden_functions(source),
        tax_rate=parse_tax_rates(source),
        verified=bool(source),
        deployment_age_days=age_days or 0,
    )


def _oldest(timestamps: list[int | None]) -> int | None:
    known = [ts for ts in timestamps if ts is not None]
    return min(known) if known else None
