"""Result types produced by a token scan.

Every analyzer returns one of these dataclasses; the scanner assembles them
into a TokenAnalysis. Nothing here does I/O.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class Severity(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class RiskLevel(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class WalletRisk(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @property
    def rank(self) -> int:
        return _WALLET_RISK_RANK[self]


_WALLET_RISK_RANK = {WalletRisk.LOW: 0, WalletRisk.MEDIUM: 1, WalletRisk.HIGH: 2}


class OwnershipStatus(Enum):
    RENOUNCED = "RENOUNCED"
    ACTIVE_OWNER = "ACTIVE_OWNER"
    NO_OWNER_FUNCTION = "NO_OWNER_FUNCTION"
    UNKNOWN = "UNKNOWN"


class Sentiment(Enum):
    POSITIVE = "POSITIVE"
    NEUTRAL = "NEUTRAL"
    NEGATIVE = "NEGATIVE"
    SUSPICIOUS = "SUSPICIOUS"


class TransactionKind(Enum):
    BUY = "BUY"
    SELL = "SELL"
    TRANSFER = "TRANSFER"


def clamp_score(value: float) -> int:
    """Clamp a raw score into [0, 100]."""
    return int(max(0, min(100, value)))


@dataclass(frozen=True)
class TokenIdentity:
    address: str
    name: str = "Unknown Token"
    symbol: str = "UNKNOWN"
    decimals: int = 18


@dataclass(frozen=True)
class ContractFlag:
    """A single contract red flag."""

    severity: Severity
    title: str
    description: str
    points: int


@dataclass
class TaxRate:
    buy: int = 0  # percent
    sell: int = 0  # percent


@dataclass
class ContractRiskResult:
    score: int
    flags: list[ContractFlag] = field(default_factory=list)
    ownership_status: OwnershipStatus = OwnershipStatus.UNKNOWN
    mintable: bool = False
    pausable: bool = False
    has_hidden_functions: bool = False
    tax_rate: TaxRate = field(default_factory=TaxRate)
    verified: bool = False
    deployment_age_days: int = 0
    has_honeypot: bool = False  # no sell simulation is performed
    liquidity_locked: bool = False
    lock_duration_days: int | None = None


@dataclass
class TokenHolder:
    address: str
    balance_raw: str  # unsigned integer as decimal string
    percentage: float  # of the observed holder-set supply
    age_days: int = 0
    is_contract: bool = False


@dataclass
class SuspiciousWallet:
    address: str
    reasons: list[str]
    risk_level: WalletRisk
    connected_wallets: int = 0

    @property
    def reason(self) -> str:
        return "; ".join(self.reasons)


@dataclass
class Transaction:
    hash: str
    from_address: str
    to_address: str
    amount_raw: str
    timestamp: int  # unix seconds
    # Always TRANSFER: DEX router classification is not implemented
    kind: TransactionKind = TransactionKind.TRANSFER


@dataclass
class WhaleActivityResult:
    score: int
    top_holders: list[TokenHolder] = field(default_factory=list)
    concentration_pct: float = 0.0
    suspicious_wallets: list[SuspiciousWallet] = field(default_factory=list)
    recent_large_transactions: list[Transaction] = field(default_factory=list)
    clustering_detected: bool = False


@dataclass
class LiquidityPair:
    pair_address: str
    liquidity_raw: str
    locked: bool = False
    lock_duration_days: int | None = None


@dataclass
class LiquidityHealthResult:
    score: int
    total_liquidity_raw: str = "0"
    pairs: list[LiquidityPair] = field(default_factory=list)
    locked_percentage: float = 0.0
    recent_change_score: int = 0
    volatility_risk: int = 0


@dataclass
class PlatformMetrics:
    followers: int = 0
    engagement: int = 0
    sentiment_value: int = 0
    bot_percentage: int = 0
    recent_activity: int = 0


@dataclass
class CommunityGrowth:
    daily: int = 0
    weekly: int = 0


@dataclass
class SocialSentimentResult:
    score: int
    sentiment: Sentiment = Sentiment.NEUTRAL
    bot_detection_score: int = 0
    suspicious_patterns: list[str] = field(default_factory=list)
    platform_metrics: PlatformMetrics = field(default_factory=PlatformMetrics)
    influencer_mentions: int = 0
    community_growth: CommunityGrowth = field(default_factory=CommunityGrowth)


@dataclass
class ActivitySnapshot:
    """Market activity summary. Only volume_24h (transfer count) is populated."""

    current: float = 0.0
    change_24h: float = 0.0
    change_7d: float = 0.0
    volume_24h: int = 0
    market_cap: float = 0.0
    holders: int = 0


@dataclass
class TokenAnalysis:
    """Composite scan result. Created per scan and owned by the caller."""

    identity: TokenIdentity
    total_score: int
    contract_risk: ContractRiskResult
    social_sentiment: SocialSentimentResult
    whale_activity: WhaleActivityResult
    liquidity_health: LiquidityHealthResult
    scanned_at_ms: int
    activity: ActivitySnapshot = field(default_factory=ActivitySnapshot)

    @property
    def risk_level(self) -> RiskLevel:
        return risk_level_for(self.total_score)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self, dict_factory=_enum_dict_factory)
        data["risk_level"] = self.risk_level.value
        for wallet, raw in zip(
            self.whale_activity.suspicious_wallets,
            data["whale_activity"]["suspicious_wallets"],
        ):
            raw["reason"] = wallet.reason
        return data


def risk_level_for(total_score: int) -> RiskLevel:
    """Fixed threshold table: <=30 LOW, <=60 MEDIUM, <=85 HIGH, else CRITICAL."""
    if total_score <= 30:
        return RiskLevel.LOW
    if total_score <= 60:
        return RiskLevel.MEDIUM
    if total_score <= 85:
        return RiskLevel.HIGH
    return RiskLevel.CRITICAL


def _enum_dict_factory(items: list[tuple[str, Any]]) -> dict[str, Any]:
    return {k: v.value if isinstance(v, Enum) else v for k, v in items}
