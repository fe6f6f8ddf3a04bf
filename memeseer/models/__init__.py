from memeseer.models.analysis import (
    ActivitySnapshot,
    CommunityGrowth,
    ContractFlag,
    ContractRiskResult,
    LiquidityHealthResult,
    LiquidityPair,
    OwnershipStatus,
    PlatformMetrics,
    RiskLevel,
    Sentiment,
    Severity,
    SocialSentimentResult,
    SuspiciousWallet,
    TaxRate,
    TokenAnalysis,
    TokenHolder,
    TokenIdentity,
    Transaction,
    TransactionKind,
    WalletRisk,
    WhaleActivityResult,
    clamp_score,
    risk_level_for,
)

__all__ = [
    "ActivitySnapshot",
    "CommunityGrowth",
    "ContractFlag",
    "ContractRiskResult",
    "LiquidityHealthResult",
    "LiquidityPair",
    "OwnershipStatus",
    "PlatformMetrics",
    "RiskLevel",
    "Sentiment",
    "Severity",
    "SocialSentimentResult",
    "SuspiciousWallet",
    "TaxRate",
    "TokenAnalysis",
    "TokenHolder",
    "TokenIdentity",
    "Transaction",
    "TransactionKind",
    "WalletRisk",
    "WhaleActivityResult",
    "clamp_score",
    "risk_level_for",
]
