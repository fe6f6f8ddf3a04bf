"""Social signals — naming heuristics with synthetic platform metrics.

No live social feed is queried. The token name/symbol drive keyword rules,
and pseudo-random platform metrics are drawn inside keyword-dependent ranges
to feed the "high activity, low followers" bot-network rule.

Pass a seeded ``random.Random`` to make the metrics reproducible. Override
rules (pump keyword, bot network) always win over the score-based sentiment.
"""

import random

from loguru import logger

from memeseer.models.analysis import (
    CommunityGrowth,
    PlatformMetrics,
    Sentiment,
    SocialSentimentResult,
    clamp_score,
)

MEME_KEYWORDS = ("moon", "safe", "elon", "doge", "shib", "inu", "baby", "mini", "floki")
PUMP_KEYWORDS = ("100x", "1000x", "pump", "rocket", "lambo", "millionaire")
PROFESSIONAL_KEYWORDS = ("defi", "finance", "protocol", "network", "dao")

BASE_BOT_SCORE = 20


def synthesize_metrics(rng: random.Random, meme: bool) -> PlatformMetrics:
    """Draw follower/engagement/sentiment/activity figures for the keyword class."""
    if meme:
        return PlatformMetrics(
            followers=rng.randint(500, 5499),
            engagement=rng.randint(50, 249),
            sentiment_value=rng.randint(20, 49),
            recent_activity=rng.randint(20, 119),
        )
    return PlatformMetrics(
        followers=rng.randint(100, 2099),
        engagement=rng.randint(5, 54),
        sentiment_value=rng.randint(40, 79),
        recent_activity=rng.randint(5, 24),
    )


def bot_tier_points(bot_score: int) -> int:
    if bot_score > 60:
        return 30
    if bot_score > 40:
        return 20
    if bot_score > 20:
        return 10
    return 0


def analyse_social(
    name: str,
    symbol: str,
    *,
    rng: random.Random | None = None,
) -> SocialSentimentResult:
    """Score a token's social risk from its name and symbol."""
    rng = rng or random.Random()
    lower_name = name.lower()
    lower_symbol = symbol.lower()

    score = 0
    bot_score = BASE_BOT_SCORE
    patterns: list[str] = []
    forced: Sentiment | None = None

    meme = any(k in lower_name or k in lower_symbol for k in MEME_KEYWORDS)
    if meme:
        patterns.append("Token name contains common meme/scam keywords")
        score += 15
        bot_score += 20

    if "test" in lower_name or "test" in lower_symbol:
        patterns.append("Test token detected")
        score += 5

    if any(k in lower_name for k in PUMP_KEYWORDS):
        patterns.append("Name suggests pump-and-dump scheme")
        score += 25
        bot_score += 30
        forced = Sentiment.SUSPICIOUS

    if len(symbol) > 10 or len(symbol) < 2:
        patterns.append("Unusual token symbol length")
        score += 10

    professional = any(k in lower_name for k in PROFESSIONAL_KEYWORDS)
    if professional:
        score -= 10
        bot_score -= 10

    metrics = synthesize_metrics(rng, meme)

    if metrics.recent_activity > 50 and metrics.followers < 1000:
        patterns.append("High activity relative to follower count (possible bot network)")
        score += 20
        bot_score += 25
        forced = Sentiment.SUSPICIOUS

    if forced is not None:
        sentiment = forced
    elif professional:
        sentiment = Sentiment.POSITIVE
    elif score > 30:
        sentiment = Sentiment.SUSPICIOUS
    elif score > 15:
        sentiment = Sentiment.NEGATIVE
    elif score < 5:
        sentiment = Sentiment.POSITIVE
    else:
        sentiment = Sentiment.NEUTRAL

    bot_score = clamp_score(bot_score)
    metrics.bot_percentage = bot_score

    score += bot_tier_points(bot_score)
    if metrics.sentiment_value < 40:
        score += 15

    score = clamp_score(score)

    if sentiment is Sentiment.SUSPICIOUS:
        logger.info(f"[SOCIAL] {symbol}: suspicious naming ({'; '.join(patterns)})")

    return SocialSentimentResult(
        score=score,
        sentiment=sentiment,
        bot_detection_score=bot_score,
        suspicious_patterns=patterns,
        platform_metrics=metrics,
        influencer_mentions=metrics.engagement,
        community_growth=CommunityGrowth(
            daily=metrics.recent_activity,
            weekly=metrics.recent_activity * 7,
        ),
    )
