"""Tests for liquidity pair discovery and liquidity scoring."""

import pytest

from memeseer.exceptions import GatewayUnavailable
from memeseer.models.analysis import LiquidityPair
from memeseer.parsers.blockscout.models import BlockscoutAddressInfo
from memeseer.parsers.liquidity_health import (
    ONE_TOKEN,
    analyse_liquidity,
    calculate_liquidity_score,
    calculate_volatility_risk,
    count_recent_changes,
    find_liquidity_pairs,
    liquidity_tier_points,
    locked_percentage,
)
from tests.fakes import NOW, TOKEN, holder, transfer

LOCKER = "0x0000000000000000000000000000000000000001"


def _pair(address: str, raw: int, *, locked: bool = False) -> LiquidityPair:
    return LiquidityPair(pair_address=address, liquidity_raw=str(raw), locked=locked)


class TestScoring:
    @pytest.mark.parametrize(
        "total,points",
        [(0, 40), (ONE_TOKEN - 1, 40), (ONE_TOKEN, 30), (10 * ONE_TOKEN, 20), (100 * ONE_TOKEN, 0)],
    )
    def test_tiers(self, total, points) -> None:
        assert liquidity_tier_points(total) == points

    def test_no_pairs_volatility(self) -> None:
        assert calculate_volatility_risk([], 0) == 90

    def test_single_locked_deep_pair_volatility(self) -> None:
        assert calculate_volatility_risk([_pair("0xp", 10**21, locked=True)], 10**21) == 20

    def test_deep_locked_multi_pair_score(self) -> None:
        assert calculate_liquidity_score(10**21, 100, 0, 0, 0) == 30

    def test_volatility_term_rounds_half_up(self) -> None:
        # 30 * 0.15 = 4.5
        assert calculate_liquidity_score(10**21, 100, 0, 30, 2) == 5

    def test_recent_changes_capped_at_twenty(self) -> None:
        assert calculate_liquidity_score(10**21, 100, 50, 0, 2) == 20

    def test_lock_bands(self) -> None:
        assert calculate_liquidity_score(10**21, 19.9, 0, 0, 2) == 25
        assert calculate_liquidity_score(10**21, 20, 0, 0, 2) == 15
        assert calculate_liquidity_score(10**21, 50, 0, 0, 2) == 0

    def test_score_capped(self) -> None:
        assert calculate_liquidity_score(0, 0, 50, 90, 0) == 100

    def test_locked_percentage(self) -> None:
        pairs = [_pair("0xa", 300, locked=True), _pair("0xb", 100)]
        assert locked_percentage(pairs) == 75.0
        assert locked_percentage([]) == 0.0


class TestDiscovery:
    @pytest.mark.asyncio
    async def test_named_pair_and_funded_contract(self, fake_gateway) -> None:
        fake_gateway.addresses["0xpair"] = BlockscoutAddressInfo(name="UniswapV2Pair")
        holders = [
            holder("0xpair", 0, is_contract=True),
            holder("0xvault", 500, is_contract=True),
            holder("0xempty", 0, is_contract=True),
            holder("0xwallet", 900),
        ]
        pairs = await find_liquidity_pairs(fake_gateway, holders)
        assert [p.pair_address for p in pairs] == ["0xpair", "0xvault"]
        assert all(not p.locked for p in pairs)

    @pytest.mark.asyncio
    async def test_known_locker_counts_as_locked(self, fake_gateway) -> None:
        pairs = await find_liquidity_pairs(fake_gateway, [holder(LOCKER, 10, is_contract=True)])
        assert pairs[0].locked is True
        assert locked_percentage(pairs) == 100.0

    @pytest.mark.asyncio
    async def test_only_first_ten_holders_considered(self, fake_gateway) -> None:
        holders = [holder(f"0xw{i}", 10) for i in range(10)]
        holders.append(holder("0xlate", 10, is_contract=True))
        assert await find_liquidity_pairs(fake_gateway, holders) == []

    @pytest.mark.asyncio
    async def test_recent_changes(self, fake_gateway) -> None:
        fake_gateway.transfers = [
            transfer(NOW - 3600, amount=2 * ONE_TOKEN),
            transfer(NOW - 60, amount=ONE_TOKEN),
            transfer(NOW - 2 * 86400, amount=5 * ONE_TOKEN),
        ]
        assert await count_recent_changes(fake_gateway, TOKEN, NOW) == 5

    @pytest.mark.asyncio
    async def test_recent_changes_capped(self, fake_gateway) -> None:
        fake_gateway.transfers = [transfer(NOW - i, amount=2 * ONE_TOKEN) for i in range(15)]
        assert await count_recent_changes(fake_gateway, TOKEN, NOW) == 50

    @pytest.mark.asyncio
    async def test_recent_changes_unavailable(self, fake_gateway) -> None:
        fake_gateway.transfers = GatewayUnavailable("down")
        assert await count_recent_changes(fake_gateway, TOKEN, NOW) == 0


class TestAnalyseLiquidity:
    @pytest.mark.asyncio
    async def test_single_unlocked_pair(self, fake_gateway) -> None:
        fake_gateway.addresses["0xpair"] = BlockscoutAddressInfo(name="UniswapV2Pair")
        fake_gateway.holders = [
            holder("0xpair", 50 * ONE_TOKEN, is_contract=True),
            holder("0xwallet", 10),
        ]
        fake_gateway.transfers = [
            transfer(NOW - 3600, amount=2 * ONE_TOKEN),
            transfer(NOW - 2 * 86400, amount=5 * ONE_TOKEN),
        ]

        result = await analyse_liquidity(fake_gateway, TOKEN, now=NOW)

        assert result.total_liquidity_raw == str(50 * ONE_TOKEN)
        assert len(result.pairs) == 1
        assert result.locked_percentage == 0.0
        assert result.recent_change_score == 5
        # 20 tier + 20 single pair + 20 unlocked
        assert result.volatility_risk == 60
        # 20 tier + 25 unlocked + 5 changes + 15 single pair + 9 volatility
        assert result.score == 74

    @pytest.mark.asyncio
    async def test_no_holders(self, fake_gateway) -> None:
        fake_gateway.holders = GatewayUnavailable("down")
        result = await analyse_liquidity(fake_gateway, TOKEN, now=NOW)
        assert result.pairs == []
        assert result.total_liquidity_raw == "0"
        assert result.volatility_risk == 90
        assert result.score == 100
