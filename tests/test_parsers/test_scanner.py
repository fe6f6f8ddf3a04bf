"""Tests for the token scanner: validation, identity, fan-out and aggregation."""

import asyncio
import random

import pytest

from memeseer.exceptions import GatewayUnavailable, InvalidAddressError
from memeseer.models.analysis import (
    ContractRiskResult,
    LiquidityHealthResult,
    RiskLevel,
    SocialSentimentResult,
    WhaleActivityResult,
)
from memeseer.parsers import scanner as scanner_module
from memeseer.parsers.blockscout.models import BlockscoutSmartContract, BlockscoutToken
from memeseer.parsers.scanner import TokenScanner, calculate_total_score, validate_address
from tests.fakes import NOW, TOKEN, holder, transfer


def _scanner(gateway, **kwargs) -> TokenScanner:
    kwargs.setdefault("clock", lambda: NOW)
    return TokenScanner(gateway, **kwargs)


def _stub_analyzers(monkeypatch, *, contract=10, social=20, whale=30, liquidity=40) -> None:
    async def _contract(gateway, address, *, now=None):
        return ContractRiskResult(score=contract)

    async def _whale(gateway, address, *, now=None):
        return WhaleActivityResult(score=whale)

    async def _liquidity(gateway, address, *, now=None):
        return LiquidityHealthResult(score=liquidity)

    def _social(name, symbol, *, rng=None):
        return SocialSentimentResult(score=social)

    monkeypatch.setattr(scanner_module, "analyse_contract", _contract)
    monkeypatch.setattr(scanner_module, "analyse_whale_activity", _whale)
    monkeypatch.setattr(scanner_module, "analyse_liquidity", _liquidity)
    monkeypatch.setattr(scanner_module, "analyse_social", _social)


class TestValidation:
    @pytest.mark.parametrize(
        "address",
        [
            "0x123",
            "0x" + "g" * 40,
            "ab" * 21,
            "0x" + "a" * 41,
            " 0x" + "a" * 40,
            "",
            None,
        ],
    )
    def test_rejects_malformed(self, address) -> None:
        with pytest.raises(InvalidAddressError):
            validate_address(address)

    def test_accepts_mixed_case(self) -> None:
        address = "0x" + "aB" * 20
        assert validate_address(address) == address

    @pytest.mark.asyncio
    async def test_invalid_address_makes_no_calls(self, fake_gateway) -> None:
        with pytest.raises(InvalidAddressError):
            await _scanner(fake_gateway).scan("0x123")
        assert fake_gateway.calls == []


class TestTotalScore:
    def test_weights(self) -> None:
        # 10*0.4 + 20*0.2 + 30*0.25 + 40*0.15 = 21.5
        assert calculate_total_score(10, 20, 30, 40) == 22

    def test_rounds_half_up(self) -> None:
        assert calculate_total_score(0, 0, 10, 0) == 3
        assert calculate_total_score(0, 0, 2, 0) == 1

    def test_bounds(self) -> None:
        assert calculate_total_score(0, 0, 0, 0) == 0
        assert calculate_total_score(100, 100, 100, 100) == 100


class TestScan:
    @pytest.mark.asyncio
    async def test_aggregates_sub_scores(self, fake_gateway, monkeypatch) -> None:
        _stub_analyzers(monkeypatch)
        fake_gateway.token = BlockscoutToken(name="Meme", symbol="MEME", decimals="18")
        fake_gateway.transfers = [transfer(NOW), transfer(NOW - 10), transfer(NOW - 20)]

        analysis = await _scanner(fake_gateway).scan(TOKEN)

        assert analysis.identity.name == "Meme"
        assert analysis.identity.symbol == "MEME"
        assert analysis.total_score == 22
        assert analysis.risk_level is RiskLevel.LOW
        assert analysis.scanned_at_ms == int(NOW * 1000)
        assert analysis.activity.volume_24h == 3

    @pytest.mark.asyncio
    async def test_all_analyzers_failing_uses_defaults(self, fake_gateway, monkeypatch) -> None:
        async def _boom(gateway, address, *, now=None):
            raise RuntimeError("boom")

        def _social_boom(name, symbol, *, rng=None):
            raise RuntimeError("boom")

        monkeypatch.setattr(scanner_module, "analyse_contract", _boom)
        monkeypatch.setattr(scanner_module, "analyse_whale_activity", _boom)
        monkeypatch.setattr(scanner_module, "analyse_liquidity", _boom)
        monkeypatch.setattr(scanner_module, "analyse_social", _social_boom)

        analysis = await _scanner(fake_gateway).scan(TOKEN)

        assert analysis.contract_risk.score == 50
        assert [f.title for f in analysis.contract_risk.flags] == ["Analysis Incomplete"]
        assert analysis.social_sentiment.score == 30
        assert analysis.social_sentiment.bot_detection_score == 20
        assert analysis.whale_activity.score == 40
        assert analysis.liquidity_health.score == 40
        assert analysis.liquidity_health.volatility_risk == 50
        assert analysis.total_score == 42
        assert analysis.risk_level is RiskLevel.MEDIUM

    @pytest.mark.asyncio
    async def test_slow_analyzer_times_out_to_default(self, fake_gateway, monkeypatch) -> None:
        _stub_analyzers(monkeypatch, contract=0, social=0, liquidity=0)

        async def _slow(gateway, address, *, now=None):
            await asyncio.sleep(5)
            return WhaleActivityResult(score=99)

        monkeypatch.setattr(scanner_module, "analyse_whale_activity", _slow)

        analysis = await _scanner(fake_gateway, analyzer_timeout=0.01).scan(TOKEN)

        assert analysis.whale_activity.score == 40
        assert analysis.total_score == 10

    @pytest.mark.asyncio
    async def test_identity_legacy_fallback(self, fake_gateway, monkeypatch) -> None:
        _stub_analyzers(monkeypatch)
        fake_gateway.legacy_token = BlockscoutToken(name="Legacy", symbol="LGC", decimals="9")

        analysis = await _scanner(fake_gateway).scan(TOKEN)

        assert fake_gateway.calls[:2] == ["get_token", "get_token_info_legacy"]
        assert analysis.identity.name == "Legacy"
        assert analysis.identity.decimals == 9

    @pytest.mark.asyncio
    async def test_identity_unknown_token(self, fake_gateway, monkeypatch) -> None:
        _stub_analyzers(monkeypatch)
        fake_gateway.token = GatewayUnavailable("HTTP 503 after retries")
        fake_gateway.legacy_token = GatewayUnavailable("HTTP 503 after retries")
        fake_gateway.transfers = GatewayUnavailable("HTTP 503 after retries")

        analysis = await _scanner(fake_gateway).scan(TOKEN)

        assert analysis.identity.name == "Unknown Token"
        assert analysis.identity.symbol == "UNKNOWN"
        assert analysis.identity.decimals == 18
        assert analysis.activity.volume_24h == 0

    @pytest.mark.asyncio
    async def test_repeat_scans_are_identical(self, fake_gateway) -> None:
        fake_gateway.token = BlockscoutToken(name="Doge Moon", symbol="DMOON")
        fake_gateway.contract = BlockscoutSmartContract(source_code="contract T is Ownable {}")
        fake_gateway.holders = [holder("0xw1", 60), holder("0xw2", 40)]
        fake_gateway.transfers = [transfer(NOW - 30)]

        first = await _scanner(fake_gateway, rng=random.Random(7)).scan(TOKEN)
        second = await _scanner(fake_gateway, rng=random.Random(7)).scan(TOKEN)

        assert first == second
        assert first.to_dict() == second.to_dict()

    @pytest.mark.asyncio
    async def test_slow_activity_lookup_stays_within_budget(self, fake_gateway, monkeypatch) -> None:
        _stub_analyzers(monkeypatch)

        async def _slow_transfers(address, *, token_type="ERC-20"):
            await asyncio.sleep(5)
            return [transfer(NOW)]

        monkeypatch.setattr(fake_gateway, "get_token_transfers", _slow_transfers)

        analysis = await _scanner(fake_gateway, analyzer_timeout=0.01).scan(TOKEN)

        assert analysis.activity.volume_24h == 0
        assert analysis.total_score == 22
