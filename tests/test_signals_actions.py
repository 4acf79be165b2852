"""Tests for signal actions: daily and hourly signals, key levels and moonshots."""

import asyncio
from datetime import datetime

import pytest

from signals_actions import (
    GET_MOONSHOT_TOKENS,
    GET_RESISTANCE_SUPPORT,
    analyze_hourly_trading_signals,
    analyze_moonshot_tokens,
    analyze_resistance_support,
    analyze_trading_signals,
    best_opportunities,
    classify_levels,
    hourly_quality_score,
    market_bias,
    moonshot_trend,
    opportunity_score,
    potential_return,
    select_main_token,
    signal_distribution,
    signal_quality,
    signal_value,
)

LEVELS = [
    {"level": 100, "date": "2024-06-01T00:00:00.000Z"},
    {"level": 120, "date": "2023-06-01T00:00:00.000Z"},
    {"level": 80, "date": "2024-03-01T00:00:00.000Z"},
    {"level": 300, "date": "2022-01-01T00:00:00.000Z"},
]


class TestTradingSignals:
    def test_signal_value_is_clamped(self):
        assert signal_value({"TRADING_SIGNAL": 1}) == 1
        assert signal_value({"SIGNAL": "-1"}) == -1
        assert signal_value({"TRADING_SIGNAL": 5}) == 0
        assert signal_value({"TRADING_SIGNAL": "buy"}) == 0
        assert signal_value({}) == 0

    @pytest.mark.parametrize("pct, bias", [
        (61, "Strongly Bullish"),
        (60, "Bullish"),
        (40, "Neutral"),
        (25, "Bearish"),
        (20, "Strongly Bearish"),
    ])
    def test_market_bias(self, pct, bias):
        assert market_bias(pct) == bias

    def test_distribution(self):
        data = [{"TRADING_SIGNAL": s} for s in (1, 1, 1, -1, 0)]
        distribution = signal_distribution(data)
        assert distribution["bullish_percentage"] == 60.0
        assert distribution["market_bias"] == "Bullish"
        assert distribution["sentiment_strength"] == "Strong"

    def test_opportunity_score_and_return(self):
        long_signal = {"TRADING_SIGNAL": 1, "ENTRY_PRICE": 100, "TARGET_PRICE": 120, "AI_CONFIDENCE": 70}
        short_signal = {"TRADING_SIGNAL": -1, "ENTRY_PRICE": 100, "TARGET_PRICE": 80}
        assert opportunity_score(long_signal) == 90
        assert opportunity_score({"TRADING_SIGNAL": 1}) == 50
        assert potential_return(long_signal) == pytest.approx(20.0)
        assert potential_return(short_signal) == pytest.approx(20.0)
        assert potential_return({"TRADING_SIGNAL": 1, "ENTRY_PRICE": 100}) is None

    def test_opportunities_fall_back_to_directional_signals(self):
        data = [
            {"TOKEN_NAME": "A", "TRADING_SIGNAL": 1},
            {"TOKEN_NAME": "B", "TRADING_SIGNAL": 0},
            {"TOKEN_NAME": "C", "TRADING_SIGNAL": -1},
        ]
        opportunities = best_opportunities(data)
        assert opportunities["total_opportunities"] == 2
        assert opportunities["opportunity_quality"] == "Moderate"
        assert {o["signal_type"] for o in opportunities["top_opportunities"]} == {"BULLISH", "BEARISH"}

    def test_quality_fresh_and_complete(self):
        data = [
            {"TRADING_SIGNAL": 1, "ENTRY_PRICE": 1, "TARGET_PRICE": 2, "AI_CONFIDENCE": 80, "DATE": "2024-05-10"},
            {"TRADING_SIGNAL": -1, "ENTRY_PRICE": 3, "TARGET_PRICE": 2, "AI_CONFIDENCE": 60, "DATE": "2024-05-09"},
        ]
        quality = signal_quality(data, now=datetime(2024, 5, 11))
        assert quality["completeness_score"] == 100.0
        assert quality["freshness_assessment"] == "Fresh"
        assert quality["quality_rating"] == "Excellent"

    def test_quality_stale_and_sparse(self):
        quality = signal_quality([{"TRADING_SIGNAL": 1, "DATE": "2024-01-01"}], now=datetime(2024, 5, 11))
        assert quality["freshness_assessment"] == "Stale"
        assert quality["quality_rating"] == "Poor"

    def test_empty_analysis(self):
        assert analyze_trading_signals([])["active_opportunities"] == 0


class TestHourlySignals:
    def test_quality_score(self):
        full = {"AI_CONFIDENCE": 0.9, "TARGET_PRICE": 2, "STOP_LOSS": 1, "REASONING": "breakout"}
        assert hourly_quality_score([full]) == (100.0, "Excellent")
        assert hourly_quality_score([{"TRADING_SIGNAL": 1}]) == (0.0, "Poor")
        assert hourly_quality_score([full, {}]) == (50.0, "Fair")

    def test_trend_and_hour_buckets(self):
        data = [
            {"TOKEN_SYMBOL": "BTC", "TRADING_SIGNAL": -1, "TIMESTAMP": "2024-05-10T01:00:00Z"},
            {"TOKEN_SYMBOL": "BTC", "TRADING_SIGNAL": 1, "TIMESTAMP": "2024-05-10T02:00:00Z", "AI_CONFIDENCE": 0.9},
            {"TOKEN_SYMBOL": "ETH", "TRADING_SIGNAL": 1, "TIMESTAMP": "2024-05-10T02:30:00Z", "AI_CONFIDENCE": 0.5},
        ]
        analysis = analyze_hourly_trading_signals(data)
        assert analysis["by_hour"] == {1: {"bearish": 1}, 2: {"bullish": 2}}
        assert analysis["by_token"]["BTC"] == {"bearish": 1, "bullish": 1}
        assert analysis["trend_direction"] == "Stable"
        assert analysis["high_confidence_signals"] == 1

    def test_empty(self):
        assert analyze_hourly_trading_signals([])["total_signals"] == 0


class TestResistanceSupport:
    def test_main_token_selection(self):
        data = [
            {"TOKEN_ID": 1, "TOKEN_NAME": "Wrapped Bitcoin"},
            {"TOKEN_ID": 2, "TOKEN_NAME": "Bitcoin"},
            {"TOKEN_ID": 3, "TOKEN_NAME": "Bitcoin Peg"},
        ]
        assert select_main_token(data)["TOKEN_ID"] == 2
        assert select_main_token(data, {"token_id": 3})["TOKEN_ID"] == 3
        assert select_main_token([]) is None

    def test_classify_levels(self):
        reference, levels = classify_levels(LEVELS, now=datetime(2024, 6, 11))
        assert reference == 100
        by_price = {lv["price"]: lv for lv in levels}
        assert by_price[120]["type"] == "RESISTANCE"
        assert by_price[80]["type"] == "SUPPORT"
        assert by_price[100]["strength"] == 99
        assert by_price[120]["strength"] == 62
        # old level far above the reference keeps the floor plus the distance bonus
        assert by_price[300]["strength"] == 40

    def test_reference_falls_back_to_median(self):
        reference, _ = classify_levels([
            {"level": 10, "date": "2020-01-01"},
            {"level": 30, "date": "2020-02-01"},
            {"level": 20, "date": "2020-03-01"},
        ])
        assert reference == 20

    def test_analysis(self):
        data = [{"TOKEN_ID": 3375, "TOKEN_NAME": "Bitcoin", "TOKEN_SYMBOL": "BTC", "HISTORICAL_RESISTANCE_SUPPORT_LEVELS": LEVELS}]
        analysis = analyze_resistance_support(data)
        assert analysis["reference_price"] == 100
        assert analysis["nearest_resistance"]["price"] == 120
        assert analysis["nearest_support"]["price"] == 100
        assert analysis["risk_reward_ratio"] == 1.0
        assert analysis["level_breakdown"] == {"resistance_levels": 2, "support_levels": 2, "total_levels": 4}

    def test_no_levels(self):
        assert analyze_resistance_support([])["levels"] == []


class TestMoonshots:
    def test_trend_labels(self):
        assert moonshot_trend(75, 6) == "Strongly Bullish"
        assert moonshot_trend(65, 1) == "Bullish"
        assert moonshot_trend(30, -10) == "Bearish"
        assert moonshot_trend(50, 1) == "Cautiously Optimistic"
        assert moonshot_trend(50, -1) == "Neutral"

    def test_analysis(self):
        data = [
            {"TOKEN_NAME": "Alpha", "TM_TRADER_GRADE": 80, "PRICE_CHANGE_PERCENTAGE_7D_IN_CURRENCY": 10},
            {"TOKEN_NAME": "Beta", "TM_TRADER_GRADE": 60, "PRICE_CHANGE_PERCENTAGE_7D_IN_CURRENCY": -2},
        ]
        analysis = analyze_moonshot_tokens(data)
        assert analysis["grade_analysis"]["average_grade"] == 70
        assert analysis["grade_analysis"]["grade_quality"] == "High"
        assert analysis["market_trend"] == "Bullish"
        assert analysis["recommendation_strength"] == "High"
        assert analysis["success_probability"] == "Good (55-70%)"
        assert [c["token"] for c in analysis["breakout_candidates"]] == ["Alpha"]

    def test_empty(self):
        assert analyze_moonshot_tokens([])["total_tokens"] == 0


class TestHandlers:
    def test_resistance_support(self, runtime, tm_api):
        tm_api.routes["/v2/resistance-support"] = {
            "success": True,
            "data": [{"TOKEN_ID": 3375, "TOKEN_NAME": "Bitcoin", "TOKEN_SYMBOL": "BTC", "HISTORICAL_RESISTANCE_SUPPORT_LEVELS": LEVELS}],
        }
        result = asyncio.run(GET_RESISTANCE_SUPPORT.handler(runtime, "support levels", options={"token_id": 3375}))
        assert result.success
        assert "Resistance & Support" in result.text
        assert tm_api.call_args.kwargs["params"] == {"token_id": 3375, "limit": 10, "page": 1}

    def test_resistance_support_needs_a_token(self, runtime, tm_api):
        result = asyncio.run(GET_RESISTANCE_SUPPORT.handler(runtime, "show me support levels"))
        assert not result.success
        assert result.content["error_type"] == "validation_error"

    def test_moonshot_defaults(self, runtime, tm_api):
        tm_api.routes["/v2/moonshot-tokens"] = {
            "success": True,
            "data": [{"TOKEN_NAME": "Alpha", "TM_TRADER_GRADE": 82, "PRICE_CHANGE_PERCENTAGE_7D_IN_CURRENCY": 12}],
        }
        result = asyncio.run(GET_MOONSHOT_TOKENS.handler(runtime, "moonshots"))
        assert result.success
        assert "Alpha" in result.text
        assert tm_api.call_args.kwargs["params"] == {"type": "active", "limit": 20, "page": 1}

    def test_moonshot_rate_limit_is_an_api_error(self, runtime, tm_api, api_response):
        tm_api.routes["/v2/moonshot-tokens"] = api_response(None, status=429, reason="Too Many Requests")
        result = asyncio.run(GET_MOONSHOT_TOKENS.handler(runtime, "moonshots"))
        assert not result.success
        assert result.content["error_type"] == "api_error"
        assert "rate limit" in result.error
