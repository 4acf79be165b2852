"""Tests for market data and OHLCV actions."""

import asyncio

import pandas as pd
import pytest

from agent_config import AnalysisThresholds
from market_actions import (
    GET_PRICE,
    GET_TOP_MARKET_CAP,
    analyze_market_metrics,
    analyze_price_data,
    analyze_tokens,
    analyze_top_market_cap,
    dominance_level,
    format_price_response,
    market_structure,
)
from ohlcv_actions import (
    GET_DAILY_OHLCV,
    analyze_daily_ohlcv,
    analyze_hourly_ohlcv,
    compute_rsi,
    volume_consistency,
)

BITCOIN = {"TOKEN_ID": 3375, "TOKEN_NAME": "Bitcoin", "TOKEN_SYMBOL": "BTC"}


def hourly_candles(n=24):
    return [
        {
            "TIMESTAMP": f"2024-05-01T{i:02d}:00:00Z",
            "OPEN": 100 + i, "CLOSE": 101 + i, "HIGH": 102 + i, "LOW": 99 + i,
            "VOLUME": 1000 + i * 10,
        }
        for i in range(n)
    ]


def daily_candles(n=60):
    dates = pd.date_range("2024-01-01", periods=n, freq="D")
    return [
        {
            "DATE": d.strftime("%Y-%m-%d"),
            "OPEN": 100 + 5 * i - 1, "CLOSE": 100 + 5 * i, "HIGH": 102 + 5 * i, "LOW": 98 + 5 * i,
            "VOLUME": 5000,
        }
        for i, d in enumerate(dates)
    ]


class TestTokensAndTopMarketCap:
    def test_tokens_breakdown(self):
        data = [
            {"TOKEN_NAME": "Aave", "CATEGORY_LIST": [{"category_name": "DeFi"}], "EXCHANGE_LIST": "binance, coinbase"},
            {"TOKEN_NAME": "Uniswap", "CATEGORY_LIST": [{"category_name": "DeFi"}], "EXCHANGE_LIST": "binance"},
        ]
        analysis = analyze_tokens(data)
        assert analysis["total_tokens"] == 2
        assert analysis["categories"] == {"DeFi": 2}
        assert analysis["exchanges"]["binance"] == 2

    @pytest.mark.parametrize("share, level", [(55, "Extremely High"), (45, "Very High"), (35, "High"), (25, "Moderate"), (10, "Low")])
    def test_dominance_levels(self, share, level):
        assert dominance_level(share) == level

    def test_market_structure_levels(self):
        assert market_structure(150) == "Highly Tiered"
        assert market_structure(100) == "Well Stratified"
        assert market_structure(10) == "Closely Competitive"

    def test_concentration(self):
        caps = [600, 200, 100, 50, 50]
        data = [{"TOKEN_NAME": f"T{i}", "MARKET_CAP": cap, "CATEGORY": "L1"} for i, cap in enumerate(caps)]
        analysis = analyze_top_market_cap(data)
        assert analysis["top_1_dominance"] == 60.0
        assert analysis["dominance_level"] == "Extremely High"
        assert analysis["top_5_concentration"] == 100.0
        assert analysis["market_structure"] == "Well Stratified"
        assert analysis["overall_risk_level"] == "High Concentration"
        assert analysis["sector_diversification_score"] == 0

    def test_empty(self):
        assert analyze_top_market_cap([])["dominance_level"] == "Unknown"


class TestPriceAnalysis:
    def test_trend_sentiment_and_cap_tiers(self):
        data = [
            {"TOKEN_NAME": "A", "PRICE_24H_CHANGE_PERCENT": 10, "MARKET_CAP": 20e9},
            {"TOKEN_NAME": "B", "PRICE_24H_CHANGE_PERCENT": 6, "MARKET_CAP": 5e9},
            {"TOKEN_NAME": "C", "PRICE_24H_CHANGE_PERCENT": 3, "MARKET_CAP": 1e9},
            {"TOKEN_NAME": "D", "PRICE_24H_CHANGE_PERCENT": -1},
        ]
        analysis = analyze_price_data(data, {}, AnalysisThresholds())
        assert analysis["market_overview"]["market_trend"] == "Bullish"
        assert analysis["market_conditions"]["overall_sentiment"] == "Bullish"
        assert analysis["market_conditions"]["momentum"] == "Strong"
        assert analysis["performance_analysis"]["top_performers"][0]["name"] == "A"
        assert analysis["market_cap_analysis"]["large_cap_tokens"] == 1
        assert analysis["market_cap_analysis"]["mid_cap_tokens"] == 1
        assert analysis["market_cap_analysis"]["small_cap_tokens"] == 1

    def test_custom_thresholds(self):
        data = [{"TOKEN_NAME": "A", "PRICE_24H_CHANGE_PERCENT": 1, "MARKET_CAP": 5e9}]
        analysis = analyze_price_data(data, {}, AnalysisThresholds(large_cap=4e9))
        assert analysis["market_cap_analysis"]["large_cap_tokens"] == 1

    def test_single_token_response(self):
        row = {"TOKEN_NAME": "Bitcoin", "TOKEN_SYMBOL": "BTC", "PRICE": 65000, "PRICE_24H_CHANGE_PERCENT": 2.5}
        text = format_price_response([row], analyze_price_data([row]), {})
        assert "Bitcoin (BTC) Price" in text
        assert "$65.00K" in text
        assert "+2.50%" in text


class TestMarketMetrics:
    def test_signal_history_and_cap_trend(self):
        signals = [1, 1, 1, -1, 1]
        rows = [
            {"DATE": f"2024-01-0{i + 1}", "LAST_TM_GRADE_SIGNAL": s, "TOTAL_CRYPTO_MCAP": 1e12 + i * 5e10}
            for i, s in enumerate(signals)
        ]
        analysis = analyze_market_metrics(list(reversed(rows)))
        assert analysis["current_sentiment"] == "Bullish"
        assert analysis["current_date"] == "2024-01-05"
        assert analysis["signal_distribution"]["signal_changes"] == 2
        assert analysis["trend_analysis"]["trend_direction"] == "Predominantly Bullish"
        assert analysis["trend_analysis"]["volatility"] == "High"
        assert analysis["market_cap_trend"]["trend"] == "Strong Growth"


class TestOhlcv:
    def test_hourly_uptrend_with_rising_volume(self):
        analysis = analyze_hourly_ohlcv(list(reversed(hourly_candles())))
        assert analysis["data_points"] == 24
        assert analysis["price_movement"]["change_percent"] == 24.0
        assert analysis["trend_analysis"]["direction"] == "Uptrend"
        assert analysis["volume_analysis"]["volume_trend"] == "Increasing"
        assert analysis["trading_signal"]["type"] == "BUY"
        assert analysis["risk_level"] == "High"

    def test_hourly_needs_two_candles(self):
        assert analyze_hourly_ohlcv(hourly_candles(1))["data_points"] == 1

    def test_daily_indicators_and_trend(self):
        analysis = analyze_daily_ohlcv(daily_candles())
        indicators = analysis["technical_indicators"]
        assert indicators["moving_averages"]["price_vs_sma20"] == "Above"
        assert indicators["momentum_indicators"]["rsi_signal"] == "Overbought"
        assert indicators["technical_bias"] == "Bullish"
        assert analysis["trend_analysis"]["primary_trend"] == "Strong Uptrend"
        assert "support_resistance" in analysis

    def test_daily_analysis_type_limits_sections(self):
        analysis = analyze_daily_ohlcv(daily_candles(), {"analysisType": "trend_analysis"})
        assert "trend_analysis" in analysis
        assert "technical_indicators" not in analysis

    def test_rsi_flat_series(self):
        assert compute_rsi(pd.Series([10.0] * 20)) == 50.0

    def test_volume_consistency(self):
        assert volume_consistency(pd.Series([100, 100, 100])) == "Consistent"
        assert volume_consistency(pd.Series([1, 1, 1, 100])) == "Highly Variable"
        assert volume_consistency(pd.Series([0, 0])) == "Unknown"


class TestHandlers:
    """End-to-end handler runs against a mocked API."""

    def test_price_resolves_token_then_fetches(self, runtime, tm_api):
        tm_api.routes["/v2/tokens"] = {"success": True, "data": [BITCOIN]}
        tm_api.routes["/v2/price"] = {"success": True, "data": [{**BITCOIN, "PRICE": 65000}]}

        result = asyncio.run(GET_PRICE.handler(runtime, {"text": "What's the price of Bitcoin?"}))

        assert result.success
        assert "$65.00K" in result.text
        assert result.content["price_data"][0]["PRICE"] == 65000
        assert result.content["metadata"]["resolved_token"]["token_id"] == 3375
        assert tm_api.call_args.kwargs["params"] == {"token_id": 3375}

    def test_price_without_token_is_a_validation_error(self, runtime, tm_api):
        result = asyncio.run(GET_PRICE.handler(runtime, "What's the price?"))
        assert not result.success
        assert result.content["error_type"] == "validation_error"
        tm_api.assert_not_called()

    def test_invalid_key_error_path(self, runtime, tm_api, api_response):
        tm_api.routes["/v2/top-market-cap-tokens"] = api_response(None, status=401)
        callback_payloads = []

        result = asyncio.run(GET_TOP_MARKET_CAP.handler(runtime, "top 10 coins", callback=callback_payloads.append))

        assert not result.success
        assert result.content["error_type"] == "invalid_api_key"
        assert "I encountered an error while fetching top market cap tokens" in result.text
        assert callback_payloads[0]["content"]["success"] is False

    def test_options_override_extraction(self, runtime, tm_api):
        tm_api.routes["/v2/daily-ohlcv"] = {"data": daily_candles(30)}
        result = asyncio.run(GET_DAILY_OHLCV.handler(runtime, "daily chart", options={"token_id": 3306, "limit": 30}))
        assert result.success
        assert tm_api.call_args.kwargs["params"] == {"token_id": 3306, "limit": 30, "page": 1}
        assert result.content["metadata"]["pagination"] == {"limit": 30, "page": 1}

    @pytest.mark.parametrize("options", [{"token_id": 3306, "limit": 0}, {"token_id": "abc"}, {"token_id": 3306, "startDate": "yesterday"}])
    def test_invalid_options_are_rejected(self, runtime, tm_api, options):
        result = asyncio.run(GET_DAILY_OHLCV.handler(runtime, "daily chart", options=options))
        assert not result.success
        assert result.content["error_type"] == "validation_error"
        assert "Invalid option(s)" in result.error
        tm_api.assert_not_called()

    def test_options_are_coerced_by_schema(self, runtime, tm_api):
        tm_api.routes["/v2/daily-ohlcv"] = {"data": daily_candles(30)}
        result = asyncio.run(GET_DAILY_OHLCV.handler(runtime, "daily chart", options={"token_id": "3306"}))
        assert result.success
        assert tm_api.call_args.kwargs["params"]["token_id"] == 3306
