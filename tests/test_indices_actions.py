"""Tests for index actions: overview, holdings and performance history."""

import asyncio

import pandas as pd
import pytest

from indices_actions import (
    GET_INDICES,
    GET_INDICES_HOLDINGS,
    GET_INDICES_PERFORMANCE,
    analyze_indices,
    analyze_indices_holdings,
    analyze_indices_performance,
    concentration_level,
    herfindahl_index,
    historical_var,
    index_diversification,
    max_drawdown,
    performance_trend,
)

INDICES = [
    {"ID": 1, "NAME": "Blue Chips", "ALL_TIME": 120, "1M": 4, "INDEX_GRADE": 80, "COINS": 25},
    {"ID": 2, "NAME": "DeFi", "ALL_TIME": 30, "1M": 9, "INDEX_GRADE": 50, "COINS": 12},
    {"ID": 3, "NAME": "Memes", "ALL_TIME": -20, "1M": -6, "INDEX_GRADE": 20, "COINS": 5},
]

HOLDINGS = [
    {"TOKEN_NAME": "Bitcoin", "TOKEN_SYMBOL": "btc", "WEIGHT_PERCENTAGE": 50, "PRICE": 65000, "PRICE_CHANGE_PERCENTAGE_24H": 2, "MARKET_CAP": 20e9},
    {"TOKEN_NAME": "Solana", "TOKEN_SYMBOL": "SOL", "WEIGHT_PERCENTAGE": 30, "PRICE": 150, "PRICE_CHANGE_PERCENTAGE_24H": 20, "MARKET_CAP": 2e9},
    {"TOKEN_NAME": "Bonk", "TOKEN_SYMBOL": "BONK", "WEIGHT_PERCENTAGE": 20, "PRICE": 0.00002, "PRICE_CHANGE_PERCENTAGE_24H": -10, "MARKET_CAP": 1e8},
]

# deliberately out of order; analysis sorts by DATE
HISTORY = [
    {"DATE": "2024-01-03", "INDEX_CUMULATIVE_ROI": 5, "MARKET_CAP": 1e9},
    {"DATE": "2024-01-01", "INDEX_CUMULATIVE_ROI": 0, "MARKET_CAP": 8e8},
    {"DATE": "2024-01-04", "INDEX_CUMULATIVE_ROI": 15, "MARKET_CAP": 1.2e9, "VOLUME": 5e7, "FDV": 2e9},
    {"DATE": "2024-01-02", "INDEX_CUMULATIVE_ROI": 10, "MARKET_CAP": 9e8},
]


class TestIndices:
    def test_diversification_labels(self):
        assert index_diversification(21) == "Highly Diversified"
        assert index_diversification(10) == "Moderately Diversified"
        assert index_diversification(9) == "Focused"

    def test_overview(self):
        analysis = analyze_indices(INDICES)
        assert analysis["total_indices"] == 3
        assert analysis["performance"]["average_all_time_return"] == 43.33
        assert analysis["performance"]["top_performers"][0]["name"] == "Blue Chips"
        assert analysis["performance"]["best_recent"]["name"] == "DeFi"
        assert analysis["risk"] == {"average_grade": 50.0, "high_grade": 1, "medium_grade": 1, "low_grade": 1}
        assert analysis["diversification"]["distribution"] == {
            "Highly Diversified": 1, "Moderately Diversified": 1, "Focused": 1,
        }

    def test_analysis_type_limits_sections(self):
        analysis = analyze_indices(INDICES, {"analysisType": "risk"})
        assert "risk" in analysis
        assert "performance" not in analysis
        assert "diversification" not in analysis


class TestHoldings:
    def test_concentration_and_hhi(self):
        assert concentration_level(61) == "High"
        assert concentration_level(50) == "Medium"
        assert concentration_level(40) == "Low"
        assert herfindahl_index([100]) == 1.0
        assert herfindahl_index([25, 25, 25, 25]) == pytest.approx(0.25)
        assert herfindahl_index([]) == 0.0

    def test_analysis(self):
        analysis = analyze_indices_holdings(HOLDINGS)
        composition = analysis["composition"]
        assert composition["top_holdings"][0]["symbol"] == "BTC"
        assert composition["top3_concentration"] == 100
        assert composition["concentration_level"] == "High"
        assert composition["weight_buckets"]["major (>10%)"] == 3

        risk = analysis["risk"]
        assert risk["market_cap_tiers"] == {"large_cap": 1, "mid_cap": 1, "small_cap": 1}
        assert risk["volatile_holdings"] == 1
        assert risk["stable_holdings"] == 1
        assert risk["herfindahl_index"] == 0.38

        performance = analysis["performance"]
        assert performance["best_performer"]["name"] == "Solana"
        assert performance["worst_performer"]["name"] == "Bonk"
        assert performance["weighted_change_24h"] == 5.0
        assert (performance["gainers"], performance["losers"]) == (2, 1)

    def test_empty(self):
        assert analyze_indices_holdings([])["total_holdings"] == 0


class TestPerformance:
    def test_var_and_drawdown(self):
        assert historical_var(pd.Series(range(1, 41), dtype=float)) == 3.0
        assert historical_var(pd.Series([], dtype=float)) == 0.0
        assert max_drawdown(pd.Series([0, 20, 5, 30, 10], dtype=float)) == -20.0

    def test_trend_labels(self):
        assert [performance_trend(v) for v in (6, 1, -1, -6)] == [
            "Strong Uptrend", "Uptrend", "Downtrend", "Strong Downtrend",
        ]

    def test_analysis_sorts_by_date(self):
        analysis = analyze_indices_performance(HISTORY)
        assert analysis["period"] == {"start": "2024-01-01", "end": "2024-01-04"}
        returns = analysis["returns"]
        assert returns["total_return"] == 15
        assert returns["best_period"] == 10
        assert returns["worst_period"] == -5
        assert returns["win_rate"] == 66.7
        assert returns["recent_trend"] == "Strong Uptrend"

        risk = analysis["risk"]
        assert risk["max_drawdown"] == -5
        assert risk["var_5"] == -5
        assert risk["volatility"] == pytest.approx(7.0711)
        assert analysis["latest_metrics"] == {"market_cap": 1.2e9, "volume": 5e7, "fdv": 2e9}

    def test_missing_roi_column(self):
        assert analyze_indices_performance([{"DATE": "2024-01-01"}])["data_points"] == 0


class TestHandlers:
    def test_indices_overview(self, runtime, tm_api):
        tm_api.routes["/v2/indices"] = {"success": True, "data": INDICES}
        result = asyncio.run(GET_INDICES.handler(runtime, "show active indices", options={"indicesType": "active"}))
        assert result.success
        assert "TokenMetrics Indices" in result.text
        assert tm_api.call_args.kwargs["params"]["indicesType"] == "active"

    def test_holdings_need_an_index_id(self, runtime, tm_api):
        result = asyncio.run(GET_INDICES_HOLDINGS.handler(runtime, "what does the index hold?"))
        assert not result.success
        assert result.content["error_type"] == "validation_error"
        tm_api.assert_not_called()

    def test_holdings_send_id_param(self, runtime, tm_api):
        tm_api.routes["/v2/indices-holdings"] = {"success": True, "data": HOLDINGS}
        result = asyncio.run(GET_INDICES_HOLDINGS.handler(runtime, "holdings", options={"indexId": 7}))
        assert result.success
        assert "Index 7 Holdings" in result.text
        assert tm_api.call_args.kwargs["params"] == {"id": 7}

    def test_performance_id_from_message(self, runtime, tm_api):
        tm_api.routes["/v2/indices-performance"] = {"success": True, "data": HISTORY}
        result = asyncio.run(GET_INDICES_PERFORMANCE.handler(runtime, "performance of index 12"))
        assert result.success
        assert tm_api.call_args.kwargs["params"]["id"] == 12
        assert result.content["metadata"]["data_points"] == 4
