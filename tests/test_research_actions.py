"""Tests for research actions: quantmetrics, correlation, scenarios, sentiment, reports, investors and TMAI."""

import asyncio

import pytest
import requests

from research_actions import (
    GET_SENTIMENT,
    GET_TMAI,
    analyze_ai_reports,
    analyze_correlation,
    analyze_crypto_investors,
    analyze_quantmetrics,
    analyze_scenario_analysis,
    analyze_sentiment,
    analyze_tmai,
    extract_markdown_section,
    influence_score,
    performance_assessment,
    sentiment_mood,
    sentiment_trend,
    source_agreement,
    tmai_records,
    volatility_risk_level,
)


class TestQuantmetrics:
    @pytest.mark.parametrize("volatility, level", [
        (85, "Very High"), (65, "High"), (45, "Moderate"), (25, "Low-Moderate"), (10, "Low"),
    ])
    def test_volatility_levels(self, volatility, level):
        assert volatility_risk_level(volatility) == level

    def test_performance_assessment(self):
        assert performance_assessment(2.0, 30) == "Excellent"
        assert performance_assessment(2.0, 10) == "Good"
        assert performance_assessment(0.7, 0) == "Fair"
        assert performance_assessment(-0.2, 0) == "Poor"

    def test_analysis(self):
        data = [
            {"TOKEN_NAME": "Bitcoin", "TOKEN_SYMBOL": "BTC", "VOLATILITY": 50, "MAX_DRAWDOWN": -70, "SHARPE": 1.2, "CAGR": 40},
            {"TOKEN_NAME": "Pepe", "TOKEN_SYMBOL": "PEPE", "VOLATILITY": 120, "MAX_DRAWDOWN": -90, "SHARPE": 0.4, "CAGR": 10},
        ]
        analysis = analyze_quantmetrics(data)
        risk = analysis["risk_analysis"]
        assert risk["overall_risk_level"] == "Very High"
        assert risk["average_max_drawdown"] == 80.0
        assert risk["risk_distribution"] == {"high_risk": 1, "moderate_risk": 1, "low_risk": 0}
        assert analysis["return_analysis"]["performance"] == "Fair"
        assert analysis["rankings"]["best_sharpe"][0]["token"] == "Bitcoin (BTC)"
        assert analysis["rankings"]["lowest_volatility"][0]["volatility"] == 50

    def test_risk_only_skips_returns(self):
        analysis = analyze_quantmetrics([{"VOLATILITY": 30}], {"analysisType": "risk"})
        assert "return_analysis" not in analysis
        assert analysis["risk_analysis"]["overall_risk_level"] == "Low-Moderate"


class TestCorrelation:
    DATA = [{
        "TOKEN_NAME": "Bitcoin",
        "TOKEN_SYMBOL": "BTC",
        "TOP_CORRELATION": [
            {"token": "ETH", "correlation": 0.9},
            {"token": "USDT", "correlation": -0.3},
            {"token": "DOGE", "correlation": 0.1},
        ],
    }]

    def test_nested_pairs(self):
        analysis = analyze_correlation(self.DATA)
        assert analysis["total_relationships"] == 3
        assert analysis["distribution"]["very_high_positive"] == 1
        assert analysis["distribution"]["moderate_negative"] == 1
        assert analysis["distribution"]["weak"] == 1
        assert analysis["diversification_quality"] == "Moderate"
        assert analysis["concentration_risk"] == "High"
        assert [p["token"] for p in analysis["best_diversifiers"]] == ["USDT", "DOGE"]
        assert [p["token"] for p in analysis["hedging_assets"]] == ["USDT"]
        assert analysis["market_regime"] == "Mixed Correlation Regime"

    def test_flat_rows_and_empty(self):
        analysis = analyze_correlation([{"TOKEN_NAME": "X", "CORRELATION": 0.95}, {"TOKEN_NAME": "Y", "CORRELATION": 0.85}])
        assert analysis["market_regime"] == "High Correlation Regime"
        assert analyze_correlation([{"TOKEN_NAME": "X"}])["total_relationships"] == 0


class TestScenarioAnalysis:
    def test_typed_scenarios(self):
        data = [
            {"TOKEN_NAME": "Solana", "SCENARIO_TYPE": "base", "PREDICTED_PRICE": 100, "PROBABILITY": 0.5},
            {"TOKEN_NAME": "Solana", "SCENARIO_TYPE": "bull", "PREDICTED_PRICE": 160, "PROBABILITY": 0.25},
            {"TOKEN_NAME": "Solana", "SCENARIO_TYPE": "bear", "PREDICTED_PRICE": 60, "PROBABILITY": 0.25},
        ]
        analysis = analyze_scenario_analysis(data)
        assert analysis["current_price_estimate"] == 100
        assert analysis["scenario_breakdown"] == {"base": 1, "bull": 1, "bear": 1}
        assert analysis["risk_assessment"]["overall_risk_level"] == "Moderate"
        assert analysis["risk_assessment"]["max_potential_drawdown"] == 40.0
        assert analysis["opportunity_analysis"]["upside_potential"] == "Moderate"
        assert analysis["probability_weighted_price"] == pytest.approx(105.0)

    def test_untyped_scenarios_are_categorised(self):
        data = [{"PREDICTED_PRICE": p} for p in (100, 160, 60)]
        analysis = analyze_scenario_analysis(data, {"analysisType": "upside_potential"})
        assert analysis["scenario_breakdown"] == {"base": 1, "bullish": 1, "bearish": 1}
        assert "risk_assessment" not in analysis

    def test_no_prices(self):
        assert analyze_scenario_analysis([{"PREDICTED_PRICE": 0}])["total_scenarios"] == 0


class TestSentiment:
    @pytest.mark.parametrize("score, mood", [
        (65, "Very Bullish"), (45, "Bullish"), (25, "Moderately Bullish"), (0, "Neutral"),
        (-30, "Moderately Bearish"), (-50, "Bearish"), (-80, "Very Bearish"),
    ])
    def test_mood(self, score, mood):
        assert sentiment_mood(score) == mood

    def test_source_agreement(self):
        assert source_agreement([10]) == "Insufficient data"
        assert source_agreement([10, 20]) == "High"
        assert source_agreement([10, 60]) == "Low"

    def test_trend(self):
        assert sentiment_trend([1, 2, 3])["trend_direction"] == "Insufficient data"
        rising = [0.0] * 24 + [20.0] * 24
        trend = sentiment_trend(rising)
        assert trend["trend_direction"] == "Strongly Improving"
        assert trend["momentum"] == "Neutral"

    def test_analysis_with_contrarian_signal(self):
        data = [
            {"DATE": "2024-05-02", "SENTIMENT_SCORE": 75, "TWITTER_SENTIMENT": 80, "REDDIT_SENTIMENT": 70, "NEWS_SENTIMENT": 50},
            {"DATE": "2024-05-01", "SENTIMENT_SCORE": 10},
        ]
        analysis = analyze_sentiment(data)
        assert analysis["overall_score"] == 75
        assert analysis["overall_mood"] == "Very Bullish"
        assert analysis["source_agreement"] == "Moderate"
        assert analysis["most_bullish_source"] == "Twitter/X"
        assert analysis["most_bearish_source"] == "News"
        assert analysis["extremes"] == {"highest": 75, "lowest": 10, "extreme_periods": 1}
        assert "pullbacks" in analysis["contrarian_signals"][0]

    def test_zero_source_score_counts(self):
        analysis = analyze_sentiment([{"DATE": "2024-05-01", "SENTIMENT_SCORE": 5, "TWITTER_SENTIMENT": 10, "REDDIT_SENTIMENT": 0}])
        assert analysis["source_agreement"] == "High"
        assert analysis["most_bullish_source"] == "Twitter/X"
        assert analysis["most_bearish_source"] == "Reddit"
        assert analysis["sources"]["Reddit"] == {"score": 0.0, "mood": "Neutral"}


class TestAiReports:
    REPORT = (
        "## Executive Summary\nSolid layer one with growing usage.\n"
        "## Risks\nCompetition.\n"
        "## Conclusion\nLong-term accumulate."
    )

    def test_markdown_section(self):
        assert extract_markdown_section(self.REPORT, "## Executive Summary") == "Solid layer one with growing usage."
        assert extract_markdown_section(self.REPORT, "## Missing") is None
        assert extract_markdown_section(self.REPORT, "## Conclusion", length=4) == "Long..."

    def test_analysis(self):
        data = [{
            "TOKEN_NAME": "Cardano",
            "TOKEN_SYMBOL": "ADA",
            "INVESTMENT_ANALYSIS": self.REPORT,
            "INVESTMENT_ANALYSIS_POINTER": "- Strong community\n- Slow shipping",
        }]
        analysis = analyze_ai_reports(data, {"analysisType": "investment"})
        assert analysis["report_type_counts"]["investment_analysis"] == 1
        assert analysis["report_type_counts"]["deep_dive"] == 0
        assert analysis["completeness"] == "Limited"
        highlights = analysis["highlights"]["investment"]
        assert highlights[0] == "ADA Executive Summary: Solid layer one with growing usage."
        assert highlights[-1] == "ADA: Strong community"


class TestCryptoInvestors:
    DATA = [
        {"INVESTOR_NAME": "Alpha Capital", "ROI_AVERAGE": 0.6, "ROUND_COUNT": 12, "INVESTOR_WEBSITE": "https://alpha.example", "PERFORMANCE_CHANGE": 3},
        {"INVESTOR_NAME": "Beta Ventures", "ROI_AVERAGE": 0.1, "ROUND_COUNT": 0, "PERFORMANCE_CHANGE": -1},
    ]

    def test_influence_score(self):
        assert influence_score(self.DATA[0]) == 25.1
        assert influence_score({}) == 0

    def test_analysis(self):
        analysis = analyze_crypto_investors(self.DATA)
        assert analysis["performance"]["overall"] == "Good"
        assert analysis["performance"]["quality_tiers"]["high_performers"] == 1
        assert analysis["participation"]["level"] == "Moderate"
        assert analysis["participation"]["activity"] == "Very Active"
        assert analysis["sentiment"]["overall"] == "Neutral"
        assert analysis["top_performers"][0] == {"name": "Alpha Capital", "roi_average": 60.0, "rounds": 12}


class TestTmai:
    def test_records_from_any_shape(self):
        assert tmai_records({"data": [{"answer": "a"}]}) == [{"answer": "a"}]
        assert tmai_records({"answer": "b"}) == [{"answer": "b"}]
        assert tmai_records("plain text") == [{"answer": "plain text"}]
        assert tmai_records(None) == []

    def test_analysis(self):
        analysis = analyze_tmai([{"response": {"text": "Looks strong."}, "CONFIDENCE": 0.9}], {"question": "BTC outlook?"})
        assert analysis["answer"] == "Looks strong."
        assert analysis["confidence"]["overall"] == "High"
        assert analysis["completeness"] == "Partial"


class TestHandlers:
    def test_tmai_posts_question(self, runtime, tm_api):
        tm_api.routes["/v2/tmai"] = {"answer": "Bitcoin's outlook is constructive."}
        result = asyncio.run(GET_TMAI.handler(runtime, "What is the outlook for Bitcoin?"))
        assert result.success
        assert "constructive" in result.text
        call = tm_api.call_args
        assert call.args[0] == "POST"
        assert call.kwargs["json"] == {"messages": [{"user": "What is the outlook for Bitcoin?"}]}
        assert call.kwargs["params"] is None

    def test_tmai_without_question(self, runtime, tm_api):
        result = asyncio.run(GET_TMAI.handler(runtime, "   "))
        assert not result.success
        assert result.content["error_type"] == "validation_error"
        tm_api.assert_not_called()

    def test_sentiment_network_error(self, runtime, tm_api):
        tm_api.side_effect = requests.ConnectionError("connection refused")
        result = asyncio.run(GET_SENTIMENT.handler(runtime, "market sentiment"))
        assert not result.success
        assert result.content["error_type"] == "network_error"
