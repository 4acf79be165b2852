"""Tests for grade actions: trader, investor, TM grade, history and technology."""

import asyncio

import pytest

from grades_actions import (
    GET_INVESTOR_GRADES,
    GET_TM_GRADE,
    GET_TM_GRADE_HISTORY,
    analyze_investor_grades,
    analyze_technology_grade,
    analyze_tm_grade,
    analyze_tm_grade_history,
    analyze_trader_grades,
    field_trend,
    grade_label,
    trading_recommendation,
    variation_level,
)


class TestTraderGrades:
    @pytest.mark.parametrize("grade, change, action, risk", [
        (75, 1, "BUY", "Low"),
        (65, 1, "ACCUMULATE", "Medium"),
        (45, 3, "WATCH", "High"),
        (30, 0, "AVOID/SELL", "High"),
        (72, -6, "AVOID/SELL", "Low"),
        (55, 0, "HOLD", "Medium"),
    ])
    def test_recommendation(self, grade, change, action, risk):
        recommendation = trading_recommendation(grade, change)
        assert recommendation["action"] == action
        assert recommendation["risk_level"] == risk

    def test_grade_labels(self):
        assert [grade_label(g) for g in (85, 65, 45, 25, 5)] == ["Excellent", "Good", "Fair", "Poor", "Very Poor"]

    def test_analysis(self):
        data = [
            {"TOKEN_NAME": "Bitcoin", "TOKEN_SYMBOL": "BTC", "TM_TRADER_GRADE": 82, "TM_TRADER_GRADE_24H_PCT_CHANGE": 12},
            {"TOKEN_NAME": "Dogecoin", "TOKEN_SYMBOL": "DOGE", "TM_TRADER_GRADE": 30, "TM_TRADER_GRADE_24H_PCT_CHANGE": -3},
        ]
        analysis = analyze_trader_grades(data)
        assert analysis["average_grade"] == 56.0
        assert analysis["top_rated"][0]["name"] == "Bitcoin (BTC)"
        assert analysis["top_rated"][0]["trend"] == "Strong Upward"
        assert analysis["recommendation_distribution"] == {"BUY": 1, "AVOID/SELL": 1}


class TestInvestorGrades:
    def test_tiers_and_allocation(self):
        data = [
            {"TOKEN_NAME": "A", "INVESTOR_GRADE": 85, "CATEGORY": "Layer 1"},
            {"TOKEN_NAME": "B", "INVESTOR_GRADE": 82, "CATEGORY": "Layer 1"},
            {"TOKEN_NAME": "C", "INVESTOR_GRADE": 72, "CATEGORY": "DeFi"},
            {"TOKEN_NAME": "D", "INVESTOR_GRADE": 50, "CATEGORY": "Meme"},
            {"TOKEN_NAME": "E"},
        ]
        analysis = analyze_investor_grades(data)
        assert analysis["tiers"] == {
            "high_quality": 2,
            "investment_grade": 3,
            "speculative": 1,
            "high_quality_percentage": 50.0,
        }
        assert analysis["overall_quality"] == "Excellent"
        assert analysis["allocation_guidance"]["crypto_allocation_range"] == "10-20% of total portfolio"
        assert list(analysis["sector_averages"]) == ["Layer 1", "DeFi", "Meme"]
        assert analysis["top_opportunities"][0]["name"] == "A"

    def test_no_grades(self):
        assert analyze_investor_grades([{"TOKEN_NAME": "A"}])["overall_quality"] == "Unknown"


class TestTmGrade:
    ROW = {
        "TOKEN_NAME": "Bitcoin", "TOKEN_SYMBOL": "BTC", "TM_GRADE": 85, "FUNDAMENTAL_GRADE": 75,
        "TM_GRADE_SIGNAL": "BUY", "TM_GRADE_24h_PCT_CHANGE": 12, "MOMENTUM": "Bullish",
    }

    def test_current_grade(self):
        analysis = analyze_tm_grade([self.ROW])
        assert analysis["grade_class"] == "A"
        assert analysis["overall_assessment"] == "Excellent"
        assert analysis["signal_analysis"]["action_suggestion"] == "Consider opening long positions"
        assert analysis["momentum_analysis"]["strength"] == "Strong"

    def test_analysis_type_selects_sections(self):
        analysis = analyze_tm_grade([self.ROW], {"analysisType": "momentum"})
        assert "signal_analysis" not in analysis
        assert analysis["momentum_analysis"]["direction"] == "Positive"

    def test_unknown_signal(self):
        analysis = analyze_tm_grade([{**self.ROW, "TM_GRADE_SIGNAL": None}])
        assert analysis["signal_analysis"]["risk_level"] == "Unknown"


class TestTmGradeHistory:
    def test_variation_levels(self):
        assert variation_level([10, 10, 10]) == "low"
        assert variation_level([10, 13]) == "medium"
        assert variation_level([10, 20]) == "high"
        assert variation_level([5]) == "unknown"

    def test_field_trend_needs_two_points(self):
        assert field_trend([{"TM_GRADE": 50}], "TM_GRADE")["trend"] == "insufficient_data"

    def test_history(self):
        data = [
            {"TOKEN_NAME": "Ethereum", "DATE": "2024-01-01", "TM_GRADE": 50, "TM_GRADE_SIGNAL": "sell"},
            {"TOKEN_NAME": "Ethereum", "DATE": "2024-01-03", "TM_GRADE": 60, "TM_GRADE_SIGNAL": "buy"},
            {"TOKEN_NAME": "Ethereum", "DATE": "2024-01-02", "TM_GRADE": 55, "TM_GRADE_SIGNAL": "buy"},
        ]
        analysis = analyze_tm_grade_history(data)
        tm = analysis["trend_analysis"]["tm_grade"]
        assert tm["trend"] == "improving"
        assert tm["change_percent"] == 20.0
        assert analysis["date_range"] == {"from": "2024-01-01", "to": "2024-01-03"}
        assert analysis["signal_analysis"]["signal_changes"] == 1
        assert analysis["signal_analysis"]["dominant_signal"] == "buy"
        assert analysis["performance_metrics"]["consistency"] == "highly_consistent"


class TestTechnologyGrade:
    def test_scores_strengths_and_weaknesses(self):
        data = [{
            "TOKEN_NAME": "Cardano", "DATE": "2024-01-01", "TECHNOLOGY_GRADE": 65,
            "ACTIVITY_SCORE": 9, "REPOSITORY_SCORE": 5, "COLLABORATION_SCORE": 7, "DEFI_SCANNER_SCORE": 0,
        }]
        analysis = analyze_technology_grade(data)
        assert analysis["overall_assessment"]["classification"] == "Average (C)"
        assert analysis["strengths"] == ["Development Activity"]
        assert analysis["weaknesses"] == ["Repository Quality"]
        assert analysis["score_breakdown"]["security"] == {"status": "Not Available"}
        assert analysis["score_breakdown"]["defi_scanner"]["status"] == "Poor"
        assert len(analysis["recommendations"]) == 3
        assert analysis["history_trend"] is None

    def test_strong_project(self):
        data = [{"TOKEN_NAME": "X", "TECHNOLOGY_GRADE": 88, "SECURITY_SCORE": 9}]
        analysis = analyze_technology_grade(data)
        assert analysis["recommendations"] == ["Technology standards are strong across components"]


class TestHandlers:
    def test_tm_grade_single_object_response(self, runtime, tm_api):
        tm_api.routes["/v2/tm-grade"] = {"success": True, "data": TestTmGrade.ROW}
        result = asyncio.run(GET_TM_GRADE.handler(runtime, "tm grade", options={"token_id": 3375}))
        assert result.success
        assert "Bitcoin (BTC) TM Grade" in result.text
        assert result.content["tm_grade"] == [TestTmGrade.ROW]
        assert result.execution_time_ms >= 0

    def test_server_error_path(self, runtime, tm_api, api_response):
        tm_api.routes["/v2/tm-grade-history"] = api_response({"message": "upstream down"}, status=502)
        result = asyncio.run(GET_TM_GRADE_HISTORY.handler(runtime, "grade history", options={"token_id": 3306}))
        assert not result.success
        assert result.content["error_type"] == "api_error"
        assert "upstream down" in result.error

    def test_category_query_is_not_a_token_lookup(self, runtime, tm_api):
        tm_api.routes["/v2/tokens"] = {"success": True, "data": [{"TOKEN_ID": 999, "TOKEN_NAME": "DeFi Pulse Index", "TOKEN_SYMBOL": "DPI"}]}
        tm_api.routes["/v2/investor-grades"] = {"success": True, "data": [{"TOKEN_NAME": "Aave", "INVESTOR_GRADE": 80, "CATEGORY": "DeFi"}]}
        result = asyncio.run(GET_INVESTOR_GRADES.handler(runtime, "Show investor grades for defi tokens"))
        assert result.success
        params = tm_api.call_args.kwargs["params"]
        assert params["category"] == "defi"
        assert "token_id" not in params
        assert "symbol" not in params
        assert not any(call.args[1].endswith("/v2/tokens") for call in tm_api.call_args_list)
