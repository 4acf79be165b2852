"""
grades_actions.py — TokenMetrics grade actions.

Implements:
  - GET_TRADER_GRADES     /v2/trader-grades       short-term trader grade and recommendation
  - GET_INVESTOR_GRADES   /v2/investor-grades     long-term quality tiers and allocation guidance
  - GET_TM_GRADE          /v2/tm-grade            current TM grade, signal and momentum
  - GET_TM_GRADE_HISTORY  /v2/tm-grade-history    grade trend, volatility and signal history
  - GET_TECHNOLOGY_GRADE  /v2/technology-grade    technology grade and component scores
"""

import logging
from collections import Counter
from datetime import datetime
from typing import Optional

import numpy as np

from action_base import Action, ActionCategory, EndpointCall, conversation_example, endpoint_handler
from config import TOKENMETRICS_ENDPOINTS, TOKENMETRICS_PAGE_LIMIT
from formatting import (
    bullet_lines,
    format_currency,
    format_percentage,
    join_sections,
    parse_timestamp,
    pick,
    safe_float,
    section,
    token_label,
)
from llm_extraction import (
    InvestorGradesRequest,
    TechnologyGradeRequest,
    TmGradeHistoryRequest,
    TmGradeRequest,
    TraderGradesRequest,
)

logger = logging.getLogger(__name__)

_GRADE_FILTER_PARAMS = (
    "token_id", "symbol", "startDate", "endDate", "category", "exchange",
    "marketcap", "fdv", "volume", "limit", "page",
)


def _newest_first(data: list) -> list:
    return sorted(data, key=lambda r: parse_timestamp(r.get("DATE")) or datetime.min, reverse=True)


# ─── Trader Grades ───────────────────────────────────────────────────────────

def grade_label(grade: float) -> str:
    if grade >= 80:
        return "Excellent"
    if grade >= 60:
        return "Good"
    if grade >= 40:
        return "Fair"
    if grade >= 20:
        return "Poor"
    return "Very Poor"


def grade_change_trend(change: float) -> str:
    if change > 10:
        return "Strong Upward"
    if change > 2:
        return "Upward"
    if change > -2:
        return "Sideways"
    if change > -10:
        return "Downward"
    return "Strong Downward"


def trading_recommendation(grade: float, change: float) -> dict:
    if grade >= 70 and change >= 0:
        action, reason = "BUY", "High trader grade with stable or rising momentum"
    elif grade >= 60 and change > 0:
        action, reason = "ACCUMULATE", "Good grade with an improving trend"
    elif grade >= 40 and change > 2:
        action, reason = "WATCH", "Fair grade that is improving quickly"
    elif grade < 40 or change < -5:
        action, reason = "AVOID/SELL", "Low grade or rapidly declining"
    else:
        action, reason = "HOLD", "Mixed signals, monitor closely"
    return {
        "action": action,
        "reasoning": reason,
        "risk_level": "High" if grade < 50 else "Medium" if grade < 70 else "Low",
        "time_horizon": "Short-term (days to weeks)",
    }


def analyze_trader_grades(data: list, request: Optional[dict] = None, thresholds=None) -> dict:
    """Grade labels, 24h change trend and a recommendation per token."""
    if not data:
        return {"summary": "No trader grades available", "tokens": []}

    tokens = []
    for row in data:
        grade = safe_float(row.get("TM_TRADER_GRADE"))
        change = safe_float(pick(row, "TM_TRADER_GRADE_24H_PCT_CHANGE", "TRADER_GRADE_24H_PERCENT_CHANGE"))
        tokens.append({
            "name": token_label(row),
            "date": row.get("DATE"),
            "trader_grade": round(grade, 2),
            "grade_label": grade_label(grade),
            "grade_change_24h": round(change, 2),
            "trend": grade_change_trend(change),
            "ta_grade": row.get("TA_GRADE"),
            "quant_grade": row.get("QUANT_GRADE") or row.get("QUANTITATIVE_GRADE"),
            "recommendation": trading_recommendation(grade, change),
        })

    grades = [t["trader_grade"] for t in tokens]
    ranked = sorted(tokens, key=lambda t: t["trader_grade"], reverse=True)
    actions = Counter(t["recommendation"]["action"] for t in tokens)
    return {
        "summary": f"Trader grades for {len(tokens)} records, average {np.mean(grades):.1f}/100",
        "average_grade": round(float(np.mean(grades)), 2),
        "grade_distribution": dict(Counter(t["grade_label"] for t in tokens)),
        "recommendation_distribution": dict(actions),
        "top_rated": ranked[:5],
        "tokens": tokens,
    }


def format_trader_grades_response(data: list, analysis: dict, request: dict) -> str:
    if not data:
        return "⚠️ No trader grades were returned for this request."
    lines = [
        f"**{t['name']}**: {t['trader_grade']}/100 ({t['grade_label']}) | 24h {format_percentage(t['grade_change_24h'])} "
        f"| {t['trend']} | **{t['recommendation']['action']}**"
        for t in analysis["top_rated"]
    ]
    return join_sections(
        "📈 **TokenMetrics Trader Grades**",
        section("Top Rated", bullet_lines(lines)),
        section("Overview", bullet_lines([
            f"Average trader grade: {analysis['average_grade']}/100",
            "Recommendations: " + ", ".join(f"{k} {v}" for k, v in analysis["recommendation_distribution"].items()),
        ])),
        "*Trader grades reflect short-term trading potential (days to weeks).*",
    )


# ─── Investor Grades ─────────────────────────────────────────────────────────

def investor_quality(high_quality_pct: float) -> str:
    if high_quality_pct > 40:
        return "Excellent"
    if high_quality_pct > 25:
        return "Good"
    if high_quality_pct > 15:
        return "Fair"
    return "Poor"


def allocation_guidance(high_quality_pct: float, average_grade: float) -> str:
    if high_quality_pct > 30 and average_grade > 75:
        return "15-25% of total portfolio"
    if high_quality_pct > 20 and average_grade > 70:
        return "10-20% of total portfolio"
    if high_quality_pct > 10 and average_grade > 65:
        return "5-15% of total portfolio"
    return "3-8% of total portfolio"


def analyze_investor_grades(data: list, request: Optional[dict] = None, thresholds=None) -> dict:
    """Quality tiers, sector averages and allocation guidance."""
    rows = [r for r in data if r.get("INVESTOR_GRADE") is not None]
    if not rows:
        return {"summary": "No investor grades available", "overall_quality": "Unknown"}

    grades = np.array([safe_float(r["INVESTOR_GRADE"]) for r in rows])
    high_quality = int((grades >= 80).sum())
    investment_grade = int((grades >= 70).sum())
    speculative = int((grades < 60).sum())
    high_pct = high_quality / len(grades) * 100
    average = float(grades.mean())

    sectors: dict[str, list] = {}
    for row in rows:
        sectors.setdefault(pick(row, "CATEGORY", default="Unknown"), []).append(safe_float(row["INVESTOR_GRADE"]))
    sector_averages = {
        sector: round(float(np.mean(values)), 1)
        for sector, values in sorted(sectors.items(), key=lambda item: np.mean(item[1]), reverse=True)
    }

    top = sorted(rows, key=lambda r: safe_float(r["INVESTOR_GRADE"]), reverse=True)[:5]
    return {
        "summary": f"{len(rows)} tokens graded, {high_quality} high quality (≥80)",
        "average_grade": round(average, 2),
        "median_grade": round(float(np.median(grades)), 2),
        "overall_quality": investor_quality(high_pct),
        "tiers": {
            "high_quality": high_quality,
            "investment_grade": investment_grade,
            "speculative": speculative,
            "high_quality_percentage": round(high_pct, 1),
        },
        "sector_averages": sector_averages,
        "top_opportunities": [
            {
                "name": token_label(r),
                "investor_grade": safe_float(r["INVESTOR_GRADE"]),
                "fundamental_grade": r.get("FUNDAMENTAL_GRADE"),
                "technology_grade": r.get("TECHNOLOGY_GRADE"),
                "market_cap": format_currency(r.get("MARKET_CAP")) if r.get("MARKET_CAP") else "N/A",
            }
            for r in top
        ],
        "allocation_guidance": {
            "crypto_allocation_range": allocation_guidance(high_pct, average),
            "position_sizing": "Weight positions by investor grade",
            "rebalancing_frequency": "Quarterly review, semi-annual rebalancing",
        },
    }


def format_investor_grades_response(data: list, analysis: dict, request: dict) -> str:
    if "tiers" not in analysis:
        return "⚠️ No investor grades were returned for this request."
    tiers = analysis["tiers"]
    return join_sections(
        "🏦 **TokenMetrics Investor Grades**",
        section("Top Opportunities", bullet_lines(
            f"**{t['name']}**: {t['investor_grade']:.1f}/100 | Market cap {t['market_cap']}"
            for t in analysis["top_opportunities"]
        )),
        section("Quality", bullet_lines([
            f"Overall quality: **{analysis['overall_quality']}** (average {analysis['average_grade']}/100)",
            f"High quality: {tiers['high_quality']} | Investment grade: {tiers['investment_grade']} | Speculative: {tiers['speculative']}",
        ])),
        section("Allocation", bullet_lines([
            f"Suggested crypto allocation: {analysis['allocation_guidance']['crypto_allocation_range']}",
            analysis["allocation_guidance"]["position_sizing"],
        ])),
    )


# ─── TM Grade ────────────────────────────────────────────────────────────────

def grade_class(grade: float) -> str:
    if grade >= 90:
        return "A+"
    if grade >= 80:
        return "A"
    if grade >= 70:
        return "B"
    if grade >= 60:
        return "C"
    if grade >= 50:
        return "D"
    return "F"


def overall_assessment(tm_grade: float, fundamental_grade: float) -> str:
    average = (tm_grade + fundamental_grade) / 2
    if average >= 80:
        return "Excellent"
    if average >= 70:
        return "Good"
    if average >= 60:
        return "Average"
    if average >= 50:
        return "Below Average"
    return "Poor"


SIGNAL_INTERPRETATION = {
    "buy": ("Strong buying opportunity identified", "Consider opening long positions", "Moderate"),
    "sell": ("Consider selling or taking profits", "Consider reducing exposure", "High"),
    "hold": ("Maintain current position", "Maintain current strategy", "Low"),
    "neutral": ("No clear directional bias", "Wait for clearer signals", "Medium"),
}


def interpret_signal(signal) -> dict:
    key = str(signal or "").strip().lower()
    interpretation, suggestion, risk = SIGNAL_INTERPRETATION.get(
        key, ("Signal interpretation unavailable", "Monitor for signal changes", "Unknown")
    )
    return {"signal": signal or "Unknown", "interpretation": interpretation, "action_suggestion": suggestion, "risk_level": risk}


def analyze_tm_grade(data: list, request: Optional[dict] = None, thresholds=None) -> dict:
    if not data:
        return {"summary": "No TM grade available"}
    row = data[0]
    tm_grade = safe_float(row.get("TM_GRADE"))
    fundamental = safe_float(row.get("FUNDAMENTAL_GRADE"))
    tm_change = safe_float(pick(row, "TM_GRADE_24h_PCT_CHANGE", "TM_GRADE_24H_PCT_CHANGE"))
    trader_change = safe_float(row.get("TM_TRADER_GRADE_24H_CHANGE"))
    analysis_type = (request or {}).get("analysisType") or "all"

    analysis = {
        "token": token_label(row),
        "analysis_type": analysis_type,
        "tm_grade": tm_grade,
        "grade_class": grade_class(tm_grade),
        "fundamental_grade": fundamental,
        "fundamental_class": row.get("FUNDAMENTAL_GRADE_CLASS") or "Unknown",
        "overall_assessment": overall_assessment(tm_grade, fundamental),
    }
    if analysis_type in ("signals", "current", "all"):
        analysis["signal_analysis"] = interpret_signal(row.get("TM_GRADE_SIGNAL"))
    if analysis_type in ("momentum", "current", "all"):
        analysis["momentum_analysis"] = {
            "status": row.get("MOMENTUM") or "Unknown",
            "change_24h": tm_change,
            "direction": "Positive" if tm_change > 0 else "Negative" if tm_change < 0 else "Flat",
            "strength": "Strong" if abs(tm_change) > 10 else "Moderate" if abs(tm_change) > 5 else "Weak",
            "trader_grade_trend": "Improving" if trader_change > 0 else "Declining" if trader_change < 0 else "Stable",
        }
    analysis["summary"] = f"{analysis['token']} TM grade {tm_grade:.1f} ({analysis['grade_class']}), {analysis['overall_assessment']}"
    return analysis


def format_tm_grade_response(data: list, analysis: dict, request: dict) -> str:
    if "tm_grade" not in analysis:
        return "⚠️ No TM grade was returned for this token."
    signal = analysis.get("signal_analysis")
    momentum = analysis.get("momentum_analysis")
    return join_sections(
        f"🎯 **{analysis['token']} TM Grade**",
        section("Grades", bullet_lines([
            f"TM Grade: **{analysis['tm_grade']:.1f}** ({analysis['grade_class']})",
            f"Fundamental Grade: {analysis['fundamental_grade']:.1f} ({analysis['fundamental_class']})",
            f"Overall: {analysis['overall_assessment']}",
        ])),
        section("Signal", bullet_lines([
            f"{signal['signal']}: {signal['interpretation']}",
            f"Suggestion: {signal['action_suggestion']} (risk {signal['risk_level']})",
        ])) if signal else "",
        section("Momentum", bullet_lines([
            f"{momentum['status']} | 24h {format_percentage(momentum['change_24h'])} ({momentum['strength']})",
        ])) if momentum else "",
    )


# ─── TM Grade History ────────────────────────────────────────────────────────

def variation_level(values: list) -> str:
    """Coefficient of variation in percent: >20 high, >10 medium."""
    if len(values) < 2:
        return "unknown"
    mean = float(np.mean(values))
    if mean == 0:
        return "unknown"
    cv = float(np.std(values)) / mean * 100
    if cv > 20:
        return "high"
    if cv > 10:
        return "medium"
    return "low"


def field_trend(rows: list, field: str) -> dict:
    """rows are newest first."""
    values = [safe_float(r.get(field), None) for r in rows]
    values = [v for v in values if v is not None]
    if len(values) < 2:
        return {"trend": "insufficient_data", "change": 0}
    latest, oldest = values[0], values[-1]
    change = latest - oldest
    change_pct = change / oldest * 100 if oldest else 0.0
    trend = "improving" if change_pct > 5 else "declining" if change_pct < -5 else "stable"
    return {
        "trend": trend,
        "change": round(change, 2),
        "change_percent": round(change_pct, 2),
        "latest_value": latest,
        "oldest_value": oldest,
        "volatility": variation_level(values),
        "min": min(values),
        "max": max(values),
        "average": round(float(np.mean(values)), 2),
    }


def analyze_tm_grade_history(data: list, request: Optional[dict] = None, thresholds=None) -> dict:
    if not data:
        return {"summary": "No TM grade history available", "data_points": 0}
    rows = _newest_first(data)
    signals = [r.get("TM_GRADE_SIGNAL") for r in rows if r.get("TM_GRADE_SIGNAL")]
    counts = Counter(signals)
    changes = sum(1 for newer, older in zip(signals, signals[1:]) if newer != older)
    tm_trend = field_trend(rows, "TM_GRADE")

    consistency = {"low": "highly_consistent", "medium": "moderately_consistent", "high": "inconsistent"}.get(
        tm_trend.get("volatility", ""), "insufficient_data"
    )
    return {
        "summary": f"TM grade is {tm_trend['trend']} over {len(rows)} data points",
        "token": token_label(rows[0]),
        "data_points": len(rows),
        "date_range": {"from": rows[-1].get("DATE"), "to": rows[0].get("DATE")},
        "trend_analysis": {
            "tm_grade": tm_trend,
            "fundamental_grade": field_trend(rows, "FUNDAMENTAL_GRADE"),
        },
        "signal_analysis": {
            "total_signals": len(signals),
            "distribution": dict(counts),
            "signal_changes": changes,
            "latest_signal": rows[0].get("TM_GRADE_SIGNAL"),
            "dominant_signal": counts.most_common(1)[0][0] if counts else "unknown",
        },
        "performance_metrics": {"consistency": consistency if len(rows) >= 3 else "insufficient_data"},
        "latest_snapshot": {
            "tm_grade": rows[0].get("TM_GRADE"),
            "fundamental_grade": rows[0].get("FUNDAMENTAL_GRADE"),
            "signal": rows[0].get("TM_GRADE_SIGNAL"),
            "momentum": rows[0].get("MOMENTUM"),
        },
    }


def format_tm_grade_history_response(data: list, analysis: dict, request: dict) -> str:
    if not analysis.get("data_points"):
        return "⚠️ No TM grade history was returned for this token."
    tm = analysis["trend_analysis"]["tm_grade"]
    signals = analysis["signal_analysis"]
    lines = [f"Trend: **{tm['trend']}**"]
    if "change_percent" in tm:
        lines += [
            f"{tm['oldest_value']:.1f} → {tm['latest_value']:.1f} ({format_percentage(tm['change_percent'])})",
            f"Range: {tm['min']:.1f} - {tm['max']:.1f}, volatility {tm['volatility']}",
        ]
    return join_sections(
        f"📜 **{analysis['token']} TM Grade History** ({analysis['date_range']['from']} → {analysis['date_range']['to']})",
        section("TM Grade", bullet_lines(lines)),
        section("Signals", bullet_lines([
            f"Latest: {signals['latest_signal']} | Dominant: {signals['dominant_signal']}",
            f"Signal changes: {signals['signal_changes']}",
        ])),
    )


# ─── Technology Grade ────────────────────────────────────────────────────────

def technology_class(grade: float) -> str:
    if grade >= 90:
        return "Exceptional (A+)"
    if grade >= 80:
        return "Excellent (A)"
    if grade >= 70:
        return "Good (B)"
    if grade >= 60:
        return "Average (C)"
    if grade >= 50:
        return "Below Average (D)"
    return "Poor (F)"


def technology_interpretation(grade: float) -> str:
    if grade >= 80:
        return "Strong technology foundation with active development"
    if grade >= 70:
        return "Solid technology implementation with good metrics"
    if grade >= 60:
        return "Adequate technology with room for improvement"
    if grade >= 50:
        return "Below average technology metrics"
    return "Weak technology implementation"


TECHNOLOGY_SCORES = {
    "activity": ("ACTIVITY_SCORE", "Development Activity"),
    "security": ("SECURITY_SCORE", "Security Analysis"),
    "repository": ("REPOSITORY_SCORE", "Repository Quality"),
    "collaboration": ("COLLABORATION_SCORE", "Team Collaboration"),
    "defi_scanner": ("DEFI_SCANNER_SCORE", "DeFi Security"),
}


def score_status(score: float) -> str:
    if score >= 8:
        return "Excellent"
    if score >= 7:
        return "Good"
    if score >= 6:
        return "Average"
    if score >= 5:
        return "Below Average"
    return "Poor"


def analyze_technology_grade(data: list, request: Optional[dict] = None, thresholds=None) -> dict:
    if not data:
        return {"summary": "No technology grade available"}
    rows = _newest_first(data)
    latest = rows[0]
    grade = safe_float(latest.get("TECHNOLOGY_GRADE"))

    scores = {}
    strengths, weaknesses = [], []
    for key, (field, label) in TECHNOLOGY_SCORES.items():
        score = safe_float(latest.get(field), None)
        if score is None:
            scores[key] = {"status": "Not Available"}
            continue
        scores[key] = {"score": score, "status": score_status(score)}
        if score >= 8:
            strengths.append(label)
        elif 0 < score < 6:
            weaknesses.append(label)

    recommendations = []
    if grade < 70:
        recommendations.append("Technology metrics trail strong projects; weigh this in long-term sizing")
    if scores["security"].get("status") == "Not Available":
        recommendations.append("No security analysis available; look for third-party audits")
    if weaknesses:
        recommendations.append(f"Watch weak areas: {', '.join(weaknesses)}")
    if not recommendations:
        recommendations.append("Technology standards are strong across components")

    history = field_trend(rows, "TECHNOLOGY_GRADE") if len(rows) > 1 else None
    return {
        "summary": f"{token_label(latest)} technology grade {grade:.1f}: {technology_class(grade)}",
        "token": token_label(latest),
        "overall_assessment": {
            "grade": grade,
            "classification": technology_class(grade),
            "interpretation": technology_interpretation(grade),
        },
        "score_breakdown": scores,
        "strengths": strengths,
        "weaknesses": weaknesses,
        "recommendations": recommendations,
        "history_trend": history,
        "data_points": len(rows),
        "latest_date": latest.get("DATE"),
    }


def format_technology_grade_response(data: list, analysis: dict, request: dict) -> str:
    if "overall_assessment" not in analysis:
        return "⚠️ No technology grade was returned for this token."
    overall = analysis["overall_assessment"]
    score_lines = [
        f"{TECHNOLOGY_SCORES[key][1]}: {value['score']:.1f} ({value['status']})" if "score" in value
        else f"{TECHNOLOGY_SCORES[key][1]}: not available"
        for key, value in analysis["score_breakdown"].items()
    ]
    return join_sections(
        f"🛠️ **{analysis['token']} Technology Grade**",
        f"Grade: **{overall['grade']:.1f}** - {overall['classification']}\n{overall['interpretation']}",
        section("Component Scores", bullet_lines(score_lines)),
        section("Recommendations", bullet_lines(analysis["recommendations"])),
    )


# ─── Actions ─────────────────────────────────────────────────────────────────

GET_TRADER_GRADES = Action(
    name="GET_TRADER_GRADES",
    description="Get TokenMetrics trader grades (short-term trading potential) with grade trend and buy/hold/avoid recommendation",
    category=ActionCategory.GRADES,
    endpoint=TOKENMETRICS_ENDPOINTS["trader_grades"],
    similes=["TRADER_GRADE", "SHORT_TERM_GRADE", "TRADING_GRADE"],
    examples=[
        conversation_example("What's the trader grade for Solana?", "Here is the TokenMetrics trader grade for Solana.", "GET_TRADER_GRADES"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="trader grades",
        endpoint_key="trader_grades",
        schema=TraderGradesRequest,
        analyze=analyze_trader_grades,
        render=format_trader_grades_response,
        param_keys=_GRADE_FILTER_PARAMS,
        defaults={"limit": TOKENMETRICS_PAGE_LIMIT, "page": 1},
        data_key="trader_grades",
    )),
)

GET_INVESTOR_GRADES = Action(
    name="GET_INVESTOR_GRADES",
    description="Get TokenMetrics investor grades (long-term investment quality) with quality tiers and allocation guidance",
    category=ActionCategory.GRADES,
    endpoint=TOKENMETRICS_ENDPOINTS["investor_grades"],
    similes=["INVESTOR_GRADE", "LONG_TERM_GRADE", "INVESTMENT_GRADE"],
    examples=[
        conversation_example("Show investor grades for defi tokens", "Here are the long-term investor grades for DeFi.", "GET_INVESTOR_GRADES"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="investor grades",
        endpoint_key="investor_grades",
        schema=InvestorGradesRequest,
        analyze=analyze_investor_grades,
        render=format_investor_grades_response,
        param_keys=_GRADE_FILTER_PARAMS,
        defaults={"limit": TOKENMETRICS_PAGE_LIMIT, "page": 1},
        data_key="investor_grades",
    )),
)

GET_TM_GRADE = Action(
    name="GET_TM_GRADE",
    description="Get the current TokenMetrics TM grade, fundamental grade, signal and momentum for a token",
    category=ActionCategory.GRADES,
    endpoint=TOKENMETRICS_ENDPOINTS["tm_grade"],
    similes=["TM_GRADE", "TOKEN_GRADE", "OVERALL_GRADE"],
    examples=[
        conversation_example("What's the TM grade for Bitcoin?", "Here is Bitcoin's current TM grade.", "GET_TM_GRADE"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="TM grade",
        endpoint_key="tm_grade",
        schema=TmGradeRequest,
        analyze=analyze_tm_grade,
        render=format_tm_grade_response,
        param_keys=("token_id",),
        require_token=True,
        required=("token_id",),
        data_key="tm_grade",
    )),
)

GET_TM_GRADE_HISTORY = Action(
    name="GET_TM_GRADE_HISTORY",
    description="Get the historical TokenMetrics TM grade for a token with trend, volatility and signal changes",
    category=ActionCategory.GRADES,
    endpoint=TOKENMETRICS_ENDPOINTS["tm_grade_history"],
    similes=["TM_GRADE_HISTORY", "GRADE_HISTORY", "HISTORICAL_GRADES"],
    examples=[
        conversation_example(
            "How has Ethereum's TM grade changed over the last 30 days?",
            "Here is Ethereum's TM grade history.",
            "GET_TM_GRADE_HISTORY",
        ),
    ],
    handler=endpoint_handler(EndpointCall(
        label="TM grade history",
        endpoint_key="tm_grade_history",
        schema=TmGradeHistoryRequest,
        analyze=analyze_tm_grade_history,
        render=format_tm_grade_history_response,
        param_keys=("token_id", "startDate", "endDate", "limit", "page"),
        defaults={"limit": TOKENMETRICS_PAGE_LIMIT, "page": 1},
        require_token=True,
        required=("token_id",),
        data_key="tm_grade_history",
    )),
)

GET_TECHNOLOGY_GRADE = Action(
    name="GET_TECHNOLOGY_GRADE",
    description="Get the TokenMetrics technology grade for a token with activity, security, repository and collaboration scores",
    category=ActionCategory.GRADES,
    endpoint=TOKENMETRICS_ENDPOINTS["technology_grade"],
    similes=["TECHNOLOGY_GRADE", "TECH_GRADE", "DEVELOPMENT_SCORE"],
    examples=[
        conversation_example("How good is Cardano's technology?", "Here is Cardano's TokenMetrics technology grade.", "GET_TECHNOLOGY_GRADE"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="technology grade",
        endpoint_key="technology_grade",
        schema=TechnologyGradeRequest,
        analyze=analyze_technology_grade,
        render=format_technology_grade_response,
        param_keys=("token_id", "startDate", "endDate", "limit", "page"),
        defaults={"limit": TOKENMETRICS_PAGE_LIMIT, "page": 1},
        require_token=True,
        required=("token_id",),
        data_key="technology_grade",
    )),
)

GRADES_ACTIONS = [GET_TRADER_GRADES, GET_INVESTOR_GRADES, GET_TM_GRADE, GET_TM_GRADE_HISTORY, GET_TECHNOLOGY_GRADE]
