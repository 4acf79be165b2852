"""
research_actions.py — TokenMetrics research and AI actions.

Implements:
  - GET_QUANTMETRICS       /v2/quantmetrics        risk and risk-adjusted return metrics
  - GET_CORRELATION        /v2/correlation         diversification and concentration analysis
  - GET_SCENARIO_ANALYSIS  /v2/scenario-analysis   downside/upside price scenarios
  - GET_SENTIMENT          /v2/sentiments          social and news sentiment, contrarian signals
  - GET_AI_REPORTS         /v2/ai-reports          AI-written research report highlights
  - GET_CRYPTO_INVESTORS   /v2/crypto-investors    fund and angel investor performance
  - GET_TMAI               /v2/tmai (POST)         free-form question to the TokenMetrics AI
"""

import logging
import re
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Optional

import numpy as np

from action_base import Action, ActionCategory, EndpointCall, conversation_example, endpoint_handler
from agent_config import AnalysisThresholds
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
    AiReportsRequest,
    CorrelationRequest,
    CryptoInvestorsRequest,
    QuantmetricsRequest,
    ScenarioAnalysisRequest,
    SentimentRequest,
    TmaiRequest,
)
from tokenmetrics_provider import extract_data

logger = logging.getLogger(__name__)


def _values(data: list, *keys: str) -> list[float]:
    values = [safe_float(pick(row, *keys), None) for row in data]
    return [v for v in values if v is not None]


def _share(count: int, total: int) -> float:
    return round(count / total * 100, 1) if total else 0.0


# ─── Quantmetrics ────────────────────────────────────────────────────────────

def volatility_risk_level(average_volatility: float) -> str:
    if average_volatility > 80:
        return "Very High"
    if average_volatility > 60:
        return "High"
    if average_volatility > 40:
        return "Moderate"
    if average_volatility > 20:
        return "Low-Moderate"
    return "Low"


def risk_assessment_text(average_volatility: float, average_drawdown: float) -> str:
    if average_volatility > 80 and average_drawdown > 50:
        return "Extremely high risk with significant volatility and drawdown potential"
    if average_volatility > 60:
        return "High risk, substantial price movements expected"
    if average_volatility > 40:
        return "Moderate risk, typical for established cryptocurrencies"
    return "Lower risk, relatively stable for crypto markets"


def performance_assessment(average_sharpe: float, average_cagr: float) -> str:
    if average_sharpe > 1.5 and average_cagr > 20:
        return "Excellent"
    if average_sharpe > 1:
        return "Good"
    if average_sharpe > 0.5:
        return "Fair"
    if average_sharpe > 0:
        return "Weak"
    return "Poor"


def analyze_quantmetrics(data: list, request: Optional[dict] = None, thresholds=None) -> dict:
    """Risk from volatility and drawdown, performance from Sharpe and CAGR."""
    if not data:
        return {"summary": "No quantmetrics available", "risk_analysis": {"overall_risk_level": "Unknown"}}

    analysis_type = (request or {}).get("analysisType") or "all"
    analysis: dict[str, Any] = {"analysis_type": analysis_type, "tokens_analyzed": len(data)}

    volatilities = _values(data, "VOLATILITY")
    if volatilities:
        average_volatility = float(np.mean(volatilities))
        drawdowns = [abs(v) for v in _values(data, "MAX_DRAWDOWN")]
        average_drawdown = float(np.mean(drawdowns)) if drawdowns else 0.0
        high = sum(1 for v in volatilities if v > 60)
        low = sum(1 for v in volatilities if v <= 30)
        analysis["risk_analysis"] = {
            "overall_risk_level": volatility_risk_level(average_volatility),
            "average_volatility": round(average_volatility, 2),
            "average_max_drawdown": round(average_drawdown, 2),
            "risk_distribution": {
                "high_risk": high,
                "moderate_risk": len(volatilities) - high - low,
                "low_risk": low,
            },
            "assessment": risk_assessment_text(average_volatility, average_drawdown),
        }
    else:
        analysis["risk_analysis"] = {"overall_risk_level": "Unknown", "assessment": "Insufficient data"}

    if analysis_type in ("returns", "performance", "all"):
        sharpe = _values(data, "SHARPE")
        cagr = _values(data, "CAGR")
        sortino = _values(data, "SORTINO")
        average_sharpe = float(np.mean(sharpe)) if sharpe else 0.0
        average_cagr = float(np.mean(cagr)) if cagr else 0.0
        analysis["return_analysis"] = {
            "average_sharpe": round(average_sharpe, 2),
            "average_sortino": round(float(np.mean(sortino)), 2) if sortino else None,
            "average_cagr": round(average_cagr, 2),
            "performance": performance_assessment(average_sharpe, average_cagr),
        }

    with_sharpe = [r for r in data if safe_float(r.get("SHARPE"), None) is not None]
    with_volatility = [r for r in data if safe_float(r.get("VOLATILITY"), None) is not None]
    analysis["rankings"] = {
        "best_sharpe": [
            {"token": token_label(r), "sharpe": safe_float(r["SHARPE"])}
            for r in sorted(with_sharpe, key=lambda r: safe_float(r["SHARPE"]), reverse=True)[:3]
        ],
        "lowest_volatility": [
            {"token": token_label(r), "volatility": safe_float(r["VOLATILITY"])}
            for r in sorted(with_volatility, key=lambda r: safe_float(r["VOLATILITY"]))[:3]
        ],
    }
    analysis["summary"] = (
        f"Quantmetrics for {len(data)} tokens, {analysis['risk_analysis']['overall_risk_level']} risk"
    )
    return analysis


def format_quantmetrics_response(data: list, analysis: dict, request: dict) -> str:
    if not data:
        return "⚠️ No quantmetrics were returned for this request."
    risk = analysis["risk_analysis"]
    returns = analysis.get("return_analysis")
    risk_lines = [f"Overall risk: **{risk['overall_risk_level']}**", risk["assessment"]]
    if "average_volatility" in risk:
        risk_lines.append(f"Average volatility {risk['average_volatility']} | Average max drawdown {risk['average_max_drawdown']}")
    rankings = analysis["rankings"]
    return join_sections(
        "🧮 **TokenMetrics Quantmetrics**",
        section("Risk", bullet_lines(risk_lines)),
        section("Returns", bullet_lines([
            f"Performance: **{returns['performance']}**",
            f"Average Sharpe {returns['average_sharpe']} | Average CAGR {format_percentage(returns['average_cagr'])}",
        ])) if returns else "",
        section("Best Sharpe", bullet_lines(f"{r['token']}: {r['sharpe']:.2f}" for r in rankings["best_sharpe"])),
        section("Lowest Volatility", bullet_lines(f"{r['token']}: {r['volatility']:.2f}" for r in rankings["lowest_volatility"])),
    )


# ─── Correlation ─────────────────────────────────────────────────────────────

def correlation_pairs(data: list) -> list[dict]:
    """Flatten rows into {token, correlation}; rows may nest a TOP_CORRELATION list."""
    pairs = []
    for row in data:
        nested = row.get("TOP_CORRELATION")
        if isinstance(nested, list):
            base = token_label(row)
            for item in nested:
                value = safe_float(item.get("correlation"), None)
                if value is not None:
                    pairs.append({"base": base, "token": str(item.get("token", "Unknown")), "correlation": value})
            continue
        value = safe_float(pick(row, "CORRELATION", "CORRELATION_VALUE"), None)
        if value is not None:
            pairs.append({"base": None, "token": token_label(row), "correlation": value})
    return pairs


def diversification_quality(low_share: float) -> str:
    if low_share > 0.6:
        return "Excellent"
    if low_share > 0.4:
        return "Good"
    if low_share > 0.25:
        return "Moderate"
    return "Limited"


def concentration_risk(high_share: float) -> str:
    if high_share > 0.5:
        return "Very High"
    if high_share > 0.3:
        return "High"
    if high_share > 0.15:
        return "Moderate"
    return "Low"


def correlation_regime(pairs: list) -> str:
    magnitudes = [abs(p["correlation"]) for p in pairs]
    average = float(np.mean(magnitudes))
    if average > 0.6 and sum(1 for m in magnitudes if m > 0.7) > len(pairs) * 0.5:
        return "High Correlation Regime"
    if average < 0.3 and sum(1 for m in magnitudes if m < 0.3) > len(pairs) * 0.6:
        return "Low Correlation Regime"
    return "Mixed Correlation Regime"


def analyze_correlation(data: list, request: Optional[dict] = None, thresholds: Optional[AnalysisThresholds] = None) -> dict:
    thresholds = thresholds or AnalysisThresholds()
    pairs = correlation_pairs(data)
    if not pairs:
        return {"summary": "No correlation data available", "total_relationships": 0}

    values = np.array([p["correlation"] for p in pairs])
    buckets = {
        "very_high_positive": int((values >= 0.8).sum()),
        "high_positive": int(((values >= 0.5) & (values < 0.8)).sum()),
        "moderate_positive": int(((values >= 0.2) & (values < 0.5)).sum()),
        "weak": int(((values >= -0.2) & (values < 0.2)).sum()),
        "moderate_negative": int(((values >= -0.5) & (values < -0.2)).sum()),
        "high_negative": int(((values >= -0.8) & (values < -0.5)).sum()),
        "very_high_negative": int((values < -0.8).sum()),
    }
    diversifiers = sorted((p for p in pairs if p["correlation"] < thresholds.low_correlation), key=lambda p: p["correlation"])
    concentrated = sorted((p for p in pairs if p["correlation"] > thresholds.high_correlation), key=lambda p: p["correlation"], reverse=True)
    low_share = sum(1 for p in pairs if abs(p["correlation"]) < thresholds.low_correlation) / len(pairs)
    high_share = len(concentrated) / len(pairs)
    core = sorted((p for p in pairs if abs(p["correlation"]) < 0.2), key=lambda p: abs(p["correlation"]))
    hedges = sorted((p for p in pairs if p["correlation"] < -0.1), key=lambda p: p["correlation"])

    quality = diversification_quality(low_share)
    risk = concentration_risk(high_share)
    return {
        "summary": f"{len(pairs)} relationships, {quality} diversification, {risk} concentration risk",
        "total_relationships": len(pairs),
        "average_correlation": round(float(values.mean()), 3),
        "max_correlation": round(float(values.max()), 3),
        "min_correlation": round(float(values.min()), 3),
        "distribution": buckets,
        "diversification_quality": quality,
        "diversification_ratio": round(low_share * 100, 1),
        "concentration_risk": risk,
        "best_diversifiers": diversifiers[:10],
        "avoid_for_diversification": concentrated[:10],
        "core_diversifiers": core[:5],
        "hedging_assets": hedges[:3],
        "market_regime": correlation_regime(pairs),
    }


def format_correlation_response(data: list, analysis: dict, request: dict) -> str:
    if not analysis.get("total_relationships"):
        return "⚠️ No correlation data was returned for this request."

    def pair_line(p: dict) -> str:
        prefix = f"{p['base']} vs " if p["base"] else ""
        return f"{prefix}{p['token']}: {p['correlation']:+.3f}"

    return join_sections(
        "🔗 **TokenMetrics Correlation Analysis**",
        section("Overview", bullet_lines([
            f"Average correlation: {analysis['average_correlation']:+.3f}",
            f"Diversification: **{analysis['diversification_quality']}** ({analysis['diversification_ratio']}% low-correlation)",
            f"Concentration risk: {analysis['concentration_risk']}",
            f"Regime: {analysis['market_regime']}",
        ])),
        section("Best Diversifiers", bullet_lines(pair_line(p) for p in analysis["best_diversifiers"][:5])),
        section("Highly Correlated", bullet_lines(pair_line(p) for p in analysis["avoid_for_diversification"][:5])),
        section("Hedges", bullet_lines(pair_line(p) for p in analysis["hedging_assets"])),
    )


# ─── Scenario Analysis ───────────────────────────────────────────────────────

def _scenario_price(row: dict) -> Optional[float]:
    price = safe_float(pick(row, "PREDICTED_PRICE", "PRICE_TARGET"), None)
    return price if price and price > 0 else None


def _scenario_type(row: dict) -> str:
    return str(pick(row, "SCENARIO_TYPE", "TYPE", default=""))


def current_price_estimate(data: list) -> Optional[float]:
    """Base-case prediction when present, otherwise the mean predicted price."""
    for row in data:
        if "base" in _scenario_type(row).lower() and _scenario_price(row):
            return _scenario_price(row)
    prices = [p for p in (_scenario_price(r) for r in data) if p]
    return float(np.mean(prices)) if prices else None


def scenario_category(price: float, reference: float) -> str:
    if price > reference * 1.3:
        return "bullish"
    if price < reference * 0.7:
        return "bearish"
    return "base"


def downside_risk_level(max_drawdown: float) -> str:
    if max_drawdown > 0.6:
        return "Very High"
    if max_drawdown > 0.4:
        return "High"
    if max_drawdown > 0.25:
        return "Moderate"
    if max_drawdown > 0.15:
        return "Low"
    return "Very Low"


def upside_potential(max_upside: float) -> str:
    if max_upside > 3:
        return "Exceptional"
    if max_upside > 2:
        return "Very High"
    if max_upside > 1:
        return "High"
    if max_upside > 0.5:
        return "Moderate"
    return "Limited"


def _scenario_summary(row: dict, reference: float) -> dict:
    price = _scenario_price(row)
    return {
        "description": pick(row, "SCENARIO_DESCRIPTION", "DESCRIPTION", default=_scenario_type(row) or "scenario"),
        "price_target": price,
        "change_percent": round((price - reference) / reference * 100, 2),
        "probability": row.get("PROBABILITY"),
        "timeframe": pick(row, "TIMEFRAME", "TIME_HORIZON"),
    }


def analyze_scenario_analysis(data: list, request: Optional[dict] = None, thresholds=None) -> dict:
    rows = [r for r in data if _scenario_price(r)]
    reference = current_price_estimate(rows)
    if not rows or not reference:
        return {"summary": "No scenario predictions available", "total_scenarios": 0}

    analysis_type = (request or {}).get("analysisType") or "all"
    prices = np.array([_scenario_price(r) for r in rows])
    categories = Counter(_scenario_type(r) or scenario_category(_scenario_price(r), reference) for r in rows)
    analysis: dict[str, Any] = {
        "token": token_label(rows[0]),
        "analysis_type": analysis_type,
        "total_scenarios": len(rows),
        "current_price_estimate": reference,
        "scenario_breakdown": dict(categories),
        "price_range": {"min": float(prices.min()), "max": float(prices.max())},
    }

    if analysis_type in ("risk_assessment", "stress_testing", "all"):
        max_drawdown = max(0.0, float((reference - prices.min()) / reference))
        worst = min(rows, key=_scenario_price)
        analysis["risk_assessment"] = {
            "overall_risk_level": downside_risk_level(max_drawdown),
            "max_potential_drawdown": round(max_drawdown * 100, 2),
            "downside_scenarios": int((prices < reference * 0.9).sum()),
            "extreme_downside_scenarios": int((prices < reference * 0.7).sum()),
            "worst_case": _scenario_summary(worst, reference),
        }
    if analysis_type in ("upside_potential", "all"):
        max_upside = max(0.0, float((prices.max() - reference) / reference))
        best = max(rows, key=_scenario_price)
        analysis["opportunity_analysis"] = {
            "upside_potential": upside_potential(max_upside),
            "max_potential_upside": round(max_upside * 100, 2),
            "upside_scenarios": int((prices > reference * 1.1).sum()),
            "extreme_upside_scenarios": int((prices > reference * 1.5).sum()),
            "best_case": _scenario_summary(best, reference),
        }

    probabilities = [(safe_float(r.get("PROBABILITY"), None), _scenario_price(r)) for r in rows]
    probabilities = [(p, price) for p, price in probabilities if p]
    if probabilities:
        total = sum(p for p, _ in probabilities)
        analysis["probability_weighted_price"] = sum(p * price for p, price in probabilities) / total

    analysis["summary"] = f"{len(rows)} scenarios around an estimated {format_currency(reference)}"
    return analysis


def format_scenario_analysis_response(data: list, analysis: dict, request: dict) -> str:
    if not analysis.get("total_scenarios"):
        return "⚠️ No scenario analysis was returned for this token."
    risk = analysis.get("risk_assessment")
    upside = analysis.get("opportunity_analysis")
    lines = [
        f"Price range: {format_currency(analysis['price_range']['min'])} - {format_currency(analysis['price_range']['max'])}",
    ]
    if analysis.get("probability_weighted_price"):
        lines.append(f"Probability-weighted target: {format_currency(analysis['probability_weighted_price'])}")
    return join_sections(
        f"🔮 **{analysis['token']} Scenario Analysis**",
        f"Reference price estimate: {format_currency(analysis['current_price_estimate'])}",
        section("Scenarios", bullet_lines(lines)),
        section("Downside", bullet_lines([
            f"Risk level: **{risk['overall_risk_level']}** (max drawdown {risk['max_potential_drawdown']}%)",
            f"Worst case: {format_currency(risk['worst_case']['price_target'])} ({format_percentage(risk['worst_case']['change_percent'])})",
        ])) if risk else "",
        section("Upside", bullet_lines([
            f"Potential: **{upside['upside_potential']}** (max upside {upside['max_potential_upside']}%)",
            f"Best case: {format_currency(upside['best_case']['price_target'])} ({format_percentage(upside['best_case']['change_percent'])})",
        ])) if upside else "",
    )


# ─── Sentiment ───────────────────────────────────────────────────────────────

SENTIMENT_SOURCES = {"Twitter/X": "TWITTER_SENTIMENT", "Reddit": "REDDIT_SENTIMENT", "News": "NEWS_SENTIMENT"}


def sentiment_mood(score: float) -> str:
    if score >= 60:
        return "Very Bullish"
    if score >= 40:
        return "Bullish"
    if score >= 20:
        return "Moderately Bullish"
    if score >= -20:
        return "Neutral"
    if score >= -40:
        return "Moderately Bearish"
    if score >= -60:
        return "Bearish"
    return "Very Bearish"


def source_agreement(scores: list[float]) -> str:
    if len(scores) < 2:
        return "Insufficient data"
    spread = max(scores) - min(scores)
    if spread < 20:
        return "High"
    if spread < 40:
        return "Moderate"
    return "Low"


def sentiment_volatility(scores: list[float]) -> str:
    if len(scores) < 2:
        return "Unknown"
    deviation = float(np.std(scores))
    if deviation > 30:
        return "Very High"
    if deviation > 20:
        return "High"
    if deviation > 10:
        return "Medium"
    return "Low"


def sentiment_momentum(scores: list[float]) -> str:
    if len(scores) < 3:
        return "Unknown"
    change = scores[-1] - scores[-3]
    if change > 10:
        return "Strong Positive"
    if change > 5:
        return "Positive"
    if change > -5:
        return "Neutral"
    if change > -10:
        return "Negative"
    return "Strong Negative"


def sentiment_trend(scores: list[float]) -> dict:
    """scores are oldest first; compares the last 24 points with the 24 before."""
    if len(scores) < 10:
        return {"trend_direction": "Insufficient data"}
    recent = scores[-24:]
    earlier = scores[-48:-24] or scores[:1]
    change = float(np.mean(recent) - np.mean(earlier))
    if change > 10:
        direction = "Strongly Improving"
    elif change > 5:
        direction = "Improving"
    elif change > -5:
        direction = "Stable"
    elif change > -10:
        direction = "Declining"
    else:
        direction = "Strongly Declining"
    return {
        "trend_direction": direction,
        "trend_change": round(change, 1),
        "recent_average": round(float(np.mean(recent)), 1),
        "volatility": sentiment_volatility(recent),
        "momentum": sentiment_momentum(recent),
    }


def analyze_sentiment(data: list, request: Optional[dict] = None, thresholds: Optional[AnalysisThresholds] = None) -> dict:
    thresholds = thresholds or AnalysisThresholds()
    rows = sorted(data, key=lambda r: parse_timestamp(pick(r, "DATE", "DATETIME")) or datetime.min)
    rows = [r for r in rows if safe_float(r.get("SENTIMENT_SCORE"), None) is not None]
    if not rows:
        return {"summary": "No sentiment data available", "overall_mood": "Unknown"}

    latest = rows[-1]
    score = safe_float(latest["SENTIMENT_SCORE"])
    sources = {
        name: safe_float(latest.get(field), None)
        for name, field in SENTIMENT_SOURCES.items()
    }
    present = [v for v in sources.values() if v is not None]
    scores = [safe_float(r["SENTIMENT_SCORE"]) for r in rows]

    contrarian = []
    if score > thresholds.contrarian_sentiment:
        contrarian.append("Extreme bullish sentiment often precedes pullbacks; consider taking profits")
    elif score < -thresholds.contrarian_sentiment:
        contrarian.append("Extreme bearish sentiment can mark capitulation; watch for accumulation entries")

    analysis = {
        "summary": f"Market mood is {sentiment_mood(score)} ({score:+.0f})",
        "overall_mood": sentiment_mood(score),
        "overall_score": score,
        "date": pick(latest, "DATE", "DATETIME"),
        "sources": {name: {"score": value, "mood": sentiment_mood(value)} for name, value in sources.items() if value is not None},
        "source_agreement": source_agreement(present),
        "trend_analysis": sentiment_trend(scores),
        "extremes": {
            "highest": max(scores),
            "lowest": min(scores),
            "extreme_periods": sum(1 for s in scores if abs(s) > thresholds.contrarian_sentiment),
        },
        "contrarian_signals": contrarian,
    }
    if present:
        ranked = sorted(((v, k) for k, v in sources.items() if v is not None), reverse=True)
        analysis["most_bullish_source"] = ranked[0][1]
        analysis["most_bearish_source"] = ranked[-1][1]
    return analysis


def format_sentiment_response(data: list, analysis: dict, request: dict) -> str:
    if "overall_score" not in analysis:
        return "⚠️ No sentiment data was returned for this request."
    trend = analysis["trend_analysis"]
    return join_sections(
        "💬 **TokenMetrics Market Sentiment**",
        f"Mood: **{analysis['overall_mood']}** ({analysis['overall_score']:+.0f})",
        section("Sources", bullet_lines(
            f"{name}: {s['score']:+.0f} ({s['mood']})" for name, s in analysis["sources"].items()
        )),
        section("Trend", bullet_lines([
            f"Direction: {trend['trend_direction']}",
            f"Momentum: {trend['momentum']} | Volatility: {trend['volatility']}" if "momentum" in trend else "",
            f"Source agreement: {analysis['source_agreement']}",
        ])),
        section("Contrarian View", bullet_lines(analysis["contrarian_signals"])),
    )


# ─── AI Reports ──────────────────────────────────────────────────────────────

REPORT_FIELDS = {
    "investment_analysis": "INVESTMENT_ANALYSIS",
    "deep_dive": "DEEP_DIVE",
    "code_review": "CODE_REVIEW",
    "executive_summary": "INVESTMENT_ANALYSIS_POINTER",
}

HIGHLIGHT_SECTIONS = {
    "investment": ("INVESTMENT_ANALYSIS", ("## Executive Summary", "## Conclusion")),
    "technical": ("CODE_REVIEW", ("## Innovation", "## Architecture", "## Code Quality")),
    "comprehensive": ("DEEP_DIVE", ("### Vision", "### Problem", "## Market Analysis")),
}


def extract_markdown_section(text: str, heading: str, length: int = 200) -> Optional[str]:
    """Body of `heading` up to the next heading of the same level."""
    level = heading.split(" ", 1)[0]
    match = re.search(rf"^{re.escape(heading)}\s*\n(.*?)(?=\n{level} |\Z)", text, re.MULTILINE | re.DOTALL)
    if not match:
        return None
    body = " ".join(match.group(1).split())
    return body[:length] + ("..." if len(body) > length else "")


def report_highlights(data: list, focus: str, limit: int = 5) -> list[str]:
    field, headings = HIGHLIGHT_SECTIONS[focus]
    highlights = []
    for row in data:
        text = row.get(field)
        if not isinstance(text, str):
            continue
        symbol = pick(row, "TOKEN_SYMBOL", "SYMBOL", "TOKEN_NAME", default="")
        for heading in headings:
            body = extract_markdown_section(text, heading)
            if body:
                highlights.append(f"{symbol} {heading.lstrip('# ')}: {body}")
    if focus == "investment":
        for row in data:
            pointer = row.get("INVESTMENT_ANALYSIS_POINTER")
            bullet = re.search(r"^- (.+)$", pointer, re.MULTILINE) if isinstance(pointer, str) else None
            if bullet:
                highlights.append(f"{pick(row, 'TOKEN_SYMBOL', 'SYMBOL', default='')}: {bullet.group(1)[:150]}")
    return highlights[:limit]


def analyze_ai_reports(data: list, request: Optional[dict] = None, thresholds=None) -> dict:
    if not data:
        return {"summary": "No AI reports available", "total_reports": 0}

    analysis_type = (request or {}).get("analysisType") or "all"
    counts = {name: sum(1 for r in data if r.get(field)) for name, field in REPORT_FIELDS.items()}
    focuses = ("investment", "technical", "comprehensive") if analysis_type == "all" else (analysis_type,)
    highlights = {focus: report_highlights(data, focus) for focus in focuses if focus in HIGHLIGHT_SECTIONS}

    reports = []
    for row in data:
        available = [name for name, field in REPORT_FIELDS.items() if row.get(field)]
        lengths = [len(str(row[REPORT_FIELDS[name]])) for name in available]
        reports.append({
            "token": token_label(row),
            "token_id": row.get("TOKEN_ID"),
            "available_sections": available,
            "total_length": sum(lengths),
            "executive_summary": row.get("INVESTMENT_ANALYSIS_POINTER"),
        })

    complete = sum(1 for r in reports if len(r["available_sections"]) == len(REPORT_FIELDS))
    return {
        "summary": f"{len(data)} AI reports, {complete} with every section",
        "analysis_type": analysis_type,
        "total_reports": len(data),
        "report_type_counts": counts,
        "highlights": highlights,
        "reports": reports,
        "completeness": "Comprehensive" if complete == len(data) else "Partial" if complete else "Limited",
    }


def format_ai_reports_response(data: list, analysis: dict, request: dict) -> str:
    if not analysis.get("total_reports"):
        return "⚠️ No AI reports were returned for this token."
    titles = {"investment": "Investment Highlights", "technical": "Technical Highlights", "comprehensive": "Deep Dive Highlights"}
    parts = [
        "📑 **TokenMetrics AI Reports**",
        section("Reports", bullet_lines(
            f"**{r['token']}**: {', '.join(s.replace('_', ' ') for s in r['available_sections']) or 'no sections'}"
            for r in analysis["reports"][:5]
        )),
    ]
    parts += [section(titles[focus], bullet_lines(items)) for focus, items in analysis["highlights"].items()]
    return join_sections(*parts)


# ─── Crypto Investors ────────────────────────────────────────────────────────

RECENT_ACTIVITY_DAYS = 30


def investor_performance(average_roi: float) -> str:
    if average_roi >= 0.5:
        return "Excellent"
    if average_roi >= 0.2:
        return "Good"
    if average_roi >= 0:
        return "Average"
    return "Poor"


def participation_level(rate: float) -> str:
    if rate >= 80:
        return "Very High"
    if rate >= 60:
        return "High"
    if rate >= 40:
        return "Moderate"
    return "Low"


def investment_activity(average_rounds: float) -> str:
    if average_rounds > 10:
        return "Very Active"
    if average_rounds > 5:
        return "Active"
    if average_rounds > 2:
        return "Moderate"
    return "Low"


def _round_count(row: dict) -> int:
    return int(safe_float(row.get("ROUND_COUNT")))


def influence_score(row: dict) -> float:
    """ROI (capped at 50 points), round count (capped at 20) and online presence."""
    score = 0.0
    roi = safe_float(row.get("ROI_AVERAGE"), None)
    if roi:
        score += min(max(0.0, roi * 100), 50) * 0.4
    score += min(_round_count(row), 20) * 0.3
    if row.get("INVESTOR_WEBSITE"):
        score += 1.5
    if row.get("INVESTOR_TWITTER"):
        score += 1.5
    return round(score, 1)


def analyze_crypto_investors(data: list, request: Optional[dict] = None, thresholds=None) -> dict:
    if not data:
        return {"summary": "No investor data available", "total_investors": 0}

    rois = _values(data, "ROI_AVERAGE")
    average_roi = float(np.mean(rois)) if rois else 0.0
    active = [r for r in data if _round_count(r) > 0]
    rate = _share(len(active), len(data))
    rounds = [_round_count(r) for r in active]

    positive = sum(1 for r in data if safe_float(r.get("PERFORMANCE_CHANGE")) > 0)
    negative = sum(1 for r in data if safe_float(r.get("PERFORMANCE_CHANGE")) < 0)
    if positive + negative:
        ratio = positive / (positive + negative)
        sentiment = "Bullish" if ratio > 0.6 else "Bearish" if ratio < 0.4 else "Neutral"
    else:
        sentiment = "Unknown"
    cutoff = datetime.utcnow() - timedelta(days=RECENT_ACTIVITY_DAYS)
    recent = sum(1 for r in data if (parse_timestamp(r.get("LAST_ACTIVITY")) or datetime.min) > cutoff)

    ranked = sorted(data, key=influence_score, reverse=True)
    top_roi = sorted((r for r in data if r.get("ROI_AVERAGE") is not None), key=lambda r: safe_float(r["ROI_AVERAGE"]), reverse=True)
    return {
        "summary": f"{len(data)} investors, {investor_performance(average_roi)} average ROI",
        "total_investors": len(data),
        "performance": {
            "overall": investor_performance(average_roi) if rois else "Unknown",
            "average_roi": round(average_roi * 100, 1),
            "quality_tiers": {
                "high_performers": sum(1 for v in rois if v >= 0.5),
                "good_performers": sum(1 for v in rois if 0.2 <= v < 0.5),
                "average_performers": sum(1 for v in rois if 0 <= v < 0.2),
                "poor_performers": sum(1 for v in rois if v < 0),
            },
        },
        "participation": {
            "level": participation_level(rate),
            "rate": rate,
            "active_investors": len(active),
            "average_rounds": round(float(np.mean(rounds)), 1) if rounds else 0,
            "activity": investment_activity(float(np.mean(rounds))) if rounds else "Low",
        },
        "sentiment": {
            "overall": sentiment,
            "positive_performers": positive,
            "negative_performers": negative,
            "recent_activity_rate": _share(recent, len(data)),
        },
        "top_influencers": [
            {"name": r.get("INVESTOR_NAME", "Unknown"), "influence_score": influence_score(r), "rounds": _round_count(r)}
            for r in ranked[:5]
        ],
        "top_performers": [
            {"name": r.get("INVESTOR_NAME", "Unknown"), "roi_average": round(safe_float(r["ROI_AVERAGE"]) * 100, 1), "rounds": _round_count(r)}
            for r in top_roi[:5]
        ],
    }


def format_crypto_investors_response(data: list, analysis: dict, request: dict) -> str:
    if not analysis.get("total_investors"):
        return "⚠️ No crypto investor data was returned for this request."
    perf = analysis["performance"]
    part = analysis["participation"]
    return join_sections(
        "🏛️ **TokenMetrics Crypto Investors**",
        section("Top Performers", bullet_lines(
            f"**{i['name']}**: avg ROI {format_percentage(i['roi_average'])} | {i['rounds']} rounds"
            for i in analysis["top_performers"]
        )),
        section("Overview", bullet_lines([
            f"Performance: **{perf['overall']}** (average ROI {format_percentage(perf['average_roi'])})",
            f"Participation: {part['level']} ({part['rate']}% active) | Activity: {part['activity']}",
            f"Investor sentiment: {analysis['sentiment']['overall']}",
        ])),
        section("Most Influential", bullet_lines(
            f"{i['name']} (score {i['influence_score']})" for i in analysis["top_influencers"]
        )),
    )


# ─── TMAI ────────────────────────────────────────────────────────────────────

ANSWER_KEYS = ("answer", "ANSWER", "response", "RESPONSE", "message", "text")


def tmai_records(raw: Any) -> list:
    """TMAI answers arrive either under "data" or as the top-level object."""
    records = extract_data(raw)
    if records:
        return records
    if isinstance(raw, dict):
        return [raw]
    if isinstance(raw, str):
        return [{"answer": raw}]
    return []


def tmai_answer(record: dict) -> Optional[str]:
    value = pick(record, *ANSWER_KEYS)
    if isinstance(value, dict):
        value = pick(value, *ANSWER_KEYS)
    return str(value) if value else None


def analyze_tmai(data: list, request: Optional[dict] = None, thresholds=None) -> dict:
    answers = [a for a in (tmai_answer(r) for r in data if isinstance(r, dict)) if a]
    analysis: dict[str, Any] = {
        "question": (request or {}).get("question"),
        "answer": "\n\n".join(answers) if answers else None,
        "summary": "TokenMetrics AI answered the question" if answers else "TokenMetrics AI returned no answer",
    }

    confidences = _values(data, "CONFIDENCE", "confidence")
    if confidences:
        average = float(np.mean(confidences))
        analysis["confidence"] = {
            "overall": "High" if average > 0.8 else "Medium" if average > 0.6 else "Low",
            "range": [min(confidences), max(confidences)],
        }
    present = sum([
        bool(confidences),
        any(r.get("PREDICTION") or r.get("FORECAST") for r in data),
        any(r.get("INSIGHTS") or r.get("ANALYSIS") for r in data),
    ])
    if present:
        analysis["completeness"] = {3: "Complete", 2: "Good", 1: "Partial"}[present]
    return analysis


def format_tmai_response(data: list, analysis: dict, request: dict) -> str:
    if not analysis.get("answer"):
        return "⚠️ TokenMetrics AI did not return an answer. Try rephrasing the question."
    footer = []
    if "confidence" in analysis:
        footer.append(f"AI confidence: {analysis['confidence']['overall']}")
    if "completeness" in analysis:
        footer.append(f"Analysis completeness: {analysis['completeness']}")
    return join_sections(
        "🤖 **TokenMetrics AI**",
        f"> {analysis['question']}" if analysis.get("question") else "",
        analysis["answer"],
        " | ".join(footer),
    )


# ─── Actions ─────────────────────────────────────────────────────────────────

GET_QUANTMETRICS = Action(
    name="GET_QUANTMETRICS",
    description="Get TokenMetrics quantitative metrics (volatility, drawdown, Sharpe, Sortino, CAGR) with risk and performance assessment",
    category=ActionCategory.RESEARCH,
    endpoint=TOKENMETRICS_ENDPOINTS["quantmetrics"],
    similes=["QUANTMETRICS", "QUANT_METRICS", "RISK_METRICS", "SHARPE_RATIO"],
    examples=[
        conversation_example("What's the Sharpe ratio and volatility of Bitcoin?", "Here are Bitcoin's quantitative metrics.", "GET_QUANTMETRICS"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="quantmetrics",
        endpoint_key="quantmetrics",
        schema=QuantmetricsRequest,
        analyze=analyze_quantmetrics,
        render=format_quantmetrics_response,
        param_keys=(
            "token_id", "symbol", "startDate", "endDate", "category",
            "exchange", "marketcap", "volume", "fdv", "limit", "page",
        ),
        defaults={"limit": TOKENMETRICS_PAGE_LIMIT, "page": 1},
        data_key="quantmetrics",
    )),
)

GET_CORRELATION = Action(
    name="GET_CORRELATION",
    description="Get TokenMetrics token correlations with diversification quality, concentration risk and hedging candidates",
    category=ActionCategory.RESEARCH,
    endpoint=TOKENMETRICS_ENDPOINTS["correlation"],
    similes=["CORRELATION", "TOKEN_CORRELATION", "DIVERSIFICATION"],
    examples=[
        conversation_example("Which tokens are least correlated with Ethereum?", "Here is Ethereum's correlation analysis.", "GET_CORRELATION"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="correlation data",
        endpoint_key="correlation",
        schema=CorrelationRequest,
        analyze=analyze_correlation,
        render=format_correlation_response,
        param_keys=("token_id", "symbol", "category", "exchange", "limit", "page"),
        defaults={"limit": TOKENMETRICS_PAGE_LIMIT, "page": 1},
        data_key="correlation_data",
    )),
)

GET_SCENARIO_ANALYSIS = Action(
    name="GET_SCENARIO_ANALYSIS",
    description="Get TokenMetrics price scenario analysis for a token with downside risk, upside potential and best/worst case",
    category=ActionCategory.RESEARCH,
    endpoint=TOKENMETRICS_ENDPOINTS["scenario_analysis"],
    similes=["SCENARIO_ANALYSIS", "PRICE_SCENARIOS", "PRICE_PREDICTION", "STRESS_TEST"],
    examples=[
        conversation_example("What are the price scenarios for Solana?", "Here is the scenario analysis for Solana.", "GET_SCENARIO_ANALYSIS"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="scenario analysis",
        endpoint_key="scenario_analysis",
        schema=ScenarioAnalysisRequest,
        analyze=analyze_scenario_analysis,
        render=format_scenario_analysis_response,
        param_keys=("token_id", "symbol", "limit", "page"),
        defaults={"limit": 10, "page": 1},
        require_token=True,
        data_key="scenario_data",
    )),
)

GET_SENTIMENT = Action(
    name="GET_SENTIMENT",
    description="Get TokenMetrics market sentiment from Twitter, Reddit and news with trend, source agreement and contrarian signals",
    category=ActionCategory.RESEARCH,
    endpoint=TOKENMETRICS_ENDPOINTS["sentiment"],
    similes=["SENTIMENT", "MARKET_SENTIMENT", "SOCIAL_SENTIMENT", "FEAR_GREED"],
    examples=[
        conversation_example("What's the market sentiment right now?", "Here is the current market sentiment.", "GET_SENTIMENT"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="sentiment data",
        endpoint_key="sentiment",
        schema=SentimentRequest,
        analyze=analyze_sentiment,
        render=format_sentiment_response,
        param_keys=("limit", "page"),
        defaults={"limit": TOKENMETRICS_PAGE_LIMIT, "page": 1},
        resolve_token=False,
        data_key="sentiment_data",
    )),
)

GET_AI_REPORTS = Action(
    name="GET_AI_REPORTS",
    description="Get TokenMetrics AI-generated research reports (investment analysis, deep dive, code review) with highlights",
    category=ActionCategory.RESEARCH,
    endpoint=TOKENMETRICS_ENDPOINTS["ai_reports"],
    similes=["AI_REPORTS", "RESEARCH_REPORT", "DEEP_DIVE", "TOKEN_REPORT"],
    examples=[
        conversation_example("Get me the AI report on Chainlink", "Here is the TokenMetrics AI report for Chainlink.", "GET_AI_REPORTS"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="AI reports",
        endpoint_key="ai_reports",
        schema=AiReportsRequest,
        analyze=analyze_ai_reports,
        render=format_ai_reports_response,
        param_keys=("token_id", "symbol", "limit", "page"),
        defaults={"limit": 5, "page": 1},
        data_key="ai_reports",
    )),
)

GET_CRYPTO_INVESTORS = Action(
    name="GET_CRYPTO_INVESTORS",
    description="Get crypto funds and angel investors with ROI performance, participation and influence",
    category=ActionCategory.RESEARCH,
    endpoint=TOKENMETRICS_ENDPOINTS["crypto_investors"],
    similes=["CRYPTO_INVESTORS", "VC_FUNDS", "INVESTOR_PERFORMANCE", "SMART_MONEY"],
    examples=[
        conversation_example("Which crypto investors have the best returns?", "Here are the top crypto investors by ROI.", "GET_CRYPTO_INVESTORS"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="crypto investors",
        endpoint_key="crypto_investors",
        schema=CryptoInvestorsRequest,
        analyze=analyze_crypto_investors,
        render=format_crypto_investors_response,
        param_keys=("limit", "page"),
        defaults={"limit": TOKENMETRICS_PAGE_LIMIT, "page": 1},
        resolve_token=False,
        data_key="crypto_investors",
    )),
)

GET_TMAI = Action(
    name="GET_TMAI",
    description="Ask the TokenMetrics AI a free-form crypto question and return its answer",
    category=ActionCategory.RESEARCH,
    endpoint=TOKENMETRICS_ENDPOINTS["tmai"],
    similes=["TMAI", "ASK_TOKENMETRICS", "TOKENMETRICS_AI", "CRYPTO_QUESTION"],
    examples=[
        conversation_example("Ask TokenMetrics AI: what is the outlook for Bitcoin?", "Here is the TokenMetrics AI answer.", "GET_TMAI"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="TokenMetrics AI answer",
        endpoint_key="tmai",
        schema=TmaiRequest,
        analyze=analyze_tmai,
        render=format_tmai_response,
        resolve_token=False,
        required=("question",),
        method="POST",
        build_body=lambda request: {"messages": [{"user": request["question"]}]},
        unwrap=tmai_records,
        data_key="tmai_response",
        causes=(
            "Invalid or missing TokenMetrics API key",
            "Your plan may not include TokenMetrics AI access",
            "Network connectivity issues",
        ),
    )),
)

RESEARCH_ACTIONS = [
    GET_QUANTMETRICS,
    GET_CORRELATION,
    GET_SCENARIO_ANALYSIS,
    GET_SENTIMENT,
    GET_AI_REPORTS,
    GET_CRYPTO_INVESTORS,
    GET_TMAI,
]
