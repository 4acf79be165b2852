"""
signals_actions.py — TokenMetrics AI signal actions.

Implements:
  - GET_TRADING_SIGNALS         /v2/trading-signals         long/short signal bias and best opportunities
  - GET_HOURLY_TRADING_SIGNALS  /v2/hourly-trading-signals  intraday signal distribution and quality
  - GET_RESISTANCE_SUPPORT      /v2/resistance-support      historical levels classified around a reference price
  - GET_MOONSHOT_TOKENS         /v2/moonshot-tokens         AI-picked high-upside tokens

Signals are encoded by the API as 1 (bullish), -1 (bearish) and 0 (no signal).
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Optional

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
    HourlyTradingSignalsRequest,
    MoonshotTokensRequest,
    ResistanceSupportRequest,
    TradingSignalsRequest,
)

logger = logging.getLogger(__name__)

SIGNAL_NAMES = {1: "BULLISH", -1: "BEARISH", 0: "NEUTRAL"}
FRESH_SIGNAL_DAYS = 3


def signal_value(row: dict) -> int:
    value = pick(row, "TRADING_SIGNAL", "SIGNAL", default=0)
    try:
        value = int(value)
    except (TypeError, ValueError):
        return 0
    return value if value in SIGNAL_NAMES else 0


def confidence_value(row: dict) -> Optional[float]:
    return safe_float(pick(row, "AI_CONFIDENCE", "SIGNAL_STRENGTH"), None)


# ─── Trading Signals ─────────────────────────────────────────────────────────

def market_bias(bullish_pct: float) -> str:
    if bullish_pct > 60:
        return "Strongly Bullish"
    if bullish_pct > 45:
        return "Bullish"
    if bullish_pct > 35:
        return "Neutral"
    if bullish_pct > 20:
        return "Bearish"
    return "Strongly Bearish"


def signal_distribution(data: list) -> dict:
    counts = Counter(signal_value(r) for r in data)
    total = len(data)
    bullish_pct = counts[1] / total * 100
    bearish_pct = counts[-1] / total * 100
    return {
        "bullish_signals": counts[1],
        "bearish_signals": counts[-1],
        "neutral_signals": counts[0],
        "bullish_percentage": round(bullish_pct, 1),
        "bearish_percentage": round(bearish_pct, 1),
        "neutral_percentage": round(counts[0] / total * 100, 1),
        "market_bias": market_bias(bullish_pct),
        "sentiment_strength": "Strong" if abs(bullish_pct - bearish_pct) > 30 else "Moderate",
    }


def opportunity_score(row: dict) -> float:
    score = confidence_value(row) or 50
    if row.get("ENTRY_PRICE"):
        score += 10
    if row.get("TARGET_PRICE"):
        score += 10
    return score


def potential_return(row: dict) -> Optional[float]:
    """Percent move from entry to target in the signal's direction."""
    entry = safe_float(row.get("ENTRY_PRICE"), None)
    target = safe_float(row.get("TARGET_PRICE"), None)
    if not entry or not target:
        return None
    if signal_value(row) == -1:
        return (entry - target) / entry * 100
    return (target - entry) / entry * 100


def best_opportunities(data: list, count: int = 5) -> dict:
    actionable = [
        r for r in data
        if signal_value(r) != 0 and (r.get("ENTRY_PRICE") or r.get("TARGET_PRICE") or confidence_value(r))
    ]
    # Fall back to every directional signal when the API sends no price or confidence fields
    if not actionable:
        actionable = [r for r in data if signal_value(r) != 0]
    ranked = sorted(actionable, key=opportunity_score, reverse=True)[:count]
    return {
        "total_opportunities": len(actionable),
        "opportunity_quality": "Abundant" if len(actionable) >= 5 else "Moderate" if len(actionable) >= 2 else "Limited",
        "top_opportunities": [
            {
                "token": token_label(r),
                "signal_type": SIGNAL_NAMES[signal_value(r)],
                "score": opportunity_score(r),
                "entry_price": r.get("ENTRY_PRICE"),
                "target_price": r.get("TARGET_PRICE"),
                "potential_return": potential_return(r),
                "trader_grade": r.get("TM_TRADER_GRADE"),
                "date": r.get("DATE"),
            }
            for r in ranked
        ],
    }


def signal_quality(data: list, now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    with_prices = sum(1 for r in data if r.get("ENTRY_PRICE") and r.get("TARGET_PRICE"))
    with_confidence = sum(1 for r in data if confidence_value(r))
    dates = [parse_timestamp(r.get("DATE")) for r in data]
    dates = [d for d in dates if d is not None]
    completeness = (with_prices + with_confidence + len(dates)) / (len(data) * 3) * 100

    freshness = "Unknown"
    if dates:
        cutoff = now - timedelta(days=FRESH_SIGNAL_DAYS)
        fresh_pct = sum(1 for d in dates if d > cutoff) / len(dates) * 100
        freshness = "Fresh" if fresh_pct > 70 else "Moderate" if fresh_pct > 40 else "Stale"

    if completeness > 80 and freshness == "Fresh":
        rating = "Excellent"
    elif completeness > 60:
        rating = "Good"
    elif completeness > 40:
        rating = "Fair"
    else:
        rating = "Poor"
    return {
        "quality_rating": rating,
        "completeness_score": round(completeness, 1),
        "freshness_assessment": freshness,
        "with_entry_and_target": with_prices,
        "with_confidence": with_confidence,
        "with_dates": len(dates),
    }


def signal_risk_factors(data: list) -> list[str]:
    risks = []
    if len({r["CATEGORY"] for r in data if r.get("CATEGORY")}) < 3:
        risks.append("Signals concentrated in few categories; diversify across sectors")
    if len({r["EXCHANGE"] for r in data if r.get("EXCHANGE")}) < 3:
        risks.append("Signals concentrated on few exchanges; check liquidity")
    missing_prices = sum(1 for r in data if not r.get("ENTRY_PRICE") or not r.get("TARGET_PRICE"))
    if missing_prices > len(data) * 0.5:
        risks.append("Most signals lack price targets; size positions and set stops manually")
    risks.append("AI signals are probabilities, not guarantees")
    return risks


def analyze_trading_signals(data: list, request: Optional[dict] = None, thresholds=None) -> dict:
    if not data:
        return {"summary": "No trading signals available", "active_opportunities": 0, "signal_quality": "Unknown"}

    distribution = signal_distribution(data)
    opportunities = best_opportunities(data)
    quality = signal_quality(data)

    insights = []
    if distribution["market_bias"] == "Strongly Bullish":
        insights.append("Strong bullish sentiment across analyzed tokens favours long positions")
    elif distribution["market_bias"] == "Strongly Bearish":
        insights.append("Strong bearish sentiment; consider defensive positioning")
    elif distribution["market_bias"] == "Neutral":
        insights.append("Mixed signals; focus on the highest conviction opportunities")
    if distribution["bullish_signals"] > distribution["bearish_signals"] * 2:
        insights.append("Bullish signals outnumber bearish more than two to one")
    elif distribution["bearish_signals"] > distribution["bullish_signals"] * 2:
        insights.append("Bearish signals outnumber bullish more than two to one")

    return {
        "summary": f"{len(data)} signals with {distribution['market_bias']} bias",
        "signal_distribution": distribution,
        "opportunity_analysis": opportunities,
        "quality_assessment": quality,
        "insights": insights,
        "risk_considerations": signal_risk_factors(data),
        "signal_types": sorted({SIGNAL_NAMES[signal_value(r)] for r in data}),
    }


def _opportunity_line(item: dict) -> str:
    line = f"**{item['token']}**: {item['signal_type']}"
    if item["entry_price"]:
        line += f" | Entry {format_currency(item['entry_price'])}"
    if item["target_price"]:
        line += f" | Target {format_currency(item['target_price'])}"
    if item["potential_return"] is not None:
        line += f" | Potential {format_percentage(item['potential_return'])}"
    return line


def format_trading_signals_response(data: list, analysis: dict, request: dict) -> str:
    if not data:
        return "⚠️ No trading signals were returned for this request."
    dist = analysis["signal_distribution"]
    quality = analysis["quality_assessment"]
    return join_sections(
        "📡 **TokenMetrics AI Trading Signals**",
        section("Signal Bias", bullet_lines([
            f"{dist['market_bias']} ({dist['sentiment_strength']})",
            f"Bullish {dist['bullish_signals']} ({dist['bullish_percentage']}%) | "
            f"Bearish {dist['bearish_signals']} ({dist['bearish_percentage']}%) | Neutral {dist['neutral_signals']}",
        ])),
        section("Top Opportunities", bullet_lines(
            _opportunity_line(o) for o in analysis["opportunity_analysis"]["top_opportunities"]
        )),
        section("Insights", bullet_lines(analysis["insights"])),
        f"Signal quality: {quality['quality_rating']} | Freshness: {quality['freshness_assessment']}",
    )


# ─── Hourly Trading Signals ──────────────────────────────────────────────────

def hourly_quality_score(data: list) -> tuple[float, str]:
    """Weighted share of rows carrying confidence, targets, stops and reasoning."""
    total = len(data)
    score = (
        sum(1 for r in data if confidence_value(r)) / total * 30
        + sum(1 for r in data if r.get("TARGET_PRICE") or r.get("ENTRY_PRICE")) / total * 25
        + sum(1 for r in data if r.get("STOP_LOSS")) / total * 25
        + sum(1 for r in data if r.get("REASONING")) / total * 20
    )
    if score >= 80:
        label = "Excellent"
    elif score >= 60:
        label = "Good"
    elif score >= 40:
        label = "Fair"
    else:
        label = "Poor"
    return round(score, 1), label


def analyze_hourly_trading_signals(data: list, request: Optional[dict] = None, thresholds=None) -> dict:
    if not data:
        return {"summary": "No hourly trading signals available", "total_signals": 0}

    by_hour: dict[int, Counter] = {}
    by_token: dict[str, Counter] = {}
    for row in data:
        name = SIGNAL_NAMES[signal_value(row)].lower()
        stamp = parse_timestamp(pick(row, "TIMESTAMP", "DATE"))
        if stamp is not None:
            by_hour.setdefault(stamp.hour, Counter())[name] += 1
        token = pick(row, "TOKEN_SYMBOL", "SYMBOL", "TOKEN_ID")
        if token is not None:
            by_token.setdefault(str(token), Counter())[name] += 1

    distribution = signal_distribution(data)
    dated = sorted(
        (r for r in data if parse_timestamp(pick(r, "TIMESTAMP", "DATE"))),
        key=lambda r: parse_timestamp(pick(r, "TIMESTAMP", "DATE")),
    )
    trend = "insufficient data"
    if len(dated) >= 2:
        recent = sum(1 for r in dated[-10:] if signal_value(r) == 1)
        older = sum(1 for r in dated[:10] if signal_value(r) == 1)
        trend = "Increasingly Bullish" if recent > older else "Increasingly Bearish" if recent < older else "Stable"

    confidences = [c for c in (confidence_value(r) for r in data) if c]
    high_confidence = [r for r in data if (confidence_value(r) or 0) > 0.7 and signal_value(r) != 0]
    score, label = hourly_quality_score(data)
    return {
        "summary": f"{len(data)} hourly signals, {distribution['market_bias']} bias, trend {trend}",
        "total_signals": len(data),
        "signal_distribution": distribution,
        "by_hour": {hour: dict(c) for hour, c in sorted(by_hour.items())},
        "by_token": {token: dict(c) for token, c in by_token.items()},
        "trend_direction": trend,
        "high_confidence_signals": len(high_confidence),
        "average_confidence": round(float(np.mean(confidences)), 3) if confidences else None,
        "quality_score": score,
        "quality": label,
        "latest_signals": [
            {"token": token_label(r), "signal": SIGNAL_NAMES[signal_value(r)], "time": pick(r, "TIMESTAMP", "DATE")}
            for r in reversed(dated[-5:])
        ],
    }


def format_hourly_trading_signals_response(data: list, analysis: dict, request: dict) -> str:
    if not analysis.get("total_signals"):
        return "⚠️ No hourly trading signals were returned for this request."
    dist = analysis["signal_distribution"]
    return join_sections(
        "⏱️ **TokenMetrics Hourly Trading Signals**",
        section("Distribution", bullet_lines([
            f"Bullish {dist['bullish_signals']} | Bearish {dist['bearish_signals']} | Neutral {dist['neutral_signals']}",
            f"Bias: {dist['market_bias']} | Trend: {analysis['trend_direction']}",
            f"High-confidence signals: {analysis['high_confidence_signals']}",
        ])),
        section("Latest", bullet_lines(
            f"{s['token']}: {s['signal']} ({s['time']})" for s in analysis["latest_signals"]
        )),
        f"Signal data quality: {analysis['quality']} ({analysis['quality_score']}/100)",
    )


# ─── Resistance / Support ────────────────────────────────────────────────────

AVOID_NAME_KEYWORDS = ("wrapped", "bridged", "peg", "binance", "osmosis")
LEVEL_REFERENCE_CUTOFF = datetime(2024, 1, 1)


def select_main_token(data: list, request: Optional[dict] = None) -> Optional[dict]:
    """The API may return look-alike tokens; prefer the requested id, then the plainest name."""
    if not data:
        return None
    token_id = (request or {}).get("token_id")
    if token_id is not None:
        for row in data:
            if row.get("TOKEN_ID") == token_id:
                return row
    for row in data:
        name = str(row.get("TOKEN_NAME", "")).lower()
        if not any(word in name for word in AVOID_NAME_KEYWORDS):
            return row
    return data[0]


def classify_levels(levels: list, now: Optional[datetime] = None) -> tuple[float, list]:
    """Turn raw {level, date} entries into typed levels around a reference price."""
    now = now or datetime.utcnow()
    parsed = []
    for level in levels:
        price = safe_float(level.get("level"))
        if price > 0:
            parsed.append({"price": price, "date": parse_timestamp(level.get("date")), "raw_date": level.get("date")})
    if not parsed:
        return 0.0, []

    recent = sorted((p for p in parsed if p["date"] and p["date"] > LEVEL_REFERENCE_CUTOFF), key=lambda p: p["date"], reverse=True)
    if recent:
        reference = recent[0]["price"]
    else:
        prices = sorted(p["price"] for p in parsed)
        reference = prices[len(prices) // 2]

    result = []
    for p in parsed:
        age_days = (now - p["date"]).days if p["date"] else 0
        strength = max(20.0, 100 - age_days / 10)
        if p["price"] > reference * 1.5 or p["price"] < reference * 0.5:
            strength = min(95.0, strength + 20)
        result.append({
            "type": "RESISTANCE" if p["price"] > reference else "SUPPORT",
            "price": p["price"],
            "strength": round(strength),
            "date": p["raw_date"],
            "days_since": age_days,
        })
    return reference, result


def analyze_resistance_support(data: list, request: Optional[dict] = None, thresholds: Optional[AnalysisThresholds] = None) -> dict:
    thresholds = thresholds or AnalysisThresholds()
    token = select_main_token(data, request)
    if token is None:
        return {"summary": "No resistance and support levels available", "levels": []}

    reference, levels = classify_levels(token.get("HISTORICAL_RESISTANCE_SUPPORT_LEVELS") or [])
    resistance = sorted((lv for lv in levels if lv["type"] == "RESISTANCE"), key=lambda lv: lv["price"])
    support = sorted((lv for lv in levels if lv["type"] == "SUPPORT"), key=lambda lv: lv["price"], reverse=True)
    strong = [lv for lv in levels if lv["strength"] > thresholds.strong_level_strength]

    nearest_resistance = resistance[0] if resistance else None
    nearest_support = support[0] if support else None
    # the reference level itself is classed as support, so measure risk to the next one down
    below = [lv for lv in support if lv["price"] < reference]
    risk_reward = None
    if nearest_resistance and below:
        risk_reward = round((nearest_resistance["price"] - reference) / (reference - below[0]["price"]), 2)

    strengths = [lv["strength"] for lv in levels]
    return {
        "summary": f"{len(levels)} levels ({len(resistance)} resistance, {len(support)} support), {len(strong)} strong",
        "token": token_label(token),
        "token_id": token.get("TOKEN_ID"),
        "reference_price": reference,
        "levels": levels,
        "level_breakdown": {"resistance_levels": len(resistance), "support_levels": len(support), "total_levels": len(levels)},
        "strong_levels": strong,
        "average_strength": round(float(np.mean(strengths)), 1) if strengths else 0,
        "nearest_resistance": nearest_resistance,
        "nearest_support": nearest_support,
        "risk_reward_ratio": risk_reward,
        "key_resistance": sorted(resistance, key=lambda lv: lv["strength"], reverse=True)[:3],
        "key_support": sorted(support, key=lambda lv: lv["strength"], reverse=True)[:3],
    }


def format_resistance_support_response(data: list, analysis: dict, request: dict) -> str:
    if not analysis.get("levels"):
        return "⚠️ No resistance or support levels were returned for this token."

    def level_line(lv: dict) -> str:
        return f"{format_currency(lv['price'])} (strength {lv['strength']}, {lv['date']})"

    lines = []
    if analysis["nearest_resistance"]:
        lines.append(f"Nearest resistance: {level_line(analysis['nearest_resistance'])}")
    if analysis["nearest_support"]:
        lines.append(f"Nearest support: {level_line(analysis['nearest_support'])}")
    if analysis["risk_reward_ratio"] is not None:
        lines.append(f"Reward/risk between nearest levels: {analysis['risk_reward_ratio']}")
    return join_sections(
        f"📐 **{analysis['token']} Resistance & Support**",
        f"Reference price: {format_currency(analysis['reference_price'])}",
        section("Key Levels", bullet_lines(lines)),
        section("Strongest Resistance", bullet_lines(level_line(lv) for lv in analysis["key_resistance"])),
        section("Strongest Support", bullet_lines(level_line(lv) for lv in analysis["key_support"])),
    )


# ─── Moonshot Tokens ─────────────────────────────────────────────────────────

def moonshot_trend(average_grade: float, average_change: float) -> str:
    if average_grade > 70 and average_change > 5:
        return "Strongly Bullish"
    if average_grade > 60 and average_change > 0:
        return "Bullish"
    if average_grade < 40 and average_change < -5:
        return "Bearish"
    if average_change > 0:
        return "Cautiously Optimistic"
    return "Neutral"


def recommendation_strength(average_grade: float) -> str:
    if average_grade > 75:
        return "Very High"
    if average_grade > 60:
        return "High"
    if average_grade > 45:
        return "Moderate"
    return "Low"


def success_probability(average_grade: float) -> str:
    if average_grade > 80:
        return "High (70-85%)"
    if average_grade > 65:
        return "Good (55-70%)"
    if average_grade > 50:
        return "Moderate (40-55%)"
    return "Low (25-40%)"


def _seven_day_change(row: dict) -> float:
    return safe_float(pick(row, "PRICE_CHANGE_PERCENTAGE_7D_IN_CURRENCY", "PRICE_CHANGE_PERCENTAGE_7D"))


def analyze_moonshot_tokens(data: list, request: Optional[dict] = None, thresholds=None) -> dict:
    if not data:
        return {"summary": "No moonshot tokens available", "total_tokens": 0}

    grades = [g for g in (safe_float(r.get("TM_TRADER_GRADE")) for r in data) if g > 0]
    changes = [_seven_day_change(r) for r in data]
    average_grade = float(np.mean(grades)) if grades else 0.0
    average_change = float(np.mean(changes))
    candidates = [r for r in data if safe_float(r.get("TM_TRADER_GRADE")) >= 70 and _seven_day_change(r) > 0]

    return {
        "summary": f"{len(data)} moonshot picks, average trader grade {average_grade:.0f}",
        "total_tokens": len(data),
        "pick_type": (request or {}).get("type", "active"),
        "grade_analysis": {
            "average_grade": round(average_grade),
            "high_grade_count": sum(1 for g in grades if g >= 80),
            "top_performers": sum(1 for g in grades if g >= 90),
            "grade_quality": "High" if average_grade >= 70 else "Medium" if average_grade >= 50 else "Low",
        },
        "performance_analysis": {
            "average_7d_change": round(average_change, 2),
            "positive_performers": sum(1 for c in changes if c > 0),
            "performance_ratio": round(sum(1 for c in changes if c > 0) / len(changes) * 100),
        },
        "market_trend": moonshot_trend(average_grade, average_change),
        "breakout_candidates": [
            {"token": token_label(r), "trader_grade": r.get("TM_TRADER_GRADE"), "change_7d": _seven_day_change(r)}
            for r in candidates[:5]
        ],
        "recommendation_strength": recommendation_strength(average_grade),
        "success_probability": success_probability(average_grade),
        "picks": [
            {
                "token": token_label(r),
                "trader_grade": r.get("TM_TRADER_GRADE"),
                "market_cap": r.get("MARKET_CAP"),
                "change_7d": _seven_day_change(r),
                "roi": r.get("MOONSHOT_ROI") or r.get("ROI"),
                "date": pick(r, "MOONSHOT_DATE", "DATE"),
            }
            for r in data[:10]
        ],
    }


def format_moonshot_tokens_response(data: list, analysis: dict, request: dict) -> str:
    if not analysis.get("total_tokens"):
        return "⚠️ No moonshot tokens were returned for this request."
    picks = [
        f"**{p['token']}**: grade {p['trader_grade']} | 7d {format_percentage(p['change_7d'])}"
        + (f" | MCap {format_currency(p['market_cap'])}" if p["market_cap"] else "")
        for p in analysis["picks"]
    ]
    title = "🚀 **TokenMetrics Moonshot Picks**" if analysis["pick_type"] == "active" else "🚀 **TokenMetrics Past Moonshots**"
    return join_sections(
        title,
        section("Picks", bullet_lines(picks)),
        section("Outlook", bullet_lines([
            f"Trend: {analysis['market_trend']}",
            f"Recommendation strength: {analysis['recommendation_strength']}",
            f"Historical success probability: {analysis['success_probability']}",
        ])),
        "*Moonshots are high-risk, high-reward picks. Size positions accordingly.*",
    )


# ─── Actions ─────────────────────────────────────────────────────────────────

GET_TRADING_SIGNALS = Action(
    name="GET_TRADING_SIGNALS",
    description="Get TokenMetrics AI long/short trading signals with market bias, best opportunities and signal quality",
    category=ActionCategory.SIGNALS,
    endpoint=TOKENMETRICS_ENDPOINTS["trading_signals"],
    similes=["TRADING_SIGNALS", "AI_SIGNALS", "BUY_SELL_SIGNALS"],
    examples=[
        conversation_example("Any bullish trading signals today?", "Here are the latest TokenMetrics AI trading signals.", "GET_TRADING_SIGNALS"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="trading signals",
        endpoint_key="trading_signals",
        schema=TradingSignalsRequest,
        analyze=analyze_trading_signals,
        render=format_trading_signals_response,
        param_keys=(
            "token_id", "symbol", "signal", "startDate", "endDate", "category",
            "exchange", "marketcap", "volume", "fdv", "limit", "page",
        ),
        defaults={"limit": TOKENMETRICS_PAGE_LIMIT, "page": 1},
        data_key="trading_signals",
    )),
)

GET_HOURLY_TRADING_SIGNALS = Action(
    name="GET_HOURLY_TRADING_SIGNALS",
    description="Get TokenMetrics hourly AI trading signals with per-hour distribution and signal quality",
    category=ActionCategory.SIGNALS,
    endpoint=TOKENMETRICS_ENDPOINTS["hourly_trading_signals"],
    similes=["HOURLY_SIGNALS", "INTRADAY_SIGNALS", "SHORT_TERM_SIGNALS"],
    examples=[
        conversation_example("Show hourly signals for ETH", "Here are the hourly AI signals for Ethereum.", "GET_HOURLY_TRADING_SIGNALS"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="hourly trading signals",
        endpoint_key="hourly_trading_signals",
        schema=HourlyTradingSignalsRequest,
        analyze=analyze_hourly_trading_signals,
        render=format_hourly_trading_signals_response,
        param_keys=(
            "token_id", "symbol", "signal", "startDate", "endDate", "category",
            "exchange", "marketcap", "volume", "fdv", "limit", "page",
        ),
        defaults={"limit": 20, "page": 1},
        data_key="hourly_signals",
    )),
)

GET_RESISTANCE_SUPPORT = Action(
    name="GET_RESISTANCE_SUPPORT",
    description="Get historical resistance and support levels for a token, with nearest levels and level strength",
    category=ActionCategory.SIGNALS,
    endpoint=TOKENMETRICS_ENDPOINTS["resistance_support"],
    similes=["RESISTANCE_SUPPORT", "SUPPORT_LEVELS", "KEY_LEVELS", "PRICE_LEVELS"],
    examples=[
        conversation_example("What are the support levels for Bitcoin?", "Here are Bitcoin's key resistance and support levels.", "GET_RESISTANCE_SUPPORT"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="resistance and support levels",
        endpoint_key="resistance_support",
        schema=ResistanceSupportRequest,
        analyze=analyze_resistance_support,
        render=format_resistance_support_response,
        param_keys=("token_id", "symbol", "limit", "page"),
        defaults={"limit": 10, "page": 1},
        require_token=True,
        data_key="resistance_support",
    )),
)

GET_MOONSHOT_TOKENS = Action(
    name="GET_MOONSHOT_TOKENS",
    description="Get TokenMetrics AI moonshot picks (high-upside tokens), current or past, with grade and performance stats",
    category=ActionCategory.SIGNALS,
    endpoint=TOKENMETRICS_ENDPOINTS["moonshot_tokens"],
    similes=["MOONSHOTS", "MOONSHOT_PICKS", "HIGH_POTENTIAL_TOKENS", "GEMS"],
    examples=[
        conversation_example("Any moonshot picks right now?", "Here are the current TokenMetrics moonshot picks.", "GET_MOONSHOT_TOKENS"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="moonshot tokens",
        endpoint_key="moonshot_tokens",
        schema=MoonshotTokensRequest,
        analyze=analyze_moonshot_tokens,
        render=format_moonshot_tokens_response,
        param_keys=("type", "limit", "page"),
        defaults={"type": "active", "limit": 20, "page": 1},
        resolve_token=False,
        data_key="moonshot_tokens",
    )),
)

SIGNALS_ACTIONS = [GET_TRADING_SIGNALS, GET_HOURLY_TRADING_SIGNALS, GET_RESISTANCE_SUPPORT, GET_MOONSHOT_TOKENS]
