"""
indices_actions.py — TokenMetrics crypto index actions.

Implements:
  - GET_INDICES              /v2/indices               active and passive index overview
  - GET_INDICES_HOLDINGS     /v2/indices-holdings      composition, concentration and holding risk
  - GET_INDICES_PERFORMANCE  /v2/indices-performance   historical ROI, drawdown and VaR
"""

import logging
import math
from typing import Optional

import numpy as np
import pandas as pd

from action_base import Action, ActionCategory, EndpointCall, conversation_example, endpoint_handler
from agent_config import AnalysisThresholds
from config import TOKENMETRICS_ENDPOINTS, TOKENMETRICS_PAGE_LIMIT
from formatting import (
    bullet_lines,
    format_currency,
    format_percentage,
    join_sections,
    pick,
    safe_float,
    section,
)
from llm_extraction import IndicesHoldingsRequest, IndicesPerformanceRequest, IndicesRequest

logger = logging.getLogger(__name__)

RECENT_WINDOW = 7
VAR_CONFIDENCE = 0.05


def _wants(request: Optional[dict], *sections: str) -> bool:
    analysis_type = (request or {}).get("analysisType") or "all"
    return analysis_type == "all" or analysis_type in sections


# ─── Indices overview ────────────────────────────────────────────────────────

def index_diversification(coins: int) -> str:
    if coins > 20:
        return "Highly Diversified"
    elif coins >= 10:
        return "Moderately Diversified"
    return "Focused"


def analyze_indices(data: list, request: Optional[dict] = None, thresholds=None) -> dict:
    """Summarize a page of indices: returns, grade buckets and diversification."""
    if not data:
        return {"summary": "No indices found", "total_indices": 0}

    rows = []
    for row in data:
        rows.append({
            "name": str(pick(row, "NAME", "INDEX_NAME", default="Unknown")),
            "id": pick(row, "ID", "INDEX_ID"),
            "all_time": safe_float(row.get("ALL_TIME")),
            "one_month": safe_float(row.get("1M")),
            "grade": safe_float(pick(row, "INDEX_GRADE", "GRADE")),
            "coins": int(safe_float(pick(row, "COINS", "NUM_COINS"))),
        })

    analysis = {
        "summary": f"Analyzed {len(rows)} indices",
        "total_indices": len(rows),
    }

    if _wants(request, "performance"):
        by_all_time = sorted(rows, key=lambda r: r["all_time"], reverse=True)
        analysis["performance"] = {
            "average_all_time_return": round(float(np.mean([r["all_time"] for r in rows])), 2),
            "average_1m_return": round(float(np.mean([r["one_month"] for r in rows])), 2),
            "top_performers": by_all_time[:3],
            "best_recent": max(rows, key=lambda r: r["one_month"]),
        }

    if _wants(request, "risk"):
        grades = [r["grade"] for r in rows]
        analysis["risk"] = {
            "average_grade": round(float(np.mean(grades)), 1),
            "high_grade": sum(1 for g in grades if g > 70),
            "medium_grade": sum(1 for g in grades if 30 <= g <= 70),
            "low_grade": sum(1 for g in grades if g < 30),
        }

    if _wants(request, "diversification"):
        buckets = {"Highly Diversified": 0, "Moderately Diversified": 0, "Focused": 0}
        for r in rows:
            buckets[index_diversification(r["coins"])] += 1
        analysis["diversification"] = {
            "average_coins": round(float(np.mean([r["coins"] for r in rows])), 1),
            "distribution": buckets,
        }

    return analysis


def format_indices_response(data: list, analysis: dict, request: dict) -> str:
    if not data:
        return "⚠️ No TokenMetrics indices matched this request."
    kind = (request.get("indicesType") or "all").title()
    performance = analysis.get("performance")
    risk = analysis.get("risk")
    diversification = analysis.get("diversification")
    return join_sections(
        f"📚 **TokenMetrics Indices** ({kind}, {analysis['total_indices']} indices)",
        section("Performance", bullet_lines([
            f"Average all-time return {format_percentage(performance['average_all_time_return'])}",
            f"Average 1M return {format_percentage(performance['average_1m_return'])}",
            f"Best last month: {performance['best_recent']['name']} ({format_percentage(performance['best_recent']['one_month'])})",
        ])) if performance else "",
        section("Top Performers", bullet_lines(
            f"{r['name']} (id {r['id']}): {format_percentage(r['all_time'])} all-time, grade {r['grade']:.1f}"
            for r in performance["top_performers"]
        )) if performance else "",
        section("Grades", bullet_lines([
            f"Average grade {risk['average_grade']}",
            f"High (>70): {risk['high_grade']} | Medium: {risk['medium_grade']} | Low (<30): {risk['low_grade']}",
        ])) if risk else "",
        section("Diversification", bullet_lines(
            [f"Average coins per index {diversification['average_coins']}"]
            + [f"{label}: {count}" for label, count in diversification["distribution"].items()]
        )) if diversification else "",
    )


# ─── Holdings ────────────────────────────────────────────────────────────────

def concentration_level(top5_weight: float) -> str:
    if top5_weight > 60:
        return "High"
    elif top5_weight > 40:
        return "Medium"
    return "Low"


def herfindahl_index(weights: list) -> float:
    """HHI over weights normalized to sum to one (1.0 = single holding)."""
    total = sum(weights)
    if total <= 0:
        return 0.0
    return sum((w / total) ** 2 for w in weights)


def analyze_indices_holdings(data: list, request: Optional[dict] = None, thresholds: Optional[AnalysisThresholds] = None) -> dict:
    """Composition, concentration and volatility of an index's holdings."""
    thresholds = thresholds or AnalysisThresholds()
    if not data:
        return {"summary": "No holdings found", "total_holdings": 0}

    holdings = []
    for row in data:
        holdings.append({
            "name": str(pick(row, "TOKEN_NAME", "NAME", default="Unknown")),
            "symbol": str(pick(row, "TOKEN_SYMBOL", "SYMBOL", default="")).upper(),
            "weight": safe_float(row.get("WEIGHT_PERCENTAGE")),
            "value": safe_float(row.get("ALLOCATION_VALUE")),
            "price": safe_float(row.get("PRICE")),
            "change_24h": safe_float(row.get("PRICE_CHANGE_PERCENTAGE_24H")),
            "market_cap": safe_float(row.get("MARKET_CAP")),
        })
    by_weight = sorted(holdings, key=lambda h: h["weight"], reverse=True)
    weights = [h["weight"] for h in by_weight]

    analysis = {
        "summary": f"Index holds {len(holdings)} tokens",
        "total_holdings": len(holdings),
        "total_weight": round(sum(weights), 2),
        "total_value": sum(h["value"] for h in holdings),
    }

    if _wants(request, "composition"):
        top5 = sum(weights[:5])
        analysis["composition"] = {
            "top_holdings": by_weight[:5],
            "top3_concentration": round(sum(weights[:3]), 2),
            "top5_concentration": round(top5, 2),
            "concentration_level": concentration_level(top5),
            "weight_buckets": {
                "major (>10%)": sum(1 for w in weights if w > 10),
                "moderate (1-10%)": sum(1 for w in weights if 1 <= w <= 10),
                "minor (<1%)": sum(1 for w in weights if w < 1),
            },
        }

    if _wants(request, "risk"):
        tiers = {"large_cap": 0, "mid_cap": 0, "small_cap": 0}
        for h in holdings:
            if h["market_cap"] >= thresholds.large_cap:
                tiers["large_cap"] += 1
            elif h["market_cap"] >= thresholds.mid_cap:
                tiers["mid_cap"] += 1
            else:
                tiers["small_cap"] += 1
        analysis["risk"] = {
            "market_cap_tiers": tiers,
            "volatile_holdings": sum(1 for h in holdings if abs(h["change_24h"]) > 15),
            "stable_holdings": sum(1 for h in holdings if abs(h["change_24h"]) < 5),
            "herfindahl_index": round(herfindahl_index(weights), 4),
        }

    if _wants(request, "performance"):
        by_change = sorted(holdings, key=lambda h: h["change_24h"], reverse=True)
        weighted = sum(h["weight"] * h["change_24h"] for h in holdings) / sum(weights) if sum(weights) > 0 else 0.0
        analysis["performance"] = {
            "best_performer": by_change[0],
            "worst_performer": by_change[-1],
            "weighted_change_24h": round(weighted, 2),
            "gainers": sum(1 for h in holdings if h["change_24h"] > 0),
            "losers": sum(1 for h in holdings if h["change_24h"] < 0),
        }

    return analysis


def format_indices_holdings_response(data: list, analysis: dict, request: dict) -> str:
    if not data:
        return f"⚠️ No holdings were returned for index {request.get('indexId')}."
    composition = analysis.get("composition")
    risk = analysis.get("risk")
    performance = analysis.get("performance")

    def holding(h: dict) -> str:
        label = f"{h['name']} ({h['symbol']})" if h["symbol"] else h["name"]
        return f"{label}: {h['weight']:.2f}% @ {format_currency(h['price'])} ({format_percentage(h['change_24h'])} 24h)"

    return join_sections(
        f"🧺 **Index {request.get('indexId')} Holdings** ({analysis['total_holdings']} tokens, "
        f"{analysis['total_weight']:.1f}% weight)",
        section("Top Holdings", bullet_lines(holding(h) for h in composition["top_holdings"])) if composition else "",
        section("Concentration", bullet_lines(
            [
                f"Top 3: {composition['top3_concentration']:.1f}% | Top 5: {composition['top5_concentration']:.1f}%",
                f"Concentration: **{composition['concentration_level']}**",
            ]
            + [f"{label}: {count}" for label, count in composition["weight_buckets"].items()]
        )) if composition else "",
        section("Risk", bullet_lines([
            "Market caps: " + ", ".join(f"{tier.replace('_', ' ')} {count}" for tier, count in risk["market_cap_tiers"].items()),
            f"Volatile (>15% 24h): {risk['volatile_holdings']} | Stable (<5%): {risk['stable_holdings']}",
            f"Herfindahl index {risk['herfindahl_index']}",
        ])) if risk else "",
        section("24h Performance", bullet_lines([
            f"Weighted change {format_percentage(performance['weighted_change_24h'])}",
            f"Best: {holding(performance['best_performer'])}",
            f"Worst: {holding(performance['worst_performer'])}",
        ])) if performance else "",
    )


# ─── Performance ─────────────────────────────────────────────────────────────

def historical_var(returns: pd.Series, confidence: float = VAR_CONFIDENCE) -> float:
    """Historical VaR: the return at the given lower percentile of observed period returns."""
    if returns.empty:
        return 0.0
    ordered = returns.sort_values().reset_index(drop=True)
    return float(ordered.iloc[int(math.floor(len(ordered) * confidence))])


def max_drawdown(roi: pd.Series) -> float:
    """Deepest fall of cumulative ROI below its running peak, in ROI points."""
    if roi.empty:
        return 0.0
    return float((roi - roi.cummax()).min())


def performance_trend(recent_return: float) -> str:
    if recent_return > 5:
        return "Strong Uptrend"
    elif recent_return > 0:
        return "Uptrend"
    elif recent_return > -5:
        return "Downtrend"
    return "Strong Downtrend"


def analyze_indices_performance(data: list, request: Optional[dict] = None, thresholds=None) -> dict:
    """Return and risk statistics over an index's cumulative ROI history."""
    if not data:
        return {"summary": "No performance history found", "data_points": 0}

    df = pd.DataFrame(data)
    if "DATE" in df:
        df["_ts"] = pd.to_datetime(df["DATE"], errors="coerce", utc=True)
        df = df.sort_values("_ts", kind="stable").reset_index(drop=True)
    if "INDEX_CUMULATIVE_ROI" not in df:
        return {"summary": "No cumulative ROI values in the history", "data_points": 0}
    roi = pd.to_numeric(df["INDEX_CUMULATIVE_ROI"], errors="coerce").dropna().reset_index(drop=True)
    if roi.empty:
        return {"summary": "No cumulative ROI values in the history", "data_points": 0}

    returns = roi.diff().dropna()
    analysis = {
        "summary": f"Analyzed {len(roi)} performance data points",
        "data_points": len(roi),
        "period": {
            "start": str(df["DATE"].iloc[0]) if "DATE" in df else None,
            "end": str(df["DATE"].iloc[-1]) if "DATE" in df else None,
        },
    }

    if _wants(request, "returns"):
        recent = roi.tail(RECENT_WINDOW)
        recent_return = float(recent.iloc[-1] - recent.iloc[0]) if len(recent) > 1 else 0.0
        analysis["returns"] = {
            "total_return": round(float(roi.iloc[-1] - roi.iloc[0]), 2),
            "latest_cumulative_roi": round(float(roi.iloc[-1]), 2),
            "average_period_return": round(float(returns.mean()), 4) if not returns.empty else 0.0,
            "best_period": round(float(returns.max()), 2) if not returns.empty else 0.0,
            "worst_period": round(float(returns.min()), 2) if not returns.empty else 0.0,
            "win_rate": round(float((returns > 0).mean() * 100), 1) if not returns.empty else 0.0,
            "recent_return": round(recent_return, 2),
            "recent_trend": performance_trend(recent_return),
        }

    if _wants(request, "risk"):
        volatility = float(returns.std(ddof=0)) if len(returns) > 1 else 0.0
        risk_adjusted = float(returns.mean() * np.sqrt(365) / volatility) if volatility > 0 else 0.0
        analysis["risk"] = {
            "volatility": round(volatility, 4),
            "max_drawdown": round(max_drawdown(roi), 2),
            "var_5": round(historical_var(returns), 4),
            "risk_adjusted_return": round(risk_adjusted, 2),
        }

    if _wants(request, "comparison"):
        latest = df.iloc[-1].to_dict()
        analysis["latest_metrics"] = {
            "market_cap": safe_float(latest.get("MARKET_CAP")),
            "volume": safe_float(latest.get("VOLUME")),
            "fdv": safe_float(latest.get("FDV")),
        }

    return analysis


def format_indices_performance_response(data: list, analysis: dict, request: dict) -> str:
    if not data or not analysis.get("data_points"):
        return f"⚠️ No performance history was returned for index {request.get('indexId')}."
    period = analysis["period"]
    returns = analysis.get("returns")
    risk = analysis.get("risk")
    latest = analysis.get("latest_metrics")
    span = f" ({period['start']} → {period['end']})" if period.get("start") else ""
    return join_sections(
        f"📈 **Index {request.get('indexId')} Performance**{span}",
        section("Returns", bullet_lines([
            f"Total ROI change {format_percentage(returns['total_return'])} "
            f"(cumulative {format_percentage(returns['latest_cumulative_roi'])})",
            f"Best period {format_percentage(returns['best_period'])} | Worst {format_percentage(returns['worst_period'])}",
            f"Win rate {returns['win_rate']:.1f}%",
            f"Last {RECENT_WINDOW} points: {format_percentage(returns['recent_return'])} ({returns['recent_trend']})",
        ])) if returns else "",
        section("Risk", bullet_lines([
            f"Volatility {risk['volatility']:.2f}",
            f"Max drawdown {risk['max_drawdown']:.2f} pts",
            f"Historical VaR (5%) {risk['var_5']:.2f}",
            f"Risk-adjusted return {risk['risk_adjusted_return']:.2f}",
        ])) if risk else "",
        section("Latest", bullet_lines([
            f"Market cap {format_currency(latest['market_cap'])}",
            f"Volume {format_currency(latest['volume'])}",
            f"FDV {format_currency(latest['fdv'])}",
        ])) if latest else "",
    )


# ═══════════════════════════════════════════════════════════════════════════════
# ACTIONS
# ═══════════════════════════════════════════════════════════════════════════════

GET_INDICES = Action(
    name="GET_INDICES",
    description="Get TokenMetrics crypto indices with returns, grades and diversification",
    category=ActionCategory.INDICES,
    endpoint=TOKENMETRICS_ENDPOINTS["indices"],
    similes=["INDICES", "CRYPTO_INDICES", "LIST_INDICES", "INDEX_OVERVIEW"],
    examples=[
        conversation_example("Show me the active crypto indices", "Here are the active TokenMetrics indices.", "GET_INDICES"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="indices",
        endpoint_key="indices",
        schema=IndicesRequest,
        analyze=analyze_indices,
        render=format_indices_response,
        param_keys=("indicesType", "limit", "page"),
        defaults={"limit": TOKENMETRICS_PAGE_LIMIT, "page": 1},
        resolve_token=False,
    )),
)

GET_INDICES_HOLDINGS = Action(
    name="GET_INDICES_HOLDINGS",
    description="Get the token holdings of a TokenMetrics index with weights, concentration and risk",
    category=ActionCategory.INDICES,
    endpoint=TOKENMETRICS_ENDPOINTS["indices_holdings"],
    similes=["INDEX_HOLDINGS", "INDEX_COMPOSITION", "INDEX_TOKENS"],
    examples=[
        conversation_example("What does index 1 hold?", "Here are the holdings of index 1.", "GET_INDICES_HOLDINGS"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="index holdings",
        endpoint_key="indices_holdings",
        schema=IndicesHoldingsRequest,
        analyze=analyze_indices_holdings,
        render=format_indices_holdings_response,
        param_keys=("indexId",),
        param_map={"indexId": "id"},
        resolve_token=False,
        required=("indexId",),
        solutions=("Ask for GET_INDICES first to find a valid index id",),
    )),
)

GET_INDICES_PERFORMANCE = Action(
    name="GET_INDICES_PERFORMANCE",
    description="Get historical performance of a TokenMetrics index with drawdown, volatility and VaR",
    category=ActionCategory.INDICES,
    endpoint=TOKENMETRICS_ENDPOINTS["indices_performance"],
    similes=["INDEX_PERFORMANCE", "INDEX_RETURNS", "INDEX_HISTORY"],
    examples=[
        conversation_example("How has index 3 performed this year?", "Here is the performance of index 3.", "GET_INDICES_PERFORMANCE"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="index performance",
        endpoint_key="indices_performance",
        schema=IndicesPerformanceRequest,
        analyze=analyze_indices_performance,
        render=format_indices_performance_response,
        param_keys=("indexId", "startDate", "endDate", "limit", "page"),
        param_map={"indexId": "id"},
        defaults={"limit": TOKENMETRICS_PAGE_LIMIT, "page": 1},
        resolve_token=False,
        required=("indexId",),
        solutions=("Ask for GET_INDICES first to find a valid index id",),
    )),
)

INDICES_ACTIONS = [
    GET_INDICES,
    GET_INDICES_HOLDINGS,
    GET_INDICES_PERFORMANCE,
]
