"""
market_actions.py — Market data actions: token lookup, market cap ranking, prices, market metrics.

Implements:
  - GET_TOKENS          /v2/tokens                  token directory with TOKEN_IDs
  - GET_TOP_MARKET_CAP  /v2/top-market-cap-tokens   ranking, dominance, market structure
  - GET_PRICE           /v2/price                   price, 24h change, volume/market cap
  - GET_MARKET_METRICS  /v2/market-metrics          TM market signal and total market cap
"""

import logging
from collections import Counter
from typing import Optional

import numpy as np

from action_base import Action, ActionCategory, EndpointCall, conversation_example, endpoint_handler
from agent_config import AnalysisThresholds
from config import MAX_TOP_K, TOKENMETRICS_ENDPOINTS, TOKENMETRICS_PAGE_LIMIT
from formatting import (
    bullet_lines,
    format_currency,
    format_date,
    format_percentage,
    join_sections,
    parse_timestamp,
    pick,
    safe_float,
    section,
    token_label,
)
from llm_extraction import MarketMetricsRequest, PriceRequest, TokensRequest, TopMarketCapRequest

logger = logging.getLogger(__name__)


# ─── Tokens ──────────────────────────────────────────────────────────────────

def analyze_tokens(data: list, request: Optional[dict] = None, thresholds=None) -> dict:
    """Category / exchange breakdown of a token listing."""
    if not data:
        return {"summary": "No tokens matched the request", "categories": {}, "exchanges": {}}

    categories: Counter = Counter()
    exchanges: Counter = Counter()
    for row in data:
        for category in _split_names(pick(row, "CATEGORY_LIST", "CATEGORY")):
            categories[category] += 1
        for exchange in _split_names(pick(row, "EXCHANGE_LIST", "EXCHANGE")):
            exchanges[exchange] += 1

    return {
        "summary": f"Found {len(data)} tokens in the TokenMetrics database",
        "total_tokens": len(data),
        "categories": dict(categories.most_common(5)),
        "exchanges": dict(exchanges.most_common(5)),
        "usage_notes": [
            "Use TOKEN_ID for precise lookups in other TokenMetrics endpoints",
            "Symbols are not unique across chains; prefer TOKEN_ID when available",
        ],
    }


def _split_names(value) -> list[str]:
    if not value:
        return []
    if isinstance(value, list):
        return [str(v.get("category_name") or v.get("exchange_name") or v) if isinstance(v, dict) else str(v) for v in value]
    return [part.strip() for part in str(value).split(",") if part.strip()]


def format_tokens_response(data: list, analysis: dict, request: dict) -> str:
    lines = [
        f"**{row.get('TOKEN_NAME', 'Unknown')}** ({row.get('TOKEN_SYMBOL', '?')}) - TOKEN_ID: {row.get('TOKEN_ID', 'N/A')}"
        for row in data[:10]
    ]
    return join_sections(
        f"🔎 **TokenMetrics Token Directory** ({analysis.get('total_tokens', 0)} tokens)",
        section("Tokens", bullet_lines(lines)) or "No tokens found for this search.",
        section("Top Categories", bullet_lines(f"{k}: {v}" for k, v in analysis.get("categories", {}).items())),
        section("Top Exchanges", bullet_lines(f"{k}: {v}" for k, v in analysis.get("exchanges", {}).items())),
        section("Notes", bullet_lines(analysis.get("usage_notes", []))),
    )


# ─── Top Market Cap ──────────────────────────────────────────────────────────

def dominance_level(top1_share: float) -> str:
    if top1_share > 50:
        return "Extremely High"
    if top1_share > 40:
        return "Very High"
    if top1_share > 30:
        return "High"
    if top1_share > 20:
        return "Moderate"
    return "Low"


def market_structure(average_gap: float) -> str:
    if average_gap > 100:
        return "Highly Tiered"
    if average_gap > 50:
        return "Well Stratified"
    if average_gap > 25:
        return "Moderately Stratified"
    return "Closely Competitive"


def analyze_top_market_cap(data: list, request: Optional[dict] = None, thresholds=None) -> dict:
    """Concentration, market structure and sector split of the top tokens."""
    if not data:
        return {"summary": "No market cap data available", "dominance_level": "Unknown"}

    caps = [safe_float(pick(row, "MARKET_CAP")) for row in data]
    total = sum(caps)
    if total <= 0:
        return {"summary": "Market cap values missing from response", "dominance_level": "Unknown"}

    top1 = caps[0] / total * 100
    top5 = sum(caps[:5]) / total * 100
    top10 = sum(caps[:10]) / total * 100

    gaps = [
        (caps[i - 1] - caps[i]) / caps[i] * 100
        for i in range(1, min(len(caps), 10))
        if caps[i] > 0
    ]
    structure = market_structure(float(np.mean(gaps))) if len(data) >= 5 and gaps else "Insufficient data"

    sector_caps: dict[str, float] = {}
    sector_counts: Counter = Counter()
    for row, cap in zip(data, caps):
        sector = pick(row, "CATEGORY", default="Unknown")
        sector_caps[sector] = sector_caps.get(sector, 0.0) + cap
        sector_counts[sector] += 1
    top_sectors = [
        {
            "sector": sector,
            "token_count": sector_counts[sector],
            "total_market_cap": format_currency(cap),
            "percentage": round(cap / total * 100, 1),
        }
        for sector, cap in sorted(sector_caps.items(), key=lambda item: item[1], reverse=True)[:5]
    ]
    hhi = sum((cap / total) ** 2 for cap in sector_caps.values())

    level = dominance_level(top1)
    insights = []
    if level in ("Very High", "Extremely High"):
        insights.append("High concentration: the leading token largely sets overall market direction.")
    elif level == "Low":
        insights.append("Low concentration: market value is spread across many significant tokens.")
    if structure == "Highly Tiered":
        insights.append("Large gaps between ranks show an established hierarchy.")
    elif structure == "Closely Competitive":
        insights.append("Small gaps between ranks indicate active competition for position.")
    insights.append(f"{token_label(data[0])} leads with {format_currency(caps[0])} market cap.")

    return {
        "summary": f"Top {len(data)} tokens hold {format_currency(total)} with {level.lower()} concentration",
        "total_market_cap": format_currency(total),
        "dominance_level": level,
        "top_1_dominance": round(top1, 1),
        "top_5_concentration": round(top5, 1),
        "top_10_concentration": round(top10, 1),
        "market_structure": structure,
        "average_market_cap_gap": round(float(np.mean(gaps)), 1) if gaps else None,
        "top_sectors": top_sectors,
        "sector_diversification_score": round((1 - hhi) * 100),
        "overall_risk_level": "High Concentration" if top1 > 40 else "Moderate",
        "insights": insights,
    }


def format_top_market_cap_response(data: list, analysis: dict, request: dict) -> str:
    rankings = [
        f"{i}. **{token_label(row)}** - {format_currency(pick(row, 'MARKET_CAP'))} | "
        f"Price {format_currency(pick(row, 'PRICE', 'CURRENT_PRICE'))}"
        for i, row in enumerate(data[:10], 1)
    ]
    overview = [
        f"Total market cap: {analysis.get('total_market_cap', 'N/A')}",
        f"Dominance: {analysis.get('dominance_level')} ({analysis.get('top_1_dominance', 0)}% top token)",
        f"Top 5 concentration: {analysis.get('top_5_concentration', 0)}%",
        f"Top 10 concentration: {analysis.get('top_10_concentration', 0)}%",
        f"Structure: {analysis.get('market_structure', 'N/A')}",
    ] if analysis.get("total_market_cap") else []
    sectors = [f"{s['sector']}: {s['percentage']}% ({s['token_count']} tokens)" for s in analysis.get("top_sectors", [])]
    return join_sections(
        f"🏆 **Top {len(data)} Cryptocurrencies by Market Cap**",
        "\n".join(rankings) or "No ranking data returned.",
        section("Market Overview", bullet_lines(overview)),
        section("Sectors", bullet_lines(sectors)),
        section("Insights", bullet_lines(analysis.get("insights", []))),
    )


# ─── Price ───────────────────────────────────────────────────────────────────

def price_sentiment(average_change: float) -> str:
    if average_change > 2:
        return "Bullish"
    if average_change > 0.5:
        return "Mildly Bullish"
    if average_change > -0.5:
        return "Neutral"
    if average_change > -2:
        return "Mildly Bearish"
    return "Bearish"


def change_volatility(std: float) -> str:
    if std > 8:
        return "Very High"
    if std > 5:
        return "High"
    if std > 3:
        return "Moderate"
    return "Low"


def analyze_price_data(data: list, request: Optional[dict] = None, thresholds: Optional[AnalysisThresholds] = None) -> dict:
    """Trend, sentiment, volatility, volume activity and cap tiers for price rows."""
    thresholds = thresholds or AnalysisThresholds()
    if not data:
        return {"summary": "No price data available for analysis", "insights": []}

    changes = [
        safe_float(pick(row, "PRICE_24H_CHANGE_PERCENT", "PRICE_CHANGE_PERCENTAGE_24H"), None)
        for row in data
    ]
    changes = [c for c in changes if c is not None]

    analysis: dict = {"tokens_analyzed": len(data)}

    if changes:
        positive = sum(1 for c in changes if c > 0)
        negative = sum(1 for c in changes if c < 0)
        if positive > negative * 1.5:
            trend = "Bullish"
        elif negative > positive * 1.5:
            trend = "Bearish"
        else:
            trend = "Mixed"
        average = float(np.mean(changes))
        std = float(np.std(changes)) if len(changes) > 1 else 0.0
        strong_moves = sum(1 for c in changes if abs(c) > 5)
        momentum_pct = strong_moves / len(changes) * 100

        analysis["market_overview"] = {
            "average_24h_change": format_percentage(average),
            "tokens_positive": positive,
            "tokens_negative": negative,
            "tokens_neutral": len(changes) - positive - negative,
            "market_trend": trend,
            "positive_percentage": round(positive / len(changes) * 100, 1),
        }
        analysis["market_conditions"] = {
            "overall_sentiment": price_sentiment(average),
            "volatility": change_volatility(std),
            "volatility_score": round(std, 2),
            "momentum": "Strong" if momentum_pct > 30 else "Moderate" if momentum_pct > 15 else "Weak",
            "strong_movers": strong_moves,
        }
    else:
        analysis["market_overview"] = {"market_trend": "Unknown"}
        analysis["market_conditions"] = {"overall_sentiment": "Unknown", "volatility": "Unknown", "momentum": "Unknown"}

    ranked = sorted(
        (row for row in data if pick(row, "PRICE_24H_CHANGE_PERCENT", "PRICE_CHANGE_PERCENTAGE_24H") is not None),
        key=lambda row: safe_float(pick(row, "PRICE_24H_CHANGE_PERCENT", "PRICE_CHANGE_PERCENTAGE_24H")),
        reverse=True,
    )
    def performer(row: dict) -> dict:
        return {
            "name": token_label(row),
            "price": format_currency(pick(row, "PRICE", "CURRENT_PRICE")),
            "change_24h": format_percentage(pick(row, "PRICE_24H_CHANGE_PERCENT", "PRICE_CHANGE_PERCENTAGE_24H")),
        }

    analysis["performance_analysis"] = {
        "top_performers": [performer(r) for r in ranked[:3]],
        "underperformers": [performer(r) for r in reversed(ranked[-3:])],
    }

    ratios = []
    for row in data:
        volume = safe_float(pick(row, "VOLUME_24H", "TOTAL_VOLUME"))
        cap = safe_float(pick(row, "MARKET_CAP"))
        if volume > 0 and cap > 0:
            ratios.append((pick(row, "SYMBOL", "TOKEN_SYMBOL"), volume / cap))
    mean_ratio = float(np.mean([r for _, r in ratios])) if ratios else 0.0
    analysis["volume_analysis"] = {
        "total_volume": format_currency(sum(safe_float(pick(r, "VOLUME_24H", "TOTAL_VOLUME")) for r in data)),
        "average_volume_ratio": f"{mean_ratio * 100:.2f}%",
        "high_activity_tokens": [symbol for symbol, ratio in ratios if ratio > 0.1],
        "liquidity_assessment": "Good" if mean_ratio > 0.05 else "Moderate",
    }

    caps = [safe_float(pick(row, "MARKET_CAP")) for row in data if safe_float(pick(row, "MARKET_CAP")) > 0]
    analysis["market_cap_analysis"] = {
        "total_market_cap": format_currency(sum(caps)),
        "large_cap_tokens": sum(1 for c in caps if c > thresholds.large_cap),
        "mid_cap_tokens": sum(1 for c in caps if thresholds.mid_cap < c <= thresholds.large_cap),
        "small_cap_tokens": sum(1 for c in caps if c <= thresholds.mid_cap),
    }

    insights = []
    trend = analysis["market_overview"].get("market_trend")
    if trend == "Bullish":
        insights.append(f"Bullish: {analysis['market_overview']['positive_percentage']}% of tokens are up over 24h.")
    elif trend == "Bearish":
        insights.append("Bearish: most tokens declined over the last 24h.")
    elif trend == "Mixed":
        insights.append("Mixed signals with similar numbers of gainers and losers.")
    if ranked:
        top = analysis["performance_analysis"]["top_performers"][0]
        insights.append(f"{top['name']} leads with a {top['change_24h']} 24h change.")
    if analysis["volume_analysis"]["high_activity_tokens"]:
        insights.append(
            f"{len(analysis['volume_analysis']['high_activity_tokens'])} tokens trade more than 10% of their market cap daily."
        )
    analysis["insights"] = insights
    analysis["summary"] = (
        f"Price analysis of {len(data)} tokens shows "
        f"{analysis['market_conditions']['overall_sentiment']} conditions"
    )
    return analysis


def format_price_response(data: list, analysis: dict, request: dict) -> str:
    if not data:
        return f"⚠️ No price data found for {request.get('token_name') or request.get('symbol') or 'the requested token'}."

    if len(data) == 1:
        row = data[0]
        change = pick(row, "PRICE_24H_CHANGE_PERCENT", "PRICE_CHANGE_PERCENTAGE_24H")
        details = [
            f"Price: **{format_currency(pick(row, 'PRICE', 'CURRENT_PRICE'))}**",
            f"24h Change: {format_percentage(change)}" if change is not None else "",
            f"Market Cap: {format_currency(pick(row, 'MARKET_CAP'))}" if pick(row, "MARKET_CAP") else "",
            f"24h Volume: {format_currency(pick(row, 'VOLUME_24H', 'TOTAL_VOLUME'))}" if pick(row, "VOLUME_24H", "TOTAL_VOLUME") else "",
            f"Updated: {format_date(pick(row, 'TIMESTAMP', 'DATE'))}" if pick(row, "TIMESTAMP", "DATE") else "",
        ]
        header = f"💰 **{token_label(row) if pick(row, 'TOKEN_NAME', 'NAME') else request.get('token_name', 'Token')} Price**"
        return join_sections(header, "\n".join(bullet_lines(details)), "*Data source: TokenMetrics API*")

    conditions = analysis.get("market_conditions", {})
    return join_sections(
        f"💰 **Price Overview** ({len(data)} tokens)",
        section("Market Conditions", bullet_lines([
            f"Sentiment: {conditions.get('overall_sentiment')}",
            f"Volatility: {conditions.get('volatility')}",
            f"Momentum: {conditions.get('momentum')}",
        ])),
        section("Top Performers", bullet_lines(
            f"{p['name']}: {p['price']} ({p['change_24h']})"
            for p in analysis.get("performance_analysis", {}).get("top_performers", [])
        )),
        section("Insights", bullet_lines(analysis.get("insights", []))),
    )


# ─── Market Metrics ──────────────────────────────────────────────────────────

def signal_label(signal) -> str:
    value = safe_float(signal)
    if value > 0:
        return "Bullish"
    if value < 0:
        return "Bearish"
    return "Neutral"


def market_cap_trend(change_pct: float) -> str:
    if change_pct > 10:
        return "Strong Growth"
    if change_pct > 2:
        return "Moderate Growth"
    if change_pct > -2:
        return "Stable"
    if change_pct > -10:
        return "Moderate Decline"
    return "Significant Decline"


def analyze_market_metrics(data: list, request: Optional[dict] = None, thresholds=None) -> dict:
    """TM market signal history and total crypto market cap trend."""
    if not data:
        return {"summary": "No market metrics available", "current_sentiment": "Unknown"}

    rows = sorted(data, key=lambda r: parse_timestamp(r.get("DATE")) or parse_timestamp("1970-01-01"))
    signals = [safe_float(r.get("LAST_TM_GRADE_SIGNAL")) for r in rows]
    latest = rows[-1]

    flips = sum(1 for prev, cur in zip(signals, signals[1:]) if cur != prev)
    bullish = sum(1 for s in signals if s > 0)
    bearish = sum(1 for s in signals if s < 0)

    analysis = {
        "current_sentiment": signal_label(latest.get("LAST_TM_GRADE_SIGNAL")),
        "current_signal": latest.get("LAST_TM_GRADE_SIGNAL"),
        "current_date": latest.get("DATE"),
        "total_market_cap": format_currency(latest.get("TOTAL_CRYPTO_MCAP")),
        "signal_distribution": {
            "bullish_count": bullish,
            "bearish_count": bearish,
            "neutral_count": len(signals) - bullish - bearish,
            "bullish_percentage": round(bullish / len(signals) * 100, 1),
            "signal_changes": flips,
            "stability_score": round(max(0.0, 100 - flips / len(signals) * 100), 1),
        },
    }

    recent = signals[-7:]
    if len(recent) >= 3:
        recent_bull = sum(1 for s in recent if s > 0)
        recent_bear = sum(1 for s in recent if s < 0)
        recent_flips = sum(1 for prev, cur in zip(recent, recent[1:]) if cur != prev)
        if recent_bull > recent_bear * 1.5:
            direction = "Predominantly Bullish"
        elif recent_bear > recent_bull * 1.5:
            direction = "Predominantly Bearish"
        else:
            direction = "Mixed/Neutral"
        if recent_flips >= len(recent) * 0.4:
            flip_volatility = "High"
        elif recent_flips >= len(recent) * 0.2:
            flip_volatility = "Moderate"
        else:
            flip_volatility = "Low"
        analysis["trend_analysis"] = {
            "trend_direction": direction,
            "consistency": round((len(recent) - recent_flips) / len(recent) * 100, 1),
            "recent_changes": recent_flips,
            "volatility": flip_volatility,
        }
    else:
        analysis["trend_analysis"] = {"trend_direction": "Insufficient data", "volatility": "Unknown"}

    start_cap = safe_float(rows[0].get("TOTAL_CRYPTO_MCAP"))
    end_cap = safe_float(latest.get("TOTAL_CRYPTO_MCAP"))
    if len(rows) >= 2 and start_cap > 0:
        change = (end_cap - start_cap) / start_cap * 100
        analysis["market_cap_trend"] = {
            "trend": market_cap_trend(change),
            "change_percentage": round(change, 2),
            "start_market_cap": format_currency(start_cap),
            "end_market_cap": format_currency(end_cap),
        }
    else:
        analysis["market_cap_trend"] = {"trend": "Insufficient data"}

    analysis["period"] = {"start": rows[0].get("DATE"), "end": latest.get("DATE"), "data_points": len(rows)}
    analysis["summary"] = (
        f"TokenMetrics market signal is {analysis['current_sentiment']} with "
        f"{analysis['trend_analysis']['trend_direction']} recent trend"
    )
    return analysis


def format_market_metrics_response(data: list, analysis: dict, request: dict) -> str:
    if not data:
        return "⚠️ No market metrics were returned for this period."
    trend = analysis.get("trend_analysis", {})
    cap_trend = analysis.get("market_cap_trend", {})
    signals = analysis.get("signal_distribution", {})
    return join_sections(
        "📊 **Crypto Market Metrics**",
        section("Current State", bullet_lines([
            f"Market signal: **{analysis['current_sentiment']}** ({analysis.get('current_date', 'N/A')})",
            f"Total crypto market cap: {analysis['total_market_cap']}",
        ])),
        section("Trend", bullet_lines([
            f"Direction: {trend.get('trend_direction')}",
            f"Signal volatility: {trend.get('volatility')}",
            f"Market cap: {cap_trend.get('trend')}"
            + (f" ({format_percentage(cap_trend['change_percentage'])})" if "change_percentage" in cap_trend else ""),
        ])),
        section("Signal History", bullet_lines([
            f"Bullish days: {signals.get('bullish_count', 0)} | Bearish days: {signals.get('bearish_count', 0)}",
            f"Signal changes: {signals.get('signal_changes', 0)}",
        ])),
    )


# ─── Actions ─────────────────────────────────────────────────────────────────

GET_TOKENS = Action(
    name="GET_TOKENS",
    description="Look up tokens in the TokenMetrics database by name, symbol, category or exchange and get their TOKEN_IDs",
    category=ActionCategory.MARKET_DATA,
    endpoint=TOKENMETRICS_ENDPOINTS["tokens"],
    similes=["LIST_TOKENS", "FIND_TOKEN", "SEARCH_TOKENS", "TOKEN_LOOKUP"],
    examples=[
        conversation_example("Find the TokenMetrics ID for Chainlink", "Let me look that up in the token directory.", "GET_TOKENS"),
        conversation_example("List defi tokens on binance", "Here are the DeFi tokens listed on Binance.", "GET_TOKENS"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="token list",
        endpoint_key="tokens",
        schema=TokensRequest,
        analyze=analyze_tokens,
        render=format_tokens_response,
        param_keys=("token_name", "symbol", "category", "exchange", "limit", "page"),
        defaults={"limit": TOKENMETRICS_PAGE_LIMIT, "page": 1},
        resolve_token=False,
        data_key="tokens",
    )),
)

GET_TOP_MARKET_CAP = Action(
    name="GET_TOP_MARKET_CAP",
    description="Get the top cryptocurrencies ranked by market capitalization with dominance and market structure analysis",
    category=ActionCategory.MARKET_DATA,
    endpoint=TOKENMETRICS_ENDPOINTS["top_market_cap"],
    similes=["TOP_CRYPTOS", "MARKET_CAP_RANKING", "LARGEST_CRYPTOS", "TOP_TOKENS"],
    examples=[
        conversation_example("Show me the top 10 cryptocurrencies by market cap", "Here are the largest tokens by market cap.", "GET_TOP_MARKET_CAP"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="top market cap tokens",
        endpoint_key="top_market_cap",
        schema=TopMarketCapRequest,
        analyze=analyze_top_market_cap,
        render=format_top_market_cap_response,
        param_keys=("top_k",),
        defaults={"top_k": min(100, MAX_TOP_K)},
        resolve_token=False,
        data_key="top_tokens",
    )),
)

GET_PRICE = Action(
    name="GET_PRICE",
    description="Get the current price, 24h change, market cap and volume for a cryptocurrency from TokenMetrics",
    category=ActionCategory.MARKET_DATA,
    endpoint=TOKENMETRICS_ENDPOINTS["price"],
    similes=["PRICE_CHECK", "TOKEN_PRICE", "CRYPTO_PRICE", "CHECK_PRICE"],
    examples=[
        conversation_example("What's the price of Bitcoin?", "Let me get the current Bitcoin price from TokenMetrics.", "GET_PRICE"),
        conversation_example("How much is SOL right now?", "Checking the latest Solana price.", "GET_PRICE"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="price data",
        endpoint_key="price",
        schema=PriceRequest,
        analyze=analyze_price_data,
        render=format_price_response,
        param_keys=("token_id",),
        require_token=True,
        required=("token_id",),
        data_key="price_data",
        causes=(
            "Token not found in the TokenMetrics database",
            "Invalid or missing TokenMetrics API key",
            "Network connectivity issues",
        ),
        solutions=(
            "Use the full token name (e.g., 'Bitcoin' instead of 'BTC')",
            "Use GET_TOKENS to look up the exact TOKEN_ID",
            "Verify your TOKENMETRICS_API_KEY",
        ),
    )),
)

GET_MARKET_METRICS = Action(
    name="GET_MARKET_METRICS",
    description="Get TokenMetrics overall crypto market metrics: market signal history and total market cap",
    category=ActionCategory.MARKET_DATA,
    endpoint=TOKENMETRICS_ENDPOINTS["market_metrics"],
    similes=["MARKET_OVERVIEW", "MARKET_SENTIMENT_SIGNAL", "CRYPTO_MARKET_HEALTH"],
    examples=[
        conversation_example("How is the overall crypto market doing?", "Here are the latest TokenMetrics market metrics.", "GET_MARKET_METRICS"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="market metrics",
        endpoint_key="market_metrics",
        schema=MarketMetricsRequest,
        analyze=analyze_market_metrics,
        render=format_market_metrics_response,
        param_keys=("startDate", "endDate", "limit", "page"),
        defaults={"limit": TOKENMETRICS_PAGE_LIMIT, "page": 1},
        resolve_token=False,
        data_key="market_metrics",
    )),
)

MARKET_ACTIONS = [GET_TOKENS, GET_TOP_MARKET_CAP, GET_PRICE, GET_MARKET_METRICS]
