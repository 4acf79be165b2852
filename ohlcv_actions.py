"""
ohlcv_actions.py — Hourly and daily OHLCV candle actions.

Implements:
  - GET_HOURLY_OHLCV  /v2/hourly-ohlcv  intraday movement, range volatility, short-term signal
  - GET_DAILY_OHLCV   /v2/daily-ohlcv   daily returns, SMA20/50, RSI14, MACD(12,26,9), levels

Candles are loaded into a pandas DataFrame sorted by time; indicators use
pandas rolling/ewm windows.
"""

import logging
from typing import Optional

import numpy as np
import pandas as pd

from action_base import Action, ActionCategory, EndpointCall, conversation_example, endpoint_handler
from config import TOKENMETRICS_ENDPOINTS, TOKENMETRICS_PAGE_LIMIT
from formatting import (
    bullet_lines,
    format_currency,
    format_percentage,
    join_sections,
    section,
)
from llm_extraction import DailyOhlcvRequest, HourlyOhlcvRequest

logger = logging.getLogger(__name__)

OHLCV_FIELDS = ["OPEN", "HIGH", "LOW", "CLOSE", "VOLUME"]
RSI_PERIOD = 14
MACD_FAST, MACD_SLOW, MACD_SIGNAL = 12, 26, 9


# ─── Frames ──────────────────────────────────────────────────────────────────

def to_frame(data: list, time_field: str) -> pd.DataFrame:
    """OHLCV rows → numeric DataFrame sorted oldest first."""
    if not data:
        return pd.DataFrame(columns=[time_field] + OHLCV_FIELDS)
    df = pd.DataFrame(data)
    for column in OHLCV_FIELDS:
        df[column] = pd.to_numeric(df[column], errors="coerce") if column in df else np.nan
    if time_field in df:
        df["_ts"] = pd.to_datetime(df[time_field], errors="coerce", utc=True)
        df = df.sort_values("_ts", kind="stable").drop(columns="_ts")
    return df.reset_index(drop=True)


def data_completeness(df: pd.DataFrame) -> float:
    """Share of non-null OHLCV cells, in percent."""
    if df.empty:
        return 0.0
    return round(float(df[OHLCV_FIELDS].notna().to_numpy().mean() * 100), 1)


def price_movement(df: pd.DataFrame) -> dict:
    """First open → last close, plus the period high/low."""
    first_open = float(df["OPEN"].iloc[0])
    last_close = float(df["CLOSE"].iloc[-1])
    change = last_close - first_open
    change_pct = change / first_open * 100 if first_open else 0.0
    return {
        "start_price": format_currency(first_open),
        "end_price": format_currency(last_close),
        "price_change": round(change, 6),
        "change_percent": round(change_pct, 2),
        "highest_price": format_currency(df["HIGH"].max()),
        "lowest_price": format_currency(df["LOW"].min()),
        "direction": "Bullish" if change > 0 else "Bearish" if change < 0 else "Sideways",
    }


def volume_consistency(volumes: pd.Series) -> str:
    """Coefficient of variation of volume."""
    volumes = volumes[volumes > 0]
    if volumes.empty or volumes.mean() == 0:
        return "Unknown"
    cv = float(volumes.std(ddof=0) / volumes.mean())
    if cv < 0.5:
        return "Consistent"
    if cv < 1.0:
        return "Moderate"
    return "Highly Variable"


def half_trend(values: pd.Series, up: float, down: float, labels=("Increasing", "Decreasing", "Stable")) -> str:
    """Second-half mean vs first-half mean."""
    values = values.dropna()
    if len(values) < 6:
        return "Unknown"
    middle = len(values) // 2
    first, second = values.iloc[:middle].mean(), values.iloc[middle:].mean()
    if second > first * up:
        return labels[0]
    if second < first * down:
        return labels[1]
    return labels[2]


# ─── Hourly ──────────────────────────────────────────────────────────────────

def range_volatility(avg_range_pct: float) -> str:
    if avg_range_pct > 5:
        return "Very High"
    if avg_range_pct > 3:
        return "High"
    if avg_range_pct > 2:
        return "Moderate"
    if avg_range_pct > 1:
        return "Low"
    return "Very Low"


def sma_trend(closes: pd.Series) -> dict:
    """Compare recent vs earlier moving averages over 5/10/20 periods."""
    if len(closes) < 3:
        return {"direction": "Unknown"}
    votes = []
    for period in (5, 10, 20):
        if len(closes) >= period * 2:
            recent = closes.iloc[-period:].mean()
            earlier = closes.iloc[-period * 2:-period].mean()
            votes.append(1 if recent > earlier else -1)
    score = sum(votes)
    direction = "Uptrend" if score > 0 else "Downtrend" if score < 0 else "Sideways"
    lookback = closes.iloc[-6] if len(closes) >= 6 else closes.iloc[0]
    return {
        "direction": direction,
        "strength": "Strong" if abs(score) >= 2 else "Weak",
        "short_term_bias": "Bullish" if closes.iloc[-1] > lookback else "Bearish",
    }


def analyze_hourly_ohlcv(data: list, request: Optional[dict] = None, thresholds=None) -> dict:
    """Intraday price movement, volume pattern, range volatility and trend."""
    df = to_frame(data, "TIMESTAMP")
    df = df.dropna(subset=["OPEN", "CLOSE"])
    if len(df) < 2:
        return {"summary": "Not enough hourly candles for analysis", "data_points": len(df)}

    movement = price_movement(df)
    volume_pattern = volume_consistency(df["VOLUME"])
    volume_trend = half_trend(df["VOLUME"], 1.1, 0.9)

    ranges = ((df["HIGH"] - df["LOW"]) / df["OPEN"] * 100).replace([np.inf, -np.inf], np.nan).dropna()
    avg_range = float(ranges.mean()) if not ranges.empty else 0.0
    trend = sma_trend(df["CLOSE"])

    abs_change = abs(movement["change_percent"])
    if abs_change > 10 or volume_pattern == "Highly Variable":
        risk = "High"
    elif abs_change > 5 or volume_pattern == "Moderate":
        risk = "Moderate"
    else:
        risk = "Low"

    if trend["direction"] == "Uptrend" and volume_trend == "Increasing":
        signal = {"type": "BUY", "reason": "Uptrend confirmed by increasing volume"}
    elif trend["direction"] == "Downtrend" and volume_trend == "Increasing":
        signal = {"type": "SELL", "reason": "Downtrend with increasing volume shows selling pressure"}
    elif trend["direction"] == "Sideways":
        signal = {"type": "RANGE", "reason": "Sideways action favors range-bound trading"}
    else:
        signal = {"type": "HOLD", "reason": "No confirmed intraday setup"}

    insights = []
    if movement["change_percent"] > 5:
        insights.append(f"Strong intraday rally of {format_percentage(movement['change_percent'])}.")
    elif movement["change_percent"] < -5:
        insights.append(f"Sharp intraday decline of {format_percentage(movement['change_percent'])}.")
    if volume_trend == "Increasing":
        insights.append("Rising volume supports the current move.")
    elif volume_trend == "Decreasing":
        insights.append("Fading volume suggests the move is losing conviction.")
    if range_volatility(avg_range) in ("High", "Very High"):
        insights.append("Wide hourly ranges: size positions for elevated volatility.")

    return {
        "summary": f"{len(df)} hourly candles show a {movement['direction'].lower()} move of {format_percentage(movement['change_percent'])}",
        "data_points": len(df),
        "price_movement": movement,
        "volume_analysis": {
            "average_volume": format_currency(df["VOLUME"].mean()),
            "volume_pattern": volume_pattern,
            "volume_trend": volume_trend,
        },
        "volatility_analysis": {
            "average_hourly_range": round(avg_range, 2),
            "level": range_volatility(avg_range),
            "volatility_trend": half_trend(ranges, 1.2, 0.8),
        },
        "trend_analysis": trend,
        "risk_level": risk,
        "trading_signal": signal,
        "data_completeness": data_completeness(df),
        "insights": insights,
    }


def format_hourly_ohlcv_response(data: list, analysis: dict, request: dict) -> str:
    token = request.get("token_name") or request.get("symbol") or "Token"
    if "price_movement" not in analysis:
        return f"⚠️ Not enough hourly OHLCV data returned for {token}."
    movement = analysis["price_movement"]
    volatility = analysis["volatility_analysis"]
    return join_sections(
        f"🕐 **{token} Hourly OHLCV** ({analysis['data_points']} candles)",
        section("Price Movement", bullet_lines([
            f"{movement['start_price']} → {movement['end_price']} ({format_percentage(movement['change_percent'])})",
            f"High: {movement['highest_price']} | Low: {movement['lowest_price']}",
        ])),
        section("Volatility & Volume", bullet_lines([
            f"Average hourly range: {volatility['average_hourly_range']}% ({volatility['level']}, {volatility['volatility_trend']})",
            f"Volume: {analysis['volume_analysis']['volume_pattern']}, {analysis['volume_analysis']['volume_trend']}",
        ])),
        section("Signal", bullet_lines([
            f"Trend: {analysis['trend_analysis']['direction']} ({analysis['trend_analysis'].get('strength', 'N/A')})",
            f"Signal: **{analysis['trading_signal']['type']}** - {analysis['trading_signal']['reason']}",
            f"Risk level: {analysis['risk_level']}",
        ])),
        section("Insights", bullet_lines(analysis.get("insights", []))),
    )


# ─── Daily ───────────────────────────────────────────────────────────────────

def returns_volatility(std_pct: float) -> str:
    if std_pct > 8:
        return "Very High"
    if std_pct > 5:
        return "High"
    if std_pct > 3:
        return "Moderate"
    if std_pct > 1.5:
        return "Low"
    return "Very Low"


def compute_rsi(closes: pd.Series, period: int = RSI_PERIOD) -> float:
    delta = closes.diff()
    gain = delta.clip(lower=0).ewm(alpha=1 / period, adjust=False).mean()
    loss = (-delta.clip(upper=0)).ewm(alpha=1 / period, adjust=False).mean()
    last_gain, last_loss = float(gain.iloc[-1]), float(loss.iloc[-1])
    if last_loss == 0:
        return 100.0 if last_gain > 0 else 50.0
    return 100 - 100 / (1 + last_gain / last_loss)


def compute_macd(closes: pd.Series) -> dict:
    fast = closes.ewm(span=MACD_FAST, adjust=False).mean()
    slow = closes.ewm(span=MACD_SLOW, adjust=False).mean()
    macd = fast - slow
    signal = macd.ewm(span=MACD_SIGNAL, adjust=False).mean()
    return {
        "macd": round(float(macd.iloc[-1]), 4),
        "signal": round(float(signal.iloc[-1]), 4),
        "histogram": round(float(macd.iloc[-1] - signal.iloc[-1]), 4),
    }


def technical_indicators(df: pd.DataFrame) -> dict:
    """SMA20/50, RSI14 and MACD; needs at least 20 daily closes."""
    closes = df["CLOSE"]
    if len(closes) < 20:
        return {"status": "Insufficient data for technical analysis"}

    price = float(closes.iloc[-1])
    sma20 = float(closes.rolling(20).mean().iloc[-1])
    sma50 = float(closes.rolling(50).mean().iloc[-1]) if len(closes) >= 50 else None
    rsi = compute_rsi(closes)
    macd = compute_macd(closes)

    score = (price > sma20) + (rsi > 50) + (macd["histogram"] > 0)
    if sma50 is not None:
        score += (price > sma50) + (sma20 > sma50)
    max_score = 5 if sma50 is not None else 3
    if score >= max_score * 0.6:
        bias = "Bullish"
    elif score <= max_score * 0.3:
        bias = "Bearish"
    else:
        bias = "Neutral"

    return {
        "moving_averages": {
            "sma_20": round(sma20, 6),
            "sma_50": round(sma50, 6) if sma50 is not None else None,
            "price_vs_sma20": "Above" if price > sma20 else "Below",
            "price_vs_sma50": ("Above" if price > sma50 else "Below") if sma50 is not None else "N/A",
        },
        "momentum_indicators": {
            "rsi": round(rsi, 2),
            "rsi_signal": "Overbought" if rsi > 70 else "Oversold" if rsi < 30 else "Neutral",
            **macd,
            "macd_signal": "Bullish" if macd["histogram"] > 0 else "Bearish",
        },
        "technical_bias": bias,
    }


def _direction(values: pd.Series) -> str:
    if len(values) < 3 or values.iloc[0] == 0:
        return "Unknown"
    change = (values.iloc[-1] - values.iloc[0]) / values.iloc[0]
    if change > 0.02:
        return "Up"
    if change < -0.02:
        return "Down"
    return "Sideways"


def daily_trend(df: pd.DataFrame) -> dict:
    """Short/medium/long direction; needs at least 5 days."""
    closes = df["CLOSE"]
    if len(closes) < 5:
        return {"primary_trend": "Unknown"}
    short, medium = _direction(closes.iloc[-5:]), _direction(closes.iloc[-15:])
    if short == "Up" and medium == "Up":
        primary = "Strong Uptrend"
    elif short == "Down" and medium == "Down":
        primary = "Strong Downtrend"
    elif short == "Up":
        primary = "Uptrend"
    elif short == "Down":
        primary = "Downtrend"
    else:
        primary = "Sideways"
    return {
        "primary_trend": primary,
        "short_term_trend": short,
        "medium_term_trend": medium,
        "long_term_trend": _direction(closes),
        "higher_highs": int((df["HIGH"].iloc[-10:].diff() > 0).sum()),
        "higher_lows": int((df["LOW"].iloc[-10:].diff() > 0).sum()),
    }


def support_resistance(df: pd.DataFrame) -> dict:
    """Local swing highs/lows; needs at least 10 days."""
    if len(df) < 10:
        return {"levels": "Insufficient data"}
    highs, lows = df["HIGH"], df["LOW"]
    resistance = highs[(highs > highs.shift(1)) & (highs > highs.shift(-1))].nlargest(3).tolist()
    support = lows[(lows < lows.shift(1)) & (lows < lows.shift(-1))].nsmallest(3).tolist()
    price = float(df["CLOSE"].iloc[-1])

    def nearest(levels: list) -> Optional[dict]:
        if not levels or not price:
            return None
        level = min(levels, key=lambda lvl: abs(lvl - price))
        return {"level": format_currency(level), "distance_percent": round((level - price) / price * 100, 2)}

    return {
        "resistance_levels": [format_currency(level) for level in resistance],
        "support_levels": [format_currency(level) for level in support],
        "nearest_resistance": nearest(resistance),
        "nearest_support": nearest(support),
    }


def analyze_daily_ohlcv(data: list, request: Optional[dict] = None, thresholds=None) -> dict:
    """Daily movement, returns volatility, volume correlation, indicators, trend and levels."""
    analysis_type = (request or {}).get("analysisType") or "all"
    df = to_frame(data, "DATE")
    df = df.dropna(subset=["OPEN", "CLOSE"])
    if len(df) < 2:
        return {"summary": "Not enough daily candles for analysis", "data_points": len(df)}

    movement = price_movement(df)
    returns = df["CLOSE"].pct_change().dropna() * 100
    std = float(returns.std()) if len(returns) > 1 else 0.0
    movement["daily_volatility"] = round(std, 2)
    movement["volatility_level"] = returns_volatility(std)

    correlation = df["VOLUME"].iloc[1:].reset_index(drop=True).corr(df["CLOSE"].diff().iloc[1:].reset_index(drop=True))
    analysis = {
        "summary": f"{len(df)} daily candles: {movement['direction'].lower()} {format_percentage(movement['change_percent'])}",
        "analysis_type": analysis_type,
        "data_points": len(df),
        "price_movement": movement,
        "volume_analysis": {
            "average_volume": format_currency(df["VOLUME"].mean()),
            "volume_pattern": volume_consistency(df["VOLUME"]),
            "volume_price_correlation": round(float(correlation), 3) if pd.notna(correlation) else None,
        },
        "data_completeness": data_completeness(df),
    }

    if analysis_type in ("technical_indicators", "swing_trading", "all"):
        analysis["technical_indicators"] = technical_indicators(df)
    if analysis_type in ("trend_analysis", "swing_trading", "all"):
        analysis["trend_analysis"] = daily_trend(df)
    if analysis_type in ("swing_trading", "all"):
        analysis["support_resistance"] = support_resistance(df)

    insights = []
    if abs(movement["change_percent"]) > 20:
        insights.append(f"Major move of {format_percentage(movement['change_percent'])} over the period.")
    if movement["volatility_level"] in ("High", "Very High"):
        insights.append("High daily volatility: wider stops and smaller positions are appropriate.")
    indicators = analysis.get("technical_indicators", {})
    rsi_signal = indicators.get("momentum_indicators", {}).get("rsi_signal")
    if rsi_signal in ("Overbought", "Oversold"):
        insights.append(f"RSI is {rsi_signal.lower()}, watch for mean reversion.")
    if indicators.get("technical_bias"):
        insights.append(f"Technical bias is {indicators['technical_bias']}.")
    analysis["insights"] = insights
    return analysis


def format_daily_ohlcv_response(data: list, analysis: dict, request: dict) -> str:
    token = request.get("token_name") or request.get("symbol") or "Token"
    if "price_movement" not in analysis:
        return f"⚠️ Not enough daily OHLCV data returned for {token}."
    movement = analysis["price_movement"]
    indicators = analysis.get("technical_indicators", {})
    lines_indicators = []
    if "moving_averages" in indicators:
        ma, mom = indicators["moving_averages"], indicators["momentum_indicators"]
        lines_indicators = [
            f"SMA20: {format_currency(ma['sma_20'])} (price {ma['price_vs_sma20'].lower()})",
            f"SMA50: {format_currency(ma['sma_50'])} (price {ma['price_vs_sma50'].lower()})" if ma["sma_50"] else "",
            f"RSI(14): {mom['rsi']} ({mom['rsi_signal']})",
            f"MACD: {mom['macd']} / signal {mom['signal']} ({mom['macd_signal']})",
            f"Technical bias: **{indicators['technical_bias']}**",
        ]
    elif indicators:
        lines_indicators = [indicators.get("status", "")]
    levels = analysis.get("support_resistance", {})
    return join_sections(
        f"📅 **{token} Daily OHLCV** ({analysis['data_points']} days)",
        section("Price Movement", bullet_lines([
            f"{movement['start_price']} → {movement['end_price']} ({format_percentage(movement['change_percent'])})",
            f"High: {movement['highest_price']} | Low: {movement['lowest_price']}",
            f"Daily volatility: {movement['daily_volatility']}% ({movement['volatility_level']})",
        ])),
        section("Technical Indicators", bullet_lines(lines_indicators)),
        section("Trend", bullet_lines([
            f"Primary trend: {analysis['trend_analysis']['primary_trend']}",
        ] if "trend_analysis" in analysis else [])),
        section("Key Levels", bullet_lines([
            f"Resistance: {', '.join(levels.get('resistance_levels', [])) or 'none identified'}",
            f"Support: {', '.join(levels.get('support_levels', [])) or 'none identified'}",
        ] if "resistance_levels" in levels else [])),
        section("Insights", bullet_lines(analysis.get("insights", []))),
    )


# ─── Actions ─────────────────────────────────────────────────────────────────

_OHLCV_PARAMS = ("token_id", "symbol", "startDate", "endDate", "limit", "page")

GET_HOURLY_OHLCV = Action(
    name="GET_HOURLY_OHLCV",
    description="Get hourly OHLCV candles for a token with intraday volatility, volume and trend analysis",
    category=ActionCategory.MARKET_DATA,
    endpoint=TOKENMETRICS_ENDPOINTS["hourly_ohlcv"],
    similes=["HOURLY_CANDLES", "INTRADAY_DATA", "HOURLY_CHART"],
    examples=[
        conversation_example("Show me hourly candles for ETH", "Here is the hourly OHLCV analysis for Ethereum.", "GET_HOURLY_OHLCV"),
    ],
    handler=endpoint_handler(EndpointCall(
        label="hourly OHLCV data",
        endpoint_key="hourly_ohlcv",
        schema=HourlyOhlcvRequest,
        analyze=analyze_hourly_ohlcv,
        render=format_hourly_ohlcv_response,
        param_keys=_OHLCV_PARAMS,
        defaults={"limit": TOKENMETRICS_PAGE_LIMIT, "page": 1},
        require_token=True,
        data_key="ohlcv_data",
    )),
)

GET_DAILY_OHLCV = Action(
    name="GET_DAILY_OHLCV",
    description="Get daily OHLCV candles for a token with SMA, RSI, MACD, trend and support/resistance analysis",
    category=ActionCategory.MARKET_DATA,
    endpoint=TOKENMETRICS_ENDPOINTS["daily_ohlcv"],
    similes=["DAILY_CANDLES", "DAILY_CHART", "PRICE_HISTORY"],
    examples=[
        conversation_example(
            "Give me daily OHLCV for Bitcoin over the last 60 days",
            "Here is the daily chart analysis for Bitcoin.",
            "GET_DAILY_OHLCV",
        ),
    ],
    handler=endpoint_handler(EndpointCall(
        label="daily OHLCV data",
        endpoint_key="daily_ohlcv",
        schema=DailyOhlcvRequest,
        analyze=analyze_daily_ohlcv,
        render=format_daily_ohlcv_response,
        param_keys=_OHLCV_PARAMS,
        defaults={"limit": TOKENMETRICS_PAGE_LIMIT, "page": 1},
        require_token=True,
        data_key="ohlcv_data",
    )),
)

OHLCV_ACTIONS = [GET_HOURLY_OHLCV, GET_DAILY_OHLCV]
