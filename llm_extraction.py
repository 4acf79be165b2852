"""
llm_extraction.py — Turn a natural-language request into structured action parameters.

Two extractors share one interface (extract(prompt, user_message, schema) -> dict):
  - OpenAIExtractor:  chat completion in JSON mode, prompt = template + schema
  - KeywordExtractor: deterministic regex extraction driven by the schema fields
Whatever comes back is validated against the action's pydantic request model.
"""

import json
import logging
import os
import re
from datetime import datetime, timedelta
from typing import Any, Literal, Optional, Union, get_args, get_origin

from openai import OpenAI, OpenAIError
from pydantic import BaseModel, Field, ValidationError

from agent_config import LLMSettings
from token_resolver import SYMBOL_TO_NAME, extract_token_identifier

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# REQUEST SCHEMAS
# ═══════════════════════════════════════════════════════════════════════════════

class TokenFields(BaseModel):
    cryptocurrency: Optional[str] = Field(None, description="Name or symbol of the cryptocurrency as written by the user")
    token_id: Optional[int] = Field(None, ge=1, description="TokenMetrics TOKEN_ID if explicitly given")
    symbol: Optional[str] = Field(None, description="Token symbol, e.g. BTC, ETH")
    token_name: Optional[str] = Field(None, description="Full token name, e.g. Bitcoin")


class PageFields(BaseModel):
    limit: Optional[int] = Field(None, ge=1, le=1000, description="Number of records to return")
    page: Optional[int] = Field(None, ge=1, description="Page number, starting at 1")


_ISO_DATE = r"^\d{4}-\d{2}-\d{2}$"


class DateFields(BaseModel):
    startDate: Optional[str] = Field(None, pattern=_ISO_DATE, description="Start date, YYYY-MM-DD")
    endDate: Optional[str] = Field(None, pattern=_ISO_DATE, description="End date, YYYY-MM-DD")


class MarketFilterFields(BaseModel):
    category: Optional[str] = Field(None, description="Sector filter, e.g. defi, layer-1, meme")
    exchange: Optional[str] = Field(None, description="Exchange filter, e.g. binance")
    marketcap: Optional[float] = Field(None, ge=0, description="Minimum market cap in USD")
    volume: Optional[float] = Field(None, ge=0, description="Minimum 24h volume in USD")
    fdv: Optional[float] = Field(None, ge=0, description="Minimum fully diluted valuation in USD")


class TokensRequest(PageFields):
    token_name: Optional[str] = None
    symbol: Optional[str] = None
    category: Optional[str] = None
    exchange: Optional[str] = None


class TopMarketCapRequest(BaseModel):
    top_k: Optional[int] = Field(None, ge=1, le=1000, description="How many top tokens by market cap")


class PriceRequest(TokenFields):
    pass


class MarketMetricsRequest(DateFields, PageFields):
    pass


class HourlyOhlcvRequest(TokenFields, DateFields, PageFields):
    pass


class DailyOhlcvRequest(TokenFields, DateFields, PageFields):
    analysisType: Optional[Literal["swing_trading", "trend_analysis", "technical_indicators", "all"]] = None


class TraderGradesRequest(TokenFields, DateFields, MarketFilterFields, PageFields):
    analysisType: Optional[Literal["trading", "momentum", "signals", "all"]] = None


class InvestorGradesRequest(TokenFields, DateFields, MarketFilterFields, PageFields):
    analysisType: Optional[Literal["long_term", "fundamental", "risk", "all"]] = None


class TmGradeRequest(TokenFields):
    analysisType: Optional[Literal["current", "fundamental", "signals", "momentum", "all"]] = None


class TmGradeHistoryRequest(TokenFields, DateFields):
    limit: Optional[int] = Field(None, ge=1, le=100)
    page: Optional[int] = Field(None, ge=1)
    analysisType: Optional[Literal["trend", "performance", "signals", "history", "all"]] = None


class TechnologyGradeRequest(TokenFields, DateFields):
    limit: Optional[int] = Field(None, ge=1, le=100)
    page: Optional[int] = Field(None, ge=1)
    analysisType: Optional[Literal["current", "development", "security", "activity", "collaboration", "all"]] = None


class TradingSignalsRequest(TokenFields, DateFields, MarketFilterFields, PageFields):
    signal: Optional[Literal[1, -1, 0]] = Field(None, description="1 bullish, -1 bearish, 0 no signal")
    analysisType: Optional[Literal["active_trading", "swing", "long_term", "all"]] = None


class HourlyTradingSignalsRequest(TokenFields, DateFields, MarketFilterFields):
    signal: Optional[Literal[1, -1, 0]] = None
    limit: Optional[int] = Field(None, ge=1, le=100)
    page: Optional[int] = Field(None, ge=1)
    analysisType: Optional[Literal["active_trading", "scalping", "momentum", "all"]] = None


class ResistanceSupportRequest(TokenFields):
    limit: Optional[int] = Field(None, ge=1, le=100)
    page: Optional[int] = Field(None, ge=1)
    analysisType: Optional[Literal["trading_levels", "breakout_analysis", "risk_management", "all"]] = None


class MoonshotTokensRequest(BaseModel):
    limit: Optional[int] = Field(None, ge=1, le=100)
    page: Optional[int] = Field(None, ge=1)
    type: Optional[Literal["active", "past"]] = Field(None, description="Current picks or past picks")
    analysisType: Optional[Literal["market_trends", "breakout_potential", "ai_picks", "all"]] = None


class QuantmetricsRequest(TokenFields, DateFields, MarketFilterFields, PageFields):
    analysisType: Optional[Literal["risk", "returns", "performance", "all"]] = None


class CorrelationRequest(TokenFields, PageFields):
    category: Optional[str] = None
    exchange: Optional[str] = None
    analysisType: Optional[Literal["diversification", "hedging", "portfolio_construction", "all"]] = None


class ScenarioAnalysisRequest(TokenFields, PageFields):
    analysisType: Optional[Literal["risk_assessment", "upside_potential", "stress_testing", "all"]] = None


class SentimentRequest(PageFields):
    analysisType: Optional[Literal["social", "news", "contrarian", "all"]] = None


class AiReportsRequest(TokenFields):
    limit: Optional[int] = Field(None, ge=1, le=100)
    page: Optional[int] = Field(None, ge=1)
    analysisType: Optional[Literal["investment", "technical", "comprehensive", "all"]] = None


class CryptoInvestorsRequest(PageFields):
    analysisType: Optional[Literal["performance", "influence", "sentiment", "all"]] = None


class TmaiRequest(BaseModel):
    question: Optional[str] = Field(None, description="The full question to forward to the TokenMetrics AI")
    cryptocurrency: Optional[str] = None


class IndicesRequest(BaseModel):
    indicesType: Optional[Literal["active", "passive"]] = None
    limit: Optional[int] = Field(None, ge=1, le=100)
    page: Optional[int] = Field(None, ge=1)
    analysisType: Optional[Literal["performance", "risk", "diversification", "all"]] = None


class IndicesHoldingsRequest(BaseModel):
    indexId: Optional[int] = Field(None, ge=1, description="ID of the index")
    analysisType: Optional[Literal["composition", "risk", "performance", "all"]] = None


class IndicesPerformanceRequest(DateFields):
    indexId: Optional[int] = Field(None, ge=1, description="ID of the index")
    limit: Optional[int] = Field(None, ge=1, le=1000)
    page: Optional[int] = Field(None, ge=1)
    analysisType: Optional[Literal["returns", "risk", "comparison", "all"]] = None


# ═══════════════════════════════════════════════════════════════════════════════
# TEMPLATES
# ═══════════════════════════════════════════════════════════════════════════════

_TOKEN_RULES = """
Extract the EXACT cryptocurrency the user mentions in the CURRENT message, including
lesser-known tokens (BONK, DEGEN, PEPE, FLOKI, WIF, ...). Put the name or symbol as
written into "cryptocurrency"; fill "symbol" only for real ticker symbols. Never reuse
a token from earlier conversation."""

_DATE_RULES = """
Convert any date range to YYYY-MM-DD for startDate / endDate. Relative ranges such as
"last 30 days" are computed from today."""


def _template(subject: str, *rules: str) -> str:
    return f"You are an AI assistant that extracts {subject} requests from natural language.\n" + "\n".join(rules)


TEMPLATES: dict[str, str] = {
    "tokens": _template("token list lookup", "Extract token_name, symbol, category, exchange and paging if given."),
    "top_market_cap": _template("top market cap ranking", "Extract top_k (how many tokens). Default is 100."),
    "price": _template("token price", _TOKEN_RULES),
    "market_metrics": _template("overall crypto market metrics", _DATE_RULES),
    "hourly_ohlcv": _template("hourly OHLCV candle", _TOKEN_RULES, _DATE_RULES),
    "daily_ohlcv": _template("daily OHLCV candle", _TOKEN_RULES, _DATE_RULES),
    "trader_grades": _template("trader grade", _TOKEN_RULES, _DATE_RULES),
    "investor_grades": _template("investor grade", _TOKEN_RULES, _DATE_RULES),
    "tm_grade": _template("TM grade", _TOKEN_RULES),
    "tm_grade_history": _template("TM grade history", _TOKEN_RULES, _DATE_RULES),
    "technology_grade": _template("technology grade", _TOKEN_RULES, _DATE_RULES),
    "trading_signals": _template(
        "trading signal", _TOKEN_RULES, _DATE_RULES,
        "signal: 1 for bullish/long, -1 for bearish/short, 0 for no signal.",
    ),
    "hourly_trading_signals": _template("hourly trading signal", _TOKEN_RULES, "limit is at most 100."),
    "resistance_support": _template("resistance and support level", _TOKEN_RULES),
    "moonshot_tokens": _template(
        "moonshot token pick",
        "type is 'past' when the user asks about previous or historical picks, otherwise 'active'.",
    ),
    "quantmetrics": _template("quantitative metrics", _TOKEN_RULES, _DATE_RULES),
    "correlation": _template("token correlation", _TOKEN_RULES),
    "scenario_analysis": _template("price scenario analysis", _TOKEN_RULES),
    "sentiment": _template("market sentiment", "Extract paging and the analysis focus if given."),
    "ai_reports": _template("AI research report", _TOKEN_RULES),
    "crypto_investors": _template("crypto investor", "Extract paging and the analysis focus if given."),
    "tmai": _template("TokenMetrics AI question", "Put the user's complete question into 'question'."),
    "indices": _template("crypto index listing", "indicesType is 'active' or 'passive' if mentioned."),
    "indices_holdings": _template("crypto index holdings", "indexId is the numeric index ID."),
    "indices_performance": _template("crypto index performance", "indexId is the numeric index ID.", _DATE_RULES),
}


def build_extraction_prompt(template: str, user_message: str, request_id: str, schema: Optional[type[BaseModel]] = None) -> str:
    """Template + schema + cache-busting id + the current user message."""
    parts = [template]
    if schema is not None:
        parts.append(
            "Respond with a single JSON object using only these fields (omit unknown values):\n"
            + json.dumps(schema.model_json_schema().get("properties", {}), indent=2)
        )
    parts.append(
        f"# Cache Busting ID: {request_id}\n"
        f"# Timestamp: {datetime.utcnow().isoformat()}Z\n\n"
        f'USER MESSAGE: "{user_message}"\n\n'
        "Please analyze the CURRENT user message above and extract the relevant information."
    )
    return "\n\n".join(parts)


# ═══════════════════════════════════════════════════════════════════════════════
# EXTRACTORS
# ═══════════════════════════════════════════════════════════════════════════════

_CATEGORIES = (
    "defi", "layer-1", "layer 1", "layer-2", "layer 2", "meme", "gaming", "ai", "nft",
    "metaverse", "stablecoin", "exchange", "privacy", "oracle", "rwa", "infrastructure",
)
_EXCHANGES = ("binance", "coinbase", "kraken", "okx", "bybit", "kucoin", "gate", "huobi", "uniswap")
_STOPWORDS = frozenset({
    "the", "a", "an", "me", "my", "all", "top", "this", "that", "today", "now", "crypto",
    "cryptocurrency", "cryptocurrencies", "tokens", "coins", "market", "index", "indices",
})
# Words after "for/of/on" that never name a token.
_NOT_TOKENS = _STOPWORDS | {c.split()[0] for c in _CATEGORIES} | set(_EXCHANGES)


def _literal_choices(annotation: Any) -> tuple:
    """Allowed values of a (possibly Optional) Literal annotation."""
    if get_origin(annotation) is Literal:
        return get_args(annotation)
    if get_origin(annotation) is Union:
        for arg in get_args(annotation):
            choices = _literal_choices(arg)
            if choices:
                return choices
    return ()


def _find_token_phrase(text: str) -> Optional[str]:
    """Token name/symbol the user refers to, if any."""
    identified = extract_token_identifier({"text": text})
    if identified.get("symbol"):
        return SYMBOL_TO_NAME.get(identified["symbol"], identified["symbol"])

    for match in re.finditer(
        r"\b(?:for|of|on|about|is)\s+([A-Za-z][\w\-\.]{1,30})(?:\s+(?:token|coin))?\b",
        text,
        re.IGNORECASE,
    ):
        if match.group(1).lower() not in _NOT_TOKENS:
            return match.group(1)
    return None


class KeywordExtractor:
    """Regex extraction used when no LLM provider is configured."""

    name = "keyword"

    def extract(self, prompt: str, user_message: str, schema: type[BaseModel]) -> dict[str, Any]:
        text = user_message or ""
        lowered = text.lower()
        fields = schema.model_fields
        result: dict[str, Any] = {}

        token_phrase = _find_token_phrase(text)
        identified = extract_token_identifier({"text": text})
        if "cryptocurrency" in fields and token_phrase:
            result["cryptocurrency"] = token_phrase
        if "symbol" in fields and identified.get("symbol"):
            result["symbol"] = identified["symbol"]
        if "token_name" in fields and token_phrase and "cryptocurrency" not in fields:
            result["token_name"] = token_phrase
        if "token_id" in fields:
            match = re.search(r"\btoken[_ ]?id\s*[:=#]?\s*(\d+)", lowered)
            if match:
                result["token_id"] = int(match.group(1))

        if "startDate" in fields:
            dates = re.findall(r"\b\d{4}-\d{2}-\d{2}\b", text)
            if dates:
                result["startDate"] = dates[0]
                if len(dates) > 1 and "endDate" in fields:
                    result["endDate"] = dates[1]
            else:
                match = re.search(r"\b(?:last|past)\s+(\d+)\s+(day|week|month)s?\b", lowered)
                if match:
                    span = int(match.group(1)) * {"day": 1, "week": 7, "month": 30}[match.group(2)]
                    today = datetime.utcnow().date()
                    result["startDate"] = (today - timedelta(days=span)).isoformat()
                    if "endDate" in fields:
                        result["endDate"] = today.isoformat()

        count = re.search(r"\b(?:top|limit|first)\s+(\d+)\b", lowered) or re.search(
            r"\b(\d+)\s+(?:tokens|coins|results|signals|reports|investors|indices|rows|data points)\b", lowered
        )
        if count:
            if "top_k" in fields:
                result["top_k"] = int(count.group(1))
            elif "limit" in fields:
                result["limit"] = int(count.group(1))

        if "page" in fields:
            match = re.search(r"\bpage\s+(\d+)\b", lowered)
            if match:
                result["page"] = int(match.group(1))

        if "indexId" in fields:
            match = re.search(r"\bindex\s*(?:id)?\s*#?\s*(\d+)\b", lowered) or re.search(r"\bid\s*#?\s*(\d+)\b", lowered)
            if match:
                result["indexId"] = int(match.group(1))

        if "signal" in fields:
            if re.search(r"\b(bullish|long|buy)\b", lowered):
                result["signal"] = 1
            elif re.search(r"\b(bearish|short|sell)\b", lowered):
                result["signal"] = -1

        if "category" in fields:
            for category in _CATEGORIES:
                if re.search(rf"\b{re.escape(category)}\b", lowered):
                    result["category"] = category.replace(" ", "-")
                    break

        if "exchange" in fields:
            for exchange in _EXCHANGES:
                if re.search(rf"\b{exchange}\b", lowered):
                    result["exchange"] = exchange
                    break

        if "type" in fields:
            if re.search(r"\b(past|previous|historical|former)\b", lowered):
                result["type"] = "past"
            elif "active" in lowered or "current" in lowered:
                result["type"] = "active"

        if "indicesType" in fields:
            for choice in ("active", "passive"):
                if re.search(rf"\b{choice}(?:ly)?\b", lowered):
                    result["indicesType"] = choice
                    break

        if "question" in fields and text.strip():
            result["question"] = text.strip()

        if "analysisType" in fields:
            for choice in _literal_choices(fields["analysisType"].annotation):
                if choice != "all" and choice.replace("_", " ") in lowered:
                    result["analysisType"] = choice
                    break

        logger.debug(f"Keyword extraction for {schema.__name__}: {result}")
        return result


class OpenAIExtractor:
    """JSON-mode chat completion against OpenAI or a compatible server."""

    name = "openai"

    def __init__(self, settings: LLMSettings, client: Optional[OpenAI] = None):
        self.settings = settings
        self.client = client or OpenAI(
            api_key=os.getenv(settings.api_key_env_var) or None,
            base_url=settings.base_url,
        )
        self._fallback = KeywordExtractor()

    def extract(self, prompt: str, user_message: str, schema: type[BaseModel]) -> dict[str, Any]:
        try:
            resp = self.client.chat.completions.create(
                model=self.settings.model,
                temperature=self.settings.temperature,
                max_tokens=self.settings.max_tokens,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": "You extract structured parameters and reply with JSON only."},
                    {"role": "user", "content": prompt},
                ],
            )
            data = json.loads(resp.choices[0].message.content or "{}")
        except (OpenAIError, json.JSONDecodeError) as e:
            logger.error(f"LLM extraction failed ({self.settings.model}), using keyword extraction: {e}")
            return self._fallback.extract(prompt, user_message, schema)

        if not isinstance(data, dict):
            logger.warning(f"LLM returned non-object JSON for {schema.__name__}, using keyword extraction")
            return self._fallback.extract(prompt, user_message, schema)
        return data


def get_extractor(settings: Optional[LLMSettings] = None):
    """Extractor for the configured provider."""
    settings = settings or LLMSettings()
    if settings.provider == "openai":
        return OpenAIExtractor(settings)
    if settings.provider != "none":
        logger.warning(f"Unsupported LLM provider '{settings.provider}', using keyword extraction")
    return KeywordExtractor()


def extract_request(extractor, message_text: str, template: str, schema: type[BaseModel], request_id: str) -> BaseModel:
    """
    Run extraction and validate the result against `schema`.

    Invalid fields (out of range limits, unknown analysis types, ...) are
    dropped rather than failing the whole request.
    """
    prompt = build_extraction_prompt(template, message_text, request_id, schema)
    raw = extractor.extract(prompt, message_text, schema)
    data = {k: v for k, v in raw.items() if k in schema.model_fields}

    try:
        request = schema.model_validate(data)
    except ValidationError as e:
        bad_fields = {err["loc"][0] for err in e.errors() if err.get("loc")}
        logger.warning(f"[{request_id}] Dropping invalid extracted fields {sorted(bad_fields)}")
        request = schema.model_validate({k: v for k, v in data.items() if k not in bad_fields})

    logger.info(f"[{request_id}] Extracted {schema.__name__}: {request.model_dump(exclude_none=True)}")
    return request


__all__ = [
    "TEMPLATES",
    "KeywordExtractor",
    "OpenAIExtractor",
    "build_extraction_prompt",
    "extract_request",
    "get_extractor",
]
