"""
config.py — Constants and configuration for the TokenMetrics agent plugin.
API credentials, endpoint paths, request limits and logging live here.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# ─── API Keys ────────────────────────────────────────────────────────────────
TOKENMETRICS_API_KEY: str = os.getenv("TOKENMETRICS_API_KEY", "")
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
MIN_API_KEY_LENGTH: int = 10

# ─── TokenMetrics API ────────────────────────────────────────────────────────
TOKENMETRICS_BASE_URL: str = os.getenv("TOKENMETRICS_BASE_URL", "https://api.tokenmetrics.com")
TOKENMETRICS_API_VERSION: str = os.getenv("TOKENMETRICS_API_VERSION", "v2")
TOKENMETRICS_TIMEOUT_SEC: int = int(os.getenv("TOKENMETRICS_TIMEOUT", "10"))
TOKENMETRICS_MAX_RETRIES: int = 3
TOKENMETRICS_PAGE_LIMIT: int = int(os.getenv("TOKENMETRICS_PAGE_LIMIT", "50"))
DATA_SOURCE_LABEL: str = "TokenMetrics Official API"

# ─── Endpoints ───────────────────────────────────────────────────────────────
TOKENMETRICS_ENDPOINTS = {
    # Core
    "tokens": "/v2/tokens",
    "quantmetrics": "/v2/quantmetrics",
    "trader_grades": "/v2/trader-grades",
    "market_metrics": "/v2/market-metrics",
    "trading_signals": "/v2/trading-signals",
    "hourly_trading_signals": "/v2/hourly-trading-signals",
    "price": "/v2/price",
    "top_market_cap": "/v2/top-market-cap-tokens",
    # OHLCV
    "hourly_ohlcv": "/v2/hourly-ohlcv",
    "daily_ohlcv": "/v2/daily-ohlcv",
    # Research
    "investor_grades": "/v2/investor-grades",
    "ai_reports": "/v2/ai-reports",
    "crypto_investors": "/v2/crypto-investors",
    "resistance_support": "/v2/resistance-support",
    "sentiment": "/v2/sentiments",
    "scenario_analysis": "/v2/scenario-analysis",
    "correlation": "/v2/correlation",
    # AI (POST)
    "tmai": "/v2/tmai",
    # Indices
    "indices": "/v2/indices",
    "indices_holdings": "/v2/indices-holdings",
    "indices_performance": "/v2/indices-performance",
    # Grades and picks
    "moonshot_tokens": "/v2/moonshot-tokens",
    "tm_grade": "/v2/tm-grade",
    "tm_grade_history": "/v2/tm-grade-history",
    "technology_grade": "/v2/technology-grade",
}

# ─── Request Limits ──────────────────────────────────────────────────────────
MAX_LIMIT: int = 1000
MAX_TOP_K: int = 1000
RESOLVER_SEARCH_LIMIT: int = 5
RESOLVER_VARIATION_LIMIT: int = 3
RESOLVER_BROAD_LIMIT: int = 50

# ─── LLM Extraction ─────────────────────────────────────────────────────────
# "openai" uses the chat completions API, "none" uses the keyword extractor
LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "none")
LLM_MODEL: str = os.getenv("LLM_MODEL", "gpt-4o-mini")

# ─── Logging ─────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
