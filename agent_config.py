"""
agent_config.py — Configuration for the TokenMetrics agent plugin

This module centralizes plugin-level configuration including:
  - LLM extraction settings (provider, model, sampling)
  - Request defaults (page size, timeout, retries)
  - Shared analysis thresholds used across actions
"""

import os
from dataclasses import dataclass, field
from typing import Any, Optional
from dotenv import load_dotenv

from config import (
    LLM_MODEL,
    LLM_PROVIDER,
    MAX_LIMIT,
    MIN_API_KEY_LENGTH,
    TOKENMETRICS_MAX_RETRIES,
    TOKENMETRICS_PAGE_LIMIT,
    TOKENMETRICS_TIMEOUT_SEC,
)

load_dotenv()


# ═══════════════════════════════════════════════════════════════════════════════
# SETTINGS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class LLMSettings:
    """Settings for LLM-backed request extraction."""

    # Provider selection
    provider: str = LLM_PROVIDER  # "openai", "none"

    # Model settings
    model: str = LLM_MODEL
    temperature: float = 0.1  # Low temperature for consistent extraction
    max_tokens: int = 1000

    # API configuration
    api_key_env_var: str = "OPENAI_API_KEY"  # Environment variable name for API key
    base_url: Optional[str] = None  # OpenAI-compatible server, if any


@dataclass
class PluginSettings:
    """Request defaults for TokenMetrics calls."""

    default_limit: int = TOKENMETRICS_PAGE_LIMIT
    max_limit: int = MAX_LIMIT
    request_timeout_sec: int = TOKENMETRICS_TIMEOUT_SEC
    max_retries: int = TOKENMETRICS_MAX_RETRIES

    # Logging
    log_api_calls: bool = True


@dataclass
class AnalysisThresholds:
    """Cut-offs shared by several actions."""

    # Market cap tiers
    large_cap: float = 10e9
    mid_cap: float = 1e9

    # Correlation
    high_correlation: float = 0.7
    low_correlation: float = 0.3

    # Resistance/support
    strong_level_strength: float = 70.0

    # Sentiment extremes for contrarian signals
    contrarian_sentiment: float = 70.0


# ═══════════════════════════════════════════════════════════════════════════════
# COMPLETE PLUGIN CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class PluginConfiguration:
    """Complete configuration for the TokenMetrics plugin."""

    settings: PluginSettings = field(default_factory=PluginSettings)
    llm: LLMSettings = field(default_factory=LLMSettings)
    thresholds: AnalysisThresholds = field(default_factory=AnalysisThresholds)

    def validate(self, api_key: Optional[str] = None) -> list[str]:
        """Validate configuration and return list of issues."""
        issues = []

        key = api_key if api_key is not None else os.getenv("TOKENMETRICS_API_KEY", "")
        if not key:
            issues.append("TOKENMETRICS_API_KEY not set - all actions disabled")
        elif len(key) < MIN_API_KEY_LENGTH:
            issues.append("TOKENMETRICS_API_KEY looks invalid (too short)")

        if self.llm.provider not in ("openai", "none"):
            issues.append(f"Unknown LLM provider '{self.llm.provider}' - keyword extraction will be used")
        elif self.llm.provider != "none":
            if self.llm.api_key_env_var and not os.getenv(self.llm.api_key_env_var):
                issues.append(f"LLM API key ({self.llm.api_key_env_var}) not set")

        if self.settings.default_limit > self.settings.max_limit:
            issues.append("Default page limit exceeds the API maximum")

        return issues

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "settings": {
                "default_limit": self.settings.default_limit,
                "max_limit": self.settings.max_limit,
                "request_timeout_sec": self.settings.request_timeout_sec,
                "max_retries": self.settings.max_retries,
            },
            "llm": {
                "provider": self.llm.provider,
                "model": self.llm.model,
                "temperature": self.llm.temperature,
                "max_tokens": self.llm.max_tokens,
            },
            "thresholds": {
                "large_cap": self.thresholds.large_cap,
                "mid_cap": self.thresholds.mid_cap,
                "high_correlation": self.thresholds.high_correlation,
                "low_correlation": self.thresholds.low_correlation,
            },
        }


# ═══════════════════════════════════════════════════════════════════════════════
# PRESET CONFIGURATIONS
# ═══════════════════════════════════════════════════════════════════════════════

def get_default_config() -> PluginConfiguration:
    """Get default plugin configuration."""
    return PluginConfiguration()


def get_testing_config() -> PluginConfiguration:
    """Get configuration for testing (no LLM calls, single attempt)."""
    config = PluginConfiguration()
    config.llm.provider = "none"
    config.settings.max_retries = 1
    config.settings.log_api_calls = False
    return config


# ═══════════════════════════════════════════════════════════════════════════════
# ENVIRONMENT-BASED CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════

def load_config_from_env() -> PluginConfiguration:
    """Load configuration from environment variables."""
    config = PluginConfiguration()

    # LLM settings
    config.llm.provider = os.getenv("LLM_PROVIDER", "none").lower()
    config.llm.model = os.getenv("LLM_MODEL", config.llm.model)
    config.llm.api_key_env_var = os.getenv("LLM_API_KEY_VAR", config.llm.api_key_env_var)
    config.llm.base_url = os.getenv("LLM_BASE_URL") or None

    # Request settings
    if os.getenv("TOKENMETRICS_PAGE_LIMIT"):
        config.settings.default_limit = int(os.getenv("TOKENMETRICS_PAGE_LIMIT"))

    if os.getenv("TOKENMETRICS_TIMEOUT"):
        config.settings.request_timeout_sec = int(os.getenv("TOKENMETRICS_TIMEOUT"))

    return config


# ═══════════════════════════════════════════════════════════════════════════════
# EXPORTS
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = [
    "LLMSettings",
    "PluginSettings",
    "AnalysisThresholds",
    "PluginConfiguration",
    "get_default_config",
    "get_testing_config",
    "load_config_from_env",
]
