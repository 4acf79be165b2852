"""Tests for plugin configuration, presets and environment loading."""

from agent_config import PluginConfiguration, get_testing_config, load_config_from_env


def test_validate_reports_missing_and_short_keys(monkeypatch):
    monkeypatch.delenv("TOKENMETRICS_API_KEY", raising=False)
    config = PluginConfiguration()
    config.llm.provider = "none"
    assert config.validate("") == ["TOKENMETRICS_API_KEY not set - all actions disabled"]
    assert config.validate("short") == ["TOKENMETRICS_API_KEY looks invalid (too short)"]
    assert config.validate("tm-test-key-0123456789") == []


def test_validate_flags_llm_settings(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    config = PluginConfiguration()
    config.llm.provider = "openai"
    assert "LLM API key (OPENAI_API_KEY) not set" in config.validate("tm-test-key-0123456789")
    config.llm.provider = "claude"
    assert any("Unknown LLM provider" in issue for issue in config.validate("tm-test-key-0123456789"))


def test_testing_preset():
    config = get_testing_config()
    assert config.llm.provider == "none"
    assert config.settings.max_retries == 1
    assert config.settings.log_api_calls is False


def test_load_from_env(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", "OpenAI")
    monkeypatch.setenv("LLM_MODEL", "gpt-4o")
    monkeypatch.setenv("TOKENMETRICS_PAGE_LIMIT", "25")
    monkeypatch.setenv("TOKENMETRICS_TIMEOUT", "30")
    config = load_config_from_env()
    assert config.llm.provider == "openai"
    assert config.llm.model == "gpt-4o"
    summary = config.to_dict()
    assert summary["settings"]["default_limit"] == 25
    assert summary["settings"]["request_timeout_sec"] == 30
    assert summary["thresholds"]["large_cap"] == 10e9
