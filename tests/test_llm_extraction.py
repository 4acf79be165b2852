"""Tests for request extraction and schema validation."""

from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

from openai import OpenAIError

from agent_config import LLMSettings
from llm_extraction import (
    TEMPLATES,
    IndicesHoldingsRequest,
    IndicesRequest,
    InvestorGradesRequest,
    KeywordExtractor,
    OpenAIExtractor,
    PriceRequest,
    TmaiRequest,
    TokensRequest,
    TopMarketCapRequest,
    TradingSignalsRequest,
    build_extraction_prompt,
    extract_request,
    get_extractor,
)


def keyword(text, schema):
    return KeywordExtractor().extract("", text, schema)


def completion(content: str) -> MagicMock:
    return MagicMock(choices=[MagicMock(message=MagicMock(content=content))])


class TestKeywordExtractor:
    """Schema-driven regex extraction."""

    def test_token_from_name(self):
        result = keyword("What's the price of Bitcoin?", PriceRequest)
        assert result["cryptocurrency"] == "Bitcoin"
        assert result["symbol"] == "BTC"

    def test_unknown_token_phrase(self):
        assert keyword("price of Zebracoin", PriceRequest)["cryptocurrency"] == "Zebracoin"

    def test_top_k_and_limit(self):
        assert keyword("show the top 10 by market cap", TopMarketCapRequest) == {"top_k": 10}
        assert keyword("list 25 tokens on page 2", TokensRequest)["limit"] == 25
        assert keyword("list 25 tokens on page 2", TokensRequest)["page"] == 2

    def test_relative_dates(self):
        result = keyword("BTC signals for the last 2 weeks", TradingSignalsRequest)
        today = datetime.utcnow().date()
        assert result["startDate"] == (today - timedelta(days=14)).isoformat()
        assert result["endDate"] == today.isoformat()

    def test_explicit_dates(self):
        result = keyword("signals from 2024-01-01 to 2024-02-01", TradingSignalsRequest)
        assert (result["startDate"], result["endDate"]) == ("2024-01-01", "2024-02-01")

    def test_signal_direction_and_category(self):
        result = keyword("bullish defi signals on binance", TradingSignalsRequest)
        assert result["signal"] == 1
        assert result["category"] == "defi"
        assert result["exchange"] == "binance"

    def test_index_fields(self):
        assert keyword("holdings of index 5", IndicesHoldingsRequest)["indexId"] == 5
        result = keyword("show passive indices risk", IndicesRequest)
        assert result["indicesType"] == "passive"
        assert result["analysisType"] == "risk"

    def test_category_and_exchange_are_not_tokens(self):
        result = keyword("Show investor grades for defi tokens", InvestorGradesRequest)
        assert result["category"] == "defi"
        assert "cryptocurrency" not in result
        result = keyword("List defi tokens on binance", TokensRequest)
        assert (result["category"], result["exchange"]) == ("defi", "binance")
        assert "token_name" not in result
        assert keyword("grades for layer 1 tokens of Zebracoin", InvestorGradesRequest)["cryptocurrency"] == "Zebracoin"

    def test_date_span_is_not_a_count(self):
        result = keyword("BTC signals for the last 30 days", TradingSignalsRequest)
        assert "limit" not in result
        assert "startDate" in result
        assert keyword("first 5 signals for BTC", TradingSignalsRequest)["limit"] == 5
        assert keyword("BTC signals, 20 results", TradingSignalsRequest)["limit"] == 20

    def test_question_is_whole_message(self):
        assert keyword("  Is ETH a good buy?  ", TmaiRequest)["question"] == "Is ETH a good buy?"
        assert "question" not in keyword("   ", TmaiRequest)


class TestExtractRequest:
    def test_invalid_fields_are_dropped(self):
        extractor = MagicMock()
        extractor.extract.return_value = {"limit": 5000, "page": 2, "unknown": "x"}
        request = extract_request(extractor, "list tokens", TEMPLATES["tokens"], TokensRequest, "req_1")
        assert request.model_dump(exclude_none=True) == {"page": 2}

    def test_malformed_dates_are_dropped(self):
        extractor = MagicMock()
        extractor.extract.return_value = {"startDate": "last week", "endDate": "2024-03-01", "symbol": "BTC"}
        request = extract_request(extractor, "btc grades", TEMPLATES["investor_grades"], InvestorGradesRequest, "req_2")
        assert request.model_dump(exclude_none=True) == {"endDate": "2024-03-01", "symbol": "BTC"}

    def test_category_query_extracts_no_token(self):
        request = extract_request(
            KeywordExtractor(), "Show investor grades for defi tokens",
            TEMPLATES["investor_grades"], InvestorGradesRequest, "req_3",
        )
        assert request.category == "defi"
        assert request.cryptocurrency is None

    def test_prompt_contains_message_and_request_id(self):
        prompt = build_extraction_prompt(TEMPLATES["price"], "price of SOL", "req_42", PriceRequest)
        assert "req_42" in prompt
        assert 'USER MESSAGE: "price of SOL"' in prompt
        assert "cryptocurrency" in prompt


class TestOpenAIExtractor:
    def test_parses_json_completion(self):
        client = MagicMock()
        client.chat.completions.create.return_value = completion('{"cryptocurrency": "Solana", "limit": 5}')
        extractor = OpenAIExtractor(LLMSettings(provider="openai"), client=client)

        assert extractor.extract("prompt", "sol price", PriceRequest) == {"cryptocurrency": "Solana", "limit": 5}
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["temperature"] == 0.1

    def test_falls_back_to_keywords_on_api_error(self):
        client = MagicMock()
        client.chat.completions.create.side_effect = OpenAIError("service unavailable")
        extractor = OpenAIExtractor(LLMSettings(provider="openai"), client=client)
        assert extractor.extract("prompt", "price of Bitcoin", PriceRequest)["symbol"] == "BTC"

    def test_falls_back_on_non_object_json(self):
        client = MagicMock()
        client.chat.completions.create.return_value = completion("[1, 2]")
        extractor = OpenAIExtractor(LLMSettings(provider="openai"), client=client)
        assert extractor.extract("prompt", "price of Bitcoin", PriceRequest)["cryptocurrency"] == "Bitcoin"


class TestGetExtractor:
    def test_none_provider(self):
        assert isinstance(get_extractor(LLMSettings(provider="none")), KeywordExtractor)

    def test_unknown_provider_uses_keywords(self):
        assert isinstance(get_extractor(LLMSettings(provider="mystery")), KeywordExtractor)

    def test_openai_provider(self):
        with patch("llm_extraction.OpenAI") as client_cls:
            extractor = get_extractor(LLMSettings(provider="openai", base_url="http://localhost:8000/v1"))
        assert isinstance(extractor, OpenAIExtractor)
        assert client_cls.call_args.kwargs["base_url"] == "http://localhost:8000/v1"
