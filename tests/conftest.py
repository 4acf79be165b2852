"""Shared fixtures: a test runtime and a fake TokenMetrics HTTP layer."""

from unittest.mock import MagicMock, patch

import pytest

from action_base import PluginRuntime
from agent_config import get_testing_config
from llm_extraction import KeywordExtractor

FAKE_API_KEY = "tm-test-key-0123456789"


def make_response(payload=None, status: int = 200, reason: str = "OK") -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.ok = status < 400
    response.reason = reason
    response.text = ""
    response.json.return_value = payload
    return response


@pytest.fixture
def api_response():
    """Factory for fake `requests.Response` objects."""
    return make_response


@pytest.fixture
def runtime():
    return PluginRuntime(
        settings={"TOKENMETRICS_API_KEY": FAKE_API_KEY},
        config=get_testing_config(),
        extractor=KeywordExtractor(),
    )


@pytest.fixture
def tm_api():
    """
    Patch the HTTP layer and serve canned payloads by endpoint path.

    Set `tm_api.routes["/v2/price"] = {...}` before calling a handler; a value
    that is already a response mock is returned as-is. Unknown paths get an
    empty data list.
    """
    routes: dict = {}

    def respond(method, url, **kwargs):
        for path, payload in routes.items():
            if url.endswith(path):
                return payload if isinstance(payload, MagicMock) else make_response(payload)
        return make_response({"success": True, "data": []})

    with patch("tokenmetrics_provider.requests.request", side_effect=respond) as request, \
            patch("tokenmetrics_provider.time.sleep"):
        request.routes = routes
        yield request
