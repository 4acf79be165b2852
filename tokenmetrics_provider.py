"""
tokenmetrics_provider.py — TokenMetrics v2 REST client for the agent plugin.

Every action goes through this one typed endpoint client:
  - Parameter validation (ids, symbols, dates, pagination, signal codes)
  - Authenticated requests (x-api-key header)
  - Retry with backoff for rate limits, server errors and network failures
  - Response unwrapping ({success, data: [...]} or bare list)

API Endpoints Used: see config.TOKENMETRICS_ENDPOINTS
  - GET  /v2/<endpoint>?token_id=...&symbol=...&limit=...&page=...
  - POST /v2/tmai  {"messages": [{"user": "..."}]}
"""

import json
import logging
import re
import time
from datetime import date
from typing import Any, Optional

import requests

import config

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_VALID_SIGNALS = ("1", "-1", "0")


# ─── Errors ──────────────────────────────────────────────────────────────────

class TokenMetricsError(Exception):
    """Base error for TokenMetrics API failures."""


class InvalidAPIKeyError(TokenMetricsError):
    """API key missing, malformed or rejected (HTTP 401)."""


class TokenMetricsAPIError(TokenMetricsError):
    """Non-success HTTP status returned by the API."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class TokenMetricsValidationError(TokenMetricsError, ValueError):
    """Request parameters rejected before any call was made."""


# ─── Parameters ──────────────────────────────────────────────────────────────

def _is_valid_date(value: str) -> bool:
    """YYYY-MM-DD and an actual calendar date (no 2024-02-30)."""
    if not isinstance(value, str) or not _DATE_RE.match(value):
        return False
    year, month, day = (int(part) for part in value.split("-"))
    try:
        date(year, month, day)
    except ValueError:
        return False
    return True


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and re.fullmatch(r"-?\d+", value.strip()):
        return int(value.strip())
    return None


def validate_params(params: dict) -> None:
    """
    Validate request parameters in place.

    Raises TokenMetricsValidationError on the first invalid value.
    Side effect: `symbol` is normalized to upper case.
    """
    if params.get("token_id") is not None:
        token_id = _as_int(params["token_id"])
        if token_id is None or token_id <= 0:
            raise TokenMetricsValidationError("token_id must be a positive integer (e.g., Bitcoin = 3375)")

    if params.get("symbol") is not None:
        symbol = params["symbol"]
        if not isinstance(symbol, str) or not symbol.strip():
            raise TokenMetricsValidationError("symbol must be a non-empty string (e.g., 'BTC', 'ETH')")
        params["symbol"] = symbol.strip().upper()

    for key in ("startDate", "endDate"):
        if params.get(key) and not _is_valid_date(params[key]):
            raise TokenMetricsValidationError(f"{key} must be in YYYY-MM-DD format (e.g., '2024-01-01')")

    if params.get("limit") is not None:
        limit = _as_int(params["limit"])
        if limit is None or not 1 <= limit <= config.MAX_LIMIT:
            raise TokenMetricsValidationError(f"limit must be between 1 and {config.MAX_LIMIT}")

    if params.get("page") is not None:
        page = _as_int(params["page"])
        if page is None or page < 1:
            raise TokenMetricsValidationError("page must be a positive integer starting from 1")

    if params.get("top_k") is not None:
        top_k = _as_int(params["top_k"])
        if top_k is None or not 1 <= top_k <= config.MAX_TOP_K:
            raise TokenMetricsValidationError(f"top_k must be between 1 and {config.MAX_TOP_K}")

    if "indexName" in params and params["indexName"] is not None:
        index_name = params["indexName"]
        if not isinstance(index_name, str) or not index_name.strip():
            raise TokenMetricsValidationError("indexName must be a non-empty string (e.g., 'meme')")

    if params.get("signal") is not None:
        if str(params["signal"]) not in _VALID_SIGNALS:
            raise TokenMetricsValidationError("signal must be '1' (bullish), '-1' (bearish), or '0' (no signal)")

    if "messages" in params:
        messages = params["messages"]
        if not isinstance(messages, list) or not messages:
            raise TokenMetricsValidationError("messages must be a non-empty list for the TMAI endpoint")


def build_params(base: Optional[dict] = None, extra: Optional[dict] = None) -> dict:
    """Merge parameter dicts, dropping None and empty-string values."""
    merged = {**(base or {}), **(extra or {})}
    return {k: v for k, v in merged.items() if v is not None and v != ""}


def get_api_key(override: Optional[str] = None) -> str:
    """Resolve the API key, raising InvalidAPIKeyError if unusable."""
    api_key = override if override else config.TOKENMETRICS_API_KEY
    if not api_key:
        raise InvalidAPIKeyError(
            "TokenMetrics API key is not set. Please set the TOKENMETRICS_API_KEY environment variable. "
            "Get your API key from https://developers.tokenmetrics.com"
        )
    if len(api_key) < config.MIN_API_KEY_LENGTH:
        raise InvalidAPIKeyError("TokenMetrics API key appears to be invalid (too short)")
    return api_key


# ─── HTTP ────────────────────────────────────────────────────────────────────

def _error_detail(response: requests.Response) -> Any:
    """Best-effort error payload from a failed response."""
    try:
        return response.json()
    except ValueError:
        return response.text or response.reason


def _status_error(response: requests.Response, endpoint: str) -> TokenMetricsError:
    """Map an HTTP status to the exception raised to handlers."""
    status = response.status_code
    detail = _error_detail(response)

    if status == 401:
        return InvalidAPIKeyError(
            "Invalid TokenMetrics API key. Please check your TOKENMETRICS_API_KEY "
            "and ensure it is sent in the x-api-key header."
        )
    if status == 403:
        return TokenMetricsAPIError(
            "Access forbidden. Your TokenMetrics API key may not have permission for this endpoint.",
            status,
        )
    if status == 404:
        return TokenMetricsAPIError(
            f"TokenMetrics API endpoint not found: {endpoint}. Please verify the endpoint URL is correct.",
            status,
        )
    if status == 429:
        return TokenMetricsAPIError(
            "TokenMetrics API rate limit exceeded. Please wait before making more requests.",
            status,
        )
    if status == 422:
        body = json.dumps(detail) if isinstance(detail, (dict, list)) else str(detail)
        return TokenMetricsAPIError(f"Invalid parameters for TokenMetrics API: {body}", status)

    if isinstance(detail, dict):
        message = detail.get("message") or detail.get("error") or response.reason
    else:
        message = detail or response.reason
    return TokenMetricsAPIError(f"TokenMetrics API error ({status}): {message}", status)


def fetch_with_retry(
    method: str,
    url: str,
    *,
    headers: dict,
    params: Optional[dict] = None,
    json_body: Optional[dict] = None,
    max_retries: int = config.TOKENMETRICS_MAX_RETRIES,
    timeout: float = config.TOKENMETRICS_TIMEOUT_SEC,
    endpoint: str = "",
) -> requests.Response:
    """
    Send a request, retrying transient failures.

      - 401           → InvalidAPIKeyError, never retried
      - 429           → wait 2s × attempt, retry
      - 5xx           → wait 1s × attempt, retry
      - other 4xx     → mapped TokenMetricsAPIError, not retried
      - network error → wait 1s × 2^(attempt-1), retry
    """
    last_error: Optional[Exception] = None

    for attempt in range(1, max_retries + 1):
        logger.debug(f"API request attempt {attempt}/{max_retries}: {method} {url}")
        try:
            response = requests.request(
                method,
                url,
                headers=headers,
                params=params,
                json=json_body,
                timeout=timeout,
            )
        except requests.RequestException as e:
            last_error = e
            logger.warning(f"Attempt {attempt} failed: {endpoint or url} — {e}")
            if attempt < max_retries:
                time.sleep(1 * 2 ** (attempt - 1))
            continue

        if response.ok:
            return response

        status = response.status_code
        logger.error(f"API error {status} from {endpoint or url}")

        if status == 429:
            last_error = _status_error(response, endpoint)
            logger.warning("TokenMetrics rate limit hit, waiting before retry")
            if attempt < max_retries:
                time.sleep(2 * attempt)
            continue

        if status >= 500:
            last_error = _status_error(response, endpoint)
            logger.warning("TokenMetrics server error, retrying")
            if attempt < max_retries:
                time.sleep(1 * attempt)
            continue

        raise _status_error(response, endpoint)

    if isinstance(last_error, TokenMetricsError):
        raise last_error
    raise TokenMetricsError(
        f"Failed to communicate with TokenMetrics API after {max_retries} attempts. "
        f"Original error: {last_error}"
    )


def call_tokenmetrics_api(
    endpoint: str,
    params: Optional[dict] = None,
    *,
    method: str = "GET",
    api_key: Optional[str] = None,
    max_retries: int = config.TOKENMETRICS_MAX_RETRIES,
    timeout: float = config.TOKENMETRICS_TIMEOUT_SEC,
) -> Any:
    """
    Call a TokenMetrics endpoint and return the parsed JSON body.

    GET requests send params as the query string; POST requests send them
    as the JSON body.
    """
    key = get_api_key(api_key)
    clean = build_params(params)
    validate_params(clean)

    url = f"{config.TOKENMETRICS_BASE_URL}{endpoint}"
    headers = {
        "x-api-key": key,
        "accept": "application/json",
        "Content-Type": "application/json",
    }

    logger.info(f"Calling TokenMetrics API: {method} {endpoint} {clean if method == 'GET' else ''}".rstrip())

    response = fetch_with_retry(
        method,
        url,
        headers=headers,
        params=clean if method == "GET" else None,
        json_body=clean if method != "GET" else None,
        max_retries=max_retries,
        timeout=timeout,
        endpoint=endpoint,
    )

    try:
        return response.json()
    except ValueError as e:
        raise TokenMetricsError(f"TokenMetrics API returned invalid JSON for {endpoint}: {e}") from e


def extract_data(response: Any) -> list:
    """Unwrap the list of records from an API response."""
    if isinstance(response, list):
        return response
    if isinstance(response, dict) and "data" in response:
        data = response["data"]
        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            return [data]
        return []
    return []


# ─── Health Check ────────────────────────────────────────────────────────────

def health_check(api_key: Optional[str] = None) -> dict:
    """Check whether the TokenMetrics API is reachable with the configured key."""
    try:
        key = get_api_key(api_key)
    except InvalidAPIKeyError as e:
        return {"status": "unconfigured", "error": str(e)}

    start = time.monotonic()
    try:
        response = call_tokenmetrics_api(
            config.TOKENMETRICS_ENDPOINTS["tokens"],
            {"limit": 1},
            api_key=key,
            max_retries=1,
        )
    except TokenMetricsError as e:
        logger.error(f"TokenMetrics health check failed: {e}")
        return {"status": "error", "error": str(e)}

    return {
        "status": "ok",
        "base_url": config.TOKENMETRICS_BASE_URL,
        "api_version": config.TOKENMETRICS_API_VERSION,
        "latency_ms": round((time.monotonic() - start) * 1000, 1),
        "sample_size": len(extract_data(response)),
    }
