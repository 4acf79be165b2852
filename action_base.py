"""
action_base.py — Shared plumbing for TokenMetrics actions.

Every action is the same pipeline with different endpoint-specific parts:

    message → extract request → defaults → resolve token → params
            → TokenMetrics call → analyze → Markdown → {text, content}

EndpointCall describes one such pipeline; endpoint_handler() turns it into
the async handler the host runtime invokes.
"""

import inspect
import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ValidationError

import config
from agent_config import AnalysisThresholds, PluginConfiguration, get_default_config
from formatting import bullet_lines, generate_request_id
from llm_extraction import TEMPLATES, KeywordExtractor, extract_request
from token_resolver import resolve_request_token
from tokenmetrics_provider import (
    InvalidAPIKeyError,
    TokenMetricsAPIError,
    TokenMetricsError,
    TokenMetricsValidationError,
    call_tokenmetrics_api,
    extract_data,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# DATA MODELS
# ═══════════════════════════════════════════════════════════════════════════════

class ActionCategory(Enum):
    """Categories for organizing actions."""
    MARKET_DATA = "market_data"
    GRADES = "grades"
    SIGNALS = "signals"
    RESEARCH = "research"
    INDICES = "indices"


@dataclass
class ActionResult:
    """Result from running an action handler."""
    success: bool
    text: str
    content: dict = field(default_factory=dict)
    error: Optional[str] = None
    execution_time_ms: float = 0.0


@dataclass
class PluginRuntime:
    """What handlers get from the host: settings, configuration, extractor."""
    settings: dict = field(default_factory=dict)
    config: PluginConfiguration = field(default_factory=get_default_config)
    extractor: Any = field(default_factory=KeywordExtractor)

    def get_setting(self, key: str) -> Any:
        if self.settings.get(key):
            return self.settings[key]
        value = getattr(config, key, None)
        if value:
            return value
        return os.getenv(key)

    @property
    def api_key(self) -> Optional[str]:
        return self.get_setting("TOKENMETRICS_API_KEY")


@dataclass
class Action:
    """An action exposed to the host runtime."""
    name: str
    description: str
    category: ActionCategory
    handler: Callable
    endpoint: str
    similes: list[str] = field(default_factory=list)
    examples: list[list[dict]] = field(default_factory=list)
    validate: Optional[Callable] = None

    def __post_init__(self):
        if self.validate is None:
            self.validate = validate_api_key_present


def message_text(message: Any) -> str:
    """Text of a host message: plain str, {"text": ...} or {"content": {"text": ...}}."""
    if message is None:
        return ""
    if isinstance(message, str):
        return message
    if isinstance(message, dict):
        if isinstance(message.get("content"), dict):
            return str(message["content"].get("text") or "")
        return str(message.get("text") or "")
    return str(getattr(message, "text", "") or "")


async def validate_api_key_present(runtime: PluginRuntime, message: Any = None, state: Any = None) -> bool:
    """Actions are only offered when a TokenMetrics key is configured."""
    if not runtime.api_key:
        logger.warning("TOKENMETRICS_API_KEY not found in runtime settings")
        return False
    return True


def conversation_example(user_text: str, reply_text: str, action_name: str) -> list[dict]:
    return [
        {"user": "{{user1}}", "content": {"text": user_text}},
        {"user": "{{agent}}", "content": {"text": reply_text, "action": action_name}},
    ]


# ─── Results ─────────────────────────────────────────────────────────────────

def build_metadata(
    endpoint: str,
    requested_token: Optional[str] = None,
    resolved_token: Optional[dict] = None,
    filters: Optional[dict] = None,
    pagination: Optional[dict] = None,
    data_points: int = 0,
) -> dict:
    metadata = {
        "endpoint": endpoint,
        "api_version": "v2",
        "data_source": config.DATA_SOURCE_LABEL,
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "data_points": data_points,
    }
    if requested_token:
        metadata["requested_token"] = requested_token
    if resolved_token:
        metadata["resolved_token"] = {
            "token_id": resolved_token.get("TOKEN_ID"),
            "symbol": resolved_token.get("TOKEN_SYMBOL"),
            "name": resolved_token.get("TOKEN_NAME"),
        }
    if filters:
        metadata["filters_applied"] = filters
    if pagination:
        metadata["pagination"] = pagination
    return metadata


async def _emit(callback: Optional[Callable], payload: dict) -> None:
    if callback is None:
        return
    outcome = callback(payload)
    if inspect.isawaitable(outcome):
        await outcome


async def success_result(text: str, content: dict, callback: Optional[Callable] = None) -> ActionResult:
    await _emit(callback, {"text": text, "content": content})
    return ActionResult(success=True, text=text, content=content)


def _error_type(error: Exception) -> str:
    if isinstance(error, InvalidAPIKeyError):
        return "invalid_api_key"
    if isinstance(error, TokenMetricsValidationError):
        return "validation_error"
    if isinstance(error, TokenMetricsAPIError):
        return "api_error"
    if isinstance(error, TokenMetricsError):
        return "network_error"
    return type(error).__name__


async def error_result(
    action_label: str,
    endpoint: str,
    error: Exception,
    causes: tuple = (),
    solutions: tuple = (),
    callback: Optional[Callable] = None,
) -> ActionResult:
    message = str(error) or type(error).__name__
    causes = causes or (
        "Invalid or missing TokenMetrics API key",
        "Token not found in the TokenMetrics database",
        "Network connectivity issues",
        "API rate limit exceeded",
    )
    solutions = solutions or (
        "Verify your TOKENMETRICS_API_KEY is set correctly",
        "Try a well-known token such as Bitcoin or Ethereum",
        "Wait a moment and try again",
    )

    text = "\n".join(
        [f"❌ I encountered an error while fetching {action_label}: {message}", "", "This could be due to:"]
        + bullet_lines(causes)
        + ["", "Please try again or check your API configuration."]
    )
    content = {
        "success": False,
        "error": message,
        "error_type": _error_type(error),
        "troubleshooting": {
            "endpoint_verification": f"Make sure {endpoint} is reachable and your key has access to it",
            "parameter_validation": "Check token identifiers, dates (YYYY-MM-DD), limit and page values",
            "common_solutions": list(solutions),
        },
    }
    await _emit(callback, {"text": text, "content": content})
    return ActionResult(success=False, text=text, content=content, error=message)


# ─── Endpoint Calls ──────────────────────────────────────────────────────────

def fetch_endpoint_data(
    runtime: PluginRuntime,
    endpoint_key: str,
    params: Optional[dict] = None,
    method: str = "GET",
) -> tuple[list, Any]:
    """Call a TokenMetrics endpoint by key; returns (records, raw response)."""
    endpoint = config.TOKENMETRICS_ENDPOINTS[endpoint_key]
    if runtime.config.settings.log_api_calls:
        logger.info(f"Fetching {endpoint} with params: {params}")
    raw = call_tokenmetrics_api(
        endpoint,
        params,
        method=method,
        api_key=runtime.api_key,
        max_retries=runtime.config.settings.max_retries,
        timeout=runtime.config.settings.request_timeout_sec,
    )
    data = extract_data(raw)
    logger.info(f"Received {len(data)} records from {endpoint}")
    return data, raw


@dataclass
class EndpointCall:
    """Endpoint-specific parts of one action pipeline."""
    label: str                          # "price data", used in messages
    endpoint_key: str                   # key into config.TOKENMETRICS_ENDPOINTS
    schema: type[BaseModel]
    analyze: Callable[[list, dict, AnalysisThresholds], dict]
    render: Callable[[list, dict, dict], str]
    param_keys: tuple = ("token_id", "symbol", "limit", "page")
    param_map: dict = field(default_factory=dict)  # request key → API param name
    defaults: dict = field(default_factory=dict)
    resolve_token: bool = True
    require_token: bool = False
    required: tuple = ()
    method: str = "GET"
    build_body: Optional[Callable[[dict], dict]] = None
    unwrap: Optional[Callable[[Any], list]] = None  # records from a response without a "data" list
    data_key: str = "data"
    causes: tuple = ()
    solutions: tuple = ()

    @property
    def template_key(self) -> str:
        return self.endpoint_key


def apply_options(call: EndpointCall, request: dict, options: dict) -> dict:
    """Merge host-supplied options into `request` after checking them against the schema."""
    fields = call.schema.model_fields
    merged = {**request, **{k: v for k, v in options.items() if k in fields}}
    try:
        checked = call.schema.model_validate({k: v for k, v in merged.items() if k in fields})
    except ValidationError as e:
        bad = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        raise TokenMetricsValidationError(f"Invalid option(s) for {call.label}: {', '.join(bad)}") from e
    merged.update(checked.model_dump(exclude_none=True))
    return merged


def build_request_params(call: EndpointCall, request: dict) -> dict:
    if call.build_body is not None:
        return call.build_body(request)
    return {
        call.param_map.get(key, key): request[key]
        for key in call.param_keys
        if request.get(key) is not None
    }


def endpoint_handler(call: EndpointCall) -> Callable:
    """Build the async host handler for an EndpointCall."""
    endpoint = config.TOKENMETRICS_ENDPOINTS[call.endpoint_key]

    async def handler(
        runtime: PluginRuntime,
        message: Any,
        state: Any = None,
        options: Optional[dict] = None,
        callback: Optional[Callable] = None,
    ) -> ActionResult:
        request_id = generate_request_id()
        start = time.monotonic()
        logger.info(f"[{request_id}] Processing {call.label} request")

        try:
            text = message_text(message)
            extracted = extract_request(
                runtime.extractor, text, TEMPLATES[call.template_key], call.schema, request_id
            )
            request = {**call.defaults, **extracted.model_dump(exclude_none=True)}
            if options:
                request = apply_options(call, request, options)

            requested_token = request.get("cryptocurrency") or request.get("token_name") or request.get("symbol")
            resolved = resolve_request_token(request, runtime.api_key) if call.resolve_token else None

            if call.require_token and not (request.get("token_id") or request.get("symbol")):
                raise TokenMetricsValidationError(
                    f"Could not identify a token in the request for {call.label}. "
                    "Please name a cryptocurrency (e.g., Bitcoin, ETH, Solana)."
                )
            missing = [key for key in call.required if request.get(key) is None]
            if missing:
                raise TokenMetricsValidationError(f"Missing required parameter(s) for {call.label}: {', '.join(missing)}")

            params = build_request_params(call, request)
            data, raw = fetch_endpoint_data(runtime, call.endpoint_key, params, call.method)
            if call.unwrap is not None:
                data = call.unwrap(raw)

            analysis = call.analyze(data, request, runtime.config.thresholds)
            response_text = call.render(data, analysis, request)

            filters = {k: v for k, v in params.items() if k not in ("limit", "page", "messages")}
            pagination = {k: params[k] for k in ("limit", "page") if k in params}
            content = {
                "success": True,
                "request_id": request_id,
                call.data_key: data,
                "analysis": analysis,
                "metadata": build_metadata(
                    endpoint,
                    requested_token=requested_token,
                    resolved_token=resolved,
                    filters=filters,
                    pagination=pagination,
                    data_points=len(data),
                ),
            }
            result = await success_result(response_text, content, callback)
        except Exception as e:
            logger.error(f"[{request_id}] Error in {call.label} action: {e}")
            result = await error_result(call.label, endpoint, e, call.causes, call.solutions, callback)

        result.execution_time_ms = (time.monotonic() - start) * 1000
        return result

    handler.__name__ = f"handle_{call.endpoint_key}"
    return handler


__all__ = [
    "Action",
    "ActionCategory",
    "ActionResult",
    "EndpointCall",
    "PluginRuntime",
    "apply_options",
    "build_metadata",
    "build_request_params",
    "conversation_example",
    "endpoint_handler",
    "error_result",
    "fetch_endpoint_data",
    "message_text",
    "success_result",
    "validate_api_key_present",
]
