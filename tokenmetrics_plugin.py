#!/usr/bin/env python3
"""
tokenmetrics_plugin.py — TokenMetrics plugin and agent entry point

This module ties the action groups together into a plugin a host agent
runtime can load, and provides a small agent for direct use:

  - ActionRegistry: lookup by action name or simile, grouped by category
  - Plugin / create_tokenmetrics_plugin(): the object handed to the host
  - TokenMetricsAgent: validation, timing, execution history, keyword routing
  - CLI: interactive mode, health check, action listing, one-shot queries
"""

import asyncio
import json
import logging
import re
import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

import config
from action_base import Action, ActionCategory, ActionResult, PluginRuntime
from agent_config import PluginConfiguration, load_config_from_env
from grades_actions import GRADES_ACTIONS
from indices_actions import INDICES_ACTIONS
from llm_extraction import get_extractor
from market_actions import MARKET_ACTIONS
from ohlcv_actions import OHLCV_ACTIONS
from research_actions import RESEARCH_ACTIONS
from signals_actions import SIGNALS_ACTIONS
from tokenmetrics_provider import health_check

logger = logging.getLogger(__name__)

ALL_ACTIONS: list[Action] = (
    MARKET_ACTIONS
    + OHLCV_ACTIONS
    + GRADES_ACTIONS
    + SIGNALS_ACTIONS
    + RESEARCH_ACTIONS
    + INDICES_ACTIONS
)


# ═══════════════════════════════════════════════════════════════════════════════
# ACTION REGISTRY
# ═══════════════════════════════════════════════════════════════════════════════

class ActionRegistry:
    """Registry of the actions exposed by the plugin."""

    def __init__(self, actions: Optional[list[Action]] = None):
        self._actions: dict[str, Action] = {}
        self._similes: dict[str, str] = {}
        for action in actions or []:
            self.register(action)

    def register(self, action: Action) -> None:
        """Register an action under its name and similes."""
        self._actions[action.name] = action
        for simile in action.similes:
            self._similes.setdefault(simile.upper(), action.name)
        logger.debug(f"Registered action: {action.name} ({action.category.value})")

    def get(self, name: str) -> Optional[Action]:
        """Get an action by name or simile (case-insensitive)."""
        key = (name or "").strip().upper()
        if key in self._actions:
            return self._actions[key]
        canonical = self._similes.get(key)
        return self._actions.get(canonical) if canonical else None

    def list_actions(self, category: Optional[ActionCategory] = None) -> list[Action]:
        actions = list(self._actions.values())
        if category:
            actions = [a for a in actions if a.category == category]
        return actions

    def get_action_descriptions(self) -> str:
        """Formatted descriptions of all actions for LLM context."""
        lines = ["Available Actions:"]
        for cat in ActionCategory:
            cat_actions = self.list_actions(cat)
            if cat_actions:
                lines.append(f"\n## {cat.value.replace('_', ' ').title()}")
                for action in cat_actions:
                    lines.append(f"  - {action.name} ({action.endpoint}): {action.description}")
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self._actions)


# ═══════════════════════════════════════════════════════════════════════════════
# PLUGIN
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class Plugin:
    """What a host agent runtime loads: metadata, actions and configuration."""
    name: str
    description: str
    actions: list[Action] = field(default_factory=list)
    config: dict[str, Any] = field(default_factory=dict)


def create_tokenmetrics_plugin() -> Plugin:
    return Plugin(
        name="tokenmetrics",
        description=(
            "TokenMetrics cryptocurrency data: prices, grades, trading signals, "
            "OHLCV, research reports, sentiment, correlations and indices"
        ),
        actions=list(ALL_ACTIONS),
        config={
            "TOKENMETRICS_API_KEY": config.TOKENMETRICS_API_KEY or None,
            "TOKENMETRICS_BASE_URL": config.TOKENMETRICS_BASE_URL,
            "LLM_PROVIDER": config.LLM_PROVIDER,
        },
    )


tokenmetrics_plugin = create_tokenmetrics_plugin()


# ═══════════════════════════════════════════════════════════════════════════════
# QUERY ROUTING
# ═══════════════════════════════════════════════════════════════════════════════

# Keywords are regex fragments matched on word boundaries. First match wins,
# so narrower phrases come before the words they contain.
QUERY_ROUTES: list[tuple[tuple[str, ...], str]] = [
    (("tmai", "ask tokenmetrics", "tokenmetrics ai"), "GET_TMAI"),
    (("holdings", "composition", "what does index"), "GET_INDICES_HOLDINGS"),
    ((r"index (?:\w+ )?(?:performance|performed|history|returns|roi)",), "GET_INDICES_PERFORMANCE"),
    (("indices", "index"), "GET_INDICES"),
    (("grade history", "historical grades?", r"grades? (?:has )?changed", "grade trend", "grades? over time"), "GET_TM_GRADE_HISTORY"),
    (("technology grade", "tech grade", "technology score", "technology"), "GET_TECHNOLOGY_GRADE"),
    (("tm grade", "token metrics grade", "overall grade"), "GET_TM_GRADE"),
    (("trader grades?", "trading grades?"), "GET_TRADER_GRADES"),
    (("investor grades?", "long-term grades?", "long term grades?"), "GET_INVESTOR_GRADES"),
    (("hourly signals?", "hourly trading signals?"), "GET_HOURLY_TRADING_SIGNALS"),
    (("signals?", "should i buy", "should i sell", "entry"), "GET_TRADING_SIGNALS"),
    (("resistance", "support levels?", "key levels"), "GET_RESISTANCE_SUPPORT"),
    (("moonshots?", "100x", "gems?"), "GET_MOONSHOT_TOKENS"),
    (("hourly ohlcv", "hourly candles?", "hourly charts?", "intraday"), "GET_HOURLY_OHLCV"),
    (("ohlcv", "candles?", "daily charts?", "technicals?", "technical analysis"), "GET_DAILY_OHLCV"),
    (("quantmetrics", "sharpe", "sortino", "drawdowns?", "risk metrics"), "GET_QUANTMETRICS"),
    (("correlations?", "correlated", "diversify", "diversified", "diversification"), "GET_CORRELATION"),
    (("scenarios?", "predictions?", "forecasts?", "price targets?"), "GET_SCENARIO_ANALYSIS"),
    (("sentiment", "mood", "fear", "greed"), "GET_SENTIMENT"),
    (("reports?", "research"), "GET_AI_REPORTS"),
    (("investors", "funds", "venture", "backers"), "GET_CRYPTO_INVESTORS"),
    (("market metrics", "market overview", r"overall (?:crypto )?market", "bullish"), "GET_MARKET_METRICS"),
    (("top", "largest", "biggest", "market cap"), "GET_TOP_MARKET_CAP"),
    (("price", "worth", "cost", "trading at", "how much"), "GET_PRICE"),
    (("tokens", "token list", "token id", "tokenmetrics id", "id for", "supported"), "GET_TOKENS"),
]


def route_query(query: str) -> Optional[str]:
    """Keyword routing from free text to an action name."""
    query_lower = query.lower()
    for words, action_name in QUERY_ROUTES:
        if any(re.search(rf"\b(?:{word})\b", query_lower) for word in words):
            return action_name
    return None


# ═══════════════════════════════════════════════════════════════════════════════
# AGENT
# ═══════════════════════════════════════════════════════════════════════════════

class TokenMetricsAgent:
    """
    Runs plugin actions outside a host runtime.

    Every execution goes through validate → handler, is timed, and is
    appended to `execution_history`.
    """

    def __init__(
        self,
        plugin: Optional[Plugin] = None,
        configuration: Optional[PluginConfiguration] = None,
        runtime: Optional[PluginRuntime] = None,
    ):
        self.plugin = plugin or tokenmetrics_plugin
        self.registry = ActionRegistry(self.plugin.actions)
        if runtime is None:
            configuration = configuration or load_config_from_env()
            runtime = PluginRuntime(
                settings={k: v for k, v in self.plugin.config.items() if v},
                config=configuration,
                extractor=get_extractor(configuration.llm),
            )
        self.runtime = runtime
        self.execution_history: list[dict[str, Any]] = []
        logger.info(f"TokenMetrics agent initialized with {len(self.registry)} actions")

    async def execute_action(
        self,
        action_name: str,
        message: Any,
        callback: Optional[Callable] = None,
        options: Optional[dict] = None,
    ) -> ActionResult:
        """Validate and run a single action by name or simile."""
        action = self.registry.get(action_name)
        if not action:
            error = f"Action '{action_name}' not found"
            return ActionResult(success=False, text=f"❌ {error}", error=error)

        if not await action.validate(self.runtime, message):
            error = f"Action '{action.name}' requires TOKENMETRICS_API_KEY to be configured"
            return ActionResult(success=False, text=f"❌ {error}", error=error)

        start_time = datetime.now()
        try:
            result = await action.handler(self.runtime, message, None, options, callback)
        except Exception as e:
            logger.error(f"Action execution failed: {action.name} - {e}")
            result = ActionResult(success=False, text=f"❌ {e}", error=str(e))
        result.execution_time_ms = (datetime.now() - start_time).total_seconds() * 1000

        self.execution_history.append({
            "action": action.name,
            "message": message if isinstance(message, str) else str(message),
            "success": result.success,
            "timestamp": start_time.isoformat(),
            "execution_time_ms": result.execution_time_ms,
        })
        return result

    def route_query(self, query: str) -> Optional[str]:
        return route_query(query)

    async def handle_query(self, query: str) -> dict[str, Any]:
        """
        Handle a natural language query.
        Routes to an action by keyword, falling back to the TokenMetrics AI.
        """
        query_lower = query.lower().strip()

        if query_lower in ("actions", "help", "list"):
            return {"query": query, "result": self.registry.get_action_descriptions(), "action_used": "list_actions", "success": True}

        action_name = self.route_query(query)
        note = None
        if action_name is None:
            action_name = "GET_TMAI"
            note = "Query not matched to a specific action, forwarded to TokenMetrics AI"

        result = await self.execute_action(action_name, {"text": query})
        response = {
            "query": query,
            "action_used": action_name,
            "success": result.success,
            "result": result.text,
            "execution_time_ms": round(result.execution_time_ms, 1),
        }
        if note:
            response["note"] = note
        if result.error:
            response["error"] = result.error
        return response

    def get_system_prompt(self) -> str:
        """System prompt for an LLM that picks actions on the user's behalf."""
        return f"""You are a cryptocurrency research assistant backed by the TokenMetrics API.
Answer questions about tokens, prices, grades, trading signals and indices by choosing
the single action that best fits the user's request.

## Your Capabilities
{self.registry.get_action_descriptions()}

## Guidelines
1. Prefer the most specific action (e.g. GET_TM_GRADE_HISTORY over GET_TM_GRADE for trends)
2. Name the token exactly as the user wrote it; the plugin resolves symbols and names
3. Dates are YYYY-MM-DD
4. Grades and signals are analysis, not financial advice; say so when recommending trades
5. Use GET_TMAI for open-ended questions no other action covers

Current Time: {datetime.utcnow().strftime("%Y-%m-%d %H:%M UTC")}
"""


# ═══════════════════════════════════════════════════════════════════════════════
# CLI INTERFACE
# ═══════════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = config.LOG_LEVEL) -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=config.LOG_FORMAT)
    for noisy in ("urllib3", "httpx", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


async def interactive_mode():
    """Run the agent in interactive mode."""
    agent = TokenMetricsAgent()

    print("\n" + "="*60)
    print("TokenMetrics Agent - Interactive Mode")
    print("="*60)
    print("\nType 'help' for available actions, 'quit' to exit.\n")

    while True:
        try:
            query = input("TokenMetrics> ").strip()

            if not query:
                continue

            if query.lower() in ["quit", "exit", "q"]:
                print("Goodbye!")
                break

            result = await agent.handle_query(query)
            print(f"\n{result['result']}\n")
            if result.get("note"):
                print(f"({result['note']})\n")

        except KeyboardInterrupt:
            print("\nGoodbye!")
            break
        except Exception as e:
            print(f"Error: {e}")


def main():
    """Main entry point."""
    setup_logging()
    args = sys.argv[1:]

    if "--interactive" in args or "-i" in args:
        asyncio.run(interactive_mode())
    elif "--health" in args:
        status = health_check()
        configuration = load_config_from_env()
        status["config_issues"] = configuration.validate(config.TOKENMETRICS_API_KEY)
        status["configuration"] = configuration.to_dict()
        print(json.dumps(status, indent=2, default=str))
        sys.exit(0 if status["status"] == "ok" else 1)
    elif "--list" in args:
        print(ActionRegistry(tokenmetrics_plugin.actions).get_action_descriptions())
    elif args:
        async def single_query():
            agent = TokenMetricsAgent()
            result = await agent.handle_query(" ".join(args))
            print(result["result"])
            return result["success"]

        sys.exit(0 if asyncio.run(single_query()) else 1)
    else:
        print("Usage: tokenmetrics-agent [--interactive | --health | --list | <query>]")


if __name__ == "__main__":
    main()
