"""
formatting.py — Number, date and Markdown formatting for action responses.

Implements:
  - Currency / percentage / number formatting with safe fallbacks
  - Request IDs for extraction cache busting
  - Small Markdown builders shared by every action
"""

import math
import random
import string
import time
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

_BASE36 = string.digits + string.ascii_lowercase


def safe_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """Coerce API values (numbers, numeric strings, None) to float."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def format_currency(value: Any) -> str:
    """$1.23T / $4.56B / $7.89M / $1.23K / $12.34 / $0.000123; invalid or <= 0 → $0.00."""
    number = safe_float(value, None)
    if number is None or number <= 0:
        return "$0.00"
    if number >= 1e12:
        return f"${number / 1e12:.2f}T"
    if number >= 1e9:
        return f"${number / 1e9:.2f}B"
    if number >= 1e6:
        return f"${number / 1e6:.2f}M"
    if number >= 1e3:
        return f"${number / 1e3:.2f}K"
    if number >= 1:
        return f"${number:.2f}"
    return f"${number:.6f}"


def format_percentage(value: Any) -> str:
    """Signed percentage with two decimals; invalid → 0.00%."""
    number = safe_float(value, None)
    if number is None:
        return "0.00%"
    return f"{number:+.2f}%"


def format_number(value: Any, decimals: int = 2) -> str:
    number = safe_float(value, None)
    if number is None:
        return "N/A"
    if number.is_integer():
        return f"{int(number):,}"
    return f"{number:,.{decimals}f}"


def format_date(timestamp: Any) -> str:
    """ISO date (YYYY-MM-DD) for timestamps the API returns; unparsable input is echoed."""
    if isinstance(timestamp, datetime):
        return timestamp.date().isoformat()
    if isinstance(timestamp, (int, float)) and not isinstance(timestamp, bool):
        seconds = timestamp / 1000 if timestamp > 1e11 else timestamp
        return datetime.fromtimestamp(seconds, tz=timezone.utc).date().isoformat()
    text = str(timestamp)
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return text


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse ISO timestamps from API rows; None when missing or malformed."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed.replace(tzinfo=None)


def generate_request_id() -> str:
    """req_<epoch ms>_<9 random base36 chars>"""
    suffix = "".join(random.choice(_BASE36) for _ in range(9))
    return f"req_{int(time.time() * 1000)}_{suffix}"


# ─── Markdown ────────────────────────────────────────────────────────────────

def bullet_lines(items: Iterable[Any], bullet: str = "•") -> list[str]:
    return [f"{bullet} {item}" for item in items if item]


def section(title: str, lines: Iterable[str]) -> str:
    """Bold title followed by its lines; empty string when there is nothing to show."""
    body = [line for line in lines if line]
    if not body:
        return ""
    return "\n".join([f"**{title}**:"] + body)


def join_sections(*parts: str) -> str:
    return "\n\n".join(part for part in parts if part)


def pick(row: dict, *keys: str, default: Any = None) -> Any:
    """First non-empty value among `keys`; the API renames fields between versions."""
    for key in keys:
        value = row.get(key)
        if value is not None and value != "":
            return value
    return default


def token_label(row: dict) -> str:
    name = pick(row, "TOKEN_NAME", "NAME", default="Unknown")
    symbol = pick(row, "TOKEN_SYMBOL", "SYMBOL")
    return f"{name} ({symbol})" if symbol else str(name)
