"""
token_resolver.py — Resolve user-supplied token names/symbols to TokenMetrics tokens.

Resolution order (resolve_token_smart):
  1. /v2/tokens?token_name=<input>   — exact name match preferred, else first hit
  2. /v2/tokens?symbol=<input>       — first hit
  3. upper/lower-case variations on both token_name and symbol
  4. broad listing with partial name/symbol match
Static maps below are only a fallback when the API search finds nothing.
"""

import logging
import re
from typing import Any, Optional

from config import (
    RESOLVER_BROAD_LIMIT,
    RESOLVER_SEARCH_LIMIT,
    RESOLVER_VARIATION_LIMIT,
    TOKENMETRICS_ENDPOINTS,
)
from tokenmetrics_provider import (
    InvalidAPIKeyError,
    TokenMetricsError,
    call_tokenmetrics_api,
    extract_data,
)

logger = logging.getLogger(__name__)


# ─── Static Maps ─────────────────────────────────────────────────────────────

SYMBOL_TO_NAME: dict[str, str] = {
    "BTC": "Bitcoin",
    "ETH": "Ethereum",
    "SOL": "Solana",
    "ADA": "Cardano",
    "MATIC": "Polygon",
    "DOT": "Polkadot",
    "LINK": "Chainlink",
    "UNI": "Uniswap",
    "AVAX": "Avalanche",
    "LTC": "Litecoin",
    "DOGE": "Dogecoin",
    "XRP": "XRP",
    "BNB": "BNB",
    "USDT": "Tether",
    "USDC": "USD Coin",
    "ATOM": "Cosmos",
    "NEAR": "NEAR Protocol",
    "FTM": "Fantom",
    "ALGO": "Algorand",
    "VET": "VeChain",
    "ICP": "Internet Computer",
    "FLOW": "Flow",
    "SAND": "The Sandbox",
    "MANA": "Decentraland",
    "CRO": "Cronos",
    "APE": "ApeCoin",
    "SHIB": "Shiba Inu",
    "PEPE": "Pepe",
    "WIF": "dogwifhat",
    "BONK": "Bonk",
}

# Known TokenMetrics TOKEN_IDs, keyed by upper-case symbol and name
WELL_KNOWN_TOKEN_IDS: dict[str, int] = {
    "BTC": 3375, "BITCOIN": 3375,
    "ETH": 3306, "ETHEREUM": 3306,
    "SOL": 3408, "SOLANA": 3408,
    "ADA": 3321, "CARDANO": 3321,
    "MATIC": 3390, "POLYGON": 3390,
    "DOT": 3394, "POLKADOT": 3394,
    "LINK": 3327, "CHAINLINK": 3327,
    "UNI": 3424, "UNISWAP": 3424,
    "AVAX": 3315, "AVALANCHE": 3315,
    "LTC": 3373, "LITECOIN": 3373,
    "DOGE": 3340, "DOGECOIN": 3340,
    "XRP": 3430, "RIPPLE": 3430,
    "BNB": 3318, "BINANCE COIN": 3318,
    "USDT": 3420, "TETHER": 3420,
    "USDC": 3423, "USD COIN": 3423,
    "ATOM": 3333, "COSMOS": 3333,
    "NEAR": 3385, "NEAR PROTOCOL": 3385,
    "FTM": 3348, "FANTOM": 3348,
    "ALGO": 3309, "ALGORAND": 3309,
    "VET": 3427, "VECHAIN": 3427,
    "ICP": 3364, "INTERNET COMPUTER": 3364,
    "FLOW": 3351,
    "SAND": 3412, "THE SANDBOX": 3412,
    "MANA": 3336, "DECENTRALAND": 3336,
    "CRO": 3334, "CRONOS": 3334,
    "APE": 3312, "APECOIN": 3312,
    "SHIB": 3409, "SHIBA INU": 3409,
}

NAME_TO_SYMBOL: dict[str, str] = {name.upper(): symbol for symbol, name in SYMBOL_TO_NAME.items()}
_ID_TO_SYMBOL: dict[int, str] = {WELL_KNOWN_TOKEN_IDS[s]: s for s in SYMBOL_TO_NAME if s in WELL_KNOWN_TOKEN_IDS}

# Symbols that are also everyday words only count when written in upper case
_WORD_LIKE_SYMBOLS = frozenset({"UNI", "APE", "FLOW", "NEAR", "SAND", "MANA", "DOT", "LINK", "VET", "WIF", "CRO", "OP", "TON", "DAI", "BAL", "COMP", "ENJ", "TRUMP", "DEGEN"})

KNOWN_SYMBOLS = frozenset(SYMBOL_TO_NAME) | frozenset({
    "BCH", "ETC", "XLM", "TRX", "FIL", "THETA", "EOS", "BUSD", "DAI", "WBTC",
    "STETH", "LRC", "ENJ", "COMP", "MKR", "AAVE", "SNX", "UMA", "BAL", "YFI",
    "SUSHI", "CRV", "ARB", "OP", "SUI", "APT", "TON", "FLOKI", "DEGEN", "TRUMP",
})


def map_symbol_to_name(value: str) -> str:
    """BTC → Bitcoin; unknown input is returned unchanged."""
    return SYMBOL_TO_NAME.get(value.strip().upper(), value)


def get_well_known_token_id(value: str) -> Optional[int]:
    """Static TOKEN_ID lookup by symbol or name (case-insensitive)."""
    return WELL_KNOWN_TOKEN_IDS.get(value.strip().upper())


def extract_token_identifier(content: dict) -> dict[str, Any]:
    """
    Pull token_id / symbol out of message content without calling the API.

    Accepts a direct positive token_id, a known symbol, or scans the text for
    known symbols (whole words) and coin names. Names win over symbols since
    they also carry a TOKEN_ID.
    """
    result: dict[str, Any] = {}

    token_id = content.get("token_id")
    if isinstance(token_id, int) and not isinstance(token_id, bool) and token_id > 0:
        result["token_id"] = token_id

    symbol = content.get("symbol")
    if isinstance(symbol, str):
        symbol = symbol.strip().upper()
        if re.fullmatch(r"[A-Z0-9]{2,10}", symbol) and symbol in KNOWN_SYMBOLS:
            result["symbol"] = symbol

    text = content.get("text")
    if isinstance(text, str) and text:
        for candidate in re.findall(r"\b[A-Za-z0-9]{2,10}\b", text):
            upper = candidate.upper()
            if upper in KNOWN_SYMBOLS and (candidate.isupper() or upper not in _WORD_LIKE_SYMBOLS):
                result.setdefault("symbol", candidate.upper())
                break

        lowered = text.lower()
        for name_upper, sym in NAME_TO_SYMBOL.items():
            if sym == name_upper:
                continue
            if re.search(rf"\b{re.escape(name_upper.lower())}\b", lowered):
                result["symbol"] = sym
                known_id = WELL_KNOWN_TOKEN_IDS.get(sym)
                if known_id and "token_id" not in result:
                    result["token_id"] = known_id
                break

    return result


# ─── API Resolution ──────────────────────────────────────────────────────────

def _search_tokens(params: dict, api_key: Optional[str]) -> list:
    """One /v2/tokens search; failures other than a bad key count as no result."""
    try:
        response = call_tokenmetrics_api(TOKENMETRICS_ENDPOINTS["tokens"], params, api_key=api_key)
    except InvalidAPIKeyError:
        raise
    except TokenMetricsError as e:
        logger.warning(f"Token search failed for {params}: {e}")
        return []
    return extract_data(response)


def resolve_token_smart(value: str, api_key: Optional[str] = None) -> Optional[dict]:
    """Resolve a name or symbol to a TokenMetrics token record, or None."""
    query = (value or "").strip()
    if not query:
        return None

    logger.info(f"Resolving token: '{query}'")

    # Step 1: by name
    tokens = _search_tokens({"token_name": query, "limit": RESOLVER_SEARCH_LIMIT}, api_key)
    if tokens:
        exact = next(
            (t for t in tokens if str(t.get("TOKEN_NAME", "")).lower() == query.lower()),
            None,
        )
        found = exact or tokens[0]
        logger.info(f"Found token by name: {found.get('TOKEN_NAME')} ({found.get('TOKEN_SYMBOL')}) - ID {found.get('TOKEN_ID')}")
        return found

    # Step 2: by symbol
    tokens = _search_tokens({"symbol": query, "limit": RESOLVER_SEARCH_LIMIT}, api_key)
    if tokens:
        found = tokens[0]
        logger.info(f"Found token by symbol: {found.get('TOKEN_NAME')} ({found.get('TOKEN_SYMBOL')}) - ID {found.get('TOKEN_ID')}")
        return found

    # Step 3: case variations
    for variation in (query.upper(), query.lower()):
        if variation == query:
            continue
        for search_type in ("token_name", "symbol"):
            tokens = _search_tokens({search_type: variation, "limit": RESOLVER_VARIATION_LIMIT}, api_key)
            if tokens:
                logger.info(f"Found token via {search_type} variation '{variation}'")
                return tokens[0]

    # Step 4: broad listing with partial match
    tokens = _search_tokens({"limit": RESOLVER_BROAD_LIMIT, "page": 1}, api_key)
    needle = query.lower()
    for token in tokens:
        name = str(token.get("TOKEN_NAME", "")).lower()
        symbol = str(token.get("TOKEN_SYMBOL", "")).lower()
        if needle in name or needle in symbol or (name and name in needle):
            logger.info(f"Found token by partial match: {token.get('TOKEN_NAME')}")
            return token

    logger.warning(f"No token found for '{query}'")
    return None


def resolve_request_token(request: dict, api_key: Optional[str] = None) -> Optional[dict]:
    """
    Fill token_id / symbol / token_name on an extracted request, in place.

    An explicit token_id is trusted as-is. Otherwise the first of
    cryptocurrency, token_name, symbol is resolved through the API, with the
    static maps as a last resort. Returns the resolved token record (or a
    synthetic one built from the static maps), else None.
    """
    if request.get("token_id"):
        return None

    query = request.get("cryptocurrency") or request.get("token_name") or request.get("symbol")
    if not query:
        return None

    resolved = resolve_token_smart(query, api_key)
    if resolved:
        request["token_id"] = resolved.get("TOKEN_ID")
        request["symbol"] = resolved.get("TOKEN_SYMBOL") or request.get("symbol")
        request["token_name"] = resolved.get("TOKEN_NAME") or request.get("token_name")
        return resolved

    known_id = get_well_known_token_id(query)
    if known_id:
        symbol = _ID_TO_SYMBOL.get(known_id, query.strip().upper())
        request["token_id"] = known_id
        request["symbol"] = symbol
        request["token_name"] = map_symbol_to_name(symbol)
        logger.info(f"Using well-known TOKEN_ID {known_id} for '{query}'")
        return {"TOKEN_ID": known_id, "TOKEN_SYMBOL": symbol, "TOKEN_NAME": request["token_name"]}

    return None
