import logging
from dataclasses import dataclass
from typing import List, Optional

from tradeview.core.http import request_json

logger = logging.getLogger(__name__)

SEARCH_PATH = "/api/market/symbols/search"


@dataclass(frozen=True)
class SearchResult:
    id: int
    symbol: str
    name: str = ""
    base_currency: str = ""
    quote_currency: str = ""
    category_name: str = ""

    @classmethod
    def from_dict(cls, raw: dict) -> "SearchResult":
        try:
            ident = int(raw.get("id") or 0)
        except (TypeError, ValueError):
            ident = 0
        return cls(
            id=ident,
            symbol=str(raw.get("symbol") or ""),
            name=str(raw.get("name") or ""),
            base_currency=str(raw.get("base_currency") or ""),
            quote_currency=str(raw.get("quote_currency") or ""),
            category_name=str(raw.get("category_name") or ""),
        )


def parse_search_response(body) -> List[SearchResult]:
    """Turn `{"symbols": [...]}` into results, skipping malformed entries."""
    if not isinstance(body, dict):
        return []
    results = []
    for item in body.get("symbols") or []:
        if not isinstance(item, dict) or not item.get("symbol"):
            logger.debug("Skipping malformed search entry: %r", item)
            continue
        results.append(SearchResult.from_dict(item))
    return results


async def search_symbols(query: str, base_url: Optional[str] = None, session=None) -> List[SearchResult]:
    """Looks up symbols matching `query`. Raises ApiError on failure."""
    body = await request_json(
        "GET", SEARCH_PATH, params={"q": query}, base_url=base_url, session=session
    )
    results = parse_search_response(body)
    logger.debug("Symbol search %r returned %s results", query, len(results))
    return results
