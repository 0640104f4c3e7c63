import logging
import threading
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence

from tradeview.core.http import request_json
from tradeview.core.utils import PLACEHOLDER, fmt_price, fmt_change, fmt_spread

logger = logging.getLogger(__name__)

QUOTES_PATH = "/api/market/quotes"


def _num(value):
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class QuoteSnapshot:
    symbol: str
    symbol_id: Optional[int] = None
    bid: Optional[float] = None
    ask: Optional[float] = None
    current_price: Optional[float] = None
    close_price: Optional[float] = None
    change: Optional[float] = None

    @classmethod
    def from_dict(cls, raw: dict) -> "QuoteSnapshot":
        """Accepts both the camelCase API keys and snake_case."""
        symbol_id = raw.get("symbolId", raw.get("symbol_id"))
        try:
            symbol_id = int(symbol_id) if symbol_id is not None else None
        except (TypeError, ValueError):
            symbol_id = None
        return cls(
            symbol=str(raw.get("symbol") or ""),
            symbol_id=symbol_id,
            bid=_num(raw.get("bid")),
            ask=_num(raw.get("ask")),
            current_price=_num(raw.get("currentPrice", raw.get("current_price"))),
            close_price=_num(raw.get("closePrice", raw.get("close_price"))),
            change=_num(raw.get("change")),
        )

    @property
    def last(self) -> Optional[float]:
        return self.current_price if self.current_price is not None else self.close_price


@dataclass(frozen=True)
class WatchlistRow:
    symbol: str
    symbol_id: Optional[int]
    bid: str
    ask: str
    last: str
    change: str
    spread: str
    is_positive: bool


def find_quote(quotes: Iterable[QuoteSnapshot], symbol: str) -> Optional[QuoteSnapshot]:
    for quote in quotes:
        if quote.symbol == symbol:
            return quote
    return None


def join_watchlist(symbols: Sequence[str], quotes: Iterable[QuoteSnapshot]) -> List[WatchlistRow]:
    """
    Pairs each watchlist symbol with its quote, in watchlist order.
    Symbols without a quote get placeholder fields.
    """
    quotes = list(quotes)
    rows = []
    for symbol in symbols:
        q = find_quote(quotes, symbol)
        if q is None:
            rows.append(
                WatchlistRow(
                    symbol=symbol,
                    symbol_id=None,
                    bid=PLACEHOLDER,
                    ask=PLACEHOLDER,
                    last=PLACEHOLDER,
                    change=PLACEHOLDER,
                    spread=PLACEHOLDER,
                    is_positive=True,
                )
            )
            continue
        rows.append(
            WatchlistRow(
                symbol=symbol,
                symbol_id=q.symbol_id,
                bid=fmt_price(q.bid),
                ask=fmt_price(q.ask),
                last=fmt_price(q.last),
                change=fmt_change(q.change),
                spread=fmt_spread(q.bid, q.ask),
                is_positive=(q.change or 0) >= 0,
            )
        )
    return rows


class MarketDataFeed:
    """
    Current quotes plus the symbol selected for the chart.

    `update` may be called from the event-loop thread; subscribers are called
    on whichever thread made the change and must marshal to the UI themselves.
    """

    def __init__(self, quotes: Optional[Iterable[QuoteSnapshot]] = None):
        self._lock = threading.Lock()
        self._quotes: List[QuoteSnapshot] = list(quotes or [])
        self._selected_symbol: Optional[str] = None
        self._callbacks: List[Callable[[str], None]] = []

    @property
    def quotes(self) -> List[QuoteSnapshot]:
        with self._lock:
            return list(self._quotes)

    @property
    def selected_symbol(self) -> Optional[str]:
        return self._selected_symbol

    def get(self, symbol: str) -> Optional[QuoteSnapshot]:
        with self._lock:
            return find_quote(self._quotes, symbol)

    def update(self, quotes: Iterable[QuoteSnapshot]):
        """Merge fresh quotes into the current list, keyed by symbol."""
        fresh = {q.symbol: q for q in quotes if q.symbol}
        with self._lock:
            merged = [fresh.pop(q.symbol, q) for q in self._quotes]
            merged.extend(fresh.values())
            self._quotes = merged
        self._emit("quotes")

    def set_selected_symbol(self, symbol: str):
        if symbol == self._selected_symbol:
            return
        self._selected_symbol = symbol
        logger.debug("Selected symbol: %s", symbol)
        self._emit("selected")

    def subscribe(self, callback: Callable[[str], None]) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe():
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def _emit(self, what: str):
        for callback in list(self._callbacks):
            try:
                callback(what)
            except Exception:
                logger.exception("Error in market data subscriber")


async def fetch_quotes(symbols: Sequence[str], base_url: Optional[str] = None, session=None) -> List[QuoteSnapshot]:
    """Polls the quotes endpoint for the given symbols."""
    if not symbols:
        return []
    body = await request_json(
        "GET",
        QUOTES_PATH,
        params={"symbols": ",".join(symbols)},
        base_url=base_url,
        session=session,
    )
    if not isinstance(body, dict):
        return []
    return [QuoteSnapshot.from_dict(q) for q in body.get("quotes") or [] if isinstance(q, dict) and q.get("symbol")]
