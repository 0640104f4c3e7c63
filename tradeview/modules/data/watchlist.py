import json
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from tradeview.core import config
from tradeview.core.storage import LocalStorage

logger = logging.getLogger(__name__)

DEFAULT_SYMBOLS = ["EURUSD", "USDJPY", "GBPUSD", "XAUUSD", "BTCUSD"]
WATCHLIST_STORAGE_KEY = "tradeview_watchlist"

ADDED = "added"
DUPLICATE = "duplicate"
REMOVED = "removed"


@dataclass(frozen=True)
class WatchlistChange:
    kind: str
    symbol: str
    symbols: Tuple[str, ...]


class WatchlistStore:
    """
    Ordered, duplicate-free list of symbols mirrored to local storage.

    Every mutation writes the full list to storage before the in-memory list
    is updated, so memory and storage never disagree once a call returns.
    Subscribers are called synchronously with a `WatchlistChange`.
    """

    _instance = None

    def __init__(self, storage, key: str = WATCHLIST_STORAGE_KEY, defaults: Optional[List[str]] = None):
        self._storage = storage
        self._key = key
        self._defaults = list(DEFAULT_SYMBOLS if defaults is None else defaults)
        self._subscribers: List[Callable[[WatchlistChange], None]] = []
        self._symbols: List[str] = self.load()

    @classmethod
    def instance(cls):
        """Returns the process-wide store, creating it if necessary."""
        if cls._instance is None:
            cls._instance = cls(LocalStorage(config.STORAGE_PATH))
        return cls._instance

    @classmethod
    def reset_instance(cls):
        cls._instance = None

    def load(self) -> List[str]:
        """Read the stored list. Absent or malformed data gives the defaults."""
        try:
            raw = self._storage.get_item(self._key)
        except OSError:
            logger.warning("Could not read watchlist from storage, using defaults", exc_info=True)
            return list(self._defaults)
        if raw is None:
            return list(self._defaults)
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Stored watchlist is not valid JSON, using defaults")
            return list(self._defaults)
        if not isinstance(data, list) or not all(isinstance(s, str) for s in data):
            logger.warning("Stored watchlist has an unexpected shape, using defaults")
            return list(self._defaults)

        symbols = []
        for s in data:
            if s not in symbols:
                symbols.append(s)
        return symbols

    @property
    def symbols(self) -> Tuple[str, ...]:
        return tuple(self._symbols)

    def __contains__(self, symbol):
        return symbol in self._symbols

    def __iter__(self):
        return iter(list(self._symbols))

    def __len__(self):
        return len(self._symbols)

    def add(self, symbol: str) -> bool:
        """Append `symbol` unless present. Returns True when it was added."""
        if not symbol:
            raise ValueError("symbol must be a non-empty string")
        if symbol in self._symbols:
            self._notify(DUPLICATE, symbol)
            return False
        self._commit(self._symbols + [symbol])
        logger.info("Watchlist: added %s", symbol)
        self._notify(ADDED, symbol)
        return True

    def remove(self, symbol: str) -> bool:
        """Drop every occurrence of `symbol`. Returns True if anything was removed."""
        remaining = [s for s in self._symbols if s != symbol]
        removed = len(remaining) != len(self._symbols)
        self._commit(remaining)
        if removed:
            logger.info("Watchlist: removed %s", symbol)
        self._notify(REMOVED, symbol)
        return removed

    def subscribe(self, callback: Callable[[WatchlistChange], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _commit(self, symbols: List[str]):
        self._storage.set_item(self._key, json.dumps(symbols))
        self._symbols = symbols

    def _notify(self, kind: str, symbol: str):
        change = WatchlistChange(kind=kind, symbol=symbol, symbols=self.symbols)
        for callback in list(self._subscribers):
            try:
                callback(change)
            except Exception:
                logger.exception("Error in watchlist subscriber")
