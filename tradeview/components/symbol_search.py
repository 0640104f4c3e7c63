"""Debounced symbol search state for the watchlist panel.

The controller holds no widgets. It needs a `scheduler` with Tk-style
`after(ms, func)` / `after_cancel(id)` (any widget will do) and a background
runner `async_run_bg(coro, callback=..., errback=...)` that calls back on the
UI thread.

Each request is tagged with a generation number; only the response for the
most recently issued request is applied, whatever order responses arrive in.
"""
import logging
from functools import partial
from typing import Callable, List, Optional

from tradeview.core import config
from tradeview.components.notifications import Notification
from tradeview.modules.data.symbols import SearchResult, search_symbols

logger = logging.getLogger(__name__)

HIDDEN = "hidden"
SEARCHING = "searching"
RESULTS = "results"
EMPTY = "empty"


class SymbolSearchController:
    def __init__(
        self,
        scheduler,
        async_run_bg: Callable,
        store,
        search_func: Callable = search_symbols,
        on_change: Optional[Callable[[], None]] = None,
        notify: Optional[Callable[[Notification], None]] = None,
        debounce_ms: Optional[int] = None,
    ):
        self.scheduler = scheduler
        self.async_run_bg = async_run_bg
        self.store = store
        self.search_func = search_func
        self.on_change = on_change
        self.notify = notify
        self.debounce_ms = config.SEARCH_DEBOUNCE_MS if debounce_ms is None else debounce_ms

        self.query = ""
        self.results: List[SearchResult] = []
        self.show_results = False
        self.is_searching = False

        self._after_id = None
        self._generation = 0
        self._disposed = False

    @property
    def view_state(self) -> str:
        """What the results dropdown should show."""
        if self.is_searching:
            return SEARCHING
        if not self.show_results or not self.query:
            return HIDDEN
        return RESULTS if self.results else EMPTY

    def set_query(self, text: str):
        """Called on every keystroke; restarts the debounce timer."""
        if self._disposed:
            return
        text = text or ""
        self.query = text
        self._cancel_timer()
        # a new query supersedes any response still in flight
        self._generation += 1
        if not text.strip():
            self.results = []
            self.show_results = False
            self.is_searching = False
            self._changed()
            return
        self._after_id = self.scheduler.after(self.debounce_ms, self._fire)
        self._changed()

    def clear(self):
        self.set_query("")

    def dismiss(self):
        """Hide the dropdown but keep the typed query."""
        if self.show_results:
            self.show_results = False
            self._changed()

    def select(self, result: SearchResult):
        """Add the chosen result to the watchlist and reset the search box."""
        try:
            self.store.add(result.symbol)
        finally:
            self.set_query("")

    def dispose(self):
        self._cancel_timer()
        self._disposed = True

    def _fire(self):
        self._after_id = None
        if self._disposed:
            return
        query = self.query
        if not query.strip():
            return
        self._generation += 1
        token = self._generation
        self.is_searching = True
        self._changed()
        logger.debug("Searching symbols for %r (request %s)", query, token)
        coro = self.search_func(query)
        try:
            self.async_run_bg(
                coro,
                callback=partial(self._on_results, token),
                errback=partial(self._on_error, token),
            )
        except Exception:
            coro.close()
            self.is_searching = False
            self._changed()
            raise

    def _is_stale(self, token: int) -> bool:
        return self._disposed or token != self._generation

    def _on_results(self, token: int, results):
        if self._is_stale(token):
            logger.debug("Dropping stale search response %s", token)
            return
        self.results = list(results or [])
        self.show_results = True
        self.is_searching = False
        self._changed()

    def _on_error(self, token: int, exc: BaseException):
        if self._is_stale(token):
            logger.debug("Dropping stale search failure %s: %s", token, exc)
            return
        logger.warning("Symbol search failed: %s", exc)
        self.results = []
        self.show_results = False
        self.is_searching = False
        self._changed()
        if self.notify:
            self.notify(Notification("Search failed", "Unable to search symbols", destructive=True))

    def _cancel_timer(self):
        if self._after_id is not None:
            try:
                self.scheduler.after_cancel(self._after_id)
            except Exception:
                # Ignore cancellation errors
                pass
            self._after_id = None

    def _changed(self):
        if self.on_change:
            self.on_change()
