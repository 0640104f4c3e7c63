import ttkbootstrap as ttk
from ttkbootstrap.constants import TOP, X, LEFT, RIGHT, W, BOTH, CENTER
import asyncio
import concurrent.futures
import threading
import os
import logging
from logging import FileHandler

from tradeview.core import config
from tradeview.core.http import ApiError
from tradeview.core.utils import fmt_price, fmt_change
from tradeview.components.toast import ToastNotifier
from tradeview.components.watchlist_panel import WatchlistPanel
from tradeview.modules.data.market import MarketDataFeed, fetch_quotes
from tradeview.modules.data.watchlist import WatchlistStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


def setup_logging(level: str = config.LOG_LEVEL, log_dir: str = config.LOG_DIR) -> str:
    """Console logging plus a per-session log file (truncated at startup)."""
    logging.basicConfig(level=level, format=LOG_FORMAT)

    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "tradeview.log")

    root_logger = logging.getLogger()
    for h in root_logger.handlers:
        if getattr(h, "baseFilename", None) == log_file:
            return log_file

    file_handler = FileHandler(log_file, mode="w", encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(file_handler)
    return log_file


class TradeViewApp(ttk.Window):
    def __init__(self):
        super().__init__(themename=config.THEME)
        self.title("TradeView")
        self.geometry("1280x800")

        # 1. Initialize Async Loop
        self.loop = asyncio.new_event_loop()
        self.loop_thread = threading.Thread(target=self._run_event_loop, daemon=True)
        self.loop_thread.start()

        # 2. Shared state
        self.store = WatchlistStore.instance()
        self.feed = MarketDataFeed()
        self.notify = ToastNotifier()
        self._poll_id = None

        # 3. Build UI
        self.create_layout()
        self.feed.subscribe(self.on_feed_change)

        # 4. First quotes, then polling
        self.prime_quotes()
        if config.QUOTE_REFRESH_MS > 0:
            self._poll_id = self.after(config.QUOTE_REFRESH_MS, self.poll_quotes)

    def _run_event_loop(self):
        """Run the asyncio event loop in a separate thread"""
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    def async_run(self, coro, timeout=None):
        """Helper to run async coroutines from sync code"""
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        try:
            return future.result(timeout)
        except concurrent.futures.TimeoutError:
            future.cancel()
            raise

    def async_run_bg(self, coro, callback=None, errback=None):
        """Run async coroutine in background without blocking UI.

        `callback(result)` or `errback(exc)` is scheduled on the Tk thread.
        Without an errback, failures are logged and reported as `callback(None)`.
        """
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)

        def on_done(fut):
            try:
                result = fut.result()
            except Exception as e:
                if callable(errback):
                    logger.warning("Background task failed: %s", e)
                    self.after(0, errback, e)
                else:
                    logger.exception("Background task error: %s", e)
                    if callable(callback):
                        self.after(0, callback, None)
                return
            if callable(callback):
                self.after(0, callback, result)

        future.add_done_callback(on_done)

    def create_layout(self):
        # Top HUD
        hud_frame = ttk.Frame(self, padding=5, bootstyle="secondary")
        hud_frame.pack(side=TOP, fill=X, padx=5, pady=5)

        self.symbol_label = ttk.Label(hud_frame, text="No symbol selected", bootstyle="inverse-secondary",
                                      font=("Segoe UI", 11, "bold"))
        self.symbol_label.pack(side=LEFT, anchor=W, padx=10)

        self.toggle_btn = ttk.Button(hud_frame, text="Watchlist", bootstyle="light-outline",
                                     command=self.toggle_watchlist)
        self.toggle_btn.pack(side=RIGHT, padx=5)

        # Chart area + watchlist
        body = ttk.Frame(self)
        body.pack(fill=BOTH, expand=True, padx=5, pady=5)

        self.chart_frame = ttk.Frame(body, bootstyle="light")
        self.chart_frame.pack(side=LEFT, fill=BOTH, expand=True)
        self.quote_label = ttk.Label(self.chart_frame, text="", font=("Segoe UI", 16), anchor=CENTER)
        self.quote_label.pack(expand=True)

        self.watchlist = WatchlistPanel(
            body,
            self.store,
            self.feed,
            self.async_run_bg,
            self.notify,
            on_close=self.close_watchlist,
            inline=config.PANEL_MODE == "inline",
        )

    def toggle_watchlist(self):
        self.watchlist.toggle()

    def close_watchlist(self):
        self.watchlist.close()

    def on_feed_change(self, what):
        self.after(0, self.update_chart_header)

    def update_chart_header(self):
        symbol = self.feed.selected_symbol
        if not symbol:
            return
        self.symbol_label.configure(text=symbol)
        quote = self.feed.get(symbol)
        if quote is None:
            self.quote_label.configure(text=f"{symbol}\nwaiting for quotes")
            return
        self.quote_label.configure(text=f"{symbol}  {fmt_price(quote.last)}  ({fmt_change(quote.change)})")

    def prime_quotes(self):
        """Blocking first fetch so the watchlist opens with prices."""
        symbols = self.store.symbols
        if not symbols:
            return
        try:
            quotes = self.async_run(fetch_quotes(symbols), timeout=config.HTTP_TIMEOUT)
        except (ApiError, concurrent.futures.TimeoutError) as e:
            logger.warning("Initial quote fetch failed: %s", e)
            return
        if quotes:
            self.feed.update(quotes)

    def poll_quotes(self):
        """Refresh quotes for the watchlist symbols (non-blocking)."""
        self._poll_id = None
        if config.QUOTE_REFRESH_MS <= 0:
            return

        def on_quotes(quotes):
            if quotes:
                self.feed.update(quotes)
            self._poll_id = self.after(config.QUOTE_REFRESH_MS, self.poll_quotes)

        def on_failed(exc):
            logger.debug("Quote refresh failed: %s", exc)
            self._poll_id = self.after(config.QUOTE_REFRESH_MS, self.poll_quotes)

        self.async_run_bg(fetch_quotes(self.store.symbols), callback=on_quotes, errback=on_failed)

    def on_closing(self):
        """Cleanup when window closes"""
        if self._poll_id is not None:
            self.after_cancel(self._poll_id)
        self.watchlist.destroy()
        self.loop.call_soon_threadsafe(self.loop.stop)
        self.destroy()


def main():
    log_file = setup_logging()
    logger.info("Starting TradeView (api=%s, log=%s)", config.API_BASE_URL, log_file)
    app = TradeViewApp()
    app.protocol("WM_DELETE_WINDOW", app.on_closing)
    app.mainloop()


if __name__ == "__main__":
    main()
