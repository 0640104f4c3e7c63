import tkinter as tk
from tkinter import Menu
import ttkbootstrap as ttk
from ttkbootstrap.constants import TOP, BOTTOM, X, LEFT, RIGHT, BOTH, VERTICAL, Y, W, E, CENTER
from typing import Callable, Optional
import logging

from tradeview.components.notifications import Notification
from tradeview.components.quick_order import QuickOrderController
from tradeview.components.symbol_search import SymbolSearchController, HIDDEN, SEARCHING, EMPTY
from tradeview.components.trade_dialog import TradeDialog
from tradeview.modules.data.market import join_watchlist
from tradeview.modules.data.symbols import search_symbols
from tradeview.modules.data.watchlist import ADDED, DUPLICATE, REMOVED
from tradeview.modules.trading.orders import OrderSide, open_position

logger = logging.getLogger(__name__)

INLINE_SHARE = 0.25
INLINE_MIN_WIDTH = 240
OVERLAY_SHARE = 0.28
SLIDE_MS = 300
SLIDE_STEPS = 12


def is_inside(widget, container) -> bool:
    """True if `widget` is `container` or one of its descendants.

    Tk path names are hierarchical (".!frame.!entry"), so containment is a
    path-prefix check. Works for widget objects and raw path strings.
    """
    if widget is None or container is None:
        return False
    path, root = str(widget), str(container)
    return path == root or path.startswith(root + ".")


def count_badge_text(count: int, inline: bool) -> str:
    return str(count) if inline else f"{count} pairs"


class WatchlistPanel(ttk.Frame):
    """Watchlist with symbol search, live quotes and Buy/Sell actions.

    Two presentation modes, fixed at construction:
    - inline: packed on the right of `parent`, a fixed share of its width.
      Buy/Sell open a TradeDialog.
    - overlay: placed over `parent` above a stippled backdrop and slides in
      from the right. Buy/Sell send quick market orders.

    `on_close` is called by the close button and, in overlay mode, by a
    backdrop click. The owner decides whether to call `close()`.
    """

    def __init__(self, parent, store, feed, async_run_bg: Callable,
                 notify: Callable[[Notification], None], on_close: Optional[Callable] = None,
                 inline: bool = False, is_open: bool = True,
                 search_func: Callable = search_symbols, open_position_func: Callable = open_position):
        super().__init__(parent, padding=4 if inline else 8)
        self.host = parent
        self.store = store
        self.feed = feed
        self.async_run_bg = async_run_bg
        self.notify = notify
        self.on_close = on_close
        self.inline = inline
        self.open_position_func = open_position_func

        self.is_open = False
        self._destroyed = False
        self._render_pending = False
        self._rendering = False
        self._anim_id = None
        self._relx = 1.0
        self.result_map = {}

        self.search = SymbolSearchController(
            self, async_run_bg, store, search_func=search_func,
            on_change=self.render_search, notify=notify,
        )
        self.orders = QuickOrderController(
            async_run_bg, notify, open_position_func=open_position_func,
            on_change=lambda symbol: self.schedule_render(),
        )

        self.backdrop = None
        if not inline:
            self.backdrop = tk.Canvas(parent, highlightthickness=0, bd=0, cursor="hand2")
            self.backdrop.bind("<Configure>", self._draw_backdrop)
            self.backdrop.bind("<ButtonPress-1>", lambda e: self.request_close())

        self.create_widgets()

        self._unsubscribers = [
            store.subscribe(self.on_watchlist_change),
            feed.subscribe(self.on_feed_change),
        ]
        # pointer-down anywhere in the window closes the search dropdown
        self.winfo_toplevel().bind("<ButtonPress>", self._on_pointer_down, add="+")
        if inline:
            self.pack_propagate(False)
            parent.bind("<Configure>", self._on_host_resize, add="+")

        self.render()
        if is_open:
            self.open()

    # ------------------------------------------------------------------ layout
    def create_widgets(self):
        # --- HEADER ---
        header = ttk.Frame(self, padding=(4, 2))
        header.pack(side=TOP, fill=X)
        titles = ttk.Frame(header)
        titles.pack(side=LEFT)
        title_font = ("Segoe UI", 10 if self.inline else 12, "bold")
        ttk.Label(titles, text="Watchlist", font=title_font).pack(anchor=W)
        ttk.Label(titles, text="Market Overview", bootstyle="secondary").pack(anchor=W)

        ttk.Button(header, text="✕", width=3, bootstyle="link", command=self.request_close).pack(side=RIGHT)
        self.count_label = ttk.Label(header, bootstyle="inverse-secondary", padding=(6, 1))
        self.count_label.pack(side=RIGHT, padx=6)

        # --- SEARCH ---
        self.search_frame = ttk.Frame(self, padding=(0, 4))
        self.search_frame.pack(side=TOP, fill=X)
        entry_row = ttk.Frame(self.search_frame)
        entry_row.pack(side=TOP, fill=X)
        self.search_var = tk.StringVar()
        self.search_entry = ttk.Entry(entry_row, textvariable=self.search_var)
        self.search_entry.pack(side=LEFT, fill=X, expand=True)
        self.clear_btn = ttk.Button(entry_row, text="✕", width=2, bootstyle="link", command=self.search.clear)
        self.search_var.trace_add("write", lambda *a: self.search.set_query(self.search_var.get()))
        self.search_entry.bind("<Escape>", lambda e: self.search.clear())

        self.results_frame = ttk.Frame(self.search_frame, bootstyle="light", padding=2)
        self.results_status = ttk.Label(self.results_frame, anchor=CENTER, bootstyle="secondary")
        self.results_tree = ttk.Treeview(
            self.results_frame, columns=("Symbol", "Name", "Category"), show="headings", height=6
        )
        self.results_tree.heading("Symbol", text="Symbol")
        self.results_tree.heading("Name", text="Name")
        self.results_tree.heading("Category", text="Category")
        self.results_tree.column("Symbol", width=70, anchor=W, stretch=False)
        self.results_tree.column("Name", width=120, anchor=W, stretch=True)
        self.results_tree.column("Category", width=70, anchor=W, stretch=False)
        self.results_tree.bind("<ButtonRelease-1>", self._on_result_click)
        self.results_tree.bind("<Return>", self._on_result_click)

        # --- ACTIONS (Bottom) ---
        actions = ttk.Frame(self, padding=(0, 4))
        actions.pack(side=BOTTOM, fill=X)
        self.buy_btn = ttk.Button(actions, text="Buy", bootstyle="success",
                                  command=lambda: self.trade_selected(OrderSide.BUY))
        self.buy_btn.pack(side=LEFT, fill=X, expand=True, padx=(0, 2))
        self.sell_btn = ttk.Button(actions, text="Sell", bootstyle="danger",
                                   command=lambda: self.trade_selected(OrderSide.SELL))
        self.sell_btn.pack(side=LEFT, fill=X, expand=True, padx=2)
        self.remove_btn = ttk.Button(actions, text="Remove", bootstyle="secondary-outline",
                                     command=self.remove_selected)
        self.remove_btn.pack(side=LEFT, padx=(2, 0))

        # --- SYMBOL LIST ---
        list_frame = ttk.Frame(self)
        list_frame.pack(side=TOP, fill=BOTH, expand=True)
        cols = ("Symbol", "Bid", "Ask", "Spread", "Change")
        self.tree = ttk.Treeview(list_frame, columns=cols, show="headings", selectmode="browse")
        for col in cols:
            self.tree.heading(col, text=col)
        self.tree.column("Symbol", width=70, anchor=W, stretch=False)
        self.tree.column("Bid", width=75, anchor=E, stretch=True)
        self.tree.column("Ask", width=75, anchor=E, stretch=True)
        self.tree.column("Spread", width=65, anchor=E, stretch=True)
        self.tree.column("Change", width=65, anchor=E, stretch=True)

        scrolly = ttk.Scrollbar(list_frame, orient=VERTICAL, command=self.tree.yview)
        self.tree.configure(yscroll=scrolly.set)
        scrolly.pack(side=RIGHT, fill=Y)
        self.tree.pack(fill=BOTH, expand=True)

        # --- ROW COLORS ---
        self.tree.tag_configure("up", foreground="#059669")
        self.tree.tag_configure("down", foreground="#dc2626")
        self.tree.tag_configure("loading", foreground="grey", font=("Segoe UI", 9, "italic"))

        self.tree.bind("<<TreeviewSelect>>", self._on_row_select)
        self.tree.bind("<Double-Button-1>", self._on_double_click)
        self.create_context_menu()
        self.tree.bind("<Button-3>", self.show_context_menu)

    def create_context_menu(self):
        self.context_menu = Menu(self, tearoff=0)
        self.context_menu.add_command(label="Buy", command=lambda: self.trade_selected(OrderSide.BUY))
        self.context_menu.add_command(label="Sell", command=lambda: self.trade_selected(OrderSide.SELL))
        self.context_menu.add_separator()
        self.context_menu.add_command(label="Remove from Watchlist", command=self.remove_selected)

    def show_context_menu(self, event):
        iid = self.tree.identify_row(event.y)
        if iid:
            self.tree.selection_set(iid)
            self.context_menu.post(event.x_root, event.y_root)

    # --------------------------------------------------------- open / close
    def open(self):
        if self._destroyed or self.is_open:
            return
        self.is_open = True
        if self.inline:
            self.pack(side=RIGHT, fill=Y)
            return
        self.backdrop.place(relx=0, rely=0, relwidth=1, relheight=1)
        self.backdrop.lift()
        self.place(relx=self._relx, rely=0, relwidth=OVERLAY_SHARE, relheight=1)
        self.lift()
        self._slide_to(1.0 - OVERLAY_SHARE)

    def close(self):
        if self._destroyed or not self.is_open:
            return
        self.is_open = False
        self.search.dismiss()
        if self.inline:
            self.pack_forget()
            return
        # backdrop goes first so the chart is usable while the panel slides out
        self.backdrop.place_forget()
        self._slide_to(1.0, on_done=self.place_forget)

    def toggle(self):
        if self.is_open:
            self.close()
        else:
            self.open()

    def request_close(self):
        if self.on_close:
            self.on_close()
        else:
            self.close()

    def _slide_to(self, target: float, on_done: Optional[Callable] = None):
        if self._anim_id is not None:
            self.after_cancel(self._anim_id)
            self._anim_id = None
        step = (target - self._relx) / SLIDE_STEPS
        delay = max(1, SLIDE_MS // SLIDE_STEPS)

        def tick(remaining):
            self._anim_id = None
            if self._destroyed:
                return
            self._relx = target if remaining <= 1 else self._relx + step
            self.place_configure(relx=self._relx)
            if remaining > 1:
                self._anim_id = self.after(delay, tick, remaining - 1)
            elif on_done:
                on_done()

        tick(SLIDE_STEPS)

    def _draw_backdrop(self, event):
        self.backdrop.delete("all")
        self.backdrop.create_rectangle(0, 0, event.width, event.height, fill="black", stipple="gray25", outline="")

    def _on_host_resize(self, event):
        if event.widget is not self.host or self._destroyed:
            return
        width = max(INLINE_MIN_WIDTH, int(event.width * INLINE_SHARE))
        if int(self.cget("width") or 0) != width:
            self.configure(width=width)

    # --------------------------------------------------------------- render
    def on_watchlist_change(self, change):
        s = change.symbol
        if change.kind == ADDED:
            self.notify(Notification("Symbol added", f"{s} added to watchlist"))
        elif change.kind == DUPLICATE:
            self.notify(Notification("Already in watchlist", f"{s} is already in your watchlist"))
        elif change.kind == REMOVED:
            self.notify(Notification("Symbol removed", f"{s} removed from watchlist"))
        self.schedule_render()

    def on_feed_change(self, what: str):
        """May arrive from the event-loop thread."""
        if what == "quotes" and not self._destroyed:
            self.after(0, self.schedule_render)

    def schedule_render(self):
        if self._render_pending or self._destroyed:
            return
        self._render_pending = True
        self.after_idle(self.render)

    def render(self):
        self._render_pending = False
        if self._destroyed:
            return
        selected = self.selected_symbol()
        rows = join_watchlist(self.store.symbols, self.feed.quotes)

        self._rendering = True
        try:
            self.tree.delete(*self.tree.get_children())
            for row in rows:
                if self.orders.is_loading(row.symbol):
                    tag = "loading"
                else:
                    tag = "up" if row.is_positive else "down"
                self.tree.insert(
                    "", "end", iid=row.symbol,
                    values=(row.symbol, row.bid, row.ask, row.spread, row.change),
                    tags=(tag,),
                )
            if selected and self.tree.exists(selected):
                self.tree.selection_set(selected)
        finally:
            self._rendering = False

        self.count_label.configure(text=count_badge_text(len(rows), self.inline))
        self._update_actions()

    def render_search(self):
        if self._destroyed:
            return
        if self.search_var.get() != self.search.query:
            self.search_var.set(self.search.query)

        if self.search.query:
            self.clear_btn.pack(side=RIGHT)
        else:
            self.clear_btn.pack_forget()

        state = self.search.view_state
        if state == HIDDEN:
            self.results_frame.pack_forget()
            return

        self.results_frame.pack(side=TOP, fill=X, pady=(2, 0))
        self.results_tree.delete(*self.results_tree.get_children())
        self.result_map.clear()
        if state in (SEARCHING, EMPTY):
            self.results_tree.pack_forget()
            self.results_status.configure(text="Searching..." if state == SEARCHING else "No symbols found")
            self.results_status.pack(fill=X, pady=6)
            return

        self.results_status.pack_forget()
        for result in self.search.results:
            iid = self.results_tree.insert(
                "", "end", values=(result.symbol, result.name, result.category_name)
            )
            self.result_map[iid] = result
        self.results_tree.pack(fill=X)

    def _update_actions(self):
        symbol = self.selected_symbol()
        trade_state = "normal" if symbol and not self.orders.is_loading(symbol) else "disabled"
        self.buy_btn.configure(state=trade_state)
        self.sell_btn.configure(state=trade_state)
        self.remove_btn.configure(state="normal" if symbol else "disabled")
        self.context_menu.entryconfigure(0, state=trade_state)
        self.context_menu.entryconfigure(1, state=trade_state)

    # --------------------------------------------------------------- events
    def selected_symbol(self) -> Optional[str]:
        sel = self.tree.selection()
        return sel[0] if sel else None

    def _on_row_select(self, event):
        if self._rendering:
            return
        symbol = self.selected_symbol()
        if symbol:
            self.feed.set_selected_symbol(symbol)
        self._update_actions()

    def _on_double_click(self, event):
        iid = self.tree.identify_row(event.y)
        if iid:
            self.feed.set_selected_symbol(iid)
            self.request_close()

    def _on_result_click(self, event):
        sel = self.results_tree.selection()
        result = self.result_map.get(sel[0]) if sel else None
        if result is None:
            return
        try:
            self.search.select(result)
        except (OSError, ValueError) as e:
            logger.exception("Could not add %s to watchlist", result.symbol)
            self.notify(Notification("Watchlist error", str(e), destructive=True))

    def _on_pointer_down(self, event):
        if self._destroyed or not self.search.show_results:
            return
        if is_inside(event.widget, self.search_frame):
            return
        self.search.dismiss()

    def trade_selected(self, side: OrderSide):
        symbol = self.selected_symbol()
        if not symbol or self.orders.is_loading(symbol):
            return
        if self.inline:
            TradeDialog(self, symbol, side, self.feed.get(symbol), self.async_run_bg,
                        self.notify, open_position_func=self.open_position_func)
        else:
            try:
                self.orders.submit(symbol, side)
            except ValueError as e:
                logger.warning("Quick order for %s rejected: %s", symbol, e)
                self.notify(Notification("Order error", str(e), destructive=True))

    def remove_selected(self):
        symbol = self.selected_symbol()
        if not symbol:
            return
        try:
            self.store.remove(symbol)
        except OSError as e:
            logger.exception("Could not remove %s from watchlist", symbol)
            self.notify(Notification("Watchlist error", str(e), destructive=True))

    def destroy(self):
        self._destroyed = True
        self.search.dispose()
        if self._anim_id is not None:
            try:
                self.after_cancel(self._anim_id)
            except Exception:
                pass
            self._anim_id = None
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        if self.backdrop is not None:
            self.backdrop.destroy()
        super().destroy()
