import tkinter as tk
import ttkbootstrap as ttk
from ttkbootstrap.constants import LEFT, RIGHT, BOTH, X
from typing import Callable
import logging

from tradeview.core import config
from tradeview.core.utils import fmt_price
from tradeview.components.button_utils import run_bg_with_buttons
from tradeview.components.notifications import Notification
from tradeview.modules.trading.orders import OrderSide, open_position, parse_ticket, reference_price

logger = logging.getLogger(__name__)


class TradeDialog(ttk.Toplevel):
    """Order ticket for one symbol, opened from the inline watchlist.

    Usage: TradeDialog(parent, "EURUSD", "buy", quote, async_run_bg, notify)
    """

    def __init__(self, parent, symbol: str, side, quote, async_run_bg: Callable,
                 notify: Callable[[Notification], None], open_position_func: Callable = open_position):
        super().__init__(parent)
        self.symbol = symbol
        self.side = OrderSide(side)
        self.async_run_bg = async_run_bg
        self.notify = notify
        self.open_position_func = open_position_func

        self.title(f"{self.side.value.upper()} {symbol}")
        self.resizable(False, False)
        self.transient(parent.winfo_toplevel())
        self.protocol("WM_DELETE_WINDOW", self.destroy)

        self.lot_var = tk.StringVar(value=f"{config.QUICK_LOT_SIZE:g}")
        self.sl_var = tk.StringVar()
        self.tp_var = tk.StringVar()
        self.error_var = tk.StringVar()

        self.create_widgets(reference_price(quote, self.side))
        self.lot_entry.focus_set()

    def create_widgets(self, price):
        form = ttk.Frame(self, padding=12)
        form.pack(fill=BOTH, expand=True)

        ttk.Label(form, text=self.symbol, font=(None, 12, "bold")).grid(row=0, column=0, columnspan=2, sticky="w")
        ttk.Label(form, text="Price").grid(row=1, column=0, sticky="w")
        ttk.Label(form, text=fmt_price(price)).grid(row=1, column=1, sticky="e", padx=6, pady=2)

        ttk.Label(form, text="Lot size").grid(row=2, column=0, sticky="w")
        self.lot_entry = ttk.Entry(form, textvariable=self.lot_var, width=12)
        self.lot_entry.grid(row=2, column=1, padx=6, pady=2, sticky="ew")
        self.lot_entry.bind("<Return>", lambda e: self.submit())

        ttk.Label(form, text="Stop loss").grid(row=3, column=0, sticky="w")
        ttk.Entry(form, textvariable=self.sl_var, width=12).grid(row=3, column=1, padx=6, pady=2, sticky="ew")
        ttk.Label(form, text="Take profit").grid(row=4, column=0, sticky="w")
        ttk.Entry(form, textvariable=self.tp_var, width=12).grid(row=4, column=1, padx=6, pady=2, sticky="ew")

        ttk.Label(form, textvariable=self.error_var, bootstyle="danger").grid(row=5, column=0, columnspan=2, sticky="w")
        form.columnconfigure(1, weight=1)

        btn_frame = ttk.Frame(self, padding=(12, 0, 12, 12))
        btn_frame.pack(fill=X)
        style = "success" if self.side is OrderSide.BUY else "danger"
        self.submit_btn = ttk.Button(btn_frame, text=self.side.value.capitalize(), bootstyle=style, command=self.submit)
        self.submit_btn.pack(side=RIGHT, padx=4)
        self.cancel_btn = ttk.Button(btn_frame, text="Cancel", bootstyle="secondary", command=self.destroy)
        self.cancel_btn.pack(side=LEFT, padx=4)

    def submit(self):
        try:
            payload = parse_ticket(self.symbol, self.side, self.lot_var.get(), self.sl_var.get(), self.tp_var.get())
        except ValueError as e:
            self.error_var.set(str(e))
            return
        self.error_var.set("")
        run_bg_with_buttons(
            [self.submit_btn, self.cancel_btn],
            self.async_run_bg,
            self.open_position_func(payload),
            callback=self._on_filled,
            errback=self._on_failed,
        )

    def _on_filled(self, result):
        self.notify(Notification("Order placed", f"{self.side.value.upper()} {self.symbol}"))
        self.destroy()

    def _on_failed(self, exc):
        logger.warning("Order for %s failed: %s", self.symbol, exc)
        self.notify(Notification("Order error", str(exc), destructive=True))
