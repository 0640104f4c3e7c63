import logging
from typing import Callable, Dict, Optional

from tradeview.components.notifications import Notification
from tradeview.modules.trading.orders import OrderSide, build_quick_order, open_position

logger = logging.getLogger(__name__)


class QuickOrderController:
    """One-click market orders with a per-symbol loading flag.

    While an order for a symbol is outstanding, further submissions for that
    symbol are refused. The flag is always cleared once the order settles.
    """

    def __init__(
        self,
        async_run_bg: Callable,
        notify: Callable[[Notification], None],
        open_position_func: Callable = open_position,
        on_change: Optional[Callable[[str], None]] = None,
        lot_size: Optional[float] = None,
    ):
        self.async_run_bg = async_run_bg
        self.notify = notify
        self.open_position_func = open_position_func
        self.on_change = on_change
        self.lot_size = lot_size
        self.loading: Dict[str, bool] = {}

    def is_loading(self, symbol: str) -> bool:
        return bool(self.loading.get(symbol))

    def submit(self, symbol: str, side) -> bool:
        """Send a market order. Returns False if one is already in flight."""
        side = OrderSide(side)
        if self.is_loading(symbol):
            logger.info("Order for %s already in flight, ignoring %s", symbol, side.value)
            return False

        payload = build_quick_order(symbol, side, self.lot_size)
        self._set_loading(symbol, True)
        try:
            self.async_run_bg(
                self.open_position_func(payload),
                callback=lambda result: self._on_filled(symbol, side),
                errback=lambda exc: self._on_failed(symbol, exc),
            )
        except Exception:
            self._set_loading(symbol, False)
            raise
        return True

    def _on_filled(self, symbol: str, side: OrderSide):
        try:
            self.notify(Notification("Order placed", f"{side.value.upper()} {symbol}"))
        finally:
            self._set_loading(symbol, False)

    def _on_failed(self, symbol: str, exc: BaseException):
        try:
            logger.warning("Quick order for %s failed: %s", symbol, exc)
            self.notify(Notification("Order error", str(exc), destructive=True))
        finally:
            self._set_loading(symbol, False)

    def _set_loading(self, symbol: str, value: bool):
        self.loading[symbol] = value
        if self.on_change:
            try:
                self.on_change(symbol)
            except Exception:
                logger.exception("Error in loading-state callback")
