import logging
from enum import Enum
from typing import Any, Optional

from tradeview.core import config
from tradeview.core.http import request_json

logger = logging.getLogger(__name__)

POSITIONS_PATH = "/api/trading/positions"


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


def build_order(
    symbol: str,
    side,
    lot_size: float,
    stop_loss: Optional[float] = None,
    take_profit: Optional[float] = None,
    comment: Optional[str] = None,
) -> dict:
    """Market-order payload for the open-position endpoint."""
    side = OrderSide(side)
    if not symbol:
        raise ValueError("symbol is required")
    if lot_size is None or lot_size <= 0:
        raise ValueError("Lot size must be positive")
    return {
        "symbolId": symbol,
        "side": side.value,
        "lotSize": lot_size,
        "orderType": "market",
        "triggerPrice": None,
        "stopLoss": stop_loss,
        "takeProfit": take_profit,
        "comment": comment,
    }


def build_quick_order(symbol: str, side, lot_size: Optional[float] = None) -> dict:
    side = OrderSide(side)
    return build_order(
        symbol,
        side,
        config.QUICK_LOT_SIZE if lot_size is None else lot_size,
        comment=f"Quick {side.value.upper()} {symbol}",
    )


def _parse_optional_price(text: str, label: str) -> Optional[float]:
    text = (text or "").strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        raise ValueError(f"{label} must be a number")
    if value <= 0:
        raise ValueError(f"{label} must be positive")
    return value


def parse_ticket(symbol: str, side, lot_text: str, stop_loss_text: str = "", take_profit_text: str = "") -> dict:
    """Validate order-ticket text fields and build the order payload.

    Raises ValueError with a message suitable for display.
    """
    try:
        lot_size = float((lot_text or "").strip())
    except ValueError:
        raise ValueError("Lot size must be a number")
    side = OrderSide(side)
    return build_order(
        symbol,
        side,
        lot_size,
        stop_loss=_parse_optional_price(stop_loss_text, "Stop loss"),
        take_profit=_parse_optional_price(take_profit_text, "Take profit"),
        comment=f"{side.value.upper()} {symbol}",
    )


def reference_price(quote, side) -> Optional[float]:
    """Ask for buys, bid for sells, falling back to the last price."""
    if quote is None:
        return None
    side = OrderSide(side)
    price = quote.ask if side is OrderSide.BUY else quote.bid
    return price if price is not None else quote.last


async def open_position(payload: dict, base_url: Optional[str] = None, session=None) -> Any:
    """Submits an order. Raises ApiError with a displayable message on failure."""
    logger.info("Opening position: %s %s x %s", payload.get("side"), payload.get("symbolId"), payload.get("lotSize"))
    result = await request_json("POST", POSITIONS_PATH, json=payload, base_url=base_url, session=session)
    logger.info("Position opened for %s", payload.get("symbolId"))
    return result
