"""TradeView desktop watchlist."""

__version__ = "0.1.0"
