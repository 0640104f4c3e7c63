# core.utils package
from .formatting import PLACEHOLDER, fmt_price, fmt_change, fmt_spread

__all__ = [
    "PLACEHOLDER",
    "fmt_price",
    "fmt_change",
    "fmt_spread",
]
