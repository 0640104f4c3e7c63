PLACEHOLDER = "-"


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def fmt_price(value, places=5):
    """Format a price to a fixed number of decimals, or the placeholder."""
    if not _is_number(value):
        return PLACEHOLDER
    return f"{value:.{places}f}"


def fmt_change(value, places=4):
    """Signed change, e.g. "+0.0012" / "-0.0030"."""
    if not _is_number(value):
        return PLACEHOLDER
    # -0.0 would otherwise keep its sign
    value = value + 0.0
    return f"{value:+.{places}f}"


def fmt_spread(bid, ask, places=5):
    """Ask minus bid. Zero or missing sides give the placeholder."""
    if not (_is_number(bid) and _is_number(ask)) or not bid or not ask:
        return PLACEHOLDER
    return f"{ask - bid:.{places}f}"
