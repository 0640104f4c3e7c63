from tradeview.core.utils import PLACEHOLDER, fmt_price, fmt_change, fmt_spread


def test_fmt_price_uses_five_decimals():
    assert fmt_price(1.2) == "1.20000"
    assert fmt_price(150) == "150.00000"
    assert fmt_price(0.0) == "0.00000"


def test_fmt_price_placeholder_for_non_numbers():
    for value in (None, "1.2", True):
        assert fmt_price(value) == PLACEHOLDER


def test_fmt_change_is_signed():
    assert fmt_change(0.0012) == "+0.0012"
    assert fmt_change(-0.003) == "-0.0030"
    assert fmt_change(0) == "+0.0000"
    assert fmt_change(-0.0) == "+0.0000"
    assert fmt_change(None) == PLACEHOLDER


def test_fmt_spread():
    assert fmt_spread(1.1, 1.10015) == "0.00015"
    assert fmt_spread(None, 1.1) == PLACEHOLDER
    assert fmt_spread(0, 1.1) == PLACEHOLDER
    assert fmt_spread(1.1, 0) == PLACEHOLDER
