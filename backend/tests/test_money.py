from decimal import Decimal

import pytest

from cashdesk.money import format_money, money_sum, quantize, to_money
from cashdesk.validation import ValidationError


class TestToMoney:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("140", Decimal("140.00")),
            ("0.1", Decimal("0.10")),
            (0.1, Decimal("0.10")),
            (25, Decimal("25.00")),
            (Decimal("19.999"), Decimal("20.00")),
            ("  12.345 ", Decimal("12.35")),
            ("-1", Decimal("-1.00")),
        ],
    )
    def test_parses_to_two_places(self, raw, expected):
        assert to_money(raw) == expected

    @pytest.mark.parametrize("raw", [None, True, "", "abc", "NaN", "Infinity", "1e30", "-1e30", [], {}])
    def test_rejects_non_amounts(self, raw):
        with pytest.raises(ValidationError):
            to_money(raw)

    def test_rejects_overflow(self):
        with pytest.raises(ValidationError):
            to_money("99999999999")
        with pytest.raises(ValidationError):
            to_money("9999999999.999")
        assert to_money("9999999999.99") == Decimal("9999999999.99")

    def test_error_names_field(self):
        with pytest.raises(ValidationError, match="opening_amount"):
            to_money("x", field="opening_amount")


def test_sum_has_no_binary_drift():
    assert money_sum([to_money(0.1)] * 10) == Decimal("1.00")
    assert money_sum([to_money(0.1), to_money(0.2)]) == Decimal("0.30")


def test_quantize_none_is_zero():
    assert quantize(None) == Decimal("0.00")


def test_format_money():
    assert format_money(Decimal("140")) == "140.00"
    assert format_money(Decimal("-50.5")) == "-50.50"
    assert format_money(None) is None
