# tests/test_units.py
"""Tests for ether amounts and addresses."""

import pytest

from editions.units import (
    WEI_PER_ETHER,
    format_ether,
    is_address,
    normalize_address,
    parse_ether,
)


class TestEther:

    @pytest.mark.parametrize("amount,wei", [
        ("0.5", 500_000_000_000_000_000),
        ("1", WEI_PER_ETHER),
        (2, 2 * WEI_PER_ETHER),
        ("0.000000000000000001", 1),
    ])
    def test_parse(self, amount, wei):
        assert parse_ether(amount) == wei

    @pytest.mark.parametrize("amount", [
        "abc", "-1", "0.0000000000000000001", "NaN", "sNaN", "-NaN", "Infinity", "-Infinity", "inf",
    ])
    def test_parse_invalid(self, amount):
        with pytest.raises(ValueError):
            parse_ether(amount)

    def test_format(self):
        assert format_ether(500_000_000_000_000_000) == "0.5"
        assert format_ether(3 * WEI_PER_ETHER) == "3"
        assert format_ether(0) == "0"
        assert format_ether(1) == "0.000000000000000001"


class TestAddresses:

    def test_normalize(self):
        assert normalize_address("0x" + "AB" * 20) == "0x" + "ab" * 20

    @pytest.mark.parametrize("value", ["", "0x123", "ab" * 20, "0x" + "zz" * 20, None])
    def test_invalid(self, value):
        assert not is_address(value)
        with pytest.raises(ValueError):
            normalize_address(value)
