"""
Tests for record helpers and shared frame utilities.
"""

import pandas as pd
import pytest

from analytics.frames import observed_days, round_half_up
from domain.records import InvoiceStatus, is_low_stock, is_paid, line_total, parse_amount


class TestParseAmount:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("12.50", 12.5),
            (" 7 ", 7.0),
            (3, 3.0),
            (2.25, 2.25),
            (None, None),
            ("", None),
            ("abc", None),
            ("nan", None),
            (float("inf"), None),
            (True, None),
        ],
    )
    def test_values(self, value, expected):
        assert parse_amount(value) == expected


class TestInvoiceHelpers:
    def test_is_paid(self):
        assert is_paid({"status": "paid"})
        assert is_paid({"status": "Paid "})
        assert is_paid({"status": InvoiceStatus.PAID})
        assert not is_paid({"status": "pending"})
        assert not is_paid({})

    def test_line_total_applies_percent_discount(self):
        assert line_total(20.0, 25.0, 2) == 30.0

    def test_is_low_stock(self):
        assert is_low_stock({"stock": 5, "min_stock": 5})
        assert is_low_stock({"stock": "0", "min_stock": "2"})
        assert not is_low_stock({"stock": 6, "min_stock": 5})


class TestFrameUtilities:
    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(66.666) == 67
        assert round_half_up(0.125, 2) == 0.13
        assert round_half_up(1.004, 2) == 1.0

    def test_observed_days(self):
        stamps = pd.to_datetime(pd.Series(["2024-03-01T00:00:00Z", "2024-03-03T06:00:00Z"]), utc=True)
        assert observed_days(stamps) == 3

    def test_observed_days_minimum_is_one(self):
        assert observed_days(pd.Series([], dtype="datetime64[ns, UTC]")) == 1
        single = pd.to_datetime(pd.Series(["2024-03-01T00:00:00Z"]), utc=True)
        assert observed_days(single) == 1
