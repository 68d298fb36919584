from __future__ import annotations

from huntr_billing.utils.currency import format_currency


def test_format_naira_from_kobo():
    assert format_currency(500000, "NGN") == "₦5,000.00"


def test_format_groups_large_amounts():
    assert format_currency(123456789, "ngn") == "₦1,234,567.89"


def test_format_unknown_currency_uses_code():
    assert format_currency(1050, "KES") == "KES 10.50"


def test_format_known_symbol():
    assert format_currency(999, "USD") == "$9.99"
