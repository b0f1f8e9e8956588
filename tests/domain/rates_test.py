from decimal import Decimal

import pytest
from pydantic import ValidationError

from domain.base_types import Metal
from domain.rates import RateBook, RateQuote


def test_default_rate_book() -> None:
    rates = RateBook.default()

    assert rates.gold == RateQuote(buy=Decimal("6850"), sell=Decimal("7050"))
    assert rates.silver == RateQuote(buy=Decimal("85"), sell=Decimal("90"))


def test_with_quote_replaces_one_metal() -> None:
    rates = RateBook.default()
    quote = RateQuote(buy=Decimal("7100"), sell=Decimal("7300"))

    updated = rates.with_quote(Metal.GOLD, quote)

    assert updated.quote(Metal.GOLD) == quote
    assert updated.quote(Metal.SILVER) == rates.silver
    assert rates.gold.buy == Decimal("6850")


def test_negative_rates_are_rejected() -> None:
    with pytest.raises(ValidationError):
        RateQuote(buy=Decimal("-1"), sell=Decimal("90"))
