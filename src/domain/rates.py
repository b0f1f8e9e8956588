from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, model_validator

from .base_types import Metal


class RateQuote(BaseModel):
    """Buy/sell quote for one gram of fine metal, in the shop's currency."""

    model_config = ConfigDict(frozen=True)

    buy: Decimal
    sell: Decimal

    @model_validator(mode="after")
    def _validate_prices(self) -> RateQuote:
        if self.buy < 0 or self.sell < 0:
            raise ValueError("rates must be >= 0")
        return self


class RateBook(BaseModel):
    model_config = ConfigDict(frozen=True)

    gold: RateQuote
    silver: RateQuote

    @classmethod
    def default(cls) -> RateBook:
        return cls(
            gold=RateQuote(buy=Decimal(6850), sell=Decimal(7050)),
            silver=RateQuote(buy=Decimal(85), sell=Decimal(90)),
        )

    def quote(self, metal: Metal) -> RateQuote:
        return self.gold if metal == Metal.GOLD else self.silver

    def with_quote(self, metal: Metal, quote: RateQuote) -> RateBook:
        return self.model_copy(update={metal.value: quote})


__all__ = ["RateBook", "RateQuote"]
