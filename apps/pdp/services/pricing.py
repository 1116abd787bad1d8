"""
Display pricing and stock banner for a resolved combination.
Pure functions of the snapshot: no side effects, no network calls.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from django.db import models

from apps.pdp.conf import engine_setting
from apps.pdp.domain import BasePricing, VariantCombination


class StockStatus(models.TextChoices):
    IN_STOCK = 'in_stock', 'Stokta'
    LOW_STOCK = 'low_stock', 'Son ürünler'
    OUT_OF_STOCK = 'out_of_stock', 'Tükendi'


@dataclass(frozen=True)
class PricingSnapshot:
    """
    What the price block shows. ``in_stock`` is always derived from
    ``stock``. ``min_price``/``max_price`` are set only while the selection
    still matches several combinations.
    """
    display_price: Decimal
    original_price: Optional[Decimal] = None
    discount_percent: Optional[int] = None
    stock: int = 0
    currency: str = 'TRY'
    low_stock_threshold: int = 10
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None

    @property
    def in_stock(self):
        return self.stock > 0

    @property
    def is_low_stock(self):
        return 0 < self.stock < self.low_stock_threshold

    @property
    def low_stock_count(self) -> Optional[int]:
        """Exact remaining count for the "last N items" banner."""
        return self.stock if self.is_low_stock else None

    @property
    def stock_status(self):
        if not self.in_stock:
            return StockStatus.OUT_OF_STOCK
        if self.is_low_stock:
            return StockStatus.LOW_STOCK
        return StockStatus.IN_STOCK

    @property
    def has_discount(self):
        return self.original_price is not None

    @property
    def savings(self) -> Optional[Decimal]:
        if self.original_price is None:
            return None
        return self.original_price - self.display_price

    @property
    def price_range(self):
        """Return price range string."""
        if self.min_price is None:
            return None
        if self.min_price == self.max_price:
            return f"{self.min_price:.2f} {self.currency}"
        return f"{self.min_price:.2f} - {self.max_price:.2f} {self.currency}"


class PricingProjector:
    """Projects combinations (or the base product) to PricingSnapshots."""

    def __init__(self, base_pricing: BasePricing, low_stock_threshold: Optional[int] = None):
        self.base_pricing = base_pricing
        if low_stock_threshold is None:
            low_stock_threshold = engine_setting('LOW_STOCK_THRESHOLD')
        self.low_stock_threshold = low_stock_threshold

    def project(self, combination: Optional[VariantCombination] = None) -> PricingSnapshot:
        """
        displayPrice = sale price, else price, else the base price.
        The original price is the higher of the undiscounted price and the
        listed original price, reported only when above the display price.
        """
        base = self.base_pricing
        if combination is not None:
            display_price = combination.effective_price
            if display_price is None:
                display_price = base.effective_price
            undiscounted = combination.price if combination.price is not None else base.price
            stock = combination.stock
        else:
            display_price = base.effective_price
            undiscounted = base.price
            stock = base.stock

        original_price = self.original_price(display_price, undiscounted, base.original_price)
        return PricingSnapshot(
            display_price=display_price,
            original_price=original_price,
            discount_percent=self.discount_percent(original_price, display_price),
            stock=max(stock, 0),
            currency=base.currency,
            low_stock_threshold=self.low_stock_threshold,
        )

    def project_range(self, combinations: Iterable[VariantCombination]) -> PricingSnapshot:
        """
        Pricing while several combinations still match: the cheapest one is
        displayed, the range spans all of them and stock is their total.
        """
        combinations = list(combinations)
        prices = [
            c.effective_price if c.effective_price is not None else self.base_pricing.effective_price
            for c in combinations
        ]
        if not prices:
            return self.project(None)

        cheapest = combinations[prices.index(min(prices))]
        snapshot = self.project(cheapest)
        return PricingSnapshot(
            display_price=snapshot.display_price,
            original_price=snapshot.original_price,
            discount_percent=snapshot.discount_percent,
            stock=sum(max(c.stock, 0) for c in combinations),
            currency=snapshot.currency,
            low_stock_threshold=self.low_stock_threshold,
            min_price=min(prices),
            max_price=max(prices),
        )

    @staticmethod
    def original_price(display_price, *candidates) -> Optional[Decimal]:
        listed = [c for c in candidates if c is not None]
        if not listed:
            return None
        highest = max(listed)
        return highest if highest > display_price else None

    @staticmethod
    def discount_percent(original_price, display_price) -> Optional[int]:
        if original_price is None or original_price <= 0:
            return None
        ratio = (Decimal(original_price) - Decimal(display_price)) / Decimal(original_price) * 100
        percent = int(ratio.quantize(Decimal('1'), rounding=ROUND_HALF_UP))
        return min(max(percent, 0), 100)
