from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Tuple

from .badge import Badge


@dataclass(frozen=True)
class Vendor:
    id: int
    name: str
    slug: str = ''
    rating: Decimal = Decimal('0')
    is_official: bool = False

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class Offer:
    """
    A vendor's offer for the product.
    ``variant_id`` is None when the vendor sells only the base product.
    """
    vendor: Vendor
    price: Decimal
    variant_id: Optional[int] = None
    variant_value: str = ''
    original_price: Optional[Decimal] = None
    stock: int = 0
    is_buybox_winner: bool = False
    shipping_estimate_days: Optional[int] = None
    shipping_cost: Decimal = Decimal('0')
    badges: Tuple[Badge, ...] = ()

    def __str__(self):
        return '%s @ %s' % (self.vendor.name, self.price)

    @property
    def vendor_id(self):
        return self.vendor.id

    @property
    def vendor_name(self):
        return self.vendor.name

    @property
    def is_in_stock(self):
        return self.stock > 0

    @property
    def has_free_shipping(self):
        return self.shipping_cost == 0

    @property
    def is_on_sale(self):
        return bool(self.original_price and self.original_price > self.price)


@dataclass(frozen=True)
class OfferView:
    """Default offer plus the sorted, deduplicated alternates."""
    primary: Optional[Offer]
    alternates: List[Offer] = field(default_factory=list)
    best_price_offer: Optional[Offer] = None
    total_sellers: int = 0

    @property
    def has_alternates(self):
        return bool(self.alternates)
