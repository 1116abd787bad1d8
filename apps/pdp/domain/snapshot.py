from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Optional, Tuple

from .attribute import DeclaredDimension
from .badge import Badge
from .offer import Offer, Vendor
from .variant import CombinationMatrix


@dataclass(frozen=True)
class BasePricing:
    """Product level pricing, used when no combination is resolved."""
    price: Decimal
    sale_price: Optional[Decimal] = None
    original_price: Optional[Decimal] = None
    currency: str = 'TRY'
    stock: int = 0

    @property
    def effective_price(self):
        return self.sale_price if self.sale_price is not None else self.price


@dataclass(frozen=True)
class PurchaseRules:
    """Per-product overrides of the engine settings. None means "use settings"."""
    max_quantity: Optional[int] = None
    low_stock_threshold: Optional[int] = None
    selection_required: bool = True
    allow_multi_seller: bool = True


@dataclass(frozen=True)
class ProductSnapshot:
    """
    Everything the engine knows about one product view.
    Fetched once per view and never mutated.
    """
    product_id: int
    title: str
    base_pricing: BasePricing
    matrix: CombinationMatrix = field(default_factory=CombinationMatrix)
    dimensions: Tuple[DeclaredDimension, ...] = ()
    vendor: Optional[Vendor] = None
    offers: Tuple[Offer, ...] = ()
    badges: Tuple[Badge, ...] = ()
    variant_labels: Dict[int, str] = field(default_factory=dict)
    rules: PurchaseRules = field(default_factory=PurchaseRules)
    slug: str = ''

    def __str__(self):
        return self.title
