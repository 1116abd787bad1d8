"""
Snapshot objects for the variant & offer resolution engine.

Hierarchy:
- ProductSnapshot: one product view (base pricing, rules, vendor)
- DeclaredDimension: raw dimension metadata as received
- AttributeDimension / AttributeValue: canonical dimensions (Color, Size, ...)
- VariantCombination / CombinationMatrix: sellable attribute tuples
- Vendor / Offer / OfferView: competing vendor offers
- Badge: promotional highlights
"""

from .attribute import AttributeKind, AttributeValue, AttributeDimension, DeclaredDimension
from .variant import VariantCombination, CombinationMatrix
from .offer import Vendor, Offer, OfferView
from .badge import Badge
from .snapshot import BasePricing, PurchaseRules, ProductSnapshot

__all__ = [
    'AttributeKind',
    'AttributeValue',
    'AttributeDimension',
    'DeclaredDimension',
    'VariantCombination',
    'CombinationMatrix',
    'Vendor',
    'Offer',
    'OfferView',
    'Badge',
    'BasePricing',
    'PurchaseRules',
    'ProductSnapshot',
]
