from .attribute_dictionary import AttributeDictionary
from .selection import (
    OptionState,
    Reconciliation,
    ResolutionState,
    ResolutionStatus,
    SelectionResolver,
    selection_from_query,
    selection_to_query,
)
from .pricing import PricingProjector, PricingSnapshot, StockStatus
from .offers import OfferAggregator
from .offer_loader import OfferFetcher, OfferLoader, OfferRequest
from .badges import BadgeComposer, BadgeDisplay
from .session import CartRequest, SelectionSession

__all__ = [
    'AttributeDictionary',
    'OptionState',
    'Reconciliation',
    'ResolutionState',
    'ResolutionStatus',
    'SelectionResolver',
    'selection_from_query',
    'selection_to_query',
    'PricingProjector',
    'PricingSnapshot',
    'StockStatus',
    'OfferAggregator',
    'OfferFetcher',
    'OfferLoader',
    'OfferRequest',
    'BadgeComposer',
    'BadgeDisplay',
    'CartRequest',
    'SelectionSession',
]
