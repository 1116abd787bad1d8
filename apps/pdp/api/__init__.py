from .serializers import (
    ProductSnapshotSerializer,
    OfferSerializer,
    ResolutionStateSerializer,
    OptionStateSerializer,
    PricingSnapshotSerializer,
    OfferViewSerializer,
    BadgeDisplaySerializer,
    CartRequestSerializer,
)

__all__ = [
    'ProductSnapshotSerializer',
    'OfferSerializer',
    'ResolutionStateSerializer',
    'OptionStateSerializer',
    'PricingSnapshotSerializer',
    'OfferViewSerializer',
    'BadgeDisplaySerializer',
    'CartRequestSerializer',
]
