"""
Error taxonomy for the variant & offer resolution engine.

Only ``AddToCartRejected`` and ``InvalidSnapshot`` ever reach the HTTP
surface. The rest are recovered inside the engine and degrade to the best
available subset of data.
"""


class PdpEngineError(Exception):
    """Base class for engine errors."""


class InvalidSnapshot(PdpEngineError, ValueError):
    """The product snapshot breaks a matrix invariant (duplicate ids or tuples)."""


class AmbiguousSelection(PdpEngineError):
    """More than one combination still matches a partial selection."""

    def __init__(self, missing_dimensions):
        self.missing_dimensions = list(missing_dimensions)
        super().__init__(
            'Selection is incomplete: %s' % ', '.join(self.missing_dimensions)
        )


class NoMatchingVariant(PdpEngineError):
    """No combination matches the selection."""

    def __init__(self, selection):
        self.selection = dict(selection)
        super().__init__('No variant matches %r' % self.selection)


class MissingDimensionMetadata(PdpEngineError):
    """A declared dimension could not be bound to any combination key."""

    def __init__(self, key, label=''):
        self.key = key
        self.label = label
        super().__init__('Cannot bind dimension key=%r label=%r' % (key, label))


class OfferFetchFailed(PdpEngineError):
    """The sellers collaborator failed or returned an unusable payload."""

    def __init__(self, product_id, variant_id=None, reason=''):
        self.product_id = product_id
        self.variant_id = variant_id
        self.reason = reason
        super().__init__(
            'Offer fetch failed for product=%s variant=%s: %s'
            % (product_id, variant_id, reason)
        )


class AddToCartRejected(PdpEngineError):
    """The current selection cannot be added to the cart."""

    SELECTION_REQUIRED = 'selection_required'
    OUT_OF_STOCK = 'out_of_stock'
    INSUFFICIENT_STOCK = 'insufficient_stock'
    INVALID_QUANTITY = 'invalid_quantity'

    MESSAGES = {
        SELECTION_REQUIRED: 'Lütfen bir seçenek belirleyin.',
        OUT_OF_STOCK: 'Bu ürün tükendi.',
        INSUFFICIENT_STOCK: 'Yeterli stok bulunmuyor.',
        INVALID_QUANTITY: 'Geçersiz adet.',
    }

    def __init__(self, reason, detail=None):
        self.reason = reason
        self.detail = detail or {}
        super().__init__(self.MESSAGES.get(reason, reason))

    @property
    def message(self):
        return self.MESSAGES.get(self.reason, self.reason)
