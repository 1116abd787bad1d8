"""
Selection state for one product view.

A ``SelectionSession`` is created when the purchase panel opens and
discarded when it closes. It is handed explicitly to every consumer; there
is no module level selection state.
"""

import dataclasses
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Mapping, Optional

from apps.pdp.conf import engine_setting
from apps.pdp.domain import Offer, OfferView, ProductSnapshot, VariantCombination
from apps.pdp.exceptions import AddToCartRejected, AmbiguousSelection, NoMatchingVariant

from .attribute_dictionary import AttributeDictionary
from .badges import BadgeComposer, BadgeDisplay
from .offer_loader import OfferLoader, OfferRequest
from .offers import OfferAggregator
from .pricing import PricingProjector, PricingSnapshot
from .selection import (
    OptionState,
    Reconciliation,
    ResolutionState,
    SelectionResolver,
    selection_from_query,
    selection_to_query,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CartRequest:
    """What the cart collaborator receives for an accepted add-to-cart."""
    product_id: int
    variant_id: Optional[int]
    vendor_id: Optional[int]
    quantity: int
    unit_price: Decimal
    currency: str = 'TRY'

    @property
    def total_price(self):
        return self.unit_price * self.quantity


class SelectionSession:
    """
    Explicit per-view selection state over an immutable product snapshot.

    Read models: ``state``, ``pricing``, ``offer_view()``.
    Commands: ``select_attribute()``, ``select_variant()``,
    ``clear_attribute()``, ``load_alternate_offers()``, ``close()``.
    Query: ``add_to_cart_request()``.
    """

    def __init__(
        self,
        snapshot: ProductSnapshot,
        offer_loader: Optional[OfferLoader] = None,
        auto_pick_strategy: Optional[str] = None,
    ):
        self.snapshot = snapshot
        self.dictionary = AttributeDictionary.build(snapshot.dimensions, snapshot.matrix)
        self.resolver = SelectionResolver(
            self.dictionary, snapshot.matrix, auto_pick_strategy=auto_pick_strategy
        )
        self.projector = PricingProjector(
            snapshot.base_pricing, low_stock_threshold=snapshot.rules.low_stock_threshold
        )
        self.aggregator = OfferAggregator(
            snapshot.matrix, snapshot.vendor, snapshot.variant_labels
        )
        self.composer = BadgeComposer()
        self.offer_loader = offer_loader

        self._selection: Dict[str, str] = {}
        self._state: ResolutionState = self.resolver.resolve({})
        self._fetched_offers: Dict[Optional[int], List[Offer]] = {}
        self._requests: List[OfferRequest] = []
        self._closed = False
        self.last_reconciliation: Optional[Reconciliation] = None

    def __repr__(self):
        return '<SelectionSession product=%s %s %r>' % (
            self.snapshot.product_id, self._state.status, self._selection
        )

    @classmethod
    def from_selection(cls, snapshot: ProductSnapshot, selection: Mapping[str, str], **kwargs):
        """Session restored from a stored selection (query string, request body)."""
        session = cls(snapshot, **kwargs)
        session._apply(session.dictionary.normalize_selection(selection))
        return session

    @classmethod
    def from_query(cls, snapshot: ProductSnapshot, params, **kwargs):
        session = cls(snapshot, **kwargs)
        session._apply(selection_from_query(session.dictionary, params))
        return session

    # ------------------------------------------------------------------
    # Read models
    # ------------------------------------------------------------------

    @property
    def selection(self) -> Dict[str, str]:
        return dict(self._selection)

    @property
    def state(self) -> ResolutionState:
        return self._state

    @property
    def closed(self):
        return self._closed

    @property
    def pricing(self) -> PricingSnapshot:
        state = self._state
        if state.is_resolved:
            return self.projector.project(state.combination)
        if state.is_unresolved:
            return self.projector.project_range(self.snapshot.matrix.filter(state.selection))
        # Unavailable: nothing sellable behind the selection
        return dataclasses.replace(self.projector.project(None), stock=0)

    def option_states(self) -> Dict[str, List[OptionState]]:
        return self.resolver.option_states(self._selection)

    def query_string(self) -> str:
        return selection_to_query(self._selection)

    def offer_view(self) -> OfferView:
        """
        Snapshot offers merged with fetched ones. A fetched offer replaces
        the snapshot offer of the same vendor and variant.
        """
        merged = {}
        for offer in self.snapshot.offers:
            merged.setdefault((offer.vendor.id, offer.variant_id), offer)
        for offer in self._fetched_offers.get(self._state.variant_id, []):
            merged[(offer.vendor.id, offer.variant_id)] = offer
        offers = list(merged.values())
        view = self.aggregator.aggregate(offers, self._state.combination, self.pricing)
        if not self.snapshot.rules.allow_multi_seller:
            view = dataclasses.replace(view, alternates=[], best_price_offer=view.primary)
        return view

    def badges(self, limit: Optional[int] = None, compact: bool = False) -> List[BadgeDisplay]:
        """Product badges merged with the buybox offer's badges."""
        badges = list(self.snapshot.badges)
        primary = self.offer_view().primary
        if primary is not None:
            badges.extend(primary.badges)
        return self.composer.compose(badges, limit=limit, compact=compact)

    def require_combination(self) -> Optional[VariantCombination]:
        """The resolved combination, for callers that cannot work with less."""
        if self._state.is_unresolved:
            raise AmbiguousSelection(self._state.missing_dimensions)
        if self._state.is_unavailable:
            raise NoMatchingVariant(self._state.selection)
        return self._state.combination

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def select_attribute(self, dimension_key: str, value: str) -> ResolutionState:
        """
        Choose ``value`` for a dimension and re-evaluate the selection.

        Unknown dimensions or values leave the state untouched. Choosing the
        value that is already selected clears it when TOGGLE_DESELECT is on.
        """
        normalized = self.dictionary.normalize_selection({dimension_key: value})
        if not normalized:
            return self._state
        key, value = next(iter(normalized.items()))

        if self._selection.get(key) == value:
            if engine_setting('TOGGLE_DESELECT'):
                return self.clear_attribute(key)
            return self._state

        reconciliation = self.resolver.reconcile(self._selection, key, value)
        self.last_reconciliation = reconciliation
        return self._apply(reconciliation.selection)

    def clear_attribute(self, dimension_key: str) -> ResolutionState:
        key = self.dictionary.canonical_key(dimension_key)
        if key is None or key not in self._selection:
            return self._state
        selection = dict(self._selection)
        del selection[key]
        return self._apply(selection)

    def select_variant(self, variant_id) -> ResolutionState:
        """Select every dimension of one combination at once."""
        selection = self.resolver.selection_for_variant(variant_id)
        if selection is None:
            logger.warning(
                'Variant %s is not part of product %s', variant_id, self.snapshot.product_id
            )
            return self._state
        return self._apply(selection)

    def reset(self) -> ResolutionState:
        return self._apply({})

    def _apply(self, selection: Dict[str, str]) -> ResolutionState:
        self._selection = dict(selection)
        self._state = self.resolver.resolve(self._selection)
        return self._state

    # ------------------------------------------------------------------
    # Alternate offers
    # ------------------------------------------------------------------

    async def load_alternate_offers(self) -> Optional[OfferView]:
        """
        Fetch competing offers for the current variant on first demand.

        Returns the refreshed offer view, or None when the session was
        closed before the response arrived (the response is dropped).
        """
        if self._closed:
            return None
        if self.offer_loader is None:
            return self.offer_view()

        variant_id = self._state.variant_id
        if variant_id in self._fetched_offers:
            return self.offer_view()

        handle = self.offer_loader.request(self.snapshot.product_id, variant_id)
        self._requests.append(handle)
        try:
            offers = await handle.wait()
        finally:
            if handle in self._requests:
                self._requests.remove(handle)

        if offers is None or self._closed:
            return None
        if handle.failed:
            return self.offer_view()
        self._fetched_offers[variant_id] = offers
        return self.offer_view()

    def close(self):
        """Tear the session down; in-flight offer responses will be ignored."""
        self._closed = True
        for handle in self._requests:
            handle.invalidate()
        self._requests = []

    # ------------------------------------------------------------------
    # Cart
    # ------------------------------------------------------------------

    def add_to_cart_request(self, quantity: int = 1) -> CartRequest:
        """
        Build the cart request for the current selection.

        Raises:
            AddToCartRejected: selection_required while the selection is
                incomplete, out_of_stock for an unavailable or sold out
                variant, invalid_quantity / insufficient_stock for a bad quantity
        """
        state = self._state
        combination = state.combination
        pricing = self.pricing

        if state.is_unresolved:
            combination = self._fallback_combination()
            if combination is None:
                raise AddToCartRejected(
                    AddToCartRejected.SELECTION_REQUIRED,
                    {'missing_dimensions': list(state.missing_dimensions)},
                )
            pricing = self.projector.project(combination)
        elif state.is_unavailable:
            raise AddToCartRejected(AddToCartRejected.OUT_OF_STOCK, {'unavailable': True})

        if not pricing.in_stock:
            raise AddToCartRejected(
                AddToCartRejected.OUT_OF_STOCK,
                {'variant_id': combination.id if combination else None},
            )

        max_quantity = self.snapshot.rules.max_quantity or engine_setting('MAX_QUANTITY')
        if quantity < 1 or quantity > max_quantity:
            raise AddToCartRejected(
                AddToCartRejected.INVALID_QUANTITY, {'max_quantity': max_quantity}
            )
        if quantity > pricing.stock:
            raise AddToCartRejected(
                AddToCartRejected.INSUFFICIENT_STOCK, {'stock': pricing.stock}
            )

        primary = self.offer_view().primary
        return CartRequest(
            product_id=self.snapshot.product_id,
            variant_id=combination.id if combination else None,
            vendor_id=primary.vendor.id if primary else None,
            quantity=quantity,
            unit_price=pricing.display_price,
            currency=pricing.currency,
        )

    def _fallback_combination(self) -> Optional[VariantCombination]:
        """
        For products that do not require an explicit choice, the default
        combination among the current matches (first in-stock one otherwise).
        """
        if self.snapshot.rules.selection_required:
            return None
        matches = self.snapshot.matrix.filter(self._selection)
        default = self.snapshot.matrix.default
        if default is not None and default.is_in_stock and any(m.id == default.id for m in matches):
            return default
        return next((m for m in matches if m.is_in_stock), None)
