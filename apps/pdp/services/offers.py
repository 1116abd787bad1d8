"""
Buybox resolution and alternate vendor offers.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional

from apps.pdp.domain import CombinationMatrix, Offer, OfferView, VariantCombination, Vendor

from .pricing import PricingSnapshot

logger = logging.getLogger(__name__)


def alternate_sort_key(offer: Offer):
    """Fastest shipping first, then best rated vendor, then cheapest."""
    days = offer.shipping_estimate_days
    return (days is None, days or 0, -offer.vendor.rating, offer.price)


class OfferAggregator:
    """
    Merges the primary vendor's combinations with competing vendor offers.

    Alternates are offers for variants the primary vendor does not sell at
    all, not cheaper duplicates of variants it already has.
    """

    def __init__(
        self,
        matrix: CombinationMatrix,
        primary_vendor: Optional[Vendor] = None,
        variant_labels: Optional[Mapping[int, str]] = None,
    ):
        self.matrix = matrix
        self.primary_vendor = primary_vendor
        self.variant_labels = dict(variant_labels or {})

    def aggregate(
        self,
        offers: Iterable[Offer],
        combination: Optional[VariantCombination] = None,
        pricing: Optional[PricingSnapshot] = None,
    ) -> OfferView:
        """
        Build the offer view.

        Args:
            offers: Every known offer for the product, any vendor
            combination: The resolved combination, if any
            pricing: Its pricing, used when the primary vendor has no offer record

        Returns:
            OfferView with the buybox offer and the sorted, deduplicated alternates
        """
        offers = list(offers)
        primary = self.primary_offer(offers, combination, pricing)
        alternates = self.alternate_offers(offers, primary)

        candidates = ([primary] if primary else []) + alternates
        best_price_offer = min(candidates, key=lambda o: o.price) if candidates else None

        vendor_ids = {o.vendor.id for o in offers}
        if primary is not None:
            vendor_ids.add(primary.vendor.id)

        return OfferView(
            primary=primary,
            alternates=alternates,
            best_price_offer=best_price_offer,
            total_sellers=len(vendor_ids),
        )

    def primary_offer(
        self,
        offers: List[Offer],
        combination: Optional[VariantCombination] = None,
        pricing: Optional[PricingSnapshot] = None,
    ) -> Optional[Offer]:
        """
        The offer flagged as buybox winner, else the primary vendor's own.
        """
        winners = [o for o in offers if o.is_buybox_winner]
        if len(winners) > 1:
            logger.warning(
                'Found %d buybox winners (%s); using the first',
                len(winners), ', '.join(str(o.vendor.id) for o in winners)
            )
        if winners:
            return winners[0]

        if self.primary_vendor is None:
            return None

        own = [o for o in offers if o.vendor.id == self.primary_vendor.id]
        variant_id = combination.id if combination else None
        for offer in own:
            if offer.variant_id == variant_id:
                return offer
        for offer in own:
            if offer.variant_id is None:
                return offer
        if own:
            return own[0]

        if pricing is None:
            return None
        return Offer(
            vendor=self.primary_vendor,
            price=pricing.display_price,
            original_price=pricing.original_price,
            variant_id=variant_id,
            variant_value=combination.display_value if combination else '',
            stock=pricing.stock,
        )

    def alternate_offers(self, offers: List[Offer], primary: Optional[Offer] = None) -> List[Offer]:
        primary_vendor_id = self.primary_vendor.id if self.primary_vendor else None

        best: Dict[str, Offer] = {}
        for offer in offers:
            if offer is primary or offer.vendor.id == primary_vendor_id:
                continue
            # Base-product offers and variants the primary vendor sells are not alternates
            if offer.variant_id is None or offer.variant_id in self.matrix:
                continue
            value = self.display_value(offer)
            current = best.get(value)
            if current is None or offer.price < current.price:
                best[value] = offer

        return sorted(best.values(), key=alternate_sort_key)

    def display_value(self, offer: Offer) -> str:
        if offer.variant_value:
            return offer.variant_value
        if offer.variant_id in self.variant_labels:
            return self.variant_labels[offer.variant_id]
        return 'Variant %s' % offer.variant_id
