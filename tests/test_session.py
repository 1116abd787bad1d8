"""End to end behaviour of a product view's selection session."""

import asyncio
import dataclasses
import logging
from decimal import Decimal

import pytest

from apps.pdp.domain import BasePricing, PurchaseRules
from apps.pdp.exceptions import (
    AddToCartRejected,
    AmbiguousSelection,
    NoMatchingVariant,
    OfferFetchFailed,
)
from apps.pdp.services import OfferLoader, ResolutionStatus, SelectionSession

from .factories import combo, make_offer, make_snapshot


class TestRedShirtScenario:

    def test_select_color_then_sizes(self, red_shirt):
        session = SelectionSession(red_shirt)

        state = session.select_attribute('color', 'red')
        assert state.status == ResolutionStatus.UNRESOLVED

        state = session.select_attribute('size', 'L')
        assert state.status == ResolutionStatus.RESOLVED
        assert state.variant_id == 2
        assert session.pricing.in_stock is False

        state = session.select_attribute('size', 'M')
        assert state.status == ResolutionStatus.RESOLVED
        assert state.variant_id == 1
        assert session.pricing.in_stock is True
        assert session.pricing.display_price == Decimal('120')

    def test_sold_out_variant_is_rejected_at_cart(self, red_shirt):
        session = SelectionSession.from_selection(red_shirt, {'color': 'red', 'size': 'L'})

        with pytest.raises(AddToCartRejected) as excinfo:
            session.add_to_cart_request()

        assert excinfo.value.reason == AddToCartRejected.OUT_OF_STOCK


class TestCommands:

    def test_synonym_dimension_token(self, red_shirt):
        session = SelectionSession(red_shirt)

        session.select_attribute('renk', 'red')

        assert session.selection == {'color': 'red'}

    def test_unknown_value_leaves_state_untouched(self, red_shirt):
        session = SelectionSession(red_shirt)
        before = session.state

        assert session.select_attribute('size', 'XXL') is before
        assert session.selection == {}

    def test_reselecting_toggles_off(self, red_shirt):
        session = SelectionSession(red_shirt)
        session.select_attribute('size', 'M')

        session.select_attribute('size', 'M')

        assert session.selection == {}
        assert session.state.is_unresolved

    def test_toggle_can_be_disabled(self, red_shirt, settings):
        settings.PDP_ENGINE = {'TOGGLE_DESELECT': False}
        session = SelectionSession(red_shirt)
        session.select_attribute('size', 'M')

        session.select_attribute('size', 'M')

        assert session.selection == {'size': 'M'}

    def test_select_variant(self, tee):
        session = SelectionSession(tee)

        state = session.select_variant(12)

        assert state.variant_id == 12
        assert session.selection == {'color': 'red', 'size': 'L'}

    def test_select_unknown_variant(self, tee):
        session = SelectionSession(tee)

        assert session.select_variant(404).is_unresolved

    def test_clear_and_reset(self, tee):
        session = SelectionSession.from_selection(tee, {'color': 'red', 'size': 'L'})

        session.clear_attribute('size')
        assert session.selection == {'color': 'red'}

        session.reset()
        assert session.selection == {}

    def test_changing_color_repairs_size(self, tee):
        session = SelectionSession.from_selection(tee, {'color': 'red', 'size': 'S'})

        session.select_attribute('color', 'blue')

        assert session.selection == {'color': 'blue', 'size': 'M'}
        assert session.last_reconciliation.auto_picked == {'size': 'M'}

    def test_query_round_trip(self, tee):
        session = SelectionSession.from_selection(tee, {'color': 'red', 'size': 'L'})

        restored = SelectionSession.from_query(tee, session.query_string())

        assert restored.state.variant_id == 12

    def test_require_combination(self, tee):
        with pytest.raises(AmbiguousSelection):
            SelectionSession.from_selection(tee, {'color': 'red'}).require_combination()
        with pytest.raises(NoMatchingVariant):
            SelectionSession.from_selection(tee, {'color': 'blue', 'size': 'S'}).require_combination()


class TestReadModels:

    def test_unresolved_pricing_shows_range(self, tee):
        session = SelectionSession.from_selection(tee, {'color': 'red'})

        pricing = session.pricing

        assert pricing.display_price == Decimal('75')
        assert pricing.min_price == Decimal('75')
        assert pricing.max_price == Decimal('110')
        assert pricing.stock == 6

    def test_unavailable_pricing_has_no_stock(self, tee):
        session = SelectionSession.from_selection(tee, {'color': 'blue', 'size': 'S'})

        assert session.state.is_unavailable
        assert not session.pricing.in_stock

    def test_rules_override_low_stock_threshold(self, tee_matrix):
        snapshot = make_snapshot(tee_matrix, rules=PurchaseRules(low_stock_threshold=3))
        session = SelectionSession.from_selection(snapshot, {'color': 'red', 'size': 'S'})

        assert not session.pricing.is_low_stock

    def test_badges_merge_product_and_offer_badges(self, tee):
        session = SelectionSession(tee)

        keys = [b.key for b in session.badges()]

        assert keys == ['best-seller', 'free-shipping']
        assert [b.key for b in session.badges(compact=True, limit=1)] == ['best-seller']

    def test_single_seller_products_hide_alternates(self, tee_matrix, primary_vendor):
        snapshot = make_snapshot(
            tee_matrix,
            vendor=primary_vendor,
            offers=(make_offer(5, '80', variant_id=99, variant_value='Yeşil / M'),),
            rules=PurchaseRules(allow_multi_seller=False),
        )
        session = SelectionSession.from_selection(snapshot, {'color': 'blue'})

        view = session.offer_view()

        assert view.alternates == []
        assert view.primary.vendor == primary_vendor


class TestAddToCart:

    def test_incomplete_selection_requires_choice(self, tee):
        session = SelectionSession.from_selection(tee, {'color': 'red'})

        with pytest.raises(AddToCartRejected) as excinfo:
            session.add_to_cart_request()

        assert excinfo.value.reason == AddToCartRejected.SELECTION_REQUIRED
        assert excinfo.value.detail == {'missing_dimensions': ['size']}
        assert excinfo.value.message == 'Lütfen bir seçenek belirleyin.'

    def test_unavailable_selection_is_out_of_stock(self, tee):
        session = SelectionSession.from_selection(tee, {'color': 'blue', 'size': 'S'})

        with pytest.raises(AddToCartRejected) as excinfo:
            session.add_to_cart_request()

        assert excinfo.value.reason == AddToCartRejected.OUT_OF_STOCK

    def test_quantity_limits(self, tee):
        session = SelectionSession.from_selection(tee, {'color': 'blue', 'size': 'M'})

        with pytest.raises(AddToCartRejected) as excinfo:
            session.add_to_cart_request(0)
        assert excinfo.value.reason == AddToCartRejected.INVALID_QUANTITY

        with pytest.raises(AddToCartRejected) as excinfo:
            session.add_to_cart_request(6)
        assert excinfo.value.detail == {'max_quantity': 5}

    def test_quantity_above_stock(self, tee):
        session = SelectionSession.from_selection(tee, {'color': 'red', 'size': 'L'})

        with pytest.raises(AddToCartRejected) as excinfo:
            session.add_to_cart_request(3)

        assert excinfo.value.reason == AddToCartRejected.INSUFFICIENT_STOCK

    def test_accepted_request(self, tee, primary_vendor):
        session = SelectionSession.from_selection(tee, {'color': 'red', 'size': 'S'})

        cart_request = session.add_to_cart_request(2)

        assert cart_request.variant_id == 10
        assert cart_request.vendor_id == primary_vendor.id
        assert cart_request.unit_price == Decimal('75')
        assert cart_request.total_price == Decimal('150')

    def test_optional_selection_falls_back_to_default(self, tee_matrix):
        snapshot = make_snapshot(tee_matrix, rules=PurchaseRules(selection_required=False))
        session = SelectionSession(snapshot)

        cart_request = session.add_to_cart_request()

        assert cart_request.variant_id == 10

    def test_product_without_variants(self):
        snapshot = make_snapshot(base_pricing=BasePricing(price=Decimal('45'), stock=2))

        cart_request = SelectionSession(snapshot).add_to_cart_request()

        assert cart_request.variant_id is None
        assert cart_request.unit_price == Decimal('45')


class SlowFetcher:

    def __init__(self):
        self.release = asyncio.Event()
        self.calls = 0

    async def fetch_offers(self, product_id, variant_id=None):
        self.calls += 1
        await self.release.wait()
        return [make_offer(5, '95', variant_id=77, variant_value='Yeşil / M')]


class TestAlternateOffers:

    @pytest.mark.asyncio
    async def test_alternates_are_loaded_on_demand(self, tee):
        fetcher = SlowFetcher()
        fetcher.release.set()
        session = SelectionSession.from_selection(
            tee, {'color': 'blue'}, offer_loader=OfferLoader(fetcher)
        )
        assert session.offer_view().alternates == []

        view = await session.load_alternate_offers()

        assert [o.variant_id for o in view.alternates] == [77]
        assert view.total_sellers == 2

        await session.load_alternate_offers()
        assert fetcher.calls == 1

    @pytest.mark.asyncio
    async def test_response_after_close_is_dropped(self, tee):
        fetcher = SlowFetcher()
        session = SelectionSession.from_selection(
            tee, {'color': 'blue'}, offer_loader=OfferLoader(fetcher)
        )

        pending = asyncio.ensure_future(session.load_alternate_offers())
        await asyncio.sleep(0)
        session.close()
        fetcher.release.set()

        assert await pending is None
        assert session.closed
        assert session.offer_view().alternates == []

    @pytest.mark.asyncio
    async def test_closed_session_does_not_fetch(self, tee):
        fetcher = SlowFetcher()
        session = SelectionSession(tee, offer_loader=OfferLoader(fetcher))
        session.close()

        assert await session.load_alternate_offers() is None
        assert fetcher.calls == 0


class FlakyFetcher:
    """Fails the first call, then returns one alternate and the buybox offer."""

    def __init__(self, winner):
        self.winner = winner
        self.calls = 0

    async def fetch_offers(self, product_id, variant_id=None):
        self.calls += 1
        if self.calls == 1:
            raise OfferFetchFailed(product_id, variant_id, 'HTTP 503')
        return [self.winner, make_offer(5, '95', variant_id=77, variant_value='Yeşil / M')]


class TestAlternateOfferRetries:

    @pytest.fixture
    def winner(self):
        return make_offer(9, '105', variant_id=12, is_buybox_winner=True)

    @pytest.mark.asyncio
    async def test_failed_fetch_is_retried(self, tee, winner):
        fetcher = FlakyFetcher(winner)
        session = SelectionSession.from_selection(
            tee, {'color': 'red', 'size': 'L'}, offer_loader=OfferLoader(fetcher)
        )

        first = await session.load_alternate_offers()
        assert first.alternates == []

        second = await session.load_alternate_offers()

        assert fetcher.calls == 2
        assert [o.variant_id for o in second.alternates] == [77]

    @pytest.mark.asyncio
    async def test_fetched_buybox_offer_replaces_snapshot_copy(self, tee, winner, caplog):
        fetcher = FlakyFetcher(winner)
        fetcher.calls = 1
        snapshot = dataclasses.replace(tee, offers=(winner,))
        session = SelectionSession.from_selection(
            snapshot, {'color': 'red', 'size': 'L'}, offer_loader=OfferLoader(fetcher)
        )

        with caplog.at_level(logging.WARNING, logger='apps.pdp'):
            view = await session.load_alternate_offers()

        assert view.primary == winner
        assert 'buybox winners' not in caplog.text
