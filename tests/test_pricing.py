from decimal import Decimal

from apps.pdp.domain import BasePricing
from apps.pdp.services import PricingProjector, StockStatus

from .factories import combo


def projector(price='100', original_price=None, threshold=10, **kwargs):
    base = BasePricing(
        price=Decimal(price),
        original_price=Decimal(original_price) if original_price else None,
        **kwargs
    )
    return PricingProjector(base, low_stock_threshold=threshold)


class TestProject:

    def test_sale_price_discount(self):
        pricing = projector().project(combo(1, stock=20, price='100', sale_price='75'))

        assert pricing.display_price == Decimal('75')
        assert pricing.original_price == Decimal('100')
        assert pricing.discount_percent == 25
        assert pricing.savings == Decimal('25')

    def test_no_discount_without_higher_original_price(self):
        pricing = projector().project(combo(1, stock=20, price='120'))

        assert pricing.display_price == Decimal('120')
        assert pricing.original_price is None
        assert pricing.discount_percent is None
        assert not pricing.has_discount

    def test_listed_original_price_wins_when_higher(self):
        pricing = projector(original_price='200').project(
            combo(1, stock=20, price='150', sale_price='100')
        )

        assert pricing.original_price == Decimal('200')
        assert pricing.discount_percent == 50

    def test_discount_rounds_half_up(self):
        assert PricingProjector.discount_percent(Decimal('8'), Decimal('7.96')) == 1
        assert PricingProjector.discount_percent(Decimal('200'), Decimal('199')) == 1
        assert PricingProjector.discount_percent(Decimal('3'), Decimal('2')) == 33

    def test_discount_is_clamped(self):
        assert PricingProjector.discount_percent(Decimal('100'), Decimal('-5')) == 100
        assert PricingProjector.discount_percent(Decimal('0'), Decimal('10')) is None

    def test_combination_without_price_uses_base_price(self):
        pricing = projector(price='80').project(combo(1, stock=3, price=None))

        assert pricing.display_price == Decimal('80')

    def test_base_product(self):
        pricing = projector(price='80', stock=40, currency='USD').project(None)

        assert pricing.display_price == Decimal('80')
        assert pricing.stock == 40
        assert pricing.currency == 'USD'


class TestStock:

    def test_out_of_stock(self):
        pricing = projector().project(combo(1, stock=0))

        assert not pricing.in_stock
        assert not pricing.is_low_stock
        assert pricing.stock_status == StockStatus.OUT_OF_STOCK

    def test_low_stock_carries_remaining_count(self):
        pricing = projector().project(combo(1, stock=3))

        assert pricing.in_stock
        assert pricing.is_low_stock
        assert pricing.low_stock_count == 3
        assert pricing.stock_status == StockStatus.LOW_STOCK

    def test_threshold_is_exclusive(self):
        pricing = projector().project(combo(1, stock=10))

        assert not pricing.is_low_stock
        assert pricing.low_stock_count is None
        assert pricing.stock_status == StockStatus.IN_STOCK

    def test_threshold_comes_from_settings(self, settings):
        settings.PDP_ENGINE = {'LOW_STOCK_THRESHOLD': 3}
        base = BasePricing(price=Decimal('10'))

        pricing = PricingProjector(base).project(combo(1, stock=5))

        assert not pricing.is_low_stock


class TestProjectRange:

    def test_cheapest_is_displayed_with_range(self):
        combinations = [
            combo(1, stock=1, price='110'),
            combo(2, stock=2, price='100', sale_price='75'),
            combo(3, stock=4, price='90'),
        ]

        pricing = projector().project_range(combinations)

        assert pricing.display_price == Decimal('75')
        assert pricing.min_price == Decimal('75')
        assert pricing.max_price == Decimal('110')
        assert pricing.stock == 7
        assert pricing.price_range == '75.00 - 110.00 TRY'

    def test_single_price_range(self):
        pricing = projector().project_range([combo(1, price='50'), combo(2, price='50')])

        assert pricing.price_range == '50.00 TRY'

    def test_empty_range_falls_back_to_base(self):
        pricing = projector(price='60').project_range([])

        assert pricing.display_price == Decimal('60')
        assert pricing.price_range is None
