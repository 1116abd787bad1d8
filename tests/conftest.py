"""Shared snapshot fixtures for the engine tests."""

from decimal import Decimal

import pytest

from apps.pdp.domain import (
    AttributeValue,
    Badge,
    BasePricing,
    DeclaredDimension,
    PurchaseRules,
    Vendor,
)

from .factories import combo, make_snapshot


@pytest.fixture
def primary_vendor():
    return Vendor(id=1, name='Moda Store', slug='moda-store', rating=Decimal('4.8'), is_official=True)


@pytest.fixture
def color_size_dimensions():
    return (
        DeclaredDimension(
            key='color', label='Renk', kind='color',
            values=(
                AttributeValue('red', 'Kırmızı', '#FF0000'),
                AttributeValue('blue', 'Mavi', '#0000FF'),
            ),
        ),
        DeclaredDimension(key='size', label='Beden', kind='size', display_order=1),
    )


@pytest.fixture
def red_shirt(color_size_dimensions):
    """Red in M (in stock) and L (sold out)."""
    return make_snapshot(
        combinations=[
            combo(1, stock=5, color='red', size='M'),
            combo(2, stock=0, color='red', size='L'),
        ],
        dimensions=color_size_dimensions,
    )


@pytest.fixture
def tee_matrix():
    """Two colors by three sizes, with holes and different prices."""
    return [
        combo(10, stock=4, price='100', sale_price='75', color='red', size='S'),
        combo(11, stock=0, price='100', color='red', size='M'),
        combo(12, stock=2, price='110', color='red', size='L'),
        combo(13, stock=7, price='90', color='blue', size='M'),
    ]


@pytest.fixture
def tee(tee_matrix, color_size_dimensions, primary_vendor):
    return make_snapshot(
        combinations=tee_matrix,
        dimensions=color_size_dimensions,
        vendor=primary_vendor,
        base_pricing=BasePricing(price=Decimal('100'), original_price=Decimal('150'), stock=13),
        badges=(
            Badge('free-shipping', 'Kargo Bedava', priority=5, icon='truck', color='green'),
            Badge('best-seller', 'Çok Satan', priority=9, icon='trophy', color='orange'),
        ),
        rules=PurchaseRules(max_quantity=5),
    )
