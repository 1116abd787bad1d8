from decimal import Decimal

import pytest

from apps.pdp.domain import CombinationMatrix, VariantCombination
from apps.pdp.exceptions import InvalidSnapshot

from .factories import combo


class TestCombinationMatrix:

    def test_duplicate_ids_are_rejected(self):
        with pytest.raises(InvalidSnapshot):
            CombinationMatrix([combo(1, color='red'), combo(1, color='blue')])

    def test_duplicate_attribute_tuples_are_rejected(self):
        with pytest.raises(InvalidSnapshot):
            CombinationMatrix([
                combo(1, color='red', size='M'),
                combo(2, size='M', color='red'),
            ])

    def test_aggregates(self, tee):
        matrix = tee.matrix

        assert matrix.min_price == Decimal('75')
        assert matrix.max_price == Decimal('110')
        assert matrix.total_stock == 13
        assert matrix.attribute_keys() == ['color', 'size']
        assert matrix.values_for('size') == ['S', 'M', 'L']

    def test_filter_treats_missing_dimensions_as_wildcards(self, tee):
        assert [c.id for c in tee.matrix.filter({'size': 'M'})] == [11, 13]
        assert tee.matrix.filter({'size': 'XL'}) == []

    def test_default_combination(self):
        matrix = CombinationMatrix([combo(1, color='red'), combo(2, color='blue')])
        flagged = CombinationMatrix([
            combo(1, color='red'),
            VariantCombination(id=2, attributes={'color': 'blue'}, is_default=True),
        ])

        assert matrix.default.id == 1
        assert flagged.default.id == 2

    def test_combination_display(self, tee):
        combination = tee.matrix.get(10)

        assert combination.is_on_sale
        assert combination.effective_price == Decimal('75')
        assert combination.display_value == 'red / S'
        assert 10 in tee.matrix
        assert 99 not in tee.matrix
