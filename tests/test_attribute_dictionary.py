"""Tests for binding declared dimension metadata to combination keys."""

import logging

from apps.pdp.domain import AttributeKind, AttributeValue, CombinationMatrix, DeclaredDimension
from apps.pdp.services import AttributeDictionary

from .factories import combo


def build(declared, combinations):
    return AttributeDictionary.build(declared, CombinationMatrix(combinations))


class TestBinding:

    def test_exact_key_match(self, color_size_dimensions):
        dictionary = build(color_size_dimensions, [combo(1, color='red', size='M')])

        assert dictionary.keys == ['color', 'size']
        assert not dictionary.inferred_dimensions

    def test_declared_color_binds_to_renk(self):
        declared = [DeclaredDimension(key='color', label='Color')]
        dictionary = build(declared, [
            combo(1, renk='kirmizi'),
            combo(2, renk='siyah'),
        ])

        dimension = dictionary.get('renk')
        assert dictionary.keys == ['renk']
        assert dimension.kind == AttributeKind.COLOR
        assert dimension.aliases == ('color',)
        assert dimension.value_tokens == ['kirmizi', 'siyah']

    def test_declared_kind_binds_to_synonym(self):
        declared = [DeclaredDimension(label='Seçenek', kind='color')]
        dictionary = build(declared, [combo(1, rengi='mavi')])

        assert dictionary.keys == ['rengi']
        assert dictionary.get('rengi').label == 'Seçenek'

    def test_label_substring_match(self):
        declared = [DeclaredDimension(key='', label='Depolama Kapasitesi')]
        dictionary = build(declared, [
            combo(1, kapasite='128GB'),
            combo(2, kapasite='256GB'),
        ])

        assert dictionary.keys == ['kapasite']
        assert not dictionary.inferred_dimensions

    def test_label_synonym_word_match(self):
        declared = [DeclaredDimension(key='x1', label='Ürün Rengi')]
        dictionary = build(declared, [combo(1, renk='siyah')])

        assert dictionary.keys == ['renk']

    def test_declared_values_come_first_and_matrix_values_are_appended(self):
        declared = [DeclaredDimension(
            key='color', values=(AttributeValue('blue', 'Mavi', '#0000FF'),)
        )]
        dictionary = build(declared, [combo(1, color='red'), combo(2, color='blue')])

        dimension = dictionary.get('color')
        assert dimension.value_tokens == ['blue', 'red']
        assert dimension.get_value('blue').label == 'Mavi'
        assert dimension.get_value('red').label == 'Red'

    def test_display_order_controls_dimension_order(self):
        declared = [
            DeclaredDimension(key='size', display_order=2),
            DeclaredDimension(key='color', display_order=1),
        ]
        dictionary = build(declared, [combo(1, size='M', color='red')])

        assert dictionary.keys == ['color', 'size']


class TestInference:

    def test_unclaimed_key_is_inferred_with_capitalized_labels(self):
        declared = [DeclaredDimension(key='size')]
        dictionary = build(declared, [
            combo(1, size='M', renk='kahverengi'),
            combo(2, size='L', renk='siyah'),
        ])

        inferred = dictionary.inferred_dimensions
        assert [d.key for d in inferred] == ['renk']
        assert inferred[0].label == 'Renk'
        assert inferred[0].kind == AttributeKind.COLOR
        assert [v.label for v in inferred[0].values] == ['Kahverengi', 'Siyah']

    def test_inferred_value_availability_follows_stock(self):
        dictionary = build([], [
            combo(1, stock=0, malzeme='pamuk'),
            combo(2, stock=3, malzeme='keten'),
        ])

        dimension = dictionary.get('malzeme')
        assert dimension.get_value('pamuk').available is False
        assert dimension.get_value('keten').stock == 3

    def test_more_frequent_keys_are_inferred_first(self):
        dictionary = build([], [
            combo(1, boy='uzun', desen='duz'),
            combo(2, desen='cizgili'),
            combo(3, desen='ekose'),
        ])

        assert dictionary.keys == ['desen', 'boy']

    def test_inference_is_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger='apps.pdp'):
            build([], [combo(1, renk='siyah')])

        assert "Inferred dimension 'renk'" in caplog.text

    def test_explicit_metadata_wins_over_inference(self):
        declared = [DeclaredDimension(key='beden', label='Beden Seçimi', kind='size')]
        dictionary = build(declared, [combo(1, beden='38'), combo(2, beden='40')])

        dimension = dictionary.get('beden')
        assert dimension.inferred is False
        assert dimension.label == 'Beden Seçimi'

    def test_unbindable_declared_key_is_kept(self, caplog):
        declared = [DeclaredDimension(key='garanti', label='Garanti')]
        with caplog.at_level(logging.WARNING, logger='apps.pdp'):
            dictionary = build(declared, [combo(1, color='red')])

        assert dictionary.keys == ['garanti', 'color']
        assert 'keeping declared key' in caplog.text


class TestLookup:

    def test_canonical_key_accepts_synonyms(self):
        dictionary = build([], [combo(1, renk='siyah', beden='M')])

        assert dictionary.canonical_key('renk') == 'renk'
        assert dictionary.canonical_key('color') == 'renk'
        assert dictionary.canonical_key('Size') == 'beden'
        assert dictionary.canonical_key('weight') is None

    def test_normalize_selection_drops_unknown_entries(self, caplog):
        dictionary = build([], [combo(1, renk='siyah', beden='M')])

        with caplog.at_level(logging.WARNING, logger='apps.pdp'):
            selection = dictionary.normalize_selection({
                'color': 'siyah', 'beden': 'XXL', 'marka': 'x',
            })

        assert selection == {'renk': 'siyah'}
        assert "unknown dimension 'marka'" in caplog.text

    def test_missing_dimensions(self):
        dictionary = build([], [combo(1, renk='siyah', beden='M')])

        assert dictionary.missing_dimensions({'renk': 'siyah'}) == ['beden']
        assert dictionary.is_complete({'renk': 'siyah', 'beden': 'M'})
