"""
Canonical attribute dimensions for a product view.

Declared dimension metadata is bound to the keys the combinations actually
use in three phases: exact key match, synonym table, label substring.
Combination keys that no declared dimension claims are turned into
synthesized dimensions as a last resort, and every inference is logged.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from apps.pdp.conf import engine_setting, translate_attribute
from apps.pdp.domain import (
    AttributeDimension,
    AttributeKind,
    AttributeValue,
    CombinationMatrix,
    DeclaredDimension,
)
from apps.pdp.exceptions import MissingDimensionMetadata

logger = logging.getLogger(__name__)

PHASE_EXACT = 'exact'
PHASE_SYNONYM = 'synonym'
PHASE_LABEL = 'label'


def capitalize_value(value: str) -> str:
    """"kahverengi" -> "Kahverengi". The rest of the token is left as is."""
    return value[:1].upper() + value[1:] if value else value


def synonym_groups() -> Dict[str, List[str]]:
    return {
        AttributeKind.COLOR: [s.lower() for s in engine_setting('COLOR_SYNONYMS')],
        AttributeKind.SIZE: [s.lower() for s in engine_setting('SIZE_SYNONYMS')],
    }


def kind_for_key(key: str) -> str:
    lowered = (key or '').lower()
    for kind, synonyms in synonym_groups().items():
        if lowered in synonyms:
            return kind
    return AttributeKind.GENERIC


class AttributeDictionary:
    """
    Ordered, canonical list of a product's attribute dimensions.
    Declared dimensions come first in their display order, inferred ones after.
    """

    def __init__(self, dimensions: Iterable[AttributeDimension] = ()):
        self._dimensions: Tuple[AttributeDimension, ...] = tuple(dimensions)

    def __iter__(self):
        return iter(self._dimensions)

    def __len__(self):
        return len(self._dimensions)

    def __bool__(self):
        return bool(self._dimensions)

    @property
    def keys(self) -> List[str]:
        return [d.key for d in self._dimensions]

    @property
    def inferred_dimensions(self) -> List[AttributeDimension]:
        return [d for d in self._dimensions if d.inferred]

    def get(self, token: str) -> Optional[AttributeDimension]:
        key = self.canonical_key(token)
        if key is None:
            return None
        for dimension in self._dimensions:
            if dimension.key == key:
                return dimension
        return None

    def canonical_key(self, token: str) -> Optional[str]:
        """
        Map a caller supplied dimension token to the combination key.

        Tries the exact key, then declared aliases, then the synonym table
        (so "color" finds a dimension keyed "renk").
        """
        if not token:
            return None
        for dimension in self._dimensions:
            if dimension.key == token:
                return dimension.key
        for dimension in self._dimensions:
            if dimension.addresses(token):
                return dimension.key
        lowered = token.lower()
        for kind, synonyms in synonym_groups().items():
            if lowered not in synonyms:
                continue
            for dimension in self._dimensions:
                if dimension.kind == kind or dimension.key.lower() in synonyms:
                    return dimension.key
        return None

    def is_complete(self, selection: Mapping[str, str]) -> bool:
        return all(key in selection for key in self.keys)

    def missing_dimensions(self, selection: Mapping[str, str]) -> List[str]:
        return [key for key in self.keys if key not in selection]

    def normalize_selection(self, selection: Mapping[str, str]) -> Dict[str, str]:
        """
        Canonicalize keys and drop entries that name no known dimension or
        value. Insertion order of the input is kept.
        """
        normalized = {}
        for token, value in (selection or {}).items():
            dimension = self.get(token)
            if dimension is None:
                logger.warning('Ignoring selection for unknown dimension %r', token)
                continue
            if value is None or value == '':
                continue
            if dimension.values and dimension.get_value(value) is None:
                logger.warning(
                    'Ignoring unknown value %r for dimension %r', value, dimension.key
                )
                continue
            normalized[dimension.key] = value
        return normalized

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def build(
        cls,
        declared: Sequence[DeclaredDimension],
        matrix: CombinationMatrix,
    ) -> 'AttributeDictionary':
        """
        Build the dictionary from declared metadata and the combination matrix.

        Args:
            declared: Dimension metadata from the snapshot, possibly incomplete
            matrix: The product's combination matrix

        Returns:
            AttributeDictionary with declared dimensions first, then any
            dimensions inferred from unclaimed combination keys
        """
        combination_keys = matrix.attribute_keys()
        claimed: List[str] = []
        dimensions: List[AttributeDimension] = []

        ordered = sorted(
            enumerate(declared),
            key=lambda pair: (pair[1].display_order, pair[0])
        )
        for _, item in ordered:
            try:
                key, phase = cls._bind(item, combination_keys, claimed)
            except MissingDimensionMetadata as exc:
                if item.key and item.key not in claimed:
                    # Explicit metadata wins even if nothing varies on it
                    logger.warning('%s; keeping declared key', exc)
                    claimed.append(item.key)
                    dimensions.append(
                        cls._from_declared(item, item.key, matrix, len(dimensions))
                    )
                else:
                    logger.warning('%s; leaving it to inference', exc)
                continue

            if phase != PHASE_EXACT:
                logger.info(
                    'Bound declared dimension key=%r label=%r to combination key %r (%s match)',
                    item.key, item.label, key, phase
                )
            claimed.append(key)
            dimensions.append(cls._from_declared(item, key, matrix, len(dimensions)))

        unclaimed = [k for k in combination_keys if k not in claimed]
        # Most widely used keys first, ties by first appearance
        unclaimed.sort(key=lambda k: (-matrix.key_frequency(k), combination_keys.index(k)))
        for key in unclaimed:
            dimension = cls._infer(key, matrix, len(dimensions))
            logger.info(
                'Inferred dimension %r (%d values) from %d of %d combinations',
                key, len(dimension.values), matrix.key_frequency(key), len(matrix)
            )
            dimensions.append(dimension)

        return cls(dimensions)

    @staticmethod
    def _bind(
        declared: DeclaredDimension,
        combination_keys: Sequence[str],
        claimed: Sequence[str],
    ) -> Tuple[str, str]:
        """Return (combination key, phase) or raise MissingDimensionMetadata."""
        candidates = [k for k in combination_keys if k not in claimed]
        declared_key = (declared.key or '').lower()
        label = (declared.label or '').lower()

        if declared_key:
            for key in candidates:
                if key.lower() == declared_key:
                    return key, PHASE_EXACT

        groups = synonym_groups()
        group = None
        for kind, synonyms in groups.items():
            if declared_key in synonyms or declared.kind == kind:
                group = synonyms
                break
        if group:
            for key in candidates:
                if key.lower() in group:
                    return key, PHASE_SYNONYM

        if label:
            for key in candidates:
                if len(key) > 1 and key.lower() in label:
                    return key, PHASE_LABEL
            for synonyms in groups.values():
                if any(word in label for word in synonyms):
                    for key in candidates:
                        if key.lower() in synonyms:
                            return key, PHASE_LABEL

        raise MissingDimensionMetadata(declared.key, declared.label)

    @staticmethod
    def _from_declared(
        declared: DeclaredDimension,
        key: str,
        matrix: CombinationMatrix,
        display_order: int,
    ) -> AttributeDimension:
        values = list(declared.values)
        declared_tokens = {v.value for v in values}
        for token in matrix.values_for(key):
            if token not in declared_tokens:
                logger.debug('Dimension %r: adding undeclared value %r', key, token)
                values.append(_value_from_matrix(key, token, matrix))

        if declared.kind in AttributeKind.values:
            kind = declared.kind
        else:
            kind = kind_for_key(key)
            if kind == AttributeKind.GENERIC and declared.key:
                kind = kind_for_key(declared.key)
        aliases = ()
        if declared.key and declared.key != key:
            aliases = (declared.key,)

        return AttributeDimension(
            key=key,
            label=declared.label or translate_attribute(key),
            kind=kind,
            values=tuple(values),
            display_order=display_order,
            aliases=aliases,
        )

    @staticmethod
    def _infer(key: str, matrix: CombinationMatrix, display_order: int) -> AttributeDimension:
        return AttributeDimension(
            key=key,
            label=translate_attribute(key),
            kind=kind_for_key(key),
            values=tuple(_value_from_matrix(key, token, matrix) for token in matrix.values_for(key)),
            display_order=display_order,
            inferred=True,
        )


def _value_from_matrix(key: str, token: str, matrix: CombinationMatrix) -> AttributeValue:
    carrying = [c for c in matrix if c.attributes.get(key) == token]
    stock = sum(c.stock for c in carrying)
    return AttributeValue(
        value=token,
        label=capitalize_value(token),
        available=stock > 0,
        stock=stock,
    )
