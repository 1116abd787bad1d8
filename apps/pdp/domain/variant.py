from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from apps.pdp.exceptions import InvalidSnapshot


@dataclass(frozen=True)
class VariantCombination:
    """
    One concrete sellable point of the attribute space, with its own
    price, stock and image override.
    """
    id: int
    attributes: Mapping[str, str] = field(default_factory=dict)
    price: Optional[Decimal] = None
    sale_price: Optional[Decimal] = None
    stock: int = 0
    image_ref: Optional[str] = None
    sku: str = ''
    title: str = ''
    is_default: bool = False

    def __str__(self):
        return self.title or self.sku or 'Variant %s' % self.id

    @property
    def attribute_tuple(self) -> Tuple[Tuple[str, str], ...]:
        return tuple(sorted(self.attributes.items()))

    @property
    def is_in_stock(self):
        return self.stock > 0

    @property
    def is_on_sale(self):
        return bool(
            self.sale_price is not None
            and self.price is not None
            and self.sale_price < self.price
        )

    @property
    def effective_price(self) -> Optional[Decimal]:
        return self.sale_price if self.sale_price is not None else self.price

    @property
    def display_value(self):
        """Human readable value, e.g. "Kırmızı / M"."""
        if self.title:
            return self.title
        if self.attributes:
            return ' / '.join(self.attributes.values())
        return 'Variant %s' % self.id

    def get_option_value(self, attribute_key: str) -> Optional[str]:
        return self.attributes.get(attribute_key)

    def matches(self, selection: Mapping[str, str]) -> bool:
        """Dimensions absent from ``selection`` are wildcards."""
        return all(
            self.attributes.get(key) == value
            for key, value in selection.items()
        )


class CombinationMatrix:
    """
    The sparse set of sellable attribute tuples of a product.
    No two combinations share an id or an identical attribute tuple.
    """

    def __init__(self, combinations=()):
        self._combinations: Tuple[VariantCombination, ...] = tuple(combinations)
        self._by_id: Dict[int, VariantCombination] = {}
        seen_tuples = {}
        for combination in self._combinations:
            if combination.id in self._by_id:
                raise InvalidSnapshot('Duplicate variant id %s' % combination.id)
            attribute_tuple = combination.attribute_tuple
            if attribute_tuple in seen_tuples:
                raise InvalidSnapshot(
                    'Variants %s and %s share attributes %r' % (
                        seen_tuples[attribute_tuple], combination.id, dict(attribute_tuple)
                    )
                )
            seen_tuples[attribute_tuple] = combination.id
            self._by_id[combination.id] = combination

    def __iter__(self) -> Iterator[VariantCombination]:
        return iter(self._combinations)

    def __len__(self):
        return len(self._combinations)

    def __contains__(self, variant_id):
        return variant_id in self._by_id

    def __bool__(self):
        return bool(self._combinations)

    @property
    def ids(self):
        return list(self._by_id)

    def get(self, variant_id) -> Optional[VariantCombination]:
        return self._by_id.get(variant_id)

    @property
    def default(self) -> Optional[VariantCombination]:
        """Combination flagged as default, else the first one."""
        for combination in self._combinations:
            if combination.is_default:
                return combination
        return self._combinations[0] if self._combinations else None

    def attribute_keys(self) -> List[str]:
        """Every key used by any combination, in order of first appearance."""
        keys = []
        for combination in self._combinations:
            for key in combination.attributes:
                if key not in keys:
                    keys.append(key)
        return keys

    def key_frequency(self, key: str) -> int:
        """How many combinations carry ``key``."""
        return sum(1 for c in self._combinations if key in c.attributes)

    def values_for(self, key: str, combinations=None) -> List[str]:
        """Distinct values of ``key``, in order of first appearance."""
        values = []
        for combination in (self._combinations if combinations is None else combinations):
            value = combination.attributes.get(key)
            if value is not None and value not in values:
                values.append(value)
        return values

    def filter(self, selection: Mapping[str, str]) -> List[VariantCombination]:
        return [c for c in self._combinations if c.matches(selection)]

    # Aggregates

    @property
    def min_price(self) -> Optional[Decimal]:
        prices = [c.effective_price for c in self._combinations if c.effective_price is not None]
        return min(prices) if prices else None

    @property
    def max_price(self) -> Optional[Decimal]:
        prices = [c.effective_price for c in self._combinations if c.effective_price is not None]
        return max(prices) if prices else None

    @property
    def total_stock(self):
        return sum(c.stock for c in self._combinations)
