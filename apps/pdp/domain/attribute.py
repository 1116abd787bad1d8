from dataclasses import dataclass, field
from typing import Optional, Tuple

from django.db import models


class AttributeKind(models.TextChoices):
    COLOR = 'color', 'Renk'
    SIZE = 'size', 'Beden'
    GENERIC = 'generic', 'Genel'


@dataclass(frozen=True)
class AttributeValue:
    """
    One legal value of a dimension.
    Examples: "kirmizi" (label "Kırmızı", color_hex "#FF0000"), "M".
    """
    value: str
    label: str = ''
    color_hex: Optional[str] = None
    available: bool = True
    stock: Optional[int] = None

    def get_display_value(self):
        return self.label or self.value


@dataclass(frozen=True)
class AttributeDimension:
    """
    An axis of product variation (Color, Size, Capacity, ...).

    ``key`` is the token the combinations use for this dimension.
    ``aliases`` holds other tokens that address it (the declared key when it
    differed, e.g. "color" declared while combinations say "renk").
    ``inferred`` marks dimensions synthesized from the combinations because
    no metadata described them.
    """
    key: str
    label: str
    kind: str = AttributeKind.GENERIC
    values: Tuple[AttributeValue, ...] = ()
    display_order: int = 0
    aliases: Tuple[str, ...] = ()
    inferred: bool = False

    def __str__(self):
        return self.label or self.key

    @property
    def is_color(self):
        return self.kind == AttributeKind.COLOR

    @property
    def value_tokens(self):
        return [v.value for v in self.values]

    def get_value(self, token: str) -> Optional[AttributeValue]:
        for value in self.values:
            if value.value == token:
                return value
        return None

    def addresses(self, token: str) -> bool:
        """True when ``token`` is this dimension's key or one of its aliases."""
        lowered = (token or '').lower()
        return lowered == self.key.lower() or lowered in {a.lower() for a in self.aliases}


@dataclass(frozen=True)
class DeclaredDimension:
    """
    Raw dimension metadata as the snapshot declares it.
    Any field may be missing or use an unexpected token ("renk" vs "color").
    """
    key: str = ''
    label: str = ''
    kind: str = ''
    values: Tuple[AttributeValue, ...] = field(default_factory=tuple)
    display_order: int = 0
