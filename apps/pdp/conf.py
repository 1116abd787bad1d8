"""
Engine settings, read from ``settings.PDP_ENGINE`` over the defaults below.
"""

from typing import Any, Dict

from django.conf import settings

DEFAULTS: Dict[str, Any] = {
    'LOW_STOCK_THRESHOLD': 10,
    'BADGE_LIMIT': 10,
    'COMPACT_BADGE_LIMIT': 2,
    # 'single': pre-select a cleared dimension only when one in-stock value is left
    # 'first': take every value of the first in-stock compatible combination
    # 'none': never pre-select
    'AUTO_PICK_STRATEGY': 'single',
    'TOGGLE_DESELECT': True,
    'MAX_QUANTITY': 10,
    'SELLERS_API_URL': 'http://localhost:8000/api',
    'COLOR_SYNONYMS': ['color', 'colour', 'renk', 'rengi'],
    'SIZE_SYNONYMS': ['size', 'beden', 'numara'],
    'ATTRIBUTE_LABELS': {
        'size': 'Beden',
        'color': 'Renk',
        'colour': 'Renk',
        'material': 'Materyal',
        'style': 'Stil',
        'pattern': 'Desen',
        'fit': 'Kalıp',
        'length': 'Boy',
        'width': 'Genişlik',
        'height': 'Yükseklik',
        'weight': 'Ağırlık',
        'capacity': 'Kapasite',
        'volume': 'Hacim',
        'ram': 'RAM',
        'storage': 'Depolama',
        'processor': 'İşlemci',
        'screen': 'Ekran',
        'battery': 'Pil',
        'beden': 'Beden',
        'renk': 'Renk',
        'rengi': 'Renk',
        'ton': 'Ton',
        'hacim': 'Hacim',
        'boy': 'Boy',
        'kapasite': 'Kapasite',
        'depolama': 'Depolama',
        'malzeme': 'Malzeme',
        'boyut': 'Boyut',
        'agirlik': 'Ağırlık',
        'adet': 'Adet',
    },
}

VALID_AUTO_PICK_STRATEGIES = ('single', 'first', 'none')


def engine_setting(name: str) -> Any:
    """Return one engine setting, falling back to the default."""
    overrides = getattr(settings, 'PDP_ENGINE', None) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]


def translate_attribute(key: str) -> str:
    """Display label for an attribute key; unknown keys are capitalized."""
    labels = engine_setting('ATTRIBUTE_LABELS')
    lowered = (key or '').lower()
    if lowered in labels:
        return labels[lowered]
    return key[:1].upper() + key[1:] if key else key
