from dataclasses import dataclass
from typing import Iterable, List, Optional

from apps.pdp.conf import engine_setting
from apps.pdp.domain import Badge

KNOWN_ICONS = (
    'truck',
    'zap',
    'trophy',
    'star',
    'trending-up',
    'clock',
    'package',
    'sparkles',
)

KNOWN_TONES = ('green', 'orange', 'red', 'blue', 'purple', 'yellow')
DEFAULT_TONE = 'gray'


@dataclass(frozen=True)
class BadgeDisplay:
    key: str
    label: str
    priority: int
    icon: Optional[str] = None
    tone: str = DEFAULT_TONE
    color: Optional[str] = None
    bg_color: Optional[str] = None
    border_color: Optional[str] = None


class BadgeComposer:
    """
    Orders badges by priority (highest first, ties keep input order) and
    caps them for display. Unknown icons or tones degrade to a plain label.
    """

    def __init__(self, limit: Optional[int] = None, compact_limit: Optional[int] = None):
        self.limit = limit if limit is not None else engine_setting('BADGE_LIMIT')
        self.compact_limit = (
            compact_limit if compact_limit is not None
            else engine_setting('COMPACT_BADGE_LIMIT')
        )

    def compose(
        self,
        badges: Iterable[Badge],
        limit: Optional[int] = None,
        compact: bool = False,
    ) -> List[BadgeDisplay]:
        if limit is None:
            limit = self.compact_limit if compact else self.limit

        unique = []
        seen = set()
        for badge in badges:
            if badge.key in seen:
                continue
            seen.add(badge.key)
            unique.append(badge)

        # sorted() is stable, so equal priorities keep their input order
        ordered = sorted(unique, key=lambda b: -b.priority)
        return [self.display(b) for b in ordered[:max(limit, 0)]]

    @staticmethod
    def display(badge: Badge) -> BadgeDisplay:
        icon = badge.icon if badge.icon in KNOWN_ICONS else None
        tone = (badge.color or '').lower()
        if tone not in KNOWN_TONES:
            tone = DEFAULT_TONE
        return BadgeDisplay(
            key=badge.key,
            label=badge.label,
            priority=badge.priority,
            icon=icon,
            tone=tone,
            color=badge.color,
            bg_color=badge.bg_color,
            border_color=badge.border_color or badge.color,
        )
