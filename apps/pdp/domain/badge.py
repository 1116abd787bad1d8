from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Badge:
    """
    Promotional badge or highlight supplied with the snapshot.
    Higher ``priority`` is more prominent.
    """
    key: str
    label: str
    priority: int = 0
    icon: Optional[str] = None
    color: Optional[str] = None
    bg_color: Optional[str] = None
    border_color: Optional[str] = None

    def __str__(self):
        return self.label
