"""Content items and the pure classifiers the row layout is driven by.

Everything here is a function of a single item (plus, for slot weights, its
neighbours). Nothing is cached or stored on the item: orientation and weights
are always derived from the intrinsic dimensions and rating.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from app.gallerygrid.config import MIN_CHUNK_SIZE

DEFAULT_ASPECT_RATIO = 1.5
# Substituted for degenerate intrinsic dimensions (ratio 1.5).
DEFAULT_WIDTH = 1500.0
DEFAULT_HEIGHT = 1000.0

# Cover image and description block of a collection header.
HEADER_IDS = frozenset({-1, -2})

COLLECTION_CARD_RATING = 4
MAX_RATING = 5


class Orientation(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    TALL_PANORAMA = "tall-panorama"
    WIDE_PANORAMA = "wide-panorama"


@dataclass(frozen=True)
class ContentItem:
    """One visual item of a grid.

    rating: 0-5 curatorial score; None means unrated (0).
    is_collection_card: cards link to another collection and always rate 4.
    is_image: False for text and other blocks without pixels.
    """

    id: int
    width: float
    height: float
    rating: Optional[int] = None
    is_collection_card: bool = False
    is_image: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContentItem":
        """Accept both the camelCase API shape and snake_case keys.

        Malformed entries raise ValueError.
        """

        def pick(*keys: str, default: Any = None) -> Any:
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        if not isinstance(data, Mapping):
            raise ValueError(f"content item must be an object, got {type(data).__name__}")
        if data.get("id") is None:
            raise ValueError("content item requires an 'id'")
        try:
            rating = pick("rating")
            return cls(
                id=int(data["id"]),
                width=float(pick("width", "imageWidth", default=0.0)),
                height=float(pick("height", "imageHeight", default=0.0)),
                rating=None if rating is None else int(rating),
                is_collection_card=bool(pick("isCollectionCard", "is_collection_card", default=False)),
                is_image=bool(pick("isImage", "is_image", default=True)),
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"content item {data.get('id')!r} is malformed: {e}") from e


@dataclass(frozen=True)
class SolvedSize:
    id: int
    width: float
    height: float

    def to_dict(self) -> dict:
        return {"id": self.id, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class SlotWeight:
    """How many chunk slots an item occupies, or a forced standalone marker."""

    slots: int = 1
    forced_standalone: bool = False

    def fits(self, used: int, chunk_size: int) -> bool:
        if self.forced_standalone:
            return False
        return used + self.slots <= chunk_size


FORCED_STANDALONE = SlotWeight(slots=0, forced_standalone=True)


def _is_usable(value: float) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0


def dimensions(item: ContentItem) -> tuple[float, float]:
    """Intrinsic (width, height), or the 3:2 default when either is unusable."""
    if _is_usable(item.width) and _is_usable(item.height):
        return float(item.width), float(item.height)
    return DEFAULT_WIDTH, DEFAULT_HEIGHT


def aspect_ratio(item: ContentItem) -> float:
    width, height = dimensions(item)
    ratio = width / max(1.0, height)
    if not math.isfinite(ratio) or ratio <= 0:
        return DEFAULT_ASPECT_RATIO
    return ratio


def orientation(item: ContentItem) -> Orientation:
    ratio = aspect_ratio(item)
    if ratio >= 2.0:
        return Orientation.WIDE_PANORAMA
    if ratio > 1.0:
        return Orientation.HORIZONTAL
    if ratio > 0.5:
        return Orientation.VERTICAL
    return Orientation.TALL_PANORAMA


def is_horizontal(item: ContentItem) -> bool:
    """Wider than tall; wide panoramas included."""
    return aspect_ratio(item) > 1.0


def is_vertical(item: Optional[ContentItem]) -> bool:
    """Portrait or square, excluding tall panoramas."""
    return item is not None and orientation(item) is Orientation.VERTICAL


def is_wide_panorama(item: ContentItem) -> bool:
    return orientation(item) is Orientation.WIDE_PANORAMA


def rating_of(item: ContentItem) -> int:
    """Raw 0-5 rating; collection cards count as 4, non-images as 0."""
    if item.is_collection_card:
        return COLLECTION_CARD_RATING
    if not item.is_image:
        return 0
    return min(MAX_RATING, max(0, int(item.rating or 0)))


def star_value(item: ContentItem, as_star: bool = False) -> int:
    """Rating used for row budgets.

    In as-star mode every item is worth at least one star, so unrated items
    still fill a row.
    """
    rating = rating_of(item)
    if as_star and not item.is_collection_card and rating <= 1:
        return 1
    return rating


def is_standalone(item: ContentItem) -> bool:
    """True for items that must take a full row on their own.

    A 5-star vertical is deliberately not standalone: it pairs with a
    neighbour instead.
    """
    if item.is_collection_card or not item.is_image:
        return False
    if is_wide_panorama(item):
        return True
    return is_horizontal(item) and rating_of(item) == MAX_RATING


def prefers_half_width(item: ContentItem) -> bool:
    """A lone item of this kind is laid out at half the container width."""
    return is_vertical(item) and star_value(item) >= 3


def slot_weight(
    item: ContentItem,
    chunk_size: int,
    prev_item: Optional[ContentItem] = None,
    next_item: Optional[ContentItem] = None,
) -> SlotWeight:
    chunk_size = max(int(chunk_size), MIN_CHUNK_SIZE)
    half = SlotWeight(slots=chunk_size // 2)
    one = SlotWeight(slots=1)

    if item.id in HEADER_IDS:
        return half
    if item.is_collection_card:
        return half
    if not item.is_image:
        return one

    kind = orientation(item)
    if kind is Orientation.WIDE_PANORAMA:
        return FORCED_STANDALONE
    if kind is Orientation.TALL_PANORAMA:
        return one

    rating = rating_of(item)
    if kind is Orientation.HORIZONTAL:
        if rating == 5:
            return FORCED_STANDALONE
        if rating == 4:
            return half if (is_vertical(prev_item) or is_vertical(next_item)) else FORCED_STANDALONE
        if rating == 3:
            return half
        return one

    return half if rating >= 3 else one
