"""Row partitioning.

Three strategies split an item sequence into rows. All of them emit
contiguous, non-empty rows whose concatenation is the input in its original
order.

- ``patterns``: sliding lookahead window run through the pattern catalog.
- ``stars``: accumulate star values until a row holds 7-9 stars.
- ``slots``: plain slot chunking, used for narrow single-column grids.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from app.gallerygrid.config import (
    DEFAULT_CHUNK_SIZE,
    MAX_ROW_STARS,
    MIN_CHUNK_SIZE,
    MIN_ROW_STARS,
    PATTERN_WINDOW_SIZE,
)
from app.gallerygrid.layout.errors import LayoutInvariantError
from app.gallerygrid.layout.items import (
    ContentItem,
    is_standalone,
    prefers_half_width,
    rating_of,
    slot_weight,
    star_value,
)
from app.gallerygrid.layout.patterns import (
    MainPosition,
    Pattern,
    PatternCatalog,
    PatternKind,
    Stacked,
    Standalone,
    Standard,
    build_default_catalog,
    build_window,
)

logger = logging.getLogger(__name__)


class Strategy(str, Enum):
    PATTERNS = "patterns"
    STARS = "stars"
    SLOTS = "slots"


@dataclass(frozen=True)
class Row:
    """Items of one display row, in input order, plus their arrangement.

    start: absolute index of the first item in the full sequence.
    """

    items: Tuple[ContentItem, ...]
    pattern: Pattern
    start: int = 0

    def __post_init__(self) -> None:
        if not self.items:
            raise LayoutInvariantError("a row must contain at least one item")
        if self.pattern.size != len(self.items):
            raise LayoutInvariantError(
                f"{self.pattern.kind.value} pattern expects {self.pattern.size} items, row has {len(self.items)}"
            )

    @property
    def ids(self) -> List[int]:
        return [item.id for item in self.items]

    @property
    def kind(self) -> PatternKind:
        return self.pattern.kind


def _effective_chunk_size(chunk_size: int) -> int:
    return max(int(chunk_size), MIN_CHUNK_SIZE)


def partition_by_patterns(
    items: Iterable[ContentItem],
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    catalog: Optional[PatternCatalog] = None,
    window_size: int = PATTERN_WINDOW_SIZE,
) -> List[Row]:
    """Walk the sequence with a lookahead window, one catalog match per row."""

    if window_size <= 0:
        raise ValueError("window_size must be > 0")
    items = list(items)
    catalog = catalog if catalog is not None else build_default_catalog()
    chunk = _effective_chunk_size(chunk_size)

    rows: List[Row] = []
    cursor = 0
    while cursor < len(items):
        window = build_window(items, cursor, window_size, chunk)
        match = catalog.match(window, chunk)

        consumed = sorted(match.consumed)
        if not consumed or consumed != list(range(len(consumed))):
            raise LayoutInvariantError(
                f"{match.pattern.kind.value} consumed {match.consumed}; rows must be a contiguous run"
            )
        end = cursor + consumed[-1] + 1
        row = Row(tuple(items[cursor:end]), match.pattern, cursor)
        logger.debug("row %d at %d: %s %s", len(rows), cursor, row.kind.value, row.ids)
        rows.append(row)
        cursor = end
    return rows


def _accumulate_stars(
    items: Sequence[ContentItem],
    start: int,
    min_stars: int,
    max_stars: int,
) -> int:
    """Return the end index (exclusive) of the row starting at ``start``."""
    stars = 0
    i = start
    while i < len(items):
        item = items[i]
        value = star_value(item, as_star=True)

        # Standalone candidates never join a row that already has items.
        if is_standalone(item) and i > start:
            break
        if stars + value > max_stars and stars >= min_stars:
            break

        stars += value
        i += 1

        if is_standalone(item):
            break
        if stars >= min_stars and i < len(items):
            if stars + star_value(items[i], as_star=True) > max_stars:
                break
    return i


def arrange_by_rating(items: Sequence[ContentItem]) -> Pattern:
    """Arrangement for a star-budget row."""
    if not items:
        raise LayoutInvariantError("cannot arrange an empty row")

    if len(items) == 1:
        return Standard(1) if prefers_half_width(items[0]) else Standalone()
    if len(items) == 3:
        ratings = [rating_of(item) for item in items]
        ranked = sorted(range(3), key=lambda i: -ratings[i])
        top, runner_up = ranked[0], ranked[1]
        if ratings[top] >= 3 and ratings[top] > ratings[runner_up]:
            secondaries = [i for i in range(3) if i != top]
            return Stacked(
                kind=PatternKind.MAIN_STACKED,
                main=top,
                secondaries=(secondaries[0], secondaries[1]),
                main_position=MainPosition.LEFT,
            )
    return Standard(len(items))


def partition_by_stars(
    items: Iterable[ContentItem],
    *,
    min_stars: int = MIN_ROW_STARS,
    max_stars: int = MAX_ROW_STARS,
) -> List[Row]:
    """Accumulate items until a row's star total lands in [min, max]."""

    if min_stars <= 0 or max_stars < min_stars:
        raise ValueError("star band must satisfy 0 < min_stars <= max_stars")
    items = list(items)

    rows: List[Row] = []
    cursor = 0
    while cursor < len(items):
        end = _accumulate_stars(items, cursor, min_stars, max_stars)
        if end <= cursor:
            raise LayoutInvariantError(f"star accumulation made no progress at {cursor}")
        chunk = tuple(items[cursor:end])
        row = Row(chunk, arrange_by_rating(chunk), cursor)
        logger.debug("row %d at %d: %s %s", len(rows), cursor, row.kind.value, row.ids)
        rows.append(row)
        cursor = end
    return rows


def partition_by_slots(
    items: Iterable[ContentItem],
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> List[Row]:
    """Fill rows up to ``chunk_size`` slots; forced standalones sit alone."""

    items = list(items)
    chunk = _effective_chunk_size(chunk_size)

    rows: List[Row] = []
    current: List[ContentItem] = []
    used = 0
    start = 0

    def flush() -> None:
        nonlocal current, used
        if current:
            rows.append(Row(tuple(current), Standard(len(current)), start))
        current = []
        used = 0

    for pos, item in enumerate(items):
        prev_item = items[pos - 1] if pos > 0 else None
        next_item = items[pos + 1] if pos + 1 < len(items) else None
        weight = slot_weight(item, chunk, prev_item, next_item)

        if weight.forced_standalone:
            flush()
            rows.append(Row((item,), Standalone(), pos))
            start = pos + 1
            continue

        if not weight.fits(used, chunk):
            flush()
        if not current:
            start = pos
        current.append(item)
        used += weight.slots
        if used >= chunk:
            flush()

    flush()
    return rows


def partition(
    items: Iterable[ContentItem],
    strategy: Strategy = Strategy.PATTERNS,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    catalog: Optional[PatternCatalog] = None,
    window_size: int = PATTERN_WINDOW_SIZE,
) -> List[Row]:
    strategy = Strategy(strategy)
    if strategy is Strategy.PATTERNS:
        return partition_by_patterns(items, chunk_size=chunk_size, catalog=catalog, window_size=window_size)
    if strategy is Strategy.STARS:
        return partition_by_stars(items)
    return partition_by_slots(items, chunk_size=chunk_size)
