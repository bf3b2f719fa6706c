"""Pattern catalog for the row partitioner.

A row pattern describes how the items of one row are arranged: alone, side by
side, or as a prominent "main" item beside a stack of smaller ones. Matchers
are tried in priority order against a short lookahead window; the first one
that produces a match decides the row.

To add a pattern:
1. add its ``PatternKind`` (and a shape class if none of the existing fit)
2. add a matcher to ``build_default_catalog``; the catalog sorts by priority

Role indices on patterns (main, secondaries, ...) are row-relative. Every
match consumes a contiguous run starting at the first window item, so the row
keeps input order and the window index of an item equals its row index.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, List, Optional, Sequence, Tuple, Union

from app.gallerygrid.config import PATTERN_MAX_MOVEMENT
from app.gallerygrid.layout.errors import LayoutInvariantError
from app.gallerygrid.layout.items import (
    ContentItem,
    Orientation,
    SlotWeight,
    aspect_ratio,
    orientation,
    rating_of,
    slot_weight,
)


class PatternKind(str, Enum):
    STANDALONE = "standalone"
    STANDARD = "standard"
    MAIN_STACKED = "main-stacked"
    PANORAMA_VERTICAL = "panorama-vertical"
    FIVE_STAR_VERTICAL_2V = "five-star-vertical-2v"
    FIVE_STAR_VERTICAL_2H = "five-star-vertical-2h"
    FIVE_STAR_VERTICAL_MIXED = "five-star-vertical-mixed"
    NESTED_QUAD = "nested-quad"


STACKED_KINDS = frozenset(
    {
        PatternKind.MAIN_STACKED,
        PatternKind.PANORAMA_VERTICAL,
        PatternKind.FIVE_STAR_VERTICAL_2V,
        PatternKind.FIVE_STAR_VERTICAL_2H,
        PatternKind.FIVE_STAR_VERTICAL_MIXED,
    }
)


class MainPosition(str, Enum):
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class Standalone:
    kind: PatternKind = field(default=PatternKind.STANDALONE, init=False)

    @property
    def size(self) -> int:
        return 1


@dataclass(frozen=True)
class Standard:
    count: int
    kind: PatternKind = field(default=PatternKind.STANDARD, init=False)

    @property
    def size(self) -> int:
        return self.count


@dataclass(frozen=True)
class Stacked:
    """Main item beside a vertical stack of two secondaries (top first)."""

    kind: PatternKind
    main: int
    secondaries: Tuple[int, int]
    main_position: MainPosition = MainPosition.LEFT

    def __post_init__(self) -> None:
        if self.kind not in STACKED_KINDS:
            raise ValueError(f"{self.kind} is not a stacked pattern")
        if len({self.main, *self.secondaries}) != 3:
            raise ValueError("main and secondaries must be distinct items")

    @property
    def size(self) -> int:
        return 3


@dataclass(frozen=True)
class NestedQuad:
    """Main beside a stack of a horizontal pair (top) and a single item."""

    main: int
    top_pair: Tuple[int, int]
    bottom: int
    kind: PatternKind = field(default=PatternKind.NESTED_QUAD, init=False)

    def __post_init__(self) -> None:
        if len({self.main, *self.top_pair, self.bottom}) != 4:
            raise ValueError("nested quad roles must be distinct items")

    @property
    def size(self) -> int:
        return 4


Pattern = Union[Standalone, Standard, Stacked, NestedQuad]


@dataclass(frozen=True)
class WindowItem:
    """An item in the lookahead window, with the facts matchers test."""

    index: int
    item: ContentItem
    ratio: float
    orientation: Orientation
    rating: int
    weight: SlotWeight

    @property
    def is_vertical(self) -> bool:
        return self.orientation is Orientation.VERTICAL

    @property
    def is_horizontal(self) -> bool:
        return self.ratio > 1.0

    @property
    def is_wide_panorama(self) -> bool:
        return self.orientation is Orientation.WIDE_PANORAMA

    @property
    def forced_standalone(self) -> bool:
        return self.weight.forced_standalone


def build_window(
    items: Sequence[ContentItem],
    start: int,
    size: int,
    chunk_size: int,
) -> List[WindowItem]:
    """Window of up to ``size`` items from ``start``.

    Slot weights look at the true neighbours in the full sequence, including
    the item just before the window.
    """
    window: List[WindowItem] = []
    for pos in range(start, min(len(items), start + size)):
        item = items[pos]
        prev_item = items[pos - 1] if pos > 0 else None
        next_item = items[pos + 1] if pos + 1 < len(items) else None
        window.append(
            WindowItem(
                index=pos - start,
                item=item,
                ratio=aspect_ratio(item),
                orientation=orientation(item),
                rating=rating_of(item),
                weight=slot_weight(item, chunk_size, prev_item, next_item),
            )
        )
    return window


@dataclass(frozen=True)
class Match:
    pattern: Pattern
    consumed: Tuple[int, ...]


WindowPredicate = Callable[[Sequence[WindowItem], int], bool]
WindowBuilder = Callable[[Sequence[WindowItem], int], Optional[Match]]


@dataclass(frozen=True)
class PatternMatcher:
    name: PatternKind
    priority: int
    min_items: int
    can_match: WindowPredicate
    build: WindowBuilder

    def match(self, window: Sequence[WindowItem], chunk_size: int) -> Optional[Match]:
        if len(window) < self.min_items:
            return None
        if not self.can_match(window, chunk_size):
            return None
        return self.build(window, chunk_size)


@dataclass(frozen=True)
class PatternCatalog:
    """Immutable, priority-ordered matchers (highest first)."""

    matchers: Tuple[PatternMatcher, ...]

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.matchers, key=lambda m: -m.priority))
        object.__setattr__(self, "matchers", ordered)

    def __iter__(self) -> Iterator[PatternMatcher]:
        return iter(self.matchers)

    def __len__(self) -> int:
        return len(self.matchers)

    def names(self) -> List[PatternKind]:
        return [m.name for m in self.matchers]

    def match(self, window: Sequence[WindowItem], chunk_size: int) -> Match:
        if not window:
            raise LayoutInvariantError("cannot match an empty window")
        for matcher in self.matchers:
            found = matcher.match(window, chunk_size)
            if found is not None:
                return found
        raise LayoutInvariantError("no pattern matched; catalog is missing a fallback")


# ===================== Standalone / Standard =====================


def _standalone_matcher() -> PatternMatcher:
    return PatternMatcher(
        name=PatternKind.STANDALONE,
        priority=100,
        min_items=1,
        can_match=lambda window, _chunk: window[0].forced_standalone,
        build=lambda window, _chunk: Match(Standalone(), (0,)),
    )


def standard_run_length(window: Sequence[WindowItem], chunk_size: int) -> int:
    """Items a Standard row takes greedily; always at least one."""
    used = 0
    count = 0
    for entry in window:
        if not entry.weight.fits(used, chunk_size):
            break
        used += entry.weight.slots
        count += 1
        if used == chunk_size:
            break
    return max(count, 1)


def _standard_matcher() -> PatternMatcher:
    def build(window: Sequence[WindowItem], chunk_size: int) -> Match:
        count = standard_run_length(window, chunk_size)
        return Match(Standard(count), tuple(range(count)))

    return PatternMatcher(
        name=PatternKind.STANDARD,
        priority=0,
        min_items=1,
        can_match=lambda _window, _chunk: True,
        build=build,
    )


# ===================== Main + stacked secondaries =====================

SecondaryFilter = Callable[[WindowItem, WindowItem], bool]


def _assign_secondaries(
    secondaries: Sequence[WindowItem],
    main: WindowItem,
    filters: Sequence[SecondaryFilter],
) -> bool:
    first, second = secondaries
    if len(filters) == 1:
        accept = filters[0]
        return accept(first, main) and accept(second, main)
    # One secondary per filter, in either order.
    f1, f2 = filters
    return (f1(first, main) and f2(second, main)) or (f1(second, main) and f2(first, main))


def _main_secondary_matcher(
    kind: PatternKind,
    priority: int,
    *,
    window_has: Callable[[Sequence[WindowItem]], bool],
    is_main: Callable[[WindowItem], bool],
    secondary_filters: Sequence[SecondaryFilter],
    main_order: Optional[Callable[[WindowItem], tuple]] = None,
) -> PatternMatcher:
    """Matcher for the main + two stacked secondaries family.

    Mains are tried in ``main_order`` (window order by default). A main must sit
    within the first three window items and the two other items of that run
    become its secondaries; if they do not qualify the next main is tried.
    """

    def build(window: Sequence[WindowItem], _chunk: int) -> Optional[Match]:
        run = list(window[: PATTERN_MAX_MOVEMENT + 1])
        if len(run) < 3:
            return None

        mains = [w for w in window if is_main(w)]
        if main_order is not None:
            mains.sort(key=main_order)

        for main in mains:
            if main.index > PATTERN_MAX_MOVEMENT:
                continue
            secondaries = [w for w in run if w.index != main.index]
            if not _assign_secondaries(secondaries, main, secondary_filters):
                continue
            position = MainPosition.RIGHT if main.index == len(run) - 1 else MainPosition.LEFT
            pattern = Stacked(
                kind=kind,
                main=main.index,
                secondaries=(secondaries[0].index, secondaries[1].index),
                main_position=position,
            )
            return Match(pattern, tuple(w.index for w in run))
        return None

    return PatternMatcher(
        name=kind,
        priority=priority,
        min_items=3,
        can_match=lambda window, _chunk: window_has(window),
        build=build,
    )


def _is_five_star_vertical(w: WindowItem) -> bool:
    return w.is_vertical and w.rating == 5


def _five_star_vertical_2v() -> PatternMatcher:
    def window_has(window: Sequence[WindowItem]) -> bool:
        others = [w for w in window if w.is_vertical and w.rating != 5]
        return any(_is_five_star_vertical(w) for w in window) and len(others) >= 2

    return _main_secondary_matcher(
        PatternKind.FIVE_STAR_VERTICAL_2V,
        90,
        window_has=window_has,
        is_main=_is_five_star_vertical,
        secondary_filters=[lambda c, _main: c.is_vertical and c.rating != 5],
    )


def _five_star_vertical_2h() -> PatternMatcher:
    def window_has(window: Sequence[WindowItem]) -> bool:
        low_horizontals = [w for w in window if w.is_horizontal and w.rating <= 3]
        return any(_is_five_star_vertical(w) for w in window) and len(low_horizontals) >= 2

    return _main_secondary_matcher(
        PatternKind.FIVE_STAR_VERTICAL_2H,
        85,
        window_has=window_has,
        is_main=_is_five_star_vertical,
        secondary_filters=[lambda c, _main: c.is_horizontal and c.rating <= 3],
    )


def _five_star_vertical_mixed() -> PatternMatcher:
    def mid_vertical(c: WindowItem, _main: WindowItem = None) -> bool:
        return c.is_vertical and 3 <= c.rating <= 4

    def low_horizontal(c: WindowItem, _main: WindowItem = None) -> bool:
        return c.is_horizontal and c.rating < 3

    def window_has(window: Sequence[WindowItem]) -> bool:
        return (
            any(_is_five_star_vertical(w) for w in window)
            and any(mid_vertical(w) for w in window)
            and any(low_horizontal(w) for w in window)
        )

    return _main_secondary_matcher(
        PatternKind.FIVE_STAR_VERTICAL_MIXED,
        82,
        window_has=window_has,
        is_main=_is_five_star_vertical,
        secondary_filters=[mid_vertical, low_horizontal],
    )


def _main_stacked() -> PatternMatcher:
    def is_main(w: WindowItem) -> bool:
        return 3 <= w.rating <= 4 and not w.forced_standalone

    return _main_secondary_matcher(
        PatternKind.MAIN_STACKED,
        80,
        window_has=lambda window: any(3 <= w.rating <= 4 for w in window),
        is_main=is_main,
        secondary_filters=[lambda c, _main: not c.forced_standalone],
        # Highest rating first, then closest to the window start.
        main_order=lambda w: (-w.rating, w.index),
    )


def _panorama_vertical() -> PatternMatcher:
    def window_has(window: Sequence[WindowItem]) -> bool:
        panoramas = [w for w in window if w.is_wide_panorama]
        return any(w.is_vertical for w in window) and len(panoramas) >= 2

    return _main_secondary_matcher(
        PatternKind.PANORAMA_VERTICAL,
        75,
        window_has=window_has,
        is_main=lambda w: w.is_vertical,
        secondary_filters=[lambda c, _main: c.is_wide_panorama],
    )


# ===================== Nested quad =====================


def _nested_quad() -> PatternMatcher:
    """Four-item Standard runs dominated by verticals get a nested layout.

    ┌──────────┬───────────┐
    │          │  T1 │ T2  │
    │   Main   ├───────────┤
    │          │  Bottom   │
    └──────────┴───────────┘
    """

    def can_match(window: Sequence[WindowItem], chunk_size: int) -> bool:
        if standard_run_length(window, chunk_size) != 4:
            return False
        return sum(1 for w in window[:4] if w.is_vertical) >= 3

    def build(window: Sequence[WindowItem], _chunk: int) -> Optional[Match]:
        run = list(window[:4])
        verticals = [w for w in run if w.is_vertical]
        main = min(verticals, key=lambda w: (-w.rating, w.index))
        rest = sorted((w for w in verticals if w is not main), key=lambda w: (w.rating, w.index))
        top = sorted(rest[:2], key=lambda w: w.index)
        taken = {main.index, top[0].index, top[1].index}
        bottom = next(w for w in run if w.index not in taken)
        pattern = NestedQuad(main=main.index, top_pair=(top[0].index, top[1].index), bottom=bottom.index)
        return Match(pattern, tuple(w.index for w in run))

    return PatternMatcher(
        name=PatternKind.NESTED_QUAD,
        priority=10,
        min_items=4,
        can_match=can_match,
        build=build,
    )


def build_default_catalog() -> PatternCatalog:
    """Construct the standard catalog.

    Priority guide:
    - 100: standalone (these items cannot combine)
    - 80-99: 5-star vertical and main-stacked patterns
    - 70-79: panorama-vertical
    - 10: nested quad
    - 0: standard fallback (always matches)
    """
    return PatternCatalog(
        (
            _standalone_matcher(),
            _five_star_vertical_2v(),
            _five_star_vertical_2h(),
            _five_star_vertical_mixed(),
            _main_stacked(),
            _panorama_vertical(),
            _nested_quad(),
            _standard_matcher(),
        )
    )
