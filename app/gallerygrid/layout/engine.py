"""Row layout engine (container-first).

Given items and a known container width, decide the rows and compute every
item's display size without waiting for assets to load. Output order always
matches input order.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from app.gallerygrid.config import (
    DEFAULT_CHUNK_SIZE,
    GRID_GAP,
    MIN_CHUNK_SIZE,
    PATTERN_WINDOW_SIZE,
    LayoutConfig,
)
from app.gallerygrid.layout.boxes import Direction, build_row_tree, extract_sizes, solve_box
from app.gallerygrid.layout.errors import LayoutInvariantError
from app.gallerygrid.layout.items import ContentItem, SolvedSize, aspect_ratio, prefers_half_width
from app.gallerygrid.layout.patterns import (
    NestedQuad,
    PatternCatalog,
    Stacked,
    Standalone,
    Standard,
    build_default_catalog,
)
from app.gallerygrid.layout.rows import Row, Strategy, partition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RowLayout:
    row: Row
    sizes: Tuple[SolvedSize, ...]


def _validate(container_width: float, gap: float) -> None:
    if not isinstance(container_width, (int, float)) or not math.isfinite(container_width):
        raise ValueError("container_width must be a finite number")
    if container_width <= 0:
        raise ValueError("container_width must be > 0")
    if not math.isfinite(gap) or gap < 0:
        raise ValueError("gap must be >= 0")


def _single(item: ContentItem, width: float) -> SolvedSize:
    height = width / aspect_ratio(item)
    return SolvedSize(item.id, width, height if math.isfinite(height) else 0.0)


def solve_row(
    row: Row,
    container_width: float,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    gap: float = GRID_GAP,
) -> List[SolvedSize]:
    """Sizes for one row, in the row's item order."""
    _validate(container_width, gap)
    if not row.items:
        raise LayoutInvariantError("cannot solve an empty row")
    chunk = max(int(chunk_size), MIN_CHUNK_SIZE)
    pattern = row.pattern

    if isinstance(pattern, Standalone):
        return [_single(row.items[0], float(container_width))]

    if isinstance(pattern, Standard) and len(row.items) == 1:
        item = row.items[0]
        # Half-slot verticals keep their half of the row.
        width = container_width / 2 if prefers_half_width(item) else container_width
        return [_single(item, float(width))]

    if not isinstance(pattern, (Standard, Stacked, NestedQuad)):
        raise LayoutInvariantError(f"unknown pattern {pattern!r}")

    tree, order = build_row_tree(row.items, pattern, chunk)
    solved = solve_box(tree, float(container_width), Direction.HORIZONTAL, gap)
    extracted = extract_sizes(solved)
    if len(extracted) != len(row.items):
        raise LayoutInvariantError(
            f"solved {len(extracted)} leaves for a row of {len(row.items)} items"
        )

    by_index = {
        row_index: SolvedSize(item.id, width, height)
        for row_index, (item, width, height) in zip(order, extracted)
    }
    if sorted(by_index) != list(range(len(row.items))):
        raise LayoutInvariantError(f"leaf order {order} does not cover the row")
    return [by_index[i] for i in range(len(row.items))]


class LayoutEngine:
    """Partition + solve with one config and one shared pattern catalog.

    The catalog is immutable, so a single engine can serve concurrent callers.
    """

    def __init__(
        self,
        config: Optional[LayoutConfig] = None,
        catalog: Optional[PatternCatalog] = None,
    ) -> None:
        self.config = config or LayoutConfig()
        self.strategy = Strategy(self.config.strategy)
        self.catalog = catalog if catalog is not None else build_default_catalog()

    def partition(self, items: Iterable[ContentItem]) -> List[Row]:
        return partition(
            items,
            self.strategy,
            chunk_size=self.config.effective_chunk_size,
            catalog=self.catalog,
            window_size=self.config.window_size,
        )

    def layout_rows(self, items: Iterable[ContentItem], container_width: float) -> List[RowLayout]:
        _validate(container_width, self.config.gap)
        rows = self.partition(items)
        out: List[RowLayout] = []
        for row in rows:
            sizes = solve_row(
                row,
                container_width,
                chunk_size=self.config.effective_chunk_size,
                gap=self.config.gap,
            )
            out.append(RowLayout(row=row, sizes=tuple(sizes)))
        logger.debug("laid out %d rows at width %.1f", len(out), container_width)
        return out

    def layout(self, items: Iterable[ContentItem], container_width: float) -> List[SolvedSize]:
        return [size for row in self.layout_rows(items, container_width) for size in row.sizes]


def layout_rows(
    items: Iterable[ContentItem],
    container_width: float,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    gap: float = GRID_GAP,
    strategy: Strategy = Strategy.PATTERNS,
    catalog: Optional[PatternCatalog] = None,
    window_size: int = PATTERN_WINDOW_SIZE,
) -> List[RowLayout]:
    config = LayoutConfig(
        chunk_size=chunk_size,
        gap=gap,
        window_size=window_size,
        strategy=Strategy(strategy).value,
    )
    return LayoutEngine(config, catalog).layout_rows(items, container_width)


def layout_items(
    items: Iterable[ContentItem],
    container_width: float,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    gap: float = GRID_GAP,
    strategy: Strategy = Strategy.PATTERNS,
    catalog: Optional[PatternCatalog] = None,
    window_size: int = PATTERN_WINDOW_SIZE,
) -> List[SolvedSize]:
    """Compute display sizes for ``items``; one result per item, same order."""
    rows = layout_rows(
        items,
        container_width,
        chunk_size=chunk_size,
        gap=gap,
        strategy=strategy,
        catalog=catalog,
        window_size=window_size,
    )
    return [size for row in rows for size in row.sizes]
