"""Box trees: aspect-ratio algebra for one row.

A row is described as a binary tree of boxes. Leaves wrap one item; combined
boxes put two children side by side (horizontal, equal heights, widths add)
or on top of each other (vertical, equal widths, heights add). Solving the
tree against a container size yields pixel sizes for every leaf.

Trees are built fresh for every solve and thrown away after extraction.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

from app.gallerygrid.layout.errors import LayoutInvariantError
from app.gallerygrid.layout.items import (
    DEFAULT_ASPECT_RATIO,
    ContentItem,
    dimensions,
    slot_weight,
)
from app.gallerygrid.layout.patterns import (
    MainPosition,
    NestedQuad,
    Stacked,
    Standard,
)

# Sums closer than this to their target are left alone.
DRIFT_EPSILON = 1e-6


class Direction(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@dataclass(frozen=True)
class Leaf:
    item: ContentItem
    ratio: float


@dataclass(frozen=True)
class Combined:
    direction: Direction
    ratio: float
    first: "Box"
    second: "Box"

    @property
    def children(self) -> Tuple["Box", "Box"]:
        return (self.first, self.second)


Box = Union[Leaf, Combined]


@dataclass(frozen=True)
class SolvedBox:
    width: float
    height: float
    item: Optional[ContentItem] = None
    direction: Optional[Direction] = None
    children: Tuple["SolvedBox", ...] = ()


def _finite_positive(value: float) -> bool:
    return math.isfinite(value) and value > 0


def _safe_ratio(ratio: float) -> float:
    return ratio if _finite_positive(ratio) else DEFAULT_ASPECT_RATIO


def _clean(value: float) -> float:
    return value if _finite_positive(value) else 0.0


# ===================== Builder =====================


def leaf_for(
    item: ContentItem,
    chunk_size: int,
    prev_item: Optional[ContentItem] = None,
    next_item: Optional[ContentItem] = None,
) -> Leaf:
    """Leaf whose ratio is taken from slot-weighted dimensions."""
    width, height = dimensions(item)
    weight = slot_weight(item, chunk_size, prev_item, next_item)
    if weight.forced_standalone or weight.slots <= 0 or weight.slots >= chunk_size:
        return Leaf(item, _safe_ratio(width / max(1.0, height)))
    slots = weight.slots
    return Leaf(item, _safe_ratio((width * slots) / max(1.0, height * slots)))


def combine(first: Box, second: Box, direction: Direction) -> Combined:
    a = _safe_ratio(first.ratio)
    b = _safe_ratio(second.ratio)
    if direction is Direction.HORIZONTAL:
        ratio = a + b
    else:
        ratio = 1.0 / (1.0 / a + 1.0 / b)
    return Combined(direction, _safe_ratio(ratio), first, second)


def combine_all(boxes: Sequence[Box], direction: Direction) -> Box:
    """Left fold: ((b0 + b1) + b2) + ..."""
    if not boxes:
        raise LayoutInvariantError("cannot combine an empty list of boxes")
    tree = boxes[0]
    for box in boxes[1:]:
        tree = combine(tree, box, direction)
    return tree


def build_row_tree(
    items: Sequence[ContentItem],
    pattern: Union[Standard, Stacked, NestedQuad],
    chunk_size: int,
) -> Tuple[Box, Tuple[int, ...]]:
    """Box tree for a multi-item row.

    Returns the tree and the row indices of its leaves in extraction order, so
    solved sizes can be put back in row order.
    """
    leaves = [
        leaf_for(
            item,
            chunk_size,
            items[i - 1] if i > 0 else None,
            items[i + 1] if i + 1 < len(items) else None,
        )
        for i, item in enumerate(items)
    ]

    if isinstance(pattern, Stacked):
        top, bottom = pattern.secondaries
        stack = combine(leaves[top], leaves[bottom], Direction.VERTICAL)
        if pattern.main_position is MainPosition.RIGHT:
            return combine(stack, leaves[pattern.main], Direction.HORIZONTAL), (top, bottom, pattern.main)
        return combine(leaves[pattern.main], stack, Direction.HORIZONTAL), (pattern.main, top, bottom)

    if isinstance(pattern, NestedQuad):
        t1, t2 = pattern.top_pair
        pair = combine(leaves[t1], leaves[t2], Direction.HORIZONTAL)
        stack = combine(pair, leaves[pattern.bottom], Direction.VERTICAL)
        tree = combine(leaves[pattern.main], stack, Direction.HORIZONTAL)
        return tree, (pattern.main, t1, t2, pattern.bottom)

    if isinstance(pattern, Standard):
        return combine_all(leaves, Direction.HORIZONTAL), tuple(range(len(leaves)))

    raise LayoutInvariantError(f"no box tree for pattern {pattern!r}")


# ===================== Solver =====================


def _operands(box: Combined) -> List[Box]:
    """Children of a box, flattening directly nested same-direction boxes.

    Combination is associative, so ((a+b)+c) is solved as one run a+b+c and
    gaps are counted once per adjacent pair.
    """
    out: List[Box] = []
    for child in box.children:
        if isinstance(child, Combined) and child.direction is box.direction:
            out.extend(_operands(child))
        else:
            out.append(child)
    return out


def _shares(current: Sequence[float], budget: float) -> List[float]:
    total = sum(current)
    if not _finite_positive(total) or not all(math.isfinite(c) for c in current):
        return [budget / len(current)] * len(current)
    return [budget * c / total for c in current]


def _resize(box: SolvedBox, axis: str, size: float, gap: float) -> SolvedBox:
    """Set ``box``'s width or height, keeping the gaps inside it fixed."""
    size = _clean(size)
    if not box.children:
        return replace(box, **{axis: size})

    along = (box.direction is Direction.HORIZONTAL) == (axis == "width")
    if along:
        budget = max(0.0, size - gap * (len(box.children) - 1))
        sizes = _shares([getattr(c, axis) for c in box.children], budget)
    else:
        sizes = [size] * len(box.children)
    children = tuple(_resize(c, axis, s, gap) for c, s in zip(box.children, sizes))
    return replace(box, children=children, **{axis: size})


def solve_box(
    box: Box,
    container_size: float,
    container_direction: Direction = Direction.HORIZONTAL,
    gap: float = 0.0,
) -> SolvedBox:
    """Resolve pixel sizes for ``box``.

    container_direction says which dimension ``container_size`` constrains:
    HORIZONTAL fixes the width, VERTICAL fixes the height.
    """
    size = _clean(container_size)

    if isinstance(box, Leaf):
        ratio = _safe_ratio(box.ratio)
        if container_direction is Direction.HORIZONTAL:
            return SolvedBox(width=size, height=size / ratio, item=box.item)
        return SolvedBox(width=size * ratio, height=size, item=box.item)

    if not isinstance(box, Combined):
        raise LayoutInvariantError(f"cannot solve {type(box).__name__}")

    operands = _operands(box)
    ratio = _safe_ratio(box.ratio)
    gaps = gap * (len(operands) - 1)
    if container_direction is Direction.HORIZONTAL:
        width, height = size, size / ratio
    else:
        width, height = size * ratio, size

    if box.direction is Direction.HORIZONTAL:
        # Children share the height; widths must add up to what is left after gaps.
        children = [solve_box(op, height, Direction.VERTICAL, gap) for op in operands]
        target = max(0.0, width - gaps)
        total = sum(c.width for c in children)
        if not _finite_positive(total) or abs(total - target) > DRIFT_EPSILON:
            widths = _shares([c.width for c in children], target)
            children = [_resize(c, "width", w, gap) for c, w in zip(children, widths)]
        return SolvedBox(width=width, height=height, direction=Direction.HORIZONTAL, children=tuple(children))

    # Vertical: children share the width; heights plus gaps make up the stack.
    children = [solve_box(op, width, Direction.HORIZONTAL, gap) for op in operands]
    raw = sum(c.height for c in children)
    if _finite_positive(raw):
        if gaps > 0:
            factor = max(0.0, raw - gaps) / raw
            children = [_resize(c, "height", c.height * factor, gap) for c in children]
    else:
        share = max(0.0, height - gaps) / len(children)
        children = [_resize(c, "height", share, gap) for c in children]

    stacked = sum(c.height for c in children)
    if container_direction is Direction.VERTICAL:
        # Nested in a horizontal row: the parent expects exactly this height.
        target = max(0.0, size - gaps)
        if stacked > 0 and abs(target - stacked) > DRIFT_EPSILON:
            factor = target / stacked
            children = [
                _resize(_resize(c, "height", c.height * factor, gap), "width", c.width * factor, gap)
                for c in children
            ]
            width *= factor
        height = size
    else:
        height = stacked + gaps
    return SolvedBox(width=width, height=height, direction=Direction.VERTICAL, children=tuple(children))


def extract_sizes(solved: SolvedBox) -> List[Tuple[ContentItem, float, float]]:
    """Leaves of a solved tree, left to right (post-order)."""
    if not solved.children:
        if solved.item is None:
            return []
        return [(solved.item, _clean(solved.width), _clean(solved.height))]
    out: List[Tuple[ContentItem, float, float]] = []
    for child in solved.children:
        out.extend(extract_sizes(child))
    return out
