import math
import unittest

from app.gallerygrid.layout.boxes import (
    Combined,
    Direction,
    Leaf,
    build_row_tree,
    combine,
    combine_all,
    extract_sizes,
    leaf_for,
    solve_box,
)
from app.gallerygrid.layout.errors import LayoutInvariantError
from app.gallerygrid.layout.items import ContentItem, aspect_ratio
from app.gallerygrid.layout.patterns import (
    MainPosition,
    NestedQuad,
    PatternKind,
    Stacked,
    Standalone,
    Standard,
)

GAP = 12.8


def H(item_id, rating=None):
    return ContentItem(item_id, 1920, 1080, rating)


def V(item_id, rating=None):
    return ContentItem(item_id, 1080, 1920, rating)


def solve_row_sizes(items, pattern, width=1000.0, gap=GAP):
    tree, _order = build_row_tree(items, pattern, 4)
    solved = solve_box(tree, width, Direction.HORIZONTAL, gap)
    return {item.id: (w, h) for item, w, h in extract_sizes(solved)}


class TestCombine(unittest.TestCase):
    def test_horizontal_adds_ratios(self):
        box = combine(Leaf(H(1), 2.0), Leaf(H(2), 1.0), Direction.HORIZONTAL)
        self.assertAlmostEqual(box.ratio, 3.0)
        self.assertEqual(box.children[0].ratio, 2.0)

    def test_vertical_uses_harmonic_sum(self):
        box = combine(Leaf(H(1), 2.0), Leaf(H(2), 1.0), Direction.VERTICAL)
        self.assertAlmostEqual(box.ratio, 2.0 / 3.0)

    def test_degenerate_ratio_falls_back(self):
        box = combine(Leaf(H(1), math.nan), Leaf(H(2), 1.0), Direction.HORIZONTAL)
        self.assertAlmostEqual(box.ratio, 2.5)

    def test_combine_all_folds_left(self):
        leaves = [Leaf(H(i), 1.0) for i in range(3)]
        tree = combine_all(leaves, Direction.HORIZONTAL)
        self.assertIsInstance(tree.first, Combined)
        self.assertIs(tree.second, leaves[2])
        self.assertAlmostEqual(tree.ratio, 3.0)

    def test_combine_all_empty(self):
        with self.assertRaises(LayoutInvariantError):
            combine_all([], Direction.HORIZONTAL)

    def test_leaf_ratio_matches_item(self):
        for item in (H(1, 5), V(2, 3), V(3, 0), ContentItem(4, 0, 0)):
            with self.subTest(item=item):
                self.assertAlmostEqual(leaf_for(item, 4).ratio, aspect_ratio(item))


class TestSolveLeaf(unittest.TestCase):
    def test_width_constrained(self):
        solved = solve_box(Leaf(H(1), 2.0), 100.0)
        self.assertEqual((solved.width, solved.height), (100.0, 50.0))

    def test_height_constrained(self):
        solved = solve_box(Leaf(H(1), 2.0), 100.0, Direction.VERTICAL)
        self.assertEqual((solved.width, solved.height), (200.0, 100.0))

    def test_zero_container_has_no_nan(self):
        tree, _ = build_row_tree([H(1), V(2), H(3)], Standard(3), 4)
        for _item, w, h in extract_sizes(solve_box(tree, 0.0, gap=GAP)):
            self.assertTrue(math.isfinite(w) and math.isfinite(h))
            self.assertGreaterEqual(w, 0.0)
            self.assertGreaterEqual(h, 0.0)

    def test_unknown_box(self):
        with self.assertRaises(LayoutInvariantError):
            solve_box("not a box", 100.0)


class TestRowTrees(unittest.TestCase):
    def test_standard_row_fills_width(self):
        sizes = solve_row_sizes([H(1), V(2), H(3)], Standard(3))
        widths = [sizes[i][0] for i in (1, 2, 3)]
        self.assertAlmostEqual(sum(widths) + 2 * GAP, 1000.0, places=6)
        heights = {round(sizes[i][1], 6) for i in (1, 2, 3)}
        self.assertEqual(len(heights), 1)
        # Widths stay proportional to aspect ratios.
        self.assertAlmostEqual(widths[0] / widths[1], aspect_ratio(H(1)) / aspect_ratio(V(2)), places=6)

    def test_stacked_row(self):
        pattern = Stacked(PatternKind.MAIN_STACKED, main=0, secondaries=(1, 2))
        sizes = solve_row_sizes([V(1, 4), H(2, 1), H(3, 1)], pattern)
        main_w, main_h = sizes[1]
        top_w, top_h = sizes[2]
        bottom_w, bottom_h = sizes[3]
        self.assertAlmostEqual(main_w + GAP + top_w, 1000.0, places=6)
        self.assertAlmostEqual(top_w, bottom_w, places=6)
        self.assertAlmostEqual(top_h + GAP + bottom_h, main_h, places=6)

    def test_main_on_the_right(self):
        pattern = Stacked(PatternKind.MAIN_STACKED, main=2, secondaries=(0, 1), main_position=MainPosition.RIGHT)
        tree, order = build_row_tree([H(1), H(2), V(3, 4)], pattern, 4)
        self.assertEqual(order, (0, 1, 2))
        self.assertIsInstance(tree.first, Combined)
        self.assertIs(tree.first.direction, Direction.VERTICAL)
        self.assertEqual(tree.second.item.id, 3)

    def test_nested_quad_row(self):
        pattern = NestedQuad(main=0, top_pair=(1, 2), bottom=3)
        sizes = solve_row_sizes([V(1, 3), V(2), V(3), H(4)], pattern)
        main_w, main_h = sizes[1]
        t1_w, t1_h = sizes[2]
        t2_w, t2_h = sizes[3]
        bottom_w, bottom_h = sizes[4]
        self.assertAlmostEqual(main_w + GAP + bottom_w, 1000.0, places=6)
        self.assertAlmostEqual(t1_w + GAP + t2_w, bottom_w, places=6)
        self.assertAlmostEqual(t1_h, t2_h, places=6)
        self.assertAlmostEqual(t1_h + GAP + bottom_h, main_h, places=6)

    def test_no_gap_keeps_ratios_exact(self):
        pattern = Stacked(PatternKind.MAIN_STACKED, main=0, secondaries=(1, 2))
        sizes = solve_row_sizes([V(1, 4), H(2, 1), H(3, 1)], pattern, gap=0.0)
        for item in (V(1), H(2), H(3)):
            w, h = sizes[item.id]
            self.assertAlmostEqual(w / h, aspect_ratio(item), places=6)

    def test_unsupported_pattern(self):
        with self.assertRaises(LayoutInvariantError):
            build_row_tree([H(1)], Standalone(), 4)


if __name__ == "__main__":
    unittest.main()
