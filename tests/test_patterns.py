import unittest

from app.gallerygrid.layout.errors import LayoutInvariantError
from app.gallerygrid.layout.items import ContentItem
from app.gallerygrid.layout.patterns import (
    Match,
    MainPosition,
    NestedQuad,
    PatternCatalog,
    PatternKind,
    PatternMatcher,
    Stacked,
    Standalone,
    Standard,
    build_default_catalog,
    build_window,
    standard_run_length,
)


def H(item_id, rating=None):
    return ContentItem(item_id, 1920, 1080, rating)


def V(item_id, rating=None):
    return ContentItem(item_id, 1080, 1920, rating)


def P(item_id, rating=None):
    return ContentItem(item_id, 3000, 1000, rating)


class TestPatternCatalog(unittest.TestCase):
    def setUp(self) -> None:
        self.catalog = build_default_catalog()

    def match(self, items, chunk_size=4):
        window = build_window(items, 0, 5, chunk_size)
        return self.catalog.match(window, chunk_size)

    def test_priority_order(self):
        self.assertEqual(
            self.catalog.names(),
            [
                PatternKind.STANDALONE,
                PatternKind.FIVE_STAR_VERTICAL_2V,
                PatternKind.FIVE_STAR_VERTICAL_2H,
                PatternKind.FIVE_STAR_VERTICAL_MIXED,
                PatternKind.MAIN_STACKED,
                PatternKind.PANORAMA_VERTICAL,
                PatternKind.NESTED_QUAD,
                PatternKind.STANDARD,
            ],
        )

    def test_catalog_sorts_matchers(self):
        low = PatternMatcher(PatternKind.STANDARD, 0, 1, lambda w, c: True, lambda w, c: None)
        high = PatternMatcher(PatternKind.STANDALONE, 100, 1, lambda w, c: True, lambda w, c: None)
        catalog = PatternCatalog((low, high))
        self.assertEqual(catalog.names(), [PatternKind.STANDALONE, PatternKind.STANDARD])
        self.assertEqual(len(catalog), 2)

    def test_standalone_first(self):
        found = self.match([H(1, 5), V(2, 1), V(3, 1)])
        self.assertEqual(found, Match(Standalone(), (0,)))

    def test_four_star_horizontal_next_to_vertical_is_not_standalone(self):
        found = self.match([H(1, 4), V(2, 1), V(3, 2)])
        self.assertEqual(found.pattern.kind, PatternKind.MAIN_STACKED)
        self.assertEqual(found.pattern.main, 0)

    def test_five_star_vertical_with_two_verticals(self):
        found = self.match([V(1, 5), V(2, 2), V(3, 3)])
        self.assertEqual(
            found.pattern,
            Stacked(PatternKind.FIVE_STAR_VERTICAL_2V, main=0, secondaries=(1, 2)),
        )
        self.assertEqual(found.consumed, (0, 1, 2))

    def test_five_star_vertical_with_two_horizontals(self):
        found = self.match([H(1, 2), V(2, 5), H(3, 1)])
        self.assertEqual(found.pattern.kind, PatternKind.FIVE_STAR_VERTICAL_2H)
        self.assertEqual(found.pattern.main, 1)
        self.assertEqual(found.pattern.secondaries, (0, 2))
        self.assertIs(found.pattern.main_position, MainPosition.LEFT)

    def test_five_star_vertical_mixed(self):
        found = self.match([V(1, 5), H(2, 1), V(3, 4)])
        self.assertEqual(found.pattern.kind, PatternKind.FIVE_STAR_VERTICAL_MIXED)
        self.assertEqual(found.pattern.secondaries, (1, 2))

    def test_main_stacked_prefers_highest_rating(self):
        found = self.match([V(1, 1), H(2, 3), V(3, 4), H(4, 1)])
        self.assertEqual(found.pattern.kind, PatternKind.MAIN_STACKED)
        self.assertEqual(found.pattern.main, 2)
        self.assertEqual(found.pattern.secondaries, (0, 1))
        self.assertIs(found.pattern.main_position, MainPosition.RIGHT)

    def test_main_stacked_tie_prefers_window_start(self):
        found = self.match([V(1, 3), V(2, 3), V(3, 1)])
        self.assertEqual(found.pattern.main, 0)

    def test_main_stacked_falls_back_when_main_is_too_far(self):
        found = self.match([V(1, 1), V(2, 2), H(3, 1), V(4, 4)])
        self.assertEqual(found.pattern, Standard(3))

    def test_main_stacked_skips_standalone_secondaries(self):
        # H5 cannot sit in a stack, so the 3-star main has no valid partners.
        found = self.match([V(1, 3), H(2, 5), V(3, 1)])
        self.assertEqual(found.pattern, Standard(1))

    def test_panorama_vertical(self):
        found = self.match([V(1, 2), P(2), P(3)])
        self.assertEqual(
            found.pattern,
            Stacked(PatternKind.PANORAMA_VERTICAL, main=0, secondaries=(1, 2)),
        )

    def test_nested_quad(self):
        found = self.match([V(1, 2), V(2, 0), V(3, 1), H(4, 1), H(5, 1)])
        self.assertEqual(found.pattern, NestedQuad(main=0, top_pair=(1, 2), bottom=3))
        self.assertEqual(found.consumed, (0, 1, 2, 3))

    def test_standard_fills_chunk(self):
        found = self.match([H(1, 1), H(2, 2), H(3, 0), H(4, 1), H(5, 2)])
        self.assertEqual(found, Match(Standard(4), (0, 1, 2, 3)))

    def test_catalog_without_fallback_raises(self):
        only_standalone = PatternCatalog(
            (
                PatternMatcher(
                    PatternKind.STANDALONE,
                    100,
                    1,
                    lambda w, c: w[0].forced_standalone,
                    lambda w, c: Match(Standalone(), (0,)),
                ),
            )
        )
        window = build_window([V(1)], 0, 5, 4)
        with self.assertRaises(LayoutInvariantError):
            only_standalone.match(window, 4)
        with self.assertRaises(LayoutInvariantError):
            only_standalone.match([], 4)


class TestStandardRun(unittest.TestCase):
    def test_greedy_stops_at_chunk(self):
        window = build_window([V(1, 3), V(2, 3), V(3, 1)], 0, 5, 4)
        self.assertEqual(standard_run_length(window, 4), 2)

    def test_oversized_first_item_still_consumed(self):
        window = build_window([H(1, 5), V(2, 1)], 0, 5, 4)
        self.assertEqual(standard_run_length(window, 4), 1)

    def test_stops_before_item_that_does_not_fit(self):
        window = build_window([V(1, 1), V(2, 1), V(3, 1), V(4, 4)], 0, 5, 4)
        self.assertEqual(standard_run_length(window, 4), 3)


class TestWindow(unittest.TestCase):
    def test_window_uses_true_neighbours(self):
        items = [V(1, 1), H(2, 4), H(3, 1)]
        window = build_window(items, 1, 5, 4)
        self.assertEqual([w.index for w in window], [0, 1])
        # The vertical before the window keeps the 4-star horizontal pairable.
        self.assertFalse(window[0].forced_standalone)

    def test_pattern_shapes_validate_roles(self):
        with self.assertRaises(ValueError):
            Stacked(PatternKind.MAIN_STACKED, main=0, secondaries=(0, 1))
        with self.assertRaises(ValueError):
            Stacked(PatternKind.STANDARD, main=0, secondaries=(1, 2))
        with self.assertRaises(ValueError):
            NestedQuad(main=0, top_pair=(1, 1), bottom=2)


if __name__ == "__main__":
    unittest.main()
