import itertools
import unittest

from livebingo.errors import InvalidMarkError
from livebingo.game.evaluator import (
    CORNERS,
    FREE_INDEX,
    WINNING_LINES,
    CardEvaluator,
    evaluate_card,
    normalize_positions,
)

ALL_BUT_FREE = [i for i in range(25) if i != FREE_INDEX]


class TestCardEvaluator(unittest.TestCase):
    def test_empty_card_satisfies_nothing(self):
        ev = evaluate_card([])
        self.assertFalse(ev.quadra)
        self.assertFalse(ev.quina)
        self.assertFalse(ev.bingo)
        self.assertEqual(ev.satisfied_tiers, [])

    def test_corners_give_quadra(self):
        ev = evaluate_card(CORNERS)
        self.assertTrue(ev.quadra)
        self.assertFalse(ev.quina)
        self.assertFalse(ev.bingo)

    def test_proper_corner_subsets_are_not_enough(self):
        for size in range(len(CORNERS)):
            for subset in itertools.combinations(sorted(CORNERS), size):
                with self.subTest(corners=subset):
                    self.assertFalse(evaluate_card(list(subset)).quadra)

    def test_twelve_lines(self):
        self.assertEqual(len(WINNING_LINES), 12)

    def test_every_line_gives_quina(self):
        for line in WINNING_LINES:
            with self.subTest(line=line):
                marked = [pos for pos in line if pos != FREE_INDEX]
                self.assertTrue(evaluate_card(marked).quina)

    def test_middle_row_counts_free_cell(self):
        ev = evaluate_card([10, 11, 13, 14])
        self.assertTrue(ev.quina)

    def test_incomplete_line_is_not_quina(self):
        self.assertFalse(evaluate_card([0, 1, 2, 3]).quina)

    def test_bingo_needs_24_marks(self):
        self.assertFalse(evaluate_card(ALL_BUT_FREE[:-1]).bingo)
        ev = evaluate_card(ALL_BUT_FREE)
        self.assertTrue(ev.bingo)
        self.assertEqual(ev.satisfied_tiers, ["quadra", "quina", "bingo"])

    def test_order_and_duplicates_do_not_matter(self):
        self.assertEqual(evaluate_card([24, 0, 4, 20, 0]), evaluate_card(CORNERS))

    def test_out_of_range_position_rejected(self):
        with self.assertRaises(InvalidMarkError):
            CardEvaluator().evaluate([0, 25])
        with self.assertRaises(InvalidMarkError):
            normalize_positions([-1])

    def test_non_integer_position_rejected(self):
        with self.assertRaises(InvalidMarkError):
            normalize_positions(["3"])
        with self.assertRaises(InvalidMarkError):
            normalize_positions([True])

    def test_is_satisfied_unknown_tier(self):
        ev = evaluate_card(CORNERS)
        self.assertTrue(ev.is_satisfied("quadra"))
        with self.assertRaises(KeyError):
            ev.is_satisfied("jackpot")


if __name__ == "__main__":
    unittest.main()
