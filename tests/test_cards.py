import random
import unittest

from livebingo.game.cards import (
    FREE_VALUE,
    column_letter,
    column_ranges,
    generate_card,
    validate_card,
)
from livebingo.game.evaluator import FREE_INDEX


class TestCardGeneration(unittest.TestCase):
    def test_standard_card_columns(self):
        card = generate_card(75, rng=random.Random(11))
        validate_card(card, 75)
        self.assertEqual(card[FREE_INDEX], FREE_VALUE)
        for col, (low, high) in enumerate(column_ranges(75)):
            column = [card[row * 5 + col] for row in range(5) if row * 5 + col != FREE_INDEX]
            self.assertTrue(all(low <= n <= high for n in column), column)
            self.assertEqual(column, sorted(column))

    def test_single_pool_card(self):
        card = generate_card(90, rng=random.Random(5))
        validate_card(card, 90)
        self.assertEqual(len(set(card)), 25)

    def test_column_ranges(self):
        self.assertEqual(
            column_ranges(75),
            [(1, 15), (16, 30), (31, 45), (46, 60), (61, 75)],
        )
        with self.assertRaises(ValueError):
            column_ranges(72)

    def test_column_letter(self):
        self.assertEqual(column_letter(0), "B")
        self.assertEqual(column_letter(12), "N")
        self.assertEqual(column_letter(24), "O")
        with self.assertRaises(ValueError):
            column_letter(25)

    def test_validate_card_rejects_duplicates(self):
        card = generate_card(75, rng=random.Random(2))
        card[0] = card[1]
        with self.assertRaises(ValueError):
            validate_card(card, 75)

    def test_validate_card_requires_free_centre(self):
        card = generate_card(75, rng=random.Random(2))
        card[FREE_INDEX] = 40
        with self.assertRaises(ValueError):
            validate_card(card, 75)

    def test_pool_too_small(self):
        with self.assertRaises(ValueError):
            generate_card(20, partitioned=False)


if __name__ == "__main__":
    unittest.main()
