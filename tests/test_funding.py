import unittest
from decimal import Decimal

from livebingo.game.funding import (
    PrizeFundingCalculator,
    PrizeTier,
    calculate_funding,
    payable_flags,
    payable_tiers,
)


def _tiers(*amounts):
    names = ["quadra", "quina", "bingo", "extra"]
    return [PrizeTier(name=names[i], amount=Decimal(a)) for i, a in enumerate(amounts)]


class TestFundingStatus(unittest.TestCase):
    def test_fully_funded(self):
        status = calculate_funding(_tiers(20, 30, 60), 220, 200)
        self.assertEqual(status.total_prizes, Decimal(110))
        self.assertEqual(status.minimum_for_full_payout, Decimal(220))
        self.assertTrue(status.can_pay_all)
        self.assertEqual(status.payable_amount, Decimal(110))
        self.assertEqual(status.progress_percentage, Decimal(100))

    def test_partial_progress(self):
        status = calculate_funding(_tiers(20, 30, 60), 55, 200)
        self.assertFalse(status.can_pay_all)
        self.assertEqual(status.payable_amount, Decimal(55))
        self.assertEqual(status.progress_percentage, Decimal(25))

    def test_zero_prizes_are_fully_funded(self):
        status = calculate_funding([], 0, 200)
        self.assertTrue(status.can_pay_all)
        self.assertEqual(status.progress_percentage, Decimal(100))

    def test_negative_donations_rejected(self):
        with self.assertRaises(ValueError):
            calculate_funding(_tiers(10), -1, 200)

    def test_bool_rejected(self):
        with self.assertRaises(TypeError):
            calculate_funding(_tiers(10), True, 200)


class TestPayable(unittest.TestCase):
    def test_all_payable_at_minimum(self):
        self.assertEqual(
            payable_tiers(_tiers(20, 30, 60), 220, 200),
            {"quadra": True, "quina": True, "bingo": True},
        )

    def test_cheapest_first(self):
        self.assertEqual(
            payable_tiers(_tiers(20, 30, 60), 30, 200),
            {"quadra": True, "quina": False, "bingo": False},
        )

    def test_greedy_skips_unaffordable_and_continues(self):
        # 65 covers 20 then 30; 15 left cannot cover 60
        self.assertEqual(payable_flags([60, 20, 30], 65, 200), [False, True, True])

    def test_nothing_payable_without_donations(self):
        self.assertEqual(payable_flags([20, 30, 60], 0, 200), [False, False, False])

    def test_ties_keep_input_order(self):
        self.assertEqual(payable_flags([10, 10, 10], 20, 200), [True, True, False])

    def test_zero_percentage_always_pays(self):
        self.assertEqual(payable_flags([20, 30], 0, 0), [True, True])

    def test_duplicate_names_rejected(self):
        tiers = [PrizeTier("quina", Decimal(1)), PrizeTier("quina", Decimal(2))]
        with self.assertRaises(ValueError):
            payable_tiers(tiers, 10, 200)

    def test_payable_is_monotonic_in_donations(self):
        tiers = [20, 30, 60]
        previous = 0
        for donations in range(0, 240, 5):
            count = sum(payable_flags(tiers, donations, 200))
            self.assertGreaterEqual(count, previous)
            previous = count


class TestPrizeFundingCalculator(unittest.TestCase):
    def test_uses_configured_percentage(self):
        calc = PrizeFundingCalculator(Decimal("100"))
        self.assertTrue(calc.status(_tiers(20, 30, 60), 110).can_pay_all)
        self.assertEqual(
            calc.payable(_tiers(20, 30, 60), 110),
            {"quadra": True, "quina": True, "bingo": True},
        )

    def test_override_percentage(self):
        calc = PrizeFundingCalculator()
        flags = calc.payable(_tiers(20, 30, 60), 110, required_percentage=300)
        self.assertEqual(flags, {"quadra": True, "quina": True, "bingo": True})
        self.assertEqual(calc.funding_progress(_tiers(50), 50), Decimal(50))


if __name__ == "__main__":
    unittest.main()
