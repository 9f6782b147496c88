import unittest

from raffle_fixtures import account
from solana_raffle.collectibles import Rarity
from solana_raffle.draw import (
    PotSplit,
    compute_rarity_roll,
    compute_winner_index,
    hash_parts,
    rarity_for_roll,
    split_pot,
    to_sol,
)
from solana_raffle.randomness import StaticRandomSource


class TestDrawArithmetic(unittest.TestCase):

    def test_split_pot_truncates(self):
        self.assertEqual(split_pot(4), PotSplit(total=4, prize=3, fee=0, leaked=1))
        pot = split_pot(7)
        self.assertEqual((pot.prize, pot.fee, pot.leaked), (5, 1, 1))
        pot = split_pot(50)
        self.assertEqual((pot.prize, pot.fee, pot.leaked), (40, 10, 0))

    def test_rarity_boundaries(self):
        self.assertIs(rarity_for_roll(0), Rarity.COMMON)
        self.assertIs(rarity_for_roll(70), Rarity.COMMON)
        self.assertIs(rarity_for_roll(71), Rarity.RARE)
        self.assertIs(rarity_for_roll(95), Rarity.RARE)
        self.assertIs(rarity_for_roll(96), Rarity.LEGENDARY)
        self.assertIs(rarity_for_roll(99), Rarity.LEGENDARY)

    def test_rarity_distribution_over_all_rolls(self):
        tiers = [rarity_for_roll(r) for r in range(100)]
        self.assertEqual(tiers.count(Rarity.COMMON), 71)
        self.assertEqual(tiers.count(Rarity.RARE), 25)
        self.assertEqual(tiers.count(Rarity.LEGENDARY), 4)

    def test_winner_index_is_hash_mod_count(self):
        caller = account(5)
        index, digest_hex = compute_winner_index(caller, 1234, "seed", 7)
        value, expected_hex = hash_parts(caller, 1234, "seed")
        self.assertEqual(digest_hex, expected_hex)
        self.assertEqual(index, value % 7)
        self.assertEqual(len(digest_hex), 64)

    def test_winner_index_depends_on_time(self):
        caller = account(5)
        indexes = {compute_winner_index(caller, t, "seed", 1000)[0] for t in range(20)}
        self.assertGreater(len(indexes), 1)

    def test_winner_index_requires_slots(self):
        with self.assertRaises(RuntimeError):
            compute_winner_index(account(1), 0, "seed", 0)

    def test_rarity_roll_ignores_time(self):
        roll, _ = compute_rarity_roll(account(5), "seed")
        self.assertTrue(0 <= roll < 100)
        self.assertEqual(compute_rarity_roll(account(5), "seed")[0], roll)

    def test_to_sol(self):
        self.assertEqual(to_sol(1_500_000_000), 1.5)


class TestStaticRandomSource(unittest.TestCase):

    def test_draw_matches_pure_functions(self):
        source = StaticRandomSource("4vJ9JU1bJJE96FWSJKvHsmmFADCg4gpZQff4P3bkLKi")
        caller = account(9)
        outcome = source.draw(caller, 1_700_000_000, 6)

        index, index_hash = compute_winner_index(caller, 1_700_000_000, source.seed, 6)
        roll, roll_hash = compute_rarity_roll(caller, source.seed)
        self.assertEqual(outcome.winner_index, index)
        self.assertEqual(outcome.index_hash_hex, index_hash)
        self.assertEqual(outcome.rarity_roll, roll)
        self.assertEqual(outcome.rarity_hash_hex, roll_hash)
        self.assertEqual(outcome.seed, source.seed)


if __name__ == "__main__":
    unittest.main()
