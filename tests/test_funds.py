import os
import tempfile
import unittest

from raffle_fixtures import account
from solana_raffle.errors import InsufficientFunds, InvalidIdentity
from solana_raffle.funds import Treasury
from solana_raffle.identity import (
    NULL_ACCOUNT,
    decode_identity,
    derive_identity,
    load_identities,
    validate_identity,
)


class TestTreasury(unittest.TestCase):

    def setUp(self):
        self.treasury = Treasury()
        self.treasury.deposit(account(1), 100)

    def test_transfer(self):
        self.assertTrue(self.treasury.transfer(account(1), account(2), 40))
        self.assertEqual(self.treasury.balance_of(account(1)), 60)
        self.assertEqual(self.treasury.balance_of(account(2)), 40)

    def test_insufficient_funds(self):
        with self.assertRaises(InsufficientFunds):
            self.treasury.transfer(account(1), account(2), 101)
        self.assertEqual(self.treasury.balance_of(account(1)), 100)

    def test_negative_amounts(self):
        with self.assertRaises(ValueError):
            self.treasury.transfer(account(1), account(2), -1)
        with self.assertRaises(ValueError):
            self.treasury.deposit(account(1), -1)

    def test_hook_sees_credited_funds(self):
        seen = []
        self.treasury.set_receive_hook(
            account(2), lambda source, amount: seen.append(self.treasury.balance_of(account(2)))
        )
        self.treasury.transfer(account(1), account(2), 30)
        self.assertEqual(seen, [30])

    def test_rejecting_hook_restores_balances(self):
        self.treasury.set_receive_hook(account(2), lambda source, amount: False)
        self.assertFalse(self.treasury.transfer(account(1), account(2), 30))
        self.assertEqual(self.treasury.balance_of(account(1)), 100)
        self.assertEqual(self.treasury.balance_of(account(2)), 0)

    def test_raising_hook_restores_and_propagates(self):
        def explode(source, amount):
            raise RuntimeError("boom")

        self.treasury.set_receive_hook(account(2), explode)
        with self.assertRaises(RuntimeError):
            self.treasury.transfer(account(1), account(2), 30)
        self.assertEqual(self.treasury.balance_of(account(1)), 100)

        self.treasury.set_receive_hook(account(2), None)
        self.assertTrue(self.treasury.transfer(account(1), account(2), 30))


class TestIdentity(unittest.TestCase):

    def test_null_account(self):
        self.assertEqual(NULL_ACCOUNT, "1" * 32)
        self.assertEqual(decode_identity(NULL_ACCOUNT), bytes(32))
        with self.assertRaises(InvalidIdentity):
            validate_identity(NULL_ACCOUNT)
        self.assertEqual(validate_identity(NULL_ACCOUNT, allow_null=True), NULL_ACCOUNT)

    def test_rejects_malformed(self):
        for bad in ("", "0OIl", "abc", 12345, None):
            with self.assertRaises(InvalidIdentity):
                validate_identity(bad)

    def test_invalid_identity_is_value_error(self):
        with self.assertRaises(ValueError):
            validate_identity("abc")

    def test_derive_identity(self):
        derived = derive_identity("raffle-ledger")
        self.assertEqual(derived, derive_identity("raffle-ledger"))
        self.assertNotEqual(derived, derive_identity("other"))
        self.assertEqual(validate_identity(derived), derived)

    def test_load_identities(self):
        fd, path = tempfile.mkstemp(suffix=".txt")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(f"# entrants\n{account(2)}\n\n  {account(1)}  \n")
        try:
            self.assertEqual(load_identities(path), [account(2), account(1)])
        finally:
            os.remove(path)
        self.assertEqual(load_identities(None), [])


if __name__ == "__main__":
    unittest.main()
