import json
import os
import tempfile
import unittest

from raffle_fixtures import DURATION, OWNER, FakeClock, account, fund_and_enter, make_ledger
from solana_raffle.randomness import StaticRandomSource
from solana_raffle.verify import verify_audit, verify_receipt


class TestVerify(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.ledger, self.treasury = make_ledger(
            entry_fee=7, source=StaticRandomSource("seed-blockhash"), clock=self.clock
        )
        fund_and_enter(self.ledger, self.treasury, 1, 2, 3, 4, 5, 6)
        self.ledger.refund(account(6), 5)
        self.slots = [{"identity": s.identity, "state": s.state.value} for s in self.ledger.slots]
        self.clock.advance(DURATION)
        self.receipt = self.ledger.draw_winner(OWNER).to_dict()

    def test_verify_receipt(self):
        result = verify_receipt(self.receipt, self.slots, 7)
        self.assertTrue(result["ok"])
        self.assertEqual(result["winner"], self.receipt["winner"])
        self.assertEqual(result["prize"], 42 * 80 // 100)
        self.assertEqual(result["leaked"], 42 - 33 - 8)

    def test_tampered_receipts(self):
        tampered = [
            ("winner", account(99)),
            ("seed", "other-seed"),
            ("rarity_roll", (self.receipt["rarity_roll"] + 1) % 100),
            ("prize", self.receipt["prize"] + 1),
        ]
        for key, value in tampered:
            receipt = dict(self.receipt, **{key: value})
            with self.assertRaises(RuntimeError):
                verify_receipt(receipt, self.slots, 7)

    def test_wrong_slot_list(self):
        with self.assertRaises(RuntimeError):
            verify_receipt(self.receipt, self.slots[:-1], 7)

    def test_verify_audit_file(self):
        audit = {"metadata": {"entry_fee": 7}, "receipt": self.receipt, "slots": self.slots}
        fd, path = tempfile.mkstemp(suffix=".json")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(audit, f)
        try:
            self.assertEqual(verify_audit(path)["round_number"], 1)
        finally:
            os.remove(path)


if __name__ == "__main__":
    unittest.main()
