import unittest

from domain.models import PlayerDecision
from interfaces.telegram.callback_data import (
    encode_decision,
    encode_join_choice,
    parse_decision,
    parse_join_choice,
)


class CallbackDataTests(unittest.TestCase):
    def test_join_choice(self):
        data = encode_join_choice("abc123")
        self.assertEqual(data, "join:abc123")
        self.assertEqual(parse_join_choice(data), "abc123")

    def test_decision(self):
        data = encode_decision("abc123", PlayerDecision.PAPER)
        self.assertEqual(data, "decide:abc123:paper")
        self.assertEqual(parse_decision(data), ("abc123", PlayerDecision.PAPER))

    def test_invalid_data_is_rejected(self):
        for data in ("join:", "join:a:b", "decide:abc", "decide:abc:lizard", "from:1:to:2:3"):
            with self.subTest(data=data):
                with self.assertRaises(ValueError):
                    if data.startswith("join"):
                        parse_join_choice(data)
                    else:
                        parse_decision(data)


if __name__ == "__main__":
    unittest.main()
