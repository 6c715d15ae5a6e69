import unittest

from dispatch_selectors.shared import get_by_index, keccak256, normalize_selector, strip_hex_prefix


class TestHelpers(unittest.TestCase):
    def test_get_by_index(self):
        self.assertEqual(2, get_by_index([1, 2], 1))
        self.assertIsNone(get_by_index([1, 2], 2))
        self.assertIsNone(get_by_index([1, 2], -1))
        self.assertIsNone(get_by_index([], 0))

    def test_selector_text(self):
        tests = [
            ('0xA9059CBB', 'a9059cbb'),
            (' 0Xa9059cbb ', 'a9059cbb'),
            ('a9059cbb', 'a9059cbb'),
        ]
        for (s, expected) in tests:
            self.assertEqual(expected, normalize_selector(s), f'Failed for {s!r}')
        self.assertEqual('6080', strip_hex_prefix('0x6080'))

    def test_keccak256(self):
        self.assertEqual('a9059cbb', keccak256('transfer(address,uint256)')[:8])
