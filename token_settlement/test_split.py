"""
Test the split computation policy.
"""
import unittest

from token_settlement.config import SplitConfig
from token_settlement.constants import U64_MAX
from token_settlement.errors import ErrorCode, ValidationError
from token_settlement.split import SplitPolicy


class TestSplitPolicy(unittest.TestCase):
    def setUp(self):
        self.policy = SplitPolicy.from_config(SplitConfig())

    def allocate(self, total, operation_type="mixed_payment"):
        allocation = self.policy.allocate(operation_type, total)
        return allocation.amount_to_org, allocation.amount_to_pool

    def test_default_ratio(self):
        self.assertEqual(self.allocate(1_000_000), (833_333, 166_667))
        self.assertEqual(self.allocate(120), (100, 20))
        self.assertEqual(self.allocate(7), (5, 2))

    def test_default_sends_whole_markup_to_pool(self):
        """Test the default has no burn share: org base plus pool markup is the total."""
        org, pool = self.allocate(1_000_000)
        self.assertEqual(org, 1_000_000 * 100 // 120)
        self.assertEqual(pool, 1_000_000 - org)

    def test_rounding_dust_goes_to_pool(self):
        self.assertEqual(self.allocate(1), (0, 1))

    def test_legs_always_sum_to_total(self):
        for total in (1, 2, 119, 121, 999_999, 10**12 + 3, U64_MAX):
            allocation = self.policy.allocate("z_direct", total)
            self.assertEqual(allocation.amount_to_org + allocation.amount_to_pool, total)

    def test_largest_total_fits(self):
        org, pool = self.allocate(U64_MAX)
        self.assertEqual(org, U64_MAX * 100 // 120)
        self.assertEqual(org + pool, U64_MAX)

    def test_allow_list(self):
        self.assertTrue(self.policy.is_allowed("mixed_payment"))
        self.assertTrue(self.policy.is_allowed("z_direct"))
        self.assertFalse(self.policy.is_allowed("Mixed_Payment"))

    def test_zero_total(self):
        with self.assertRaises(ValidationError) as cm:
            self.allocate(0)
        self.assertEqual(cm.exception.code, ErrorCode.ZERO_AMOUNT)

    def test_unknown_operation_type(self):
        with self.assertRaises(ValidationError) as cm:
            self.allocate(100, "refund")
        self.assertEqual(cm.exception.code, ErrorCode.INVALID_OPERATION_TYPE)

    def test_custom_ratio(self):
        policy = SplitPolicy.from_config(SplitConfig(ratios={"promo": [1, 2]}))
        allocation = policy.allocate("promo", 101)
        self.assertEqual((allocation.amount_to_org, allocation.amount_to_pool), (50, 51))
        self.assertFalse(policy.is_allowed("mixed_payment"))

    def test_invalid_ratio_rejected(self):
        with self.assertRaises(ValueError):
            SplitConfig(ratios={"promo": [3, 2]})
        with self.assertRaises(ValueError):
            SplitConfig(ratios={"promo": [1, 0]})


if __name__ == '__main__':
    unittest.main()
