"""
Test configuration defaults and persistence.
"""
import os
import shutil
import tempfile
import unittest

from token_settlement.config import Config
from token_settlement.constants import COMPRESSED_TOKEN_PROGRAM_ID, PROGRAM_ID


class TestConfig(unittest.TestCase):
    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_defaults(self):
        config = Config.default()
        self.assertEqual(config.program.program_key, PROGRAM_ID)
        self.assertEqual(config.program.compressed_token_program_key, COMPRESSED_TOKEN_PROGRAM_ID)
        self.assertEqual(config.split.ratios["mixed_payment"], [100, 120])
        self.assertFalse(config.gates.pause_gates_direct_burn)
        self.assertEqual(config.budgets.split_transfer, 30_000)
        self.assertEqual(config.budgets.burn_tokens, 10_000)

    def test_file_round_trip(self):
        config = Config.default()
        config.split.ratios = {"mixed_payment": [3, 4]}
        config.gates.pause_gates_direct_burn = True
        path = os.path.join(self.test_dir, "nested", "settlement.json")

        config.to_file(path)
        loaded = Config.from_file(path)

        self.assertEqual(loaded.to_dict(), config.to_dict())
        self.assertTrue(loaded.gates.pause_gates_direct_burn)

    def test_partial_file_uses_defaults(self):
        path = os.path.join(self.test_dir, "partial.json")
        with open(path, 'w') as f:
            f.write('{"budgets": {"burn_tokens": 20000}}')

        loaded = Config.from_file(path)

        self.assertEqual(loaded.budgets.burn_tokens, 20_000)
        self.assertEqual(loaded.budgets.split_transfer, 30_000)
        self.assertIn("z_direct", loaded.split.ratios)


if __name__ == '__main__':
    unittest.main()
