"""
Test instruction payload parsing and the memo grammar.
"""
import struct
import unittest

from token_settlement.errors import ErrorCode, HostError, HostErrorKind, ValidationError
from token_settlement.instruction_data import (
    DirectBurnPayload,
    OrgBurnPayload,
    SplitTransferPayload,
    parse_string,
    parse_u64,
)
from token_settlement.memo import is_valid_memo, make_memo, validate_memo_format


class TestPayloads(unittest.TestCase):
    def test_split_transfer_layout(self):
        data = (
            struct.pack('<QQQ', 42, 7, 1_000_000)
            + bytes([255, 254, 253])
            + struct.pack('<I', 13) + b"mixed_payment"
        )
        payload = SplitTransferPayload.decode(data)

        self.assertEqual(payload.user_id, 42)
        self.assertEqual(payload.org_id, 7)
        self.assertEqual(payload.total_amount, 1_000_000)
        self.assertEqual((payload.user_bump, payload.org_bump, payload.pool_bump), (255, 254, 253))
        self.assertEqual(payload.operation_type, "mixed_payment")
        self.assertEqual(payload.encode(), data)

    def test_direct_burn_layout(self):
        memo = make_memo("redemption", "r-1")
        payload = DirectBurnPayload.decode(struct.pack('<QI', 500, len(memo)) + memo.encode())
        self.assertEqual(payload, DirectBurnPayload(500, memo))

    def test_org_burn_layout(self):
        payload = OrgBurnPayload(org_id=3, amount=9, memo="zupy:v1:a:b")
        self.assertEqual(payload.encode()[:16], struct.pack('<QQ', 3, 9))
        self.assertEqual(OrgBurnPayload.decode(payload.encode()), payload)

    def test_trailing_bytes_ignored(self):
        payload = DirectBurnPayload(1, "zupy:v1:a:b")
        self.assertEqual(DirectBurnPayload.decode(payload.encode() + b"\x00\x01"), payload)

    def test_truncated_u64(self):
        with self.assertRaises(HostError) as cm:
            parse_u64(b"\x01\x02\x03", 0)
        self.assertEqual(cm.exception.kind, HostErrorKind.INVALID_INSTRUCTION_DATA)

    def test_string_length_beyond_data(self):
        with self.assertRaises(HostError) as cm:
            parse_string(struct.pack('<I', 50) + b"short", 0)
        self.assertEqual(cm.exception.kind, HostErrorKind.INVALID_INSTRUCTION_DATA)

    def test_invalid_utf8(self):
        with self.assertRaises(HostError):
            parse_string(struct.pack('<I', 2) + b"\xff\xfe", 0)

    def test_empty_payload(self):
        with self.assertRaises(HostError):
            OrgBurnPayload.decode(b"")


class TestMemo(unittest.TestCase):
    def test_valid_memos(self):
        self.assertTrue(is_valid_memo("zupy:v1:redemption:r-1"))
        self.assertTrue(is_valid_memo("zupy:v1:order:a:b:c"))
        self.assertEqual(make_memo("order", "17"), "zupy:v1:order:17")

    def test_invalid_memos(self):
        for memo in ("bad_format", "", "zupy:v1:order", "zupy:v2:order:1",
                     "ZUPY:v1:order:1", "zupy:v1::1", "zupy:v1:order:"):
            self.assertFalse(is_valid_memo(memo), memo)

    def test_validate_raises_named_error(self):
        with self.assertRaises(ValidationError) as cm:
            validate_memo_format("bad_format")
        self.assertEqual(cm.exception.code, ErrorCode.INVALID_MEMO_FORMAT)
        self.assertEqual(int(cm.exception.code), 6009)


if __name__ == '__main__':
    unittest.main()
