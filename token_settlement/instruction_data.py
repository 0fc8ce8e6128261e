"""
Instruction payload parsing.

All integers are little-endian fixed width. Text fields are a u32 length
prefix followed by UTF-8 bytes. Any truncation or bad encoding is a
host-level InvalidInstructionData.
"""
import struct
from dataclasses import dataclass

from .errors import invalid_instruction_data

_U64 = struct.Struct('<Q')
_U32 = struct.Struct('<I')


def parse_u64(data: bytes, offset: int) -> tuple[int, int]:
    """Returns (value, next_offset)."""
    end = offset + 8
    if len(data) < end:
        raise invalid_instruction_data(f"u64 at offset {offset} is truncated")
    return _U64.unpack_from(data, offset)[0], end


def parse_u8(data: bytes, offset: int) -> tuple[int, int]:
    if len(data) < offset + 1:
        raise invalid_instruction_data(f"u8 at offset {offset} is truncated")
    return data[offset], offset + 1


def parse_string(data: bytes, offset: int) -> tuple[str, int]:
    len_end = offset + 4
    if len(data) < len_end:
        raise invalid_instruction_data(f"string length at offset {offset} is truncated")
    length = _U32.unpack_from(data, offset)[0]
    str_end = len_end + length
    if len(data) < str_end:
        raise invalid_instruction_data(f"string at offset {offset} is truncated")
    try:
        return bytes(data[len_end:str_end]).decode('utf-8'), str_end
    except UnicodeDecodeError:
        raise invalid_instruction_data(f"string at offset {offset} is not valid UTF-8")


def encode_u64(value: int) -> bytes:
    return _U64.pack(value)


def encode_string(value: str) -> bytes:
    raw = value.encode('utf-8')
    return _U32.pack(len(raw)) + raw


@dataclass(frozen=True)
class SplitTransferPayload:
    user_id: int
    org_id: int
    total_amount: int
    user_bump: int
    org_bump: int
    pool_bump: int
    operation_type: str

    @classmethod
    def decode(cls, data: bytes) -> 'SplitTransferPayload':
        user_id, offset = parse_u64(data, 0)
        org_id, offset = parse_u64(data, offset)
        total_amount, offset = parse_u64(data, offset)
        user_bump, offset = parse_u8(data, offset)
        org_bump, offset = parse_u8(data, offset)
        pool_bump, offset = parse_u8(data, offset)
        operation_type, _ = parse_string(data, offset)
        return cls(user_id, org_id, total_amount, user_bump, org_bump, pool_bump, operation_type)

    def encode(self) -> bytes:
        return (
            encode_u64(self.user_id)
            + encode_u64(self.org_id)
            + encode_u64(self.total_amount)
            + bytes([self.user_bump, self.org_bump, self.pool_bump])
            + encode_string(self.operation_type)
        )


@dataclass(frozen=True)
class DirectBurnPayload:
    amount: int
    memo: str

    @classmethod
    def decode(cls, data: bytes) -> 'DirectBurnPayload':
        amount, offset = parse_u64(data, 0)
        memo, _ = parse_string(data, offset)
        return cls(amount, memo)

    def encode(self) -> bytes:
        return encode_u64(self.amount) + encode_string(self.memo)


@dataclass(frozen=True)
class OrgBurnPayload:
    org_id: int
    amount: int
    memo: str

    @classmethod
    def decode(cls, data: bytes) -> 'OrgBurnPayload':
        org_id, offset = parse_u64(data, 0)
        amount, offset = parse_u64(data, offset)
        memo, _ = parse_string(data, offset)
        return cls(org_id, amount, memo)

    def encode(self) -> bytes:
        return encode_u64(self.org_id) + encode_u64(self.amount) + encode_string(self.memo)
