"""
Caller-supplied account references and the legacy token program layouts
the core reads from them.
"""
import struct
from dataclasses import dataclass

from .constants import SYSTEM_PROGRAM_ID

TOKEN_ACCOUNT_SIZE = 165
MINT_ACCOUNT_SIZE = 82

_TOKEN_ACCOUNT_HEAD = struct.Struct('<32s32sQ')  # mint, owner, amount
_MINT_SUPPLY = struct.Struct('<Q')
_MINT_SUPPLY_OFFSET = 36
_MINT_DECIMALS_OFFSET = 44
_MINT_INITIALIZED_OFFSET = 45


@dataclass
class AccountView:
    """One entry of the account list handed to an instruction."""
    key: bytes
    owner: bytes = SYSTEM_PROGRAM_ID
    data: bytes = b''
    is_signer: bool = False
    is_writable: bool = False
    executable: bool = False
    lamports: int = 0

    def owned_by(self, program_id: bytes) -> bool:
        return self.owner == bytes(program_id)

    @property
    def data_len(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class AccountMeta:
    """Account reference forwarded to an external call."""
    key: bytes
    is_signer: bool = False
    is_writable: bool = False

    @classmethod
    def from_view(cls, view: AccountView) -> 'AccountMeta':
        return cls(key=view.key, is_signer=view.is_signer, is_writable=view.is_writable)


@dataclass(frozen=True)
class TokenAccount:
    mint: bytes
    owner: bytes
    amount: int

    @classmethod
    def from_bytes(cls, data: bytes) -> 'TokenAccount':
        """
        Callers check program ownership first; an account owned by the token
        program is always at least TOKEN_ACCOUNT_SIZE bytes.
        """
        mint, owner, amount = _TOKEN_ACCOUNT_HEAD.unpack_from(bytes(data), 0)
        return cls(mint=mint, owner=owner, amount=amount)


def pack_token_account(mint: bytes, owner: bytes, amount: int) -> bytes:
    head = _TOKEN_ACCOUNT_HEAD.pack(mint, owner, amount)
    body = bytearray(TOKEN_ACCOUNT_SIZE)
    body[:len(head)] = head
    body[108] = 1  # state = initialized
    return bytes(body)


def with_token_amount(data: bytes, amount: int) -> bytes:
    body = bytearray(data)
    body[64:72] = amount.to_bytes(8, 'little')
    return bytes(body)


def pack_mint(supply: int, decimals: int) -> bytes:
    body = bytearray(MINT_ACCOUNT_SIZE)
    _MINT_SUPPLY.pack_into(body, _MINT_SUPPLY_OFFSET, supply)
    body[_MINT_DECIMALS_OFFSET] = decimals
    body[_MINT_INITIALIZED_OFFSET] = 1
    return bytes(body)


def read_mint_supply(data: bytes) -> int:
    return _MINT_SUPPLY.unpack_from(bytes(data), _MINT_SUPPLY_OFFSET)[0]


def with_mint_supply(data: bytes, supply: int) -> bytes:
    body = bytearray(data)
    _MINT_SUPPLY.pack_into(body, _MINT_SUPPLY_OFFSET, supply)
    return bytes(body)
