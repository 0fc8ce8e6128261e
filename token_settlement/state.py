"""
Configuration record: the singleton trust anchor holding authorities,
the mint identity and the operational flags.

The record is read-only from the settlement core's perspective. It is
created by the initialization instruction and decoded here from its fixed
363-byte layout.
"""
import struct
from dataclasses import dataclass, field

from .crypto import generate_hash
from .errors import invalid_account_data

CONFIG_RECORD_DISCRIMINATOR = generate_hash(b"account:TokenState")[:8]

# discriminator, 8 pubkeys, initialized, bump, 3 x u64, i64, paused, reserved
_LAYOUT = struct.Struct('<8s32s32s32s32s32s32s32s32s?BQQQq?64s')
CONFIG_RECORD_SIZE = _LAYOUT.size  # 363

_EMPTY_KEY = b'\x00' * 32


@dataclass(frozen=True)
class ConfigurationRecord:
    treasury: bytes = _EMPTY_KEY
    secondary_authority: bytes = _EMPTY_KEY
    transfer_authority: bytes = _EMPTY_KEY
    pool_account: bytes = _EMPTY_KEY
    distribution_pool: bytes = _EMPTY_KEY
    incentive_pool: bytes = _EMPTY_KEY
    treasury_account: bytes = _EMPTY_KEY
    mint: bytes = _EMPTY_KEY
    initialized: bool = False
    self_bump: int = 0
    per_tx_auto_limit: int = 0
    daily_auto_limit: int = 0
    daily_minted: int = 0
    last_reset_timestamp: int = 0
    paused: bool = False
    discriminator: bytes = field(default=CONFIG_RECORD_DISCRIMINATOR, repr=False)

    @classmethod
    def from_bytes(cls, data: bytes) -> 'ConfigurationRecord':
        """
        Decode a record snapshot.

        Any buffer that is not exactly CONFIG_RECORD_SIZE bytes is unreadable
        and raises a host-level InvalidAccountData.
        """
        if len(data) != CONFIG_RECORD_SIZE:
            raise invalid_account_data(
                f"Configuration record must be {CONFIG_RECORD_SIZE} bytes, got {len(data)}"
            )
        (disc, treasury, secondary, transfer, pool, dist_pool, incentive, treasury_acct,
         mint, initialized, bump, per_tx, daily, minted, last_reset, paused,
         _reserved) = _LAYOUT.unpack(bytes(data))
        return cls(
            treasury=treasury,
            secondary_authority=secondary,
            transfer_authority=transfer,
            pool_account=pool,
            distribution_pool=dist_pool,
            incentive_pool=incentive,
            treasury_account=treasury_acct,
            mint=mint,
            initialized=initialized,
            self_bump=bump,
            per_tx_auto_limit=per_tx,
            daily_auto_limit=daily,
            daily_minted=minted,
            last_reset_timestamp=last_reset,
            paused=paused,
            discriminator=disc,
        )

    def to_bytes(self) -> bytes:
        return _LAYOUT.pack(
            self.discriminator,
            self.treasury,
            self.secondary_authority,
            self.transfer_authority,
            self.pool_account,
            self.distribution_pool,
            self.incentive_pool,
            self.treasury_account,
            self.mint,
            self.initialized,
            self.self_bump,
            self.per_tx_auto_limit,
            self.daily_auto_limit,
            self.daily_minted,
            self.last_reset_timestamp,
            self.paused,
            b'\x00' * 64,
        )

    def to_dict(self) -> dict:
        """Convert to a JSON-friendly dict (keys as hex)."""
        return {
            'treasury': self.treasury.hex(),
            'secondary_authority': self.secondary_authority.hex(),
            'transfer_authority': self.transfer_authority.hex(),
            'pool_account': self.pool_account.hex(),
            'distribution_pool': self.distribution_pool.hex(),
            'incentive_pool': self.incentive_pool.hex(),
            'treasury_account': self.treasury_account.hex(),
            'mint': self.mint.hex(),
            'initialized': self.initialized,
            'self_bump': self.self_bump,
            'per_tx_auto_limit': self.per_tx_auto_limit,
            'daily_auto_limit': self.daily_auto_limit,
            'daily_minted': self.daily_minted,
            'last_reset_timestamp': self.last_reset_timestamp,
            'paused': self.paused,
        }
