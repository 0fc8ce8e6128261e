"""
Identity derivation: derived addresses are recomputed on every call and
compared against caller-supplied accounts, never stored.
"""
from dataclasses import dataclass

from .constants import COMPANY_SEED, INCENTIVE_POOL_SEED, TOKEN_STATE_SEED, USER_SEED
from .crypto import create_program_address, find_program_address
from .errors import DerivationError


def u64_le(value: int) -> bytes:
    return value.to_bytes(8, 'little')


def derive(seed_tag: bytes, components, bump: int, program_id: bytes) -> bytes:
    """Address for seeds `[seed_tag, *components, bump]` under `program_id`."""
    return create_program_address([seed_tag, *components, bytes([bump])], program_id)


def verify(address: bytes, seed_tag: bytes, components, bump: int, program_id: bytes) -> bool:
    """
    Re-derive with exactly the supplied bump and compare.

    There is no search over bumps: an address that some other bump would
    reproduce is still rejected.
    """
    try:
        expected = derive(seed_tag, components, bump, program_id)
    except DerivationError:
        return False
    return expected == bytes(address)


@dataclass(frozen=True)
class SignerSeeds:
    """
    Capability proving the calling program may act for a derived identity.

    Built by the validation pipeline only after the identity was verified,
    then handed to the dispatch engine.
    """
    seeds: tuple

    def derive_address(self, program_id: bytes) -> bytes:
        return create_program_address(list(self.seeds), program_id)


@dataclass(frozen=True)
class DerivedIdentity:
    seed_tag: bytes
    components: tuple
    bump: int

    def address(self, program_id: bytes) -> bytes:
        return derive(self.seed_tag, self.components, self.bump, program_id)

    def verify(self, address: bytes, program_id: bytes) -> bool:
        return verify(address, self.seed_tag, self.components, self.bump, program_id)

    def signer_seeds(self) -> SignerSeeds:
        return SignerSeeds(seeds=(self.seed_tag, *self.components, bytes([self.bump])))


def user_identity(user_id: int, bump: int) -> DerivedIdentity:
    return DerivedIdentity(USER_SEED, (u64_le(user_id),), bump)


def organization_identity(org_id: int, bump: int) -> DerivedIdentity:
    return DerivedIdentity(COMPANY_SEED, (u64_le(org_id),), bump)


def incentive_pool_identity(bump: int) -> DerivedIdentity:
    return DerivedIdentity(INCENTIVE_POOL_SEED, (), bump)


def config_record_identity(bump: int) -> DerivedIdentity:
    return DerivedIdentity(TOKEN_STATE_SEED, (), bump)


def find_identity(seed_tag: bytes, components, program_id: bytes) -> tuple[DerivedIdentity, bytes]:
    """Canonical identity (highest viable bump) and its address."""
    address, bump = find_program_address([seed_tag, *components], program_id)
    return DerivedIdentity(seed_tag, tuple(components), bump), address


def find_organization(org_id: int, program_id: bytes) -> tuple[DerivedIdentity, bytes]:
    return find_identity(COMPANY_SEED, (u64_le(org_id),), program_id)


def find_user(user_id: int, program_id: bytes) -> tuple[DerivedIdentity, bytes]:
    return find_identity(USER_SEED, (u64_le(user_id),), program_id)


def find_incentive_pool(program_id: bytes) -> tuple[DerivedIdentity, bytes]:
    return find_identity(INCENTIVE_POOL_SEED, (), program_id)


def find_config_record(program_id: bytes) -> tuple[DerivedIdentity, bytes]:
    return find_identity(TOKEN_STATE_SEED, (), program_id)
