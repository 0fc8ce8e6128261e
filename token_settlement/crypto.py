"""
Core cryptographic functions for the settlement core.
"""
import hashlib
import nacl.bindings
import nacl.signing

from .constants import ADDRESS_LENGTH
from .errors import DerivationError

PDA_MARKER = b"ProgramDerivedAddress"
MAX_SEEDS = 16
MAX_SEED_LEN = 32


def generate_hash(data: bytes) -> bytes:
    """Generates a SHA-256 hash."""
    return hashlib.sha256(data).digest()


def is_on_curve(point: bytes) -> bool:
    """True if the 32 bytes decode to a valid ed25519 point."""
    return bool(nacl.bindings.crypto_core_ed25519_is_valid_point(point))


def generate_keypair() -> tuple[nacl.signing.SigningKey, bytes]:
    """Generates an ed25519 signing key and its 32-byte address."""
    signing_key = nacl.signing.SigningKey.generate()
    return signing_key, public_key_to_address(signing_key.verify_key)


def public_key_to_address(verify_key: nacl.signing.VerifyKey) -> bytes:
    """An ed25519 public key is used as its own address."""
    return bytes(verify_key)


def is_valid_address(address: bytes) -> bool:
    return isinstance(address, (bytes, bytearray)) and len(address) == ADDRESS_LENGTH


def create_program_address(seeds, program_id: bytes) -> bytes:
    """
    Derive the address owned by `program_id` for the given seeds.

    The last seed is normally the bump byte. Raises DerivationError when the
    digest lands on the ed25519 curve (it would then have a private key).
    """
    if not is_valid_address(program_id):
        raise DerivationError("Program id must be a 32-byte address")
    if len(seeds) > MAX_SEEDS:
        raise DerivationError(f"Too many seeds: {len(seeds)} > {MAX_SEEDS}")
    hasher = hashlib.sha256()
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise DerivationError(f"Seed longer than {MAX_SEED_LEN} bytes")
        hasher.update(seed)
    hasher.update(program_id)
    hasher.update(PDA_MARKER)
    address = hasher.digest()
    if is_on_curve(address):
        raise DerivationError("Derived address lies on the ed25519 curve")
    return address


def find_program_address(seeds, program_id: bytes) -> tuple[bytes, int]:
    """Search the canonical (highest valid) bump for the given seeds."""
    for bump in range(255, -1, -1):
        try:
            return create_program_address(list(seeds) + [bytes([bump])], program_id), bump
        except DerivationError:
            continue
    raise DerivationError("Unable to find a viable bump seed")
