"""
Constants shared by the settlement core: seeds, wire identifiers and
the identities of the external programs it calls into.
"""

# Program identities (32-byte keys)
PROGRAM_ID = bytes.fromhex("08518df5b13e19fb437c97b808084be75049feb6f0e1d8d2f362a6e2a01859ef")
TOKEN_PROGRAM_ID = bytes.fromhex("06ddf6e1ee758fde18425dbce46ccddab61afc4d83b90d27febdf928d8a18bfc")
COMPRESSED_TOKEN_PROGRAM_ID = bytes.fromhex("0915a35723794e8fb65d075b6b72699c38dd02e5948b75b0e5a0418e80975b44")
SYSTEM_PROGRAM_ID = b'\x00' * 32

ADDRESS_LENGTH = 32

# Seed tags
TOKEN_STATE_SEED = b"token_state"
USER_SEED = b"user"
COMPANY_SEED = b"company"
INCENTIVE_POOL_SEED = b"incentive_pool"

# Memo grammar: "zupy:v1:{source}:{source_id}"
MEMO_PREFIX = "zupy"
MEMO_VERSION = "v1"

# Instruction discriminators (first 8 bytes of instruction data)
DISC_EXECUTE_SPLIT_TRANSFER = bytes([51, 254, 61, 214, 234, 138, 101, 214])
DISC_BURN_TOKENS = bytes([76, 15, 51, 254, 229, 215, 121, 66])
DISC_BURN_FROM_COMPANY_PDA = bytes([43, 207, 204, 77, 74, 93, 165, 34])

# Operation names (used in logs, metrics and receipts)
OP_SPLIT_TRANSFER = "execute_split_transfer"
OP_BURN_TOKENS = "burn_tokens"
OP_BURN_FROM_COMPANY = "burn_from_company_pda"

# Minimum account counts per operation
SPLIT_TRANSFER_MIN_ACCOUNTS = 9
BURN_TOKENS_MIN_ACCOUNTS = 6
BURN_FROM_COMPANY_MIN_ACCOUNTS = 7

# Split operation types accepted by default
OPERATION_MIXED_PAYMENT = "mixed_payment"
OPERATION_Z_DIRECT = "z_direct"

U64_MAX = 2**64 - 1
TOKEN_DECIMALS = 6
TOKEN_UNIT = 10**TOKEN_DECIMALS
