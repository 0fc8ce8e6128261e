"""
Error taxonomy for the settlement core.

Three classes of failure exist:
- HostError: structural, non-domain failures (missing accounts, unreadable
  record, malformed payload, wrong call target, compute exhaustion).
- ValidationError: named domain outcomes with stable custom codes.
- ExternalCallError: whatever an external ledger returned, never reinterpreted.
"""
from enum import Enum, IntEnum


class ErrorCode(IntEnum):
    """Stable custom error codes (6000-6029). Clients match on these values."""
    INVALID_AUTHORITY = 6000
    DAILY_LIMIT_EXCEEDED = 6001
    TX_LIMIT_EXCEEDED = 6002
    ALREADY_INITIALIZED = 6003
    INSUFFICIENT_BALANCE = 6004
    INVALID_AMOUNT = 6005
    RATE_LIMIT_NOT_INITIALIZED = 6006
    INVALID_PDA = 6007
    DUPLICATE_MEMO = 6008
    INVALID_MEMO_FORMAT = 6009
    NOT_INITIALIZED = 6010
    INVALID_MINT = 6011
    ZERO_AMOUNT = 6012
    INVALID_METADATA_NAME = 6013
    INVALID_METADATA_SYMBOL = 6014
    INVALID_METADATA_URI = 6015
    EXTENSION_CALCULATION_ERROR = 6016
    INVALID_POOL_ACCOUNT = 6017
    SYSTEM_PAUSED = 6018
    UNAUTHORIZED_TREASURY = 6019
    EXCEEDS_TRANSACTION_LIMIT = 6020
    EXCEEDS_DAILY_LIMIT = 6021
    INVALID_TREASURY_ACCOUNT = 6022
    INVALID_INCENTIVE_POOL = 6023
    INSUFFICIENT_POOL_BALANCE = 6024
    INVALID_TOKEN_PROGRAM = 6025
    NOT_IMPLEMENTED = 6026
    INVALID_METADATA_PDA = 6027
    INVALID_OPERATION_TYPE = 6028
    SPLIT_CALCULATION_ERROR = 6029


class HostErrorKind(Enum):
    NOT_ENOUGH_ACCOUNT_KEYS = "NotEnoughAccountKeys"
    INVALID_ACCOUNT_DATA = "InvalidAccountData"
    INVALID_INSTRUCTION_DATA = "InvalidInstructionData"
    INCORRECT_PROGRAM_ID = "IncorrectProgramId"
    COMPUTE_BUDGET_EXCEEDED = "ComputeBudgetExceeded"


class ProgramError(Exception):
    """Base class for every outcome that aborts an instruction."""

    def __init__(self, message: str = "", code=None):
        super().__init__(message)
        self.message = message
        self._code = code

    @property
    def code(self):
        return self._code


class HostError(ProgramError):
    """Raised for generic structural failures that carry no domain code."""

    def __init__(self, kind: HostErrorKind, message: str = ""):
        super().__init__(message or kind.value, kind.value)
        self.kind = kind

    def __repr__(self):
        return f"HostError({self.kind.value})"


class ValidationError(ProgramError):
    """Raised when a validation stage rejects the instruction."""

    def __init__(self, code: ErrorCode, message: str = ""):
        super().__init__(message or code.name, code)

    def __repr__(self):
        return f"ValidationError({self._code.name}={int(self._code)})"


class ExternalCallError(ProgramError):
    """Opaque failure returned by an external ledger program."""

    def __init__(self, program_id: bytes, detail):
        super().__init__(f"external call to {program_id.hex()[:16]} failed: {detail}", detail)
        self.program_id = program_id
        self.detail = detail


class DerivationError(ValueError):
    """Seeds do not produce a valid derived address."""
    pass


def not_enough_account_keys(required: int, provided: int) -> HostError:
    return HostError(
        HostErrorKind.NOT_ENOUGH_ACCOUNT_KEYS,
        f"Expected at least {required} accounts, got {provided}",
    )


def invalid_account_data(message: str) -> HostError:
    return HostError(HostErrorKind.INVALID_ACCOUNT_DATA, message)


def invalid_instruction_data(message: str) -> HostError:
    return HostError(HostErrorKind.INVALID_INSTRUCTION_DATA, message)


def incorrect_program_id(message: str) -> HostError:
    return HostError(HostErrorKind.INCORRECT_PROGRAM_ID, message)
