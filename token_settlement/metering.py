"""
Compute metering for a single instruction.

Every stage of the pipeline charges a fixed cost, so the total for an
operation is bounded by construction and independent of payload contents.
"""
from .errors import HostError, HostErrorKind


class ComputeMeter:
    """Fixed-cost compute accounting with a hard ceiling."""

    BASE_INSTRUCTION = 100
    ACCOUNT_CHECK = 20
    RECORD_DECODE = 100
    PDA_DERIVATION = 1500
    PDA_SEARCH = 3000
    PAYLOAD_FIELD = 10
    MEMO_CHECK = 200
    SPLIT_CALCULATION = 50
    DISPATCH_CALL = 1000

    def __init__(self, limit: int):
        self.limit = limit
        self.used = 0

    def charge(self, amount: int, operation: str = ""):
        """Charge compute units and check the ceiling."""
        self.used += amount
        if self.used > self.limit:
            raise HostError(
                HostErrorKind.COMPUTE_BUDGET_EXCEEDED,
                f"Out of compute: {self.used}/{self.limit} (operation: {operation})"
            )
