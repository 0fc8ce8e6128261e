"""
Split computation policy: divides a total between the organization and
the incentive pool according to the configured ratio for an operation type.
"""
from dataclasses import dataclass

from .constants import U64_MAX
from .errors import ErrorCode, ValidationError


@dataclass(frozen=True)
class Allocation:
    amount_to_org: int
    amount_to_pool: int


class SplitPolicy:
    """
    Maps operation types to org/pool ratios.

    The organization receives floor(total * numerator / denominator); the
    pool receives the remainder, so rounding dust always lands in the pool.
    """

    def __init__(self, ratios: dict):
        self.ratios = {op: (int(num), int(den)) for op, (num, den) in ratios.items()}

    @classmethod
    def from_config(cls, split_config) -> 'SplitPolicy':
        return cls(split_config.ratios)

    def is_allowed(self, operation_type: str) -> bool:
        return operation_type in self.ratios

    def allocate(self, operation_type: str, total_amount: int) -> Allocation:
        if total_amount == 0:
            raise ValidationError(ErrorCode.ZERO_AMOUNT, "Split total must be nonzero")
        if operation_type not in self.ratios:
            raise ValidationError(
                ErrorCode.INVALID_OPERATION_TYPE,
                f"Unknown operation type: {operation_type!r}"
            )
        numerator, denominator = self.ratios[operation_type]

        amount_to_org = (total_amount * numerator) // denominator
        amount_to_pool = total_amount - amount_to_org

        if amount_to_org < 0 or amount_to_pool < 0:
            raise ValidationError(ErrorCode.SPLIT_CALCULATION_ERROR, "Negative split leg")
        if amount_to_org > U64_MAX or amount_to_pool > U64_MAX:
            raise ValidationError(ErrorCode.SPLIT_CALCULATION_ERROR, "Split leg exceeds u64")
        if amount_to_org + amount_to_pool != total_amount:
            raise ValidationError(ErrorCode.SPLIT_CALCULATION_ERROR, "Split legs do not sum to total")

        return Allocation(amount_to_org=amount_to_org, amount_to_pool=amount_to_pool)
