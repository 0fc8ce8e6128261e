"""
Instruction entry point for the settlement operations.

Routes on the 8-byte discriminator, runs the validation pipeline, computes
the split where needed and hands the validated context to the dispatch
engine. Every failure aborts the whole instruction.
"""
import logging
import time
from dataclasses import dataclass
from typing import Optional

from .config import Config
from .constants import (
    DISC_BURN_FROM_COMPANY_PDA,
    DISC_BURN_TOKENS,
    DISC_EXECUTE_SPLIT_TRANSFER,
    OP_BURN_FROM_COMPANY,
    OP_BURN_TOKENS,
    OP_SPLIT_TRANSFER,
)
from .dispatch import DispatchEngine, Invoker
from .errors import ExternalCallError, ProgramError, ValidationError, invalid_instruction_data
from .metering import ComputeMeter
from .split import SplitPolicy
from .validation import ValidationPipeline

logger = logging.getLogger(__name__)

DISCRIMINATOR_LEN = 8


def _status(error: ProgramError) -> str:
    if isinstance(error, ValidationError):
        return str(int(error.code))
    if isinstance(error, ExternalCallError):
        return "external_call_failed"
    return str(error.code)


@dataclass(frozen=True)
class SettlementReceipt:
    """Outcome of a successful instruction."""
    operation: str
    calls: tuple
    compute_units: int
    allocation: object = None


class SettlementProgram:
    """
    The settlement core bound to one program identity and configuration.

    The configuration record is read fresh from the account list on every
    call; nothing is cached between instructions.
    """

    def __init__(self, invoker: Invoker, config: Optional[Config] = None, monitor=None):
        self.config = config or Config.default()
        self.program_id = self.config.program.program_key
        self.split_policy = SplitPolicy.from_config(self.config.split)
        self.pipeline = ValidationPipeline(self.config.program, self.split_policy, self.config.gates)
        self.dispatcher = DispatchEngine(self.program_id, invoker)
        self.monitor = monitor

        self._routes = {
            DISC_EXECUTE_SPLIT_TRANSFER: (OP_SPLIT_TRANSFER, self.config.budgets.split_transfer,
                                          self._process_split_transfer),
            DISC_BURN_TOKENS: (OP_BURN_TOKENS, self.config.budgets.burn_tokens,
                               self._process_burn_tokens),
            DISC_BURN_FROM_COMPANY_PDA: (OP_BURN_FROM_COMPANY, self.config.budgets.burn_from_company,
                                         self._process_burn_from_company),
        }

    def process_instruction(self, accounts, data: bytes) -> SettlementReceipt:
        if len(data) < DISCRIMINATOR_LEN:
            raise invalid_instruction_data("Instruction data shorter than discriminator")
        route = self._routes.get(bytes(data[:DISCRIMINATOR_LEN]))
        if route is None:
            raise invalid_instruction_data(f"Unknown discriminator: {bytes(data[:DISCRIMINATOR_LEN]).hex()}")
        operation, budget, handler = route

        meter = ComputeMeter(budget)
        meter.charge(ComputeMeter.BASE_INSTRUCTION, "base_instruction")
        start = time.time()
        try:
            receipt = handler(accounts, bytes(data[DISCRIMINATOR_LEN:]), meter)
        except ProgramError as e:
            logger.warning(f"{operation} rejected: {e!r} ({e.message})")
            if self.monitor:
                self.monitor.record_instruction(operation, _status(e), meter.used, time.time() - start)
            raise

        logger.debug(f"{operation} used {meter.used}/{meter.limit} compute units")
        if self.monitor:
            self.monitor.record_instruction(operation, "ok", meter.used, time.time() - start)
            self.monitor.record_calls(receipt.calls)
        return receipt

    def execute_split_transfer(self, accounts, payload) -> SettlementReceipt:
        return self.process_instruction(accounts, DISC_EXECUTE_SPLIT_TRANSFER + payload.encode())

    def burn_tokens(self, accounts, payload) -> SettlementReceipt:
        return self.process_instruction(accounts, DISC_BURN_TOKENS + payload.encode())

    def burn_from_company(self, accounts, payload) -> SettlementReceipt:
        return self.process_instruction(accounts, DISC_BURN_FROM_COMPANY_PDA + payload.encode())

    # ==========================================================================
    # OPERATIONS
    # ==========================================================================

    def _process_split_transfer(self, accounts, data: bytes, meter: ComputeMeter) -> SettlementReceipt:
        ctx = self.pipeline.split_transfer(accounts, data, meter)

        meter.charge(ComputeMeter.SPLIT_CALCULATION, "split_calculation")
        allocation = self.split_policy.allocate(ctx.payload.operation_type, ctx.payload.total_amount)

        calls = self.dispatcher.split_transfer(ctx, allocation, meter)
        logger.info(
            f"Split transfer user={ctx.payload.user_id} org={ctx.payload.org_id} "
            f"total={ctx.payload.total_amount} org_leg={allocation.amount_to_org} "
            f"pool_leg={allocation.amount_to_pool}"
        )
        return SettlementReceipt(OP_SPLIT_TRANSFER, tuple(calls), meter.used, allocation)

    def _process_burn_tokens(self, accounts, data: bytes, meter: ComputeMeter) -> SettlementReceipt:
        ctx = self.pipeline.burn_tokens(accounts, data, meter)
        calls = self.dispatcher.burn_tokens(ctx, meter)
        logger.info(f"Burned {ctx.payload.amount} from {ctx.token_account.key.hex()[:16]} ({ctx.payload.memo})")
        return SettlementReceipt(OP_BURN_TOKENS, tuple(calls), meter.used)

    def _process_burn_from_company(self, accounts, data: bytes, meter: ComputeMeter) -> SettlementReceipt:
        ctx = self.pipeline.burn_from_company(accounts, data, meter)
        calls = self.dispatcher.burn_from_company(ctx, meter)
        logger.info(f"Burned {ctx.payload.amount} from org {ctx.payload.org_id} ({ctx.payload.memo})")
        return SettlementReceipt(OP_BURN_FROM_COMPANY, tuple(calls), meter.used)
