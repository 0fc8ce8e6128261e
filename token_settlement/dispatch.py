"""
Dispatch engine: issues cross-ledger calls in a fixed order.

Calls go through an invoker supplied by the host. The engine never retries
and never compensates; an external failure propagates unchanged and the
host's transaction atomicity discards any effect of earlier calls.
"""
import logging
from dataclasses import dataclass, field

from .accounts import AccountMeta
from .metering import ComputeMeter

logger = logging.getLogger(__name__)

COMPRESSED_TRANSFER = "compressed_transfer"
COMPRESSED_BURN = "compressed_burn"
TOKEN_BURN = "token_burn"


@dataclass(frozen=True)
class ExternalCall:
    """
    A single call into an external ledger program.

    `accounts` are the role-ordered references the callee needs; `signers`
    are the derived-identity capabilities the calling program lends.
    """
    program_id: bytes
    kind: str
    accounts: tuple
    amount: int
    signers: tuple = ()
    remaining_accounts: tuple = field(default=(), repr=False)


class Invoker:
    """Host interface for cross-ledger calls."""

    def invoke(self, caller_program_id: bytes, call: ExternalCall):
        raise NotImplementedError


class DispatchEngine:
    def __init__(self, program_id: bytes, invoker: Invoker):
        self.program_id = program_id
        self.invoker = invoker

    def _issue(self, call: ExternalCall, meter: ComputeMeter):
        meter.charge(ComputeMeter.DISPATCH_CALL, call.kind)
        logger.debug(f"Invoking {call.kind} on {call.program_id.hex()[:8]} amount={call.amount}")
        self.invoker.invoke(self.program_id, call)
        return call

    def split_transfer(self, ctx, allocation, meter: ComputeMeter) -> list:
        """Leg 1 user -> organization, then leg 2 user -> incentive pool."""
        remaining = tuple(AccountMeta.from_view(a) for a in ctx.remaining_accounts)
        program_id = ctx.compressed_token_program.key
        calls = []
        for destination, amount in (
            (ctx.organization, allocation.amount_to_org),
            (ctx.incentive_pool, allocation.amount_to_pool),
        ):
            call = ExternalCall(
                program_id=program_id,
                kind=COMPRESSED_TRANSFER,
                accounts=(
                    AccountMeta(ctx.fee_payer.key, is_signer=True, is_writable=True),
                    AccountMeta(ctx.user.key, is_signer=True),
                    AccountMeta(destination.key),
                    AccountMeta(ctx.system_program.key),
                ),
                amount=amount,
                signers=(ctx.user_signer,),
                remaining_accounts=remaining,
            )
            calls.append(self._issue(call, meter))
        return calls

    def burn_tokens(self, ctx, meter: ComputeMeter) -> list:
        # The owner co-signs the transaction, so no derived signer is lent.
        call = ExternalCall(
            program_id=ctx.token_program.key,
            kind=TOKEN_BURN,
            accounts=(
                AccountMeta(ctx.token_account.key, is_writable=True),
                AccountMeta(ctx.mint.key, is_writable=True),
                AccountMeta(ctx.token_account_owner.key, is_signer=True),
            ),
            amount=ctx.payload.amount,
        )
        return [self._issue(call, meter)]

    def burn_from_company(self, ctx, meter: ComputeMeter) -> list:
        call = ExternalCall(
            program_id=ctx.compressed_token_program.key,
            kind=COMPRESSED_BURN,
            accounts=(
                AccountMeta(ctx.fee_payer.key, is_signer=True, is_writable=True),
                AccountMeta(ctx.organization.key, is_signer=True),
                AccountMeta(ctx.mint.key, is_writable=True),
                AccountMeta(ctx.system_program.key),
            ),
            amount=ctx.payload.amount,
            signers=(ctx.org_signer,),
            remaining_accounts=tuple(AccountMeta.from_view(a) for a in ctx.remaining_accounts),
        )
        return [self._issue(call, meter)]
