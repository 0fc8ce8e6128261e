"""
In-memory execution host for the settlement program.

Holds an account store, compressed balances and stand-ins for the external
token programs, and executes each instruction all-or-nothing: state is
snapshotted before the program runs and restored if it fails at any point,
including after some external calls already applied.
"""
import logging
from dataclasses import dataclass

import msgpack

from .accounts import (
    AccountView,
    TokenAccount,
    pack_mint,
    pack_token_account,
    read_mint_supply,
    with_mint_supply,
    with_token_amount,
)
from .config import Config
from .constants import TOKEN_DECIMALS
from .crypto import generate_keypair
from .dispatch import COMPRESSED_BURN, COMPRESSED_TRANSFER, TOKEN_BURN, ExternalCall, Invoker
from .errors import DerivationError, ExternalCallError, ProgramError, incorrect_program_id
from .identity import find_config_record
from .program import SettlementProgram
from .state import ConfigurationRecord

logger = logging.getLogger(__name__)


@dataclass
class Genesis:
    """Keys created when seeding a local ledger."""
    treasury: bytes
    transfer_authority: bytes
    secondary_authority: bytes
    mint: bytes
    record_key: bytes
    record_bump: int


class LocalLedger(Invoker):
    def __init__(self, config: Config = None, monitor=None):
        self.config = config or Config.default()
        self.program_id = self.config.program.program_key
        self.token_program_id = self.config.program.token_program_key
        self.compressed_token_program_id = self.config.program.compressed_token_program_key
        self.system_program_id = self.config.program.system_program_key

        self.accounts = {}
        self.compressed = {}
        self.call_log = []
        self.program = SettlementProgram(self, self.config, monitor)

        self._tx_signers = set()
        self._tx_call_index = 0
        self._failing_calls = {}

        for program_key in (self.program_id, self.token_program_id,
                            self.compressed_token_program_id, self.system_program_id):
            self.accounts[program_key] = AccountView(key=program_key, executable=True)

    # ==========================================================================
    # SEEDING
    # ==========================================================================

    def genesis(self, initialized: bool = True, paused: bool = False, mint_supply: int = 0) -> Genesis:
        """Create the mint and the configuration record at its canonical address."""
        _, treasury = generate_keypair()
        _, transfer_authority = generate_keypair()
        _, secondary_authority = generate_keypair()
        _, mint = generate_keypair()
        identity, record_key = find_config_record(self.program_id)

        self.accounts[mint] = AccountView(
            key=mint, owner=self.token_program_id, data=pack_mint(mint_supply, TOKEN_DECIMALS))
        self.write_record(record_key, ConfigurationRecord(
            treasury=treasury,
            secondary_authority=secondary_authority,
            transfer_authority=transfer_authority,
            mint=mint,
            initialized=initialized,
            self_bump=identity.bump,
            paused=paused,
        ))
        logger.info(f"Local ledger seeded: record={record_key.hex()[:16]} mint={mint.hex()[:16]}")
        return Genesis(treasury, transfer_authority, secondary_authority, mint, record_key, identity.bump)

    def write_record(self, key: bytes, record: ConfigurationRecord, owner: bytes = None):
        self.accounts[key] = AccountView(key=key, owner=owner or self.program_id, data=record.to_bytes())

    def create_token_account(self, mint: bytes, owner: bytes, amount: int) -> bytes:
        _, key = generate_keypair()
        self.accounts[key] = AccountView(
            key=key, owner=self.token_program_id, data=pack_token_account(mint, owner, amount))
        self._adjust_supply(mint, amount)
        return key

    def set_compressed_balance(self, owner: bytes, amount: int):
        self.compressed[owner] = amount

    # ==========================================================================
    # QUERIES
    # ==========================================================================

    def view(self, key: bytes, is_signer: bool = False, is_writable: bool = False) -> AccountView:
        """The account as the host would hand it to an instruction."""
        stored = self.accounts.get(key)
        if stored is None:
            return AccountView(key=key, is_signer=is_signer, is_writable=is_writable)
        return AccountView(
            key=key,
            owner=stored.owner,
            data=stored.data,
            is_signer=is_signer,
            is_writable=is_writable,
            executable=stored.executable,
            lamports=stored.lamports,
        )

    def compressed_balance(self, owner: bytes) -> int:
        return self.compressed.get(owner, 0)

    def token_balance(self, key: bytes) -> int:
        return TokenAccount.from_bytes(self.accounts[key].data).amount

    def mint_supply(self, mint: bytes) -> int:
        return read_mint_supply(self.accounts[mint].data)

    # ==========================================================================
    # EXECUTION
    # ==========================================================================

    def execute(self, accounts, data: bytes):
        """Run one instruction atomically."""
        snapshot = self._snapshot()
        self._tx_signers = {a.key for a in accounts if a.is_signer}
        self._tx_call_index = 0
        try:
            return self.program.process_instruction(accounts, data)
        except ProgramError as e:
            self._restore(snapshot)
            logger.warning(f"Transaction rolled back: {e!r}")
            raise
        finally:
            self._tx_signers = set()
            self._failing_calls = {}

    def fail_call(self, index: int, detail="injected failure"):
        """Make the index-th external call of the next transaction fail."""
        self._failing_calls[index] = detail

    def invoke(self, caller_program_id: bytes, call: ExternalCall):
        index = self._tx_call_index
        self._tx_call_index += 1

        handlers = {
            self.compressed_token_program_id: (COMPRESSED_TRANSFER, COMPRESSED_BURN),
            self.token_program_id: (TOKEN_BURN,),
        }
        if call.program_id not in handlers or call.kind not in handlers[call.program_id]:
            raise incorrect_program_id(f"No {call.kind} handler at {call.program_id.hex()[:16]}")

        signed = set(self._tx_signers)
        for seeds in call.signers:
            try:
                signed.add(seeds.derive_address(caller_program_id))
            except DerivationError:
                raise ExternalCallError(call.program_id, "invalid signer seeds")
        for meta in call.accounts:
            if meta.is_signer and meta.key not in signed:
                raise ExternalCallError(call.program_id, "missing required signature")

        if index in self._failing_calls:
            raise ExternalCallError(call.program_id, self._failing_calls[index])

        if call.kind == COMPRESSED_TRANSFER:
            _, source, destination, _ = call.accounts
            self._debit_compressed(call.program_id, source.key, call.amount)
            self.compressed[destination.key] = self.compressed_balance(destination.key) + call.amount
        elif call.kind == COMPRESSED_BURN:
            _, source, mint, _ = call.accounts
            self._debit_compressed(call.program_id, source.key, call.amount)
            self._adjust_supply(mint.key, -call.amount)
        else:
            token_account, mint, owner = call.accounts
            self._burn_token_account(call.program_id, token_account.key, mint.key, owner.key, call.amount)

        self.call_log.append(call)

    # ==========================================================================
    # INTERNALS
    # ==========================================================================

    def _debit_compressed(self, program_id: bytes, owner: bytes, amount: int):
        balance = self.compressed_balance(owner)
        if balance < amount:
            raise ExternalCallError(program_id, "insufficient compressed balance")
        self.compressed[owner] = balance - amount

    def _burn_token_account(self, program_id, key, mint, owner, amount):
        stored = self.accounts.get(key)
        if stored is None:
            raise ExternalCallError(program_id, "token account not found")
        token = TokenAccount.from_bytes(stored.data)
        if token.owner != owner:
            raise ExternalCallError(program_id, "owner does not match")
        if token.mint != mint:
            raise ExternalCallError(program_id, "mint mismatch")
        if token.amount < amount:
            raise ExternalCallError(program_id, "insufficient funds")
        stored.data = with_token_amount(stored.data, token.amount - amount)
        self._adjust_supply(mint, -amount)

    def _adjust_supply(self, mint: bytes, delta: int):
        stored = self.accounts.get(mint)
        if stored is None:
            return
        stored.data = with_mint_supply(stored.data, read_mint_supply(stored.data) + delta)

    def _snapshot(self) -> bytes:
        return msgpack.packb({
            'accounts': {
                key: [acct.owner, acct.data, acct.executable, acct.lamports]
                for key, acct in self.accounts.items()
            },
            'compressed': self.compressed,
            'call_log_len': len(self.call_log),
        }, use_bin_type=True)

    def _restore(self, snapshot: bytes):
        state = msgpack.unpackb(snapshot, raw=False)
        self.accounts = {
            key: AccountView(key=key, owner=owner, data=data, executable=executable, lamports=lamports)
            for key, (owner, data, executable, lamports) in state['accounts'].items()
        }
        self.compressed = dict(state['compressed'])
        del self.call_log[state['call_log_len']:]
