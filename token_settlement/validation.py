"""
Validation pipeline shared by the three settlement operations.

Stages run in a fixed order and short-circuit: the first failing stage
decides the outcome and nothing after it runs. No external call is issued
until every stage has passed.

    1. arity                 7. authority match (then payload decode)
    2. record decode         8. secondary identities
    3. record ownership      9. mint match
    4. record identity      10. external program identity
    5. initialization       11. payload semantics
    6. pause gate           12. balance sufficiency (direct burn)
"""
from dataclasses import dataclass

from .accounts import AccountView, TOKEN_ACCOUNT_SIZE, TokenAccount
from .errors import (
    ErrorCode,
    ValidationError,
    incorrect_program_id,
    invalid_account_data,
    not_enough_account_keys,
)
from .constants import (
    BURN_FROM_COMPANY_MIN_ACCOUNTS,
    BURN_TOKENS_MIN_ACCOUNTS,
    SPLIT_TRANSFER_MIN_ACCOUNTS,
)
from .identity import (
    SignerSeeds,
    config_record_identity,
    find_organization,
    incentive_pool_identity,
    organization_identity,
    user_identity,
)
from .instruction_data import DirectBurnPayload, OrgBurnPayload, SplitTransferPayload
from .memo import validate_memo_format
from .metering import ComputeMeter
from .state import ConfigurationRecord


@dataclass(frozen=True)
class SplitTransferContext:
    record: ConfigurationRecord
    payload: SplitTransferPayload
    transfer_authority: AccountView
    mint: AccountView
    user: AccountView
    organization: AccountView
    incentive_pool: AccountView
    fee_payer: AccountView
    system_program: AccountView
    compressed_token_program: AccountView
    remaining_accounts: tuple
    user_signer: SignerSeeds


@dataclass(frozen=True)
class DirectBurnContext:
    record: ConfigurationRecord
    payload: DirectBurnPayload
    authority: AccountView
    mint: AccountView
    token_account: AccountView
    token_account_owner: AccountView
    token_program: AccountView
    source: TokenAccount


@dataclass(frozen=True)
class OrgBurnContext:
    record: ConfigurationRecord
    payload: OrgBurnPayload
    transfer_authority: AccountView
    mint: AccountView
    organization: AccountView
    fee_payer: AccountView
    system_program: AccountView
    compressed_token_program: AccountView
    remaining_accounts: tuple
    org_signer: SignerSeeds


# ==============================================================================
# STAGES
# ==============================================================================

def check_arity(accounts, minimum: int):
    if len(accounts) < minimum:
        raise not_enough_account_keys(minimum, len(accounts))


def load_config_record(account: AccountView) -> ConfigurationRecord:
    """Decoding fails on length alone, before address or owner are looked at."""
    return ConfigurationRecord.from_bytes(account.data)


def check_record_owner(account: AccountView, program_id: bytes):
    if not account.owned_by(program_id):
        raise ValidationError(ErrorCode.INVALID_AUTHORITY, "Configuration record not owned by program")


def check_record_identity(account: AccountView, record: ConfigurationRecord, program_id: bytes):
    if not config_record_identity(record.self_bump).verify(account.key, program_id):
        raise ValidationError(ErrorCode.INVALID_PDA, "Configuration record address mismatch")


def check_initialized(record: ConfigurationRecord):
    if not record.initialized:
        raise ValidationError(ErrorCode.NOT_INITIALIZED, "Ledger not initialized")


def check_not_paused(record: ConfigurationRecord):
    if record.paused:
        raise ValidationError(ErrorCode.SYSTEM_PAUSED, "Ledger is paused")


def check_signer(account: AccountView, role: str):
    if not account.is_signer:
        raise ValidationError(ErrorCode.INVALID_AUTHORITY, f"{role} must sign")


def check_authority(account: AccountView, expected_key: bytes, role: str):
    check_signer(account, role)
    if account.key != expected_key:
        raise ValidationError(ErrorCode.INVALID_AUTHORITY, f"{role} does not match configuration")


def check_identity(account: AccountView, identity, program_id: bytes, role: str) -> SignerSeeds:
    """Verify a derived identity and hand back its signing capability."""
    if not identity.verify(account.key, program_id):
        raise ValidationError(ErrorCode.INVALID_PDA, f"{role} address mismatch")
    return identity.signer_seeds()


def check_mint(mint: AccountView, record: ConfigurationRecord, token_program_id: bytes):
    if not mint.owned_by(token_program_id):
        raise ValidationError(ErrorCode.INVALID_MINT, "Mint not owned by token program")
    if mint.key != record.mint:
        raise ValidationError(ErrorCode.INVALID_MINT, "Mint does not match configuration")


def check_token_program(account: AccountView, expected: bytes, role: str):
    if account.key != expected:
        raise ValidationError(ErrorCode.INVALID_TOKEN_PROGRAM, f"{role} is not the expected program")


def check_call_target(account: AccountView, expected: bytes, role: str):
    # Host-level outcome, indistinguishable from a wrong call target at invoke time.
    if account.key != expected:
        raise incorrect_program_id(f"{role} is not the expected program")


def check_amount(amount: int):
    if amount == 0:
        raise ValidationError(ErrorCode.ZERO_AMOUNT, "Amount must be nonzero")


def check_balance(source: TokenAccount, amount: int):
    if source.amount < amount:
        raise ValidationError(
            ErrorCode.INSUFFICIENT_BALANCE,
            f"Balance {source.amount} is below requested {amount}"
        )


# ==============================================================================
# PIPELINES
# ==============================================================================

class ValidationPipeline:
    """Runs the ordered stages for each operation against one program config."""

    def __init__(self, program_config, split_policy, gate_config):
        self.program_id = program_config.program_key
        self.token_program_id = program_config.token_program_key
        self.compressed_token_program_id = program_config.compressed_token_program_key
        self.system_program_id = program_config.system_program_key
        self.split_policy = split_policy
        self.gates = gate_config

    def _validate_record(self, account: AccountView, meter: ComputeMeter) -> ConfigurationRecord:
        """Stages 2-5."""
        meter.charge(ComputeMeter.RECORD_DECODE, "record_decode")
        record = load_config_record(account)

        meter.charge(ComputeMeter.ACCOUNT_CHECK, "record_owner")
        check_record_owner(account, self.program_id)

        meter.charge(ComputeMeter.PDA_DERIVATION, "record_identity")
        check_record_identity(account, record, self.program_id)

        check_initialized(record)
        return record

    def split_transfer(self, accounts, data: bytes, meter: ComputeMeter) -> SplitTransferContext:
        meter.charge(ComputeMeter.ACCOUNT_CHECK, "arity")
        check_arity(accounts, SPLIT_TRANSFER_MIN_ACCOUNTS)
        (transfer_authority, record_account, mint, user, organization,
         incentive_pool, fee_payer, system_program, compressed_token_program) = accounts[:9]

        record = self._validate_record(record_account, meter)
        check_not_paused(record)

        meter.charge(ComputeMeter.ACCOUNT_CHECK, "transfer_authority")
        check_authority(transfer_authority, record.transfer_authority, "Transfer authority")

        meter.charge(ComputeMeter.PAYLOAD_FIELD * 7, "payload_decode")
        payload = SplitTransferPayload.decode(data)

        meter.charge(ComputeMeter.PDA_DERIVATION * 3, "secondary_identities")
        user_signer = check_identity(
            user, user_identity(payload.user_id, payload.user_bump), self.program_id, "User identity")
        check_identity(
            organization, organization_identity(payload.org_id, payload.org_bump),
            self.program_id, "Organization identity")
        check_identity(
            incentive_pool, incentive_pool_identity(payload.pool_bump),
            self.program_id, "Incentive pool identity")

        meter.charge(ComputeMeter.ACCOUNT_CHECK * 2, "mint")
        check_mint(mint, record, self.token_program_id)

        meter.charge(ComputeMeter.ACCOUNT_CHECK, "compressed_token_program")
        check_token_program(compressed_token_program, self.compressed_token_program_id,
                            "Compressed token program")

        meter.charge(ComputeMeter.PAYLOAD_FIELD * 2, "payload_semantics")
        check_amount(payload.total_amount)
        if not self.split_policy.is_allowed(payload.operation_type):
            raise ValidationError(
                ErrorCode.INVALID_OPERATION_TYPE,
                f"Unknown operation type: {payload.operation_type!r}"
            )

        return SplitTransferContext(
            record=record,
            payload=payload,
            transfer_authority=transfer_authority,
            mint=mint,
            user=user,
            organization=organization,
            incentive_pool=incentive_pool,
            fee_payer=fee_payer,
            system_program=system_program,
            compressed_token_program=compressed_token_program,
            remaining_accounts=tuple(accounts[9:]),
            user_signer=user_signer,
        )

    def burn_tokens(self, accounts, data: bytes, meter: ComputeMeter) -> DirectBurnContext:
        meter.charge(ComputeMeter.ACCOUNT_CHECK, "arity")
        check_arity(accounts, BURN_TOKENS_MIN_ACCOUNTS)
        authority, record_account, mint, token_account, token_account_owner, token_program = accounts[:6]

        record = self._validate_record(record_account, meter)
        if self.gates.pause_gates_direct_burn:
            check_not_paused(record)

        meter.charge(ComputeMeter.ACCOUNT_CHECK * 2, "signers")
        check_authority(authority, record.treasury, "Treasury authority")
        check_signer(token_account_owner, "Token account owner")

        meter.charge(ComputeMeter.PAYLOAD_FIELD * 2, "payload_decode")
        payload = DirectBurnPayload.decode(data)

        meter.charge(ComputeMeter.ACCOUNT_CHECK * 4, "mint")
        check_mint(mint, record, self.token_program_id)
        if not token_account.owned_by(self.token_program_id):
            raise ValidationError(ErrorCode.INVALID_AUTHORITY, "Token account not owned by token program")
        if token_account.data_len < TOKEN_ACCOUNT_SIZE:
            raise invalid_account_data("Token account data too short")
        source = TokenAccount.from_bytes(token_account.data)
        if source.mint != mint.key:
            raise ValidationError(ErrorCode.INVALID_MINT, "Token account mint mismatch")

        meter.charge(ComputeMeter.ACCOUNT_CHECK, "token_program")
        check_token_program(token_program, self.token_program_id, "Token program")

        meter.charge(ComputeMeter.PAYLOAD_FIELD + ComputeMeter.MEMO_CHECK, "payload_semantics")
        check_amount(payload.amount)
        validate_memo_format(payload.memo)

        meter.charge(ComputeMeter.ACCOUNT_CHECK, "balance")
        check_balance(source, payload.amount)

        return DirectBurnContext(
            record=record,
            payload=payload,
            authority=authority,
            mint=mint,
            token_account=token_account,
            token_account_owner=token_account_owner,
            token_program=token_program,
            source=source,
        )

    def burn_from_company(self, accounts, data: bytes, meter: ComputeMeter) -> OrgBurnContext:
        meter.charge(ComputeMeter.ACCOUNT_CHECK, "arity")
        check_arity(accounts, BURN_FROM_COMPANY_MIN_ACCOUNTS)
        (transfer_authority, record_account, mint, organization,
         fee_payer, system_program, compressed_token_program) = accounts[:7]

        record = self._validate_record(record_account, meter)
        check_not_paused(record)

        meter.charge(ComputeMeter.ACCOUNT_CHECK * 2, "signers")
        check_authority(transfer_authority, record.transfer_authority, "Transfer authority")
        check_signer(fee_payer, "Fee payer")

        meter.charge(ComputeMeter.PAYLOAD_FIELD * 3, "payload_decode")
        payload = OrgBurnPayload.decode(data)

        # The payload carries no bump: only the canonical bump is accepted.
        meter.charge(ComputeMeter.PDA_SEARCH, "organization_identity")
        identity, _ = find_organization(payload.org_id, self.program_id)
        org_signer = check_identity(organization, identity, self.program_id, "Organization identity")

        meter.charge(ComputeMeter.ACCOUNT_CHECK * 2, "mint")
        check_mint(mint, record, self.token_program_id)

        meter.charge(ComputeMeter.ACCOUNT_CHECK * 2, "call_targets")
        check_call_target(system_program, self.system_program_id, "System program")
        check_call_target(compressed_token_program, self.compressed_token_program_id,
                          "Compressed token program")

        meter.charge(ComputeMeter.PAYLOAD_FIELD + ComputeMeter.MEMO_CHECK, "payload_semantics")
        check_amount(payload.amount)
        validate_memo_format(payload.memo)

        return OrgBurnContext(
            record=record,
            payload=payload,
            transfer_authority=transfer_authority,
            mint=mint,
            organization=organization,
            fee_payer=fee_payer,
            system_program=system_program,
            compressed_token_program=compressed_token_program,
            remaining_accounts=tuple(accounts[7:]),
            org_signer=org_signer,
        )
