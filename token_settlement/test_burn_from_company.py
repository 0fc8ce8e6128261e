"""
Test burns from an organization's compressed balance.
"""
import unittest
from dataclasses import replace

from token_settlement.accounts import AccountView, pack_mint
from token_settlement.constants import DISC_BURN_FROM_COMPANY_PDA
from token_settlement.crypto import generate_keypair
from token_settlement.dispatch import COMPRESSED_BURN
from token_settlement.errors import (
    DerivationError,
    ErrorCode,
    ExternalCallError,
    HostError,
    HostErrorKind,
    ValidationError,
)
from token_settlement.identity import find_organization, organization_identity
from token_settlement.instruction_data import OrgBurnPayload
from token_settlement.localnet import LocalLedger
from token_settlement.memo import make_memo
from token_settlement.state import ConfigurationRecord


class TestBurnFromCompany(unittest.TestCase):
    def setUp(self):
        """Seed a ledger with a funded organization identity."""
        self.ledger = LocalLedger()
        self.genesis = self.ledger.genesis(mint_supply=1_000_000)
        self.org_id = 314
        self.org, self.org_key = find_organization(self.org_id, self.ledger.program_id)
        _, self.fee_payer = generate_keypair()
        self.ledger.set_compressed_balance(self.org_key, 1_000_000)

    def accounts(self, **overrides):
        roles = dict(
            transfer_authority=self.ledger.view(self.genesis.transfer_authority, is_signer=True),
            record=self.ledger.view(self.genesis.record_key),
            mint=self.ledger.view(self.genesis.mint, is_writable=True),
            organization=self.ledger.view(self.org_key, is_writable=True),
            fee_payer=self.ledger.view(self.fee_payer, is_signer=True, is_writable=True),
            system_program=self.ledger.view(self.ledger.system_program_id),
            compressed_token_program=self.ledger.view(self.ledger.compressed_token_program_id),
        )
        roles.update(overrides)
        return list(roles.values())

    def execute(self, accounts=None, **fields):
        accounts = accounts if accounts is not None else self.accounts()
        payload = OrgBurnPayload(org_id=self.org_id, amount=300_000,
                                 memo=make_memo("settlement", "s-77"))
        payload = replace(payload, **fields)
        return self.ledger.execute(accounts, DISC_BURN_FROM_COMPANY_PDA + payload.encode())

    def assertRejected(self, code, accounts=None, **fields):
        with self.assertRaises(ValidationError) as cm:
            self.execute(accounts, **fields)
        self.assertEqual(cm.exception.code, code)
        self.assertEqual(self.ledger.compressed_balance(self.org_key), 1_000_000)

    def assertHostError(self, kind, accounts=None, **fields):
        with self.assertRaises(HostError) as cm:
            self.execute(accounts, **fields)
        self.assertEqual(cm.exception.kind, kind)

    def update_record(self, **fields):
        record = ConfigurationRecord.from_bytes(self.ledger.accounts[self.genesis.record_key].data)
        self.ledger.write_record(self.genesis.record_key, replace(record, **fields))

    def test_burn_debits_org_and_supply(self):
        receipt = self.execute()

        self.assertEqual(self.ledger.compressed_balance(self.org_key), 700_000)
        self.assertEqual(self.ledger.mint_supply(self.genesis.mint), 700_000)
        self.assertEqual(receipt.calls[0].kind, COMPRESSED_BURN)

    def test_org_identity_is_lent_as_signer(self):
        receipt = self.execute()

        seeds = receipt.calls[0].signers[0]
        self.assertEqual(seeds.derive_address(self.ledger.program_id), self.org_key)
        self.assertEqual(seeds.seeds[-1], bytes([self.org.bump]))

    def test_remaining_accounts_are_forwarded(self):
        _, extra = generate_keypair()
        receipt = self.execute(accounts=self.accounts() + [self.ledger.view(extra)])
        self.assertEqual([m.key for m in receipt.calls[0].remaining_accounts], [extra])

    def test_fee_payer_must_sign(self):
        fee_payer = self.ledger.view(self.fee_payer, is_writable=True)
        self.assertRejected(ErrorCode.INVALID_AUTHORITY, accounts=self.accounts(fee_payer=fee_payer))

    def test_authority_must_sign(self):
        authority = self.ledger.view(self.genesis.transfer_authority)
        self.assertRejected(ErrorCode.INVALID_AUTHORITY, accounts=self.accounts(transfer_authority=authority))

    def test_wrong_authority(self):
        authority = self.ledger.view(self.genesis.treasury, is_signer=True)
        self.assertRejected(ErrorCode.INVALID_AUTHORITY, accounts=self.accounts(transfer_authority=authority))

    def test_paused(self):
        self.update_record(paused=True)
        self.assertRejected(ErrorCode.SYSTEM_PAUSED)

    def test_not_initialized(self):
        self.update_record(initialized=False)
        self.assertRejected(ErrorCode.NOT_INITIALIZED)

    def test_non_canonical_org_address_rejected(self):
        """Test that only the canonical bump is accepted for organization burns."""
        for bump in range(self.org.bump - 1, -1, -1):
            try:
                address = organization_identity(self.org_id, bump).address(self.ledger.program_id)
                break
            except DerivationError:
                continue
        self.ledger.set_compressed_balance(address, 1_000_000)

        organization = self.ledger.view(address, is_writable=True)
        self.assertRejected(ErrorCode.INVALID_PDA, accounts=self.accounts(organization=organization))
        self.assertEqual(self.ledger.compressed_balance(address), 1_000_000)

    def test_wrong_org_id(self):
        self.assertRejected(ErrorCode.INVALID_PDA, org_id=self.org_id + 1)

    def test_wrong_mint(self):
        _, other = generate_keypair()
        self.ledger.accounts[other] = AccountView(
            key=other, owner=self.ledger.token_program_id, data=pack_mint(0, 6))
        self.assertRejected(ErrorCode.INVALID_MINT, accounts=self.accounts(mint=self.ledger.view(other)))

    def test_wrong_system_program_is_host_error(self):
        program = self.ledger.view(self.ledger.token_program_id)
        self.assertHostError(HostErrorKind.INCORRECT_PROGRAM_ID, accounts=self.accounts(system_program=program))

    def test_wrong_compressed_program_is_host_error(self):
        program = self.ledger.view(self.ledger.token_program_id)
        self.assertHostError(HostErrorKind.INCORRECT_PROGRAM_ID,
                             accounts=self.accounts(compressed_token_program=program))

    def test_zero_amount(self):
        self.assertRejected(ErrorCode.ZERO_AMOUNT, amount=0)

    def test_bad_memo(self):
        self.assertRejected(ErrorCode.INVALID_MEMO_FORMAT, memo="zupy:v2:settlement:s-77")

    def test_truncated_record(self):
        data = self.ledger.accounts[self.genesis.record_key].data[:-1]
        record = AccountView(key=self.genesis.record_key, owner=self.ledger.program_id, data=data)
        self.assertHostError(HostErrorKind.INVALID_ACCOUNT_DATA, accounts=self.accounts(record=record))

    def test_truncated_record_decoded_before_owner_and_address(self):
        """Test a short record fails decoding even when owner and address are wrong too."""
        _, elsewhere = generate_keypair()
        data = self.ledger.accounts[self.genesis.record_key].data[:-1]
        record = AccountView(key=elsewhere, owner=self.ledger.token_program_id, data=data)
        self.assertHostError(HostErrorKind.INVALID_ACCOUNT_DATA, accounts=self.accounts(record=record))
        self.assertEqual(self.ledger.compressed_balance(self.org_key), 1_000_000)

    def test_too_few_accounts(self):
        self.assertHostError(HostErrorKind.NOT_ENOUGH_ACCOUNT_KEYS, accounts=self.accounts()[:6])

    def test_insufficient_compressed_balance(self):
        with self.assertRaises(ExternalCallError):
            self.execute(amount=2_000_000)
        self.assertEqual(self.ledger.compressed_balance(self.org_key), 1_000_000)
        self.assertEqual(self.ledger.mint_supply(self.genesis.mint), 1_000_000)


if __name__ == '__main__':
    unittest.main()
