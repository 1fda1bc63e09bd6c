"""
Tests for signer.py - swap signing and Jito tip transactions.
"""
import base64
import random

import base58
import pytest
from unittest.mock import MagicMock
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction, VersionedTransaction

from roundtrip_arb.errors import ConfigurationError, InvalidPayloadError
from roundtrip_arb.signer import TipTransactionBuilder, TransactionSigner


class TestTransactionSigner:
    """Tests for TransactionSigner."""

    def test_sign_produces_signed_base58_transaction(self, keypair, swap_payload):
        signer = TransactionSigner(keypair)

        encoded = signer.sign(swap_payload)

        unsigned = VersionedTransaction.from_bytes(base64.b64decode(swap_payload))
        signed = VersionedTransaction.from_bytes(base58.b58decode(encoded))
        assert signed.message == unsigned.message
        assert len(signed.signatures) == 1
        assert signed.signatures[0] != Signature.default()
        assert bytes(signed) == bytes(VersionedTransaction(unsigned.message, [keypair]))

    def test_sign_is_deterministic(self, keypair, swap_payload):
        signer = TransactionSigner(keypair)
        assert signer.sign(swap_payload) == signer.sign(swap_payload)

    @pytest.mark.parametrize("payload", ["", None])
    def test_sign_rejects_empty_payload(self, keypair, payload):
        with pytest.raises(InvalidPayloadError, match="empty"):
            TransactionSigner(keypair).sign(payload)

    def test_sign_rejects_non_base64(self, keypair):
        with pytest.raises(InvalidPayloadError, match="base64"):
            TransactionSigner(keypair).sign("not base64 !!!")

    def test_sign_rejects_garbage_bytes(self, keypair):
        payload = base64.b64encode(b"mock_transaction_bytes").decode()
        with pytest.raises(InvalidPayloadError, match="deserialize"):
            TransactionSigner(keypair).sign(payload)

    def test_sign_rejects_payload_for_other_wallet(self, keypair, make_payload):
        payload = make_payload(Keypair(), 1)
        with pytest.raises(InvalidPayloadError):
            TransactionSigner(keypair).sign(payload)

    def test_repr_hides_secret_key(self, keypair, private_key_b58):
        signer = TransactionSigner(keypair)
        assert private_key_b58 not in repr(signer)
        assert str(keypair.pubkey()) in repr(signer)
        assert signer.pubkey == keypair.pubkey()


class TestTipTransactionBuilder:
    """Tests for TipTransactionBuilder."""

    def test_requires_tip_accounts(self, keypair):
        with pytest.raises(ConfigurationError):
            TipTransactionBuilder(keypair, [], 1000)

    def test_rejects_invalid_tip_account(self, keypair):
        with pytest.raises(ConfigurationError, match="Invalid tip account"):
            TipTransactionBuilder(keypair, ["not-a-pubkey"], 1000)

    def test_choose_uses_injected_random_source(self, keypair, tip_accounts):
        rng = MagicMock()
        rng.choice.side_effect = lambda seq: seq[1]
        builder = TipTransactionBuilder(keypair, tip_accounts, 1000, rng=rng)

        assert builder.choose_tip_account() == Pubkey.from_string(tip_accounts[1])
        rng.choice.assert_called_once()

    def test_seeded_random_is_reproducible(self, keypair, tip_accounts):
        first = TipTransactionBuilder(keypair, tip_accounts, 1000, rng=random.Random(7))
        second = TipTransactionBuilder(keypair, tip_accounts, 1000, rng=random.Random(7))

        picks_first = [first.choose_tip_account() for _ in range(10)]
        picks_second = [second.choose_tip_account() for _ in range(10)]

        assert picks_first == picks_second
        assert set(picks_first) <= {Pubkey.from_string(a) for a in tip_accounts}

    def test_build_signed_transfer(self, keypair, tip_accounts):
        rng = MagicMock()
        rng.choice.side_effect = lambda seq: seq[2]
        builder = TipTransactionBuilder(keypair, tip_accounts, 100_000, rng=rng)
        blockhash = Hash.default()

        encoded = builder.build(blockhash)

        transaction = Transaction.from_bytes(base58.b58decode(encoded))
        assert transaction.message.recent_blockhash == blockhash
        assert transaction.message.account_keys[0] == keypair.pubkey()
        assert Pubkey.from_string(tip_accounts[2]) in transaction.message.account_keys
        assert len(transaction.signatures) == 1
        assert transaction.signatures[0] != Signature.default()
        assert len(transaction.message.instructions) == 1
