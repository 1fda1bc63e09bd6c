"""
Transaction signing and Jito tip transaction construction.

This is the only module that touches the wallet secret key. Nothing here logs
key material; log lines carry the public key at most.
"""
import base64
import binascii
import logging
import random
from typing import List, Optional, Protocol, Sequence

import base58
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction, VersionedTransaction

from .errors import ConfigurationError, InvalidPayloadError
from .utils import get_terminal_colors

colors = get_terminal_colors()
logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    def choice(self, seq: Sequence[Pubkey]) -> Pubkey: ...


class TransactionSigner:
    """Signs Jupiter swap payloads with the wallet keypair."""

    def __init__(self, wallet: Keypair):
        self._wallet = wallet

    def __repr__(self) -> str:
        return f"TransactionSigner(pubkey={self._wallet.pubkey()})"

    @property
    def pubkey(self) -> Pubkey:
        return self._wallet.pubkey()

    def sign(self, payload_b64: str) -> str:
        """
        Sign a base64 VersionedTransaction payload.

        Args:
            payload_b64: Unsigned transaction as returned by the swap endpoint

        Returns:
            Fully signed transaction, base58 encoded

        Raises:
            InvalidPayloadError: If the payload is empty or malformed
        """
        if not payload_b64:
            raise InvalidPayloadError("Invalid swap transaction: empty payload")

        try:
            tx_bytes = base64.b64decode(payload_b64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidPayloadError(f"Invalid swap transaction: not base64 ({e})") from e
        if not tx_bytes:
            raise InvalidPayloadError("Invalid swap transaction: empty payload")

        try:
            transaction = VersionedTransaction.from_bytes(tx_bytes)
            # Re-create with our signer; the message is unchanged
            signed = VersionedTransaction(transaction.message, [self._wallet])
        except Exception as e:
            raise InvalidPayloadError(f"Invalid swap transaction: cannot deserialize/sign ({e})") from e

        return base58.b58encode(bytes(signed)).decode('ascii')


class TipTransactionBuilder:
    """Builds and signs the SOL transfer that tips a Jito tip account."""

    def __init__(
        self,
        wallet: Keypair,
        tip_accounts: List[str],
        tip_lamports: int,
        rng: Optional[RandomSource] = None
    ):
        if not tip_accounts:
            raise ConfigurationError("At least one tip account is required")
        try:
            self.tip_accounts = [Pubkey.from_string(account) for account in tip_accounts]
        except Exception as e:
            raise ConfigurationError(f"Invalid tip account: {e}") from e
        self._wallet = wallet
        self.tip_lamports = tip_lamports
        self._rng = rng or random.SystemRandom()

    def choose_tip_account(self) -> Pubkey:
        """Pick one tip account uniformly at random."""
        return self._rng.choice(self.tip_accounts)

    def build(self, recent_blockhash: Hash) -> str:
        """
        Build the signed tip transaction.

        Args:
            recent_blockhash: Cached blockhash used as the freshness reference

        Returns:
            Signed legacy transaction, base58 encoded
        """
        tip_account = self.choose_tip_account()
        payer = self._wallet.pubkey()
        instruction = transfer(
            TransferParams(
                from_pubkey=payer,
                to_pubkey=tip_account,
                lamports=self.tip_lamports
            )
        )
        transaction = Transaction.new_signed_with_payer(
            [instruction],
            payer,
            [self._wallet],
            recent_blockhash
        )
        logger.debug(
            f"Tip transaction: {colors['GREEN']}{self.tip_lamports}{colors['RESET']} lamports -> "
            f"{colors['CYAN']}{tip_account}{colors['RESET']}"
        )
        return base58.b58encode(bytes(transaction)).decode('ascii')
