"""
Pytest configuration and fixtures for round-trip arbitrage bot tests.
"""
import base64

import base58
import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.signature import Signature
from solders.system_program import TransferParams, transfer
from solders.transaction import VersionedTransaction

from roundtrip_arb.jupiter_client import JupiterQuote


def _make_unsigned_payload(payer: Keypair, lamports: int = 1) -> str:
    """Base64 v0 transaction with a placeholder signature, shaped like Jupiter's swapTransaction."""
    instruction = transfer(
        TransferParams(from_pubkey=payer.pubkey(), to_pubkey=Keypair().pubkey(), lamports=lamports)
    )
    message = MessageV0.try_compile(payer.pubkey(), [instruction], [], Hash.default())
    transaction = VersionedTransaction.populate(message, [Signature.default()])
    return base64.b64encode(bytes(transaction)).decode('ascii')


def _make_quote(
    input_mint: str,
    output_mint: str,
    in_amount: int,
    out_amount: int,
    fee_amounts=()
) -> JupiterQuote:
    """JupiterQuote with one route hop per fee amount."""
    route_plan = [
        {'swapInfo': {'ammKey': f'amm{i}', 'feeAmount': str(fee)}, 'percent': 100}
        for i, fee in enumerate(fee_amounts)
    ]
    raw = {
        'inputMint': input_mint,
        'outputMint': output_mint,
        'inAmount': str(in_amount),
        'outAmount': str(out_amount),
        'routePlan': route_plan
    }
    return JupiterQuote(
        input_mint=input_mint,
        output_mint=output_mint,
        in_amount=in_amount,
        out_amount=out_amount,
        price_impact_pct=0.0,
        route_plan=route_plan,
        raw=raw
    )


@pytest.fixture
def keypair():
    """Wallet keypair for testing."""
    return Keypair()


@pytest.fixture
def private_key_b58(keypair):
    """Base58 secret key, as stored in WALLET_PRIVATE_KEY."""
    return base58.b58encode(bytes(keypair)).decode('utf-8')


@pytest.fixture
def tip_accounts():
    """Three distinct tip account addresses."""
    return [str(Keypair().pubkey()) for _ in range(3)]


@pytest.fixture
def sol_mint():
    """SOL mint address."""
    return "So11111111111111111111111111111111111111112"


@pytest.fixture
def usdc_mint():
    """USDC mint address."""
    return "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


@pytest.fixture
def swap_payload(keypair):
    """Unsigned swap payload payable by the test wallet."""
    return _make_unsigned_payload(keypair, lamports=1)


@pytest.fixture
def return_swap_payload(keypair):
    """A second, distinct unsigned swap payload."""
    return _make_unsigned_payload(keypair, lamports=2)


@pytest.fixture
def make_quote():
    """Factory for JupiterQuote objects: make_quote(in_mint, out_mint, in_amount, out_amount, fee_amounts)."""
    return _make_quote


@pytest.fixture
def make_payload():
    """Factory for unsigned swap payloads: make_payload(payer, lamports)."""
    return _make_unsigned_payload
