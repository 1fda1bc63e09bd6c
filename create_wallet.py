#!/usr/bin/env python3
"""
Create a new Solana wallet for the bot and print the .env line for it.
Save the private key securely!
"""
import base58
from solders.keypair import Keypair


def create_wallet() -> tuple:
    """Return (public_key, base58_private_key) for a fresh keypair."""
    keypair = Keypair()
    return str(keypair.pubkey()), base58.b58encode(bytes(keypair)).decode('utf-8')


if __name__ == '__main__':
    public_key, private_key_base58 = create_wallet()
    print("=" * 60)
    print("NEW WALLET CREATED")
    print("=" * 60)
    print(f"\nPublic Address: {public_key}")
    print(f"\n.env line:\nWALLET_PRIVATE_KEY={private_key_base58}")
    print("\n" + "=" * 60)
    print("Fund the wallet with SOL before running the bot.")
    print("The round trip starts and ends in SOL, and the tip is paid in SOL.")
    print("NEVER publish the private key!")
    print("=" * 60)
