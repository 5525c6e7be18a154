"""Shared test fixtures: a local ledger, the vault program and a funded wallet.

Mirrors a localnet setup: the wallet is airdropped SOL, creates a 9-decimal
mint, and mints 1,000,000 whole tokens to its associated token account.
"""

import pytest
from nacl.signing import SigningKey

from vault.derivation import to_pubkey
from vault.keystore import signing_key_address
from vault.ledger import Ledger
from vault.program import VaultProgram
from vault.utils import LAMPORTS_PER_SOL

PROGRAM_ID = "CNPEe47uccxYFBZ86rvxNsEioZrga5hf3Z9sXdSFebRJ"
TX_FEE = 5000

WALLET_AIRDROP = 1_000 * LAMPORTS_PER_SOL
TOKEN_SUPPLY = 1_000_000 * LAMPORTS_PER_SOL
POOL_SOL = 500 * LAMPORTS_PER_SOL
POOL_TOKENS = 500 * LAMPORTS_PER_SOL


def address_of(key: SigningKey):
    return to_pubkey(signing_key_address(key))


@pytest.fixture
def ledger() -> Ledger:
    return Ledger(tx_fee_lamports=TX_FEE)


@pytest.fixture
def program(ledger: Ledger) -> VaultProgram:
    return VaultProgram(ledger, PROGRAM_ID)


@pytest.fixture
def wallet_key() -> SigningKey:
    return SigningKey.generate()


@pytest.fixture
def wallet(ledger: Ledger, wallet_key: SigningKey):
    address = address_of(wallet_key)
    ledger.airdrop(address, WALLET_AIRDROP)
    return address


@pytest.fixture
def mint(ledger: Ledger, wallet):
    mint = address_of(SigningKey.generate())
    ledger.create_mint(wallet, mint, mint_authority=wallet, decimals=9, signers=[wallet, mint])
    return mint


@pytest.fixture
def wallet_ata(ledger: Ledger, wallet, mint):
    ata = ledger.create_associated_token_account(wallet, wallet, mint, signers=[wallet])
    ledger.mint_to(mint, ata, TOKEN_SUPPLY, signers=[wallet])
    return ata


@pytest.fixture
def pool(program: VaultProgram, wallet, mint, wallet_ata):
    """Initialized pool funded with 500 SOL and 500 tokens by the wallet."""
    state = program.initialize(signer=wallet, mint=mint, signers=[wallet])
    program.add_liquidity(
        provider=wallet,
        from_ata=wallet_ata,
        app_ata=state.ata,
        sol_amount=POOL_SOL,
        token_amount=POOL_TOKENS,
        signers=[wallet],
    )
    return state


@pytest.fixture
def funded_user(ledger: Ledger, wallet, mint, wallet_ata):
    """Second user factory: airdropped SOL plus ``tokens`` moved from the wallet."""

    def make(tokens: int, lamports: int = LAMPORTS_PER_SOL):
        key = SigningKey.generate()
        user = address_of(key)
        ledger.airdrop(user, lamports)
        ata = ledger.create_associated_token_account(user, user, mint, signers=[user])
        ledger.transfer_tokens(wallet_ata, ata, authority=wallet, amount=tokens, signers=[wallet])
        return key, user, ata

    return make
