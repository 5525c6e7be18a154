# vault/genesis.py
from loguru import logger
from nacl.signing import SigningKey

from vault.derivation import get_associated_token_address, to_pubkey
from vault.keystore import signing_key_address
from vault.ledger import Ledger
from vault.program import VaultProgram


def generate(
    ledger: Ledger,
    program: VaultProgram,
    node_address: str,
    *,
    airdrop_lamports: int,
    token_supply: int,
    decimals: int,
    pool_sol: int = 0,
    pool_tokens: int = 0,
) -> dict:
    """
    Bootstraps an empty ledger: funds the node wallet, creates the pool
    token mint and mints the supply to the node's token account.
    Optionally opens the pool with initial liquidity.
    """
    node = to_pubkey(node_address)
    mint_key = SigningKey.generate()
    mint = to_pubkey(signing_key_address(mint_key))

    logger.info(f"[GENESIS] Creating mint {mint} for node {node}")

    ledger.airdrop(node, airdrop_lamports)

    with ledger.transaction():
        ledger.create_mint(node, mint, mint_authority=node, decimals=decimals, signers=[node, mint])
        node_ata = ledger.create_associated_token_account(node, node, mint, signers=[node])
        ledger.mint_to(mint, node_ata, token_supply, signers=[node])

    if pool_sol or pool_tokens:
        state = program.initialize(signer=node, mint=mint, signers=[node])
        program.add_liquidity(
            provider=node,
            from_ata=node_ata,
            app_ata=state.ata,
            sol_amount=pool_sol,
            token_amount=pool_tokens,
            signers=[node],
        )

    return {
        "mint": str(mint),
        "node_ata": str(node_ata),
        "pool_ata": str(get_associated_token_address(program.authority, mint)),
    }
