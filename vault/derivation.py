# vault/derivation.py
"""Pool authority and reserve vault address derivation.

The pool authority is a program-derived address: it is found off the ed25519
curve, so no private key exists for it and only the program can sign for it
by presenting the seeds and bump.
"""

from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from vault.errors import BumpNotFound, InvalidAuthority

TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
ASSOCIATED_TOKEN_PROGRAM_ID = Pubkey.from_string(
    "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"
)
SYSTEM_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")

AUTHORITY_SEED = b"appata"


def to_pubkey(addr) -> Pubkey:
    if isinstance(addr, Pubkey):
        return addr
    return Pubkey.from_string(addr)


def find_authority(program_id: Pubkey, seed: bytes = AUTHORITY_SEED) -> tuple[Pubkey, int]:
    """Derive the pool authority address and its canonical bump."""
    return Pubkey.find_program_address([seed], program_id)


def authority_seeds(bump: int, seed: bytes = AUTHORITY_SEED) -> list[bytes]:
    return [seed, bytes([bump])]


def authority_signer(program_id: Pubkey, bump: int, seed: bytes = AUTHORITY_SEED) -> Pubkey:
    """Return the authority the program may sign for with ``bump``.

    A stored bump that does not reproduce the canonical derivation cannot
    sign for the authority.
    """
    _, canonical_bump = find_authority(program_id, seed)
    if bump != canonical_bump:
        raise BumpNotFound(f"Bump {bump} does not derive the pool authority")
    return Pubkey.create_program_address(authority_seeds(bump, seed), program_id)


def verify_authority(address: Pubkey, program_id: Pubkey, seed: bytes = AUTHORITY_SEED) -> int:
    """Check an externally supplied authority handle, returning its bump."""
    expected, bump = find_authority(program_id, seed)
    if address != expected:
        raise InvalidAuthority(f"{address} is not the pool authority {expected}")
    return bump


def get_associated_token_address(owner: Pubkey, mint: Pubkey) -> Pubkey:
    """Derive the associated token account address of ``owner`` for ``mint``."""
    ata, _bump = Pubkey.find_program_address(
        [bytes(owner), bytes(TOKEN_PROGRAM_ID), bytes(mint)],
        ASSOCIATED_TOKEN_PROGRAM_ID,
    )
    return ata
