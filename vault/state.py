# vault/state.py

import hashlib
import struct
from dataclasses import dataclass

from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from vault.errors import AccountNotInitialized

DISCRIMINATOR = hashlib.sha256(b"account:App").digest()[:8]
LAYOUT = struct.Struct("<8sB32s32s")


@dataclass(frozen=True)
class PoolState:
    """
    Pool state record, stored in the pool authority account.
    Written once by initialize, read by every later instruction.
    """

    bump: int
    ata: Pubkey
    mint: Pubkey

    SPACE = LAYOUT.size

    def serialize(self) -> bytes:
        return LAYOUT.pack(DISCRIMINATOR, self.bump, bytes(self.ata), bytes(self.mint))

    @classmethod
    def deserialize(cls, data: bytes) -> "PoolState":
        if len(data) != LAYOUT.size or data[:8] != DISCRIMINATOR:
            raise AccountNotInitialized("Account does not hold a pool state record")

        _, bump, ata, mint = LAYOUT.unpack(data)
        return cls(bump=bump, ata=Pubkey(ata), mint=Pubkey(mint))

    def to_dict(self) -> dict:
        return {
            "bump": self.bump,
            "ata": str(self.ata),
            "mint": str(self.mint),
        }
