# vault/storage.py
from pathlib import Path

from loguru import logger

from vault.crypto import CryptoStore
from vault.ledger import Ledger

LEDGER_FILE = "ledger.enc"
FERNET_KEY_FILE = "node.fernet.key"


class LedgerStorage:
    """Encrypted snapshot of the ledger and the committed-tx journal."""

    def __init__(self, data_dir):
        self.data_dir = Path(data_dir)
        self.path = self.data_dir / LEDGER_FILE
        self.crypto = CryptoStore(self.data_dir / FERNET_KEY_FILE)

    def save(self, ledger: Ledger, journal: list):
        self.crypto.write(self.path, {"ledger": ledger.to_dict(), "journal": list(journal)})
        logger.debug(f"[STORAGE] Snapshot written ({len(journal)} txs)")

    def load(self) -> tuple[Ledger | None, list]:
        if not self.path.exists():
            return None, []
        payload = self.crypto.read(self.path)
        return Ledger.from_dict(payload["ledger"]), payload.get("journal", [])
