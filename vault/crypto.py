# vault/crypto.py

import json
import os
from pathlib import Path

from cryptography.fernet import Fernet


def load_or_create_key(key_file: Path) -> bytes:
    if key_file.exists():
        return key_file.read_bytes()

    key_file.parent.mkdir(parents=True, exist_ok=True)
    key = Fernet.generate_key()
    key_file.write_bytes(key)
    os.chmod(key_file, 0o600)
    return key


class CryptoStore:
    """Fernet-encrypted JSON documents on disk."""

    def __init__(self, key_file: Path):
        self.fernet = Fernet(load_or_create_key(key_file))

    def write(self, path: Path, obj):
        raw = json.dumps(obj, sort_keys=True, separators=(",", ":")).encode()

        # replace in one step so a crash never leaves a torn snapshot
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_bytes(self.fernet.encrypt(raw))
        os.replace(tmp, path)

    def read(self, path: Path):
        return json.loads(self.fernet.decrypt(path.read_bytes()))
