# vault/keystore.py

from cryptography.fernet import Fernet
from pathlib import Path
from nacl.signing import SigningKey
from nacl.encoding import RawEncoder
from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from vault.crypto import load_or_create_key

FERNET_KEY_FILE = "wallet.node.key"
WALLET_KEY_FILE = "wallet.key"


def load_or_create_node_key(data_dir) -> SigningKey:
    data_dir = Path(data_dir)
    fernet = Fernet(load_or_create_key(data_dir / FERNET_KEY_FILE))
    key_file = data_dir / WALLET_KEY_FILE

    if key_file.exists():
        encrypted = key_file.read_bytes()
        raw = fernet.decrypt(encrypted)
        return SigningKey(raw, encoder=RawEncoder)

    sk = SigningKey.generate()
    encrypted = fernet.encrypt(sk.encode(encoder=RawEncoder))
    key_file.write_bytes(encrypted)
    return sk


def pubkey_to_address(pubkey_bytes: bytes) -> str:
    return str(Pubkey(pubkey_bytes))


def signing_key_address(sk: SigningKey) -> str:
    return pubkey_to_address(sk.verify_key.encode())


def write_env_address(address: str, env_file=Path(".env")):
    env_file = Path(env_file)
    if env_file.exists():
        content = env_file.read_text()
        if "NODE_ADDRESS=" in content:
            return

    with env_file.open("a") as f:
        f.write(f"\nNODE_ADDRESS={address}\n")
