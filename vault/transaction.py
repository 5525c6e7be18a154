# vault/transaction.py
import hashlib

from nacl.signing import SigningKey

from vault.utils import canonical_tx

ACTIONS = ("initialize", "add_liquidity", "swap_token_for_sol")


class Transaction:
    def __init__(
        self,
        sender,
        action,
        nonce,
        accounts=None,
        args=None,
        timestamp=None,
    ):
        self.sender = str(sender) if sender else sender
        self.action = action
        self.nonce = nonce
        self.accounts = {name: str(addr) for name, addr in (accounts or {}).items()}
        self.args = dict(args or {})

        # assigned by the node
        self.timestamp = timestamp

        self.txid = self.hash()

    def hash(self):
        """
        Deterministic TXID over the signed payload
        """
        return hashlib.sha256(canonical_tx(self.to_dict())).hexdigest()

    def message(self) -> bytes:
        return canonical_tx(self.to_dict())

    def sign(self, signing_key: SigningKey) -> str:
        return signing_key.sign(self.message()).signature.hex()

    def to_dict(self):
        tx = {
            "sender": self.sender,
            "action": self.action,
            "accounts": self.accounts,
            "args": self.args,
            "nonce": self.nonce,
        }

        if getattr(self, "txid", None):
            tx["txid"] = self.txid
        if self.timestamp is not None:
            tx["timestamp"] = self.timestamp

        return tx
