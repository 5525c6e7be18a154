# vault/tx_engine.py

import hashlib
import time

from loguru import logger
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from vault.derivation import to_pubkey
from vault.program import VaultProgram
from vault.transaction import ACTIONS
from vault.utils import canonical_tx


def required(accounts: dict, name: str) -> str:
    addr = accounts.get(name)
    if not addr:
        raise ValueError(f"Missing account: {name}")
    return addr


class TransactionEngine:
    """
    Verifies signed transactions and dispatches them to the vault program.
    Committed transactions are kept in a journal that drives nonces.
    """

    def __init__(self, program: VaultProgram, journal=None):
        self.program = program
        self.journal: list[dict] = list(journal or [])
        self._txids = {entry["txid"] for entry in self.journal}
        self._commit_hooks = []

    def on_commit(self, hook):
        self._commit_hooks.append(hook)

    def next_nonce(self, address: str) -> int:
        address = str(address)
        return sum(1 for entry in self.journal if entry["sender"] == address)

    def validate(self, tx: dict, signature: str):
        action = tx.get("action")
        sender = tx.get("sender")

        # 0. BASIC CHECK
        if not action:
            raise ValueError("Missing action")

        if action not in ACTIONS:
            raise ValueError("Unknown action")

        if not sender:
            raise ValueError("Missing sender")

        message = canonical_tx(tx)

        txid = hashlib.sha256(message).hexdigest()
        if tx.get("txid") and tx["txid"] != txid:
            raise ValueError("TXID does not match payload")

        if txid in self._txids:
            raise ValueError("TX already processed")

        # 1. SIGN
        try:
            verify_key = VerifyKey(bytes(to_pubkey(sender)))
            verify_key.verify(message, bytes.fromhex(signature))
        except (BadSignatureError, TypeError, ValueError) as e:
            raise ValueError("Invalid signature") from e

        # 2. NONCE
        nonce = tx.get("nonce")
        if nonce is None:
            raise ValueError("Missing nonce")

        expected_nonce = self.next_nonce(sender)
        if nonce != expected_nonce:
            raise ValueError(
                f"Invalid nonce: expected {expected_nonce}, got {nonce}"
            )

        return txid

    def apply_tx(self, tx: dict):
        action = tx["action"]
        sender = tx["sender"]
        accounts = tx.get("accounts") or {}
        args = tx.get("args") or {}
        signers = [to_pubkey(sender)]

        if action == "initialize":
            state = self.program.initialize(
                signer=sender,
                mint=required(accounts, "mint"),
                app=accounts.get("app"),
                ata=accounts.get("ata"),
                signers=signers,
            )
            return {"state": state.to_dict()}

        elif action == "add_liquidity":
            self.program.add_liquidity(
                provider=sender,
                from_ata=required(accounts, "from_ata"),
                app_ata=required(accounts, "app_ata"),
                app=accounts.get("app"),
                sol_amount=args.get("sol_amount"),
                token_amount=args.get("token_amount"),
                signers=signers,
            )
            return {}

        elif action == "swap_token_for_sol":
            outcome = self.program.swap_token_for_sol(
                sender=sender,
                sender_ata=required(accounts, "sender_ata"),
                app_ata=required(accounts, "app_ata"),
                app=accounts.get("app"),
                amount=args.get("amount"),
                signers=signers,
            )
            return {"outcome": outcome.value}

        raise ValueError("Unknown action")

    def submit(self, tx: dict, signature: str) -> dict:
        # nonce and txid checks must see the journal the tx commits into
        with self.program.ledger.lock:
            txid = self.validate(tx, signature)
            result = self.apply_tx(tx)

            entry = {
                "txid": txid,
                "action": tx["action"],
                "sender": tx["sender"],
                "nonce": tx["nonce"],
                "timestamp": int(time.time()),
            }
            self.journal.append(entry)
            self._txids.add(txid)

            for hook in self._commit_hooks:
                hook(entry)

        logger.info(f"[ENGINE] Committed {tx['action']} {txid[:16]}... from {tx['sender']}")

        return {"txid": txid, "action": tx["action"], "status": "committed", **result}
