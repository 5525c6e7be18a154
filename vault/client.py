# vault/client.py
import requests
from nacl.signing import SigningKey

from vault.errors import error_from_payload
from vault.keystore import signing_key_address
from vault.transaction import Transaction


class VaultClient:
    """
    Wallet-side client for the vault node API.
    Signs transactions locally and re-raises program errors by code.
    """

    def __init__(self, base_url: str, signing_key: SigningKey, timeout=5):
        self.base_url = base_url.rstrip("/")
        self.signing_key = signing_key
        self.address = signing_key_address(signing_key)
        self.timeout = timeout

    # --------------------------------------------------
    # READS
    # --------------------------------------------------

    def _get(self, path: str) -> dict:
        response = requests.get(f"{self.base_url}{path}", timeout=self.timeout)
        return self._unwrap(response)

    def get_pool(self) -> dict:
        return self._get("/pool")

    def get_balance(self, address: str) -> int:
        return self._get(f"/balance/{address}")["lamports"]

    def get_token_balance(self, address: str) -> int:
        return self._get(f"/token-balance/{address}")["amount"]

    def get_nonce(self) -> int:
        return self._get(f"/nonce/{self.address}")["nonce"]

    # --------------------------------------------------
    # INSTRUCTIONS
    # --------------------------------------------------

    def send(self, action: str, accounts: dict, args: dict | None = None) -> dict:
        tx = Transaction(
            sender=self.address,
            action=action,
            nonce=self.get_nonce(),
            accounts=accounts,
            args=args,
        )

        response = requests.post(
            f"{self.base_url}/tx/send",
            json={"tx": tx.to_dict(), "signature": tx.sign(self.signing_key)},
            timeout=self.timeout,
        )
        return self._unwrap(response)

    def initialize(self, mint: str, app: str, ata: str) -> dict:
        return self.send("initialize", {"app": app, "ata": ata, "mint": mint})

    def add_liquidity(self, sol_amount: int, token_amount: int, app_ata: str, from_ata: str) -> dict:
        return self.send(
            "add_liquidity",
            {"app_ata": app_ata, "from_ata": from_ata},
            {"sol_amount": sol_amount, "token_amount": token_amount},
        )

    def swap_token_for_sol(self, amount: int, app_ata: str, sender_ata: str) -> dict:
        return self.send(
            "swap_token_for_sol",
            {"app_ata": app_ata, "sender_ata": sender_ata},
            {"amount": amount},
        )

    @staticmethod
    def _unwrap(response) -> dict:
        if response.status_code == 200:
            return response.json()

        body = response.json()
        if "error" in body:
            raise error_from_payload(body["error"])

        response.raise_for_status()
        return body
