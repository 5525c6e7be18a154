"""Tests for the FastAPI surface, driven through TestClient."""

import pytest
from fastapi.testclient import TestClient

from api.server import create_app
from vault.keystore import signing_key_address
from vault.transaction import Transaction
from vault.tx_engine import TransactionEngine
from vault.utils import LAMPORTS_PER_SOL

from conftest import POOL_SOL, POOL_TOKENS


@pytest.fixture
def engine(program) -> TransactionEngine:
    return TransactionEngine(program)


@pytest.fixture
def client(engine) -> TestClient:
    return TestClient(create_app(engine))


def send(client, key, action, accounts, args=None):
    sender = signing_key_address(key)
    nonce = client.get(f"/nonce/{sender}").json()["nonce"]
    tx = Transaction(sender=sender, action=action, nonce=nonce, accounts=accounts, args=args)
    return client.post("/tx/send", json={"tx": tx.to_dict(), "signature": tx.sign(key)})


@pytest.fixture
def funded_pool(client, program, wallet_key, mint, wallet_ata):
    response = send(client, wallet_key, "initialize", {"mint": str(mint)})
    assert response.status_code == 200
    ata = response.json()["state"]["ata"]

    response = send(
        client,
        wallet_key,
        "add_liquidity",
        {"app_ata": ata, "from_ata": str(wallet_ata)},
        {"sol_amount": POOL_SOL, "token_amount": POOL_TOKENS},
    )
    assert response.status_code == 200
    return ata


class TestReads:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_pool_before_initialize(self, client):
        response = client.get("/pool")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == 3012

    def test_pool(self, client, program, mint, funded_pool):
        body = client.get("/pool").json()

        assert body["mint"] == str(mint)
        assert body["ata"] == funded_pool
        assert body["authority"] == str(program.authority)
        assert body["bump"] == program.bump
        assert body["token_balance"] == POOL_TOKENS
        assert body["sol_balance"] == POOL_SOL

    def test_balance(self, client, ledger, wallet):
        body = client.get(f"/balance/{wallet}").json()
        assert body["lamports"] == ledger.lamports(wallet)

    def test_token_balance(self, client, mint, wallet, wallet_ata):
        body = client.get(f"/token-balance/{wallet_ata}").json()

        assert body["mint"] == str(mint)
        assert body["owner"] == str(wallet)
        assert body["decimals"] == 9

    def test_unknown_token_account(self, client, wallet):
        assert client.get(f"/token-balance/{wallet}").status_code == 404


class TestSendTx:
    def test_swap(self, client, wallet_key, wallet_ata, funded_pool):
        response = send(
            client,
            wallet_key,
            "swap_token_for_sol",
            {"app_ata": funded_pool, "sender_ata": str(wallet_ata)},
            {"amount": 10 * LAMPORTS_PER_SOL},
        )

        assert response.status_code == 200
        assert response.json()["outcome"] == "settled"
        assert client.get(f"/token-balance/{funded_pool}").json()["amount"] == 510 * LAMPORTS_PER_SOL
        assert client.get(f"/token-balance/{wallet_ata}").json()["amount"] == 999_490 * LAMPORTS_PER_SOL

    def test_sender_insufficient_balance(self, client, wallet_key, wallet_ata, funded_pool):
        response = send(
            client,
            wallet_key,
            "swap_token_for_sol",
            {"app_ata": funded_pool, "sender_ata": str(wallet_ata)},
            {"amount": 1_000_000_000_000_000_000},
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == 6001
        assert error["name"] == "SenderInsufficientBalance"

    def test_app_insufficient_balance(self, client, wallet_key, wallet_ata, funded_pool):
        response = send(
            client,
            wallet_key,
            "swap_token_for_sol",
            {"app_ata": funded_pool, "sender_ata": str(wallet_ata)},
            {"amount": 10_000 * LAMPORTS_PER_SOL},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == 6002

    def test_bad_signature(self, client, wallet_key, mint):
        sender = signing_key_address(wallet_key)
        tx = Transaction(sender=sender, action="initialize", nonce=0, accounts={"mint": str(mint)})

        response = client.post("/tx/send", json={"tx": tx.to_dict(), "signature": "00" * 64})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid signature"

    def test_missing_signature(self, client):
        response = client.post("/tx/send", json={"tx": {"action": "initialize"}})
        assert response.status_code == 400

    @pytest.mark.parametrize("signature", [12345, ["00"], {"sig": "00"}])
    def test_non_string_signature(self, client, wallet_key, mint, signature):
        sender = signing_key_address(wallet_key)
        tx = Transaction(sender=sender, action="initialize", nonce=0, accounts={"mint": str(mint)})

        response = client.post("/tx/send", json={"tx": tx.to_dict(), "signature": signature})

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing tx or signature"
