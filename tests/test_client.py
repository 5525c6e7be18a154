"""Tests for VaultClient: signing, submission and error mapping.

All HTTP calls are mocked via requests patching.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests
from nacl.signing import SigningKey, VerifyKey

from vault.client import VaultClient
from vault.derivation import to_pubkey
from vault.errors import AppInsufficientBalance, InsufficientFunds, SenderInsufficientBalance
from vault.utils import canonical_tx

BASE_URL = "http://localhost:8899"


def _response(status_code: int, body: dict) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code}")
    return response


@pytest.fixture
def client() -> VaultClient:
    return VaultClient(BASE_URL, SigningKey.generate())


class TestSend:
    def test_signs_and_posts_transaction(self, client):
        with patch("vault.client.requests.get", return_value=_response(200, {"nonce": 4})), \
                patch("vault.client.requests.post", return_value=_response(200, {"status": "committed"})) as post:
            receipt = client.swap_token_for_sol(10, app_ata="vault", sender_ata="mine")

        assert receipt == {"status": "committed"}

        url = post.call_args.args[0]
        body = post.call_args.kwargs["json"]
        tx = body["tx"]

        assert url == f"{BASE_URL}/tx/send"
        assert tx["sender"] == client.address
        assert tx["nonce"] == 4
        assert tx["args"] == {"amount": 10}
        assert tx["accounts"] == {"app_ata": "vault", "sender_ata": "mine"}

        verify_key = VerifyKey(bytes(to_pubkey(client.address)))
        verify_key.verify(canonical_tx(tx), bytes.fromhex(body["signature"]))

    def test_add_liquidity_args(self, client):
        with patch("vault.client.requests.get", return_value=_response(200, {"nonce": 0})), \
                patch("vault.client.requests.post", return_value=_response(200, {})) as post:
            client.add_liquidity(5, 7, app_ata="vault", from_ata="mine")

        tx = post.call_args.kwargs["json"]["tx"]
        assert tx["action"] == "add_liquidity"
        assert tx["args"] == {"sol_amount": 5, "token_amount": 7}


class TestErrors:
    @pytest.mark.parametrize(
        "error, expected",
        [
            ({"code": 6001, "name": "SenderInsufficientBalance", "message": "short"}, SenderInsufficientBalance),
            ({"code": 6002, "name": "AppInsufficientBalance", "message": "short"}, AppInsufficientBalance),
            ({"code": None, "name": "InsufficientFunds", "message": "short"}, InsufficientFunds),
        ],
    )
    def test_program_errors_reraised(self, client, error, expected):
        with patch("vault.client.requests.get", return_value=_response(200, {"nonce": 0})), \
                patch("vault.client.requests.post", return_value=_response(400, {"error": error})):
            with pytest.raises(expected) as exc:
                client.swap_token_for_sol(1, app_ata="vault", sender_ata="mine")

        assert exc.value.code == error["code"]
        assert exc.value.message == "short"

    def test_http_errors_raise(self, client):
        with patch("vault.client.requests.get", return_value=_response(404, {"detail": "Not Found"})):
            with pytest.raises(requests.HTTPError):
                client.get_token_balance("missing")
