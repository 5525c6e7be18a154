# vault/utils.py
import json

LAMPORTS_PER_SOL = 1_000_000_000
U64_MAX = 2**64 - 1


def canonical_json(obj) -> bytes:
    return json.dumps(obj, sort_keys=True, separators=(",", ":")).encode()


def canonical_tx(tx: dict) -> bytes:
    """
    Returns the signed representation of a tx:
    every field except txid and signature
    """
    payload = {
        "action": tx.get("action"),
        "sender": tx.get("sender"),
        "accounts": tx.get("accounts") or {},
        "args": tx.get("args") or {},
        "nonce": tx.get("nonce"),
    }
    return canonical_json(payload)


def is_u64(x) -> bool:
    return isinstance(x, int) and not isinstance(x, bool) and 0 <= x <= U64_MAX


def loading(NODE_ADDRESS, program_id):
    print(r' /$$$$$$$                          /$$ ')
    print(r'| $$__  $$                        |__/ ')
    print(r'| $$  \ $$  /$$$$$$  /$$$$$$/$$$$  /$$ ')
    print(r'| $$$$$$$/ /$$__  $$| $$_  $$_  $$| $$ ')
    print(r'| $$__  $$| $$$$$$$$| $$ \ $$ \ $$| $$ ')
    print(r'| $$  \ $$| $$_____/| $$ | $$ | $$| $$ ')
    print(r'| $$  | $$|  $$$$$$$| $$ | $$ | $$| $$ ')
    print(r'|__/  |__/ \_______/|__/ |__/ |__/|__/ ')

    print("🚀 Vault Node Starting... ")
    print(f"🆔 Node Wallet: {NODE_ADDRESS}")
    print(f"📜 Program: {program_id}")
