# main.py
from pathlib import Path

import uvicorn
from loguru import logger

from api.server import create_app
from config.settings import HOST_IP, HOST_PORT, settings
from vault import genesis
from vault.keystore import load_or_create_node_key, signing_key_address, write_env_address
from vault.ledger import Ledger
from vault.logger import setup_logger
from vault.program import VaultProgram
from vault.storage import LedgerStorage
from vault.tx_engine import TransactionEngine
from vault.utils import loading


# -----------------------------
# HELPERS
# -----------------------------

def bootstrap_wallet(data_dir):
    sk = load_or_create_node_key(data_dir)
    address = signing_key_address(sk)

    write_env_address(address)

    return sk, address


def build_node(data_dir, node_address):
    storage = LedgerStorage(data_dir)
    ledger, journal = storage.load()

    fresh = ledger is None
    if fresh:
        ledger = Ledger(tx_fee_lamports=settings.tx_fee_lamports)

    program = VaultProgram(ledger, settings.program_id, settings.authority_seed.encode())

    #🔹Generate or Skip
    if fresh:
        info = genesis.generate(
            ledger,
            program,
            node_address,
            airdrop_lamports=settings.genesis_airdrop_lamports,
            token_supply=settings.genesis_token_supply,
            decimals=settings.token_decimals,
            pool_sol=settings.genesis_pool_sol,
            pool_tokens=settings.genesis_pool_tokens,
        )
        print(f"🪙 Genesis mint: {info['mint']}")
        print(f"👛 Node token account: {info['node_ata']}")

    engine = TransactionEngine(program, journal)
    engine.on_commit(lambda entry: storage.save(ledger, engine.journal))
    storage.save(ledger, engine.journal)

    return engine


# -----------------------------
# MAIN
# -----------------------------

def main():
    data_dir = Path(settings.data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)

    setup_logger(
        json_logs=settings.json_logs,
        level=settings.log_level,
        log_dir=data_dir / "logs",
    )

    _, NODE_ADDRESS = bootstrap_wallet(data_dir)

    #🔹Print Logo
    loading(NODE_ADDRESS, settings.program_id)

    engine = build_node(data_dir, NODE_ADDRESS)
    program = engine.program

    print(f"🔐 Pool authority: {program.authority} (bump {program.bump})")
    if program.is_initialized():
        print("✅ Pool is initialized")
    else:
        print("⏳ Pool not initialized yet")

    logger.info(f"[NODE] Serving API on {HOST_IP}:{HOST_PORT}")
    uvicorn.run(create_app(engine), host=HOST_IP, port=HOST_PORT)


if __name__ == "__main__":
    main()
