from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from vault.errors import AccountNotFound, VaultError
from vault.tx_engine import TransactionEngine


def create_app(engine: TransactionEngine) -> FastAPI:
    app = FastAPI(
        title="Remi Vault API",
        version="0.1.0"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "*"
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.engine = engine
    program = engine.program
    ledger = program.ledger

    @app.exception_handler(VaultError)
    async def vault_error_handler(request, exc: VaultError):
        logger.warning(f"[API] {exc.name}: {exc.message}")
        return JSONResponse(status_code=400, content={"error": exc.to_dict()})

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/pool")
    def get_pool():
        with ledger.lock:
            state = program.fetch_state()
            token_balance = ledger.token_balance(state.ata)
            sol_balance = program.pool_sol_balance()

        return {
            "authority": str(program.authority),
            "program_id": str(program.program_id),
            **state.to_dict(),
            "token_balance": token_balance,
            "sol_balance": sol_balance,
        }

    @app.get("/balance/{address}")
    def get_balance(address: str):
        return {
            "address": address,
            "lamports": ledger.lamports(address)
        }

    @app.get("/token-balance/{address}")
    def get_token_balance(address: str):
        with ledger.lock:
            try:
                token_account = ledger.get_token_account(address)
            except AccountNotFound as e:
                raise HTTPException(status_code=404, detail=e.message)

            return {
                "address": address,
                "mint": token_account.mint,
                "owner": token_account.owner,
                "amount": token_account.amount,
                "decimals": ledger.get_mint(token_account.mint).decimals,
            }

    @app.get("/nonce/{address}")
    def get_nonce(address: str):
        return {
            "address": address,
            "nonce": engine.next_nonce(address)
        }

    @app.post("/tx/send")
    def send_tx(payload: dict):
        tx = payload.get("tx")
        signature = payload.get("signature")

        if not isinstance(tx, dict) or not isinstance(signature, str) or not signature:
            raise HTTPException(status_code=400, detail="Missing tx or signature")

        try:
            return engine.submit(tx, signature)
        except ValueError as e:
            logger.warning(f"[API] Rejected tx: {e}")
            raise HTTPException(status_code=400, detail=str(e))

    return app
