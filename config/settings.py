# config/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # HTTP API
    host_ip: str = "0.0.0.0"
    host_port: int = 8899

    # Encrypted ledger snapshot, node key, logs
    data_dir: str = "data"

    # Program identity and authority seed
    program_id: str = "CNPEe47uccxYFBZ86rvxNsEioZrga5hf3Z9sXdSFebRJ"
    authority_seed: str = "appata"

    # Local ledger
    token_decimals: int = 9
    tx_fee_lamports: int = 5000

    # Genesis (node wallet funding on an empty ledger)
    genesis_airdrop_lamports: int = 1_000 * 1_000_000_000
    genesis_token_supply: int = 1_000_000 * 1_000_000_000
    genesis_pool_sol: int = 0
    genesis_pool_tokens: int = 0

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False


settings = Settings()

HOST_IP = settings.host_ip
HOST_PORT = settings.host_port
