# vault/program.py
"""Vault program: pool initialization, liquidity provisioning and swaps.

Every instruction validates first and settles second, inside a single ledger
transaction. A failed check leaves every balance untouched.
"""

from enum import Enum

from loguru import logger
from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from vault.derivation import (
    AUTHORITY_SEED,
    authority_signer,
    find_authority,
    get_associated_token_address,
    to_pubkey,
    verify_authority,
)
from vault.errors import (
    AccountNotFound,
    AccountNotInitialized,
    AppAtaAddressesDoNotMatch,
    AppInsufficientBalance,
    InsufficientProviderBalance,
    InvalidAccountOwner,
    InvalidAmount,
    MintMismatch,
    OwnerMismatch,
    SenderInsufficientBalance,
)
from vault.ledger import SYSTEM_PROGRAM, Ledger, TokenAccount
from vault.state import PoolState
from vault.utils import is_u64

# One token unit is worth one lamport
TOKEN_PER_SOL = 1


class SwapOutcome(str, Enum):
    REQUESTED = "requested"
    SENDER_CHECK_FAILED = "sender_check_failed"
    POOL_CHECK_FAILED = "pool_check_failed"
    SETTLED = "settled"


class VaultProgram:
    def __init__(self, ledger: Ledger, program_id, seed: bytes = AUTHORITY_SEED):
        self.ledger = ledger
        self.program_id = to_pubkey(program_id)
        self.seed = seed
        self.authority, self.bump = find_authority(self.program_id, seed)

    # --------------------------------------------------
    # READS
    # --------------------------------------------------

    def fetch_state(self) -> PoolState:
        with self.ledger.lock:
            account = self.ledger.get_account(self.authority)
            # lamports sent to the authority before initialize leave a bare system account
            if account is None or (account.owner == SYSTEM_PROGRAM and not account.data):
                raise AccountNotInitialized(f"Pool state {self.authority} not initialized")
            if account.owner != str(self.program_id):
                raise InvalidAccountOwner(f"Pool state {self.authority} not owned by the program")
            return PoolState.deserialize(account.data)

    def is_initialized(self) -> bool:
        account = self.ledger.get_account(self.authority)
        return account is not None and account.owner == str(self.program_id)

    def pool_sol_balance(self) -> int:
        """Lamports the pool can pay out, above its rent-exempt reserve."""
        with self.ledger.lock:
            if not self.is_initialized():
                return 0
            account = self.ledger.get_account(self.authority)
            return account.lamports - self.ledger.minimum_balance(len(account.data))

    def vault_token_balance(self) -> int:
        return self.ledger.token_balance(self.fetch_state().ata)

    # --------------------------------------------------
    # INSTRUCTIONS
    # --------------------------------------------------

    def initialize(self, *, signer, mint, signers, app=None, ata=None) -> PoolState:
        signer = to_pubkey(signer)
        mint = to_pubkey(mint)
        app = to_pubkey(app) if app is not None else self.authority

        with self.ledger.transaction(fee_payer=signer):
            Ledger.require_signer(signer, signers)
            bump = verify_authority(app, self.program_id, self.seed)
            self.ledger.get_mint(mint)

            expected_ata = get_associated_token_address(app, mint)
            if ata is not None and to_pubkey(ata) != expected_ata:
                raise AppAtaAddressesDoNotMatch(f"{ata} is not the pool vault {expected_ata}")

            state = PoolState(bump=bump, ata=expected_ata, mint=mint)
            pda = authority_signer(self.program_id, bump, self.seed)

            self.ledger.create_account(
                signer,
                app,
                owner=self.program_id,
                data=state.serialize(),
                signers=[*signers, pda],
            )
            if not self._existing_vault(expected_ata, app, mint):
                self.ledger.create_associated_token_account(signer, app, mint, signers=signers)

        logger.info(f"[VAULT] Pool initialized for mint {mint} (vault {expected_ata}, bump {bump})")
        return state

    def add_liquidity(
        self,
        *,
        provider,
        from_ata,
        app_ata,
        sol_amount: int,
        token_amount: int,
        signers,
        app=None,
    ):
        provider = to_pubkey(provider)

        with self.ledger.transaction(fee_payer=provider):
            Ledger.require_signer(provider, signers)
            self._require_amount(sol_amount)
            self._require_amount(token_amount)

            state = self._load_state(app)
            self._require_vault(app_ata, state)
            provider_tokens = self._token_account(from_ata, provider, state)

            # the provider also pays the transaction fee
            lamports_needed = sol_amount + self.ledger.tx_fee_lamports
            if self.ledger.lamports(provider) < lamports_needed:
                raise InsufficientProviderBalance(
                    f"Provider holds {self.ledger.lamports(provider)} lamports, needs {lamports_needed}"
                )
            if provider_tokens.amount < token_amount:
                raise InsufficientProviderBalance(
                    f"Provider holds {provider_tokens.amount} tokens, needs {token_amount}"
                )

            self.ledger.transfer_lamports(provider, self.authority, sol_amount, signers=signers)
            self.ledger.transfer_tokens(
                from_ata,
                state.ata,
                authority=provider,
                amount=token_amount,
                signers=signers,
            )

        logger.info(f"[VAULT] Liquidity added: {sol_amount} lamports, {token_amount} tokens")

    def swap_token_for_sol(
        self,
        *,
        sender,
        sender_ata,
        app_ata,
        amount: int,
        signers,
        app=None,
    ) -> SwapOutcome:
        """Swap ``amount`` tokens from the sender for ``amount`` lamports from the pool.

        The sender's token balance is checked before the pool's lamports, so
        when both are short the sender's shortfall is reported.
        """
        sender = to_pubkey(sender)
        outcome = SwapOutcome.REQUESTED

        with self.ledger.transaction(fee_payer=sender):
            Ledger.require_signer(sender, signers)
            self._require_amount(amount)

            state = self._load_state(app)
            self._require_vault(app_ata, state)
            sender_tokens = self._token_account(sender_ata, sender, state)

            sol_amount = amount // TOKEN_PER_SOL

            if sender_tokens.amount < amount:
                outcome = SwapOutcome.SENDER_CHECK_FAILED
                logger.warning(f"[VAULT] Swap {outcome.value}: {sender} holds {sender_tokens.amount}, needs {amount}")
                raise SenderInsufficientBalance(
                    f"Sender holds {sender_tokens.amount} tokens, needs {amount}"
                )

            available = self.pool_sol_balance()
            if available < sol_amount:
                outcome = SwapOutcome.POOL_CHECK_FAILED
                logger.warning(f"[VAULT] Swap {outcome.value}: pool holds {available}, needs {sol_amount}")
                raise AppInsufficientBalance(
                    f"Pool holds {available} lamports, needs {sol_amount}"
                )

            self.ledger.transfer_tokens(
                sender_ata,
                state.ata,
                authority=sender,
                amount=amount,
                signers=signers,
            )

            pda = authority_signer(self.program_id, state.bump, self.seed)
            self.ledger.transfer_lamports(
                pda,
                sender,
                sol_amount,
                signers=[pda],
                program_id=self.program_id,
            )
            outcome = SwapOutcome.SETTLED

        logger.info(f"[VAULT] Swap {outcome.value}: {amount} tokens -> {sol_amount} lamports for {sender}")
        return outcome

    # --------------------------------------------------
    # CONSTRAINTS
    # --------------------------------------------------

    @staticmethod
    def _require_amount(amount):
        if not is_u64(amount):
            raise InvalidAmount(f"Invalid amount: {amount!r}")

    def _existing_vault(self, ata: Pubkey, app: Pubkey, mint: Pubkey) -> bool:
        """True when the authority's token account for ``mint`` already exists."""
        try:
            token_account = self.ledger.get_token_account(ata)
        except AccountNotFound:
            return False
        if token_account.mint != str(mint):
            raise MintMismatch(f"{ata} holds mint {token_account.mint}, pool serves {mint}")
        if token_account.owner != str(app):
            raise OwnerMismatch(f"{ata} is not owned by {app}")
        return True

    def _load_state(self, app) -> PoolState:
        if app is not None:
            verify_authority(to_pubkey(app), self.program_id, self.seed)
        return self.fetch_state()

    @staticmethod
    def _require_vault(app_ata, state: PoolState):
        if to_pubkey(app_ata) != state.ata:
            raise AppAtaAddressesDoNotMatch(f"{app_ata} is not the pool vault {state.ata}")

    def _token_account(self, addr, owner: Pubkey, state: PoolState) -> TokenAccount:
        token_account = self.ledger.get_token_account(addr)
        if token_account.mint != str(state.mint):
            raise MintMismatch(f"{addr} holds mint {token_account.mint}, pool serves {state.mint}")
        if token_account.owner != str(owner):
            raise OwnerMismatch(f"{addr} is not owned by {owner}")
        return token_account
