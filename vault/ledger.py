# vault/ledger.py
"""In-process ledger the vault program runs against.

Holds system accounts, token mints and token accounts, and provides the
native-currency and token transfer primitives. Every program operation runs
inside ``Ledger.transaction``: it either commits all of its balance deltas or
none of them.
"""

import threading
from contextlib import contextmanager
from copy import deepcopy
from dataclasses import asdict, dataclass

from loguru import logger
from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from vault.derivation import SYSTEM_PROGRAM_ID, TOKEN_PROGRAM_ID, get_associated_token_address
from vault.errors import (
    AccountAlreadyInUse,
    AccountNotFound,
    InsufficientFunds,
    InvalidAccountOwner,
    MissingSignature,
    RentViolation,
    TokenMintMismatch,
)

SYSTEM_PROGRAM = str(SYSTEM_PROGRAM_ID)
TOKEN_PROGRAM = str(TOKEN_PROGRAM_ID)

ACCOUNT_STORAGE_OVERHEAD = 128
LAMPORTS_PER_BYTE_YEAR = 3480
EXEMPTION_THRESHOLD_YEARS = 2

MINT_SIZE = 82
TOKEN_ACCOUNT_SIZE = 165


def k(addr) -> str:
    return str(addr)


@dataclass
class Account:
    lamports: int
    owner: str
    data: bytes = b""


@dataclass
class Mint:
    decimals: int
    mint_authority: str
    supply: int = 0


@dataclass
class TokenAccount:
    mint: str
    owner: str
    amount: int = 0


class Ledger:
    def __init__(self, tx_fee_lamports: int = 5000):
        self.tx_fee_lamports = tx_fee_lamports
        self.accounts: dict[str, Account] = {}
        self.mints: dict[str, Mint] = {}
        self.token_accounts: dict[str, TokenAccount] = {}

        self.lock = threading.RLock()
        self._depth = 0

    @staticmethod
    def minimum_balance(space: int) -> int:
        return (ACCOUNT_STORAGE_OVERHEAD + space) * LAMPORTS_PER_BYTE_YEAR * EXEMPTION_THRESHOLD_YEARS

    # --------------------------------------------------
    # READS
    # --------------------------------------------------

    # Reads take the lock so they never observe a transaction that may still
    # roll back.

    def get_account(self, addr) -> Account | None:
        with self.lock:
            return self.accounts.get(k(addr))

    def lamports(self, addr) -> int:
        with self.lock:
            account = self.get_account(addr)
            return account.lamports if account else 0

    def get_mint(self, addr) -> Mint:
        with self.lock:
            mint = self.mints.get(k(addr))
        if mint is None:
            raise AccountNotFound(f"Mint {addr} not found")
        return mint

    def get_token_account(self, addr) -> TokenAccount:
        with self.lock:
            token_account = self.token_accounts.get(k(addr))
        if token_account is None:
            raise AccountNotFound(f"Token account {addr} not found")
        return token_account

    def token_balance(self, addr) -> int:
        with self.lock:
            return self.get_token_account(addr).amount

    # --------------------------------------------------
    # ACCOUNT SYSTEM
    # --------------------------------------------------

    def airdrop(self, to, lamports: int):
        with self.transaction():
            account = self.accounts.setdefault(k(to), Account(0, SYSTEM_PROGRAM))
            account.lamports += lamports
        logger.debug(f"[LEDGER] Airdropped {lamports} lamports to {to}")

    def create_account(self, payer, new, *, owner, data: bytes, signers):
        """Create a rent-exempt account for ``data`` funded by ``payer``."""
        self.require_signer(payer, signers)
        self.require_signer(new, signers)
        self._allocate(payer, new, owner=owner, data=bytes(data))

    def _allocate(self, payer, addr, *, owner, data: bytes = b"", space: int | None = None):
        """Fund ``addr`` to rent exemption and assign it to ``owner``.

        An address that only holds lamports (system-owned, no data) is taken
        over: the payer tops it up to the rent minimum.
        """
        rent = self.minimum_balance(len(data) if space is None else space)
        existing = self.accounts.get(k(addr))

        if existing is None:
            self._debit_system(payer, rent)
            self.accounts[k(addr)] = Account(rent, k(owner), data)
            return

        if existing.owner != SYSTEM_PROGRAM or existing.data or k(addr) in self.token_accounts:
            raise AccountAlreadyInUse(f"Account {addr} already in use")

        shortfall = max(0, rent - existing.lamports)
        self._debit_system(payer, shortfall)
        existing.lamports += shortfall
        existing.owner = k(owner)
        existing.data = data
        logger.debug(f"[LEDGER] Took over pre-funded account {addr}")

    # --------------------------------------------------
    # TOKENS
    # --------------------------------------------------

    def create_mint(self, payer, mint, *, mint_authority, decimals: int, signers):
        self.require_signer(payer, signers)
        self.require_signer(mint, signers)

        if k(mint) in self.mints:
            raise AccountAlreadyInUse(f"Account {mint} already in use")

        self._allocate(payer, mint, owner=TOKEN_PROGRAM, space=MINT_SIZE)
        self.mints[k(mint)] = Mint(decimals, k(mint_authority))

    def create_associated_token_account(self, payer, owner, mint, *, signers) -> Pubkey:
        self.require_signer(payer, signers)
        self.get_mint(mint)

        ata = get_associated_token_address(Pubkey.from_string(k(owner)), Pubkey.from_string(k(mint)))
        self._allocate(payer, ata, owner=TOKEN_PROGRAM, space=TOKEN_ACCOUNT_SIZE)
        self.token_accounts[k(ata)] = TokenAccount(k(mint), k(owner))
        return ata

    def mint_to(self, mint, dest, amount: int, *, signers):
        mint_state = self.get_mint(mint)
        self.require_signer(mint_state.mint_authority, signers)

        token_account = self.get_token_account(dest)
        if token_account.mint != k(mint):
            raise TokenMintMismatch(f"{dest} does not hold mint {mint}")

        mint_state.supply += amount
        token_account.amount += amount

    def transfer_tokens(self, source, dest, *, authority, amount: int, signers):
        """Token-transfer primitive. Moves ``amount`` from ``source`` to ``dest``."""
        src = self.get_token_account(source)
        dst = self.get_token_account(dest)

        if src.mint != dst.mint:
            raise TokenMintMismatch(f"{source} and {dest} hold different mints")

        if src.owner != k(authority):
            raise InvalidAccountOwner(f"{authority} is not the owner of {source}")
        self.require_signer(authority, signers)

        if src.amount < amount:
            raise InsufficientFunds(
                f"Token account {source} holds {src.amount}, needs {amount}"
            )

        src.amount -= amount
        dst.amount += amount
        logger.debug(f"[LEDGER] Token transfer {amount} {source} -> {dest}")

    # --------------------------------------------------
    # NATIVE CURRENCY
    # --------------------------------------------------

    def transfer_lamports(self, source, dest, amount: int, *, signers, program_id=None):
        """Native-currency transfer primitive.

        System-owned sources need their own signature. Program-owned sources
        can only be debited by the owning program, signing for the account.
        """
        account = self.accounts.get(k(source))
        if account is None:
            raise AccountNotFound(f"Account {source} not found")

        if account.owner != SYSTEM_PROGRAM and account.owner != k(program_id):
            raise InvalidAccountOwner(f"Account {source} cannot be debited by {program_id}")
        self.require_signer(source, signers)

        if account.lamports < amount:
            raise InsufficientFunds(
                f"Account {source} holds {account.lamports} lamports, needs {amount}"
            )

        if account.data and account.lamports - amount < self.minimum_balance(len(account.data)):
            raise RentViolation(f"Account {source} would fall below rent exemption")

        account.lamports -= amount
        target = self.accounts.setdefault(k(dest), Account(0, SYSTEM_PROGRAM))
        target.lamports += amount
        logger.debug(f"[LEDGER] Lamport transfer {amount} {source} -> {dest}")

    def _debit_system(self, payer, amount: int):
        account = self.accounts.get(k(payer))
        if account is None or account.owner != SYSTEM_PROGRAM:
            raise AccountNotFound(f"System account {payer} not found")
        if account.lamports < amount:
            raise InsufficientFunds(
                f"Account {payer} holds {account.lamports} lamports, needs {amount}"
            )
        account.lamports -= amount

    @staticmethod
    def require_signer(addr, signers):
        if k(addr) not in {k(s) for s in signers}:
            raise MissingSignature(f"Missing signature for {addr}")

    # --------------------------------------------------
    # TRANSACTIONS
    # --------------------------------------------------

    @contextmanager
    def transaction(self, fee_payer=None):
        """Atomic boundary: all changes commit together or none do.

        Transactions are serialized by a re-entrant lock. Nested transactions
        join the outermost one; only the outermost charges the fee.
        """
        with self.lock:
            if self._depth:
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return

            snapshot = deepcopy((self.accounts, self.mints, self.token_accounts))
            self._depth += 1
            try:
                yield self
                if fee_payer is not None and self.tx_fee_lamports:
                    self._debit_system(fee_payer, self.tx_fee_lamports)
            except BaseException:
                self.accounts, self.mints, self.token_accounts = snapshot
                raise
            finally:
                self._depth -= 1

    # --------------------------------------------------
    # SNAPSHOT
    # --------------------------------------------------

    def to_dict(self) -> dict:
        with self.lock:
            return {
                "tx_fee_lamports": self.tx_fee_lamports,
                "accounts": {
                    addr: {
                        "lamports": acc.lamports,
                        "owner": acc.owner,
                        "data": acc.data.hex(),
                    }
                    for addr, acc in self.accounts.items()
                },
                "mints": {addr: asdict(m) for addr, m in self.mints.items()},
                "token_accounts": {addr: asdict(t) for addr, t in self.token_accounts.items()},
            }

    @classmethod
    def from_dict(cls, data: dict) -> "Ledger":
        ledger = cls(tx_fee_lamports=data.get("tx_fee_lamports", 5000))

        for addr, acc in data.get("accounts", {}).items():
            ledger.accounts[addr] = Account(
                acc["lamports"], acc["owner"], bytes.fromhex(acc.get("data", ""))
            )

        for addr, m in data.get("mints", {}).items():
            ledger.mints[addr] = Mint(**m)

        for addr, t in data.get("token_accounts", {}).items():
            ledger.token_accounts[addr] = TokenAccount(**t)

        return ledger
