# vault/errors.py
"""Error taxonomy of the vault program and the local ledger.

Program errors carry stable numeric codes that callers match on.
Ledger errors are raised by the transfer primitives and account system and
are propagated to callers unchanged.
"""


class VaultError(Exception):
    code: int | None = None
    default_message = "Vault error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"code": self.code, "name": self.name, "message": self.message}


# --------------------------------------------------
# PROGRAM ERRORS
# --------------------------------------------------

class ProgramError(VaultError):
    pass


class BumpNotFound(ProgramError):
    code = 6000
    default_message = "Bump not found"


class SenderInsufficientBalance(ProgramError):
    code = 6001
    default_message = "Sender has insufficient balance"


class AppInsufficientBalance(ProgramError):
    code = 6002
    default_message = "App has insufficient balance"


class AppAtaAddressesDoNotMatch(ProgramError):
    code = 6003
    default_message = "App ATA addresses do not match"


class InsufficientProviderBalance(ProgramError):
    code = 6004
    default_message = "Liquidity provider has insufficient balance"


class MintMismatch(ProgramError):
    code = 6005
    default_message = "Token account mint does not match the pool mint"


class InvalidAuthority(ProgramError):
    code = 6006
    default_message = "Account is not the derived pool authority"


class InvalidAmount(ProgramError):
    code = 6007
    default_message = "Amount must be an unsigned 64-bit integer"


class OwnerMismatch(ProgramError):
    code = 6008
    default_message = "Token account is not owned by the signer"


class AccountNotInitialized(ProgramError):
    code = 3012
    default_message = "The program expected this account to be already initialized"


PROGRAM_ERRORS = {
    cls.code: cls
    for cls in (
        BumpNotFound,
        SenderInsufficientBalance,
        AppInsufficientBalance,
        AppAtaAddressesDoNotMatch,
        InsufficientProviderBalance,
        MintMismatch,
        InvalidAuthority,
        InvalidAmount,
        OwnerMismatch,
        AccountNotInitialized,
    )
}


# --------------------------------------------------
# LEDGER ERRORS
# --------------------------------------------------

class LedgerError(VaultError):
    default_message = "Ledger error"


class InsufficientFunds(LedgerError):
    default_message = "Insufficient funds"


class AccountNotFound(LedgerError):
    default_message = "Account not found"


class AccountAlreadyInUse(LedgerError):
    default_message = "Account already in use"


class MissingSignature(LedgerError):
    default_message = "Missing required signature"


class InvalidAccountOwner(LedgerError):
    default_message = "Invalid account owner"


class TokenMintMismatch(LedgerError):
    default_message = "Token accounts belong to different mints"


class RentViolation(LedgerError):
    default_message = "Account would fall below its rent-exempt minimum"


LEDGER_ERRORS = {
    cls.__name__: cls
    for cls in (
        InsufficientFunds,
        AccountNotFound,
        AccountAlreadyInUse,
        MissingSignature,
        InvalidAccountOwner,
        TokenMintMismatch,
        RentViolation,
    )
}


def error_from_payload(payload: dict) -> VaultError:
    """Rebuild a raised error from its serialized ``to_dict`` form."""
    code = payload.get("code")
    message = payload.get("message")

    if code in PROGRAM_ERRORS:
        return PROGRAM_ERRORS[code](message)

    cls = LEDGER_ERRORS.get(payload.get("name"), VaultError)
    return cls(message)
