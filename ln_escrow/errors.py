"""
ln_escrow.errors — typed failures for the escrow program and its host.

Every rejected request surfaces exactly one of these exceptions. The executor
converts them into an `InvocationResult` (status + error payload) after rolling
back the request, so callers see the failure verbatim and nothing is retried.

Hierarchy
---------
EscrowError (base)
 ├─ ProgramError            : custom program failures with a stable numeric code
 │   ├─ InvalidInstruction        (1)
 │   ├─ InvalidEscrowPda          (2)
 │   ├─ InvalidVaultAta           (3)
 │   ├─ InvalidTokenAccount       (4)
 │   ├─ InvalidSigner             (5)
 │   ├─ InvalidPreimage           (6)
 │   ├─ NotActive                 (7)
 │   ├─ TooEarly                  (8)
 │   ├─ InvalidConfigPda          (9)
 │   ├─ InvalidConfigState        (10)
 │   ├─ FeeTooHigh                (11)
 │   ├─ AlreadyInitialized        (12)
 │   ├─ InvalidFeeVaultAta        (13)
 │   ├─ InvalidTradeConfigPda     (14)
 │   ├─ InvalidTradeConfigState   (15)
 │   ├─ InvalidTradeFeeVaultAta   (16)
 │   └─ FeeMismatch               (17)
 ├─ NotEnoughAccountKeys    : request named fewer accounts than the handler needs
 ├─ InvalidAccountData      : unreadable record or a required-writable account was not writable
 ├─ InsufficientFunds       : payer cannot fund a new record's rent-exempt minimum
 └─ TokenError              : the token ledger refused a transfer or account creation

Numeric codes are part of the wire contract with clients and never change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional, Type


@dataclass
class EscrowError(Exception):
    """
    Base error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code string (e.g., 'NOT_ACTIVE', 'TOKEN_ERROR').
        data:    Optional structured details (kept JSON-serializable).
    """
    message: str = "escrow error"
    code: str = "ESCROW_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for results/logs."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


class ProgramError(EscrowError):
    """
    A custom program failure. Subclasses pin `number` (the on-wire custom code)
    and `error_code`; the message defaults to a short description and handlers
    normally pass a more specific one.
    """
    number: ClassVar[int] = 0
    error_code: ClassVar[str] = "PROGRAM_ERROR"
    default_message: ClassVar[str] = "program error"

    def __init__(self, message: Optional[str] = None, *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message or self.default_message, code=self.error_code, data=data)

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out["custom"] = self.number
        return out


class InvalidInstruction(ProgramError):
    number = 1
    error_code = "INVALID_INSTRUCTION"
    default_message = "malformed or unknown instruction"


class InvalidEscrowPda(ProgramError):
    number = 2
    error_code = "INVALID_ESCROW_PDA"
    default_message = "escrow address mismatch"


class InvalidVaultAta(ProgramError):
    number = 3
    error_code = "INVALID_VAULT_ATA"
    default_message = "vault is not the escrow's associated token account"


class InvalidTokenAccount(ProgramError):
    number = 4
    error_code = "INVALID_TOKEN_ACCOUNT"
    default_message = "invalid token account"


class InvalidSigner(ProgramError):
    number = 5
    error_code = "INVALID_SIGNER"
    default_message = "missing or unexpected signer"


class InvalidPreimage(ProgramError):
    number = 6
    error_code = "INVALID_PREIMAGE"
    default_message = "preimage does not hash to the payment hash"


class NotActive(ProgramError):
    number = 7
    error_code = "NOT_ACTIVE"
    default_message = "escrow is not active"


class TooEarly(ProgramError):
    number = 8
    error_code = "TOO_EARLY"
    default_message = "too early to refund"


class InvalidConfigPda(ProgramError):
    number = 9
    error_code = "INVALID_CONFIG_PDA"
    default_message = "platform policy address mismatch"


class InvalidConfigState(ProgramError):
    number = 10
    error_code = "INVALID_CONFIG_STATE"
    default_message = "platform policy missing or stale"


class FeeTooHigh(ProgramError):
    number = 11
    error_code = "FEE_TOO_HIGH"
    default_message = "fee rate exceeds the cap"


class AlreadyInitialized(ProgramError):
    number = 12
    error_code = "ALREADY_INITIALIZED"
    default_message = "record already initialized"


class InvalidFeeVaultAta(ProgramError):
    number = 13
    error_code = "INVALID_FEE_VAULT_ATA"
    default_message = "platform fee vault is not the canonical association"


class InvalidTradeConfigPda(ProgramError):
    number = 14
    error_code = "INVALID_TRADE_CONFIG_PDA"
    default_message = "trade policy address mismatch"


class InvalidTradeConfigState(ProgramError):
    number = 15
    error_code = "INVALID_TRADE_CONFIG_STATE"
    default_message = "trade policy missing or stale"


class InvalidTradeFeeVaultAta(ProgramError):
    number = 16
    error_code = "INVALID_TRADE_FEE_VAULT_ATA"
    default_message = "trade fee vault is not the canonical association"


class FeeMismatch(ProgramError):
    number = 17
    error_code = "FEE_MISMATCH"
    default_message = "expected fee rate does not match the policy"


# -------- host errors (no custom code) ----------------------------------------


class NotEnoughAccountKeys(EscrowError):
    def __init__(self, message: str = "not enough account keys", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="NOT_ENOUGH_ACCOUNT_KEYS", data=data)


class InvalidAccountData(EscrowError):
    """
    The account's data cannot be used as required: an undecodable record, a
    write to an account the program does not own, or an account that must be
    writable but was passed read-only.
    """
    def __init__(
        self,
        message: str = "invalid account data",
        *,
        address: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        d: Dict[str, Any] = {}
        if data:
            d.update(data)
        if address is not None:
            d.setdefault("address", address)
        super().__init__(message=message, code="INVALID_ACCOUNT_DATA", data=d or None)


class InsufficientFunds(EscrowError):
    def __init__(
        self,
        message: str = "insufficient funds for rent",
        *,
        required: Optional[int] = None,
        available: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        d: Dict[str, Any] = {}
        if data:
            d.update(data)
        if required is not None:
            d.setdefault("required", required)
        if available is not None:
            d.setdefault("available", available)
        super().__init__(message=message, code="INSUFFICIENT_FUNDS", data=d or None)


class TokenError(EscrowError):
    """Raised by the token ledger/gateway when it refuses an operation."""
    def __init__(self, message: str = "token ledger error", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="TOKEN_ERROR", data=data)


# -------- helper utilities ----------------------------------------------------

PROGRAM_ERRORS: Dict[int, Type[ProgramError]] = {
    cls.number: cls
    for cls in (
        InvalidInstruction,
        InvalidEscrowPda,
        InvalidVaultAta,
        InvalidTokenAccount,
        InvalidSigner,
        InvalidPreimage,
        NotActive,
        TooEarly,
        InvalidConfigPda,
        InvalidConfigState,
        FeeTooHigh,
        AlreadyInitialized,
        InvalidFeeVaultAta,
        InvalidTradeConfigPda,
        InvalidTradeConfigState,
        InvalidTradeFeeVaultAta,
        FeeMismatch,
    )
}


def error_from_custom_code(number: int, message: Optional[str] = None) -> ProgramError:
    """Rebuild a ProgramError from its numeric code (e.g. from a client receipt)."""
    try:
        cls = PROGRAM_ERRORS[int(number)]
    except KeyError:
        raise ValueError(f"unknown program error code: {number}") from None
    return cls(message)


__all__ = [
    "EscrowError",
    "ProgramError",
    "InvalidInstruction",
    "InvalidEscrowPda",
    "InvalidVaultAta",
    "InvalidTokenAccount",
    "InvalidSigner",
    "InvalidPreimage",
    "NotActive",
    "TooEarly",
    "InvalidConfigPda",
    "InvalidConfigState",
    "FeeTooHigh",
    "AlreadyInitialized",
    "InvalidFeeVaultAta",
    "InvalidTradeConfigPda",
    "InvalidTradeConfigState",
    "InvalidTradeFeeVaultAta",
    "FeeMismatch",
    "NotEnoughAccountKeys",
    "InvalidAccountData",
    "InsufficientFunds",
    "TokenError",
    "PROGRAM_ERRORS",
    "error_from_custom_code",
]
