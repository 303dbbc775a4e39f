"""
ln_escrow.cli.inspect_cmd
-------------------------

Offline inspection tooling for the escrow program: decode request buffers and
persisted records, and derive the addresses a client must pass.

Examples
--------
# Decode a claim request
ln-escrow decode 0x01<64 hex chars>

# Where does the escrow for this payment hash live?
ln-escrow derive escrow 0x<payment hash>

# Canonical token account of an owner for a mint
ln-escrow derive ata <owner base58> <mint base58>

# Decode a persisted record
ln-escrow record escrow 0x<263 bytes hex>

# What does custom error 17 mean?
ln-escrow error 17
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, NoReturn, Optional

import typer

from ..address.pda import (
    associated_token_address,
    escrow_address,
    platform_policy_address,
    trade_policy_address,
)
from ..config import get_config, load_config
from ..encoding.instruction import decode_instruction
from ..errors import EscrowError, error_from_custom_code
from ..types.instruction import instruction_to_dict
from ..types.pubkey import Pubkey
from ..types.records import EscrowRecord, FeePolicy
from ..utils.bytes import from_hex
from ..version import version_metadata

log = logging.getLogger(__name__)

app = typer.Typer(
    name="ln-escrow",
    add_completion=False,
    no_args_is_help=True,
    help="Inspect escrow program requests, records and derived addresses.",
)
derive_app = typer.Typer(no_args_is_help=True, help="Derive program and token account addresses.")
record_app = typer.Typer(no_args_is_help=True, help="Decode persisted records.")
app.add_typer(derive_app, name="derive")
app.add_typer(record_app, name="record")

_state: Dict[str, Any] = {"program_id": None}


# -------------------- utils --------------------


def _emit(obj: Dict[str, Any]) -> None:
    typer.echo(json.dumps(obj, indent=2, sort_keys=True))


def _die(msg: str, code: int = 2) -> NoReturn:
    typer.echo(f"error: {msg}", err=True)
    raise typer.Exit(code)


def _hex_arg(value: str, what: str) -> bytes:
    try:
        return from_hex(value)
    except ValueError as e:
        _die(f"{what}: {e}")


def _pubkey_arg(value: str, what: str) -> Pubkey:
    try:
        return Pubkey.from_string(value)
    except ValueError as e:
        _die(f"{what}: {e}")


def _program_id() -> Pubkey:
    return _state["program_id"] or get_config().program_id


def _derived(address: Pubkey, bump: Optional[int] = None) -> Dict[str, Any]:
    out: Dict[str, Any] = {"address": str(address), "program_id": str(_program_id())}
    if bump is not None:
        out["bump"] = bump
    return out


# -------------------- commands --------------------


@app.callback()
def main(
    program_id: Optional[str] = typer.Option(
        None, "--program-id", help="Escrow program id (default: LN_ESCROW_PROGRAM_ID or the deployed id)."
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level (default: LN_ESCROW_LOG_LEVEL or WARNING)."
    ),
) -> None:
    overrides: Dict[str, Any] = {}
    if log_level is not None:
        overrides["log_level"] = log_level
    try:
        cfg = load_config(overrides=overrides)
    except ValueError as e:
        _die(str(e))
    logging.basicConfig(
        level=cfg.log_level_no,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _state["program_id"] = _pubkey_arg(program_id, "--program-id") if program_id else cfg.program_id
    log.debug("using program id %s", _state["program_id"])


@app.command("decode")
def decode(data: str = typer.Argument(..., help="Instruction bytes as hex (0x optional).")) -> None:
    """Decode an instruction buffer and print it as JSON."""
    raw = _hex_arg(data, "data")
    try:
        ix = decode_instruction(raw)
    except EscrowError as e:
        _die(e.message)
    _emit(instruction_to_dict(ix))


@derive_app.command("escrow")
def derive_escrow(payment_hash: str = typer.Argument(..., help="32-byte payment hash as hex.")) -> None:
    ph = _hex_arg(payment_hash, "payment hash")
    if len(ph) != 32:
        _die("payment hash must be 32 bytes")
    address, bump = escrow_address(_program_id(), ph)
    _emit(_derived(address, bump))


@derive_app.command("config")
def derive_config() -> None:
    """Platform fee policy address (global singleton)."""
    address, bump = platform_policy_address(_program_id())
    _emit(_derived(address, bump))


@derive_app.command("trade-config")
def derive_trade_config(fee_collector: str = typer.Argument(..., help="Trade fee collector (base58).")) -> None:
    address, bump = trade_policy_address(_program_id(), _pubkey_arg(fee_collector, "fee collector"))
    _emit(_derived(address, bump))


@derive_app.command("ata")
def derive_ata(
    owner: str = typer.Argument(..., help="Token account owner (base58)."),
    mint: str = typer.Argument(..., help="Token mint (base58)."),
) -> None:
    """Associated token account of (owner, mint)."""
    address = associated_token_address(_pubkey_arg(owner, "owner"), _pubkey_arg(mint, "mint"))
    _emit({"address": str(address), "owner": owner, "mint": mint})


@record_app.command("escrow")
def record_escrow(data: str = typer.Argument(..., help="Record bytes as hex.")) -> None:
    try:
        rec = EscrowRecord.unpack(_hex_arg(data, "data"))
    except ValueError as e:
        _die(str(e))
    _emit(rec.to_dict())


@record_app.command("policy")
def record_policy(data: str = typer.Argument(..., help="Record bytes as hex.")) -> None:
    try:
        rec = FeePolicy.unpack(_hex_arg(data, "data"))
    except ValueError as e:
        _die(str(e))
    _emit(rec.to_dict())


@app.command("error")
def explain_error(code: int = typer.Argument(..., help="Custom program error code (1-17).")) -> None:
    """Name and default message of a custom program error code."""
    try:
        err = error_from_custom_code(code)
    except ValueError as e:
        _die(str(e))
    _emit({"custom": err.number, "code": err.code, "message": err.message})


@app.command("version")
def version() -> None:
    _emit(version_metadata())


if __name__ == "__main__":
    app()
