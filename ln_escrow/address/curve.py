"""
ln_escrow.address.curve — ed25519 point membership for 32-byte strings.

A compressed Edwards point is the little-endian y coordinate with the sign of
x in the top bit. It decompresses iff

    x² = (y² - 1) / (d·y² + 1)   (mod p)

has a solution, i.e. the right-hand side is zero or a quadratic residue. As in
the reference decompression, the top bit is ignored when reading y and y is
reduced mod p.
"""

from __future__ import annotations

from typing import Final

from ..utils.bytes import BytesLike

P: Final[int] = 2**255 - 19
D: Final[int] = (-121665 * pow(121666, P - 2, P)) % P


def is_on_curve(data: BytesLike) -> bool:
    """True iff `data` (32 bytes) decompresses to an ed25519 curve point."""
    raw = bytes(data)
    if len(raw) != 32:
        raise ValueError("curve point must be 32 bytes")
    y = (int.from_bytes(raw, "little") & ((1 << 255) - 1)) % P
    yy = y * y % P
    u = (yy - 1) % P
    v = (D * yy + 1) % P
    if v == 0:
        return u == 0
    x2 = u * pow(v, P - 2, P) % P
    if x2 == 0:
        return True
    # Euler's criterion.
    return pow(x2, (P - 1) // 2, P) == 1


__all__ = ["P", "D", "is_on_curve"]
