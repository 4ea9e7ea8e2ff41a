"""
Elliptic-curve Diffie-Hellman key agreement.

    raw    = compressed( d · Q )                 (33 bytes)
    secret = kdf(raw)

The raw agreement output is a curve point, not a uniformly random key;
it should go through a key-derivation function before symmetric use.
``KeyDerivation`` is the hook for that: a pure function from the 33 raw
bytes to the derived bytes, together with the output length it promises.
The length promise is checked on every call.

Shared secrets are returned as ``SharedSecret`` objects that own a
``bytearray`` and overwrite it on ``zeroize()``, on leaving a ``with``
block, or (best-effort) when garbage-collected.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from typing import Callable

from .curve import Format, Point
from .errors import InternalFailureError, InvalidPointError, InvalidScalarError
from .keys import PrivateKey


# ── key-derivation hooks ────────────────────────────────────────────────

@dataclass(frozen=True)
class KeyDerivation:
    """Derivation applied to the 33-byte raw agreement output."""

    name: str
    derive: Callable[[bytes], bytes]
    output_length: int


RAW = KeyDerivation("raw", bytes, Format.COMPRESSED.length)
X_ONLY = KeyDerivation("x-only", lambda raw: raw[1:33], Format.X_ONLY.length)
# identical to libsecp256k1's default ECDH hash function
SHA256 = KeyDerivation("sha256", lambda raw: hashlib.sha256(raw).digest(), 32)


# ── shared secret ───────────────────────────────────────────────────────

class SharedSecret:
    """
    Key-agreement output owned by the caller.

    Use as a context manager to scope its lifetime::

        with ecdh.agree(alice, bob_public) as ss:
            key = hkdf(bytes(ss))
    """

    __slots__ = ("_buf",)

    def __init__(self, data: bytes) -> None:
        self._buf = bytearray(data)

    def __len__(self) -> int:
        return len(self._buf)

    def __bytes__(self) -> bytes:
        return bytes(self._buf)

    def hex(self) -> str:
        return self._buf.hex()

    def zeroize(self) -> None:
        """Overwrite the secret with zeros."""
        for i in range(len(self._buf)):
            self._buf[i] = 0

    def is_zeroized(self) -> bool:
        return not any(self._buf)

    def __enter__(self) -> SharedSecret:
        return self

    def __exit__(self, *exc) -> None:
        self.zeroize()

    def __del__(self) -> None:
        if getattr(self, "_buf", None) is not None:
            self.zeroize()

    def __eq__(self, o: object) -> bool:
        if isinstance(o, SharedSecret):
            return hmac.compare_digest(self._buf, o._buf)
        if isinstance(o, (bytes, bytearray)):
            return hmac.compare_digest(self._buf, o)
        return NotImplemented

    def __repr__(self) -> str:
        return f"SharedSecret(<{len(self._buf)} bytes>)"


# ── agreement ───────────────────────────────────────────────────────────

def agree(
    private_key: PrivateKey,
    public_key: Point,
    kdf: KeyDerivation = RAW,
) -> SharedSecret:
    """
    Derive the shared secret between *private_key* and *public_key*.

    Parameters
    ----------
    private_key : PrivateKey
        Our secret scalar  d.
    public_key : Point
        The peer's public key  Q.
    kdf : KeyDerivation
        Applied to the raw 33-byte output; ``RAW`` returns it unchanged.

    Raises ``InternalFailureError`` if the derivation does not return
    exactly ``kdf.output_length`` bytes.
    """
    if not isinstance(private_key, PrivateKey):
        raise InvalidScalarError("key agreement requires a PrivateKey")
    if not isinstance(public_key, Point):
        raise InvalidPointError("key agreement requires a Point")

    raw = bytearray(public_key.multiply(private_key).to_bytes(Format.COMPRESSED))
    try:
        derived = kdf.derive(bytes(raw))
    finally:
        for i in range(len(raw)):
            raw[i] = 0

    if len(derived) != kdf.output_length:
        raise InternalFailureError(
            f"{kdf.name} derivation returned {len(derived)} bytes, "
            f"expected {kdf.output_length}"
        )
    return SharedSecret(derived)
