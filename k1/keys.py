"""
Private keys: secret scalars  d  with  1 ≤ d < n.

The secret is held in a ``bytearray`` so that ``zeroize()`` can
overwrite it in place (best-effort in Python).  The public key  d·G  is
computed once and memoized.
"""

from __future__ import annotations

import hmac
import secrets
from typing import Optional, Union

from coincurve import PrivateKey as _SK

from .context import get_context
from .curve import ORDER, SCALAR_BYTES, Point, Scalar
from .errors import IncorrectByteCountError, InvalidScalarError

Tweak = Union[bytes, int, Scalar, "PrivateKey"]


def _check_range(v: int) -> None:
    if not 0 < v < ORDER:
        raise InvalidScalarError("private key must satisfy 1 <= d < n")


class PrivateKey:
    """A secp256k1 secret key."""

    __slots__ = ("_secret", "_public_key")

    def __init__(self, secret: bytes) -> None:
        if len(secret) != SCALAR_BYTES:
            raise IncorrectByteCountError(
                len(secret), [SCALAR_BYTES], what="private key",
            )
        _check_range(int.from_bytes(secret, "big"))
        self._secret = bytearray(secret)
        self._public_key: Optional[Point] = None

    # constructors -----------------------------------------------------------
    @classmethod
    def from_bytes(cls, secret: bytes) -> PrivateKey:
        return cls(secret)

    @classmethod
    def from_int(cls, value: int) -> PrivateKey:
        _check_range(value)
        return cls(value.to_bytes(SCALAR_BYTES, "big"))

    @classmethod
    def generate(cls) -> PrivateKey:
        """Uniform in [1, n-1]; out-of-range draws are rejected and redrawn."""
        while True:
            candidate = secrets.token_bytes(SCALAR_BYTES)
            if 0 < int.from_bytes(candidate, "big") < ORDER:
                return cls(candidate)

    # accessors --------------------------------------------------------------
    def _live_secret(self) -> bytes:
        if not any(self._secret):
            raise InvalidScalarError("private key has been zeroized")
        return bytes(self._secret)

    def to_bytes(self) -> bytes:
        return self._live_secret()

    def to_int(self) -> int:
        return int.from_bytes(self._live_secret(), "big")

    @property
    def scalar(self) -> Scalar:
        return Scalar(self.to_int())

    def to_coincurve(self) -> _SK:
        """A ``coincurve.PrivateKey`` for the same secret (a copy)."""
        return _SK(self._live_secret(), context=get_context())

    @property
    def public_key(self) -> Point:
        """d · G, computed on first access."""
        if self._public_key is None:
            self._public_key = Point.from_scalar(self.to_int())
        return self._public_key

    # tweaks -----------------------------------------------------------------
    def tweak_add(self, tweak: Tweak) -> PrivateKey:
        """Return  (d + t) mod n;  fails if the sum is zero."""
        t = _tweak_value(tweak)
        return self._derived((self.to_int() + t) % ORDER)

    def tweak_mul(self, tweak: Tweak) -> PrivateKey:
        """Return  (d · t) mod n;  a zero tweak is rejected."""
        t = _tweak_value(tweak)
        return self._derived((self.to_int() * t) % ORDER)

    def negate(self) -> PrivateKey:
        return self._derived(ORDER - self.to_int())

    def _derived(self, v: int) -> PrivateKey:
        if v == 0:
            raise InvalidScalarError("tweak result is outside the scalar range")
        return PrivateKey.from_int(v)

    # lifecycle --------------------------------------------------------------
    def zeroize(self) -> None:
        """
        Overwrite the secret.  The key is unusable afterwards: every
        accessor, and so every scheme using the key, raises
        ``InvalidScalarError``.
        """
        for i in range(len(self._secret)):
            self._secret[i] = 0
        self._public_key = None

    def __eq__(self, o: object) -> bool:
        if not isinstance(o, PrivateKey):
            return NotImplemented
        return hmac.compare_digest(self._secret, o._secret)

    def __hash__(self) -> int:
        return hash(self.public_key)

    def __repr__(self) -> str:
        return "PrivateKey(<redacted>)"


def _tweak_value(tweak: Tweak) -> int:
    """Tweaks must already be reduced: a value ≥ n is an error, not wrapped."""
    if isinstance(tweak, PrivateKey):
        return tweak.to_int()
    if isinstance(tweak, Scalar):
        return tweak.value
    if isinstance(tweak, (bytes, bytearray)):
        if len(tweak) != SCALAR_BYTES:
            raise IncorrectByteCountError(len(tweak), [SCALAR_BYTES], what="tweak")
        tweak = int.from_bytes(tweak, "big")
    if isinstance(tweak, int):
        if not 0 <= tweak < ORDER:
            raise InvalidScalarError("tweak must be in [0, n)")
        return tweak
    raise TypeError(f"cannot use {type(tweak).__name__} as a tweak")
