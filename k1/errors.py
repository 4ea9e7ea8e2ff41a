"""
Exception taxonomy for k1.

Every error is a ``K1Error`` and also one of the builtin exceptions
(``ValueError`` for bad input, ``RuntimeError`` for internal faults),
so ``except ValueError`` around a key import keeps working.

Signature *verification* never raises for a signature that is merely
wrong: it returns ``False``.  Only structurally malformed input (wrong
lengths, undecodable DER) is an error.
"""

from __future__ import annotations

from typing import Iterable, Tuple


class K1Error(Exception):
    """Base class of all k1 errors."""


class IncorrectByteCountError(K1Error, ValueError):
    """Input length does not match any accepted encoding."""

    def __init__(self, got: int, acceptable: Iterable[int], what: str = "input") -> None:
        self.got = got
        self.acceptable: Tuple[int, ...] = tuple(sorted(acceptable))
        allowed = ", ".join(str(n) for n in self.acceptable)
        super().__init__(
            f"incorrect byte count of {what}: got {got}, acceptable: {allowed}"
        )


class InvalidPointError(K1Error, ValueError):
    """Well-sized bytes that do not decode to a point on secp256k1."""


class InvalidScalarError(K1Error, ValueError):
    """Scalar outside  [1, n)  or otherwise not a usable secret."""


class GroupOperationError(K1Error, ValueError):
    """The result would be the point at infinity, which has no encoding."""


class InvalidParameterError(K1Error, ValueError):
    """A precondition on an argument (e.g. a non-empty list) is violated."""


class MalformedSignatureError(K1Error, ValueError):
    """Structurally invalid DER, compact or Schnorr signature bytes."""


class InternalFailureError(K1Error, RuntimeError):
    """An invariant of the primitive layer was violated."""
