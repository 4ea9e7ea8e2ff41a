"""
Elliptic curve points on secp256k1 via libsecp256k1.

Every group operation (point addition, negation, scalar multiplication,
parsing and serialisation) is delegated to the C library ``coincurve``,
which wraps Bitcoin Core's libsecp256k1.  Only scalar arithmetic modulo
the group order, which is cheap, is done in Python.

The point at infinity is deliberately **not** representable: it has no
SEC 1 encoding and no use as a public key, so any operation that would
produce it raises ``GroupOperationError``.

Install
-------
    pip install coincurve>=18.0.0

References
----------
- SEC 1 v2 §2.3.3-2.3.4  point encodings
- SEC 2 v2 §2.4.1        secp256k1 domain parameters
- BIP-340                x-only public keys
"""

from __future__ import annotations

from enum import Enum
from typing import FrozenSet, Optional, Sequence, Tuple, Union

from coincurve import PrivateKey as _SK, PublicKey as _PK

from .context import get_context
from .errors import (
    GroupOperationError,
    IncorrectByteCountError,
    InvalidParameterError,
    InvalidPointError,
)

# ── secp256k1 constants ─────────────────────────────────────────────────
ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
FIELD_PRIME = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F
HALF_ORDER = ORDER // 2
G_X = 0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798
G_Y = 0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8
SCALAR_BYTES = 32


# ── serialisation formats ───────────────────────────────────────────────
class Format(Enum):
    """Byte layouts a public key can be imported from or exported to."""

    X_ONLY = 32          # X only, even Y implied (BIP-340)
    COMPRESSED = 33      # 0x02/0x03 parity tag + X
    UNCOMPRESSED = 65    # 0x04 + X + Y

    @property
    def length(self) -> int:
        return self.value

    @property
    def tags(self) -> FrozenSet[int]:
        """Acceptable leading tag bytes (empty for x-only)."""
        return _TAGS[self]

    @classmethod
    def from_length(cls, length: int) -> Format:
        for fmt in cls:
            if fmt.length == length:
                return fmt
        raise IncorrectByteCountError(
            length, [f.length for f in cls], what="public key",
        )


_TAGS = {
    Format.X_ONLY: frozenset(),
    Format.COMPRESSED: frozenset({0x02, 0x03}),
    Format.UNCOMPRESSED: frozenset({0x04}),
}


# ── Scalar  (Z_n arithmetic in pure Python) ─────────────────────────────
class Scalar:
    """Element of the scalar field  Z_n  where *n* = ``ORDER``."""

    __slots__ = ("_v",)

    def __init__(self, value: int) -> None:
        self._v = value % ORDER

    # constructors -----------------------------------------------------------
    @classmethod
    def from_bytes_reduce(cls, data: bytes) -> Scalar:
        """Hash-output safe: reduce arbitrary length modulo *n*."""
        return cls(int.from_bytes(data, "big"))

    # serialisation ----------------------------------------------------------
    def to_bytes(self) -> bytes:
        return self._v.to_bytes(SCALAR_BYTES, "big")

    @property
    def value(self) -> int:
        return self._v

    def is_zero(self) -> bool:
        return self._v == 0

    # arithmetic -------------------------------------------------------------
    def __add__(self, o: Scalar) -> Scalar:
        if not isinstance(o, Scalar):
            return NotImplemented
        return Scalar(self._v + o._v)

    def __sub__(self, o: Scalar) -> Scalar:
        if not isinstance(o, Scalar):
            return NotImplemented
        return Scalar(self._v - o._v)

    def __mul__(self, o):
        if isinstance(o, Scalar):
            return Scalar(self._v * o._v)
        if isinstance(o, Point):
            return o.multiply(self)
        return NotImplemented

    def __rmul__(self, o):
        if isinstance(o, int):
            return Scalar(o * self._v)
        return NotImplemented

    def __neg__(self) -> Scalar:
        return Scalar(-self._v)

    # comparison / hashing ---------------------------------------------------
    def __eq__(self, o: object) -> bool:
        if isinstance(o, Scalar):
            return self._v == o._v
        if isinstance(o, int):
            return self._v == o % ORDER
        return False

    def __hash__(self) -> int:
        return hash(self._v)

    def __bool__(self) -> bool:
        return self._v != 0

    def __repr__(self) -> str:
        h = hex(self._v)
        return f"Scalar(0x{h[2:10]}…)" if len(h) > 14 else f"Scalar({h})"


ScalarLike = Union[int, Scalar, "PrivateKey"]


def _scalar_value(s: ScalarLike) -> int:
    """Reduce any accepted scalar representation to an int in [0, n)."""
    if isinstance(s, Scalar):
        return s.value
    if isinstance(s, int):
        return s % ORDER
    from .keys import PrivateKey
    if isinstance(s, PrivateKey):
        return s.to_int()
    raise TypeError(f"cannot use {type(s).__name__} as a scalar")


# ── Point  (secp256k1 group element via libsecp256k1) ───────────────────
class Point:
    """
    Finite point on secp256k1, i.e. a public key.

    The canonical representation is the 65-byte uncompressed SEC 1
    encoding; equality and hashing use it, so two points compare equal
    whichever format they were imported from.  The ``coincurve`` handle
    is built lazily and cached.
    """

    __slots__ = ("_raw", "_pk")

    def __init__(self, *, pk: _PK) -> None:
        self._pk: Optional[_PK] = pk
        self._raw: bytes = pk.format(compressed=False)

    @classmethod
    def _from_trusted(cls, raw: bytes) -> Point:
        """Wrap uncompressed bytes already known to be on the curve."""
        p = cls.__new__(cls)
        p._raw = raw
        p._pk = None
        return p

    def _key(self) -> _PK:
        if self._pk is None:
            self._pk = _PK(self._raw, context=get_context())
        return self._pk

    # constructors -----------------------------------------------------------
    @classmethod
    def generator(cls) -> Point:
        """Standard base point *G*."""
        return cls._from_trusted(
            b"\x04" + G_X.to_bytes(32, "big") + G_Y.to_bytes(32, "big")
        )

    @classmethod
    def from_bytes(cls, data: bytes, format: Optional[Format] = None) -> Point:
        """
        Import a public key.

        Parameters
        ----------
        data : bytes
            Compressed (33 B), uncompressed (65 B) or x-only (32 B) key.
        format : Format, optional
            Expected layout; inferred from the length when omitted.

        Raises ``IncorrectByteCountError`` for an unacceptable length and
        ``InvalidPointError`` when the bytes do not describe a curve point.
        """
        data = bytes(data)
        if format is None:
            format = Format.from_length(len(data))
        elif len(data) != format.length:
            raise IncorrectByteCountError(
                len(data), [format.length], what="public key",
            )

        if format is Format.X_ONLY:
            # lift_x: the point with this X and an even Y
            encoded = b"\x02" + data
        else:
            if data[0] not in format.tags:
                raise InvalidPointError(
                    f"invalid {format.name.lower()} public key tag 0x{data[0]:02x}"
                )
            encoded = data
        try:
            pk = _PK(encoded, context=get_context())
        except ValueError as exc:
            raise InvalidPointError("bytes do not encode a point on secp256k1") from exc
        return cls(pk=pk)

    @classmethod
    def from_coordinates(cls, x: int, y: int) -> Point:
        """Build a point from affine coordinates, checking the curve equation."""
        if not (0 <= x < FIELD_PRIME and 0 <= y < FIELD_PRIME):
            raise InvalidPointError("coordinate not in field")
        return cls.from_bytes(
            b"\x04" + x.to_bytes(32, "big") + y.to_bytes(32, "big"),
            Format.UNCOMPRESSED,
        )

    @classmethod
    def from_scalar(cls, s: ScalarLike) -> Point:
        """Compute *s · G*."""
        v = _scalar_value(s)
        if v == 0:
            raise GroupOperationError("0 · G is the point at infinity")
        return cls(pk=_SK(v.to_bytes(SCALAR_BYTES, "big"), context=get_context()).public_key)

    # serialisation ----------------------------------------------------------
    def to_bytes(self, format: Format = Format.COMPRESSED) -> bytes:
        if format is Format.UNCOMPRESSED:
            return self._raw
        if format is Format.COMPRESSED:
            return bytes([0x02 | (self._raw[64] & 1)]) + self._raw[1:33]
        return self._raw[1:33]

    @property
    def x(self) -> int:
        return int.from_bytes(self._raw[1:33], "big")

    @property
    def y(self) -> int:
        return int.from_bytes(self._raw[33:65], "big")

    @property
    def has_even_y(self) -> bool:
        return self._raw[64] & 1 == 0

    def to_coincurve(self) -> _PK:
        """The underlying ``coincurve.PublicKey``."""
        return self._key()

    # group operations -------------------------------------------------------
    def multiply(self, s: ScalarLike) -> Point:
        """Scalar multiplication  s · self  (C speed)."""
        v = _scalar_value(s)
        if v == 0:
            raise GroupOperationError("0 · P is the point at infinity")
        return Point(pk=self._key().multiply(v.to_bytes(SCALAR_BYTES, "big")))

    def __neg__(self) -> Point:
        raw = bytearray(self.to_bytes(Format.COMPRESSED))
        raw[0] ^= 0x01            # 0x02 ↔ 0x03 flip parity
        return Point(pk=_PK(bytes(raw), context=get_context()))

    def __add__(self, o: Point) -> Point:
        if not isinstance(o, Point):
            return NotImplemented
        # P + (-P) = O
        if self._raw[1:33] == o._raw[1:33]:
            if self._raw != o._raw:
                raise GroupOperationError("sum is the point at infinity")
            return self.multiply(2)
        try:
            pk = _PK.combine_keys([self._key(), o._key()], context=get_context())
        except ValueError as exc:
            raise GroupOperationError("sum is the point at infinity") from exc
        return Point(pk=pk)

    def __sub__(self, o: Point) -> Point:
        if not isinstance(o, Point):
            return NotImplemented
        return self + (-o)

    def __rmul__(self, s) -> Point:
        if isinstance(s, (int, Scalar)):
            return self.multiply(s)
        return NotImplemented

    def __eq__(self, o: object) -> bool:
        if not isinstance(o, Point):
            return False
        return self._raw == o._raw

    def __hash__(self) -> int:
        return hash(self._raw)

    def __repr__(self) -> str:
        return f"Point(0x{self.to_bytes().hex()})"[:42] + "…)"

    # utility ----------------------------------------------------------------
    @staticmethod
    def sum_points(points: Sequence[Point]) -> Point:
        """
        Add a non-empty list of points left to right.

        Raises ``InvalidParameterError`` on an empty list and
        ``GroupOperationError`` as soon as a partial sum hits infinity.
        """
        points = list(points)
        if not points:
            raise InvalidParameterError("cannot sum an empty list of points")
        acc = points[0]
        for p in points[1:]:
            acc = acc + p
        return acc


def lincomb(terms: Sequence[Tuple[ScalarLike, Point]]) -> Point:
    """
    Compute  Σ sᵢ · Pᵢ  for (scalar, point) pairs, skipping zero scalars.

    Raises ``GroupOperationError`` when the result is infinity.
    """
    parts = [p.multiply(s) for s, p in terms if _scalar_value(s) != 0]
    if not parts:
        raise GroupOperationError("linear combination is the point at infinity")
    return Point.sum_points(parts)


# ── module-level generator ──────────────────────────────────────────────
G = Point.generator()
