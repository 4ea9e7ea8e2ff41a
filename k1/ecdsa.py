"""
ECDSA over secp256k1.

Signing and the verification equation run in libsecp256k1 (through
``coincurve``), with RFC 6979 deterministic nonces.  This module owns the
policy layered on top:

**Malleability.**  If  (r, s)  is valid then so is  (r, n − s).  Signing
always emits the low-s form.  Verification has two modes:

    REJECT_MALLEABILITY   only low-s verifies (default, BIP-62 / BIP-146)
    ACCEPT_MALLEABILITY   high-s is normalised first, so both verify

**Encodings.**  DER (strict: minimal lengths and integers, no trailing
bytes) and 64-byte compact  r ‖ s.  Recoverable signatures add a
recovery id and serialise to 65 bytes  r ‖ s ‖ v.

Verification returns ``False`` for anything cryptographically wrong,
including  r  or  s  outside  [1, n).  Only malformed *structure* raises.

References
----------
- SEC 1 v2 §4.1          ECDSA
- RFC 6979               deterministic nonces
- BIP-62, BIP-66         low-s and strict DER
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from coincurve import PublicKey as _PK

from .context import get_context
from .curve import HALF_ORDER, ORDER, SCALAR_BYTES, Point
from .errors import (
    IncorrectByteCountError,
    InvalidPointError,
    MalformedSignatureError,
)
from .keys import PrivateKey

logger = logging.getLogger(__name__)

DIGEST_BYTES = 32
COMPACT_BYTES = 64
RECOVERABLE_BYTES = 65

_TAG_SEQUENCE = 0x30
_TAG_INTEGER = 0x02


class ValidationMode(Enum):
    """How verification treats the high-s twin of a valid signature."""

    REJECT_MALLEABILITY = "reject"
    ACCEPT_MALLEABILITY = "accept"


# ── DER helpers ─────────────────────────────────────────────────────────

def _der_length(n: int) -> bytes:
    if n < 0x80:
        return bytes([n])
    body = n.to_bytes((n.bit_length() + 7) // 8, "big")
    return bytes([0x80 | len(body)]) + body


def _der_integer(v: int) -> bytes:
    if v < 0:
        raise MalformedSignatureError("cannot DER-encode a negative integer")
    body = v.to_bytes(max(1, (v.bit_length() + 7) // 8), "big")
    if body[0] & 0x80:
        body = b"\x00" + body
    return bytes([_TAG_INTEGER]) + _der_length(len(body)) + body


def _read_length(data: bytes, pos: int) -> Tuple[int, int]:
    if pos >= len(data):
        raise MalformedSignatureError("DER: truncated length")
    first = data[pos]
    pos += 1
    if first < 0x80:
        return first, pos
    count = first & 0x7F
    if count == 0:
        raise MalformedSignatureError("DER: indefinite length")
    if count > 4 or pos + count > len(data):
        raise MalformedSignatureError("DER: truncated or oversized length")
    if data[pos] == 0:
        raise MalformedSignatureError("DER: length has leading zero")
    length = int.from_bytes(data[pos:pos + count], "big")
    if length < 0x80:
        raise MalformedSignatureError("DER: long-form length for short value")
    return length, pos + count


def _read_element(data: bytes, pos: int, tag: int) -> Tuple[bytes, int]:
    """Read one TLV with the expected *tag*; return (value, next position)."""
    if pos >= len(data):
        raise MalformedSignatureError("DER: missing element")
    if data[pos] != tag:
        raise MalformedSignatureError(
            f"DER: expected tag 0x{tag:02x}, got 0x{data[pos]:02x}"
        )
    length, pos = _read_length(data, pos + 1)
    end = pos + length
    if end > len(data):
        raise MalformedSignatureError("DER: element overruns input")
    return data[pos:end], end


def _parse_integer(body: bytes) -> int:
    if not body:
        raise MalformedSignatureError("DER: empty integer")
    if body[0] & 0x80:
        raise MalformedSignatureError("DER: negative integer")
    if len(body) > 1 and body[0] == 0 and not body[1] & 0x80:
        raise MalformedSignatureError("DER: integer has superfluous leading zero")
    return int.from_bytes(body, "big")


# ── data structures ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class ECDSASignature:
    """
    ECDSA signature  (r, s).

    Values are not range-checked on construction: a decoded signature
    with  r = 0  is structurally fine and simply fails to verify.
    """

    r: int
    s: int

    # DER -------------------------------------------------------------------
    def to_der(self) -> bytes:
        body = _der_integer(self.r) + _der_integer(self.s)
        return bytes([_TAG_SEQUENCE]) + _der_length(len(body)) + body

    @classmethod
    def from_der(cls, data: bytes) -> ECDSASignature:
        data = bytes(data)
        seq, end = _read_element(data, 0, _TAG_SEQUENCE)
        if end != len(data):
            raise MalformedSignatureError("DER: trailing bytes after signature")
        r_body, pos = _read_element(seq, 0, _TAG_INTEGER)
        s_body, pos = _read_element(seq, pos, _TAG_INTEGER)
        if pos != len(seq):
            raise MalformedSignatureError("DER: extra elements in sequence")
        return cls(r=_parse_integer(r_body), s=_parse_integer(s_body))

    # compact ---------------------------------------------------------------
    def to_compact(self) -> bytes:
        """Serialise to 64 bytes:  r (32) ‖ s (32)."""
        for v in (self.r, self.s):
            if not 0 <= v < 1 << 256:
                raise MalformedSignatureError("r and s must fit in 32 bytes")
        return self.r.to_bytes(SCALAR_BYTES, "big") + self.s.to_bytes(SCALAR_BYTES, "big")

    @classmethod
    def from_compact(cls, data: bytes) -> ECDSASignature:
        if len(data) != COMPACT_BYTES:
            raise MalformedSignatureError(
                f"compact signature must be {COMPACT_BYTES} bytes, got {len(data)}"
            )
        return cls(
            r=int.from_bytes(data[:32], "big"),
            s=int.from_bytes(data[32:], "big"),
        )

    # malleability ----------------------------------------------------------
    def is_low_s(self) -> bool:
        return self.s <= HALF_ORDER

    def normalize(self) -> ECDSASignature:
        """Return the low-s twin (identity if already low-s)."""
        if self.is_low_s():
            return self
        return ECDSASignature(r=self.r, s=ORDER - self.s)


@dataclass(frozen=True)
class RecoverableSignature:
    """ECDSA signature with the recovery id  v ∈ {0, 1, 2, 3}."""

    r: int
    s: int
    recovery_id: int

    def to_compact(self) -> bytes:
        """Serialise to 65 bytes:  r (32) ‖ s (32) ‖ v (1)."""
        return self.to_signature().to_compact() + bytes([self.recovery_id])

    @classmethod
    def from_compact(cls, data: bytes) -> RecoverableSignature:
        if len(data) != RECOVERABLE_BYTES:
            raise MalformedSignatureError(
                f"recoverable signature must be {RECOVERABLE_BYTES} bytes, got {len(data)}"
            )
        if data[64] > 3:
            raise MalformedSignatureError(f"recovery id must be 0..3, got {data[64]}")
        sig = ECDSASignature.from_compact(data[:64])
        return cls(r=sig.r, s=sig.s, recovery_id=data[64])

    def to_signature(self) -> ECDSASignature:
        return ECDSASignature(r=self.r, s=self.s)


# ── signing ─────────────────────────────────────────────────────────────

def _check_digest(digest: bytes) -> None:
    if len(digest) != DIGEST_BYTES:
        raise IncorrectByteCountError(len(digest), [DIGEST_BYTES], what="digest")


def sign(digest: bytes, private_key: PrivateKey) -> ECDSASignature:
    """
    Sign a 32-byte digest.

    The nonce is derived deterministically (RFC 6979) by libsecp256k1,
    and the result is always in low-s form.
    """
    _check_digest(digest)
    der = private_key.to_coincurve().sign(bytes(digest), hasher=None)
    return ECDSASignature.from_der(der).normalize()


def sign_message(message: bytes, private_key: PrivateKey) -> ECDSASignature:
    """Sign  SHA-256(message)."""
    return sign(hashlib.sha256(message).digest(), private_key)


def sign_recoverable(digest: bytes, private_key: PrivateKey) -> RecoverableSignature:
    _check_digest(digest)
    raw = private_key.to_coincurve().sign_recoverable(bytes(digest), hasher=None)
    return RecoverableSignature.from_compact(raw)


# ── verification ────────────────────────────────────────────────────────

def verify(
    signature: ECDSASignature,
    digest: bytes,
    public_key: Point,
    mode: ValidationMode = ValidationMode.REJECT_MALLEABILITY,
) -> bool:
    """
    Check  signature  over the 32-byte  digest  against  public_key.

    Returns ``False`` for out-of-range  r/s, for a high-s signature in
    ``REJECT_MALLEABILITY`` mode, and for any failed equation check.
    Raises ``IncorrectByteCountError`` only for a wrong-length digest.
    """
    _check_digest(digest)
    r, s = signature.r, signature.s
    if not (0 < r < ORDER and 0 < s < ORDER):
        logger.debug("rejecting ECDSA signature: r or s out of range")
        return False
    if s > HALF_ORDER:
        if mode is ValidationMode.REJECT_MALLEABILITY:
            logger.debug("rejecting ECDSA signature: high-s form")
            return False
        s = ORDER - s
    der = ECDSASignature(r=r, s=s).to_der()
    return public_key.to_coincurve().verify(der, bytes(digest), hasher=None)


def verify_message(
    signature: ECDSASignature,
    message: bytes,
    public_key: Point,
    mode: ValidationMode = ValidationMode.REJECT_MALLEABILITY,
) -> bool:
    """Verify a signature over  SHA-256(message)."""
    return verify(signature, hashlib.sha256(message).digest(), public_key, mode)


def recover(signature: RecoverableSignature, digest: bytes) -> Point:
    """
    Recover the public key that produced *signature* over *digest*.

    Raises ``InvalidPointError`` when no key can be recovered and
    ``MalformedSignatureError`` when the signature cannot be serialised.
    """
    _check_digest(digest)
    compact = signature.to_compact()
    try:
        pk = _PK.from_signature_and_message(
            compact, bytes(digest), hasher=None, context=get_context(),
        )
    # coincurve signals a failed recovery with a bare Exception
    except Exception as exc:
        raise InvalidPointError("no public key recoverable from signature") from exc
    return Point(pk=pk)
