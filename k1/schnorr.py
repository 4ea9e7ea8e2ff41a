"""
BIP-340 Schnorr signatures over x-only public keys.

Public keys are 32-byte X coordinates; the matching point is the one
with even Y.  Signing negates the secret when  d·G  has odd Y, and the
nonce likewise, so both signer and verifier work with even-Y points.

**Signing:**

    d   = d₀  if  has_even_y(d₀·G)  else  n − d₀
    t   = d  xor  H_aux(a)
    k₀  = H_nonce(t ‖ P.x ‖ m)  mod n
    k   = k₀  if  has_even_y(k₀·G)  else  n − k₀
    e   = H_challenge(R.x ‖ P.x ‖ m)  mod n
    sig = R.x ‖ (k + e·d  mod n)

Mixing fresh auxiliary randomness *a* into the nonce keeps signing safe
when the randomness is poor; with  a = 0³²  the scheme is deterministic.

**Verification:**  R = s·G − e·P  must be finite, have even Y and
R.x = r.  Any mismatch returns ``False``; only a signature that is not
64 bytes or a key that is not 32 bytes raises.

References
----------
- Wuille, Nick, Ruffing (2020). "BIP-340: Schnorr Signatures for
  secp256k1."
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Optional, Union

from .curve import FIELD_PRIME, ORDER, SCALAR_BYTES, Format, G, Point, lincomb
from .errors import (
    GroupOperationError,
    IncorrectByteCountError,
    InternalFailureError,
    InvalidPointError,
    MalformedSignatureError,
)
from .hash import hash_aux, hash_challenge, hash_nonce
from .keys import PrivateKey

logger = logging.getLogger(__name__)

SIGNATURE_BYTES = 64
AUX_BYTES = 32


# ── data structures ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class SchnorrSignature:
    """
    BIP-340 signature  (r, s):  r  the X coordinate of the nonce point,
    s  the response scalar.  Ranges are checked during verification,
    not on construction.
    """

    r: int
    s: int

    def to_bytes(self) -> bytes:
        """Serialise to 64 bytes:  r (32) ‖ s (32)."""
        return self.r.to_bytes(32, "big") + self.s.to_bytes(SCALAR_BYTES, "big")

    @classmethod
    def from_bytes(cls, data: bytes) -> SchnorrSignature:
        if len(data) != SIGNATURE_BYTES:
            raise MalformedSignatureError(
                f"Schnorr signature must be {SIGNATURE_BYTES} bytes, got {len(data)}"
            )
        return cls(
            r=int.from_bytes(data[:32], "big"),
            s=int.from_bytes(data[32:], "big"),
        )


# ── signing ─────────────────────────────────────────────────────────────

def sign(
    message: bytes,
    private_key: PrivateKey,
    aux_randomness: Optional[bytes] = None,
) -> SchnorrSignature:
    """
    Produce a BIP-340 signature over *message* (any length).

    Parameters
    ----------
    message : bytes
        Message to sign.
    private_key : PrivateKey
        Signing key; its x-only public key is what verifiers use.
    aux_randomness : bytes, optional
        32 bytes mixed into the nonce.  Fresh random bytes when omitted.
    """
    if aux_randomness is None:
        aux_randomness = secrets.token_bytes(AUX_BYTES)
    if len(aux_randomness) != AUX_BYTES:
        raise IncorrectByteCountError(
            len(aux_randomness), [AUX_BYTES], what="auxiliary randomness",
        )

    P = private_key.public_key
    d = private_key.scalar if P.has_even_y else -private_key.scalar
    px = P.to_bytes(Format.X_ONLY)

    t = bytes(a ^ b for a, b in zip(d.to_bytes(), hash_aux(aux_randomness)))
    k0 = hash_nonce(t, px, message)
    if k0.is_zero():
        raise InternalFailureError("derived nonce is zero")

    R = G.multiply(k0)
    k = k0 if R.has_even_y else -k0
    rx = R.to_bytes(Format.X_ONLY)

    e = hash_challenge(rx, px, message)
    sig = SchnorrSignature(r=R.x, s=(k + e * d).value)

    if not verify(sig, message, P):
        raise InternalFailureError("produced Schnorr signature does not verify")
    return sig


# ── verification ────────────────────────────────────────────────────────

def verify(
    signature: Union[SchnorrSignature, bytes],
    message: bytes,
    public_key: Union[Point, bytes],
) -> bool:
    """
    Verify a BIP-340 signature against an x-only public key.

    *public_key* may be a ``Point`` (its parity is ignored) or 32 bytes.
    """
    if not isinstance(signature, SchnorrSignature):
        signature = SchnorrSignature.from_bytes(signature)
    if isinstance(public_key, Point):
        px = public_key.to_bytes(Format.X_ONLY)
    else:
        px = bytes(public_key)
        if len(px) != Format.X_ONLY.length:
            raise IncorrectByteCountError(
                len(px), [Format.X_ONLY.length], what="x-only public key",
            )

    try:
        P = Point.from_bytes(px, Format.X_ONLY)
    except InvalidPointError:
        logger.debug("rejecting Schnorr signature: public key not on curve")
        return False

    r, s = signature.r, signature.s
    if r >= FIELD_PRIME or s >= ORDER:
        logger.debug("rejecting Schnorr signature: r or s out of range")
        return False

    e = hash_challenge(r.to_bytes(32, "big"), px, message)
    try:
        R = lincomb([(s, G), (-e.value, P)])
    except GroupOperationError:
        logger.debug("rejecting Schnorr signature: R is the point at infinity")
        return False

    if not R.has_even_y:
        logger.debug("rejecting Schnorr signature: R has odd y")
        return False
    return R.x == r
