"""
k1: secp256k1 keys, group operations and signatures.

Built on libsecp256k1 (through ``coincurve``) for all curve arithmetic:

- **Points and keys**: import/export in compressed, uncompressed and
  x-only form; addition, negation, subtraction, scalar multiplication
  and multi-key summation.  The point at infinity is never returned.
- **ECDSA**: RFC 6979 signing, low-s normalisation, verification with
  an explicit malleability policy, strict DER and compact encodings,
  public-key recovery.
- **Schnorr**: BIP-340 signing and verification over x-only keys.
- **ECDH**: shared secrets with a pluggable key-derivation hook.

Quick start
-----------
::

    import hashlib
    from k1 import PrivateKey, ecdsa, schnorr, ecdh

    alice = PrivateKey.generate()
    digest = hashlib.sha256(b"transfer 1 BTC to Bob").digest()

    sig = ecdsa.sign(digest, alice)
    assert ecdsa.verify(sig, digest, alice.public_key)

    bip340 = schnorr.sign(b"hello", alice)
    assert schnorr.verify(bip340, b"hello", alice.public_key)

    bob = PrivateKey.generate()
    with ecdh.agree(alice, bob.public_key, ecdh.SHA256) as ss:
        key = bytes(ss)
"""

__version__ = "0.1.0"

# ── core types ──────────────────────────────────────────────────────────
from .curve import Format, Scalar, Point, G, ORDER, FIELD_PRIME
from .keys import PrivateKey

# ── schemes ─────────────────────────────────────────────────────────────
from . import context, ecdh, ecdsa, schnorr
from .ecdsa import ECDSASignature, RecoverableSignature, ValidationMode
from .schnorr import SchnorrSignature
from .ecdh import KeyDerivation, SharedSecret

# ── errors ──────────────────────────────────────────────────────────────
from .errors import (
    K1Error,
    IncorrectByteCountError,
    InvalidPointError,
    InvalidScalarError,
    GroupOperationError,
    InvalidParameterError,
    MalformedSignatureError,
    InternalFailureError,
)

__all__ = [
    # version
    "__version__",
    # core
    "Format", "Scalar", "Point", "G", "ORDER", "FIELD_PRIME", "PrivateKey",
    # schemes
    "context", "ecdh", "ecdsa", "schnorr",
    "ECDSASignature", "RecoverableSignature", "ValidationMode",
    "SchnorrSignature", "KeyDerivation", "SharedSecret",
    # errors
    "K1Error", "IncorrectByteCountError", "InvalidPointError",
    "InvalidScalarError", "GroupOperationError", "InvalidParameterError",
    "MalformedSignatureError", "InternalFailureError",
]
