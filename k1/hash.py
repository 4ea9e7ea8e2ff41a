"""
BIP-340 tagged hashes.

    H_tag(x) = SHA-256( SHA-256(tag) ‖ SHA-256(tag) ‖ x )

Each protocol role (aux randomness, nonce, challenge) gets its own tag,
so outputs are independent even when fed identical data.  Unlike a
generic transcript hash, BIP-340 concatenates its inputs without length
prefixes; every input there has a fixed length except the trailing
message.
"""

from __future__ import annotations

import hashlib

from .curve import Scalar

# ── domain tags ─────────────────────────────────────────────────────────
TAG_AUX       = b"BIP0340/aux"
TAG_NONCE     = b"BIP0340/nonce"
TAG_CHALLENGE = b"BIP0340/challenge"


def _tagged_hasher(tag: bytes) -> "hashlib._Hash":
    """Return a SHA-256 context pre-loaded with the BIP-340 tag prefix."""
    tag_hash = hashlib.sha256(tag).digest()
    h = hashlib.sha256()
    h.update(tag_hash)
    h.update(tag_hash)
    return h


def tagged_hash(tag: bytes, *chunks: bytes) -> bytes:
    """H_tag over the concatenation of *chunks*."""
    h = _tagged_hasher(tag)
    for c in chunks:
        h.update(c)
    return h.digest()


def hash_aux(aux_randomness: bytes) -> bytes:
    return tagged_hash(TAG_AUX, aux_randomness)


def hash_nonce(masked_key: bytes, pubkey_x: bytes, message: bytes) -> Scalar:
    """Nonce  k₀ = H_nonce(t ‖ P.x ‖ m)  mod n."""
    return Scalar.from_bytes_reduce(tagged_hash(TAG_NONCE, masked_key, pubkey_x, message))


def hash_challenge(nonce_x: bytes, pubkey_x: bytes, message: bytes) -> Scalar:
    """Challenge  e = H_challenge(R.x ‖ P.x ‖ m)  mod n."""
    return Scalar.from_bytes_reduce(tagged_hash(TAG_CHALLENGE, nonce_x, pubkey_x, message))
