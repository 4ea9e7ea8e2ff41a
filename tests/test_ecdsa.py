import hashlib

import pytest
from coincurve import PublicKey as CoincurvePublicKey

from k1 import (
    ORDER,
    ECDSASignature,
    IncorrectByteCountError,
    MalformedSignatureError,
    PrivateKey,
    RecoverableSignature,
    ValidationMode,
    ecdsa,
)

ACCEPT = ValidationMode.ACCEPT_MALLEABILITY
REJECT = ValidationMode.REJECT_MALLEABILITY


def digest_of(msg):
    return hashlib.sha256(msg).digest()


# ── sign / verify ───────────────────────────────────────────────────────

@pytest.mark.parametrize("k", [1, 2, 0xDEADBEEF, ORDER - 1])
def test_sign_then_verify(k):
    key = PrivateKey.from_int(k)
    digest = digest_of(b"Satoshi Nakamoto")
    sig = ecdsa.sign(digest, key)
    assert ecdsa.verify(sig, digest, key.public_key)
    assert ecdsa.verify(sig, digest, key.public_key, REJECT)
    assert ecdsa.verify(sig, digest, key.public_key, ACCEPT)


def test_signing_is_deterministic_and_low_s(keypair):
    key, _ = keypair
    digest = digest_of(b"hello")
    a = ecdsa.sign(digest, key)
    b = ecdsa.sign(digest, key)
    assert a == b
    assert a.is_low_s()


def test_rejects_wrong_digest_and_wrong_key(keypair):
    key, pub = keypair
    sig = ecdsa.sign(digest_of(b"a"), key)
    assert not ecdsa.verify(sig, digest_of(b"b"), pub)
    assert not ecdsa.verify(sig, digest_of(b"a"), PrivateKey.generate().public_key)


def test_signature_verifies_with_coincurve(keypair):
    key, pub = keypair
    digest = digest_of(b"cross-check")
    sig = ecdsa.sign(digest, key)
    assert CoincurvePublicKey(pub.to_bytes()).verify(sig.to_der(), digest, hasher=None)


def test_message_helpers(keypair):
    key, pub = keypair
    sig = ecdsa.sign_message(b"msg", key)
    assert sig == ecdsa.sign(digest_of(b"msg"), key)
    assert ecdsa.verify_message(sig, b"msg", pub)
    assert not ecdsa.verify_message(sig, b"other", pub)


def test_digest_must_be_32_bytes(keypair):
    key, pub = keypair
    with pytest.raises(IncorrectByteCountError):
        ecdsa.sign(b"\x01" * 31, key)
    sig = ecdsa.sign(b"\x01" * 32, key)
    with pytest.raises(IncorrectByteCountError):
        ecdsa.verify(sig, b"\x01" * 33, pub)


# ── malleability ────────────────────────────────────────────────────────

def test_high_s_only_verifies_when_malleability_accepted(keypair):
    key, pub = keypair
    digest = digest_of(b"malleable")
    low = ecdsa.sign(digest, key)
    high = ECDSASignature(r=low.r, s=ORDER - low.s)

    assert not high.is_low_s()
    assert high.normalize() == low
    assert not ecdsa.verify(high, digest, pub, REJECT)
    assert not ecdsa.verify(high, digest, pub)
    assert ecdsa.verify(high, digest, pub, ACCEPT)


@pytest.mark.parametrize("mode", [REJECT, ACCEPT])
def test_out_of_range_components_return_false(keypair, mode):
    key, pub = keypair
    digest = digest_of(b"range")
    sig = ecdsa.sign(digest, key)
    for bad in (
        ECDSASignature(0, sig.s),
        ECDSASignature(sig.r, 0),
        ECDSASignature(ORDER, sig.s),
        ECDSASignature(sig.r + ORDER, sig.s),
        ECDSASignature(sig.r, ORDER),
    ):
        assert ecdsa.verify(bad, digest, pub, mode) is False


# ── encodings ───────────────────────────────────────────────────────────

def test_der_and_compact_are_lossless(keypair):
    key, _ = keypair
    sig = ecdsa.sign(digest_of(b"encode"), key)
    der = sig.to_der()
    compact = sig.to_compact()
    assert len(compact) == 64
    assert ECDSASignature.from_der(der) == sig
    assert ECDSASignature.from_compact(compact) == sig
    assert ECDSASignature.from_compact(compact).to_der() == der
    assert ECDSASignature.from_der(der).to_compact() == compact


@pytest.mark.parametrize(
    "r, s, der_hex",
    [
        (1, 1, "3006020101020101"),
        (0x80, 1, "300702020080020101"),
        (0x7F, 0xFF, "30070201 7f020200ff"),
    ],
)
def test_minimal_der_encoding(r, s, der_hex):
    der = bytes.fromhex(der_hex.replace(" ", ""))
    assert ECDSASignature(r, s).to_der() == der
    assert ECDSASignature.from_der(der) == ECDSASignature(r, s)


def _valid_der():
    return ecdsa.sign(digest_of(b"der"), PrivateKey.from_int(42)).to_der()


@pytest.mark.parametrize(
    "mangle",
    [
        pytest.param(lambda d: b"", id="empty"),
        pytest.param(lambda d: d + b"\x00", id="trailing-byte"),
        pytest.param(lambda d: d[:-1], id="truncated"),
        pytest.param(lambda d: b"\x31" + d[1:], id="wrong-sequence-tag"),
        pytest.param(lambda d: d[:2] + b"\x03" + d[3:], id="wrong-integer-tag"),
        pytest.param(lambda d: b"\x30\x81" + d[1:], id="long-form-short-length"),
        pytest.param(lambda d: b"\x30\x80" + d[2:] + b"\x00\x00", id="indefinite-length"),
        pytest.param(lambda d: bytes.fromhex("3006020181020101"), id="negative-r"),
        pytest.param(lambda d: bytes.fromhex("300702020001020101"), id="leading-zero"),
        pytest.param(lambda d: bytes.fromhex("30050200020101"), id="empty-integer"),
        pytest.param(lambda d: bytes.fromhex("3009020101020101020101"), id="extra-element"),
        pytest.param(lambda d: bytes.fromhex("3003020101"), id="missing-s"),
    ],
)
def test_strict_der_rejects(mangle):
    with pytest.raises(MalformedSignatureError):
        ECDSASignature.from_der(mangle(_valid_der()))


def test_compact_length_checked():
    with pytest.raises(MalformedSignatureError):
        ECDSASignature.from_compact(b"\x01" * 63)
    with pytest.raises(MalformedSignatureError):
        ECDSASignature(1 << 256, 1).to_compact()


# ── recoverable signatures ──────────────────────────────────────────────

def test_recover_public_key(keypair):
    key, pub = keypair
    digest = digest_of(b"recover me")
    rsig = ecdsa.sign_recoverable(digest, key)
    assert rsig.recovery_id in (0, 1, 2, 3)
    assert ecdsa.recover(rsig, digest) == pub
    assert ecdsa.verify(rsig.to_signature(), digest, pub)


def test_recoverable_compact_round_trip(keypair):
    key, _ = keypair
    rsig = ecdsa.sign_recoverable(digest_of(b"x"), key)
    data = rsig.to_compact()
    assert len(data) == 65
    assert RecoverableSignature.from_compact(data) == rsig


def test_recoverable_compact_validation():
    with pytest.raises(MalformedSignatureError):
        RecoverableSignature.from_compact(b"\x01" * 64)
    with pytest.raises(MalformedSignatureError):
        RecoverableSignature.from_compact(b"\x01" * 64 + b"\x04")


def test_recover_with_other_digest_gives_other_key(keypair):
    key, pub = keypair
    rsig = ecdsa.sign_recoverable(digest_of(b"one"), key)
    assert ecdsa.recover(rsig, digest_of(b"two")) != pub


def test_recover_keeps_structural_errors():
    oversized = RecoverableSignature(r=1 << 256, s=1, recovery_id=0)
    with pytest.raises(MalformedSignatureError):
        ecdsa.recover(oversized, digest_of(b"m"))
