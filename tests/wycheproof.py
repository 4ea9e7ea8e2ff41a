"""
Wycheproof-style conformance harness for ECDSA verification.

Feeds third-party test vectors through ``k1.ecdsa`` as a black box.
A corpus is JSON with ``testGroups``, each holding a public key and a
list of tests ``{tcId, msg, sig, result, flags}``; ``sig`` is DER and
``msg`` is hashed with SHA-256.

Vectors with an empty message or carrying an excluded flag are not run.
Their ids are returned in ``GroupResult.omitted_ids`` and logged, so a
run's exclusions can always be audited.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List

from k1 import ECDSASignature, K1Error, Point, ValidationMode, ecdsa

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_FLAGS = frozenset({"MissingZero", "BER"})


@dataclass
class GroupResult:
    tests_run: int = 0
    omitted_ids: List[int] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)


def load_suite(path: Path) -> dict:
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)


def _group_key(group: dict) -> Point:
    key = group.get("key") or group["publicKey"]
    if key["curve"] != "secp256k1":
        raise ValueError(f"test group key is on {key['curve']}, expected secp256k1")
    return Point.from_bytes(bytes.fromhex(key["uncompressed"]))


def run_ecdsa_group(
    group: dict,
    excluded_flags: Iterable[str] = DEFAULT_EXCLUDED_FLAGS,
    mode: ValidationMode = ValidationMode.ACCEPT_MALLEABILITY,
) -> GroupResult:
    excluded = frozenset(excluded_flags)
    public_key = _group_key(group)
    result = GroupResult()

    for vector in group["tests"]:
        tc_id = vector["tcId"]
        if vector["msg"] == "" or excluded & set(vector.get("flags", [])):
            result.omitted_ids.append(tc_id)
            continue
        result.tests_run += 1

        try:
            signature = ECDSASignature.from_der(bytes.fromhex(vector["sig"]))
            is_valid = ecdsa.verify_message(
                signature, bytes.fromhex(vector["msg"]), public_key, mode,
            )
        except K1Error as exc:
            if vector["result"] == "valid":
                result.failures.append(f"tcId {tc_id}: valid vector raised {exc}")
            continue

        expected = vector["result"] in ("valid", "acceptable")
        if vector["result"] not in ("valid", "acceptable", "invalid"):
            result.failures.append(f"tcId {tc_id}: unknown result {vector['result']!r}")
        elif is_valid != expected:
            result.failures.append(
                f"tcId {tc_id}: expected {vector['result']}, verify returned {is_valid}"
            )

    if result.omitted_ids:
        logger.info("omitted Wycheproof vectors: %s", result.omitted_ids)
    return result


def run_ecdsa_suite(
    suite: dict,
    excluded_flags: Iterable[str] = DEFAULT_EXCLUDED_FLAGS,
    mode: ValidationMode = ValidationMode.ACCEPT_MALLEABILITY,
) -> List[GroupResult]:
    return [
        run_ecdsa_group(group, excluded_flags, mode)
        for group in suite["testGroups"]
    ]
