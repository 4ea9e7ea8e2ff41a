"""
Process-wide libsecp256k1 context.

libsecp256k1 keeps precomputed tables and blinding state in a context
object.  Building one is comparatively expensive, so k1 creates exactly
one per process and hands it to every ``coincurve`` object it
constructs.  After creation the context is only read, which
libsecp256k1 documents as safe from any number of threads.

Usage
-----
::

    from k1 import context

    context.initialize(seed=os.urandom(32))   # optional, once, early
    ctx = context.get_context()               # lazily creates otherwise
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from coincurve.context import Context

logger = logging.getLogger(__name__)

_CONTEXT_NAME = "k1"
_SEED_BYTES = 32

_lock = threading.Lock()
_context: Optional[Context] = None


def initialize(seed: Optional[bytes] = None) -> Context:
    """
    Create the shared context.

    Parameters
    ----------
    seed : bytes, optional
        32-byte randomization seed for side-channel blinding.  When
        omitted coincurve draws one from the OS.

    Raises ``RuntimeError`` if a seed is supplied after the context
    already exists; re-seeding would mean re-initialising.
    """
    global _context
    if seed is not None and len(seed) != _SEED_BYTES:
        raise ValueError(f"context seed must be {_SEED_BYTES} bytes, got {len(seed)}")

    with _lock:
        if _context is not None:
            if seed is not None:
                raise RuntimeError("secp256k1 context is already initialised")
            return _context
        _context = Context(seed=seed, name=_CONTEXT_NAME)
        logger.debug("created secp256k1 context (explicit seed: %s)", seed is not None)
        return _context


def get_context() -> Context:
    """Return the shared context, creating it on first use."""
    ctx = _context
    if ctx is not None:
        return ctx
    return initialize()


def is_initialized() -> bool:
    return _context is not None
