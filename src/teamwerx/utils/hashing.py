"""SHA-256 helpers for content fingerprints.

A fingerprint tags a snapshot of a spec (or of a single requirement block)
so that a delta can say "I was written against version X".  Surrounding
whitespace is trimmed before hashing, so a trailing newline or stray spaces
never register as a content change.
"""

from __future__ import annotations

import hashlib

DEFAULT_FINGERPRINT_BYTES = 8


def sha256_hex(data: str) -> str:
    """Return the hex-encoded SHA-256 digest of *data* encoded as UTF-8.

    Examples
    --------
    >>> sha256_hex("hello")[:16]
    '2cf24dba5fb0a30e'
    """
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def fingerprint(content: str, size: int = DEFAULT_FINGERPRINT_BYTES) -> str:
    """Return the compact fingerprint of *content*.

    Parameters
    ----------
    content:
        Arbitrary text.  Leading and trailing whitespace is ignored.
    size:
        Number of digest bytes kept.  The result has ``2 * size`` hex
        characters.

    Returns
    -------
    str
        Lowercase hex string, or ``""`` when *content* is empty after
        trimming (an empty document has no recorded state).

    Examples
    --------
    >>> fingerprint("hello") == fingerprint("  hello\\n\\n")
    True
    >>> fingerprint("   ")
    ''
    """
    trimmed = content.strip()
    if not trimmed:
        return ""
    return sha256_hex(trimmed)[: size * 2]
