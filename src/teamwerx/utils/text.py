"""Identifier helpers."""

from __future__ import annotations

import re

# "userLogin" -> "user-Login"
_FIRST_CAP = re.compile(r"(.)([A-Z][a-z]+)")
# "userID" -> "user-ID", "HTMLParser" keeps "HTML" together
_ALL_CAPS = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]+")


def kebab_case(value: str) -> str:
    """Convert free text to a kebab-case identifier.

    CamelCase boundaries are split first, then every run of characters
    outside ``[a-zA-Z0-9]`` collapses to a single hyphen.  Leading and
    trailing hyphens are stripped and the result is lower-cased.

    Examples
    --------
    >>> kebab_case("Password Reset")
    'password-reset'
    >>> kebab_case("userLoginID")
    'user-login-id'
    >>> kebab_case("  some_value+wow ")
    'some-value-wow'
    >>> kebab_case("!!!")
    ''
    """
    text = value.strip()
    if not text:
        return ""
    text = _FIRST_CAP.sub(r"\1-\2", text)
    text = _ALL_CAPS.sub(r"\1-\2", text)
    text = _NON_ALNUM.sub("-", text)
    return text.strip("-").lower()
