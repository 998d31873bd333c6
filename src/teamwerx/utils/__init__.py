from .hashing import fingerprint, sha256_hex
from .text import kebab_case

__all__ = [
    "fingerprint",
    "sha256_hex",
    "kebab_case",
]
