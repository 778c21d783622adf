"""Space name normalization, encoding and hashing."""

from __future__ import annotations

import hashlib
import string

from .errors import LocalValidationError

SPACE_SIGIL = "@"
MAX_LABEL_LEN = 62
_LABEL_CHARS = frozenset(string.ascii_lowercase + string.digits + "-")
_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def normalize_space(space: str) -> str:
    """ASCII lower-case *space* and prefix it with ``@`` unless already present."""

    lowercase = space.translate(_ASCII_LOWER)
    if lowercase.startswith(SPACE_SIGIL):
        return lowercase
    return f"{SPACE_SIGIL}{lowercase}"


def encode_space(space: str) -> bytes:
    """Return the length-prefixed DNS label form of a normalized space name."""

    if not space.startswith(SPACE_SIGIL):
        raise LocalValidationError(f"Space name must start with '{SPACE_SIGIL}': {space!r}")
    label = space[len(SPACE_SIGIL):]
    if not label:
        raise LocalValidationError("Space name is empty")
    if len(label) > MAX_LABEL_LEN:
        raise LocalValidationError(
            f"Space name {space!r} is longer than {MAX_LABEL_LEN} characters"
        )
    invalid = sorted({char for char in label if char not in _LABEL_CHARS})
    if invalid:
        raise LocalValidationError(
            f"Space name {space!r} contains invalid characters: {''.join(invalid)}"
        )
    if label.startswith("-") or label.endswith("-"):
        raise LocalValidationError(f"Space name {space!r} cannot start or end with '-'")
    encoded = label.encode("ascii")
    return bytes([len(encoded)]) + encoded


def hash_space(space: str) -> str:
    """Normalize, DNS encode and SHA-256 hash *space*, returned as hex."""

    return hashlib.sha256(encode_space(normalize_space(space))).hexdigest()
