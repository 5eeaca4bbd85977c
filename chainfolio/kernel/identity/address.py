"""
Identity handles.

An identity is an EVM account address. Handles are compared in their
lower-case form everywhere so that checksummed and plain spellings of the
same account map to one identity.
"""

import re

from chainfolio.kernel.errors import InvalidIdentity

ZERO_ADDRESS = "0x" + "0" * 40

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_identity(value: object) -> bool:
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value.strip()))


def normalize_identity(value: object) -> str:
    """Return the canonical (lower-case) handle or raise InvalidIdentity."""
    if not is_identity(value):
        raise InvalidIdentity(f"Not an account address: {value!r}")
    return value.strip().lower()  # type: ignore[union-attr]
