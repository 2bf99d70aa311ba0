"""
Random identifiers for contracts, escrow payments and share links.
"""

import secrets
import string

_TOKEN_ALPHABET = string.ascii_letters + string.digits
_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_token(length: int = 16) -> str:
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(length))


def generate_code(length: int = 8) -> str:
    """Short upper-case code handed to a signer as proof of signature."""
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))
