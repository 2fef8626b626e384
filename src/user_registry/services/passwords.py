"""Password hashing with PBKDF2-HMAC-SHA256.

Stored format: pbkdf2_sha256${iterations}${salt}${hash} (salt and hash
urlsafe base64).
"""

import base64
import os

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

ALGORITHM = "pbkdf2_sha256"
ITERATIONS = 100_000
SALT_BYTES = 16
KEY_LENGTH = 32


def _kdf(salt: bytes, iterations: int) -> PBKDF2HMAC:
    return PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=iterations,
    )


def hash_password(password: str, iterations: int = ITERATIONS) -> str:
    """Hash a password with a random salt."""
    salt = os.urandom(SALT_BYTES)
    key = _kdf(salt, iterations).derive(password.encode())
    return "$".join(
        [
            ALGORITHM,
            str(iterations),
            base64.urlsafe_b64encode(salt).decode(),
            base64.urlsafe_b64encode(key).decode(),
        ]
    )


def verify_password(password: str, encoded: str) -> bool:
    """Check a password against a stored hash."""
    try:
        algorithm, iterations, salt, key = encoded.split("$")
    except ValueError:
        return False
    if algorithm != ALGORITHM:
        return False
    try:
        _kdf(base64.urlsafe_b64decode(salt), int(iterations)).verify(
            password.encode(), base64.urlsafe_b64decode(key)
        )
    except InvalidKey:
        return False
    return True
