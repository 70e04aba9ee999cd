"""Password hashing for administrator accounts, using bcrypt directly."""

import bcrypt

# bcrypt ignores (or, since 5.0, rejects) anything past 72 bytes.
_BCRYPT_MAX_BYTES = 72


def _secret(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Return the bcrypt hash of ``password``."""
    return bcrypt.hashpw(_secret(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """True if ``plain_password`` matches ``hashed_password``."""
    return bcrypt.checkpw(_secret(plain_password), hashed_password.encode("utf-8"))
