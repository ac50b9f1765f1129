"""bcrypt hashing for ``User.password_hash``; the cost comes from ``BCRYPT_ROUNDS``."""

import bcrypt
from django.conf import settings


def hash_password(raw_password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(raw_password.encode(), salt).decode()


def verify_password(raw_password: str, password_hash: str) -> bool:
    """Constant-time check of ``raw_password`` against a stored hash; empty hashes never match."""
    if not raw_password or not password_hash:
        return False
    return bcrypt.checkpw(raw_password.encode(), password_hash.encode())


__all__ = ["hash_password", "verify_password"]
