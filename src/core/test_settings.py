"""Settings used by the test suite: in-memory SQLite and quiet logging."""

from .settings import *  # noqa: F401,F403
from .settings import LOGGING

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# PyJWT warns on HS256 keys under 32 bytes.
SECRET_KEY = "test-secret-key-for-hs256-signing-only"

# Minimum bcrypt cost; tests create many users.
BCRYPT_ROUNDS = 4

LOGGING = {
    **LOGGING,
    "root": {"handlers": ["console"], "level": "CRITICAL"},
    "loggers": {name: {**cfg, "level": "CRITICAL"} for name, cfg in LOGGING["loggers"].items()},
}
