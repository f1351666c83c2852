# config/settings/test.py
from .base import *  # noqa: F401,F403

DEBUG = False
PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

# File-backed SQLite so threaded tests share one database.
# IMMEDIATE makes concurrent writers queue on the busy timeout instead of failing.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "hd_test.sqlite3",  # noqa: F405
        "OPTIONS": {
            "transaction_mode": "IMMEDIATE",
            "timeout": 20,
        },
        "TEST": {
            "NAME": BASE_DIR / "hd_test.sqlite3",  # noqa: F405
        },
    }
}
