from .base import *  # noqa: F401, F403

DEBUG = False
SECRET_KEY = "test-secret-key"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

LEDGER_EDIT_WINDOW_HOURS = 24
BILL_DUE_DAY = 5
DEFAULT_CURRENCY = "INR"
ACTIVITY_LOG_RETENTION_DAYS = 7

Q_CLUSTER = {
    "name": "rentledger-test",
    "timeout": 120,
    "retry": 180,
    "orm": "default",
    "sync": True,
}

LOGGING["loggers"]["apps"]["level"] = "WARNING"  # noqa: F405

CACHES = {"default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}}
