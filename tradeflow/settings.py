from os import environ
from pathlib import Path

from box import Box

BASE_DIR = Path(__file__).resolve().parent.parent

ENV = Box(
	{
		"DEBUG": environ.get("TRADEFLOW_DEBUG", "false").lower() == "true",
		"SECRET_KEY": environ.get("TRADEFLOW_SECRET_KEY", "tradeflow-insecure-development-key"),
		"DATABASE_PATH": environ.get("TRADEFLOW_DATABASE_PATH", str(BASE_DIR / "db.sqlite3")),
		"TEST_DATABASE_PATH": environ.get("TRADEFLOW_TEST_DATABASE_PATH", str(BASE_DIR / "test_db.sqlite3")),
		# Seconds a transaction waits for the database write lock
		"DATABASE_TIMEOUT": float(environ.get("TRADEFLOW_DATABASE_TIMEOUT", "20")),
		"RUN_TRADE_SWEEPER": environ.get("TRADEFLOW_RUN_TRADE_SWEEPER", "true").lower() == "true",
		"LOG_LEVEL": environ.get("TRADEFLOW_LOG_LEVEL", "INFO"),
	},
	frozen_box=True,
)

TRADE_SETTINGS = Box(
	{
		# Window (in days) the partner has to respond to a proposal
		"DEFAULT_EXPIRATION_DAYS": 3,
		"MIN_EXPIRATION_DAYS": 1,
		"MAX_EXPIRATION_DAYS": 7,
		# Partners are reminded once when a proposal expires within this window
		"REMINDER_WINDOW_HOURS": 24,
		"SWEEP_BATCH_SIZE": 100,
		"SWEEP_INTERVAL_SECONDS": 3600,
		"OUTBOX_MAX_ATTEMPTS": 5,
		"DEFAULT_ROSTER_SLOT": "BENCH",
	},
	frozen_box=True,
)

SECRET_KEY = ENV.SECRET_KEY
DEBUG = ENV.DEBUG
ALLOWED_HOSTS = ["*"]

INSTALLED_APPS = [
	"django.contrib.auth",
	"django.contrib.contenttypes",
	"django.contrib.sessions",
	"rest_framework",
	"core",
	"trade",
]

MIDDLEWARE = [
	"django.middleware.security.SecurityMiddleware",
	"django.contrib.sessions.middleware.SessionMiddleware",
	"django.middleware.common.CommonMiddleware",
	"django.contrib.auth.middleware.AuthenticationMiddleware",
]

ROOT_URLCONF = "tradeflow.urls"

DATABASES = {
	"default": {
		"ENGINE": "django.db.backends.sqlite3",
		"NAME": ENV.DATABASE_PATH,
		# SQLite ignores select_for_update. Immediate transactions take the write lock at BEGIN so
		# concurrent trade operations run one after the other and each re-reads the committed state.
		"OPTIONS": {
			"transaction_mode": "IMMEDIATE",
			"timeout": ENV.DATABASE_TIMEOUT,
		},
		# File backed so tests can share the database between threads
		"TEST": {"NAME": ENV.TEST_DATABASE_PATH},
	},
}

AUTH_USER_MODEL = "core.User"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_TZ = True

REST_FRAMEWORK = {
	"DEFAULT_AUTHENTICATION_CLASSES": ("rest_framework.authentication.SessionAuthentication",),
	"DEFAULT_PERMISSION_CLASSES": ("rest_framework.permissions.IsAuthenticated",),
	"EXCEPTION_HANDLER": "tradeflow.common.exceptions.trade_exception_handler",
}

LOGGING = {
	"version": 1,
	"disable_existing_loggers": False,
	"formatters": {
		"verbose": {"format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"},
	},
	"handlers": {
		"console": {"class": "logging.StreamHandler", "formatter": "verbose"},
	},
	"loggers": {
		"trade": {"handlers": ["console"], "level": ENV.LOG_LEVEL, "propagate": False},
		"core": {"handlers": ["console"], "level": ENV.LOG_LEVEL, "propagate": False},
	},
}
