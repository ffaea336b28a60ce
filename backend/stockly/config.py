# backend/stockly/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockly.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///stockly.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Backups land in <instance>/Backups unless overridden
    BACKUP_DIR = os.environ.get("STOCKLY_BACKUP_DIR")
    BACKUP_PLATFORM = os.environ.get("STOCKLY_PLATFORM", "server")
    BACKUP_REMINDER_DAYS = int(os.environ.get("STOCKLY_BACKUP_REMINDER_DAYS", "7"))

    APP_VERSION = os.environ.get("STOCKLY_APP_VERSION", "1.0")
    BUILD_NUMBER = os.environ.get("STOCKLY_BUILD_NUMBER", "1")

    # Upload cap for backup imports (bytes)
    MAX_CONTENT_LENGTH = 64 * 1024 * 1024


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    LOG_LEVEL = "DEBUG"
