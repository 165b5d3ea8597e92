# backend/stockyard/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockyard.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///stockyard.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Authentication happens upstream; we only read the verified email it forwards.
    ACTOR_HEADER = os.environ.get("ACTOR_HEADER", "X-Authenticated-Email")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    AUDIT_LOG_LIMIT = int(os.environ.get("AUDIT_LOG_LIMIT", 500))
    RECENT_ACTIVITY_LIMIT = int(os.environ.get("RECENT_ACTIVITY_LIMIT", 10))

    NOTIFICATIONS_ENABLED = os.environ.get("NOTIFICATIONS_ENABLED", "true")
    MAIL_SMTP_HOST = os.environ.get("MAIL_SMTP_HOST", "")
    MAIL_SMTP_PORT = int(os.environ.get("MAIL_SMTP_PORT", 587))
    MAIL_SMTP_USERNAME = os.environ.get("MAIL_SMTP_USERNAME", "")
    MAIL_SMTP_PASSWORD = os.environ.get("MAIL_SMTP_PASSWORD", "")
    MAIL_SMTP_USE_TLS = os.environ.get("MAIL_SMTP_USE_TLS", "true")
    MAIL_SMTP_USE_SSL = os.environ.get("MAIL_SMTP_USE_SSL", "false")
    # Leave blank to send as the SMTP username.
    MAIL_DEFAULT_SENDER = os.environ.get("MAIL_DEFAULT_SENDER", "")
