# backend/cashdesk/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/cashdesk.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///cashdesk.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Display currency for amounts (2 fractional digits)
    CURRENCY_CODE = os.environ.get("CURRENCY_CODE", "MXN")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Header set by the upstream auth provider with the acting user's id
    USER_ID_HEADER = os.environ.get("USER_ID_HEADER", "X-User-Id")
