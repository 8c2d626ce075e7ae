# backend/estore/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/estore.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///estore.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Half-upfront payments are recorded against this provider/currency
    DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "KES")
    DEFAULT_PAYMENT_METHOD = os.environ.get("DEFAULT_PAYMENT_METHOD", "mpesa")

    SAMPLE_DATA_PASSWORD = os.environ.get("SAMPLE_DATA_PASSWORD", "Password123!")

    # bcrypt cost factor for password_hash
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
