"""
Application configuration.
This module defines the configuration settings for the FinancesPro API, including database connection, secrets,
token lifetime and VAT settings. It uses environment variables for sensitive information and defaults for development.
In production, make sure to set the appropriate environment variables and secure both secret keys.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


def _env_flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    """Base configuration shared by all environments."""

    # IMPORTANT: change these in production
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-change-me-please")
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", SECRET_KEY)
    JWT_EXPIRES_HOURS = int(os.environ.get("JWT_EXPIRES_HOURS", "24"))

    # Database: SQLite for development, PostgreSQL in production (postgresql+psycopg2://...)
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'financespro.db'}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Swiss standard VAT rate, disclosed on invoices (not added to the total)
    TVA_RATE = os.environ.get("TVA_RATE", "0.077")

    INVOICE_NUMBER_PREFIX = os.environ.get("INVOICE_NUMBER_PREFIX", "FAC")
    INVOICE_NUMBER_WIDTH = int(os.environ.get("INVOICE_NUMBER_WIDTH", "4"))

    # Include exception details in 500 responses (development only)
    EXPOSE_ERRORS = _env_flag("EXPOSE_ERRORS")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    APP_NAME = "FinancesPro Suisse"
    APP_VERSION = "1.0.0"
