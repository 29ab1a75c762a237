import os
from datetime import timedelta


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "super-secret-key")

    SQLALCHEMY_DATABASE_URI = os.getenv("SQLALCHEMY_DATABASE_URI", "sqlite:///library.db")

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # create tables on startup when migrations are not in use
    AUTO_CREATE_TABLES = os.getenv("AUTO_CREATE_TABLES", "1") == "1"

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "jwt-super-secret-change-me-in-production")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.getenv("JWT_ACCESS_TOKEN_HOURS", "24")))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Lending policy
    MAX_ACTIVE_LOANS = int(os.getenv("MAX_ACTIVE_LOANS", "5"))
    LOAN_PERIOD_DAYS = int(os.getenv("LOAN_PERIOD_DAYS", "14"))

    # Unit of work: attempts per transaction and linear backoff between them (seconds)
    TXN_MAX_ATTEMPTS = int(os.getenv("TXN_MAX_ATTEMPTS", "3"))
    TXN_RETRY_BACKOFF = float(os.getenv("TXN_RETRY_BACKOFF", "0.05"))

    PAGE_SIZE_DEFAULT = 10
    PAGE_SIZE_MAX = 100
