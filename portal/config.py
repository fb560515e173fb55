# -*- coding: utf-8 -*-
"""
Application settings read from environment variables (and the .env file).
"""
import os
from decimal import Decimal
from dotenv import load_dotenv

load_dotenv()


class Config:
    ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")
    DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./database/portal.db")
    FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:5173")
    BACKEND_URL = os.environ.get("BACKEND_URL", "http://localhost:8000")

    # Late fee applied to new dues when the professor does not set one
    DEFAULT_LATE_FEE_PERCENTAGE = Decimal(os.environ.get("DEFAULT_LATE_FEE_PERCENTAGE", "5.00"))
    DEFAULT_DUE_DAY = int(os.environ.get("DEFAULT_DUE_DAY", "10"))
    DUE_SOON_DAYS = int(os.environ.get("DUE_SOON_DAYS", "7"))

    MP_ACCESS_TOKEN = os.environ.get("MP_ACCESS_TOKEN")
    GATEWAY_CURRENCY = os.environ.get("GATEWAY_CURRENCY", "BRL")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_FILE = os.environ.get("LOG_FILE")  # None -> stderr

    @classmethod
    def database_url(cls):
        url = os.environ.get("DATABASE_URL", cls.DATABASE_URL)
        # Render/Heroku still hand out the old postgres:// prefix
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        return url
