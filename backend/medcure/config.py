# backend/medcure/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/medcure.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///medcure.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Global stock thresholds (product.reorder_level overrides LOW per product)
    STOCK_LOW_THRESHOLD = int(os.environ.get("STOCK_LOW_THRESHOLD", "10"))
    STOCK_CRITICAL_THRESHOLD = int(os.environ.get("STOCK_CRITICAL_THRESHOLD", "5"))

    # Default window for "expiring soon" alerts
    EXPIRY_WARNING_DAYS = int(os.environ.get("EXPIRY_WARNING_DAYS", "30"))

    # Reorder advisor assumptions
    REORDER_LEAD_TIME_DAYS = int(os.environ.get("REORDER_LEAD_TIME_DAYS", "7"))
    REORDER_DEFAULT_MONTHLY_SALES = float(os.environ.get("REORDER_DEFAULT_MONTHLY_SALES", "30"))
    REORDER_HISTORY_MONTHS = int(os.environ.get("REORDER_HISTORY_MONTHS", "3"))

    COMMIT_RETRY_ATTEMPTS = int(os.environ.get("COMMIT_RETRY_ATTEMPTS", "3"))
