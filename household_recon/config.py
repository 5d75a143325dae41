"""
config.py
---------
Central configuration module. Loads all environment variables
from the .env file and exposes them as typed constants.
"""

import os
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()


# ── PostgreSQL ────────────────────────────────────────────
DB_HOST: str = os.getenv("DB_HOST", "localhost")
DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
DB_NAME: str = os.getenv("DB_NAME", "household_recon")
DB_USER: str = os.getenv("DB_USER", "household_user")
DB_PASS: str = os.getenv("DB_PASS", "")

DATABASE_URL: str = (
    f"postgresql://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)

# ── Billing cycle ─────────────────────────────────────────
# Day of month after which credit-line charges roll into the next invoice.
DEFAULT_CUTOFF_DAY: int = int(os.getenv("DEFAULT_CUTOFF_DAY", "1"))

# ── Duplicate matching ────────────────────────────────────
# Statement postings lag ledger entries, so the window is wider after the
# expense date than before it.
DUPLICATE_DAYS_BEFORE: int = int(os.getenv("DUPLICATE_DAYS_BEFORE", "2"))
DUPLICATE_DAYS_AFTER: int = int(os.getenv("DUPLICATE_DAYS_AFTER", "4"))
DUPLICATE_AMOUNT_TOLERANCE: Decimal = Decimal(os.getenv("DUPLICATE_AMOUNT_TOLERANCE", "0"))
MIN_WORD_LENGTH: int = int(os.getenv("MIN_WORD_LENGTH", "2"))

# ── Currency ──────────────────────────────────────────────
DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "SEK")
CURRENCY_MINOR_UNIT: Decimal = Decimal(os.getenv("CURRENCY_MINOR_UNIT", "0.01"))

# ── Logging ───────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
