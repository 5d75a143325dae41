"""
db/init_db.py
-------------
Creates the database schema (tables) if they do not already exist.
Run this module directly to initialize a fresh database:
    python -m household_recon.db.init_db
"""

from household_recon.db.connection import transaction
from household_recon.utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
-- Expenses: every economic event recorded by a household member
CREATE TABLE IF NOT EXISTS expenses (
    id                  UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    household_id        TEXT NOT NULL,
    user_id             TEXT NOT NULL,
    amount              NUMERIC(12,2) NOT NULL,
    date                DATE NOT NULL,
    cost_assignment     VARCHAR(10) NOT NULL DEFAULT 'shared'
                        CHECK (cost_assignment IN ('personal', 'shared', 'partner')),
    is_ccm              BOOLEAN NOT NULL DEFAULT TRUE,
    category            VARCHAR(50),
    description         TEXT,
    group_purchase_total            NUMERIC(12,2),
    group_purchase_user_share       NUMERIC(12,2),
    group_purchase_partner_share    NUMERIC(12,2),
    group_purchase_swish_recipient  VARCHAR(10)
                        CHECK (group_purchase_swish_recipient IN ('user', 'partner', 'shared')),
    created_at          TIMESTAMPTZ DEFAULT NOW(),
    CHECK (
        group_purchase_total IS NULL
        OR group_purchase_user_share + group_purchase_partner_share <= group_purchase_total
    )
);

-- Invoices: one actual amount per household and invoice period (YYYY-MM)
CREATE TABLE IF NOT EXISTS ccm_invoices (
    id              SERIAL PRIMARY KEY,
    household_id    TEXT NOT NULL,
    period          CHAR(7) NOT NULL,
    actual_amount   NUMERIC(12,2),
    notes           TEXT,
    updated_at      TIMESTAMPTZ DEFAULT NOW(),
    UNIQUE(household_id, period)
);

-- Statement transactions: imported lines and their duplicate-review decision
CREATE TABLE IF NOT EXISTS statement_transactions (
    id                  UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    analysis_id         TEXT NOT NULL,
    household_id        TEXT NOT NULL,
    amount              NUMERIC(12,2) NOT NULL,
    date                DATE NOT NULL,
    description         TEXT,
    category            VARCHAR(50),
    cost_assignment     VARCHAR(10),
    resolution          VARCHAR(12) NOT NULL DEFAULT 'unresolved',
    matched_expense_id  UUID REFERENCES expenses(id) ON DELETE SET NULL,
    is_saved            BOOLEAN NOT NULL DEFAULT FALSE,
    created_at          TIMESTAMPTZ DEFAULT NOW()
);

-- Indexes for faster queries
CREATE INDEX IF NOT EXISTS idx_expenses_household_date ON expenses(household_id, date);
CREATE INDEX IF NOT EXISTS idx_statement_analysis ON statement_transactions(analysis_id, date);
"""


def create_tables() -> None:
    """
    Execute the schema SQL to create all tables.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    with transaction("initialize schema") as conn:
        with conn.cursor() as cur:
            cur.execute(SCHEMA_SQL)
    logger.info("Database schema initialized successfully.")


if __name__ == "__main__":
    from household_recon.db.connection import init_pool
    init_pool()
    create_tables()
    print("Database schema created successfully.")
