import os
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()

# ---------------------
# Database
# ---------------------
DB_HOST = os.getenv("DB_HOST", "127.0.0.1")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "commissions")
DB_USER = os.getenv("DB_USER", "postgres")
DB_PASS = os.getenv("DB_PASS", "")

# Fix the None / empty / "None" port issue
if not DB_PORT or str(DB_PORT).lower() == "none":
    DB_PORT = "5432"

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+psycopg2://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)

# ---------------------
# Money / commission rules
# ---------------------
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "AUD").upper()

# removed from the commissionable base when a plan is GST exclusive
GST_RATE = Decimal(os.getenv("GST_RATE", "0.10"))

# a recorded payment may exceed the installment amount by this much
OVERPAYMENT_TOLERANCE_PERCENT = Decimal(os.getenv("OVERPAYMENT_TOLERANCE_PERCENT", "10"))

# cached vs live commission difference that is still considered rounding
RECONCILIATION_TOLERANCE = Decimal(os.getenv("RECONCILIATION_TOLERANCE", "0.01"))

LEDGER_MAX_RETRIES = int(os.getenv("LEDGER_MAX_RETRIES", "3"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
