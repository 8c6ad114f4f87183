import os
from pathlib import Path
from dotenv import load_dotenv

# --- Base Directory ---
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# --- Load Environment Variables ---
load_dotenv(BASE_DIR / ".env")

# --- Analysis Defaults ---
# Multiplier applied to average monthly sales to get the ideal stock level.
IDEAL_STOCK_FACTOR = float(os.getenv("IDEAL_STOCK_FACTOR", "3"))
# Days without a sale after which positive stock counts as dead.
DEAD_STOCK_DAYS = int(os.getenv("DEAD_STOCK_DAYS", "90"))
SALES_WINDOW_DAYS = int(os.getenv("SALES_WINDOW_DAYS", "90"))

# --- Transfers ---
TRANSFER_MIN_QUANTITY = float(os.getenv("TRANSFER_MIN_QUANTITY", "1"))

# --- Insights ---
INSIGHTS_MODEL = os.getenv("INSIGHTS_MODEL", "gpt-4o-mini")

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
