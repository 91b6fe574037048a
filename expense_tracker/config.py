"""
Settings read from the environment (and a local .env file).
"""

import os
from dotenv import load_dotenv

load_dotenv()


# ── Storage ───────────────────────────────────────────────
SEED_PATH: str = os.getenv("SEED_PATH", "data/seed.json")

# ── Logging ───────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# ── Dashboard ─────────────────────────────────────────────
DEFAULT_GRANULARITY: str = os.getenv("DEFAULT_GRANULARITY", "month")
PAGE_SIZE: int = min(int(os.getenv("PAGE_SIZE", "20")), 100)

# ── Export ────────────────────────────────────────────────
EXPORT_PREFIX: str = os.getenv("EXPORT_PREFIX", "transactions")
