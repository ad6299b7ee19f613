"""
CSVIMPORT - Centralised configuration.

All tunables live here.  Every other module imports from config
instead of reading os.environ directly.
"""

from __future__ import annotations
import os
from pathlib import Path


# ── Paths ──────────────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent

# ── Database ───────────────────────────────────────────────────────────
DB_URL = os.environ.get("CSVIMPORT_DB", f"sqlite:///{BASE_DIR / 'csvimport.sqlite'}")

# ── Import engine ──────────────────────────────────────────────────────
IMPORT_BATCH_SIZE       = int(os.environ.get("CSVIMPORT_BATCH_SIZE", "1000"))
IMPORT_DEFAULT_ENCODING = os.environ.get("CSVIMPORT_ENCODING", "utf-8")
MAX_FAILED_MESSAGES     = int(os.environ.get("CSVIMPORT_MAX_FAILED_MESSAGES", "10"))

# ── Server ─────────────────────────────────────────────────────────────
HOST   = os.environ.get("CSVIMPORT_HOST", "0.0.0.0")
PORT   = int(os.environ.get("CSVIMPORT_PORT", "5000"))
DEBUG  = os.environ.get("CSVIMPORT_DEBUG", "0") == "1"
SECRET = os.environ.get("CSVIMPORT_SECRET", "csvimport-dev-key-change-in-prod")

# ── Logging ────────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("CSVIMPORT_LOG_LEVEL", "INFO").upper()
