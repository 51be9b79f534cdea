"""
Centralised configuration constants and environment helpers.
"""

import os
import sys

from dotenv import load_dotenv

load_dotenv()

# ── Storage ──────────────────────────────────────────────────────────
DB_URI = os.getenv("DB_URI", "sqlite:///sleep_registry.db")

# ── Sessions ─────────────────────────────────────────────────────────
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")
SESSION_TTL_DAYS = 7
TOKEN_LENGTH = 32

# Header set by an upstream identity provider; unset disables native identity.
NATIVE_IDENTITY_HEADER = os.getenv("NATIVE_IDENTITY_HEADER") or None

# ── Reports ──────────────────────────────────────────────────────────
TOP_DIAGNOSES_LIMIT = 5

# A patient form missing any of these is counted as incomplete.
# "age_or_dob" is satisfied by either field.
INCOMPLETE_FIELDS = (
    "ipd_opd_no",
    "age_or_dob",
    "gender",
    "contactNo",
    "provisionalDiagnosis",
)

AGE_BUCKETS = [
    ("0-19", 0, 19),
    ("20-39", 20, 39),
    ("40-59", 40, 59),
    ("60-79", 60, 79),
    ("80+", 80, None),
]

TRADITIONAL_RISK_FACTORS = (
    "hypertension",
    "diabetesMellitus",
    "hyperlipidemia",
    "obesity",
    "smoking",
    "familyHistory",
)

MAX_EXPORT_PATIENTS = 1000

# Accepted range for epoch-ms form dates (1900-01-01 .. 2100-01-01 UTC).
MIN_TIMESTAMP_MS = -2_208_988_800_000
MAX_TIMESTAMP_MS = 4_102_444_800_000


def get_env(name: str) -> str:
    """Return an environment variable or exit with an error message."""
    value = os.getenv(name)
    if not value:
        print(f"ERROR: env var {name} is not set", file=sys.stderr)
        sys.exit(1)
    return value
