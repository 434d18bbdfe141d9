"""Shared configuration for payment integrity review.

This module centralizes environment variable access and default values
to prevent drift between modules.
"""

import os

# Flat-file collections
DATA_DIR = os.getenv("PAYMENT_REVIEW_DATA_DIR", "./data")

CLAIMS_FILE = "claims.json"
DRG_CLAIMS_FILE = "drg-claims.json"
MED_NECESSITY_CLAIMS_FILE = "med-necessity-claims.json"
READMISSION_CLAIMS_FILE = "readmission-claims.json"

# Per-item delay applied during batch review (milliseconds)
BATCH_DELAY_MS = int(os.getenv("PAYMENT_REVIEW_BATCH_DELAY_MS", "0"))

# Surface rule parse warnings instead of skipping silently
STRICT_RULES = os.getenv("PAYMENT_REVIEW_STRICT_RULES", "").lower() in ("1", "true", "yes")

# MS-DRG base reimbursement rate override
DRG_BASE_RATE = os.getenv("PAYMENT_REVIEW_DRG_BASE_RATE")
