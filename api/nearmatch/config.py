import os

JWT_SECRET = os.getenv("JWT_SECRET", "")
DEV_MODE = os.getenv("DEV_MODE", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Candidate search. The two flows keep their own defaults.
DISCOVERY_RADIUS_KM = float(os.getenv("DISCOVERY_RADIUS_KM", "50"))
NEARBY_RADIUS_KM = float(os.getenv("NEARBY_RADIUS_KM", "10"))
DISCOVERY_ORDER = os.getenv("DISCOVERY_ORDER", "recently_located")
NEARBY_ORDER = os.getenv("NEARBY_ORDER", "distance")
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "20"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))

# Action ledger
ACTION_LIST_DEFAULT_LIMIT = int(os.getenv("ACTION_LIST_DEFAULT_LIMIT", "50"))
ACTION_LIST_MAX_LIMIT = int(os.getenv("ACTION_LIST_MAX_LIMIT", "200"))
LEDGER_MAX_ATTEMPTS = int(os.getenv("LEDGER_MAX_ATTEMPTS", "3"))
MATCHED_AT_POLICY = os.getenv("MATCHED_AT_POLICY", "keep_first").strip().lower()

REQUEST_TIMEOUT_SECONDS = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10"))
