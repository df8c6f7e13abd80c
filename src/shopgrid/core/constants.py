"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# Slugs double as DNS labels, so they share the DNS label limit
MAX_SLUG_LENGTH = 63
SLUG_PATTERN = r"^[a-z0-9-]+$"

# Partitions
DEFAULT_PARTITION_PREFIX = "t_"
SHARED_SCHEMA = "public"

# String field lengths
MAX_NAME_LENGTH = 255
MAX_STATUS_LENGTH = 20
MAX_SKU_LENGTH = 100
MAX_CATEGORY_LENGTH = 100
MAX_CURRENCY_LENGTH = 10
MAX_ORDER_NUMBER_LENGTH = 50
MAX_PHONE_LENGTH = 50
MAX_EVENT_TYPE_LENGTH = 100
MAX_AGGREGATE_TYPE_LENGTH = 50

# Pagination defaults
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
MAX_PAGE = 100_000

# Store defaults
DEFAULT_CURRENCY = "USD"
BRAND_COLOR_PALETTE = (
    "#0ea5e9",  # sky
    "#16a34a",  # green
    "#6366f1",  # indigo
    "#f97316",  # orange
    "#e11d48",  # rose
    "#8b5cf6",  # violet
    "#14b8a6",  # teal
    "#ca8a04",  # amber
)

# Infrastructure subdomains that never name a tenant
DEFAULT_RESERVED_SUBDOMAINS = (
    "www",
    "admin",
    "superadmin",
    "seed",
    "dev",
    "dev-admin",
    "deva",
    "health",
    "api",
)

# Outbox relay
DEFAULT_OUTBOX_BATCH_SIZE = 100

# Secret key requirements
MIN_SECRET_KEY_LENGTH = 32
DEFAULT_INSECURE_SECRET = "change-me-in-production"
