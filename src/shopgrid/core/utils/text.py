"""Text processing utilities for slugs, partition names and store defaults."""

import hashlib
import re
import secrets
from datetime import UTC, datetime
from uuid import UUID

from shopgrid.core.constants import (
    BRAND_COLOR_PALETTE,
    DEFAULT_PARTITION_PREFIX,
    MAX_SLUG_LENGTH,
    SLUG_PATTERN,
)


_SLUG_RE = re.compile(SLUG_PATTERN)
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def generate_slug(name: str, max_length: int = MAX_SLUG_LENGTH) -> str:
    """Generate a URL-safe slug from a name.

    Converts the input string to a URL-friendly slug by:
    - Converting to lowercase
    - Removing special characters
    - Replacing spaces, underscores and hyphens with single hyphens
    - Truncating to max_length

    Examples:
        >>> generate_slug("My Company Name")
        'my-company-name'
        >>> generate_slug("Hello! World@2024")
        'hello-world2024'
    """
    slug = name.lower().strip()
    slug = re.sub(r"[^a-z0-9\s_-]", "", slug)
    slug = re.sub(r"[-_\s]+", "-", slug)
    return slug.strip("-")[:max_length]


def normalize_slug(slug: str) -> str:
    """Normalize a slug for directory lookups (trimmed, lowercase)."""
    return slug.strip().lower()


def is_valid_slug(slug: str) -> bool:
    """Check a slug against the strict format: lowercase letters, digits, hyphen.

    Examples:
        >>> is_valid_slug("acme-2")
        True
        >>> is_valid_slug("ACME Shop!")
        False
    """
    return 0 < len(slug) <= MAX_SLUG_LENGTH and _SLUG_RE.fullmatch(slug) is not None


def partition_name_for(tenant_id: UUID | str, prefix: str = DEFAULT_PARTITION_PREFIX) -> str:
    """Derive the partition (schema) name from a tenant id.

    Every non-alphanumeric character of the id becomes an underscore.

    Examples:
        >>> partition_name_for("0f1e2d3c-aaaa-bbbb-cccc-000000000001")
        't_0f1e2d3c_aaaa_bbbb_cccc_000000000001'
    """
    return prefix + _NON_ALNUM_RE.sub("_", str(tenant_id).lower())


def brand_color_for(slug: str) -> str:
    """Pick a stable accent colour for a slug from the palette."""
    digest = hashlib.sha256(slug.encode("utf-8")).digest()
    return BRAND_COLOR_PALETTE[digest[0] % len(BRAND_COLOR_PALETTE)]


def default_store_title(slug: str, name: str | None = None) -> str:
    """Generate the default storefront title.

    Uses the display name when it differs from the slug, otherwise a
    capitalized slug.

    Examples:
        >>> default_store_title("acme")
        'Acme'
        >>> default_store_title("acme", "Acme Shop")
        'Acme Shop'
    """
    if name and name.strip() and name.strip() != slug:
        return name.strip()
    return slug[:1].upper() + slug[1:]


def generate_order_number(now: datetime | None = None) -> str:
    """Generate a human-readable order number.

    Date prefix plus six random hex digits, e.g. ``ORD-20250114-3FA9C1``.
    """
    now = now or datetime.now(UTC)
    return f"ORD-{now:%Y%m%d}-{secrets.token_hex(3).upper()}"


def storefront_host_for(slug: str, root_domain: str) -> str:
    """Host a tenant's storefront is served on.

    Examples:
        >>> storefront_host_for("acme", "example.com")
        'acme.example.com'
    """
    return f"{slug}.{root_domain.strip('.').lower()}"
