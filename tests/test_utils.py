"""Tests for shopgrid.core.utils.text."""

import re
from datetime import UTC, datetime
from uuid import UUID

import pytest

from shopgrid.core.constants import BRAND_COLOR_PALETTE
from shopgrid.core.utils.text import (
    brand_color_for,
    default_store_title,
    generate_order_number,
    generate_slug,
    is_valid_slug,
    normalize_slug,
    partition_name_for,
    storefront_host_for,
)


class TestSlugs:
    """Tests for slug helpers."""

    def test_generate_slug(self) -> None:
        """Verify names become URL-safe slugs."""
        assert generate_slug("My Company Name") == "my-company-name"
        assert generate_slug("Hello! World@2024") == "hello-world2024"
        assert generate_slug("  --Acme__Shop--  ") == "acme-shop"

    def test_normalize_slug(self) -> None:
        assert normalize_slug("  ACME ") == "acme"

    @pytest.mark.parametrize("slug", ["acme", "acme-2", "2shop", "a", "a" * 63])
    def test_valid_slugs(self, slug: str) -> None:
        assert is_valid_slug(slug)

    @pytest.mark.parametrize("slug", ["", "Acme", "acme shop", "acme_shop", "acme.shop", "a" * 64])
    def test_invalid_slugs(self, slug: str) -> None:
        assert not is_valid_slug(slug)


class TestPartitionName:
    """Tests for partition_name_for."""

    def test_derived_from_id(self) -> None:
        tenant_id = UUID("0F1E2D3C-AAAA-BBBB-CCCC-000000000001")

        assert partition_name_for(tenant_id) == "t_0f1e2d3c_aaaa_bbbb_cccc_000000000001"

    def test_custom_prefix(self) -> None:
        assert partition_name_for("ab-cd", prefix="shop_") == "shop_ab_cd"

    def test_every_symbol_is_replaced(self) -> None:
        assert partition_name_for("a.b/c d") == "t_a_b_c_d"


class TestStorefrontHost:
    """Tests for storefront_host_for."""

    def test_joins_slug_and_root_domain(self) -> None:
        assert storefront_host_for("acme", "Example.COM.") == "acme.example.com"


class TestStoreDefaults:
    """Tests for generated store defaults."""

    def test_brand_color_is_stable(self) -> None:
        """Verify the same slug always gets the same palette colour."""
        assert brand_color_for("acme") == brand_color_for("acme")
        assert brand_color_for("acme") in BRAND_COLOR_PALETTE

    @pytest.mark.parametrize(
        ("slug", "name", "expected"),
        [
            ("acme", None, "Acme"),
            ("acme", "acme", "Acme"),
            ("acme", "  ", "Acme"),
            ("acme", " Acme Shop ", "Acme Shop"),
        ],
    )
    def test_default_title(self, slug: str, name: str | None, expected: str) -> None:
        assert default_store_title(slug, name) == expected


class TestOrderNumbers:
    """Tests for generate_order_number."""

    def test_format(self) -> None:
        number = generate_order_number(datetime(2025, 1, 14, tzinfo=UTC))

        assert re.fullmatch(r"ORD-20250114-[0-9A-F]{6}", number)

    def test_numbers_differ(self) -> None:
        numbers = {generate_order_number() for _ in range(50)}
        assert len(numbers) > 45
