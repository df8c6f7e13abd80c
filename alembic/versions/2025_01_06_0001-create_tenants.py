"""create_tenants

Revision ID: 5d1c0f3a9b21
Revises:
Create Date: 2025-01-06 00:01:00.000000

This migration adds:
- public.tenants, the tenant directory
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "5d1c0f3a9b21"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("slug", sa.String(length=63), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column(
            "status",
            sa.String(length=20),
            server_default="active",
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("slug ~ '^[a-z0-9-]+$'", name="ck_tenants_slug_format"),
        schema="public",
    )
    op.create_index(
        "ix_tenants_slug",
        "tenants",
        ["slug"],
        unique=True,
        schema="public",
    )
    op.create_index(
        "ix_tenants_status_created_at",
        "tenants",
        ["status", "created_at"],
        schema="public",
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index("ix_tenants_status_created_at", table_name="tenants", schema="public")
    op.drop_index("ix_tenants_slug", table_name="tenants", schema="public")
    op.drop_table("tenants", schema="public")
