"""add_users_firms_and_memberships

Revision ID: c41d9e07a2b3
Revises:
Create Date: 2024-11-04 09:12:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "c41d9e07a2b3"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("user_type", sa.String(length=50), nullable=False),
        sa.Column("preferred_language", sa.String(length=8), nullable=False),
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
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "law_firms",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("license_number", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("subscription_tier", sa.String(length=20), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
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
    )
    op.create_index(op.f("ix_law_firms_name"), "law_firms", ["name"], unique=False)
    op.create_index(
        op.f("ix_law_firms_license_number"), "law_firms", ["license_number"], unique=True
    )

    # Role is stored as its string value; there is no database enum type
    op.create_table(
        "law_firm_members",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("law_firm_id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False),
        sa.Column("permissions", sa.JSON(), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["law_firm_id"], ["law_firms.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("law_firm_id", "user_id", name="uq_law_firm_member"),
    )
    op.create_index(
        op.f("ix_law_firm_members_law_firm_id"),
        "law_firm_members",
        ["law_firm_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_law_firm_members_user_id"),
        "law_firm_members",
        ["user_id"],
        unique=False,
    )
    # Primary firm lookup orders a user's memberships by join date
    op.create_index(
        "ix_law_firm_members_user_joined",
        "law_firm_members",
        ["user_id", "joined_at"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade database schema."""
    # Drop tables in reverse order of creation
    op.drop_index("ix_law_firm_members_user_joined", table_name="law_firm_members")
    op.drop_index(op.f("ix_law_firm_members_user_id"), table_name="law_firm_members")
    op.drop_index(op.f("ix_law_firm_members_law_firm_id"), table_name="law_firm_members")
    op.drop_table("law_firm_members")

    op.drop_index(op.f("ix_law_firms_license_number"), table_name="law_firms")
    op.drop_index(op.f("ix_law_firms_name"), table_name="law_firms")
    op.drop_table("law_firms")

    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
