"""Opportunity marketplace initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

Creates the reference tables, organizations, opportunities and the four
opportunity association tables, and seeds the opportunity statuses under
their fixed ids.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Must match marketplace.core.status.STATUS_IDS
STATUSES = [
    ("4c5a8d1e-1f0b-4a53-9d7e-0b6f3a2e1c01", "Active"),
    ("4c5a8d1e-1f0b-4a53-9d7e-0b6f3a2e1c02", "Inactive"),
    ("4c5a8d1e-1f0b-4a53-9d7e-0b6f3a2e1c03", "Expired"),
    ("4c5a8d1e-1f0b-4a53-9d7e-0b6f3a2e1c04", "Deleted"),
]
DELETED_STATUS_ID = STATUSES[3][0]

LOOKUP_TABLES = [
    "opportunity_category",
    "opportunity_status",
    "opportunity_type",
    "opportunity_difficulty",
    "time_interval",
    "organization",
]

LINK_TABLES = [
    ("opportunity_categories", "category_id", "opportunity_category"),
    ("opportunity_countries", "country_id", "country"),
    ("opportunity_languages", "language_id", "language"),
    ("opportunity_skills", "skill_id", "skill"),
]


def _lookup_columns():
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=125), nullable=False, unique=True),
        sa.Column("date_created", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    """Create marketplace tables and seed statuses."""
    for table in LOOKUP_TABLES:
        op.create_table(table, *_lookup_columns())

    op.create_table(
        "country",
        *_lookup_columns(),
        sa.Column("code_alpha2", sa.String(length=2), nullable=False, unique=True),
        sa.Column("code_alpha3", sa.String(length=3), nullable=False, unique=True),
        sa.Column("code_numeric", sa.String(length=3), nullable=False, unique=True),
    )
    op.create_table(
        "language",
        *_lookup_columns(),
        sa.Column("code_alpha2", sa.String(length=2), nullable=False, unique=True),
    )
    op.create_table(
        "skill",
        *_lookup_columns(),
        sa.Column("external_id", sa.String(length=100), nullable=True, unique=True),
        sa.Column("info_url", sa.String(length=2048), nullable=True),
    )

    op.create_table(
        "opportunity",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("type_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("opportunity_type.id"), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("organization.id"), nullable=False),
        sa.Column("instructions", sa.Text(), nullable=True),
        sa.Column("url", sa.String(length=2048), nullable=True),
        sa.Column("zlto_reward", sa.Numeric(8, 2), nullable=True),
        sa.Column("yoma_reward", sa.Numeric(8, 2), nullable=True),
        sa.Column("zlto_reward_pool", sa.Numeric(12, 2), nullable=True),
        sa.Column("yoma_reward_pool", sa.Numeric(12, 2), nullable=True),
        sa.Column("verification_supported", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("difficulty_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("opportunity_difficulty.id"), nullable=False),
        sa.Column("commitment_interval_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("time_interval.id"), nullable=False),
        sa.Column("commitment_interval_count", sa.SmallInteger(), nullable=False),
        sa.Column("participant_limit", sa.Integer(), nullable=True),
        sa.Column("participant_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("keywords", sa.String(length=500), nullable=True),
        sa.Column("date_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("date_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("opportunity_status.id"), nullable=False),
        sa.Column("created_by", sa.String(length=320), nullable=False),
        sa.Column("date_created", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("modified_by", sa.String(length=320), nullable=True),
        sa.Column("date_modified", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "participant_limit IS NULL OR participant_count <= participant_limit",
            name="ck_opportunity_participant_count_within_limit",
        ),
    )
    op.create_index("ix_opportunity_organization_id", "opportunity", ["organization_id"])
    op.create_index("ix_opportunity_date_end", "opportunity", ["date_end"])
    op.create_index("ix_opportunity_status_id", "opportunity", ["status_id"])
    op.create_index("ix_opportunity_date_created", "opportunity", ["date_created"])
    op.execute(
        f"""
        CREATE UNIQUE INDEX uq_opportunity_title_not_deleted
        ON opportunity (title)
        WHERE status_id <> '{DELETED_STATUS_ID}'
        """
    )

    for table, reference_column, reference_table in LINK_TABLES:
        op.create_table(
            table,
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column(
                "opportunity_id",
                postgresql.UUID(as_uuid=True),
                sa.ForeignKey("opportunity.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column(
                reference_column,
                postgresql.UUID(as_uuid=True),
                sa.ForeignKey(f"{reference_table}.id"),
                nullable=False,
            ),
            sa.Column("date_created", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("opportunity_id", reference_column, name=f"uq_{table}_pair"),
        )
        op.create_index(f"ix_{table}_opportunity_id", table, ["opportunity_id"])
        op.create_index(f"ix_{table}_{reference_column}", table, [reference_column])

    status_table = sa.table(
        "opportunity_status",
        sa.column("id", postgresql.UUID(as_uuid=False)),
        sa.column("name", sa.String()),
    )
    op.bulk_insert(status_table, [{"id": id, "name": name} for id, name in STATUSES])


def downgrade() -> None:
    """Drop marketplace tables."""
    for table, _, _ in reversed(LINK_TABLES):
        op.drop_table(table)
    op.execute("DROP INDEX IF EXISTS uq_opportunity_title_not_deleted")
    op.drop_table("opportunity")
    op.drop_table("skill")
    op.drop_table("language")
    op.drop_table("country")
    for table in reversed(LOOKUP_TABLES):
        op.drop_table(table)
