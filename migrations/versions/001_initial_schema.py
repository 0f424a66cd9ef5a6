"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Product snapshots table
    op.create_table(
        "product_snapshots",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("asin", sa.String(20), nullable=False),
        sa.Column("parent_asin", sa.String(20), default=""),
        sa.Column("title", sa.Text(), default=""),
        sa.Column("category", sa.String(200), default=""),
        sa.Column("raw_json", sa.Text(), default=""),
        sa.Column("fetched_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_product_snapshots_asin", "product_snapshots", ["asin"])
    op.create_index("ix_product_snapshots_parent_asin", "product_snapshots", ["parent_asin"])
    op.create_index("ix_product_snapshots_fetched_at", "product_snapshots", ["fetched_at"])
    op.create_index("ix_product_snapshots_asin_time", "product_snapshots", ["asin", "fetched_at"])

    # Family runs table
    op.create_table(
        "family_runs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("seed_asin", sa.String(20), nullable=False),
        sa.Column("parent_asin", sa.String(20), default=""),
        sa.Column("member_count", sa.Integer(), default=0),
        sa.Column("unavailable_count", sa.Integer(), default=0),
        sa.Column("attribute_names_json", sa.Text(), default="[]"),
        sa.Column("parent_title_normalized", sa.Text(), default=""),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_family_runs_seed_asin", "family_runs", ["seed_asin"])
    op.create_index("ix_family_runs_parent_asin", "family_runs", ["parent_asin"])
    op.create_index("ix_family_runs_created_at", "family_runs", ["created_at"])

    # Family members table
    op.create_table(
        "family_members",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("run_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), default=0),
        sa.Column("asin", sa.String(20), nullable=False),
        sa.Column("parent_asin", sa.String(20), default=""),
        sa.Column("title", sa.Text(), default=""),
        sa.Column("title_excluding_variant", sa.Text(), default=""),
        sa.Column("category", sa.String(200), default=""),
        sa.Column("relation", sa.String(20), default="CHILD"),
        sa.Column("status", sa.String(50), default="Active"),
        sa.Column("attribute_values_json", sa.Text(), default="{}"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["run_id"], ["family_runs.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_family_members_run_id", "family_members", ["run_id"])
    op.create_index("ix_family_members_asin", "family_members", ["asin"])
    op.create_index("ix_family_members_relation", "family_members", ["relation"])
    op.create_index("ix_family_members_run_asin", "family_members", ["run_id", "asin"], unique=True)

    # API logs table
    op.create_table(
        "api_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("endpoint", sa.String(50), default=""),
        sa.Column("request_key", sa.String(100), default=""),
        sa.Column("response_status", sa.Integer(), default=0),
        sa.Column("duration_ms", sa.Integer(), default=0),
        sa.Column("error_message", sa.Text(), default=""),
        sa.Column("success", sa.Boolean(), default=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_api_logs_endpoint", "api_logs", ["endpoint"])
    op.create_index("ix_api_logs_created_at", "api_logs", ["created_at"])
    op.create_index("ix_api_logs_endpoint_time", "api_logs", ["endpoint", "created_at"])


def downgrade() -> None:
    op.drop_table("api_logs")
    op.drop_table("family_members")
    op.drop_table("family_runs")
    op.drop_table("product_snapshots")
