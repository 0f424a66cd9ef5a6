"""SQLAlchemy database models for Variant Family Scanner."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class ProductSnapshotDB(Base):
    """Raw product response captured at fetch time."""

    __tablename__ = "product_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    asin: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    parent_asin: Mapped[str] = mapped_column(String(20), default="", index=True)
    title: Mapped[str] = mapped_column(Text, default="")
    category: Mapped[str] = mapped_column(String(200), default="")
    raw_json: Mapped[str] = mapped_column(Text, default="")
    fetched_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)

    __table_args__ = (Index("ix_product_snapshots_asin_time", "asin", "fetched_at"),)


class FamilyRunDB(Base):
    """One reconciliation pass for a seed ASIN."""

    __tablename__ = "family_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    seed_asin: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    parent_asin: Mapped[str] = mapped_column(String(20), default="", index=True)
    member_count: Mapped[int] = mapped_column(Integer, default=0)
    unavailable_count: Mapped[int] = mapped_column(Integer, default=0)
    attribute_names_json: Mapped[str] = mapped_column(Text, default="[]")
    parent_title_normalized: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)

    # Relationships
    members: Mapped[list[FamilyMemberDB]] = relationship(
        "FamilyMemberDB",
        back_populates="run",
        cascade="all, delete-orphan",
        order_by="FamilyMemberDB.position",
    )


class FamilyMemberDB(Base):
    """ASIN row of a family run, available or not."""

    __tablename__ = "family_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    run_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("family_runs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    asin: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    parent_asin: Mapped[str] = mapped_column(String(20), default="")
    title: Mapped[str] = mapped_column(Text, default="")
    title_excluding_variant: Mapped[str] = mapped_column(Text, default="")
    category: Mapped[str] = mapped_column(String(200), default="")
    relation: Mapped[str] = mapped_column(String(20), default="CHILD", index=True)  # Relationship value
    status: Mapped[str] = mapped_column(String(50), default="Active")
    attribute_values_json: Mapped[str] = mapped_column(Text, default="{}")

    # Relationships
    run: Mapped[FamilyRunDB] = relationship("FamilyRunDB", back_populates="members")

    __table_args__ = (Index("ix_family_members_run_asin", "run_id", "asin", unique=True),)


class ApiLogDB(Base):
    """API call log for diagnostics."""

    __tablename__ = "api_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    endpoint: Mapped[str] = mapped_column(String(50), default="", index=True)  # product, store
    request_key: Mapped[str] = mapped_column(String(100), default="")

    response_status: Mapped[int] = mapped_column(Integer, default=0)
    duration_ms: Mapped[int] = mapped_column(Integer, default=0)
    error_message: Mapped[str] = mapped_column(Text, default="")
    success: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)

    __table_args__ = (Index("ix_api_logs_endpoint_time", "endpoint", "created_at"),)
