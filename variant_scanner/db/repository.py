"""Repository pattern for database operations."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import case, desc, func, select

from variant_scanner.core.models import (
    FamilyMember,
    FamilyResult,
    ProductRecord,
    Relationship,
    UnavailableMember,
)

from .models import ApiLogDB, FamilyMemberDB, FamilyRunDB, ProductSnapshotDB
from .session import session_scope


@dataclass
class FamilyRunSummary:
    """Stored family run with its rows."""

    id: int
    seed_asin: str
    parent_asin: str
    created_at: datetime
    attribute_names: list[str] = field(default_factory=list)
    members: list[FamilyMember] = field(default_factory=list)
    unavailable: list[UnavailableMember] = field(default_factory=list)


class Repository:
    """Data access repository for all database operations."""

    # ==================== Product Snapshots ====================

    def save_product_snapshot(self, record: ProductRecord, raw_json: str = "") -> int:
        """Store a fetched product with its raw response."""
        with session_scope() as session:
            db_snapshot = ProductSnapshotDB(
                asin=record.asin,
                parent_asin=record.parent_asin,
                title=record.title,
                category=record.category,
                raw_json=raw_json,
                fetched_at=datetime.now(),
            )
            session.add(db_snapshot)
            session.flush()
            return db_snapshot.id

    def get_latest_snapshot(self, asin: str) -> dict[str, Any] | None:
        """Get the most recent raw response for an ASIN."""
        with session_scope() as session:
            query = (
                select(ProductSnapshotDB)
                .where(ProductSnapshotDB.asin == asin)
                .order_by(desc(ProductSnapshotDB.fetched_at), desc(ProductSnapshotDB.id))
                .limit(1)
            )
            db_snapshot = session.execute(query).scalar_one_or_none()
            if db_snapshot is None or not db_snapshot.raw_json:
                return None
            return json.loads(db_snapshot.raw_json)

    # ==================== Family Runs ====================

    def save_family_result(self, result: FamilyResult) -> int:
        """Persist a reconciled family. Returns the run id."""
        with session_scope() as session:
            db_run = FamilyRunDB(
                seed_asin=result.seed_asin,
                parent_asin=result.parent_asin,
                member_count=len(result.members),
                unavailable_count=len(result.unavailable),
                attribute_names_json=json.dumps(list(result.attribute_names)),
                parent_title_normalized=result.parent_title_normalized,
                created_at=datetime.now(),
            )

            position = 0
            for m in result.members:
                db_run.members.append(
                    FamilyMemberDB(
                        position=position,
                        asin=m.asin,
                        parent_asin=m.parent_asin,
                        title=m.title,
                        title_excluding_variant=m.title_excluding_variant,
                        category=m.category,
                        relation=m.relationship.value,
                        status=m.status,
                        attribute_values_json=json.dumps(dict(m.attribute_values)),
                    )
                )
                position += 1

            for u in result.unavailable:
                db_run.members.append(
                    FamilyMemberDB(
                        position=position,
                        asin=u.asin,
                        parent_asin=u.parent_asin,
                        title=u.title,
                        relation=Relationship.UNAVAILABLE.value,
                        status=u.status,
                    )
                )
                position += 1

            session.add(db_run)
            session.flush()
            return db_run.id

    def get_family_run(self, run_id: int) -> FamilyRunSummary | None:
        """Load a stored family run."""
        with session_scope() as session:
            db_run = session.get(FamilyRunDB, run_id)
            if db_run is None:
                return None
            return self._db_to_run_summary(db_run)

    def get_recent_runs(self, limit: int = 20) -> list[FamilyRunSummary]:
        """Most recent family runs, newest first."""
        with session_scope() as session:
            query = select(FamilyRunDB).order_by(desc(FamilyRunDB.created_at), desc(FamilyRunDB.id)).limit(limit)
            return [self._db_to_run_summary(db) for db in session.execute(query).scalars().all()]

    def _db_to_run_summary(self, db: FamilyRunDB) -> FamilyRunSummary:
        """Convert database rows to a run summary."""
        summary = FamilyRunSummary(
            id=db.id,
            seed_asin=db.seed_asin,
            parent_asin=db.parent_asin,
            created_at=db.created_at,
            attribute_names=json.loads(db.attribute_names_json or "[]"),
        )
        for row in db.members:
            if row.relation == Relationship.UNAVAILABLE.value:
                summary.unavailable.append(
                    UnavailableMember(
                        asin=row.asin,
                        parent_asin=row.parent_asin,
                        status=row.status,
                        title=row.title,
                    )
                )
            else:
                summary.members.append(
                    FamilyMember(
                        asin=row.asin,
                        parent_asin=row.parent_asin,
                        title=row.title,
                        title_excluding_variant=row.title_excluding_variant,
                        category=row.category,
                        relationship=Relationship(row.relation),
                        attribute_values=json.loads(row.attribute_values_json or "{}"),
                        status=row.status,
                    )
                )
        return summary

    # ==================== API Logs ====================

    def log_api_call(
        self,
        endpoint: str,
        key: str = "",
        status_code: int = 0,
        success: bool = True,
        error_message: str = "",
        duration_ms: int = 0,
    ) -> None:
        """Record one API request."""
        with session_scope() as session:
            session.add(
                ApiLogDB(
                    endpoint=endpoint,
                    request_key=key,
                    response_status=status_code,
                    success=success,
                    error_message=error_message,
                    duration_ms=duration_ms,
                    created_at=datetime.now(),
                )
            )

    def get_api_stats(self, hours: int = 24) -> dict[str, Any]:
        """Summarize API calls over the last N hours."""
        since = datetime.now() - timedelta(hours=hours)
        with session_scope() as session:
            query = select(
                func.count(ApiLogDB.id),
                func.sum(case((ApiLogDB.success == True, 1), else_=0)),  # noqa: E712
                func.avg(ApiLogDB.duration_ms),
            ).where(ApiLogDB.created_at >= since)
            total, succeeded, avg_ms = session.execute(query).one()

        total = total or 0
        succeeded = int(succeeded or 0)
        return {
            "total_calls": total,
            "success_count": succeeded,
            "error_count": total - succeeded,
            "avg_duration_ms": round(float(avg_ms or 0), 1),
        }
