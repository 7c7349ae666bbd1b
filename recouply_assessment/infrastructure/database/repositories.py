"""Data access layer for assessment leads and rate limit windows"""

import uuid
from datetime import datetime
from typing import Callable, List, Optional
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session
from recouply_assessment.infrastructure.database.models import AssessmentLead, RateLimitWindowRecord
from recouply_assessment.domain.calculator import rounded_summary
from recouply_assessment.domain.models import (
    Advisory,
    AssessmentInput,
    AssessmentResult,
    RateLimitConfig,
    RateLimitResult,
    RateLimitWindow,
)
from recouply_assessment.domain.rate_limiting import apply_hit
from recouply_assessment.domain.risk import advisory_payload
from recouply_assessment.utils.date_utils import ensure_utc

# Dialects with INSERT ... ON CONFLICT support
UPSERT_DIALECTS = {"postgresql": postgresql, "sqlite": sqlite}


class LeadRepository:
    """Repository for assessment leads"""

    def __init__(self, db: Session):
        self.db = db

    def create_lead(
        self,
        email: str,
        assessment: AssessmentInput,
        result: AssessmentResult,
        advisory: Advisory,
        name: str | None = None,
        company: str | None = None,
        utm_source: str | None = None,
        utm_medium: str | None = None,
        utm_campaign: str | None = None,
    ) -> AssessmentLead:
        """Persist a lead with the rounded figures it was shown"""
        computed = rounded_summary(result)
        db_lead = AssessmentLead(
            email=email,
            name=name,
            company=company,
            overdue_count=assessment.overdue_count,
            overdue_total=assessment.overdue_total,
            age_band=assessment.age_band.value,
            loss_pct_band=assessment.loss_pct_band.value,
            annual_rate=assessment.annual_rate,
            service_cost=computed["service_cost"],
            delay_cost=computed["delay_cost"],
            loss_risk_cost=computed["loss_risk_cost"],
            breakeven_pct=computed["breakeven_pct"],
            roi_multiple=computed["roi_multiple"],
            risk_tier=advisory.risk_tier.value,
            advisory=advisory_payload(advisory),
            utm_source=utm_source,
            utm_medium=utm_medium,
            utm_campaign=utm_campaign,
        )
        self.db.add(db_lead)
        self.db.flush()  # Get ID without committing
        return db_lead

    def get_lead_by_id(self, lead_id: uuid.UUID) -> Optional[AssessmentLead]:
        return self.db.query(AssessmentLead).filter(AssessmentLead.id == lead_id).first()

    def list_recent_leads(self, limit: int = 20) -> List[AssessmentLead]:
        """Most recent leads first"""
        return (
            self.db.query(AssessmentLead)
            .order_by(AssessmentLead.created_at.desc())
            .limit(limit)
            .all()
        )


class SqlRateLimitStore:
    """
    Rate limit store shared between workers through the database.

    Each hit runs in one transaction: an insert-if-missing creates the row
    without racing on the primary key, then the row is re-read under
    SELECT ... FOR UPDATE (SQLite serializes the transaction through its
    write lock instead) and updated before commit.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def hit(self, key, config: RateLimitConfig, now: datetime) -> RateLimitResult:
        identifier, action_type = key
        with self.session_factory() as db:
            db.execute(_insert_if_missing(db, identifier, action_type, now))
            record = db.execute(
                select(RateLimitWindowRecord)
                .where(
                    RateLimitWindowRecord.identifier == identifier,
                    RateLimitWindowRecord.action_type == action_type,
                )
                .with_for_update()
            ).scalar_one()

            window, result = apply_hit(_to_window(record), config, now)
            record.count = window.count
            record.window_start = window.window_start
            record.blocked_until = window.blocked_until
            db.commit()
            return result

    def get(self, key) -> Optional[RateLimitWindow]:
        identifier, action_type = key
        with self.session_factory() as db:
            record = db.get(RateLimitWindowRecord, (identifier, action_type))
            if record is None:
                return None
            return _to_window(record)

    def reset(self) -> None:
        with self.session_factory() as db:
            db.query(RateLimitWindowRecord).delete()
            db.commit()


def _to_window(record: RateLimitWindowRecord) -> RateLimitWindow:
    return RateLimitWindow(
        count=record.count,
        window_start=ensure_utc(record.window_start),
        blocked_until=ensure_utc(record.blocked_until) if record.blocked_until else None,
    )


def _insert_if_missing(db: Session, identifier: str, action_type: str, now: datetime):
    """INSERT ... ON CONFLICT DO NOTHING for an empty window (count 0, opened now)"""
    dialect = db.get_bind().dialect.name
    if dialect not in UPSERT_DIALECTS:
        raise ValueError(f"Rate limit store does not support the {dialect} dialect")

    return (
        UPSERT_DIALECTS[dialect]
        .insert(RateLimitWindowRecord)
        .values(identifier=identifier, action_type=action_type, count=0, window_start=now, blocked_until=None)
        .on_conflict_do_nothing(index_elements=["identifier", "action_type"])
    )
