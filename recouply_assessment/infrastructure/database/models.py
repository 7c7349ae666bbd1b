"""SQLAlchemy ORM models for assessment leads and rate limit windows"""

import uuid
from sqlalchemy import Column, DateTime, Integer, Numeric, Text, JSON, Uuid
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class AssessmentLead(Base):
    """Contact captured after an assessment, with the figures it was shown"""

    __tablename__ = "assessment_lead"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=True)
    company = Column(Text, nullable=True)

    # Inputs
    overdue_count = Column(Integer, nullable=False)
    overdue_total = Column(Numeric(18, 2), nullable=False)
    age_band = Column(Text, nullable=False)
    loss_pct_band = Column(Text, nullable=False)
    annual_rate = Column(Numeric(9, 4), nullable=False)

    # Rounded results
    service_cost = Column(Numeric(18, 2), nullable=False)
    delay_cost = Column(Numeric(18, 2), nullable=False)
    loss_risk_cost = Column(Numeric(18, 2), nullable=False)
    breakeven_pct = Column(Numeric(18, 4), nullable=False)
    roi_multiple = Column(Numeric(18, 1), nullable=False)
    risk_tier = Column(Text, nullable=False)
    advisory = Column(JSON, nullable=True)

    utm_source = Column(Text, nullable=True)
    utm_medium = Column(Text, nullable=True)
    utm_campaign = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class RateLimitWindowRecord(Base):
    """Shared rate limit bookkeeping for multi-worker deployments"""

    __tablename__ = "rate_limit_window"

    identifier = Column(Text, primary_key=True)
    action_type = Column(Text, primary_key=True)
    count = Column(Integer, nullable=False, default=0)
    window_start = Column(DateTime(timezone=True), nullable=False)
    blocked_until = Column(DateTime(timezone=True), nullable=True)
