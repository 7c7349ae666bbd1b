"""Domain models - pure Python dataclasses and enumerations for the assessment"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List


class AgeBand(str, Enum):
    """How long the overdue balance has been outstanding (days past due)"""

    DAYS_0_30 = "0-30"
    DAYS_31_60 = "31-60"
    DAYS_61_90 = "61-90"
    DAYS_91_120 = "91-120"
    DAYS_121_PLUS = "121+"


class LossPercentBand(str, Enum):
    """Self-reported historical write-off rate"""

    PCT_0_5 = "0-5%"
    PCT_6_10 = "6-10%"
    PCT_11_20 = "11-20%"
    PCT_21_PLUS = "21%+"


class RiskTier(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


@dataclass(frozen=True)
class AssessmentInput:
    """Snapshot of a company's overdue receivables"""

    overdue_count: int
    overdue_total: Decimal
    age_band: AgeBand
    loss_pct_band: LossPercentBand
    annual_rate: Decimal  # percent per year, 18 means 18%


@dataclass(frozen=True)
class AssessmentResult:
    """Financial impact derived from an AssessmentInput"""

    service_cost: Decimal
    delay_cost: Decimal
    loss_risk_cost: Decimal
    breakeven_recovery: Decimal
    breakeven_pct: Decimal
    total_impact: Decimal
    roi_multiple: Decimal  # uncapped; "10x+" is a display concern
    delay_months: int


@dataclass(frozen=True)
class RecommendedAction:
    title: str
    why: str
    time_to_do: str


@dataclass(frozen=True)
class FollowupTouch:
    day: int
    channel: str
    tone: str  # friendly | firm | very_firm
    why: str


@dataclass(frozen=True)
class Advisory:
    """Deterministic guidance shown alongside the numbers"""

    risk_tier: RiskTier
    risk_summary: str
    value_summary: str
    recommended_actions: List[RecommendedAction]
    followup_goal: str
    followup_touches: List[FollowupTouch]
    followup_notes: str
    cta_headline: str
    cta_button_text: str


@dataclass(frozen=True)
class RateLimitConfig:
    max_requests: int
    window_minutes: int
    block_duration_minutes: int


@dataclass
class RateLimitWindow:
    """Per (identifier, action) bookkeeping held by a rate limit store"""

    count: int
    window_start: datetime
    blocked_until: datetime | None = None


@dataclass
class RateLimitResult:
    allowed: bool
    blocked: bool = False
    blocked_until: datetime | None = None
    remaining: int = 0
    message: str | None = None
