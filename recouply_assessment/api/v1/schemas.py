"""Pydantic schemas for API request/response validation"""

from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional

from recouply_assessment.domain.models import AgeBand, LossPercentBand
from recouply_assessment.domain.sharing import ShareType

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class AssessmentInputs(BaseModel):
    """Self-reported snapshot of overdue receivables"""

    overdue_count: int = Field(..., ge=0, description="Number of overdue invoices")
    overdue_total: Decimal = Field(..., ge=0, allow_inf_nan=False, description="Sum of overdue balances")
    age_band: AgeBand = Field(..., description="Typical age of the overdue balance in days")
    loss_pct_band: LossPercentBand = Field(..., description="Historical write-off rate band")
    annual_rate: Decimal = Field(..., gt=0, allow_inf_nan=False, description="Annual cost of capital, percent")


class AssessmentRequest(BaseModel):
    """Request body for POST /v1/assessment"""

    inputs: AssessmentInputs
    website: Optional[str] = Field(None, description="Honeypot, must be left empty")


class ComputedSchema(BaseModel):
    """Rounded calculator output"""

    cost_per_invoice: float
    service_cost: float
    delay_months: int
    delay_cost: float
    loss_risk_cost: float
    total_impact: float
    breakeven_pct: float
    roi_multiple: float


class DisplaySchema(BaseModel):
    """Formatted summary strings"""

    service_cost: str
    delay_cost: str
    loss_risk_cost: str
    total_impact: str
    breakeven_pct: str
    roi_multiple: str


class RecommendedActionSchema(BaseModel):
    title: str
    why: str
    time_to_do: str


class FollowupTouchSchema(BaseModel):
    day: int
    channel: str
    tone: str
    why: str


class FollowupPlanSchema(BaseModel):
    goal: str
    touches: List[FollowupTouchSchema]
    notes: str


class CallToActionSchema(BaseModel):
    headline: str
    button_text: str


class AdvisorySchema(BaseModel):
    risk_summary: str
    value_summary: str
    recommended_actions: List[RecommendedActionSchema]
    minimal_followup_plan: FollowupPlanSchema
    cta: CallToActionSchema


class AssessmentResponse(BaseModel):
    """Response for POST /v1/assessment"""

    risk_tier: str
    computed: ComputedSchema
    display: DisplaySchema
    advisory: AdvisorySchema


class AssessmentOptionsResponse(BaseModel):
    """Response for GET /v1/assessment/options"""

    age_bands: List[str]
    loss_pct_bands: List[str]
    annual_rates: List[float]
    restrict_annual_rates: bool
    cost_per_invoice: float


class LeadRequest(BaseModel):
    """Request body for POST /v1/assessment/leads"""

    email: str = Field(..., min_length=3, max_length=320, pattern=EMAIL_PATTERN)
    name: Optional[str] = Field(None, max_length=200)
    company: Optional[str] = Field(None, max_length=200)
    inputs: AssessmentInputs
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    website: Optional[str] = Field(None, description="Honeypot, must be left empty")


class LeadResponse(BaseModel):
    """Response for POST /v1/assessment/leads"""

    lead_id: str
    risk_tier: str
    computed: ComputedSchema


class LeadDetailResponse(BaseModel):
    """Response for GET /v1/assessment/leads/{lead_id}"""

    lead_id: str
    email: str
    name: Optional[str] = None
    company: Optional[str] = None
    overdue_count: int
    overdue_total: float
    age_band: str
    loss_pct_band: str
    annual_rate: float
    service_cost: float
    delay_cost: float
    loss_risk_cost: float
    breakeven_pct: float
    roi_multiple: float
    risk_tier: str
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    created_at: str


class LeadListResponse(BaseModel):
    """Response for GET /v1/assessment/leads"""

    leads: List[LeadDetailResponse]


class ShareRequest(BaseModel):
    """Request body for POST /v1/assessment/share"""

    to_email: str = Field(..., min_length=3, max_length=320, pattern=EMAIL_PATTERN)
    to_name: Optional[str] = Field(None, max_length=200)
    sender_name: Optional[str] = Field(None, max_length=200)
    share_type: ShareType = Field(ShareType.SELF, description="self | boss | team")
    inputs: AssessmentInputs
    website: Optional[str] = Field(None, description="Honeypot, must be left empty")


class ShareResponse(BaseModel):
    """Response for POST /v1/assessment/share"""

    success: bool
    share_type: str
    risk_tier: str
