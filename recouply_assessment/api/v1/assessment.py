"""POST /v1/assessment - collections risk & ROI assessment endpoint"""

import time
import logging
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException, Request

from recouply_assessment.api.v1.schemas import (
    AdvisorySchema,
    AssessmentInputs,
    AssessmentOptionsResponse,
    AssessmentRequest,
    AssessmentResponse,
    CallToActionSchema,
    ComputedSchema,
    DisplaySchema,
    FollowupPlanSchema,
    FollowupTouchSchema,
    RecommendedActionSchema,
)
from recouply_assessment.api.dependencies import get_request_id, rate_limited
from recouply_assessment.config import settings
from recouply_assessment.domain.calculator import UNIT_COST, build_input, calculate, rounded_summary
from recouply_assessment.domain.exceptions import InvalidInput
from recouply_assessment.domain.formatting import format_currency, format_percent, format_roi
from recouply_assessment.domain.models import Advisory, AgeBand, AssessmentInput, AssessmentResult, LossPercentBand
from recouply_assessment.domain.rate_limiting import validate_honeypot
from recouply_assessment.domain.risk import build_advisory, classify_risk_tier
from recouply_assessment.infrastructure.observability.logging import log_assessment
from recouply_assessment.infrastructure.observability.metrics import invalid_input_counter, record_assessment

router = APIRouter()


def to_assessment_input(inputs: AssessmentInputs) -> AssessmentInput:
    """
    Marshal validated request fields into the domain input.

    Raises:
        InvalidInput: when the rate is outside the configured set and rates are restricted
    """
    if settings.restrict_annual_rates and not any(
        inputs.annual_rate == Decimal(str(rate)) for rate in settings.allowed_annual_rates
    ):
        allowed = ", ".join(f"{rate:g}" for rate in settings.allowed_annual_rates)
        raise InvalidInput("annual_rate", f"must be one of: {allowed}")

    return build_input(
        overdue_count=inputs.overdue_count,
        overdue_total=inputs.overdue_total,
        age_band=inputs.age_band,
        loss_pct_band=inputs.loss_pct_band,
        annual_rate=inputs.annual_rate,
    )


def computed_schema(result: AssessmentResult) -> ComputedSchema:
    summary = rounded_summary(result)
    return ComputedSchema(**{key: float(value) if isinstance(value, Decimal) else value for key, value in summary.items()})


def display_schema(result: AssessmentResult) -> DisplaySchema:
    """Format the rounded figures, the same ones the advisory text quotes"""
    summary = rounded_summary(result)
    return DisplaySchema(
        service_cost=format_currency(summary["service_cost"]),
        delay_cost=format_currency(summary["delay_cost"]),
        loss_risk_cost=format_currency(summary["loss_risk_cost"]),
        total_impact=format_currency(summary["total_impact"]),
        breakeven_pct=format_percent(summary["breakeven_pct"]),
        roi_multiple=format_roi(summary["roi_multiple"]),
    )


def advisory_schema(advisory: Advisory) -> AdvisorySchema:
    return AdvisorySchema(
        risk_summary=advisory.risk_summary,
        value_summary=advisory.value_summary,
        recommended_actions=[
            RecommendedActionSchema(title=a.title, why=a.why, time_to_do=a.time_to_do)
            for a in advisory.recommended_actions
        ],
        minimal_followup_plan=FollowupPlanSchema(
            goal=advisory.followup_goal,
            touches=[
                FollowupTouchSchema(day=t.day, channel=t.channel, tone=t.tone, why=t.why)
                for t in advisory.followup_touches
            ],
            notes=advisory.followup_notes,
        ),
        cta=CallToActionSchema(headline=advisory.cta_headline, button_text=advisory.cta_button_text),
    )


def reject_invalid_input(e: InvalidInput, request_id: str) -> HTTPException:
    invalid_input_counter.labels(field=e.field).inc()
    logging.warning(f"Invalid assessment input: {e}", extra={"request_id": request_id, "field": e.field})
    return HTTPException(status_code=422, detail=str(e))


@router.get("/assessment/options", response_model=AssessmentOptionsResponse)
def get_assessment_options():
    """Band literals and rate choices for building the assessment form"""
    return AssessmentOptionsResponse(
        age_bands=[band.value for band in AgeBand],
        loss_pct_bands=[band.value for band in LossPercentBand],
        annual_rates=list(settings.allowed_annual_rates),
        restrict_annual_rates=settings.restrict_annual_rates,
        cost_per_invoice=float(UNIT_COST),
    )


@router.post(
    "/assessment",
    response_model=AssessmentResponse,
    dependencies=[Depends(rate_limited("form_submit"))],
)
def create_assessment(request_body: AssessmentRequest, request: Request):
    """
    Calculate the financial impact of a company's overdue receivables.

    Flow:
    1. Reject filled honeypot field
    2. Validate inputs and run the deterministic calculator
    3. Classify risk tier and build advisory content
    4. Return rounded figures, display strings, and advisory
    """
    start_time = time.time()
    request_id = get_request_id(request)

    if not validate_honeypot(request_body.website):
        raise HTTPException(status_code=400, detail="Invalid submission")

    try:
        assessment = to_assessment_input(request_body.inputs)
        result = calculate(assessment)
    except InvalidInput as e:
        raise reject_invalid_input(e, request_id)

    risk_tier = classify_risk_tier(assessment.age_band, assessment.loss_pct_band)
    advisory = build_advisory(result, risk_tier)

    duration_ms = (time.time() - start_time) * 1000
    record_assessment(risk_tier.value, float(result.roi_multiple))
    log_assessment(
        request_id,
        assessment.age_band.value,
        assessment.loss_pct_band.value,
        risk_tier.value,
        float(result.roi_multiple),
        duration_ms,
    )

    return AssessmentResponse(
        risk_tier=risk_tier.value,
        computed=computed_schema(result),
        display=display_schema(result),
        advisory=advisory_schema(advisory),
    )
