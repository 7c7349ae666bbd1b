"""Assessment lead capture and lookup"""

import uuid
import logging
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from recouply_assessment.api.v1.schemas import LeadDetailResponse, LeadListResponse, LeadRequest, LeadResponse
from recouply_assessment.api.v1.assessment import computed_schema, reject_invalid_input, to_assessment_input
from recouply_assessment.api.dependencies import get_webhook_client, get_request_id, rate_limited
from recouply_assessment.domain.calculator import calculate, rounded_summary
from recouply_assessment.domain.exceptions import InvalidInput
from recouply_assessment.domain.rate_limiting import detect_bot_behavior, validate_honeypot
from recouply_assessment.domain.risk import build_advisory, classify_risk_tier
from recouply_assessment.infrastructure.clients.webhook import AssessmentWebhookClient
from recouply_assessment.infrastructure.database.models import AssessmentLead
from recouply_assessment.infrastructure.database.repositories import LeadRepository
from recouply_assessment.infrastructure.database.session import get_db
from recouply_assessment.infrastructure.observability.logging import log_lead_captured
from recouply_assessment.infrastructure.observability.metrics import lead_counter

router = APIRouter()


@router.post(
    "/assessment/leads",
    response_model=LeadResponse,
    status_code=201,
    dependencies=[Depends(rate_limited("contact_form"))],
)
def create_lead(
    request_body: LeadRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    webhook_client: AssessmentWebhookClient = Depends(get_webhook_client),
):
    """
    Capture a lead that unlocked their assessment.

    Flow:
    1. Screen out bots and filled honeypots
    2. Recompute the assessment server-side from the submitted inputs
    3. Persist lead with inputs, rounded figures, and advisory
    4. Schedule the lead captured webhook event
    """
    request_id = get_request_id(request)

    is_bot, reason = detect_bot_behavior(request.headers.get("user-agent"))
    if is_bot:
        logging.warning(f"Rejected lead from bot: {reason}", extra={"request_id": request_id})
        raise HTTPException(status_code=403, detail="Request rejected")

    if not validate_honeypot(request_body.website):
        raise HTTPException(status_code=400, detail="Invalid submission")

    try:
        assessment = to_assessment_input(request_body.inputs)
        result = calculate(assessment)
    except InvalidInput as e:
        raise reject_invalid_input(e, request_id)

    risk_tier = classify_risk_tier(assessment.age_band, assessment.loss_pct_band)
    advisory = build_advisory(result, risk_tier)

    try:
        lead_repo = LeadRepository(db)
        db_lead = lead_repo.create_lead(
            email=request_body.email,
            assessment=assessment,
            result=result,
            advisory=advisory,
            name=request_body.name or None,
            company=request_body.company or None,
            utm_source=request_body.utm_source,
            utm_medium=request_body.utm_medium,
            utm_campaign=request_body.utm_campaign,
        )
        db.commit()

    except Exception as e:
        db.rollback()
        logging.error(f"Failed to store lead: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    lead_id = str(db_lead.id)
    summary = rounded_summary(result)
    background_tasks.add_task(
        webhook_client.send_event,
        {
            "event": "ASSESSMENT_LEAD_CAPTURED",
            "lead_id": lead_id,
            "email": request_body.email,
            "name": request_body.name,
            "company": request_body.company,
            "risk_tier": risk_tier.value,
            "overdue_total": str(assessment.overdue_total),
            "total_impact": str(summary["total_impact"]),
            "roi_multiple": str(summary["roi_multiple"]),
        },
    )

    lead_counter.inc()
    log_lead_captured(request_id, lead_id, risk_tier.value, bool(request_body.company))

    return LeadResponse(lead_id=lead_id, risk_tier=risk_tier.value, computed=computed_schema(result))


@router.get("/assessment/leads/{lead_id}", response_model=LeadDetailResponse)
def get_lead(lead_id: str, db: Session = Depends(get_db)):
    """Retrieve a stored lead with the figures it was shown"""
    try:
        lead_uuid = uuid.UUID(lead_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid lead ID format")

    lead_repo = LeadRepository(db)
    lead = lead_repo.get_lead_by_id(lead_uuid)

    if not lead:
        raise HTTPException(status_code=404, detail="Lead not found")

    return lead_detail(lead)


@router.get("/assessment/leads", response_model=LeadListResponse)
def list_leads(
    limit: int = Query(20, ge=1, le=100, description="Maximum leads to return"),
    db: Session = Depends(get_db),
):
    """Most recent leads first"""
    lead_repo = LeadRepository(db)
    return LeadListResponse(leads=[lead_detail(lead) for lead in lead_repo.list_recent_leads(limit=limit)])


def lead_detail(lead: AssessmentLead) -> LeadDetailResponse:
    return LeadDetailResponse(
        lead_id=str(lead.id),
        email=lead.email,
        name=lead.name,
        company=lead.company,
        overdue_count=lead.overdue_count,
        overdue_total=float(lead.overdue_total),
        age_band=lead.age_band,
        loss_pct_band=lead.loss_pct_band,
        annual_rate=float(lead.annual_rate),
        service_cost=float(lead.service_cost),
        delay_cost=float(lead.delay_cost),
        loss_risk_cost=float(lead.loss_risk_cost),
        breakeven_pct=float(lead.breakeven_pct),
        roi_multiple=float(lead.roi_multiple),
        risk_tier=lead.risk_tier,
        utm_source=lead.utm_source,
        utm_medium=lead.utm_medium,
        utm_campaign=lead.utm_campaign,
        created_at=lead.created_at.isoformat(),
    )
