"""POST /v1/assessment/share - email a copy of the assessment to yourself, your boss, or your team"""

import logging
import httpx
from fastapi import APIRouter, Depends, HTTPException, Request

from recouply_assessment.api.v1.schemas import ShareRequest, ShareResponse
from recouply_assessment.api.v1.assessment import reject_invalid_input, to_assessment_input
from recouply_assessment.api.dependencies import get_request_id, get_webhook_client, rate_limited
from recouply_assessment.domain.calculator import calculate
from recouply_assessment.domain.exceptions import InvalidInput
from recouply_assessment.domain.rate_limiting import validate_honeypot
from recouply_assessment.domain.risk import build_advisory, classify_risk_tier
from recouply_assessment.domain.sharing import build_share_message
from recouply_assessment.infrastructure.clients.webhook import AssessmentWebhookClient
from recouply_assessment.infrastructure.observability.logging import log_assessment_shared
from recouply_assessment.infrastructure.observability.metrics import share_counter

router = APIRouter()


@router.post(
    "/assessment/share",
    response_model=ShareResponse,
    dependencies=[Depends(rate_limited("email_send"))],
)
async def share_assessment(
    request_body: ShareRequest,
    request: Request,
    webhook_client: AssessmentWebhookClient = Depends(get_webhook_client),
):
    """
    Share an assessment summary by email.

    Flow:
    1. Reject filled honeypot field
    2. Recompute the assessment server-side from the submitted inputs
    3. Build the share message from the rounded, formatted figures
    4. Deliver it through the notification webhook and wait for the outcome
    """
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
    message = build_share_message(
        assessment,
        result,
        advisory,
        share_type=request_body.share_type,
        to_email=request_body.to_email,
        to_name=request_body.to_name,
        sender_name=request_body.sender_name,
    )

    try:
        delivered = await webhook_client.send_event(message)
    except (httpx.HTTPStatusError, httpx.RequestError) as e:
        logging.error(f"Failed to deliver shared assessment: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=502, detail="Failed to send assessment")

    if not delivered:
        raise HTTPException(status_code=503, detail="Sharing is not configured")

    share_counter.labels(share_type=request_body.share_type.value).inc()
    log_assessment_shared(request_id, request_body.share_type.value, risk_tier.value)

    return ShareResponse(success=True, share_type=request_body.share_type.value, risk_tier=risk_tier.value)
