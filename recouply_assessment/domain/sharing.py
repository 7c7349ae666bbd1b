"""Shareable assessment summary sent to the user, their boss, or their team"""

from dataclasses import asdict
from enum import Enum
from typing import Any, Dict

from recouply_assessment.domain.calculator import UNIT_COST, rounded_summary
from recouply_assessment.domain.formatting import format_currency, format_percent, format_roi
from recouply_assessment.domain.models import Advisory, AssessmentInput, AssessmentResult


class ShareType(str, Enum):
    SELF = "self"
    BOSS = "boss"
    TEAM = "team"


SHARE_DISCLAIMER = "Estimates are directional and depend on your business and customer behavior."


def share_subject(share_type: ShareType, sender_name: str | None = None) -> str:
    if share_type is ShareType.TEAM:
        return f"{sender_name or 'A team member'} shared a Collections Assessment with you"
    if share_type is ShareType.BOSS:
        return f"{sender_name or 'A colleague'} shared a Collections Assessment with you"
    return "Your Collections Risk & ROI Assessment | Recouply.ai"


def share_intro(share_type: ShareType, sender_name: str | None = None) -> str:
    if share_type is ShareType.SELF:
        return "Here's a copy of your collections assessment results. We've saved this for your records."
    return (
        f"{sender_name or 'A team member'} shared this collections risk & ROI assessment with you. "
        "Review the findings below to understand the financial impact of overdue invoices."
    )


def build_share_message(
    assessment: AssessmentInput,
    result: AssessmentResult,
    advisory: Advisory,
    share_type: ShareType,
    to_email: str,
    to_name: str | None = None,
    sender_name: str | None = None,
) -> Dict[str, Any]:
    """
    Assemble the ASSESSMENT_SHARED event for the notification webhook.

    Every figure is formatted from the rounded summary, so the message quotes
    exactly what the assessment response displayed.
    """
    summary = rounded_summary(result)
    annual_rate = f"{assessment.annual_rate.normalize():f}"

    return {
        "event": "ASSESSMENT_SHARED",
        "share_type": share_type.value,
        "to_email": to_email,
        "to_name": to_name,
        "sender_name": sender_name,
        "subject": share_subject(share_type, sender_name),
        "intro": share_intro(share_type, sender_name),
        "risk_tier": advisory.risk_tier.value,
        "metrics": {
            "service_cost": {
                "value": format_currency(summary["service_cost"]),
                "note": f"{assessment.overdue_count} invoices x ${UNIT_COST}",
            },
            "delay_cost": {
                "value": format_currency(summary["delay_cost"]),
                "note": f"{annual_rate}% APR x ~{summary['delay_months']} mo",
            },
            "loss_risk_cost": {
                "value": format_currency(summary["loss_risk_cost"]),
                "note": "Based on write-off estimate",
            },
            "breakeven": {
                "value": format_currency(summary["service_cost"]),
                "note": f"about {format_percent(summary['breakeven_pct'])} of overdue",
            },
        },
        "roi": format_roi(summary["roi_multiple"]),
        "roi_note": (
            f"Total impact: {format_currency(summary['total_impact'])} "
            f"vs cost of {format_currency(summary['service_cost'])}"
        ),
        "risk_summary": advisory.risk_summary,
        "value_summary": advisory.value_summary,
        "recommended_actions": [asdict(action) for action in advisory.recommended_actions],
        "disclaimer": SHARE_DISCLAIMER,
    }
