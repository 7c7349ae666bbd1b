"""Rule-based risk tier and advisory content for a completed assessment"""

from dataclasses import asdict

from recouply_assessment.domain.calculator import UNIT_COST, rounded_summary
from recouply_assessment.domain.formatting import format_roi
from recouply_assessment.domain.models import (
    Advisory,
    AgeBand,
    AssessmentResult,
    FollowupTouch,
    LossPercentBand,
    RecommendedAction,
    RiskTier,
)

OLD_AGE_BANDS = frozenset({AgeBand.DAYS_91_120, AgeBand.DAYS_121_PLUS})
HIGH_LOSS_BANDS = frozenset({LossPercentBand.PCT_11_20, LossPercentBand.PCT_21_PLUS})


def classify_risk_tier(age_band: AgeBand, loss_pct_band: LossPercentBand) -> RiskTier:
    """
    Map the band combination to a risk tier.

    Tiers:
    - Critical: balance is 91+ days old AND loss rate is 11%+
    - High:     exactly one of the two conditions above
    - Low:      0-30 days old with a 0-5% loss rate
    - Medium:   everything else
    """
    is_old = age_band in OLD_AGE_BANDS
    is_high_loss = loss_pct_band in HIGH_LOSS_BANDS

    if is_old and is_high_loss:
        return RiskTier.CRITICAL
    if is_old or is_high_loss:
        return RiskTier.HIGH
    if age_band is AgeBand.DAYS_0_30 and loss_pct_band is LossPercentBand.PCT_0_5:
        return RiskTier.LOW
    return RiskTier.MEDIUM


def build_advisory(result: AssessmentResult, risk_tier: RiskTier) -> Advisory:
    """Fixed guidance text; only the tier and the ROI figure vary"""
    roi_display = format_roi(rounded_summary(result)["roi_multiple"])

    return Advisory(
        risk_tier=risk_tier,
        risk_summary=(
            f"Based on your inputs, your overdue receivables carry estimated {risk_tier.value.lower()} risk. "
            "Older balances and higher write-off rates may compound exposure over time."
        ),
        value_summary=(
            f"At ${UNIT_COST}/invoice, Recouply may help you recover significantly more than the cost "
            f"of the service. Your estimated ROI is {roi_display}."
        ),
        recommended_actions=[
            RecommendedAction(
                title="Prioritize oldest invoices",
                why="Older balances have the highest cost of delay",
                time_to_do="15 minutes",
            ),
            RecommendedAction(
                title="Set up automated reminders",
                why="Consistent follow-up is the #1 driver of recovery",
                time_to_do="10 minutes",
            ),
            RecommendedAction(
                title="Segment by risk tier",
                why="Focus energy where it matters most",
                time_to_do="5 minutes",
            ),
        ],
        followup_goal="Recover the most expensive overdue balances first",
        followup_touches=[
            FollowupTouch(day=0, channel="email", tone="friendly", why="Polite reminder to re-engage the conversation"),
            FollowupTouch(day=3, channel="email", tone="firm", why="Escalate with clear payment expectations"),
        ],
        followup_notes="Start with the invoices where delay costs you the most.",
        cta_headline="Ready to recover what you're owed?",
        cta_button_text="Get my prioritized follow-up plan",
    )


def advisory_payload(advisory: Advisory) -> dict:
    """JSON-ready advisory with the tier as its plain label"""
    payload = asdict(advisory)
    payload["risk_tier"] = advisory.risk_tier.value
    return payload
