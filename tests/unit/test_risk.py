"""Unit tests for risk tiers and advisory content"""

import json
import pytest
from recouply_assessment.domain.calculator import build_input, calculate
from recouply_assessment.domain.models import AgeBand, AssessmentInput, LossPercentBand, RiskTier
from recouply_assessment.domain.risk import advisory_payload, build_advisory, classify_risk_tier


@pytest.mark.parametrize(
    "age_band, loss_band, expected",
    [
        (AgeBand.DAYS_121_PLUS, LossPercentBand.PCT_21_PLUS, RiskTier.CRITICAL),
        (AgeBand.DAYS_91_120, LossPercentBand.PCT_11_20, RiskTier.CRITICAL),
        (AgeBand.DAYS_121_PLUS, LossPercentBand.PCT_0_5, RiskTier.HIGH),
        (AgeBand.DAYS_31_60, LossPercentBand.PCT_11_20, RiskTier.HIGH),
        (AgeBand.DAYS_0_30, LossPercentBand.PCT_21_PLUS, RiskTier.HIGH),
        (AgeBand.DAYS_61_90, LossPercentBand.PCT_6_10, RiskTier.MEDIUM),
        (AgeBand.DAYS_0_30, LossPercentBand.PCT_6_10, RiskTier.MEDIUM),
        (AgeBand.DAYS_31_60, LossPercentBand.PCT_0_5, RiskTier.MEDIUM),
        (AgeBand.DAYS_0_30, LossPercentBand.PCT_0_5, RiskTier.LOW),
    ],
)
def test_classify_risk_tier(age_band, loss_band, expected):
    assert classify_risk_tier(age_band, loss_band) is expected


def test_every_band_combination_has_a_tier():
    tiers = {classify_risk_tier(age, loss) for age in AgeBand for loss in LossPercentBand}

    assert tiers == set(RiskTier)


def test_build_advisory_for_reference_scenario(scenario_input: AssessmentInput):
    result = calculate(scenario_input)
    advisory = build_advisory(result, RiskTier.HIGH)

    assert advisory.risk_tier is RiskTier.HIGH
    assert "estimated high risk" in advisory.risk_summary
    assert "$1.99/invoice" in advisory.value_summary
    assert advisory.value_summary.endswith("Your estimated ROI is 10x+.")
    assert len(advisory.recommended_actions) == 3
    assert [touch.day for touch in advisory.followup_touches] == [0, 3]
    assert [touch.tone for touch in advisory.followup_touches] == ["friendly", "firm"]


def test_build_advisory_quotes_rounded_roi():
    # $1,990 service cost against $40 of impact
    result = calculate(build_input(1000, 1000, "0-30", "0-5%", 12))
    advisory = build_advisory(result, RiskTier.LOW)

    assert advisory.value_summary.endswith("Your estimated ROI is 0.0x.")


def test_advisory_payload_is_json_ready(scenario_input: AssessmentInput):
    advisory = build_advisory(calculate(scenario_input), RiskTier.CRITICAL)
    payload = advisory_payload(advisory)

    assert payload["risk_tier"] == "Critical"
    assert payload["followup_touches"][1]["tone"] == "firm"
    assert json.loads(json.dumps(payload)) == payload
