"""Collections assessment calculator - deterministic financial impact of overdue receivables"""

from decimal import MAX_EMAX, MIN_EMIN, Context, Decimal, DivisionByZero, InvalidOperation, Overflow, ROUND_HALF_EVEN, ROUND_HALF_UP
from typing import Dict, Union

from recouply_assessment.domain.exceptions import InvalidInput
from recouply_assessment.domain.models import AgeBand, AssessmentInput, AssessmentResult, LossPercentBand

Number = Union[int, float, str, Decimal]

# Cost of running one invoice through automated collections
UNIT_COST = Decimal("1.99")

# Rates offered by the assessment form; the calculator accepts any positive rate
RATE_OPTIONS = (12, 18, 24)

# Own context so results never depend on the caller's thread-local decimal settings
_CTX = Context(prec=28, rounding=ROUND_HALF_EVEN, traps=[InvalidOperation, DivisionByZero, Overflow])

# Input ceilings; every derived figure then fits the lead columns (Numeric(18, 2) money)
MAX_OVERDUE_COUNT = 1_000_000_000
MAX_OVERDUE_TOTAL = Decimal("1000000000000000")
MIN_POSITIVE_TOTAL = Decimal("0.01")
MAX_ANNUAL_RATE = Decimal(1000)

_ZERO = Decimal(0)
_HUNDRED = Decimal(100)
_MONTHS_PER_YEAR = Decimal(12)


def delay_months_for(age_band: AgeBand) -> int:
    """Months of capital tied up for a given aging bucket"""
    match age_band:
        case AgeBand.DAYS_0_30:
            return 1
        case AgeBand.DAYS_31_60:
            return 2
        case AgeBand.DAYS_61_90:
            return 3
        case AgeBand.DAYS_91_120:
            return 4
        case AgeBand.DAYS_121_PLUS:
            return 6
        case _:
            raise InvalidInput("age_band", f"unknown age band {age_band!r}")


def loss_midpoint_for(loss_pct_band: LossPercentBand) -> Decimal:
    """Representative write-off fraction for a loss band"""
    match loss_pct_band:
        case LossPercentBand.PCT_0_5:
            return Decimal("0.03")
        case LossPercentBand.PCT_6_10:
            return Decimal("0.08")
        case LossPercentBand.PCT_11_20:
            return Decimal("0.15")
        case LossPercentBand.PCT_21_PLUS:
            return Decimal("0.25")
        case _:
            raise InvalidInput("loss_pct_band", f"unknown loss band {loss_pct_band!r}")


AGE_BAND_TO_DELAY_MONTHS: Dict[AgeBand, int] = {band: delay_months_for(band) for band in AgeBand}
LOSS_PCT_MIDPOINTS: Dict[LossPercentBand, Decimal] = {band: loss_midpoint_for(band) for band in LossPercentBand}


def to_decimal(field: str, value: Number) -> Decimal:
    """Convert a transport number to a finite Decimal, floats via their shortest repr"""
    if isinstance(value, bool):
        raise InvalidInput(field, "must be a number")
    try:
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, int):
            amount = Decimal(value)
        elif isinstance(value, (float, str)):
            amount = Decimal(str(value).strip())
        else:
            raise InvalidInput(field, "must be a number")
    except InvalidOperation as e:
        raise InvalidInput(field, f"not a number: {value!r}") from e

    if not amount.is_finite():
        raise InvalidInput(field, "must be finite")
    if amount.is_zero():
        return _ZERO
    return amount


def _validate_count(value) -> int:
    if isinstance(value, bool):
        raise InvalidInput("overdue_count", "must be an integer")
    if isinstance(value, int):
        count = value
    else:
        amount = to_decimal("overdue_count", value)
        if amount != amount.to_integral_value():
            raise InvalidInput("overdue_count", "must be a whole number of invoices")
        count = int(amount)
    if count < 0:
        raise InvalidInput("overdue_count", "must not be negative")
    if count > MAX_OVERDUE_COUNT:
        raise InvalidInput("overdue_count", f"must be at most {MAX_OVERDUE_COUNT:,}")
    return count


def _validate_total(value) -> Decimal:
    total = to_decimal("overdue_total", value)
    if total < 0:
        raise InvalidInput("overdue_total", "must not be negative")
    if total > MAX_OVERDUE_TOTAL:
        raise InvalidInput("overdue_total", f"must be at most {MAX_OVERDUE_TOTAL:,}")
    if 0 < total < MIN_POSITIVE_TOTAL:
        raise InvalidInput("overdue_total", f"must be 0 or at least {MIN_POSITIVE_TOTAL}")
    return total


def _validate_rate(value) -> Decimal:
    rate = to_decimal("annual_rate", value)
    if rate <= 0:
        raise InvalidInput("annual_rate", "must be a positive percentage")
    if rate > MAX_ANNUAL_RATE:
        raise InvalidInput("annual_rate", f"must be at most {MAX_ANNUAL_RATE}%")
    return rate


def _validate_band(enum_cls, field: str, value):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip())
        except ValueError:
            pass
    allowed = ", ".join(member.value for member in enum_cls)
    raise InvalidInput(field, f"{value!r} is not one of: {allowed}")


def build_input(
    overdue_count,
    overdue_total: Number,
    age_band: Union[AgeBand, str],
    loss_pct_band: Union[LossPercentBand, str],
    annual_rate: Number,
) -> AssessmentInput:
    """
    Build a validated AssessmentInput from raw transport values.

    Raises:
        InvalidInput: negative, non-finite or out-of-range numbers, or unknown band literals
    """
    return AssessmentInput(
        overdue_count=_validate_count(overdue_count),
        overdue_total=_validate_total(overdue_total),
        age_band=_validate_band(AgeBand, "age_band", age_band),
        loss_pct_band=_validate_band(LossPercentBand, "loss_pct_band", loss_pct_band),
        annual_rate=_validate_rate(annual_rate),
    )


def calculate(assessment: AssessmentInput) -> AssessmentResult:
    """
    Compute the financial impact of an overdue receivables snapshot.

    Formulas:
    - service_cost   = overdue_count x UNIT_COST
    - delay_cost     = overdue_total x (annual_rate / 100 / 12) x delay_months
    - loss_risk_cost = overdue_total x loss band midpoint
    - breakeven_pct  = service_cost / overdue_total (0 when overdue_total is 0)
    - roi_multiple   = (delay_cost + loss_risk_cost) / service_cost (0 when service_cost is 0)

    Pure: identical input always yields an identical result, and nothing is
    logged or mutated. Validation runs before any arithmetic.

    Raises:
        InvalidInput: on a negative, non-finite, out-of-range or unrecognized field
    """
    checked = build_input(
        assessment.overdue_count,
        assessment.overdue_total,
        assessment.age_band,
        assessment.loss_pct_band,
        assessment.annual_rate,
    )

    try:
        service_cost = _CTX.multiply(Decimal(checked.overdue_count), UNIT_COST)
        monthly_rate = _CTX.divide(_CTX.divide(checked.annual_rate, _HUNDRED), _MONTHS_PER_YEAR)
        delay_months = delay_months_for(checked.age_band)
        delay_cost = _CTX.multiply(_CTX.multiply(checked.overdue_total, monthly_rate), Decimal(delay_months))
        loss_risk_cost = _CTX.multiply(checked.overdue_total, loss_midpoint_for(checked.loss_pct_band))

        breakeven_pct = _CTX.divide(service_cost, checked.overdue_total) if checked.overdue_total > 0 else _ZERO
        total_impact = _CTX.add(delay_cost, loss_risk_cost)
        roi_multiple = _CTX.divide(total_impact, service_cost) if service_cost > 0 else _ZERO
    except (InvalidOperation, DivisionByZero, Overflow) as e:
        raise InvalidInput("overdue_total", "outside the supported range") from e

    return AssessmentResult(
        service_cost=service_cost,
        delay_cost=delay_cost,
        loss_risk_cost=loss_risk_cost,
        breakeven_recovery=service_cost,
        breakeven_pct=breakeven_pct,
        total_impact=total_impact,
        roi_multiple=roi_multiple,
        delay_months=delay_months,
    )


def display_context(value: Decimal, places: str) -> Context:
    """Half-up context with enough digits to hold value at the given scale, so quantize never traps"""
    _, digits, _ = value.as_tuple()
    whole_digits = max(value.adjusted() + 1, 1)
    prec = max(len(digits), whole_digits - Decimal(places).as_tuple().exponent) + 3
    return Context(prec=max(prec, 28), rounding=ROUND_HALF_UP, Emax=MAX_EMAX, Emin=MIN_EMIN)


def round_half_up(value: Decimal, places: str) -> Decimal:
    return value.quantize(Decimal(places), context=display_context(value, places))


def rounded_summary(result: AssessmentResult) -> Dict[str, Union[Decimal, int]]:
    """Presentation figures: money to cents, breakeven to 4 places, ROI to 1 place"""
    return {
        "cost_per_invoice": UNIT_COST,
        "service_cost": round_half_up(result.service_cost, "0.01"),
        "delay_months": result.delay_months,
        "delay_cost": round_half_up(result.delay_cost, "0.01"),
        "loss_risk_cost": round_half_up(result.loss_risk_cost, "0.01"),
        "total_impact": round_half_up(result.total_impact, "0.01"),
        "breakeven_pct": round_half_up(result.breakeven_pct, "0.0001"),
        "roi_multiple": round_half_up(result.roi_multiple, "0.1"),
    }
