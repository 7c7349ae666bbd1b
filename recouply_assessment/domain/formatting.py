"""Display formatting for assessment figures"""

from decimal import Decimal

from recouply_assessment.domain.calculator import Number, display_context, round_half_up, to_decimal

ROI_DISPLAY_CAP = Decimal(10)


def format_currency(value: Number) -> str:
    """Whole currency units with thousands separators: 1500.4 -> "$1,500" """
    amount = round_half_up(to_decimal("value", value), "1")
    return f"${amount:,}"


def format_percent(value: Number) -> str:
    """Fraction as a percentage to one decimal: 0.00398 -> "0.4%" """
    fraction = to_decimal("value", value)
    pct = fraction.scaleb(2, context=display_context(fraction, "0.1"))
    return f"{round_half_up(pct, '0.1')}%"


def format_roi(value: Number) -> str:
    """ROI multiple to one decimal, collapsing anything above 10 to "10x+" """
    multiple = to_decimal("value", value)
    if multiple > ROI_DISPLAY_CAP:
        return "10x+"
    return f"{round_half_up(multiple, '0.1')}x"
