import os
from typing import Optional

MICROCREDITS_PER_CREDIT = 1_000_000


def _format_number(value: float, decimals: int) -> str:
    fmt = f"{value:.{decimals}f}"
    if "." in fmt:
        fmt = fmt.rstrip("0").rstrip(".")
    return fmt


def microcredits_to_credits(microcredits: int) -> float:
    return microcredits / MICROCREDITS_PER_CREDIT


def credits_to_microcredits(credits: float) -> int:
    return int(round(float(credits) * MICROCREDITS_PER_CREDIT))


def format_credits(microcredits: Optional[int], unit: Optional[str] = None) -> str:
    """Format a microcredit amount, switching to the micro unit below one millicredit."""
    if microcredits is None:
        microcredits = 0

    try:
        value = int(microcredits)
    except (TypeError, ValueError):
        value = 0

    base_unit = unit or os.getenv("ALEOLIB_CURRENCY_UNIT", "credits")
    decimals = int(os.getenv("ALEOLIB_CREDITS_DECIMALS", "6"))
    if decimals < 0:
        decimals = 0

    if value != 0 and abs(value) < 1000:
        return f"{value} μ{base_unit}"

    credits = microcredits_to_credits(value)
    large_units = [
        (1e9, f"G{base_unit}"),
        (1e6, f"M{base_unit}"),
        (1e3, f"k{base_unit}"),
    ]
    for scale, suffix in large_units:
        if abs(credits) >= scale:
            return f"{_format_number(credits / scale, 4)} {suffix}"
    return f"{_format_number(credits, decimals)} {base_unit}"
