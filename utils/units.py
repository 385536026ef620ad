import math

UNITS = ("", "k", "M", "G", "T", "P", "E")


def metric_units(number: float) -> str:
    """
    Formats a rate with a metric suffix, e.g. 1234567 -> '1.23M'.
    Non-positive and non-finite values render as '0.00'.
    """
    if not math.isfinite(number) or number <= 0:
        return "0.00"
    mag = math.floor(math.log10(number) / 3)
    mag = min(max(mag, 0), len(UNITS) - 1)
    return f"{number / 10 ** (3 * mag):.2f}{UNITS[mag]}"
