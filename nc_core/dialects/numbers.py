"""Number formatting for NC words.

Every coordinate is rounded to 3 decimals before formatting and ``-0`` is
normalised to ``0``.  Non-finite values never reach the output: they raise
:class:`~nc_core.errors.EmissionError`.

Styles::

    plain(-20.0)   -> "-20"      trailing zeros trimmed (address-word controls)
    signed(10.0)   -> "+10"      explicit sign (conversational controls)
    fixed(1.5)     -> "1.500"    fixed decimals (printer firmware)
"""

from __future__ import annotations

import math

from nc_core.errors import EmissionError

COORD_DIGITS = 3
EXTRUDE_DIGITS = 5


def clean(value: float, digits: int = COORD_DIGITS, word: str = "") -> float:
    """Round *value* to *digits* and normalise negative zero."""
    if not math.isfinite(value):
        label = f" for {word}" if word else ""
        raise EmissionError(f"Non-finite value{label}: {value!r}")
    v = round(float(value), digits)
    return 0.0 if v == 0 else v


def plain(value: float, digits: int = COORD_DIGITS, word: str = "") -> str:
    """Shortest decimal form: ``20.0 -> "20"``, ``12.50 -> "12.5"``."""
    text = f"{clean(value, digits, word):.{digits}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def signed(value: float, digits: int = COORD_DIGITS, word: str = "") -> str:
    """Like :func:`plain` with an explicit ``+`` on non-negative values."""
    text = plain(value, digits, word)
    return text if text.startswith("-") else f"+{text}"


def fixed(value: float, digits: int = COORD_DIGITS, word: str = "") -> str:
    return f"{clean(value, digits, word):.{digits}f}"


def milliseconds(seconds: float) -> str:
    """Dwell time in whole milliseconds."""
    return str(int(round(clean(seconds, 3, "P") * 1000)))
