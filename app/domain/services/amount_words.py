# app/domain/services/amount_words.py
"""
Spell invoice amounts in English words, e.g.

    1234.50 USD -> "ONE THOUSAND TWO HUNDRED THIRTY FOUR AND 50/100 US DOLLARS"

International short scale (thousand / million / billion / trillion), always
upper case, independent of locale.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from app.domain.exceptions import ComputationError

MAX_AMOUNT = Decimal(10) ** 15

_ONES = [
    "ZERO", "ONE", "TWO", "THREE", "FOUR", "FIVE", "SIX", "SEVEN", "EIGHT", "NINE",
    "TEN", "ELEVEN", "TWELVE", "THIRTEEN", "FOURTEEN", "FIFTEEN", "SIXTEEN",
    "SEVENTEEN", "EIGHTEEN", "NINETEEN",
]
_TENS = ["", "", "TWENTY", "THIRTY", "FORTY", "FIFTY", "SIXTY", "SEVENTY", "EIGHTY", "NINETY"]
_SCALES = ["", "THOUSAND", "MILLION", "BILLION", "TRILLION"]

CURRENCY_NAMES = {
    "USD": "US DOLLARS",
    "INR": "INDIAN RUPEES",
    "EUR": "EUROS",
    "GBP": "POUNDS STERLING",
    "AED": "UAE DIRHAMS",
}


def _below_thousand(n: int) -> list[str]:
    words: list[str] = []
    hundreds, rest = divmod(n, 100)
    if hundreds:
        words += [_ONES[hundreds], "HUNDRED"]
    if rest >= 20:
        tens, ones = divmod(rest, 10)
        words.append(_TENS[tens])
        if ones:
            words.append(_ONES[ones])
    elif rest:
        words.append(_ONES[rest])
    return words


def integer_to_words(n: int) -> str:
    """Spell a non-negative integer below 10^15."""
    if n == 0:
        return _ONES[0]

    groups: list[int] = []
    while n:
        n, group = divmod(n, 1000)
        groups.append(group)

    words: list[str] = []
    for scale_index in range(len(groups) - 1, -1, -1):
        group = groups[scale_index]
        if not group:
            continue
        words += _below_thousand(group)
        if _SCALES[scale_index]:
            words.append(_SCALES[scale_index])
    return " ".join(words)


def currency_name(code: str) -> str:
    code = (code or "").strip().upper()
    return CURRENCY_NAMES.get(code, code)


def amount_to_words(amount: Any, currency: str = "USD") -> str:
    """Spell ``amount`` as ``<INTEGER WORDS> AND <cents>/100 <CURRENCY>``."""
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        raise ComputationError(f"amount must be a number, got {amount!r}", field="amount")
    if not value.is_finite():
        raise ComputationError("amount must be a finite number", field="amount")
    if value < 0:
        raise ComputationError("amount cannot be negative", field="amount")

    # bound before quantize: 28 digit context precision
    if value >= MAX_AMOUNT:
        raise ComputationError("amount is too large to spell", field="amount")
    value = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if value >= MAX_AMOUNT:
        raise ComputationError("amount is too large to spell", field="amount")

    whole = int(value)
    cents = int((value - whole) * 100)

    text = f"{integer_to_words(whole)} AND {cents:02d}/100"
    name = currency_name(currency)
    return f"{text} {name}" if name else text
