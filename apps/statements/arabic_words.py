"""
Spelling out amounts in Arabic for receipts.

Only the integer part is spelled; fractions are dropped, matching the
"amount in words" line printed under the net amount.

Example::

    >>> number_to_arabic_words(1250)
    'ألف ومئتان وخمسون'
    >>> amount_in_arabic_words(950, 'YER')
    'تسعمائة وخمسون ريال يمني لا غير'
"""

import math
from decimal import Decimal

from apps.ledger.engine import currency_name

ONES = ['', 'واحد', 'اثنان', 'ثلاثة', 'أربعة', 'خمسة', 'ستة', 'سبعة', 'ثمانية', 'تسعة']

TEENS = [
    'عشرة', 'أحد عشر', 'اثنا عشر', 'ثلاثة عشر', 'أربعة عشر',
    'خمسة عشر', 'ستة عشر', 'سبعة عشر', 'ثمانية عشر', 'تسعة عشر',
]

TENS = ['', '', 'عشرون', 'ثلاثون', 'أربعون', 'خمسون', 'ستون', 'سبعون', 'ثمانون', 'تسعون']

HUNDREDS = [
    '', 'مائة', 'مئتان', 'ثلاثمائة', 'أربعمائة',
    'خمسمائة', 'ستمائة', 'سبعمائة', 'ثمانمائة', 'تسعمائة',
]

# (value, singular, dual, plural used for 3-10, singular used above 10)
SCALES = [
    (10 ** 9, 'مليار', 'ملياران', 'مليارات', 'مليار'),
    (10 ** 6, 'مليون', 'مليونان', 'ملايين', 'مليون'),
    (10 ** 3, 'ألف', 'ألفان', 'آلاف', 'ألف'),
]

ZERO_WORD = 'صفر'


def _below_thousand(number: int) -> str:
    hundred, remainder = divmod(number, 100)
    parts = []
    if hundred:
        parts.append(HUNDREDS[hundred])
    if remainder:
        if remainder < 10:
            words = ONES[remainder]
        elif remainder < 20:
            words = TEENS[remainder - 10]
        else:
            ten, one = divmod(remainder, 10)
            words = TENS[ten]
            if one:
                words = f"{words} و{ONES[one]}"
        parts.append(words)
    return ' و'.join(parts)


def _scaled(count: int, singular: str, dual: str, plural: str, above_ten: str) -> str:
    if count == 1:
        return singular
    if count == 2:
        return dual
    if 3 <= count <= 10:
        return f"{_below_thousand(count)} {plural}"
    return f"{_spell(count)} {above_ten}"


def _spell(number: int) -> str:
    for value, *names in SCALES:
        if number >= value:
            count, remainder = divmod(number, value)
            words = _scaled(count, *names)
            if remainder:
                words = f"{words} و{_spell(remainder)}"
            return words
    return _below_thousand(number)


def number_to_arabic_words(number) -> str:
    """
    Spell the integer part of a non-negative number in Arabic.

    Raises:
        ValueError: If the number is negative or not finite
    """
    if isinstance(number, float):
        number = Decimal(repr(number))
    number = Decimal(str(number))
    if not number.is_finite() or number < 0:
        raise ValueError(f"Cannot spell {number}")

    integer = int(math.floor(number))
    if integer == 0:
        return ZERO_WORD
    return _spell(integer)


def amount_in_arabic_words(number, currency: str) -> str:
    """'<words> <currency name> لا غير'; unknown currencies keep their code."""
    return f"{number_to_arabic_words(number)} {currency_name(currency)} لا غير"
