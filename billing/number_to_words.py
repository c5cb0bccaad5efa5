"""Convert numbers to words for invoice amounts"""

import math

from num2words import num2words

# num2words en_IN stops at 1000 crore
MAX_AMOUNT = 10 ** 10


def amount_to_words(amount):
    """
    Convert amount to Indian rupees format words.

    Args:
        amount: Float (e.g., 295.5)

    Returns:
        String: "Rupees Two Hundred And Ninety-Five and Fifty Paise Only"

    Raises:
        ValueError: amount is negative, not a finite number, or at least
            MAX_AMOUNT
    """
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise ValueError(f"Cannot convert {amount!r} to words")
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"Cannot convert {amount!r} to words")

    # Work in paise so 1.999 carries over to 2 rupees
    rupees, paise = divmod(int(round(value * 100)), 100)
    if rupees >= MAX_AMOUNT:
        raise ValueError(f"Cannot convert {amount!r} to words")

    # Indian English gives lakh/crore grouping
    words = "Rupees " + num2words(rupees, lang='en_IN').title()
    if paise > 0:
        words += " and " + num2words(paise, lang='en_IN').title() + " Paise"

    return words + " Only"
