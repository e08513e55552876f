# SMB CashFlow - Cash-flow ledger & forecast for SMB e-commerce stores
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Consumption-tax (VAT) helpers.

All amounts handled by the dashboard are tax-inclusive. The tax component of
an inclusive amount ``A`` at rate ``r`` is ``A * r / (1 + r)``; the net amount
is what remains.

Per-day VAT liability is output VAT on revenue minus input VAT on
VAT-deductible expenses. It can be negative (a refund day) and is never
clamped.
"""

import math

from .records import to_number

VAT_RATE: float = 0.18


def extract_tax(amount_inclusive: float, rate: float = VAT_RATE) -> float:
    """Return the tax component contained in a tax-inclusive amount.

    Non-finite or non-positive amounts yield 0.0. A rate that is not finite
    or not greater than -1 also yields 0.0.
    """
    amount = to_number(amount_inclusive)
    if amount <= 0:
        return 0.0

    try:
        rate_value = float(rate)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(rate_value) or rate_value <= -1:
        return 0.0

    return amount * rate_value / (1 + rate_value)


def net_of(amount_inclusive: float, rate: float = VAT_RATE) -> float:
    """Return the amount without its tax component."""
    amount = max(to_number(amount_inclusive), 0.0)
    return amount - extract_tax(amount, rate)


def net_vat(revenue: float, vat_deductible: float, rate: float = VAT_RATE) -> float:
    """Output VAT on ``revenue`` minus input VAT on ``vat_deductible``."""
    return extract_tax(revenue, rate) - extract_tax(vat_deductible, rate)
