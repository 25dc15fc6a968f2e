"""
Amortized loan (EMI) calculator.
"""
from __future__ import annotations


def compute_installment(principal: float, annual_rate: float, term_months: int) -> float:
    """
    Fixed monthly installment for a fully amortizing loan.

    Returns 0 for a non-positive principal or term. A zero rate falls back to
    straight-line repayment (principal / term) instead of dividing by zero.
    """
    if principal <= 0 or term_months <= 0:
        return 0.0
    r = annual_rate / 12
    if r == 0:
        return principal / term_months
    try:
        growth = (1 + r) ** term_months
    except OverflowError:
        # growth / (growth - 1) → 1 as growth → ∞
        return principal * r
    if growth == 1:
        return principal / term_months
    return principal * r * growth / (growth - 1)
