"""
LeaseWise Tax Engine — New Regime FY 2025-26
Pure Python, deterministic. Same input → same output.

Slab rows hold bracket WIDTHS, not cumulative ceilings:
  4L @0% | 4L @5% | 4L @10% | 4L @15% | 4L @20% | 4L @25% | rest @30%
The final bracket is an explicit UnboundedSlab — never float("inf").
"""
from __future__ import annotations

from typing import Sequence

from leasewise.calculator.schemas import (
    BoundedSlab,
    SlabRow,
    TaxBreakdownRow,
    TaxResult,
    UnboundedSlab,
)

# ===========================================================================
# TAX YEAR / STATUTORY CONSTANTS
# ===========================================================================

TAX_REGIME_LABEL = "New Regime FY 2025-26"

SLAB_WIDTH = 400_000
CESS_RATE = 0.04
NEW_STD_DEDUCTION = 75_000

# ===========================================================================
# DEFAULT SLAB TABLE — widths, not ceilings
# ===========================================================================

DEFAULT_TAX_SLABS: tuple[SlabRow, ...] = (
    BoundedSlab(limit=SLAB_WIDTH, rate=0.00),   # 0–4L
    BoundedSlab(limit=SLAB_WIDTH, rate=0.05),   # 4–8L
    BoundedSlab(limit=SLAB_WIDTH, rate=0.10),   # 8–12L
    BoundedSlab(limit=SLAB_WIDTH, rate=0.15),   # 12–16L
    BoundedSlab(limit=SLAB_WIDTH, rate=0.20),   # 16–20L
    BoundedSlab(limit=SLAB_WIDTH, rate=0.25),   # 20–24L
    UnboundedSlab(rate=0.30),                   # >24L
)


def default_slabs() -> list[SlabRow]:
    """Fresh list copy of the default table. Rows are frozen, so sharing them is safe."""
    return list(DEFAULT_TAX_SLABS)


def slab_label(index: int, slabs: Sequence[SlabRow]) -> str:
    """
    Human label for slab `index`, e.g. "₹4L-8L @5%" or "Above ₹24L @30%".
    Lower bound is the running sum of preceding widths.
    """
    lower = 0.0
    for row in slabs[:index]:
        if isinstance(row, BoundedSlab):
            lower += row.limit
    row = slabs[index]
    pct = f"{row.rate * 100:g}%"
    if isinstance(row, UnboundedSlab):
        return f"Above ₹{lower / 100_000:g}L @{pct}"
    upper = lower + row.limit
    return f"₹{lower / 100_000:g}L-{upper / 100_000:g}L @{pct}"


# ===========================================================================
# PUBLIC API
# ===========================================================================

def compute_tax(
    taxable_income: float,
    cess_rate: float = CESS_RATE,
    slabs: Sequence[SlabRow] | None = None,
) -> TaxResult:
    """
    Apply progressive slab tax to taxable_income.

    Walks the table in order. Each bracket consumes min(remaining, width);
    the unbounded bracket's width is whatever income remains. A breakdown row
    is recorded for every bracket visited, including zero-chunk rows, and the
    walk stops as soon as remaining <= 0 — so the breakdown length depends on
    income, not on table length. Zero income → one zero row. Empty table → [].

    Negative income is clamped to 0. Malformed tables are NOT rejected here
    (see inputs/validator.py); they simply produce a different number.
    """
    if slabs is None:
        slabs = DEFAULT_TAX_SLABS

    remaining = max(taxable_income, 0.0)
    tax = 0.0
    breakdown: list[TaxBreakdownRow] = []

    for row in slabs:
        if isinstance(row, UnboundedSlab):
            width = None
            chunk = remaining
        else:
            width = row.limit
            chunk = min(remaining, row.limit)
        slab_tax = chunk * row.rate
        breakdown.append(
            TaxBreakdownRow(width=width, rate=row.rate, chunk=chunk, tax=slab_tax)
        )
        tax += slab_tax
        remaining -= chunk
        if remaining <= 0:
            break

    cess = tax * cess_rate
    return TaxResult(tax=tax, cess=cess, total=tax + cess, breakdown=breakdown)
