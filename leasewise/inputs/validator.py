"""
Input-layer business-rule validator.

Validates a ProjectionInput and a slab table AFTER Pydantic structural
validation has already passed. Collects all violations in a single pass and
raises ValueError with a JSON-encoded list of {field, issue} dicts so the
route (or the main.py ValueError handler) can build the standard error envelope.

ProjectionInput rules:
  1. Monetary fields       within [0, MAX_AMOUNT] (finite)
  2. Rate fields           within [0, 1]
  3. down_payment_pct      within [0, 1]
  4. lease_tenure / loan_tenure  whole months within [1, MAX_TENURE_MONTHS]

Slab table rules (parse_slab_table strict mode):
  1. Table is non-empty
  2. Exactly one unbounded row, and it is the last row
  3. Bounded widths        >= 0 and finite
  4. Rates                 within [0, 1]
  5. Rates                 non-decreasing (progressive)

The projection engine itself never calls this module — it stays total over
any numeric input. Compatibility mode (strict=False) hands tables through
unchecked for links created before validation existed.
"""
from __future__ import annotations

import json
import logging
import math
from typing import Any, Sequence

from leasewise.calculator.schemas import (
    BoundedSlab,
    ProjectionInput,
    SlabRow,
    UnboundedSlab,
)

logger = logging.getLogger(__name__)

_MONETARY_FIELDS = (
    "ctc",
    "std_deduction",
    "on_road_price",
    "lease_rental",
    "fuel_allowance",
    "buyback_price",
    "insurance",
    "maintenance",
    "fuel",
    "resale_value",
)
_RATE_FIELDS = ("cess", "invest_return", "loan_rate", "inflation_rate")
_TENURE_FIELDS = ("lease_tenure", "loan_tenure")

MAX_AMOUNT = 1e12              # ₹1 lakh crore
MAX_TENURE_MONTHS = 600        # 50 years


def validate_projection_input(inputs: ProjectionInput) -> None:
    """
    Validate a projection input against the business rules above.

    Raises:
        ValueError: JSON string list of {"field": str, "issue": str} dicts.
    """
    violations: list[dict[str, Any]] = []

    # ---- 1. Monetary fields ------------------------------------------------
    for name in _MONETARY_FIELDS:
        value = getattr(inputs, name)
        if value < 0:
            violations.append({
                "field": name,
                "issue": f"Value ₹{value:,.0f} must not be negative.",
            })
        elif not value <= MAX_AMOUNT:
            violations.append({
                "field": name,
                "issue": f"Value ₹{value:,.0f} exceeds the ₹{MAX_AMOUNT:,.0f} limit.",
            })

    # ---- 2. Rates ----------------------------------------------------------
    for name in _RATE_FIELDS:
        value = getattr(inputs, name)
        if not 0 <= value <= 1:
            violations.append({
                "field": name,
                "issue": f"Rate {value:g} must be between 0 and 1 (0.08 = 8% a year).",
            })

    # ---- 3. Down payment fraction ------------------------------------------
    if not 0 <= inputs.down_payment_pct <= 1:
        violations.append({
            "field": "down_payment_pct",
            "issue": (
                f"Down payment fraction {inputs.down_payment_pct:g} must be between 0 and 1 "
                "(0.2 = 20% of on-road price)."
            ),
        })

    # ---- 4. Tenures --------------------------------------------------------
    for name in _TENURE_FIELDS:
        value = getattr(inputs, name)
        if not 1 <= value <= MAX_TENURE_MONTHS:
            violations.append({
                "field": name,
                "issue": (
                    f"Tenure must be between 1 and {MAX_TENURE_MONTHS} months, got {value}."
                ),
            })

    if violations:
        logger.info("Projection input validation failed: %d violation(s)", len(violations))
        raise ValueError(json.dumps(violations))


def validate_slab_table(slabs: Sequence[SlabRow]) -> None:
    """
    Reject slab tables that do not partition [0, ∞) progressively.

    Raises:
        ValueError: JSON string list of {"field": str, "issue": str} dicts.
            Field paths are "slabs" or "slabs.<index>.<attr>".
    """
    violations: list[dict[str, Any]] = []

    if not slabs:
        raise ValueError(json.dumps([{"field": "slabs", "issue": "Slab table is empty."}]))

    last = len(slabs) - 1
    if not isinstance(slabs[last], UnboundedSlab):
        violations.append({
            "field": f"slabs.{last}.kind",
            "issue": "Last slab must be unbounded so that all income is covered.",
        })

    prev_rate: float | None = None
    for i, row in enumerate(slabs):
        if isinstance(row, UnboundedSlab) and i != last:
            violations.append({
                "field": f"slabs.{i}.kind",
                "issue": "Only the last slab may be unbounded; later slabs would never apply.",
            })
        if isinstance(row, BoundedSlab) and not 0 <= row.limit < math.inf:
            violations.append({
                "field": f"slabs.{i}.limit",
                "issue": f"Slab width ₹{row.limit:,.0f} must be finite and not negative.",
            })
        if not 0 <= row.rate <= 1:
            violations.append({
                "field": f"slabs.{i}.rate",
                "issue": f"Rate {row.rate:g} must be between 0 and 1.",
            })
        elif prev_rate is not None and row.rate < prev_rate:
            violations.append({
                "field": f"slabs.{i}.rate",
                "issue": (
                    f"Rate {row.rate:g} is lower than the previous slab's {prev_rate:g}; "
                    "progressive slabs must not decrease."
                ),
            })
        if 0 <= row.rate <= 1:
            prev_rate = row.rate

    if violations:
        logger.info("Slab table validation failed: %d violation(s)", len(violations))
        raise ValueError(json.dumps(violations))


def parse_slab_table(rows: Sequence[SlabRow], strict: bool = True) -> list[SlabRow]:
    """
    Smart constructor for slab tables.

    strict=True  → validate_slab_table() then return a list copy.
    strict=False → compatibility mode: return the rows as given, unchecked.
    """
    if strict:
        validate_slab_table(rows)
    else:
        logger.debug("Slab table accepted without validation (compatibility mode)")
    return list(rows)
