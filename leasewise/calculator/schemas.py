"""
schemas.py — Calculator Pydantic v2 data contracts.

Defines:
  - BoundedSlab / UnboundedSlab  (SlabRow tagged variant, discriminated on `kind`)
  - TaxBreakdownRow, TaxResult    (progressive tax output)
  - EngineCC                      (engine-capacity category → perquisite)
  - ProjectionInput               (the 18-field input record)
  - ProjectionResult              (year-by-year lease vs buy output)
  - ProjectionRequest             (HTTP body: inputs + optional slab table)

All models are frozen: results are values, compared by equality, never mutated.

ProjectionInput carries TYPES ONLY — no ge/le constraints. The engine is total
over real numbers; business rules live in inputs/validator.py.
"""
from __future__ import annotations

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Slab table — tagged rows, last row unbounded
# ---------------------------------------------------------------------------

class BoundedSlab(BaseModel):
    """A bracket of fixed width. `limit` is the WIDTH of the bracket, not a ceiling."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["bounded"] = "bounded"
    limit: float
    rate: float


class UnboundedSlab(BaseModel):
    """Final bracket — no upper bound."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["unbounded"] = "unbounded"
    rate: float


SlabRow = Annotated[Union[BoundedSlab, UnboundedSlab], Field(discriminator="kind")]
SlabTable = List[SlabRow]


# ---------------------------------------------------------------------------
# Tax output
# ---------------------------------------------------------------------------

class TaxBreakdownRow(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    width: Optional[float]       # None for the unbounded bracket
    rate: float
    chunk: float                 # income taxed in this bracket
    tax: float                   # chunk * rate


class TaxResult(BaseModel):
    """
    Output of compute_tax().

    Invariants:
      total == tax + cess
      sum(row.chunk) == min(max(income, 0), table capacity)
      sum(row.tax)   == tax
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    tax: float                   # slab tax, before cess
    cess: float
    total: float
    breakdown: List[TaxBreakdownRow] = []


# ---------------------------------------------------------------------------
# Projection input
# ---------------------------------------------------------------------------

class EngineCC(str, Enum):
    below = "below"     # engine up to 1600cc
    above = "above"     # engine above 1600cc


class ProjectionInput(BaseModel):
    """
    Lease vs buy input record.

    Monetary fields are INR. Rates are fractions (0.08 = 8%).
    lease_rental / fuel_allowance are MONTHLY; insurance / maintenance / fuel are ANNUAL.
    Tenures are in MONTHS.

    Serialized names (aliases) are camelCase and match share-link query keys,
    e.g. engine_cc ↔ "engineCC", std_deduction ↔ "stdDeduction".
    """
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    # --- Salary ---
    ctc: float = 3_000_000
    std_deduction: float = 75_000
    cess: float = 0.04
    invest_return: float = 0.12

    # --- Car ---
    on_road_price: float = 2_500_000
    engine_cc: EngineCC = Field(default=EngineCC.below, alias="engineCC")

    # --- Lease ---
    lease_rental: float = 55_000
    fuel_allowance: float = 10_000
    lease_tenure: int = 48
    buyback_price: float = 100_000

    # --- Loan ---
    down_payment_pct: float = 0.2
    loan_rate: float = 0.08
    loan_tenure: int = 84

    # --- Running costs (annual, year-1 prices) ---
    insurance: float = 45_000
    maintenance: float = 12_000
    fuel: float = 105_000
    inflation_rate: float = 0.06

    # --- Exit ---
    resale_value: float = 800_000


# ---------------------------------------------------------------------------
# Projection output
# ---------------------------------------------------------------------------

class ProjectionResult(BaseModel):
    """
    Output of project() — the complete lease vs buy comparison.

    Computation sequence (order determines correctness):
      1. perquisite add-back from engine_cc
      2. annualize rental and allowance
      3. tenure years = round-half-up(months / 12); max_years = max(lease, loan)
      4. taxable income without / with lease (floored at 0)
      5. tax both → annual_tax_saving (not clamped)
      6. down payment, loan amount, EMI, total interest
      7. opportunity cost of the down payment over max_years
      8. effective monthly outlays → monthly saving → SIP future value
      9. year loop → per-year, cumulative, break-even (first crossing)
     10. totals and verdict

    The four year sequences always have length max_years.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    # --- Step 1-3 ---
    perquisite_monthly: float
    perquisite_annual: float
    annual_lease_rental: float
    annual_fuel_allowance: float
    lease_tenure_years: int
    loan_tenure_years: int
    max_years: int
    annual_running: float            # year-1 insurance + maintenance + fuel

    # --- Step 4-5 ---
    net_taxable_without: float
    net_taxable_with: float
    taxable_reduction: float
    buy_tax_result: TaxResult        # tax WITHOUT the lease
    lease_tax_result: TaxResult      # tax WITH the lease
    annual_tax_saving: float
    monthly_tax_saving: float

    # --- Step 6-7 ---
    down_payment: float
    loan_amount: float
    emi: float
    total_interest: float
    dp_future_value: float
    opportunity_cost: float

    # --- Step 8 ---
    effective_monthly_lease: float
    effective_monthly_buy: float
    monthly_saving: float
    sip_future_value: float

    # --- Step 9 ---
    lease_years: List[int]
    buy_years: List[int]
    lease_cumulative: List[int]
    buy_cumulative: List[int]
    break_even_year: Optional[int] = None

    # --- Step 10 ---
    lease_total: int
    buy_total_gross: int
    buy_total: int                   # gross minus resale value
    resale_value: float
    recommended_option: Literal["lease", "buy"]
    savings_amount: int              # |buy_total - lease_total|


# ---------------------------------------------------------------------------
# HTTP request body
# ---------------------------------------------------------------------------

class ProjectionRequest(BaseModel):
    """Body for POST /api/projection and POST /api/export. slabs=None → default table."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    inputs: ProjectionInput = Field(default_factory=ProjectionInput)
    slabs: Optional[SlabTable] = None


__all__ = [
    "BoundedSlab",
    "UnboundedSlab",
    "SlabRow",
    "SlabTable",
    "TaxBreakdownRow",
    "TaxResult",
    "EngineCC",
    "ProjectionInput",
    "ProjectionResult",
    "ProjectionRequest",
]
