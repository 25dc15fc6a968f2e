"""
Projection engine test suite — lease vs buy, year by year.

Groups:
  1. Golden default scenario (hand-computed in demo_inputs.py)
  2. Tenure rounding and horizon
  3. Break-even detection (first crossing, never)
  4. Sequence invariants
  5. Tax-saving behaviour under slab edits
  6. Degenerate inputs — engine never raises
  7. Overflowing growth saturates instead of raising
"""
from __future__ import annotations

import math

import pytest

from leasewise.calculator.projection import (
    PERQUISITE_ABOVE_1600CC,
    PERQUISITE_BELOW_1600CC,
    ROUNDED_CEILING,
    project,
    round_half_up,
)
from leasewise.calculator.schemas import (
    BoundedSlab,
    EngineCC,
    ProjectionInput,
    UnboundedSlab,
)
from leasewise.calculator.tax_engine import DEFAULT_TAX_SLABS, default_slabs
from leasewise.tests.demo_inputs import (
    DEFAULT_EXPECTED,
    DEFAULT_INPUTS,
    LATE_BREAK_EVEN_INPUTS,
    NO_BREAK_EVEN_INPUTS,
)


@pytest.fixture
def default_result():
    return project(ProjectionInput(**DEFAULT_INPUTS), default_slabs())


# ===========================================================================
# TEST GROUP 1: Golden default scenario
# ===========================================================================

def test_default_inputs_match_model_defaults() -> None:
    """The golden fixture is exactly the out-of-the-box input record."""
    assert ProjectionInput(**DEFAULT_INPUTS) == ProjectionInput()


def test_golden_horizon(default_result) -> None:
    exp = DEFAULT_EXPECTED
    assert default_result.lease_tenure_years == exp["lease_tenure_years"]
    assert default_result.loan_tenure_years == exp["loan_tenure_years"]
    assert default_result.max_years == exp["max_years"]
    assert default_result.perquisite_monthly == PERQUISITE_BELOW_1600CC
    assert default_result.perquisite_annual == exp["perquisite_annual"]


def test_golden_tax(default_result) -> None:
    exp = DEFAULT_EXPECTED
    assert default_result.net_taxable_without == exp["net_taxable_without"]
    assert default_result.net_taxable_with == exp["net_taxable_with"]
    assert default_result.taxable_reduction == 758_400
    assert default_result.buy_tax_result.tax == pytest.approx(exp["tax_without"])
    assert default_result.buy_tax_result.total == pytest.approx(exp["total_tax_without"])
    assert default_result.lease_tax_result.tax == pytest.approx(exp["tax_with"])
    assert default_result.lease_tax_result.total == pytest.approx(exp["total_tax_with"])
    assert default_result.annual_tax_saving == pytest.approx(exp["annual_tax_saving"])
    assert default_result.annual_tax_saving > 0
    assert default_result.monthly_tax_saving == pytest.approx(18_707)


def test_golden_loan_and_opportunity_cost(default_result) -> None:
    exp = DEFAULT_EXPECTED
    assert default_result.down_payment == exp["down_payment"]
    assert default_result.loan_amount == exp["loan_amount"]
    assert default_result.emi == pytest.approx(exp["emi"], abs=0.05)
    assert default_result.total_interest == pytest.approx(
        default_result.emi * 84 - 2_000_000
    )
    assert default_result.dp_future_value == pytest.approx(exp["dp_future_value"], abs=1)
    assert default_result.opportunity_cost == pytest.approx(exp["opportunity_cost"], abs=1)


def test_golden_monthly_saving_is_zero(default_result) -> None:
    """Effective lease outlay (46,293) exceeds effective buy outlay (~44,672) → no SIP."""
    assert default_result.effective_monthly_lease == pytest.approx(46_293)
    assert default_result.effective_monthly_buy == pytest.approx(44_672.43, abs=0.05)
    assert default_result.monthly_saving == 0
    assert default_result.sip_future_value == 0


def test_golden_lease_side_exact(default_result) -> None:
    """Lease-side figures do not depend on EMI, so they are asserted exactly."""
    exp = DEFAULT_EXPECTED
    assert default_result.lease_years == exp["lease_years"]
    assert default_result.lease_cumulative == exp["lease_cumulative"]
    assert default_result.lease_total == exp["lease_total"]


def test_golden_buy_side(default_result) -> None:
    exp = DEFAULT_EXPECTED
    assert default_result.buy_years == pytest.approx(exp["buy_years"], abs=5)
    assert default_result.buy_total_gross == pytest.approx(exp["buy_total_gross"], abs=50)
    assert default_result.buy_total == pytest.approx(exp["buy_total"], abs=50)
    assert default_result.buy_total == default_result.buy_total_gross - 800_000


def test_golden_verdict(default_result) -> None:
    exp = DEFAULT_EXPECTED
    assert default_result.break_even_year == exp["break_even_year"]
    assert default_result.recommended_option == exp["recommended_option"]
    assert default_result.savings_amount == (
        default_result.buy_total - default_result.lease_total
    )


def test_projection_is_referentially_transparent() -> None:
    inputs = ProjectionInput(**DEFAULT_INPUTS)
    assert project(inputs, default_slabs()) == project(inputs, default_slabs())
    assert project(inputs) == project(inputs, DEFAULT_TAX_SLABS)


def test_engine_above_1600cc_uses_higher_perquisite() -> None:
    below = project(ProjectionInput(engine_cc=EngineCC.below))
    above = project(ProjectionInput(engine_cc=EngineCC.above))
    assert above.perquisite_monthly == PERQUISITE_ABOVE_1600CC
    assert above.perquisite_annual == 28_800
    # 7,200 more taxable with the lease, taxed at 25% + 4% cess
    assert below.annual_tax_saving - above.annual_tax_saving == pytest.approx(7_200 * 0.25 * 1.04)


# ===========================================================================
# TEST GROUP 2: Tenure rounding and horizon
# ===========================================================================

@pytest.mark.parametrize(
    "months, years",
    [(48, 4), (50, 4), (42, 4), (41, 3), (90, 8), (84, 7), (6, 1), (5, 0), (0, 0)],
)
def test_tenure_rounds_half_up(months: int, years: int) -> None:
    result = project(ProjectionInput(lease_tenure=months, loan_tenure=12))
    assert result.lease_tenure_years == years


def test_round_half_up_differs_from_bankers_rounding() -> None:
    assert round_half_up(2.5) == 3       # round() gives 2
    assert round_half_up(3.5) == 4
    assert round_half_up(-2.5) == -2
    assert round_half_up(555_515.5) == 555_516


def test_round_half_up_matches_js_math_round_near_half() -> None:
    assert round_half_up(0.49999999999999994) == 0     # floor(x + 0.5) gives 1
    assert round_half_up(-0.5) == 0
    assert round_half_up(-0.51) == -1


def test_round_half_up_is_total() -> None:
    assert round_half_up(math.inf) == ROUNDED_CEILING
    assert round_half_up(-math.inf) == -ROUNDED_CEILING
    assert round_half_up(1e300) == ROUNDED_CEILING
    assert round_half_up(math.nan) == 0


def test_horizon_is_longer_tenure() -> None:
    result = project(ProjectionInput(lease_tenure=60, loan_tenure=36))
    assert result.max_years == 5
    assert len(result.lease_years) == 5
    # loan ended after year 3 → years 4-5 are running costs only, same as lease side
    assert result.buy_years[3] == pytest.approx(192_945, abs=1)
    assert result.buy_years[4] == pytest.approx(204_521, abs=1)


def test_lease_ends_before_horizon_only_running_costs_remain(default_result) -> None:
    # yr 5 running = 162000 * 1.06^4
    assert default_result.lease_years[4] == round_half_up(162_000 * 1.06 ** 4)


def test_buyback_added_only_in_final_lease_year(default_result) -> None:
    years = default_result.lease_years
    assert years[0] == years[1] == years[2]
    assert years[3] - years[2] == pytest.approx(100_000 + 5_056.68, abs=1)


# ===========================================================================
# TEST GROUP 3: Break-even detection
# ===========================================================================

def test_break_even_first_crossing_is_kept() -> None:
    """Crosses in year 4, un-crosses in year 5 — year 4 is never overwritten."""
    result = project(ProjectionInput(**LATE_BREAK_EVEN_INPUTS))
    assert result.break_even_year == 4


def test_break_even_year_is_minimal() -> None:
    result = project(ProjectionInput(**LATE_BREAK_EVEN_INPUTS))
    resale = LATE_BREAK_EVEN_INPUTS["resale_value"]
    for i in range(result.break_even_year - 1):
        assert result.lease_cumulative[i] <= result.buy_cumulative[i] - resale


def test_no_break_even_is_none() -> None:
    result = project(ProjectionInput(**NO_BREAK_EVEN_INPUTS))
    assert result.break_even_year is None
    assert result.lease_years[:4] == [89_299] * 4
    assert result.lease_years[4:] == [0, 0, 0]
    assert result.recommended_option == "lease"


# ===========================================================================
# TEST GROUP 4: Sequence invariants
# ===========================================================================

@pytest.mark.parametrize(
    "overrides",
    [
        {},
        {"lease_tenure": 36, "loan_tenure": 60},
        {"lease_tenure": 60, "loan_tenure": 36, "inflation_rate": 0.0},
        {"engine_cc": "above", "resale_value": 0},
    ],
)
def test_sequences_equal_length_and_totals_consistent(overrides: dict) -> None:
    result = project(ProjectionInput(**{**DEFAULT_INPUTS, **overrides}))
    n = result.max_years
    assert len(result.lease_years) == len(result.buy_years) == n
    assert len(result.lease_cumulative) == len(result.buy_cumulative) == n
    assert result.lease_cumulative[-1] == result.lease_total
    assert result.buy_cumulative[-1] == result.buy_total_gross
    # per-year figures are rounded separately, so their sum may drift by < 1 per year
    assert abs(sum(result.lease_years) - result.lease_total) <= n
    assert abs(sum(result.buy_years) - result.buy_total_gross) <= n


def test_zero_inflation_keeps_post_lease_costs_flat() -> None:
    result = project(ProjectionInput(inflation_rate=0.0))
    assert result.lease_years[4:] == [162_000, 162_000, 162_000]


# ===========================================================================
# TEST GROUP 5: Tax saving under slab edits
# ===========================================================================

def _scaled_slabs(factor: float) -> list:
    rows = []
    for row in DEFAULT_TAX_SLABS:
        rate = min(row.rate * factor, 1.0)
        if isinstance(row, UnboundedSlab):
            rows.append(UnboundedSlab(rate=rate))
        else:
            rows.append(BoundedSlab(limit=row.limit, rate=rate))
    return rows


def test_higher_rates_increase_tax_saving() -> None:
    inputs = ProjectionInput()
    base = project(inputs, _scaled_slabs(1.0)).annual_tax_saving
    higher = project(inputs, _scaled_slabs(1.2)).annual_tax_saving
    lower = project(inputs, _scaled_slabs(0.8)).annual_tax_saving
    assert lower < base < higher


def test_adversarial_slabs_allow_negative_saving() -> None:
    """A negative top rate makes the higher without-lease income cheaper; saving is not clamped."""
    # without: 2200000*10% - 725000*50% = -142500   with: 2166600*10% = 216660
    slabs = [BoundedSlab(limit=2_200_000, rate=0.1), UnboundedSlab(rate=-0.5)]
    result = project(ProjectionInput(), slabs)
    assert result.annual_tax_saving < 0


# ===========================================================================
# TEST GROUP 6: Degenerate inputs
# ===========================================================================

def test_zero_tenures_give_empty_sequences() -> None:
    result = project(ProjectionInput(lease_tenure=0, loan_tenure=0))
    assert result.max_years == 0
    assert result.lease_years == result.buy_years == []
    assert result.emi == 0
    assert result.lease_total == 0
    assert result.buy_total == -800_000
    assert result.break_even_year is None


def test_negative_tenures_do_not_raise() -> None:
    result = project(ProjectionInput(lease_tenure=-48, loan_tenure=-84))
    assert result.lease_tenure_years == -4
    assert result.lease_years == []


def test_empty_slab_table_means_no_tax_saving() -> None:
    result = project(ProjectionInput(), [])
    assert result.annual_tax_saving == 0
    assert result.buy_tax_result.breakdown == []


def test_ctc_below_deductions_floors_taxable_income() -> None:
    result = project(ProjectionInput(ctc=50_000))
    assert result.net_taxable_without == 0
    assert result.net_taxable_with == 0
    assert result.annual_tax_saving == 0


def test_zero_return_sip_is_plain_sum() -> None:
    """Cheap lease + zero return: SIP value is saving × months, opportunity cost is 0."""
    inputs = ProjectionInput(lease_rental=15_000, fuel_allowance=0, invest_return=0.0)
    result = project(inputs)
    assert result.monthly_saving > 0
    assert result.sip_future_value == pytest.approx(result.monthly_saving * result.max_years * 12)
    assert result.opportunity_cost == 0


def test_positive_return_sip_exceeds_contributions() -> None:
    inputs = ProjectionInput(lease_rental=15_000, fuel_allowance=0)
    result = project(inputs)
    assert result.sip_future_value > result.monthly_saving * result.max_years * 12


def test_full_down_payment_means_no_loan() -> None:
    result = project(ProjectionInput(down_payment_pct=1.0))
    assert result.loan_amount == 0
    assert result.emi == 0
    assert result.total_interest == 0
    assert result.buy_years[0] == 2_500_000 + 162_000


# ===========================================================================
# TEST GROUP 7: Overflowing growth
# ===========================================================================

def test_huge_inflation_saturates_yearly_costs() -> None:
    """(1 + 1e60) ** 6 overflows a float in year 7; costs saturate, nothing raises."""
    result = project(ProjectionInput(inflation_rate=1e60))
    assert result.lease_years[0] == DEFAULT_EXPECTED["lease_years"][0]
    assert result.buy_years[0] == pytest.approx(DEFAULT_EXPECTED["buy_years"][0], abs=50)
    assert result.lease_years[1:] == [ROUNDED_CEILING] * 6
    assert result.buy_years[1:] == [ROUNDED_CEILING] * 6
    assert result.buy_cumulative[-1] == ROUNDED_CEILING


def test_huge_investment_return_gives_infinite_opportunity_cost() -> None:
    result = project(ProjectionInput(invest_return=1e60))
    assert result.dp_future_value == math.inf
    assert result.opportunity_cost == math.inf
    assert result.lease_total == DEFAULT_EXPECTED["lease_total"]


def test_very_long_lease_with_doubling_costs() -> None:
    """2 ** 1024 overflows around year 1025 of a 1083-year horizon."""
    result = project(ProjectionInput(lease_tenure=13_000, inflation_rate=1.0))
    assert result.max_years == 1_083
    assert len(result.lease_years) == len(result.buy_years) == 1_083
    assert result.lease_years[-1] == ROUNDED_CEILING
    assert result.lease_cumulative[-1] == ROUNDED_CEILING
    assert result.buy_total == ROUNDED_CEILING


def test_total_loss_return_with_negative_horizon_does_not_raise() -> None:
    """0 ** -4 would raise ZeroDivisionError."""
    result = project(ProjectionInput(invest_return=-1.0, lease_tenure=-48, loan_tenure=-48))
    assert result.max_years == -4
    assert result.dp_future_value == math.inf
