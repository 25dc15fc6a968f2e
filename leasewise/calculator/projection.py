"""
LeaseWise Projection Engine — year-by-year lease vs buy cash flow.
Pure Python, zero I/O, deterministic. Same (inputs, slabs) → same ProjectionResult.

IMPORTANT: tenure months → years uses round-half-up, NOT ceiling.
  48 → 4, 50 → 4 (two months of rental dropped), 42 → 4 (six months added), 90 → 8.
This matches existing shared links; do not "fix" it to ceil/floor without
versioning the share-link format.
"""
from __future__ import annotations

import math
from typing import Sequence

from leasewise.calculator.loan import compute_installment
from leasewise.calculator.schemas import (
    EngineCC,
    ProjectionInput,
    ProjectionResult,
    SlabRow,
)
from leasewise.calculator.tax_engine import compute_tax

# ===========================================================================
# PERQUISITE ADD-BACK — Rule 3, motor car used for official + personal purposes
# ===========================================================================

PERQUISITE_BELOW_1600CC = 1_800     # ₹/month, engine up to 1600cc
PERQUISITE_ABOVE_1600CC = 2_400     # ₹/month, engine above 1600cc

PERQUISITE_MONTHLY: dict[EngineCC, float] = {
    EngineCC.below: PERQUISITE_BELOW_1600CC,
    EngineCC.above: PERQUISITE_ABOVE_1600CC,
}


# ===========================================================================
# INTERNAL HELPERS (pure functions — no side effects, no I/O)
# ===========================================================================

# Rounded amounts saturate here; anything beyond is an overflowed projection.
ROUNDED_CEILING = 10 ** 18


def round_half_up(value: float) -> int:
    """
    Round .5 toward +∞ (JavaScript Math.round), not to even like round().

    Compares the exact fractional part instead of flooring value + 0.5, which
    misrounds 0.49999999999999994 up to 1. Total: anything past ±ROUNDED_CEILING
    (±∞ included) saturates there and NaN rounds to 0.
    """
    if math.isnan(value):
        return 0
    if not -ROUNDED_CEILING < value < ROUNDED_CEILING:
        return ROUNDED_CEILING if value > 0 else -ROUNDED_CEILING
    whole = math.floor(value)
    return whole + 1 if value - whole >= 0.5 else whole


def _grow(rate: float, periods: int) -> float:
    """(1 + rate) ** periods; ∞ once the power no longer fits in a float."""
    try:
        return (1 + rate) ** periods
    except (OverflowError, ZeroDivisionError):
        return math.inf


def _sip_future_value(monthly_saving: float, annual_return: float, months: int) -> float:
    """
    Future value of an ordinary annuity: saving × ((1+r)^n − 1) / r, r = annual/12.
    Zero when there is nothing to invest; plain sum when r == 0.
    """
    if monthly_saving <= 0:
        return 0.0
    monthly_rate = annual_return / 12
    if monthly_rate == 0:
        return monthly_saving * months
    return monthly_saving * ((_grow(monthly_rate, months) - 1) / monthly_rate)


# ===========================================================================
# PUBLIC API
# ===========================================================================

def project(
    inputs: ProjectionInput,
    slabs: Sequence[SlabRow] | None = None,
) -> ProjectionResult:
    """
    Run the full lease vs buy projection.

    Lease side, while the lease runs: rental + allowance − tax saving, plus any
    fuel spend the allowance does not cover, plus the buyback in the final lease
    year. After the lease ends only running costs remain.

    Buy side: down payment in year 1, EMI×12 while the loan runs, running costs
    every year. Resale value is recovered once, at the end.

    Break-even is the FIRST year cumulative lease cost exceeds cumulative buy
    cost net of resale; None if that never happens within max_years.
    """
    # Step 1-2: annualized figures
    perquisite_monthly = PERQUISITE_MONTHLY[EngineCC(inputs.engine_cc)]
    perquisite_annual = perquisite_monthly * 12
    annual_lease_rental = inputs.lease_rental * 12
    annual_fuel_allowance = inputs.fuel_allowance * 12

    # Step 3: horizon
    lease_tenure_years = round_half_up(inputs.lease_tenure / 12)
    loan_tenure_years = round_half_up(inputs.loan_tenure / 12)
    max_years = max(lease_tenure_years, loan_tenure_years)
    annual_running = inputs.insurance + inputs.maintenance + inputs.fuel

    # Step 4: taxable income (never negative)
    gross_with_lease = (
        inputs.ctc - annual_lease_rental - annual_fuel_allowance + perquisite_annual
    )
    net_taxable_without = max(inputs.ctc - inputs.std_deduction, 0)
    net_taxable_with = max(gross_with_lease - inputs.std_deduction, 0)

    # Step 5: tax saving, may be negative
    buy_tax_result = compute_tax(net_taxable_without, inputs.cess, slabs)
    lease_tax_result = compute_tax(net_taxable_with, inputs.cess, slabs)
    annual_tax_saving = buy_tax_result.total - lease_tax_result.total
    monthly_tax_saving = annual_tax_saving / 12

    # Step 6: loan
    down_payment = inputs.on_road_price * inputs.down_payment_pct
    loan_amount = inputs.on_road_price - down_payment
    emi = compute_installment(loan_amount, inputs.loan_rate, inputs.loan_tenure)
    total_interest = emi * inputs.loan_tenure - loan_amount

    # Step 7: opportunity cost of the down payment
    dp_future_value = down_payment * _grow(inputs.invest_return, max_years)
    opportunity_cost = dp_future_value - down_payment

    # Step 8: reinvested monthly saving
    effective_monthly_lease = inputs.lease_rental + inputs.fuel_allowance - monthly_tax_saving
    effective_monthly_buy = emi + annual_running / 12
    monthly_saving = max(effective_monthly_buy - effective_monthly_lease, 0)
    sip_future_value = _sip_future_value(monthly_saving, inputs.invest_return, max_years * 12)

    # Step 9: year loop
    lease_years: list[int] = []
    buy_years: list[int] = []
    lease_cumulative: list[int] = []
    buy_cumulative: list[int] = []
    lease_total = 0.0
    buy_total = 0.0
    break_even_year: int | None = None

    for year in range(1, max_years + 1):
        inflation = _grow(inputs.inflation_rate, year - 1)
        year_fuel = inputs.fuel * inflation
        year_running = (
            inputs.insurance * inflation + inputs.maintenance * inflation + year_fuel
        )

        if year <= lease_tenure_years:
            lease_cost = annual_lease_rental + annual_fuel_allowance - annual_tax_saving
            lease_cost += max(year_fuel - annual_fuel_allowance, 0)
            if year == lease_tenure_years:
                lease_cost += inputs.buyback_price
        else:
            lease_cost = year_running
        lease_years.append(round_half_up(lease_cost))
        lease_total += lease_cost
        lease_cumulative.append(round_half_up(lease_total))

        buy_cost = 0.0
        if year == 1:
            buy_cost += down_payment
        if year <= loan_tenure_years:
            buy_cost += emi * 12
        buy_cost += year_running
        buy_years.append(round_half_up(buy_cost))
        buy_total += buy_cost
        buy_cumulative.append(round_half_up(buy_total))

        if break_even_year is None and lease_total > buy_total - inputs.resale_value:
            break_even_year = year

    # Step 10: totals and verdict
    lease_total_rounded = round_half_up(lease_total)
    buy_total_gross = round_half_up(buy_total)
    buy_total_net = round_half_up(buy_total - inputs.resale_value)
    recommended = "lease" if buy_total_net > lease_total_rounded else "buy"

    return ProjectionResult(
        perquisite_monthly=perquisite_monthly,
        perquisite_annual=perquisite_annual,
        annual_lease_rental=annual_lease_rental,
        annual_fuel_allowance=annual_fuel_allowance,
        lease_tenure_years=lease_tenure_years,
        loan_tenure_years=loan_tenure_years,
        max_years=max_years,
        annual_running=annual_running,
        net_taxable_without=net_taxable_without,
        net_taxable_with=net_taxable_with,
        taxable_reduction=net_taxable_without - net_taxable_with,
        buy_tax_result=buy_tax_result,
        lease_tax_result=lease_tax_result,
        annual_tax_saving=annual_tax_saving,
        monthly_tax_saving=monthly_tax_saving,
        down_payment=down_payment,
        loan_amount=loan_amount,
        emi=emi,
        total_interest=total_interest,
        dp_future_value=dp_future_value,
        opportunity_cost=opportunity_cost,
        effective_monthly_lease=effective_monthly_lease,
        effective_monthly_buy=effective_monthly_buy,
        monthly_saving=monthly_saving,
        sip_future_value=sip_future_value,
        lease_years=lease_years,
        buy_years=buy_years,
        lease_cumulative=lease_cumulative,
        buy_cumulative=buy_cumulative,
        break_even_year=break_even_year,
        lease_total=lease_total_rounded,
        buy_total_gross=buy_total_gross,
        buy_total=buy_total_net,
        resale_value=inputs.resale_value,
        recommended_option=recommended,
        savings_amount=abs(buy_total_net - lease_total_rounded),
    )
