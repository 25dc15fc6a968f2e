"""
pdf_generator.py — LeaseWise lease vs buy PDF report.

Builds a formatted PDF analysis using reportlab PLATYPUS.
Output is a BytesIO buffer (no temp file on disk).

Entry point:
    generate_projection_report(inputs, result, slabs) -> BytesIO

CRITICAL: buffer.seek(0) is called after doc.build(story) — reportlab leaves the
buffer position at the end after writing. Skipping seek(0) produces a 0-byte
PDF response.

PDF sections, in order:
  1. Verdict                — total cost lease vs buy, saving, tax saving, recommendation
  2. The Big Picture        — year-by-year cash flow grid (lease, buy, buy − lease)
  3. Assumptions            — every input, grouped
  4. Detailed Tax Calculation — taxable income build-up + slab-wise tax both ways

Color palette:
  - #D5F5E3  GREEN_LIGHT  Recommended option, verdict callout
  - #F2F2F2  GREY_LIGHT   Table headers
"""
from __future__ import annotations

import datetime
import logging
from io import BytesIO
from typing import Sequence

from reportlab.lib.colors import HexColor, black
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    KeepTogether,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from leasewise.calculator.schemas import (
    EngineCC,
    ProjectionInput,
    ProjectionResult,
    SlabRow,
)
from leasewise.calculator.tax_engine import TAX_REGIME_LABEL, default_slabs, slab_label

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Colour constants
# ---------------------------------------------------------------------------

GREEN_LIGHT = HexColor("#D5F5E3")
GREY_LIGHT  = HexColor("#F2F2F2")

_BASE_TABLE_STYLE = [
    ("GRID", (0, 0), (-1, -1), 0.5, black),
    ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
    ("ALIGN", (0, 0), (0, -1), "LEFT"),
    ("TOPPADDING", (0, 0), (-1, -1), 3),
    ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
    ("LEFTPADDING", (0, 0), (0, -1), 6),
]


def _inr(value: float) -> str:
    return f"₹{value:,.0f}"


def _pct(value: float) -> str:
    return f"{value * 100:g}%"


# ---------------------------------------------------------------------------
# Private section builders
# ---------------------------------------------------------------------------

def _build_verdict_table(result: ProjectionResult) -> Table:
    """
    Lease | Buy totals over the projection horizon.
    Recommended column header gets GREEN_LIGHT + bold.
    """
    rec_col = 1 if result.recommended_option == "lease" else 2
    other_col = 3 - rec_col

    data = [
        ["", "LEASE", "BUY"],
        [f"Total Cost ({result.max_years} Years)",
         _inr(result.lease_total), _inr(result.buy_total)],
        ["Buy cost before resale", "—", _inr(result.buy_total_gross)],
        ["Annual Tax Saving", _inr(result.annual_tax_saving), "—"],
        ["Monthly Tax Saving", _inr(result.monthly_tax_saving), "—"],
        [f"Total Tax Saving ({result.lease_tenure_years}-year lease)",
         _inr(result.annual_tax_saving * result.lease_tenure_years), "—"],
        ["Monthly EMI", "—", _inr(result.emi)],
        ["Opportunity cost of down payment", "—", _inr(result.opportunity_cost)],
        ["Break-even year",
         str(result.break_even_year) if result.break_even_year is not None else "None",
         ""],
    ]

    style_cmds = _BASE_TABLE_STYLE + [
        ("BACKGROUND", (rec_col, 0), (rec_col, 0), GREEN_LIGHT),
        ("FONTNAME", (rec_col, 0), (rec_col, 0), "Helvetica-Bold"),
        ("BACKGROUND", (other_col, 0), (other_col, 0), GREY_LIGHT),
        ("FONTNAME", (0, 1), (-1, 1), "Helvetica-Bold"),
    ]

    t = Table(data, colWidths=[90 * mm, 40 * mm, 40 * mm])
    t.setStyle(TableStyle(style_cmds))
    return t


def _build_cash_flow_table(result: ProjectionResult) -> Table:
    """Year columns + TOTAL column. Saving row = buy − lease per year."""
    years = [f"Year {i + 1}" for i in range(result.max_years)]
    savings = [b - l for l, b in zip(result.lease_years, result.buy_years)]

    data = [
        [""] + years + ["TOTAL"],
        ["LEASE COST"] + [f"{v:,}" for v in result.lease_years] + [f"{result.lease_total:,}"],
        ["BUY COST"] + [f"{v:,}" for v in result.buy_years] + [f"{result.buy_total:,}"],
        ["SAVING (Buy - Lease)"] + [f"{v:,}" for v in savings]
        + [f"{result.buy_total - result.lease_total:,}"],
        ["Cumulative lease"] + [f"{v:,}" for v in result.lease_cumulative] + [""],
        ["Cumulative buy"] + [f"{v:,}" for v in result.buy_cumulative] + [""],
    ]

    label_width = 45 * mm
    year_width = (247 * mm - label_width) / (result.max_years + 1)
    style_cmds = _BASE_TABLE_STYLE + [
        ("BACKGROUND", (0, 0), (-1, 0), GREY_LIGHT),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTNAME", (-1, 0), (-1, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 7),
    ]

    t = Table(data, colWidths=[label_width] + [year_width] * (result.max_years + 1))
    t.setStyle(TableStyle(style_cmds))
    return t


def _build_assumptions_table(inputs: ProjectionInput, result: ProjectionResult) -> Table:
    """Two-column listing; group header rows are bold with GREY_LIGHT background."""
    engine = "Below 1600cc" if inputs.engine_cc == EngineCC.below else "Above 1600cc"
    groups: list[tuple[str, list[list[str]]]] = [
        ("SALARY DETAILS", [
            ["Annual CTC", _inr(inputs.ctc)],
            ["Standard Deduction", _inr(inputs.std_deduction)],
            ["Cess", _pct(inputs.cess)],
            ["Tax Regime", TAX_REGIME_LABEL],
            ["Investment Return", _pct(inputs.invest_return)],
        ]),
        ("CAR DETAILS", [
            ["On-Road Price", _inr(inputs.on_road_price)],
            ["Engine Capacity", engine],
        ]),
        ("LEASE PARAMETERS", [
            ["Monthly Lease Rental", _inr(inputs.lease_rental)],
            ["Fuel/Maint Allowance (monthly)", _inr(inputs.fuel_allowance)],
            ["Lease Tenure (months)", str(inputs.lease_tenure)],
            ["Buyback Price", _inr(inputs.buyback_price)],
        ]),
        ("LOAN PARAMETERS", [
            ["Down Payment %", _pct(inputs.down_payment_pct)],
            ["Down Payment Amount", _inr(result.down_payment)],
            ["Loan Interest Rate", _pct(inputs.loan_rate)],
            ["Loan Tenure (months)", str(inputs.loan_tenure)],
            ["Monthly EMI", _inr(result.emi)],
            ["Total Interest", _inr(result.total_interest)],
        ]),
        ("RUNNING COSTS (Annual)", [
            ["Insurance", _inr(inputs.insurance)],
            ["Maintenance", _inr(inputs.maintenance)],
            ["Fuel", _inr(inputs.fuel)],
            ["Inflation Rate", _pct(inputs.inflation_rate)],
        ]),
        ("RESALE", [
            ["Resale Value", _inr(inputs.resale_value)],
        ]),
        ("PERQUISITE", [
            ["Monthly Perquisite", _inr(result.perquisite_monthly)],
            ["Annual Perquisite", _inr(result.perquisite_annual)],
        ]),
    ]

    data: list[list[str]] = []
    header_rows: list[int] = []
    for title, rows in groups:
        header_rows.append(len(data))
        data.append([title, ""])
        data.extend(rows)

    style_cmds = list(_BASE_TABLE_STYLE)
    for row in header_rows:
        style_cmds.append(("BACKGROUND", (0, row), (-1, row), GREY_LIGHT))
        style_cmds.append(("FONTNAME", (0, row), (-1, row), "Helvetica-Bold"))

    t = Table(data, colWidths=[90 * mm, 60 * mm])
    t.setStyle(TableStyle(style_cmds))
    return t


def _build_tax_table(
    inputs: ProjectionInput,
    result: ProjectionResult,
    slabs: Sequence[SlabRow],
) -> Table:
    """
    WITHOUT lease | WITH lease | Notes, then a slab-wise tax section.
    Slab rows follow the longer of the two breakdowns; the shorter side shows 0.
    """
    without_bd = result.buy_tax_result.breakdown
    with_bd = result.lease_tax_result.breakdown
    gross_with = (
        inputs.ctc - result.annual_lease_rental - result.annual_fuel_allowance
        + result.perquisite_annual
    )

    data = [
        ["", "WITHOUT Lease", "WITH Lease", "Notes"],
        ["Gross Salary (CTC)", _inr(inputs.ctc), _inr(inputs.ctc), "Same CTC"],
        ["(-) Lease Rental", _inr(0), _inr(result.annual_lease_rental), "Deducted pre-tax"],
        ["(-) Fuel Allowance", _inr(0), _inr(result.annual_fuel_allowance), "Deducted pre-tax"],
        ["(+) Perquisite", _inr(0), _inr(result.perquisite_annual), "Added back"],
        ["Gross Taxable", _inr(inputs.ctc), _inr(gross_with), ""],
        ["(-) Standard Deduction", _inr(inputs.std_deduction), _inr(inputs.std_deduction), ""],
        ["Net Taxable Income",
         _inr(result.net_taxable_without), _inr(result.net_taxable_with), ""],
    ]
    slab_header_row = len(data)
    data.append(["TAX SLAB BREAKDOWN", "Without Lease", "With Lease", ""])

    for i in range(max(len(without_bd), len(with_bd))):
        label = slab_label(i, slabs) if i < len(slabs) else ""
        without_tax = without_bd[i].tax if i < len(without_bd) else 0.0
        with_tax = with_bd[i].tax if i < len(with_bd) else 0.0
        data.append([label, _inr(without_tax), _inr(with_tax), ""])

    data.extend([
        ["Total Tax (before cess)",
         _inr(result.buy_tax_result.tax), _inr(result.lease_tax_result.tax), ""],
        [f"Cess @{_pct(inputs.cess)}",
         _inr(result.buy_tax_result.cess), _inr(result.lease_tax_result.cess), ""],
        ["TOTAL TAX",
         _inr(result.buy_tax_result.total), _inr(result.lease_tax_result.total), ""],
        ["ANNUAL TAX SAVING", "", _inr(result.annual_tax_saving), ""],
        ["MONTHLY TAX SAVING", "", _inr(result.monthly_tax_saving), ""],
    ])

    style_cmds = _BASE_TABLE_STYLE + [
        ("BACKGROUND", (0, 0), (-1, 0), GREY_LIGHT),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("BACKGROUND", (0, slab_header_row), (-1, slab_header_row), GREY_LIGHT),
        ("FONTNAME", (0, slab_header_row), (-1, slab_header_row), "Helvetica-Bold"),
        ("FONTNAME", (0, -3), (-1, -1), "Helvetica-Bold"),
        ("ALIGN", (3, 0), (3, -1), "LEFT"),
        ("FONTSIZE", (3, 1), (3, -1), 7),
    ]

    t = Table(data, colWidths=[65 * mm, 40 * mm, 40 * mm, 35 * mm], repeatRows=1)
    t.setStyle(TableStyle(style_cmds))
    return t


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def generate_projection_report(
    inputs: ProjectionInput,
    result: ProjectionResult,
    slabs: Sequence[SlabRow] | None = None,
) -> BytesIO:
    """
    Generate the four-section LeaseWise PDF report.

    Landscape A4 so the year-by-year grid fits up to ~10 year columns.

    Args:
        inputs: the ProjectionInput the result was computed from.
        result: ProjectionResult from project().
        slabs: slab table used for the result (labels only); None → default table.

    Returns:
        BytesIO buffer at position 0, ready for StreamingResponse.
    """
    if slabs is None:
        slabs = default_slabs()

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        leftMargin=20 * mm,
        rightMargin=20 * mm,
        topMargin=15 * mm,
        bottomMargin=15 * mm,
        title="Car Lease vs Buy Analysis",
    )

    styles = getSampleStyleSheet()
    story = []

    # -----------------------------------------------------------------------
    # Header
    # -----------------------------------------------------------------------

    title_style = ParagraphStyle(
        "report_title",
        parent=styles["Heading1"],
        fontSize=18,
        fontName="Helvetica-Bold",
    )
    story.append(Paragraph("LeaseWise — Car Lease vs Buy Analysis", title_style))
    story.append(
        Paragraph(
            f"Report generated: {datetime.date.today().strftime('%d %B %Y')}",
            styles["Normal"],
        )
    )
    story.append(Spacer(1, 6 * mm))

    # -----------------------------------------------------------------------
    # 1. Verdict
    # -----------------------------------------------------------------------

    if result.recommended_option == "lease":
        verdict_text = f"LEASE is the better option — you save ₹{result.savings_amount:,}"
    else:
        verdict_text = f"BUY is the better option — you save ₹{result.savings_amount:,}"

    callout_style = ParagraphStyle(
        "callout",
        parent=styles["Normal"],
        fontSize=14,
        fontName="Helvetica-Bold",
    )
    callout_table = Table([[Paragraph(verdict_text, callout_style)]], colWidths=[170 * mm])
    callout_table.setStyle(
        TableStyle([
            ("BACKGROUND", (0, 0), (-1, -1), GREEN_LIGHT),
            ("BOX", (0, 0), (-1, -1), 1, black),
            ("TOPPADDING", (0, 0), (-1, -1), 10),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 10),
            ("LEFTPADDING", (0, 0), (-1, -1), 12),
        ])
    )
    verdict_heading = Paragraph("Final Verdict: Lease vs Buy", styles["Heading2"])
    story.append(KeepTogether([
        verdict_heading, Spacer(1, 2 * mm), callout_table,
        Spacer(1, 4 * mm), _build_verdict_table(result),
    ]))
    story.append(Spacer(1, 8 * mm))

    # -----------------------------------------------------------------------
    # 2. The Big Picture (skipped for a zero-year horizon)
    # -----------------------------------------------------------------------

    if result.max_years > 0:
        heading = Paragraph("The Big Picture: Year-by-Year Cash Flow", styles["Heading2"])
        story.append(KeepTogether([heading, Spacer(1, 2 * mm), _build_cash_flow_table(result)]))
        story.append(Spacer(1, 8 * mm))

    # -----------------------------------------------------------------------
    # 3. Assumptions
    # -----------------------------------------------------------------------

    story.append(Paragraph("All Assumptions", styles["Heading2"]))
    story.append(Spacer(1, 2 * mm))
    story.append(_build_assumptions_table(inputs, result))
    story.append(Spacer(1, 8 * mm))

    # -----------------------------------------------------------------------
    # 4. Detailed tax calculation
    # -----------------------------------------------------------------------

    story.append(Paragraph("Detailed Tax Calculation", styles["Heading2"]))
    story.append(Spacer(1, 2 * mm))
    story.append(_build_tax_table(inputs, result, slabs))

    disclaimer_style = ParagraphStyle(
        "disclaimer",
        parent=styles["Normal"],
        fontSize=8,
        textColor=black,
    )
    story.append(Spacer(1, 10 * mm))
    story.append(
        Paragraph(
            "Projections assume constant tax slabs and the stated inflation and return rates. "
            "Verify figures with your employer's lease policy before signing.",
            disclaimer_style,
        )
    )

    doc.build(story)
    buffer.seek(0)  # MANDATORY: reset position before StreamingResponse reads

    logger.info(
        "PDF report generated years=%d recommended=%s",
        result.max_years,
        result.recommended_option,
    )

    return buffer
