"""Tests for the forecast calculation engine."""
import pytest

from app.forecast.engine import (
    WhatIfParams,
    apply_percentage,
    apply_what_if,
    default_month_ranges,
    distribute_annual_amount,
    generate_month_keys,
    month_range,
    summarize_lines,
    version_notes,
)


# =============================================================================
# Months
# =============================================================================

class TestMonthKeys:

    def test_financial_year_runs_july_to_june(self):
        months = generate_month_keys(2025, "FY")

        assert len(months) == 12
        assert months[0] == "2024-07"
        assert months[5] == "2024-12"
        assert months[6] == "2025-01"
        assert months[-1] == "2025-06"

    def test_calendar_year(self):
        months = generate_month_keys(2025, "CY")

        assert months[0] == "2025-01"
        assert months[-1] == "2025-12"

    def test_month_range_crosses_year_boundary(self):
        assert month_range("2024-11", "2025-02") == ["2024-11", "2024-12", "2025-01", "2025-02"]

    def test_month_range_single_month(self):
        assert month_range("2025-03", "2025-03") == ["2025-03"]

    def test_default_ranges(self):
        ranges = default_month_ranges(2025, "FY")

        assert ranges["actual_start_month"] == "2024-07"
        assert ranges["actual_end_month"] == "2024-07"
        assert ranges["forecast_start_month"] == "2024-07"
        assert ranges["forecast_end_month"] == "2025-06"
        assert ranges["baseline_start_month"] == "2023-07"
        assert ranges["baseline_end_month"] == "2024-06"


# =============================================================================
# Distribution
# =============================================================================

class TestDistributeAnnualAmount:

    def test_even_split(self):
        months = generate_month_keys(2025, "FY")
        result = distribute_annual_amount(120000, months)

        assert len(result) == 12
        assert all(value == 10000 for value in result.values())

    def test_start_month_zeroes_earlier_months(self):
        months = generate_month_keys(2025, "FY")
        result = distribute_annual_amount(60000, months, start_month="2025-01")

        assert result["2024-07"] == 0
        assert result["2024-12"] == 0
        assert result["2025-01"] == 10000
        assert result["2025-06"] == 10000

    def test_rounds_half_up_to_cents(self):
        result = distribute_annual_amount(100, ["2025-01", "2025-02", "2025-03"])

        assert result["2025-01"] == pytest.approx(33.33)

        result = distribute_annual_amount(0.25, ["2025-01", "2025-02"])
        assert result["2025-01"] == pytest.approx(0.13)

    def test_start_month_after_range_uses_every_month(self):
        months = ["2025-01", "2025-02"]
        result = distribute_annual_amount(200, months, start_month="2026-01")

        assert result == {"2025-01": 100, "2025-02": 100}

    def test_no_months(self):
        assert distribute_annual_amount(1000, []) == {}


# =============================================================================
# What-if
# =============================================================================

class TestWhatIf:

    def test_apply_percentage(self):
        result = apply_percentage({"2025-01": 100, "2025-02": 200}, 10)

        assert result["2025-01"] == pytest.approx(110)
        assert result["2025-02"] == pytest.approx(220)

    def test_missing_values_count_as_zero(self):
        assert apply_percentage({"2025-01": None}, 50) == {"2025-01": 0}

    def test_negative_change(self):
        result = apply_percentage({"2025-01": 1000}, -25)
        assert result["2025-01"] == pytest.approx(750)

    def test_category_mapping(self):
        params = WhatIfParams(revenue_change=10, cogs_change=-5, opex_change=20)

        revenue = {"category": "Revenue", "forecast_months": {"2025-01": 1000}}
        cogs = {"category": "Cost of Sales", "forecast_months": {"2025-01": 1000}}
        opex = {"category": "Operating Expenses", "forecast_months": {"2025-01": 1000}}
        other = {"category": "Other Income", "forecast_months": {"2025-01": 1000}}

        assert apply_what_if(revenue, params)["2025-01"] == pytest.approx(1100)
        assert apply_what_if(cogs, params)["2025-01"] == pytest.approx(950)
        assert apply_what_if(opex, params)["2025-01"] == pytest.approx(1200)
        assert apply_what_if(other, params)["2025-01"] == 1000

    def test_from_multipliers(self):
        params = WhatIfParams.from_multipliers("1.15", "1", "0.9")

        assert params.revenue_change == pytest.approx(15)
        assert params.cogs_change == pytest.approx(0)
        assert params.opex_change == pytest.approx(-10)

    def test_version_notes(self):
        assert version_notes(None) == "Manual version creation"
        assert version_notes(WhatIfParams(10, -5, 2.5)) == (
            "Created from What-If: Revenue 10%, COGS -5pp, OpEx 2.5%"
        )


# =============================================================================
# Summaries
# =============================================================================

class TestSummarizeLines:

    @pytest.fixture
    def lines(self):
        return [
            {"category": "Revenue", "forecast_months": {"2025-01": 10000, "2025-02": 10000}},
            {"category": "Cost of Sales", "forecast_months": {"2025-01": 4000, "2025-02": 4000}},
            {"category": "Operating Expenses", "forecast_months": {"2025-01": 3000, "2025-02": 3000}},
            {"category": "Other Income", "forecast_months": {"2025-01": 500}},
            {"category": "Other Expenses", "forecast_months": {"2025-02": 500}},
        ]

    def test_totals(self, lines):
        summary = summarize_lines(lines)

        assert summary["revenue"] == 20000
        assert summary["cogs"] == 8000
        assert summary["gross_profit"] == 12000
        assert summary["gross_margin_percent"] == 60.0
        assert summary["opex"] == 6000
        assert summary["net_profit"] == 6000
        assert summary["net_margin_percent"] == 30.0

    def test_with_multipliers(self, lines):
        summary = summarize_lines(lines, multipliers=WhatIfParams(revenue_change=10))

        assert summary["revenue"] == pytest.approx(22000)
        assert summary["gross_profit"] == pytest.approx(14000)

    def test_uncategorised_lines_count_as_opex(self):
        summary = summarize_lines([{"category": None, "forecast_months": {"2025-01": 100}}])
        assert summary["opex"] == 100

    def test_zero_revenue_margins(self):
        summary = summarize_lines([])

        assert summary["revenue"] == 0
        assert summary["gross_margin_percent"] == 0
        assert summary["net_margin_percent"] == 0

    def test_actual_months(self):
        lines = [{"category": "Revenue", "forecast_months": {}, "actual_months": {"2024-07": 5000}}]
        assert summarize_lines(lines, field="actual_months")["revenue"] == 5000
