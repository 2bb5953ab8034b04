# tests/test_reports.py
"""
Tests for the cash flow statement and project profitability reports.
"""

from datetime import date
from decimal import Decimal

import pytest

from reports.balance_sheet import balance_sheet, comparative_balance_sheet
from reports.cashflow import cash_balance, cash_flow_statement, comparative_cash_flow
from reports.comparison import percent_change
from reports.profitability import profitability_summary, project_profitability
from wip.models import WipSnapshot


def _post(ledger, day, debit_code, credit_code, amount, description="Test"):
    return ledger.post_journal(
        day,
        description,
        [
            {"account_code": debit_code, "direction": "debit", "amount": Decimal(amount)},
            {"account_code": credit_code, "direction": "credit", "amount": Decimal(amount)},
        ],
    )


@pytest.mark.django_db
class TestCashFlowStatement:

    @pytest.fixture
    def movements(self, chart, ledger):
        _post(ledger, date(2025, 5, 15), "1101", "3101", "1000000.00", "Paid-in capital")
        _post(ledger, date(2025, 6, 3), "1102", "1201", "300000.00", "Client payment")
        _post(ledger, date(2025, 6, 5), "2102", "1101", "50000.00", "Supplier payment")
        _post(ledger, date(2025, 6, 10), "1501", "1102", "200000.00", "Boring rig")
        _post(ledger, date(2025, 6, 12), "1101", "2201", "500000.00", "Bank loan")
        _post(ledger, date(2025, 6, 20), "1103", "1101", "100000.00", "Transfer to Mandiri")
        _post(ledger, date(2025, 7, 2), "1101", "4001", "75000.00", "Next month")

    def test_statement(self, movements):
        statement = cash_flow_statement(date(2025, 6, 1), date(2025, 6, 30))
        activities = statement["activities"]

        assert statement["opening_cash"] == Decimal("1000000.00")

        assert activities["operating"]["inflow"] == Decimal("300000.00")
        assert activities["operating"]["outflow"] == Decimal("50000.00")
        assert activities["operating"]["net"] == Decimal("250000.00")
        assert len(activities["operating"]["lines"]) == 2

        assert activities["investing"]["net"] == Decimal("-200000.00")
        assert activities["financing"]["inflow"] == Decimal("500000.00")

        assert statement["transfers"]["count"] == 2
        assert statement["transfers"]["inflow"] == statement["transfers"]["outflow"]

        assert statement["net_change"] == Decimal("550000.00")
        assert statement["closing_cash"] == Decimal("1550000.00")

    def test_closing_matches_cash_balance(self, movements):
        statement = cash_flow_statement(date(2025, 6, 1), date(2025, 6, 30))
        codes = ["1101", "1102", "1103", "1104", "1105"]

        assert statement["closing_cash"] == cash_balance(codes, through=date(2025, 6, 30))

    def test_empty_period(self, movements):
        statement = cash_flow_statement(date(2025, 1, 1), date(2025, 1, 31))

        assert statement["opening_cash"] == Decimal("0.00")
        assert statement["net_change"] == Decimal("0.00")
        assert statement["closing_cash"] == Decimal("0.00")


@pytest.mark.django_db
class TestBalanceSheet:

    @pytest.fixture
    def position(self, chart, ledger):
        _post(ledger, date(2025, 5, 15), "1101", "3101", "1000000.00", "Paid-in capital")
        _post(ledger, date(2025, 6, 10), "1501", "1101", "200000.00", "Boring rig")
        _post(ledger, date(2025, 6, 12), "1101", "2201", "500000.00", "Bank loan")
        _post(ledger, date(2025, 6, 15), "1201", "4001", "300000.00", "Invoice")
        _post(ledger, date(2025, 6, 20), "5101", "2102", "120000.00", "Subcontractor")
        _post(ledger, date(2025, 6, 25), "6101", "1601", "10000.00", "Depreciation")

    def test_sections(self, position):
        sheet = balance_sheet(date(2025, 6, 30))

        assert sheet["assets"]["current"]["total"] == Decimal("1600000.00")
        assert sheet["assets"]["non_current"]["total"] == Decimal("190000.00")
        contra = [row for row in sheet["assets"]["non_current"]["accounts"] if row["code"] == "1601"]
        assert contra[0]["balance"] == Decimal("-10000.00")

        assert sheet["liabilities"]["current"]["total"] == Decimal("120000.00")
        assert sheet["liabilities"]["non_current"]["total"] == Decimal("500000.00")

    def test_net_income_closes_into_equity(self, position):
        summary = balance_sheet(date(2025, 6, 30))["summary"]

        assert summary["net_income"] == Decimal("170000.00")
        assert summary["total_equity"] == Decimal("1170000.00")
        assert summary["total_assets"] == summary["total_liabilities_and_equity"] == Decimal("1790000.00")
        assert summary["difference"] == Decimal("0.00")
        assert summary["balanced"] is True

    def test_later_postings_excluded(self, position):
        summary = balance_sheet(date(2025, 5, 31))["summary"]

        assert summary["total_assets"] == Decimal("1000000.00")
        assert summary["total_liabilities"] == Decimal("0.00")
        assert summary["net_income"] == Decimal("0.00")

    def test_defaults_to_today(self, position, ledger):
        assert balance_sheet(ledger=ledger)["as_of"] == date(2025, 6, 30)

    def test_comparative(self, position):
        report = comparative_balance_sheet(date(2025, 6, 30), date(2025, 5, 31))

        assert report["previous_date"] == date(2025, 5, 31)
        assert report["changes"]["total_assets"] == Decimal("790000.00")
        assert report["percent_changes"]["total_assets"] == Decimal("79.00")
        assert report["changes"]["total_liabilities"] == Decimal("620000.00")
        # Nothing to compare against
        assert report["percent_changes"]["total_liabilities"] == Decimal("0.00")

    def test_comparative_cash_flow(self, position):
        report = comparative_cash_flow(date(2025, 6, 1), date(2025, 6, 30), date(2025, 5, 1), date(2025, 5, 31))

        assert report["totals"]["previous"]["financing"] == Decimal("1000000.00")
        assert report["totals"]["current"]["financing"] == Decimal("500000.00")
        assert report["changes"]["financing"] == Decimal("-500000.00")
        assert report["percent_changes"]["financing"] == Decimal("-50.00")
        assert report["changes"]["investing"] == Decimal("-200000.00")
        assert report["percent_changes"]["net_change"] == Decimal("-70.00")


class TestPercentChange:

    @pytest.mark.parametrize("change, previous, expected", [
        ("50.00", "200.00", "25.00"),
        ("-150.00", "-100.00", "-150.00"),
        ("10.00", "0.00", "0.00"),
        ("1.00", "3.00", "33.33"),
    ])
    def test_percent_change(self, change, previous, expected):
        assert percent_change(Decimal(change), Decimal(previous)) == Decimal(expected)


@pytest.mark.django_db
class TestProfitability:

    @pytest.fixture
    def activity(self, chart, project, make_billing, make_cost):
        make_billing("300000.00", status="unpaid")
        make_billing("100000.00", status="rejected")
        make_cost("200000.00", status="paid")
        make_cost("50000.00", status="rejected")
        return project

    def test_project_figures(self, activity):
        result = project_profitability(activity)

        assert result["total_billed"] == Decimal("300000.00")
        assert result["total_costs"] == Decimal("200000.00")
        assert result["gross_profit"] == Decimal("100000.00")
        assert result["profit_margin"] == Decimal("33.33")
        assert result["cost_ratio"] == Decimal("66.67")
        assert result["roi"] == Decimal("50.00")
        assert result["is_profitable"] is True
        assert result["completion_percentage"] == Decimal("0.00")

    def test_completion_from_latest_snapshot(self, activity):
        WipSnapshot.objects.create(project=activity, date=date(2025, 6, 1), completion_percentage=Decimal("20.00"))
        WipSnapshot.objects.create(project=activity, date=date(2025, 6, 30), completion_percentage=Decimal("40.00"))

        assert project_profitability(activity)["completion_percentage"] == Decimal("40.00")

    def test_no_billings(self, project):
        result = project_profitability(project)

        assert result["profit_margin"] == Decimal("0.00")
        assert result["roi"] == Decimal("0.00")
        assert result["is_profitable"] is False

    def test_summary(self, activity, make_project, make_cost):
        loss_maker = make_project()
        make_cost("80000.00", target=loss_maker)

        summary = profitability_summary()

        assert summary["total_projects"] == 2
        assert summary["profitable_projects"] == 1
        assert summary["total_billed"] == Decimal("300000.00")
        assert summary["total_costs"] == Decimal("280000.00")
        assert summary["gross_profit"] == Decimal("20000.00")

    def test_summary_status_filter(self, activity, make_project):
        make_project(status="completed")

        summary = profitability_summary(statuses=["completed"])

        assert summary["total_projects"] == 1
        assert summary["total_billed"] == Decimal("0.00")
