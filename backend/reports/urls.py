from django.urls import path

from .views import (
    AccountBalancesView,
    BalanceSheetView,
    CashFlowStatementView,
    ComparativeBalanceSheetView,
    ComparativeCashFlowView,
    ProfitabilitySummaryView,
    ProjectProfitabilityView,
)

app_name = "reports"

urlpatterns = [
    path("cash-flow/", CashFlowStatementView.as_view(), name="cash-flow"),
    path("cash-flow/comparative/", ComparativeCashFlowView.as_view(), name="cash-flow-comparative"),
    path("balance-sheet/", BalanceSheetView.as_view(), name="balance-sheet"),
    path("balance-sheet/comparative/", ComparativeBalanceSheetView.as_view(), name="balance-sheet-comparative"),
    path("profitability/", ProfitabilitySummaryView.as_view(), name="profitability"),
    path("profitability/<int:pk>/", ProjectProfitabilityView.as_view(), name="project-profitability"),
    path("balances/", AccountBalancesView.as_view(), name="balances"),
]
