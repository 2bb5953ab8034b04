# reports/profitability.py
"""
Project profitability.

Billed and cost totals exclude rejected events. Percentages are rounded to
two places and are zero when their denominator is zero.
"""

from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Sum

from projects.models import BillableEvent, Project
from wip.models import WipSnapshot


ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def _ratio(part: Decimal, whole: Decimal) -> Decimal:
    if not whole:
        return ZERO
    return (part / whole * HUNDRED).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _live_total(related) -> Decimal:
    total = related.exclude(status=BillableEvent.Status.REJECTED).aggregate(total=Sum("amount"))["total"]
    return total or ZERO


def project_profitability(project: Project) -> dict:
    billed = _live_total(project.billings)
    costs = _live_total(project.costs)
    gross_profit = billed - costs

    snapshot = WipSnapshot.objects.latest_for(project)
    completion = snapshot.completion_percentage if snapshot else project.progress

    return {
        "project_id": project.pk,
        "project_code": project.code,
        "project_name": project.name,
        "status": project.status,
        "total_value": project.total_value,
        "total_billed": billed,
        "total_costs": costs,
        "gross_profit": gross_profit,
        "profit_margin": _ratio(gross_profit, billed),
        "cost_ratio": _ratio(costs, billed),
        "roi": _ratio(gross_profit, costs),
        "completion_percentage": completion,
        "is_profitable": gross_profit > 0,
    }


def profitability_summary(statuses=None) -> dict:
    """Profitability of every project plus portfolio totals."""
    projects = Project.objects.order_by("code")
    if statuses:
        projects = projects.filter(status__in=list(statuses))

    rows = [project_profitability(project) for project in projects]

    billed = sum((r["total_billed"] for r in rows), ZERO)
    costs = sum((r["total_costs"] for r in rows), ZERO)
    gross_profit = billed - costs
    return {
        "projects": rows,
        "total_projects": len(rows),
        "profitable_projects": sum(1 for r in rows if r["is_profitable"]),
        "total_billed": billed,
        "total_costs": costs,
        "gross_profit": gross_profit,
        "profit_margin": _ratio(gross_profit, billed),
    }
