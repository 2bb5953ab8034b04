# wip/aggregations.py
"""
Read-side analytics over WIP snapshots.

All portfolio views work on the latest snapshot per project (greatest
(date, id)), optionally as of a date. Nothing here writes.
"""

import calendar
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from accounting.clock import SystemClock
from projects.models import Project
from wip.models import WipSnapshot


ZERO = Decimal("0.00")
HUNDRED = Decimal("100")

AGE_BUCKETS = [
    ("0-30", "0-30 days", 0, 30),
    ("31-60", "31-60 days", 31, 60),
    ("61-90", "61-90 days", 61, 90),
    ("90+", "90+ days", 91, None),
]

# (category, exclusive upper bound on risk score)
RISK_CATEGORIES = [
    ("low", 20),
    ("medium", 50),
    ("high", 75),
    ("critical", None),
]


def _percent(part: Decimal, total: Decimal) -> Decimal:
    if not total:
        return ZERO
    return (part / total * HUNDRED).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def add_months(day: date, months: int) -> date:
    """First day of the month ``months`` after ``day``'s month."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def latest_snapshots(as_of: date = None):
    return (
        WipSnapshot.objects.latest_per_project(as_of=as_of)
        .select_related("project", "project__client")
        .order_by("project_id")
    )


def wip_history(project, start: date = None, end: date = None, limit: int = None) -> list:
    """Snapshots of a project in [start, end], newest first."""
    project_id = getattr(project, "pk", project)
    qs = WipSnapshot.objects.filter(project_id=project_id)
    if start is not None:
        qs = qs.filter(date__gte=start)
    if end is not None:
        qs = qs.filter(date__lte=end)
    qs = qs.order_by("-date", "-id")
    if limit:
        qs = qs[:limit]
    return list(qs)


def aging_analysis(as_of: date = None) -> list[dict]:
    """
    WIP grouped by project age: 0-30, 31-60, 61-90, 90+ days.

    Percent is each bucket's share of the total WIP across buckets.
    """
    buckets = {
        key: {"bucket": key, "label": label, "project_count": 0, "amount": ZERO}
        for key, label, _, _ in AGE_BUCKETS
    }
    for snapshot in latest_snapshots(as_of):
        for key, _, low, high in AGE_BUCKETS:
            if snapshot.age_in_days >= low and (high is None or snapshot.age_in_days <= high):
                buckets[key]["project_count"] += 1
                buckets[key]["amount"] += snapshot.wip_value
                break

    total = sum((b["amount"] for b in buckets.values()), ZERO)
    result = []
    for key, _, _, _ in AGE_BUCKETS:
        bucket = buckets[key]
        bucket["percent"] = _percent(bucket["amount"], total)
        result.append(bucket)
    return result


def risk_category(score: int) -> str:
    for name, upper in RISK_CATEGORIES:
        if upper is None or score < upper:
            return name
    return RISK_CATEGORIES[-1][0]


def risk_analysis(as_of: date = None) -> dict:
    """
    Projects grouped by risk: low <20, medium <50, high <75, critical.
    """
    categories = {
        name: {"projects": [], "total_wip_value": ZERO}
        for name, _ in RISK_CATEGORIES
    }
    snapshots = list(latest_snapshots(as_of))
    for snapshot in snapshots:
        project = snapshot.project
        category = categories[risk_category(snapshot.risk_score)]
        category["projects"].append({
            "id": project.pk,
            "code": project.code,
            "name": project.name,
            "client_name": project.client.name,
            "status": project.status,
            "wip_value": snapshot.wip_value,
            "risk_score": snapshot.risk_score,
            "age_in_days": snapshot.age_in_days,
            "total_value": project.total_value,
            "wip_percentage": _percent(snapshot.wip_value, project.total_value),
        })
        category["total_wip_value"] += snapshot.wip_value

    total = sum((c["total_wip_value"] for c in categories.values()), ZERO)
    for category in categories.values():
        category["percentage"] = _percent(category["total_wip_value"], total)
        category["project_count"] = len(category["projects"])

    return {
        "categories": categories,
        "total_wip_value": total,
        "total_projects": len(snapshots),
    }


def trend(start: date = None, end: date = None, clock=None) -> list[dict]:
    """
    Month-end series of total WIP.

    Each point sums the latest-as-of-month-end snapshot of every project,
    with the change from the previous point. Defaults to the six months
    ending with the current month.
    """
    clock = clock or SystemClock()
    today = clock.today()
    end = end or today
    start = start or add_months(end, -5)

    points = []
    previous_total = None
    cursor = date(start.year, start.month, 1)
    while cursor <= end:
        as_of = min(month_end(cursor.year, cursor.month), end)
        snapshots = list(latest_snapshots(as_of))
        total = sum((s.wip_value for s in snapshots), ZERO)

        change = ZERO if previous_total is None else total - previous_total
        points.append({
            "month": f"{cursor.year}-{cursor.month:02d}",
            "date": as_of,
            "total_wip": total,
            "project_count": len(snapshots),
            "change": change,
            "change_percent": _percent(change, previous_total) if previous_total else ZERO,
        })
        previous_total = total
        cursor = add_months(cursor, 1)
    return points


def cash_flow_projection(months: int = 3, clock=None) -> dict:
    """
    Expected billing per future month from positive WIP of active projects.

    A project whose end date falls on or before a month's end bills all of
    its remaining WIP that month; otherwise it bills at its average monthly
    progress rate, capped by the remaining WIP.
    """
    clock = clock or SystemClock()
    today = clock.today()
    months = max(1, int(months))

    projects = list(
        Project.objects.filter(status__in=[Project.Status.PLANNED, Project.Status.ONGOING])
        .order_by("id")
    )
    current_wip = {}
    for project in projects:
        snapshot = WipSnapshot.objects.latest_for(project, as_of=today)
        current_wip[project.pk] = snapshot.wip_value if snapshot else ZERO
    remaining = {pk: value for pk, value in current_wip.items() if value > 0}

    projections = []
    for offset in range(months):
        first_day = add_months(today, offset)
        period_end = month_end(first_day.year, first_day.month)
        month = {
            "month": f"{period_end.year}-{period_end.month:02d}",
            "date": period_end,
            "expected_billings": ZERO,
            "projects": [],
        }
        for project in projects:
            left = remaining.get(project.pk, ZERO)
            if left <= 0:
                continue

            completes = project.end_date is not None and project.end_date <= period_end
            if completes:
                expected = left
            else:
                months_elapsed = max(1, (today - project.start_date).days // 30)
                rate = project.progress / months_elapsed
                expected = min(left, (project.total_value * rate / HUNDRED).quantize(Decimal("0.01")))
            if expected <= 0:
                continue

            remaining[project.pk] = left - expected
            month["expected_billings"] += expected
            month["projects"].append({
                "id": project.pk,
                "code": project.code,
                "name": project.name,
                "current_wip": left,
                "expected_billing": expected,
                "completion_expected": completes,
            })
        projections.append(month)

    return {
        "projections": projections,
        "total_projects": len(projects),
        "total_current_wip": sum(current_wip.values(), ZERO),
    }


def wip_summary(engine=None) -> dict:
    """Live portfolio totals computed from current costs and billings."""
    if engine is None:
        from wip.engine import default_engine as engine

    totals = {
        "total_projects": 0,
        "projects_with_wip": 0,
        "total_costs": ZERO,
        "total_billed": ZERO,
        "total_earned_value": ZERO,
        "total_wip": ZERO,
    }
    for project in Project.objects.prefetch_related("costs", "billings").order_by("id"):
        computation = engine.compute_wip(project)
        totals["total_projects"] += 1
        totals["total_costs"] += computation.total_costs
        totals["total_billed"] += computation.total_billed
        totals["total_earned_value"] += computation.earned_value
        totals["total_wip"] += computation.wip_value
        if abs(computation.wip_value) > Decimal("0.01"):
            totals["projects_with_wip"] += 1
    return totals
