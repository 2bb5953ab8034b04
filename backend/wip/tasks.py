"""
Celery tasks for WIP recalculation.

Tasks:
- recalculate_all_projects_wip: Batch recalculation of active projects
- recalculate_project_wip: Recalculate a single project

Usage:
    from wip.tasks import recalculate_all_projects_wip
    recalculate_all_projects_wip.delay()

    # Scheduled nightly via CELERY_BEAT_SCHEDULE in settings
"""
import logging
from typing import Optional

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(bind=True)
def recalculate_all_projects_wip(self, statuses: Optional[list] = None) -> dict:
    """
    Recalculate WIP for every active project.

    Failures are counted in the result; the task itself does not retry,
    so a failing project waits for the next scheduled run.

    Args:
        statuses: Project statuses to include (default WIP["ACTIVE_PROJECT_STATUSES"])

    Returns:
        {"processed", "succeeded", "failed", "failures"}
    """
    from wip.engine import default_engine

    logger.info("Starting batch WIP recalculation", extra={"statuses": statuses})
    return default_engine.recalculate_all(statuses=statuses)


@shared_task(bind=True)
def recalculate_project_wip(self, project_id: int, notes: str = "") -> dict:
    """
    Recalculate WIP for one project.

    Returns:
        Dict with the new snapshot id and WIP value, or the error
    """
    from accounting.exceptions import LedgerError
    from wip.engine import default_engine

    try:
        snapshot = default_engine.recalculate_project(project_id, notes=notes)
    except LedgerError as e:
        logger.error("WIP recalculation failed", extra={"project_id": project_id, "error": str(e)})
        return {"project_id": project_id, "error": str(e)}

    return {
        "project_id": project_id,
        "snapshot_id": snapshot.pk,
        "wip_value": str(snapshot.wip_value),
    }
