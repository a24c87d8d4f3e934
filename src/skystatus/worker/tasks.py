from __future__ import annotations

# Ensure all models are registered before any task runs
# isort: off
import skystatus.models  # noqa: F401
# isort: on

import time

from skystatus.core.logging import (
    get_logger,
    log_event,
    log_exception,
    monotonic_ms,
    reset_task_context,
    set_task_context,
)
from skystatus.worker.celery_app import celery_app

logger = get_logger(__name__)


@celery_app.task(name="parse_statement", bind=True)
def parse_statement_task(self, import_run_id: str) -> None:
    from skystatus.modules.imports.service import parse_import_run

    task_id = getattr(self.request, "id", None)
    token = set_task_context(task_id)
    start = time.monotonic()
    log_event(
        logger,
        "celery.task.start",
        task_name="parse_statement",
        celery_task_id=task_id,
        import_run_id=import_run_id,
    )
    try:
        parse_import_run(import_run_id=import_run_id)
        log_event(
            logger,
            "celery.task.finish",
            task_name="parse_statement",
            celery_task_id=task_id,
            import_run_id=import_run_id,
            duration_ms=monotonic_ms(start),
        )
    except Exception:
        log_exception(
            logger,
            "celery.task.error",
            task_name="parse_statement",
            celery_task_id=task_id,
            import_run_id=import_run_id,
            duration_ms=monotonic_ms(start),
        )
        raise
    finally:
        reset_task_context(token)
