"""
Celery worker for UISketch background jobs.

    celery -A jobs.worker worker -Q mockup-generation,variation-edits
    celery -A jobs.worker beat

A task delivery runs one attempt of a job_runs row. Failed attempts come back
through the task's own retry budget; runs waiting for a concurrency slot are
queued again without spending it. Runs whose messages were lost are picked up
by the periodic resume task.
"""
import asyncio
import logging
from typing import Optional

from celery import Celery

from config.app_config import GENERATION_JOB_RETRIES, EDIT_JOB_RETRIES
from config.celery_config import CeleryConfig
from services.job_runner import RunAction

logger = logging.getLogger(__name__)

celery = Celery("uisketch")
celery.config_from_object(CeleryConfig)


def _runner():
    # jobs.client imports this module for enqueue
    from jobs.client import get_job_runner
    return get_job_runner()


def _deliver(task, run_id: str) -> str:
    outcome = asyncio.run(_runner().execute(run_id))

    if outcome.action == RunAction.RETRY:
        raise task.retry(countdown=outcome.retry_in)
    if outcome.action == RunAction.DEFERRED:
        task.apply_async(args=[run_id], countdown=outcome.retry_in)

    return outcome.action.value


@celery.task(bind=True, name="jobs.generate_mockup", max_retries=GENERATION_JOB_RETRIES)
def generate_mockup_task(self, run_id: str) -> str:
    return _deliver(self, run_id)


@celery.task(bind=True, name="jobs.edit_variation", max_retries=EDIT_JOB_RETRIES)
def edit_variation_task(self, run_id: str) -> str:
    return _deliver(self, run_id)


@celery.task(name="jobs.resume_incomplete")
def resume_incomplete_task() -> int:
    return asyncio.run(_runner().resume_incomplete())


TASKS = {
    "generate-mockup": generate_mockup_task,
    "edit-variation": edit_variation_task,
}


def enqueue(function_id: str, run_id: str, countdown: Optional[float] = None) -> None:
    """Dispatcher for JobRunner: publish one delivery of a run to its queue."""
    TASKS[function_id].apply_async(args=[run_id], countdown=countdown)
    logger.debug(f"Published run {run_id} of {function_id}")
