"""
Celery configuration for the UISketch job worker.

Each job function has its own queue. Workers take one message at a time and
acknowledge it only after the attempt finishes, so a crashed worker's message
goes back to the broker. The per-function concurrency ceiling is enforced
through the job_slots table, not by worker counts.
"""
from kombu import Queue

from config.app_config import CELERY_BROKER_URL, JOB_SWEEP_INTERVAL_SECONDS

GENERATION_QUEUE = "mockup-generation"
EDIT_QUEUE = "variation-edits"


class CeleryConfig:
    """Celery configuration class."""

    broker_url = CELERY_BROKER_URL
    broker_connection_retry_on_startup = True

    # Run state lives in job_runs
    task_ignore_result = True

    task_serializer = "json"
    accept_content = ["json"]
    timezone = "UTC"
    enable_utc = True

    task_queues = (
        Queue(GENERATION_QUEUE, routing_key=GENERATION_QUEUE),
        Queue(EDIT_QUEUE, routing_key=EDIT_QUEUE),
        Queue("celery", routing_key="celery"),
    )
    task_routes = {
        "jobs.generate_mockup": {"queue": GENERATION_QUEUE},
        "jobs.edit_variation": {"queue": EDIT_QUEUE},
    }

    worker_prefetch_multiplier = 1
    task_acks_late = True
    task_reject_on_worker_lost = True
    task_track_started = True

    worker_log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    beat_schedule = {
        "resume-incomplete-job-runs": {
            "task": "jobs.resume_incomplete",
            "schedule": JOB_SWEEP_INTERVAL_SECONDS,
        },
    }
