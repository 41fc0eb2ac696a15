"""
Wires the job functions to the services they use and to the Celery queue,
and exposes the shared runner used by both the API and the worker.
"""
from dataclasses import dataclass

from auth.middleware import get_auth_middleware
from jobs.edit_variation import edit_variation
from jobs.generate_mockup import generate_mockup
from jobs.worker import enqueue
from services.generation_service import GenerationService
from services.job_runner import JobRunner
from services.mockup_service import MockupService

JOB_FUNCTIONS = [generate_mockup, edit_variation]


@dataclass
class JobServices:
    mockup_service: MockupService
    generation_service: GenerationService


# Global job runner instance - created on first use
job_runner = None

def get_job_runner() -> JobRunner:
    """Get or create the job runner"""
    global job_runner
    if job_runner is None:
        supabase = get_auth_middleware().supabase
        job_runner = JobRunner(
            supabase,
            JOB_FUNCTIONS,
            services=JobServices(
                mockup_service=MockupService(supabase),
                generation_service=GenerationService(),
            ),
            dispatcher=enqueue,
        )
    return job_runner
