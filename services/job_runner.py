"""
Background job runs for UISketch.

Handlers subscribe to named events. JobRunner.send records a job_runs row per
subscriber and hands the run id to a dispatcher (the Celery tasks in
jobs/worker.py). A worker then calls JobRunner.execute(run_id) for a single
attempt:

- the run is claimed with a conditional update on (status, attempts) and a
  lease; a run whose lease is still live belongs to its owner and is skipped
- a function with a concurrency ceiling must also hold one of its job_slots
  rows, so the ceiling holds across every worker process
- completed step outputs are stored on the run row and each checkpoint renews
  the lease, so a retry or a takeover skips past finished steps

Delivery is at-least-once. Steps that write must be idempotent.
"""
import inspect
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set

from supabase import Client

from config.app_config import JOB_RETRY_BACKOFF_SECONDS, JOB_LEASE_SECONDS, JOB_SLOT_WAIT_SECONDS
from config.decorators import retry_on_transient_error
from models.job import JobStatus

logger = logging.getLogger(__name__)

RUNS_TABLE = "job_runs"
SLOTS_TABLE = "job_slots"
INCOMPLETE_STATUSES = (JobStatus.QUEUED.value, JobStatus.RUNNING.value)
FREE_SLOT = ""

# dispatcher(function_id, run_id, countdown_seconds)
Dispatcher = Callable[[str, str, Optional[float]], None]


@retry_on_transient_error
def _execute(query):
    return query.execute()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_time(value: Any) -> Optional[datetime]:
    if not value:
        return None
    parsed = value if isinstance(value, datetime) else datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _expired(deadline: Any) -> bool:
    parsed = _parse_time(deadline)
    return parsed is None or parsed <= _now()


class JobDispatchError(Exception):
    """The run was recorded but could not be handed to a worker."""


class JobLeaseLost(Exception):
    """Another worker took over the run while this one was executing it."""


class RunAction(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    RETRY = "retry"
    DEFERRED = "deferred"
    SKIPPED = "skipped"


@dataclass
class JobOutcome:
    action: RunAction
    retry_in: Optional[float] = None


class JobLogAdapter(logging.LoggerAdapter):
    def process(self, msg, kwargs):
        return f"[job {self.extra['function_id']}/{self.extra['run_id']}] {msg}", kwargs


@dataclass
class JobFunction:
    id: str
    event: str
    handler: Callable[["JobContext"], Awaitable[Any]]
    retries: int = 0
    concurrency: Optional[int] = None

    async def __call__(self, ctx: "JobContext") -> Any:
        return await self.handler(ctx)


def job_function(id: str, event: str, retries: int = 0, concurrency: Optional[int] = None):
    """
    Declare an async handler as a background job.

        @job_function(id="generate-mockup", event="mockup/generation.requested", retries=3)
        async def generate_mockup(ctx): ...
    """
    def decorator(handler):
        return JobFunction(id=id, event=event, handler=handler, retries=retries, concurrency=concurrency)
    return decorator


class StepRunner:
    """
    Memoizes step outputs for one run. A step that already completed on an
    earlier attempt returns its stored output without running again.
    Outputs must be JSON-serializable.
    """

    def __init__(self, run_id: str, steps: Dict[str, Any], persist: Callable[[str, Dict[str, Any]], None],
                 log: logging.LoggerAdapter):
        self.run_id = run_id
        self.steps = steps
        self._persist = persist
        self._log = log

    async def run(self, step_id: str, fn: Callable[[], Any]) -> Any:
        if step_id in self.steps:
            self._log.info(f"Step {step_id} already completed, reusing its output")
            return self.steps[step_id]

        self._log.info(f"Running step {step_id}")
        result = fn()
        if inspect.isawaitable(result):
            result = await result

        self.steps[step_id] = result
        self._persist(self.run_id, self.steps)
        return result


@dataclass
class JobContext:
    run_id: str
    event_name: str
    data: Dict[str, Any]
    attempt: int
    step: StepRunner
    services: Any
    logger: logging.LoggerAdapter


class JobRunner:
    def __init__(self, supabase_client: Client, functions: Iterable[JobFunction], services: Any = None,
                 dispatcher: Optional[Dispatcher] = None,
                 backoff_seconds: float = JOB_RETRY_BACKOFF_SECONDS,
                 lease_seconds: float = JOB_LEASE_SECONDS,
                 slot_wait_seconds: float = JOB_SLOT_WAIT_SECONDS):
        self.supabase = supabase_client
        self.services = services
        self.dispatcher = dispatcher
        self.backoff_seconds = backoff_seconds
        self.lease_seconds = lease_seconds
        self.slot_wait_seconds = slot_wait_seconds
        self._functions: Dict[str, JobFunction] = {}
        self._subscribers: Dict[str, List[JobFunction]] = {}
        self._slots_ready: Set[str] = set()

        for fn in functions:
            self._functions[fn.id] = fn
            self._subscribers.setdefault(fn.event, []).append(fn)

        logger.info(f"JobRunner initialized with functions: {list(self._functions.keys())}")

    # Dispatch

    async def send(self, event_name: str, data: Dict[str, Any]) -> List[str]:
        """
        Record and dispatch one run per function subscribed to the event.
        Returns the run ids without waiting for the runs.

        Raises:
            JobDispatchError: If a run could not be handed to the queue. That
                run is marked FAILED before the error is raised.
        """
        subscribers = self._subscribers.get(event_name, [])
        if not subscribers:
            logger.warning(f"No job functions subscribed to event {event_name}")
            return []

        run_ids = []
        for fn in subscribers:
            now = _now().isoformat()
            response = _execute(self.supabase.table(RUNS_TABLE).insert({
                "function_id": fn.id,
                "event_name": event_name,
                "payload": data,
                "status": JobStatus.QUEUED.value,
                "attempts": 0,
                "steps": {},
                "created_at": now,
                "updated_at": now,
            }))
            run = response.data[0]

            try:
                self._dispatch(fn, run["id"])
            except Exception as e:
                logger.error(f"Could not dispatch run {run['id']} of {fn.id}: {e}", exc_info=True)
                self._update_run(run["id"], {"status": JobStatus.FAILED.value, "error": f"Dispatch failed: {e}"})
                raise JobDispatchError(f"Could not dispatch {fn.id} for event {event_name}") from e

            run_ids.append(run["id"])
            logger.info(f"Queued run {run['id']} of {fn.id} for event {event_name}")

        return run_ids

    async def get_run(self, run_id: str) -> Optional[Dict[str, Any]]:
        response = _execute(self.supabase.table(RUNS_TABLE).select("*").eq("id", run_id).limit(1))
        return response.data[0] if response.data else None

    async def resume_incomplete(self) -> int:
        """
        Re-dispatch runs no worker is attending to: RUNNING runs whose lease
        has expired and QUEUED runs untouched for a whole lease period.
        Completed steps are not repeated.
        """
        response = _execute(self.supabase.table(RUNS_TABLE).select("*").in_("status", list(INCOMPLETE_STATUSES)))
        resumed = 0
        for run in response.data or []:
            fn = self._functions.get(run["function_id"])
            if fn is None:
                logger.warning(f"Run {run['id']} belongs to unknown function {run['function_id']}, skipping")
                continue
            if not self._is_unattended(run):
                continue
            self._dispatch(fn, run["id"])
            resumed += 1

        if resumed:
            logger.info(f"Resumed {resumed} incomplete job run(s)")
        return resumed

    def _dispatch(self, fn: JobFunction, run_id: str, countdown: Optional[float] = None) -> None:
        if self.dispatcher is None:
            raise RuntimeError("JobRunner has no dispatcher configured")
        self.dispatcher(fn.id, run_id, countdown)

    def _is_unattended(self, run: Dict[str, Any]) -> bool:
        if run["status"] == JobStatus.RUNNING.value:
            return _expired(run.get("lease_expires_at"))
        touched = _parse_time(run.get("updated_at"))
        return touched is None or touched + timedelta(seconds=self.lease_seconds) <= _now()

    # Execution

    async def execute(self, run_id: str) -> JobOutcome:
        """
        Run one attempt of a recorded run. The outcome tells the caller
        whether to deliver the run again and after how long.
        """
        run = await self.get_run(run_id)
        if run is None:
            logger.warning(f"Job run {run_id} not found")
            return JobOutcome(RunAction.SKIPPED)

        fn = self._functions.get(run["function_id"])
        if fn is None:
            logger.warning(f"Run {run_id} belongs to unknown function {run['function_id']}, skipping")
            return JobOutcome(RunAction.SKIPPED)

        log = JobLogAdapter(logger, {"function_id": fn.id, "run_id": run_id})
        if run["status"] not in INCOMPLETE_STATUSES:
            log.info(f"Already {run['status']}, nothing to do")
            return JobOutcome(RunAction.SKIPPED)
        if run["status"] == JobStatus.RUNNING.value and not _expired(run.get("lease_expires_at")):
            log.info("Held by another worker, skipping")
            return JobOutcome(RunAction.SKIPPED)

        slot = self._acquire_slot(fn, run_id)
        if fn.concurrency and slot is None:
            log.info(f"All {fn.concurrency} slot(s) busy, deferring for {self.slot_wait_seconds} seconds")
            self._update_run(run_id, {})
            return JobOutcome(RunAction.DEFERRED, retry_in=self.slot_wait_seconds)

        try:
            token = uuid.uuid4().hex
            attempts = (run.get("attempts") or 0) + 1
            claimed = _execute(
                self.supabase.table(RUNS_TABLE).update({
                    "status": JobStatus.RUNNING.value,
                    "attempts": attempts,
                    "lease_owner": token,
                    "lease_expires_at": self._lease_deadline(),
                    "updated_at": _now().isoformat(),
                })
                .eq("id", run_id)
                .eq("status", run["status"])
                .eq("attempts", run.get("attempts") or 0)
            )
            if not claimed.data:
                log.info("Claimed by another worker, skipping")
                return JobOutcome(RunAction.SKIPPED)

            return await self._attempt(fn, claimed.data[0], attempts, token, slot, log)
        finally:
            self._release_slot(fn, run_id, slot)

    async def _attempt(self, fn: JobFunction, run: Dict[str, Any], attempts: int, token: str,
                       slot: Optional[int], log: logging.LoggerAdapter) -> JobOutcome:
        run_id = run["id"]
        max_attempts = fn.retries + 1
        log.info(f"Starting attempt {attempts}/{max_attempts}")

        def checkpoint(run_id: str, steps: Dict[str, Any]) -> None:
            if not self._update_owned(run_id, token, {"steps": steps, "lease_expires_at": self._lease_deadline()}):
                raise JobLeaseLost(run_id)
            self._renew_slot(fn, run_id, slot)

        ctx = JobContext(
            run_id=run_id,
            event_name=run["event_name"],
            data=run.get("payload") or {},
            attempt=attempts,
            step=StepRunner(run_id, dict(run.get("steps") or {}), checkpoint, log),
            services=self.services,
            logger=log,
        )

        released = {"lease_owner": None, "lease_expires_at": None}
        try:
            result = await fn(ctx)
        except JobLeaseLost:
            log.warning("Lease lost to another worker, abandoning this attempt")
            return JobOutcome(RunAction.SKIPPED)
        except Exception as e:
            if attempts < max_attempts:
                delay = self.backoff_seconds * (2 ** (attempts - 1))
                log.warning(f"Attempt {attempts} failed: {e}. Retrying in {delay} seconds...")
                self._update_owned(run_id, token, {"status": JobStatus.QUEUED.value, "error": str(e), **released})
                return JobOutcome(RunAction.RETRY, retry_in=delay)

            log.error(f"Failed after {attempts} attempt(s): {e}", exc_info=True)
            self._update_owned(run_id, token, {"status": JobStatus.FAILED.value, "error": str(e), **released})
            return JobOutcome(RunAction.FAILED)

        if not self._update_owned(run_id, token, {
            "status": JobStatus.COMPLETED.value, "result": result, "error": None, **released
        }):
            log.warning("Finished after losing the lease, result discarded")
            return JobOutcome(RunAction.SKIPPED)

        log.info("Completed")
        return JobOutcome(RunAction.COMPLETED)

    # Concurrency slots

    def _ensure_slots(self, fn: JobFunction) -> None:
        if fn.id in self._slots_ready:
            return
        rows = [{"function_id": fn.id, "slot": i, "holder": FREE_SLOT} for i in range(fn.concurrency)]
        _execute(self.supabase.table(SLOTS_TABLE).upsert(rows, on_conflict="function_id,slot", ignore_duplicates=True))
        self._slots_ready.add(fn.id)

    def _acquire_slot(self, fn: JobFunction, run_id: str) -> Optional[int]:
        if not fn.concurrency:
            return None
        self._ensure_slots(fn)

        response = _execute(self.supabase.table(SLOTS_TABLE).select("*").eq("function_id", fn.id).order("slot"))
        for slot in response.data or []:
            if slot["slot"] >= fn.concurrency:
                continue
            holder = slot.get("holder") or FREE_SLOT
            if holder != FREE_SLOT and not _expired(slot.get("lease_expires_at")):
                continue
            claimed = _execute(
                self.supabase.table(SLOTS_TABLE)
                .update({"holder": run_id, "lease_expires_at": self._lease_deadline()})
                .eq("function_id", fn.id)
                .eq("slot", slot["slot"])
                .eq("holder", holder)
            )
            if claimed.data:
                return slot["slot"]
        return None

    def _renew_slot(self, fn: JobFunction, run_id: str, slot: Optional[int]) -> None:
        if slot is None:
            return
        _execute(
            self.supabase.table(SLOTS_TABLE)
            .update({"lease_expires_at": self._lease_deadline()})
            .eq("function_id", fn.id).eq("slot", slot).eq("holder", run_id)
        )

    def _release_slot(self, fn: JobFunction, run_id: str, slot: Optional[int]) -> None:
        if slot is None:
            return
        try:
            _execute(
                self.supabase.table(SLOTS_TABLE)
                .update({"holder": FREE_SLOT, "lease_expires_at": None})
                .eq("function_id", fn.id).eq("slot", slot).eq("holder", run_id)
            )
        except Exception as e:
            # The slot frees itself when its lease runs out
            logger.error(f"Could not release slot {slot} of {fn.id}: {e}")

    # Persistence

    def _lease_deadline(self) -> str:
        return (_now() + timedelta(seconds=self.lease_seconds)).isoformat()

    def _update_owned(self, run_id: str, token: str, fields: Dict[str, Any]) -> bool:
        response = _execute(
            self.supabase.table(RUNS_TABLE)
            .update({**fields, "updated_at": _now().isoformat()})
            .eq("id", run_id)
            .eq("lease_owner", token)
        )
        return bool(response.data)

    def _update_run(self, run_id: str, fields: Dict[str, Any]) -> None:
        _execute(self.supabase.table(RUNS_TABLE).update({**fields, "updated_at": _now().isoformat()}).eq("id", run_id))
