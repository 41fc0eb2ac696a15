import copy
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from jobs.client import JOB_FUNCTIONS, JobServices
from models.generation import ProviderResponse
from services.credit_service import CreditService
from services.generation_service import GenerationService
from services.job_runner import JobRunner, RunAction
from services.mockup_cache import MockupCache
from services.mockup_service import MockupService

VALID_HTML = '<div class="min-h-screen bg-white"><h1 class="text-2xl font-bold">Dashboard</h1></div>'


def labeled_response(*codes: str) -> str:
    blocks = [f"```html variation-{i}\n{code}\n```" for i, code in enumerate(codes, start=1)]
    return "Here are your designs:\n\n" + "\n\n".join(blocks)


class FakeQuery:
    """Just enough of the supabase-py query builder for the services under test."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.operation = "select"
        self.columns = "*"
        self.payload: Any = None
        self.on_conflict: Optional[str] = None
        self.ignore_duplicates = False
        self.filters: List = []
        self.order_by: Optional[tuple] = None
        self.limit_count: Optional[int] = None
        self.range_bounds: Optional[tuple] = None

    def select(self, columns: str = "*"):
        self.operation = "select"
        self.columns = columns
        return self

    def insert(self, data):
        self.operation = "insert"
        self.payload = data
        return self

    def update(self, data):
        self.operation = "update"
        self.payload = data
        return self

    def upsert(self, data, on_conflict: str = "id", ignore_duplicates: bool = False):
        self.operation = "upsert"
        self.payload = data
        self.on_conflict = on_conflict
        self.ignore_duplicates = ignore_duplicates
        return self

    def delete(self):
        self.operation = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc: bool = False):
        self.order_by = (column, desc)
        return self

    def limit(self, count: int):
        self.limit_count = count
        return self

    def range(self, start: int, end: int):
        self.range_bounds = (start, end)
        return self

    def _matches(self, row) -> bool:
        return all(f(row) for f in self.filters)

    def _project(self, row):
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        keys = [c.strip() for c in self.columns.split(",")]
        return {k: copy.deepcopy(row.get(k)) for k in keys}

    def execute(self):
        self.db.executed.append((self.table_name, self.operation))
        rows = self.db.tables.setdefault(self.table_name, [])

        if self.operation == "select":
            found = [r for r in rows if self._matches(r)]
            if self.order_by:
                column, desc = self.order_by
                found.sort(key=lambda r: r.get(column), reverse=desc)
            if self.range_bounds:
                start, end = self.range_bounds
                found = found[start:end + 1]
            if self.limit_count is not None:
                found = found[:self.limit_count]
            return SimpleNamespace(data=[self._project(r) for r in found])

        if self.operation == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for item in items:
                row = copy.deepcopy(item)
                row.setdefault("id", str(uuid.uuid4()))
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return SimpleNamespace(data=inserted)

        if self.operation == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self.payload))
                    updated.append(copy.deepcopy(row))
            return SimpleNamespace(data=updated)

        if self.operation == "upsert":
            keys = [k.strip() for k in self.on_conflict.split(",")]
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            result = []
            for item in items:
                existing = next((r for r in rows if all(r.get(k) == item.get(k) for k in keys)), None)
                if existing is not None and self.ignore_duplicates:
                    continue
                if existing is not None:
                    existing.update({k: v for k, v in copy.deepcopy(item).items() if k != "created_at"})
                    result.append(copy.deepcopy(existing))
                else:
                    row = copy.deepcopy(item)
                    row.setdefault("id", str(uuid.uuid4()))
                    rows.append(row)
                    result.append(copy.deepcopy(row))
            return SimpleNamespace(data=result)

        if self.operation == "delete":
            deleted = [r for r in rows if self._matches(r)]
            self.db.tables[self.table_name] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=copy.deepcopy(deleted))

        raise ValueError(f"Unsupported operation {self.operation}")


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.executed: List[tuple] = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rows(self, name: str) -> List[Dict[str, Any]]:
        return self.tables.get(name, [])


class QueueDispatcher:
    """Stands in for the Celery queues: dispatched runs wait here until worked off."""

    def __init__(self, fail_with: Optional[Exception] = None):
        self.queued: List[tuple] = []
        self.published: List[tuple] = []
        self.fail_with = fail_with

    def __call__(self, function_id: str, run_id: str, countdown: Optional[float] = None) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.queued.append((function_id, run_id))
        self.published.append((function_id, run_id, countdown))


async def work_off(runner: JobRunner, max_deliveries: int = 100) -> None:
    """Deliver queued runs one at a time, as a single worker would, until none are left."""
    queue = runner.dispatcher
    deliveries = 0
    while queue.queued:
        function_id, run_id = queue.queued.pop(0)
        outcome = await runner.execute(run_id)
        if outcome.action in (RunAction.RETRY, RunAction.DEFERRED):
            queue(function_id, run_id, outcome.retry_in)
        deliveries += 1
        assert deliveries <= max_deliveries, "runs never settled"


class FakeAIClient:
    """Plays back scripted responses; an Exception in the script is raised instead."""

    def __init__(self, responses=None, tokens_used: int = 1200):
        self.responses = list(responses or [])
        self.tokens_used = tokens_used
        self.calls: List[Dict[str, Any]] = []

    async def generate_text(self, system: str, prompt: str, temperature: float, model: str) -> ProviderResponse:
        self.calls.append({"system": system, "prompt": prompt, "temperature": temperature, "model": model})
        if not self.responses:
            raise AssertionError("FakeAIClient ran out of scripted responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return ProviderResponse(text=response, tokens_used=self.tokens_used)


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def fake_ai():
    return FakeAIClient()


@pytest.fixture
def cache():
    return MockupCache(ttl=60)


@pytest.fixture
def mockup_service(fake_supabase, cache):
    return MockupService(fake_supabase, cache=cache)


@pytest.fixture
def credit_service(fake_supabase):
    return CreditService(fake_supabase)


@pytest.fixture
def generation_service(fake_ai):
    return GenerationService(fake_ai)


@pytest.fixture
def job_runner(fake_supabase, mockup_service, generation_service):
    return JobRunner(
        fake_supabase,
        JOB_FUNCTIONS,
        services=JobServices(mockup_service=mockup_service, generation_service=generation_service),
        dispatcher=QueueDispatcher(),
        backoff_seconds=0,
    )


@pytest.fixture
def make_user(fake_supabase):
    def _make_user(plan: str = "free", credits_used: int = 0, credits_reset_at: Optional[datetime] = None,
                   user_id: Optional[str] = None) -> Dict[str, Any]:
        now = datetime.now(timezone.utc)
        profile = {
            "id": user_id or str(uuid.uuid4()),
            "email": "designer@example.com",
            "full_name": "Ada Designer",
            "plan": plan,
            "credits_used": credits_used,
            "credits_reset_at": (credits_reset_at or now).isoformat(),
            "subscription_status": "active" if plan == "pro" else None,
            "created_at": now.isoformat(),
            "updated_at": now.isoformat(),
        }
        fake_supabase.tables.setdefault("user_profiles", []).append(profile)
        return copy.deepcopy(profile)
    return _make_user
