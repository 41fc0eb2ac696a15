import pytest

from models.mockup import CreateMockupRequest, EditVariationRequest, FailureCode
from services.mockup_submission import MockupSubmissionService

from tests.conftest import labeled_response, VALID_HTML, work_off


@pytest.fixture
def submission(mockup_service, credit_service, job_runner):
    return MockupSubmissionService(mockup_service, credit_service, job_runner)


async def test_missing_user_is_unauthorized(submission, fake_supabase):
    result = await submission.create_mockup(None, CreateMockupRequest(prompt="Anything"))

    assert not result.success
    assert result.error_code == FailureCode.UNAUTHORIZED
    assert fake_supabase.executed == []


async def test_free_user_at_cap_is_rejected_before_any_write(submission, make_user, fake_supabase):
    user = make_user(credits_used=5)

    result = await submission.create_mockup(user, CreateMockupRequest(prompt="A settings page"))

    assert not result.success
    assert result.error_code == FailureCode.CREDIT_LIMIT_REACHED
    assert "all 5 free generations" in result.error
    assert "Upgrade to Pro" in result.error
    assert fake_supabase.rows("projects") == []
    assert fake_supabase.rows("mockups") == []
    assert fake_supabase.rows("job_runs") == []
    assert fake_supabase.rows("user_profiles")[0]["credits_used"] == 5


async def test_accepted_request_charges_a_credit_and_queues_generation(submission, make_user, fake_supabase,
                                                                       fake_ai, job_runner):
    user = make_user(credits_used=4)
    fake_ai.responses = [labeled_response(VALID_HTML, VALID_HTML, VALID_HTML)]

    result = await submission.create_mockup(user, CreateMockupRequest(prompt="A settings page", project_name="Settings"))
    await work_off(job_runner)

    assert result.success
    assert result.job_run_id is not None
    assert fake_supabase.rows("projects")[0]["name"] == "Settings"
    assert fake_supabase.rows("user_profiles")[0]["credits_used"] == 5

    run = fake_supabase.rows("job_runs")[0]
    assert run["function_id"] == "generate-mockup"
    assert run["payload"]["mockup_id"] == result.mockup_id
    assert run["payload"]["user_id"] == user["id"]
    assert fake_supabase.rows("mockups")[0]["status"] == "COMPLETED"


async def test_pro_user_is_not_charged(submission, make_user, fake_supabase, fake_ai, job_runner):
    user = make_user(plan="pro", credits_used=40)
    fake_ai.responses = [labeled_response(VALID_HTML)]

    result = await submission.create_mockup(user, CreateMockupRequest(prompt="Pricing page"))
    await work_off(job_runner)

    assert result.success
    assert fake_supabase.rows("user_profiles")[0]["credits_used"] == 40


async def test_edit_of_someone_elses_mockup_is_not_found(submission, make_user, mockup_service):
    owner = make_user()
    intruder = make_user()
    project = await mockup_service.create_project(owner["id"], "Mine")
    mockup = await mockup_service.create_mockup(owner["id"], project["id"], CreateMockupRequest(prompt="Mine"))

    result = await submission.request_variation_edit(
        intruder, mockup["id"], "any-version", EditVariationRequest(edit_prompt="Make it red")
    )

    assert result.error_code == FailureCode.NOT_FOUND
    assert result.error == "Mockup not found"


async def test_edit_of_missing_version_is_not_found(submission, make_user, mockup_service):
    user = make_user()
    project = await mockup_service.create_project(user["id"], "Mine")
    mockup = await mockup_service.create_mockup(user["id"], project["id"], CreateMockupRequest(prompt="Mine"))

    result = await submission.request_variation_edit(
        user, mockup["id"], "missing", EditVariationRequest(edit_prompt="Make it red")
    )

    assert result.error_code == FailureCode.NOT_FOUND
    assert result.error == "Variation not found"


async def test_edit_sends_the_stored_html(submission, make_user, mockup_service, fake_supabase, fake_ai, job_runner):
    user = make_user(credits_used=1)
    project = await mockup_service.create_project(user["id"], "Mine")
    mockup = await mockup_service.create_mockup(user["id"], project["id"], CreateMockupRequest(prompt="Mine"))
    fake_supabase.tables["mockup_versions"] = [
        {"id": "ver-1", "mockup_id": mockup["id"], "version": 1, "label": "Variation 1", "code": VALID_HTML, "prompt": "Mine"},
    ]
    fake_ai.responses = [f"```html\n{VALID_HTML}\n```"]

    result = await submission.request_variation_edit(
        user, mockup["id"], "ver-1", EditVariationRequest(edit_prompt="Make it red")
    )
    await work_off(job_runner)

    assert result.success
    assert result.version_id == "ver-1"
    run = next(r for r in fake_supabase.rows("job_runs") if r["function_id"] == "edit-variation")
    assert run["payload"]["current_html"] == VALID_HTML
    assert run["payload"]["edit_prompt"] == "Make it red"
    assert fake_supabase.rows("user_profiles")[0]["credits_used"] == 2


async def test_edit_at_cap_is_rejected(submission, make_user, mockup_service, fake_supabase):
    user = make_user(credits_used=5)
    project = await mockup_service.create_project(user["id"], "Mine")
    mockup = await mockup_service.create_mockup(user["id"], project["id"], CreateMockupRequest(prompt="Mine"))
    fake_supabase.tables["mockup_versions"] = [
        {"id": "ver-1", "mockup_id": mockup["id"], "version": 1, "code": VALID_HTML, "prompt": "Mine"},
    ]

    result = await submission.request_variation_edit(
        user, mockup["id"], "ver-1", EditVariationRequest(edit_prompt="Make it red")
    )

    assert result.error_code == FailureCode.CREDIT_LIMIT_REACHED
    assert fake_supabase.rows("job_runs") == []


async def test_missing_profile_is_not_found(submission, fake_supabase):
    result = await submission.create_mockup({"id": "ghost"}, CreateMockupRequest(prompt="A settings page"))

    assert result.error_code == FailureCode.NOT_FOUND
    assert result.error == "User not found"
    assert fake_supabase.rows("mockups") == []


async def test_credit_lookup_error_is_not_reported_as_limit(submission, credit_service, make_user, fake_supabase,
                                                            monkeypatch):
    user = make_user(credits_used=0)

    def unreachable(user_id):
        raise ConnectionError("connection reset by peer")

    monkeypatch.setattr(credit_service, "_fetch_profile", unreachable)

    result = await submission.create_mockup(user, CreateMockupRequest(prompt="A settings page"))

    assert not result.success
    assert result.error_code == FailureCode.UNEXPECTED
    assert fake_supabase.rows("projects") == []
    assert fake_supabase.rows("mockups") == []
    assert fake_supabase.rows("job_runs") == []


async def test_unqueued_generation_refunds_the_credit(submission, make_user, fake_supabase, job_runner):
    user = make_user(credits_used=0)
    job_runner.dispatcher.fail_with = ConnectionError("broker unavailable")

    result = await submission.create_mockup(user, CreateMockupRequest(prompt="A settings page"))

    assert not result.success
    assert result.error_code == FailureCode.UNEXPECTED
    assert fake_supabase.rows("user_profiles")[0]["credits_used"] == 0

    mockup = fake_supabase.rows("mockups")[0]
    assert mockup["status"] == "FAILED"
    assert mockup["code"] == "// Generation failed: Could not queue the job, please try again"
    assert fake_supabase.rows("job_runs")[0]["status"] == "FAILED"


async def test_unqueued_edit_refunds_the_credit(submission, make_user, mockup_service, fake_supabase, job_runner):
    user = make_user(credits_used=2)
    project = await mockup_service.create_project(user["id"], "Mine")
    mockup = await mockup_service.create_mockup(user["id"], project["id"], CreateMockupRequest(prompt="Mine"))
    fake_supabase.tables["mockup_versions"] = [
        {"id": "ver-1", "mockup_id": mockup["id"], "version": 1, "code": VALID_HTML, "prompt": "Mine"},
    ]
    job_runner.dispatcher.fail_with = ConnectionError("broker unavailable")

    result = await submission.request_variation_edit(
        user, mockup["id"], "ver-1", EditVariationRequest(edit_prompt="Make it red")
    )

    assert result.error_code == FailureCode.UNEXPECTED
    assert fake_supabase.rows("user_profiles")[0]["credits_used"] == 2
