from models.job import GENERATION_REQUESTED, MockupGenerationRequested
from models.mockup import CreateMockupRequest, DeviceType, UILibrary, AIModel
from services.ai_client import ProviderError, TransientProviderError

from tests.conftest import VALID_HTML, labeled_response, work_off

BOLD_HTML = '<div class="min-h-screen bg-black text-white"><h1 class="text-5xl">Dashboard</h1></div>'
MINIMAL_HTML = '<section class="p-16"><h1 class="font-light">Dashboard</h1></section>'


async def queue_generation(mockup_service, job_runner, variation_count=3):
    request = CreateMockupRequest(
        prompt="A fintech dashboard",
        device_type=DeviceType.DESKTOP,
        ui_library=UILibrary.SHADCN,
        ai_model=AIModel.SKETCH_MINI,
        variation_count=variation_count,
    )
    project = await mockup_service.create_project("user-1", "Fintech")
    mockup = await mockup_service.create_mockup("user-1", project["id"], request)
    event = MockupGenerationRequested(
        mockup_id=mockup["id"],
        project_id=project["id"],
        user_id="user-1",
        prompt=request.prompt,
        device_type=request.device_type,
        ui_library=request.ui_library,
        ai_model=request.ai_model,
        variation_count=variation_count,
    )
    [run_id] = await job_runner.send(GENERATION_REQUESTED, event.model_dump(mode="json"))
    return mockup["id"], run_id


async def submit(mockup_service, job_runner, variation_count=3):
    mockup_id, run_id = await queue_generation(mockup_service, job_runner, variation_count)
    await work_off(job_runner)
    return mockup_id, await job_runner.get_run(run_id)


async def test_three_valid_variations_complete_the_mockup(mockup_service, job_runner, fake_ai):
    fake_ai.responses = [labeled_response(VALID_HTML, BOLD_HTML, MINIMAL_HTML)]

    mockup_id, run = await submit(mockup_service, job_runner)

    mockup = await mockup_service.get_mockup(mockup_id)
    versions = await mockup_service.get_versions(mockup_id)
    assert mockup["status"] == "COMPLETED"
    assert [v["version"] for v in versions] == [1, 2, 3]
    assert [v["code"] for v in versions] == [VALID_HTML, BOLD_HTML, MINIMAL_HTML]
    assert mockup["code"] == VALID_HTML

    assert run["status"] == "COMPLETED"
    assert run["result"]["success"]
    assert run["result"]["variation_count"] == 3
    assert run["result"]["tokens_used"] == 1200

    call = fake_ai.calls[0]
    assert call["model"] == "sketch-mini"
    assert call["temperature"] == 0.8
    assert "A fintech dashboard" in call["prompt"]


async def test_invalid_variations_are_dropped_and_the_rest_renumbered(mockup_service, job_runner, fake_ai):
    fake_ai.responses = [labeled_response(VALID_HTML, "<div>unstyled</div>", MINIMAL_HTML)]

    mockup_id, run = await submit(mockup_service, job_runner)

    versions = await mockup_service.get_versions(mockup_id)
    assert [v["version"] for v in versions] == [1, 2]
    assert versions[1]["code"] == MINIMAL_HTML
    assert run["result"]["variation_count"] == 2


async def test_no_valid_variations_fails_the_mockup(mockup_service, job_runner, fake_ai, fake_supabase):
    fake_ai.responses = [labeled_response("<div>a</div>", "<div>b</div>", "<div>c</div>")]

    mockup_id, run = await submit(mockup_service, job_runner)

    mockup = await mockup_service.get_mockup(mockup_id)
    assert mockup["status"] == "FAILED"
    assert "// Generation failed: No valid variations were generated" in mockup["code"]
    assert fake_supabase.rows("mockup_versions") == []

    # the job itself finished; the failure is recorded on the mockup
    assert run["status"] == "COMPLETED"
    assert run["result"] == {
        "success": False,
        "mockup_id": mockup_id,
        "error": "No valid variations were generated",
        "tokens_used": 1200,
    }


async def test_provider_rejection_fails_without_retrying(mockup_service, job_runner, fake_ai):
    fake_ai.responses = [ProviderError("Invalid API key")]

    mockup_id, run = await submit(mockup_service, job_runner)

    mockup = await mockup_service.get_mockup(mockup_id)
    assert mockup["status"] == "FAILED"
    assert mockup["code"] == "// Generation failed: Invalid API key"
    assert run["attempts"] == 1


async def test_transient_provider_error_is_retried(mockup_service, job_runner, fake_ai):
    fake_ai.responses = [
        TransientProviderError("OpenRouter returned 503"),
        labeled_response(VALID_HTML, BOLD_HTML, MINIMAL_HTML),
    ]

    mockup_id, run = await submit(mockup_service, job_runner)

    assert run["status"] == "COMPLETED"
    assert run["attempts"] == 2
    assert (await mockup_service.get_mockup(mockup_id))["status"] == "COMPLETED"
    assert len(fake_ai.calls) == 2


async def test_exhausted_retries_leave_the_mockup_generating(mockup_service, job_runner, fake_ai):
    fake_ai.responses = [TransientProviderError("timeout") for _ in range(4)]

    mockup_id, run = await submit(mockup_service, job_runner)

    assert run["status"] == "FAILED"
    assert run["attempts"] == 4
    assert (await mockup_service.get_mockup(mockup_id))["status"] == "GENERATING"


async def test_single_mode_stores_one_version(mockup_service, job_runner, fake_ai):
    fake_ai.responses = [f"```html\n{VALID_HTML}\n```"]

    mockup_id, run = await submit(mockup_service, job_runner, variation_count=1)

    versions = await mockup_service.get_versions(mockup_id)
    assert len(versions) == 1
    assert versions[0]["label"] == "Variation 1"
    assert (await mockup_service.get_mockup(mockup_id))["code"] == VALID_HTML
    assert fake_ai.calls[0]["temperature"] == 0.7


async def test_single_mode_validation_failure_is_reported(mockup_service, job_runner, fake_ai):
    fake_ai.responses = ['```html\n<div class="p-4"><script>x()</script></div>\n```']

    mockup_id, run = await submit(mockup_service, job_runner, variation_count=1)

    mockup = await mockup_service.get_mockup(mockup_id)
    assert mockup["status"] == "FAILED"
    assert mockup["code"] == "// Generation failed: Generated code validation failed: Script tags not allowed"


async def test_prose_without_code_blocks_fails_with_no_versions(mockup_service, job_runner, fake_ai, fake_supabase):
    fake_ai.responses = ["I would design a clean dashboard with a sidebar, a header and three KPI cards."]

    mockup_id, run = await submit(mockup_service, job_runner)

    mockup = await mockup_service.get_mockup(mockup_id)
    assert mockup["status"] == "FAILED"
    assert mockup["code"].startswith("// Generation failed: No variations generated")
    assert fake_supabase.rows("mockup_versions") == []
    assert run["result"]["success"] is False
    assert len(fake_ai.calls) == 1


async def test_deleted_mockup_is_not_generated(mockup_service, job_runner, fake_ai, fake_supabase):
    fake_ai.responses = [labeled_response(VALID_HTML, BOLD_HTML, MINIMAL_HTML)]
    mockup_id, run_id = await queue_generation(mockup_service, job_runner)
    assert await mockup_service.delete_mockup(mockup_id, "user-1")

    await work_off(job_runner)

    run = await job_runner.get_run(run_id)
    assert run["status"] == "COMPLETED"
    assert run["result"]["success"] is False
    assert fake_ai.calls == []
    assert fake_supabase.rows("mockup_versions") == []


async def test_finished_mockup_is_not_generated_again(mockup_service, job_runner, fake_ai, fake_supabase):
    fake_ai.responses = [labeled_response(VALID_HTML, BOLD_HTML, MINIMAL_HTML)]
    _, first_run = await submit(mockup_service, job_runner)

    [second_run] = await job_runner.send(GENERATION_REQUESTED, first_run["payload"])
    await work_off(job_runner)

    assert (await job_runner.get_run(second_run))["result"]["success"] is False
    assert len(fake_ai.calls) == 1
    assert len(fake_supabase.rows("mockup_versions")) == 3
