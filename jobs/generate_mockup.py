"""
Generation job: turns a PENDING mockup into COMPLETED variations or a FAILED record.
"""
from typing import Any, Dict

from config.app_config import GENERATION_JOB_RETRIES, GENERATION_JOB_CONCURRENCY
from models.generation import Fragment, GenerationInput
from models.job import GENERATION_REQUESTED, MockupGenerationRequested
from models.mockup import MockupStatus
from services.job_runner import JobContext, job_function


async def _generate(ctx: JobContext, event: MockupGenerationRequested) -> Dict[str, Any]:
    """One provider call in single or three-variation mode, as a serializable dict."""
    generation = ctx.services.generation_service
    data = GenerationInput(
        prompt=event.prompt,
        device_type=event.device_type,
        ui_library=event.ui_library,
        model=event.ai_model,
    )

    if event.variation_count == 1:
        result = await generation.generate_ui_code(data)
        variations = []
        if result.success:
            variations = [Fragment(ordinal=1, id="v1", label="Variation 1", code=result.code)]
        return {
            "success": result.success,
            "variations": [v.model_dump() for v in variations],
            "error": result.error,
            "error_code": result.error_code.value if result.error_code else None,
            "tokens_used": result.tokens_used,
        }

    result = await generation.generate_ui_variations(data)
    return result.model_dump(mode="json")


@job_function(
    id="generate-mockup",
    event=GENERATION_REQUESTED,
    retries=GENERATION_JOB_RETRIES,
    concurrency=GENERATION_JOB_CONCURRENCY,
)
async def generate_mockup(ctx: JobContext) -> Dict[str, Any]:
    event = MockupGenerationRequested(**ctx.data)
    mockups = ctx.services.mockup_service

    started = await ctx.step.run(
        "update-status-generating",
        lambda: mockups.transition_status(event.mockup_id, MockupStatus.GENERATING),
    )
    if not started:
        # Deleted, or already COMPLETED/FAILED
        ctx.logger.warning(f"Mockup {event.mockup_id} cannot move to GENERATING, skipping generation")
        return {
            "success": False,
            "mockup_id": event.mockup_id,
            "error": "Mockup no longer exists or has already finished",
        }

    result = await ctx.step.run("generate-ui-code", lambda: _generate(ctx, event))

    if not result["success"]:
        error = result.get("error") or "Generation failed"
        ctx.logger.warning(f"Generation failed for mockup {event.mockup_id}: {error}")
        await ctx.step.run("mark-failed", lambda: mockups.mark_failed(event.mockup_id, error))
        return {
            "success": False,
            "mockup_id": event.mockup_id,
            "error": error,
            "tokens_used": result.get("tokens_used"),
        }

    fragments = [Fragment(**variation) for variation in result["variations"]]

    async def save() -> int:
        rows = await mockups.save_variations(event.mockup_id, fragments, event.prompt)
        return len(rows) or len(fragments)

    saved = await ctx.step.run("save-variations", save)

    return {
        "success": True,
        "mockup_id": event.mockup_id,
        "variation_count": saved,
        "tokens_used": result.get("tokens_used"),
        "message": f"Generated {saved} variation(s)",
    }
