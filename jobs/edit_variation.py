"""
Edit job: rewrites one version's HTML from a natural-language instruction.
"""
from typing import Any, Dict

from config.app_config import EDIT_JOB_RETRIES, EDIT_JOB_CONCURRENCY
from models.generation import EditInput
from models.job import VARIATION_EDIT_REQUESTED, VariationEditRequested
from services.job_runner import JobContext, job_function


@job_function(
    id="edit-variation",
    event=VARIATION_EDIT_REQUESTED,
    retries=EDIT_JOB_RETRIES,
    concurrency=EDIT_JOB_CONCURRENCY,
)
async def edit_variation(ctx: JobContext) -> Dict[str, Any]:
    event = VariationEditRequested(**ctx.data)
    mockups = ctx.services.mockup_service
    generation = ctx.services.generation_service

    async def edit() -> Dict[str, Any]:
        result = await generation.edit_ui_code(EditInput(
            current_html=event.current_html,
            edit_prompt=event.edit_prompt,
            model=event.ai_model,
        ))
        return result.model_dump(mode="json")

    result = await ctx.step.run("edit-ui-code", edit)

    if not result["success"]:
        # The version keeps its previous HTML
        ctx.logger.warning(f"Edit of version {event.version_id} failed: {result.get('error')}")
        return {
            "success": False,
            "version_id": event.version_id,
            "error": result.get("error"),
        }

    async def update() -> bool:
        version = await mockups.update_version_code(
            event.mockup_id, event.version_id, result["code"], event.edit_prompt
        )
        return version is not None

    updated = await ctx.step.run("update-version", update)

    return {
        "success": updated,
        "mockup_id": event.mockup_id,
        "version_id": event.version_id,
        "tokens_used": result.get("tokens_used"),
        "message": "Variation updated" if updated else "Version no longer exists",
    }
