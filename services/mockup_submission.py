"""
Submission service for UISketch: validates a request, charges a credit and
dispatches the background job. Never raises; failures come back as results.
"""
import logging
from typing import Optional, Dict, Any

from models.job import (
    GENERATION_REQUESTED,
    VARIATION_EDIT_REQUESTED,
    MockupGenerationRequested,
    VariationEditRequested,
)
from models.mockup import (
    CreateMockupRequest,
    CreateMockupResult,
    EditVariationRequest,
    EditVariationResult,
    FailureCode,
)
from models.user import CreditCheckResult
from services.credit_service import CreditService, USER_NOT_FOUND
from services.job_runner import JobRunner, JobDispatchError
from services.mockup_service import MockupService

logger = logging.getLogger(__name__)

QUEUE_FAILED = "Could not queue the job, please try again"


def rejection_code(check: CreditCheckResult) -> FailureCode:
    if check.limit_reached:
        return FailureCode.CREDIT_LIMIT_REACHED
    if check.reason == USER_NOT_FOUND:
        return FailureCode.NOT_FOUND
    return FailureCode.UNEXPECTED


class MockupSubmissionService:
    def __init__(self, mockup_service: MockupService, credit_service: CreditService, job_runner: JobRunner):
        self.mockups = mockup_service
        self.credits = credit_service
        self.jobs = job_runner

    async def create_mockup(self, user: Optional[Dict[str, Any]], request: CreateMockupRequest) -> CreateMockupResult:
        """
        Check credits, store a PENDING mockup, charge one credit and queue the
        generation job. A rejected request writes nothing; a job that cannot be
        queued fails its mockup and gives the credit back.
        """
        if not user or not user.get("id"):
            return CreateMockupResult(success=False, error="Unauthorized", error_code=FailureCode.UNAUTHORIZED)

        user_id = user["id"]
        try:
            check = await self.credits.can_user_generate(user_id)
            if not check.can_generate:
                logger.info(f"[{user_id}] Generation rejected: {check.reason}")
                return CreateMockupResult(
                    success=False,
                    error=check.reason,
                    error_code=rejection_code(check),
                )

            project = await self.mockups.create_project(user_id, request.project_name or request.prompt[:60])
            mockup = await self.mockups.create_mockup(user_id, project["id"], request)

            await self.credits.increment_credits_used(user_id)

            event = MockupGenerationRequested(
                mockup_id=mockup["id"],
                project_id=project["id"],
                user_id=user_id,
                prompt=request.prompt,
                device_type=request.device_type,
                ui_library=request.ui_library,
                ai_model=request.ai_model,
                variation_count=request.variation_count,
            )
            try:
                run_ids = await self.jobs.send(GENERATION_REQUESTED, event.model_dump(mode="json"))
            except JobDispatchError as e:
                logger.error(f"[{user_id}] Generation of mockup {mockup['id']} was not queued: {e}")
                await self.mockups.mark_failed(mockup["id"], QUEUE_FAILED)
                await self.credits.refund_credit(user_id)
                return CreateMockupResult(success=False, error=QUEUE_FAILED, error_code=FailureCode.UNEXPECTED)

            logger.info(f"[{user_id}] Queued generation of mockup {mockup['id']}")

            return CreateMockupResult(
                success=True,
                mockup_id=mockup["id"],
                project_id=project["id"],
                job_run_id=run_ids[0] if run_ids else None,
            )

        except Exception as e:
            logger.error(f"[{user_id}] Error creating mockup: {str(e)}", exc_info=True)
            return CreateMockupResult(
                success=False,
                error="An unexpected error occurred while creating the mockup",
                error_code=FailureCode.UNEXPECTED,
            )

    async def request_variation_edit(self, user: Optional[Dict[str, Any]], mockup_id: str, version_id: str,
                                     request: EditVariationRequest) -> EditVariationResult:
        """
        Queue an edit of one version. The current HTML is read here, not sent
        by the client.
        """
        if not user or not user.get("id"):
            return EditVariationResult(success=False, error="Unauthorized", error_code=FailureCode.UNAUTHORIZED)

        user_id = user["id"]
        try:
            mockup = await self.mockups.get_mockup(mockup_id, user_id)
            if not mockup:
                return EditVariationResult(success=False, error="Mockup not found", error_code=FailureCode.NOT_FOUND)

            version = await self.mockups.get_version(mockup_id, version_id)
            if not version:
                return EditVariationResult(success=False, error="Variation not found", error_code=FailureCode.NOT_FOUND)

            check = await self.credits.can_user_generate(user_id)
            if not check.can_generate:
                logger.info(f"[{user_id}] Edit rejected: {check.reason}")
                return EditVariationResult(
                    success=False,
                    error=check.reason,
                    error_code=rejection_code(check),
                )

            await self.credits.increment_credits_used(user_id)

            event = VariationEditRequested(
                version_id=version_id,
                mockup_id=mockup_id,
                user_id=user_id,
                current_html=version["code"],
                edit_prompt=request.edit_prompt,
                ai_model=request.ai_model,
            )
            try:
                run_ids = await self.jobs.send(VARIATION_EDIT_REQUESTED, event.model_dump(mode="json"))
            except JobDispatchError as e:
                logger.error(f"[{user_id}] Edit of version {version_id} was not queued: {e}")
                await self.credits.refund_credit(user_id)
                return EditVariationResult(success=False, error=QUEUE_FAILED, error_code=FailureCode.UNEXPECTED)

            logger.info(f"[{user_id}] Queued edit of version {version_id} of mockup {mockup_id}")

            return EditVariationResult(
                success=True,
                mockup_id=mockup_id,
                version_id=version_id,
                job_run_id=run_ids[0] if run_ids else None,
            )

        except Exception as e:
            logger.error(f"[{user_id}] Error requesting edit: {str(e)}", exc_info=True)
            return EditVariationResult(
                success=False,
                error="An unexpected error occurred while requesting the edit",
                error_code=FailureCode.UNEXPECTED,
            )
