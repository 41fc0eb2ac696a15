"""
Mockup routes for UISketch: submit, poll, read, edit, export and preview
"""
from fastapi import APIRouter, HTTPException, status, Depends, Query
from fastapi.responses import HTMLResponse, Response
from supabase import Client
from typing import List, NoReturn, Optional
import logging

from auth.dependencies import get_current_user, get_supabase
from config.app_config import FRONTEND_URL, STATUS_POLL_INTERVAL_MS
from jobs.client import get_job_runner
from models.job import JobRunResponse
from models.mockup import (
    CreateMockupRequest,
    CreateMockupResult,
    EditVariationRequest,
    EditVariationResult,
    FailureCode,
    FAILURE_MARKER,
    MockupResponse,
    MockupStatus,
    MockupStatusResponse,
    MockupWithVariations,
    TERMINAL_STATUSES,
)
from services.credit_service import CreditService
from services.export_service import ExportService
from services.job_runner import JobRunner
from services.mockup_cache import mockup_cache
from services.mockup_service import MockupService
from services.mockup_submission import MockupSubmissionService

router = APIRouter(prefix="/mockups", tags=["Mockups"])
jobs_router = APIRouter(prefix="/jobs", tags=["Jobs"])
logger = logging.getLogger(__name__)

export_service = ExportService()

def get_mockup_service(supabase: Client = Depends(get_supabase)) -> MockupService:
    return MockupService(supabase)

def get_submission_service(
    mockup_service: MockupService = Depends(get_mockup_service),
    job_runner: JobRunner = Depends(get_job_runner),
    supabase: Client = Depends(get_supabase),
) -> MockupSubmissionService:
    return MockupSubmissionService(mockup_service, CreditService(supabase), job_runner)

def raise_for_failure(error_code: Optional[FailureCode], error: Optional[str]) -> NoReturn:
    """Translate a failed result into the matching HTTP error."""
    if error_code == FailureCode.UNAUTHORIZED:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=error or "Unauthorized")
    if error_code == FailureCode.NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error or "Not found")
    if error_code == FailureCode.CREDIT_LIMIT_REACHED:
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail={
                "code": error_code.value,
                "message": error,
                "upgrade_url": f"{FRONTEND_URL}/upgrade",
            }
        )
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error or "Internal error")

def status_response(mockup: dict) -> MockupStatusResponse:
    current = MockupStatus(mockup["status"])
    is_terminal = current in TERMINAL_STATUSES
    error_detail = None
    code = mockup.get("code") or ""
    if current == MockupStatus.FAILED and code.startswith(FAILURE_MARKER):
        error_detail = code[len(FAILURE_MARKER):]

    return MockupStatusResponse(
        mockup_id=mockup["id"],
        status=current,
        is_terminal=is_terminal,
        poll_interval_ms=None if is_terminal else STATUS_POLL_INTERVAL_MS,
        error_detail=error_detail,
    )

@router.post("", response_model=CreateMockupResult, status_code=status.HTTP_202_ACCEPTED)
async def create_mockup(
    request: CreateMockupRequest,
    current_user: dict = Depends(get_current_user),
    submission_service: MockupSubmissionService = Depends(get_submission_service),
):
    """
    Queue a new mockup. Returns immediately; poll /mockups/{id}/status.
    """
    logger.info(f"[{current_user['id']}] Create mockup ({request.device_type.value}, {request.ui_library.value}, {request.ai_model.value})")
    result = await submission_service.create_mockup(current_user, request)
    if not result.success:
        raise_for_failure(result.error_code, result.error)
    return result

@router.get("", response_model=List[MockupResponse])
async def list_mockups(
    current_user: dict = Depends(get_current_user),
    mockup_service: MockupService = Depends(get_mockup_service),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    mockups = await mockup_service.list_user_mockups(current_user["id"], limit=limit, offset=offset)
    return [MockupResponse(**item) for item in mockups]

@router.get("/{mockup_id}", response_model=MockupWithVariations)
async def get_mockup(
    mockup_id: str,
    current_user: dict = Depends(get_current_user),
    mockup_service: MockupService = Depends(get_mockup_service),
):
    cached = mockup_cache.get(current_user["id"], mockup_id, "detail")
    if cached is not None:
        return cached

    mockup = await mockup_service.get_mockup_with_variations(mockup_id, current_user["id"])
    if not mockup:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Mockup not found")

    response = MockupWithVariations(**mockup)
    mockup_cache.set(current_user["id"], mockup_id, "detail", response)
    return response

@router.get("/{mockup_id}/status", response_model=MockupStatusResponse)
async def get_mockup_status(
    mockup_id: str,
    current_user: dict = Depends(get_current_user),
    mockup_service: MockupService = Depends(get_mockup_service),
):
    """
    Polling endpoint. poll_interval_ms is null once the mockup is COMPLETED or FAILED.
    """
    cached = mockup_cache.get(current_user["id"], mockup_id, "status")
    if cached is not None:
        return cached

    mockup = await mockup_service.get_mockup(mockup_id, current_user["id"])
    if not mockup:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Mockup not found")

    response = status_response(mockup)
    mockup_cache.set(current_user["id"], mockup_id, "status", response)
    return response

@router.delete("/{mockup_id}")
async def delete_mockup(
    mockup_id: str,
    current_user: dict = Depends(get_current_user),
    mockup_service: MockupService = Depends(get_mockup_service),
):
    deleted = await mockup_service.delete_mockup(mockup_id, current_user["id"])
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Mockup not found")

    logger.info(f"[{current_user['id']}] Deleted mockup {mockup_id}")
    return {"message": "Mockup deleted successfully"}

@router.post("/{mockup_id}/variations/{version_id}/edit", response_model=EditVariationResult,
             status_code=status.HTTP_202_ACCEPTED)
async def edit_variation(
    mockup_id: str,
    version_id: str,
    request: EditVariationRequest,
    current_user: dict = Depends(get_current_user),
    submission_service: MockupSubmissionService = Depends(get_submission_service),
):
    """
    Queue an edit of one variation. The variation is overwritten in place when the job succeeds.
    """
    logger.info(f"[{current_user['id']}] Edit version {version_id} of mockup {mockup_id}")
    result = await submission_service.request_variation_edit(current_user, mockup_id, version_id, request)
    if not result.success:
        raise_for_failure(result.error_code, result.error)
    return result

async def _get_owned_version(mockup_service: MockupService, mockup_id: str, version_id: str, user_id: str) -> dict:
    if not await mockup_service.get_mockup(mockup_id, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Mockup not found")
    version = await mockup_service.get_version(mockup_id, version_id)
    if not version:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Variation not found")
    return version

@router.get("/{mockup_id}/variations/{version_id}/export")
async def export_variation(
    mockup_id: str,
    version_id: str,
    current_user: dict = Depends(get_current_user),
    mockup_service: MockupService = Depends(get_mockup_service),
):
    """
    Download a variation as a standalone HTML file.
    """
    version = await _get_owned_version(mockup_service, mockup_id, version_id, current_user["id"])
    label = version.get("label") or f"Variation {version['version']}"
    filename = export_service.export_filename(label)

    return Response(
        content=export_service.build_export_html(version["code"]),
        media_type="text/html",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

@router.get("/{mockup_id}/variations/{version_id}/code")
async def get_variation_code(
    mockup_id: str,
    version_id: str,
    current_user: dict = Depends(get_current_user),
    mockup_service: MockupService = Depends(get_mockup_service),
):
    """Raw and indented HTML of a variation, for the code view."""
    version = await _get_owned_version(mockup_service, mockup_id, version_id, current_user["id"])
    return {
        "version_id": version["id"],
        "label": version.get("label"),
        "code": version["code"],
        "formatted_code": export_service.format_html(version["code"]),
    }

@router.get("/{mockup_id}/variations/{version_id}/preview", response_class=HTMLResponse)
async def preview_variation(
    mockup_id: str,
    version_id: str,
    device: str = Query(default="desktop"),
    current_user: dict = Depends(get_current_user),
    mockup_service: MockupService = Depends(get_mockup_service),
):
    version = await _get_owned_version(mockup_service, mockup_id, version_id, current_user["id"])
    return HTMLResponse(export_service.build_preview_html(version["code"], device))

@jobs_router.get("/{run_id}", response_model=JobRunResponse)
async def get_job_run(
    run_id: str,
    current_user: dict = Depends(get_current_user),
    job_runner: JobRunner = Depends(get_job_runner),
):
    """
    Inspect a background run. Only the user who triggered it can see it.
    """
    run = await job_runner.get_run(run_id)
    if not run or (run.get("payload") or {}).get("user_id") != current_user["id"]:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job run not found")
    return JobRunResponse(**run)
