"""
Mockup models for UISketch: projects, mockups and their numbered versions.
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime
from enum import Enum

class DeviceType(str, Enum):
    DESKTOP = "DESKTOP"
    MOBILE = "MOBILE"
    TABLET = "TABLET"
    BOTH = "BOTH"

class UILibrary(str, Enum):
    SHADCN = "SHADCN"
    MATERIAL_UI = "MATERIAL_UI"
    ANT_DESIGN = "ANT_DESIGN"
    ACETERNITY = "ACETERNITY"

class AIModel(str, Enum):
    SKETCH_MINI = "sketch-mini"
    SKETCH_PRO = "sketch-pro"

class MockupStatus(str, Enum):
    PENDING = "PENDING"
    GENERATING = "GENERATING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

# Position of each status along PENDING -> GENERATING -> terminal
STATUS_ORDER = {
    MockupStatus.PENDING: 0,
    MockupStatus.GENERATING: 1,
    MockupStatus.COMPLETED: 2,
    MockupStatus.FAILED: 2,
}

TERMINAL_STATUSES = {MockupStatus.COMPLETED, MockupStatus.FAILED}

# Written into the canonical code field when a generation fails
FAILURE_MARKER = "// Generation failed: "

class FailureCode(str, Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    CREDIT_LIMIT_REACHED = "CREDIT_LIMIT_REACHED"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    PROVIDER_FAILED = "PROVIDER_FAILED"
    UNEXPECTED = "UNEXPECTED"


class CreateMockupRequest(BaseModel):
    prompt: str = Field(..., min_length=1, max_length=4000, description="Natural-language description of the screen")
    device_type: DeviceType = Field(default=DeviceType.DESKTOP)
    ui_library: UILibrary = Field(default=UILibrary.SHADCN)
    ai_model: AIModel = Field(default=AIModel.SKETCH_MINI)
    variation_count: Literal[1, 3] = Field(default=3, description="Number of variations to generate")
    project_name: Optional[str] = Field(default=None, max_length=200)

class EditVariationRequest(BaseModel):
    edit_prompt: str = Field(..., min_length=1, max_length=4000, description="The user's instruction for what to change.")
    ai_model: AIModel = Field(default=AIModel.SKETCH_PRO)


class ProjectSummary(BaseModel):
    id: str
    name: str

class MockupVersionResponse(BaseModel):
    id: str
    mockup_id: str
    version: int
    label: Optional[str] = None
    code: str
    prompt: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class MockupResponse(BaseModel):
    """
    Model for returning a mockup record to the frontend.
    """
    id: str
    project_id: str
    name: str
    prompt: str
    device_type: DeviceType
    ui_library: UILibrary
    ai_model: Optional[AIModel] = None
    variation_count: int = 3
    status: MockupStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class MockupWithVariations(MockupResponse):
    code: str = ""
    variations: List[MockupVersionResponse] = Field(default_factory=list)

class MockupStatusResponse(BaseModel):
    mockup_id: str
    status: MockupStatus
    is_terminal: bool
    poll_interval_ms: Optional[int] = None
    error_detail: Optional[str] = None


class CreateMockupResult(BaseModel):
    success: bool
    mockup_id: Optional[str] = None
    project_id: Optional[str] = None
    job_run_id: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[FailureCode] = None

class EditVariationResult(BaseModel):
    success: bool
    mockup_id: Optional[str] = None
    version_id: Optional[str] = None
    job_run_id: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[FailureCode] = None
