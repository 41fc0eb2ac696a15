"""
Background job models for UISketch: event payloads and run records.
"""
from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime
from enum import Enum

from models.mockup import DeviceType, UILibrary, AIModel

GENERATION_REQUESTED = "mockup/generation.requested"
VARIATION_EDIT_REQUESTED = "mockup/variation.edit.requested"

class JobStatus(str, Enum):
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

class MockupGenerationRequested(BaseModel):
    mockup_id: str
    project_id: str
    user_id: str
    prompt: str
    device_type: DeviceType
    ui_library: UILibrary
    ai_model: AIModel = AIModel.SKETCH_MINI
    variation_count: int = 3

class VariationEditRequested(BaseModel):
    version_id: str
    mockup_id: str
    user_id: str
    current_html: str
    edit_prompt: str
    ai_model: AIModel = AIModel.SKETCH_PRO

class JobRunResponse(BaseModel):
    id: str
    function_id: str
    event_name: str
    status: JobStatus
    attempts: int = 0
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
