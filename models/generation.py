"""
Generation models for UISketch: inputs and results of the AI pipeline.
"""
from pydantic import BaseModel
from typing import Optional, List

from models.mockup import DeviceType, UILibrary, AIModel, FailureCode

class PromptPair(BaseModel):
    system: str
    user: str

class ProviderResponse(BaseModel):
    text: str
    tokens_used: Optional[int] = None

class Fragment(BaseModel):
    """One labeled HTML fragment recovered from a model response."""
    ordinal: int
    id: str
    label: str
    code: str

class ValidationResult(BaseModel):
    valid: bool
    error: Optional[str] = None

class GenerationInput(BaseModel):
    prompt: str
    device_type: DeviceType
    ui_library: UILibrary
    model: AIModel = AIModel.SKETCH_MINI

class EditInput(BaseModel):
    current_html: str
    edit_prompt: str
    model: AIModel = AIModel.SKETCH_PRO

class GenerationResult(BaseModel):
    success: bool
    code: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[FailureCode] = None
    tokens_used: Optional[int] = None

class VariationsGenerationResult(BaseModel):
    success: bool
    variations: List[Fragment] = []
    error: Optional[str] = None
    error_code: Optional[FailureCode] = None
    tokens_used: Optional[int] = None
