"""
AI model selector configuration for UISketch.

The UI offers two models; each maps onto a provider and a concrete model id.
"""
from typing import Dict, TypedDict

from config.app_config import GEMINI_MODEL, OPENROUTER_MODEL


class ModelConfig(TypedDict):
    name: str
    description: str
    provider: str
    model: str


AI_MODELS: Dict[str, ModelConfig] = {
    "sketch-mini": {
        "name": "Sketch Mini",
        "description": "Fast generation with Gemini",
        "provider": "google",
        "model": GEMINI_MODEL,
    },
    "sketch-pro": {
        "name": "Sketch Pro",
        "description": "Advanced generation through OpenRouter",
        "provider": "openrouter",
        "model": OPENROUTER_MODEL,
    },
}

DEFAULT_AI_MODEL = "sketch-mini"

# Higher temperature gives the three variations more spread; edits stay precise.
SINGLE_TEMPERATURE = 0.7
VARIATIONS_TEMPERATURE = 0.8
EDIT_TEMPERATURE = 0.5


def get_model_config(model_key: str) -> ModelConfig:
    """
    Look up a model selector.

    Raises:
        KeyError: If the selector is unknown
    """
    if model_key not in AI_MODELS:
        raise KeyError(f"Model '{model_key}' not found. Available models: {list(AI_MODELS.keys())}")
    return AI_MODELS[model_key]


def get_models_for_frontend() -> Dict[str, Dict[str, str]]:
    return {
        key: {"name": cfg["name"], "description": cfg["description"]}
        for key, cfg in AI_MODELS.items()
    }
