"""
Prompt assembly for UISketch.

Builds the (system, user) prompt pair sent to the model. Pure functions: the
same inputs always produce byte-identical prompts.
"""
from typing import Union

from config.device_presets import get_canvas_width
from models.generation import PromptPair
from models.mockup import DeviceType, UILibrary
from prompts.design_prompts import (
    UI_LIBRARY_GUIDES,
    DEVICE_GUIDES,
    COMMON_QUALITY_STANDARDS,
    SINGLE_SYSTEM_PROMPT,
    VARIATIONS_SYSTEM_PROMPT,
    SINGLE_USER_PROMPT,
    VARIATIONS_USER_PROMPT,
    HTML_EDIT_SYSTEM_PROMPT,
    HTML_EDIT_USER_PROMPT,
)

SUPPORTED_VARIATION_COUNTS = (1, 3)


def _key(value: Union[str, DeviceType, UILibrary]) -> str:
    return value.value if hasattr(value, "value") else str(value)


def canvas_width(device_type: Union[str, DeviceType]) -> int:
    return get_canvas_width(_key(device_type))


def build_system_prompt(ui_library, device_type, variation_count: int = 3) -> str:
    """
    Compose the system prompt from the style guide, the device guide and the
    shared quality standards.

    Raises:
        ValueError: If variation_count is neither 1 nor 3
    """
    if variation_count not in SUPPORTED_VARIATION_COUNTS:
        raise ValueError(f"variation_count must be 1 or 3, got {variation_count}")

    width = canvas_width(device_type)
    library_guide = UI_LIBRARY_GUIDES[_key(ui_library)]
    device_guide = DEVICE_GUIDES[_key(device_type)].format(canvas_width=width)

    template = SINGLE_SYSTEM_PROMPT if variation_count == 1 else VARIATIONS_SYSTEM_PROMPT
    return template.format(
        canvas_width=width,
        library_guide=library_guide,
        device_guide=device_guide,
        quality_standards=COMMON_QUALITY_STANDARDS,
    )


def build_user_prompt(prompt: str, variation_count: int = 3) -> str:
    template = SINGLE_USER_PROMPT if variation_count == 1 else VARIATIONS_USER_PROMPT
    return template.format(prompt=prompt)


def build_generation_prompts(ui_library, device_type, variation_count: int = 3, prompt: str = "") -> PromptPair:
    """Prompt pair for a fresh generation in single or three-variation mode."""
    return PromptPair(
        system=build_system_prompt(ui_library, device_type, variation_count),
        user=build_user_prompt(prompt, variation_count),
    )


def build_edit_prompts(current_html: str, edit_instruction: str) -> PromptPair:
    return PromptPair(
        system=HTML_EDIT_SYSTEM_PROMPT,
        user=HTML_EDIT_USER_PROMPT.format(
            current_html=current_html,
            edit_instructions=edit_instruction,
        ),
    )
