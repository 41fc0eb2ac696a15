"""
Structural checks on generated HTML before it is stored.
"""
import logging
from typing import List, Optional

from models.generation import Fragment, ValidationResult

logger = logging.getLogger(__name__)

CONTAINER_TAGS = ("<div", "<section", "<main")
PLACEHOLDER_MARKERS = ("// TODO", "/* TODO", "<!-- TODO")


def validate_code(code: Optional[str]) -> ValidationResult:
    """
    Check a fragment, stopping at the first failing rule:
    container element, CSS classes, placeholder comments, script tags.
    """
    code = code or ""

    if not any(tag in code for tag in CONTAINER_TAGS):
        return ValidationResult(valid=False, error="Missing container element")

    if "class=" not in code:
        return ValidationResult(valid=False, error="No CSS classes found")

    if any(marker in code for marker in PLACEHOLDER_MARKERS):
        return ValidationResult(valid=False, error="Contains placeholder comments")

    if "<script" in code.lower():
        return ValidationResult(valid=False, error="Script tags not allowed")

    return ValidationResult(valid=True)


def filter_valid(fragments: List[Fragment]) -> List[Fragment]:
    valid = []
    for fragment in fragments:
        result = validate_code(fragment.code)
        if result.valid:
            valid.append(fragment)
        else:
            logger.warning(f"Variation {fragment.id} failed validation: {result.error}")
    return valid
