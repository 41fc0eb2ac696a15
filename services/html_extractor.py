"""
Pulls HTML fragments out of raw model responses.

Models wrap their output in markdown fences, sometimes labeled
(```html variation-2). Nothing here raises: bad input yields an empty result.
"""
import re
import logging
from typing import List, Optional

from models.generation import Fragment

logger = logging.getLogger(__name__)

FENCED_BLOCK_RE = re.compile(r"```(?:html)?\n?([\s\S]*?)```")
LABELED_VARIATION_RE = re.compile(r"```html\s+variation-(\d+)\s*\n([\s\S]*?)```")
GENERIC_BLOCK_RE = re.compile(r"```(?:html)?\s*\n([\s\S]*?)```")


def extract_code(response: Optional[str]) -> str:
    """
    Return the first fenced block's content, or the whole trimmed response
    when there is no fence or the first fence is empty.
    """
    if not response:
        return ""

    match = FENCED_BLOCK_RE.search(response)
    if match:
        code = match.group(1).strip()
        if code:
            return code
    return response.strip()


def extract_variations(response: Optional[str]) -> List[Fragment]:
    """
    Return the labeled variation blocks in the order they appear.

    Falls back to any fenced block containing a <div when the model ignored
    the variation labels; those get ordinals 1..n by position.
    """
    if not response:
        return []

    fragments: List[Fragment] = []
    for match in LABELED_VARIATION_RE.finditer(response):
        code = match.group(2).strip()
        if not code:
            continue
        ordinal = int(match.group(1))
        fragments.append(Fragment(
            ordinal=ordinal,
            id=f"v{ordinal}",
            label=f"Variation {ordinal}",
            code=code,
        ))

    if fragments:
        return fragments

    for match in GENERIC_BLOCK_RE.finditer(response):
        code = match.group(1).strip()
        if "<div" not in code:
            continue
        ordinal = len(fragments) + 1
        fragments.append(Fragment(
            ordinal=ordinal,
            id=f"v{ordinal}",
            label=f"Variation {ordinal}",
            code=code,
        ))

    if fragments:
        logger.info(f"No labeled variations found, recovered {len(fragments)} unlabeled block(s)")
    return fragments
