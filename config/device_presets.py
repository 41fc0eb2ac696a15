"""
Device Presets Configuration for UISketch

Canvas widths the model designs against, and the frame sizes used when a
finished mockup is previewed at a device size.
"""

from typing import Dict, List, TypedDict


class PreviewSize(TypedDict):
    """Type definition for a preview frame."""
    width: int
    height: int
    label: str


# Width of the canvas each device category is designed for
CANVAS_WIDTHS: Dict[str, int] = {
    "MOBILE": 390,
    "TABLET": 768,
    "DESKTOP": 1280,
    "BOTH": 1280,  # responsive mockups are drawn at desktop width
}

# Frame sizes for the canvas nodes (infinite canvas)
CANVAS_FRAMES: Dict[str, Dict[str, int]] = {
    "MOBILE": {"width": 390, "height": 844},
    "TABLET": {"width": 768, "height": 1024},
    "DESKTOP": {"width": 1440, "height": 900},
    "BOTH": {"width": 1440, "height": 900},
}

PREVIEW_SIZES: Dict[str, PreviewSize] = {
    "mobile": {"width": 375, "height": 667, "label": "Mobile"},
    "tablet": {"width": 768, "height": 1024, "label": "Tablet"},
    "desktop": {"width": 1280, "height": 800, "label": "Desktop"},
}

DEFAULT_PREVIEW = "desktop"


def get_canvas_width(device_type: str) -> int:
    """
    Get the canvas width in pixels for a device category.

    Raises:
        KeyError: If the device category is unknown
    """
    if device_type not in CANVAS_WIDTHS:
        raise KeyError(f"Device type '{device_type}' not found. Available: {list(CANVAS_WIDTHS.keys())}")
    return CANVAS_WIDTHS[device_type]


def get_preview_size(device: str) -> PreviewSize:
    """Get the preview frame for a device, falling back to desktop."""
    return PREVIEW_SIZES.get(device, PREVIEW_SIZES[DEFAULT_PREVIEW])


def list_preview_devices() -> List[str]:
    return list(PREVIEW_SIZES.keys())


def get_device_info_for_frontend() -> Dict[str, Dict[str, int]]:
    """Canvas frame sizes keyed by device category, for the canvas view."""
    return {
        device: {"canvas_width": CANVAS_WIDTHS[device], **frame}
        for device, frame in CANVAS_FRAMES.items()
    }
