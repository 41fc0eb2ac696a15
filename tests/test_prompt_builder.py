import pytest

from models.mockup import DeviceType, UILibrary
from prompts.builder import build_generation_prompts, build_edit_prompts, canvas_width

from tests.conftest import VALID_HTML


@pytest.mark.parametrize("device, width", [
    (DeviceType.MOBILE, 390),
    (DeviceType.TABLET, 768),
    (DeviceType.DESKTOP, 1280),
    (DeviceType.BOTH, 1280),
])
def test_canvas_width_per_device(device, width):
    assert canvas_width(device) == width


def test_variations_prompt_asks_for_labeled_blocks():
    prompts = build_generation_prompts(UILibrary.SHADCN, DeviceType.MOBILE, 3, "A banking app home screen")

    assert "```html variation-1" in prompts.system
    assert "```html variation-3" in prompts.system
    assert "Width: 390px" in prompts.system
    assert "Shadcn/UI" in prompts.system
    assert "Mobile Layout" in prompts.system
    assert "A banking app home screen" in prompts.user


def test_single_prompt_has_no_variation_labels():
    prompts = build_generation_prompts(UILibrary.ACETERNITY, DeviceType.DESKTOP, 1, "Landing page")

    assert "variation-1" not in prompts.system
    assert "Aceternity" in prompts.system
    assert "Width: 1280px" in prompts.system


def test_prompts_are_deterministic():
    first = build_generation_prompts(UILibrary.ANT_DESIGN, DeviceType.TABLET, 3, "Admin table")
    second = build_generation_prompts(UILibrary.ANT_DESIGN, DeviceType.TABLET, 3, "Admin table")

    assert first == second


def test_accepts_plain_string_selectors():
    by_enum = build_generation_prompts(UILibrary.MATERIAL_UI, DeviceType.BOTH, 3, "x")
    by_str = build_generation_prompts("MATERIAL_UI", "BOTH", 3, "x")

    assert by_enum == by_str


@pytest.mark.parametrize("count", [0, 2, 4])
def test_unsupported_variation_count_raises(count):
    with pytest.raises(ValueError):
        build_generation_prompts(UILibrary.SHADCN, DeviceType.DESKTOP, count)


def test_edit_prompt_embeds_current_html_in_fence():
    prompts = build_edit_prompts(VALID_HTML, "Make the heading blue")

    assert f"```html\n{VALID_HTML}\n```" in prompts.user
    assert "Make the heading blue" in prompts.user
    assert "modifies existing HTML mockups" in prompts.system
