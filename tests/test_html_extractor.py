from services.html_extractor import extract_code, extract_variations

from tests.conftest import VALID_HTML, labeled_response


def test_extract_code_takes_first_html_fence():
    response = f"Sure!\n```html\n{VALID_HTML}\n```\nand another\n```html\n<div>second</div>\n```"

    assert extract_code(response) == VALID_HTML


def test_extract_code_accepts_untagged_fence():
    assert extract_code(f"```\n{VALID_HTML}\n```") == VALID_HTML


def test_extract_code_falls_back_to_trimmed_response():
    assert extract_code(f"   {VALID_HTML}\n\n") == VALID_HTML


def test_extract_code_empty_fence_falls_back_to_whole_response():
    response = "```html\n```"

    assert extract_code(response) == response


def test_extract_code_handles_missing_input():
    assert extract_code(None) == ""
    assert extract_code("") == ""


def test_extract_variations_reads_labels_in_order():
    fragments = extract_variations(labeled_response("<div class='a'>1</div>", "<div class='b'>2</div>", "<div class='c'>3</div>"))

    assert [f.ordinal for f in fragments] == [1, 2, 3]
    assert [f.id for f in fragments] == ["v1", "v2", "v3"]
    assert fragments[1].label == "Variation 2"
    assert fragments[2].code == "<div class='c'>3</div>"


def test_extract_variations_keeps_label_numbers_when_one_is_empty():
    response = (
        "```html variation-1\n<div class='a'>1</div>\n```\n"
        "```html variation-2\n\n```\n"
        "```html variation-3\n<div class='c'>3</div>\n```"
    )

    fragments = extract_variations(response)

    assert [f.ordinal for f in fragments] == [1, 3]
    assert [f.id for f in fragments] == ["v1", "v3"]


def test_extract_variations_falls_back_to_unlabeled_div_blocks():
    response = (
        "```html\n<div class='a'>first</div>\n```\n"
        "```html\n<p>no container here</p>\n```\n"
        "```\n<div class='b'>second</div>\n```"
    )

    fragments = extract_variations(response)

    assert [f.ordinal for f in fragments] == [1, 2]
    assert fragments[0].code == "<div class='a'>first</div>"
    assert fragments[1].label == "Variation 2"


def test_extract_variations_without_fences_returns_nothing():
    assert extract_variations("I could not produce a design this time.") == []
    assert extract_variations(None) == []
