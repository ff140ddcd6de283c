import pytest

from pagecraft_core.targeting.locator import (
    format_locator,
    is_ancestor,
    is_valid_locator,
    parent_locator,
    parse_locator,
    tag_of,
)


def test_parse_and_format():
    steps = parse_locator("/html[1]/body[1]/div[2]/p[1]")
    assert steps == [("html", 1), ("body", 1), ("div", 2), ("p", 1)]
    assert format_locator(steps) == "/html[1]/body[1]/div[2]/p[1]"


@pytest.mark.parametrize("bad", [
    "", "html[1]", "/html", "/html[0]", "/HTML[1]", "/html[1]/", "/html[1]//body[1]", "/html[a]", None,
])
def test_invalid_locators(bad):
    assert not is_valid_locator(bad)
    with pytest.raises(ValueError):
        parse_locator(bad)


def test_custom_element_names_are_valid():
    assert is_valid_locator("/html[1]/body[1]/my-widget[3]")
    assert tag_of("/html[1]/body[1]/my-widget[3]") == "my-widget"


def test_parent_locator():
    assert parent_locator("/html[1]/body[1]/div[2]") == "/html[1]/body[1]"
    assert parent_locator("/html[1]") is None


def test_is_ancestor_is_strict_and_step_aware():
    assert is_ancestor("/html[1]/body[1]", "/html[1]/body[1]/div[1]")
    assert not is_ancestor("/html[1]/body[1]", "/html[1]/body[1]")
    # div[1] is not an ancestor of div[12]
    assert not is_ancestor("/html[1]/body[1]/div[1]", "/html[1]/body[1]/div[12]")
