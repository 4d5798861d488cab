import pytest

from hatter.automate.errors import ActionError
from hatter.automate.selector_util import escape_attribute_value, partial_id_selector, resolve_selector
from hatter.models.command import parse_command


def test_exact_selector_passes_through():
    command = parse_command({"action": "click", "selector": "form > button.primary"})
    assert resolve_selector(command) == "form > button.primary"


def test_partial_id_becomes_substring_match():
    command = parse_command({"action": "clickPartial", "partialId": "submit"})
    assert resolve_selector(command) == '[id*="submit"]'


def test_partial_id_is_escaped():
    assert partial_id_selector('a"b\\c') == '[id*="a\\"b\\\\c"]'
    assert escape_attribute_value("plain") == "plain"


@pytest.mark.parametrize(
    "entry",
    [
        {"action": "click", "selector": ""},
        {"action": "click", "selector": "   "},
        {"action": "typePartial", "partialId": "", "text": "x"},
    ],
)
def test_blank_targets_fail(entry):
    with pytest.raises(ActionError):
        resolve_selector(parse_command(entry))
