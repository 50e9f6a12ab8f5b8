"""
Tests for parameter value substitution.
"""

import json

from hypothesis import given, strategies as st

from mod_designer_core.value_substitution import (
    is_available_reference, js_literal, substitute
)


class TestSubstitute:
    """Rewriting raw parameter values into JavaScript expressions."""

    def test_reference_to_available_variable(self):
        assert substitute("$player", ["player"]) == "player"

    def test_reference_to_dotted_path(self):
        assert substitute("$evt.player", ["evt", "evt.player"]) == "evt.player"

    def test_reference_prefix_of_available_name(self):
        """``$evt`` resolves when only ``evt.player`` is listed."""
        assert substitute("$evt", ["evt.player"]) == "evt"

    def test_reference_to_unavailable_variable_is_quoted(self):
        assert substitute("$player", []) == '"$player"'
        assert substitute("$play", ["player"]) == '"$play"'

    def test_bare_sigil_is_quoted(self):
        assert substitute("$", ["player"]) == '"$"'

    def test_interpolation_becomes_template_literal(self):
        assert substitute("Welcome ${player.name}!", []) == "`Welcome ${player.name}!`"

    def test_leading_interpolation_is_not_a_reference(self):
        assert substitute("${player}", ["player"]) == "`${player}`"

    def test_plain_string_is_quoted(self):
        assert substitute("hello", []) == '"hello"'

    def test_quotes_are_escaped(self):
        assert substitute('say "hi"', []) == '"say \\"hi\\""'

    def test_non_strings_render_as_literals(self):
        assert substitute(20, []) == "20"
        assert substitute(1.5, []) == "1.5"
        assert substitute(True, []) == "true"
        assert substitute(None, []) == "null"
        assert substitute({"a": 1}, []) == '{"a": 1}'

    def test_unserialisable_value_falls_back_to_string(self):
        assert js_literal({1, 2}) in ('"{1, 2}"', '"{2, 1}"')

    def test_is_available_reference(self):
        assert is_available_reference("evt", ["evt.message"])
        assert not is_available_reference("ev", ["evt.message"])


# Property-based tests
@given(st.text().filter(lambda s: "${" not in s and not s.startswith("$")))
def test_plain_text_round_trips_through_json(value):
    """Quoted literals decode back to the input value."""
    assert json.loads(substitute(value, ["player"])) == value


@given(st.from_regex(r"[a-z][a-zA-Z0-9_]{0,10}", fullmatch=True))
def test_available_reference_is_emitted_bare(name):
    assert substitute("$" + name, [name]) == name
