"""
Tests for Field Discovery & Mapping

Tests:
1. Classification rule order
2. Locator chains and re-resolution
3. Option / grid vocabularies
4. Fuzzy label matching
5. Discovery over a whole form
"""

import pytest

from formtasker_core.mapping import (
    DocumentNode,
    FieldType,
    LocatorStrategy,
    build_relative_path,
    classify,
    discover,
    element,
    extract_options,
    fuzzy_match,
    locate,
    resolve,
    resolve_chain,
    string_similarity,
)
from formtasker_core.mapping.locator import is_transient_id
from formtasker_core.mapping.selectors import SelectorSyntaxError, parse_selector, select_all
from mocks import build_sample_form


class TestClassify:
    """Test the ordered classification rules."""

    def test_marker_beats_tag(self):
        node = element("input", {"type": "text", "data-question-type": "paragraph"})
        assert classify(node) == FieldType.LONG_TEXT

    def test_grid_marker_precedes_plain_radio(self):
        node = element("div", {"data-question-type": "grid_radio"})
        assert classify(node) == FieldType.GRID_SINGLE

        node = element("div", {"data-question-type": "grid_checkbox"})
        assert classify(node) == FieldType.GRID_MULTI

    @pytest.mark.parametrize("attrs,tag,expected", [
        ({"type": "email"}, "input", FieldType.SHORT_TEXT),
        ({"type": "number"}, "input", FieldType.SHORT_TEXT),
        ({"type": "file"}, "input", FieldType.FILE),
        ({"type": "date"}, "input", FieldType.DATE),
        ({"type": "time"}, "input", FieldType.TIME),
        ({"type": "radio"}, "input", FieldType.SINGLE_CHOICE),
        ({"type": "checkbox"}, "input", FieldType.MULTI_CHOICE),
        ({}, "textarea", FieldType.LONG_TEXT),
        ({}, "select", FieldType.DROPDOWN),
    ])
    def test_tag_defaults(self, attrs, tag, expected):
        assert classify(element(tag, attrs)) == expected

    def test_role_radio_in_grid_row(self):
        radio = element("div", {"role": "radio"})
        element("div", {"role": "grid"}, element("div", {"role": "row"}, radio))
        assert classify(radio) == FieldType.GRID_SINGLE

    def test_role_radio_outside_grid(self):
        radio = element("div", {"role": "radio"})
        element("div", {"role": "radiogroup"}, radio)
        assert classify(radio) == FieldType.SINGLE_CHOICE

    def test_role_checkbox_in_grid_row(self):
        box = element("div", {"role": "checkbox"})
        element("div", {"role": "row"}, box)
        assert classify(box) == FieldType.GRID_MULTI

    def test_role_listbox_and_multiline_textbox(self):
        assert classify(element("div", {"role": "listbox"})) == FieldType.DROPDOWN
        assert classify(element("div", {"role": "textbox", "aria-multiline": "true"})) == FieldType.LONG_TEXT

    def test_content_heuristics(self):
        assert classify(element("div", {}, text="Rate on a scale of 1 to 5")) == FieldType.LINEAR_SCALE
        assert classify(element("div", {}, text="Upload your file")) == FieldType.FILE
        assert classify(element("div", {}, text="Check all that apply")) == FieldType.MULTI_CHOICE
        assert classify(element("div", {}, text="Select one")) == FieldType.DROPDOWN

    def test_fallback_short_text(self):
        assert classify(element("div")) == FieldType.SHORT_TEXT


class TestLocator:
    """Test locator chains."""

    def test_chain_order(self):
        node = element("div", {
            "data-question-id": "q1",
            "data-item-id": "i1",
            "id": "email",
            "name": "entry.1",
            "aria-label": "Email",
        })
        element("form", {}, node)

        strategies = [loc.strategy for loc in locate(node)]
        assert strategies == [
            LocatorStrategy.QUESTION_ID,
            LocatorStrategy.ITEM_ID,
            LocatorStrategy.ELEMENT_ID,
            LocatorStrategy.NAME,
            LocatorStrategy.ARIA_LABEL,
            LocatorStrategy.RELATIVE_PATH,
        ]

    def test_every_locator_resolves_back(self):
        node = element("input", {"id": "email", "name": "entry.1", "aria-label": "Email"})
        root = element("form", {}, element("div", {}, element("input", {"name": "other"})), element("div", {}, node))

        for locator in locate(node):
            assert resolve(root, locator.expression) is node, locator

    @pytest.mark.parametrize("value", ["tmp-123", ":r1:", "a1b2c3d4e5f6", "ember42", "react-select-3"])
    def test_transient_ids_skipped(self, value):
        assert is_transient_id(value)
        node = element("input", {"id": value})
        element("form", {}, node)
        assert all(loc.strategy != LocatorStrategy.ELEMENT_ID for loc in locate(node))

    def test_stable_id_kept(self):
        assert not is_transient_id("email")

    def test_aria_label_escaped(self):
        node = element("div", {"aria-label": 'Say "hi" \\ now'})
        root = element("form", {}, node)

        chain = locate(node)
        aria = next(loc for loc in chain if loc.strategy == LocatorStrategy.ARIA_LABEL)
        assert aria.expression == '[aria-label="Say \\"hi\\" \\\\ now"]'
        assert resolve(root, aria.expression) is node

    def test_relative_path_always_present(self):
        node = element("input", {"type": "text"})
        root = element("form", {},
            element("div", {"class": "q"}, element("input", {"type": "text"})),
            element("div", {"class": "q"}, node),
        )
        chain = locate(node)
        assert len(chain) == 1
        assert chain[0].strategy == LocatorStrategy.RELATIVE_PATH
        assert resolve(root, chain[0].expression) is node

    def test_relative_path_stops_at_stable_id(self):
        node = element("input", {})
        root = element("body", {}, element("section", {"id": "main"}, element("div", {}, node)))
        path = build_relative_path(node)
        assert path.startswith("section#main")
        assert resolve(root, path) is node

    def test_resolve_chain_falls_through(self):
        node = element("input", {"name": "entry.5"})
        root = element("form", {}, node)
        chain = locate(node)
        stale = element("input", {"data-question-id": "gone"})
        locator, found = resolve_chain(root, locate(stale)[:1] + chain)
        assert found is node
        assert locator.strategy == LocatorStrategy.NAME

    def test_resolve_bad_expression_returns_none(self):
        assert resolve(element("form"), "div:hover") is None


class TestSelectors:
    """Test the selector subset."""

    def test_parse_combinators(self):
        parts = parse_selector("form > div.q:nth-of-type(2) input[name^='entry.']")
        assert [c for c, _ in parts] == ["", ">", " "]
        assert parts[1][1].classes == ["q"]
        assert parts[1][1].nth_of_type == 2

    def test_unterminated_string(self):
        with pytest.raises(SelectorSyntaxError):
            parse_selector('[aria-label="oops]')

    def test_select_all_document_order(self):
        root = element("form", {},
            element("input", {"name": "entry.2"}),
            element("div", {}, element("input", {"name": "entry.1"})),
        )
        names = [n.get("name") for n in select_all(root, "input[name^='entry.']")]
        assert names == ["entry.2", "entry.1"]


class TestOptions:
    """Test vocabulary extraction."""

    def test_choice_options_unique_in_order(self):
        node = element("div", {},
            element("label", {}, text=" Yes "),
            element("label", {}, text="No"),
            element("div", {"role": "radio"}, text="Yes"),
            element("label", {}, text=""),
        )
        assert extract_options(node, FieldType.SINGLE_CHOICE) == {"options": ["Yes", "No"]}

    def test_option_aria_label_fallback(self):
        node = element("div", {}, element("div", {"role": "checkbox", "aria-label": "Tea"}))
        assert extract_options(node, FieldType.MULTI_CHOICE)["options"] == ["Tea"]

    def test_scale_numeric_labels(self):
        node = element("div", {}, *[element("div", {"role": "radio"}, text=str(n)) for n in range(0, 11)])
        assert extract_options(node, FieldType.LINEAR_SCALE)["options"] == [str(n) for n in range(0, 11)]

    def test_scale_fallback(self):
        node = element("div", {}, element("label", {}, text="Low"), element("label", {}, text="High"))
        assert extract_options(node, FieldType.LINEAR_SCALE)["options"] == ["1", "2", "3", "4", "5"]

    def test_grid_headers(self):
        node = element("div", {},
            element("div", {"role": "row"},
                element("div", {"role": "columnheader"}, text="Bad"),
                element("div", {"role": "columnheader"}, text="Fine"),
            ),
            element("div", {"role": "row"},
                element("div", {"role": "rowheader"}, text="Speed"),
                element("div", {"role": "radio"}),
                element("div", {"role": "radio"}),
            ),
        )
        assert extract_options(node, FieldType.GRID_SINGLE) == {"rows": ["Speed"], "columns": ["Bad", "Fine"]}

    def test_grid_column_synthesis_and_row_fallback(self):
        node = element("div", {},
            element("div", {"role": "row"},
                element("div", {"role": "rowheader"}),
                element("div", {"role": "checkbox"}),
                element("div", {"role": "checkbox"}),
                element("div", {"role": "checkbox"}),
            ),
        )
        vocab = extract_options(node, FieldType.GRID_MULTI)
        assert vocab["rows"] == ["Row 1"]
        assert vocab["columns"] == ["Option 1", "Option 2", "Option 3"]

    def test_text_types_have_no_vocabulary(self):
        assert extract_options(element("input"), FieldType.SHORT_TEXT) == {}


class TestFuzzyMatch:
    """Test fuzzy matching."""

    def test_exact_case_insensitive(self):
        assert fuzzy_match("EMAIL", ["Name", "Email"]) == "Email"

    def test_substring_either_direction(self):
        assert fuzzy_match("Your email address", ["Name", "Email"]) == "Email"
        assert fuzzy_match("mail", ["Name", "Email"]) == "Email"

    def test_similarity_above_threshold(self):
        assert fuzzy_match("favourite colour", ["Favourite color", "Age"]) == "Favourite color"

    def test_no_match(self):
        assert fuzzy_match("zzzz", ["Name", "Email"]) is None
        assert fuzzy_match("", ["Name"]) is None
        assert fuzzy_match("Name", []) is None

    def test_similarity_formula(self):
        assert string_similarity("colour", "color") == pytest.approx(10 / 12)
        assert string_similarity("", "") == 1.0

    def test_deterministic(self):
        candidates = ["Colour", "Color", "Colours"]
        assert len({fuzzy_match("colr", candidates) for _ in range(5)}) == 1


class TestDiscover:
    """Test discovery over a full form."""

    def test_sample_form(self):
        fields = discover(build_sample_form())
        summary = [(f.id, f.type, f.label) for f in fields]
        assert summary == [
            ("111", FieldType.SHORT_TEXT, "Your name"),
            ("222", FieldType.SINGLE_CHOICE, "Favourite colour"),
            ("333", FieldType.LINEAR_SCALE, "How would you rate us"),
            ("444", FieldType.GRID_SINGLE, "Rate each part"),
            ("555", FieldType.DATE, "Visit date"),
        ]

    def test_sample_form_vocabularies(self):
        by_id = {f.id: f for f in discover(build_sample_form())}
        assert by_id["222"].options == ["Red", "Green", "Blue"]
        assert by_id["333"].options == ["1", "2", "3", "4", "5"]
        assert by_id["444"].grid_rows == ["Food", "Service"]
        assert by_id["444"].grid_columns == ["Poor", "Good"]
        assert by_id["111"].options is None

    def test_ids_stable_across_discoveries(self):
        first = [f.id for f in discover(build_sample_form())]
        second = [f.id for f in discover(build_sample_form())]
        assert first == second

    def test_locator_chain_resolves_to_container(self):
        root = build_sample_form()
        field = discover(root)[1]
        _, node = resolve_chain(root, field.locator_chain)
        assert node is not None
        assert node.get("data-item-id") == "1002"

    def test_id_fallbacks(self):
        root = element("form", {},
            element("div", {"data-question-id": "dq"}, element("textarea")),
            element("div", {"role": "listitem"}, element("select")),
        )
        ids = [f.id for f in discover(root)]
        assert ids == ["dq", "q-2"]

    def test_duplicate_ids_first_wins(self):
        root = element("form", {},
            element("div", {"data-item-id": "x"}, element("input", {"type": "text"})),
            element("div", {"data-item-id": "x"}, element("textarea")),
        )
        fields = discover(root)
        assert len(fields) == 1
        assert fields[0].type == FieldType.SHORT_TEXT

    def test_plain_text_inputs_discovered(self):
        root = element("form", {},
            element("div", {"data-item-id": "1"}, element("input", {"type": "email"})),
            element("input", {"type": "text", "aria-label": "Name"}),
            element("input", {"aria-label": "Untyped"}),
            element("input", {"type": "submit", "aria-label": "Send"}),
        )
        summary = [(f.id, f.type, f.label) for f in discover(root)]
        assert summary == [
            ("1", FieldType.SHORT_TEXT, "Untitled Question"),
            ("q-1", FieldType.SHORT_TEXT, "Name"),
            ("q-2", FieldType.SHORT_TEXT, "Untyped"),
        ]

    def test_untitled_label(self):
        root = element("form", {}, element("input", {"type": "text"}))
        assert discover(root)[0].label == "Untitled Question"

    def test_label_truncated(self):
        root = element("form", {}, element("div", {"aria-label": "x" * 150, "data-item-id": "1"}, element("textarea")))
        assert len(discover(root)[0].label) == 100

    def test_hidden_inputs_ignored(self):
        root = element("form", {}, element("input", {"type": "hidden", "name": "entry.9"}))
        assert discover(root) == []

    def test_node_dict_round_trip(self):
        root = build_sample_form()
        rebuilt = DocumentNode.from_dict(root.to_dict())
        assert [f.to_dict() for f in discover(rebuilt)] == [f.to_dict() for f in discover(root)]
