import re

import pytest
from pydantic import ValidationError

from lazuli.errors import InvalidRequest
from lazuli.selectors import (
    ElementType,
    LikeQuery,
    PickPolicy,
    QueryKind,
    SelectorSpec,
    Tag,
    like,
    like_xpath,
    parse_find_settings,
    parse_single,
)
from lazuli.selectors.xpath import descendant_path, xp_and, xp_contains, xp_literal, xp_not, xp_or


# -------- xpath helpers --------


def test_xp_literal_quoting():
    assert xp_literal("abc") == "'abc'"
    assert xp_literal("it's") == '"it\'s"'
    assert xp_literal("a'b\"c") == "concat('a', \"'\", 'b\"c')"


def test_xp_contains_token_and_substring():
    assert xp_contains("@class", "nav") == "contains(concat(' ', normalize-space(@class), ' '), ' nav ')"
    assert xp_contains("@href", "login", "") == "contains(concat('', normalize-space(@href), ''), 'login')"


def test_xp_boolean_joins():
    assert xp_or("@a", "@b") == "((@a) or (@b))"
    assert xp_and("@a") == "@a"
    assert xp_and() == "true()"
    assert xp_not("@a") == "not(@a)"
    assert descendant_path("a", False) == "//a"
    assert descendant_path("a", True) == ".//a"


# -------- normalization --------


def test_plain_string_is_name_id_text_lookup():
    spec = parse_single("login")
    assert spec.kind == QueryKind.typed
    assert spec.element == "element"
    assert spec.value == "login"
    assert spec.only_present is True
    assert spec.error_on_miss is True
    assert spec.pick == PickPolicy.first


def test_tag_is_like_query():
    spec = parse_single(Tag("a"))
    assert spec.kind == QueryKind.like
    assert spec.like.element == "a"
    assert not spec.like.has_filter
    assert like_xpath(spec) == "//a"


def test_like_shorthand_equals_named_form():
    positional = parse_single({"like": ("a", "href", "account/login")})
    named = parse_single({"like": {"element": "a", "attribute": "href", "include": "account/login"}})
    helper = parse_single(like("a", "href", "account/login"))
    assert positional == named == helper
    assert like_xpath(named) == "//a[contains(concat('', normalize-space(@href), ''), 'account/login')]"


def test_like_on_text_uses_text_node():
    spec = parse_single({"like": ("span", "text", "Welcome")})
    assert like_xpath(spec) == "//span[contains(concat('', normalize-space(text()), ''), 'Welcome')]"


def test_like_without_element_is_invalid():
    with pytest.raises(InvalidRequest) as exc:
        parse_single({"like": {"attribute": "href", "include": "x"}})
    assert exc.value.groups == ["find-by-like"]


def test_typed_with_filters_and_text():
    spec = parse_single({"text_field": {"name": "q", "text": "Search"}})
    assert spec.kind == QueryKind.typed
    assert spec.element_type == ElementType.text_field
    assert spec.filters == {"name": "q"}
    assert spec.text_match == "Search"


def test_element_type_lookup_is_forgiving():
    assert parse_single({"Text Field": "q"}).element_type == ElementType.text_field
    assert parse_single({"select-list": "cars"}).element_type == ElementType.select_list
    assert parse_single(ElementType.button).element == "button"


def test_tag_name_form():
    pattern = re.compile("foo")
    spec = parse_single({"tag_name": "span", "class": pattern, "text": "hi"})
    assert spec.kind == QueryKind.typed
    assert spec.element == "element"
    assert spec.uses_tag_name
    assert spec.filters == {"tag_name": "span", "class": pattern}
    assert spec.text_match == "hi"


def test_unknown_key_falls_back_to_path():
    spec = parse_single({"my-widget": {"data_id": "7"}})
    assert spec.kind == QueryKind.path
    assert spec.element == "my-widget"
    assert spec.element_type is None


def test_options_are_split_off():
    spec = parse_single({"link": "Home", "present": False, "error": False, "pick": "last", "groups": "nav"})
    assert spec.only_present is False
    assert spec.error_on_miss is False
    assert spec.pick == PickPolicy.last
    assert spec.groups == ["nav"]


def test_pick_accepts_index():
    assert parse_single({"link": "Home", "pick": 2}).pick == 2
    assert parse_single({"link": "Home", "pick": "-1"}).pick == -1


@pytest.mark.parametrize("bad", [True, "sometimes"])
def test_bad_pick_is_invalid(bad):
    with pytest.raises(InvalidRequest):
        parse_single({"link": "Home", "pick": bad})


def test_list_becomes_alternatives():
    parsed = parse_find_settings(["login", Tag("button"), [{"link": "Sign in"}]])
    assert isinstance(parsed, list)
    assert [s.kind for s in parsed] == [QueryKind.typed, QueryKind.like, QueryKind.typed]


@pytest.mark.parametrize(
    "settings",
    [
        {},
        [],
        {"link": "a", "button": "b"},
        {"present": False},
        42,
    ],
)
def test_malformed_settings(settings):
    with pytest.raises(InvalidRequest):
        parse_find_settings(settings)


def test_parse_single_rejects_lists():
    with pytest.raises(InvalidRequest):
        parse_single(["a", "b"])


def test_parsing_does_not_touch_caller_mapping():
    settings = {"text_field": {"name": "q", "text": "x"}, "pick": "last"}
    parse_single(settings)
    assert settings == {"text_field": {"name": "q", "text": "x"}, "pick": "last"}


def test_describe_mentions_filters():
    assert "href" in parse_single(like("a", "href", "x")).describe()
    assert "'login'" in parse_single("login").describe()


def test_like_kind_requires_like_query():
    with pytest.raises(ValidationError):
        SelectorSpec(kind=QueryKind.like, element="a")
    with pytest.raises(ValidationError):
        SelectorSpec(kind=QueryKind.typed, element="a", like=LikeQuery(element="a"))
