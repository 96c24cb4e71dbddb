from urllib.parse import parse_qs, urlsplit

import pytest

from migsource.util import MultiError, filter_custom_query, suint


def test_suint_raises_on_negative_input():
    with pytest.raises(ValueError):
        suint(-1)


def test_suint_zero():
    assert suint(0) == 0


def test_suint_positive():
    assert suint(42) == 42


def test_filter_custom_query():
    result = filter_custom_query("foo://host?a=b&x-custom=foo&c=d&ok=y")
    query = parse_qs(urlsplit(result).query)
    assert "x-custom" not in query
    assert query["ok"] == ["y"]
    assert query["a"] == ["b"]
    assert query["c"] == ["d"]


def test_filter_custom_query_sorts_keys_and_keeps_rest():
    result = filter_custom_query("foo://host?a=b&x-custom=foo&c=d&ok=y")
    assert result == "foo://host?a=b&c=d&ok=y"


def test_filter_custom_query_keeps_short_keys():
    result = filter_custom_query("foo://host?x=1&x-y=2")
    assert parse_qs(urlsplit(result).query) == {"x": ["1"]}


def test_filter_custom_query_all_removed_drops_question_mark():
    assert filter_custom_query("foo://host/path?x-a=1") == "foo://host/path"


def test_multi_error_joins_messages():
    err = MultiError(ValueError("a"), None, ValueError("b"))
    assert str(err) == "a and b"
    assert len(err.errs) == 2


def test_multi_error_skips_empty_messages():
    err = MultiError(ValueError(""), ValueError("x"))
    assert str(err) == "x"
    assert len(err.errs) == 2


def test_multi_error_empty():
    err = MultiError(None, None)
    assert err.errs == []
    assert str(err) == ""