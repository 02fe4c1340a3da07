"""Tests for string-to-sign canonicalization."""

import pytest

from hmacauth.core.canonical import (
    canonical_json,
    message_bytes,
    string_to_sign,
    validate_message,
)
from hmacauth.core.errors import InternalError


class TestCanonicalJson:
    """Tests for deterministic JSON."""

    def test_sorted_keys_no_whitespace(self):
        assert canonical_json({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'

    def test_nested_key_order_independent(self):
        first = {"outer": {"z": 1, "a": {"y": 2, "b": 3}}}
        second = {"outer": {"a": {"b": 3, "y": 2}, "z": 1}}
        assert canonical_json(first) == canonical_json(second)

    def test_unicode_not_escaped(self):
        assert canonical_json({"name": "café"}) == '{"name":"café"}'

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(None, "null"), (True, "true"), (12345, "12345"), ([], "[]"), ({}, "{}")],
    )
    def test_scalars(self, value, expected):
        assert canonical_json(value) == expected

    def test_nan_rejected(self):
        with pytest.raises(InternalError):
            canonical_json(float("nan"))

    def test_unserializable_raises_internal_error(self):
        with pytest.raises(InternalError) as exc_info:
            canonical_json({"obj": object()})
        assert "serializable" in str(exc_info.value)

    def test_deep_nesting_raises_internal_error(self):
        nested: list = []
        for _ in range(100_000):
            nested = [nested]
        with pytest.raises(InternalError):
            canonical_json(nested)

    def test_oversized_int_raises_internal_error(self):
        with pytest.raises(InternalError):
            canonical_json(int("9" * 4000) ** 2)


class TestMessageBytes:
    def test_text_passes_through(self):
        assert message_bytes("Hello, HMAC!") == b"Hello, HMAC!"

    def test_text_is_not_json_quoted(self):
        assert message_bytes("abc") != canonical_json("abc").encode()

    def test_structured_values_serialized(self):
        assert message_bytes({"userId": 1, "name": "John"}) == b'{"name":"John","userId":1}'
        assert message_bytes(["apple", "banana"]) == b'["apple","banana"]'
        assert message_bytes(12345) == b"12345"
        assert message_bytes(None) == b"null"

    def test_bytes_pass_through(self):
        assert message_bytes(b"\x00raw") == b"\x00raw"


class TestStringToSign:
    def test_format(self):
        result = string_to_sign("get", "/api/protected", {}, "1700000000000")
        assert result == "1700000000000.GET./api/protected.{}"

    def test_none_body_is_empty_object(self):
        assert string_to_sign("POST", "/x", None, 1) == "1.POST./x.{}"

    def test_body_serialized_canonically(self):
        result = string_to_sign("post", "/api/protected/data", {"b": 2, "a": 1}, 5)
        assert result == '5.POST./api/protected/data.{"a":1,"b":2}'

    def test_empty_list_body_kept(self):
        assert string_to_sign("POST", "/x", [], 1) == "1.POST./x.[]"


def test_validate_message():
    assert validate_message("hello") is True
    assert validate_message(0) is True
    with pytest.raises(ValueError):
        validate_message(None)
