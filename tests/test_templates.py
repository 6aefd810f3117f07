"""Tests for provisioner.templates module.

Tests ${name} interpolation, $f:name whole-value references, recursion into
mappings and lists, and the canonical string form of field values.
"""

import pytest

from provisioner.errors import TemplateError, UnresolvedFieldError
from provisioner.fields import NOT_FOUND, FieldStore
from provisioner.templates import has_placeholders, resolve, stringify


FIELDS = {
    "host": "db1",
    "user": "root",
    "port": 5432,
    "ratio": 0.5,
    "enabled": True,
    "disabled": False,
    "taglist": ["a", "b"],
    "server": {"ip": "10.0.0.1", "zone": "us-east-1a"},
    "nothing_here": None,
}


class TestInterpolation:
    """Tests for ${name} placeholders."""

    def test_whole_string(self):
        assert resolve("${host}", FIELDS) == "db1"

    def test_embedded_in_text(self):
        assert resolve("host=${host}", FIELDS) == "host=db1"

    def test_multiple_placeholders(self):
        assert resolve("${user}@${host}:${port}", FIELDS) == "root@db1:5432"

    def test_number_is_stringified(self):
        assert resolve("${port}", FIELDS) == "5432"
        assert resolve("${ratio}", FIELDS) == "0.5"

    def test_booleans_use_literal_form(self):
        assert resolve("${enabled}/${disabled}", FIELDS) == "true/false"

    def test_list_uses_stable_encoding(self):
        assert resolve("${taglist}", FIELDS) == '["a","b"]'

    def test_mapping_uses_sorted_keys(self):
        assert resolve("${server}", FIELDS) == '{"ip":"10.0.0.1","zone":"us-east-1a"}'

    def test_dotted_path(self):
        assert resolve("ip=${server.ip}", FIELDS) == "ip=10.0.0.1"

    def test_missing_field_raises(self):
        with pytest.raises(UnresolvedFieldError) as exc_info:
            resolve("host=${missing}", FIELDS)
        assert exc_info.value.name == "missing"

    def test_missing_never_becomes_empty_string(self):
        with pytest.raises(UnresolvedFieldError):
            resolve("${missing}", {})

    def test_null_field_raises(self):
        with pytest.raises(UnresolvedFieldError):
            resolve("${nothing_here}", FIELDS)

    def test_missing_dotted_path_raises(self):
        with pytest.raises(UnresolvedFieldError):
            resolve("${server.missing}", FIELDS)

    def test_empty_placeholder_raises(self):
        with pytest.raises(TemplateError):
            resolve("${}", FIELDS)

    def test_plain_string_unchanged(self):
        assert resolve("no templates $here", FIELDS) == "no templates $here"


class TestFieldReference:
    """Tests for $f:name placeholders."""

    def test_list_keeps_type(self):
        assert resolve("$f:taglist", FIELDS) == ["a", "b"]

    def test_mapping_keeps_type(self):
        assert resolve("$f:server", FIELDS) == {"ip": "10.0.0.1", "zone": "us-east-1a"}

    def test_number_keeps_type(self):
        assert resolve("$f:port", FIELDS) == 5432

    def test_null_field_returns_none(self):
        assert resolve("$f:nothing_here", FIELDS) is None

    def test_dotted_path(self):
        assert resolve("$f:server.ip", FIELDS) == "10.0.0.1"

    def test_result_is_a_copy(self):
        result = resolve("$f:taglist", FIELDS)
        result.append("c")
        assert FIELDS["taglist"] == ["a", "b"]

    def test_missing_field_raises(self):
        with pytest.raises(UnresolvedFieldError):
            resolve("$f:missing", FIELDS)

    def test_inside_larger_string_raises(self):
        with pytest.raises(TemplateError, match="entire value"):
            resolve("tags: $f:taglist", FIELDS)

    def test_trailing_text_raises(self):
        with pytest.raises(TemplateError):
            resolve("$f:taglist and more", FIELDS)


class TestRecursion:
    """Tests for resolution of nested raw values."""

    def test_mapping_leaves_resolved(self):
        params = {"host": "${host}", "user": "${user}", "tags": "$f:taglist"}
        assert resolve(params, FIELDS) == {"host": "db1", "user": "root", "tags": ["a", "b"]}

    def test_nested_mapping_and_list(self):
        params = {"conn": {"url": "ssh://${host}"}, "hosts": ["${host}", "$f:port"]}
        assert resolve(params, FIELDS) == {"conn": {"url": "ssh://db1"}, "hosts": ["db1", 5432]}

    def test_literals_pass_through(self):
        params = {"count": 3, "public": False, "ratio": 1.5, "none": None}
        assert resolve(params, FIELDS) == params

    def test_input_not_modified(self):
        params = {"host": "${host}"}
        resolve(params, FIELDS)
        assert params == {"host": "${host}"}


class TestLookupSources:
    """resolve accepts a FieldStore, a mapping, or a lookup function."""

    def test_field_store(self):
        assert resolve("${host}", FieldStore({"host": "db1"})) == "db1"

    def test_lookup_function(self):
        def lookup(name):
            return "value-of-" + name if name != "missing" else NOT_FOUND

        assert resolve("${x}", lookup) == "value-of-x"
        with pytest.raises(UnresolvedFieldError):
            resolve("${missing}", lookup)


class TestStringify:
    """Tests for stringify."""

    @pytest.mark.parametrize("value, expected", [
        ("text", "text"),
        (42, "42"),
        (2.5, "2.5"),
        (True, "true"),
        (False, "false"),
        ([1, "a"], '[1,"a"]'),
        ({"b": 1, "a": 2}, '{"a":2,"b":1}'),
    ])
    def test_canonical_forms(self, value, expected):
        assert stringify(value) == expected


class TestHasPlaceholders:

    def test_detects_nested(self):
        assert has_placeholders({"a": ["x", "${y}"]})
        assert has_placeholders("$f:z")
        assert not has_placeholders({"a": ["x", 1]})
