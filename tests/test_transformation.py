"""
Tests for the Transformation evaluator and its built-in operations.
"""

import base64
import time

import pytest

from scriptflow.errors import AssertionFailedError, TransformationError, UnknownFunctionError
from scriptflow.transform import FunctionRegistry, Transformation, TraceNode, register_function


async def transform(template, value):
    return await Transformation(template).transform(value)


# =============================================================================
# Evaluator Tests
# =============================================================================


class TestEvaluator:
    """Tests for chaining, absence and value specifications."""

    def test_template_must_be_object(self):
        with pytest.raises(TransformationError):
            Transformation(["get", "/foo"])

    @pytest.mark.asyncio
    async def test_chain_in_key_order(self):
        result = await transform({"get": "/name", "upperCase": {}}, {"name": "john"})

        assert result == "JOHN"

    @pytest.mark.asyncio
    async def test_absence_short_circuits(self):
        result = await transform({"get": "/unknown", "substring": {"start": 1}}, {"name": "john"})

        assert result is None

    @pytest.mark.asyncio
    async def test_null_tolerant_operations(self):
        assert await transform({"get": "/unknown", "default": "n/a"}, {}) == "n/a"
        assert await transform({"get": "/unknown", "static": 1}, {}) == 1

    @pytest.mark.asyncio
    async def test_unknown_function(self):
        with pytest.raises(UnknownFunctionError, match="Unknown function bogus"):
            await transform({"bogus": {}}, {})

    @pytest.mark.asyncio
    async def test_unknown_function_after_absence(self):
        assert await transform({"get": "/unknown", "bogus": {}}, {}) is None
        assert await transform({"get": "/unknown", "bogus": {}, "default": "n/a"}, {}) == "n/a"

    @pytest.mark.asyncio
    async def test_unknown_function_with_value(self):
        with pytest.raises(UnknownFunctionError):
            await transform({"get": "/a", "bogus": {}}, {"a": 1})

    @pytest.mark.asyncio
    async def test_input_is_not_mutated(self):
        value = {"a": {"b": 1}}

        result = await transform({"object": {"...": "...", "c": {"static": 2}}}, value)
        result["a"]["b"] = 99

        assert value == {"a": {"b": 1}}

    @pytest.mark.asyncio
    async def test_subscript_requires_runner(self):
        with pytest.raises(TransformationError, match="not available"):
            await transform({"object": {"foo": [{"static": "bar"}]}}, {})

    @pytest.mark.asyncio
    async def test_runner_receives_steps(self):
        calls = []

        async def runner(steps, document, trace=None):
            calls.append((steps, document))
            return "ran"

        result = await Transformation({"object": {"foo": [{"get": "/x"}]}}, runner=runner).transform({"x": 1})

        assert result == {"foo": "ran"}
        assert calls == [([{"get": "/x"}], {"x": 1})]

    @pytest.mark.asyncio
    async def test_trace_records_properties(self):
        trace: list[TraceNode] = []

        await Transformation({"object": {"baz": "/foo", "lit": 1}}, trace=trace).transform({"foo": "bar"})

        assert [node.info for node in trace] == ["baz property, using shorthand", "lit property"]
        assert trace[0].definition == [{"get": "/foo"}]
        assert trace[0].output == "bar"

    @pytest.mark.asyncio
    async def test_custom_registry(self):
        registry = FunctionRegistry()

        @register_function("double", registry=registry)
        async def double(t, value, options):
            return value * 2

        result = await Transformation({"double": {}}, registry=registry).transform(21)

        assert result == 42
        assert registry.list_names() == ["double"]


# =============================================================================
# Structure Tests
# =============================================================================


class TestStructure:
    """Tests for object construction and collections."""

    @pytest.mark.asyncio
    async def test_get_requires_string(self):
        with pytest.raises(TransformationError):
            await transform({"get": 1}, {})

    @pytest.mark.asyncio
    async def test_object_retains_input(self):
        result = await transform({"object": {"foo": "bar", "...": "..."}}, {"bar": "baz"})

        assert result == {"foo": "bar", "bar": "baz"}

    @pytest.mark.asyncio
    async def test_object_explicit_keys_win(self):
        result = await transform({"object": {"...": "...", "foo": {"static": "new"}}}, {"foo": "old"})

        assert result == {"foo": "new"}

    @pytest.mark.asyncio
    async def test_object_nested_template(self):
        result = await transform({"object": {"name": {"get": "/user/name", "upperCase": {}}}}, {"user": {"name": "ann"}})

        assert result == {"name": "ANN"}

    @pytest.mark.asyncio
    async def test_map(self):
        result = await transform({"map": {"get": "/id"}}, [{"id": 1}, {"id": 2}])

        assert result == [1, 2]
        assert await transform({"map": {"get": "/id"}}, {"id": 1}) is None

    @pytest.mark.asyncio
    async def test_array_and_union(self):
        value = {"badges": ["a", "b"], "badge": "b", "extra": ["c"]}

        assert await transform({"array": ["/badge", {"static": 1}]}, value) == ["b", 1]
        assert await transform({"union": ["/badges", {"array": ["/badge"]}, "/extra"]}, value) == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_filter_truthy(self):
        assert await transform({"filter": {}}, [3, 2, 56, 0, 3]) == [3, 2, 56, 3]
        assert await transform({"filter": {}}, [1, "", None, [], {}, False]) == [1, [], {}]

    @pytest.mark.asyncio
    async def test_filter_with_template(self):
        result = await transform({"filter": {"get": "/count"}}, [{"id": 1, "count": 3}, {"id": 2, "count": 0}])

        assert result == [{"id": 1, "count": 3}]

    @pytest.mark.asyncio
    async def test_filter_non_array(self):
        assert await transform({"filter": {}}, "abc") is None

    @pytest.mark.asyncio
    async def test_case(self):
        options = {"open": "Open", "1": "One", "default": "Other"}

        assert await transform({"case": options}, "open") == "Open"
        assert await transform({"case": options}, 1) == "One"
        assert await transform({"case": options}, "closed") == "Other"

    @pytest.mark.asyncio
    async def test_keys(self):
        assert await transform({"keys": {}}, {"a": 1, "b": 2, "c": 3}) == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_omit_and_pick(self):
        value = {"a": 1, "b": 2, "c": 3}

        assert await transform({"omit": "a"}, value) == {"b": 2, "c": 3}
        assert await transform({"omit": ["b", "c"]}, value) == {"a": 1}
        assert await transform({"pick": "a"}, value) == {"a": 1}
        assert await transform({"pick": ["b", "c"]}, value) == {"b": 2, "c": 3}

    @pytest.mark.asyncio
    async def test_changed(self):
        value = {
            "left": {"a": 1, "b": "test", "c": {"foo": "bar"}, "d": {"foo": "bar"}, "f": None},
            "right": {"a": 1, "e": "test", "c": {"foo": "baz"}, "d": {"foo": "bar"}, "g": None},
        }

        result = await transform({"changed": {"left": "/left", "right": "/right"}}, value)

        assert result == {"b": None, "c": {"foo": "baz"}, "e": "test"}

    @pytest.mark.asyncio
    async def test_change(self):
        value = {
            "target": {"a": 1, "b": "test", "c": {"foo": "bar"}, "d": {"foo": "bar"}},
            "changes": {"b": None, "c": {"foo": "baz"}, "e": "test"},
        }

        result = await transform({"change": {"target": "/target", "changes": "/changes"}}, value)

        assert result == {"a": 1, "e": "test", "c": {"foo": "baz"}, "d": {"foo": "bar"}}


# =============================================================================
# String Tests
# =============================================================================


class TestStrings:
    """Tests for string operations."""

    @pytest.mark.asyncio
    async def test_split(self):
        assert await transform({"split": {"separator": "/"}}, "a/b/c") == ["a", "b", "c"]
        assert await transform({"split": {"separator": "/", "maxItems": 2}}, "a/b/c") == ["a", "b"]
        assert await transform({"split": {"separator": "/", "maxItems": 2, "addRemainder": True}}, "a/b/c") == [
            "a",
            "b/c",
        ]

    @pytest.mark.asyncio
    async def test_split_requires_separator(self):
        with pytest.raises(TransformationError):
            await transform({"split": {}}, "a/b")

    @pytest.mark.asyncio
    async def test_split_non_string(self):
        assert await transform({"split": {"separator": "/"}}, 12) == []

    @pytest.mark.asyncio
    async def test_match(self):
        assert await transform({"match": "/^(.)[a-z]$/i"}, "Ab") == ["Ab", "A"]
        assert await transform({"match": "/^(.)[a-z]$/i"}, "abc") is False
        assert await transform({"match": "/[0-9]+/g"}, "a1b22c333") == ["1", "22", "333"]

    @pytest.mark.asyncio
    async def test_match_shorthand(self):
        template = {"match": {"pattern": "/pattern", "input": "/input"}}

        assert await transform(template, {"pattern": "/^(.)[a-z]$/i", "input": "ab"}) == ["ab", "a"]
        assert await transform(template, "abc") is False

    @pytest.mark.asyncio
    async def test_replace(self):
        assert await transform({"replace": {"search": "o", "replace": "0"}}, "foo") == "f0o"
        assert await transform({"replace": {"search": "/o/g", "replace": "0"}}, "foo") == "f00"
        assert await transform({"replace": {"search": "/(\\w+)@(\\w+)/", "replace": "$2 at $1"}}, "me@home") == "home at me"

    @pytest.mark.asyncio
    async def test_join_and_slice(self):
        assert await transform({"join": {"separator": ", "}}, ["a", 1, None, True]) == "a, 1, , true"
        assert await transform({"slice": {"from": 1, "to": 3}}, [1, 2, 3, 4]) == [2, 3]

    @pytest.mark.asyncio
    async def test_count_and_length(self):
        assert await transform({"count": {}}, [1, 2]) == 2
        assert await transform({"count": {}}, 5) == 0
        assert await transform({"length": {}}, "abc") == 3
        with pytest.raises(TransformationError):
            await transform({"length": {}}, 5)

    @pytest.mark.asyncio
    async def test_substring(self):
        assert await transform({"substring": {"start": 1, "length": 2}}, "abcd") == "bc"
        assert await transform({"substring": {"start": 2}}, "abcd") == "cd"
        with pytest.raises(TransformationError):
            await transform({"substring": {}}, 42)

    @pytest.mark.asyncio
    async def test_casing(self):
        assert await transform({"camelCase": {}}, "lorem ipsum") == "loremIpsum"
        assert await transform({"kebabCase": {}}, "Lorem Ipsum") == "lorem-ipsum"
        assert await transform({"snakeCase": {}}, "fooBar") == "foo_bar"
        assert await transform({"upperCase": {}}, "foo bar") == "FOO BAR"
        assert await transform({"capitalize": {}}, "fRED") == "Fred"
        assert await transform({"deburr": {}}, "déjà vu") == "deja vu"
        assert await transform({"upperCase": {}}, 42) is None


# =============================================================================
# Codec Tests
# =============================================================================


class TestCodecs:
    """Tests for encoding, templates and validation."""

    @pytest.mark.asyncio
    async def test_base64(self):
        encoded = base64.b64encode(b"test").decode()

        assert await transform({"toBase64": {}}, "test") == encoded
        assert await transform({"fromBase64": {}}, encoded) == "test"

    @pytest.mark.asyncio
    async def test_json(self):
        assert await transform({"toJson": {}}, {"a": [1, 2]}) == '{"a":[1,2]}'
        assert await transform({"fromJson": {}}, '{"a": [1, 2]}') == {"a": [1, 2]}
        with pytest.raises(TransformationError):
            await transform({"fromJson": {}}, "{nope")

    @pytest.mark.asyncio
    async def test_from_xml(self):
        result = await transform({"fromXml": {}}, '<item id="1"><name>Foo</name></item>')

        assert result == {"item": {"@id": "1", "name": "Foo"}}

    @pytest.mark.asyncio
    async def test_hash(self):
        assert await transform({"hash": {}}, "test") == "098f6bcd4621d373cade4e832627b4f6"
        assert len(await transform({"hash": {"algorithm": "sha256"}}, "test")) == 64

    @pytest.mark.asyncio
    async def test_now(self):
        result = await transform({"get": "/missing", "now": {}}, {})

        assert abs(result - time.time()) < 5

    @pytest.mark.asyncio
    async def test_render(self):
        assert await transform({"render": "<h1>{{title}}</h1>"}, {"title": "Test"}) == "<h1>Test</h1>"
        assert await transform({"render": "<p>{{title}}</p>"}, {"title": "<b>"}) == "<p>&lt;b&gt;</p>"

    @pytest.mark.asyncio
    async def test_assert(self):
        schema = {"id": {"type": "integer"}}

        assert await transform({"assert": schema}, {"id": 1}) == {"id": 1}
        with pytest.raises(AssertionFailedError):
            await transform({"assert": schema}, {"id": "one"})


# =============================================================================
# Date Tests
# =============================================================================


class TestDates:
    """Tests for parseDate and formatDate."""

    @pytest.mark.asyncio
    async def test_parse_date(self):
        result = await transform({"parseDate": {"format": "D MMMM YYYY", "locale": "nl"}}, "3 mei 2017")

        assert result == "2017-05-03T00:00:00.000Z"

    @pytest.mark.asyncio
    async def test_parse_invalid_date(self):
        assert await transform({"parseDate": {"format": "YYYY-MM-DD"}}, "not a date") is None

    @pytest.mark.asyncio
    async def test_format_date(self):
        result = await transform({"formatDate": {"format": "D MMMM YYYY", "locale": "nl"}}, "2017-05-03")

        assert result == "3 mei 2017"

    @pytest.mark.asyncio
    async def test_unsupported_locale(self):
        with pytest.raises(TransformationError):
            await transform({"formatDate": {"locale": "xx-nope"}}, "2017-05-03")


# =============================================================================
# HTML Tests
# =============================================================================

PAGE = """
<div id="main">
  <a class="link primary" href="/a">First</a>
  <a class="link" href="/b">Second</a>
  <table id="prices">
    <tr><td>Apple</td><td>1.00</td></tr>
    <tr><td> Pear </td><td>2.00</td></tr>
  </table>
</div>
"""


class TestHtml:
    """Tests for HTML extraction."""

    @pytest.mark.asyncio
    async def test_tags(self):
        assert await transform({"htmlTag": "a"}, PAGE) == '<a class="link primary" href="/a">First</a>'
        assert await transform({"htmlTagText": "a"}, PAGE) == "First"
        assert await transform({"htmlTagsText": "a.link"}, PAGE) == ["First", "Second"]
        assert len(await transform({"htmlTags": "a"}, PAGE)) == 2

    @pytest.mark.asyncio
    async def test_no_match(self):
        assert await transform({"htmlTag": "span"}, PAGE) is None
        assert await transform({"htmlTags": "span"}, PAGE) == []
        assert await transform({"htmlTags": "a"}, 5) == []

    @pytest.mark.asyncio
    async def test_attribute(self):
        assert await transform({"htmlTag": "a", "htmlAttribute": "href"}, PAGE) == "/a"
        assert await transform({"htmlTag": "a", "htmlAttribute": "class"}, PAGE) == "link primary"

    @pytest.mark.asyncio
    async def test_table(self):
        row = await transform({"htmlTable": {"selector": "#prices", "cell": 0, "text": "pear"}}, PAGE)
        price = await transform({"htmlTable": {"cell": 0, "text": "PEAR", "returnCell": 1}}, PAGE)

        assert "2.00" in row
        assert price == "2.00"
        assert await transform({"htmlTable": {"cell": 0, "text": "plum"}}, PAGE) is None
