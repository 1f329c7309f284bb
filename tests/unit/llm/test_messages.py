"""
Unit tests for the message model.

Tests cover:
- Construction rules (content required, tool message fields, tool calls)
- Wire serialization of each variant
- Wire deserialization and its failure modes
- Tool call argument handling
- Prefilled tool exchanges
"""

import json

import pytest
from pydantic import ValidationError

from llmagency.errors import ArgumentParseError, MalformedMessage, UnknownRole
from llmagency.llm.messages import (
    AiMessage,
    AiToolsMessage,
    SystemMessage,
    ToolCall,
    ToolMessage,
    UserMessage,
    message_from_wire,
    messages_from_wire,
    system_message,
    tool_calls,
    user_message,
)


def _wire_call(call_id: str = "call_1", name: str = "add", arguments='{"a": 2, "b": 3}') -> dict:
    return {"id": call_id, "type": "function", "function": {"name": name, "arguments": arguments}}


class TestConstruction:
    """Tests for message construction invariants."""

    @pytest.mark.parametrize("cls", [SystemMessage, UserMessage, AiMessage])
    def test_plain_variants_require_content(self, cls):
        with pytest.raises(ValidationError):
            cls(content=None)

    def test_tool_message_requires_content(self):
        with pytest.raises(ValidationError):
            ToolMessage(content=None, tool_call_id="call_1", name="add")

    def test_tool_message_requires_tool_call_id(self):
        with pytest.raises(ValidationError):
            ToolMessage(content="5", name="add")

    def test_tool_message_requires_name(self):
        with pytest.raises(ValidationError):
            ToolMessage(content="5", tool_call_id="call_1")

    def test_tool_message_rejects_empty_name(self):
        with pytest.raises(ValidationError):
            ToolMessage(content="5", tool_call_id="call_1", name="")

    def test_tools_message_allows_null_content(self):
        msg = AiToolsMessage(content=None, tool_calls=[ToolCall(id="call_1", name="add")])
        assert msg.content is None
        assert msg.role == "assistant"

    def test_tools_message_requires_tool_calls(self):
        with pytest.raises(ValidationError):
            AiToolsMessage(content=None, tool_calls=[])

    def test_tools_message_accepts_wire_shaped_calls(self):
        msg = AiToolsMessage(tool_calls=[_wire_call()])
        assert msg.tool_calls[0].name == "add"
        assert msg.tool_calls[0].arguments == {"a": 2, "b": 3}

    def test_roles(self):
        assert SystemMessage(content="x").role == "system"
        assert UserMessage(content="x").role == "user"
        assert AiMessage(content="x").role == "assistant"
        assert ToolMessage(content="x", tool_call_id="c", name="t").role == "tool"

    def test_tags_default_to_empty(self):
        assert user_message("hi").tags == []
        assert UserMessage(content="hi", tags=None).tags == []

    def test_empty_string_content_is_allowed(self):
        assert AiMessage(content="").content == ""

    def test_clone_replaces_fields(self):
        original = system_message("Be brief.", tags=["setup"])
        copy = original.clone(content="Be verbose.")
        assert isinstance(copy, SystemMessage)
        assert copy.content == "Be verbose."
        assert copy.tags == ["setup"]
        assert original.content == "Be brief."

    def test_clone_still_validates(self):
        with pytest.raises(ValidationError):
            user_message("hi").clone(content=None)


class TestSerialization:
    """Tests for to_wire()."""

    def test_plain_message(self):
        assert user_message("hello", tags=["greeting"]).to_wire() == {
            "role": "user",
            "content": "hello",
            "tags": ["greeting"],
        }

    def test_tool_message_fields(self):
        wire = ToolMessage(content=5, tool_call_id="call_1", name="add").to_wire()
        assert wire == {
            "role": "tool",
            "content": 5,
            "tags": [],
            "tool_call_id": "call_1",
            "name": "add",
        }

    def test_tools_message_encodes_arguments_as_string(self):
        msg = AiToolsMessage(tool_calls=[ToolCall(id="call_1", name="add", arguments={"a": 2, "b": 3})])
        wire = msg.to_wire()

        assert wire["role"] == "assistant"
        assert wire["content"] is None
        call = wire["tool_calls"][0]
        assert call["id"] == "call_1"
        assert call["type"] == "function"
        assert call["function"]["name"] == "add"
        assert json.loads(call["function"]["arguments"]) == {"a": 2, "b": 3}

    def test_string_arguments_are_sent_verbatim(self):
        call = ToolCall(id="call_1", name="add", arguments="{not json")
        assert call.to_wire()["function"]["arguments"] == "{not json"

    def test_str_includes_variant_and_content(self):
        assert str(user_message("hi")) == "<UserMessage (content=hi, tags=[])>"


class TestFromWire:
    """Tests for message_from_wire() dispatch and failures."""

    def test_system(self):
        msg = message_from_wire({"role": "system", "content": "Be brief."})
        assert isinstance(msg, SystemMessage)
        assert msg.content == "Be brief."

    def test_user(self):
        msg = message_from_wire({"role": "user", "content": "hi", "tags": ["a"]})
        assert isinstance(msg, UserMessage)
        assert msg.tags == ["a"]

    def test_assistant_without_tool_calls(self):
        msg = message_from_wire({"role": "assistant", "content": "Paris."})
        assert type(msg) is AiMessage

    def test_assistant_with_empty_tool_calls_is_plain_reply(self):
        msg = message_from_wire({"role": "assistant", "content": "Paris.", "tool_calls": []})
        assert type(msg) is AiMessage

    def test_assistant_with_tool_calls(self):
        msg = message_from_wire({"role": "assistant", "content": None, "tool_calls": [_wire_call()]})
        assert isinstance(msg, AiToolsMessage)
        assert msg.tool_calls[0].id == "call_1"
        assert msg.tool_calls[0].arguments == {"a": 2, "b": 3}

    def test_structured_arguments_are_kept(self):
        msg = message_from_wire({"role": "assistant", "tool_calls": [_wire_call(arguments={"x": 1})]})
        assert msg.tool_calls[0].arguments == {"x": 1}

    def test_malformed_arguments_do_not_fail_conversion(self):
        msg = message_from_wire({"role": "assistant", "tool_calls": [_wire_call(arguments="{oops")]})
        assert msg.tool_calls[0].arguments == "{oops"

    def test_tool(self):
        msg = message_from_wire({"role": "tool", "content": "5", "tool_call_id": "call_1", "name": "add"})
        assert isinstance(msg, ToolMessage)
        assert msg.tool_call_id == "call_1"
        assert msg.name == "add"

    @pytest.mark.parametrize("missing", ["tool_call_id", "name"])
    def test_tool_missing_fields(self, missing):
        record = {"role": "tool", "content": "5", "tool_call_id": "call_1", "name": "add"}
        del record[missing]
        with pytest.raises(MalformedMessage):
            message_from_wire(record)

    def test_missing_role(self):
        with pytest.raises(MalformedMessage):
            message_from_wire({"content": "hi"})

    def test_not_a_mapping(self):
        with pytest.raises(MalformedMessage):
            message_from_wire(None)

    def test_unknown_role(self):
        with pytest.raises(UnknownRole) as exc_info:
            message_from_wire({"role": "narrator", "content": "Once upon a time"})
        assert exc_info.value.role == "narrator"

    def test_null_content_on_plain_role(self):
        with pytest.raises(MalformedMessage):
            message_from_wire({"role": "user", "content": None})

    def test_tool_call_without_function_name(self):
        with pytest.raises(MalformedMessage):
            message_from_wire({"role": "assistant", "tool_calls": [{"id": "c", "function": {}}]})

    def test_tool_call_without_id(self):
        with pytest.raises(MalformedMessage):
            message_from_wire({"role": "assistant", "tool_calls": [{"function": {"name": "add"}}]})

    def test_messages_from_wire_empty(self):
        assert messages_from_wire(None) == []
        assert messages_from_wire([]) == []

    def test_messages_from_wire_preserves_order(self):
        msgs = messages_from_wire(
            [{"role": "system", "content": "s"}, {"role": "user", "content": "u"}]
        )
        assert [m.role for m in msgs] == ["system", "user"]


class TestRoundTrip:
    """from_wire(to_wire(m)) reproduces each variant."""

    @pytest.mark.parametrize(
        "message",
        [
            SystemMessage(content="Be brief.", tags=["setup"]),
            UserMessage(content="What is 2+3?"),
            AiMessage(content="5", tags=["final"]),
            AiToolsMessage(
                content="Let me add that.",
                tool_calls=[ToolCall(id="call_1", name="add", arguments={"a": 2, "b": 3})],
            ),
            AiToolsMessage(tool_calls=[ToolCall(id="call_2", name="echo", arguments='"hello"')]),
            ToolMessage(content=5, tool_call_id="call_1", name="add", tags=["result"]),
        ],
        ids=["system", "user", "assistant", "assistant-tools", "assistant-string-arguments", "tool"],
    )
    def test_round_trip(self, message):
        restored = message_from_wire(message.to_wire())
        assert type(restored) is type(message)
        assert restored == message


class TestToolCallArguments:
    """Tests for ToolCall.parsed_arguments()."""

    def test_structured_arguments_pass_through(self):
        assert ToolCall(id="c", name="t", arguments={"a": 1}).parsed_arguments() == {"a": 1}

    def test_string_arguments_are_decoded(self):
        assert ToolCall(id="c", name="t", arguments='{"a": 1}').parsed_arguments() == {"a": 1}

    def test_malformed_string_raises(self):
        with pytest.raises(ArgumentParseError):
            ToolCall(id="c", name="t", arguments="{a: 1").parsed_arguments()

    def test_json_string_value_is_not_decoded_twice(self):
        call = ToolCall.from_wire(_wire_call(arguments='"hello"'))

        assert call.arguments == "hello"
        assert call.parsed_arguments() == "hello"
        assert call.to_wire()["function"]["arguments"] == '"hello"'

    @pytest.mark.parametrize("raw", ['"{oops"', "42", "null", "[1, 2]"])
    def test_any_json_value_survives_the_wire(self, raw):
        call = ToolCall.from_wire(_wire_call(arguments=raw))
        assert json.loads(call.to_wire()["function"]["arguments"]) == json.loads(raw)
        assert call.parsed_arguments() == json.loads(raw)

    def test_not_found_flag_defaults_false(self):
        call = ToolCall(id="c", name="t")
        assert call.is_not_found is False
        call.mark_not_found()
        assert call.is_not_found is True


class TestToolCallsHelper:
    """Tests for tool_calls(), which builds a finished tool exchange."""

    def test_builds_request_and_results(self):
        history = tool_calls(
            content="Checking.",
            calls=[
                {"name": "add", "arguments": {"a": 1, "b": 2}, "content": 3},
                {"name": "mul", "arguments": {"a": 2, "b": 2}, "content": 4},
            ],
        )

        request, *results = history
        assert isinstance(request, AiToolsMessage)
        assert request.content == "Checking."
        assert [tc.name for tc in request.tool_calls] == ["add", "mul"]
        assert [r.content for r in results] == [3, 4]

    def test_results_are_correlated_by_id(self):
        request, *results = tool_calls(calls=[{"name": "a", "content": "x"}, {"name": "b", "content": "y"}])
        assert [r.tool_call_id for r in results] == [tc.id for tc in request.tool_calls]
        assert len({tc.id for tc in request.tool_calls}) == 2

    def test_missing_arguments_default_to_empty_object(self):
        request, _ = tool_calls(calls=[{"name": "now", "content": "noon"}])
        assert request.tool_calls[0].arguments == {}
