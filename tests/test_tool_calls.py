"""Test tool-call accumulation."""
import pytest

from core.errors import MalformedRecord
from verticals.board.tool_calls import PendingToolCall, ToolCallAccumulator, ToolCallState

ARGS = '{"title": "Fix logo", "priority": "high", "status": "todo"}'


def fragment(arguments="", name=None, index=0):
    function = {"arguments": arguments}
    if name:
        function["name"] = name
    return [{"index": index, "function": function}]


def test_initial_state():
    acc = ToolCallAccumulator()
    assert acc.state == ToolCallState.IDLE
    assert not acc.has_call


def test_complete_without_fragments():
    acc = ToolCallAccumulator()
    assert acc.complete() is None
    assert acc.state == ToolCallState.COMPLETED


def test_accumulates_name_and_arguments():
    acc = ToolCallAccumulator()
    acc.add(fragment(name="create_task"))
    assert acc.state == ToolCallState.ACCUMULATING
    acc.add(fragment('{"title": "Fix'))
    acc.add(fragment(' logo", "priority": "high", "status": "todo"}'))

    call = acc.complete()
    assert call == PendingToolCall(name="create_task", arguments=ARGS)
    assert call.parse_arguments()["title"] == "Fix logo"


@pytest.mark.parametrize("size", [1, 3, 7, len(ARGS)])
def test_fragmentation_does_not_change_result(size):
    acc = ToolCallAccumulator()
    acc.add(fragment(name="create_task"))
    for start in range(0, len(ARGS), size):
        acc.add(fragment(ARGS[start:start + size]))
    assert acc.complete().parse_arguments() == {
        "title": "Fix logo", "priority": "high", "status": "todo",
    }


def test_completes_only_once():
    acc = ToolCallAccumulator()
    acc.add(fragment(ARGS, name="create_task"))
    assert acc.complete() is not None
    assert acc.complete() is None


def test_fragments_after_completion_ignored():
    acc = ToolCallAccumulator()
    acc.add(fragment("{}", name="create_task"))
    acc.complete()
    acc.add(fragment("more"))
    assert acc.arguments == "{}"


def test_name_set_once():
    acc = ToolCallAccumulator()
    acc.add(fragment(name="create_task"))
    acc.add(fragment("{}", name="something_else"))
    assert acc.complete().name == "create_task"


def test_additional_call_index_ignored():
    acc = ToolCallAccumulator()
    acc.add(fragment(ARGS, name="create_task", index=0))
    acc.add(fragment('{"title": "Other"}', name="create_task", index=1))
    assert acc.complete().arguments == ARGS


def test_call_without_name_yields_nothing():
    acc = ToolCallAccumulator()
    acc.add(fragment(ARGS))
    assert acc.complete() is None


def test_parse_arguments_empty():
    assert PendingToolCall("create_task", "").parse_arguments() == {}


@pytest.mark.parametrize("arguments", ['{"title": "Fix', "[1, 2]"])
def test_parse_arguments_malformed(arguments):
    with pytest.raises(MalformedRecord):
        PendingToolCall("create_task", arguments).parse_arguments()


def test_decoded_object_arguments_accepted():
    acc = ToolCallAccumulator()
    acc.add([{
        "index": 0,
        "function": {
            "name": "create_task",
            "arguments": {"title": "Fix logo", "priority": "high", "status": "todo"},
        },
    }])
    assert acc.complete().parse_arguments() == {
        "title": "Fix logo", "priority": "high", "status": "todo",
    }


def test_non_string_argument_fragments_dropped():
    acc = ToolCallAccumulator()
    acc.add(fragment(name="create_task"))
    acc.add([{"index": 0, "function": {"arguments": ["not", "json"]}}])
    acc.add([{"index": 0, "function": {"arguments": 42}}])
    acc.add(fragment("{}"))
    assert acc.complete().arguments == "{}"


@pytest.mark.parametrize("function", ["create_task", ["create_task"], 7])
def test_malformed_function_field_skipped(function):
    acc = ToolCallAccumulator()
    acc.add([{"index": 0, "function": function}])
    assert acc.state == ToolCallState.IDLE
    assert acc.complete() is None
