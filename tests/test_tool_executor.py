import asyncio
import functools

import pytest
from pydantic import BaseModel

from parley import Capability, FunctionCall, ToolCallRequest
from parley.domain.tool.tool_executor import (
    TOOL_NOT_FOUND, ToolExecutor, parse_arguments, serialize_result
)


class Point(BaseModel):
    x: int
    y: int


class TestSerializeResult:
    def test_dict_is_compact_json(self):
        assert serialize_result({"a": 1}) == '{"a":1}'

    def test_none_is_undefined(self):
        result = serialize_result(None)
        assert result == "undefined"

    def test_functions(self):
        assert serialize_result(lambda: 1) == "[Function]"
        assert serialize_result(len) == "[Function]"
        assert serialize_result(functools.partial(max, 1)) == "[Function]"

    def test_big_integers_keep_every_digit(self):
        assert serialize_result(2 ** 80) == "1208925819614629174706176"

    def test_strings_are_json_encoded(self):
        assert serialize_result("sunny") == '"sunny"'

    def test_booleans_and_lists(self):
        assert serialize_result(True) == "true"
        assert serialize_result([1, "a"]) == '[1,"a"]'

    def test_pydantic_models(self):
        assert serialize_result(Point(x=1, y=2)) == '{"x":1,"y":2}'

    def test_cyclic_structures_fall_back_to_str(self):
        cyclic = {}
        cyclic["self"] = cyclic
        assert serialize_result(cyclic) == str(cyclic)

    def test_unencodable_objects_fall_back_to_str(self):
        class Thing:
            def __str__(self):
                return "a thing"

        assert serialize_result(Thing()) == "a thing"


class TestParseArguments:
    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_means_no_arguments(self, raw):
        assert parse_arguments(raw) == {}

    def test_json_object(self):
        assert parse_arguments('{"city": "Madrid"}') == {"city": "Madrid"}

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError):
            parse_arguments("{not json")


def _call(call_id, name, arguments="{}"):
    return ToolCallRequest(id=call_id, function=FunctionCall(name=name, arguments=arguments))


class TestToolExecutor:
    @pytest.mark.asyncio
    async def test_results_keep_request_order(self):
        async def slow(orchestrator, args):
            await asyncio.sleep(0.05)
            return "slow"

        capabilities = [
            Capability(name="slow", invoke=slow),
            Capability(name="fast", invoke=lambda o, a: "fast"),
        ]
        turns = await ToolExecutor(None).execute_all([_call("1", "slow"), _call("2", "fast")], capabilities)

        assert [t.tool_call_id for t in turns] == ["1", "2"]
        assert [t.content for t in turns] == ['"slow"', '"fast"']

    @pytest.mark.asyncio
    async def test_calls_run_concurrently(self):
        first_started = asyncio.Event()
        second_started = asyncio.Event()

        async def first(orchestrator, args):
            first_started.set()
            await asyncio.wait_for(second_started.wait(), timeout=1)
            return "first"

        async def second(orchestrator, args):
            second_started.set()
            await asyncio.wait_for(first_started.wait(), timeout=1)
            return "second"

        capabilities = [Capability(name="first", invoke=first), Capability(name="second", invoke=second)]
        turns = await ToolExecutor(None).execute_all([_call("1", "first"), _call("2", "second")], capabilities)

        assert [t.content for t in turns] == ['"first"', '"second"']

    @pytest.mark.asyncio
    async def test_failure_is_captured_per_call(self):
        def broken(orchestrator, args):
            raise RuntimeError("boom")

        capabilities = [
            Capability(name="broken", invoke=broken),
            Capability(name="ok", invoke=lambda o, a: {"ok": True}),
        ]
        turns = await ToolExecutor(None).execute_all([_call("1", "broken"), _call("2", "ok")], capabilities)

        assert turns[0].content == "boom"
        assert turns[1].content == '{"ok":true}'

    @pytest.mark.asyncio
    async def test_exception_without_message_uses_repr(self):
        def broken(orchestrator, args):
            raise KeyError()

        turns = await ToolExecutor(None).execute_all([_call("1", "broken")], [Capability(name="broken", invoke=broken)])
        assert turns[0].content == "KeyError()"

    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        turns = await ToolExecutor(None).execute_all([_call("1", "missing")], [])
        assert turns[0].content == TOOL_NOT_FOUND
        assert turns[0].tool_call_id == "1"

    @pytest.mark.asyncio
    async def test_invalid_arguments_skip_invocation(self):
        invoked = []
        capability = Capability(name="echo", invoke=lambda o, a: invoked.append(a))

        turns = await ToolExecutor(None).execute_all([_call("1", "echo", "{broken")], [capability])

        assert invoked == []
        assert turns[0].content.startswith("Invalid tool arguments:")

    @pytest.mark.asyncio
    async def test_handler_receives_orchestrator_and_arguments(self):
        seen = {}

        def handler(orchestrator, args):
            seen["orchestrator"] = orchestrator
            seen["args"] = args
            return "done"

        marker = object()
        await ToolExecutor(marker).execute_all(
            [_call("1", "h", '{"city": "Madrid"}')],
            [Capability(name="h", invoke=handler)],
        )
        assert seen == {"orchestrator": marker, "args": {"city": "Madrid"}}
