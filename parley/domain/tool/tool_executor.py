from typing import Any, Dict, List, Optional, Sequence
import asyncio
import functools
import inspect
import json
import time
import structlog
from pydantic import BaseModel

from parley.domain.models.conversation import Role, ToolCallRequest, Turn
from parley.domain.tool.capability import Capability
from parley.infrastructure.observability.logging import agent_logger, metrics

logger = structlog.get_logger(__name__)

TOOL_NOT_FOUND = "Tool not found"


def serialize_result(value: Any) -> str:
    """Render a capability return value as tool turn content.

    ``None`` becomes ``"undefined"``, functions become ``"[Function]"``,
    pydantic models use their JSON form and everything else is compact JSON,
    falling back to ``str()`` when the value cannot be encoded (cycles,
    arbitrary objects).
    """

    if value is None:
        return "undefined"
    if inspect.isroutine(value) or isinstance(value, functools.partial):
        return "[Function]"
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)


def parse_arguments(arguments: Optional[str]) -> Any:
    """Decode tool call arguments; empty or missing means no arguments"""

    if arguments is None or not arguments.strip():
        return {}
    return json.loads(arguments)


def error_text(exc: BaseException) -> str:
    return str(exc) or repr(exc)


class ToolExecutor:
    """Resolves the tool calls of one round concurrently"""

    def __init__(self, orchestrator: Any):
        self.orchestrator = orchestrator

    async def execute_all(
        self,
        calls: Sequence[ToolCallRequest],
        capabilities: Sequence[Capability]
    ) -> List[Turn]:
        """Run every call and return one tool turn per call, in request order.

        Each call captures its own failure, so one failing tool never
        cancels its siblings.
        """

        by_name: Dict[str, Capability] = {c.name: c for c in capabilities}
        return list(await asyncio.gather(
            *(self.execute(call, by_name.get(call.function.name)) for call in calls)
        ))

    async def execute(self, call: ToolCallRequest, capability: Optional[Capability]) -> Turn:
        name = call.function.name

        if capability is None:
            logger.info("Capability not found", tool_name=name, tool_call_id=call.id)
            metrics.increment_counter("tool_not_found", tags={"tool": name})
            return self._result(call, TOOL_NOT_FOUND)

        try:
            args = parse_arguments(call.function.arguments)
        except ValueError as e:
            agent_logger.log_tool_execution(
                tool_name=name,
                tool_call_id=call.id,
                input_data=call.function.arguments,
                success=False,
                error=str(e)
            )
            return self._result(call, f"Invalid tool arguments: {e}")

        started = time.perf_counter()
        try:
            value = await self._invoke(capability, args)
            content = serialize_result(value)
            error = None
        except Exception as e:
            content = error_text(e)
            error = content
        duration_ms = (time.perf_counter() - started) * 1000

        metrics.record_latency("tool_call", duration_ms, tags={"tool": name})
        metrics.increment_counter("tool_invocations", tags={"tool": name, "success": str(error is None)})
        agent_logger.log_tool_execution(
            tool_name=name,
            tool_call_id=call.id,
            input_data=args,
            duration_ms=duration_ms,
            success=error is None,
            error=error
        )

        return self._result(call, content)

    async def _invoke(self, capability: Capability, args: Any) -> Any:
        handler = capability.invoke
        if inspect.iscoroutinefunction(handler):
            return await handler(self.orchestrator, args)

        # Sync handlers run in a worker thread to keep sibling calls concurrent
        result = await asyncio.to_thread(handler, self.orchestrator, args)
        if inspect.isawaitable(result):
            result = await result
        return result

    @staticmethod
    def _result(call: ToolCallRequest, content: str) -> Turn:
        return Turn(role=Role.TOOL, tool_call_id=call.id, content=content)
