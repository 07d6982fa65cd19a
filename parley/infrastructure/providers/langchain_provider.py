from typing import Any, Dict, List, Optional
import json
import time
from uuid import uuid4

import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage

from parley.domain.context.conversation_scope import ScopeSnapshot
from parley.domain.models.conversation import (
    ChatCompletionResponse, CompletionChoice, FunctionCall,
    ResponseMessage, Role, ToolCallRequest, Turn
)
from parley.infrastructure.config.settings import get_settings

logger = structlog.get_logger(__name__)


def to_langchain_messages(snapshot: ScopeSnapshot, separator: Optional[str] = None) -> List[BaseMessage]:
    """Convert a scope snapshot into LangChain chat messages.

    Active directives become a leading system message; turns follow in
    order.
    """

    separator = get_settings().DIRECTIVE_SEPARATOR if separator is None else separator
    messages: List[BaseMessage] = []

    instructions = snapshot.instructions(separator)
    if instructions:
        messages.append(SystemMessage(content=instructions))

    for turn in snapshot.turns:
        messages.append(_turn_to_message(turn))

    return messages


def _decode_arguments(arguments: Optional[str]) -> Dict[str, Any]:
    """Tool call args as a dict; malformed or non-object JSON is kept under ``input``"""

    if not arguments or not arguments.strip():
        return {}
    try:
        decoded = json.loads(arguments)
    except ValueError:
        return {"input": arguments}
    return decoded if isinstance(decoded, dict) else {"input": arguments}


def _turn_to_message(turn: Turn) -> BaseMessage:
    if turn.role == Role.USER:
        return HumanMessage(content=turn.content)
    if turn.role == Role.SYSTEM:
        return SystemMessage(content=turn.content)
    if turn.role == Role.TOOL:
        return ToolMessage(content=turn.content, tool_call_id=turn.tool_call_id)

    tool_calls = [
        {
            "name": call.function.name,
            "args": _decode_arguments(call.function.arguments),
            "id": call.id,
        }
        for call in turn.tool_calls
    ]
    return AIMessage(content=turn.content or "", tool_calls=tool_calls)


def _text_content(content: Any) -> str:
    """Flatten string or content-block message bodies into plain text"""

    if isinstance(content, str):
        return content

    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "\n".join(parts)


def from_langchain_message(message: AIMessage) -> ChatCompletionResponse:
    """Convert a LangChain AI message into a one-choice response"""

    tool_calls = [
        ToolCallRequest(
            id=call.get("id") or f"call_{uuid4().hex}",
            function=FunctionCall(name=call["name"], arguments=json.dumps(call.get("args") or {})),
        )
        for call in (message.tool_calls or [])
    ]
    text = _text_content(message.content)

    return ChatCompletionResponse(
        id=message.id,
        created=int(time.time()),
        model=(message.response_metadata or {}).get("model_name"),
        choices=[
            CompletionChoice(
                index=0,
                message=ResponseMessage(
                    content=text or None,
                    tool_calls=tool_calls or None,
                ),
                finish_reason="tool_calls" if tool_calls else "stop",
            )
        ],
    )


class LangChainProvider:
    """Provider backed by any LangChain chat model"""

    def __init__(self, chat_model: BaseChatModel, name: Optional[str] = None, **bind_kwargs: Any):
        self.chat_model = chat_model
        self.name = name or type(chat_model).__name__
        self.bind_kwargs: Dict[str, Any] = bind_kwargs

    async def __call__(self, snapshot: ScopeSnapshot) -> ChatCompletionResponse:
        messages = to_langchain_messages(snapshot)

        runnable = self.chat_model
        if snapshot.capabilities:
            runnable = self.chat_model.bind_tools(
                [capability.to_function_spec() for capability in snapshot.capabilities],
                **self.bind_kwargs
            )

        logger.debug(
            "Invoking chat model",
            provider=self.name,
            messages=len(messages),
            tools=len(snapshot.capabilities)
        )
        result = await runnable.ainvoke(messages)

        if not isinstance(result, AIMessage):
            raise TypeError(f"Chat model returned {type(result).__name__}, expected AIMessage")
        return from_langchain_message(result)
