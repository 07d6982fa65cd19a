from typing import Any, Awaitable, Callable, Dict, Union
import inspect

from parley.domain.context.conversation_scope import ScopeSnapshot
from parley.domain.models.conversation import ChatCompletionResponse

ProviderResult = Union[ChatCompletionResponse, Dict[str, Any]]

# A provider turns one scope snapshot into a chat-completion response. It must
# raise on transport or protocol failure.
Provider = Callable[[ScopeSnapshot], Union[ProviderResult, Awaitable[ProviderResult]]]


def provider_name(provider: Provider) -> str:
    """Readable label for logs"""

    name = getattr(provider, "name", None) or getattr(provider, "__name__", None)
    if isinstance(name, str) and name:
        return name
    return type(provider).__name__


def normalize_response(raw: Any) -> ChatCompletionResponse:
    """Coerce a provider result into a validated response.

    Raises ``pydantic.ValidationError`` for malformed results, which the
    orchestrator treats like any other provider failure.
    """

    if isinstance(raw, ChatCompletionResponse):
        return raw
    if isinstance(raw, dict):
        return ChatCompletionResponse.model_validate(raw)
    # Vendor SDK objects usually expose model_dump()
    if hasattr(raw, "model_dump"):
        return ChatCompletionResponse.model_validate(raw.model_dump())
    raise TypeError(f"Provider returned unsupported response type {type(raw).__name__}")


async def call_provider(provider: Provider, snapshot: ScopeSnapshot) -> ChatCompletionResponse:
    result = provider(snapshot)
    if inspect.isawaitable(result):
        result = await result
    return normalize_response(result)
