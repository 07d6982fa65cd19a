from parley.domain.context.config_store import ConfigStore
from parley.domain.context.conversation_scope import ConversationScope, ScopeSnapshot
from parley.domain.models.conversation import (
    ChatCompletionResponse, CompletionChoice, Directive, FunctionCall,
    ResponseMessage, Role, ToolCallRequest, Turn
)
from parley.domain.orchestration.core.orchestrator import ConverseResult, Orchestrator
from parley.domain.orchestration.provider import Provider
from parley.domain.tool.capability import Capability
from parley.tools.remote_tool import remote_capability
from parley.tools.time_tool import time_capability

__all__ = [
    "Capability",
    "ChatCompletionResponse",
    "CompletionChoice",
    "ConfigStore",
    "ConversationScope",
    "ConverseResult",
    "Directive",
    "FunctionCall",
    "Orchestrator",
    "Provider",
    "ResponseMessage",
    "Role",
    "ScopeSnapshot",
    "ToolCallRequest",
    "Turn",
    "remote_capability",
    "time_capability",
]
