from typing import Dict, Any, List, Optional, Callable, Literal, Union, Awaitable
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from datetime import datetime, timezone
from enum import Enum


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _always(_orchestrator: Any) -> bool:
    return True


def _preview(text: str, limit: int = 50) -> str:
    return text if len(text) <= limit else text[:limit - 3] + "..."


class Role(str, Enum):
    """Conversation turn roles"""
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"
    SYSTEM = "system"


class FunctionCall(BaseModel):
    """Function name and JSON-encoded arguments requested by the model"""
    model_config = ConfigDict(frozen=True)

    name: str
    arguments: Optional[str] = Field(None, description="Arguments as a JSON string")


class ToolCallRequest(BaseModel):
    """A single tool call requested by an assistant response"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Identifier echoed back by the tool result turn")
    type: Literal["function"] = "function"
    function: FunctionCall


class Turn(BaseModel):
    """One immutable entry in a conversation"""
    model_config = ConfigDict(frozen=True)

    role: Role
    content: Optional[str] = None
    tool_call_id: Optional[str] = None
    tool_calls: List[ToolCallRequest] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _check_shape(self) -> "Turn":
        if self.tool_calls and self.role != Role.ASSISTANT:
            raise ValueError("Only assistant turns may carry tool calls")

        if self.role == Role.TOOL and not self.tool_call_id:
            raise ValueError("Tool turns require a tool_call_id")

        if self.role == Role.ASSISTANT:
            if self.content is None and not self.tool_calls:
                raise ValueError("Assistant turns require content or at least one tool call")
        elif self.role == Role.TOOL:
            if self.content is None:
                raise ValueError("Tool turns require content")
        elif not self.content:
            raise ValueError(f"{self.role.value.capitalize()} turns require content")

        return self

    def to_dict(self) -> Dict[str, Any]:
        """Wire-neutral representation without pydantic internals"""
        data: Dict[str, Any] = {
            "role": self.role.value,
            "content": self.content,
            "created_at": self.created_at.isoformat(),
        }
        if self.tool_call_id:
            data["tool_call_id"] = self.tool_call_id
        if self.tool_calls:
            data["tool_calls"] = [call.model_dump() for call in self.tool_calls]
        return data

    def __str__(self) -> str:
        suffix = f" [{self.tool_call_id}]" if self.tool_call_id else ""
        if self.content is not None:
            body = _preview(self.content)
        else:
            body = ", ".join(call.function.name for call in self.tool_calls)
        return f"Turn({self.role.value}){suffix}: {body}"


class Directive(BaseModel):
    """Behavioral instruction, optionally active only while its predicate holds"""
    model_config = ConfigDict(frozen=True)

    text: str
    predicate: Callable[[Any], Union[bool, Awaitable[bool]]] = Field(default=_always)

    def __init__(self, text: Optional[str] = None, **data: Any):
        if text is not None:
            data["text"] = text
        super().__init__(**data)

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Directive text is required and cannot be empty")
        return value

    def __str__(self) -> str:
        return f"Directive: {_preview(self.text)}"


class ResponseMessage(BaseModel):
    """Assistant message inside a provider choice"""
    role: Literal["assistant"] = "assistant"
    content: Optional[str] = None
    tool_calls: Optional[List[ToolCallRequest]] = None
    refusal: Optional[str] = None


class CompletionChoice(BaseModel):
    """One choice of a provider response"""
    index: int = 0
    message: ResponseMessage
    finish_reason: Optional[str] = None


class CompletionUsage(BaseModel):
    """Token accounting reported by the provider"""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatCompletionResponse(BaseModel):
    """Provider response in chat-completion shape"""
    id: Optional[str] = None
    object: str = "chat.completion"
    created: Optional[int] = None
    model: Optional[str] = None
    choices: List[CompletionChoice] = Field(default_factory=list)
    usage: Optional[CompletionUsage] = None
