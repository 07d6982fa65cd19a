from typing import Dict, Any, Callable, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


SIMPLE_INPUT_PARAMETERS: Dict[str, str] = {"input": "<tool-input>"}


class Capability(BaseModel):
    """Named function the model may request during a conversation.

    ``invoke`` receives the calling orchestrator and the decoded arguments and
    may return any value (or an awaitable of one). Scopes deduplicate
    capabilities by ``name`` only.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    parameters: Dict[str, str] = Field(default_factory=dict, description="Parameter name -> human description")
    invoke: Callable[..., Any]

    @model_validator(mode="before")
    @classmethod
    def _default_description(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("description"):
            data = {**data, "description": data.get("name") or ""}
        return data

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Capability name is required and cannot be empty")
        return value

    @classmethod
    def simple(cls, name: str, handler: Callable[..., Any], description: Optional[str] = None) -> "Capability":
        """Single ``input`` parameter form; the handler receives ``{"input": ...}``"""
        return cls(
            name=name,
            description=description or name,
            parameters=dict(SIMPLE_INPUT_PARAMETERS),
            invoke=handler,
        )

    def to_schema(self) -> Dict[str, Any]:
        """JSON description exposed to providers"""
        return {
            "type": "function",
            "name": self.name,
            "description": self.description,
            "parameters": {
                "type": "object",
                "properties": {
                    key: {"type": "string", "description": description}
                    for key, description in self.parameters.items()
                },
            },
        }

    def to_function_spec(self) -> Dict[str, Any]:
        """Nested function spec accepted by chat-model ``bind_tools``"""
        schema = self.to_schema()
        return {
            "type": "function",
            "function": {
                "name": schema["name"],
                "description": schema["description"],
                "parameters": schema["parameters"],
            },
        }

    def __str__(self) -> str:
        return f"Capability({self.name}): {self.description}"
