"""Fake providers and response builders shared by the test modules"""

import random
from typing import Any, Dict, List, Optional


def completion(content: Optional[str] = None, tool_calls: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    """Chat-completion dict with a single choice"""
    message: Dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls:
        message["tool_calls"] = tool_calls
    return {
        "choices": [
            {
                "index": 0,
                "message": message,
                "finish_reason": "tool_calls" if tool_calls else "stop",
            }
        ]
    }


def tool_call(call_id: str, name: str, arguments: Optional[str] = "{}") -> Dict[str, Any]:
    return {"id": call_id, "type": "function", "function": {"name": name, "arguments": arguments}}


class ScriptedProvider:
    """Replays responses in order and records every snapshot it receives"""

    def __init__(self, *responses: Any, name: str = "scripted"):
        self.responses = list(responses)
        self.name = name
        self.snapshots = []

    async def __call__(self, snapshot):
        self.snapshots.append(snapshot)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def calls(self) -> int:
        return len(self.snapshots)


class FailingProvider:
    def __init__(self, name: str, log: Optional[List[str]] = None):
        self.name = name
        self.log = log if log is not None else []

    def __call__(self, snapshot):
        self.log.append(self.name)
        raise ConnectionError(f"{self.name} unavailable")


class FirstChoice(random.Random):
    """Deterministic picker: always the lowest slot in the pool"""

    def choice(self, seq):
        return seq[0]
