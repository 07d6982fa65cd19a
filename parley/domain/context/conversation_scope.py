from typing import Dict, List, Any, Optional, Iterable, Union, Tuple, TypeVar, Type
import threading
from pydantic import BaseModel, ConfigDict, Field

from parley.domain.context.config_store import ConfigStore
from parley.domain.models.conversation import Turn, Directive
from parley.domain.tool.capability import Capability

T = TypeVar("T")


def _as_list(value: Union[T, Iterable[T], None], expected: Type[T]) -> List[T]:
    """Normalize a single item or an iterable of items, rejecting foreign types"""

    if value is None:
        return []
    items = [value] if isinstance(value, expected) else list(value)
    for item in items:
        if not isinstance(item, expected):
            raise TypeError(f"Expected {expected.__name__}, got {type(item).__name__}")
    return items


class ScopeSnapshot(BaseModel):
    """Frozen view of a scope handed to providers for one round"""
    model_config = ConfigDict(frozen=True)

    turns: Tuple[Turn, ...] = ()
    directives: Tuple[Directive, ...] = ()
    capabilities: Tuple[Capability, ...] = ()
    config: Dict[str, str] = Field(default_factory=dict)

    def instructions(self, separator: str = "\n\n") -> str:
        """Directive text joined into one system instruction block"""
        return separator.join(directive.text for directive in self.directives)

    def tool_schemas(self) -> List[Dict[str, Any]]:
        return [capability.to_schema() for capability in self.capabilities]


class ConversationScope:
    """Aggregates inherited and local directives, capabilities, turns and config.

    Inherited views are recomputed on every read, so changes in a parent
    scope are visible to its children immediately. Setters replace the local
    slice only.
    """

    def __init__(
        self,
        parents: Union["ConversationScope", Iterable["ConversationScope"], None] = None,
        config: Union[ConfigStore, Iterable[ConfigStore], None] = None,
        directives: Union[Directive, Iterable[Directive], None] = None,
        capabilities: Union[Capability, Iterable[Capability], None] = None,
        turns: Union[Turn, Iterable[Turn], None] = None,
    ):
        self._lock = threading.Lock()
        self._parents: List[ConversationScope] = _as_list(parents, ConversationScope)
        self._directives: List[Directive] = _as_list(directives, Directive)
        self._capabilities: List[Capability] = _as_list(capabilities, Capability)
        self._turns: List[Turn] = _as_list(turns, Turn)

        # Parents' stores come first so locally supplied stores win on get()
        self.config = ConfigStore(
            [parent.config for parent in self._parents],
            _as_list(config, ConfigStore),
        )

    @property
    def parents(self) -> List["ConversationScope"]:
        return list(self._parents)

    @property
    def directives(self) -> List[Directive]:
        inherited = [d for parent in self._parents for d in parent.directives]
        with self._lock:
            return inherited + list(self._directives)

    @directives.setter
    def directives(self, directives: Iterable[Directive]):
        items = _as_list(directives, Directive)
        with self._lock:
            self._directives = items

    @property
    def capabilities(self) -> List[Capability]:
        merged: Dict[str, Capability] = {}
        for parent in self._parents:
            for capability in parent.capabilities:
                merged[capability.name] = capability
        with self._lock:
            local = list(self._capabilities)
        for capability in local:
            merged[capability.name] = capability
        return list(merged.values())

    @capabilities.setter
    def capabilities(self, capabilities: Iterable[Capability]):
        items = _as_list(capabilities, Capability)
        with self._lock:
            self._capabilities = items

    @property
    def turns(self) -> List[Turn]:
        inherited = [t for parent in self._parents for t in parent.turns]
        with self._lock:
            return inherited + list(self._turns)

    @turns.setter
    def turns(self, turns: Iterable[Turn]):
        items = _as_list(turns, Turn)
        with self._lock:
            self._turns = items

    def append_turns(self, *turns: Turn) -> None:
        """Atomically append turns to the local slice"""
        items = _as_list(turns, Turn)
        with self._lock:
            self._turns.extend(items)

    def capability(self, name: str) -> Optional[Capability]:
        for capability in self.capabilities:
            if capability.name == name:
                return capability
        return None

    def snapshot(self, directives: Optional[Iterable[Directive]] = None) -> ScopeSnapshot:
        return ScopeSnapshot(
            turns=tuple(self.turns),
            directives=tuple(self.directives if directives is None else directives),
            capabilities=tuple(self.capabilities),
            config=self.config.snapshot(),
        )

    def __repr__(self) -> str:
        return (
            f"ConversationScope(parents={len(self._parents)}, "
            f"directives={len(self._directives)}, capabilities={len(self._capabilities)}, "
            f"turns={len(self._turns)})"
        )
