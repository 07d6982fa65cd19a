from typing import Iterable, List, NamedTuple, Optional, Set, Union
import asyncio
import inspect
import random
import time
from uuid import uuid4

import structlog

from parley.domain.context.config_store import ConfigStore
from parley.domain.context.conversation_scope import ConversationScope
from parley.domain.models.conversation import Directive, Role, Turn
from parley.domain.orchestration.provider import Provider, call_provider, provider_name
from parley.domain.tool.capability import Capability
from parley.domain.tool.tool_executor import ToolExecutor, error_text
from parley.infrastructure.config.settings import get_settings
from parley.infrastructure.observability.logging import agent_logger, metrics

logger = structlog.get_logger(__name__)


class ConverseResult(NamedTuple):
    """Outcome of one converse() call; unpacks as ``turns, success``"""
    turns: List[Turn]
    success: bool


class Orchestrator:
    """Drives a conversation over a pool of providers.

    Each ``converse`` call appends a user turn, then asks providers for a
    completion until one answers without requesting tools. Providers are
    drawn at random; a provider that raises is demoted to a secondary pool
    and dropped for the rest of the call if it fails again. Requested tools
    are resolved concurrently and their results appended before the next
    round. ``max_rounds`` bounds the number of tool rounds resolved per
    call; a provider always gets to answer after the last of them, and a
    reply requesting more tools beyond the limit ends the call unsuccessfully
    without being recorded.
    """

    def __init__(
        self,
        id_name: str,
        persona: str,
        *,
        providers: Optional[Iterable[Provider]] = None,
        parents: Union[ConversationScope, Iterable[ConversationScope], None] = None,
        config: Union[ConfigStore, Iterable[ConfigStore], None] = None,
        directives: Union[Directive, Iterable[Directive], None] = None,
        capabilities: Union[Capability, Iterable[Capability], None] = None,
        turns: Union[Turn, Iterable[Turn], None] = None,
        scope: Optional[ConversationScope] = None,
        max_rounds: Optional[int] = None,
        gate_directives: Optional[bool] = None,
        rng: Optional[random.Random] = None,
    ):
        if not isinstance(id_name, str) or not id_name.strip():
            raise ValueError("Orchestrator id_name is required")
        if not isinstance(persona, str) or not persona.strip():
            raise ValueError("Orchestrator persona is required")

        settings = get_settings()

        self._id_name = id_name
        self._persona = persona
        self._providers: List[Provider] = list(providers or [])
        for provider in self._providers:
            if not callable(provider):
                raise TypeError(f"Provider must be callable, got {type(provider).__name__}")

        if scope is not None:
            if any(v is not None for v in (parents, config, directives, capabilities, turns)):
                raise ValueError("Pass either an existing scope or scope contents, not both")
            self._scope = scope
        else:
            self._scope = ConversationScope(
                parents=parents,
                config=config,
                directives=directives,
                capabilities=capabilities,
                turns=turns,
            )

        self.max_rounds = settings.MAX_ROUNDS if max_rounds is None else max_rounds
        if self.max_rounds < 1:
            raise ValueError("max_rounds must be at least 1")
        self.gate_directives = settings.GATE_DIRECTIVES if gate_directives is None else gate_directives
        self._rng = rng or random.Random()

    @property
    def id_name(self) -> str:
        return self._id_name

    @property
    def persona(self) -> str:
        return self._persona

    @property
    def scope(self) -> ConversationScope:
        return self._scope

    @property
    def config(self) -> ConfigStore:
        return self._scope.config

    @property
    def directives(self) -> List[Directive]:
        return self._scope.directives

    @directives.setter
    def directives(self, directives: Iterable[Directive]):
        self._scope.directives = directives

    @property
    def capabilities(self) -> List[Capability]:
        return self._scope.capabilities

    @capabilities.setter
    def capabilities(self, capabilities: Iterable[Capability]):
        self._scope.capabilities = capabilities

    @property
    def turns(self) -> List[Turn]:
        return self._scope.turns

    @turns.setter
    def turns(self, turns: Iterable[Turn]):
        self._scope.turns = turns

    @property
    def providers(self) -> List[Provider]:
        return list(self._providers)

    async def active_directives(self, scope: Optional[ConversationScope] = None) -> List[Directive]:
        """Directives whose predicate holds for this orchestrator right now"""

        directives = (scope or self._scope).directives
        if not self.gate_directives:
            return directives

        active = []
        for directive in directives:
            try:
                verdict = directive.predicate(self)
                if inspect.isawaitable(verdict):
                    verdict = await verdict
            except Exception as e:
                logger.warning("Directive predicate failed", directive=str(directive), error=error_text(e))
                continue
            if verdict:
                active.append(directive)
        return active

    async def converse(self, prompt: str, scope: Optional[ConversationScope] = None) -> ConverseResult:
        """Send ``prompt`` and resolve tool calls until a provider converges.

        Pass ``scope`` to run this call against a detached scope instead of
        the orchestrator's own.
        """

        scope = self._scope if scope is None else scope
        scope.append_turns(Turn(role=Role.USER, content=prompt))

        # Pools hold provider slot indices so a provider listed twice counts twice
        primary: Set[int] = set(range(len(self._providers)))
        secondary: Set[int] = set()
        executor = ToolExecutor(self)
        rounds = 0

        with structlog.contextvars.bound_contextvars(
            orchestrator=self._id_name,
            conversation_id=uuid4().hex[:12],
        ):
            agent_logger.log_conversation_event(
                "started",
                self._id_name,
                {"providers": len(self._providers), "prompt_length": len(prompt)},
            )

            while primary or secondary:
                pool = primary if primary else secondary
                slot = self._rng.choice(sorted(pool))
                provider = self._providers[slot]
                name = provider_name(provider)

                snapshot = scope.snapshot(await self.active_directives(scope))

                started = time.perf_counter()
                try:
                    response = await call_provider(provider, snapshot)
                except Exception as e:
                    duration_ms = (time.perf_counter() - started) * 1000
                    agent_logger.log_provider_call(name, duration_ms, 0, success=False, error=error_text(e))
                    metrics.increment_counter("provider_failures", tags={"provider": name})

                    pool.discard(slot)
                    if pool is primary:
                        secondary.add(slot)
                    agent_logger.log_provider_failover(
                        provider=name,
                        from_pool="primary" if pool is primary else "secondary",
                        to_pool="secondary" if pool is primary else None,
                        remaining_primary=len(primary),
                        remaining_secondary=len(secondary),
                    )
                    continue

                duration_ms = (time.perf_counter() - started) * 1000
                agent_logger.log_provider_call(name, duration_ms, len(response.choices))
                metrics.record_latency("provider_call", duration_ms, tags={"provider": name})

                requests_tools = any(choice.message.tool_calls for choice in response.choices)
                if requests_tools and rounds >= self.max_rounds:
                    logger.warning("Round limit reached", max_rounds=self.max_rounds)
                    agent_logger.log_conversation_event("round_limit", self._id_name, {"rounds": rounds})
                    return ConverseResult(scope.turns, False)

                pending = False
                for choice in response.choices:
                    message = choice.message
                    if message.content:
                        scope.append_turns(Turn(role=Role.ASSISTANT, content=message.content))

                    if message.tool_calls:
                        pending = True
                        scope.append_turns(Turn(role=Role.ASSISTANT, tool_calls=message.tool_calls))
                        results = await executor.execute_all(message.tool_calls, scope.capabilities)
                        scope.append_turns(*results)

                if not pending:
                    agent_logger.log_conversation_event("converged", self._id_name, {"rounds": rounds})
                    return ConverseResult(scope.turns, True)

                rounds += 1
                metrics.increment_counter("tool_rounds")

            agent_logger.log_conversation_event("exhausted", self._id_name, {"rounds": rounds})
            return ConverseResult(scope.turns, False)

    def run(self, prompt: str, scope: Optional[ConversationScope] = None) -> ConverseResult:
        """Blocking wrapper around converse() for code outside an event loop"""
        return asyncio.run(self.converse(prompt, scope))

    def __repr__(self) -> str:
        return f"Orchestrator(id_name={self._id_name!r}, providers={len(self._providers)})"
