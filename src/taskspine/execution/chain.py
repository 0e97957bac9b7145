"""Chain and ExecutionScope — correlation of every Result of one root call.

Manifesto:
    A root call (``ChargeCard.execute(...)`` from application code) and
    every task it triggers, directly or through workflows, share one
    :class:`Chain`: one id, one ordered list of Results.  The value that
    carries the chain down the call stack is an :class:`ExecutionScope`,
    which also carries the settings resolved for that root call.

    The scope is bound in a :class:`contextvars.ContextVar`, so unrelated
    root calls on other threads (or asyncio tasks) never see each other's
    chain.  Binding happens on entry of the root call and is reset on exit,
    even when the call raises.

Architecture:
    ::

        Checkout.execute()                 ┐
          ├─ ExecutionScope(settings)      │ bound for the whole call tree
          │    └─ Chain(id=01J...)         │
          │         [0] Checkout           │
          │         [1]   ReserveStock     │
          │         [2]   ChargeCard       │
          └─ scope reset, chain frozen     ┘

    Explicit scopes let callers pass configuration without touching
    process-wide settings::

        with execution_scope(TaskSpineSettings(task_halt="failed,skipped")):
            Checkout.execute_strict(order_id=7)

Tags:
    chain, correlation, contextvars, scope, taskspine

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, overload

from taskspine.core.errors import ConfigError, ImmutableError
from taskspine.core.identifier import generate_id
from taskspine.core.settings import TaskSpineSettings, get_settings
from taskspine.execution.result import Result


class Chain:
    """Ordered, correlated sequence of Results."""

    def __init__(self, *, dry_run: bool = False) -> None:
        self._id = generate_id()
        self._dry_run = dry_run
        self._results: list[Result] = []
        self._frozen = False

    @classmethod
    def current(cls) -> Chain | None:
        """Chain of the scope bound to the running thread/task, if any."""
        scope = current_scope()
        return scope.chain if scope is not None else None

    @property
    def id(self) -> str:
        return self._id

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    @property
    def results(self) -> tuple[Result, ...]:
        return tuple(self._results)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def append(self, result: Result) -> int:
        """Append ``result``; its index is the chain length before the append."""
        if self._frozen:
            raise ImmutableError(f"Chain {self._id} is frozen")
        if not isinstance(result, Result):
            raise TypeError(f"must be a Result, got {type(result).__name__}")
        index = len(self._results)
        result._attach(self, index)
        self._results.append(result)
        return index

    def index(self, result: Result) -> int | None:
        for position, item in enumerate(self._results):
            if item is result:
                return position
        return None

    def freeze(self) -> Chain:
        self._frozen = True
        return self

    # ── sequence protocol ────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self) -> Iterator[Result]:
        return iter(tuple(self._results))

    @overload
    def __getitem__(self, item: int) -> Result: ...

    @overload
    def __getitem__(self, item: slice) -> tuple[Result, ...]: ...

    def __getitem__(self, item: int | slice) -> Result | tuple[Result, ...]:
        if isinstance(item, slice):
            return tuple(self._results[item])
        return self._results[item]

    @property
    def first(self) -> Result | None:
        return self._results[0] if self._results else None

    @property
    def last(self) -> Result | None:
        return self._results[-1] if self._results else None

    # ── delegated to the root Result ─────────────────────────────

    @property
    def state(self) -> Any:
        return self.first.state if self.first is not None else None

    @property
    def status(self) -> Any:
        return self.first.status if self.first is not None else None

    @property
    def outcome(self) -> Any:
        return self.first.outcome if self.first is not None else None

    @property
    def runtime(self) -> float | None:
        return self.first.runtime if self.first is not None else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self._id,
            "dry_run": self._dry_run,
            "state": self.state.value if self.state is not None else None,
            "status": self.status.value if self.status is not None else None,
            "outcome": self.outcome.value if self.outcome is not None else None,
            "runtime": self.runtime,
            "results": [result.to_dict() for result in self._results],
        }

    def __repr__(self) -> str:
        return f"<Chain {self._id} results={len(self._results)}>"


# =============================================================================
# Execution scope
# =============================================================================


@dataclass
class ExecutionScope:
    """Value threaded through one root call and all its nested calls."""

    settings: TaskSpineSettings
    dry_run: bool = False
    _chain: Chain | None = field(default=None, repr=False)

    @property
    def chain(self) -> Chain:
        if self._chain is None:
            self._chain = Chain(dry_run=self.dry_run)
        return self._chain

    def close(self) -> None:
        """Freeze the chain and every context it touched (if configured)."""
        if self._chain is None or not self.settings.freeze_results:
            return
        for result in self._chain:
            result.context.freeze()
        self._chain.freeze()


_current_scope: ContextVar[ExecutionScope | None] = ContextVar(
    "taskspine_execution_scope", default=None
)


def current_scope() -> ExecutionScope | None:
    """The scope bound to the running thread/task, or None outside any call."""
    return _current_scope.get()


def new_scope(settings: TaskSpineSettings | None = None, dry_run: bool | None = None) -> ExecutionScope:
    settings = settings or get_settings()
    return ExecutionScope(
        settings=settings,
        dry_run=settings.dry_run if dry_run is None else dry_run,
    )


@contextmanager
def bind_scope(scope: ExecutionScope) -> Iterator[ExecutionScope]:
    """Bind ``scope`` for the block; the previous binding is always restored."""
    token = _current_scope.set(scope)
    try:
        yield scope
    finally:
        _current_scope.reset(token)
        scope.close()


@contextmanager
def execution_scope(
    settings: TaskSpineSettings | None = None,
    dry_run: bool | None = None,
) -> Iterator[ExecutionScope]:
    """Open a root scope explicitly.

    Inside an already bound scope this yields the enclosing scope unchanged:
    settings are resolved once per root call.

    Raises:
        ConfigError: nested inside a scope with different settings or dry_run
    """
    existing = current_scope()
    if existing is not None:
        if settings is not None and settings != existing.settings:
            raise ConfigError("settings are fixed by the enclosing execution scope")
        if dry_run is not None and dry_run != existing.dry_run:
            raise ConfigError("dry_run is fixed by the enclosing execution scope")
        yield existing
        return
    with bind_scope(new_scope(settings, dry_run)) as scope:
        yield scope


__all__ = [
    "Chain",
    "ExecutionScope",
    "current_scope",
    "new_scope",
    "bind_scope",
    "execution_scope",
]
