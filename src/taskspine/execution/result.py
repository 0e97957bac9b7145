"""Result — the state/status record produced by one task run.

Manifesto:
    Every task run produces exactly one Result.  The Result is the only
    place where a run's outcome lives, so it must be trustworthy: its state
    moves forward only, its status is set at most once, and once the run is
    finished nothing can change it.  Callers branch on the Result instead of
    catching exceptions; exceptions (faults) are a thin adapter on top.

ARCHITECTURE
────────────
::

    State machine (monotonic)

        initialized ──start()──▶ executing ──finish()──▶ complete
                                     │                     (success, non-halting skip)
                                     └─────finish()──────▶ interrupted
                                                           (failed, halting skip)

    Status (set once, only while executing)

        success ──skip()/throw()──▶ skipped
        success ──fail()/throw()──▶ failed

    Cause links (classification)

        workflow.result ──cause──▶ Fault(member.result) ──result──▶ member.result
                                                                 └─cause─▶ None (origin)

BEST PRACTICES
──────────────
- Tasks call ``self.skip()`` / ``self.fail()`` (which also unwind the task
  body); the Result methods of the same name only record the status.
- Branch on ``result.outcome`` or use ``match result:`` with
  ``Result(State.COMPLETE, Status.SUCCESS)`` style patterns.
- Never keep a Result around expecting it to change: after ``finish()`` it
  is frozen.

Related modules:
    fault.py     — exception wrapper around a non-success Result
    chain.py     — ordered list of Results of one root call
    executor.py  — the only code that drives the state machine

Tags:
    taskspine, execution, result, state-machine, immutability

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from taskspine.core.enums import Outcome, State, Status
from taskspine.core.errors import (
    AlreadySetError,
    ImmutableError,
    InvalidTransitionError,
    StateError,
)
from taskspine.core.identifier import generate_id
from taskspine.execution.fault import Fault

if TYPE_CHECKING:
    from taskspine.core.context import Context
    from taskspine.execution.chain import Chain

_PREDICATES = ("executed", "good", "bad")


class Result:
    """
    Outcome record of one task run.

    Attributes:
        id: Unique, time-sortable identifier
        task: The task instance that owns this Result
        context: The task's shared Context
        chain: Chain this Result was appended to (None until executed)
        index: Position in the chain (0 = root)
        state: Lifecycle :class:`State`
        status: Outcome :class:`Status`
        reason: Human readable explanation set with skip/fail
        metadata: Structured diagnostic payload set with skip/fail
        cause: The :class:`Fault` received from a nested call, or None
        runtime: Seconds spent executing (set by the Runtime middleware)
    """

    __match_args__ = ("state", "status")

    def __init__(self, task: Any) -> None:
        if not hasattr(task, "context"):
            raise TypeError("must be a Task or Workflow")

        self._id = generate_id()
        self._task = task
        self._chain: Chain | None = None
        self._index: int | None = None
        self._state = State.INITIALIZED
        self._status = Status.SUCCESS
        self._reason: str | None = None
        self._metadata: Mapping[str, Any] = {}
        self._cause: Fault | None = None
        self._halt: bool | None = None
        self._runtime: float | None = None
        self._frozen = False

    def __setattr__(self, name: str, value: Any) -> None:
        if self.__dict__.get("_frozen"):
            raise ImmutableError(f"Result {self.__dict__['_id']} is frozen; cannot set {name!r}")
        object.__setattr__(self, name, value)

    def __delattr__(self, name: str) -> None:
        raise ImmutableError(f"cannot delete {name!r} from a Result")

    # =========================================================================
    # Read-only fields
    # =========================================================================

    @property
    def id(self) -> str:
        return self._id

    @property
    def task(self) -> Any:
        return self._task

    @property
    def context(self) -> Context:
        return self._task.context

    @property
    def chain(self) -> Chain | None:
        return self._chain

    @property
    def index(self) -> int | None:
        return self._index

    @property
    def state(self) -> State:
        return self._state

    @property
    def status(self) -> Status:
        return self._status

    @property
    def reason(self) -> str | None:
        return self._reason

    @property
    def metadata(self) -> Mapping[str, Any]:
        return self._metadata

    @property
    def cause(self) -> Fault | None:
        return self._cause

    @property
    def runtime(self) -> float | None:
        return self._runtime

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def outcome(self) -> Outcome:
        return Outcome.of(self._state, self._status)

    # =========================================================================
    # Predicates
    # =========================================================================

    @property
    def initialized(self) -> bool:
        return self._state is State.INITIALIZED

    @property
    def executing(self) -> bool:
        return self._state is State.EXECUTING

    @property
    def complete(self) -> bool:
        return self._state is State.COMPLETE

    @property
    def interrupted(self) -> bool:
        return self._state is State.INTERRUPTED

    @property
    def executed(self) -> bool:
        return self._state.terminal

    @property
    def success(self) -> bool:
        return self._status is Status.SUCCESS

    @property
    def skipped(self) -> bool:
        return self._status is Status.SKIPPED

    @property
    def failed(self) -> bool:
        return self._status is Status.FAILED

    @property
    def good(self) -> bool:
        """Success or skipped."""
        return self._status is not Status.FAILED

    @property
    def bad(self) -> bool:
        """Skipped or failed."""
        return self._status is not Status.SUCCESS

    # =========================================================================
    # Chain membership
    # =========================================================================

    def _attach(self, chain: Chain, index: int) -> None:
        if self._chain is not None:
            raise StateError(f"Result {self._id} already belongs to chain {self._chain.id}")
        self._chain = chain
        self._index = index

    # =========================================================================
    # State transitions
    # =========================================================================

    def start(self) -> Result:
        """``initialized -> executing``."""
        if self._state is not State.INITIALIZED:
            raise InvalidTransitionError(self._state.value, State.EXECUTING.value)
        self._state = State.EXECUTING
        return self

    def finish(self, halt_statuses: Collection[Status] = frozenset()) -> Result:
        """``executing -> complete | interrupted``.

        Failed results are always interrupted.  A skip is interrupted when it
        was explicitly marked as halting, or when ``skipped`` is in the task's
        halt set.
        """
        if self._state is not State.EXECUTING:
            target = State.INTERRUPTED if self.bad else State.COMPLETE
            raise InvalidTransitionError(self._state.value, target.value)

        if self._status is Status.SUCCESS:
            self._state = State.COMPLETE
        elif self._status is Status.FAILED:
            self._state = State.INTERRUPTED
        else:
            halting = self._halt if self._halt is not None else Status.SKIPPED in halt_statuses
            self._state = State.INTERRUPTED if halting else State.COMPLETE
        return self

    def freeze(self) -> Result:
        """Make the Result (and its metadata) read-only."""
        if not self._frozen:
            self._metadata = MappingProxyType(dict(self._metadata))
            self._frozen = True
        return self

    def _ensure_mutable(self, action: str) -> None:
        if self._frozen or self._state.terminal:
            raise ImmutableError(f"cannot {action}: result is already {self._state.value}")
        if self._state is State.INITIALIZED:
            raise InvalidTransitionError(
                self._state.value,
                self._state.value,
                message=f"cannot {action} before execution starts",
            )

    # =========================================================================
    # Status changes
    # =========================================================================

    def _set_status(
        self,
        status: Status,
        reason: str | None,
        metadata: Mapping[str, Any],
        cause: Fault | None,
        halt: bool | None,
    ) -> None:
        self._ensure_mutable(f"set status {status.value}")
        if self._status is not Status.SUCCESS:
            raise AlreadySetError(
                f"status of {type(self._task).__name__} already set to {self._status.value}"
            )
        if cause is not None and not isinstance(cause, Fault):
            raise TypeError(f"cause must be a Fault, got {type(cause).__name__}")

        self._status = status
        self._reason = reason
        self._metadata = dict(metadata)
        self._cause = cause
        self._halt = halt

    def skip(
        self,
        reason: str | None = None,
        *,
        cause: Fault | None = None,
        halt: bool | None = None,
        **metadata: Any,
    ) -> Result:
        """Record a skip.  ``halt=None`` defers to the task's halt set."""
        self._set_status(Status.SKIPPED, reason, metadata, cause, halt)
        return self

    def fail(
        self,
        reason: str | None = None,
        *,
        cause: Fault | None = None,
        halt: bool | None = None,
        **metadata: Any,
    ) -> Result:
        """Record a failure (always interrupts)."""
        self._set_status(Status.FAILED, reason, metadata, cause, halt)
        return self

    def throw(
        self,
        other: Result,
        *,
        cause: Fault | None = None,
        halt: bool | None = None,
        **metadata: Any,
    ) -> Result:
        """Adopt the non-success status of ``other`` (a nested Result).

        ``reason`` and ``metadata`` are copied (local ``metadata`` wins) and
        ``cause`` defaults to a Fault built from ``other``, which is what
        makes this Result a *thrown* failure.
        """
        if not isinstance(other, Result):
            raise TypeError(f"must be a Result, got {type(other).__name__}")
        if other.success:
            raise ValueError("cannot throw a successful Result")

        merged = {**other.metadata, **metadata}
        self._set_status(
            other.status,
            other.reason,
            merged,
            cause if cause is not None else Fault.build(other),
            halt,
        )
        return self

    def record_runtime(self, seconds: float) -> Result:
        self._ensure_mutable("record runtime")
        self._runtime = seconds
        return self

    # =========================================================================
    # Failure classification
    # =========================================================================

    def _cause_path(self) -> list[Result]:
        """This Result followed by every Result reachable through ``cause``.

        O(depth); each node is visited once even if the links were to loop.
        """
        path = [self]
        seen = {id(self)}
        node = self
        while node._cause is not None:
            nested = node._cause.result
            if id(nested) in seen:
                break
            seen.add(id(nested))
            path.append(nested)
            node = nested
        return path

    @property
    def caused_failure(self) -> Result | None:
        """The origin: the Result whose own logic set the status."""
        if self.success:
            return None
        return self._cause_path()[-1]

    @property
    def threw_failure(self) -> Result | None:
        """The Result that received the origin's fault and propagated it outward."""
        if self.success:
            return None
        path = self._cause_path()
        return path[-2] if len(path) > 1 else path[0]

    @property
    def is_caused_failure(self) -> bool:
        """True when this Result is the origin of its own skip/fail."""
        return self.bad and self.caused_failure is self

    @property
    def is_threw_failure(self) -> bool:
        """True when this Result propagated the origin's fault outward."""
        return self.bad and self.threw_failure is self

    @property
    def thrown_failure(self) -> bool:
        """True when this status was received from a nested call."""
        return self.bad and self._cause is not None

    # =========================================================================
    # Deconstruction / dispatch
    # =========================================================================

    def deconstruct(self) -> tuple[State, Status]:
        return (self._state, self._status)

    def deconstruct_keys(self) -> dict[str, Any]:
        return {
            "state": self._state,
            "status": self._status,
            "outcome": self.outcome,
            "reason": self._reason,
            "metadata": self._metadata,
            "cause": self._cause,
            "executed": self.executed,
            "good": self.good,
            "bad": self.bad,
        }

    def matches(self, key: State | Status | Outcome | str) -> bool:
        """Whether this Result is in ``key`` (a State, Status, Outcome or predicate name)."""
        if isinstance(key, Outcome):
            return self.outcome is key
        if isinstance(key, State):
            return self._state is key
        if isinstance(key, Status):
            return self._status is key
        if key in _PREDICATES:
            return bool(getattr(self, key))
        for enum in (Status, State, Outcome):
            try:
                return self.matches(enum(key))
            except ValueError:
                continue
        raise ValueError(f"Unknown result key: {key!r}")

    def handle(
        self,
        key: State | Status | Outcome | str,
        callback: Callable[[Result], Any],
    ) -> Result:
        """Call ``callback(self)`` when the Result matches ``key``; returns self.

        Example::

            (ChargeCard.execute(amount=10)
                .handle(Status.SUCCESS, notify)
                .handle("bad", alert))
        """
        if not callable(callback):
            raise TypeError("callback must be callable")
        if self.matches(key):
            callback(self)
        return self

    # =========================================================================
    # Serialization
    # =========================================================================

    def _summary(self) -> dict[str, Any]:
        return {
            "index": self._index,
            "class": type(self._task).__name__,
            "id": self._id,
            "state": self._state.value,
            "status": self._status.value,
            "reason": self._reason,
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging."""
        data: dict[str, Any] = {
            "index": self._index,
            "chain_id": self._chain.id if self._chain is not None else None,
            "type": "Workflow" if getattr(self._task, "is_workflow", False) else "Task",
            "class": type(self._task).__name__,
            "id": self._id,
            "task_id": getattr(self._task, "id", None),
            "state": self._state.value,
            "status": self._status.value,
            "outcome": self.outcome.value,
            "reason": self._reason,
            "metadata": dict(self._metadata),
            "runtime": self._runtime,
        }
        if self.bad:
            data["caused_failure"] = self.caused_failure._summary()
            data["threw_failure"] = self.threw_failure._summary()
        return data

    def __repr__(self) -> str:
        return (
            f"<Result {type(self._task).__name__} {self.outcome.value}"
            f" index={self._index}>"
        )


__all__ = ["Result", "State", "Status", "Outcome"]
