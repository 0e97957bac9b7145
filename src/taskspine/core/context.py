"""
Task Context — shared key/value store for a task's inputs and outputs.

Every task run owns (or shares) a :class:`Context`.  Workflow members all
receive the workflow's context object, so mutations made by one member are
visible to the next.  Once the root call of a chain finishes, the context is
frozen together with the chain.

Keys are accessible both as items and as attributes::

    ctx = Context.build({"order_id": 7})
    ctx.total = 42
    ctx["total"]          # 42
    ctx.get("missing")    # None

Tags:
    taskspine, context, shared-state

Doc-Types:
    api-reference
"""

from __future__ import annotations

import copy
from collections.abc import Iterator, Mapping, MutableMapping
from typing import Any

from taskspine.core.errors import ImmutableError


class Context(MutableMapping[str, Any]):
    """Mutable mapping with attribute access that can be frozen."""

    __slots__ = ("_data", "_frozen")

    def __init__(self, data: Mapping[str, Any] | None = None, /, **kwargs: Any) -> None:
        object.__setattr__(self, "_data", {})
        object.__setattr__(self, "_frozen", False)
        if data:
            self._data.update({str(k): v for k, v in data.items()})
        if kwargs:
            self._data.update(kwargs)

    @classmethod
    def build(cls, source: Any = None, /, **inputs: Any) -> Context:
        """Return the context a task should run with.

        - a live ``Context`` is shared (mutations are visible to the caller)
        - anything exposing ``.context`` (a Task, a Result) shares that context
        - a frozen ``Context`` or any other mapping is copied into a new one
        - keyword ``inputs`` are merged on top
        """
        if source is not None and not isinstance(source, Mapping) and hasattr(source, "context"):
            source = source.context

        if isinstance(source, cls) and not source.frozen:
            context = source
        elif source is None:
            context = cls()
        elif isinstance(source, Mapping):
            context = cls(source)
        else:
            raise TypeError(f"Cannot build a Context from {type(source).__name__}")

        if inputs:
            context.update(inputs)
        return context

    # =========================================================================
    # Freezing
    # =========================================================================

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> Context:
        object.__setattr__(self, "_frozen", True)
        return self

    def _ensure_mutable(self, key: str) -> None:
        if self._frozen:
            raise ImmutableError(f"Context is frozen; cannot modify {key!r}")

    # =========================================================================
    # Mapping protocol
    # =========================================================================

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._ensure_mutable(key)
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        self._ensure_mutable(key)
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    # =========================================================================
    # Attribute access
    # =========================================================================

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(
                f"{type(self).__name__} has no key {name!r}"
            ) from None

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            raise AttributeError(f"Cannot set private attribute {name!r} on Context")
        self[name] = value

    def __delattr__(self, name: str) -> None:
        try:
            del self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __copy__(self) -> Context:
        return type(self)(self._data)

    def __deepcopy__(self, memo: dict[int, Any]) -> Context:
        return type(self)(copy.deepcopy(self._data, memo))

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    def __repr__(self) -> str:
        state = " frozen" if self._frozen else ""
        return f"<Context{state} {self._data!r}>"
