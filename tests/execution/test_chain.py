"""Tests for Chain and ExecutionScope binding.

Covers index assignment, correlation of nested runs, scope lifetime,
freezing, explicit scopes and isolation between threads.
"""

import threading

import pytest

from taskspine.core.errors import ConfigError, ImmutableError, StateError
from taskspine.core.settings import TaskSpineSettings
from taskspine.execution.chain import Chain, current_scope, execution_scope
from taskspine.execution.task import Task


class Leaf(Task):
    def work(self):
        self.context.seen_chain = Chain.current()


class Branch(Task):
    def work(self):
        Leaf.execute()
        Leaf.execute()


class Root(Task):
    def work(self):
        Branch.execute()
        Leaf.execute()


# ---------------------------------------------------------------------------
# Correlation
# ---------------------------------------------------------------------------


class TestCorrelation:
    """One chain per root call."""

    def test_nested_runs_share_one_chain(self):
        result = Root.execute()
        chain = result.chain
        assert len(chain) == 5
        assert [type(r.task).__name__ for r in chain] == ["Root", "Branch", "Leaf", "Leaf", "Leaf"]
        assert all(r.chain is chain for r in chain)

    def test_index_is_append_position(self):
        chain = Root.execute().chain
        assert [r.index for r in chain] == [0, 1, 2, 3, 4]
        assert chain.index(chain[3]) == 3
        assert chain.first is chain[0]
        assert chain.last is chain[4]

    def test_task_sees_current_chain(self):
        result = Leaf.execute()
        assert result.context.seen_chain is result.chain

    def test_separate_root_calls_get_separate_chains(self):
        first = Leaf.execute()
        second = Leaf.execute()
        assert first.chain.id != second.chain.id
        assert len(first.chain) == 1

    def test_delegates_to_root_result(self):
        chain = Root.execute().chain
        assert chain.state is chain[0].state
        assert chain.status is chain[0].status
        assert chain.outcome is chain[0].outcome

    def test_to_dict(self):
        data = Root.execute().chain.to_dict()
        assert len(data["results"]) == 5
        assert data["outcome"] == "complete_success"
        assert data["results"][2]["index"] == 2


# ---------------------------------------------------------------------------
# Scope lifetime
# ---------------------------------------------------------------------------


class TestScopeLifetime:
    """Binding is cleared when the root call returns."""

    def test_no_scope_outside_calls(self):
        assert current_scope() is None
        assert Chain.current() is None

    def test_scope_cleared_after_root(self):
        Root.execute()
        assert current_scope() is None

    def test_scope_cleared_after_fatal_error(self):
        class Broken(Task):
            def work(self):
                raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            Broken.execute()
        assert current_scope() is None

    def test_chain_frozen_after_root(self):
        result = Root.execute()
        assert result.chain.frozen
        with pytest.raises(ImmutableError):
            result.chain.append(Leaf().result)

    def test_contexts_frozen_after_root(self):
        result = Root.execute()
        assert all(r.context.frozen for r in result.chain)


# ---------------------------------------------------------------------------
# Chain API
# ---------------------------------------------------------------------------


class TestChainApi:
    """Direct use of Chain."""

    def test_append_assigns_index(self):
        chain = Chain()
        first, second = Leaf().result, Leaf().result
        assert chain.append(first) == 0
        assert chain.append(second) == 1
        assert second.chain is chain
        assert second.index == 1

    def test_append_rejects_non_results(self):
        with pytest.raises(TypeError):
            Chain().append("nope")

    def test_result_belongs_to_one_chain(self):
        result = Leaf().result
        Chain().append(result)
        with pytest.raises(StateError):
            Chain().append(result)

    def test_index_is_identity_based(self):
        chain = Chain()
        chain.append(Leaf().result)
        assert chain.index(Leaf().result) is None

    def test_results_is_a_snapshot(self):
        chain = Chain()
        snapshot = chain.results
        chain.append(Leaf().result)
        assert snapshot == ()
        assert len(chain.results) == 1

    def test_empty_chain(self):
        chain = Chain()
        assert chain.first is None
        assert chain.status is None
        assert chain.runtime is None


# ---------------------------------------------------------------------------
# Explicit scopes
# ---------------------------------------------------------------------------


class TestExplicitScope:
    """execution_scope threads configuration through every nested call."""

    def test_calls_inside_share_chain(self):
        with execution_scope() as scope:
            first = Leaf.execute()
            second = Leaf.execute()
            assert current_scope() is scope
        assert first.chain is second.chain
        assert [first.index, second.index] == [0, 1]
        assert first.chain.frozen

    def test_settings_travel_with_scope(self):
        settings = TaskSpineSettings(task_halt="failed,skipped")
        with execution_scope(settings) as scope:
            assert scope.settings is settings
            assert Leaf().halt_statuses == settings.task_halt

    def test_nested_scope_reuses_outer(self):
        with execution_scope() as outer:
            with execution_scope() as inner:
                assert inner is outer
            with execution_scope(TaskSpineSettings(), dry_run=False) as same:
                assert same is outer

    def test_nested_scope_rejects_other_settings(self):
        with execution_scope(TaskSpineSettings(task_halt="failed")) as outer:
            with pytest.raises(ConfigError):
                with execution_scope(TaskSpineSettings(task_halt="skipped")):
                    pass
            with pytest.raises(ConfigError):
                with execution_scope(dry_run=True):
                    pass
            assert current_scope() is outer

    def test_dry_run(self):
        with execution_scope(dry_run=True):
            result = Leaf.execute()
            assert result.task.dry_run
        assert result.chain.dry_run

    def test_dry_run_from_settings(self):
        with execution_scope(TaskSpineSettings(dry_run=True)):
            assert Leaf.execute().chain.dry_run

    def test_freezing_disabled(self):
        with execution_scope(TaskSpineSettings(freeze_results=False)):
            result = Leaf.execute()
        assert not result.frozen
        assert not result.chain.frozen
        assert not result.context.frozen


# ---------------------------------------------------------------------------
# Thread isolation
# ---------------------------------------------------------------------------


class TestThreadIsolation:
    """Unrelated root calls on different threads never share a chain."""

    def test_two_threads(self):
        barrier = threading.Barrier(2)
        chains = {}
        errors = []

        class Rendezvous(Task):
            def work(self):
                barrier.wait(timeout=5)
                Leaf.execute()
                barrier.wait(timeout=5)
                Leaf.execute()

        def run(name):
            try:
                chains[name] = Rendezvous.execute().chain
            except Exception as exc:  # pragma: no cover - surfaced below
                errors.append(exc)

        threads = [threading.Thread(target=run, args=(name,)) for name in ("a", "b")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert errors == []
        assert chains["a"].id != chains["b"].id
        assert len(chains["a"]) == 3
        assert len(chains["b"]) == 3
        assert all(r.chain is chains["a"] for r in chains["a"])
        assert all(r.chain is chains["b"] for r in chains["b"])
