"""Tests for cooperative deadlines."""

import threading
import time

import pytest

from taskspine.execution.timeout import (
    DeadlineContext,
    TimeoutExpired,
    check_deadline,
    deadline_context,
    get_current_deadline,
    get_effective_timeout,
    get_remaining_deadline,
)


class TestTimeoutExpired:
    """Exception shape."""

    def test_is_timeout_error(self):
        assert issubclass(TimeoutExpired, TimeoutError)

    def test_message_and_attributes(self):
        exc = TimeoutExpired(timeout=2.0, elapsed=2.5, operation="ChargeCard")
        assert exc.timeout == 2.0
        assert exc.elapsed == 2.5
        assert "ChargeCard timed out after 2.0s" in str(exc)
        assert "2.50s" in str(exc)

    def test_to_metadata(self):
        metadata = TimeoutExpired(timeout=1.0, elapsed=1.2).to_metadata()
        assert metadata == {"timeout": True, "category": "TIMEOUT", "limit": 1.0, "elapsed": 1.2}


class TestDeadlineStack:
    """Push/pop and nesting."""

    def test_outside_any_deadline(self):
        assert get_current_deadline() is None
        assert get_remaining_deadline() is None
        assert get_effective_timeout(10.0) == 10.0
        check_deadline()

    def test_push_and_pop(self):
        with deadline_context(5.0, "op") as ctx:
            assert isinstance(ctx, DeadlineContext)
            assert get_current_deadline() is ctx
            assert 0 < get_remaining_deadline() <= 5.0
            assert ctx.operation == "op"
        assert get_current_deadline() is None

    def test_popped_on_error(self):
        with pytest.raises(KeyError):
            with deadline_context(5.0):
                raise KeyError("x")
        assert get_current_deadline() is None

    def test_inner_cannot_extend_outer(self):
        with deadline_context(1.0):
            with deadline_context(60.0) as inner:
                assert inner.timeout_seconds <= 1.0

    def test_inner_can_shorten(self):
        with deadline_context(60.0):
            with deadline_context(1.0) as inner:
                assert inner.timeout_seconds == 1.0

    def test_rejects_non_positive(self):
        with pytest.raises(ValueError):
            with deadline_context(0):
                pass

    def test_does_not_raise_on_exit(self):
        with deadline_context(0.01) as ctx:
            time.sleep(0.02)
        assert ctx.is_expired()

    def test_thread_local(self):
        seen = []
        with deadline_context(5.0):
            thread = threading.Thread(target=lambda: seen.append(get_current_deadline()))
            thread.start()
            thread.join()
        assert seen == [None]


class TestCheckDeadline:
    """Raising on expiry."""

    def test_raises_once_expired(self):
        with deadline_context(0.01, "Slow"):
            time.sleep(0.02)
            with pytest.raises(TimeoutExpired) as exc_info:
                check_deadline()
        assert exc_info.value.operation == "Slow"
        assert exc_info.value.elapsed >= 0.01

    def test_silent_before_expiry(self):
        with deadline_context(5.0) as ctx:
            check_deadline()
            ctx.check()
