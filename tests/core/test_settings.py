"""Tests for TaskSpineSettings: defaults, env parsing, caching."""

import pytest
from pydantic import ValidationError

from taskspine.core.enums import Status
from taskspine.core.settings import (
    TaskSpineSettings,
    get_settings,
    parse_statuses,
    reset_settings,
)


class TestDefaults:
    """Out-of-the-box halt policy."""

    def test_halt_sets_default_to_failed(self):
        settings = TaskSpineSettings()
        assert settings.task_halt == frozenset({Status.FAILED})
        assert settings.workflow_halt == frozenset({Status.FAILED})

    def test_other_defaults(self):
        settings = TaskSpineSettings()
        assert settings.task_timeout is None
        assert settings.workflow_timeout is None
        assert settings.freeze_results is True
        assert settings.dry_run is False
        assert settings.log_level == "INFO"

    def test_settings_are_frozen(self):
        settings = TaskSpineSettings()
        with pytest.raises(ValidationError):
            settings.dry_run = True


class TestParsing:
    """Status-set coercion from code and environment."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, frozenset()),
            ("", frozenset()),
            (Status.SKIPPED, frozenset({Status.SKIPPED})),
            ("failed, skipped", frozenset({"failed", "skipped"})),
            ('["failed"]', frozenset({"failed"})),
            (["skipped"], frozenset({"skipped"})),
        ],
    )
    def test_parse_statuses(self, value, expected):
        assert parse_statuses(value) == expected

    def test_constructor_accepts_strings(self):
        settings = TaskSpineSettings(task_halt="failed,skipped")
        assert settings.task_halt == frozenset({Status.FAILED, Status.SKIPPED})

    def test_invalid_status_rejected(self):
        with pytest.raises(ValidationError):
            TaskSpineSettings(task_halt="exploded")

    def test_env_comma_separated(self, monkeypatch):
        monkeypatch.setenv("TASKSPINE_WORKFLOW_HALT", "failed,skipped")
        settings = TaskSpineSettings()
        assert Status.SKIPPED in settings.workflow_halt

    def test_env_json_list(self, monkeypatch):
        monkeypatch.setenv("TASKSPINE_TASK_HALT", '["skipped"]')
        assert TaskSpineSettings().task_halt == frozenset({Status.SKIPPED})

    def test_env_empty_means_never_halt(self, monkeypatch):
        monkeypatch.setenv("TASKSPINE_TASK_HALT", "")
        assert TaskSpineSettings().task_halt == frozenset()

    def test_log_level_upper_cased(self, monkeypatch):
        monkeypatch.setenv("TASKSPINE_LOG_LEVEL", "debug")
        assert TaskSpineSettings().log_level == "DEBUG"

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            TaskSpineSettings(task_timeout=0)

    def test_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("TASKSPINE_DRY_RUN=true\n")
        assert TaskSpineSettings().dry_run is True


class TestCaching:
    """get_settings / reset_settings."""

    def test_cached_instance(self):
        assert get_settings() is get_settings()

    def test_reset_reloads_environment(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("TASKSPINE_DRY_RUN", "1")
        assert get_settings().dry_run is False
        reset_settings()
        second = get_settings()
        assert second is not first
        assert second.dry_run is True

    def test_force_reload(self):
        first = get_settings()
        assert get_settings(_force_reload=True) is not first
