import logging

import pytest

from rusk.config import load_config, resolve_db_path
from rusk.errors import ConfigError


def test_default_db_path_is_under_home(tmp_path):
    assert resolve_db_path(None, home=tmp_path) == tmp_path / ".rusk" / "tasks.json"
    assert resolve_db_path("  ", home=tmp_path) == tmp_path / ".rusk" / "tasks.json"


def test_existing_directory_gets_default_file_name(tmp_path):
    assert resolve_db_path(str(tmp_path)) == tmp_path / "tasks.json"


def test_trailing_separator_means_directory(tmp_path):
    target = tmp_path / "not-yet"
    assert resolve_db_path(f"{target}/") == target / "tasks.json"


def test_file_path_is_used_as_is(tmp_path):
    target = tmp_path / "work.json"
    assert resolve_db_path(str(target)) == target


def test_load_config_reads_env(tmp_path):
    config = load_config(
        {"RUSK_DB": str(tmp_path), "RUSK_LOG_LEVEL": "info", "RUSK_SHOW_PATHS": "yes"}
    )

    assert config.db_path == tmp_path / "tasks.json"
    assert config.log_level == logging.INFO
    assert config.show_paths is True


def test_db_override_wins_over_env(tmp_path):
    override = tmp_path / "other.json"
    config = load_config({"RUSK_DB": str(tmp_path)}, db_override=str(override))

    assert config.db_path == override
    assert config.log_level == logging.WARNING
    assert config.show_paths is False


def test_verbose_enables_debug_and_paths(tmp_path):
    config = load_config({"RUSK_DB": str(tmp_path)}, verbose=True)

    assert config.log_level == logging.DEBUG
    assert config.show_paths is True


def test_invalid_log_level(tmp_path):
    with pytest.raises(ConfigError) as excinfo:
        load_config({"RUSK_DB": str(tmp_path), "RUSK_LOG_LEVEL": "loud"})

    assert "RUSK_LOG_LEVEL" in str(excinfo.value)


def test_invalid_boolean(tmp_path):
    with pytest.raises(ConfigError) as excinfo:
        load_config({"RUSK_DB": str(tmp_path), "RUSK_SHOW_PATHS": "maybe"})

    assert "RUSK_SHOW_PATHS" in str(excinfo.value)
