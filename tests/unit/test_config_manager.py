"""Unit tests for simplecal.config_manager."""
from types import SimpleNamespace

import pytest

from simplecal.config_manager import ConfigManager, RecurrenceConfig, get_config_value

pytestmark = pytest.mark.unit

_ENV_KEYS = (
    "SIMPLECAL_MAX_OCCURRENCES",
    "SIMPLECAL_EXPANSION_FALLBACK",
    "SIMPLECAL_VIEW_PADDING_MONTHS",
    "SIMPLECAL_STORE_PATH",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    # setenv first so keys written by load_env_file are removed again on teardown
    for key in _ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return monkeypatch


def test_defaults() -> None:
    config = RecurrenceConfig()
    assert config.max_occurrences_per_window == 10000
    assert config.expansion_fallback is True
    assert config.default_view_months == 1


def test_from_settings_dict_and_object() -> None:
    from_dict = RecurrenceConfig.from_settings({"max_occurrences_per_window": 50})
    from_obj = RecurrenceConfig.from_settings(SimpleNamespace(expansion_fallback=False))

    assert from_dict.max_occurrences_per_window == 50
    assert from_dict.expansion_fallback is True
    assert from_obj.expansion_fallback is False
    assert RecurrenceConfig.from_settings(None) == RecurrenceConfig()


def test_get_config_value() -> None:
    assert get_config_value({"a": 1}, "a") == 1
    assert get_config_value(SimpleNamespace(a=2), "a") == 2
    assert get_config_value(None, "a", 3) == 3
    assert get_config_value({}, "a", 4) == 4


def test_build_config_from_env(clean_env, tmp_path) -> None:
    clean_env.setenv("SIMPLECAL_MAX_OCCURRENCES", "250")
    clean_env.setenv("SIMPLECAL_EXPANSION_FALLBACK", "off")
    clean_env.setenv("SIMPLECAL_VIEW_PADDING_MONTHS", "0")
    clean_env.setenv("SIMPLECAL_STORE_PATH", "/tmp/cal.json")

    cfg = ConfigManager(tmp_path / ".env").build_config_from_env()

    assert cfg == {
        "max_occurrences_per_window": 250,
        "expansion_fallback": False,
        "default_view_months": 0,
        "store_path": "/tmp/cal.json",
    }


@pytest.mark.parametrize(
    "key,value",
    [
        ("SIMPLECAL_MAX_OCCURRENCES", "lots"),
        ("SIMPLECAL_MAX_OCCURRENCES", "0"),
        ("SIMPLECAL_EXPANSION_FALLBACK", "maybe"),
        ("SIMPLECAL_VIEW_PADDING_MONTHS", "-2"),
    ],
)
def test_invalid_env_values_are_ignored(clean_env, tmp_path, caplog, key, value) -> None:
    clean_env.setenv(key, value)
    assert ConfigManager(tmp_path / ".env").build_config_from_env() == {}
    assert key in caplog.text


def test_env_file_does_not_override_environment(clean_env, tmp_path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# defaults\n"
        "SIMPLECAL_MAX_OCCURRENCES=500\n"
        "SIMPLECAL_STORE_PATH='from-file.json'\n"
        "not a setting\n",
        encoding="utf-8",
    )
    clean_env.setenv("SIMPLECAL_MAX_OCCURRENCES", "20")

    manager = ConfigManager(env_file)
    loaded = manager.load_env_file()
    cfg = manager.build_config_from_env()

    assert loaded == ["SIMPLECAL_STORE_PATH"]
    assert cfg["max_occurrences_per_window"] == 20
    assert cfg["store_path"] == "from-file.json"


def test_missing_env_file(clean_env, tmp_path) -> None:
    assert ConfigManager(tmp_path / "absent.env").load_env_file() == []


def test_from_env(clean_env, tmp_path) -> None:
    clean_env.setenv("SIMPLECAL_EXPANSION_FALLBACK", "no")
    config = RecurrenceConfig.from_env(tmp_path / ".env")
    assert config.expansion_fallback is False
    assert config.max_occurrences_per_window == 10000
