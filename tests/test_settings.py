import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from graph_engine.config.logging import logger
from graph_engine.config.optimization import (
    OptimizationPolicy,
    OptimizationPreset,
    Representation,
    get_preset_policy,
)
from graph_engine.config.settings import EngineSettings, load_settings
from graph_engine.core.graph import Graph

_ENV_KEYS = (
    "GRAPH_ENGINE_LOG_LEVEL",
    "GRAPH_ENGINE_OPTIMIZATION_PRESET",
    "GRAPH_ENGINE_CSR_THRESHOLD",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Окружение без переменных GRAPH_ENGINE_*; восстанавливается после теста."""
    for key in _ENV_KEYS:
        monkeypatch.setenv(key, "placeholder")
        monkeypatch.delenv(key)
    return monkeypatch


def _graph_with(n: int) -> Graph:
    graph = Graph()
    for index in range(n):
        graph.add_node(index)
    return graph


def test_default_settings(clean_env):
    settings = EngineSettings()

    assert settings.log_level == "INFO"
    assert settings.optimization_preset is OptimizationPreset.DEFAULT
    assert settings.csr_threshold is None


def test_settings_from_env(clean_env):
    clean_env.setenv("GRAPH_ENGINE_LOG_LEVEL", "debug")
    clean_env.setenv("GRAPH_ENGINE_OPTIMIZATION_PRESET", "performance")
    clean_env.setenv("GRAPH_ENGINE_CSR_THRESHOLD", "50")

    settings = EngineSettings()

    assert settings.log_level == "DEBUG"
    assert settings.optimization_preset is OptimizationPreset.PERFORMANCE
    policy = settings.optimization_policy()
    assert policy.preset is OptimizationPreset.PERFORMANCE
    assert policy.csr_threshold == 50


def test_empty_env_value_means_default(clean_env):
    clean_env.setenv("GRAPH_ENGINE_LOG_LEVEL", "  ")

    assert EngineSettings().log_level == "INFO"


def test_invalid_log_level(clean_env):
    with pytest.raises(ValidationError):
        EngineSettings(log_level="LOUD")


def test_memory_preset_rejects_threshold(clean_env):
    with pytest.raises(ValidationError):
        EngineSettings(optimization_preset="memory", csr_threshold=10)


def test_load_settings_from_env_file(tmp_path: Path, clean_env):
    env_path = tmp_path / ".env"
    env_path.write_text(
        "# comment\nGRAPH_ENGINE_OPTIMIZATION_PRESET=balanced\nGRAPH_ENGINE_LOG_LEVEL='warning'\n",
        encoding="utf-8",
    )

    settings = load_settings(env_path)

    assert settings.optimization_preset is OptimizationPreset.BALANCED
    assert settings.log_level == "WARNING"


def test_env_file_does_not_touch_process_environment(tmp_path: Path, clean_env):
    env_path = tmp_path / ".env"
    env_path.write_text("GRAPH_ENGINE_CSR_THRESHOLD=25\n", encoding="utf-8")

    settings = load_settings(env_path)

    assert settings.csr_threshold == 25
    assert "GRAPH_ENGINE_CSR_THRESHOLD" not in os.environ


def test_environment_overrides_env_file(tmp_path: Path, clean_env):
    env_path = tmp_path / ".env"
    env_path.write_text("GRAPH_ENGINE_OPTIMIZATION_PRESET=balanced\n", encoding="utf-8")
    clean_env.setenv("GRAPH_ENGINE_OPTIMIZATION_PRESET", "performance")

    assert load_settings(env_path).optimization_preset is OptimizationPreset.PERFORMANCE


def test_configure_logging_uses_log_fields(tmp_path: Path, clean_env):
    log_path = tmp_path / "engine.log"
    settings = EngineSettings(log_level="warning", log_file=str(log_path), log_rotation="1 MB")

    settings.configure_logging()
    logger.info("below threshold")
    logger.warning("settings driven message")
    logger.complete()
    logger.remove()

    content = log_path.read_text(encoding="utf-8")
    assert "settings driven message" in content
    assert "below threshold" not in content


def test_load_settings_wraps_validation_error(tmp_path: Path, clean_env):
    env_path = tmp_path / ".env"
    env_path.write_text("GRAPH_ENGINE_LOG_LEVEL=verbose\n", encoding="utf-8")

    with pytest.raises(RuntimeError, match="Unsupported log level"):
        load_settings(env_path)


def test_load_settings_missing_file(tmp_path: Path, clean_env):
    settings = load_settings(tmp_path / "absent.env")

    assert settings.optimization_preset is OptimizationPreset.DEFAULT


def test_preset_thresholds():
    assert get_preset_policy("default").csr_threshold == 10_000
    assert get_preset_policy("performance").csr_threshold == 1_000
    assert get_preset_policy("balanced").csr_threshold == 5_000
    assert get_preset_policy("memory").csr_threshold is None


def test_unknown_preset():
    with pytest.raises(ValueError):
        get_preset_policy("turbo")


def test_policy_recommendation():
    policy = get_preset_policy("default", csr_threshold=3)

    assert policy.recommend_representation(_graph_with(2)) is Representation.ADJACENCY
    assert policy.recommend_representation(_graph_with(3)) is Representation.CSR
    assert policy.should_use_csr(_graph_with(5))


def test_memory_policy_never_uses_csr():
    policy = get_preset_policy(OptimizationPreset.MEMORY)

    assert not policy.should_use_csr(_graph_with(50))


def test_policy_is_immutable():
    policy = OptimizationPolicy()

    with pytest.raises(ValidationError):
        policy.csr_threshold = 1

    overridden = get_preset_policy("default", csr_threshold=7)
    assert overridden.csr_threshold == 7
    assert get_preset_policy("default").csr_threshold == 10_000
