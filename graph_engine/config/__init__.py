from graph_engine.config.logging import logger, setup_logging
from graph_engine.config.optimization import (
    OptimizationPolicy,
    OptimizationPreset,
    Representation,
    get_preset_policy,
)
from graph_engine.config.settings import EngineSettings, load_settings

__all__ = [
    "EngineSettings",
    "OptimizationPolicy",
    "OptimizationPreset",
    "Representation",
    "get_preset_policy",
    "load_settings",
    "logger",
    "setup_logging",
]
