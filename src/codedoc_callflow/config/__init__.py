"""Configuration classes for codedoc-callflow"""

from .analysis import AnalysisConfig, generate_example_config, CONFIG_ENV_VAR

__all__ = [
    "AnalysisConfig",
    "generate_example_config",
    "CONFIG_ENV_VAR",
]
