"""
Settings for FlowScribe.

A ``FlowscribeConfig`` is read from YAML by ``ConfigLoader`` (with ${VAR}
expansion and FLOWSCRIBE_* overrides). API keys come separately from the
environment or a .env file.
"""

from flowscribe.config.environment import (
    EnvironmentConfig,
    ensure_dotenv_loaded,
    get_api_key,
    load_environment,
    reset_environment,
)
from flowscribe.config.loader import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_PATHS,
    ENV_VAR_OVERRIDES,
    ConfigLoader,
    ConfigurationError,
    create_default_config,
    get_config,
    load_config,
    load_config_from_env,
    reset_config,
)
from flowscribe.config.models import (
    DEFAULT_COMPONENT_WEIGHTS,
    ExtractionConfig,
    FlowscribeConfig,
    LLMConfig,
    LoggingConfig,
    LogLevel,
    OrchestratorSettings,
    ScoringConfig,
)

__all__ = [
    # Config models
    "DEFAULT_COMPONENT_WEIGHTS",
    "ExtractionConfig",
    "FlowscribeConfig",
    "LLMConfig",
    "LogLevel",
    "LoggingConfig",
    "OrchestratorSettings",
    "ScoringConfig",
    # Loader
    "ConfigLoader",
    "ConfigurationError",
    "load_config",
    "load_config_from_env",
    "get_config",
    "reset_config",
    "create_default_config",
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATHS",
    "ENV_VAR_OVERRIDES",
    # Environment
    "EnvironmentConfig",
    "load_environment",
    "ensure_dotenv_loaded",
    "get_api_key",
    "reset_environment",
]
