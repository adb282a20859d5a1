"""
Configuration Loader.

Reads FlowScribe settings from a YAML file, expands environment
references, applies ``FLOWSCRIBE_*`` overrides and validates the result
into a ``FlowscribeConfig``.
"""

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from flowscribe.config.environment import load_environment
from flowscribe.config.models import FlowscribeConfig

# Searched in order when no explicit file is given
DEFAULT_CONFIG_PATHS = [
    "flowscribe.yaml",
    "flowscribe.yml",
    ".flowscribe.yaml",
    ".flowscribe.yml",
    "config.yaml",
    "config.yml",
]

# Names an explicit config file
CONFIG_ENV_VAR = "FLOWSCRIBE_CONFIG"

# Environment variable -> dotted config key
ENV_VAR_OVERRIDES = {
    "FLOWSCRIBE_LLM_ENABLED": "llm.enabled",
    "FLOWSCRIBE_LLM_MODEL": "llm.model",
    "FLOWSCRIBE_STEP_DELAY": "orchestrator.step_delay",
    "FLOWSCRIBE_MIN_KEYWORD_MATCHES": "extraction.min_keyword_matches",
    "FLOWSCRIBE_TREND_LIMIT": "scoring.trend_limit",
    "FLOWSCRIBE_LOG_LEVEL": "logging.level",
    "FLOWSCRIBE_LOG_FILE": "logging.file",
    "FLOWSCRIBE_DEBUG": "debug",
}

# ${NAME}, ${NAME:-fallback} or ${NAME:fallback}
ENV_REFERENCE = re.compile(r"\$\{(?P<name>\w+)(?::-?(?P<fallback>[^}]*))?\}")

_TRUE_WORDS = frozenset({"true", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "no", "off"})

# Validation errors listed in the message before truncating
_MAX_REPORTED_ERRORS = 5


class ConfigurationError(Exception):
    """Invalid or unreadable configuration.

    Attributes:
        errors: Pydantic error dicts, when validation failed
        path: File the configuration was read from, if any
    """

    def __init__(
        self,
        message: str,
        errors: Optional[list[dict]] = None,
        path: Optional[Path] = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors or []
        self.path = path

    def details(self) -> list[str]:
        """One line per validation error, ``location: message``."""
        lines = []
        for error in self.errors[:_MAX_REPORTED_ERRORS]:
            location = ".".join(str(part) for part in error.get("loc", ()))
            lines.append(f"  - {location}: {error.get('msg', 'Unknown error')}")
        hidden = len(self.errors) - _MAX_REPORTED_ERRORS
        if hidden > 0:
            lines.append(f"  ... and {hidden} more errors")
        return lines

    def __str__(self) -> str:
        text = super().__str__()
        if self.path:
            text += f" (file: {self.path})"
        return "\n".join([text, *self.details()])


def coerce_scalar(text: str) -> Any:
    """Interpret an environment string as bool, int, float or None.

    Text that looks like none of these is returned unchanged.
    """
    if text == "":
        return None
    lowered = text.lower()
    if lowered in _TRUE_WORDS:
        return True
    if lowered in _FALSE_WORDS:
        return False
    for convert in (int, float):
        try:
            return convert(text)
        except ValueError:
            continue
    return text


def _expand_string(value: str) -> Any:
    whole = ENV_REFERENCE.fullmatch(value)
    if whole is not None:
        resolved = os.environ.get(whole["name"], whole["fallback"])
        return value if resolved is None else coerce_scalar(resolved)

    def lookup(match: re.Match[str]) -> str:
        resolved = os.environ.get(match["name"], match["fallback"])
        return match.group(0) if resolved is None else resolved

    return ENV_REFERENCE.sub(lookup, value)


def expand_env_references(data: Any) -> Any:
    """Replace ``${VAR}`` references throughout a parsed YAML tree.

    A value consisting of a single reference takes the type of the
    resolved text; references embedded in longer strings are replaced
    textually. Unresolvable references are left as written.
    """
    if isinstance(data, str):
        return _expand_string(data)
    if isinstance(data, Mapping):
        return {key: expand_env_references(value) for key, value in data.items()}
    if isinstance(data, list):
        return [expand_env_references(item) for item in data]
    return data


def drop_none(data: Any) -> Any:
    """Remove None values so model defaults apply (YAML turns empty sections into None)."""
    if isinstance(data, Mapping):
        return {key: drop_none(value) for key, value in data.items() if value is not None}
    if isinstance(data, list):
        return [drop_none(item) for item in data]
    return data


def apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Set every configured ``FLOWSCRIBE_*`` variable at its dotted key."""
    for env_var, dotted_key in ENV_VAR_OVERRIDES.items():
        raw = os.environ.get(env_var)
        if raw is None:
            continue
        *parents, leaf = dotted_key.split(".")
        section = data
        for name in parents:
            if not isinstance(section.get(name), dict):
                section[name] = {}
            section = section[name]
        section[leaf] = coerce_scalar(raw)
    return data


class ConfigLoader:
    """Builds a validated ``FlowscribeConfig`` from YAML and the environment.

    Usage:
        config = ConfigLoader("flowscribe.yaml").load()

        # FLOWSCRIBE_CONFIG, then the default file names, then defaults
        config = ConfigLoader().load_from_env()
    """

    def __init__(
        self,
        config_path: Optional[str | Path] = None,
        env_file: str = ".env",
    ) -> None:
        self._config_path = Path(config_path) if config_path else None
        self._env_file = env_file
        self._config: Optional[FlowscribeConfig] = None
        self._loaded_from_path: Optional[Path] = None

    @property
    def config_path(self) -> Optional[Path]:
        return self._config_path

    @property
    def loaded_from_path(self) -> Optional[Path]:
        """File the current config came from; None when built from defaults."""
        return self._loaded_from_path

    @property
    def config(self) -> Optional[FlowscribeConfig]:
        return self._config

    def load(self, path: Optional[str | Path] = None) -> FlowscribeConfig:
        """Read, expand and validate the configuration.

        Without a file only defaults and environment overrides apply.

        Args:
            path: File to read instead of the one given at construction

        Returns:
            Validated FlowscribeConfig

        Raises:
            ConfigurationError: If the file is not valid YAML or the values are invalid
            FileNotFoundError: If the config file does not exist
        """
        if path is not None:
            self._config_path = Path(path)
        load_environment(self._env_file)

        raw = self._read_file() if self._config_path else {}
        self._loaded_from_path = self._config_path
        values = drop_none(apply_env_overrides(expand_env_references(raw)))

        try:
            self._config = FlowscribeConfig.model_validate(values)
        except ValidationError as e:
            raise ConfigurationError(
                f"Configuration validation failed: {e.error_count()} errors",
                errors=e.errors(),
                path=self._loaded_from_path,
            ) from e
        return self._config

    def load_from_env(self) -> FlowscribeConfig:
        """Load the file named by FLOWSCRIBE_CONFIG, else the first default file found.

        Raises:
            ConfigurationError: If config is invalid
            FileNotFoundError: If FLOWSCRIBE_CONFIG names a missing file
        """
        load_environment(self._env_file)
        return self.load(self._discover())

    def _discover(self) -> Optional[Path]:
        explicit = os.environ.get(CONFIG_ENV_VAR)
        if explicit:
            path = Path(explicit)
            if not path.exists():
                raise FileNotFoundError(f"{CONFIG_ENV_VAR} points to a missing file: {explicit}")
            return path
        return next((Path(p) for p in DEFAULT_CONFIG_PATHS if Path(p).exists()), None)

    def _read_file(self) -> dict[str, Any]:
        path = self._config_path
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML: {e}", path=path) from e

        if not isinstance(data, dict):
            raise ConfigurationError("Configuration root must be a mapping", path=path)
        return data


# Process-wide configuration, set by load_config / load_config_from_env
_active_config: Optional[FlowscribeConfig] = None


def load_config(
    config_path: Optional[str | Path] = None,
    env_file: str = ".env",
) -> FlowscribeConfig:
    """Load configuration from a file (or defaults) and make it the active config."""
    global _active_config
    _active_config = ConfigLoader(config_path, env_file).load()
    return _active_config


def load_config_from_env(env_file: str = ".env") -> FlowscribeConfig:
    """Discover, load and activate configuration."""
    global _active_config
    _active_config = ConfigLoader(env_file=env_file).load_from_env()
    return _active_config


def get_config() -> FlowscribeConfig:
    """The active configuration.

    Raises:
        RuntimeError: If no configuration has been loaded
    """
    if _active_config is None:
        raise RuntimeError("No configuration loaded; call load_config() or load_config_from_env()")
    return _active_config


def reset_config() -> None:
    """Forget the active configuration. Useful for testing."""
    global _active_config
    _active_config = None


def create_default_config() -> FlowscribeConfig:
    """Configuration with every default, without reading files or the environment."""
    return FlowscribeConfig()
