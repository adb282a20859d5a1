"""Tests for configuration loader."""

from pathlib import Path

import pytest
import yaml

from flowscribe.config import (
    CONFIG_ENV_VAR,
    ENV_VAR_OVERRIDES,
    ConfigLoader,
    ConfigurationError,
    FlowscribeConfig,
    LogLevel,
    create_default_config,
    get_api_key,
    get_config,
    load_config,
    load_config_from_env,
    load_environment,
    reset_config,
    reset_environment,
)

# Variables that may leak in from a developer's shell or .env file
_ENV_VARS = [*ENV_VAR_OVERRIDES, CONFIG_ENV_VAR, "OPENROUTER_API_KEY", "ANTHROPIC_API_KEY"]


@pytest.fixture(autouse=True)
def reset_global_config(monkeypatch):
    """Reset global config and environment around each test."""
    import flowscribe.config.environment as env_module

    reset_config()
    reset_environment()
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)

    # Keep ensure_dotenv_loaded() from reading a real .env during tests
    monkeypatch.setattr(env_module, "_dotenv_loaded", True)

    yield

    reset_config()
    reset_environment()


@pytest.fixture
def full_config_dict():
    """Configuration dictionary with every section."""
    return {
        "extraction": {"min_keyword_matches": 2, "excerpt_max_length": 120},
        "llm": {"enabled": True, "model": "openai/gpt-4o-mini", "max_retries": 2},
        "orchestrator": {"step_delay": 0.0},
        "scoring": {"component_weights": {"DATABASE": 2.0}, "trend_limit": 5},
        "logging": {"level": "DEBUG", "file": "flowscribe.log"},
        "debug": True,
    }


def write_yaml(path: Path, data) -> Path:
    path.write_text(yaml.safe_dump(data))
    return path


class TestConfigLoader:
    """Tests for ConfigLoader."""

    def test_load_full_config(self, tmp_path, full_config_dict):
        """Test loading every section from YAML."""
        path = write_yaml(tmp_path / "flowscribe.yaml", full_config_dict)
        loader = ConfigLoader(path)

        config = loader.load()

        assert isinstance(config, FlowscribeConfig)
        assert config.extraction.min_keyword_matches == 2
        assert config.llm.enabled is True
        assert config.llm.model == "openai/gpt-4o-mini"
        assert config.orchestrator.step_delay == 0.0
        assert config.scoring.effective_weights()["DATABASE"] == 2.0
        assert config.scoring.trend_limit == 5
        assert config.logging.level == LogLevel.DEBUG
        assert config.debug is True
        assert loader.loaded_from_path == path
        assert loader.config is config

    def test_load_without_path_uses_defaults(self):
        """Test defaults apply when no file is given."""
        loader = ConfigLoader()
        config = loader.load()
        assert config == create_default_config()
        assert loader.loaded_from_path is None

    def test_missing_file(self, tmp_path):
        """Test a missing config file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            ConfigLoader(tmp_path / "nope.yaml").load()

    def test_invalid_yaml(self, tmp_path):
        """Test malformed YAML raises ConfigurationError."""
        path = tmp_path / "bad.yaml"
        path.write_text("extraction: [unclosed")
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader(path).load()
        assert exc_info.value.path == path

    def test_non_mapping_root(self, tmp_path):
        """Test a YAML list root is rejected."""
        path = write_yaml(tmp_path / "list.yaml", ["a", "b"])
        with pytest.raises(ConfigurationError, match="mapping"):
            ConfigLoader(path).load()

    def test_validation_errors_reported(self, tmp_path):
        """Test invalid values list their locations."""
        path = write_yaml(tmp_path / "invalid.yaml", {"orchestrator": {"step_delay": -1}})
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader(path).load()

        error = exc_info.value
        assert error.errors
        assert "orchestrator.step_delay" in str(error)
        assert str(path) in str(error)

    def test_infinite_weight_in_yaml_rejected(self, tmp_path):
        """Test YAML .inf and .nan weights fail validation."""
        for value in (".inf", ".nan"):
            path = tmp_path / "weights.yaml"
            path.write_text(f"scoring:\n  component_weights:\n    DATABASE: {value}\n")
            with pytest.raises(ConfigurationError) as exc_info:
                ConfigLoader(path).load()
            assert "scoring.component_weights" in str(exc_info.value)

    def test_empty_sections_use_defaults(self, tmp_path):
        """Test sections parsed as None fall back to defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("extraction:\nscoring:\n")
        config = ConfigLoader(path).load()
        assert config.extraction.min_keyword_matches == 1
        assert config.scoring.trend_limit == 10

    def test_empty_file(self, tmp_path):
        """Test an empty file gives defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert ConfigLoader(path).load() == create_default_config()


class TestEnvSubstitution:
    """Tests for ${VAR} substitution."""

    def test_whole_value_coerced(self, tmp_path, monkeypatch):
        """Test a lone reference is converted to its type."""
        monkeypatch.setenv("TEST_STEP_DELAY", "0.25")
        monkeypatch.setenv("TEST_LLM_ON", "yes")
        path = write_yaml(
            tmp_path / "env.yaml",
            {"orchestrator": {"step_delay": "${TEST_STEP_DELAY}"}, "llm": {"enabled": "${TEST_LLM_ON}"}},
        )
        config = ConfigLoader(path).load()
        assert config.orchestrator.step_delay == 0.25
        assert config.llm.enabled is True

    def test_default_value(self, tmp_path):
        """Test ${VAR:-default} when the variable is unset."""
        path = write_yaml(
            tmp_path / "env.yaml",
            {"extraction": {"min_keyword_matches": "${TEST_UNSET_MATCHES:-3}"}},
        )
        assert ConfigLoader(path).load().extraction.min_keyword_matches == 3

    def test_embedded_reference(self, tmp_path, monkeypatch):
        """Test references inside longer strings."""
        monkeypatch.setenv("TEST_PROVIDER", "anthropic")
        path = write_yaml(tmp_path / "env.yaml", {"llm": {"model": "${TEST_PROVIDER}/claude"}})
        assert ConfigLoader(path).load().llm.model == "anthropic/claude"

    def test_unresolved_reference_kept(self, tmp_path):
        """Test unknown references are left as written."""
        path = write_yaml(tmp_path / "env.yaml", {"llm": {"model": "${TEST_UNSET_MODEL}"}})
        assert ConfigLoader(path).load().llm.model == "${TEST_UNSET_MODEL}"


class TestEnvOverrides:
    """Tests for FLOWSCRIBE_* overrides."""

    def test_override_file_value(self, tmp_path, monkeypatch, full_config_dict):
        """Test env overrides win over file values."""
        path = write_yaml(tmp_path / "flowscribe.yaml", full_config_dict)
        monkeypatch.setenv("FLOWSCRIBE_LLM_MODEL", "other/model")
        monkeypatch.setenv("FLOWSCRIBE_TREND_LIMIT", "20")
        monkeypatch.setenv("FLOWSCRIBE_LOG_LEVEL", "WARNING")

        config = ConfigLoader(path).load()

        assert config.llm.model == "other/model"
        assert config.scoring.trend_limit == 20
        assert config.logging.level == LogLevel.WARNING

    def test_override_without_file(self, monkeypatch):
        """Test overrides create missing sections."""
        monkeypatch.setenv("FLOWSCRIBE_STEP_DELAY", "0")
        monkeypatch.setenv("FLOWSCRIBE_DEBUG", "true")
        config = ConfigLoader().load()
        assert config.orchestrator.step_delay == 0
        assert config.debug is True

    def test_invalid_override(self, monkeypatch):
        """Test an invalid override fails validation."""
        monkeypatch.setenv("FLOWSCRIBE_MIN_KEYWORD_MATCHES", "0")
        with pytest.raises(ConfigurationError):
            ConfigLoader().load()


class TestLoadFromEnv:
    """Tests for config discovery."""

    def test_config_env_var(self, tmp_path, monkeypatch):
        """Test FLOWSCRIBE_CONFIG points at the file."""
        path = write_yaml(tmp_path / "custom.yaml", {"debug": True})
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert ConfigLoader().load_from_env().debug is True

    def test_config_env_var_missing_file(self, tmp_path, monkeypatch):
        """Test a missing FLOWSCRIBE_CONFIG target."""
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "missing.yaml"))
        with pytest.raises(FileNotFoundError):
            ConfigLoader().load_from_env()

    def test_default_location(self, tmp_path, monkeypatch):
        """Test discovery in the working directory."""
        write_yaml(tmp_path / "flowscribe.yaml", {"scoring": {"trend_limit": 3}})
        monkeypatch.chdir(tmp_path)
        assert ConfigLoader().load_from_env().scoring.trend_limit == 3

    def test_no_file_found(self, tmp_path, monkeypatch):
        """Test defaults when nothing is found."""
        monkeypatch.chdir(tmp_path)
        assert ConfigLoader().load_from_env() == create_default_config()


class TestGlobalConfig:
    """Tests for the cached global configuration."""

    def test_get_before_load(self):
        """Test get_config requires a prior load."""
        with pytest.raises(RuntimeError):
            get_config()

    def test_load_and_get(self, tmp_path):
        """Test load_config caches the result."""
        path = write_yaml(tmp_path / "flowscribe.yaml", {"debug": True})
        config = load_config(path)
        assert get_config() is config

    def test_load_from_env_and_reset(self, tmp_path, monkeypatch):
        """Test reset_config clears the cache."""
        monkeypatch.chdir(tmp_path)
        load_config_from_env()
        reset_config()
        with pytest.raises(RuntimeError):
            get_config()


class TestEnvironment:
    """Tests for secret loading."""

    def test_api_key_from_env(self, monkeypatch):
        """Test keys are read from the environment."""
        monkeypatch.setenv("OPENROUTER_API_KEY", "sk-test")
        env = load_environment()
        assert env.has_llm_key is True
        assert get_api_key("openrouter") == "sk-test"
        assert "sk-test" not in repr(env)

    def test_no_keys(self):
        """Test missing keys."""
        env = load_environment()
        assert env.has_llm_key is False
        assert get_api_key("openrouter") is None
        assert get_api_key("unknown") is None
