"""
Secrets and .env handling.

API keys never live in the YAML configuration. They come from the process
environment, optionally seeded from a ``.env`` file by python-dotenv.
Variables already set in the process take precedence over the file.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, SecretStr

# Secret field -> environment variable holding it
SECRET_VARIABLES = {
    "openrouter_api_key": "OPENROUTER_API_KEY",
    "anthropic_api_key": "ANTHROPIC_API_KEY",
}

# Set once a .env lookup has happened in this process
_dotenv_loaded = False

_environment: Optional["EnvironmentConfig"] = None


def ensure_dotenv_loaded(env_file: str = ".env") -> bool:
    """Read ``env_file`` into ``os.environ`` the first time this is called.

    Returns:
        Whether a .env file was read (always True after the first call)
    """
    global _dotenv_loaded
    if _dotenv_loaded:
        return True
    _dotenv_loaded = True

    candidate = Path(env_file)
    if not candidate.is_absolute() and not candidate.exists():
        candidate = Path.cwd() / env_file
    if not candidate.exists():
        return False
    load_dotenv(candidate, override=False)
    return True


class EnvironmentConfig(BaseModel):
    """API keys available to the process.

    Keys are held as ``SecretStr`` so they do not show up in reprs or logs.
    """

    openrouter_api_key: Optional[SecretStr] = None
    anthropic_api_key: Optional[SecretStr] = None
    env_file: str = ".env"

    @property
    def has_llm_key(self) -> bool:
        return any(
            getattr(self, name) is not None for name in SECRET_VARIABLES
        )


def load_environment(env_file: str = ".env") -> EnvironmentConfig:
    """Collect API keys from the environment and cache them."""
    global _environment
    ensure_dotenv_loaded(env_file)

    secrets = {
        name: SecretStr(os.environ[variable])
        for name, variable in SECRET_VARIABLES.items()
        if os.environ.get(variable)
    }
    _environment = EnvironmentConfig(env_file=env_file, **secrets)
    return _environment


def get_api_key(provider: str) -> Optional[str]:
    """Plain-text key for ``provider`` ("openrouter" or "anthropic"), or None."""
    environment = _environment if _environment is not None else load_environment()
    secret = getattr(environment, f"{provider}_api_key", None)
    if secret is None:
        return None
    return secret.get_secret_value()


def reset_environment() -> None:
    """Drop cached keys and allow .env to be read again. Used by tests."""
    global _dotenv_loaded, _environment
    _dotenv_loaded = False
    _environment = None
