"""passwdm settings.

Filesystem locations and tunables, read from the environment:
    PASSWDM_HOME = <directory holding config.json and store.json>
    PASSWDM_PASSWORD_LENGTH = <length of generated passwords>
"""
import os
from pathlib import Path

from pydantic import BaseModel, Field

CONFIG_FILENAME = "config.json"
STORE_FILENAME = "store.json"
DEFAULT_PASSWORD_LENGTH = 12

DEFAULT_HOME = Path.home() / ".passwdm"


def get_home(home=None) -> Path:
    """Return the per-user config directory (argument, env var or default)."""
    if home:
        return Path(home).expanduser()
    env = os.environ.get("PASSWDM_HOME")
    if env:
        return Path(env).expanduser()
    return DEFAULT_HOME


def config_path(home=None) -> Path:
    return get_home(home) / CONFIG_FILENAME


def store_path(home=None) -> Path:
    return get_home(home) / STORE_FILENAME


class Settings(BaseModel):
    """Validated runtime settings."""

    password_length: int = Field(default=DEFAULT_PASSWORD_LENGTH, ge=8, le=4096)

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings by loading values from environment.

        Raises:
            ValidationError: If a value is not acceptable.
        """
        values = {}
        raw = os.environ.get("PASSWDM_PASSWORD_LENGTH")
        if raw is not None:
            values["password_length"] = raw.strip()
        return cls(**values)
