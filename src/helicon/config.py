"""Configuration management for Helicon."""

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from helicon.constants import DEFAULT_USER_AGENT
from helicon.errors import ConfigError

TRUE_VALUES = {"1", "t", "true"}
FALSE_VALUES = {"0", "f", "false"}


def get_config_dir() -> Path:
    """Get the XDG-compliant configuration directory."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config"))
    return Path(xdg_config) / "helicon"


def get_config_path() -> Path:
    """Get the path of the TOML configuration file."""
    return get_config_dir() / "config.toml"


@dataclass
class Settings:
    """Login credentials and client options.

    Username and password are only ever held in memory; they are never
    written to the secret store.
    """

    username: str
    password: str
    user_agent: str = DEFAULT_USER_AGENT
    force_login: bool = False

    def __repr__(self) -> str:
        return (
            f"Settings(username={self.username!r}, password='***', "
            f"user_agent={self.user_agent!r}, force_login={self.force_login!r})"
        )


def parse_bool(value: str, name: str = "value") -> bool:
    """Parse a boolean flag, falling back to False on unrecognized input."""
    normalized = value.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized not in FALSE_VALUES:
        logger.warning("invalid {}, expected bool, received {!r}; defaulting to false", name, value)
    return False


def load_settings(path: Path | None = None, environ: Mapping[str, str] | None = None) -> Settings:
    """Load settings from environment variables, falling back to the TOML file.

    Environment variables (HELICON_USERNAME, HELICON_PASSWORD, HELICON_USER_AGENT,
    HELICON_FORCE_LOGIN) take priority over the [auth] table of the config file.

    Raises:
        ConfigError: If the username or password is missing, or the config
            file is not valid TOML.
    """
    if environ is None:
        environ = os.environ
    if path is None:
        path = get_config_path()

    auth_data: dict[str, object] = {}
    if path.exists():
        try:
            with path.open("rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"invalid config file {path}: {exc}") from exc
        section = data.get("auth", {})
        if not isinstance(section, dict):
            raise ConfigError(f"invalid config file {path}: [auth] must be a table")
        auth_data = section

    username = environ.get("HELICON_USERNAME") or auth_data.get("username")
    if not username or not isinstance(username, str):
        raise ConfigError("HELICON_USERNAME not set, cannot proceed")
    password = environ.get("HELICON_PASSWORD") or auth_data.get("password")
    if not password or not isinstance(password, str):
        raise ConfigError("HELICON_PASSWORD not set, cannot proceed")

    user_agent = environ.get("HELICON_USER_AGENT") or auth_data.get("user_agent")
    if not isinstance(user_agent, str) or not user_agent:
        user_agent = DEFAULT_USER_AGENT

    force_login = False
    env_force_login = environ.get("HELICON_FORCE_LOGIN", "")
    if env_force_login:
        force_login = parse_bool(env_force_login, "HELICON_FORCE_LOGIN")
    elif isinstance(auth_data.get("force_login"), bool):
        force_login = bool(auth_data["force_login"])

    return Settings(
        username=username,
        password=password,
        user_agent=user_agent,
        force_login=force_login,
    )
