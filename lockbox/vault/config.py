"""
Vault Configuration: Store location and validated runtime settings.

Reads settings from environment variables:
    LOCKBOX_DB_PATH         = <path to the SQLite store file>
    LOCKBOX_HOST            = <loopback address the server binds to>
    LOCKBOX_PORT            = <server port>
    LOCKBOX_REMOTE_TIMEOUT  = <seconds per remote request>
    LOCKBOX_LOG_LEVEL       = <logging level name>

Security Note:
    The remote server is unauthenticated and unencrypted, so the bind
    address is restricted to loopback. Tunnel it when crossing hosts.
"""
import os
import logging
import ipaddress
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..exceptions import ConfigurationError

logger = logging.getLogger("lockbox.vault")

DEFAULT_HOME = Path.home() / ".lockbox"
DEFAULT_DB_NAME = "lockbox.db"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8100


def is_loopback(host: str) -> bool:
    """Return True if ``host`` only reaches the local machine."""
    if host == "localhost":
        return True
    try:
        return ipaddress.ip_address(host.strip("[]")).is_loopback
    except ValueError:
        return False


def resolve_db_path() -> Path:
    """Return the store file location.

    ``LOCKBOX_DB_PATH`` names an explicit file; otherwise the store lives
    in ``~/.lockbox/lockbox.db``.
    """
    custom = os.environ.get("LOCKBOX_DB_PATH")
    if custom:
        return Path(custom).expanduser()
    return DEFAULT_HOME / DEFAULT_DB_NAME


def ensure_db_dir(path: Path) -> None:
    """Create the parent directory of ``path`` with mode 0700.

    Raises:
        ConfigurationError: If the directory cannot be created.
    """
    try:
        path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    except OSError as err:
        raise ConfigurationError(
            f"failed to create database directory: {err}"
        ) from err


class LockboxConfig(BaseModel):
    """Validated Lockbox configuration."""

    db_path: Path = Field(default=DEFAULT_HOME / DEFAULT_DB_NAME)
    host: str = Field(default=DEFAULT_HOST)
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    remote_timeout: float = Field(default=10.0, gt=0)
    log_level: str = Field(default="WARNING")

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Only loopback binding is allowed."""
        if not is_loopback(v):
            raise ValueError(
                f"refusing to bind to non-loopback address {v!r}"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate the level is known to :mod:`logging`."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @classmethod
    def build(cls, **values) -> "LockboxConfig":
        """Create a config, raising :class:`ConfigurationError` on bad input."""
        try:
            return cls(**values)
        except ValidationError as err:
            raise ConfigurationError(str(err)) from err

    @classmethod
    def from_env(cls) -> "LockboxConfig":
        """Create LockboxConfig by loading values from environment.

        Returns:
            Populated LockboxConfig instance.
        """
        values = {"db_path": resolve_db_path()}
        for field, env in (
            ("host", "LOCKBOX_HOST"),
            ("port", "LOCKBOX_PORT"),
            ("remote_timeout", "LOCKBOX_REMOTE_TIMEOUT"),
            ("log_level", "LOCKBOX_LOG_LEVEL"),
        ):
            raw = os.environ.get(env)
            if raw:
                values[field] = raw
        return cls.build(**values)
