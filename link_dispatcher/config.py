"""Configuration management for the link dispatcher."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_LINK_HOSTS = "mega.nz,mega.app,mega.co.nz"


def _get_int(name: str, default: str) -> int:
    value = os.getenv(name, default)
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def _get_float(name: str, default: str) -> float:
    value = os.getenv(name, default)
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


def _get_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("true", "1", "yes")


@dataclass
class Config:
    """Dispatcher configuration loaded from environment variables."""

    # Link recognition
    link_scheme: str
    link_hosts: tuple[str, ...]
    unwrap_redirects: bool
    max_redirect_depth: int

    # Network resolution
    resolver_timeout: float  # Seconds per request

    # Logging
    log_level: str

    @classmethod
    def load(cls, env_path: Optional[Path] = None) -> "Config":
        """Load configuration from environment variables.

        Args:
            env_path: Optional path to .env file. If not provided, looks for .env
                      in the project root directory.

        Returns:
            Config instance with all settings loaded.

        Raises:
            ValueError: If a numeric variable cannot be parsed.
        """
        project_root = Path(__file__).parent.parent.resolve()

        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv(project_root / ".env")

        link_scheme = os.getenv("LINK_SCHEME", "mega").strip().lower()
        link_hosts = tuple(
            host.strip().lower()
            for host in os.getenv("LINK_HOSTS", DEFAULT_LINK_HOSTS).split(",")
            if host.strip()
        )
        unwrap_redirects = _get_bool("UNWRAP_REDIRECTS", "true")
        max_redirect_depth = _get_int("MAX_REDIRECT_DEPTH", "3")
        resolver_timeout = _get_float("RESOLVER_TIMEOUT", "10.0")
        log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()

        return cls(
            link_scheme=link_scheme,
            link_hosts=link_hosts,
            unwrap_redirects=unwrap_redirects,
            max_redirect_depth=max_redirect_depth,
            resolver_timeout=resolver_timeout,
            log_level=log_level,
        )

    def validate(self) -> list[str]:
        """Validate the configuration and return any warnings.

        Returns:
            List of warning messages for suspicious settings.
        """
        warnings = []

        if not self.link_scheme:
            warnings.append("LINK_SCHEME is empty - custom scheme links will not match")

        if not self.link_hosts:
            warnings.append("LINK_HOSTS is empty - universal links will not match")

        if self.max_redirect_depth < 1 and self.unwrap_redirects:
            warnings.append(
                "MAX_REDIRECT_DEPTH < 1 - tracking links will not be unwrapped"
            )

        if self.resolver_timeout <= 0:
            warnings.append("RESOLVER_TIMEOUT must be positive")

        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            warnings.append(f"Unknown LOG_LEVEL {self.log_level!r} - using INFO")

        return warnings
