"""
Environment Configuration

Loads launcher settings from .env files and environment variables.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from datahaven_launcher.constants import NETWORK_PROFILES

DEFAULT_NETWORK_NAME = "datahaven-net"

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


def parse_int_strict(value: str) -> int:
    """Parse a base-10 integer, rejecting anything else (e.g. "12abc", "1e3", "0x10")

    Raises:
        ValueError: If ``value`` is not a plain decimal integer
    """
    text = value.strip()
    if not _INT_PATTERN.fullmatch(text):
        raise ValueError(f"Not a number: {value!r}")
    return int(text, 10)


@dataclass
class LauncherConfig:
    """Settings shared by the launch and stop commands"""

    network_name: str = DEFAULT_NETWORK_NAME
    profile: str = "local"
    runtime_version: int = 0
    startup_timeout: int = 60
    confirm_timeout: int = 10
    working_dir: Path = field(default_factory=Path.cwd)
    config_dir: Path = Path("tmp/configs")
    rpc_host: str = "127.0.0.1"
    docker_bin: str = "docker"

    # Full image references (name:tag) overriding the registry defaults
    image_overrides: dict[str, str] = field(default_factory=dict)

    def image_for(self, option_name: str, default: str) -> str:
        return self.image_overrides.get(option_name) or default


def _env_int(name: str, default: int, issues: list[str]) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return parse_int_strict(raw)
    except ValueError:
        issues.append(f"{name} should be an integer, got {raw!r}")
        return default


def load_launcher_config(
    env_paths: Optional[list[Path]] = None,
) -> tuple[LauncherConfig, list[str]]:
    """
    Load launcher configuration from .env files and the environment.

    Args:
        env_paths: List of .env file paths to load (in order)

    Returns:
        Tuple of (config, list of problems found while reading variables)
    """
    if env_paths is None:
        env_paths = [Path.cwd() / ".env"]

    for path in env_paths:
        if path.exists():
            load_dotenv(path)

    issues: list[str] = []

    image_overrides = {}
    if os.getenv("DATAHAVEN_IMAGE_TAG"):
        image_overrides["datahaven"] = os.environ["DATAHAVEN_IMAGE_TAG"]
    if os.getenv("RELAYER_IMAGE_TAG"):
        image_overrides["relayer"] = os.environ["RELAYER_IMAGE_TAG"]

    config = LauncherConfig(
        network_name=os.getenv("DH_NETWORK_NAME", DEFAULT_NETWORK_NAME),
        profile=os.getenv("DH_PROFILE", "local"),
        runtime_version=_env_int("DH_RUNTIME_VERSION", 0, issues),
        startup_timeout=_env_int("DH_STARTUP_TIMEOUT", 60, issues),
        confirm_timeout=_env_int("DH_CONFIRM_TIMEOUT", 10, issues),
        config_dir=Path(os.getenv("DH_RELAYER_CONFIG_DIR", "tmp/configs")),
        rpc_host=os.getenv("DH_RPC_HOST", "127.0.0.1"),
        docker_bin=os.getenv("DH_DOCKER_BIN", "docker"),
        image_overrides=image_overrides,
    )
    return config, issues


def validate_launcher_config(config: LauncherConfig) -> tuple[bool, list[str]]:
    """
    Validate launcher configuration.

    Returns:
        Tuple of (is_valid, list of missing/invalid items)
    """
    issues = []

    if not config.network_name:
        issues.append("Network name must not be empty")
    if config.profile not in NETWORK_PROFILES:
        issues.append(
            f"Unknown profile {config.profile!r}, expected one of: {', '.join(NETWORK_PROFILES)}"
        )
    if config.runtime_version < 0:
        issues.append("Runtime version must be non-negative")
    if config.startup_timeout <= 0:
        issues.append("Startup timeout must be positive")
    if config.confirm_timeout < 0:
        issues.append("Confirmation timeout must not be negative")
    if not config.working_dir.is_dir():
        issues.append(f"Working directory does not exist: {config.working_dir}")

    return len(issues) == 0, issues
