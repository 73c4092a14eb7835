"""
DataHaven test network launcher

Provides the pieces used to run a local test network:
- Versioned runtime constants (ConstantStore)
- Component catalog (ComponentRegistry)
- Shell execution with streamed logging (run_shell_command)
- Component start/stop (ComponentController)
"""

from datahaven_launcher.components import (
    DEFAULT_COMPONENTS,
    ComponentIdentity,
    ComponentRegistry,
)
from datahaven_launcher.constants import (
    ConstantStore,
    RuntimeConstant,
    build_default_store,
)
from datahaven_launcher.env import LauncherConfig, load_launcher_config
from datahaven_launcher.lifecycle import (
    ComponentController,
    ComponentResult,
    ComponentState,
    OperationReport,
)
from datahaven_launcher.prompt import confirm_with_timeout
from datahaven_launcher.shell import ShellResult, run_shell_command

__version__ = "0.2.0"

__all__ = [
    # Constants
    "ConstantStore",
    "RuntimeConstant",
    "build_default_store",
    # Components
    "ComponentIdentity",
    "ComponentRegistry",
    "DEFAULT_COMPONENTS",
    # Config
    "LauncherConfig",
    "load_launcher_config",
    # Shell
    "ShellResult",
    "run_shell_command",
    # Lifecycle
    "ComponentController",
    "ComponentResult",
    "ComponentState",
    "OperationReport",
    # Prompt
    "confirm_with_timeout",
]
