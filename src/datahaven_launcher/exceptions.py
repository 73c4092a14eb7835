"""
datahaven-launcher exception hierarchy
"""

from typing import Any, Optional


class LauncherError(Exception):
    """Launcher base exception"""

    pass


class ConfigurationError(LauncherError):
    """Configuration-related error"""

    pass


class UnknownProfileError(ConfigurationError):
    """Network profile is not present in the constant table"""

    def __init__(self, profile: str):
        self.profile = profile
        super().__init__(f"Unknown network profile: {profile}")


class UnknownConstantError(ConfigurationError):
    """Constant is not defined for the given profile"""

    def __init__(self, profile: str, name: str):
        self.profile = profile
        self.name = name
        super().__init__(f"Unknown constant {name} for profile {profile}")


class NoApplicableVersionError(ConfigurationError):
    """No registered version is less than or equal to the requested one"""

    def __init__(self, label: str, version: int, lowest: Optional[int] = None):
        self.label = label
        self.version = version
        self.lowest = lowest
        detail = f" (lowest registered version is {lowest})" if lowest is not None else ""
        super().__init__(f"No value of {label} applies to runtime version {version}{detail}")


class UnknownComponentError(ConfigurationError):
    """Component option name is not registered"""

    def __init__(self, option_name: str, known: Optional[list[str]] = None):
        self.option_name = option_name
        self.known = known or []
        hint = f". Known components: {', '.join(self.known)}" if self.known else ""
        super().__init__(f"Unknown component: {option_name}{hint}")


class ParametersFileError(ConfigurationError):
    """Runtime parameters file is missing or malformed"""

    pass


class ShellError(LauncherError):
    """Shell execution error"""

    pass


class InvalidWorkingDirectoryError(ShellError):
    """Working directory does not exist"""

    def __init__(self, cwd: Any):
        self.cwd = cwd
        super().__init__(f"Working directory does not exist: {cwd}")


class SpawnFailedError(ShellError):
    """Subprocess could not be spawned"""

    def __init__(self, command: Any, os_error: OSError):
        self.command = command
        self.os_error = os_error
        super().__init__(f"Failed to spawn {command!r}: {os_error}")


class StreamReadError(ShellError):
    """Reading one of the subprocess output streams failed"""

    def __init__(self, stream_name: str, cause: BaseException):
        self.stream_name = stream_name
        self.cause = cause
        super().__init__(f"Error reading from {stream_name} stream: {cause}")


class ComponentError(LauncherError):
    """Component lifecycle error"""

    def __init__(self, option_name: str, message: str):
        self.option_name = option_name
        super().__init__(message)


class ComponentStartFailedError(ComponentError):
    """Component could not be started or never became ready"""

    pass


class ComponentStopFailedError(ComponentError):
    """Component could not be stopped"""

    pass
