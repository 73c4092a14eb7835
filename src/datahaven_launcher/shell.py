"""
Shell Command Runner

Runs a command as a subprocess and streams its output into the log:
- stdout lines are logged at the requested level
- stderr lines are always logged at ERROR
- both streams are drained concurrently, so neither pipe can fill up and stall the child
"""

import asyncio
import logging
import os
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

from datahaven_launcher.exceptions import (
    InvalidWorkingDirectoryError,
    SpawnFailedError,
    StreamReadError,
)
from datahaven_launcher.logging_config import OUTPUT_LOGGER_NAME, get_logger

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024

Command = Union[str, Sequence[str]]


@dataclass
class _StreamState:
    name: str
    lines: int = 0
    error: Optional[StreamReadError] = None


@dataclass(frozen=True)
class ShellResult:
    """Outcome of one shell command"""

    command: str
    returncode: int
    stdout_lines: int = 0
    stderr_lines: int = 0
    stream_errors: tuple[StreamReadError, ...] = ()

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def signal(self) -> Optional[int]:
        """Signal number that terminated the process, if any"""
        if self.returncode < 0:
            return -self.returncode
        return None


def format_command(command: Command) -> str:
    if isinstance(command, str):
        return command
    return shlex.join(command)


def _emit(state: _StreamState, raw: bytes, level: int, output_logger: logging.Logger) -> None:
    text = raw.decode("utf-8", errors="replace").strip()
    if not text:
        return
    state.lines += 1
    output_logger.log(level, text)


async def _drain_stream(
    stream: Optional[asyncio.StreamReader],
    state: _StreamState,
    level: int,
    output_logger: logging.Logger,
) -> None:
    """Read a stream until EOF, logging each complete line"""
    if stream is None:
        return

    pending = bytearray()
    try:
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            start = len(pending)
            pending += chunk
            # Bytes before ``start`` hold no newline, search only the new data
            end = pending.rfind(b"\n", start)
            if end < 0:
                continue
            for line in pending[:end].split(b"\n"):
                _emit(state, line, level, output_logger)
            del pending[: end + 1]
        if pending:
            _emit(state, pending, level, output_logger)
    except Exception as e:
        # Only this stream stops; the process and the sibling stream keep going
        state.error = StreamReadError(state.name, e)
        logger.error(f"Error reading from {state.name} stream: {e}")


async def run_shell_command(
    command: Command,
    cwd: Union[str, Path] = ".",
    env: Optional[Mapping[str, str]] = None,
    log_level: int = logging.INFO,
    output_logger: Optional[logging.Logger] = None,
) -> ShellResult:
    """
    Run a command and log its output while it runs.

    Args:
        command: Shell string (run with ``sh -c``) or argument list (executed directly)
        cwd: Working directory, must exist
        env: Variables layered over the inherited environment
        log_level: Level used for stdout lines
        output_logger: Logger receiving output lines

    Returns:
        ShellResult with the exit code; a non-zero exit is not an error here

    Raises:
        InvalidWorkingDirectoryError: If ``cwd`` is not an existing directory
        SpawnFailedError: If the process could not be started
    """
    if not command:
        raise ValueError("Empty command")

    display = format_command(command)
    workdir = Path(cwd)
    if not workdir.is_dir():
        logger.error(f"Working directory does not exist: {workdir}")
        raise InvalidWorkingDirectoryError(workdir)

    child_env = os.environ.copy()
    if env:
        child_env.update({key: str(value) for key, value in env.items()})

    argv = ["sh", "-c", command] if isinstance(command, str) else list(command)

    logger.debug(f"Running command: {display} (cwd={workdir})")
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(workdir),
            env=child_env,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.error(f"Error running shell command: {display} in {workdir}: {e}")
        raise SpawnFailedError(display, e) from e

    output_logger = output_logger or get_logger(OUTPUT_LOGGER_NAME)
    stdout_state = _StreamState("stdout")
    stderr_state = _StreamState("stderr")

    stdout_task = asyncio.create_task(
        _drain_stream(process.stdout, stdout_state, log_level, output_logger)
    )
    stderr_task = asyncio.create_task(
        _drain_stream(process.stderr, stderr_state, logging.ERROR, output_logger)
    )
    _, _, returncode = await asyncio.gather(stdout_task, stderr_task, process.wait())

    logger.debug(f"Command exited with code {returncode}: {display}")

    return ShellResult(
        command=display,
        returncode=returncode,
        stdout_lines=stdout_state.lines,
        stderr_lines=stderr_state.lines,
        stream_errors=tuple(
            state.error for state in (stdout_state, stderr_state) if state.error is not None
        ),
    )
