"""
Component Lifecycle Controller

Starts and stops the network components as containers joined to one shared
network, tracking a run state per component.

Usage:
    controller = ComponentController(ComponentRegistry(), build_default_store(), config)
    report = await controller.launch(["datahaven", "relayer"])
    # ... run tests ...
    await controller.stop(["datahaven", "relayer"])
"""

import asyncio
import logging
import shlex
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Optional

import httpx

from datahaven_launcher.components import ComponentIdentity, ComponentRegistry
from datahaven_launcher.constants import ConstantStore
from datahaven_launcher.env import LauncherConfig
from datahaven_launcher.exceptions import (
    ComponentStartFailedError,
    ComponentStopFailedError,
    LauncherError,
    ShellError,
    UnknownComponentError,
)
from datahaven_launcher.shell import Command, ShellResult, run_shell_command

logger = logging.getLogger(__name__)

Runner = Callable[..., Awaitable[ShellResult]]


class ComponentState(str, Enum):
    NOT_STARTED = "not_started"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    FAILED = "failed"


@dataclass
class ComponentResult:
    """Outcome of one component within a launch or stop"""

    option_name: str
    state: ComponentState
    error: Optional[Exception] = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class OperationReport:
    """Per-component outcomes of a launch or stop"""

    action: str
    results: list[ComponentResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[ComponentResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[ComponentResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failed


class ComponentController:
    """Drives components through NOT_STARTED -> STARTING -> RUNNING -> STOPPING -> STOPPED"""

    poll_interval: float = 1.0

    def __init__(
        self,
        registry: ComponentRegistry,
        constants: ConstantStore,
        config: LauncherConfig,
        runner: Optional[Runner] = None,
    ):
        self.registry = registry
        self.constants = constants
        self.config = config
        self._runner = runner or run_shell_command
        self._states: dict[str, ComponentState] = {}
        self._network_lock = asyncio.Lock()
        self._network_ready = False

    def state_of(self, option_name: str) -> ComponentState:
        return self._states.get(option_name, ComponentState.NOT_STARTED)

    def container_name(self, identity: ComponentIdentity) -> str:
        return f"{self.config.network_name}-{identity.option_name}"

    def resolve_constant(self, name: str) -> Any:
        return self.constants.resolve(self.config.profile, name, self.config.runtime_version)

    async def _run(self, command: Command, log_level: int = logging.DEBUG) -> ShellResult:
        return await self._runner(command, cwd=self.config.working_dir, log_level=log_level)

    def _quoted(self, *parts: str) -> str:
        return " ".join(shlex.quote(part) for part in parts)

    async def check_docker_running(self) -> bool:
        """Check that the container daemon answers ``docker info``"""
        info = self._quoted(self.config.docker_bin, "info")
        result = await self._run(f"{info} >/dev/null 2>&1")
        if not result.ok:
            logger.error("Is Docker running? Unable to connect to the docker daemon")
            return False
        logger.info("✓ Docker is running")
        return True

    # ------------------------------------------------------------------
    # Network namespace
    # ------------------------------------------------------------------

    async def ensure_network(self) -> None:
        """Create the shared network unless it already exists

        Raises:
            ShellError: If the network neither exists nor could be created
        """
        async with self._network_lock:
            if self._network_ready:
                return

            docker = self.config.docker_bin
            name = self.config.network_name
            exists = self._quoted(docker, "network", "inspect", name) + " >/dev/null 2>&1"
            create = self._quoted(docker, "network", "create", name)
            # Re-check after a failed create: another process may have won the race
            result = await self._run(f"{exists} || {create} || {exists}")
            if not result.ok:
                raise ShellError(
                    f"Failed to create network {name} (exit code {result.returncode})"
                )

            logger.info(f"Components will use network: {name}")
            self._network_ready = True

    async def remove_network(self) -> bool:
        """Remove the shared network; True when it is gone afterwards"""
        docker = self.config.docker_bin
        name = self.config.network_name
        remove = self._quoted(docker, "network", "rm", name)
        exists = self._quoted(docker, "network", "inspect", name) + " >/dev/null 2>&1"
        result = await self._run(f"{remove} || ! {exists}")
        async with self._network_lock:
            self._network_ready = False
        if result.ok:
            logger.info(f"Network {name} removed")
        else:
            logger.error(f"Failed to remove network {name} (exit code {result.returncode})")
        return result.ok

    # ------------------------------------------------------------------
    # Container helpers
    # ------------------------------------------------------------------

    def _rpc_port(self, identity: ComponentIdentity) -> Optional[int]:
        if identity.rpc_port_constant is None:
            return None
        return int(self.resolve_constant(identity.rpc_port_constant))

    def build_start_command(
        self, identity: ComponentIdentity, rpc_port: Optional[int] = None
    ) -> list[str]:
        """Build the ``docker run`` argument list for a component"""
        command = [
            self.config.docker_bin,
            "run",
            "-d",
            "--name",
            self.container_name(identity),
            "--network",
            self.config.network_name,
        ]
        if rpc_port is not None:
            command.extend(["-p", f"{rpc_port}:{rpc_port}"])
        if identity.config_mount:
            host_dir = (self.config.working_dir / self.config.config_dir).resolve()
            command.extend(["-v", f"{host_dir}:{identity.config_mount}"])
        command.append(self.config.image_for(identity.option_name, identity.default_image))
        command.extend(identity.command_args)
        if rpc_port is not None:
            command.append(f"--rpc-port={rpc_port}")
        return command

    async def _container_exists(self, container: str) -> bool:
        inspect = self._quoted(self.config.docker_bin, "container", "inspect", container)
        result = await self._run(f"{inspect} >/dev/null 2>&1")
        return result.ok

    async def _container_running(self, container: str) -> bool:
        inspect = self._quoted(
            self.config.docker_bin, "container", "inspect", "-f", "{{.State.Running}}", container
        )
        result = await self._run(f"{inspect} 2>/dev/null | grep -q true")
        return result.ok

    async def _check_rpc_health(self, port: int) -> bool:
        """Check that the node answers the ``system_health`` JSON-RPC call"""
        url = f"http://{self.config.rpc_host}:{port}"
        payload = {"jsonrpc": "2.0", "id": 1, "method": "system_health", "params": []}
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.post(url, json=payload)
                return response.status_code == 200 and "result" in response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"RPC health check on {url} failed: {e}")
            return False

    async def _wait_until_ready(self, container: str, rpc_port: Optional[int]) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.config.startup_timeout

        while True:
            if await self._container_running(container):
                if rpc_port is None or await self._check_rpc_health(rpc_port):
                    return True
            if loop.time() >= deadline:
                return False
            logger.debug(f"{container} not ready, waiting {self.poll_interval}s...")
            await asyncio.sleep(self.poll_interval)

    # ------------------------------------------------------------------
    # Launch
    # ------------------------------------------------------------------

    async def _launch_one(self, option_name: str) -> ComponentResult:
        try:
            identity = self.registry.lookup(option_name)
        except UnknownComponentError as e:
            logger.error(str(e))
            return ComponentResult(option_name, ComponentState.FAILED, error=e)

        if self.state_of(option_name) == ComponentState.RUNNING:
            logger.info(f"✓ {identity.component_name} already running")
            return ComponentResult(option_name, ComponentState.RUNNING, skipped=True)

        self._states[option_name] = ComponentState.STARTING
        container = self.container_name(identity)
        logger.info(f"🚀 Starting {identity.component_name} ({container})...")

        try:
            rpc_port = self._rpc_port(identity)
            await self.ensure_network()

            remove_stale = self._quoted(self.config.docker_bin, "rm", "-f", container)
            await self._run(f"{remove_stale} >/dev/null 2>&1 || true")

            result = await self._run(self.build_start_command(identity, rpc_port))
            if not result.ok:
                raise ComponentStartFailedError(
                    option_name,
                    f"{identity.component_name} start command exited with code {result.returncode}",
                )

            if not await self._wait_until_ready(container, rpc_port):
                raise ComponentStartFailedError(
                    option_name,
                    f"{identity.component_name} not ready after {self.config.startup_timeout}s",
                )
        except LauncherError as e:
            self._states[option_name] = ComponentState.FAILED
            logger.error(f"Failed to start {identity.component_name}: {e}")
            return ComponentResult(option_name, ComponentState.FAILED, error=e)

        self._states[option_name] = ComponentState.RUNNING
        logger.info(f"✓ {identity.component_name} running in container {container}")
        return ComponentResult(option_name, ComponentState.RUNNING)

    async def launch(self, option_names: Iterable[str]) -> OperationReport:
        """
        Start the selected components in parallel.

        A failing component does not stop the others; every component gets a
        result in the report.
        """
        names = list(dict.fromkeys(option_names))
        outcomes = await asyncio.gather(
            *[self._launch_one(name) for name in names],
            return_exceptions=True,
        )

        report = OperationReport("launch")
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, ComponentResult):
                report.results.append(outcome)
            elif isinstance(outcome, Exception):
                self._states[name] = ComponentState.FAILED
                logger.error(f"Unexpected error while starting {name}: {outcome!r}")
                report.results.append(ComponentResult(name, ComponentState.FAILED, error=outcome))
            else:
                raise outcome
        return report

    # ------------------------------------------------------------------
    # Stop
    # ------------------------------------------------------------------

    async def sync_states(self, option_names: Iterable[str]) -> None:
        """Mark components whose container exists as RUNNING so they can be stopped"""
        for name in dict.fromkeys(option_names):
            if name not in self.registry:
                continue
            if self.state_of(name) not in (ComponentState.NOT_STARTED, ComponentState.STOPPED):
                continue
            identity = self.registry.lookup(name)
            if await self._container_exists(self.container_name(identity)):
                logger.debug(f"Found existing container for {name}")
                self._states[name] = ComponentState.RUNNING

    async def _stop_one(self, option_name: str) -> ComponentResult:
        try:
            identity = self.registry.lookup(option_name)
        except UnknownComponentError as e:
            logger.error(str(e))
            return ComponentResult(option_name, ComponentState.FAILED, error=e)

        state = self.state_of(option_name)
        if state not in (ComponentState.RUNNING, ComponentState.FAILED):
            logger.info(f"{identity.component_name} is {state.value}, nothing to stop")
            return ComponentResult(option_name, state, skipped=True)

        self._states[option_name] = ComponentState.STOPPING
        container = self.container_name(identity)
        logger.info(f"🧹 Stopping {identity.component_name} ({container})...")

        try:
            remove = self._quoted(self.config.docker_bin, "rm", "-f", container)
            inspect = self._quoted(self.config.docker_bin, "container", "inspect", container)
            result = await self._run(f"{remove} || ! {inspect} >/dev/null 2>&1")
            if not result.ok:
                raise ComponentStopFailedError(
                    option_name,
                    f"{identity.component_name} stop command exited with code {result.returncode}",
                )
        except LauncherError as e:
            self._states[option_name] = ComponentState.FAILED
            logger.error(f"Failed to stop {identity.component_name}: {e}")
            return ComponentResult(option_name, ComponentState.FAILED, error=e)

        self._states[option_name] = ComponentState.STOPPED
        logger.info(f"✓ {identity.component_name} stopped")
        return ComponentResult(option_name, ComponentState.STOPPED)

    async def stop(self, option_names: Iterable[str]) -> OperationReport:
        """Stop the selected components one after another"""
        report = OperationReport("stop")
        for name in dict.fromkeys(option_names):
            report.results.append(await self._stop_one(name))
        return report
