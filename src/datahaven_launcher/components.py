"""
Component registry - catalog of the containers the launcher can start and stop
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator, Optional

from datahaven_launcher.exceptions import UnknownComponentError

# Flags every base-chain node is started with in a local network
COMMON_LAUNCH_ARGS = (
    "--unsafe-force-node-key-generation",
    "--tmp",
    "--validator",
    "--discover-local",
    "--no-prometheus",
    "--unsafe-rpc-external",
    "--rpc-cors=all",
    "--force-authoring",
    "--no-telemetry",
    "--enable-offchain-indexing=true",
)


@dataclass(frozen=True)
class ComponentIdentity:
    """Deployment identity of a launchable component"""

    option_name: str
    image_name: str
    component_name: str
    default_tag: str = "latest"
    command_args: tuple[str, ...] = ()
    rpc_port_constant: Optional[str] = None
    config_mount: Optional[str] = None

    @property
    def default_image(self) -> str:
        return f"{self.image_name}:{self.default_tag}"


DEFAULT_COMPONENTS: tuple[ComponentIdentity, ...] = (
    ComponentIdentity(
        option_name="datahaven",
        image_name="datahavenxyz/datahaven",
        component_name="Datahaven Network",
        default_tag="local",
        command_args=("--alice",) + COMMON_LAUNCH_ARGS,
        rpc_port_constant="RPC_PORT",
    ),
    ComponentIdentity(
        option_name="relayer",
        image_name="datahavenxyz/snowbridge-relay",
        component_name="Snowbridge Relayers",
        default_tag="latest",
        command_args=("run", "beefy", "--config", "/configs/beefy-relay.json"),
        config_mount="/configs",
    ),
)


class ComponentRegistry:
    """Immutable lookup table of component identities keyed by option name"""

    def __init__(self, components: Iterable[ComponentIdentity] = DEFAULT_COMPONENTS):
        table: dict[str, ComponentIdentity] = {}
        for component in components:
            if component.option_name in table:
                raise ValueError(f"Duplicate component option name: {component.option_name}")
            table[component.option_name] = component
        self._components = MappingProxyType(table)

    def lookup(self, option_name: str) -> ComponentIdentity:
        """Get component identity by option name

        Raises:
            UnknownComponentError: If no component is registered under ``option_name``
        """
        component = self._components.get(option_name)
        if component is None:
            raise UnknownComponentError(option_name, self.option_names())
        return component

    def option_names(self) -> list[str]:
        return list(self._components)

    def __contains__(self, option_name: object) -> bool:
        return option_name in self._components

    def __iter__(self) -> Iterator[ComponentIdentity]:
        return iter(self._components.values())

    def __len__(self) -> int:
        return len(self._components)
