"""
Versioned runtime constants

Resolves configuration values that change between runtime versions of a
network profile (local, stagenet, testnet, mainnet).
"""

from types import MappingProxyType
from typing import Any, Mapping

from datahaven_launcher.exceptions import (
    NoApplicableVersionError,
    UnknownConstantError,
    UnknownProfileError,
)


def _check_version(version: Any) -> int:
    if isinstance(version, bool) or not isinstance(version, int):
        raise ValueError(f"Runtime version must be an integer, got {version!r}")
    if version < 0:
        raise ValueError(f"Runtime version must be non-negative, got {version}")
    return version


class RuntimeConstant:
    """Step function from runtime version to value.

    The value for version V is the one registered at the greatest
    version key that is <= V.
    """

    def __init__(self, values_by_version: Mapping[int, Any]):
        if not values_by_version:
            raise ValueError("RuntimeConstant needs at least one version entry")
        entries = [(_check_version(v), value) for v, value in values_by_version.items()]
        self._entries: tuple[tuple[int, Any], ...] = tuple(sorted(entries, key=lambda e: e[0]))

    @property
    def versions(self) -> tuple[int, ...]:
        return tuple(v for v, _ in self._entries)

    def get(self, version: int, label: str = "constant") -> Any:
        """Return the value effective at ``version``.

        Raises:
            NoApplicableVersionError: If every registered version is above ``version``
        """
        version = _check_version(version)
        found = False
        result = None
        for min_version, value in self._entries:
            if min_version > version:
                break
            found = True
            result = value
        if not found:
            raise NoApplicableVersionError(label, version, self._entries[0][0])
        return result

    def __repr__(self) -> str:
        return f"RuntimeConstant({dict(self._entries)!r})"


class ConstantStore:
    """Read-only table of versioned constants grouped by network profile"""

    def __init__(self, profiles: Mapping[str, Mapping[str, RuntimeConstant]]):
        self._profiles: Mapping[str, Mapping[str, RuntimeConstant]] = MappingProxyType(
            {name: MappingProxyType(dict(constants)) for name, constants in profiles.items()}
        )

    def profiles(self) -> list[str]:
        return sorted(self._profiles)

    def constants(self, profile: str) -> Mapping[str, RuntimeConstant]:
        """Get all constants of a profile

        Raises:
            UnknownProfileError: If profile is not registered
        """
        table = self._profiles.get(profile)
        if table is None:
            raise UnknownProfileError(profile)
        return table

    def resolve(self, profile: str, name: str, version: int) -> Any:
        """Resolve a constant for a profile at a runtime version

        Args:
            profile: Network profile (e.g. "local", "stagenet")
            name: Constant name (e.g. "GAS_LIMIT")
            version: Runtime spec version, non-negative

        Returns:
            Value effective at ``version``

        Raises:
            UnknownProfileError: If profile is not registered
            UnknownConstantError: If constant is not defined for the profile
            NoApplicableVersionError: If no registered version applies
        """
        constant = self.constants(profile).get(name)
        if constant is None:
            raise UnknownConstantError(profile, name)
        return constant.get(version, label=f"{profile}.{name}")


DEFAULT_RPC_PORT = 9944

_BASE_CONSTANTS: dict[str, dict[int, Any]] = {
    "BLOCK_WEIGHT_LIMIT": {0: 2_000_000_000_000},
    "GAS_LIMIT": {0: 60_000_000},
    "EXTRINSIC_GAS_LIMIT": {0: 52_000_000},
    "GENESIS_BASE_FEE": {0: 312_500_000},
    "RPC_PORT": {0: DEFAULT_RPC_PORT},
}

NETWORK_PROFILES = ("local", "stagenet", "testnet", "mainnet")


def _frozen_profile(
    constants: Mapping[str, Mapping[int, Any]],
) -> Mapping[str, Mapping[int, Any]]:
    return MappingProxyType(
        {name: MappingProxyType(dict(values)) for name, values in constants.items()}
    )


DEFAULT_CONSTANTS: Mapping[str, Mapping[str, Mapping[int, Any]]] = MappingProxyType(
    {profile: _frozen_profile(_BASE_CONSTANTS) for profile in NETWORK_PROFILES}
)


def build_default_store() -> ConstantStore:
    """Build the constant store shipped with the launcher"""
    return ConstantStore(
        {
            profile: {name: RuntimeConstant(values) for name, values in constants.items()}
            for profile, constants in DEFAULT_CONSTANTS.items()
        }
    )
