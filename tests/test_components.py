"""
Component registry tests
"""

import dataclasses

import pytest

from datahaven_launcher.components import (
    DEFAULT_COMPONENTS,
    ComponentIdentity,
    ComponentRegistry,
)
from datahaven_launcher.exceptions import UnknownComponentError


def test_default_components():
    registry = ComponentRegistry()

    assert registry.option_names() == ["datahaven", "relayer"]
    assert registry.lookup("datahaven").component_name == "Datahaven Network"
    assert registry.lookup("relayer").image_name == "datahavenxyz/snowbridge-relay"
    assert len(registry) == len(DEFAULT_COMPONENTS)


def test_unknown_component_lists_known_names():
    registry = ComponentRegistry()

    with pytest.raises(UnknownComponentError) as exc_info:
        registry.lookup("storagehub")

    assert exc_info.value.option_name == "storagehub"
    assert exc_info.value.known == ["datahaven", "relayer"]
    assert "datahaven, relayer" in str(exc_info.value)


def test_extensible_with_new_entries():
    extra = ComponentIdentity(
        option_name="indexer",
        image_name="example/indexer",
        component_name="Indexer",
    )
    registry = ComponentRegistry(DEFAULT_COMPONENTS + (extra,))

    assert registry.lookup("indexer") is extra
    assert "indexer" in registry
    assert [c.option_name for c in registry] == ["datahaven", "relayer", "indexer"]


def test_duplicate_option_names_rejected():
    duplicate = ComponentIdentity("datahaven", "other/image", "Other")
    with pytest.raises(ValueError, match="Duplicate"):
        ComponentRegistry(DEFAULT_COMPONENTS + (duplicate,))


def test_identity_is_immutable():
    identity = ComponentRegistry().lookup("datahaven")
    with pytest.raises(dataclasses.FrozenInstanceError):
        identity.image_name = "changed"


def test_default_image():
    identity = ComponentIdentity("node", "example/node", "Node", default_tag="v1")
    assert identity.default_image == "example/node:v1"
