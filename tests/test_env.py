"""
Environment configuration tests
"""

from pathlib import Path

import pytest

from datahaven_launcher.env import (
    DEFAULT_NETWORK_NAME,
    LauncherConfig,
    load_launcher_config,
    parse_int_strict,
    validate_launcher_config,
)


class TestParseIntStrict:
    @pytest.mark.parametrize("value,expected", [("0", 0), ("42", 42), ("-7", -7), ("+3", 3), (" 12 ", 12)])
    def test_valid(self, value, expected):
        assert parse_int_strict(value) == expected

    @pytest.mark.parametrize("value", ["", "abc", "12abc", "1e3", "0x10", "1.5", "1_000", "--1"])
    def test_invalid(self, value):
        with pytest.raises(ValueError, match="Not a number"):
            parse_int_strict(value)


class TestLoadLauncherConfig:
    def test_defaults(self, clean_env, tmp_path):
        config, issues = load_launcher_config([tmp_path / "missing.env"])

        assert issues == []
        assert config.network_name == DEFAULT_NETWORK_NAME
        assert config.profile == "local"
        assert config.runtime_version == 0
        assert config.startup_timeout == 60
        assert config.confirm_timeout == 10
        assert config.config_dir == Path("tmp/configs")
        assert config.image_overrides == {}

    def test_reads_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "DH_NETWORK_NAME=ci-net\n"
            "DH_PROFILE=stagenet\n"
            "DH_RUNTIME_VERSION=300\n"
            "DH_STARTUP_TIMEOUT=120\n"
            "DH_CONFIRM_TIMEOUT=0\n"
            "DH_DOCKER_BIN=podman\n"
            "DH_RELAYER_CONFIG_DIR=/srv/relayer-configs\n"
            "DH_RPC_HOST=node.internal\n"
            "DATAHAVEN_IMAGE_TAG=datahavenxyz/datahaven:ci\n"
        )

        config, issues = load_launcher_config([env_file])

        assert issues == []
        assert config.network_name == "ci-net"
        assert config.profile == "stagenet"
        assert config.runtime_version == 300
        assert config.startup_timeout == 120
        assert config.confirm_timeout == 0
        assert config.docker_bin == "podman"
        assert config.config_dir == Path("/srv/relayer-configs")
        assert config.rpc_host == "node.internal"
        assert config.image_overrides == {"datahaven": "datahavenxyz/datahaven:ci"}

    def test_environment_wins_over_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("DH_NETWORK_NAME=from-file\n")
        clean_env["DH_NETWORK_NAME"] = "from-env"

        config, _ = load_launcher_config([env_file])

        assert config.network_name == "from-env"

    def test_invalid_integer_reported(self, clean_env, tmp_path):
        clean_env["DH_STARTUP_TIMEOUT"] = "12abc"
        clean_env["DH_RUNTIME_VERSION"] = "1e3"

        config, issues = load_launcher_config([])

        assert config.startup_timeout == 60
        assert len(issues) == 2
        assert any("DH_STARTUP_TIMEOUT" in issue for issue in issues)
        assert any("DH_RUNTIME_VERSION" in issue for issue in issues)


class TestValidateLauncherConfig:
    def test_valid(self, tmp_path):
        ok, issues = validate_launcher_config(LauncherConfig(working_dir=tmp_path))

        assert ok
        assert issues == []

    def test_collects_every_problem(self, tmp_path):
        config = LauncherConfig(
            network_name="",
            profile="devnet",
            runtime_version=-1,
            startup_timeout=0,
            confirm_timeout=-5,
            working_dir=tmp_path / "missing",
        )

        ok, issues = validate_launcher_config(config)

        assert not ok
        assert len(issues) == 6
        assert any("devnet" in issue for issue in issues)

    def test_image_for(self):
        config = LauncherConfig(image_overrides={"relayer": "my/relay:dev"})

        assert config.image_for("relayer", "default:latest") == "my/relay:dev"
        assert config.image_for("datahaven", "default:latest") == "default:latest"
