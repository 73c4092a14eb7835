#!/usr/bin/env python3
"""
DataHaven test network launcher

Usage:
    datahaven-launcher launch --all                 # Launch every component
    datahaven-launcher launch datahaven -y          # Launch the node without prompting
    datahaven-launcher stop relayer                 # Stop the relayer
    datahaven-launcher stop --all --network         # Stop everything and remove the network
    datahaven-launcher parameters --set Foo=0x01    # Write the runtime parameters file
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from datahaven_launcher.components import ComponentRegistry
from datahaven_launcher.constants import NETWORK_PROFILES, ConstantStore, build_default_store
from datahaven_launcher.env import (
    LauncherConfig,
    load_launcher_config,
    parse_int_strict,
    validate_launcher_config,
)
from datahaven_launcher.exceptions import LauncherError
from datahaven_launcher.lifecycle import ComponentController, OperationReport
from datahaven_launcher.logging_config import resolve_level, setup_logging
from datahaven_launcher.parameters import (
    PARAMETERS_OUTPUT_PATH,
    PARAMETERS_TEMPLATE_PATH,
    ParameterCollection,
    RuntimeParameter,
)
from datahaven_launcher.prompt import confirm_with_timeout

logger = logging.getLogger(__name__)


def parse_int_value(value: str) -> int:
    """argparse type for strict base-10 integers"""
    try:
        return parse_int_strict(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Not a number: {value!r}") from None


def parse_log_level(value: str) -> int:
    try:
        return resolve_level(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def parse_parameter(value: str) -> RuntimeParameter:
    """argparse type for NAME=VALUE parameter assignments"""
    name, sep, raw = value.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"Expected NAME=VALUE, got {value!r}")
    return RuntimeParameter(name=name.strip(), value=raw)


def build_parser(registry: ComponentRegistry) -> argparse.ArgumentParser:
    names = ", ".join(registry.option_names())

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--profile",
        choices=NETWORK_PROFILES,
        help="Network profile used to resolve versioned constants",
    )
    common.add_argument(
        "--runtime-version",
        type=parse_int_value,
        help="Runtime spec version used to resolve versioned constants",
    )
    common.add_argument("--cwd", type=Path, help="Working directory for spawned commands")
    common.add_argument(
        "--env-file",
        type=Path,
        action="append",
        help="Load settings from this .env file (repeatable, default: ./.env)",
    )
    common.add_argument(
        "--log-level",
        type=parse_log_level,
        default=logging.INFO,
        help="Logging level name (default: INFO)",
    )
    common.add_argument(
        "--output-log-level",
        type=parse_log_level,
        help="Level for command output lines, e.g. DEBUG to show docker output (default: --log-level)",
    )

    confirm = argparse.ArgumentParser(add_help=False)
    confirm.add_argument(
        "components",
        nargs="*",
        metavar="COMPONENT",
        help=f"Components to act on ({names})",
    )
    confirm.add_argument("-A", "--all", action="store_true", help="Select every component")
    confirm.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    confirm.add_argument(
        "--confirm-timeout",
        type=parse_int_value,
        help="Seconds to wait for an answer before using the default (0 = don't ask)",
    )

    parser = argparse.ArgumentParser(
        prog="datahaven-launcher",
        description="Launch and stop a local DataHaven test network",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    launch = subparsers.add_parser(
        "launch", parents=[common, confirm], help="Launch network components"
    )
    launch.add_argument(
        "--startup-timeout",
        type=parse_int_value,
        help="Seconds to wait for each component to become ready",
    )
    launch.add_argument("--datahaven-image-tag", help="Image (name:tag) for the DataHaven node")
    launch.add_argument("--relayer-image-tag", help="Image (name:tag) for the relayer")
    launch.add_argument(
        "--allow-partial",
        action="store_true",
        help="Exit with success when at least one component started",
    )

    stop = subparsers.add_parser(
        "stop", parents=[common, confirm], help="Stop launched network components"
    )
    stop.add_argument(
        "--network", action="store_true", help="Also remove the shared container network"
    )

    parameters = subparsers.add_parser(
        "parameters", parents=[common], help="Write the runtime parameters file"
    )
    parameters.add_argument("--template", type=Path, help="Template parameters file")
    parameters.add_argument("--output", type=Path, help="Output parameters file")
    parameters.add_argument(
        "--set",
        dest="assignments",
        type=parse_parameter,
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Set a parameter (repeatable)",
    )

    return parser


def apply_arguments(config: LauncherConfig, args: argparse.Namespace) -> None:
    """Override loaded settings with command-line flags"""
    if args.profile:
        config.profile = args.profile
    if args.runtime_version is not None:
        config.runtime_version = args.runtime_version
    if args.cwd:
        config.working_dir = args.cwd
    if getattr(args, "confirm_timeout", None) is not None:
        config.confirm_timeout = args.confirm_timeout
    if getattr(args, "startup_timeout", None) is not None:
        config.startup_timeout = args.startup_timeout
    if getattr(args, "datahaven_image_tag", None):
        config.image_overrides["datahaven"] = args.datahaven_image_tag
    if getattr(args, "relayer_image_tag", None):
        config.image_overrides["relayer"] = args.relayer_image_tag


def print_report(report: OperationReport) -> None:
    """Print per-component outcome of a launch or stop"""
    print("\n" + "=" * 60)
    print(f"{report.action.title()} Summary")
    print("=" * 60)

    for result in report.results:
        if not result.ok:
            mark = "✗"
        elif result.skipped:
            mark = "-"
        else:
            mark = "✓"
        note = " (skipped)" if result.skipped else ""
        print(f"  {mark} {result.option_name}: {result.state.value}{note}")

    if report.failed:
        print(f"\n{len(report.failed)} of {len(report.results)} components failed:")
        for result in report.failed:
            print(f"  - {result.option_name}: {result.error}")

    print("=" * 60 + "\n")


async def run_action(
    args: argparse.Namespace,
    config: LauncherConfig,
    registry: ComponentRegistry,
    constants: ConstantStore,
    selection: list[str],
) -> int:
    """Check docker, confirm, then launch or stop the selected components"""
    controller = ComponentController(registry, constants, config)

    if not await controller.check_docker_running():
        print(
            f"❌ Error connecting to Docker ({config.docker_bin} info failed). Is Docker running?"
        )
        return 1

    if not args.yes:
        question = (
            f"{args.command.title()} {', '.join(selection)} on network {config.network_name}?"
        )
        if not await confirm_with_timeout(question, True, config.confirm_timeout):
            print("👍 Nothing to do.")
            return 0

    if args.command == "launch":
        report = await controller.launch(selection)
    else:
        await controller.sync_states(selection)
        report = await controller.stop(selection)

    print_report(report)

    exit_code = 0
    if not report.ok:
        partial_ok = args.command == "launch" and args.allow_partial and report.succeeded
        exit_code = 0 if partial_ok else 1

    if args.command == "stop" and args.network:
        if not await controller.remove_network():
            print(f"❌ Failed to remove network {config.network_name}")
            exit_code = 1

    return exit_code


def run_parameters(args: argparse.Namespace, config: LauncherConfig) -> int:
    template = args.template or config.working_dir / PARAMETERS_TEMPLATE_PATH
    output = args.output or config.working_dir / PARAMETERS_OUTPUT_PATH

    collection = ParameterCollection.from_template(template)
    for param in args.assignments:
        collection.add_parameter(param)

    if not len(collection):
        logger.warning("No parameters collected, writing an empty parameters file")

    path = collection.generate_parameters_file(output)
    print(f"✓ Parameters written to {path}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    registry = ComponentRegistry()
    parser = build_parser(registry)
    args = parser.parse_args(argv)

    setup_logging(args.log_level, args.output_log_level)

    config, issues = load_launcher_config(args.env_file)
    apply_arguments(config, args)
    _, validation_issues = validate_launcher_config(config)
    issues.extend(validation_issues)

    if issues:
        print("❌ Invalid configuration:")
        for issue in issues:
            print(f"   - {issue}")
        return 1

    try:
        if args.command == "parameters":
            return run_parameters(args, config)

        selection = registry.option_names() if args.all else list(args.components)
        if not selection:
            parser.error(
                f"select at least one component ({', '.join(registry.option_names())}) or pass --all"
            )

        return asyncio.run(run_action(args, config, registry, build_default_store(), selection))
    except LauncherError as e:
        logger.debug("Launcher error", exc_info=True)
        print(f"❌ {e}")
        return 1


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
