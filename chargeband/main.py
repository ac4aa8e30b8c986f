#!/usr/bin/env python3
"""
ChargeBand Controller - Main Entry Point

Keeps a laptop battery inside a target band by switching the charger's
smart plug on and off.

Usage:
    chargeband                          # Use ./config.yaml
    chargeband --config my.yaml         # Use a custom settings file
    chargeband --switch-name Charger    # Flags only, no settings file
    chargeband --dry-run                # Print resolved settings and exit

The controller will:
1. Load and validate settings (file and/or flags)
2. Discover the named smart switch on the local network
3. Poll the battery and switch the charger to stay within the band
4. Exit non-zero if settings are invalid or the battery cannot be read
"""

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import Any, Sequence

from .common.config import ControlConfig, RuntimeSettings
from .common.exceptions import ConfigError, TelemetryError
from .common.logging_setup import configure_logging, get_service_logger
from .services.config import (
    load_settings_file,
    merge_settings,
    resolve_config,
    resolve_runtime_settings,
)
from .services.config.validator import (
    KEY_SWITCH_NAME,
    KEY_TARGET,
    KEY_TOLERANCE,
    KEY_INTERVAL,
    KEY_VERBOSE,
    KEY_LOG_FORMAT,
)
from .services.control import ControlLoop
from .services.device import KasaLocator, PsutilBatterySource

logger = get_service_logger("main")

EXIT_OK = 0
EXIT_FAILURE = 1


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chargeband",
        description="Keep the battery within a target band using a smart switch",
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        default="config.yaml",
        help="Path to settings file (default: config.yaml)",
    )
    parser.add_argument(
        "--switch-name", "-s",
        type=str,
        help="Name of the smart switch powering the charger",
    )
    parser.add_argument(
        "--target", "-t",
        type=int,
        help="Target battery percent (30-90)",
    )
    parser.add_argument(
        "--tolerance",
        type=int,
        help="Tolerance around the target in percent (1-30)",
    )
    parser.add_argument(
        "--interval", "-i",
        type=int,
        help="Battery check interval in minutes (>= 1)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        default=None,
        help="Log every battery check",
    )
    parser.add_argument(
        "--log-format",
        choices=("text", "json"),
        help="Log line format (default: text)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print resolved settings and exit without starting the controller",
    )
    return parser


def gather_settings(args: argparse.Namespace) -> dict[str, Any]:
    """
    Combine the settings file with command-line flags.

    The settings file may be omitted only when the switch name is given
    on the command line.

    Raises:
        ConfigError: settings file missing or unreadable
    """
    overrides = {
        KEY_SWITCH_NAME: args.switch_name,
        KEY_TARGET: args.target,
        KEY_TOLERANCE: args.tolerance,
        KEY_INTERVAL: args.interval,
        KEY_VERBOSE: args.verbose,
        KEY_LOG_FORMAT: args.log_format,
    }

    if not Path(args.config).exists() and args.switch_name:
        logger.info(f"No settings file at {args.config}, using command-line values")
        return merge_settings({}, overrides)

    return merge_settings(load_settings_file(args.config), overrides)


def print_config_summary(config: ControlConfig, settings: RuntimeSettings) -> None:
    """Print a summary of the resolved settings."""
    print("\n" + "=" * 60)
    print("  CHARGEBAND CONTROLLER")
    print("=" * 60)
    print(f"\n  Switch: {config.switch_name}")
    print(f"  Target: {config.target_percent}% +/- {config.tolerance_percent}%")
    print(f"  Band: [{config.lower_bound}%, {config.upper_bound}%)")
    print(f"  Check Interval: {config.interval_minutes} min")
    print(f"  Verbose: {'yes' if config.verbose else 'no'}")
    print(f"\n  Log: {settings.log_level} ({settings.log_format.value})")
    print(
        f"  Discovery: {settings.discovery_timeout_s:g}s timeout, "
        f"every {settings.discovery_interval_s:g}s"
    )
    print("=" * 60 + "\n")


def _install_signal_handlers(loop: ControlLoop) -> None:
    event_loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            event_loop.add_signal_handler(sig, loop.stop, f"received {sig.name}")
        except NotImplementedError:
            signal.signal(sig, lambda s, f: loop.stop("received signal"))


async def main_async(config: ControlConfig, settings: RuntimeSettings) -> None:
    """
    Build the collaborators and run the control loop.

    Args:
        config: Resolved control parameters
        settings: Ambient runtime settings
    """
    loop = ControlLoop(
        config,
        telemetry=PsutilBatterySource(),
        locator=KasaLocator(
            switch_name=config.switch_name,
            discovery_timeout_s=settings.discovery_timeout_s,
            sweep_interval_s=settings.discovery_interval_s,
        ),
    )
    _install_signal_handlers(loop)
    await loop.run()


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point; returns the process exit code."""
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    print("chargeband starting up...")

    try:
        raw = gather_settings(args)
        config = resolve_config(raw)
        settings = resolve_runtime_settings(raw)
    except ConfigError as e:
        print(f"{e.message}\n", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return EXIT_FAILURE

    configure_logging(settings)

    if args.dry_run:
        print_config_summary(config, settings)
        print("Dry run mode - exiting without starting controller")
        return EXIT_OK

    try:
        asyncio.run(main_async(config, settings))
    except TelemetryError as e:
        logger.critical(f"Bailing: {e.message}")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        print("\nStopped by user")

    return EXIT_OK


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
