import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional

from tvh_hdhomerun.core.api import APIController, APIServer
from tvh_hdhomerun.core.config_manager import get_config_manager
from tvh_hdhomerun.core.devices import DeviceContext, HDHomeRunScanner, shutdown
from tvh_hdhomerun.core.devices.transports import HDHomeRunControlSession, UDPDiscoveryTransport
from tvh_hdhomerun.core.logging_config import configure_logging
from tvh_hdhomerun.core.logging_utils import get_module_logger
from tvh_hdhomerun.core.paths import (
    CONFIG_PATH,
    SERVICE_LOG_FILE,
    ensure_directories,
)
from tvh_hdhomerun.core.settings_store import JSONSettingsStore


logger = get_module_logger("Service")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments with config file defaults."""
    defaults = get_config_manager().load_service_settings(CONFIG_PATH)

    parser = argparse.ArgumentParser(
        description="tvh-hdhomerun - HDHomeRun tuner discovery and frontend management"
    )

    parser.add_argument(
        "--settings-dir",
        type=Path,
        default=defaults.settings_dir,
        help="Root of the adapter settings tree"
    )

    parser.add_argument(
        "--scan-interval",
        type=float,
        default=defaults.scan_interval,
        help="Seconds between discovery passes (default: 60)"
    )

    parser.add_argument(
        "--max-devices",
        type=int,
        default=defaults.max_devices,
        help="Maximum devices accepted per discovery pass (default: 8)"
    )

    parser.add_argument(
        "--discovery-timeout",
        type=float,
        default=defaults.discovery_timeout,
        help="Seconds to wait for discovery replies (default: 1.0)"
    )

    parser.add_argument(
        "--log-level",
        choices=['debug', 'info', 'warning', 'error', 'critical'],
        default=defaults.log_level,
        help="Logging level (default: info)"
    )

    parser.add_argument(
        "--console",
        dest="console_output",
        action="store_true",
        default=defaults.console_output,
        help="Also log to console"
    )

    parser.add_argument(
        "--no-console",
        dest="console_output",
        action="store_false",
        help="Log to file only"
    )

    parser.add_argument(
        "--api-host",
        default=defaults.api_host,
        help="REST API bind address (default: 127.0.0.1)"
    )

    parser.add_argument(
        "--api-port",
        type=int,
        default=defaults.api_port,
        help="REST API port (default: 9982)"
    )

    parser.add_argument(
        "--no-api",
        dest="api_enabled",
        action="store_false",
        default=defaults.api_enabled,
        help="Do not start the REST API"
    )

    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single discovery pass, print the devices and exit"
    )

    args = parser.parse_args(argv)
    args.log_file = defaults.log_file
    return args


def build_context(args: argparse.Namespace) -> DeviceContext:
    """Wire the settings store, discovery transport and session factory."""
    return DeviceContext(
        store=JSONSettingsStore(args.settings_dir),
        transport=UDPDiscoveryTransport(timeout=args.discovery_timeout),
        session_factory=HDHomeRunControlSession,
    )


async def run_once(args: argparse.Namespace, context: DeviceContext) -> None:
    """Single discovery pass; prints one line per device."""
    scanner = HDHomeRunScanner(context, max_devices=args.max_devices)
    try:
        await scanner.scan()
        devices = context.registry.devices()
        if not devices:
            print("No HDHomeRun devices found")
        for device in devices:
            print(
                f"{device.title}  model={device.model or '?'}  type={device.override_type.label}  "
                f"tuners={sorted(device.frontends)}  uuid={device.uuid}"
            )
    finally:
        await shutdown(context)


async def run_service(args: argparse.Namespace, context: DeviceContext) -> None:
    """Scan on a timer and serve the API until SIGINT/SIGTERM."""
    scanner = HDHomeRunScanner(
        context,
        scan_interval=args.scan_interval,
        max_devices=args.max_devices,
    )
    api_server: Optional[APIServer] = None
    if args.api_enabled:
        api_server = APIServer(
            APIController(context, scanner),
            host=args.api_host,
            port=args.api_port,
        )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            pass  # Windows doesn't support add_signal_handler

    try:
        await scanner.start()
        if api_server:
            await api_server.start()
        await stop_event.wait()
        logger.info("Shutdown requested")
    except Exception as e:
        logger.error("Unexpected error: %s", e, exc_info=True)
    finally:
        await scanner.stop()
        if api_server:
            await api_server.stop()
        await shutdown(context)


async def main(argv: Optional[list[str]] = None) -> None:
    """
    Main entry point for the tuner service.

    Shutdown sequence:
    1. SIGINT/SIGTERM (or an unexpected error) ends the run
    2. The scanner loop is cancelled and the API server stopped
    3. Every device is destroyed under the device lock
    4. The discovery transport is closed
    """
    args = parse_args(argv)

    ensure_directories()

    configure_logging(
        args.log_level,
        force=True,
        console=args.console_output,
        log_file=SERVICE_LOG_FILE if args.log_file else None,
    )

    logger.info("=" * 60)
    logger.info("tvh-hdhomerun starting")
    logger.info("Settings directory: %s", args.settings_dir)
    logger.info("Scan interval: %.0fs, max devices: %d", args.scan_interval, args.max_devices)
    logger.info("=" * 60)

    context = build_context(args)
    context.enter_running_phase()

    if args.once:
        await run_once(args, context)
    else:
        await run_service(args, context)

    logger.info("tvh-hdhomerun stopped")


def run(argv: Optional[list[str]] = None) -> int:
    try:
        asyncio.run(main(argv))
        return 0
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130
    except Exception as exc:  # pragma: no cover - fatal guard
        print(f"Fatal error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(run())
