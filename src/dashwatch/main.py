"""dashwatch command-line entrypoint."""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Any

from dashwatch.config import MonitorConfig, load_config
from dashwatch.device import format_mac, lookup_vendor
from dashwatch.errors import ConfigurationError, DashwatchError
from dashwatch.monitor import DashMonitor
from dashwatch.notify.slack import SlackNotifier

logger = logging.getLogger(__name__)

_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGQUIT)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dashwatch",
        description="Post a Slack message whenever a dash button is pressed.",
    )
    parser.add_argument("interface", nargs="?", help="Network interface to capture on.")
    parser.add_argument("channel", nargs="?", help="Slack channel, e.g. #dash.")
    parser.add_argument("message", nargs="?", help="Message text to post.")
    parser.add_argument(
        "--token", help="Slack API token (default: $SLACK_API_TOKEN)."
    )
    parser.add_argument(
        "--dash-addr",
        dest="dash_button_mac_addr",
        help="MAC address of Dash Button (default: $DASH_BUTTON_MAC_ADDR).",
    )
    parser.add_argument(
        "--interval",
        dest="debounce_interval",
        type=float,
        help="Minimum seconds between notifications (default: 5).",
    )
    parser.add_argument("--log-level", help="Logging level (default: info).")
    return parser


def _install_signal_handlers(monitor: DashMonitor) -> None:
    loop = asyncio.get_running_loop()

    def _on_signal(signum: int) -> None:
        logger.info("Received %s, stopping...", signal.Signals(signum).name)
        monitor.stop()

    for sig in _STOP_SIGNALS:
        loop.add_signal_handler(sig, _on_signal, sig)


async def _log_vendor(mac: str) -> None:
    vendor = await lookup_vendor(mac)
    if vendor:
        logger.info("Dash button %s is a %s device", mac, vendor)


async def run_monitor(config: MonitorConfig, **monitor_options: Any) -> None:
    """Run the monitor until a stop signal arrives.

    *monitor_options* are passed through to DashMonitor.
    """
    loop = asyncio.get_running_loop()
    async with SlackNotifier(config.token, timeout=config.notify_timeout) as notifier:
        monitor = DashMonitor(config, notifier, **monitor_options)
        _install_signal_handlers(monitor)
        try:
            await _log_vendor(format_mac(config.target_mac))
            if not monitor.stop_requested:
                await monitor.run()
        finally:
            for sig in _STOP_SIGNALS:
                loop.remove_signal_handler(sig)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_config(
            interface=args.interface,
            channel=args.channel,
            message=args.message,
            slack_api_token=args.token,
            dash_button_mac_addr=args.dash_button_mac_addr,
            debounce_interval=args.debounce_interval,
            log_level=args.log_level,
        )
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not (settings.interface and settings.channel and settings.message is not None):
        parser.print_usage(sys.stderr)
        return 1

    try:
        config = settings.to_monitor_config()
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 1

    try:
        asyncio.run(run_monitor(config))
    except DashwatchError as e:
        logger.error("%s", e)
        return 1

    logger.info("done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
