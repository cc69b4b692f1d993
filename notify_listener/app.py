"""
Notify Listener - entry point.

Loads the configuration, starts the MQTT subscriber on a background thread
and runs the tray icon on the main thread. Choosing Quit in the tray ends the
process; the subscriber and dedup reset threads are daemons.

Usage:
    python -m notify_listener [--config PATH] [--log-level LEVEL] [--no-tray]
"""
import argparse
import logging
import os
import sys
from typing import List, Optional

from .config import TRAY_ICON_FILE, load_config
from .errors import ConfigError
from .logging_config import configure_logging
from .notifier import DesktopNotifier
from .service import build_service
from .tray import TrayIcon

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='notify-listener',
        description='Show desktop notifications published to an MQTT topic.',
    )
    parser.add_argument('--config', help='Path to config.json (default: config/config.json)')
    parser.add_argument('--log-level', help='Logging level, e.g. DEBUG or INFO')
    parser.add_argument('--no-tray', action='store_true',
                        help='Run without the system tray icon')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        logger.error("Cannot start: %s", exc)
        return 1

    logger.info("Starting Notify Listener for topic '%s' on %s:%s",
                config.mqtt_topic, config.mqtt_server, config.mqtt_port)

    service = build_service(config, DesktopNotifier(config.images_dir))
    subscriber = service.start()

    if args.no_tray:
        try:
            subscriber.join()
        except KeyboardInterrupt:
            logger.info("Shutting down...")
        return 0

    TrayIcon(icon_path=os.path.join(config.images_dir, TRAY_ICON_FILE)).run()
    logger.info("Shutting down...")
    return 0


if __name__ == '__main__':
    sys.exit(main())
