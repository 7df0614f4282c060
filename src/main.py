"""Main entry point for the SNMP to MQTT telemetry bridge."""

import asyncio
import logging
import signal
import sys

import structlog

from src.core.bridge import Bridge
from src.core.config import LoggingSettings, Settings, load_settings

logger = structlog.get_logger()

_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def configure_logging(settings: LoggingSettings) -> None:
    """Configure structured logging."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            (
                structlog.processors.JSONRenderer()
                if settings.log_format == "json"
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


async def run(settings: Settings) -> int:
    """Run the bridge until stopped. Returns the process exit status."""
    bridge = Bridge(settings)

    loop = asyncio.get_running_loop()
    for sig in _STOP_SIGNALS:
        loop.add_signal_handler(sig, bridge.stop)

    try:
        await bridge.run()
    finally:
        for sig in _STOP_SIGNALS:
            loop.remove_signal_handler(sig)
    return 1 if bridge.fatal else 0


def main() -> None:
    """Main entry point."""
    # Settings validation logs, so logging must be configured first
    configure_logging(LoggingSettings())
    settings = load_settings()

    logger.info(
        "Starting telemetry bridge",
        version="0.1.0",
        broker=f"{settings.mqtt_broker_ip}:{settings.mqtt_broker_port}",
        log_level=settings.log_level,
    )

    try:
        status = asyncio.run(run(settings))
    except Exception as e:
        logger.error("Fatal error", error=str(e))
        sys.exit(1)

    logger.info("Telemetry bridge stopped", status=status)
    sys.exit(status)


if __name__ == "__main__":
    main()
