"""MQTT adapter for publishing decoded telemetry."""

from src.adapters.mqtt.publisher import (
    ConnectionHooks,
    LoggingConnectionHooks,
    MQTTPublisher,
)

__all__ = [
    "ConnectionHooks",
    "LoggingConnectionHooks",
    "MQTTPublisher",
]
