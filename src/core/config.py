"""Application configuration."""

from typing import Any

import structlog
from pydantic import ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()

# Values the bridge cannot do anything useful without, but which only warn
_REQUIRED_VALUES = ("mqtt_broker_ip", "mqtt_broker_port", "pfsense_ip", "avtech_ip")


class LoggingSettings(BaseSettings):
    """Logging settings, read before anything that may log."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = "INFO"
    log_format: str = "json"


class Settings(LoggingSettings):
    """Application settings loaded from environment variables."""

    # MQTT broker
    mqtt_broker_ip: str = ""
    mqtt_broker_port: int = 0
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_keepalive: int = 60
    mqtt_connect_timeout: float = 10.0
    mqtt_publish_timeout: float = 5.0

    # Devices
    pfsense_ip: str = ""
    avtech_ip: str = ""
    pfsense_topic: str = "test"
    avtech_topic: str = "test"

    # SNMP
    snmp_community: str = "public"
    snmp_port: int = 161
    snmp_timeout: float = 2.0
    snmp_retries: int = 3

    # Polling
    poll_interval_ms: int = 50

    # Startup
    connect_attempts: int = 5
    connect_backoff_initial: float = 0.5
    connect_backoff_max: float = 10.0
    startup_failure_policy: str = "exit"

    @field_validator(
        "mqtt_broker_port",
        "mqtt_keepalive",
        "snmp_port",
        "snmp_retries",
        "poll_interval_ms",
        "connect_attempts",
        mode="before",
    )
    @classmethod
    def _int_or_zero(cls, value: Any, info: ValidationInfo) -> Any:
        """Degrade malformed integers to zero instead of refusing to start."""
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                logger.warning(
                    "Invalid integer setting, using 0", setting=info.field_name, value=value
                )
                return 0
        return value

    @field_validator(
        "mqtt_connect_timeout",
        "mqtt_publish_timeout",
        "snmp_timeout",
        "connect_backoff_initial",
        "connect_backoff_max",
        mode="before",
    )
    @classmethod
    def _float_or_zero(cls, value: Any, info: ValidationInfo) -> Any:
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                logger.warning(
                    "Invalid numeric setting, using 0", setting=info.field_name, value=value
                )
                return 0.0
        return value

    @field_validator("startup_failure_policy", mode="before")
    @classmethod
    def _known_policy(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            if value not in ("exit", "isolate"):
                logger.warning("Unknown startup failure policy, using exit", value=value)
                return "exit"
        return value

    @model_validator(mode="after")
    def _warn_missing(self) -> "Settings":
        for name in _REQUIRED_VALUES:
            if not getattr(self, name):
                logger.warning("Setting missing or empty", setting=name.upper())
        return self

    @property
    def poll_interval(self) -> float:
        """Inter-tick delay in seconds."""
        return max(self.poll_interval_ms, 0) / 1000


def load_settings(**overrides: Any) -> Settings:
    """Load settings from the environment and the optional .env file."""
    return Settings(**overrides)
