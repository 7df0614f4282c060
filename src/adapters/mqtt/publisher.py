"""MQTT publisher for decoded telemetry records."""

import asyncio
import threading
from functools import partial
from typing import Any, Protocol

import paho.mqtt.client as mqtt
import structlog

from src.core.errors import BrokerConnectError
from src.core.models import PublishEnvelope

logger = structlog.get_logger()


class ConnectionHooks(Protocol):
    """Lifecycle callbacks for one publisher's broker connection."""

    def on_connect(self, client_id: str) -> None: ...

    def on_connection_lost(self, client_id: str, reason: str) -> None: ...


class LoggingConnectionHooks:
    """Default hooks: log connection events."""

    def on_connect(self, client_id: str) -> None:
        logger.info("Connected", client_id=client_id)

    def on_connection_lost(self, client_id: str, reason: str) -> None:
        logger.warning("Connection lost", client_id=client_id, reason=reason)


class MQTTPublisher:
    """Owns one broker connection and publishes envelopes through it."""

    def __init__(
        self,
        host: str,
        port: int,
        client_id: str,
        username: str | None = None,
        password: str | None = None,
        keepalive: int = 60,
        connect_timeout: float = 10.0,
        publish_timeout: float = 5.0,
        hooks: ConnectionHooks | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.client_id = client_id
        self.keepalive = keepalive
        self.connect_timeout = connect_timeout
        self.publish_timeout = publish_timeout
        self.hooks = hooks or LoggingConnectionHooks()

        self._connected = threading.Event()
        self._connack = threading.Event()
        self._connect_error: str | None = None

        self.client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
        )
        if username:
            self.client.username_pw_set(username, password)
        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect

    @property
    def connected(self) -> bool:
        return self._connected.is_set()

    def _on_connect(
        self, client: Any, userdata: Any, flags: Any, reason_code: Any, properties: Any
    ) -> None:
        if reason_code.is_failure:
            self._connect_error = str(reason_code)
            logger.error("Broker refused connection", client_id=self.client_id, reason=str(reason_code))
        else:
            self._connect_error = None
            self._connected.set()
            self.hooks.on_connect(self.client_id)
        self._connack.set()

    def _on_disconnect(
        self, client: Any, userdata: Any, flags: Any, reason_code: Any, properties: Any
    ) -> None:
        self._connected.clear()
        if reason_code.is_failure:
            self.hooks.on_connection_lost(self.client_id, str(reason_code))
        else:
            logger.info("Disconnected", client_id=self.client_id)

    def _sync_connect(self) -> None:
        """Blocking connect that waits for the broker's acknowledgment."""
        self._connect_error = None
        self._connack.clear()
        try:
            self.client.connect(self.host, self.port, self.keepalive)
        except (OSError, ValueError) as e:
            raise BrokerConnectError(
                f"{self.client_id}: cannot reach broker {self.host}:{self.port}: {e}"
            ) from e

        self.client.loop_start()
        self._connack.wait(self.connect_timeout)
        if not self._connected.is_set():
            self.client.loop_stop()
            self.client.disconnect()
            self._connected.clear()
            reason = self._connect_error or "no acknowledgment"
            raise BrokerConnectError(
                f"{self.client_id}: broker {self.host}:{self.port} did not accept connection: {reason}"
            )

    async def connect(self) -> None:
        """Connect to the broker and start the network loop."""
        logger.info("Connecting to MQTT broker", client_id=self.client_id, host=self.host, port=self.port)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._sync_connect)

    def _sync_publish(self, envelope: PublishEnvelope) -> bool:
        try:
            info = self.client.publish(
                envelope.topic, envelope.payload, qos=envelope.qos, retain=envelope.retain
            )
            info.wait_for_publish(timeout=self.publish_timeout)
        except (RuntimeError, ValueError) as e:
            logger.warning(
                "MQTT publish failed", client_id=self.client_id, topic=envelope.topic, error=str(e)
            )
            return False
        return info.is_published()

    async def publish(self, envelope: PublishEnvelope) -> bool:
        """Publish and wait for the send to complete.

        Failures are logged, not raised. Nothing is buffered while the
        broker is unreachable.
        """
        logger.debug("Publishing message", topic=envelope.topic, payload=envelope.payload)
        loop = asyncio.get_running_loop()
        published = await loop.run_in_executor(None, partial(self._sync_publish, envelope))
        logger.debug("Message published", topic=envelope.topic, published=published)
        return published

    async def disconnect(self) -> None:
        """Stop the network loop and close the connection."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.client.disconnect)
        self.client.loop_stop()
        self._connected.clear()
