"""Shared fixtures and fakes for bridge tests."""

import pytest

from src.core.config import Settings
from src.core.errors import SessionError
from src.core.models import (
    DeviceClass,
    PublishEnvelope,
    RawSample,
    TargetDescriptor,
    ValueType,
    VarBind,
)
from src.core.targets import AVTECH_OIDS, PFSENSE_OIDS


def text(oid: str, value: str) -> VarBind:
    return VarBind(oid=oid, type=ValueType.OCTET_STRING, value=value.encode())


def integer(oid: str, value: int) -> VarBind:
    return VarBind(oid=oid, type=ValueType.INTEGER, value=value)


class FakeSession:
    """Session returning scripted poll results in order, then repeating the last."""

    def __init__(self, results=None, connect_failures: int = 0) -> None:
        self.results = list(results or [])
        self.connect_failures = connect_failures
        self.connect_calls = 0
        self.polls = 0
        self.closed = False

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_calls <= self.connect_failures:
            raise SessionError("target unreachable")

    async def poll(self, oids):
        self.polls += 1
        if not self.results:
            return None
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]

    def close(self) -> None:
        self.closed = True


class FakePublisher:
    """Publisher recording every envelope it is asked to send."""

    def __init__(self, result: bool = True) -> None:
        self.result = result
        self.envelopes: list[PublishEnvelope] = []
        self.connected = False
        self.disconnected = False

    async def connect(self) -> None:
        self.connected = True

    async def publish(self, envelope: PublishEnvelope) -> bool:
        self.envelopes.append(envelope)
        return self.result

    async def disconnect(self) -> None:
        self.disconnected = True


@pytest.fixture
def pfsense_target():
    """pfSense target descriptor fixture."""
    return TargetDescriptor(
        name="pfSense",
        host="192.0.2.1",
        device_class=DeviceClass.PFSENSE,
        oids=PFSENSE_OIDS,
        topic="test",
        client_id="pfsense_mqtt_client",
    )


@pytest.fixture
def avtech_target():
    """Avtech target descriptor fixture."""
    return TargetDescriptor(
        name="avtech",
        host="192.0.2.2",
        device_class=DeviceClass.AVTECH,
        oids=AVTECH_OIDS,
        topic="test",
        client_id="avtech_mqtt_client",
    )


@pytest.fixture
def pfsense_sample():
    """Sample with three interface status strings."""
    return RawSample(
        host="192.0.2.1",
        var_binds=[
            text(PFSENSE_OIDS[0], "up"),
            text(PFSENSE_OIDS[1], "down"),
            text(PFSENSE_OIDS[2], "up"),
        ],
    )


@pytest.fixture
def avtech_sample():
    """Sample with a temperature pair and label."""
    return RawSample(
        host="192.0.2.2",
        var_binds=[
            integer(AVTECH_OIDS[0], 250),
            integer(AVTECH_OIDS[1], 770),
            text(AVTECH_OIDS[2], "SensorA"),
        ],
    )


@pytest.fixture
def settings():
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        mqtt_broker_ip="localhost",
        mqtt_broker_port=1883,
        pfsense_ip="192.0.2.1",
        avtech_ip="192.0.2.2",
        poll_interval_ms=10,
        connect_attempts=2,
        connect_backoff_initial=0.01,
        connect_backoff_max=0.02,
    )
