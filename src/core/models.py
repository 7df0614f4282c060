"""Core data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DeviceClass(str, Enum):
    """Device classes, each with its own decoder."""

    PFSENSE = "pfSense"
    AVTECH = "avtech"


class SnmpVersion(str, Enum):
    """Supported SNMP protocol versions."""

    V1 = "v1"
    V2C = "v2c"


class ValueType(str, Enum):
    """Value tags carried by a variable binding."""

    OCTET_STRING = "octet_string"
    INTEGER = "integer"
    NULL = "null"


class TargetDescriptor(BaseModel):
    """Static configuration for one monitored device."""

    model_config = ConfigDict(frozen=True)

    name: str
    host: str
    device_class: DeviceClass
    oids: tuple[str, ...]
    topic: str
    client_id: str
    port: int = 161
    version: SnmpVersion = SnmpVersion.V2C
    community: str = "public"
    timeout: float = 2.0
    retries: int = 3


@dataclass(frozen=True)
class VarBind:
    """One (identifier, typed value) pair from a GET response."""

    oid: str
    type: ValueType
    value: bytes | int | None


@dataclass
class RawSample:
    """Ordered response of a single poll."""

    host: str
    var_binds: list[VarBind]
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def __len__(self) -> int:
        return len(self.var_binds)


class InterfaceStatusRecord(BaseModel):
    """Decoded pfSense reading: three interface status strings."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    intf1: str = Field(alias="Intf1")
    intf2: str = Field(alias="Intf2")
    intf3: str = Field(alias="Intf3")


class TemperatureRecord(BaseModel):
    """Decoded Avtech reading: the same temperature in two scales plus a label."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    celcius: int = Field(alias="Celcius")
    fahrenheit: int = Field(alias="Fahrenheit")
    label: str = Field(alias="Label")


DecodedRecord = InterfaceStatusRecord | TemperatureRecord


@dataclass(frozen=True)
class PublishEnvelope:
    """Serialized record bound for a topic."""

    topic: str
    payload: str
    qos: int = 0
    retain: bool = False
