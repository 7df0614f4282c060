"""Decoders mapping raw SNMP samples to device-class records."""

import json
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from src.core.models import (
    DecodedRecord,
    DeviceClass,
    InterfaceStatusRecord,
    RawSample,
    TemperatureRecord,
    ValueType,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class DecodeError:
    """Why a sample could not be mapped onto a record."""

    device_class: DeviceClass
    message: str
    index: int | None = None
    expected: ValueType | None = None
    actual: ValueType | None = None


@dataclass(frozen=True)
class DecodeResult:
    """Either a decoded record or the error that prevented decoding."""

    record: DecodedRecord | None = None
    error: DecodeError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class _ShapeMismatch(Exception):
    def __init__(self, error: DecodeError) -> None:
        super().__init__(error.message)
        self.error = error


def _value(
    sample: RawSample, index: int, expected: ValueType, device_class: DeviceClass
) -> bytes | int:
    if index >= len(sample):
        raise _ShapeMismatch(
            DecodeError(
                device_class=device_class,
                message=f"sample has {len(sample)} values, need index {index}",
                index=index,
                expected=expected,
            )
        )

    var_bind = sample.var_binds[index]
    if var_bind.type != expected:
        raise _ShapeMismatch(
            DecodeError(
                device_class=device_class,
                message=f"{var_bind.oid} is {var_bind.type.value}, expected {expected.value}",
                index=index,
                expected=expected,
                actual=var_bind.type,
            )
        )
    return var_bind.value


def _text(sample: RawSample, index: int, device_class: DeviceClass) -> str:
    raw = _value(sample, index, ValueType.OCTET_STRING, device_class)
    return raw.decode("utf-8", errors="replace")


def _integer(sample: RawSample, index: int, device_class: DeviceClass) -> int:
    return _value(sample, index, ValueType.INTEGER, device_class)


def decode_interface_status(sample: RawSample) -> InterfaceStatusRecord:
    """pfSense: three interface status strings, in OID order."""
    device_class = DeviceClass.PFSENSE
    return InterfaceStatusRecord(
        intf1=_text(sample, 0, device_class),
        intf2=_text(sample, 1, device_class),
        intf3=_text(sample, 2, device_class),
    )


def decode_temperature(sample: RawSample) -> TemperatureRecord:
    """Avtech: Celsius and Fahrenheit readings followed by the sensor label."""
    device_class = DeviceClass.AVTECH
    return TemperatureRecord(
        celcius=_integer(sample, 0, device_class),
        fahrenheit=_integer(sample, 1, device_class),
        label=_text(sample, 2, device_class),
    )


DECODERS: dict[DeviceClass, Callable[[RawSample], DecodedRecord]] = {
    DeviceClass.PFSENSE: decode_interface_status,
    DeviceClass.AVTECH: decode_temperature,
}


def decode(device_class: DeviceClass, sample: RawSample) -> DecodeResult:
    """Decode a sample with the decoder registered for its device class."""
    decoder = DECODERS.get(device_class)
    if decoder is None:
        return DecodeResult(
            error=DecodeError(
                device_class=device_class,
                message=f"no decoder for device class {device_class}",
            )
        )

    try:
        return DecodeResult(record=decoder(sample))
    except _ShapeMismatch as e:
        return DecodeResult(error=e.error)


def serialize(record: DecodedRecord) -> str | None:
    """Serialize a record to compact JSON using its wire field names.

    Field order follows the record definition, so equal records always
    produce equal payloads. Integers are written exactly, whatever their size.
    Returns None if the record cannot be serialized.
    """
    try:
        return json.dumps(record.model_dump(by_alias=True), separators=(",", ":"))
    except (TypeError, ValueError) as e:
        logger.error("Error serializing record", record=type(record).__name__, error=str(e))
        return None
