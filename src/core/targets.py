"""Monitored targets and their fixed OID lists."""

from src.core.config import Settings
from src.core.models import DeviceClass, SnmpVersion, TargetDescriptor

# pfSense interface status strings (one per interface)
PFSENSE_OIDS = (
    "1.3.6.1.4.1.12325.1.200.1.8.2.1.2.1",
    "1.3.6.1.4.1.12325.1.200.1.8.2.1.2.2",
    "1.3.6.1.4.1.12325.1.200.1.8.2.1.2.3",
)

# Avtech sensor: Celsius, Fahrenheit, label
AVTECH_OIDS = (
    "1.3.6.1.4.1.20916.1.9.1.1.1.1.0",
    "1.3.6.1.4.1.20916.1.9.1.1.1.2.0",
    "1.3.6.1.4.1.20916.1.9.1.1.1.3.0",
)


def build_targets(settings: Settings) -> list[TargetDescriptor]:
    """Build the descriptors for every monitored device."""
    common = {
        "port": settings.snmp_port,
        "community": settings.snmp_community,
        "timeout": settings.snmp_timeout,
        "retries": settings.snmp_retries,
    }
    return [
        TargetDescriptor(
            name="pfSense",
            host=settings.pfsense_ip,
            device_class=DeviceClass.PFSENSE,
            oids=PFSENSE_OIDS,
            topic=settings.pfsense_topic,
            client_id="pfsense_mqtt_client",
            version=SnmpVersion.V2C,
            **common,
        ),
        TargetDescriptor(
            name="avtech",
            host=settings.avtech_ip,
            device_class=DeviceClass.AVTECH,
            oids=AVTECH_OIDS,
            topic=settings.avtech_topic,
            client_id="avtech_mqtt_client",
            version=SnmpVersion.V1,
            **common,
        ),
    ]
