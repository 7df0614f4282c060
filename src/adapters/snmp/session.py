"""Long-lived SNMP session to a single monitored device."""

from typing import Any

import structlog
from pysnmp.hlapi.v3arch.asyncio import (
    CommunityData,
    ContextData,
    ObjectIdentity,
    ObjectType,
    SnmpEngine,
    UdpTransportTarget,
    get_cmd,
)
from pysnmp.proto import rfc1902

from src.core.errors import SessionError
from src.core.models import RawSample, SnmpVersion, TargetDescriptor, ValueType, VarBind

logger = structlog.get_logger()

_INTEGER_TYPES = (
    rfc1902.Integer,
    rfc1902.Integer32,
    rfc1902.Unsigned32,
    rfc1902.Counter32,
    rfc1902.Counter64,
    rfc1902.Gauge32,
    rfc1902.TimeTicks,
)


def to_var_bind(oid: Any, value: Any) -> VarBind:
    """Map a pysnmp value onto the bridge's value taxonomy."""
    oid_str = str(oid)
    if isinstance(value, rfc1902.OctetString):
        return VarBind(oid=oid_str, type=ValueType.OCTET_STRING, value=value.asOctets())
    if isinstance(value, _INTEGER_TYPES):
        return VarBind(oid=oid_str, type=ValueType.INTEGER, value=int(value))
    # noSuchObject, noSuchInstance, endOfMibView, Null and anything unexpected
    return VarBind(oid=oid_str, type=ValueType.NULL, value=None)


class SNMPSession:
    """Holds the engine, credentials and transport for repeated GETs."""

    def __init__(self, target: TargetDescriptor) -> None:
        self.target = target
        self._engine: SnmpEngine | None = None
        self._credentials: CommunityData | None = None
        self._transport: UdpTransportTarget | None = None

    @property
    def connected(self) -> bool:
        return self._transport is not None

    def _get_snmp_version(self) -> int:
        """Map version to the pysnmp message processing model."""
        return 1 if self.target.version == SnmpVersion.V2C else 0

    async def connect(self) -> None:
        """Open the session. Raises SessionError if the target is unreachable."""
        logger.info(
            "Connecting to target",
            target=self.target.name,
            host=self.target.host,
            port=self.target.port,
            version=self.target.version.value,
        )
        try:
            engine = SnmpEngine()
            transport = await UdpTransportTarget.create(
                (self.target.host, self.target.port),
                timeout=self.target.timeout,
                retries=self.target.retries,
            )
        except Exception as e:
            raise SessionError(f"{self.target.name}: cannot open session: {e}") from e

        self._engine = engine
        self._transport = transport
        self._credentials = CommunityData(
            self.target.community, mpModel=self._get_snmp_version()
        )
        logger.info("SNMP session connected", target=self.target.name, host=self.target.host)

    async def poll(self, oids: list[str] | tuple[str, ...]) -> RawSample | None:
        """GET every OID in one request. Returns None if the read failed."""
        if not self.connected:
            raise SessionError(f"{self.target.name}: poll before connect")

        try:
            error_indication, error_status, error_index, var_binds = await get_cmd(
                self._engine,
                self._credentials,
                self._transport,
                ContextData(),
                *[ObjectType(ObjectIdentity(oid)) for oid in oids],
            )
        except Exception as e:
            logger.error("Error getting SNMP results", target=self.target.name, error=str(e))
            return None

        if error_indication:
            logger.warning(
                "SNMP error",
                target=self.target.name,
                host=self.target.host,
                error=str(error_indication),
            )
            return None
        if error_status:
            logger.warning(
                "SNMP error status",
                target=self.target.name,
                host=self.target.host,
                error=f"{error_status.prettyPrint()} at {error_index}",
            )
            return None

        return RawSample(
            host=self.target.host,
            var_binds=[to_var_bind(oid, value) for oid, value in var_binds],
        )

    def close(self) -> None:
        """Release the engine's transport dispatcher."""
        if self._engine is not None:
            self._engine.close_dispatcher()
            self._engine = None
        self._transport = None
        self._credentials = None
        logger.info("SNMP session closed", target=self.target.name)
