"""Domain-specific errors for the telemetry bridge."""


class BridgeError(Exception):
    """Base error for the bridge."""


class SessionError(BridgeError):
    """Raised when an SNMP session cannot be opened."""


class BrokerConnectError(BridgeError):
    """Raised when the MQTT broker refuses or never acknowledges a connection."""


class StartupError(BridgeError):
    """Raised when a worker gives up connecting after all retry attempts."""

    def __init__(self, target: str, attempts: int, cause: BaseException | None = None) -> None:
        self.target = target
        self.attempts = attempts
        self.cause = cause
        super().__init__(f"{target}: giving up after {attempts} attempt(s): {cause}")
