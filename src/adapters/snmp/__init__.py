"""SNMP adapter for polled network devices."""

from src.adapters.snmp.session import SNMPSession, to_var_bind

__all__ = [
    "SNMPSession",
    "to_var_bind",
]
