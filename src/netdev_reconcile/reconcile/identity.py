"""Structured identity keys for resources named by several device fields.

The string forms are persisted in resource declarations and must not
change:

    RADIUS server:          "<hostname>/<auth_port>/<acct_port>"
    SNMP receiver record:   "<host>:<username-or-community>:<port>"
"""
from dataclasses import dataclass

DEFAULT_RADIUS_AUTH_PORT = 1812
DEFAULT_RADIUS_ACCT_PORT = 1813
DEFAULT_SNMP_PORT = 162


@dataclass(frozen=True)
class RadiusServerId:
    """Identity of a RADIUS server, also used for server group members."""
    hostname: str
    auth_port: int = DEFAULT_RADIUS_AUTH_PORT
    acct_port: int = DEFAULT_RADIUS_ACCT_PORT

    def __str__(self) -> str:
        return f"{self.hostname}/{self.auth_port}/{self.acct_port}"

    @classmethod
    def parse(cls, token: str) -> "RadiusServerId":
        """Parse ``host[/auth_port[/acct_port]]``, filling default ports."""
        hostname, _, ports = str(token).partition("/")
        auth_port, _, acct_port = ports.partition("/")
        if not hostname:
            raise ValueError(f"Missing hostname in RADIUS server name {token!r}")
        return cls(
            hostname=hostname,
            auth_port=int(auth_port) if auth_port else DEFAULT_RADIUS_AUTH_PORT,
            acct_port=int(acct_port) if acct_port else DEFAULT_RADIUS_ACCT_PORT,
        )

    def to_dict(self) -> dict:
        return {
            "hostname": self.hostname,
            "auth_port": self.auth_port,
            "acct_port": self.acct_port,
        }


@dataclass(frozen=True)
class SnmpReceiverId:
    """Identity of an SNMP notification receiver record."""
    host: str
    user: str = ""
    port: int = DEFAULT_SNMP_PORT

    def __str__(self) -> str:
        return f"{self.host}:{self.user}:{self.port}"

    @classmethod
    def parse(cls, token: str) -> "SnmpReceiverId":
        """Parse ``host:user:port``; the host may itself contain colons."""
        parts = str(token).rsplit(":", 2)
        if len(parts) != 3:
            raise ValueError(f"Expected host:user:port, got {token!r}")
        host, user, port = parts
        return cls(host=host, user=user, port=int(port) if port else DEFAULT_SNMP_PORT)
