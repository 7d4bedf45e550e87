"""Arista EOS gateway using the eAPI JSON-RPC interface.

eAPI accepts a list of CLI commands per request (``runCmds``) and returns
one result per command, either as structured JSON or as raw text:

    POST /command-api
    {"jsonrpc": "2.0", "method": "runCmds",
     "params": {"version": 1, "cmds": [...], "format": "json"}, "id": "..."}

Reads use ``show`` commands. Writes run in configuration mode and each
gateway call is sent as one request, so the device applies it atomically.
"""
import logging
import re
from typing import Any, Optional

import httpx

from .base import (
    DeviceGateway,
    DeviceConfig,
    GatewayError,
    GatewayConnectionError,
    GatewayAuthError,
    GatewayProtocolError,
)
from ..utils.logging_config import timed

logger = logging.getLogger(__name__)


class EapiGateway(DeviceGateway):
    """Arista EOS handler over eAPI (HTTP/HTTPS)."""

    SHOW_INTERFACES = "show interfaces"
    SHOW_RADIUS_HOSTS = "show running-config section radius-server host"
    SHOW_SNMP_HOSTS = "show running-config section snmp-server host"
    SHOW_SERVER_GROUPS = "show running-config section aaa group server"

    # Interface attribute -> config command template
    INTERFACE_COMMANDS = {
        "enable": "{value}",
        "speed": "speed {value}",
        "mtu": "mtu {value}",
        "description": "description {value}",
    }

    SNMP_VERSIONS = {"v1": "1", "v2": "2c", "v3": "3"}

    _GROUP_HEADER = re.compile(r"^aaa group server (\S+) (\S+)\s*$")

    def __init__(
        self,
        device_id: str,
        config: DeviceConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        super().__init__(device_id, config)
        self._http: Optional[httpx.Client] = None
        self._transport = transport
        self._request_id = 0
        self._base_url = f"{config.protocol}://{config.host}:{config.port}"

    def connect(self) -> bool:
        """Open the HTTP session used for eAPI requests."""
        logger.info(f"Connecting to EOS {self.device_id} at {self._base_url}")
        self._http = httpx.Client(
            base_url=self._base_url,
            auth=(self.config.username, self.config.get_password()),
            verify=self.config.verify_ssl,
            timeout=httpx.Timeout(self.config.timeout),
            transport=self._transport,
        )
        self._connected = True
        return True

    def disconnect(self) -> None:
        """Close the HTTP session."""
        if self._http:
            self._http.close()
            self._http = None
        self._connected = False
        logger.info(f"Disconnected from {self.device_id}")

    # --- Transport ---

    def run_commands(self, commands: list[Any], encoding: str = "json") -> list[Any]:
        """Send commands in one runCmds request.

        Returns:
            One result per command

        Raises:
            GatewayConnectionError: Device unreachable or timed out
            GatewayAuthError: Credentials rejected
            GatewayProtocolError: eAPI error or malformed response
        """
        if self._http is None:
            self.connect()

        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "method": "runCmds",
            "params": {"version": 1, "cmds": commands, "format": encoding},
            "id": f"{self.device_id}-{self._request_id}",
        }

        try:
            resp = self._http.post("/command-api", json=payload)
        except httpx.TransportError as e:
            raise GatewayConnectionError(
                f"Cannot reach {self.device_id} at {self.host}: {e}"
            ) from e

        if resp.status_code in (401, 403):
            raise GatewayAuthError(
                f"Authentication failed for {self.config.username}@{self.device_id}"
            )
        if resp.status_code != 200:
            raise GatewayProtocolError(
                f"Unexpected HTTP status {resp.status_code} from {self.device_id}"
            )

        try:
            body = resp.json()
        except ValueError as e:
            raise GatewayProtocolError(f"Malformed eAPI response: {e}") from e

        if "error" in body:
            raise GatewayProtocolError(self._format_error(body["error"]))

        result = body.get("result")
        if not isinstance(result, list):
            raise GatewayProtocolError("eAPI response is missing a result list")
        return result

    def _format_error(self, error: dict) -> str:
        """Collect the per-command error strings eAPI puts in error.data."""
        message = error.get("message", "unknown error")
        details = []
        for item in error.get("data") or []:
            if isinstance(item, dict):
                details.extend(item.get("errors", []))
        if details:
            return f"{message}: {'; '.join(details)}"
        return message

    def _enable_command(self) -> Any:
        if self.config.enable_password:
            return {"cmd": "enable", "input": self.config.enable_password}
        return "enable"

    def _show(self, command: str, encoding: str = "json") -> Any:
        """Run a show command and return its result."""
        result = self.run_commands([self._enable_command(), command], encoding)
        return result[-1]

    @timed("configure")
    def configure(self, commands: list[str]) -> tuple[bool, str]:
        """Execute commands in configuration mode as one request.

        Returns:
            Tuple of (success, output)
        """
        cmds = [self._enable_command(), "configure", *commands, "end"]
        logger.debug(f"{self.device_id}: configure {commands}")
        try:
            self.run_commands(cmds)
        except GatewayError as e:
            logger.warning(f"Configuration failed on {self.device_id}: {e}")
            return False, str(e)
        return True, "\n".join(commands)

    # --- Reads ---

    @timed("list_entities")
    def list_entities(self, kind: str) -> dict[str, Any]:
        """List raw entities of a resource kind."""
        if kind == "network_interface":
            result = self._show(self.SHOW_INTERFACES)
            return dict(result.get("interfaces", {}))

        if kind == "radius_server":
            output = self._show(self.SHOW_RADIUS_HOSTS, "text").get("output", "")
            return self._config_lines(output, "radius-server host ")

        if kind == "snmp_notification_receiver":
            output = self._show(self.SHOW_SNMP_HOSTS, "text").get("output", "")
            return self._config_lines(output, "snmp-server host ")

        if kind == "radius_server_group":
            output = self._show(self.SHOW_SERVER_GROUPS, "text").get("output", "")
            return self.parse_server_groups(output)

        raise ValueError(f"Unknown resource kind: {kind}")

    def _config_lines(self, output: str, prefix: str) -> dict[str, str]:
        """Top-level config lines with a prefix, keyed by the line itself."""
        lines = {}
        for line in output.splitlines():
            if line.startswith(prefix):
                line = line.strip()
                lines[line] = line
        return lines

    def parse_server_groups(self, output: str) -> dict[str, dict]:
        """Parse ``aaa group server`` blocks from running-config text.

        Example:
            aaa group server radius RADIUS-SG
               server 10.0.0.1 auth-port 1812 acct-port 1813
               server 10.0.0.2
        """
        groups: dict[str, dict] = {}
        current: Optional[dict] = None

        for line in output.splitlines():
            match = self._GROUP_HEADER.match(line)
            if match:
                current = {"type": match.group(1), "servers": []}
                groups[match.group(2)] = current
                continue

            stripped = line.strip()
            if current is not None and stripped.startswith("server "):
                current["servers"].append(stripped)
            elif stripped and not line[0].isspace():
                current = None

        return groups

    # --- Writes ---

    def set_attribute(
        self,
        kind: str,
        identity: str,
        attribute: str,
        value: Any
    ) -> tuple[bool, str]:
        if kind == "network_interface":
            template = self.INTERFACE_COMMANDS.get(attribute)
            if template is None:
                raise ValueError(f"Unsupported interface attribute: {attribute}")
            return self.configure([
                f"interface {identity}",
                template.format(value=value),
            ])

        if kind == "radius_server_group" and attribute == "servers":
            commands = [
                f"no aaa group server radius {identity}",
                f"aaa group server radius {identity}",
            ]
            commands.extend(self._server_member(server) for server in value)
            commands.append("exit")
            return self.configure(commands)

        raise ValueError(f"Unsupported attribute {attribute} for kind {kind}")

    def create_entity(self, kind: str, identity: str, *args: Any) -> tuple[bool, str]:
        if kind == "radius_server_group":
            group_type = args[0] if args else "radius"
            return self.configure([f"aaa group server {group_type} {identity}", "exit"])

        raise ValueError(f"create_entity not supported for kind {kind}")

    def delete_entity(
        self,
        kind: str,
        identity: str,
        attributes: Optional[dict[str, Any]] = None
    ) -> tuple[bool, str]:
        if kind == "radius_server_group":
            return self.configure([f"no aaa group server radius {identity}"])

        if kind in ("radius_server", "snmp_notification_receiver"):
            if not attributes:
                raise ValueError(f"Removing a {kind} requires its attributes")
            if kind == "radius_server":
                return self.configure([self._radius_host_command(attributes, remove=True)])
            return self.configure(["no " + self._snmp_host_command(attributes)])

        raise ValueError(f"delete_entity not supported for kind {kind}")

    def update_entity(
        self,
        kind: str,
        identity: str,
        attributes: dict[str, Any]
    ) -> tuple[bool, str]:
        if kind == "radius_server":
            return self.configure([self._radius_host_command(attributes)])

        if kind == "snmp_notification_receiver":
            return self.configure([self._snmp_host_command(attributes)])

        raise ValueError(f"update_entity not supported for kind {kind}")

    # --- Command builders ---

    def _server_member(self, server: dict[str, Any]) -> str:
        """Format a server group member line."""
        parts = ["server", server["hostname"]]
        if server.get("vrf"):
            parts += ["vrf", server["vrf"]]
        parts += [
            "auth-port", str(server["auth_port"]),
            "acct-port", str(server["acct_port"]),
        ]
        return " ".join(parts)

    def _radius_host_command(self, attrs: dict[str, Any], remove: bool = False) -> str:
        parts = ["no radius-server host" if remove else "radius-server host"]
        parts.append(attrs["hostname"])
        if attrs.get("vrf"):
            parts += ["vrf", attrs["vrf"]]
        parts += [
            "auth-port", str(attrs["auth_port"]),
            "acct-port", str(attrs["acct_port"]),
        ]
        if remove:
            return " ".join(parts)

        if attrs.get("timeout") is not None:
            parts += ["timeout", str(attrs["timeout"])]
        if attrs.get("retransmit_count") is not None:
            parts += ["retransmit", str(attrs["retransmit_count"])]
        if attrs.get("key"):
            parts.append("key")
            if attrs.get("key_format") is not None:
                parts.append(str(attrs["key_format"]))
            parts.append(attrs["key"])
        return " ".join(parts)

    def _snmp_host_command(self, attrs: dict[str, Any]) -> str:
        parts = ["snmp-server host", attrs["host"]]
        if attrs.get("vrf"):
            parts += ["vrf", attrs["vrf"]]
        if attrs.get("type"):
            parts.append(attrs["type"])

        version = attrs.get("version")
        if version:
            parts += ["version", self.SNMP_VERSIONS[version]]
            if version == "v3":
                parts.append(attrs.get("security") or "noauth")

        if version == "v3":
            user = attrs.get("username") or attrs.get("community")
        else:
            user = attrs.get("community") or attrs.get("username")
        if user:
            parts.append(user)

        if attrs.get("port"):
            parts += ["udp-port", str(attrs["port"])]
        return " ".join(parts)
