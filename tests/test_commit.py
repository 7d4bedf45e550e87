"""Tests for the commit engine."""
import pytest

from netdev_reconcile.kinds import get_kind
from netdev_reconcile.reconcile import (
    Binding,
    ChangeType,
    CommitEngine,
    CommitError,
    Ensure,
    InstanceDiscoverer,
    ResourceRecord,
    ValidationError,
)


def bound(gateway, kind_name, key):
    """Binding to a discovered record."""
    records = InstanceDiscoverer(gateway, get_kind(kind_name)).discover()
    gateway.reads.clear()
    return Binding(name=key, record={r.key: r for r in records}[key])


class TestCommitStateMachine:
    """Tests for the create/update/destroy decision."""

    @pytest.fixture
    def engine(self, gateway):
        return CommitEngine(gateway, get_kind("radius_server"))

    def test_actions(self, engine, gateway):
        """Each binding/ensure combination maps to one action."""
        unbound = Binding(name="10.9.9.9")
        existing = bound(gateway, "radius_server", "10.0.0.1/1812/1813")

        assert engine.action(unbound, {}, Ensure.ABSENT) == ChangeType.NO_CHANGE
        assert engine.action(unbound, {}, Ensure.PRESENT) == ChangeType.CREATE
        assert engine.action(existing, {}, Ensure.ABSENT) == ChangeType.DESTROY
        assert engine.action(existing, {"timeout": 5}, Ensure.PRESENT) == ChangeType.UPDATE
        assert engine.action(existing, {}, Ensure.PRESENT) == ChangeType.NO_CHANGE

    def test_absent_record_counts_as_unbound(self, engine):
        """A binding to an absent record is not bound."""
        record = ResourceRecord(kind="radius_server", key="10.9.9.9/1812/1813", ensure=Ensure.ABSENT)
        binding = Binding(name="10.9.9.9/1812/1813", record=record)

        assert not binding.bound
        assert engine.action(binding, {}, Ensure.PRESENT) == ChangeType.CREATE

    def test_unbound_absent_is_noop(self, engine, gateway):
        """Nothing to remove issues no call."""
        record = engine.commit("10.9.9.9/1812/1813", Binding(name="10.9.9.9/1812/1813"), {}, "absent")

        assert gateway.calls == []
        assert record.ensure == Ensure.ABSENT

    def test_bound_without_changes_is_noop(self, engine, gateway):
        """A bound resource with nothing staged keeps its record."""
        binding = bound(gateway, "radius_server", "10.0.0.1/1812/1813")
        record = engine.commit(binding.name, binding, {}, Ensure.PRESENT)

        assert gateway.calls == []
        assert record is binding.record


class TestInterfaceFlush:
    """Tests for per-attribute flushing of interfaces."""

    @pytest.fixture
    def engine(self, gateway):
        return CommitEngine(gateway, get_kind("network_interface"))

    def test_speed_alone_is_sent_with_existing_duplex(self, engine, gateway):
        """Staging only speed sends one combined speed/duplex call."""
        binding = bound(gateway, "network_interface", "Ethernet1")
        record = engine.commit("Ethernet1", binding, {"speed": "10g"}, Ensure.PRESENT)

        assert gateway.calls == [
            ("set_attribute", "network_interface", "Ethernet1", "speed", "forced 10000full"),
        ]
        assert record.attributes["speed"] == "10g"
        assert record.attributes["duplex"] == "full"

    def test_forcing_speed_from_auto_defaults_duplex(self, engine, gateway):
        """Duplex falls back to full when leaving autonegotiation."""
        binding = bound(gateway, "network_interface", "Ethernet2")
        record = engine.commit("Ethernet2", binding, {"speed": "1g"}, Ensure.PRESENT)

        assert gateway.writes("set_attribute") == [
            ("set_attribute", "network_interface", "Ethernet2", "speed", "forced 1000full"),
        ]
        assert record.attributes["duplex"] == "full"

    def test_duplex_alone_is_sent_with_existing_speed(self, engine, gateway):
        """Staging only duplex still sends one combined call."""
        binding = bound(gateway, "network_interface", "Ethernet1")
        engine.commit("Ethernet1", binding, {"duplex": "half"}, Ensure.PRESENT)

        assert gateway.calls == [
            ("set_attribute", "network_interface", "Ethernet1", "speed", "forced 1000half"),
        ]

    def test_speed_and_duplex_together_make_one_call(self, engine, gateway):
        """Both staged still issue exactly one call."""
        binding = bound(gateway, "network_interface", "Ethernet1")
        engine.commit("Ethernet1", binding, {"speed": "100m", "duplex": "half"}, Ensure.PRESENT)

        assert len(gateway.calls) == 1
        assert gateway.calls[0][-1] == "forced 100half"

    def test_auto_speed(self, engine, gateway):
        """Auto speed resets duplex to auto."""
        binding = bound(gateway, "network_interface", "Ethernet1")
        record = engine.commit("Ethernet1", binding, {"speed": "auto"}, Ensure.PRESENT)

        assert gateway.calls[0][-1] == "auto"
        assert record.attributes["duplex"] == "auto"

    def test_unchanged_speed_duplex_is_not_resent(self, engine, gateway):
        """A staged speed the port already runs at sends nothing."""
        binding = bound(gateway, "network_interface", "Ethernet1")
        record = engine.commit("Ethernet1", binding, {"speed": "1g"}, Ensure.PRESENT)

        assert gateway.calls == []
        assert record.attributes["speed"] == "1g"
        assert record.attributes["duplex"] == "full"

    def test_duplex_on_autonegotiated_port_fails_before_any_call(self, engine, gateway):
        """Duplex cannot be forced while the port autonegotiates speed."""
        binding = bound(gateway, "network_interface", "Ethernet2")
        with pytest.raises(ValidationError, match="requires a forced speed"):
            engine.commit("Ethernet2", binding, {"duplex": "full"}, Ensure.PRESENT)
        assert gateway.calls == []

    @pytest.mark.parametrize("value,command", [
        (True, "no shutdown"),
        (False, "shutdown"),
        ("true", "no shutdown"),
        ("FALSE", "shutdown"),
    ])
    def test_enable_translation(self, engine, gateway, value, command):
        """Enable maps to the shutdown command text."""
        binding = bound(gateway, "network_interface", "Ethernet1")
        engine.commit("Ethernet1", binding, {"enable": value}, Ensure.PRESENT)

        assert gateway.calls == [
            ("set_attribute", "network_interface", "Ethernet1", "enable", command),
        ]

    def test_invalid_enable_fails_before_any_call(self, engine, gateway):
        """Unknown enable values are rejected naming the value."""
        binding = bound(gateway, "network_interface", "Ethernet1")

        with pytest.raises(ValidationError) as exc:
            engine.commit("Ethernet1", binding, {"mtu": 9214, "enable": "maybe"}, Ensure.PRESENT)

        assert "maybe" in str(exc.value)
        assert gateway.calls == []

    def test_independent_properties_in_order(self, engine, gateway):
        """Independent properties get one call each; unstaged groups none."""
        binding = bound(gateway, "network_interface", "Ethernet1")
        record = engine.commit(
            "Ethernet1", binding,
            {"description": "uplink", "mtu": 9214, "enable": False},
            Ensure.PRESENT,
        )

        assert [call[3] for call in gateway.calls] == ["enable", "mtu", "description"]
        assert record.attributes == {
            "enable": False,
            "speed": "1g",
            "duplex": "full",
            "mtu": 9214,
            "description": "uplink",
        }

    def test_record_is_replaced(self, engine, gateway):
        """Commit returns a new record and leaves the old one untouched."""
        binding = bound(gateway, "network_interface", "Ethernet1")
        record = engine.commit("Ethernet1", binding, {"mtu": 9214}, Ensure.PRESENT)

        assert record is not binding.record
        assert binding.record.attributes["mtu"] == 1500

    def test_missing_interface_cannot_be_created(self, engine, gateway):
        """Interfaces are never created."""
        with pytest.raises(CommitError) as exc:
            engine.commit("Ethernet9", Binding(name="Ethernet9"), {"mtu": 9214}, Ensure.PRESENT)

        assert exc.value.operation == "create"
        assert gateway.calls == []

    def test_interface_cannot_be_removed(self, engine, gateway):
        """ensure=absent is invalid for interfaces."""
        binding = bound(gateway, "network_interface", "Ethernet1")
        with pytest.raises(ValidationError):
            engine.commit("Ethernet1", binding, {}, Ensure.ABSENT)

    def test_failed_call_raises_commit_error(self, engine, gateway):
        """A rejected call names the resource and the operation."""
        gateway.fail_on.add("set_attribute")
        binding = bound(gateway, "network_interface", "Ethernet1")

        with pytest.raises(CommitError) as exc:
            engine.commit("Ethernet1", binding, {"mtu": 9214}, Ensure.PRESENT)

        assert exc.value.resource == "Ethernet1"
        assert exc.value.operation == "update mtu"
        assert "rejected" in str(exc.value)

    def test_unknown_property(self, engine, gateway):
        """Properties outside the kind are rejected."""
        binding = bound(gateway, "network_interface", "Ethernet1")
        with pytest.raises(ValidationError):
            engine.commit("Ethernet1", binding, {"vlan": 10}, Ensure.PRESENT)


class TestRadiusServerCommit:
    """Tests for composite RADIUS server commits."""

    @pytest.fixture
    def engine(self, empty_gateway):
        return CommitEngine(empty_gateway, get_kind("radius_server"))

    def test_create_injects_default_ports(self, engine, empty_gateway):
        """Creating without ports uses 1812/1813."""
        record = engine.commit("127.0.0.1", Binding(name="127.0.0.1"), {"timeout": 10}, Ensure.PRESENT)

        assert empty_gateway.calls == [(
            "update_entity", "radius_server", "127.0.0.1",
            {"hostname": "127.0.0.1", "auth_port": 1812, "acct_port": 1813, "timeout": 10},
        )]
        assert record.key == "127.0.0.1/1812/1813"
        assert record.attributes["auth_port"] == 1812
        assert record.attributes["acct_port"] == 1813
        assert record.ensure == Ensure.PRESENT

    def test_create_from_full_name(self, engine, empty_gateway):
        """Ports in the name are used for the new server."""
        record = engine.commit(
            "10.0.0.5/1645/1646", Binding(name="10.0.0.5/1645/1646"), {}, Ensure.PRESENT
        )
        assert record.key == "10.0.0.5/1645/1646"
        assert len(empty_gateway.calls) == 1

    def test_destroy(self, gateway):
        """Destroy issues one removal and keeps the last known attributes."""
        engine = CommitEngine(gateway, get_kind("radius_server"))
        binding = bound(gateway, "radius_server", "127.0.0.1/1812/1813")

        record = engine.commit(binding.name, binding, {}, Ensure.ABSENT)

        assert len(gateway.calls) == 1
        method, kind, identity, attributes = gateway.calls[0]
        assert method == "delete_entity"
        assert attributes["hostname"] == "127.0.0.1"
        assert record.ensure == Ensure.ABSENT
        assert record.key == "127.0.0.1/1812/1813"
        assert record.attributes["timeout"] == 10

    def test_update_sends_whole_bundle(self, gateway):
        """An update carries every attribute, not only the staged one."""
        engine = CommitEngine(gateway, get_kind("radius_server"))
        binding = bound(gateway, "radius_server", "10.0.0.1/1812/1813")

        record = engine.commit(binding.name, binding, {"timeout": "20"}, Ensure.PRESENT)

        (_, _, _, bundle), = gateway.calls
        assert bundle["timeout"] == 20
        assert bundle["retransmit_count"] == 3
        assert bundle["key"] == "1513090F557878"
        assert record.attributes == bundle

    def test_failed_create(self, engine, empty_gateway):
        """A rejected create raises CommitError."""
        empty_gateway.fail_on.add("update_entity")
        with pytest.raises(CommitError) as exc:
            engine.commit("127.0.0.1", Binding(name="127.0.0.1"), {}, Ensure.PRESENT)
        assert exc.value.operation == "create"


class TestSnmpReceiverCommit:
    """Tests for composite SNMP receiver commits."""

    def test_create_adds_default_port(self, empty_gateway):
        """One set call with port 162 injected."""
        engine = CommitEngine(empty_gateway, get_kind("snmp_notification_receiver"))
        staged = {
            "username": "snmpuser",
            "version": "v3",
            "type": "traps",
            "security": "noauth",
        }

        record = engine.commit("127.0.0.1", Binding(name="127.0.0.1"), staged, Ensure.PRESENT)

        assert empty_gateway.calls == [(
            "update_entity", "snmp_notification_receiver", "127.0.0.1",
            {
                "port": 162,
                "host": "127.0.0.1",
                "username": "snmpuser",
                "version": "v3",
                "type": "traps",
                "security": "noauth",
            },
        )]
        assert record.key == "127.0.0.1:snmpuser:162"
        assert record.ensure == Ensure.PRESENT
        assert record.attributes["port"] == 162

    def test_destroy_keeps_attributes(self, gateway):
        """The absent record keeps user, port and version."""
        engine = CommitEngine(gateway, get_kind("snmp_notification_receiver"))
        binding = bound(gateway, "snmp_notification_receiver", "127.0.0.1:snmpuser:162")

        record = engine.commit("127.0.0.1", binding, {}, Ensure.ABSENT)

        assert gateway.writes("delete_entity")
        assert record.key == "127.0.0.1:snmpuser:162"
        assert record.ensure == Ensure.ABSENT
        assert record.attributes["username"] == "snmpuser"
        assert record.attributes["version"] == "v3"
        assert record.attributes["security"] == "noauth"

    def test_invalid_version(self, empty_gateway):
        """Unknown versions are rejected before any call."""
        engine = CommitEngine(empty_gateway, get_kind("snmp_notification_receiver"))
        with pytest.raises(ValidationError):
            engine.commit("127.0.0.1", Binding(name="127.0.0.1"), {"version": "v4"}, Ensure.PRESENT)
        assert empty_gateway.calls == []


class TestServerGroupCommit:
    """Tests for RADIUS server group commits."""

    @pytest.fixture
    def engine(self, gateway):
        return CommitEngine(gateway, get_kind("radius_server_group"))

    def test_create_then_members(self, engine, gateway):
        """Create makes the group then sets its members."""
        record = engine.commit(
            "NEW-SG", Binding(name="NEW-SG"), {"servers": ["10.0.0.5"]}, Ensure.PRESENT
        )

        assert gateway.calls == [
            ("create_entity", "radius_server_group", "NEW-SG", "radius"),
            ("set_attribute", "radius_server_group", "NEW-SG", "servers",
             [{"hostname": "10.0.0.5", "auth_port": 1812, "acct_port": 1813}]),
        ]
        assert record.attributes["servers"] == ["10.0.0.5/1812/1813"]

    def test_create_without_members(self, engine, gateway):
        """No staged servers means only the create call."""
        engine.commit("NEW-SG", Binding(name="NEW-SG"), {}, Ensure.PRESENT)
        assert gateway.calls == [("create_entity", "radius_server_group", "NEW-SG", "radius")]

    def test_failed_create_skips_members(self, engine, gateway):
        """Members are not set when the group cannot be created."""
        gateway.fail_on.add("create_entity")
        with pytest.raises(CommitError):
            engine.commit("NEW-SG", Binding(name="NEW-SG"), {"servers": ["10.0.0.5"]}, Ensure.PRESENT)
        assert len(gateway.calls) == 1

    def test_rewrite_keeps_member_vrf(self, engine, gateway):
        """Reordering members keeps the VRF the device reported for them."""
        gateway.entities["radius_server_group"]["RADIUS-SG"] = {
            "type": "radius",
            "servers": ["server 10.0.0.1 vrf mgmt", "server 10.0.0.2"],
        }
        binding = bound(gateway, "radius_server_group", "RADIUS-SG")
        record = engine.commit(
            "RADIUS-SG", binding, {"servers": ["10.0.0.2", "10.0.0.1", "10.0.0.5"]}, Ensure.PRESENT,
        )

        assert gateway.calls == [
            ("set_attribute", "radius_server_group", "RADIUS-SG", "servers", [
                {"hostname": "10.0.0.2", "auth_port": 1812, "acct_port": 1813},
                {"hostname": "10.0.0.1", "auth_port": 1812, "acct_port": 1813, "vrf": "mgmt"},
                {"hostname": "10.0.0.5", "auth_port": 1812, "acct_port": 1813},
            ]),
        ]
        assert record.attributes["server_vrfs"] == {"10.0.0.1/1812/1813": "mgmt"}

    def test_removed_member_drops_its_vrf(self, engine, gateway):
        """VRFs of members no longer listed are forgotten."""
        gateway.entities["radius_server_group"]["RADIUS-SG"] = {
            "type": "radius",
            "servers": ["server 10.0.0.1 vrf mgmt", "server 10.0.0.2"],
        }
        binding = bound(gateway, "radius_server_group", "RADIUS-SG")
        record = engine.commit("RADIUS-SG", binding, {"servers": ["10.0.0.2"]}, Ensure.PRESENT)

        assert gateway.calls[0][-1] == [{"hostname": "10.0.0.2", "auth_port": 1812, "acct_port": 1813}]
        assert record.attributes["server_vrfs"] == {}

    def test_destroy(self, engine, gateway):
        """Destroy removes the group by name."""
        binding = bound(gateway, "radius_server_group", "RADIUS-SG")
        record = engine.commit("RADIUS-SG", binding, {}, Ensure.ABSENT)

        assert gateway.calls == [("delete_entity", "radius_server_group", "RADIUS-SG", None)]
        assert record.ensure == Ensure.ABSENT
        assert record.attributes["servers"] == ["10.0.0.1/1812/1813", "10.0.0.2/1812/1813"]
