"""Shared fixtures."""
import pytest

from fakes import (
    FakeGateway,
    INTERFACES,
    RADIUS_LINES,
    SERVER_GROUPS,
    SNMP_LINES_DUPLICATES,
    lines,
)


@pytest.fixture
def gateway():
    """Gateway pre-loaded with one sample of every kind."""
    return FakeGateway({
        "network_interface": dict(INTERFACES),
        "radius_server": lines(RADIUS_LINES),
        "radius_server_group": dict(SERVER_GROUPS),
        "snmp_notification_receiver": lines(SNMP_LINES_DUPLICATES),
    })


@pytest.fixture
def empty_gateway():
    """Gateway reporting no entities at all."""
    return FakeGateway()
