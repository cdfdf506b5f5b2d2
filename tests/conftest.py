"""Pytest configuration and in-memory fakes for the directory services."""

from __future__ import annotations

import asyncio

import pytest

from repl_auditor.schemas.fixture import Fixture, FixtureKind
from repl_auditor.schemas.run_config import RunConfig
from repl_auditor.services.capabilities import Capabilities
from repl_auditor.services.errors import (
    CreateError,
    DeleteError,
    ProbeError,
    TransportError,
)
from repl_auditor.services.fixture_gateway import FixtureGateway

pytest_plugins = ["pytest_asyncio"]

BASE_DN = "DC=corp,DC=example,DC=com"
LOCAL = "dc1.corp.example.com"
NODES = ["dc1.corp.example.com", "dc2.corp.example.com", "dc3.corp.example.com"]


class FakeDirectory:
    """Directory whose writes replicate instantly to every node not lagging."""

    def __init__(self, nodes=None, base_dn=BASE_DN):
        self.nodes = list(nodes or NODES)
        self.base_dn = base_dn
        self.store: dict[str, set[str]] = {n.lower(): set() for n in self.nodes}
        self.unreachable: set[str] = set()
        self.lagging: set[str] = set()
        self.fail_create: set[FixtureKind] = set()
        self.fail_delete: set[FixtureKind] = set()
        self.available = True
        self.calls: list[tuple] = []

    def naming_context(self, node):
        self.calls.append(("naming_context", node))
        if not self.available:
            raise ProbeError(f"no LDAP on {node}", node=node)
        return self.base_dn

    def list_nodes(self, node):
        self.calls.append(("list_nodes", node))
        return list(self.nodes)

    def create(self, fixture, node):
        self.calls.append(("create", fixture.identity))
        if fixture.kind in self.fail_create:
            raise CreateError(f"access denied for {fixture.identity}", kind=fixture.kind.value, node=node)
        for replica in self.store:
            if replica == node.lower() or replica not in self.lagging:
                self.store[replica].add(fixture.identity)

    def exists(self, identity, kind, node):
        self.calls.append(("exists", identity, node))
        if node.lower() in self.unreachable:
            raise ProbeError(f"{node} unreachable", kind=kind.value, node=node)
        return identity in self.store.get(node.lower(), set())

    def delete(self, identity, kind, node):
        self.calls.append(("delete", identity))
        if kind in self.fail_delete:
            raise DeleteError(f"cannot delete {identity}", kind=kind.value, node=node)
        for objects in self.store.values():
            objects.discard(identity)

    def created(self):
        return [c[1] for c in self.calls if c[0] == "create"]

    def deleted(self):
        return [c[1] for c in self.calls if c[0] == "delete"]


class FakeDns:
    """DNS service sharing reachability with the directory fake."""

    def __init__(self, directory: FakeDirectory):
        self.directory = directory
        self.records: dict[str, set[str]] = {n: set() for n in directory.store}
        self.calls: list[tuple] = []

    def zone_served(self, zone, node):
        return True

    def create_record(self, fixture, node):
        self.calls.append(("create", fixture.identity))
        for replica in self.records:
            if replica == node.lower() or replica not in self.directory.lagging:
                self.records[replica].add(fixture.identity)

    def record_exists(self, fixture, node):
        self.calls.append(("exists", fixture.identity, node))
        if node.lower() in self.directory.unreachable:
            raise ProbeError(f"{node} unreachable", kind=fixture.kind.value, node=node)
        return fixture.identity in self.records.get(node.lower(), set())

    def delete_record(self, fixture, node):
        self.calls.append(("delete", fixture.identity))
        for records in self.records.values():
            records.discard(fixture.identity)


class FakeFeatures:
    """Local feature manager."""

    def __init__(self, delay: float = 0, fail_install: bool = False):
        self.installed: set[str] = set()
        self.delay = delay
        self.fail_install = fail_install
        self.calls: list[tuple] = []

    async def install_feature(self, name):
        self.calls.append(("install", name))
        self.installed.add(name)
        if self.fail_install:
            # Install-WindowsFeature can fail after changing the host
            raise CreateError(f"Install-WindowsFeature {name} failed: restart pending", kind="host_feature")

    async def is_feature_installed(self, name):
        self.calls.append(("probe", name))
        if self.delay:
            await asyncio.sleep(self.delay)
        return name in self.installed

    async def uninstall_feature(self, name):
        self.calls.append(("uninstall", name))
        self.installed.discard(name)


class FakeTransport:
    """Records sent reports; optionally fails."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple] = []

    async def send(self, rendered, destination, source, endpoint):
        if self.fail:
            raise TransportError(f"relay {endpoint} refused connection")
        self.sent.append((rendered, destination, source, endpoint))


class FakeSleep:
    """Stands in for asyncio.sleep; records requested durations."""

    def __init__(self, error: Exception = None):
        self.durations: list[float] = []
        self.error = error

    async def __call__(self, seconds):
        self.durations.append(seconds)
        if self.error:
            raise self.error


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory()


@pytest.fixture
def dns_client(directory) -> FakeDns:
    return FakeDns(directory)


@pytest.fixture
def features() -> FakeFeatures:
    return FakeFeatures()


@pytest.fixture
def gateway(directory, dns_client, features) -> FixtureGateway:
    return FixtureGateway(directory, dns_client, features, local_node=LOCAL, probe_timeout=5)


@pytest.fixture
def run_config() -> RunConfig:
    return RunConfig(
        ou_name="ReplCheckOU",
        group_name="ReplCheckGroup",
        computer_name="REPLCHECKPC",
        gpo_name="ReplCheckGPO",
        dns_hostname="replcheck",
        dns_ip="10.0.0.250",
        dns_zone="corp.example.com",
        report_to="ops@example.com",
        smtp_server="smtp.example.com",
        report_from="dc1@example.com",
        wait_seconds=1200,
        feature_name="Telnet-Client",
        local_node=LOCAL,
    )


@pytest.fixture
def full_caps() -> Capabilities:
    return Capabilities(directory=True, dns=True)


@pytest.fixture
def no_dns_caps() -> Capabilities:
    return Capabilities(directory=True, dns=False, dns_reason="DnsServer not installed")


def make_fixture(kind: FixtureKind, identity: str, name: str = "x") -> Fixture:
    return Fixture(kind=kind, name=name, identity=identity)
