"""
Capability interfaces for the external services a run touches.
"""
from typing import Protocol

from repl_auditor.schemas.fixture import Fixture, FixtureKind


class DirectoryClient(Protocol):
    """Object create/read/delete against a named directory node."""

    def naming_context(self, node: str) -> str: ...

    def list_nodes(self, node: str) -> list[str]: ...

    def create(self, fixture: Fixture, node: str) -> None: ...

    def exists(self, identity: str, kind: FixtureKind, node: str) -> bool: ...

    def delete(self, identity: str, kind: FixtureKind, node: str) -> None: ...


class DnsClient(Protocol):
    """Resource record create/read/delete against a named DNS node."""

    def zone_served(self, zone: str, node: str) -> bool: ...

    def create_record(self, fixture: Fixture, node: str) -> None: ...

    def record_exists(self, fixture: Fixture, node: str) -> bool: ...

    def delete_record(self, fixture: Fixture, node: str) -> None: ...


class FeatureManager(Protocol):
    """Install state of named OS features on the local host."""

    async def install_feature(self, name: str) -> None: ...

    async def is_feature_installed(self, name: str) -> bool: ...

    async def uninstall_feature(self, name: str) -> None: ...
