"""
Fixture Gateway - The single create/exists/delete surface for fixtures.

Dispatches on fixture kind to the directory, DNS and feature adapters.
Blocking adapter calls run in worker threads; every existence probe is
bounded by the configured timeout.
"""
import asyncio

from repl_auditor.logger import logger
from repl_auditor.schemas.fixture import Fixture, FixtureKind
from repl_auditor.services.clients.base import DirectoryClient, DnsClient, FeatureManager
from repl_auditor.services.errors import ProbeError


class FixtureGateway:
    """Routes fixture operations to the adapter owning each kind."""

    def __init__(
        self,
        directory: DirectoryClient,
        dns: DnsClient,
        features: FeatureManager,
        local_node: str,
        probe_timeout: float = 30,
    ):
        self.directory = directory
        self.dns = dns
        self.features = features
        self.local_node = local_node
        self.probe_timeout = probe_timeout

    async def naming_context(self) -> str:
        return await asyncio.to_thread(self.directory.naming_context, self.local_node)

    async def list_nodes(self) -> list[str]:
        return await asyncio.to_thread(self.directory.list_nodes, self.local_node)

    async def zone_served(self, zone: str) -> bool:
        return await asyncio.to_thread(self.dns.zone_served, zone, self.local_node)

    async def create(self, fixture: Fixture) -> None:
        """Create a fixture against the local node."""
        logger.info(f"Creating {fixture.kind.label} '{fixture.name}'")
        if fixture.kind.is_directory_object:
            await asyncio.to_thread(self.directory.create, fixture, self.local_node)
        elif fixture.kind == FixtureKind.DNS_RECORD:
            await asyncio.to_thread(self.dns.create_record, fixture, self.local_node)
        else:
            await self.features.install_feature(fixture.identity)

    async def exists(self, fixture: Fixture, node: str) -> bool:
        """Probe one fixture on one node.

        Raises:
            ProbeError: the node could not be asked, or did not answer in time
        """
        try:
            return await asyncio.wait_for(self._exists(fixture, node), timeout=self.probe_timeout)
        except asyncio.TimeoutError as e:
            raise ProbeError(
                f"No answer from {node} within {self.probe_timeout}s",
                kind=fixture.kind.value,
                node=node,
            ) from e

    async def _exists(self, fixture: Fixture, node: str) -> bool:
        if fixture.kind.is_directory_object:
            return await asyncio.to_thread(self.directory.exists, fixture.identity, fixture.kind, node)
        if fixture.kind == FixtureKind.DNS_RECORD:
            return await asyncio.to_thread(self.dns.record_exists, fixture, node)
        # Host features are only ever installed on the local host
        return await self.features.is_feature_installed(fixture.identity)

    async def delete(self, fixture: Fixture) -> None:
        """Remove a fixture from the local node."""
        logger.info(f"Removing {fixture.kind.label} '{fixture.name}'")
        if fixture.kind.is_directory_object:
            await asyncio.to_thread(self.directory.delete, fixture.identity, fixture.kind, self.local_node)
        elif fixture.kind == FixtureKind.DNS_RECORD:
            await asyncio.to_thread(self.dns.delete_record, fixture, self.local_node)
        else:
            await self.features.uninstall_feature(fixture.identity)
