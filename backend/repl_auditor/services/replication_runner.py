"""
Replication Runner - Main orchestrator for replication checks.

Sequences one run:
INIT -> CREATE_FIXTURES -> LOCAL_VERIFY -> WAIT -> REMOTE_VERIFY -> CLEANUP -> REPORT -> DONE

Once fixtures exist, cleanup always runs, including on cancellation.
"""
import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable

from repl_auditor.logger import logger
from repl_auditor.schemas.fixture import Fixture, FixtureKind
from repl_auditor.schemas.run_config import RunConfig
from repl_auditor.schemas.run_report import CleanupStatus, RunReport
from repl_auditor.services.capabilities import Capabilities
from repl_auditor.services.convergence_checker import ConvergenceChecker
from repl_auditor.services.errors import (
    CapabilityMissing,
    ConfigurationError,
    TransportError,
)
from repl_auditor.services.fixture_catalog import build_catalog, domain_from_dn
from repl_auditor.services.fixture_gateway import FixtureGateway
from repl_auditor.services.report_builder import RenderedReport, ReportBuilder


class RunState(Enum):
    """States of a replication run."""
    INIT = "init"
    CREATE_FIXTURES = "create_fixtures"
    LOCAL_VERIFY = "local_verify"
    WAIT = "wait"
    REMOTE_VERIFY = "remote_verify"
    CLEANUP = "cleanup"
    REPORT = "report"
    DONE = "done"


@dataclass
class RunOutcome:
    """What a completed run hands back to the caller."""
    report: RunReport
    rendered: RenderedReport
    delivered: bool = False
    states: list[RunState] = field(default_factory=list)


class ReplicationRunner:
    """Orchestrates the complete replication check."""

    def __init__(
        self,
        gateway: FixtureGateway,
        transport=None,
        report_builder: ReportBuilder = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.gateway = gateway
        self.transport = transport
        self.report_builder = report_builder or ReportBuilder()
        self.checker = ConvergenceChecker(gateway)
        self.sleep = sleep
        self.states: list[RunState] = []

    def _enter(self, state: RunState) -> None:
        self.states.append(state)
        logger.info(f"State -> {state.name}")

    async def run(self, config: RunConfig, capabilities: Capabilities, send: bool = True) -> RunOutcome:
        """
        Run one replication check.

        Args:
            config: Fixture identities, timing and report addresses
            capabilities: Capability gates probed once for this run
            send: Hand the rendered report to the transport

        Returns:
            RunOutcome with the report and its rendering

        Raises:
            ConfigurationError: invalid identities, before anything is created
            CapabilityMissing: no directory service, before anything is created
        """
        self.states = []
        self._enter(RunState.INIT)
        started_at = datetime.utcnow()

        if not capabilities.directory:
            raise CapabilityMissing(
                f"Directory service unavailable: {capabilities.directory_reason or 'not detected'}"
            )
        if not config.local_node:
            raise ConfigurationError("local_node is required")

        local_node = config.local_node
        base_dn = await self._naming_context()
        nodes = await self._enumerate_nodes(config, local_node)
        fixtures = build_catalog(config, base_dn, capabilities)
        remote_nodes = [n for n in nodes if n.lower() != local_node.lower()]

        report = RunReport(
            domain=domain_from_dn(base_dn) or base_dn,
            local_node=local_node,
            nodes=nodes,
            started_at=started_at,
            kinds_in_scope=[f.kind for f in fixtures],
            not_applicable=self._not_applicable(capabilities),
        )
        logger.info(
            f"Checking {len(fixtures)} fixtures on {report.domain}: "
            f"local {local_node}, {len(remote_nodes)} remote nodes"
        )

        created: list[Fixture] = []
        try:
            self._enter(RunState.CREATE_FIXTURES)
            await self._create_fixtures(fixtures, created, report)

            self._enter(RunState.LOCAL_VERIFY)
            local = await self.checker.check(fixtures, [local_node], "local")
            report.local_results = list(local.values())

            self._enter(RunState.WAIT)
            await self._wait(config.wait_seconds, report)

            self._enter(RunState.REMOTE_VERIFY)
            replicated = [f for f in fixtures if f.kind != FixtureKind.HOST_FEATURE]
            remote = await self.checker.check(replicated, remote_nodes, "remote")
            report.remote_results = list(remote.values())
        except Exception as e:
            logger.exception(f"Verification interrupted: {e}")
            report.warnings.append(f"Verification interrupted: {e}")
        finally:
            self._enter(RunState.CLEANUP)
            report.cleanup = await self._cleanup(created, report)

        self._enter(RunState.REPORT)
        report.completed_at = datetime.utcnow()
        rendered = self.report_builder.render(report)
        delivered = False
        if send:
            delivered = await self._deliver(rendered, config, report)

        self._enter(RunState.DONE)
        logger.info(
            f"Run complete: {report.passed_count} passed, {report.failed_count} failed, "
            f"{len(report.warnings)} warnings"
        )
        return RunOutcome(report=report, rendered=rendered, delivered=delivered, states=list(self.states))

    async def _naming_context(self) -> str:
        try:
            return await self.gateway.naming_context()
        except Exception as e:
            raise CapabilityMissing(f"Cannot read directory naming context: {e}") from e

    async def _enumerate_nodes(self, config: RunConfig, local_node: str) -> list[str]:
        """Node list for the whole run, local node included."""
        if config.nodes:
            nodes = list(config.nodes)
        else:
            try:
                nodes = await self.gateway.list_nodes()
            except Exception as e:
                raise CapabilityMissing(f"Cannot enumerate directory nodes: {e}") from e

        if local_node.lower() not in (n.lower() for n in nodes):
            nodes.insert(0, local_node)

        unique = []
        for node in nodes:
            if node.lower() not in (u.lower() for u in unique):
                unique.append(node)
        return unique

    def _not_applicable(self, capabilities: Capabilities) -> dict[FixtureKind, str]:
        not_applicable = {}
        if not capabilities.dns:
            not_applicable[FixtureKind.DNS_RECORD] = capabilities.dns_reason or "DNS service not available"
        if not capabilities.host_feature:
            not_applicable[FixtureKind.HOST_FEATURE] = "Feature management not available"
        return not_applicable

    async def _create_fixtures(self, fixtures: list[Fixture], created: list[Fixture], report: RunReport) -> None:
        for fixture in fixtures:
            # A failed or interrupted install may still have changed the host
            if fixture.kind == FixtureKind.HOST_FEATURE:
                created.append(fixture)
            try:
                await self.gateway.create(fixture)
            except Exception as e:
                logger.warning(f"Creating {fixture.kind.label} '{fixture.name}' failed: {e}")
                report.creation_errors[fixture.kind] = str(e)
                continue
            if fixture.kind != FixtureKind.HOST_FEATURE:
                created.append(fixture)

    async def _wait(self, seconds: float, report: RunReport) -> None:
        logger.info(f"Waiting {seconds}s for replication")
        try:
            await self.sleep(seconds)
        except Exception as e:
            logger.warning(f"Replication wait cut short: {e}")
            report.warnings.append(f"Replication wait cut short: {e}")

    async def _cleanup(self, created: list[Fixture], report: RunReport) -> list[CleanupStatus]:
        """Remove created fixtures, children before parents."""
        statuses = []
        for fixture in reversed(created):
            try:
                await self.gateway.delete(fixture)
            except Exception as e:
                logger.warning(f"Removing {fixture.kind.label} '{fixture.name}' failed: {e}")
                report.warnings.append(f"Cleanup of {fixture.kind.label} '{fixture.name}' failed: {e}")
                statuses.append(CleanupStatus(
                    fixture_kind=fixture.kind,
                    fixture_name=fixture.name,
                    status="failed",
                    error=str(e),
                ))
                continue
            statuses.append(CleanupStatus(
                fixture_kind=fixture.kind,
                fixture_name=fixture.name,
                status="removed",
            ))
        return statuses

    async def _deliver(self, rendered: RenderedReport, config: RunConfig, report: RunReport) -> bool:
        if self.transport is None:
            logger.warning("No report transport configured; report not sent")
            return False
        try:
            await self.transport.send(rendered, config.report_to, config.report_from, config.smtp_server)
        except TransportError as e:
            logger.warning(f"Report delivery failed: {e}")
            report.warnings.append(str(e))
            return False
        return True
