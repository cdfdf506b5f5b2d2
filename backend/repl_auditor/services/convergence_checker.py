"""
Convergence Checker - Existence of each fixture on each node.

Produces exactly one CheckResult per (node, fixture kind) pair. A probe
that errors or times out is a Fail carrying the error text, never a Pass.
Nodes are probed concurrently; fixtures within a node in catalog order.
"""
import asyncio
import itertools
from typing import Sequence

from repl_auditor.logger import logger
from repl_auditor.schemas.fixture import Fixture, FixtureKind
from repl_auditor.schemas.run_report import CheckResult, Phase
from repl_auditor.services.fixture_gateway import FixtureGateway

ResultKey = tuple[str, FixtureKind]


class ConvergenceChecker:
    """Maps existence probes to pass/fail results."""

    def __init__(self, gateway: FixtureGateway):
        self.gateway = gateway
        self._sequence = itertools.count(1)

    async def check(
        self,
        fixtures: Sequence[Fixture],
        nodes: Sequence[str],
        phase: Phase,
    ) -> dict[ResultKey, CheckResult]:
        """Probe every fixture on every node.

        Returns:
            Results keyed by (node, kind), in node enumeration order
        """
        tasks = [asyncio.create_task(self._check_node(fixtures, node, phase)) for node in nodes]
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        results: dict[ResultKey, CheckResult] = {}
        for node, outcome in zip(nodes, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                logger.warning(f"Verification of {node} aborted: {outcome}")
                outcome = [self._result(f, node, phase, False, f"verification aborted: {outcome}") for f in fixtures]
            for result in outcome:
                results[(node, result.fixture_kind)] = result
        return results

    async def _check_node(self, fixtures: Sequence[Fixture], node: str, phase: Phase) -> list[CheckResult]:
        results = []
        for fixture in fixtures:
            try:
                present = await self.gateway.exists(fixture, node)
            except Exception as e:
                logger.warning(f"Probe of {fixture.kind.label} '{fixture.name}' on {node} failed: {e}")
                results.append(self._result(fixture, node, phase, False, str(e)))
                continue

            if present:
                logger.debug(f"{fixture.kind.label} '{fixture.name}' present on {node}")
            else:
                logger.warning(f"{fixture.kind.label} '{fixture.name}' missing on {node} ({phase})")
            results.append(self._result(fixture, node, phase, present))
        return results

    def _result(self, fixture: Fixture, node: str, phase: Phase, present: bool, error: str = None) -> CheckResult:
        return CheckResult(
            fixture_kind=fixture.kind,
            fixture_name=fixture.name,
            node=node,
            phase=phase,
            outcome="pass" if present else "fail",
            sequence=next(self._sequence),
            error=error,
        )
