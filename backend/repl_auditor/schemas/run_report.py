"""
Pydantic schemas for verification results.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from repl_auditor.schemas.fixture import FixtureKind

Phase = Literal["local", "remote"]


class CheckResult(BaseModel):
    """Outcome of testing one fixture against one node."""
    fixture_kind: FixtureKind
    fixture_name: str
    node: str
    phase: Phase
    outcome: Literal["pass", "fail"]
    sequence: int = Field(..., description="Logical order in which the result was observed")
    error: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.outcome == "pass"


class CleanupStatus(BaseModel):
    """Outcome of removing one created fixture."""
    fixture_kind: FixtureKind
    fixture_name: str
    status: Literal["removed", "failed"]
    error: Optional[str] = None


class RunReport(BaseModel):
    """Aggregate of one verification run."""
    # Identification
    domain: str
    local_node: str
    nodes: list[str] = Field(default_factory=list, description="Every node enumerated at run start")

    # Timestamps
    started_at: datetime
    completed_at: Optional[datetime] = None

    # Scope
    kinds_in_scope: list[FixtureKind] = []
    not_applicable: dict[FixtureKind, str] = {}

    # Results
    local_results: list[CheckResult] = []
    remote_results: list[CheckResult] = []

    # Annotations
    creation_errors: dict[FixtureKind, str] = {}
    cleanup: list[CleanupStatus] = []
    warnings: list[str] = []

    def result(self, phase: Phase, node: str, kind: FixtureKind) -> Optional[CheckResult]:
        """Look up the result for a (node, kind) pair within a phase."""
        results = self.local_results if phase == "local" else self.remote_results
        keyed = {(r.node.lower(), r.fixture_kind): r for r in results}
        return keyed.get((node.lower(), kind))

    def cell(self, node: str, kind: FixtureKind) -> Optional[CheckResult]:
        """Matrix cell for a node; the local node reads from the local phase."""
        if node.lower() == self.local_node.lower():
            return self.result("local", node, kind)
        return self.result("remote", node, kind)

    @property
    def remote_nodes(self) -> list[str]:
        return [n for n in self.nodes if n.lower() != self.local_node.lower()]

    @property
    def all_results(self) -> list[CheckResult]:
        return self.local_results + self.remote_results

    @property
    def passed_count(self) -> int:
        return sum(1 for r in self.all_results if r.passed)

    @property
    def failed_count(self) -> int:
        return len(self.all_results) - self.passed_count
