"""
Error taxonomy for a replication run.

Only ConfigurationError and CapabilityMissing abort a run. Every other
error is recorded into the report and the run carries on to cleanup.
"""
from typing import Optional


class ReplAuditorError(Exception):
    """Base class for all auditor errors."""


class ConfigurationError(ReplAuditorError):
    """A required identity or option is missing or invalid."""


class CapabilityMissing(ReplAuditorError):
    """A mandatory directory capability is absent on this host."""


class FixtureError(ReplAuditorError):
    """Error tied to one fixture kind, optionally on one node."""

    def __init__(self, message: str, kind: Optional[str] = None, node: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.node = node


class CreateError(FixtureError):
    """Fixture creation failed."""


class ProbeError(FixtureError):
    """A node was unreachable or the existence query itself failed."""


class DeleteError(FixtureError):
    """Fixture removal failed during cleanup."""


class TransportError(ReplAuditorError):
    """The rendered report could not be delivered."""
