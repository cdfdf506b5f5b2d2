"""
Capability probing - decides once per run which fixture categories are in scope.
"""
from dataclasses import dataclass
from typing import Optional

from repl_auditor.config import settings
from repl_auditor.logger import logger
from repl_auditor.schemas.run_config import RunConfig
from repl_auditor.services.fixture_gateway import FixtureGateway


@dataclass(frozen=True)
class Capabilities:
    """What the local host can do for this run."""
    directory: bool
    dns: bool
    host_feature: bool = True
    directory_reason: Optional[str] = None
    dns_reason: Optional[str] = None


async def probe_capabilities(config: RunConfig, gateway: FixtureGateway) -> Capabilities:
    """Probe the local node for directory and DNS service."""
    directory = True
    directory_reason = None
    try:
        await gateway.naming_context()
    except Exception as e:
        logger.error(f"Directory service unavailable on {gateway.local_node}: {e}")
        directory = False
        directory_reason = str(e)

    dns = False
    if not settings.DNS_ENABLED:
        dns_reason = "DNS checks disabled"
    elif not config.dns_configured:
        dns_reason = "DNS hostname, address or zone not configured"
    elif not await gateway.zone_served(config.dns_zone):
        dns_reason = f"zone {config.dns_zone} is not served by {gateway.local_node}"
    else:
        dns = True
        dns_reason = None

    if dns_reason:
        logger.info(f"DNS checks out of scope: {dns_reason}")

    return Capabilities(
        directory=directory,
        dns=dns,
        directory_reason=directory_reason,
        dns_reason=dns_reason,
    )
