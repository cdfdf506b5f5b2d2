"""
Directory Replication Auditor - command line entry point.
"""

import argparse
import asyncio
import socket
import sys
from pathlib import Path
from typing import Optional, Sequence

from repl_auditor.config import settings
from repl_auditor.logger import logger, set_verbose
from repl_auditor.schemas.run_config import RunConfig
from repl_auditor.services.capabilities import probe_capabilities
from repl_auditor.services.clients.dns_client import DnsRecordClient
from repl_auditor.services.clients.feature_manager import WindowsFeatureManager
from repl_auditor.services.clients.ldap_directory import LdapDirectoryClient
from repl_auditor.services.errors import CapabilityMissing, ConfigurationError
from repl_auditor.services.fixture_gateway import FixtureGateway
from repl_auditor.services.replication_runner import ReplicationRunner, RunOutcome
from repl_auditor.services.transports.smtp_transport import SmtpTransport
from repl_auditor.services.transports.webhook_transport import WebhookTransport

EXIT_OK = 0
EXIT_CAPABILITY_MISSING = 1
EXIT_CONFIGURATION_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repl-auditor",
        description="Create test objects, wait for replication and verify them on every directory node.",
    )
    parser.add_argument("--ou-name", help="Organizational unit to create")
    parser.add_argument("--group-name", help="Group to create inside the OU")
    parser.add_argument("--computer-name", help="Computer account to create inside the OU")
    parser.add_argument("--gpo-name", help="Group policy object display name")
    parser.add_argument("--dns-hostname", help="Host label of the test A record")
    parser.add_argument("--dns-ip", help="IPv4 address of the test A record")
    parser.add_argument("--dns-zone", help="Zone of the test A record")
    parser.add_argument("--report-to", help="Report destination address")
    parser.add_argument("--smtp-server", help="Report transport endpoint (SMTP relay or webhook URL)")
    parser.add_argument("--report-from", help="Report source address")
    parser.add_argument("--wait-seconds", type=int, help=f"Replication wait (default {settings.WAIT_SECONDS})")
    parser.add_argument("--probe-timeout", type=float, help=f"Per-probe timeout (default {settings.PROBE_TIMEOUT})")
    parser.add_argument("--feature-name", help=f"Windows feature to install (default {settings.FEATURE_NAME})")
    parser.add_argument("--local-node", help="Address of this node (default: host FQDN)")
    parser.add_argument("--node", action="append", dest="nodes", help="Node to verify; repeat to list several")
    parser.add_argument("--transport", choices=["smtp", "webhook"], default=None, help="Report transport")
    parser.add_argument("--output", type=Path, help="Also write the HTML report to this file")
    parser.add_argument("--no-send", action="store_true", help="Do not deliver the report")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def build_transport(kind: str):
    """Transport by name (smtp or webhook)."""
    if kind == "webhook":
        return WebhookTransport()
    if kind == "smtp":
        return SmtpTransport()
    raise ConfigurationError(f"Unknown report transport: {kind}")


def config_from_args(args: argparse.Namespace) -> RunConfig:
    config = RunConfig.from_settings(
        ou_name=args.ou_name,
        group_name=args.group_name,
        computer_name=args.computer_name,
        gpo_name=args.gpo_name,
        dns_hostname=args.dns_hostname,
        dns_ip=args.dns_ip,
        dns_zone=args.dns_zone,
        report_to=args.report_to,
        smtp_server=args.smtp_server,
        report_from=args.report_from,
        wait_seconds=args.wait_seconds,
        probe_timeout=args.probe_timeout,
        feature_name=args.feature_name,
        local_node=args.local_node,
        nodes=args.nodes,
    )
    if not config.local_node:
        config = config.model_copy(update={"local_node": socket.getfqdn()})
    return config


async def execute(args: argparse.Namespace) -> RunOutcome:
    config = config_from_args(args)
    transport = None if args.no_send else build_transport(args.transport or settings.REPORT_TRANSPORT)

    gateway = FixtureGateway(
        directory=LdapDirectoryClient(timeout=config.probe_timeout),
        dns=DnsRecordClient(timeout=config.probe_timeout),
        features=WindowsFeatureManager(),
        local_node=config.local_node,
        probe_timeout=config.probe_timeout,
    )
    capabilities = await probe_capabilities(config, gateway)

    runner = ReplicationRunner(gateway, transport=transport)
    return await runner.run(config, capabilities, send=not args.no_send)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    set_verbose(args.verbose)
    logger.info(f"Starting {settings.APP_NAME}...")

    try:
        outcome = asyncio.run(execute(args))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIGURATION_ERROR
    except CapabilityMissing as e:
        logger.error(f"Aborting, mandatory capability missing: {e}")
        return EXIT_CAPABILITY_MISSING

    if args.output:
        args.output.write_text(outcome.rendered.html, encoding="utf-8")
        logger.info(f"Report written to {args.output}")

    print(outcome.rendered.text)
    return EXIT_OK


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
