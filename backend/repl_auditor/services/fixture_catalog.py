"""
Fixture Catalog - Derive the fixtures of a run from its configuration.

Identities are computed up front so creation, lookup and deletion all
use the same value. The policy object's GUID is a name-based UUID for
that reason.
"""
import uuid

from ldap3.utils.dn import escape_rdn

from repl_auditor.schemas.fixture import Fixture, FixtureKind
from repl_auditor.schemas.run_config import RunConfig
from repl_auditor.services.capabilities import Capabilities
from repl_auditor.services.errors import ConfigurationError

POLICY_NAMESPACE = uuid.UUID("5b6c2a5e-8f0d-4d5e-9a40-3b1f7c2d9e11")


def domain_from_dn(base_dn: str) -> str:
    """'DC=corp,DC=example,DC=com' -> 'corp.example.com'"""
    parts = [rdn.split("=", 1)[1] for rdn in base_dn.split(",") if rdn.strip().upper().startswith("DC=")]
    return ".".join(parts)


def policy_guid(gpo_name: str, base_dn: str) -> str:
    return "{" + str(uuid.uuid5(POLICY_NAMESPACE, f"{base_dn.lower()}/{gpo_name}")).upper() + "}"


def _require(value: str, option: str, kind: FixtureKind) -> str:
    if not value:
        raise ConfigurationError(f"{option} is required for {kind.label} checks")
    return value


def build_catalog(config: RunConfig, base_dn: str, capabilities: Capabilities) -> list[Fixture]:
    """Ordered fixtures for one run.

    Raises:
        ConfigurationError: an identity needed by an in-scope kind is empty
    """
    if not base_dn:
        raise ConfigurationError("Directory naming context is empty")

    ou_name = _require(config.ou_name, "ou_name", FixtureKind.ORGANIZATIONAL_UNIT)
    group_name = _require(config.group_name, "group_name", FixtureKind.GROUP)
    computer_name = _require(config.computer_name, "computer_name", FixtureKind.COMPUTER)
    gpo_name = _require(config.gpo_name, "gpo_name", FixtureKind.POLICY_OBJECT)

    ou_dn = f"OU={escape_rdn(ou_name)},{base_dn}"
    guid = policy_guid(gpo_name, base_dn)
    domain = domain_from_dn(base_dn)

    fixtures = [
        Fixture(kind=FixtureKind.ORGANIZATIONAL_UNIT, name=ou_name, identity=ou_dn),
        Fixture(
            kind=FixtureKind.GROUP,
            name=group_name,
            identity=f"CN={escape_rdn(group_name)},{ou_dn}",
            attributes={"parent": ou_dn},
        ),
        Fixture(
            kind=FixtureKind.COMPUTER,
            name=computer_name,
            identity=f"CN={escape_rdn(computer_name)},{ou_dn}",
            attributes={"parent": ou_dn},
        ),
        Fixture(
            kind=FixtureKind.POLICY_OBJECT,
            name=gpo_name,
            identity=f"CN={guid},CN=Policies,CN=System,{base_dn}",
            attributes={
                "guid": guid,
                "file_sys_path": f"\\\\{domain}\\SysVol\\{domain}\\Policies\\{guid}",
            },
        ),
    ]

    if capabilities.dns:
        hostname = _require(config.dns_hostname, "dns_hostname", FixtureKind.DNS_RECORD)
        address = _require(config.dns_ip, "dns_ip", FixtureKind.DNS_RECORD)
        zone = _require(config.dns_zone, "dns_zone", FixtureKind.DNS_RECORD).rstrip(".")
        fixtures.append(Fixture(
            kind=FixtureKind.DNS_RECORD,
            name=hostname,
            identity=f"{hostname}.{zone}",
            attributes={"zone": zone, "hostname": hostname, "address": address, "ttl": config.dns_ttl},
        ))

    if capabilities.host_feature:
        feature = _require(config.feature_name, "feature_name", FixtureKind.HOST_FEATURE)
        fixtures.append(Fixture(kind=FixtureKind.HOST_FEATURE, name=feature, identity=feature))

    return fixtures
