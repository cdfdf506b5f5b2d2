"""
LDAP Directory Client - Create, probe and delete fixture objects with ldap3.

Every call opens its own connection to the targeted node so a dead node
never poisons calls against another one.
"""
from typing import Callable, Optional

from ldap3 import ANONYMOUS, BASE, NTLM, SIMPLE, SUBTREE, Connection, Server
from ldap3.core.exceptions import LDAPException

from repl_auditor.config import settings
from repl_auditor.logger import logger
from repl_auditor.schemas.fixture import Fixture, FixtureKind
from repl_auditor.services.errors import CreateError, DeleteError, ProbeError

# userAccountControl SERVER_TRUST_ACCOUNT
DC_FILTER = "(&(objectCategory=computer)(userAccountControl:1.2.840.113556.1.4.803:=8192))"

GROUP_GLOBAL_SECURITY = -2147483646
WORKSTATION_TRUST_ACCOUNT = 4096

OBJECT_CLASSES = {
    FixtureKind.ORGANIZATIONAL_UNIT: ["top", "organizationalUnit"],
    FixtureKind.GROUP: ["top", "group"],
    FixtureKind.COMPUTER: ["top", "person", "organizationalPerson", "user", "computer"],
    FixtureKind.POLICY_OBJECT: ["top", "container", "groupPolicyContainer"],
}


class LdapDirectoryClient:
    """Directory adapter addressing each node by host name."""

    def __init__(self, timeout: float = 30, connection_factory: Optional[Callable[[str], Connection]] = None):
        self.timeout = timeout
        self.scheme = settings.LDAP_SCHEME
        self.bind_dn = settings.LDAP_BIND_DN
        self.bind_password = settings.LDAP_BIND_PASSWORD
        self._connection_factory = connection_factory or self._connect

    def _connect(self, node: str) -> Connection:
        server = Server(
            node,
            use_ssl=self.scheme == "ldaps",
            connect_timeout=self.timeout,
        )
        if not self.bind_dn:
            authentication = ANONYMOUS
        elif "\\" in self.bind_dn:
            authentication = NTLM
        else:
            authentication = SIMPLE
        return Connection(
            server,
            user=self.bind_dn or None,
            password=self.bind_password or None,
            authentication=authentication,
            auto_bind=True,
            receive_timeout=self.timeout,
            raise_exceptions=False,
        )

    def naming_context(self, node: str) -> str:
        """Read defaultNamingContext from the node's rootDSE."""
        conn = self._connection_factory(node)
        try:
            if not conn.search("", "(objectClass=*)", search_scope=BASE, attributes=["defaultNamingContext"]):
                raise ProbeError(f"rootDSE unreadable on {node}: {conn.result.get('description')}", node=node)
            value = conn.response[0]["attributes"]["defaultNamingContext"]
            return value[0] if isinstance(value, list) else value
        finally:
            conn.unbind()

    def list_nodes(self, node: str) -> list[str]:
        """Enumerate domain controllers known to the node."""
        base_dn = self.naming_context(node)
        conn = self._connection_factory(node)
        try:
            if not conn.search(base_dn, DC_FILTER, search_scope=SUBTREE, attributes=["dNSHostName"]):
                raise ProbeError(f"Domain controller lookup failed on {node}: {conn.result.get('description')}", node=node)
            hosts = []
            for entry in conn.response:
                if entry.get("type") != "searchResEntry":
                    continue
                host = entry["attributes"].get("dNSHostName")
                if host:
                    hosts.append(host[0] if isinstance(host, list) else host)
            return sorted(hosts, key=str.lower)
        finally:
            conn.unbind()

    def create(self, fixture: Fixture, node: str) -> None:
        try:
            conn = self._connection_factory(node)
        except LDAPException as e:
            raise CreateError(f"Cannot reach {node}: {e}", kind=fixture.kind.value, node=node) from e
        try:
            ok = conn.add(fixture.identity, OBJECT_CLASSES[fixture.kind], self._attributes(fixture))
            if not ok:
                raise CreateError(
                    f"Creating {fixture.identity} failed: {conn.result.get('description')} {conn.result.get('message', '')}".strip(),
                    kind=fixture.kind.value,
                    node=node,
                )
            logger.debug(f"Created {fixture.kind.value} {fixture.identity} on {node}")
        finally:
            conn.unbind()

    def exists(self, identity: str, kind: FixtureKind, node: str) -> bool:
        """Base-scoped lookup; noSuchObject is a clean negative."""
        try:
            conn = self._connection_factory(node)
        except LDAPException as e:
            raise ProbeError(f"Cannot reach {node}: {e}", kind=kind.value, node=node) from e
        try:
            try:
                found = conn.search(identity, "(objectClass=*)", search_scope=BASE, attributes=["objectClass"])
            except LDAPException as e:
                raise ProbeError(f"Lookup of {identity} on {node} failed: {e}", kind=kind.value, node=node) from e
            if found:
                return True
            if conn.result.get("description") == "noSuchObject":
                return False
            raise ProbeError(
                f"Lookup of {identity} on {node} failed: {conn.result.get('description')}",
                kind=kind.value,
                node=node,
            )
        finally:
            conn.unbind()

    def delete(self, identity: str, kind: FixtureKind, node: str) -> None:
        try:
            conn = self._connection_factory(node)
        except LDAPException as e:
            raise DeleteError(f"Cannot reach {node}: {e}", kind=kind.value, node=node) from e
        try:
            if not conn.delete(identity):
                raise DeleteError(
                    f"Deleting {identity} failed: {conn.result.get('description')}",
                    kind=kind.value,
                    node=node,
                )
        finally:
            conn.unbind()

    def _attributes(self, fixture: Fixture) -> dict:
        name = fixture.name
        if fixture.kind == FixtureKind.ORGANIZATIONAL_UNIT:
            return {"ou": name, "description": "Replication check fixture"}
        if fixture.kind == FixtureKind.GROUP:
            return {"cn": name, "sAMAccountName": name, "groupType": GROUP_GLOBAL_SECURITY}
        if fixture.kind == FixtureKind.COMPUTER:
            return {
                "cn": name,
                "sAMAccountName": f"{name}$",
                "userAccountControl": WORKSTATION_TRUST_ACCOUNT,
            }
        if fixture.kind == FixtureKind.POLICY_OBJECT:
            return {
                "cn": fixture.attributes["guid"],
                "displayName": name,
                "gPCFileSysPath": fixture.attributes["file_sys_path"],
                "flags": 0,
                "versionNumber": 0,
            }
        raise CreateError(f"{fixture.kind.value} is not a directory object", kind=fixture.kind.value)
