"""
DNS Record Client - Manage the test A record with dnspython.

Records are written with unsigned RFC 2136 dynamic updates and read back
by querying each node directly, bypassing any local resolver cache. Zones
that only accept secure updates answer REFUSED.
"""
import ipaddress
from functools import lru_cache

import dns.exception
import dns.message
import dns.query
import dns.rcode
import dns.rdatatype
import dns.resolver
import dns.update

from repl_auditor.logger import logger
from repl_auditor.schemas.fixture import Fixture
from repl_auditor.services.errors import CreateError, DeleteError, ProbeError

SECURE_ONLY_HINT = " (zone may only accept secure dynamic updates)"


@lru_cache(maxsize=64)
def _nameserver_address(node: str) -> str:
    """Resolve a node name to the address queries are sent to."""
    try:
        ipaddress.ip_address(node)
        return node
    except ValueError:
        pass
    answer = dns.resolver.resolve(node, "A")
    return answer[0].to_text()


class DnsRecordClient:
    """DNS adapter addressing each node as an authoritative server."""

    def __init__(self, timeout: float = 30):
        self.timeout = timeout

    def zone_served(self, zone: str, node: str) -> bool:
        """True when the node answers authoritatively for the zone's SOA."""
        try:
            query = dns.message.make_query(zone, dns.rdatatype.SOA)
            response = dns.query.udp(query, _nameserver_address(node), timeout=self.timeout)
        except (dns.exception.DNSException, OSError) as e:
            logger.debug(f"SOA query for {zone} on {node} failed: {e}")
            return False
        return response.rcode() == dns.rcode.NOERROR and bool(response.answer)

    def create_record(self, fixture: Fixture, node: str) -> None:
        attrs = fixture.attributes
        update = dns.update.UpdateMessage(attrs["zone"])
        update.add(attrs["hostname"], attrs["ttl"], "A", attrs["address"])
        try:
            response = dns.query.tcp(update, _nameserver_address(node), timeout=self.timeout)
        except (dns.exception.DNSException, OSError) as e:
            raise CreateError(f"DNS update to {node} failed: {e}", kind=fixture.kind.value, node=node) from e
        if response.rcode() != dns.rcode.NOERROR:
            raise CreateError(
                f"DNS update for {fixture.identity} refused by {node}: {dns.rcode.to_text(response.rcode())}"
                f"{SECURE_ONLY_HINT if response.rcode() == dns.rcode.REFUSED else ''}",
                kind=fixture.kind.value,
                node=node,
            )

    def record_exists(self, fixture: Fixture, node: str) -> bool:
        """True when the node serves the record with the expected address."""
        attrs = fixture.attributes
        try:
            query = dns.message.make_query(fixture.identity, dns.rdatatype.A)
            response = dns.query.udp(query, _nameserver_address(node), timeout=self.timeout)
        except (dns.exception.DNSException, OSError) as e:
            raise ProbeError(f"DNS query to {node} failed: {e}", kind=fixture.kind.value, node=node) from e

        rcode = response.rcode()
        if rcode == dns.rcode.NXDOMAIN:
            return False
        if rcode != dns.rcode.NOERROR:
            raise ProbeError(
                f"DNS query to {node} returned {dns.rcode.to_text(rcode)}",
                kind=fixture.kind.value,
                node=node,
            )
        for rrset in response.answer:
            if rrset.rdtype == dns.rdatatype.A and any(r.to_text() == attrs["address"] for r in rrset):
                return True
        return False

    def delete_record(self, fixture: Fixture, node: str) -> None:
        attrs = fixture.attributes
        update = dns.update.UpdateMessage(attrs["zone"])
        update.delete(attrs["hostname"], "A", attrs["address"])
        try:
            response = dns.query.tcp(update, _nameserver_address(node), timeout=self.timeout)
        except (dns.exception.DNSException, OSError) as e:
            raise DeleteError(f"DNS update to {node} failed: {e}", kind=fixture.kind.value, node=node) from e
        if response.rcode() != dns.rcode.NOERROR:
            raise DeleteError(
                f"DNS delete for {fixture.identity} refused by {node}: {dns.rcode.to_text(response.rcode())}",
                kind=fixture.kind.value,
                node=node,
            )
