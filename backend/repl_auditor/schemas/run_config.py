"""
Pydantic schema for the flat run configuration.
"""

import ipaddress
import re

from pydantic import BaseModel, Field, ValidationError, field_validator

from repl_auditor.config import settings
from repl_auditor.services.errors import ConfigurationError

FEATURE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class RunConfig(BaseModel):
    """Inputs for one verification run."""
    ou_name: str = Field("", description="Organizational unit to create")
    group_name: str = Field("", description="Security group to create inside the OU")
    computer_name: str = Field("", description="Computer account to create inside the OU")
    gpo_name: str = Field("", description="Group policy object display name")
    dns_hostname: str = Field("", description="Host label of the test A record")
    dns_ip: str = Field("", description="IPv4 address of the test A record")
    dns_zone: str = Field("", description="Zone the test A record is created in")
    report_to: str = Field("", description="Report destination address")
    smtp_server: str = Field("", description="Transport endpoint")
    report_from: str = Field("", description="Report source address")

    wait_seconds: int = Field(1200, ge=0, description="Propagation wait before the node sweep")
    probe_timeout: float = Field(30, gt=0, description="Upper bound for a single existence probe")
    dns_ttl: int = Field(3600, gt=0)
    feature_name: str = Field("", description="Windows feature installed as a local side effect")
    local_node: str = Field("", description="Address of this node")
    nodes: list[str] = Field(default_factory=list, description="Explicit node list; empty means discover")

    class Config:
        frozen = True
        str_strip_whitespace = True
        json_schema_extra = {
            "example": {
                "ou_name": "ReplCheckOU",
                "group_name": "ReplCheckGroup",
                "computer_name": "REPLCHECKPC",
                "gpo_name": "ReplCheckGPO",
                "dns_hostname": "replcheck",
                "dns_ip": "10.0.0.250",
                "dns_zone": "corp.example.com",
                "report_to": "ops@example.com",
                "smtp_server": "smtp.example.com",
                "report_from": "dc01@example.com"
            }
        }

    @field_validator("dns_ip")
    @classmethod
    def _valid_ipv4(cls, value: str) -> str:
        if value:
            ipaddress.IPv4Address(value)
        return value

    @field_validator("feature_name")
    @classmethod
    def _valid_feature_name(cls, value: str) -> str:
        if value and not FEATURE_NAME_PATTERN.match(value):
            raise ValueError("feature name may only contain letters, digits, '_', '.' and '-'")
        return value

    @field_validator("nodes")
    @classmethod
    def _clean_nodes(cls, value: list[str]) -> list[str]:
        return [node.strip() for node in value if node.strip()]

    @property
    def dns_configured(self) -> bool:
        return bool(self.dns_hostname and self.dns_ip and self.dns_zone)

    @classmethod
    def from_settings(cls, **overrides) -> "RunConfig":
        """Build a run configuration from settings, applying non-None overrides."""
        data = {
            "ou_name": settings.OU_NAME,
            "group_name": settings.GROUP_NAME,
            "computer_name": settings.COMPUTER_NAME,
            "gpo_name": settings.GPO_NAME,
            "dns_hostname": settings.DNS_HOSTNAME,
            "dns_ip": settings.DNS_IP,
            "dns_zone": settings.DNS_ZONE,
            "report_to": settings.REPORT_TO,
            "smtp_server": settings.SMTP_SERVER,
            "report_from": settings.REPORT_FROM,
            "wait_seconds": settings.WAIT_SECONDS,
            "probe_timeout": settings.PROBE_TIMEOUT,
            "dns_ttl": settings.DNS_TTL,
            "feature_name": settings.FEATURE_NAME,
            "local_node": settings.LOCAL_NODE,
            "nodes": list(settings.NODES),
        }
        data.update({key: value for key, value in overrides.items() if value is not None})

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid run configuration: {e}") from e
