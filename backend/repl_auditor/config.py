"""
Application configuration using environment variables.
"""
import os
from dataclasses import dataclass, field
from typing import List
from dotenv import load_dotenv

# Load .env file
load_dotenv()


def _split(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    """Application settings."""
    APP_NAME: str = "Directory Replication Auditor"

    # Directory (LDAP) access
    LDAP_SCHEME: str = os.getenv("LDAP_SCHEME", "ldap")
    LDAP_BIND_DN: str = os.getenv("LDAP_BIND_DN", "")
    LDAP_BIND_PASSWORD: str = os.getenv("LDAP_BIND_PASSWORD", "")

    # Nodes
    LOCAL_NODE: str = os.getenv("LOCAL_NODE", "")
    NODES: List[str] = field(default_factory=lambda: _split(os.getenv("NODES", "")))

    # Timing
    WAIT_SECONDS: int = int(os.getenv("WAIT_SECONDS", "1200"))
    PROBE_TIMEOUT: int = int(os.getenv("PROBE_TIMEOUT", "30"))

    # DNS
    DNS_ENABLED: bool = os.getenv("DNS_ENABLED", "true").lower() == "true"
    DNS_TTL: int = int(os.getenv("DNS_TTL", "3600"))

    # Host feature
    FEATURE_NAME: str = os.getenv("FEATURE_NAME", "Telnet-Client")
    POWERSHELL_EXE: str = os.getenv("POWERSHELL_EXE", "powershell.exe")

    # Fixture names
    OU_NAME: str = os.getenv("OU_NAME", "ReplCheckOU")
    GROUP_NAME: str = os.getenv("GROUP_NAME", "ReplCheckGroup")
    COMPUTER_NAME: str = os.getenv("COMPUTER_NAME", "REPLCHECKPC")
    GPO_NAME: str = os.getenv("GPO_NAME", "ReplCheckGPO")
    DNS_HOSTNAME: str = os.getenv("DNS_HOSTNAME", "replcheck")
    DNS_IP: str = os.getenv("DNS_IP", "")
    DNS_ZONE: str = os.getenv("DNS_ZONE", "")

    # Report delivery
    REPORT_TRANSPORT: str = os.getenv("REPORT_TRANSPORT", "smtp").lower()
    REPORT_TO: str = os.getenv("REPORT_TO", "")
    REPORT_FROM: str = os.getenv("REPORT_FROM", "")
    SMTP_SERVER: str = os.getenv("SMTP_SERVER", "")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "25"))
    TRANSPORT_TIMEOUT: int = int(os.getenv("TRANSPORT_TIMEOUT", "30"))

settings = Settings()
