"""
Pydantic schemas for fixture objects.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class FixtureKind(str, Enum):
    """Kinds of synthetic objects a run creates and verifies."""
    ORGANIZATIONAL_UNIT = "organizational_unit"
    GROUP = "group"
    COMPUTER = "computer"
    POLICY_OBJECT = "policy_object"
    DNS_RECORD = "dns_record"
    HOST_FEATURE = "host_feature"

    @property
    def label(self) -> str:
        return KIND_LABELS[self]

    @property
    def is_directory_object(self) -> bool:
        return self in DIRECTORY_KINDS


KIND_LABELS = {
    FixtureKind.ORGANIZATIONAL_UNIT: "Organizational Unit",
    FixtureKind.GROUP: "Group",
    FixtureKind.COMPUTER: "Computer",
    FixtureKind.POLICY_OBJECT: "Group Policy Object",
    FixtureKind.DNS_RECORD: "DNS Record",
    FixtureKind.HOST_FEATURE: "Windows Feature",
}

DIRECTORY_KINDS = (
    FixtureKind.ORGANIZATIONAL_UNIT,
    FixtureKind.GROUP,
    FixtureKind.COMPUTER,
    FixtureKind.POLICY_OBJECT,
)


class Fixture(BaseModel):
    """One object to be created and later checked for presence."""
    kind: FixtureKind
    name: str
    identity: str = Field(..., description="Key used for creation, lookup and deletion")
    attributes: dict[str, Any] = Field(default_factory=dict)

    class Config:
        frozen = True
