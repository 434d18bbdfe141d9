"""Shared vocabularies and base models for review entities.

String values of every enum here are part of the wire contract with the UI
and API layers and must not change.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Severity(str, Enum):
    """Finding severity."""

    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class AdmissionType(str, Enum):
    EMERGENCY = "Emergency"
    ELECTIVE = "Elective"
    URGENT = "Urgent"
    NEWBORN = "Newborn"


class DischargeStatus(str, Enum):
    HOME = "Home"
    SNF = "SNF"
    LTAC = "LTAC"
    AMA = "AMA"
    EXPIRED = "Expired"
    TRANSFERRED = "Transferred"


class WireModel(BaseModel):
    """Base model serialized with camelCase keys.

    Python attributes are snake_case; JSON keys use the camelCase aliases.
    Either form is accepted on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class EntityModel(WireModel):
    """Base for persisted entities; unknown keys are kept on round-trip."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: str


class ICD10Code(WireModel):
    """An ICD-10 diagnosis code with CC/MCC flags."""

    code: str
    description: str = ""
    is_primary: bool = False
    is_mcc: bool = Field(default=False, alias="isMCC")
    is_cc: bool = Field(default=False, alias="isCC")

    @property
    def category(self) -> str:
        """Leading three characters of the code."""
        return self.code[:3]


class Finding(WireModel):
    """A single rule finding.

    ``financial_impact`` is signed: positive means under-billing or revenue
    opportunity, negative means over-billing or cost exposure.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    rule_id: str
    category: str
    severity: Severity
    description: str
    recommendation: str
    financial_impact: float | None = None


def count_severity(findings: list[Finding], severity: Severity) -> int:
    return sum(1 for f in findings if f.severity == severity)


def has_category(findings: list[Finding], category: str) -> bool:
    return any(f.category == category for f in findings)


class RecordFailure(WireModel):
    """A record or provider left out of a report because review failed."""

    entity_id: str | None = None
    error_type: str
    message: str
    fields: list[dict[str, Any]] = Field(default_factory=list)
