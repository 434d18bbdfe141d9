"""Packaged MS-DRG reference data.

The weight table, base rate and per-claim expected-DRG overrides ship as
YAML next to this module and are loaded into read-only mappings.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from payment_review import config
from payment_review.errors import ReferenceDataError

REFERENCE_DIR = Path(__file__).parent
DRG_WEIGHTS_FILE = REFERENCE_DIR / "drg_weights.yaml"
EXPECTED_DRG_FILE = REFERENCE_DIR / "expected_drg.yaml"


@dataclass(frozen=True)
class DRGWeight:
    weight: float
    description: str


@dataclass(frozen=True)
class ExpectedDRG:
    drg: str
    description: str


@dataclass(frozen=True)
class DRGReferenceData:
    """MS-DRG weights, base rate and expected-DRG overrides used for pricing."""

    weights: Mapping[str, DRGWeight]
    base_rate: float
    expected_drg: Mapping[str, ExpectedDRG]

    def weight_for(self, drg: str) -> float | None:
        entry = self.weights.get(drg)
        return entry.weight if entry else None

    def expected_for(self, claim_id: str) -> ExpectedDRG | None:
        return self.expected_drg.get(claim_id)

    def weight_table(self) -> dict[str, dict[str, Any]]:
        """Plain dict copy of the weight table for prompt rendering."""
        return {
            code: {"weight": entry.weight, "description": entry.description}
            for code, entry in self.weights.items()
        }


def _read_yaml(path: Path) -> Any:
    try:
        with open(path) as f:
            return yaml.safe_load(f)
    except OSError as exc:
        raise ReferenceDataError(f"Cannot read reference data {path.name}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ReferenceDataError(f"Malformed reference data {path.name}: {exc}") from exc


def _parse_weights(data: Any, source: str) -> dict[str, DRGWeight]:
    if not isinstance(data, dict):
        raise ReferenceDataError(f"{source}: 'weights' must be a mapping")
    weights = {}
    for code, entry in data.items():
        try:
            weights[str(code)] = DRGWeight(
                weight=float(entry["weight"]),
                description=str(entry.get("description", "")),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ReferenceDataError(f"{source}: invalid weight entry for DRG {code}") from exc
    return weights


def _parse_expected(data: Any, source: str) -> dict[str, ExpectedDRG]:
    if not isinstance(data, dict):
        raise ReferenceDataError(f"{source}: expected a mapping of claim id to DRG")
    expected = {}
    for claim_id, entry in data.items():
        try:
            expected[str(claim_id)] = ExpectedDRG(
                drg=str(entry["drg"]),
                description=str(entry.get("description", "")),
            )
        except (KeyError, TypeError, AttributeError) as exc:
            raise ReferenceDataError(f"{source}: invalid expected DRG entry for {claim_id}") from exc
    return expected


def load_drg_reference(
    weights_path: Path = DRG_WEIGHTS_FILE,
    expected_path: Path = EXPECTED_DRG_FILE,
    base_rate: float | None = None,
) -> DRGReferenceData:
    """Load DRG reference data from YAML.

    Args:
        weights_path: YAML file with ``base_rate`` and ``weights``
        expected_path: YAML file mapping claim ids to expected DRGs
        base_rate: Overrides both the file and ``PAYMENT_REVIEW_DRG_BASE_RATE``

    Returns:
        DRGReferenceData with read-only mappings

    Raises:
        ReferenceDataError: If a file is missing or malformed
    """
    weights_doc = _read_yaml(weights_path)
    if not isinstance(weights_doc, dict):
        raise ReferenceDataError(f"{weights_path.name}: expected a mapping at top level")

    if base_rate is None:
        raw_rate = config.DRG_BASE_RATE if config.DRG_BASE_RATE else weights_doc.get("base_rate")
        try:
            base_rate = float(raw_rate)
        except (TypeError, ValueError) as exc:
            raise ReferenceDataError(f"Invalid DRG base rate {raw_rate!r}") from exc

    weights = _parse_weights(weights_doc.get("weights"), weights_path.name)
    expected = _parse_expected(_read_yaml(expected_path) or {}, expected_path.name)

    return DRGReferenceData(
        weights=MappingProxyType(weights),
        base_rate=base_rate,
        expected_drg=MappingProxyType(expected),
    )


__all__ = [
    "DRGReferenceData",
    "DRGWeight",
    "ExpectedDRG",
    "load_drg_reference",
]
