"""Pytest configuration and fixtures."""

from __future__ import annotations

from types import MappingProxyType

import pytest

from builders import make_claim
from payment_review.reference import DRGReferenceData, DRGWeight, ExpectedDRG
from payment_review.schemas.claims import Claim


@pytest.fixture
def reference() -> DRGReferenceData:
    """Small reference table independent of the packaged YAML."""
    return DRGReferenceData(
        weights=MappingProxyType(
            {
                "066": DRGWeight(1.0968, "Intracranial Hemorrhage or Cerebral Infarction w/o CC/MCC"),
                "194": DRGWeight(1.0274, "Simple Pneumonia & Pleurisy w CC"),
                "871": DRGWeight(1.8564, "Septicemia or Severe Sepsis w/o MV >96 Hours w MCC"),
            }
        ),
        base_rate=6200,
        expected_drg=MappingProxyType(
            {"DRG-SEP": ExpectedDRG("871", "Septicemia or Severe Sepsis w/o MV >96 Hours w MCC")}
        ),
    )


@pytest.fixture
def claim_population() -> list[Claim]:
    """Three providers with ordinary, irregular billing."""
    claims = []
    for provider_index, provider_id in enumerate(("PRV-A", "PRV-B", "PRV-C")):
        for n in range(4):
            claims.append(
                make_claim(
                    f"{provider_id}-{n}",
                    provider_id,
                    beneficiary_id=f"BEN-{provider_id}-{n}",
                    service_date=f"2024-03-{n * 9 + 1:02d}",
                    procedure_code=("99213", "99214")[n % 2],
                    amount=120.37 + provider_index * 3.11 + n * 7.93,
                )
            )
    return claims
