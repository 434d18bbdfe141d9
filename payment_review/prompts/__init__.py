"""Deterministic prompt builders, one module per review vertical."""

from .drg import (
    build_cc_mcc_validation_prompt,
    build_clinical_criteria_prompt,
    build_drg_recommendation_prompt,
    build_drg_validation_prompt,
)
from .med_necessity import (
    build_intensity_of_service_prompt,
    build_med_necessity_recommendation_prompt,
    build_med_necessity_review_prompt,
    build_severity_of_illness_prompt,
)
from .outlier import (
    build_outlier_analysis_prompt,
    build_portfolio_summary_prompt,
    build_provider_recommendation_prompt,
)
from .readmission import (
    build_clinical_relatedness_prompt,
    build_discharge_adequacy_prompt,
    build_readmission_recommendation_prompt,
    build_readmission_review_prompt,
)

__all__ = [
    "build_cc_mcc_validation_prompt",
    "build_clinical_criteria_prompt",
    "build_drg_recommendation_prompt",
    "build_drg_validation_prompt",
    "build_intensity_of_service_prompt",
    "build_med_necessity_recommendation_prompt",
    "build_med_necessity_review_prompt",
    "build_severity_of_illness_prompt",
    "build_outlier_analysis_prompt",
    "build_portfolio_summary_prompt",
    "build_provider_recommendation_prompt",
    "build_clinical_relatedness_prompt",
    "build_discharge_adequacy_prompt",
    "build_readmission_recommendation_prompt",
    "build_readmission_review_prompt",
]
