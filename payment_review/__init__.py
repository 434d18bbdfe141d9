"""Payment integrity review.

Deterministic rule engines and review agents for four claim review types:
provider outlier detection, DRG clinical validation, medical necessity and
readmission review.
"""

__version__ = "0.1.0"
