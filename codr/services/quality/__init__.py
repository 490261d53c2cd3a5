"""Quality assurance service."""

from .service import PASS_SCORE, QualityAssurance, calculate_score

__all__ = ["PASS_SCORE", "QualityAssurance", "calculate_score"]
