"""Template matcher service."""

from .service import MATCH_THRESHOLD, ScoreBreakdown, TemplateMatcher

__all__ = ["MATCH_THRESHOLD", "ScoreBreakdown", "TemplateMatcher"]
