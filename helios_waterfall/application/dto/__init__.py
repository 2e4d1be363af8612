"""Data Transfer Objects for application layer."""

from .analysis import AnalysisRequest, AnalysisSummary

__all__ = [
    "AnalysisRequest",
    "AnalysisSummary",
]
