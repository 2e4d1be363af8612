"""Application services (use cases)."""

from .waterfall_service import WaterfallAnalysisService

__all__ = [
    "WaterfallAnalysisService",
]
