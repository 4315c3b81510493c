"""Core services: image ingestion, Gemini client, recognition pipeline, scan state, collection store."""
from stampcollector.core.analysis import AnalysisMachine
from stampcollector.core.gemini_client import GeminiProvider, StampProvider

__all__ = ["AnalysisMachine", "GeminiProvider", "StampProvider"]
