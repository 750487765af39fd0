"""
Batch processing module.
"""

from .dedup import DedupResult, dedupe
from .enrich import enrich
from .media import MediaLinkVerifier
from .pipeline import CatalogPipeline, PipelineState

__all__ = [
    "CatalogPipeline",
    "PipelineState",
    "DedupResult",
    "dedupe",
    "enrich",
    "MediaLinkVerifier",
]
