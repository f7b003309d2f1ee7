# src/papertriage/infrastructure/harvesters/__init__.py
"""
Keyword-search harvesters.

Each harvester implements the HarvesterPort interface and normalizes
results to the CollectedPaper format.
"""

from .arxiv_harvester import ArxivHarvester
from .semantic_scholar_harvester import SemanticScholarHarvester
from .openalex_harvester import OpenAlexHarvester

__all__ = [
    "ArxivHarvester",
    "SemanticScholarHarvester",
    "OpenAlexHarvester",
]
