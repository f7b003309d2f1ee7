"""Multi-source paper collection and relevance triage."""

__version__ = "0.1.0"
