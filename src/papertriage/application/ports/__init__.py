"""Application ports (interfaces) used by the application layer."""

from .citation_graph_port import CitationGraphPort
from .feed_reader_port import FeedReaderPort
from .harvester_port import HarvesterPort
from .text_generation_port import TextGenerationPort

__all__ = [
    "CitationGraphPort",
    "FeedReaderPort",
    "HarvesterPort",
    "TextGenerationPort",
]
