"""Natural-language question answering over a research-paper knowledge graph."""

__version__ = "0.1.0"
