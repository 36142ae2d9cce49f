"""In-memory vector similarity search with an observable retrieval pipeline."""

__version__ = "0.1.0"
