"""Infrastructure adapters for embeddings, vector storage and observability."""
