"""Business modules for memory-retriever.

Each module is self-contained with its own schemas, services and
exceptions, built on top of the infrastructure adapters.
"""
