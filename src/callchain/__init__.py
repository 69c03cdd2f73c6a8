"""callchain: trace Java call chains from a usage site up to the REST endpoints that reach it."""

__version__ = "0.1.0"
