"""tinydancer: a small in-memory full-text search engine for local files."""

__version__ = "0.1.0"
