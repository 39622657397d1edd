"""repodigest - bounded repository context extraction with caching."""

__version__ = "0.1.0"
