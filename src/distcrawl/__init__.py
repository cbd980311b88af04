"""Distributed crawl workers and master dispatcher for the search indexer."""

__version__ = "0.1.0"
