"""
Trackarr - BitTorrent tracker list aggregation service.

Fetches tracker lists from remote sources, merges and deduplicates them,
then serves the result over HTTP or pushes it into an aria2 daemon.
"""

__version__ = "1.0.0"
