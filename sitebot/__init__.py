"""
Site Bot - Sitemap Change Monitor

Modules:
- config: Configuration loading and validation
- storage: Key-value persistence and per-domain snapshot slots
- registry: Durable list of monitored sitemap URLs
- sitemap_fetcher: HTTP fetching with retry logic and gzip support
- sitemap_parser: Tolerant <loc> extraction from sitemap text
- diff: New-URL detection between two sitemap versions
- monitor: Per-source attempts and full monitoring passes
- insights: Keyword and domain statistics for new URLs
- reporting: Notification formatting and report sinks
"""

__version__ = "1.0.0"
