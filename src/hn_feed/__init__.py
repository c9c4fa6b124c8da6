"""HN Feed: Hacker News listings enriched with page images and descriptions."""

__version__ = "0.1.0"
