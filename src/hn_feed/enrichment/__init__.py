"""Story enrichment service.

Turns a bare Hacker News item into a story record carrying an image, a short
description and the source domain, scraped from the linked page.

Sub-modules:
- ``config``        constants and scraping selectors
- ``http_fetcher``  async httpx-based page fetcher and HEAD prober
- ``sanitizer``     text cleaning, truncation and gibberish detection
- ``urls``          origin, domain and YouTube URL helpers
- ``cascade``       first-non-empty extractor chains
- ``metadata``      BeautifulSoup image and description extraction
- ``favicon``       favicon resolution with per-domain caching
- ``batching``      bounded-concurrency batch runner
- ``enricher``      per-story assembly (``StoryEnricher``)
"""
