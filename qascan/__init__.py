"""QA scan backend: crawl a site through Firecrawl and flag quality issues."""

__version__ = "0.1.0"
