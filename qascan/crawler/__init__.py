"""Crawler package — Firecrawl client & crawl result models."""

from qascan.crawler.client import FirecrawlClient
from qascan.crawler.models import CrawledPage, CrawlFailure, CrawlResult, CrawlSuccess

__all__ = ["FirecrawlClient", "CrawledPage", "CrawlFailure", "CrawlResult", "CrawlSuccess"]
