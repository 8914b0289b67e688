"""Crawl orchestration."""
