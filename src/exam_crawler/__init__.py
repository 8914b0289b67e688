"""Crawl exam sites, download documents and extract structured problems."""

from .agent.crawl_agent import CrawlAgent, process_file, run_crawl_pipeline
from .config.loader import PipelineConfig, load_config

__all__ = ["CrawlAgent", "PipelineConfig", "load_config", "process_file", "run_crawl_pipeline"]

__version__ = "0.1.0"
