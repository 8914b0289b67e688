"""Tests for configuration loading."""

import json

import pytest
from pydantic import ValidationError

from exam_crawler.config.loader import PipelineConfig, load_config


class TestPipelineConfig:
    def test_defaults(self):
        config = PipelineConfig(base_url="https://site.test/")
        assert config.file_types == ["pdf"]
        assert config.crawl_delay == 1000
        assert config.max_pages is None and config.max_files is None
        assert config.max_errors == 10
        assert config.fetch.robots_agent == "*"
        assert config.fetch.user_agent.startswith("JaLearn-Crawler/1.0")

    def test_file_types_are_normalized(self):
        config = PipelineConfig(base_url="https://site.test/", file_types=[".PDF", " hwp ", ""])
        assert config.file_types == ["pdf", "hwp"]

    def test_invalid_crawl_pattern(self):
        with pytest.raises(ValidationError):
            PipelineConfig(base_url="https://site.test/", crawl_pattern="([")

    def test_empty_crawl_pattern_is_none(self):
        assert PipelineConfig(base_url="https://site.test/", crawl_pattern="").crawl_pattern is None

    def test_pdf_backend_choice(self):
        assert PipelineConfig(base_url="https://site.test/").pdf_backend == "pypdf"
        assert PipelineConfig(base_url="https://site.test/", pdf_backend="none").pdf_backend == "none"
        with pytest.raises(ValidationError):
            PipelineConfig(base_url="https://site.test/", pdf_backend="ocr")

    def test_negative_limits_rejected(self):
        with pytest.raises(ValidationError):
            PipelineConfig(base_url="https://site.test/", crawl_delay=-1)
        with pytest.raises(ValidationError):
            PipelineConfig(base_url="https://site.test/", max_pages=0)


class TestLoadConfig:
    def test_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "source_id: s1\n"
            "base_url: https://site.test/board/\n"
            "crawl_pattern: /board/\n"
            "max_depth: 1\n"
            "fetch:\n  timeout: 5\n  robots_agent: ExamBot\n"
            "output_config:\n  storage_path: out/results.jsonl\n",
            encoding="utf-8",
        )
        config = load_config(path)
        assert config.source_id == "s1"
        assert config.max_depth == 1
        assert config.fetch.timeout == 5
        assert config.fetch.robots_agent == "ExamBot"
        assert config.output_config.storage_path == "out/results.jsonl"
        assert PipelineConfig.from_yaml(path) == config

    def test_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"base_url": "https://site.test/", "max_files": 3}), encoding="utf-8")
        assert load_config(path).max_files == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")
