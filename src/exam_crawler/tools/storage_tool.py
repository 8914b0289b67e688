"""Storage tool - export crawl results for the ingestion layer."""

import json
import logging
from pathlib import Path

from ..models.crawl_run import CrawledFile, PipelineProgress

logger = logging.getLogger(__name__)


def init_storage(output_path: str) -> None:
    """Start a fresh JSONL export, replacing any previous one."""
    path = Path(output_path).resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists():
        path.unlink()
        logger.info("Deleted existing file at %s", path)
    path.touch()


def file_record(crawled: CrawledFile, source_id: str = "") -> dict:
    """JSON-safe record of a crawled file, without its bytes."""
    data = crawled.model_dump(mode="json", exclude={"content"})
    data["source_id"] = source_id
    data["size"] = crawled.size
    return data


def storage_tool(crawled: CrawledFile, output_path: str, source_id: str = "") -> None:
    """Append one crawled file to the JSONL export."""
    path = Path(output_path).resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    line = json.dumps(file_record(crawled, source_id), ensure_ascii=False) + "\n"
    with open(path, "a", encoding="utf-8") as f:
        f.write(line)
    logger.debug("Stored %s to %s", crawled.url, path)


def save_file_bytes(crawled: CrawledFile, files_dir: str) -> Path:
    """Write the downloaded bytes under files_dir, named after the URL's last segment."""
    directory = Path(files_dir)
    directory.mkdir(parents=True, exist_ok=True)
    name = Path(crawled.url.split("?", 1)[0].rstrip("/")).name or "file"
    target = directory / name
    counter = 1
    while target.exists():
        target = directory / f"{Path(name).stem}-{counter}{Path(name).suffix}"
        counter += 1
    target.write_bytes(crawled.content)
    return target


def write_progress(progress: PipelineProgress, output_path: str) -> Path:
    """Write the final run progress next to the JSONL export."""
    path = Path(output_path).resolve().with_suffix(".progress.json")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(progress.model_dump(mode="json"), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    return path
