"""Main entry point for the exam crawler."""

import argparse
import json
import logging
import sys
from pathlib import Path

from .agent.crawl_agent import process_file, run_crawl_pipeline
from .config.loader import FetchSettings, load_config
from .models.crawl_run import PipelineStatus
from .tools.pdf_tool import DocumentTextExtractor, make_backend
from .tools.probe_tool import probe_source
from .tools.storage_tool import init_storage, save_file_bytes, storage_tool, write_progress

logger = logging.getLogger(__name__)


def _crawl(args: argparse.Namespace) -> int:
    config_path = Path(args.config)
    if not config_path.exists():
        print(f"Config not found: {config_path}", file=sys.stderr)
        return 1

    config = load_config(config_path)
    output = config.output_config

    def report(progress):
        if progress.current_url:
            logger.debug("Progress: %d pages, %d files, %d problems, at %s",
                         progress.pages_visited, progress.files_saved,
                         progress.problems_extracted, progress.current_url)

    result = run_crawl_pipeline(config, on_progress=report)

    init_storage(output.storage_path)
    for crawled in result.files:
        storage_tool(crawled, output.storage_path, config.source_id)
        if output.files_dir:
            save_file_bytes(crawled, output.files_dir)
    write_progress(result.progress, output.storage_path)

    progress = result.progress
    print(
        f"{progress.status.value}: visited {progress.pages_visited} pages, "
        f"saved {progress.files_saved}/{progress.files_found} files, "
        f"extracted {progress.problems_extracted} problems, {len(progress.errors)} errors. "
        f"Results saved to {output.storage_path}"
    )
    return 1 if progress.status == PipelineStatus.FAILED else 0


def _probe(args: argparse.Namespace) -> int:
    settings = FetchSettings(timeout=args.timeout)
    probe = probe_source(args.url, settings)
    print(json.dumps(probe.model_dump(mode="json"), ensure_ascii=False, indent=2))
    return 0 if probe.success else 1


def _process(args: argparse.Namespace) -> int:
    path = Path(args.file)
    if not path.exists():
        print(f"File not found: {path}", file=sys.stderr)
        return 1
    file_type = args.file_type or path.suffix.lstrip(".")
    extractor = DocumentTextExtractor(make_backend(args.pdf_backend))
    processed = process_file(path.read_bytes(), file_type, extractor)
    print(json.dumps(processed.model_dump(mode="json"), ensure_ascii=False, indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Crawl exam sites and extract structured problems"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    crawl = sub.add_parser("crawl", help="Run a full crawl")
    crawl.add_argument(
        "-c",
        "--config",
        default="config/config.yaml",
        help="Path to config file (YAML or JSON)",
    )
    crawl.set_defaults(handler=_crawl)

    probe = sub.add_parser("probe", help="Check robots.txt and fetch one page")
    probe.add_argument("url")
    probe.add_argument("--timeout", type=float, default=30.0)
    probe.set_defaults(handler=_probe)

    process = sub.add_parser("process", help="Extract problems from a downloaded file")
    process.add_argument("file")
    process.add_argument("--file-type", default=None)
    process.add_argument("--pdf-backend", choices=["pypdf", "none"], default="pypdf")
    process.set_defaults(handler=_process)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
