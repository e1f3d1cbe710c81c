#!/usr/bin/env python3
"""
lookup-flow runner

Usage:
    lookup-flow pipeline.yaml -i records.jsonl -o enriched.jsonl
    cat record.json | lookup-flow pipeline.yaml
    lookup-flow --list-stages

Input is a JSON array, a single JSON object, or JSON lines; output is
JSON lines. "-" means stdin/stdout (the default).

Options:
    --dry-run       Validate the pipeline without processing records
    --search-url    Search backend URL (overrides config)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterator, TextIO

from .config import load_config
from .core import (
    ConfigurationError,
    EnrichmentError,
    EnrichmentPipeline,
    OutputMode,
    StageRegistry,
)
from .search.client import HttpSearchClient

logger = logging.getLogger(__name__)


def setup_logging(output_mode: OutputMode) -> None:
    """Configure logging based on output mode."""
    # Determine log level for our code
    if output_mode == OutputMode.QUIET:
        level = logging.WARNING
    elif output_mode == OutputMode.DEBUG:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    # Suppress library loggers unless in debug mode
    if output_mode != OutputMode.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


def read_records(stream: TextIO) -> Iterator[dict[str, Any]]:
    """
    Read records from a JSON array, a single JSON object, or JSON lines.

    Raises:
        ValueError: If the input is not valid JSON or holds non-object records
    """
    text = stream.read()
    stripped = text.strip()
    if not stripped:
        return

    try:
        data = json.loads(stripped)
        records = data if isinstance(data, list) else [data]
    except json.JSONDecodeError:
        records = []
        for line_no, line in enumerate(stripped.splitlines(), 1):
            if not line.strip():
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON on input line {line_no}: {e}") from e

    for i, record in enumerate(records):
        if not isinstance(record, dict):
            raise ValueError(f"Record {i} is not a JSON object")
        yield record


def list_stages() -> str:
    """Describe all registered stage types."""
    from . import stages  # noqa: F401

    registry = StageRegistry.get_instance()
    lines = []
    for stage_type in registry.list_types():
        manifest = registry.get_manifest(stage_type)
        lines.append(f"{stage_type}")
        lines.append(f"  {manifest['description']}")
        for name, spec in manifest["options"].items():
            req = " (required)" if spec["required"] else ""
            default = f" = {spec['default']!r}" if spec["default"] is not None else ""
            lines.append(f"    {name}: {spec['type']}{req}{default} - {spec['description']}")
        lines.append("")
    return "\n".join(lines)


async def run_pipeline(
    pipeline_path: Path,
    input_stream: TextIO,
    output_stream: TextIO,
    config: dict[str, Any],
    dry_run: bool = False,
) -> int:
    """Run a pipeline over the input records and return exit code."""
    search_client = HttpSearchClient.from_config(config["search"])
    pipeline = EnrichmentPipeline(search_client=search_client)

    try:
        logger.info(f"Loading pipeline: {pipeline_path}")
        try:
            pipeline.load(pipeline_path)
        except ConfigurationError as e:
            logger.error(f"Invalid pipeline: {e}")
            return 1

        logger.info("✓ Pipeline valid")
        if dry_run:
            logger.info("Dry run - skipping processing")
            return 0

        try:
            records = list(read_records(input_stream))
        except ValueError as e:
            logger.error(f"Invalid input: {e}")
            return 1

        logger.info(f"Processing {len(records)} record(s) with search backend {search_client.url}")
        try:
            async for result in pipeline.process_many(records):
                for warning in result.warnings:
                    logger.warning(str(warning))
                output_stream.write(json.dumps(result.record, ensure_ascii=False, default=str) + "\n")
        except EnrichmentError as e:
            logger.error(f"Processing failed: {e}")
            return 2

        stats = pipeline.stats
        logger.info(f"✓ Processed {stats['records_processed']} record(s), {stats['warnings']} warning(s)")
        return 0
    finally:
        await pipeline.aclose()


def main():
    parser = argparse.ArgumentParser(
        description="Enrich JSON records with values looked up in a search index",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument("pipeline", type=Path, nargs="?", help="Pipeline definition (YAML or JSON)")
    parser.add_argument("--input", "-i", default="-", help="Input records file (default: stdin)")
    parser.add_argument("--output", "-o", default="-", help="Output JSON lines file (default: stdout)")
    parser.add_argument("--config", "-c", type=Path, help="Config file (default: user config dir)")
    parser.add_argument("--search-url", help="Search backend URL (overrides config)")
    parser.add_argument("--dry-run", action="store_true", help="Validate only")
    parser.add_argument("--list-stages", action="store_true", help="List available stage types")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--quiet", "-q", action="store_true", help="Only report warnings and errors")
    verbosity.add_argument("--debug", action="store_true", help="Report lookup details")

    args = parser.parse_args()

    if args.list_stages:
        print(list_stages())
        sys.exit(0)

    if args.pipeline is None:
        print("Error: Pipeline definition is required", file=sys.stderr)
        parser.print_usage()
        sys.exit(1)

    if args.quiet:
        output_mode = OutputMode.QUIET
    elif args.debug:
        output_mode = OutputMode.DEBUG
    else:
        output_mode = OutputMode.NORMAL

    setup_logging(output_mode)

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(1)
    if args.search_url:
        config["search"]["url"] = args.search_url

    input_stream = sys.stdin if args.input == "-" else open(args.input, "r", encoding="utf-8")
    output_stream = sys.stdout if args.output == "-" else open(args.output, "w", encoding="utf-8")
    try:
        exit_code = asyncio.run(run_pipeline(
            args.pipeline,
            input_stream,
            output_stream,
            config,
            dry_run=args.dry_run,
        ))
    finally:
        if input_stream is not sys.stdin:
            input_stream.close()
        if output_stream is not sys.stdout:
            output_stream.close()

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
