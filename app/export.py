"""
CLI entrypoint for exporting a generated requirement tree to Jira, e.g.:

  python -m app.export requirements.json
  python -m app.export requirements.json --attach source.pdf

The JSON file holds a list of {"requirement": ..., "testCases": [...]} objects.
Exit code is 0 when every requirement was exported, 1 on partial failure,
2 on bad input or incomplete configuration.
"""

import argparse
import asyncio
import json
import logging
import sys
import time
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from app.core.config import get_settings
from app.schemas.jira import ExportProgress
from app.schemas.requirements import Requirement
from app.services.jira_export import (
    JiraNotConfiguredError,
    SourceFile,
    export_requirements_to_jira,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logging.Formatter.converter = time.gmtime
logger = logging.getLogger(__name__)

_requirements_adapter = TypeAdapter(list[Requirement])


def _print_progress(progress: ExportProgress) -> None:
    key = progress.last_created_key or "failed"
    logger.info("Requirement %s/%s: %s", progress.current, progress.total, key)


def load_requirements(path: Path) -> list[Requirement]:
    """Read and validate the requirement tree JSON file."""
    return _requirements_adapter.validate_python(json.loads(path.read_text(encoding="utf-8")))


def main(argv: list[str] | None = None) -> int:
    """Run one export using the active Jira settings."""
    parser = argparse.ArgumentParser(prog="python -m app.export")
    parser.add_argument("requirements", type=Path, help="JSON file with the requirement tree")
    parser.add_argument(
        "--attach",
        type=Path,
        default=None,
        help="Source document to attach to the first parent task (enables attaching for this run)",
    )
    args = parser.parse_args(argv)

    try:
        requirements = load_requirements(args.requirements)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.error("Could not read requirements from %s: %s", args.requirements, e)
        return 2

    source_file = None
    if args.attach is not None:
        try:
            source_file = SourceFile(args.attach.name, args.attach.read_bytes())
        except OSError as e:
            logger.error("Could not read attachment %s: %s", args.attach, e)
            return 2

    try:
        result = asyncio.run(
            export_requirements_to_jira(
                requirements,
                get_settings(),
                on_progress=_print_progress,
                source_file=source_file,
                attach_source_file=True if source_file is not None else None,
            )
        )
    except JiraNotConfiguredError as e:
        logger.error("Jira export not started: %s", e.message)
        return 2

    logger.info(
        "Export completed: success=%s failed=%s partial=%s",
        result.success_count,
        result.failed_count,
        result.partial_count,
    )
    for error in result.errors + result.subtask_errors:
        logger.warning(error)
    return 0 if result.failed_count == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
