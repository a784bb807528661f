"""
Writing generated files to disk.
"""

import logging
from pathlib import Path
from typing import List

from .codegen import SINGLE_FILE_NAME
from .constants import BundleFiles
from .domain.models import GenerationResult
from .exceptions import OutputWriteError

logger = logging.getLogger(__name__)


def write_file(output_path: Path, content: str) -> Path:
    """
    Write one text file, creating its parent directory.

    Raises:
        OutputWriteError: If the file cannot be written
    """
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(content)
    except OSError as e:
        raise OutputWriteError(f"Cannot write {output_path}: {e}", destination=str(output_path)) from e
    logger.debug(f"Generated file: {output_path}")
    return output_path


def resolve_destination(output: str, split: bool) -> Path:
    """
    Where a result goes.

    A bundle is written into ``output`` as a directory. A single file is written
    to ``output`` itself when it names a ``.ts`` file, otherwise into it.
    """
    destination = Path(output)
    if split:
        if destination.suffix == BundleFiles.EXTENSION:
            raise OutputWriteError(
                f"A split bundle needs an output directory, got file path {output}",
                destination=output,
                suggestions=["Pass a directory to -o/--output, or use --split off"],
            )
        return destination
    if destination.suffix == BundleFiles.EXTENSION:
        return destination
    return destination / SINGLE_FILE_NAME


def write_result(result: GenerationResult, output: str) -> List[Path]:
    """Write every file of a generation result and return the written paths."""
    destination = resolve_destination(output, result.split)
    if not result.split:
        return [write_file(destination, result.text)]
    return [write_file(destination / name, content) for name, content in sorted(result.files.items())]
