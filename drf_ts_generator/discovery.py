"""
Discovery of candidate classes under the configured scan roots.

Files are matched with a lightweight class-declaration pattern first; only
modules that declare classes are imported and checked against the kind's
base classes. Discovery is best effort: unreadable paths, import failures and
non-matching classes are logged and skipped.
"""

import importlib
import inspect
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from django.utils.module_loading import import_string

from .config_validation import GeneratorConfig
from .domain.models import CandidateClass, ClassKind
from .exceptions import DiscoveryError
from .source_analysis import scan_class_names

logger = logging.getLogger(__name__)


def module_path_for(path: Path) -> Tuple[str, Path]:
    """
    Dotted module path of a file or package directory.

    Walks up through parent directories containing ``__init__.py``.

    Returns:
        The dotted path and the directory that must be on ``sys.path``
    """
    path = path.resolve()
    parts = [] if path.name == "__init__.py" else [path.stem if path.is_file() else path.name]
    current = path.parent
    if path.name == "__init__.py":
        parts.append(current.name)
        current = current.parent
    elif path.is_dir() and not (path / "__init__.py").exists():
        return "", path
    while (current / "__init__.py").exists():
        parts.append(current.name)
        current = current.parent
    return ".".join(reversed(parts)), current


def load_base_classes(dotted_paths: List[str]) -> Tuple[type, ...]:
    """
    Import the configured base classes of a kind.

    Raises:
        DiscoveryError: If any base class cannot be imported
    """
    bases = []
    for dotted_path in dotted_paths:
        try:
            base = import_string(dotted_path)
        except ImportError as e:
            raise DiscoveryError(f"Cannot import base class '{dotted_path}': {e}", class_name=dotted_path) from e
        if not inspect.isclass(base):
            raise DiscoveryError(f"'{dotted_path}' is not a class", class_name=dotted_path)
        bases.append(base)
    return tuple(bases)


def is_abstract(cls: type) -> bool:
    meta = getattr(cls, "_meta", None)
    return bool(getattr(meta, "abstract", False)) or inspect.isabstract(cls)


def _ensure_importable(root: Path) -> None:
    root_str = str(root)
    if root_str not in sys.path:
        logger.debug(f"Adding {root_str} to sys.path for discovery")
        sys.path.insert(0, root_str)


def iter_python_files(root: Path) -> List[Path]:
    try:
        return sorted(p for p in root.rglob("*.py") if p.is_file())
    except OSError as e:
        logger.debug(f"Cannot list {root}: {e}")
        return []


def discover_kind(
    kind: ClassKind,
    roots: List[str],
    base_classes: Tuple[type, ...],
    excludes: List[str],
    namespace_override: Optional[str] = None,
) -> List[CandidateClass]:
    """
    Find every class of one kind under the given roots.

    Args:
        kind: The class kind being discovered
        roots: Directories to scan recursively
        base_classes: A class must be a strict subclass of one of these
        excludes: Qualified names to skip
        namespace_override: Base namespace to record instead of the root's module path

    Returns:
        Candidates sorted by qualified name, without duplicates
    """
    found: Dict[str, CandidateClass] = {}
    excluded = set(excludes)

    for root in roots:
        root_path = Path(root)
        if not root_path.is_dir():
            logger.debug(f"Skipping {kind.label} path {root}: not a directory")
            continue
        root_namespace, _ = module_path_for(root_path)
        base_namespace = namespace_override if namespace_override is not None else root_namespace

        for file_path in iter_python_files(root_path):
            try:
                text = file_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.debug(f"Cannot read {file_path}: {e}")
                continue
            class_names = scan_class_names(text)
            if not class_names:
                continue

            module_name, import_root = module_path_for(file_path)
            _ensure_importable(import_root)
            try:
                module = importlib.import_module(module_name)
            except Exception as e:
                logger.warning(f"Skipping {file_path}: cannot import '{module_name}': {e}")
                continue

            for class_name in class_names:
                qualified_name = f"{module_name}.{class_name}"
                if qualified_name in found:
                    continue
                if qualified_name in excluded:
                    logger.debug(f"Excluded {kind.label} {qualified_name}")
                    continue
                cls = getattr(module, class_name, None)
                if not inspect.isclass(cls) or cls.__module__ != module_name:
                    continue
                if cls in base_classes or not issubclass(cls, base_classes):
                    continue
                if is_abstract(cls):
                    logger.debug(f"Skipping abstract {kind.label} {qualified_name}")
                    continue
                found[qualified_name] = CandidateClass(
                    qualified_name=qualified_name,
                    kind=kind,
                    cls=cls,
                    base_namespace=base_namespace,
                )

    return [found[name] for name in sorted(found)]


def discover_all(config: GeneratorConfig) -> Dict[ClassKind, List[CandidateClass]]:
    """Run discovery for every enabled kind."""
    discovered: Dict[ClassKind, List[CandidateClass]] = {}
    for kind in ClassKind:
        if not config.is_enabled(kind.value):
            discovered[kind] = []
            continue
        try:
            base_classes = load_base_classes(config.base_classes_for(kind.value))
        except DiscoveryError as e:
            logger.warning(f"Skipping {kind.label} discovery: {e.message}")
            discovered[kind] = []
            continue
        discovered[kind] = discover_kind(
            kind,
            config.paths_for(kind.value),
            base_classes,
            config.excludes_for(kind.value),
            config.namespace_for(kind.value),
        )
        logger.info(f"Discovered {len(discovered[kind])} {kind.label} class(es)")
    return discovered
