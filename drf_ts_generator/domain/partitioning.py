"""
Grouping of generated artifacts into output files.
"""

import logging
import re
from typing import Dict, Iterable, List, Optional

from ..constants import BundleFiles, KindSuffixes
from .models import CandidateClass, ClassKind, DomainGroup, GeneratedArtifact, SchemaArtifact
from .naming import to_snake_case

logger = logging.getLogger(__name__)

_LEADING_WORD_RE = re.compile(r"^[A-Z][a-z0-9]*")

_KIND_SUFFIXES = {
    ClassKind.ENTITY: KindSuffixes.ENTITY,
    ClassKind.PRODUCER: KindSuffixes.PRODUCER,
    ClassKind.VALIDATOR: KindSuffixes.VALIDATOR,
}

# Group keys that would clash with the shared and aggregator files
_RESERVED_KEYS = {BundleFiles.SHARED, BundleFiles.INDEX}


def strip_kind_suffix(name: str, kind: ClassKind) -> str:
    """Remove the longest matching kind suffix, keeping the name when nothing would be left."""
    for suffix in sorted(_KIND_SUFFIXES[kind], key=len, reverse=True):
        if name.endswith(suffix) and len(name) > len(suffix):
            return name[: -len(suffix)]
    return name


class DomainPartitioner:
    """
    Assigns every artifact to exactly one domain group.

    Args:
        mode: 'namespace' (first package segment after the base namespace)
            or 'prefix' (leading capitalised word of the class name)
    """

    def __init__(self, mode: str):
        if mode not in ("namespace", "prefix"):
            raise ValueError(f"Unsupported domain split mode: {mode}")
        self.mode = mode

    def key_for(self, candidate: CandidateClass) -> str:
        key: Optional[str] = None
        if self.mode == "namespace":
            segments = candidate.package_segments()
            if segments:
                key = to_snake_case(segments[0])
        else:
            stripped = strip_kind_suffix(candidate.name, candidate.kind)
            match = _LEADING_WORD_RE.match(stripped)
            if match:
                key = to_snake_case(match.group(0))
        if not key:
            return BundleFiles.DEFAULT_DOMAIN
        if key in _RESERVED_KEYS:
            return f"{key}_domain"
        return key

    def partition(
        self,
        artifacts: Iterable[GeneratedArtifact],
        schemas: Iterable[SchemaArtifact] = (),
    ) -> List[DomainGroup]:
        """
        Group artifacts and schemas, then work out each group's imports.

        Returns:
            Groups sorted by key
        """
        groups: Dict[str, DomainGroup] = {}
        owner: Dict[str, str] = {}

        for artifact in artifacts:
            key = self.key_for(artifact.candidate)
            groups.setdefault(key, DomainGroup(key=key)).artifacts.append(artifact)
            if not artifact.is_error:
                owner[artifact.display_name] = key

        for schema in schemas:
            key = self.key_for(schema.candidate)
            groups.setdefault(key, DomainGroup(key=key)).schemas.append(schema)

        for key, group in groups.items():
            imported: Dict[str, set] = {}
            for artifact in group.artifacts:
                for name in artifact.references:
                    source = owner.get(name)
                    if source and source != key:
                        imported.setdefault(source, set()).add(name)
            group.shared_imports = [(source, tuple(sorted(names))) for source, names in sorted(imported.items())]

        logger.debug(f"Partitioned output into {len(groups)} domain group(s): {sorted(groups)}")
        return [groups[key] for key in sorted(groups)]
