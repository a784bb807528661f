"""
The generation pipeline.

discovery -> names -> field extraction -> schemas -> partitioning -> emission.
Every stage gets the same frozen GeneratorConfig. A class whose extraction
fails is replaced by an inline error comment; only writing the output can
abort a run, and that happens outside this module.
"""

import logging
from typing import Dict, List

from .codegen import Emitter, build_artifact, build_schemas, error_artifact, setup_jinja_env
from .config_validation import GeneratorConfig
from .discovery import discover_all
from .domain.models import (
    CandidateClass,
    ClassKind,
    GeneratedArtifact,
    GenerationResult,
    NameBinding,
    SchemaArtifact,
    SchemaVariant,
)
from .domain.naming import build_unique_names
from .domain.partitioning import DomainPartitioner
from .domain.type_resolver import TypeResolver
from .extractors import EXTRACTORS, ExtractionContext, extract_validator_rules
from .extractors.validators import rule_to_field

logger = logging.getLogger(__name__)


def enabled_variants(config: GeneratorConfig) -> List[SchemaVariant]:
    variants = []
    if config.generate_yup_schemas:
        variants.append(SchemaVariant.YUP)
    if config.generate_zod_schemas:
        variants.append(SchemaVariant.ZOD)
    return variants


def build_context(
    config: GeneratorConfig,
    candidates: List[CandidateClass],
    names: NameBinding,
) -> ExtractionContext:
    """Type resolver and shared lookups for one run; forms are never referenced by other types."""
    entity_classes = {c.cls: names[c] for c in candidates if c.kind is ClassKind.ENTITY}
    producer_classes = {c.cls: names[c] for c in candidates if c.kind is ClassKind.PRODUCER}
    resolver = TypeResolver(config.unknown_type_fallback, {**entity_classes, **producer_classes})
    return ExtractionContext(
        config=config,
        resolver=resolver,
        entity_classes=entity_classes,
        producer_classes=producer_classes,
    )


class Pipeline:
    """
    One generation run over every discovered class.

    Args:
        config: Validated generator configuration
    """

    def __init__(self, config: GeneratorConfig):
        self.config = config
        self.env = setup_jinja_env()
        self.variants = enabled_variants(config)
        self.artifacts: List[GeneratedArtifact] = []
        self.schemas: List[SchemaArtifact] = []
        self.errors: List[str] = []

    def process(self, candidate: CandidateClass, display_name: str, context: ExtractionContext) -> None:
        """Extract and render one class, recording an error artifact if anything raises."""
        rules = []
        try:
            if candidate.kind is ClassKind.VALIDATOR:
                rules = extract_validator_rules(candidate.cls, context)
                fields = [rule_to_field(rule, context) for rule in rules]
            else:
                fields = EXTRACTORS[candidate.kind](candidate.cls, context)
        except Exception as e:
            logger.warning(f"Failed to generate {candidate.kind.label} {candidate.qualified_name}: {e}")
            artifact = error_artifact(candidate, display_name, e)
            self.artifacts.append(artifact)
            self.errors.append(artifact.interface_text)
            return

        if not fields:
            logger.info(f"No fields found for {candidate.kind.label} {candidate.qualified_name}, skipping")
            return

        self.artifacts.append(build_artifact(self.env, candidate, display_name, fields, self.config))
        if candidate.kind is ClassKind.VALIDATOR and self.variants:
            self.schemas.extend(build_schemas(candidate, display_name, rules, self.variants))
        logger.debug(f"Generated {display_name} from {candidate.qualified_name} ({len(fields)} fields)")

    def counts(self) -> Dict[str, int]:
        counts = {kind.label: 0 for kind in ClassKind}
        for artifact in self.artifacts:
            if not artifact.is_error:
                counts[artifact.kind.label] += 1
        counts["schemas"] = len(self.schemas)
        counts["errors"] = len(self.errors)
        return counts

    def run(self) -> GenerationResult:
        self.artifacts, self.schemas, self.errors = [], [], []
        discovered = discover_all(self.config)
        candidates = [candidate for kind in ClassKind for candidate in discovered.get(kind, [])]
        names = build_unique_names(candidates)
        context = build_context(self.config, candidates, names)

        for candidate in candidates:
            self.process(candidate, names[candidate], context)

        emitter = Emitter(self.env)
        if self.config.split_by_domain == "off":
            files = emitter.emit_single(self.artifacts, self.schemas, self.config.include_paginated_types)
            split = False
        else:
            groups = DomainPartitioner(self.config.split_by_domain).partition(self.artifacts, self.schemas)
            files = emitter.emit_bundle(groups)
            split = True

        return GenerationResult(files=files, split=split, counts=self.counts(), errors=list(self.errors))


def generate(config: GeneratorConfig) -> GenerationResult:
    """Run the whole pipeline and return the rendered files."""
    return Pipeline(config).run()
