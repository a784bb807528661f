"""
TypeScript declarations for one class.
"""

import logging
from typing import List

from jinja2 import Environment

from ..config_validation import GeneratorConfig
from ..constants import PAGINATION_TYPE_NAMES
from ..domain.models import CandidateClass, ClassKind, FieldDescriptor, GeneratedArtifact
from ..domain.naming import pluralize
from ..extractors.base import sorted_fields
from .templating import render_template

logger = logging.getLogger(__name__)

PAGINATED_WRAPPER = PAGINATION_TYPE_NAMES[0]


def render_interface(env: Environment, name: str, fields: List[FieldDescriptor]) -> str:
    """``export interface <name> { ... }`` with fields sorted by name."""
    return render_template(env, "interface.ts.j2", name=name, fields=sorted_fields(fields))


def render_array_alias(name: str) -> str:
    return f"export type {pluralize(name)} = {name}[];"


def render_paginated_alias(name: str) -> str:
    return f"export type {pluralize(name)}Paginated = {PAGINATED_WRAPPER}<{name}>;"


def build_artifact(
    env: Environment,
    candidate: CandidateClass,
    display_name: str,
    fields: List[FieldDescriptor],
    config: GeneratorConfig,
) -> GeneratedArtifact:
    """
    Render the interface and its aliases for one class.

    Forms only get an interface; models and serializers also get the array and
    paginated aliases unless those are switched off.
    """
    with_aliases = candidate.kind is not ClassKind.VALIDATOR
    references = set()
    for descriptor in fields:
        references.update(descriptor.type.references())
    references.discard(display_name)

    return GeneratedArtifact(
        candidate=candidate,
        display_name=display_name,
        interface_text=render_interface(env, display_name, fields),
        array_alias_text=render_array_alias(display_name) if with_aliases and config.include_array_types else None,
        paginated_alias_text=(render_paginated_alias(display_name)
                              if with_aliases and config.include_paginated_types else None),
        references=frozenset(references),
    )


def error_artifact(candidate: CandidateClass, display_name: str, error: Exception) -> GeneratedArtifact:
    """An inline comment standing in for a class whose extraction failed."""
    message = getattr(error, "message", None) or str(error) or type(error).__name__
    # Keep the comment on one line
    message = " ".join(message.split())
    text = f"// Error generating {candidate.kind.label} interface for {display_name}: {message}"
    return GeneratedArtifact(
        candidate=candidate,
        display_name=display_name,
        interface_text=text,
        is_error=True,
    )
