"""
Shared pieces of the per-kind field extractors.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..config_validation import GeneratorConfig
from ..domain.models import FieldDescriptor
from ..domain.type_resolver import TypeResolver
from ..exceptions import ExtractionError
from ..execution import bounded_call

logger = logging.getLogger(__name__)


@dataclass
class ExtractionContext:
    """
    Read-only state shared by every extractor during one run.

    ``entity_classes`` and ``producer_classes`` map discovered classes to their
    display names.
    """

    config: GeneratorConfig
    resolver: TypeResolver
    entity_classes: Dict[type, str] = field(default_factory=dict)
    producer_classes: Dict[type, str] = field(default_factory=dict)

    def invoke(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Call into inspected code under the configured execution bound."""
        return bounded_call(func, self.config.execution_timeout, *args, **kwargs)

    def producer_by_name(self, name: str) -> Optional[type]:
        """A discovered serializer class by simple or display name, when unambiguous."""
        matches = [cls for cls, display in self.producer_classes.items()
                   if cls.__name__ == name or display == name]
        return matches[0] if len(matches) == 1 else None


def unique_fields(fields: List[FieldDescriptor]) -> List[FieldDescriptor]:
    """Remove duplicate fields, keeping the first occurrence."""
    seen = set()
    unique = []
    for descriptor in fields:
        if descriptor.name not in seen:
            seen.add(descriptor.name)
            unique.append(descriptor)
    return unique


def sorted_fields(fields: List[FieldDescriptor]) -> List[FieldDescriptor]:
    return sorted(fields, key=lambda f: f.name)


def run_strategies(
    class_name: str,
    strategies: List[Callable[[], List[FieldDescriptor]]],
) -> List[FieldDescriptor]:
    """
    Run base strategies in priority order and return the first non-empty result.

    A strategy that raises ExtractionError counts as empty; the next one runs.
    """
    for strategy in strategies:
        try:
            fields = strategy()
        except ExtractionError as e:
            logger.debug(f"{e.context.get('strategy', strategy.__name__)} failed for {class_name}: {e.message}")
            continue
        if fields:
            return fields
    return []
