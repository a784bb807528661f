"""
Per-kind field extractors.

Each extractor takes a discovered class and the shared ExtractionContext and
returns its field descriptors; the kind decides which one runs.
"""

from typing import Callable, Dict, List

from ..domain.models import ClassKind, FieldDescriptor
from .base import ExtractionContext, sorted_fields, unique_fields
from .entities import extract_entity_fields
from .producers import extract_producer_fields
from .validators import extract_validator_fields, extract_validator_rules

EXTRACTORS: Dict[ClassKind, Callable[[type, ExtractionContext], List[FieldDescriptor]]] = {
    ClassKind.ENTITY: extract_entity_fields,
    ClassKind.PRODUCER: extract_producer_fields,
    ClassKind.VALIDATOR: extract_validator_fields,
}

__all__ = [
    'EXTRACTORS',
    'ExtractionContext',
    'extract_entity_fields',
    'extract_producer_fields',
    'extract_validator_fields',
    'extract_validator_rules',
    'sorted_fields',
    'unique_fields',
]
