"""
Domain module for the TypeScript generator.

Holds the data model passed between pipeline stages together with the pure
logic that works on it: type resolution, relation handling, naming and
partitioning. Nothing here writes files.
"""

from .models import (
    ArrayOf,
    CandidateClass,
    ClassKind,
    DomainGroup,
    FieldDescriptor,
    FieldOrigin,
    GeneratedArtifact,
    GenerationResult,
    LiteralUnion,
    NameBinding,
    Primitive,
    Record,
    Reference,
    RelationDescriptor,
    RuleToken,
    SchemaArtifact,
    SchemaVariant,
    TypeExpression,
    Unresolved,
    ValidationRule,
)

from .naming import (
    build_unique_names,
    pluralize,
    property_key,
    to_pascal_case,
    to_snake_case,
)

from .type_resolver import TypeResolver, RuleKind, rule_kind

from .relationships import RelationResolver, merge_relations

from .partitioning import DomainPartitioner

__all__ = [
    # Core models
    'ArrayOf',
    'CandidateClass',
    'ClassKind',
    'DomainGroup',
    'FieldDescriptor',
    'FieldOrigin',
    'GeneratedArtifact',
    'GenerationResult',
    'LiteralUnion',
    'NameBinding',
    'Primitive',
    'Record',
    'Reference',
    'RelationDescriptor',
    'RuleToken',
    'SchemaArtifact',
    'SchemaVariant',
    'TypeExpression',
    'Unresolved',
    'ValidationRule',

    # Naming
    'build_unique_names',
    'pluralize',
    'property_key',
    'to_pascal_case',
    'to_snake_case',

    # Types
    'TypeResolver',
    'RuleKind',
    'rule_kind',

    # Relationships
    'RelationResolver',
    'merge_relations',

    # Partitioning
    'DomainPartitioner',
]
