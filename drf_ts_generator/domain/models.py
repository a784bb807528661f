"""
Core domain models for the TypeScript generator.

These models describe what the pipeline passes between its stages: discovered
classes, extracted fields and relations, type expressions and the generated
artifacts. Every stage consumes the previous stage's objects without mutating
them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from ..constants import TargetTypes


class ClassKind(Enum):
    """The three kinds of classes the generator inspects."""

    ENTITY = "entity"
    PRODUCER = "producer"
    VALIDATOR = "validator"

    @property
    def label(self) -> str:
        """Human readable label used in comments and logs."""
        return {
            ClassKind.ENTITY: "model",
            ClassKind.PRODUCER: "serializer",
            ClassKind.VALIDATOR: "form",
        }[self]


class FieldOrigin:
    """Names of the strategies a field can come from."""

    DECLARED = "declared"
    STORAGE = "storage"
    PRIMARY_KEY = "primary_key"
    TIMESTAMP = "timestamp"
    ACCESSOR = "accessor"
    RELATION = "relation"
    EXECUTION = "execution"
    STATIC = "static"
    DOC = "doc"
    SERIALIZER_FIELD = "serializer_field"
    SOURCE = "source"
    ENTITY = "entity"
    HEURISTIC = "heuristic"
    FALLBACK = "fallback"
    RULES = "rules"


@dataclass(frozen=True)
class CandidateClass:
    """A class found by discovery, bound to its kind."""

    qualified_name: str
    kind: ClassKind
    cls: Any = field(compare=False, repr=False, hash=False)
    # Module path stripped when building name prefixes and domain keys
    base_namespace: str = ""

    @property
    def name(self) -> str:
        return self.qualified_name.rsplit(".", 1)[-1]

    @property
    def module(self) -> str:
        return self.qualified_name.rsplit(".", 1)[0] if "." in self.qualified_name else ""

    def package_segments(self, include_module: bool = False) -> List[str]:
        """
        Package segments between the base namespace and the class.

        The leaf module is excluded unless ``include_module`` is set, so
        ``base.admin.users.Foo`` yields ``['admin']`` or ``['admin', 'users']``.
        """
        module_parts = self.module.split(".") if self.module else []
        base_parts = self.base_namespace.split(".") if self.base_namespace else []
        if module_parts[:len(base_parts)] == base_parts:
            module_parts = module_parts[len(base_parts):]
        return module_parts if include_module else module_parts[:-1]


# =============================================================================
# TYPE EXPRESSIONS
# =============================================================================

class TypeExpression:
    """Base class of the target type variants."""

    def render(self) -> str:
        raise NotImplementedError

    @property
    def is_unresolved(self) -> bool:
        return False

    @property
    def is_numeric(self) -> bool:
        return False

    def references(self) -> FrozenSet[str]:
        """Interface names this expression points at."""
        return frozenset()


@dataclass(frozen=True)
class Primitive(TypeExpression):
    name: str

    def render(self) -> str:
        return self.name

    @property
    def is_numeric(self) -> bool:
        return self.name == TargetTypes.NUMBER


@dataclass(frozen=True)
class ArrayOf(TypeExpression):
    element: TypeExpression

    def render(self) -> str:
        inner = self.element.render()
        if " " in inner:
            inner = f"({inner})"
        return f"{inner}[]"

    @property
    def is_unresolved(self) -> bool:
        return self.element.is_unresolved

    def references(self) -> FrozenSet[str]:
        return self.element.references()


@dataclass(frozen=True)
class Record(TypeExpression):
    value: TypeExpression = Primitive(TargetTypes.UNKNOWN)

    def render(self) -> str:
        return f"Record<string, {self.value.render()}>"


@dataclass(frozen=True)
class Reference(TypeExpression):
    name: str

    def render(self) -> str:
        return self.name

    def references(self) -> FrozenSet[str]:
        return frozenset({self.name})


@dataclass(frozen=True)
class LiteralUnion(TypeExpression):
    values: Tuple[str, ...]
    numeric: bool = False

    def render(self) -> str:
        if self.numeric:
            return " | ".join(self.values)
        return " | ".join(quote_literal(value) for value in self.values)


@dataclass(frozen=True)
class Unresolved(TypeExpression):
    """Marker for a producer field no strategy has typed yet."""

    def render(self) -> str:
        raise ValueError("Unresolved type expressions must be closed before rendering")

    @property
    def is_unresolved(self) -> bool:
        return True


def quote_literal(value: str) -> str:
    """Render a string as a single-quoted TypeScript literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


# =============================================================================
# FIELDS, RELATIONS AND RULES
# =============================================================================

@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    type: TypeExpression
    nullable: bool = True
    origin: str = FieldOrigin.DECLARED

    def with_type(self, type_expression: TypeExpression, origin: str) -> "FieldDescriptor":
        return FieldDescriptor(self.name, type_expression, self.nullable, origin)

    def renamed(self, name: str) -> "FieldDescriptor":
        return FieldDescriptor(name, self.type, self.nullable, self.origin)


@dataclass(frozen=True)
class RelationDescriptor:
    """An association from one model to another."""

    name: str
    cardinality: str
    # Display name of the related model, None when it is not a discovered model
    related: Optional[str] = None


@dataclass(frozen=True)
class RuleToken:
    name: str
    params: Tuple[str, ...] = ()

    def __str__(self) -> str:
        if not self.params:
            return self.name
        return f"{self.name}:{','.join(self.params)}"


@dataclass(frozen=True)
class ValidationRule:
    """The rule tokens of one input field, in declaration order."""

    field: str
    tokens: Tuple[RuleToken, ...] = ()
    # Collapsed from a wildcard key such as ``items.*``
    wildcard: bool = False

    @property
    def names(self) -> List[str]:
        return [token.name for token in self.tokens]

    def has(self, name: str) -> bool:
        return any(token.name == name for token in self.tokens)

    def params(self, name: str) -> Tuple[str, ...]:
        for token in self.tokens:
            if token.name == name:
                return token.params
        return ()


# =============================================================================
# GENERATED OUTPUT
# =============================================================================

@dataclass(frozen=True)
class GeneratedArtifact:
    """
    Rendered declarations for one class.

    A None text means the sub-artifact is omitted; error artifacts carry only
    the error comment in ``interface_text``.
    """

    candidate: CandidateClass
    display_name: str
    interface_text: Optional[str]
    array_alias_text: Optional[str] = None
    paginated_alias_text: Optional[str] = None
    references: FrozenSet[str] = frozenset()
    is_error: bool = False

    @property
    def kind(self) -> ClassKind:
        return self.candidate.kind


class SchemaVariant(Enum):
    YUP = "yup"
    ZOD = "zod"


@dataclass(frozen=True)
class SchemaArtifact:
    """A runtime validation schema for one validator in one library syntax."""

    variant: SchemaVariant
    candidate: CandidateClass
    schema_name: str
    field_clauses: Tuple[Tuple[str, str], ...]
    text: str


class NameBinding:
    """Collision free display names keyed by qualified class name."""

    def __init__(self, names: Dict[str, str]):
        self._names = dict(names)
        displays = list(self._names.values())
        if len(displays) != len(set(displays)):
            raise ValueError("Display names must be unique")

    def __getitem__(self, candidate: CandidateClass) -> str:
        return self._names[candidate.qualified_name]

    def __contains__(self, candidate: CandidateClass) -> bool:
        return candidate.qualified_name in self._names

    def __len__(self) -> int:
        return len(self._names)

    def get(self, qualified_name: str, default: Optional[str] = None) -> Optional[str]:
        return self._names.get(qualified_name, default)

    def items(self):
        return self._names.items()


@dataclass
class DomainGroup:
    """One output file worth of artifacts."""

    key: str
    artifacts: List[GeneratedArtifact] = field(default_factory=list)
    schemas: List[SchemaArtifact] = field(default_factory=list)
    # (module, names) pairs imported by this group
    shared_imports: List[Tuple[str, Tuple[str, ...]]] = field(default_factory=list)

    def declared_names(self) -> FrozenSet[str]:
        return frozenset(a.display_name for a in self.artifacts if not a.is_error)


@dataclass
class GenerationResult:
    """
    Result of a generation run.

    ``files`` maps relative file names to their text; a single-file run has
    exactly one entry.
    """

    files: Dict[str, str]
    split: bool = False
    counts: Dict[str, int] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        """Text of a single-file run."""
        if len(self.files) != 1:
            raise ValueError("Result holds a file bundle, not a single file")
        return next(iter(self.files.values()))
