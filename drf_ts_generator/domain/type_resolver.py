"""
Type resolution from the different type token sources.

Every source of type information (model field casts, database column types,
annotations and docstrings, runtime values and validation rules) goes through
TypeResolver. Unknown tokens resolve to the configured fallback; nothing here
raises for an unrecognised type.
"""

import logging
import re
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from ..constants import (
    ARRAY_FIELD_TYPES,
    ARRAY_WRAPPERS,
    DJANGO_FIELD_TYPE_MAP,
    INTEGER_KEY_TYPES,
    JSON_FIELD_TYPES,
    KNOWN_EXTERNAL_TYPES,
    OPTIONAL_WRAPPERS,
    PYTHON_TYPE_MAP,
    RECORD_WRAPPERS,
    RuleFamilies,
    TargetTypes,
)
from .models import (
    ArrayOf,
    LiteralUnion,
    Primitive,
    Record,
    Reference,
    TypeExpression,
    Unresolved,
    ValidationRule,
)

logger = logging.getLogger(__name__)

_NUMERIC_LITERAL_RE = re.compile(r"^-?\d+(\.\d+)?$")
_NONE_TOKENS = {"none", "nonetype", "null"}


class RuleKind:
    """Base schema kinds derived from rule tokens."""

    ARRAY = "array"
    NUMBER = "number"
    BOOLEAN = "boolean"
    FILE = "file"
    DATE = "date"
    JSON = "json"
    STRING = "string"


# Ordered (family, kind) pairs checked for each token
_RULE_FAMILIES: Tuple[Tuple[frozenset, str], ...] = (
    (RuleFamilies.NUMERIC, RuleKind.NUMBER),
    (RuleFamilies.BOOLEAN, RuleKind.BOOLEAN),
    (RuleFamilies.ARRAY, RuleKind.ARRAY),
    (RuleFamilies.FILE, RuleKind.FILE),
    (RuleFamilies.DATE, RuleKind.DATE),
    (RuleFamilies.JSON, RuleKind.JSON),
    (RuleFamilies.STRING, RuleKind.STRING),
)


def rule_kind(rule: ValidationRule) -> str:
    """
    Derive the base kind of a validated field.

    Wildcard keys and an explicit ``array`` token win; otherwise the first token
    belonging to a known family decides, and anything else is a string.
    """
    if rule.wildcard or rule.has("array"):
        return RuleKind.ARRAY
    for name in rule.names:
        for family, kind in _RULE_FAMILIES:
            if name in family:
                return kind
    return RuleKind.STRING


def enum_values(rule: ValidationRule) -> Optional[Tuple[str, ...]]:
    """Literal values of the first ``in``/``in_array`` token, if any."""
    for token in rule.tokens:
        if token.name in RuleFamilies.ENUM and token.params:
            return token.params
    return None


def is_numeric_literal(value: str) -> bool:
    return bool(_NUMERIC_LITERAL_RE.match(value.strip()))


def is_optional_rule(rule: ValidationRule) -> bool:
    """A field is optional unless it is required and neither nullable nor sometimes."""
    if not rule.has(RuleFamilies.REQUIRED):
        return True
    return rule.has(RuleFamilies.NULLABLE) or rule.has(RuleFamilies.SOMETIMES)


def split_generic(token: str) -> Tuple[str, List[str]]:
    """
    Split ``Name[A, B[C]]`` into ``('Name', ['A', 'B[C]'])``.

    Tokens without brackets come back with an empty argument list.
    """
    token = token.strip()
    if not token.endswith("]") or "[" not in token:
        return token, []
    head, _, inner = token.partition("[")
    return head.strip(), split_top_level(inner[:-1], ",")


def split_top_level(text: str, separator: str) -> List[str]:
    """Split on a separator that is not nested inside brackets."""
    parts: List[str] = []
    depth = 0
    current = []
    for char in text:
        if char in "[(":
            depth += 1
        elif char in "])":
            depth -= 1
        if char == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return parts


def annotation_to_token(annotation: Any) -> Optional[str]:
    """Turn a runtime annotation object (or string annotation) into a type token."""
    if annotation is None:
        return None
    if isinstance(annotation, str):
        return annotation.strip().strip("'\"")
    if isinstance(annotation, type) and not getattr(annotation, "__args__", None):
        return annotation.__name__
    text = str(annotation)
    # typing.Optional[datetime.date] -> Optional[date]
    return re.sub(r"\b(?:[A-Za-z_][A-Za-z0-9_]*\.)+([A-Za-z_][A-Za-z0-9_]*)", r"\1", text)


class TypeResolver:
    """
    Maps type tokens to TypeScript type expressions.

    Args:
        fallback: Configured fallback type ('unknown', 'any' or 'never')
        references: Discovered classes mapped to their interface names
    """

    def __init__(self, fallback: str = TargetTypes.UNKNOWN, references: Optional[Dict[type, str]] = None):
        if fallback not in TargetTypes.FALLBACKS:
            raise ValueError(f"Unsupported fallback type: {fallback}")
        self.fallback = Primitive(fallback)
        # 'never' is not a usable element or value type
        self.element_fallback = Primitive(TargetTypes.UNKNOWN if fallback == TargetTypes.NEVER else fallback)
        self.references: Dict[type, str] = dict(references or {})

        by_name: Dict[str, List[str]] = {}
        for cls, display in self.references.items():
            by_name.setdefault(cls.__name__, []).append(display)
            by_name.setdefault(display, []).append(display)
        # Only unambiguous simple names can be matched from text
        self._names = {name: sorted(set(displays))[0] for name, displays in by_name.items()
                       if len(set(displays)) == 1}

    # --- Building blocks ---

    def record(self) -> Record:
        return Record(self.element_fallback)

    def array_of_fallback(self) -> ArrayOf:
        return ArrayOf(self.element_fallback)

    def reference_for_class(self, cls: Any) -> Optional[Reference]:
        if isinstance(cls, type) and cls in self.references:
            return Reference(self.references[cls])
        return None

    def reference_for_name(self, name: str) -> Optional[Reference]:
        display = self._names.get(name.rsplit(".", 1)[-1])
        return Reference(display) if display else None

    def close(self, expression: TypeExpression) -> TypeExpression:
        """Replace the unresolved marker with the fallback."""
        if isinstance(expression, Unresolved):
            return self.fallback
        if isinstance(expression, ArrayOf) and expression.is_unresolved:
            return ArrayOf(self.element_fallback)
        return expression

    def resolve(self, cast: Optional[TypeExpression] = None, storage_type: Optional[str] = None) -> TypeExpression:
        """Cast wins over the storage column type; neither gives the fallback."""
        if cast is not None:
            return cast
        if storage_type:
            return self.from_storage(storage_type)
        return self.fallback

    # --- Model fields and columns ---

    def from_model_field(self, model_field: Any) -> TypeExpression:
        """Type of a Django model field, following relations to their target field."""
        if getattr(model_field, "many_to_many", False):
            related = getattr(model_field, "related_model", None)
            if not isinstance(related, type):
                return self.array_of_fallback()
            return ArrayOf(self.key_type(related._meta.pk))
        if getattr(model_field, "is_relation", False) and getattr(model_field, "concrete", False):
            target = getattr(model_field, "target_field", None)
            if target is not None and target is not model_field:
                return self.from_model_field(target)
            return self.fallback

        internal_type = model_field.get_internal_type()
        if internal_type in ARRAY_FIELD_TYPES:
            base_field = getattr(model_field, "base_field", None)
            if base_field is None:
                return self.array_of_fallback()
            return ArrayOf(self.from_model_field(base_field))
        if internal_type in JSON_FIELD_TYPES:
            return self.record()
        return self.from_cast(internal_type)

    def from_cast(self, internal_type: str) -> TypeExpression:
        mapped = DJANGO_FIELD_TYPE_MAP.get(internal_type)
        return Primitive(mapped) if mapped else self.fallback

    def key_type(self, pk_field: Any) -> Primitive:
        """Numeric for integer and auto keys, string for everything else."""
        target = pk_field
        while getattr(target, "is_relation", False) and getattr(target, "target_field", None) not in (None, target):
            target = target.target_field
        try:
            internal_type = target.get_internal_type()
        except AttributeError:
            return Primitive(TargetTypes.STRING)
        if internal_type in INTEGER_KEY_TYPES:
            return Primitive(TargetTypes.NUMBER)
        return Primitive(TargetTypes.STRING)

    def from_storage(self, type_name: str) -> TypeExpression:
        """Substring rules over a database column type name."""
        lowered = type_name.lower()
        if any(t in lowered for t in ("int", "serial", "autofield")):
            return Primitive(TargetTypes.NUMBER)
        if any(t in lowered for t in ("float", "double", "decimal", "numeric", "real", "money")):
            return Primitive(TargetTypes.NUMBER)
        if "bool" in lowered:
            return Primitive(TargetTypes.BOOLEAN)
        if "json" in lowered:
            return self.array_of_fallback()
        if "date" in lowered or "time" in lowered:
            return Primitive(TargetTypes.DATE)
        return Primitive(TargetTypes.STRING)

    # --- Annotations and docstrings ---

    def from_annotation(self, annotation: Any) -> TypeExpression:
        if isinstance(annotation, type):
            reference = self.reference_for_class(annotation)
            if reference is not None:
                return reference
        token = annotation_to_token(annotation)
        return self.from_token(token) if token else self.fallback

    def from_token(self, token: str) -> TypeExpression:
        """
        Resolve a textual type token.

        Handles ``X[]`` suffixes, ``X | None`` unions, generic wrappers such as
        ``Optional[X]``, ``list[X]`` and ``dict[K, V]``, scalar names, well-known
        external names and discovered class names.
        """
        token = (token or "").strip()
        if not token:
            return self.fallback

        if token.endswith("[]"):
            return ArrayOf(self._element(self.from_token(token[:-2])))

        union = [part for part in split_top_level(token, "|") if part.lower() not in _NONE_TOKENS]
        if len(union) != 1 or union[0] != token:
            return self.from_token(union[0]) if len(union) == 1 else self.fallback

        head, args = split_generic(token)
        name = head.rsplit(".", 1)[-1]
        lowered = name.lower()

        if args:
            if lowered in OPTIONAL_WRAPPERS:
                return self.from_token(args[0])
            if lowered == "union":
                return self.from_token(" | ".join(args))
            if lowered in ARRAY_WRAPPERS:
                return ArrayOf(self._element(self.from_token(args[0])))
            if lowered in RECORD_WRAPPERS:
                if len(args) == 2:
                    return Record(self._element(self.from_token(args[1])))
                return self.record()

        if lowered in PYTHON_TYPE_MAP:
            return Primitive(PYTHON_TYPE_MAP[lowered])
        reference = self.reference_for_name(name)
        if reference is not None:
            return reference
        external = KNOWN_EXTERNAL_TYPES.get(lowered)
        if external == "string":
            return Primitive(TargetTypes.STRING)
        if external == "array":
            return self.array_of_fallback()
        if external == "record":
            return self.record()
        return self.fallback

    def _element(self, expression: TypeExpression) -> TypeExpression:
        if expression == self.fallback:
            return self.element_fallback
        return expression

    # --- Runtime values ---

    def from_value(self, value: Any) -> TypeExpression:
        """Infer a type from a value sampled by executing inspected code."""
        if value is None:
            return Unresolved()
        if isinstance(value, bool):
            return Primitive(TargetTypes.BOOLEAN)
        if isinstance(value, (int, float, Decimal)):
            return Primitive(TargetTypes.NUMBER)
        if isinstance(value, str):
            return Primitive(TargetTypes.STRING)
        # ``Other(...).data`` keeps a link to the serializer that produced it
        owner = getattr(value, "serializer", None)
        if owner is not None:
            child = getattr(owner, "child", None)
            reference = self.reference_for_class(type(child if child is not None else owner))
            if reference is not None:
                return ArrayOf(reference) if child is not None else reference
        if isinstance(value, Mapping):
            return self.record()
        if isinstance(value, (list, tuple)):
            if not value:
                return ArrayOf(Unresolved())
            return self.array_of_fallback()
        reference = self.reference_for_class(type(value))
        if reference is not None:
            return reference
        if hasattr(value, "__dict__"):
            return self.record()
        return Primitive(TargetTypes.STRING)

    # --- Validation rules ---

    def from_rule(self, rule: ValidationRule) -> TypeExpression:
        """Type of a validated input field; literal ``in`` values override the base type."""
        values = enum_values(rule)
        if values:
            return self.literal_union(values)

        kind = rule_kind(rule)
        if kind == RuleKind.ARRAY:
            return self.array_of_fallback()
        if kind == RuleKind.NUMBER:
            return Primitive(TargetTypes.NUMBER)
        if kind == RuleKind.BOOLEAN:
            return Primitive(TargetTypes.BOOLEAN)
        if kind == RuleKind.FILE:
            return Primitive(TargetTypes.FILE)
        if kind == RuleKind.JSON:
            return self.record()
        return Primitive(TargetTypes.STRING)

    @staticmethod
    def literal_union(values: Tuple[str, ...]) -> LiteralUnion:
        """Numeric values stay bare; any non-numeric value quotes them all."""
        numeric = all(is_numeric_literal(v) for v in values)
        if numeric:
            return LiteralUnion(tuple(v.strip() for v in values), numeric=True)
        return LiteralUnion(tuple(values), numeric=False)
