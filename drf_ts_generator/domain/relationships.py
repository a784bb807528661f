"""
Relationship detection for Django models.

Associations are detected with three ordered strategies (declared type,
docstring return type, method body analysis). The related model is then read
from descriptor metadata or by invoking the member on an unsaved instance.
"""

import functools
import inspect
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from django.db.models import Model

from ..constants import (
    MANY_RELATION_CALLS,
    ONE_RELATION_CALLS,
    OPTIONAL_WRAPPERS,
    RELATION_KINDS,
    SKIPPED_MODEL_MEMBERS,
    Cardinality,
)
from ..source_analysis import (
    call_name,
    docstring_return_type,
    parse_function,
    returned_expressions,
)
from .models import ArrayOf, FieldDescriptor, FieldOrigin, Reference, RelationDescriptor
from .naming import to_snake_case
from .type_resolver import TypeResolver, annotation_to_token, split_generic, split_top_level

logger = logging.getLogger(__name__)

_FORWARD_DESCRIPTORS = ("ForwardManyToOneDescriptor", "ForwardOneToOneDescriptor")


def is_library_class(klass: type) -> bool:
    """Django and builtin classes never contribute relation members."""
    module = getattr(klass, "__module__", "") or ""
    return klass is object or module.split(".")[0] in ("django", "builtins")


def iter_model_members(model_cls: type) -> Iterable[Tuple[str, Any]]:
    """Public members defined on the model or its non-library ancestors, first definition wins."""
    seen = set()
    for klass in model_cls.__mro__:
        if is_library_class(klass):
            continue
        for name, value in vars(klass).items():
            if name in seen:
                continue
            seen.add(name)
            if name.startswith("_") or name in SKIPPED_MODEL_MEMBERS:
                continue
            yield name, value


def _member_function(member: Any) -> Optional[Callable]:
    """Underlying function of a method, property or cached_property."""
    if isinstance(member, property):
        return member.fget
    if isinstance(member, functools.cached_property):
        return member.func
    if type(member).__name__ == "cached_property":
        # django.utils.functional.cached_property keeps the original as real_func
        return getattr(member, "real_func", None) or getattr(member, "func", None)
    if inspect.isfunction(member):
        return member
    return None


def has_required_parameters(func: Callable) -> bool:
    try:
        parameters = list(inspect.signature(func).parameters.values())[1:]
    except (TypeError, ValueError):
        return True
    return any(
        p.default is inspect.Parameter.empty
        and p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD,
                       inspect.Parameter.KEYWORD_ONLY)
        for p in parameters
    )


class RelationResolver:
    """
    Detects model associations and resolves their related model.

    Args:
        resolver: TypeResolver holding the discovered model names
        entity_classes: Discovered model classes mapped to their display names
        invoke: Callable running a zero-argument function under the execution bound
    """

    def __init__(
        self,
        resolver: TypeResolver,
        entity_classes: Dict[type, str],
        invoke: Callable[[Callable[[], Any]], Any],
    ):
        self.resolver = resolver
        self.entity_classes = entity_classes
        self.invoke = invoke
        self._entity_names = {cls.__name__ for cls in entity_classes} | set(entity_classes.values())

    # --- Detection strategies ---

    def _cardinality_from_token(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        parts = [p for p in split_top_level(token.strip(), "|") if p.lower() not in ("none", "nonetype")]
        if len(parts) != 1:
            return None
        candidate = parts[0] if "[" in parts[0] else parts[0].split()[0]
        head, args = split_generic(candidate)
        name = head.rsplit(".", 1)[-1]
        if name.lower() in OPTIONAL_WRAPPERS and args:
            return self._cardinality_from_token(args[0])
        if name in RELATION_KINDS:
            return RELATION_KINDS[name]
        if name in self._entity_names:
            return Cardinality.ONE
        return None

    def from_declared_type(self, member: Any) -> Optional[str]:
        """Strategy 1: descriptor type or the return annotation."""
        descriptor_kind = type(member).__name__
        if descriptor_kind in RELATION_KINDS and not callable(member):
            return RELATION_KINDS[descriptor_kind]
        func = _member_function(member)
        if func is None:
            return None
        annotation = getattr(func, "__annotations__", {}).get("return")
        if annotation is None:
            return None
        if isinstance(annotation, type) and annotation in self.entity_classes:
            return Cardinality.ONE
        return self._cardinality_from_token(annotation_to_token(annotation))

    def from_docstring(self, member: Any) -> Optional[str]:
        """Strategy 2: ``:rtype:`` or ``Returns:`` naming a known kind."""
        func = _member_function(member)
        if func is None:
            return None
        return self._cardinality_from_token(docstring_return_type(inspect.getdoc(func)))

    def from_method_body(self, member: Any) -> Optional[str]:
        """Strategy 3: outermost queryset call of a returned expression."""
        func = _member_function(member)
        if func is None:
            return None
        node = parse_function(func)
        if node is None:
            return None
        names = [call_name(expression) for expression in returned_expressions(node)]
        if any(name in MANY_RELATION_CALLS for name in names):
            return Cardinality.MANY
        if any(name in ONE_RELATION_CALLS for name in names):
            return Cardinality.ONE
        return None

    def detect(self, member: Any) -> Optional[str]:
        """Cardinality of a member when it is an association, first strategy wins."""
        for strategy in (self.from_declared_type, self.from_docstring, self.from_method_body):
            cardinality = strategy(member)
            if cardinality:
                return cardinality
        return None

    # --- Related model resolution ---

    @staticmethod
    def descriptor_related_model(descriptor: Any) -> Optional[type]:
        kind = type(descriptor).__name__
        if kind in _FORWARD_DESCRIPTORS:
            return descriptor.field.related_model
        if kind == "ReverseOneToOneDescriptor":
            return descriptor.related.related_model
        if kind == "ReverseManyToOneDescriptor":
            return descriptor.rel.related_model
        if kind == "ManyToManyDescriptor":
            return descriptor.rel.related_model if descriptor.reverse else descriptor.rel.model
        return None

    def invoked_related_model(self, model_cls: type, name: str, member: Any) -> Optional[type]:
        """
        Invoke a member on an unsaved instance and read the model it returns.

        Exceptions propagate so the caller can skip the member.
        """
        instance = self.invoke(model_cls)
        if inspect.isfunction(member):
            value = self.invoke(getattr(instance, name))
        else:
            value = self.invoke(lambda: getattr(instance, name))
        model = getattr(value, "model", None)
        if inspect.isclass(model) and issubclass(model, Model):
            return model
        if isinstance(value, Model):
            return type(value)
        return None

    def resolve(self, model_cls: type) -> List[RelationDescriptor]:
        """All associations of a model, in member order."""
        relations = []
        for name, member in iter_model_members(model_cls):
            func = _member_function(member)
            if func is not None and inspect.isfunction(member) and has_required_parameters(func):
                continue

            cardinality = self.detect(member)
            if cardinality is None:
                continue

            try:
                if type(member).__name__ in RELATION_KINDS and not callable(member):
                    related_model = self.descriptor_related_model(member)
                else:
                    related_model = self.invoked_related_model(model_cls, name, member)
            except Exception as e:
                logger.debug(f"Skipping relation candidate {model_cls.__name__}.{name}: {e}")
                continue
            if related_model is None:
                # dict.get(), dict.values() and friends match the call families too
                logger.debug(f"Skipping {model_cls.__name__}.{name}: it does not return a model or queryset")
                continue

            relations.append(RelationDescriptor(
                name=to_snake_case(name),
                cardinality=cardinality,
                related=self.entity_classes.get(related_model),
            ))
        return relations

    def to_field(self, relation: RelationDescriptor) -> FieldDescriptor:
        if relation.related is None:
            type_expression = self.resolver.fallback
        elif relation.cardinality == Cardinality.MANY:
            type_expression = ArrayOf(Reference(relation.related))
        else:
            type_expression = Reference(relation.related)
        return FieldDescriptor(relation.name, type_expression, nullable=True, origin=FieldOrigin.RELATION)


def merge_relations(fields: List[FieldDescriptor], relation_fields: List[FieldDescriptor]) -> List[FieldDescriptor]:
    """
    Merge relation fields into a field list.

    When a relation shares its name with an existing field, a numeric field is
    kept under ``<name>_count`` next to the relation; any other field is
    replaced by the relation.
    """
    merged = list(fields)
    for relation in relation_fields:
        index = next((i for i, f in enumerate(merged) if f.name == relation.name), None)
        if index is None:
            merged.append(relation)
            continue
        existing = merged[index]
        if existing.type.is_numeric:
            logger.debug(f"Field '{existing.name}' collides with a relation, renaming to '{existing.name}_count'")
            merged[index] = existing.renamed(f"{existing.name}_count")
            merged.append(relation)
        else:
            logger.debug(f"Field '{existing.name}' replaced by the relation of the same name")
            merged[index] = relation
    return merged
