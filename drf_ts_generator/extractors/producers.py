"""
Field extraction for DRF serializers.

The output shape is sampled by running ``to_representation`` against a
NullInstance; when that fails the keys are read statically. Fields the sample
could not type are then enhanced by a chain of inference strategies, and
whatever is still unresolved falls back to the configured fallback type.
"""

import ast
import importlib
import inspect
import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional

from rest_framework import serializers
from rest_framework.settings import api_settings

from ..constants import PRODUCER_SHAPE_METHOD, FieldNames, TargetTypes
from ..domain.models import (
    ArrayOf,
    ClassKind,
    FieldDescriptor,
    FieldOrigin,
    Primitive,
    Reference,
    TypeExpression,
    Unresolved,
    ValidationRule,
)
from ..domain.partitioning import strip_kind_suffix
from ..exceptions import ExtractionError
from ..execution import NullInstance
from ..source_analysis import (
    call_name,
    class_call_assignments,
    dict_entries,
    dict_keys,
    docstring_attribute_types,
    keyword_value,
    parse_class,
    parse_function,
)
from .base import ExtractionContext, run_strategies, unique_fields
from .validators import choice_values, form_field_tokens

logger = logging.getLogger(__name__)

_NUMBER_CASTS = {"int", "float", "Decimal"}
_DATE_FORMAT_CALLS = {"isoformat", "strftime", "date_format"}


def _is_library_class(klass: type) -> bool:
    return klass is object or (klass.__module__ or "").split(".")[0] in ("rest_framework", "django")


def own_shape_method(producer_cls: type) -> Optional[Callable]:
    """The nearest user-defined ``to_representation``, skipping DRF's own."""
    for klass in producer_cls.__mro__:
        if _is_library_class(klass):
            return None
        if PRODUCER_SHAPE_METHOD in vars(klass):
            return vars(klass)[PRODUCER_SHAPE_METHOD]
    return None


def _instantiate(producer_cls: type, instance: Any) -> Any:
    return producer_cls(instance, context={"request": None})


# =============================================================================
# BASE EXTRACTION
# =============================================================================

def sample_representation(producer_cls: type, context: ExtractionContext) -> Mapping:
    """
    Run the serializer against a NullInstance and return its representation.

    Raises:
        ExtractionError: If the call raises, times out or returns a non-mapping
    """
    instance = NullInstance()

    def _run():
        return _instantiate(producer_cls, instance).to_representation(instance)

    try:
        data = context.invoke(_run)
    except ExtractionError:
        raise
    except Exception as e:
        raise ExtractionError(
            f"{PRODUCER_SHAPE_METHOD}() raised {type(e).__name__}: {e}",
            class_name=producer_cls.__name__,
            strategy="execution",
        ) from e
    if not isinstance(data, Mapping):
        raise ExtractionError(
            f"{PRODUCER_SHAPE_METHOD}() returned {type(data).__name__}, expected a mapping",
            class_name=producer_cls.__name__,
            strategy="execution",
        )
    return data


def execution_fields(producer_cls: type, context: ExtractionContext) -> List[FieldDescriptor]:
    data = sample_representation(producer_cls, context)
    fields = []
    for key, value in data.items():
        # Non-string keys never become properties
        if not isinstance(key, str):
            continue
        fields.append(FieldDescriptor(key, context.resolver.from_value(value), True, FieldOrigin.EXECUTION))
    return fields


def static_fields(producer_cls: type, context: ExtractionContext) -> List[FieldDescriptor]:
    """Declared serializer field names plus keys built in ``to_representation``."""
    names: List[str] = list(getattr(producer_cls, "_declared_fields", {}) or {})
    meta_fields = getattr(getattr(producer_cls, "Meta", None), "fields", None)
    if isinstance(meta_fields, (list, tuple)):
        names.extend(name for name in meta_fields if isinstance(name, str))
    if not names:
        class_node = parse_class(producer_cls)
        if class_node is not None:
            names.extend(class_call_assignments(class_node))

    method = own_shape_method(producer_cls)
    if method is not None:
        node = parse_function(method)
        if node is not None:
            names.extend(dict_keys(node))

    fields = [FieldDescriptor(name, Unresolved(), True, FieldOrigin.STATIC) for name in names]
    return unique_fields(fields)


# =============================================================================
# ENHANCEMENT STRATEGIES
# =============================================================================

class ProducerTypeInferrer:
    """
    Ordered inference strategies for unresolved serializer fields.

    Each strategy maps a field name to a type expression or None; the first
    strategy that answers wins.
    """

    def __init__(self, producer_cls: type, context: ExtractionContext):
        self.producer_cls = producer_cls
        self.context = context
        self.resolver = context.resolver
        # Own docstring only; DRF base classes carry their own prose
        self._doc_types = docstring_attribute_types(vars(producer_cls).get("__doc__"))
        self._serializer_fields: Optional[Dict[str, Any]] = None
        self._source_values: Optional[Dict[str, ast.expr]] = None
        self._model: Optional[type] = None
        self._model_resolved = False

    # --- 1. Docstring annotations ---

    def from_docstring(self, name: str) -> Optional[TypeExpression]:
        token = self._doc_types.get(name)
        if not token:
            return None
        return self.resolver.from_token(token)

    # --- 1b. Declared serializer fields ---

    def serializer_fields(self) -> Dict[str, Any]:
        if self._serializer_fields is None:
            try:
                self._serializer_fields = dict(
                    self.context.invoke(lambda: _instantiate(self.producer_cls, NullInstance()).fields)
                )
            except Exception as e:
                logger.debug(f"Cannot build fields of {self.producer_cls.__name__}: {e}")
                self._serializer_fields = dict(getattr(self.producer_cls, "_declared_fields", {}) or {})
        return self._serializer_fields

    def from_serializer_field(self, name: str) -> Optional[TypeExpression]:
        serializer_field = self.serializer_fields().get(name)
        if serializer_field is None:
            return None
        return self.type_of_serializer_field(name, serializer_field)

    def type_of_serializer_field(self, name: str, serializer_field: Any) -> Optional[TypeExpression]:
        resolver = self.resolver
        if isinstance(serializer_field, serializers.ListSerializer):
            child = resolver.reference_for_class(type(serializer_field.child))
            return ArrayOf(child) if child is not None else None
        reference = resolver.reference_for_class(type(serializer_field))
        if reference is not None:
            return reference
        if isinstance(serializer_field, serializers.SerializerMethodField):
            method_name = serializer_field.method_name or f"get_{name}"
            method = getattr(self.producer_cls, method_name, None)
            annotation = getattr(method, "__annotations__", {}).get("return")
            return resolver.from_annotation(annotation) if annotation is not None else None
        if isinstance(serializer_field, serializers.ManyRelatedField):
            child = self.type_of_serializer_field(name, serializer_field.child_relation)
            return ArrayOf(child) if child is not None else None
        if isinstance(serializer_field, serializers.PrimaryKeyRelatedField):
            if serializer_field.pk_field is not None:
                return self.type_of_serializer_field(name, serializer_field.pk_field)
            queryset = getattr(serializer_field, "queryset", None)
            model = getattr(queryset, "model", None)
            return resolver.key_type(model._meta.pk) if model is not None else None
        if isinstance(serializer_field, serializers.ChoiceField):
            values = choice_values(serializer_field.choices)
            if not values:
                return None
            union = resolver.literal_union(values)
            return ArrayOf(union) if isinstance(serializer_field, serializers.MultipleChoiceField) else union
        if isinstance(serializer_field, serializers.DecimalField):
            coerce = getattr(serializer_field, "coerce_to_string", api_settings.COERCE_DECIMAL_TO_STRING)
            return Primitive(TargetTypes.STRING if coerce else TargetTypes.NUMBER)
        if isinstance(serializer_field, serializers.FileField):
            # Files are represented by their URL or name
            return Primitive(TargetTypes.STRING)
        if isinstance(serializer_field, (serializers.ReadOnlyField, serializers.HiddenField, serializers.ModelField)):
            return None
        tokens = form_field_tokens(serializer_field)
        if not tokens:
            return None
        return resolver.from_rule(ValidationRule(name, tokens))

    # --- 2. Source analysis of to_representation ---

    def source_values(self) -> Dict[str, ast.expr]:
        if self._source_values is None:
            self._source_values = {}
            method = own_shape_method(self.producer_cls)
            node = parse_function(method) if method is not None else None
            if node is not None:
                for key, value in dict_entries(node):
                    self._source_values.setdefault(key, value)
        return self._source_values

    def from_source(self, name: str) -> Optional[TypeExpression]:
        value = self.source_values().get(name)
        return self.analyze_expression(value) if value is not None else None

    def analyze_expression(self, node: ast.expr) -> Optional[TypeExpression]:
        if isinstance(node, ast.IfExp):
            return self.analyze_expression(node.body) or self.analyze_expression(node.orelse)
        if isinstance(node, ast.Attribute) and node.attr == "data":
            node = node.value
        if isinstance(node, ast.Constant):
            if isinstance(node.value, bool):
                return Primitive(TargetTypes.BOOLEAN)
            if isinstance(node.value, (int, float)):
                return Primitive(TargetTypes.NUMBER)
            if isinstance(node.value, str):
                return Primitive(TargetTypes.STRING)
            return None
        if isinstance(node, ast.JoinedStr):
            return Primitive(TargetTypes.STRING)
        if not isinstance(node, ast.Call):
            return None

        name = call_name(node)
        if not name:
            return None
        producer = self.context.producer_by_name(name)
        if producer is not None:
            reference = Reference(self.context.producer_classes[producer])
            many = keyword_value(node, "many")
            if isinstance(many, ast.Constant) and many.value is True:
                return ArrayOf(reference)
            return reference
        if name in _NUMBER_CASTS:
            return Primitive(TargetTypes.NUMBER)
        if name == "str" or name in _DATE_FORMAT_CALLS:
            return Primitive(TargetTypes.STRING)
        if name == "bool":
            return Primitive(TargetTypes.BOOLEAN)
        return None

    # --- 3. Underlying model ---

    def underlying_model(self) -> Optional[type]:
        if self._model_resolved:
            return self._model
        self._model_resolved = True
        model = getattr(getattr(self.producer_cls, "Meta", None), "model", None)
        if inspect.isclass(model):
            self._model = model
            return model

        base_name = strip_kind_suffix(self.producer_cls.__name__, ClassKind.PRODUCER)
        for model_cls in self.context.entity_classes:
            if model_cls.__name__ == base_name:
                self._model = model_cls
                return model_cls
        for module_path in self.context.config.entity_modules:
            try:
                module = importlib.import_module(module_path)
            except Exception as e:
                logger.debug(f"Cannot import entity module '{module_path}': {e}")
                continue
            candidate = getattr(module, base_name, None)
            if inspect.isclass(candidate) and hasattr(candidate, "_meta"):
                self._model = candidate
                return candidate
        return None

    def from_model(self, name: str) -> Optional[TypeExpression]:
        model = self.underlying_model()
        if model is None:
            return None
        pk = model._meta.pk
        if name in ("id", "pk") or name in (pk.name, pk.attname):
            return self.resolver.key_type(pk)
        for model_field in model._meta.concrete_fields:
            if name in (model_field.name, model_field.attname):
                return self.resolver.from_model_field(model_field)
        for model_field in model._meta.local_many_to_many:
            if name == model_field.name:
                return self.resolver.from_model_field(model_field)
        return None

    # --- 4. Name heuristics ---

    @staticmethod
    def from_name(name: str) -> Optional[TypeExpression]:
        return heuristic_type(name)

    def infer(self, descriptor: FieldDescriptor) -> FieldDescriptor:
        """Type one unresolved field, returning it unchanged when nothing answers."""
        strategies = [
            (self.from_docstring, FieldOrigin.DOC),
            (self.from_serializer_field, FieldOrigin.SERIALIZER_FIELD),
            (self.from_source, FieldOrigin.SOURCE),
            (self.from_model, FieldOrigin.ENTITY),
        ]
        # Scalar name patterns say nothing about array elements
        if not isinstance(descriptor.type, ArrayOf):
            strategies.append((self.from_name, FieldOrigin.HEURISTIC))

        for strategy, origin in strategies:
            try:
                inferred = strategy(descriptor.name)
            except Exception as e:
                logger.debug(f"{strategy.__name__} failed for {self.producer_cls.__name__}.{descriptor.name}: {e}")
                continue
            if inferred is not None and not inferred.is_unresolved:
                return descriptor.with_type(inferred, origin)
        return descriptor


def heuristic_type(name: str) -> Optional[TypeExpression]:
    """Guess a type from common field naming patterns."""
    lowered = name.lower()
    if lowered == "id" or lowered.endswith("_id"):
        return Primitive(TargetTypes.NUMBER)
    if lowered.endswith(FieldNames.DATE_SUFFIXES):
        return Primitive(TargetTypes.STRING)
    if lowered.endswith("_count") or lowered.startswith("count_"):
        return Primitive(TargetTypes.NUMBER)
    if lowered.startswith(FieldNames.BOOLEAN_PREFIXES):
        return Primitive(TargetTypes.BOOLEAN)
    if lowered == "url" or lowered.endswith("_url"):
        return Primitive(TargetTypes.STRING)
    if lowered == "email" or lowered.endswith("_email"):
        return Primitive(TargetTypes.STRING)
    if lowered.endswith("_name") or lowered in FieldNames.NAME_FIELDS:
        return Primitive(TargetTypes.STRING)
    if lowered in FieldNames.CONTENT_FIELDS:
        return Primitive(TargetTypes.STRING)
    if lowered.endswith(FieldNames.MONEY_SUFFIXES):
        return Primitive(TargetTypes.NUMBER)
    if lowered.endswith(FieldNames.RATIO_SUFFIXES):
        return Primitive(TargetTypes.NUMBER)
    return None


def extract_producer_fields(producer_cls: type, context: ExtractionContext) -> List[FieldDescriptor]:
    """
    Field list of a serializer, unsorted and fully typed.

    Args:
        producer_cls: A DRF serializer class
        context: Shared extraction state

    Returns:
        Field descriptors; empty when neither execution nor static analysis found keys
    """
    fields = run_strategies(producer_cls.__name__, [
        lambda: execution_fields(producer_cls, context),
        lambda: static_fields(producer_cls, context),
    ])

    if context.config.infer_producer_types:
        inferrer = ProducerTypeInferrer(producer_cls, context)
        fields = [inferrer.infer(f) if f.type.is_unresolved else f for f in fields]

    return [
        f.with_type(context.resolver.close(f.type), FieldOrigin.FALLBACK) if f.type.is_unresolved else f
        for f in fields
    ]
