"""
Field extraction for Django models.

Fields come from the declared model fields, from the database table, or
both. The primary key and auto timestamps are appended when missing, then
accessors and relations are merged in.
"""

import functools
import inspect
import logging
import re
from typing import Any, List, Optional

from ..constants import AccessorPatterns, TargetTypes
from ..domain.models import FieldDescriptor, FieldOrigin, Primitive
from ..domain.relationships import RelationResolver, iter_model_members, merge_relations
from ..exceptions import SchemaIntrospectionError
from ..introspection_django import get_table_columns
from .base import ExtractionContext, unique_fields

logger = logging.getLogger(__name__)

_DISPLAY_METHOD_RE = re.compile(AccessorPatterns.DISPLAY_METHOD)


def declared_fields(model_cls: type, context: ExtractionContext) -> List[FieldDescriptor]:
    """Editable concrete fields except the primary key; foreign keys appear under their attname."""
    fields = []
    for model_field in model_cls._meta.concrete_fields:
        if not model_field.editable or model_field.primary_key:
            continue
        fields.append(FieldDescriptor(
            name=model_field.attname,
            type=context.resolver.from_model_field(model_field),
            nullable=True,
            origin=FieldOrigin.DECLARED,
        ))
    return fields


def storage_fields(model_cls: type, context: ExtractionContext) -> List[FieldDescriptor]:
    """Columns of the model's table; a model field on the same column supplies the cast."""
    table = model_cls._meta.db_table
    try:
        columns = get_table_columns(table, context.config.database_alias)
    except SchemaIntrospectionError as e:
        logger.warning(f"Storage columns unavailable for {model_cls.__name__}: {e.message}")
        return []

    by_column = {f.column: f for f in model_cls._meta.concrete_fields}
    fields = []
    for column in columns:
        model_field = by_column.get(column.name)
        cast = context.resolver.from_model_field(model_field) if model_field is not None else None
        fields.append(FieldDescriptor(
            name=column.name,
            type=context.resolver.resolve(cast=cast, storage_type=column.type_name),
            nullable=column.nullable,
            origin=FieldOrigin.STORAGE,
        ))
    return fields


def timestamp_columns(model_cls: type) -> List[str]:
    """Created/updated columns, i.e. date fields with auto_now_add or auto_now."""
    created, updated = [], []
    for model_field in model_cls._meta.concrete_fields:
        if getattr(model_field, "auto_now_add", False):
            created.append(model_field.attname)
        elif getattr(model_field, "auto_now", False):
            updated.append(model_field.attname)
    return created + updated


def _return_annotation(func: Any) -> Any:
    return getattr(func, "__annotations__", {}).get("return")


def accessor_fields(model_cls: type, context: ExtractionContext) -> List[FieldDescriptor]:
    """
    Properties, cached properties and ``get_<field>_display`` accessors.

    Display accessors become ``<field>_display`` strings unless annotated.
    """
    fields = []
    for name, member in iter_model_members(model_cls):
        func: Optional[Any] = None
        field_name = name
        if isinstance(member, property):
            func = member.fget
        elif isinstance(member, functools.cached_property):
            func = member.func
        elif type(member).__name__ == "cached_property":
            func = getattr(member, "real_func", None) or getattr(member, "func", None)
        else:
            match = _DISPLAY_METHOD_RE.match(name)
            if not match or not (callable(member) or isinstance(member, functools.partialmethod)):
                continue
            field_name = f"{match.group(1)}_display"
            annotation = _return_annotation(member) if inspect.isfunction(member) else None
            type_expression = (context.resolver.from_annotation(annotation)
                               if annotation is not None else Primitive(TargetTypes.STRING))
            fields.append(FieldDescriptor(field_name, type_expression, True, FieldOrigin.ACCESSOR))
            continue

        annotation = _return_annotation(func)
        type_expression = (context.resolver.from_annotation(annotation)
                           if annotation is not None else context.resolver.fallback)
        fields.append(FieldDescriptor(field_name, type_expression, True, FieldOrigin.ACCESSOR))
    return fields


def extract_entity_fields(model_cls: type, context: ExtractionContext) -> List[FieldDescriptor]:
    """
    Full field list of a model, unsorted.

    Args:
        model_cls: A concrete Django model class
        context: Shared extraction state

    Returns:
        Field descriptors, relations merged in
    """
    config = context.config
    if config.properties_mode == "declared":
        fields = declared_fields(model_cls, context)
    elif config.properties_mode == "storage":
        fields = storage_fields(model_cls, context)
    else:
        fields = unique_fields(storage_fields(model_cls, context) + declared_fields(model_cls, context))

    names = {f.name for f in fields}
    pk = model_cls._meta.pk
    if pk is not None and pk.attname not in names:
        fields.append(FieldDescriptor(pk.attname, context.resolver.key_type(pk), False, FieldOrigin.PRIMARY_KEY))
        names.add(pk.attname)

    for column in timestamp_columns(model_cls):
        if column not in names:
            fields.append(FieldDescriptor(column, Primitive(TargetTypes.DATE), True, FieldOrigin.TIMESTAMP))
            names.add(column)

    if config.include_accessors:
        fields = unique_fields(fields + accessor_fields(model_cls, context))

    if config.include_relations:
        relation_resolver = RelationResolver(context.resolver, context.entity_classes, context.invoke)
        relation_fields = [relation_resolver.to_field(r) for r in relation_resolver.resolve(model_cls)]
        fields = merge_relations(fields, relation_fields)

    return fields
