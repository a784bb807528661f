"""
Centralized constants for the TypeScript generator.

This module contains the type tables, relation kinds, naming suffixes and
heuristics used by the inference pipeline. Keeping them in one place makes it
easy to extend the generator for project specific field types.
"""

from typing import Dict, FrozenSet, List, Tuple


# =============================================================================
# CORE CONFIGURATION
# =============================================================================

class DefaultConfig:
    """Default configuration values."""

    OUTPUT = "./resources/types/api.ts"

    ENTITY_BASE_CLASSES = ["django.db.models.Model"]
    PRODUCER_BASE_CLASSES = ["rest_framework.serializers.BaseSerializer"]
    VALIDATOR_BASE_CLASSES = ["django.forms.BaseForm"]

    PROPERTIES_MODE = "declared"
    UNKNOWN_TYPE_FALLBACK = "unknown"
    SPLIT_BY_DOMAIN = "off"

    # Seconds allowed for a single call into inspected code (0 disables the bound)
    EXECUTION_TIMEOUT = 5.0


class TargetTypes:
    """TypeScript type names emitted by the generator."""

    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    DATE = "Date"
    FILE = "File"
    UNKNOWN = "unknown"
    ANY = "any"
    NEVER = "never"

    FALLBACKS = (UNKNOWN, ANY, NEVER)


# =============================================================================
# TYPE MAPPINGS
# =============================================================================

# Django model field internal types (the "cast" of a model field)
DJANGO_FIELD_TYPE_MAP: Dict[str, str] = {
    "AutoField": TargetTypes.NUMBER,
    "BigAutoField": TargetTypes.NUMBER,
    "SmallAutoField": TargetTypes.NUMBER,
    "IntegerField": TargetTypes.NUMBER,
    "BigIntegerField": TargetTypes.NUMBER,
    "SmallIntegerField": TargetTypes.NUMBER,
    "PositiveIntegerField": TargetTypes.NUMBER,
    "PositiveBigIntegerField": TargetTypes.NUMBER,
    "PositiveSmallIntegerField": TargetTypes.NUMBER,
    "FloatField": TargetTypes.NUMBER,
    "DecimalField": TargetTypes.NUMBER,
    "BooleanField": TargetTypes.BOOLEAN,
    "NullBooleanField": TargetTypes.BOOLEAN,
    "CharField": TargetTypes.STRING,
    "TextField": TargetTypes.STRING,
    "EmailField": TargetTypes.STRING,
    "URLField": TargetTypes.STRING,
    "SlugField": TargetTypes.STRING,
    "UUIDField": TargetTypes.STRING,
    "GenericIPAddressField": TargetTypes.STRING,
    "IPAddressField": TargetTypes.STRING,
    "FilePathField": TargetTypes.STRING,
    "FileField": TargetTypes.STRING,
    "ImageField": TargetTypes.STRING,
    "BinaryField": TargetTypes.STRING,
    "DurationField": TargetTypes.STRING,
    "DateField": TargetTypes.DATE,
    "DateTimeField": TargetTypes.DATE,
    "TimeField": TargetTypes.DATE,
}

# Django field types that hold arbitrary JSON documents
JSON_FIELD_TYPES: FrozenSet[str] = frozenset({"JSONField", "HStoreField"})

# Django field types that hold a list of values
ARRAY_FIELD_TYPES: FrozenSet[str] = frozenset({"ArrayField"})

# Integer-like primary keys produce a numeric key type
INTEGER_KEY_TYPES: FrozenSet[str] = frozenset({
    "AutoField", "BigAutoField", "SmallAutoField", "IntegerField",
    "BigIntegerField", "SmallIntegerField", "PositiveIntegerField",
    "PositiveBigIntegerField", "PositiveSmallIntegerField",
})

# Python annotation / doc tokens (lower-cased lookup)
PYTHON_TYPE_MAP: Dict[str, str] = {
    "int": TargetTypes.NUMBER,
    "integer": TargetTypes.NUMBER,
    "float": TargetTypes.NUMBER,
    "real": TargetTypes.NUMBER,
    "double": TargetTypes.NUMBER,
    "number": TargetTypes.NUMBER,
    "complex": TargetTypes.NUMBER,
    "bool": TargetTypes.BOOLEAN,
    "boolean": TargetTypes.BOOLEAN,
    "str": TargetTypes.STRING,
    "string": TargetTypes.STRING,
    "bytes": TargetTypes.STRING,
    "text": TargetTypes.STRING,
}

# Well-known external type names mapped to a plain TypeScript shape
KNOWN_EXTERNAL_TYPES: Dict[str, str] = {
    # String-serialised values
    "datetime": "string",
    "date": "string",
    "time": "string",
    "timedelta": "string",
    "uuid": "string",
    "decimal": "string",
    "path": "string",
    "purepath": "string",
    "safestring": "string",
    "promise": "string",
    # Collections
    "list": "array",
    "tuple": "array",
    "set": "array",
    "frozenset": "array",
    "sequence": "array",
    "iterable": "array",
    "iterator": "array",
    "collection": "array",
    "queryset": "array",
    "manager": "array",
    "returnlist": "array",
    # Mappings
    "dict": "record",
    "mapping": "record",
    "mutablemapping": "record",
    "ordereddict": "record",
    "defaultdict": "record",
    "returndict": "record",
    "json": "record",
    "object": "record",
}

# Generic wrappers whose first parameter carries the real type
OPTIONAL_WRAPPERS: FrozenSet[str] = frozenset({"optional"})
ARRAY_WRAPPERS: FrozenSet[str] = frozenset({
    "list", "tuple", "set", "frozenset", "sequence", "iterable", "iterator",
    "collection", "queryset",
})
RECORD_WRAPPERS: FrozenSet[str] = frozenset({"dict", "mapping", "mutablemapping", "ordereddict"})


# =============================================================================
# RELATIONS
# =============================================================================

class Cardinality:
    """Association cardinality labels."""

    ONE = "one"
    MANY = "many"


# Association kind name -> cardinality
RELATION_KINDS: Dict[str, str] = {
    # Django relation descriptors
    "ForwardManyToOneDescriptor": Cardinality.ONE,
    "ForwardOneToOneDescriptor": Cardinality.ONE,
    "ReverseOneToOneDescriptor": Cardinality.ONE,
    "ReverseManyToOneDescriptor": Cardinality.MANY,
    "ManyToManyDescriptor": Cardinality.MANY,
    # Return annotations of relation-like members
    "QuerySet": Cardinality.MANY,
    "Manager": Cardinality.MANY,
    "RelatedManager": Cardinality.MANY,
    "ManyRelatedManager": Cardinality.MANY,
}

# Queryset calls recognised in a member body, checked "many" first
MANY_RELATION_CALLS: Tuple[str, ...] = (
    "filter", "exclude", "all", "order_by", "annotate", "distinct",
    "values", "select_related", "prefetch_related",
)
ONE_RELATION_CALLS: Tuple[str, ...] = ("get", "first", "last", "latest", "earliest")

# Members of django.db.models.Model that are never relations
SKIPPED_MODEL_MEMBERS: FrozenSet[str] = frozenset({
    "objects", "pk", "save", "delete", "clean", "clean_fields", "full_clean",
    "validate_unique", "validate_constraints", "refresh_from_db", "serializable_value",
    "get_deferred_fields", "prepare_database_save", "save_base", "natural_key",
    "get_absolute_url", "check", "from_db", "DoesNotExist", "MultipleObjectsReturned",
})


# =============================================================================
# NAMING CONVENTIONS
# =============================================================================

class KindSuffixes:
    """Class name suffixes stripped when grouping or guessing entities."""

    PRODUCER: List[str] = ["ModelSerializer", "Serializer", "Resource", "Transformer", "Presenter", "Schema"]
    VALIDATOR: List[str] = ["ModelForm", "Form", "Request", "Validator", "Rules"]
    ENTITY: List[str] = ["Model"]


class AccessorPatterns:
    """Accessor naming conventions on models."""

    # Django generates get_<field>_display() for fields with choices
    DISPLAY_METHOD = r"^get_(\w+)_display$"


# Methods invoked during execution-based extraction
PRODUCER_SHAPE_METHOD = "to_representation"
VALIDATOR_RULES_METHOD = "rules"


# =============================================================================
# NAME HEURISTICS FOR UNRESOLVED PRODUCER FIELDS
# =============================================================================

class FieldNames:
    """Common field names and patterns used by the name heuristics."""

    BOOLEAN_PREFIXES: Tuple[str, ...] = ("is_", "has_", "can_", "should_", "was_", "will_", "did_")
    DATE_SUFFIXES: Tuple[str, ...] = ("_at", "_date", "_time", "_on")
    NAME_FIELDS: FrozenSet[str] = frozenset({"name", "title", "label"})
    CONTENT_FIELDS: FrozenSet[str] = frozenset({
        "description", "content", "body", "text", "message", "bio", "summary",
    })
    MONEY_SUFFIXES: Tuple[str, ...] = ("_price", "_amount", "_total", "_balance", "_cost")
    RATIO_SUFFIXES: Tuple[str, ...] = ("_percent", "_percentage", "_rate")


# =============================================================================
# VALIDATION RULE FAMILIES
# =============================================================================

class RuleFamilies:
    """Rule token families used to derive field types from validation rules."""

    NUMERIC: FrozenSet[str] = frozenset({"integer", "numeric", "digits", "digits_between"})
    BOOLEAN: FrozenSet[str] = frozenset({"boolean", "bool", "accepted", "declined"})
    ARRAY: FrozenSet[str] = frozenset({"array"})
    FILE: FrozenSet[str] = frozenset({"file", "image", "mimes", "mimetypes"})
    DATE: FrozenSet[str] = frozenset({
        "date", "date_format", "before", "after", "before_or_equal", "after_or_equal",
    })
    JSON: FrozenSet[str] = frozenset({"json"})
    STRING: FrozenSet[str] = frozenset({
        "string", "email", "url", "uuid", "ip", "ipv4", "ipv6", "mac_address",
        "regex", "alpha", "alpha_dash", "alpha_num",
    })
    ENUM: FrozenSet[str] = frozenset({"in", "in_array"})

    REQUIRED = "required"
    NULLABLE = "nullable"
    SOMETIMES = "sometimes"

    # Rule names whose parameters keep their original case
    CASE_SENSITIVE: FrozenSet[str] = frozenset({"regex", "in", "in_array", "date_format", "mimes", "mimetypes"})


# Form / serializer field class -> rule tokens (checked along the MRO)
FORM_FIELD_TOKENS: Dict[str, Tuple[str, ...]] = {
    "EmailField": ("string", "email"),
    "URLField": ("string", "url"),
    "HyperlinkedIdentityField": ("string", "url"),
    "UUIDField": ("string", "uuid"),
    "SlugField": ("string", "alpha_dash"),
    "RegexField": ("string",),
    "GenericIPAddressField": ("string", "ip"),
    "IPAddressField": ("string", "ip"),
    "IntegerField": ("integer",),
    "FloatField": ("numeric",),
    "DecimalField": ("numeric",),
    "NullBooleanField": ("boolean", "nullable"),
    "BooleanField": ("boolean",),
    "DateTimeField": ("date",),
    "DateField": ("date",),
    "TimeField": ("date",),
    "DurationField": ("string",),
    "ImageField": ("image",),
    "FileField": ("file",),
    "JSONField": ("json",),
    "DictField": ("json",),
    "HStoreField": ("json",),
    "MultipleChoiceField": ("array",),
    "ListField": ("array",),
    "ModelMultipleChoiceField": ("array",),
    "ManyRelatedField": ("array",),
    "CharField": ("string",),
}


# =============================================================================
# OUTPUT
# =============================================================================

class Sections:
    """Section comments used by the emitter."""

    PAGINATION = "Pagination Interfaces"
    ENTITY = ("Model Interfaces", "Model Array Types", "Model Paginated Types")
    PRODUCER = ("Serializer Interfaces", "Serializer Array Types", "Serializer Paginated Types")
    VALIDATOR = "Form Interfaces"
    YUP = "Yup Schemas"
    ZOD = "Zod Schemas"


class BundleFiles:
    """File names used by the multi-file bundle."""

    SHARED = "shared"
    INDEX = "index"
    DEFAULT_DOMAIN = "default"
    EXTENSION = ".ts"


PAGINATION_TYPE_NAMES: Tuple[str, ...] = ("PaginatedResponse", "CursorPaginatedResponse")
