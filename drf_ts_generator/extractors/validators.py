"""
Rule extraction for Django forms.

A form's rule map comes from its own ``rules()`` method when it defines one,
otherwise from its bound ``fields``. Every value is normalised to a tuple of
RuleToken before types and schemas are derived from it.
"""

import inspect
import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, Iterable, List, Tuple

from ..constants import FORM_FIELD_TOKENS, VALIDATOR_RULES_METHOD, RuleFamilies
from ..domain.models import ArrayOf, FieldDescriptor, FieldOrigin, RuleToken, Unresolved, ValidationRule
from ..domain.type_resolver import is_optional_rule
from ..exceptions import ExtractionError
from ..source_analysis import class_call_assignments, dict_keys, parse_class, parse_function
from .base import ExtractionContext, run_strategies

logger = logging.getLogger(__name__)

WILDCARD_SEGMENT = "*"


# =============================================================================
# TOKEN NORMALISATION
# =============================================================================

def parse_token(text: str) -> RuleToken:
    """
    Parse ``name:param,param`` into a RuleToken.

    Names are lower-cased. Parameters keep their case only for rules listed in
    RuleFamilies.CASE_SENSITIVE, and a regex pattern is never split on commas.
    """
    name, _, raw_params = text.strip().partition(":")
    name = name.strip().lower()
    if not raw_params:
        return RuleToken(name)
    if name == "regex":
        return RuleToken(name, (raw_params,))
    params = tuple(p.strip() for p in raw_params.split(","))
    if name not in RuleFamilies.CASE_SENSITIVE:
        params = tuple(p.lower() for p in params)
    return RuleToken(name, params)


def choice_values(choices: Any) -> Tuple[str, ...]:
    """Flatten Django or DRF choices to their stored values, skipping blank entries."""
    if isinstance(choices, Mapping):
        values: List[Any] = list(choices.keys())
    else:
        values = []
        for entry in choices:
            if isinstance(entry, (list, tuple)) and len(entry) == 2:
                value, label = entry
                # Grouped choices: (group label, [(value, label), ...])
                if isinstance(label, (list, tuple)):
                    values.extend(v for v, _ in label)
                else:
                    values.append(value)
            else:
                values.append(entry)
    return tuple(str(v) for v in values if v not in ("", None))


def _class_tokens(field_cls: type) -> Tuple[str, ...]:
    for klass in field_cls.__mro__:
        if klass.__name__ in FORM_FIELD_TOKENS:
            return FORM_FIELD_TOKENS[klass.__name__]
    return ()


def is_field_object(value: Any) -> bool:
    """Form and serializer field instances, recognised by their class names."""
    return bool(_class_tokens(type(value))) or any(
        klass.__name__ == "Field" and klass.__module__.split(".")[0] in ("django", "rest_framework")
        for klass in type(value).__mro__
    )


def form_field_tokens(form_field: Any) -> Tuple[RuleToken, ...]:
    """
    Rule tokens equivalent to a Django form field or DRF serializer field.

    Example:
        ``forms.CharField(max_length=255)`` gives ``required|string|max:255``
    """
    tokens: List[RuleToken] = []
    if getattr(form_field, "required", False):
        tokens.append(RuleToken(RuleFamilies.REQUIRED))
    if getattr(form_field, "allow_null", False):
        tokens.append(RuleToken(RuleFamilies.NULLABLE))
    tokens.extend(RuleToken(name) for name in _class_tokens(type(form_field)))

    # Model choice fields would hit the database to list their choices
    if getattr(form_field, "choices", None) is not None and not hasattr(form_field, "queryset"):
        values = choice_values(form_field.choices)
        if values:
            tokens.append(RuleToken("in", values))

    regex = getattr(form_field, "regex", None)
    pattern = getattr(regex, "pattern", regex)
    if isinstance(pattern, str) and pattern:
        tokens.append(RuleToken("regex", (pattern,)))

    for attribute, rule_name in (
        ("min_length", "min"), ("max_length", "max"), ("min_value", "min"), ("max_value", "max"),
    ):
        value = getattr(form_field, attribute, None)
        if value is not None and not isinstance(value, bool) and isinstance(value, (int, float, str)):
            tokens.append(RuleToken(rule_name, (str(value),)))

    unique: List[RuleToken] = []
    for token in tokens:
        if token not in unique:
            unique.append(token)
    return tuple(unique)


def normalize_rule_object(rule: Any) -> List[RuleToken]:
    """Turn one programmatic rule into tokens by introspection."""
    if isinstance(rule, str):
        return [parse_token(rule)] if rule.strip() else []
    if inspect.isclass(rule) and issubclass(rule, Enum):
        return [RuleToken("in", tuple(str(member.value) for member in rule))]
    if is_field_object(rule):
        return list(form_field_tokens(rule))
    choices = getattr(rule, "choices", None)
    if choices is not None and not callable(choices):
        return [RuleToken("in", choice_values(choices))]
    return [RuleToken(type(rule).__name__.lower())]


def normalize_rule_value(value: Any) -> Tuple[RuleToken, ...]:
    """Pipe strings, token lists and rule objects all become a flat token tuple."""
    if isinstance(value, str):
        items: Iterable[Any] = value.split("|")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        items = [value]
    tokens: List[RuleToken] = []
    for item in items:
        tokens.extend(normalize_rule_object(item))
    return tuple(tokens)


def collapse_rules(rule_map: Mapping) -> List[ValidationRule]:
    """
    Reduce nested and wildcard keys to their base field, first occurrence wins.

    ``items.*`` and ``items.*.name`` both collapse to ``items``, marked as a
    wildcard so the field becomes an array.
    """
    rules: List[ValidationRule] = []
    seen = set()
    for key, value in rule_map.items():
        if not isinstance(key, str):
            continue
        base = key.split(".")[0]
        if base in seen:
            continue
        seen.add(base)
        wildcard = WILDCARD_SEGMENT in key.split(".")[1:]
        rules.append(ValidationRule(base, normalize_rule_value(value), wildcard))
    return rules


# =============================================================================
# EXTRACTION
# =============================================================================

def defines_rules(validator_cls: type) -> bool:
    return callable(getattr(validator_cls, VALIDATOR_RULES_METHOD, None))


def execution_rules(validator_cls: type, context: ExtractionContext) -> List[ValidationRule]:
    """
    Instantiate the form and read its rule map.

    Raises:
        ExtractionError: If instantiation or ``rules()`` fails, or returns a non-mapping
    """
    def _run():
        form = validator_cls()
        if defines_rules(validator_cls):
            return getattr(form, VALIDATOR_RULES_METHOD)()
        return {name: [form_field] for name, form_field in form.fields.items()}

    try:
        rule_map = context.invoke(_run)
    except ExtractionError:
        raise
    except Exception as e:
        raise ExtractionError(
            f"Reading rules raised {type(e).__name__}: {e}",
            class_name=validator_cls.__name__,
            strategy="execution",
        ) from e
    if not isinstance(rule_map, Mapping):
        raise ExtractionError(
            f"{VALIDATOR_RULES_METHOD}() returned {type(rule_map).__name__}, expected a mapping",
            class_name=validator_cls.__name__,
            strategy="execution",
        )
    return collapse_rules(rule_map)


def static_rules(validator_cls: type) -> List[ValidationRule]:
    """Rule keys read from source, with no tokens."""
    keys: List[str] = []
    if defines_rules(validator_cls):
        node = parse_function(getattr(validator_cls, VALIDATOR_RULES_METHOD))
        if node is not None:
            keys = dict_keys(node)
    if not keys:
        class_node = parse_class(validator_cls)
        if class_node is not None:
            keys = class_call_assignments(class_node)
    return collapse_rules({key: () for key in keys})


def rule_to_field(rule: ValidationRule, context: ExtractionContext) -> FieldDescriptor:
    if not rule.tokens:
        type_expression = ArrayOf(Unresolved()) if rule.wildcard else Unresolved()
        return FieldDescriptor(rule.field, context.resolver.close(type_expression), True, FieldOrigin.FALLBACK)
    return FieldDescriptor(
        rule.field,
        context.resolver.from_rule(rule),
        is_optional_rule(rule),
        FieldOrigin.RULES,
    )


def extract_validator_rules(validator_cls: type, context: ExtractionContext) -> List[ValidationRule]:
    """Collapsed rules of a form: executed first, read statically when that fails."""
    return run_strategies(validator_cls.__name__, [
        lambda: execution_rules(validator_cls, context),
        lambda: static_rules(validator_cls),
    ])


def extract_validator_fields(validator_cls: type, context: ExtractionContext) -> List[FieldDescriptor]:
    return [rule_to_field(rule, context) for rule in extract_validator_rules(validator_cls, context)]
