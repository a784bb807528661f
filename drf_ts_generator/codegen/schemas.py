"""
Runtime validation schemas for forms.

Rule tokens are first turned into a library-neutral clause list, which each
renderer then writes in its own syntax. A Yup key is required unless the
chain says ``.optional()``, so a nullable field without ``required`` ends in
``.defined()``: present, but possibly null. A Zod key is required unless
nullable or optional is explicit, so nullable without ``required`` renders as
``.nullish()``.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..constants import RuleFamilies
from ..domain.models import CandidateClass, SchemaArtifact, SchemaVariant, ValidationRule
from ..domain.naming import property_key
from ..domain.type_resolver import RuleKind, enum_values, is_numeric_literal, rule_kind

logger = logging.getLogger(__name__)

# Base kind of a field declared without any rule tokens
UNTYPED = "untyped"

CONFIRMATION_SUFFIX = "_confirmation"

# Clauses each base kind accepts; required, nullable and optional apply to all
_KIND_CLAUSES = {
    RuleKind.STRING: {"email", "url", "uuid", "regex", "min", "max", "length", "confirmed"},
    RuleKind.DATE: {"confirmed"},
    RuleKind.NUMBER: {"min", "max", "integer", "positive", "negative", "confirmed"},
    RuleKind.ARRAY: {"min", "max", "length"},
}

# Rule token -> clause name, for tokens that map one to one
_DIRECT_CLAUSES = {
    RuleFamilies.REQUIRED: "required",
    RuleFamilies.NULLABLE: "nullable",
    "email": "email",
    "url": "url",
    "uuid": "uuid",
    "integer": "integer",
    "positive": "positive",
    "negative": "negative",
    "confirmed": "confirmed",
}

_MODIFIERS = ("required", "nullable", "optional")


@dataclass(frozen=True)
class Clause:
    name: str
    args: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FieldSchema:
    """The library-neutral schema of one form field."""

    field: str
    kind: str
    clauses: Tuple[Clause, ...]
    enum: Optional[Tuple[str, ...]] = None

    @property
    def numeric_enum(self) -> bool:
        return bool(self.enum) and all(is_numeric_literal(v) for v in self.enum)

    def has(self, name: str) -> bool:
        return any(clause.name == name for clause in self.clauses)


def _numeric_param(params: Tuple[str, ...], index: int = 0) -> Optional[str]:
    if len(params) > index and is_numeric_literal(params[index]):
        return params[index].strip()
    return None


def build_field_schema(rule: ValidationRule) -> FieldSchema:
    """Translate a rule's tokens, in declaration order, into clauses."""
    if rule.tokens:
        kind = rule_kind(rule)
    else:
        kind = RuleKind.ARRAY if rule.wildcard else UNTYPED
    enum = enum_values(rule)
    allowed = set() if enum else _KIND_CLAUSES.get(kind, set())

    clauses: List[Clause] = []
    for token in rule.tokens:
        name = token.name
        candidates: List[Clause] = []
        if name in _DIRECT_CLAUSES:
            candidates.append(Clause(_DIRECT_CLAUSES[name]))
        elif name in ("min", "max", "size"):
            value = _numeric_param(token.params)
            if value is not None:
                candidates.append(Clause("length" if name == "size" else name, (value,)))
        elif name == "between":
            low, high = _numeric_param(token.params, 0), _numeric_param(token.params, 1)
            if low is not None and high is not None:
                candidates.extend([Clause("min", (low,)), Clause("max", (high,))])
        elif name == "regex" and token.params:
            candidates.append(Clause("regex", token.params[:1]))

        for clause in candidates:
            if (clause.name in _MODIFIERS or clause.name in allowed) and clause not in clauses:
                clauses.append(clause)

    if not any(c.name in ("required", "nullable") for c in clauses):
        clauses.append(Clause("optional"))
    return FieldSchema(rule.field, kind, tuple(clauses), enum)


def regex_literal(pattern: str) -> str:
    """A JavaScript regex literal; already delimited patterns are kept."""
    stripped = pattern.strip()
    body = stripped.rstrip("gimsuy")
    if len(body) > 1 and body.startswith("/") and body.endswith("/"):
        return stripped
    escaped = []
    previous = ""
    for char in stripped:
        if char == "/" and previous != "\\":
            escaped.append("\\/")
        else:
            escaped.append(char)
        previous = char
    return "/" + "".join(escaped) + "/"


def js_string(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


# =============================================================================
# RENDERERS
# =============================================================================

class SchemaRenderer(ABC):
    """Abstract strategy writing field schemas in one library syntax."""

    variant: SchemaVariant
    name_suffix: str

    def schema_name(self, display_name: str) -> str:
        return f"{display_name}{self.name_suffix}"

    @abstractmethod
    def render_field(self, schema: FieldSchema) -> str:
        """Render the expression for one field."""

    @abstractmethod
    def render_object(self, name: str, entries: List[Tuple[str, str]], schemas: List[FieldSchema]) -> str:
        """Render the full schema declaration plus its inferred type alias."""

    def render(self, candidate: CandidateClass, display_name: str, rules: List[ValidationRule]) -> SchemaArtifact:
        schemas = [build_field_schema(rule) for rule in sorted(rules, key=lambda r: r.field)]
        entries = [(schema.field, self.render_field(schema)) for schema in schemas]
        name = self.schema_name(display_name)
        return SchemaArtifact(
            variant=self.variant,
            candidate=candidate,
            schema_name=name,
            field_clauses=tuple(entries),
            text=self.render_object(name, entries, schemas),
        )


class YupRenderer(SchemaRenderer):
    variant = SchemaVariant.YUP
    name_suffix = "Schema"

    _BASES = {
        RuleKind.STRING: "yup.string()",
        RuleKind.DATE: "yup.string()",
        RuleKind.NUMBER: "yup.number()",
        RuleKind.BOOLEAN: "yup.boolean()",
        RuleKind.ARRAY: "yup.array()",
        RuleKind.FILE: "yup.mixed<File>()",
        RuleKind.JSON: "yup.object()",
        UNTYPED: "yup.mixed()",
    }

    def base(self, schema: FieldSchema) -> str:
        if schema.enum:
            if schema.numeric_enum:
                return f"yup.number().oneOf([{', '.join(v.strip() for v in schema.enum)}])"
            literal_type = " | ".join(js_string(v) for v in schema.enum)
            values = ", ".join(js_string(v) for v in schema.enum)
            return f"yup.mixed<{literal_type}>().oneOf([{values}])"
        return self._BASES[schema.kind]

    def clause(self, schema: FieldSchema, clause: Clause) -> str:
        if clause.name == "regex":
            return f".matches({regex_literal(clause.args[0])})"
        if clause.name == "confirmed":
            other = js_string(f"{schema.field}{CONFIRMATION_SUFFIX}")
            return f".oneOf([yup.ref({other})], 'Fields must match')"
        if clause.args:
            return f".{clause.name}({', '.join(clause.args)})"
        return f".{clause.name}()"

    def render_field(self, schema: FieldSchema) -> str:
        expression = self.base(schema) + "".join(self.clause(schema, c) for c in schema.clauses)
        # .nullable() alone would let Yup accept a missing key
        if not schema.has("required") and not schema.has("optional"):
            expression += ".defined()"
        return expression

    def render_object(self, name, entries, schemas):
        lines = [f"export const {name} = yup.object({{"]
        lines.extend(f"  {property_key(field)}: {expression}," for field, expression in entries)
        lines.append("});")
        lines.append("")
        lines.append(f"export type {name}Type = yup.InferType<typeof {name}>;")
        return "\n".join(lines)


class ZodRenderer(SchemaRenderer):
    variant = SchemaVariant.ZOD
    name_suffix = "ZodSchema"

    _BASES = {
        RuleKind.STRING: "z.string()",
        RuleKind.DATE: "z.string()",
        RuleKind.NUMBER: "z.number()",
        RuleKind.BOOLEAN: "z.boolean()",
        RuleKind.ARRAY: "z.array(z.unknown())",
        RuleKind.FILE: "z.instanceof(File)",
        RuleKind.JSON: "z.record(z.string(), z.unknown())",
        UNTYPED: "z.unknown()",
    }

    _RENAMED = {"integer": "int"}

    def base(self, schema: FieldSchema) -> str:
        if schema.enum:
            if schema.numeric_enum:
                literals = [f"z.literal({v.strip()})" for v in schema.enum]
                if len(literals) == 1:
                    return literals[0]
                return f"z.union([{', '.join(literals)}])"
            return f"z.enum([{', '.join(js_string(v) for v in schema.enum)}])"
        return self._BASES[schema.kind]

    def render_field(self, schema: FieldSchema) -> str:
        refinements = []
        for clause in schema.clauses:
            if clause.name in _MODIFIERS or clause.name == "confirmed":
                continue
            if clause.name == "regex":
                refinements.append(f".regex({regex_literal(clause.args[0])})")
            else:
                method = self._RENAMED.get(clause.name, clause.name)
                refinements.append(f".{method}({', '.join(clause.args)})")

        # Zod wrappers must come after the refinements of the inner type
        if schema.has("required") and schema.kind == RuleKind.STRING and not schema.enum:
            refinements.insert(0, ".min(1)")
        if schema.has("nullable"):
            refinements.append(".nullable()" if schema.has("required") else ".nullish()")
        if schema.has("optional"):
            refinements.append(".optional()")
        return self.base(schema) + "".join(refinements)

    def render_object(self, name, entries, schemas):
        lines = [f"export const {name} = z.object({{"]
        lines.extend(f"  {property_key(field)}: {expression}," for field, expression in entries)
        confirmed = [s.field for s in schemas if s.has("confirmed")]
        if not confirmed:
            lines.append("});")
        else:
            lines.append("})")
            for field in confirmed:
                other = f"{field}{CONFIRMATION_SUFFIX}"
                lines.append(
                    f"  .refine((data) => data[{js_string(field)}] === data[{js_string(other)}], "
                    f"{{ message: 'Fields must match', path: [{js_string(other)}] }})"
                )
            lines[-1] += ";"
        lines.append("")
        lines.append(f"export type {name}Type = z.infer<typeof {name}>;")
        return "\n".join(lines)


RENDERERS = {
    SchemaVariant.YUP: YupRenderer,
    SchemaVariant.ZOD: ZodRenderer,
}


def build_schemas(
    candidate: CandidateClass,
    display_name: str,
    rules: List[ValidationRule],
    variants: List[SchemaVariant],
) -> List[SchemaArtifact]:
    """One schema per enabled variant; forms without rules get none."""
    if not rules:
        return []
    return [RENDERERS[variant]().render(candidate, display_name, rules) for variant in variants]
