"""
Naming convention utilities for the TypeScript generator.

Converts between Python and TypeScript naming conventions and assigns
collision free interface names across every discovered class.
"""

import logging
import re
from collections import Counter, defaultdict
from typing import Dict, Iterable, List

import inflect

from .models import CandidateClass, NameBinding

logger = logging.getLogger(__name__)

# Initialize inflect engine for pluralization
p = inflect.engine()

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

# Trailing CamelCase word of an interface name
_LAST_WORD_RE = re.compile(r"([A-Z]?[a-z][a-z0-9]*)$")


def to_snake_case(name: str) -> str:
    """
    Convert CamelCase or PascalCase to snake_case.

    Args:
        name: The string to convert to snake_case

    Returns:
        The converted snake_case string

    Example:
        >>> to_snake_case("UserAccount")
        'user_account'
        >>> to_snake_case("XMLHttpRequest")
        'xml_http_request'
    """
    if not isinstance(name, str):
        raise TypeError(f"Expected string, got {type(name).__name__}")

    name = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    name = re.sub("__([A-Z])", r"_\1", name)
    name = re.sub("([a-z0-9])([A-Z])", r"\1_\2", name)
    return name.replace("-", "_").lower()


def to_pascal_case(name: str) -> str:
    """
    Convert a snake_case or dotted segment to PascalCase.

    Unlike class-name generation elsewhere, no singularization happens: package
    segments keep their number (``users`` becomes ``Users``).
    """
    parts = [part for part in re.split(r"[^A-Za-z0-9]+", name) if part]
    return "".join(part[0].upper() + part[1:] for part in parts)


def pluralize(name: str) -> str:
    """
    Pluralize an interface name for its array alias.

    Only the last CamelCase word is inflected, lower-cased, since inflect
    treats capitalised words as proper nouns (``Category`` -> ``Categorys``).
    Falls back to a ``List`` suffix when inflect leaves the word unchanged.
    """
    match = _LAST_WORD_RE.search(name or "")
    if match is None:
        plural = p.plural(name) if name else ""
    else:
        word = match.group(1)
        inflected = p.plural_noun(word.lower()) or ""
        if inflected and word[0].isupper():
            inflected = inflected[0].upper() + inflected[1:]
        plural = name[:match.start(1)] + inflected if inflected else ""
    if not plural or plural == name:
        return f"{name}List"
    return plural


def is_identifier(name: str) -> bool:
    """Check whether a property name can be written without quotes in TypeScript."""
    return bool(_IDENTIFIER_RE.match(name))


def property_key(name: str) -> str:
    """Quote a property name when it is not a valid identifier."""
    if is_identifier(name):
        return name
    return "'" + name.replace("\\", "\\\\").replace("'", "\\'") + "'"


def build_prefixed_name(candidate: CandidateClass, include_module: bool = False) -> str:
    """
    Build a prefixed name from the package path for conflict resolution.

    Example: ``forms.admin.users.CreateUserForm`` with base ``forms`` becomes
    ``AdminCreateUserForm``, or ``AdminUsersCreateUserForm`` with the module.
    """
    segments = candidate.package_segments(include_module=include_module)
    prefix = "".join(to_pascal_case(segment) for segment in segments)
    return f"{prefix}{candidate.name}"


def _group_by_display(names: Dict[str, str]) -> Dict[str, List[str]]:
    by_display: Dict[str, List[str]] = defaultdict(list)
    for qualified_name in sorted(names):
        by_display[names[qualified_name]].append(qualified_name)
    return by_display


def build_unique_names(candidates: Iterable[CandidateClass]) -> NameBinding:
    """
    Assign every candidate a display name no other candidate shares.

    Simple names are kept when unique. Colliding names get their package path
    as a prefix; when that still collides (classes in sibling modules) the
    module name joins the prefix, and anything left gets a numeric suffix in
    qualified-name order.

    Args:
        candidates: All discovered classes, across every kind

    Returns:
        NameBinding mapping qualified names to display names
    """
    ordered: List[CandidateClass] = sorted(
        {c.qualified_name: c for c in candidates}.values(),
        key=lambda c: c.qualified_name,
    )
    by_qualified = {c.qualified_name: c for c in ordered}
    simple_counts = Counter(c.name for c in ordered)

    names: Dict[str, str] = {}
    for candidate in ordered:
        if simple_counts[candidate.name] == 1:
            names[candidate.qualified_name] = candidate.name
        else:
            names[candidate.qualified_name] = build_prefixed_name(candidate)
            logger.debug(
                f"Name conflict for '{candidate.name}', using '{names[candidate.qualified_name]}' "
                f"for {candidate.qualified_name}"
            )

    for owners in _group_by_display(names).values():
        if len(owners) < 2:
            continue
        for qualified_name in owners:
            candidate = by_qualified[qualified_name]
            if simple_counts[candidate.name] > 1:
                names[qualified_name] = build_prefixed_name(candidate, include_module=True)

    taken = set(names.values())
    for display, owners in sorted(_group_by_display(names).items()):
        counter = 2
        for qualified_name in owners[1:]:
            while f"{display}{counter}" in taken:
                counter += 1
            names[qualified_name] = f"{display}{counter}"
            taken.add(names[qualified_name])
            logger.warning(
                f"Prefixed name '{display}' is still ambiguous, using '{names[qualified_name]}' "
                f"for {qualified_name}"
            )

    return NameBinding(names)
