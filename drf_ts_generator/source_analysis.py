"""
Source-level analysis helpers.

Method bodies are parsed with ``ast`` and matched on expression shapes
(calls, literals, subscripts) rather than scraped with text patterns. Every
helper returns an empty result when source is unavailable or unparsable.
"""

import ast
import inspect
import logging
import re
import textwrap
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Top-level class declarations, used by discovery before anything is imported
CLASS_DECLARATION_RE = re.compile(r"^class\s+(\w+)", re.MULTILINE)

_VARTYPE_RE = re.compile(r"^\s*:vartype\s+(\w+)\s*:\s*(.+?)\s*$", re.MULTILINE)
_IVAR_RE = re.compile(r"^\s*:ivar\s+(.+?)\s+(\w+)\s*:", re.MULTILINE)
_GOOGLE_ATTR_RE = re.compile(r"^\s*(\w+)\s*\(([^)]+)\)\s*:", re.MULTILINE)
_RTYPE_RE = re.compile(r"^\s*:rtype:\s*(.+?)\s*$", re.MULTILINE)
_RETURNS_SECTION_RE = re.compile(r"^\s*Returns?:\s*\n\s*([^\n:]+?)(?::|\s*$)", re.MULTILINE)


def scan_class_names(text: str) -> List[str]:
    """Names of top-level ``class`` statements in module text."""
    return CLASS_DECLARATION_RE.findall(text)


def parse_function(func: Any) -> Optional[ast.FunctionDef]:
    """Parse the source of a function or method into its FunctionDef node."""
    func = inspect.unwrap(func) if callable(func) else func
    try:
        source = textwrap.dedent(inspect.getsource(func))
        tree = ast.parse(source)
    except (OSError, TypeError, SyntaxError, IndentationError) as e:
        logger.debug(f"Could not parse source of {func!r}: {e}")
        return None
    for node in tree.body:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            return node
    return None


def parse_class(cls: type) -> Optional[ast.ClassDef]:
    """Parse the source of a class into its ClassDef node."""
    try:
        source = textwrap.dedent(inspect.getsource(cls))
        tree = ast.parse(source)
    except (OSError, TypeError, SyntaxError, IndentationError) as e:
        logger.debug(f"Could not parse source of {cls!r}: {e}")
        return None
    for node in tree.body:
        if isinstance(node, ast.ClassDef):
            return node
    return None


def _own_nodes(func_node: ast.AST):
    """Walk a function body without descending into nested functions or classes."""
    stack = list(ast.iter_child_nodes(func_node))
    while stack:
        node = stack.pop(0)
        yield node
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda, ast.ClassDef)):
            continue
        stack.extend(ast.iter_child_nodes(node))


def returned_expressions(func_node: ast.AST) -> List[ast.expr]:
    return [
        node.value for node in _own_nodes(func_node)
        if isinstance(node, ast.Return) and node.value is not None
    ]


def call_name(node: ast.AST) -> Optional[str]:
    """Name of the function a Call node invokes (``a.b.c()`` gives ``c``)."""
    if not isinstance(node, ast.Call):
        return None
    func = node.func
    if isinstance(func, ast.Name):
        return func.id
    if isinstance(func, ast.Attribute):
        return func.attr
    return None


def string_constant(node: ast.AST) -> Optional[str]:
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return node.value
    return None


def dict_entries(func_node: ast.AST) -> List[Tuple[str, ast.expr]]:
    """
    String-keyed entries built inside a function, in source order.

    Collects dict literals (returned or assigned), ``data["key"] = value``
    subscript assignments and ``data.update({...})`` calls.
    """
    entries: List[Tuple[str, ast.expr]] = []
    statements = sorted(
        (n for n in _own_nodes(func_node) if isinstance(n, (ast.Return, ast.Assign, ast.Expr))),
        key=lambda n: (n.lineno, n.col_offset),
    )
    for node in statements:
        if isinstance(node, ast.Return) and isinstance(node.value, ast.Dict):
            entries.extend(_literal_entries(node.value))
        elif isinstance(node, ast.Assign):
            if isinstance(node.value, ast.Dict):
                entries.extend(_literal_entries(node.value))
            for target in node.targets:
                if isinstance(target, ast.Subscript):
                    name = string_constant(target.slice)
                    if name is not None:
                        entries.append((name, node.value))
        elif isinstance(node, ast.Expr) and call_name(node.value) == "update":
            for arg in node.value.args:
                if isinstance(arg, ast.Dict):
                    entries.extend(_literal_entries(arg))
    return entries


def _literal_entries(node: ast.Dict) -> List[Tuple[str, ast.expr]]:
    entries = []
    for key, value in zip(node.keys, node.values):
        name = string_constant(key) if key is not None else None
        if name is not None:
            entries.append((name, value))
    return entries


def dict_keys(func_node: ast.AST) -> List[str]:
    """Unique string keys of dict_entries, first occurrence first."""
    seen: Dict[str, None] = {}
    for name, _ in dict_entries(func_node):
        seen.setdefault(name, None)
    return list(seen)


def class_call_assignments(class_node: ast.ClassDef) -> List[str]:
    """Names assigned a call at class level, e.g. ``email = forms.EmailField()``."""
    names = []
    for node in class_node.body:
        if isinstance(node, ast.Assign) and isinstance(node.value, ast.Call):
            for target in node.targets:
                if isinstance(target, ast.Name) and not target.id.startswith("_"):
                    names.append(target.id)
        elif isinstance(node, ast.AnnAssign) and isinstance(node.value, ast.Call):
            if isinstance(node.target, ast.Name) and not node.target.id.startswith("_"):
                names.append(node.target.id)
    return names


def keyword_value(call: ast.Call, name: str) -> Optional[ast.expr]:
    for keyword in call.keywords:
        if keyword.arg == name:
            return keyword.value
    return None


def docstring_attribute_types(doc: Optional[str]) -> Dict[str, str]:
    """
    Attribute type annotations declared in a class docstring.

    Supports ``:vartype name: type``, ``:ivar type name:`` and Google-style
    ``name (type): description`` lines. The first declaration of a name wins.
    """
    if not doc:
        return {}
    doc = inspect.cleandoc(doc)
    annotations: Dict[str, str] = {}
    for name, type_token in _VARTYPE_RE.findall(doc):
        annotations.setdefault(name, type_token)
    for type_token, name in _IVAR_RE.findall(doc):
        annotations.setdefault(name, type_token)
    for name, type_token in _GOOGLE_ATTR_RE.findall(doc):
        annotations.setdefault(name, type_token.strip())
    return annotations


def docstring_return_type(doc: Optional[str]) -> Optional[str]:
    """Return type declared by ``:rtype:`` or a Google-style ``Returns:`` section."""
    if not doc:
        return None
    doc = inspect.cleandoc(doc)
    match = _RTYPE_RE.search(doc) or _RETURNS_SECTION_RE.search(doc)
    if match:
        return match.group(1).strip()
    return None
