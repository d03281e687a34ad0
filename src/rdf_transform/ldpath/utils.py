"""LDPath helpers shared by the validator and the builder."""

import re
from typing import Dict, Mapping, Optional, Union

from lark import Token, Tree

from ..graph import DEFAULT_NAMESPACES


_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")
_FORBIDDEN_IRI_CHARS = re.compile(r'[\s<>"{}|\\^`]')
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "'": "'", "\\": "\\"}


def unquote(s: str) -> str:
    """Remove surrounding quotes from a string literal and resolve escapes.

    Args:
        s: String literal as written in the program, quotes included

    Returns:
        The literal's value
    """
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        s = s[1:-1]
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), s)


def strip_angles(iri: str) -> str:
    """'<http://x>' -> 'http://x'"""
    if iri.startswith("<") and iri.endswith(">"):
        return iri[1:-1]
    return iri


def is_well_formed_iri(iri: str) -> bool:
    """An absolute IRI with a scheme and no characters IRIs forbid."""
    return bool(iri) and bool(_SCHEME.match(iri)) and not _FORBIDDEN_IRI_CHARS.search(iri)


def split_curie(curie: str):
    """'dc:title' -> ('dc', 'title')"""
    prefix, _, local = curie.partition(":")
    return prefix, local


def expand_curie(curie: str, namespaces: Mapping[str, str]) -> Optional[str]:
    """Expand a prefixed name, or None when the prefix is not declared."""
    prefix, local = split_curie(curie)
    namespace = namespaces.get(prefix)
    if namespace is None:
        return None
    return namespace + local


def collect_namespaces(tree: Tree) -> Dict[str, str]:
    """Prefixes declared in a program; a later declaration wins."""
    declared: Dict[str, str] = {}
    for child in tree.children:
        if isinstance(child, Tree) and child.data == "prefix_decl":
            name, iri = child.children
            declared[str(name)] = strip_angles(str(iri))
    return declared


def effective_namespaces(declared: Mapping[str, str]) -> Dict[str, str]:
    """Default namespaces overlaid with the program's own declarations."""
    namespaces = dict(DEFAULT_NAMESPACES)
    namespaces.update(declared)
    return namespaces


def node_position(node: Union[Tree, Token]):
    """(line, column) of a tree or token, when lark recorded it."""
    if isinstance(node, Token):
        return node.line, node.column
    meta = getattr(node, "meta", None)
    if meta is not None and not getattr(meta, "empty", True):
        return meta.line, meta.column
    return None, None
